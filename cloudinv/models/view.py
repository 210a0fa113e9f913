"""Pydantic models for saved inventory views."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from cloudinv.models.filter import FilterClause


class View(BaseModel):
    """A named set of filter clauses, as held by the view manager.

    ``id`` is ``None`` until the persistence service assigns one. The
    name may be empty while the user is still typing it.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str = ""
    filters: list[FilterClause] = []
    exclude: list[str] = []


class SavedViewCreate(BaseModel):
    """Request body for creating or updating a saved view."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    filters: list[FilterClause] = []
    exclude: list[str] = []


class SavedViewUpdate(BaseModel):
    """Request body for updating a saved view.

    ``exclude`` is left untouched when omitted; the hidden set is
    normally changed through the hide/unhide endpoints.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    filters: list[FilterClause] = []
    exclude: list[str] | None = None


class SavedViewResponse(BaseModel):
    """Single saved view returned by the API."""

    id: str
    name: str
    filters: list[FilterClause]
    exclude: list[str] = []
    created_at: datetime
    updated_at: datetime


class SavedViewListResponse(BaseModel):
    """All saved views."""

    views: list[SavedViewResponse]
