"""Pydantic models for inventory resources and hide/unhide requests."""

from datetime import datetime

from pydantic import BaseModel, Field


class Resource(BaseModel):
    """Single cloud resource returned by the inventory API."""

    id: str
    resource_id: str = ""
    provider: str
    account: str
    service: str
    name: str
    region: str
    cost: float = 0.0
    tags: dict[str, str] = {}
    fetched_at: datetime | None = None


class HiddenResource(BaseModel):
    """Resource currently hidden from a view, as listed for unhiding."""

    id: str
    provider: str
    service: str
    name: str
    region: str
    account: str
    cost: float = 0.0


class ResourceIdsRequest(BaseModel):
    """Request body for hiding or unhiding resources in a view."""

    ids: list[str] = Field(..., min_length=1)
