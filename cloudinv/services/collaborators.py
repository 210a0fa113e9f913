"""Contracts of the services and caller hooks the engines talk to.

The engines only depend on these protocols. ``InventoryClient`` is the
HTTP implementation; tests substitute fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from cloudinv.models.filter import FilterClause
from cloudinv.models.resource import Resource
from cloudinv.models.result import ServiceResult
from cloudinv.models.view import View


class FilteringService(Protocol):
    async def get_filtered_inventory(
        self, clauses: list[FilterClause]
    ) -> ServiceResult[list[Resource]]: ...


class ViewPersistenceService(Protocol):
    async def create(self, view: View) -> ServiceResult[View]: ...

    async def update(self, view_id: str, view: View) -> ServiceResult[View]: ...

    async def delete(self, view_id: str) -> ServiceResult[None]: ...


class UnhideService(Protocol):
    async def unhide(
        self, view_id: str, ids: list[str]
    ) -> ServiceResult[None]: ...


class ToastKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Toast:
    """User-facing notification raised by an engine."""

    kind: ToastKind
    title: str
    message: str


class GetViewsHook(Protocol):
    """Refreshes the caller's view list after a create/update/delete."""

    def __call__(
        self, edit: bool | None = None, view_name: str | None = None
    ) -> None: ...


class ApplyInventoryHook(Protocol):
    def __call__(self, resources: list[Resource]) -> None: ...


class HiddenChangedHook(Protocol):
    def __call__(self, has_update: bool) -> None: ...


class ToastHook(Protocol):
    def __call__(self, toast: Toast) -> None: ...
