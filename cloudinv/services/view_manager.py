"""View manager engine.

Drives the "save as a view" / "manage view" panel: creating, updating
and deleting saved views, switching between the view and hidden
resources pages, and bulk-unhiding resources hidden from the view.

The engine is editing an existing view when it is constructed with a
``view_id`` (the id carried in the page's routing parameter); otherwise
it saves a brand-new view.

Every network-backed operation follows the same shape: set the loading
flag, await the collaborator, then on success update the caller's state
and on failure keep the local edit state for a retry. The loading flag
is always cleared.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum

from cloudinv.models.filter import FilterClause
from cloudinv.models.resource import HiddenResource
from cloudinv.models.result import Failure, ServiceResult
from cloudinv.models.view import View
from cloudinv.services.bulk_selector import BulkSelector
from cloudinv.services.collaborators import (
    GetViewsHook,
    HiddenChangedHook,
    Toast,
    ToastHook,
    ToastKind,
    UnhideService,
    ViewPersistenceService,
)

logger = logging.getLogger(__name__)


class ViewPage(str, Enum):
    VIEW = "view"
    HIDDEN_RESOURCES = "hidden resources"


class ViewManager:
    """State machine behind the view side panel."""

    def __init__(
        self,
        persistence: ViewPersistenceService,
        unhide_service: UnhideService,
        get_views: GetViewsHook,
        on_hidden_changed: HiddenChangedHook,
        *,
        view_id: str | None = None,
        views: Sequence[View] | None = None,
        hidden_resources: Sequence[HiddenResource] | None = None,
        on_toast: ToastHook | None = None,
    ) -> None:
        self._persistence = persistence
        self._unhide_service = unhide_service
        self._get_views = get_views
        self._on_hidden_changed = on_hidden_changed
        self._on_toast = on_toast
        self.view_id = view_id
        self.views: list[View] = list(views or [])
        self.hidden_resources: list[HiddenResource] = list(hidden_resources or [])
        self.selector = BulkSelector(r.id for r in self.hidden_resources)
        self.is_open: bool = False
        self.page: ViewPage = ViewPage.VIEW
        self.view: View = View(id=view_id)
        self.loading: bool = False
        self.unhide_loading: bool = False
        self._disposed = False

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def is_editing(self) -> bool:
        return self.view_id is not None

    @property
    def tabs(self) -> list[ViewPage]:
        """Pages reachable in the panel; hidden resources need a saved view."""
        if self.is_editing:
            return [ViewPage.VIEW, ViewPage.HIDDEN_RESOURCES]
        return [ViewPage.VIEW]

    @property
    def can_save(self) -> bool:
        return bool(self.view.name.strip()) and not self.loading

    @property
    def bulk_items(self) -> list[str]:
        return self.selector.ordered_selection()

    @property
    def bulk_select_checkbox(self) -> bool:
        return self.selector.all_selected

    # ------------------------------------------------------------------
    # Panel
    # ------------------------------------------------------------------

    def open_modal(self, current_filters: Sequence[FilterClause]) -> None:
        """Open the panel on the view page, seeded with *current_filters*."""
        filters = list(current_filters)
        if self.is_editing:
            current = self._find_view(self.view_id)
            name = current.name if current is not None else self.view.name
            exclude = current.exclude if current is not None else self.view.exclude
            self.view = View(
                id=self.view_id, name=name, filters=filters, exclude=exclude
            )
        else:
            self.view = View(filters=filters)
        self.page = ViewPage.VIEW
        self.is_open = True

    def close_modal(self) -> None:
        self.is_open = False

    def dispose(self) -> None:
        """Mark the owning session as gone; late results are dropped."""
        self._disposed = True

    def go_to(self, page: ViewPage | str) -> None:
        target = ViewPage(page)
        if target not in self.tabs:
            logger.debug("Page %s is not available for an unsaved view", target.value)
            return
        self.page = target

    # ------------------------------------------------------------------
    # Caller-supplied data
    # ------------------------------------------------------------------

    def set_views(self, views: Sequence[View]) -> None:
        self.views = list(views)

    def set_hidden_resources(self, resources: Sequence[HiddenResource]) -> None:
        """Replace the hidden list; selections of vanished ids are dropped."""
        self.hidden_resources = list(resources)
        self.selector.replace_items(r.id for r in self.hidden_resources)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def set_name(self, name: str) -> None:
        self.view = self.view.model_copy(update={"name": name})

    def handle_change(self, **changes) -> None:
        """Apply form field changes (``name``, ``filters``) to the view."""
        unknown = set(changes) - {"name", "filters"}
        if unknown:
            raise ValueError(f"unknown view fields: {sorted(unknown)}")
        if "filters" in changes:
            changes["filters"] = list(changes["filters"])
        self.view = self.view.model_copy(update=changes)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def save_view(self) -> ServiceResult[View] | None:
        """Create the view, or update it when editing an existing one.

        Returns ``None`` without a request when the name is empty or a
        save is already running.
        """
        if not self.can_save:
            return None

        editing = self.is_editing
        self.loading = True
        try:
            if editing:
                result = await self._persistence.update(self.view_id, self.view)
            else:
                result = await self._persistence.create(self.view)
        finally:
            if not self._disposed:
                self.loading = False

        if self._disposed:
            logger.debug("Dropping save result for disposed view manager")
            return result

        if isinstance(result, Failure):
            logger.warning("Saving view %r failed: %s", self.view.name, result.reason)
            self._toast(ToastKind.ERROR, "View not saved", result.reason)
            return result

        saved = result.value
        self.view = saved
        if editing:
            self._toast(
                ToastKind.SUCCESS, "View updated", f"The view {saved.name} was updated."
            )
        else:
            self._toast(
                ToastKind.SUCCESS, "View created", f"The view {saved.name} was created."
            )
        self._get_views(editing, saved.name)
        self.close_modal()
        return result

    async def delete_view(self) -> ServiceResult[None] | None:
        """Delete the view being edited. No-op for an unsaved view."""
        if not self.is_editing or self.loading:
            return None

        self.loading = True
        try:
            result = await self._persistence.delete(self.view_id)
        finally:
            if not self._disposed:
                self.loading = False

        if self._disposed:
            logger.debug("Dropping delete result for disposed view manager")
            return result

        if isinstance(result, Failure):
            logger.warning("Deleting view %s failed: %s", self.view_id, result.reason)
            self._toast(ToastKind.ERROR, "View not deleted", result.reason)
            return result

        self._toast(
            ToastKind.SUCCESS, "View deleted", f"The view {self.view.name} was deleted."
        )
        self._get_views()
        self.close_modal()
        return result

    # ------------------------------------------------------------------
    # Bulk selection and unhide
    # ------------------------------------------------------------------

    def on_checkbox_change(self, item_id: str, checked: bool) -> None:
        self.selector.toggle_one(item_id, checked)

    def handle_bulk_selection(self, checked: bool) -> None:
        self.selector.toggle_all(checked)

    async def unhide_resources(self) -> ServiceResult[None] | None:
        """Unhide the selected resources from the view being edited."""
        ids = self.selector.ordered_selection()
        if not ids or not self.is_editing or self.unhide_loading:
            return None

        self.unhide_loading = True
        try:
            result = await self._unhide_service.unhide(self.view_id, ids)
        finally:
            if not self._disposed:
                self.unhide_loading = False

        if self._disposed:
            logger.debug("Dropping unhide result for disposed view manager")
            return result

        if isinstance(result, Failure):
            logger.warning(
                "Unhiding %d resources from view %s failed: %s",
                len(ids),
                self.view_id,
                result.reason,
            )
            self._toast(ToastKind.ERROR, "Resources not unhidden", result.reason)
            return result

        self.selector.clear()
        noun = "resource" if len(ids) == 1 else "resources"
        self._toast(
            ToastKind.SUCCESS,
            "Resources unhidden",
            f"{len(ids)} {noun} unhidden from {self.view.name or 'the view'}.",
        )
        self._on_hidden_changed(True)
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find_view(self, view_id: str | None) -> View | None:
        for view in self.views:
            if view.id == view_id:
                return view
        return None

    def _toast(self, kind: ToastKind, title: str, message: str) -> None:
        if self._on_toast is not None:
            self._on_toast(Toast(kind=kind, title=title, message=message))
