"""Filter wizard engine.

Walks the user through building one filter clause in three steps
(field, operator, values) and submits it to the filtering service.

Usage::

    wizard = FilterWizard(service, apply_inventory=table.replace_rows)
    wizard.open()
    wizard.select_field("region")
    wizard.select_operator(FilterOperator.IS)
    wizard.check_value("us-east-1", True)
    await wizard.submit()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum

from cloudinv.models.filter import FilterDraft, FilterOperator, is_known_field
from cloudinv.models.resource import Resource
from cloudinv.models.result import Failure, ServiceResult
from cloudinv.services.collaborators import (
    ApplyInventoryHook,
    FilteringService,
    Toast,
    ToastHook,
    ToastKind,
)

logger = logging.getLogger(__name__)


class WizardStep(IntEnum):
    FIELD = 0
    OPERATOR = 1
    VALUES = 2


# ------------------------------------------------------------------
# Per-step views of the draft
# ------------------------------------------------------------------


@dataclass(frozen=True)
class FieldSelection:
    """Step 0: nothing chosen yet."""


@dataclass(frozen=True)
class OperatorSelection:
    """Step 1: the field is known, the tag key may still be typed in."""

    field: str | None
    tag_key: str | None


@dataclass(frozen=True)
class ValueEntry:
    """Step 2: field and operator known, values being picked."""

    field: str | None
    operator: FilterOperator | None
    tag_key: str | None
    values: tuple[str, ...]


WizardState = FieldSelection | OperatorSelection | ValueEntry


class FilterWizard:
    """Step-indexed state machine accumulating a :class:`FilterDraft`.

    Only one submit is in flight at a time; a second ``submit()`` while
    ``loading`` is set returns ``None`` without calling the service.
    """

    def __init__(
        self,
        filtering_service: FilteringService,
        apply_inventory: ApplyInventoryHook,
        on_toast: ToastHook | None = None,
    ) -> None:
        self._service = filtering_service
        self._apply_inventory = apply_inventory
        self._on_toast = on_toast
        self.step: WizardStep = WizardStep.FIELD
        self.draft: FilterDraft = FilterDraft()
        self.is_open: bool = False
        self.loading: bool = False
        self._disposed = False

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def state(self) -> WizardState:
        """The draft as seen from the current step."""
        d = self.draft
        if self.step == WizardStep.FIELD:
            return FieldSelection()
        if self.step == WizardStep.OPERATOR:
            return OperatorSelection(field=d.field, tag_key=d.tag_key)
        return ValueEntry(
            field=d.field, operator=d.operator, tag_key=d.tag_key, values=d.values
        )

    @property
    def can_submit(self) -> bool:
        return (
            not self.loading
            and self.draft.is_submittable
            and self.draft.resolved_field is not None
        )

    # ------------------------------------------------------------------
    # Open / close
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Discard the draft and return to the field step."""
        self.step = WizardStep.FIELD
        self.draft = FilterDraft()

    def toggle(self) -> None:
        self.reset()
        self.is_open = not self.is_open

    def open(self) -> None:
        self.reset()
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def dispose(self) -> None:
        """Mark the owning session as gone; late results are dropped."""
        self._disposed = True

    # ------------------------------------------------------------------
    # Step transitions
    # ------------------------------------------------------------------

    def go_to(self, step: int) -> None:
        """Move the cursor to *step*.

        Step 0 is the start-over point and clears the draft. Any other
        step keeps the draft as it is.
        """
        target = WizardStep(step)
        if target == WizardStep.FIELD:
            self.reset()
        else:
            self.step = target

    def select_field(self, field: str) -> None:
        if not is_known_field(field):
            raise ValueError(f"unknown filter field {field!r}")
        self.draft = self.draft.with_field(field)
        self.step = WizardStep.OPERATOR

    def select_operator(self, operator: FilterOperator | str) -> None:
        self.draft = self.draft.with_operator(FilterOperator(operator))
        self.step = WizardStep.VALUES

    def set_tag_key(self, tag_key: str) -> None:
        self.draft = self.draft.with_tag_key(tag_key)

    def check_value(self, value: str, checked: bool) -> None:
        self.draft = self.draft.with_value_checked(value, checked)

    def set_single_value(self, value: str) -> None:
        """Free-text entry: the typed text becomes the only value."""
        self.draft = self.draft.with_single_value(value)

    def clean_values(self) -> None:
        self.draft = self.draft.without_values()

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    async def submit(self) -> ServiceResult[list[Resource]] | None:
        """Finalize the draft and query the filtering service.

        Returns ``None`` without calling the service when the draft is
        not submittable. On success the resources go to the apply hook
        and the draft is reset; on failure the draft is kept for retry.
        """
        if not self.can_submit:
            return None

        clause = self.draft.finalize()
        self.loading = True
        try:
            result = await self._service.get_filtered_inventory([clause])
        finally:
            if not self._disposed:
                self.loading = False

        if self._disposed:
            logger.debug("Dropping filter result for disposed wizard")
            return result

        if isinstance(result, Failure):
            logger.warning("Filtering inventory failed: %s", result.reason)
            self._toast(ToastKind.ERROR, "Filter failed", result.reason)
            return result

        self._apply_inventory(result.value)
        self.reset()
        return result

    def _toast(self, kind: ToastKind, title: str, message: str) -> None:
        if self._on_toast is not None:
            self._on_toast(Toast(kind=kind, title=title, message=message))
