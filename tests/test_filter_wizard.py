"""Tests for the FilterWizard engine.

Covers step transitions, the start-over behavior of step 0, value
toggling, submission eligibility, and success/failure handling.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from cloudinv.models.filter import FilterClause, FilterDraft, FilterOperator
from cloudinv.models.resource import Resource
from cloudinv.models.result import Failure, Success
from cloudinv.services.collaborators import ToastKind
from cloudinv.services.filter_wizard import (
    FieldSelection,
    FilterWizard,
    OperatorSelection,
    ValueEntry,
    WizardStep,
)

RESOURCE = Resource(
    id="r1", provider="aws", account="prod", service="ec2", name="web-1", region="us-east-1"
)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _wizard(result=None) -> tuple[FilterWizard, AsyncMock, MagicMock, MagicMock]:
    service = MagicMock()
    service.get_filtered_inventory = AsyncMock(
        return_value=result if result is not None else Success([RESOURCE])
    )
    apply_inventory = MagicMock()
    on_toast = MagicMock()
    wizard = FilterWizard(service, apply_inventory=apply_inventory, on_toast=on_toast)
    return wizard, service.get_filtered_inventory, apply_inventory, on_toast


def _filled(wizard: FilterWizard) -> None:
    wizard.open()
    wizard.select_field("region")
    wizard.select_operator(FilterOperator.IS)
    wizard.check_value("us-east-1", True)


# ------------------------------------------------------------------
# Transitions
# ------------------------------------------------------------------


class TestTransitions:
    def test_starts_closed_and_empty(self) -> None:
        wizard, *_ = _wizard()
        assert not wizard.is_open
        assert wizard.step == WizardStep.FIELD
        assert wizard.draft == FilterDraft()
        assert isinstance(wizard.state, FieldSelection)

    def test_select_field_advances(self) -> None:
        wizard, *_ = _wizard()
        wizard.select_field("provider")
        assert wizard.step == WizardStep.OPERATOR
        assert wizard.state == OperatorSelection(field="provider", tag_key=None)

    def test_select_unknown_field_raises(self) -> None:
        wizard, *_ = _wizard()
        with pytest.raises(ValueError):
            wizard.select_field("owner")
        assert wizard.step == WizardStep.FIELD

    def test_select_operator_advances(self) -> None:
        wizard, *_ = _wizard()
        wizard.select_field("name")
        wizard.select_operator("CONTAINS")
        assert wizard.step == WizardStep.VALUES
        assert wizard.draft.operator == FilterOperator.CONTAINS
        assert isinstance(wizard.state, ValueEntry)

    def test_set_tag_key_does_not_advance(self) -> None:
        wizard, *_ = _wizard()
        wizard.select_field("tag")
        wizard.set_tag_key("env")
        assert wizard.step == WizardStep.OPERATOR
        assert wizard.state == OperatorSelection(field="tag", tag_key="env")

    @pytest.mark.parametrize("start", [0, 1, 2])
    def test_go_to_zero_resets_from_any_step(self, start: int) -> None:
        wizard, *_ = _wizard()
        _filled(wizard)
        wizard.go_to(start)
        wizard.go_to(0)
        assert wizard.step == WizardStep.FIELD
        assert wizard.draft == FilterDraft()

    @pytest.mark.parametrize("target", [1, 2])
    def test_go_to_other_steps_keeps_draft(self, target: int) -> None:
        wizard, *_ = _wizard()
        _filled(wizard)
        before = wizard.draft
        wizard.go_to(target)
        assert wizard.step == target
        assert wizard.draft == before

    def test_go_to_invalid_step_raises(self) -> None:
        wizard, *_ = _wizard()
        with pytest.raises(ValueError):
            wizard.go_to(3)

    def test_toggle_resets_and_flips(self) -> None:
        wizard, *_ = _wizard()
        _filled(wizard)
        wizard.toggle()
        assert not wizard.is_open
        assert wizard.draft == FilterDraft()
        wizard.select_field("account")
        wizard.toggle()
        assert wizard.is_open
        assert wizard.draft == FilterDraft()

    def test_close_keeps_draft(self) -> None:
        wizard, *_ = _wizard()
        _filled(wizard)
        wizard.close()
        assert not wizard.is_open
        assert wizard.draft.values == ("us-east-1",)


# ------------------------------------------------------------------
# Values
# ------------------------------------------------------------------


class TestValues:
    def test_check_on_then_off_restores_values(self) -> None:
        wizard, *_ = _wizard()
        _filled(wizard)
        before = wizard.draft.values
        wizard.check_value("eu-west-1", True)
        wizard.check_value("eu-west-1", False)
        assert wizard.draft.values == before

    def test_previous_draft_reference_is_not_mutated(self) -> None:
        wizard, *_ = _wizard()
        _filled(wizard)
        held = wizard.draft
        wizard.check_value("eu-west-1", True)
        wizard.check_value("us-east-1", False)
        assert held.values == ("us-east-1",)
        assert wizard.draft.values == ("eu-west-1",)

    def test_single_value_and_clean(self) -> None:
        wizard, *_ = _wizard()
        _filled(wizard)
        wizard.set_single_value("web")
        assert wizard.draft.values == ("web",)
        wizard.clean_values()
        assert wizard.draft.values == ()
        assert wizard.step == WizardStep.VALUES


# ------------------------------------------------------------------
# Submit
# ------------------------------------------------------------------


class TestSubmit:
    async def test_submit_without_field_or_operator_is_noop(self) -> None:
        wizard, service, apply_inventory, _ = _wizard()
        assert await wizard.submit() is None
        wizard.select_field("region")
        assert await wizard.submit() is None
        service.assert_not_called()
        apply_inventory.assert_not_called()

    async def test_submit_bare_tag_without_key_is_noop(self) -> None:
        wizard, service, *_ = _wizard()
        wizard.select_field("tag")
        wizard.select_operator(FilterOperator.IS_EMPTY)
        assert not wizard.can_submit
        assert await wizard.submit() is None
        service.assert_not_called()

    async def test_submit_sends_single_clause(self) -> None:
        wizard, service, apply_inventory, _ = _wizard()
        _filled(wizard)

        result = await wizard.submit()

        assert result == Success([RESOURCE])
        service.assert_awaited_once_with(
            [FilterClause(field="region", operator="IS", values=["us-east-1"])]
        )
        sent = service.await_args.args[0]
        assert [c.model_dump(mode="json") for c in sent] == [
            {"field": "region", "operator": "IS", "values": ["us-east-1"]}
        ]
        apply_inventory.assert_called_once_with([RESOURCE])
        assert wizard.draft == FilterDraft()
        assert wizard.step == WizardStep.FIELD
        assert not wizard.loading

    async def test_submit_folds_tag_key(self) -> None:
        wizard, service, *_ = _wizard()
        wizard.select_field("tag")
        wizard.set_tag_key("env")
        wizard.select_operator(FilterOperator.IS)
        wizard.check_value("prod", True)

        await wizard.submit()

        payload = service.await_args.args[0][0].model_dump(mode="json")
        assert payload == {"field": "tag:env", "operator": "IS", "values": ["prod"]}

    async def test_failure_keeps_draft_and_clears_loading(self) -> None:
        wizard, service, apply_inventory, on_toast = _wizard(Failure("boom", 500))
        _filled(wizard)
        before = (wizard.draft, wizard.step)

        result = await wizard.submit()

        assert result == Failure("boom", 500)
        assert not wizard.loading
        assert (wizard.draft, wizard.step) == before
        apply_inventory.assert_not_called()
        toast = on_toast.call_args.args[0]
        assert toast.kind == ToastKind.ERROR
        assert toast.message == "boom"

    async def test_loading_is_set_while_in_flight(self) -> None:
        wizard, service, *_ = _wizard()
        _filled(wizard)
        gate = asyncio.Event()
        seen = []

        async def slow(clauses):
            seen.append(wizard.loading)
            await gate.wait()
            return Success([])

        service.side_effect = slow
        task = asyncio.create_task(wizard.submit())
        await asyncio.sleep(0)
        assert wizard.loading
        # A second submit while loading never reaches the service
        assert await wizard.submit() is None
        gate.set()
        await task
        assert seen == [True]
        assert service.await_count == 1
        assert not wizard.loading

    async def test_exception_still_clears_loading(self) -> None:
        wizard, service, *_ = _wizard()
        service.side_effect = RuntimeError("transport gone")
        _filled(wizard)
        with pytest.raises(RuntimeError):
            await wizard.submit()
        assert not wizard.loading
        assert wizard.draft.values == ("us-east-1",)

    async def test_result_after_dispose_is_ignored(self) -> None:
        wizard, service, apply_inventory, on_toast = _wizard()
        _filled(wizard)

        async def dispose_mid_flight(clauses):
            wizard.dispose()
            return Success([RESOURCE])

        service.side_effect = dispose_mid_flight
        before = wizard.draft

        await wizard.submit()

        apply_inventory.assert_not_called()
        on_toast.assert_not_called()
        assert wizard.draft == before
