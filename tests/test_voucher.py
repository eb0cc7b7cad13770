"""Tests for the trip workflow and voucher assembly."""

import json
from dataclasses import replace
from datetime import date

import pytest

from tdyvoucher.domain.entities import LocalityPlan, MiscItem, Severity, WorkflowStage
from tdyvoucher.domain.errors import AccessDeniedError, StaleEstimateError
from tdyvoucher.domain.voucher import TripWorkflow, inputs_fingerprint

ITEMS = [
    {
        "item_type": "lodging",
        "tx_date": "2024-03-04",
        "amount_cents": 36000,
        "meta": {"nights": 2, "tax_cents": 3000},
    },
    {
        "item_type": "mileage",
        "tx_date": "2024-03-06",
        "amount_cents": 0,
        "meta": {"miles": "120", "origin": "Hotel", "destination": "Base"},
    },
]


@pytest.fixture
def estimated(assembler, three_day_trip):
    return assembler.estimate(assembler.start(three_day_trip, ITEMS))


def test_start_is_draft(assembler, three_day_trip):
    workflow = assembler.start(three_day_trip, ITEMS)
    assert workflow.stage == WorkflowStage.DRAFT
    assert workflow.estimate is None
    assert workflow.is_stale
    assert len(workflow.items) == 2


def test_estimate_stage(estimated):
    assert estimated.stage == WorkflowStage.ESTIMATED
    assert not estimated.is_stale
    assert estimated.estimate.grand_total_cents == 14750 + 33000 + 8040


def test_finalize_builds_voucher(assembler, estimated):
    finalized = assembler.finalize(estimated, has_access=True)
    voucher = finalized.voucher

    assert finalized.stage == WorkflowStage.FINALIZED
    assert voucher.estimate == estimated.estimate
    assert voucher.trip == estimated.trip
    assert voucher.voucher_id.startswith("TDY-")
    assert len(voucher.voucher_id) == len("TDY-") + 16
    # Issues are reported, never blocking
    assert not voucher.is_clean
    assert any(entry.severity == Severity.RED for entry in voucher.checklist)
    # Earlier workflow values are untouched
    assert estimated.voucher is None


def test_finalize_without_access(assembler, estimated):
    with pytest.raises(AccessDeniedError) as exc_info:
        assembler.finalize(estimated, has_access=False)
    assert exc_info.value.context["trip_id"] == "TRIP-1"


@pytest.mark.parametrize("claim", [None, "yes", 1])
def test_only_true_grants_access(assembler, estimated, claim):
    with pytest.raises(AccessDeniedError):
        assembler.finalize(estimated, has_access=claim)


def test_access_checked_before_staleness(assembler, three_day_trip):
    draft = assembler.start(three_day_trip, ITEMS)
    with pytest.raises(AccessDeniedError):
        assembler.finalize(draft, has_access=False)


def test_finalize_draft_is_stale(assembler, three_day_trip):
    draft = assembler.start(three_day_trip, ITEMS)
    with pytest.raises(StaleEstimateError):
        assembler.finalize(draft, has_access=True)


def test_revise_clears_estimate(assembler, estimated):
    extra = MiscItem(tx_date=date(2024, 3, 5), amount_cents=1500)
    revised = estimated.revise(items=estimated.items + (extra,))

    assert revised.stage == WorkflowStage.DRAFT
    assert revised.estimate is None
    with pytest.raises(StaleEstimateError):
        assembler.finalize(revised, has_access=True)

    reestimated = assembler.estimate(revised)
    assert reestimated.estimate.misc_total_cents == 1500
    assert assembler.finalize(reestimated, has_access=True).voucher is not None


def test_edited_inputs_with_old_estimate_are_stale(assembler, estimated, three_day_trip):
    moved = replace(three_day_trip, return_date=date(2024, 3, 7))
    tampered = replace(estimated, trip=moved)
    assert tampered.is_stale
    with pytest.raises(StaleEstimateError):
        assembler.finalize(tampered, has_access=True)


def test_finalize_is_idempotent(assembler, estimated):
    first = assembler.finalize(estimated, has_access=True).voucher
    second = assembler.finalize(estimated, has_access=True).voucher
    refinalized = assembler.finalize(
        assembler.finalize(estimated, has_access=True), has_access=True
    ).voucher

    assert first == second == refinalized
    assert first.to_json() == second.to_json()


def test_rerun_from_scratch_is_byte_identical(assembler, three_day_trip):
    def run():
        workflow = assembler.estimate(assembler.start(three_day_trip, ITEMS))
        return assembler.finalize(workflow, has_access=True).voucher.to_json()

    assert run() == run()


def test_voucher_json(assembler, estimated):
    voucher = assembler.finalize(estimated, has_access=True).voucher
    data = json.loads(voucher.to_json())

    assert data["voucher_id"] == voucher.voucher_id
    assert data["trip"]["trip_id"] == "TRIP-1"
    assert data["estimate"]["grand_total_cents"] == estimated.estimate.grand_total_cents
    assert data["checklist_lines"] == voucher.checklist_lines
    assert [item["item_type"] for item in data["items"]] == ["lodging", "mileage"]


def test_different_inputs_different_voucher_id(assembler, three_day_trip):
    first = assembler.finalize(
        assembler.estimate(assembler.start(three_day_trip, ITEMS)), has_access=True
    ).voucher
    other_trip = replace(three_day_trip, trip_id="TRIP-2")
    second = assembler.finalize(
        assembler.estimate(assembler.start(other_trip, ITEMS)), has_access=True
    ).voucher
    assert first.voucher_id != second.voucher_id


def test_assemble_requires_access(assembler, estimated):
    with pytest.raises(AccessDeniedError):
        assembler.assemble(estimated.trip, estimated.items, estimated.estimate, has_access=False)


def test_fingerprint_tracks_items(three_day_trip):
    item = MiscItem(tx_date=date(2024, 3, 5), amount_cents=1500)
    assert inputs_fingerprint(three_day_trip, [item]) == inputs_fingerprint(three_day_trip, [item])
    assert inputs_fingerprint(three_day_trip, [item]) != inputs_fingerprint(three_day_trip, [])


def test_draft_constructor(three_day_trip):
    workflow = TripWorkflow.draft(three_day_trip)
    assert workflow.items == ()
    assert workflow.stage == WorkflowStage.DRAFT


def test_assemble_rejects_estimate_of_other_items(assembler, three_day_trip):
    empty = assembler.estimate(assembler.start(three_day_trip, []))
    parking = MiscItem(tx_date=date(2024, 3, 5), amount_cents=5000)

    with pytest.raises(StaleEstimateError) as exc_info:
        assembler.assemble(three_day_trip, [parking], empty.estimate, has_access=True)
    assert exc_info.value.context["trip_id"] == "TRIP-1"


def test_assemble_rejects_estimate_of_other_trip_dates(assembler, estimated, three_day_trip):
    longer = replace(three_day_trip, return_date=date(2024, 3, 7))
    with pytest.raises(StaleEstimateError):
        assembler.assemble(longer, estimated.items, estimated.estimate, has_access=True)


def test_assemble_rejects_estimate_of_other_locality(assembler, estimated, three_day_trip):
    moved = replace(three_day_trip, localities=LocalityPlan.single("San Diego, CA"))
    with pytest.raises(StaleEstimateError):
        assembler.assemble(moved, estimated.items, estimated.estimate, has_access=True)


def test_assemble_accepts_matching_estimate(assembler, estimated):
    voucher = assembler.assemble(
        estimated.trip, estimated.items, estimated.estimate, has_access=True
    )
    assert voucher == assembler.finalize(estimated, has_access=True).voucher
