"""Voucher assembly and the trip workflow."""

import json
from dataclasses import dataclass, replace
from hashlib import sha256
from typing import Iterable, Optional, Sequence

from tdyvoucher.domain.compliance import ComplianceChecker
from tdyvoucher.domain.entities import (
    EstimateTotals,
    LineItem,
    TdyVoucher,
    Trip,
    WorkflowStage,
)
from tdyvoucher.domain.errors import (
    AccessDeniedError,
    InvalidInputError,
    StaleEstimateError,
    access_denied,
    stale_estimate,
)
from tdyvoucher.domain.estimate import EstimateService
from tdyvoucher.domain.line_items import RawItem


def inputs_fingerprint(trip: Trip, items: Iterable[LineItem]) -> str:
    """Hash of a trip and its items, used to detect stale estimates."""
    payload = {
        "trip": trip.summary(),
        "items": [item.to_dict() for item in items],
    }
    raw = json.dumps(payload, sort_keys=True).encode("utf-8")
    return sha256(raw).hexdigest()


def voucher_id_for(fingerprint: str, estimate: EstimateTotals) -> str:
    """Deterministic voucher ID from the inputs and the estimate they produced."""
    raw = json.dumps(
        {"inputs": fingerprint, "estimate": estimate.to_dict()}, sort_keys=True
    ).encode("utf-8")
    return f"TDY-{sha256(raw).hexdigest()[:16].upper()}"


@dataclass(frozen=True)
class TripWorkflow:
    """Where a trip stands on the way from draft to voucher.

    Every transition returns a new workflow; a finalized voucher held by an
    earlier workflow value is never altered.
    """

    trip: Trip
    items: tuple[LineItem, ...]
    stage: WorkflowStage = WorkflowStage.DRAFT
    estimate: Optional[EstimateTotals] = None
    estimate_fingerprint: Optional[str] = None
    voucher: Optional[TdyVoucher] = None

    @classmethod
    def draft(cls, trip: Trip, items: Iterable[LineItem] = ()) -> "TripWorkflow":
        """Start a workflow for a trip and its items."""
        return cls(trip=trip, items=tuple(items))

    @property
    def fingerprint(self) -> str:
        return inputs_fingerprint(self.trip, self.items)

    @property
    def is_stale(self) -> bool:
        """True when there is no estimate for the current trip and items."""
        return self.estimate is None or self.estimate_fingerprint != self.fingerprint

    def revise(
        self,
        trip: Optional[Trip] = None,
        items: Optional[Iterable[LineItem]] = None,
    ) -> "TripWorkflow":
        """Return a draft with an edited trip and/or items; the estimate is cleared."""
        return TripWorkflow(
            trip=trip if trip is not None else self.trip,
            items=tuple(items) if items is not None else self.items,
        )


class VoucherAssembler:
    """Moves trips through Draft -> Estimated -> Finalized.

    Finalization is gated on an access claim supplied by the caller; the
    assembler does not decide entitlement tiers itself.
    """

    def __init__(
        self,
        estimate_service: EstimateService,
        checker: Optional[ComplianceChecker] = None,
    ):
        """Initialize voucher assembler.

        Args:
            estimate_service: Service used to (re)compute estimates
            checker: Checklist rules; defaults to the standard rule set
        """
        self.estimate_service = estimate_service
        self.checker = checker or ComplianceChecker()

    def start(self, trip: Trip, raw_items: Iterable[RawItem]) -> TripWorkflow:
        """Validate items and open a draft workflow."""
        items = self.estimate_service.prepare_items(trip, raw_items)
        return TripWorkflow.draft(trip, items)

    def estimate(self, workflow: TripWorkflow) -> TripWorkflow:
        """Compute (or recompute) the estimate for a workflow's trip and items."""
        totals = self.estimate_service.recompute(workflow.trip, workflow.items)
        return TripWorkflow(
            trip=workflow.trip,
            items=workflow.items,
            stage=WorkflowStage.ESTIMATED,
            estimate=totals,
            estimate_fingerprint=workflow.fingerprint,
        )

    def finalize(self, workflow: TripWorkflow, has_access: bool) -> TripWorkflow:
        """Assemble the voucher for an estimated workflow.

        Finalizing an already-finalized workflow returns an equal voucher.

        Raises:
            AccessDeniedError: If has_access is not set
            StaleEstimateError: If the workflow has no estimate of its current
                trip and items
        """
        if has_access is not True:
            raise AccessDeniedError(access_denied(), trip_id=workflow.trip.trip_id)
        if workflow.is_stale:
            raise StaleEstimateError(
                stale_estimate(workflow.trip.trip_id),
                trip_id=workflow.trip.trip_id,
                stage=workflow.stage.value,
            )
        voucher = self.assemble(workflow.trip, workflow.items, workflow.estimate, has_access)
        return replace(workflow, stage=WorkflowStage.FINALIZED, voucher=voucher)

    def assemble(
        self,
        trip: Trip,
        items: Sequence[LineItem],
        estimate: EstimateTotals,
        has_access: bool,
    ) -> TdyVoucher:
        """Build a voucher from a trip, its items and their estimate.

        The checklist never blocks assembly. No wall-clock values are
        recorded, so the same inputs always give a byte-identical voucher.

        Raises:
            AccessDeniedError: If has_access is not set
            StaleEstimateError: If the estimate was not computed from this
                trip and these items
        """
        if has_access is not True:
            raise AccessDeniedError(access_denied(), trip_id=trip.trip_id)
        items = tuple(items)
        self._check_current(trip, items, estimate)
        fingerprint = inputs_fingerprint(trip, items)
        return TdyVoucher(
            voucher_id=voucher_id_for(fingerprint, estimate),
            trip=trip,
            checklist=self.checker.check(trip, items, estimate),
            estimate=estimate,
            inputs_fingerprint=fingerprint,
            items=items,
        )

    def _check_current(
        self, trip: Trip, items: tuple[LineItem, ...], estimate: EstimateTotals
    ) -> None:
        """Recompose the estimate from its own daily entitlements and compare.

        The entitlements carry the resolved rates, so no lookup is made.
        """
        stale = StaleEstimateError(stale_estimate(trip.trip_id), trip_id=trip.trip_id)
        if any(
            day.locality != trip.localities.locality_for(day.date) for day in estimate.days
        ):
            raise stale
        try:
            expected = self.estimate_service.composer.compose(trip, estimate.days, items)
        except InvalidInputError as e:
            raise stale from e
        if expected != estimate:
            raise stale
