"""Voucher checklist rules.

Each rule inspects the items and the estimate and returns checklist entries.
Rules never block assembly; they surface issues for the traveler to resolve
before physical submission. Rule order and entry order are fixed so the same
inputs always give the same checklist.
"""

from collections import defaultdict
from datetime import date
from typing import Callable, Sequence

from tdyvoucher.domain.entities import (
    ChecklistEntry,
    EstimateTotals,
    LineItem,
    LodgingItem,
    MileageItem,
    MiscItem,
    Severity,
    Trip,
)
from tdyvoucher.domain.money import format_cents

# Misc expenses at or above this amount need a receipt
RECEIPT_THRESHOLD_CENTS = 7500

PER_DIEM_REFERENCE = "https://www.gsa.gov/travel/plan-book/per-diem-rates"

Rule = Callable[[Trip, Sequence[LineItem], EstimateTotals], list[ChecklistEntry]]


def check_duplicates(
    trip: Trip, items: Sequence[LineItem], estimate: EstimateTotals
) -> list[ChecklistEntry]:
    """Same type, date and amount submitted more than once."""
    entries = []
    seen: set[tuple[str, str, int]] = set()
    for item in items:
        key = (item.item_type.value, item.tx_date.isoformat(), item.amount_cents)
        if key in seen:
            entries.append(
                ChecklistEntry(
                    code="DUP_RECEIPT",
                    severity=Severity.RED,
                    message=(
                        f"Duplicate {item.item_type.value} receipt: "
                        f"{format_cents(item.amount_cents)} on {item.tx_date.isoformat()}"
                    ),
                    suggestion=(
                        "Remove duplicate or annotate if legitimate split payment. "
                        "Only one will be reimbursed."
                    ),
                    reference="DFAS: Only one receipt per expense",
                )
            )
        else:
            seen.add(key)
    return entries


def _charged_by_night(estimate: EstimateTotals) -> dict[date, tuple[int, int]]:
    """Room charges summed per night, with that night's cap."""
    nights: dict[date, tuple[int, int]] = {}
    for night in estimate.lodging_nights:
        charged, _ = nights.get(night.date, (0, night.cap_cents))
        nights[night.date] = (charged + night.charged_cents, night.cap_cents)
    return nights


def check_lodging_cap(
    trip: Trip, items: Sequence[LineItem], estimate: EstimateTotals
) -> list[ChecklistEntry]:
    """Nights charged above the lodging cap, across every folio for the night."""
    entries = []
    for night_date, (charged, cap) in sorted(_charged_by_night(estimate).items()):
        if charged <= cap:
            continue
        entries.append(
            ChecklistEntry(
                code="OVER_LODGING_CAP",
                severity=Severity.RED,
                message=(
                    f"Lodging on {night_date.isoformat()}: "
                    f"{format_cents(charged)}/night exceeds cap of {format_cents(cap)}"
                ),
                suggestion=(
                    f"Over by {format_cents(charged - cap)}. Only the cap is "
                    "reimbursed; attach an authorization memo for an exception."
                ),
                reference="Lodging caps apply unless authorized exception",
            )
        )
    return entries


def check_receipts(
    trip: Trip, items: Sequence[LineItem], estimate: EstimateTotals
) -> list[ChecklistEntry]:
    """Lodging always needs a receipt; misc only at or above the threshold."""
    entries = []
    for item in items:
        needs_receipt = isinstance(item, LodgingItem) or (
            isinstance(item, MiscItem) and item.amount_cents >= RECEIPT_THRESHOLD_CENTS
        )
        if needs_receipt and item.receipt_ref is None:
            entries.append(
                ChecklistEntry(
                    code="MISSING_RECEIPT",
                    severity=Severity.YELLOW,
                    message=(
                        f"{item.item_type.value} expense of {format_cents(item.amount_cents)} "
                        f"on {item.tx_date.isoformat()} has no receipt"
                    ),
                    suggestion=(
                        "Upload receipt PDF or attach missing-receipt affidavit per local policy"
                    ),
                    reference=(
                        f"Receipts required for lodging and expenses >= "
                        f"{format_cents(RECEIPT_THRESHOLD_CENTS)}"
                    ),
                )
            )
    return entries


def check_mileage_routes(
    trip: Trip, items: Sequence[LineItem], estimate: EstimateTotals
) -> list[ChecklistEntry]:
    """Mileage claims must name where the drive started and ended."""
    entries = []
    for item in items:
        if not isinstance(item, MileageItem):
            continue
        if item.origin and item.destination:
            continue
        entries.append(
            ChecklistEntry(
                code="MILEAGE_ROUTE_MISSING",
                severity=Severity.YELLOW,
                message=(
                    f"Mileage of {item.miles} miles on {item.tx_date.isoformat()} "
                    "is missing origin or destination"
                ),
                suggestion="Add the starting point and destination of the drive",
                reference="Mileage claims are itemized by route",
            )
        )
    return entries


def check_folio_totals(
    trip: Trip, items: Sequence[LineItem], estimate: EstimateTotals
) -> list[ChecklistEntry]:
    """An explicit nightly rate should reconcile to the folio total."""
    entries = []
    for item in items:
        if not isinstance(item, LodgingItem) or item.nightly_rate_cents is None:
            continue
        expected = item.nightly_rate_cents * item.nights
        if expected == item.amount_cents:
            continue
        entries.append(
            ChecklistEntry(
                code="LODGING_FOLIO_MISMATCH",
                severity=Severity.YELLOW,
                message=(
                    f"Lodging folio on {item.tx_date.isoformat()}: {item.nights} night(s) at "
                    f"{format_cents(item.nightly_rate_cents)} is {format_cents(expected)}, "
                    f"but the folio shows {format_cents(item.amount_cents)}"
                ),
                suggestion="Check the nightly rate and night count against the hotel folio",
                reference="Lodging is reimbursed per night from the itemized folio",
            )
        )
    return entries


def check_meals_against_mie(
    trip: Trip, items: Sequence[LineItem], estimate: EstimateTotals
) -> list[ChecklistEntry]:
    """Meals claimed beyond the day's M&IE are not reimbursed."""
    entries = []
    for entry in estimate.ledger:
        if entry.meals_claimed_cents <= entry.mie_allowed_cents:
            continue
        entries.append(
            ChecklistEntry(
                code="MEALS_OVER_MIE",
                severity=Severity.YELLOW,
                message=(
                    f"Meals on {entry.date.isoformat()} total "
                    f"{format_cents(entry.meals_claimed_cents)}, above the M&IE allowance of "
                    f"{format_cents(entry.mie_allowed_cents)}"
                ),
                suggestion="Meals are covered by per diem only; the excess is not reimbursed",
                reference=PER_DIEM_REFERENCE,
            )
        )
    return entries


def check_day_over_entitlement(
    trip: Trip, items: Sequence[LineItem], estimate: EstimateTotals
) -> list[ChecklistEntry]:
    """A day's claimed spend above what that day reimburses."""
    claimed: dict[date, int] = defaultdict(int)
    for night_date, (charged, _) in _charged_by_night(estimate).items():
        claimed[night_date] += charged
    for item in items:
        if isinstance(item, LodgingItem):
            claimed[item.tx_date] += item.tax_cents

    entries = []
    for entry in estimate.ledger:
        day_claimed = (
            claimed[entry.date]
            + entry.mileage_cents
            + entry.misc_cents
            + entry.meals_claimed_cents
        )
        if day_claimed <= entry.total_cents:
            continue
        entries.append(
            ChecklistEntry(
                code="DAY_OVER_ENTITLEMENT",
                severity=Severity.YELLOW,
                message=(
                    f"Expenses on {entry.date.isoformat()} total {format_cents(day_claimed)}, "
                    f"above the {format_cents(entry.total_cents)} reimbursable for that day"
                ),
                suggestion=(
                    f"{format_cents(day_claimed - entry.total_cents)} will be paid out of "
                    "pocket unless an exception is authorized"
                ),
                reference=PER_DIEM_REFERENCE,
            )
        )
    return entries


def check_zero_rates(
    trip: Trip, items: Sequence[LineItem], estimate: EstimateTotals
) -> list[ChecklistEntry]:
    """A zero M&IE or lodging cap usually means the locality was mis-keyed."""
    localities = sorted(
        {
            day.locality
            for day in estimate.days
            if day.mie_rate_cents == 0 or day.lodging_cap_cents == 0
        }
    )
    return [
        ChecklistEntry(
            code="RATE_LOOKUP_FAILED",
            severity=Severity.YELLOW,
            message=f"Could not verify per-diem rate for locality '{locality}'",
            suggestion="Confirm ZIP code or city/state. Attach rate screenshot or memo.",
            reference=PER_DIEM_REFERENCE,
        )
        for locality in localities
    ]


RULES: tuple[Rule, ...] = (
    check_duplicates,
    check_lodging_cap,
    check_receipts,
    check_mileage_routes,
    check_folio_totals,
    check_meals_against_mie,
    check_day_over_entitlement,
    check_zero_rates,
)

ALL_CLEAR = ChecklistEntry(
    code="ALL_CLEAR",
    severity=Severity.GREEN,
    message="No compliance issues detected",
    suggestion="Review totals and proceed to voucher submission",
)


class ComplianceChecker:
    """Evaluates the fixed rule set for a voucher checklist."""

    def __init__(self, rules: Sequence[Rule] = RULES):
        self.rules = tuple(rules)

    def check(
        self, trip: Trip, items: Sequence[LineItem], estimate: EstimateTotals
    ) -> tuple[ChecklistEntry, ...]:
        """Run every rule in order; ALL_CLEAR when nothing fired."""
        entries: list[ChecklistEntry] = []
        for rule in self.rules:
            entries.extend(rule(trip, items, estimate))
        if not entries:
            entries.append(ALL_CLEAR)
        return tuple(entries)
