"""Lodging reconciliation: actual nightly charges against the lodging cap."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping

from tdyvoucher.domain.entities import DailyEntitlement, LineItem, LodgingItem, LodgingNight
from tdyvoucher.domain.errors import InvalidInputError


def allocate_nightly_charges(item: LodgingItem) -> tuple[int, ...]:
    """Split a folio into per-night room charges.

    An explicit nightly rate is used for every night. Otherwise the folio is
    divided evenly, rounding down, and the leftover cents go to the first
    night so the nights sum exactly to ``amount_cents``.
    """
    if item.nightly_rate_cents is not None:
        return (item.nightly_rate_cents,) * item.nights
    base, remainder = divmod(item.amount_cents, item.nights)
    return (base + remainder,) + (base,) * (item.nights - 1)


@dataclass(frozen=True)
class LodgingReconciliation:
    """Reconciled lodging nights plus uncapped taxes."""

    nights: tuple[LodgingNight, ...]
    tax_cents: int
    by_day: Mapping[date, int] = field(default_factory=dict)

    @property
    def capped_cents(self) -> int:
        return sum(night.allowed_cents for night in self.nights)

    @property
    def allowed_cents(self) -> int:
        return self.capped_cents + self.tax_cents


class LodgingReconciler:
    """Caps each lodging night at that night's lodging cap.

    The cap applies to the night, not to the folio: when several folios
    cover the same night their charges share one cap. Taxes attached to a
    folio are added after capping, in full. Nights with no lodging item
    contribute nothing.
    """

    def reconcile(
        self, items: Iterable[LineItem], days: Mapping[date, DailyEntitlement]
    ) -> LodgingReconciliation:
        """Reconcile lodging items against the per-day caps.

        Args:
            items: Line items; only lodging items are considered
            days: Daily entitlements keyed by date

        Returns:
            LodgingReconciliation with nights ordered by date

        Raises:
            InvalidInputError: If a night falls on a day with no entitlement
        """
        charges: dict[date, list[tuple[str, int]]] = defaultdict(list)
        tax_total = 0
        by_day: dict[date, int] = defaultdict(int)

        for item in items:
            if not isinstance(item, LodgingItem):
                continue
            for night_date, charged in zip(item.night_dates(), allocate_nightly_charges(item)):
                if night_date not in days:
                    raise InvalidInputError(
                        f"Lodging night {night_date.isoformat()} of {item.label} "
                        "is outside the trip window",
                        item=item.label,
                        date=night_date,
                    )
                charges[night_date].append((item.label, charged))
            tax_total += item.tax_cents
            by_day[item.tx_date] += item.tax_cents

        nights: list[LodgingNight] = []
        for night_date in sorted(charges):
            cap = days[night_date].lodging_cap_cents
            remaining = cap
            # Folios sharing a night draw on the cap by label, larger charge first
            for label, charged in sorted(charges[night_date], key=lambda c: (c[0], -c[1])):
                allowed = min(charged, remaining)
                remaining -= allowed
                nights.append(
                    LodgingNight(
                        date=night_date,
                        item_label=label,
                        charged_cents=charged,
                        cap_cents=cap,
                        allowed_cents=allowed,
                    )
                )
                by_day[night_date] += allowed

        return LodgingReconciliation(
            nights=tuple(nights), tax_cents=tax_total, by_day=dict(by_day)
        )
