"""Mileage, miscellaneous and meals aggregators."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping

from tdyvoucher.domain.entities import (
    DailyEntitlement,
    LineItem,
    MealsItem,
    MileageItem,
    MiscItem,
)
from tdyvoucher.domain.errors import InvalidInputError
from tdyvoucher.domain.money import round_half_up


@dataclass(frozen=True)
class CategoryTotal:
    """Total for one expense category, with its per-day split."""

    total_cents: int
    by_day: Mapping[date, int] = field(default_factory=dict)
    line_cents: tuple[tuple[str, int], ...] = ()


def mileage_amount(miles: Decimal, rate_cents: int) -> int:
    """Reimbursement for one mileage item, rounded half-up per item."""
    return round_half_up(miles * rate_cents)


def _day_for(item: LineItem, days: Mapping[date, DailyEntitlement]) -> DailyEntitlement:
    day = days.get(item.tx_date)
    if day is None:
        raise InvalidInputError(
            f"{item.label} is dated {item.tx_date.isoformat()}, outside the trip window",
            item=item.label,
            date=item.tx_date,
        )
    return day


class MileageAggregator:
    """Miles times the mileage rate in effect on each item's date."""

    def aggregate(
        self, items: Iterable[LineItem], days: Mapping[date, DailyEntitlement]
    ) -> CategoryTotal:
        by_day: dict[date, int] = defaultdict(int)
        lines = []
        for item in items:
            if not isinstance(item, MileageItem):
                continue
            day = _day_for(item, days)
            amount = mileage_amount(item.miles, day.mileage_rate_cents)
            by_day[item.tx_date] += amount
            lines.append((item.label, amount))
        return CategoryTotal(
            total_cents=sum(amount for _, amount in lines),
            by_day=dict(by_day),
            line_cents=tuple(lines),
        )


class FaceValueAggregator:
    """Sums items of one type at face value. No proration, no cap."""

    item_class: type = MiscItem

    def aggregate(
        self, items: Iterable[LineItem], days: Mapping[date, DailyEntitlement]
    ) -> CategoryTotal:
        by_day: dict[date, int] = defaultdict(int)
        lines = []
        for item in items:
            if not isinstance(item, self.item_class):
                continue
            _day_for(item, days)
            if item.amount_cents < 0:
                raise InvalidInputError(
                    f"{item.label} has a negative amount", item=item.label
                )
            by_day[item.tx_date] += item.amount_cents
            lines.append((item.label, item.amount_cents))
        return CategoryTotal(
            total_cents=sum(amount for _, amount in lines),
            by_day=dict(by_day),
            line_cents=tuple(lines),
        )


class MiscAggregator(FaceValueAggregator):
    """Miscellaneous expenses, reimbursed at face value."""

    item_class = MiscItem


class MealsAggregator(FaceValueAggregator):
    """Meals claimed. Informational; M&IE covers meals."""

    item_class = MealsItem
