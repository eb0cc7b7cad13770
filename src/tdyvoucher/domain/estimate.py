"""Estimate composition and the recompute entry point."""

from typing import Iterable, Sequence

from tdyvoucher.domain.aggregators import MealsAggregator, MileageAggregator, MiscAggregator
from tdyvoucher.domain.entities import (
    DailyEntitlement,
    DayLedgerEntry,
    EstimateTotals,
    LineItem,
    Trip,
)
from tdyvoucher.domain.entitlement import DailyEntitlementCalculator
from tdyvoucher.domain.errors import InvalidInputError
from tdyvoucher.domain.line_items import LineItemAdapter, RawItem
from tdyvoucher.domain.lodging import LodgingReconciler
from tdyvoucher.domain.rates import RateResolver


class EstimateComposer:
    """Merges daily entitlements and category totals into EstimateTotals.

    Pure and deterministic: no I/O, and identical inputs always produce an
    identical result.
    """

    def __init__(self):
        self.lodging = LodgingReconciler()
        self.mileage = MileageAggregator()
        self.misc = MiscAggregator()
        self.meals = MealsAggregator()

    def compose(
        self,
        trip: Trip,
        days: Sequence[DailyEntitlement],
        items: Iterable[LineItem],
    ) -> EstimateTotals:
        """Compose the estimate for a trip.

        Args:
            trip: Trip being estimated
            days: One entitlement per trip day, in any order
            items: Validated line items

        Returns:
            EstimateTotals with days and ledger sorted ascending by date

        Raises:
            InvalidInputError: If days do not cover the trip exactly once each
        """
        ordered_days = tuple(sorted(days, key=lambda day: day.date))
        by_date = {day.date: day for day in ordered_days}
        expected = list(trip.dates())
        if len(by_date) != len(ordered_days) or list(by_date) != expected:
            raise InvalidInputError(
                f"Trip {trip.trip_id}: entitlements must cover each of the "
                f"{trip.day_count} trip day(s) exactly once",
                trip_id=trip.trip_id,
            )

        items = tuple(items)
        lodging = self.lodging.reconcile(items, by_date)
        mileage = self.mileage.aggregate(items, by_date)
        misc = self.misc.aggregate(items, by_date)
        meals = self.meals.aggregate(items, by_date)

        ledger = tuple(
            DayLedgerEntry(
                date=day.date,
                is_travel_day=day.is_travel_day,
                mie_allowed_cents=day.mie_allowed_cents,
                lodging_allowed_cents=lodging.by_day.get(day.date, 0),
                mileage_cents=mileage.by_day.get(day.date, 0),
                misc_cents=misc.by_day.get(day.date, 0),
                meals_claimed_cents=meals.by_day.get(day.date, 0),
            )
            for day in ordered_days
        )

        return EstimateTotals(
            days=ordered_days,
            ledger=ledger,
            lodging_nights=lodging.nights,
            mie_total_cents=sum(day.mie_allowed_cents for day in ordered_days),
            lodging_allowed_cents=lodging.allowed_cents,
            mileage_total_cents=mileage.total_cents,
            misc_total_cents=misc.total_cents,
            meals_claimed_cents=meals.total_cents,
        )


class EstimateService:
    """Explicit recompute entry point: adapt items, resolve rates, compose."""

    def __init__(self, resolver: RateResolver):
        """Initialize estimate service.

        Args:
            resolver: Rate resolver injected into the daily calculator
        """
        self.resolver = resolver
        self.adapter = LineItemAdapter()
        self.calculator = DailyEntitlementCalculator(resolver)
        self.composer = EstimateComposer()

    def prepare_items(self, trip: Trip, raw_items: Iterable[RawItem]) -> tuple[LineItem, ...]:
        """Normalize and validate items for a trip."""
        return self.adapter.normalize_all(trip, raw_items)

    def recompute(self, trip: Trip, raw_items: Iterable[RawItem]) -> EstimateTotals:
        """Recompute the estimate for a trip from scratch.

        Items are validated before any rate lookup. Nothing is cached between
        calls; the result is all-or-nothing.

        Raises:
            InvalidInputError: If any item is invalid
            RateNotFoundError: If any trip day has no listed rate
            RateUnavailableError: If any rate lookup failed
        """
        items = self.prepare_items(trip, raw_items)
        days = self.calculator.calculate(trip)
        return self.composer.compose(trip, days, items)
