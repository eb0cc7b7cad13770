"""Daily entitlement calculator."""

from datetime import date
from typing import Mapping

from tdyvoucher.domain.entities import DailyEntitlement, RateSnapshot, Trip
from tdyvoucher.domain.errors import RateNotFoundError, rate_not_found
from tdyvoucher.domain.money import TRAVEL_DAY_RATIO, prorate
from tdyvoucher.domain.rates import RateResolver


def mie_allowed(rate_cents: int, is_travel_day: bool) -> int:
    """M&IE allowed for one day: 75% half-up on travel days, else the full rate."""
    if is_travel_day:
        return prorate(rate_cents, TRAVEL_DAY_RATIO)
    return rate_cents


class DailyEntitlementCalculator:
    """Produces one DailyEntitlement for every calendar day of a trip."""

    def __init__(self, resolver: RateResolver):
        """Initialize calculator.

        Args:
            resolver: Rate resolver used for each day's locality
        """
        self.resolver = resolver

    def resolve_snapshots(self, trip: Trip) -> dict[date, RateSnapshot]:
        """Resolve the rate snapshot for every day of the trip.

        Each (locality, date) pair is looked up once; lookups may run
        concurrently. Any failure fails the whole trip.
        """
        keys = {day: (trip.localities.locality_for(day), day) for day in trip.dates()}
        resolved = self.resolver.resolve_many(keys.values())
        return {day: resolved[key] for day, key in keys.items()}

    def calculate(self, trip: Trip) -> tuple[DailyEntitlement, ...]:
        """Calculate entitlements for every day from departure to return.

        Raises:
            RateNotFoundError: If any day has no listed rate
            RateUnavailableError: If any day's lookup failed
        """
        return self.from_snapshots(trip, self.resolve_snapshots(trip))

    def from_snapshots(
        self, trip: Trip, snapshots: Mapping[date, RateSnapshot]
    ) -> tuple[DailyEntitlement, ...]:
        """Build entitlements from already-resolved snapshots, without lookups.

        Raises:
            RateNotFoundError: If a trip day has no snapshot
        """
        days = []
        for day in trip.dates():
            locality = trip.localities.locality_for(day)
            snapshot = snapshots.get(day)
            if snapshot is None:
                raise RateNotFoundError(rate_not_found(locality, day), locality=locality, date=day)
            travel_day = trip.is_travel_day(day)
            days.append(
                DailyEntitlement(
                    date=day,
                    locality=snapshot.locality,
                    is_travel_day=travel_day,
                    mie_rate_cents=snapshot.mie_rate_cents,
                    mie_allowed_cents=mie_allowed(snapshot.mie_rate_cents, travel_day),
                    lodging_cap_cents=snapshot.lodging_cap_cents,
                    mileage_rate_cents=snapshot.mileage_rate_cents,
                )
            )
        return tuple(days)
