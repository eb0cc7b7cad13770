"""Tests for domain entities."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from tdyvoucher.domain.entities import (
    DayLedgerEntry,
    EstimateTotals,
    ItemType,
    LocalityPlan,
    LodgingItem,
    MealsItem,
    MileageItem,
    MiscItem,
    Trip,
)
from tdyvoucher.domain.errors import DomainError, InvalidInputError


class TestTrip:
    """Tests for Trip entity."""

    def test_create_trip(self):
        trip = Trip(
            trip_id="T1",
            departure_date=date(2024, 3, 4),
            return_date=date(2024, 3, 6),
            localities=LocalityPlan.single("Norfolk, VA"),
        )
        assert trip.day_count == 3
        assert list(trip.dates()) == [date(2024, 3, 4), date(2024, 3, 5), date(2024, 3, 6)]

    def test_locality_string_becomes_plan(self):
        trip = Trip("T1", date(2024, 3, 4), date(2024, 3, 4), "Norfolk, VA")
        assert trip.localities == LocalityPlan.single("Norfolk, VA")

    def test_departure_after_return_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            Trip("T1", date(2024, 3, 6), date(2024, 3, 4), "Norfolk, VA")
        assert exc_info.value.context["trip_id"] == "T1"

    def test_datetime_rejected(self):
        with pytest.raises(InvalidInputError):
            Trip("T1", datetime(2024, 3, 4, 8, 0), date(2024, 3, 6), "Norfolk, VA")

    def test_travel_days(self):
        trip = Trip("T1", date(2024, 3, 4), date(2024, 3, 6), "Norfolk, VA")
        assert trip.is_travel_day(date(2024, 3, 4))
        assert not trip.is_travel_day(date(2024, 3, 5))
        assert trip.is_travel_day(date(2024, 3, 6))

    def test_trip_immutability(self):
        trip = Trip("T1", date(2024, 3, 4), date(2024, 3, 6), "Norfolk, VA")
        with pytest.raises(Exception):  # dataclass frozen raises FrozenInstanceError
            trip.return_date = date(2024, 3, 7)

    def test_override_outside_window_rejected(self):
        plan = LocalityPlan.from_map("Norfolk, VA", {date(2024, 3, 9): "San Diego, CA"})
        with pytest.raises(InvalidInputError):
            Trip("T1", date(2024, 3, 4), date(2024, 3, 6), plan)


class TestLocalityPlan:
    """Tests for LocalityPlan."""

    def test_override_applies_to_its_day_only(self):
        plan = LocalityPlan.from_map("Norfolk, VA", {date(2024, 3, 5): "San Diego, CA"})
        assert plan.locality_for(date(2024, 3, 4)) == "Norfolk, VA"
        assert plan.locality_for(date(2024, 3, 5)) == "San Diego, CA"

    def test_empty_locality_rejected(self):
        with pytest.raises(InvalidInputError):
            LocalityPlan.single("  ")

    def test_overrides_sorted(self):
        plan = LocalityPlan.from_map(
            "A", {date(2024, 3, 6): "C", date(2024, 3, 5): "B"}
        )
        assert plan.overrides == ((date(2024, 3, 5), "B"), (date(2024, 3, 6), "C"))


class TestLineItems:
    """Tests for line item variants."""

    def test_item_types(self):
        assert LodgingItem(tx_date=date(2024, 3, 4), amount_cents=1).item_type == ItemType.LODGING
        assert MealsItem(tx_date=date(2024, 3, 4), amount_cents=1).item_type == ItemType.MEALS
        assert MiscItem(tx_date=date(2024, 3, 4), amount_cents=1).item_type == ItemType.MISC
        mileage = MileageItem(tx_date=date(2024, 3, 4), amount_cents=0, miles=Decimal("10"))
        assert mileage.item_type == ItemType.MILEAGE

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidInputError):
            MiscItem(tx_date=date(2024, 3, 4), amount_cents=-1)

    def test_float_amount_rejected(self):
        with pytest.raises(InvalidInputError):
            MiscItem(tx_date=date(2024, 3, 4), amount_cents=12.5)

    def test_lodging_requires_positive_nights(self):
        with pytest.raises(InvalidInputError):
            LodgingItem(tx_date=date(2024, 3, 4), amount_cents=100, nights=0)

    def test_mileage_requires_positive_miles(self):
        with pytest.raises(InvalidInputError):
            MileageItem(tx_date=date(2024, 3, 4), amount_cents=0, miles=Decimal("0"))

    def test_lodging_night_dates(self):
        item = LodgingItem(tx_date=date(2024, 2, 28), amount_cents=300, nights=3)
        assert item.night_dates() == (date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1))

    def test_to_dict_carries_type_tag(self):
        item = MileageItem(
            tx_date=date(2024, 3, 4), amount_cents=0, miles=Decimal("12.5"), origin="A"
        )
        data = item.to_dict()
        assert data["item_type"] == "mileage"
        assert data["miles"] == "12.5"
        assert data["tx_date"] == "2024-03-04"

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            MiscItem(tx_date=date(2024, 3, 4), amount_cents=-5)


class TestEstimateTotals:
    """Tests for EstimateTotals."""

    def test_grand_total_is_sum_of_components(self):
        totals = EstimateTotals(
            days=(),
            ledger=(),
            lodging_nights=(),
            mie_total_cents=14750,
            lodging_allowed_cents=16500,
            mileage_total_cents=8040,
            misc_total_cents=1234,
            meals_claimed_cents=9999,
        )
        assert totals.grand_total_cents == 14750 + 16500 + 8040 + 1234
        assert totals.to_dict()["grand_total_cents"] == totals.grand_total_cents

    def test_ledger_entry_total_excludes_meals(self):
        entry = DayLedgerEntry(
            date=date(2024, 3, 4),
            is_travel_day=True,
            mie_allowed_cents=4425,
            lodging_allowed_cents=16500,
            mileage_cents=8040,
            misc_cents=500,
            meals_claimed_cents=3000,
        )
        assert entry.total_cents == 4425 + 16500 + 8040 + 500


class TestErrors:
    """Tests for structured errors."""

    def test_to_dict(self):
        error = InvalidInputError("bad", date=date(2024, 3, 4), index=2)
        assert error.to_dict() == {
            "kind": "invalid_input",
            "message": "bad",
            "retryable": False,
            "context": {"date": "2024-03-04", "index": 2},
        }
        assert isinstance(error, DomainError)
