"""Tests for voucher checklist rules."""

from datetime import date

import pytest

from tdyvoucher.database.memory import InMemoryRateTable
from tdyvoucher.domain.compliance import ALL_CLEAR, ComplianceChecker, RECEIPT_THRESHOLD_CENTS
from tdyvoucher.domain.entities import Severity, Trip
from tdyvoucher.domain.estimate import EstimateService
from tdyvoucher.domain.rates import RateResolver


@pytest.fixture
def check(estimate_service, three_day_trip):
    """Estimate raw items for the three-day trip and run the checklist."""

    def run(raw_items, trip=None, service=None):
        trip = trip or three_day_trip
        service = service or estimate_service
        items = service.prepare_items(trip, raw_items)
        estimate = service.recompute(trip, items)
        return ComplianceChecker().check(trip, items, estimate)

    return run


def codes(entries):
    return [entry.code for entry in entries]


def test_all_clear(check):
    entries = check(
        [
            {
                "item_type": "lodging",
                "tx_date": "2024-03-04",
                "amount_cents": 24000,
                "receipt_ref": "folio",
                "meta": {"nights": 2, "nightly_rate_cents": 12000},
            },
            {"item_type": "misc", "tx_date": "2024-03-05", "amount_cents": 1500},
        ]
    )
    assert entries == (ALL_CLEAR,)
    assert entries[0].severity == Severity.GREEN


def test_no_items_is_all_clear(check):
    assert codes(check([])) == ["ALL_CLEAR"]


def test_duplicate_receipt(check):
    parking = {"item_type": "misc", "tx_date": "2024-03-05", "amount_cents": 1500}
    entries = check([parking, dict(parking)])
    assert codes(entries) == ["DUP_RECEIPT"]
    assert entries[0].severity == Severity.RED
    assert "$15.00" in entries[0].message


def test_same_amount_different_type_is_not_duplicate(check):
    entries = check(
        [
            {"item_type": "misc", "tx_date": "2024-03-05", "amount_cents": 1500},
            {"item_type": "meals", "tx_date": "2024-03-05", "amount_cents": 1500},
        ]
    )
    assert "DUP_RECEIPT" not in codes(entries)


def test_over_lodging_cap_per_night(check):
    entries = check(
        [
            {
                "item_type": "lodging",
                "tx_date": "2024-03-04",
                "amount_cents": 36000,
                "receipt_ref": "folio",
                "meta": {"nights": 2},
            }
        ]
    )
    over = [entry for entry in entries if entry.code == "OVER_LODGING_CAP"]
    assert len(over) == 2
    assert "$180.00" in over[0].message
    assert "$150.00" in over[0].message
    assert "Over by $30.00" in over[0].suggestion


def test_lodging_without_receipt(check):
    entries = check([{"item_type": "lodging", "tx_date": "2024-03-04", "amount_cents": 10000}])
    assert codes(entries) == ["MISSING_RECEIPT"]
    assert entries[0].severity == Severity.YELLOW


@pytest.mark.parametrize(
    "amount,flagged",
    [(RECEIPT_THRESHOLD_CENTS - 1, False), (RECEIPT_THRESHOLD_CENTS, True)],
)
def test_misc_receipt_threshold(check, amount, flagged):
    entries = check([{"item_type": "misc", "tx_date": "2024-03-05", "amount_cents": amount}])
    assert ("MISSING_RECEIPT" in codes(entries)) is flagged


def test_mileage_route_missing(check):
    entries = check(
        [
            {
                "item_type": "mileage",
                "tx_date": "2024-03-04",
                "amount_cents": 0,
                "meta": {"miles": "42", "origin": "Base"},
            }
        ]
    )
    assert codes(entries) == ["MILEAGE_ROUTE_MISSING"]


def test_folio_mismatch(check):
    entries = check(
        [
            {
                "item_type": "lodging",
                "tx_date": "2024-03-04",
                "amount_cents": 23000,
                "receipt_ref": "folio",
                "meta": {"nights": 2, "nightly_rate_cents": 12000},
            }
        ]
    )
    assert codes(entries) == ["LODGING_FOLIO_MISMATCH"]


def test_meals_over_mie(check):
    # Travel day allowance is $44.25
    entries = check([{"item_type": "meals", "tx_date": "2024-03-04", "amount_cents": 5000}])
    assert codes(entries) == ["MEALS_OVER_MIE", "DAY_OVER_ENTITLEMENT"]
    assert "$44.25" in entries[0].message


def test_meals_within_mie(check):
    entries = check([{"item_type": "meals", "tx_date": "2024-03-05", "amount_cents": 5900}])
    assert codes(entries) == ["ALL_CLEAR"]


def test_zero_rate_flagged_once_per_locality(check):
    table = InMemoryRateTable()
    table.add_rate("Unlisted, XX", date(2024, 1, 1), 0, 0, 67)
    service = EstimateService(RateResolver(table, max_workers=1))
    trip = Trip("T1", date(2024, 3, 4), date(2024, 3, 6), "Unlisted, XX")

    entries = check([], trip=trip, service=service)

    assert codes(entries) == ["RATE_LOOKUP_FAILED"]
    assert "Unlisted, XX" in entries[0].message


def test_rule_order_is_fixed(check):
    entries = check(
        [
            {"item_type": "lodging", "tx_date": "2024-03-04", "amount_cents": 20000},
            {"item_type": "misc", "tx_date": "2024-03-05", "amount_cents": 1500},
            {"item_type": "misc", "tx_date": "2024-03-05", "amount_cents": 1500},
        ]
    )
    assert codes(entries) == [
        "DUP_RECEIPT",
        "OVER_LODGING_CAP",
        "MISSING_RECEIPT",
        "DAY_OVER_ENTITLEMENT",
    ]


def test_checklist_lines(check):
    entries = check([{"item_type": "lodging", "tx_date": "2024-03-04", "amount_cents": 10000}])
    assert entries[0].to_line().startswith("[YELLOW] lodging expense of $100.00")


def test_two_folios_on_one_night_share_the_cap(check):
    entries = check(
        [
            {
                "item_type": "lodging",
                "tx_date": "2024-03-04",
                "amount_cents": 12000,
                "receipt_ref": "folio-1",
            },
            {
                "item_type": "lodging",
                "tx_date": "2024-03-04",
                "amount_cents": 9000,
                "receipt_ref": "folio-2",
            },
        ]
    )
    over = [entry for entry in entries if entry.code == "OVER_LODGING_CAP"]
    assert len(over) == 1
    assert "$210.00/night exceeds cap of $150.00" in over[0].message
    assert "Over by $60.00" in over[0].suggestion


def test_day_over_entitlement(check):
    # $150.00 cap plus $44.25 travel-day M&IE against $200.00 of lodging
    entries = check(
        [
            {
                "item_type": "lodging",
                "tx_date": "2024-03-04",
                "amount_cents": 20000,
                "receipt_ref": "folio",
            }
        ]
    )
    day_over = [entry for entry in entries if entry.code == "DAY_OVER_ENTITLEMENT"]
    assert len(day_over) == 1
    assert day_over[0].severity == Severity.YELLOW
    assert "2024-03-04" in day_over[0].message
    assert "$200.00" in day_over[0].message
    assert "$194.25" in day_over[0].message
    assert day_over[0].suggestion.startswith("$5.75")


def test_day_within_entitlement_counts_tax_and_mileage(check):
    # Over-cap lodging is offset by the day's M&IE; tax and mileage are paid in full
    entries = check(
        [
            {
                "item_type": "lodging",
                "tx_date": "2024-03-05",
                "amount_cents": 18000,
                "receipt_ref": "folio",
                "meta": {"tax_cents": 2000},
            },
            {
                "item_type": "mileage",
                "tx_date": "2024-03-05",
                "amount_cents": 0,
                "meta": {"miles": "10", "origin": "Hotel", "destination": "Site"},
            },
        ]
    )
    assert "DAY_OVER_ENTITLEMENT" not in codes(entries)


def test_day_over_entitlement_reported_per_day_in_date_order(check):
    entries = check(
        [
            {"item_type": "meals", "tx_date": "2024-03-06", "amount_cents": 6000},
            {"item_type": "meals", "tx_date": "2024-03-04", "amount_cents": 6000},
        ]
    )
    day_over = [entry for entry in entries if entry.code == "DAY_OVER_ENTITLEMENT"]
    assert [entry.message.split(" ")[2] for entry in day_over] == [
        "2024-03-04",
        "2024-03-06",
    ]
