"""Shared pytest fixtures for tdyvoucher tests."""

import tempfile
import os
from datetime import date
import pytest

from tdyvoucher.database.factories import create_sqlite_rate_table
from tdyvoucher.database.memory import InMemoryRateTable
from tdyvoucher.domain.entities import LocalityPlan, Trip
from tdyvoucher.domain.estimate import EstimateService
from tdyvoucher.domain.rates import RateResolver
from tdyvoucher.domain.voucher import VoucherAssembler

NORFOLK = "Norfolk, VA"
SAN_DIEGO = "San Diego, CA"


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    yield db_path

    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def temp_rate_table(temp_db_path):
    """Create a SQLite rate table in a temporary file."""
    table = create_sqlite_rate_table(database_path=temp_db_path)
    table.database_path = temp_db_path
    return table


@pytest.fixture
def memory_rates():
    """In-memory rate table with two localities."""
    table = InMemoryRateTable()
    table.add_rate(
        locality=NORFOLK,
        effective_start=date(2024, 1, 1),
        mie_rate_cents=5900,
        lodging_cap_cents=15000,
        mileage_rate_cents=67,
    )
    table.add_rate(
        locality=SAN_DIEGO,
        effective_start=date(2024, 1, 1),
        mie_rate_cents=7400,
        lodging_cap_cents=20000,
        mileage_rate_cents=67,
    )
    return table


@pytest.fixture
def resolver(memory_rates):
    """Serial rate resolver over the in-memory rates."""
    return RateResolver(memory_rates, max_workers=1)


@pytest.fixture
def estimate_service(resolver):
    """Create an EstimateService over the in-memory rates."""
    return EstimateService(resolver)


@pytest.fixture
def assembler(estimate_service):
    """Create a VoucherAssembler over the in-memory rates."""
    return VoucherAssembler(estimate_service)


@pytest.fixture
def three_day_trip():
    """Monday to Wednesday trip to Norfolk."""
    return Trip(
        trip_id="TRIP-1",
        departure_date=date(2024, 3, 4),
        return_date=date(2024, 3, 6),
        localities=LocalityPlan.single(NORFOLK),
        purpose="Training",
        origin="Fort Liberty, NC",
        destination=NORFOLK,
        user_ref="user-1",
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
