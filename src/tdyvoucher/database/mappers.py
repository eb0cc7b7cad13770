"""Mapper functions to convert SQLAlchemy rate rows into domain values.

This layer isolates the conversion logic, so the rate table schema can change
without touching the engine.
"""

from datetime import date

from tdyvoucher.domain.entities import RateSnapshot
from tdyvoucher.database.models import PerDiemRate as ORMPerDiemRate


def rate_to_snapshot(orm_rate: ORMPerDiemRate, on_date: date) -> RateSnapshot:
    """Convert a rate row into the snapshot in effect on ``on_date``."""
    return RateSnapshot(
        locality=orm_rate.locality,
        effective_date=on_date,
        mie_rate_cents=orm_rate.mie_rate_cents,
        lodging_cap_cents=orm_rate.lodging_cap_cents,
        mileage_rate_cents=orm_rate.mileage_rate_cents,
    )


def rate_to_dict(orm_rate: ORMPerDiemRate) -> dict:
    """Convert a rate row into a listing dict."""
    return {
        "id": orm_rate.id,
        "locality": orm_rate.locality,
        "effective_start": orm_rate.effective_start,
        "effective_end": orm_rate.effective_end,
        "mie_rate_cents": orm_rate.mie_rate_cents,
        "lodging_cap_cents": orm_rate.lodging_cap_cents,
        "mileage_rate_cents": orm_rate.mileage_rate_cents,
    }
