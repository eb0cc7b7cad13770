"""In-memory rate table."""

from datetime import date
from typing import Optional

from tdyvoucher.database.base import RateTableStore
from tdyvoucher.domain.entities import RateSnapshot
from tdyvoucher.utils.logging import get_logger

logger = get_logger(__name__)


class InMemoryRateTable(RateTableStore):
    """Rate table held in process memory.

    Rows are effective-dated; a lookup picks the row with the latest start
    date whose range contains the requested date.
    """

    def __init__(self):
        self._rows: list[dict] = []

    def add_rate(
        self,
        locality: str,
        effective_start: date,
        mie_rate_cents: int,
        lodging_cap_cents: int,
        mileage_rate_cents: int,
        effective_end: Optional[date] = None,
    ) -> int:
        """Add an effective-dated rate row. Returns the row ID."""
        if effective_end is not None and effective_end < effective_start:
            raise ValueError(
                f"Rate for '{locality}' ends ({effective_end}) before it starts ({effective_start})"
            )
        row_id = len(self._rows) + 1
        self._rows.append(
            {
                "id": row_id,
                "locality": locality,
                "effective_start": effective_start,
                "effective_end": effective_end,
                "mie_rate_cents": mie_rate_cents,
                "lodging_cap_cents": lodging_cap_cents,
                "mileage_rate_cents": mileage_rate_cents,
            }
        )
        return row_id

    def list_rates(self, locality: Optional[str] = None) -> list[dict]:
        """List rate rows, optionally filtered by locality."""
        rows = [
            dict(row)
            for row in self._rows
            if locality is None or row["locality"] == locality
        ]
        return sorted(rows, key=lambda row: (row["locality"], row["effective_start"]))

    def lookup(self, locality: str, on_date: date) -> Optional[RateSnapshot]:
        """Get the rate snapshot for a locality as of a date."""
        candidates = [
            row
            for row in self._rows
            if row["locality"] == locality
            and row["effective_start"] <= on_date
            and (row["effective_end"] is None or on_date <= row["effective_end"])
        ]
        if not candidates:
            logger.debug("No in-memory rate for %s on %s", locality, on_date)
            return None
        row = max(candidates, key=lambda r: (r["effective_start"], r["id"]))
        return RateSnapshot(
            locality=locality,
            effective_date=on_date,
            mie_rate_cents=row["mie_rate_cents"],
            lodging_cap_cents=row["lodging_cap_cents"],
            mileage_rate_cents=row["mileage_rate_cents"],
        )
