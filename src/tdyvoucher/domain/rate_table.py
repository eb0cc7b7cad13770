"""Rate table maintenance domain service."""

import csv
from datetime import date
from pathlib import Path
from typing import Any, Optional

from tdyvoucher.database.base import RateTableStore
from tdyvoucher.utils.amount_parser import parse_cents
from tdyvoucher.utils.date_parser import parse_date

RATE_CSV_COLUMNS = ("locality", "effective_start", "mie", "lodging_cap", "mileage")


class RateTableService:
    """Service for maintaining per-diem rate rows."""

    def __init__(self, store: RateTableStore):
        """Initialize rate table service.

        Args:
            store: Rate table store
        """
        self.store = store

    def add_rate(
        self,
        locality: str,
        effective_start: date,
        mie_rate_cents: int,
        lodging_cap_cents: int,
        mileage_rate_cents: int,
        effective_end: Optional[date] = None,
    ) -> int:
        """Add a rate row.

        Args:
            locality: Locality identifier (ZIP, base code or locality string)
            effective_start: First date the rates apply
            mie_rate_cents: Full-day M&IE rate
            lodging_cap_cents: Nightly lodging cap
            mileage_rate_cents: Mileage rate per mile
            effective_end: Optional last date the rates apply

        Returns:
            Rate row ID

        Raises:
            ValueError: If locality is empty, a rate is negative or the
                range is inverted
        """
        locality = locality.strip()
        if not locality:
            raise ValueError("Locality cannot be empty")
        for name, value in (
            ("M&IE rate", mie_rate_cents),
            ("lodging cap", lodging_cap_cents),
            ("mileage rate", mileage_rate_cents),
        ):
            if value < 0:
                raise ValueError(f"{name} cannot be negative")
        if effective_end is not None and effective_end < effective_start:
            raise ValueError(
                f"Effective end {effective_end.isoformat()} is before start "
                f"{effective_start.isoformat()}"
            )
        return self.store.add_rate(
            locality=locality,
            effective_start=effective_start,
            mie_rate_cents=mie_rate_cents,
            lodging_cap_cents=lodging_cap_cents,
            mileage_rate_cents=mileage_rate_cents,
            effective_end=effective_end,
        )

    def list_rates(self, locality: Optional[str] = None) -> list[dict]:
        """List rate rows, optionally for one locality."""
        return self.store.list_rates(locality=locality)

    def import_csv(self, csv_file_path: str) -> dict[str, Any]:
        """Import rate rows from a CSV file.

        Required columns: locality, effective_start, mie, lodging_cap, mileage
        (dollar amounts). Optional column: effective_end.

        Returns:
            Dict with import statistics:
            - imported: number of rows imported
            - errors: list of error messages

        Raises:
            ValueError: If required columns are missing
            FileNotFoundError: If CSV file doesn't exist
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        imported = 0
        errors = []

        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            if reader.fieldnames is None:
                raise ValueError("CSV file has no columns")
            missing_columns = [c for c in RATE_CSV_COLUMNS if c not in reader.fieldnames]
            if missing_columns:
                raise ValueError(
                    f"CSV file missing required columns: {', '.join(missing_columns)}"
                )

            for row_num, row in enumerate(reader, start=2):
                try:
                    end_str = (row.get("effective_end") or "").strip()
                    self.add_rate(
                        locality=row["locality"] or "",
                        effective_start=parse_date(row["effective_start"] or ""),
                        mie_rate_cents=parse_cents(row["mie"] or ""),
                        lodging_cap_cents=parse_cents(row["lodging_cap"] or ""),
                        mileage_rate_cents=parse_cents(row["mileage"] or ""),
                        effective_end=parse_date(end_str) if end_str else None,
                    )
                    imported += 1
                except ValueError as e:
                    errors.append(f"Row {row_num}: {e}")

        return {"imported": imported, "errors": errors}
