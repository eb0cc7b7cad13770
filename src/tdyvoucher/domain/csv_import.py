"""Line item CSV import."""

import csv
from pathlib import Path
from typing import Any

from tdyvoucher.domain.errors import InvalidInputError
from tdyvoucher.utils.amount_parser import parse_cents
from tdyvoucher.utils.date_parser import parse_date

REQUIRED_COLUMNS = ("item_type", "tx_date", "amount")

# CSV column -> (meta key, parser); amounts are dollars in the file
META_COLUMNS = {
    "nights": ("nights", int),
    "nightly_rate": ("nightly_rate_cents", parse_cents),
    "tax": ("tax_cents", parse_cents),
    "miles": ("miles", str),
    "origin": ("origin", str),
    "destination": ("destination", str),
    "description": ("description", str),
}


class ItemCSVImportService:
    """Reads classified line items from a CSV file into ingress records."""

    def read(self, csv_file_path: str) -> list[dict[str, Any]]:
        """Read line item records from a CSV file.

        Each row becomes ``{item_type, tx_date, amount_cents, vendor,
        receipt_ref, item_id, meta}``; only non-empty metadata cells are
        carried, so metadata that does not fit the item type is left for the
        line item adapter to reject.

        Args:
            csv_file_path: Path to CSV file

        Returns:
            List of ingress records in file order

        Raises:
            InvalidInputError: If a column is missing or a cell cannot be parsed
            FileNotFoundError: If CSV file doesn't exist
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        records = []
        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            if reader.fieldnames is None:
                raise InvalidInputError("CSV file has no columns", file=str(csv_path))
            missing = [c for c in REQUIRED_COLUMNS if c not in reader.fieldnames]
            if missing:
                raise InvalidInputError(
                    f"CSV file missing required columns: {', '.join(missing)}",
                    file=str(csv_path),
                )

            for row_num, row in enumerate(reader, start=2):
                try:
                    records.append(self._row_to_record(row, row_num))
                except ValueError as e:
                    if isinstance(e, InvalidInputError):
                        raise
                    raise InvalidInputError(f"Row {row_num}: {e}", row=row_num) from e
        return records

    def _row_to_record(self, row: dict[str, str], row_num: int) -> dict[str, Any]:
        def cell(name: str) -> str:
            return (row.get(name) or "").strip()

        meta: dict[str, Any] = {}
        for column, (key, parser) in META_COLUMNS.items():
            value = cell(column)
            if value:
                meta[key] = parser(value)

        return {
            "item_type": cell("item_type"),
            "tx_date": parse_date(cell("tx_date")) if cell("tx_date") else None,
            "amount_cents": parse_cents(cell("amount")) if cell("amount") else None,
            "vendor": cell("vendor") or None,
            "receipt_ref": cell("receipt") or None,
            "item_id": cell("item_id") or f"row-{row_num}",
            "meta": meta,
        }
