"""Line item classifier adapter.

Turns externally-ingested item records into the typed item variants and
checks them against the trip window before any computation runs.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Union

from tdyvoucher.domain.entities import (
    BaseLineItem,
    ItemType,
    LineItem,
    LodgingItem,
    MealsItem,
    MileageItem,
    MiscItem,
    Trip,
)
from tdyvoucher.domain.errors import InvalidInputError, item_outside_trip

REQUIRED_FIELDS = ("item_type", "tx_date", "amount_cents")
OPTIONAL_FIELDS = ("vendor", "receipt_ref", "item_id", "meta")

# Metadata keys accepted for each item type
META_FIELDS: dict[ItemType, tuple[str, ...]] = {
    ItemType.LODGING: ("nights", "nightly_rate_cents", "tax_cents"),
    ItemType.MEALS: (),
    ItemType.MILEAGE: ("miles", "origin", "destination"),
    ItemType.MISC: ("description",),
}

ITEM_CLASSES: dict[ItemType, type] = {
    ItemType.LODGING: LodgingItem,
    ItemType.MEALS: MealsItem,
    ItemType.MILEAGE: MileageItem,
    ItemType.MISC: MiscItem,
}

RawItem = Union[Mapping[str, Any], LineItem]


class LineItemAdapter:
    """Normalizes ingested records into the engine's item variants."""

    def normalize(self, raw: RawItem, index: int = 0) -> LineItem:
        """Convert one ingested record into a typed line item.

        Args:
            raw: Mapping with item_type, tx_date, amount_cents and optional
                vendor, receipt_ref, item_id and meta; or an item already
                in typed form
            index: Position of the record in its batch, for error context

        Returns:
            Typed line item

        Raises:
            InvalidInputError: If a required field is missing or malformed
        """
        if isinstance(raw, BaseLineItem):
            return raw
        if not isinstance(raw, Mapping):
            raise InvalidInputError(
                f"Item {index}: expected a mapping, got {type(raw).__name__}", index=index
            )

        missing = [name for name in REQUIRED_FIELDS if raw.get(name) in (None, "")]
        if missing:
            raise InvalidInputError(
                f"Item {index}: missing required field(s): {', '.join(missing)}",
                index=index,
                fields=missing,
            )
        unknown = sorted(set(raw) - set(REQUIRED_FIELDS) - set(OPTIONAL_FIELDS))
        if unknown:
            raise InvalidInputError(
                f"Item {index}: unknown field(s): {', '.join(unknown)}",
                index=index,
                fields=unknown,
            )

        item_type = self._parse_item_type(raw["item_type"], index)
        meta = raw.get("meta") or {}
        if not isinstance(meta, Mapping):
            raise InvalidInputError(f"Item {index}: meta must be a mapping", index=index)
        allowed = META_FIELDS[item_type]
        invalid_meta = sorted(set(meta) - set(allowed))
        if invalid_meta:
            raise InvalidInputError(
                f"Item {index}: metadata {', '.join(invalid_meta)} not valid for "
                f"{item_type.value} items",
                index=index,
                item_type=item_type.value,
                fields=invalid_meta,
            )

        kwargs: dict[str, Any] = {
            "tx_date": self._parse_date(raw["tx_date"], index),
            "amount_cents": self._parse_cents(raw["amount_cents"], "amount_cents", index),
            "vendor": self._optional_text(raw.get("vendor")),
            "receipt_ref": self._optional_text(raw.get("receipt_ref")),
            "item_id": self._optional_text(raw.get("item_id")),
        }

        if item_type == ItemType.LODGING:
            if meta.get("nights") is not None:
                kwargs["nights"] = self._parse_cents(meta["nights"], "nights", index)
            if meta.get("nightly_rate_cents") is not None:
                kwargs["nightly_rate_cents"] = self._parse_cents(
                    meta["nightly_rate_cents"], "nightly_rate_cents", index
                )
            if meta.get("tax_cents") is not None:
                kwargs["tax_cents"] = self._parse_cents(meta["tax_cents"], "tax_cents", index)
        elif item_type == ItemType.MILEAGE:
            if meta.get("miles") in (None, ""):
                raise InvalidInputError(
                    f"Item {index}: mileage items require meta.miles",
                    index=index,
                    field="miles",
                )
            kwargs["miles"] = self._parse_miles(meta["miles"], index)
            kwargs["origin"] = self._optional_text(meta.get("origin"))
            kwargs["destination"] = self._optional_text(meta.get("destination"))
        elif item_type == ItemType.MISC:
            kwargs["description"] = self._optional_text(meta.get("description"))

        try:
            return ITEM_CLASSES[item_type](**kwargs)
        except InvalidInputError as e:
            raise InvalidInputError(f"Item {index}: {e.message}", index=index, **e.context) from e

    def normalize_all(self, trip: Trip, raws: Iterable[RawItem]) -> tuple[LineItem, ...]:
        """Normalize a batch and check every item against the trip window.

        The whole batch is rejected on the first invalid item.
        """
        items = tuple(self.normalize(raw, index) for index, raw in enumerate(raws))
        self.validate_in_trip(trip, items)
        return items

    def validate_in_trip(self, trip: Trip, items: Iterable[LineItem]) -> None:
        """Reject items dated outside ``[departure_date, return_date]``.

        A lodging folio's last night must also fall inside the window.
        """
        for index, item in enumerate(items):
            if not trip.contains(item.tx_date):
                raise InvalidInputError(
                    item_outside_trip(index, item.tx_date, trip.departure_date, trip.return_date),
                    index=index,
                    item=item.label,
                    date=item.tx_date,
                )
            if isinstance(item, LodgingItem):
                last_night = item.night_dates()[-1]
                if not trip.contains(last_night):
                    raise InvalidInputError(
                        f"Item {index}: lodging folio of {item.nights} night(s) from "
                        f"{item.tx_date.isoformat()} runs past the trip return "
                        f"{trip.return_date.isoformat()}",
                        index=index,
                        item=item.label,
                        date=last_night,
                    )

    def _parse_item_type(self, value: Any, index: int) -> ItemType:
        if isinstance(value, ItemType):
            return value
        try:
            return ItemType(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(t.value for t in ItemType)
            raise InvalidInputError(
                f"Item {index}: unknown item_type '{value}'. Valid types: {valid}",
                index=index,
                field="item_type",
            )

    def _parse_date(self, value: Any, index: int) -> date:
        if isinstance(value, datetime):
            raise InvalidInputError(
                f"Item {index}: tx_date must be a calendar date without time of day",
                index=index,
                field="tx_date",
            )
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError:
            raise InvalidInputError(
                f"Item {index}: tx_date '{value}' is not a YYYY-MM-DD date",
                index=index,
                field="tx_date",
            )

    def _parse_cents(self, value: Any, field_name: str, index: int) -> int:
        if isinstance(value, bool) or isinstance(value, (float, Decimal)):
            raise InvalidInputError(
                f"Item {index}: {field_name} must be an integer, got {value!r}",
                index=index,
                field=field_name,
            )
        if isinstance(value, int):
            return value
        text = str(value).strip()
        if text.lstrip("-").isdigit():
            return int(text)
        raise InvalidInputError(
            f"Item {index}: {field_name} must be an integer, got {value!r}",
            index=index,
            field=field_name,
        )

    def _parse_miles(self, value: Any, index: int) -> Decimal:
        if isinstance(value, bool):
            raise InvalidInputError(f"Item {index}: invalid miles {value!r}", index=index, field="miles")
        try:
            # str() keeps float input from dragging binary noise into Decimal
            return value if isinstance(value, Decimal) else Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidInputError(f"Item {index}: invalid miles {value!r}", index=index, field="miles")

    def _optional_text(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None
