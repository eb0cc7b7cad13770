"""Domain model entities for tdyvoucher.

These are pure data classes representing trips, classified expense items and
the records derived from them. They are independent of any rate-table storage
schema and of how items were ingested. All money is held as integer cents.
"""

import json
from dataclasses import dataclass, field, fields
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Iterator, Mapping, Optional, Union

from tdyvoucher.domain.errors import InvalidInputError


class ItemType(str, Enum):
    """Line item classification produced by receipt ingestion."""

    LODGING = "lodging"
    MEALS = "meals"
    MILEAGE = "mileage"
    MISC = "misc"


class WorkflowStage(str, Enum):
    """Lifecycle of a trip on its way to a voucher."""

    DRAFT = "draft"
    ESTIMATED = "estimated"
    FINALIZED = "finalized"


class Severity(str, Enum):
    """Checklist severity."""

    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"


def _require_calendar_date(value: Any, field_name: str) -> None:
    # datetime is a date subclass; a time of day is not allowed here
    if not isinstance(value, date) or isinstance(value, datetime):
        raise InvalidInputError(
            f"{field_name} must be a calendar date, got {value!r}", field=field_name
        )


@dataclass(frozen=True)
class LocalityPlan:
    """Which per-diem locality applies on each day of a trip.

    ``default`` covers the whole trip; ``overrides`` holds ``(date, locality)``
    pairs for days spent in a different locality.
    """

    default: str
    overrides: tuple[tuple[date, str], ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.default, str) or not self.default.strip():
            raise InvalidInputError("Locality must be a non-empty string", field="locality")
        seen: set[date] = set()
        for day, locality in self.overrides:
            _require_calendar_date(day, "locality override date")
            if not isinstance(locality, str) or not locality.strip():
                raise InvalidInputError(
                    f"Locality override for {day.isoformat()} must be a non-empty string",
                    date=day,
                    field="locality",
                )
            if day in seen:
                raise InvalidInputError(
                    f"Duplicate locality override for {day.isoformat()}", date=day
                )
            seen.add(day)
        object.__setattr__(self, "overrides", tuple(sorted(self.overrides)))

    @classmethod
    def single(cls, locality: str) -> "LocalityPlan":
        """Use one locality for every day of the trip."""
        return cls(default=locality)

    @classmethod
    def from_map(cls, default: str, by_day: Mapping[date, str]) -> "LocalityPlan":
        """Build a plan from a day-keyed locality map."""
        return cls(default=default, overrides=tuple(by_day.items()))

    def locality_for(self, day: date) -> str:
        """Return the locality in effect on ``day``."""
        for override_day, locality in self.overrides:
            if override_day == day:
                return locality
        return self.default


@dataclass(frozen=True)
class Trip:
    """Temporary-duty trip.

    Immutable: editing a trip means building a new value and re-running the
    estimate.
    """

    trip_id: str
    departure_date: date
    return_date: date
    localities: LocalityPlan
    purpose: str = ""
    origin: str = ""
    destination: str = ""
    user_ref: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.localities, str):
            object.__setattr__(self, "localities", LocalityPlan.single(self.localities))
        _require_calendar_date(self.departure_date, "departure_date")
        _require_calendar_date(self.return_date, "return_date")
        if self.departure_date > self.return_date:
            raise InvalidInputError(
                f"Trip {self.trip_id}: departure {self.departure_date.isoformat()} "
                f"is after return {self.return_date.isoformat()}",
                trip_id=self.trip_id,
            )
        for day, _ in self.localities.overrides:
            if not self.contains(day):
                raise InvalidInputError(
                    f"Trip {self.trip_id}: locality override {day.isoformat()} "
                    "is outside the trip window",
                    trip_id=self.trip_id,
                    date=day,
                )

    @property
    def day_count(self) -> int:
        """Number of calendar days, departure and return inclusive."""
        return (self.return_date - self.departure_date).days + 1

    def dates(self) -> Iterator[date]:
        """Iterate every calendar day of the trip in ascending order."""
        for offset in range(self.day_count):
            yield self.departure_date + timedelta(days=offset)

    def contains(self, day: date) -> bool:
        """Return True if ``day`` falls inside the trip window."""
        return self.departure_date <= day <= self.return_date

    def is_travel_day(self, day: date) -> bool:
        """First and last calendar day of the trip are travel days."""
        return day == self.departure_date or day == self.return_date

    def summary(self) -> dict[str, Any]:
        """Return the trip summary printed on a voucher."""
        return {
            "trip_id": self.trip_id,
            "purpose": self.purpose,
            "origin": self.origin,
            "destination": self.destination,
            "departure_date": self.departure_date.isoformat(),
            "return_date": self.return_date.isoformat(),
            "user_ref": self.user_ref,
            "locality": self.localities.default,
            "locality_overrides": {
                day.isoformat(): locality for day, locality in self.localities.overrides
            },
        }


@dataclass(frozen=True, kw_only=True)
class BaseLineItem:
    """Fields shared by every classified expense item."""

    item_type: ClassVar[ItemType]

    tx_date: date
    amount_cents: int
    vendor: Optional[str] = None
    receipt_ref: Optional[str] = None
    item_id: Optional[str] = None

    def __post_init__(self) -> None:
        _require_calendar_date(self.tx_date, "tx_date")
        if isinstance(self.amount_cents, bool) or not isinstance(self.amount_cents, int):
            raise InvalidInputError(
                f"amount_cents must be an integer number of cents, got {self.amount_cents!r}",
                field="amount_cents",
            )
        if self.amount_cents < 0:
            raise InvalidInputError(
                f"amount_cents cannot be negative: {self.amount_cents}",
                field="amount_cents",
            )

    @property
    def label(self) -> str:
        """Identify the item in messages."""
        return self.item_id or f"{self.item_type.value}@{self.tx_date.isoformat()}"

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly dict including the type tag."""
        data: dict[str, Any] = {"item_type": self.item_type.value}
        for item_field in fields(self):
            data[item_field.name] = _jsonable(getattr(self, item_field.name))
        return data


@dataclass(frozen=True, kw_only=True)
class LodgingItem(BaseLineItem):
    """Hotel folio covering one or more consecutive nights from ``tx_date``.

    ``amount_cents`` is the room charge for all nights, excluding taxes.
    """

    item_type: ClassVar[ItemType] = ItemType.LODGING

    nights: int = 1
    nightly_rate_cents: Optional[int] = None
    tax_cents: int = 0

    def __post_init__(self) -> None:
        super().__post_init__()
        if isinstance(self.nights, bool) or not isinstance(self.nights, int) or self.nights < 1:
            raise InvalidInputError(
                f"Lodging nights must be a positive integer, got {self.nights!r}",
                field="nights",
            )
        for name in ("nightly_rate_cents", "tax_cents"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidInputError(
                    f"{name} must be a non-negative integer, got {value!r}", field=name
                )

    def night_dates(self) -> tuple[date, ...]:
        """Dates of each night covered by the folio."""
        return tuple(self.tx_date + timedelta(days=n) for n in range(self.nights))


@dataclass(frozen=True, kw_only=True)
class MealsItem(BaseLineItem):
    """Meal receipt. Covered by M&IE, never reimbursed on its own."""

    item_type: ClassVar[ItemType] = ItemType.MEALS


@dataclass(frozen=True, kw_only=True)
class MileageItem(BaseLineItem):
    """Privately-owned vehicle mileage."""

    item_type: ClassVar[ItemType] = ItemType.MILEAGE

    miles: Decimal
    origin: Optional[str] = None
    destination: Optional[str] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.miles, Decimal) or not self.miles.is_finite() or self.miles <= 0:
            raise InvalidInputError(
                f"Mileage miles must be a positive Decimal, got {self.miles!r}",
                field="miles",
            )


@dataclass(frozen=True, kw_only=True)
class MiscItem(BaseLineItem):
    """Miscellaneous reimbursable expense (parking, tolls, fees)."""

    item_type: ClassVar[ItemType] = ItemType.MISC

    description: Optional[str] = None


LineItem = Union[LodgingItem, MealsItem, MileageItem, MiscItem]


@dataclass(frozen=True)
class RateSnapshot:
    """Rates for one locality as of one date, from a single provider query."""

    locality: str
    effective_date: date
    mie_rate_cents: int
    lodging_cap_cents: int
    mileage_rate_cents: int


@dataclass(frozen=True)
class DailyEntitlement:
    """Per-diem entitlement for one calendar day of a trip."""

    date: date
    locality: str
    is_travel_day: bool
    mie_rate_cents: int
    mie_allowed_cents: int
    lodging_cap_cents: int
    mileage_rate_cents: int


@dataclass(frozen=True)
class LodgingNight:
    """One folio's share of a reconciled lodging night.

    ``cap_cents`` is the cap for the whole night; folios covering the same
    night split it, so ``allowed_cents`` may be below both charge and cap.
    """

    date: date
    item_label: str
    charged_cents: int
    cap_cents: int
    allowed_cents: int

    @property
    def over_cap_cents(self) -> int:
        """Part of the charge not reimbursed."""
        return self.charged_cents - self.allowed_cents


@dataclass(frozen=True)
class DayLedgerEntry:
    """Reimbursable amounts attributed to one calendar day."""

    date: date
    is_travel_day: bool
    mie_allowed_cents: int
    lodging_allowed_cents: int
    mileage_cents: int
    misc_cents: int
    meals_claimed_cents: int = 0

    @property
    def total_cents(self) -> int:
        return (
            self.mie_allowed_cents
            + self.lodging_allowed_cents
            + self.mileage_cents
            + self.misc_cents
        )


@dataclass(frozen=True)
class EstimateTotals:
    """Aggregate estimate for a trip.

    ``grand_total_cents`` is derived from the four category totals and is
    never stored separately.
    """

    days: tuple[DailyEntitlement, ...]
    ledger: tuple[DayLedgerEntry, ...]
    lodging_nights: tuple[LodgingNight, ...]
    mie_total_cents: int
    lodging_allowed_cents: int
    mileage_total_cents: int
    misc_total_cents: int
    meals_claimed_cents: int = 0

    @property
    def grand_total_cents(self) -> int:
        return (
            self.mie_total_cents
            + self.lodging_allowed_cents
            + self.mileage_total_cents
            + self.misc_total_cents
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly dict with every monetary field in cents."""
        return {
            "days": [_dataclass_dict(day) for day in self.days],
            "ledger": [
                {**_dataclass_dict(entry), "total_cents": entry.total_cents}
                for entry in self.ledger
            ],
            "lodging_nights": [_dataclass_dict(night) for night in self.lodging_nights],
            "mie_total_cents": self.mie_total_cents,
            "lodging_allowed_cents": self.lodging_allowed_cents,
            "mileage_total_cents": self.mileage_total_cents,
            "misc_total_cents": self.misc_total_cents,
            "meals_claimed_cents": self.meals_claimed_cents,
            "grand_total_cents": self.grand_total_cents,
        }


@dataclass(frozen=True)
class ChecklistEntry:
    """A submission issue surfaced on the voucher checklist."""

    code: str
    severity: Severity
    message: str
    suggestion: str
    reference: str = ""

    def to_line(self) -> str:
        """Render as a single checklist line."""
        return f"[{self.severity.value.upper()}] {self.message} - {self.suggestion}"


@dataclass(frozen=True)
class TdyVoucher:
    """Finalized voucher package. An immutable snapshot."""

    voucher_id: str
    trip: Trip
    checklist: tuple[ChecklistEntry, ...]
    estimate: EstimateTotals
    inputs_fingerprint: str
    items: tuple[LineItem, ...] = field(default=())

    @property
    def checklist_lines(self) -> list[str]:
        """Checklist as an ordered list of strings."""
        return [entry.to_line() for entry in self.checklist]

    @property
    def is_clean(self) -> bool:
        """True when nothing on the checklist needs attention."""
        return all(entry.severity == Severity.GREEN for entry in self.checklist)

    def to_dict(self) -> dict[str, Any]:
        return {
            "voucher_id": self.voucher_id,
            "inputs_fingerprint": self.inputs_fingerprint,
            "trip": self.trip.summary(),
            "items": [item.to_dict() for item in self.items],
            "checklist": [_dataclass_dict(entry) for entry in self.checklist],
            "checklist_lines": self.checklist_lines,
            "estimate": self.estimate.to_dict(),
        }

    def to_json(self) -> str:
        """Canonical JSON export; identical inputs give identical bytes."""
        return json.dumps(self.to_dict(), sort_keys=True, indent=2)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def _dataclass_dict(obj: Any) -> dict[str, Any]:
    return {item.name: _jsonable(getattr(obj, item.name)) for item in fields(obj)}
