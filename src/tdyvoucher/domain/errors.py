"""Shared domain error messages and error types."""

from datetime import date
from typing import Any


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling. Each error carries a ``kind``
    and a ``context`` mapping naming the date, locality or item that
    triggered it.
    """

    kind = "domain_error"
    retryable = False

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Return a structured representation of the error."""
        return {
            "kind": self.kind,
            "message": self.message,
            "retryable": self.retryable,
            "context": {
                key: value.isoformat() if isinstance(value, date) else value
                for key, value in sorted(self.context.items())
            },
        }


class InvalidInputError(DomainError):
    """Malformed dates, negative amounts or items outside the trip window."""

    kind = "invalid_input"


class RateNotFoundError(DomainError):
    """Locality/date has no listed rate; needs a manual override upstream."""

    kind = "rate_not_found"


class RateUnavailableError(DomainError):
    """Transient upstream rate failure. The only error worth retrying."""

    kind = "rate_unavailable"
    retryable = True


class AccessDeniedError(DomainError):
    """Voucher finalization attempted without the access claim."""

    kind = "access_denied"


class StaleEstimateError(DomainError):
    """Finalization attempted against an estimate of different inputs."""

    kind = "stale_estimate"


def rate_not_found(locality: str, on_date: date) -> str:
    """Return message for a locality/date with no listed rate."""
    return f"No per-diem rate listed for locality '{locality}' on {on_date.isoformat()}"


def rate_unavailable(locality: str, on_date: date, reason: str) -> str:
    """Return message for a failed upstream rate lookup."""
    return (
        f"Rate lookup for locality '{locality}' on {on_date.isoformat()} "
        f"is unavailable: {reason}"
    )


def item_outside_trip(index: int, tx_date: date, departure: date, return_: date) -> str:
    """Return message for an item dated outside the trip window."""
    return (
        f"Item {index}: date {tx_date.isoformat()} is outside the trip window "
        f"({departure.isoformat()} to {return_.isoformat()})"
    )


def access_denied() -> str:
    """Return message when the caller lacks the voucher entitlement."""
    return "Voucher finalization requires premium access"


def stale_estimate(trip_id: str) -> str:
    """Return message when trip or items changed after the last estimate."""
    return (
        f"Trip {trip_id} changed since it was last estimated. "
        "Recompute the estimate before finalizing."
    )
