"""Cent arithmetic helpers.

Money is always an integer number of cents. Fractional intermediates
(prorated per diem, fractional miles) go through Decimal and are rounded
half-up back to whole cents.
"""

from decimal import Decimal, ROUND_HALF_UP

TRAVEL_DAY_RATIO = Decimal("0.75")


def round_half_up(value: Decimal) -> int:
    """Round a Decimal amount of cents to the nearest whole cent, halves up."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def prorate(rate_cents: int, ratio: Decimal) -> int:
    """Return ``rate_cents * ratio`` rounded half-up."""
    return round_half_up(Decimal(rate_cents) * ratio)


def format_cents(cents: int) -> str:
    """Format cents as a dollar string, e.g. 4425 -> '$44.25'."""
    sign = "-" if cents < 0 else ""
    dollars, remainder = divmod(abs(cents), 100)
    return f"{sign}${dollars:,}.{remainder:02d}"
