"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "1,234.56"

    Negative amounts are rejected; expenses and rates are never negative.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed or is negative
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Remove currency symbols and thousands separators
    amount_str = re.sub(r"[$]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if amount < 0:
        raise ValueError(f"Amount cannot be negative: '{amount_str}'")
    return amount


def parse_cents(amount_str: str) -> int:
    """Parse a dollar amount string into integer cents.

    Sub-cent amounts are rounded half-up, e.g. "$0.655" -> 66.

    Raises:
        ValueError: If amount string cannot be parsed or is negative
    """
    amount = parse_amount(amount_str)
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
