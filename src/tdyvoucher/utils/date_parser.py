"""Date parsing utilities."""

from datetime import date, timedelta
from dateutil import parser as date_parser


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024", "01/15/2024")
    and the relative words "today", "yesterday" and "tomorrow".

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_locality_stop(stop: str) -> tuple[date, str]:
    """Parse a 'DATE=LOCALITY' pair naming where a trip day is spent.

    Args:
        stop: String such as "2024-03-05=Norfolk, VA"

    Returns:
        Tuple of (date, locality)

    Raises:
        ValueError: If the pair is malformed
    """
    day_str, sep, locality = stop.partition("=")
    if not sep or not day_str.strip() or not locality.strip():
        raise ValueError(f"Expected DATE=LOCALITY, got '{stop}'")
    return parse_date(day_str), locality.strip()
