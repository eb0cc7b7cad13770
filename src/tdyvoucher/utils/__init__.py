"""Utility functions for tdyvoucher."""

from tdyvoucher.utils.date_parser import parse_date, parse_locality_stop
from tdyvoucher.utils.amount_parser import parse_amount, parse_cents

__all__ = ["parse_date", "parse_locality_stop", "parse_amount", "parse_cents"]
