"""Rate table providers for tdyvoucher."""

from tdyvoucher.database.base import RateTableStore
from tdyvoucher.database.memory import InMemoryRateTable
from tdyvoucher.database.factories import create_sqlite_rate_table

__all__ = ["RateTableStore", "InMemoryRateTable", "create_sqlite_rate_table"]
