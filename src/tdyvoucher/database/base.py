"""Abstract rate table store interface."""

from abc import abstractmethod
from datetime import date
from typing import Optional

from tdyvoucher.domain.rates import ProviderUnavailableError, RateTableProvider

__all__ = ["ProviderUnavailableError", "RateTableProvider", "RateTableStore"]


class RateTableStore(RateTableProvider):
    """Rate table provider whose rows can also be maintained."""

    @abstractmethod
    def add_rate(
        self,
        locality: str,
        effective_start: date,
        mie_rate_cents: int,
        lodging_cap_cents: int,
        mileage_rate_cents: int,
        effective_end: Optional[date] = None,
    ) -> int:
        """Add an effective-dated rate row. Returns the row ID."""
        pass

    @abstractmethod
    def list_rates(self, locality: Optional[str] = None) -> list[dict]:
        """List rate rows, optionally filtered by locality."""
        pass
