"""Rate resolver domain service and the rate table provider contract."""

import math
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from datetime import date, datetime
from typing import Iterable, Optional

from tdyvoucher.domain.entities import RateSnapshot
from tdyvoucher.domain.errors import (
    InvalidInputError,
    RateNotFoundError,
    RateUnavailableError,
    rate_not_found,
    rate_unavailable,
)
from tdyvoucher.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_WORKERS = 8

RateKey = tuple[str, date]


class ProviderUnavailableError(ConnectionError):
    """Raised by providers when the upstream rate source cannot be reached."""


class RateTableProvider(ABC):
    """Source of per-diem, lodging cap and mileage rates.

    ``lookup`` returns None when the locality has no listed rate for the date,
    and raises ``ConnectionError`` (e.g. ``ProviderUnavailableError``) or
    ``TimeoutError`` when the upstream source is unavailable.
    """

    @abstractmethod
    def lookup(self, locality: str, on_date: date) -> Optional[RateSnapshot]:
        """Get the rate snapshot for a locality as of a date."""
        pass


class RateResolver:
    """Typed lookup over an injected rate table provider.

    The resolver never caches, substitutes defaults or retries. A missing rate
    is ``RateNotFoundError``; an upstream failure is ``RateUnavailableError``.
    """

    def __init__(
        self,
        provider: RateTableProvider,
        max_workers: int = DEFAULT_MAX_WORKERS,
        timeout: Optional[float] = None,
    ):
        """Initialize rate resolver.

        Args:
            provider: Rate table provider
            max_workers: Concurrent lookups for multi-day resolution (1 = serial)
            timeout: Seconds to wait for each lookup in ``resolve_many``;
                None waits indefinitely
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.provider = provider
        self.max_workers = max_workers
        self.timeout = timeout

    def resolve(self, locality: str, on_date: date) -> RateSnapshot:
        """Resolve the rate snapshot for a locality on a date.

        Raises:
            InvalidInputError: If locality is empty or on_date is not a date
            RateNotFoundError: If the provider lists no rate
            RateUnavailableError: If the provider could not be queried
        """
        if not isinstance(locality, str) or not locality.strip():
            raise InvalidInputError("Locality must be a non-empty string", locality=locality)
        if not isinstance(on_date, date) or isinstance(on_date, datetime):
            raise InvalidInputError(
                f"Rate lookup date must be a calendar date, got {on_date!r}",
                locality=locality,
            )

        try:
            snapshot = self.provider.lookup(locality, on_date)
        except (ConnectionError, TimeoutError) as e:
            logger.warning("Rate lookup failed for %s on %s: %s", locality, on_date, e)
            raise RateUnavailableError(
                rate_unavailable(locality, on_date, str(e) or type(e).__name__),
                locality=locality,
                date=on_date,
            ) from e

        if snapshot is None:
            raise RateNotFoundError(
                rate_not_found(locality, on_date), locality=locality, date=on_date
            )

        self._check_consistent(snapshot, locality, on_date)
        logger.debug(
            "Resolved %s on %s: mie=%s lodging=%s mileage=%s",
            locality,
            on_date,
            snapshot.mie_rate_cents,
            snapshot.lodging_cap_cents,
            snapshot.mileage_rate_cents,
        )
        return snapshot

    def resolve_many(self, keys: Iterable[RateKey]) -> dict[RateKey, RateSnapshot]:
        """Resolve several (locality, date) pairs, each queried exactly once.

        Lookups run on a pool of up to ``max_workers`` threads. With a
        timeout, the whole batch shares one deadline of ``timeout`` per round
        of lookups the pool needs, so a lookup queued behind others gets no
        extra time. Without a timeout and with a single worker or key, lookups
        run inline. The batch is all-or-nothing: the first failing key in
        ascending order decides the error raised.
        """
        unique_keys = sorted(set(keys))
        if not unique_keys:
            return {}

        workers = min(self.max_workers, len(unique_keys))
        if self.timeout is None and workers == 1:
            return {key: self.resolve(*key) for key in unique_keys}

        deadline = None
        if self.timeout is not None:
            rounds = math.ceil(len(unique_keys) / workers)
            deadline = time.monotonic() + self.timeout * rounds

        results: dict[RateKey, RateSnapshot] = {}
        errors: dict[RateKey, Exception] = {}
        executor = ThreadPoolExecutor(max_workers=workers)
        try:
            futures = {key: executor.submit(self.resolve, *key) for key in unique_keys}
            for key, future in futures.items():
                remaining = None if deadline is None else max(deadline - time.monotonic(), 0)
                try:
                    results[key] = future.result(timeout=remaining)
                except FutureTimeoutError:
                    locality, on_date = key
                    errors[key] = RateUnavailableError(
                        rate_unavailable(locality, on_date, f"timed out after {self.timeout}s"),
                        locality=locality,
                        date=on_date,
                    )
                except (RateNotFoundError, RateUnavailableError, InvalidInputError) as e:
                    errors[key] = e
        finally:
            # A hung provider call must not block the caller past its timeout
            executor.shutdown(wait=False, cancel_futures=True)

        if errors:
            raise errors[min(errors)]
        return results

    def _check_consistent(self, snapshot: RateSnapshot, locality: str, on_date: date) -> None:
        problems = []
        if snapshot.locality != locality:
            problems.append(f"returned locality '{snapshot.locality}'")
        for name in ("mie_rate_cents", "lodging_cap_cents", "mileage_rate_cents"):
            value = getattr(snapshot, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                problems.append(f"invalid {name} {value!r}")
        if problems:
            raise RateUnavailableError(
                rate_unavailable(locality, on_date, "inconsistent snapshot: " + ", ".join(problems)),
                locality=locality,
                date=on_date,
            )
