"""Bounded-concurrency batch fetching with per-item outcomes."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar, Union

from cinelink.cache import TTLCache
from cinelink.lookup import CachedValue, cached_fetch
from cinelink.singleflight import SingleFlight

LOGGER = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")


@dataclass(frozen=True)
class Success:
    value: Any
    from_cache: bool = False


@dataclass(frozen=True)
class Failure:
    reason: Exception


Outcome = Union[Success, Failure]


@dataclass(frozen=True)
class BatchEntry(Generic[ItemT]):
    item: ItemT
    outcome: Outcome

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, Success)


class BatchFetcher:
    """Fan out cached lookups over a bounded thread pool.

    Each item is resolved through :func:`cached_fetch`, so identical keys
    share one upstream call and repeated keys are served from the cache.
    One item's failure never affects the others, and results come back in
    input order regardless of completion order.
    """

    def __init__(
        self,
        cache: TTLCache,
        flight: SingleFlight,
        *,
        concurrency_limit: int = 5,
    ) -> None:
        if concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be at least 1, got {concurrency_limit}")
        self._cache = cache
        self._flight = flight
        self._concurrency_limit = concurrency_limit

    def fetch_all(
        self,
        items: Sequence[ItemT],
        *,
        key: Callable[[ItemT], str],
        fetch: Callable[[ItemT], Any],
        concurrency_limit: Optional[int] = None,
    ) -> List[BatchEntry[ItemT]]:
        """Resolve every item and return one :class:`BatchEntry` per item."""

        if not items:
            return []
        limit = self._concurrency_limit if concurrency_limit is None else concurrency_limit
        if limit < 1:
            raise ValueError(f"concurrency_limit must be at least 1, got {limit}")

        def resolve(item: ItemT) -> CachedValue:
            return cached_fetch(self._cache, self._flight, key(item), lambda: fetch(item))

        with ThreadPoolExecutor(
            max_workers=min(limit, len(items)), thread_name_prefix="batch-fetch"
        ) as pool:
            futures = [pool.submit(resolve, item) for item in items]
            entries: List[BatchEntry[ItemT]] = []
            for index, (item, future) in enumerate(zip(items, futures)):
                try:
                    resolved = future.result()
                except Exception as exc:  # noqa: BLE001
                    LOGGER.warning(
                        "batch item failed",
                        extra={"detail": f"item {index}: {type(exc).__name__}: {exc}"},
                    )
                    entries.append(BatchEntry(item=item, outcome=Failure(exc)))
                else:
                    entries.append(
                        BatchEntry(
                            item=item,
                            outcome=Success(resolved.value, from_cache=resolved.from_cache),
                        )
                    )
        return entries
