"""Simple TTL cache implementation."""
from __future__ import annotations

import copy
import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Hashable


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    stored_at: float


class TTLCache:
    """Thread-safe TTL cache with a least-recently-used capacity bound.

    Values are copied on the way in and on the way out, so callers can mutate
    what they get back without touching the cached state.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._store: "OrderedDict[Hashable, CacheEntry]" = OrderedDict()
        self._lock = Lock()

    def get(self, key: Hashable) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if self._is_expired(entry, self._clock()):
                del self._store[key]
                return None
            self._store.move_to_end(key)
            return copy.deepcopy(entry.value)

    def set(self, key: Hashable, value: Any) -> None:
        entry = CacheEntry(value=copy.deepcopy(value), stored_at=self._clock())
        with self._lock:
            if key in self._store:
                del self._store[key]
            elif len(self._store) >= self._max_entries:
                self._purge_expired_locked(entry.stored_at)
                while len(self._store) >= self._max_entries:
                    self._store.popitem(last=False)
            self._store[key] = entry

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""

        with self._lock:
            return self._purge_expired_locked(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at >= self._ttl

    def _purge_expired_locked(self, now: float) -> int:
        expired = [key for key, entry in self._store.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._store[key]
        return len(expired)
