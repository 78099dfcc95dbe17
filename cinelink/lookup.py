"""Read-through lookup combining the TTL cache with single-flight fills."""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable

from cinelink.cache import TTLCache
from cinelink.singleflight import SingleFlight

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedValue:
    value: Any
    from_cache: bool


def cached_fetch(
    cache: TTLCache,
    flight: SingleFlight,
    key: str,
    fetch: Callable[[], Any],
) -> CachedValue:
    """Return the cached value for ``key`` or resolve it with ``fetch``.

    On a miss the fill runs under ``flight`` so concurrent callers for the
    same key share one upstream call. The cache is re-checked inside the
    flight because another fill may have landed in the meantime. The value is
    stored only after ``fetch`` returns; failures are never cached. Callers
    sharing one flight each get their own copy of the value.
    """

    cached = cache.get(key)
    if cached is not None:
        LOGGER.debug("cache hit", extra={"cache_key": key})
        return CachedValue(cached, True)

    def fill() -> CachedValue:
        hit = cache.get(key)
        if hit is not None:
            return CachedValue(hit, True)
        value = fetch()
        cache.set(key, value)
        return CachedValue(value, False)

    resolved = flight.run(key, fill)
    return CachedValue(copy.deepcopy(resolved.value), resolved.from_cache)
