"""Recommendation aggregation: stub retrieval followed by batched enrichment."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from cinelink.batch import BatchFetcher, Success
from cinelink.cache import TTLCache
from cinelink.cache_keys import recommendations_key, title_key
from cinelink.clients.omdb import OmdbClient
from cinelink.clients.recommender import RecommenderClient
from cinelink.errors import InvalidRequestError, UpstreamError
from cinelink.lookup import cached_fetch
from cinelink.singleflight import SingleFlight
from cinelink.utils import clamp_top_n

LOGGER = logging.getLogger(__name__)

ENRICHED_FIELDS = ("imdbID", "Poster", "imdbRating", "Runtime", "Genre")


def _stub_title(stub: Mapping[str, Any]) -> str:
    title = stub.get("title")
    if not isinstance(title, str) or not title.strip():
        raise UpstreamError("recommendation has no title", upstream="recommendation service")
    return title.strip()


def merge_details(stub: Mapping[str, Any], details: Mapping[str, Any]) -> Dict[str, Any]:
    """Attach the detail fields the lookup returned to a recommendation stub."""

    merged = dict(stub)
    for field in ENRICHED_FIELDS:
        if field in details:
            merged[field] = details[field]
    return merged


class RecommendationPipeline:
    """Serve enriched recommendations for a seed title.

    A request is answered from the recommendations cache when possible.
    Otherwise one call to the recommendation service produces ranked stubs,
    each stub is enriched with a title lookup through the batch fetcher, the
    stubs whose lookup failed are dropped, and the merged list is cached as a
    whole. Concurrent identical requests share a single resolution.
    """

    def __init__(
        self,
        recommender: RecommenderClient,
        omdb: OmdbClient,
        *,
        cache: TTLCache,
        flight: SingleFlight,
        fetcher: BatchFetcher,
        default_top_n: int = 10,
        max_top_n: int = 20,
    ) -> None:
        self._recommender = recommender
        self._omdb = omdb
        self._cache = cache
        self._flight = flight
        self._fetcher = fetcher
        self._default_top_n = default_top_n
        self._max_top_n = max_top_n

    def recommend(self, title: str | None, top_n: Any = None) -> Dict[str, Any]:
        seed = title.strip() if isinstance(title, str) else ""
        if not seed:
            raise InvalidRequestError("Movie title required")
        count = clamp_top_n(top_n, default=self._default_top_n, maximum=self._max_top_n)

        key = recommendations_key(seed, count)
        resolved = cached_fetch(self._cache, self._flight, key, lambda: self._resolve(seed, count))
        if resolved.from_cache:
            return {**resolved.value, "fromCache": True}
        return resolved.value

    def _resolve(self, seed: str, count: int) -> Dict[str, Any]:
        stubs = self._recommender.recommend(seed, count)[:count]

        entries = self._fetcher.fetch_all(
            stubs,
            key=lambda stub: title_key(_stub_title(stub), stub.get("release_year")),
            fetch=lambda stub: self._omdb.find_title(_stub_title(stub), stub.get("release_year")),
        )

        recommendations: List[Dict[str, Any]] = []
        for entry in entries:
            if isinstance(entry.outcome, Success):
                recommendations.append(merge_details(entry.item, entry.outcome.value))
        dropped = len(entries) - len(recommendations)
        if dropped:
            LOGGER.info(
                "dropped unenriched recommendations",
                extra={"detail": f"{dropped} of {len(entries)} for {seed!r}"},
            )

        return {
            "recommendations": recommendations,
            "total": len(recommendations),
            "source": seed,
        }
