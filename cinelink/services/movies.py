"""Cached movie lookups: search, details, seasons, episodes and batches."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from cinelink.batch import BatchFetcher, Success
from cinelink.cache import TTLCache
from cinelink.cache_keys import details_key, episode_key, search_key, season_key
from cinelink.clients.omdb import OmdbClient
from cinelink.errors import InvalidRequestError, NotFoundError
from cinelink.lookup import CachedValue, cached_fetch
from cinelink.singleflight import SingleFlight
from cinelink.utils import normalize_text, parse_positive_int

LOGGER = logging.getLogger(__name__)


def _served(resolved: CachedValue) -> Dict[str, Any]:
    if resolved.from_cache:
        return {**resolved.value, "fromCache": True}
    return resolved.value


class MovieService:
    """Movie-database lookups behind the shared caches and single-flight registry."""

    def __init__(
        self,
        omdb: OmdbClient,
        *,
        search_cache: TTLCache,
        details_cache: TTLCache,
        flight: SingleFlight,
        fetcher: BatchFetcher,
        batch_limit: int = 10,
    ) -> None:
        self._omdb = omdb
        self._search_cache = search_cache
        self._details_cache = details_cache
        self._flight = flight
        self._fetcher = fetcher
        self._batch_limit = batch_limit

    def search(self, query: str | None) -> Dict[str, Any]:
        """Search titles; a provider "no match" is an empty result, not an error."""

        normalized = normalize_text(query or "")
        if not normalized:
            raise InvalidRequestError("Query parameter required")

        def fetch() -> Dict[str, Any]:
            try:
                return self._omdb.search(normalized)
            except NotFoundError as exc:
                return {"Search": [], "totalResults": 0, "error": str(exc)}

        resolved = cached_fetch(self._search_cache, self._flight, search_key(normalized), fetch)
        return _served(resolved)

    def details(self, imdb_id: str) -> Dict[str, Any]:
        key = details_key(imdb_id)
        resolved = cached_fetch(
            self._details_cache, self._flight, key, lambda: self._omdb.details(imdb_id.strip())
        )
        return _served(resolved)

    def season(self, imdb_id: str, season: Any) -> Dict[str, Any]:
        key = season_key(imdb_id, season)
        number = parse_positive_int(season, "season")
        resolved = cached_fetch(
            self._details_cache,
            self._flight,
            key,
            lambda: self._omdb.season(imdb_id.strip(), number),
        )
        return _served(resolved)

    def episode(self, imdb_id: str, season: Any, episode: Any) -> Dict[str, Any]:
        key = episode_key(imdb_id, season, episode)
        season_number = parse_positive_int(season, "season")
        episode_number = parse_positive_int(episode, "episode")
        resolved = cached_fetch(
            self._details_cache,
            self._flight,
            key,
            lambda: self._omdb.episode(imdb_id.strip(), season_number, episode_number),
        )
        return _served(resolved)

    def batch_details(self, imdb_ids: Sequence[Any] | None) -> Dict[str, List[Dict[str, Any]]]:
        """Resolve up to ``batch_limit`` ids; each entry succeeds or fails on its own."""

        if not isinstance(imdb_ids, (list, tuple)) or not imdb_ids:
            raise InvalidRequestError("imdbIDs array required")

        requested = list(imdb_ids[: self._batch_limit])
        if len(imdb_ids) > self._batch_limit:
            LOGGER.info(
                "batch truncated",
                extra={"detail": f"{len(imdb_ids)} ids requested, {self._batch_limit} processed"},
            )

        entries = self._fetcher.fetch_all(
            requested,
            key=lambda imdb_id: details_key(str(imdb_id)),
            fetch=lambda imdb_id: self._omdb.details(str(imdb_id).strip()),
        )

        results: List[Dict[str, Any]] = []
        for entry in entries:
            if isinstance(entry.outcome, Success):
                result: Dict[str, Any] = {"imdbID": entry.item, "data": entry.outcome.value}
                if entry.outcome.from_cache:
                    result["fromCache"] = True
            else:
                result = {"imdbID": entry.item, "error": str(entry.outcome.reason)}
            results.append(result)
        return {"results": results}
