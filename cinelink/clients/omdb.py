"""OMDb REST API client."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from cinelink.clients.http import request_json
from cinelink.config import Settings
from cinelink.errors import NotFoundError, UnavailableError, UpstreamError
from cinelink.utils import uses_exact_title

LOGGER = logging.getLogger(__name__)

UPSTREAM = "OMDb"


class OmdbClient:
    """Small HTTP client for the movie database with typed failures."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    def search(self, query: str) -> Dict[str, Any]:
        """Search titles, using exact-title mode for very short queries."""

        trimmed = query.strip()
        if uses_exact_title(trimmed):
            match = self._get({"t": trimmed})
            return {"Search": [match], "totalResults": 1}

        payload = self._get({"s": trimmed})
        return {
            "Search": payload.get("Search") or [],
            "totalResults": _to_int(payload.get("totalResults")),
        }

    def details(self, imdb_id: str) -> Dict[str, Any]:
        return self._get({"i": imdb_id, "plot": "full"})

    def season(self, imdb_id: str, season: int) -> Dict[str, Any]:
        return self._get({"i": imdb_id, "Season": season})

    def episode(self, imdb_id: str, season: int, episode: int) -> Dict[str, Any]:
        return self._get({"i": imdb_id, "Season": season, "Episode": episode})

    def find_title(self, title: str, year: Any = None) -> Dict[str, Any]:
        """Exact-title lookup, narrowed by release year when one is known."""

        params: Dict[str, Any] = {"t": title}
        if year not in (None, ""):
            params["y"] = year
        return self._get(params)

    def _get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        payload = request_json(
            self._session,
            "GET",
            self._settings.omdb_base_url,
            upstream=UPSTREAM,
            timeout=self._settings.detail_timeout_seconds,
            params={**params, "apikey": self._settings.omdb_api_key},
        )
        response_flag = str(payload.get("Response", "True")).lower()
        if response_flag == "false":
            message = payload.get("Error") or "Movie not found!"
            lowered = message.lower()
            if "limit reached" in lowered:
                LOGGER.warning("omdb quota exhausted", extra={"upstream": UPSTREAM, "detail": message})
                raise UnavailableError(f"{UPSTREAM} error: {message}", upstream=UPSTREAM)
            if "api key" in lowered:
                LOGGER.error("omdb rejected request", extra={"upstream": UPSTREAM, "detail": message})
                raise UpstreamError(f"{UPSTREAM} error: {message}", upstream=UPSTREAM)
            raise NotFoundError(message, upstream=UPSTREAM)
        return payload


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
