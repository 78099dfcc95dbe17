"""Client for the external recommendation API."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from cinelink.clients.http import request_json
from cinelink.config import Settings

LOGGER = logging.getLogger(__name__)

UPSTREAM = "recommendation service"


class RecommenderClient:
    """Fetches ranked recommendation stubs for a seed title."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    def recommend(self, title: str, top_n: int) -> List[Dict[str, Any]]:
        payload = request_json(
            self._session,
            "POST",
            self._settings.recommendation_api_url,
            upstream=UPSTREAM,
            timeout=self._settings.recommendation_timeout_seconds,
            not_found_is_miss=False,
            json={"titles": [title], "top_n": top_n},
        )
        stubs = payload.get("recommendations") or []
        if not isinstance(stubs, list):
            LOGGER.warning("unexpected recommendations payload", extra={"upstream": UPSTREAM})
            return []
        return [stub for stub in stubs if isinstance(stub, dict)]
