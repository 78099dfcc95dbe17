from __future__ import annotations

import os
import threading
import time
from typing import Any, Callable, Dict, List, Optional

import pytest

os.environ.setdefault("OMDB_API_KEY", "test-key")

from cinelink.batch import BatchFetcher  # noqa: E402
from cinelink.cache import TTLCache  # noqa: E402
from cinelink.errors import NotFoundError  # noqa: E402
from cinelink.services import MovieService, RecommendationPipeline  # noqa: E402
from cinelink.singleflight import SingleFlight  # noqa: E402


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeOmdb:
    """Stands in for OmdbClient; counts calls and tracks concurrency."""

    def __init__(self) -> None:
        self.titles: Dict[str, Dict[str, Any]] = {}
        self.failures: Dict[str, Exception] = {}
        self.search_results: Dict[str, Dict[str, Any]] = {}
        self.delay = 0.0
        self.calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def _enter(self, call: tuple) -> None:
        with self._lock:
            self.calls.append(call)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        if self.delay:
            time.sleep(self.delay)

    def _exit(self) -> None:
        with self._lock:
            self.in_flight -= 1

    def _lookup(self, call: tuple, key: str) -> Dict[str, Any]:
        self._enter(call)
        try:
            if key in self.failures:
                raise self.failures[key]
            if key not in self.titles:
                raise NotFoundError("Movie not found!")
            return dict(self.titles[key])
        finally:
            self._exit()

    def search(self, query: str) -> Dict[str, Any]:
        self._enter(("search", query))
        try:
            if query not in self.search_results:
                raise NotFoundError("Movie not found!")
            return self.search_results[query]
        finally:
            self._exit()

    def details(self, imdb_id: str) -> Dict[str, Any]:
        return self._lookup(("details", imdb_id), imdb_id)

    def season(self, imdb_id: str, season: int) -> Dict[str, Any]:
        return self._lookup(("season", imdb_id, season), f"{imdb_id}/{season}")

    def episode(self, imdb_id: str, season: int, episode: int) -> Dict[str, Any]:
        return self._lookup(("episode", imdb_id, season, episode), f"{imdb_id}/{season}/{episode}")

    def find_title(self, title: str, year: Any = None) -> Dict[str, Any]:
        return self._lookup(("find_title", title, year), title)

    def count(self, kind: str) -> int:
        return sum(1 for call in self.calls if call[0] == kind)


class FakeRecommender:
    def __init__(self, stubs: Optional[List[Dict[str, Any]]] = None) -> None:
        self.stubs = stubs or []
        self.error: Optional[Exception] = None
        self.calls: List[tuple] = []
        self.hook: Optional[Callable[[], None]] = None

    def recommend(self, title: str, top_n: int) -> List[Dict[str, Any]]:
        self.calls.append((title, top_n))
        if self.hook:
            self.hook()
        if self.error:
            raise self.error
        return [dict(stub) for stub in self.stubs]


def movie(imdb_id: str, title: str, **extra: Any) -> Dict[str, Any]:
    payload = {
        "Title": title,
        "imdbID": imdb_id,
        "Poster": f"https://img.example/{imdb_id}.jpg",
        "imdbRating": "7.5",
        "Runtime": "120 min",
        "Genre": "Drama",
        "Response": "True",
    }
    payload.update(extra)
    return payload


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fake_omdb() -> FakeOmdb:
    return FakeOmdb()


@pytest.fixture()
def fake_recommender() -> FakeRecommender:
    return FakeRecommender()


@pytest.fixture()
def flight() -> SingleFlight:
    return SingleFlight()


@pytest.fixture()
def caches(clock):
    return {
        "search": TTLCache(300, clock=clock),
        "details": TTLCache(1800, clock=clock),
        "recommendations": TTLCache(3600, clock=clock),
    }


@pytest.fixture()
def fetcher(caches, flight) -> BatchFetcher:
    return BatchFetcher(caches["details"], flight, concurrency_limit=5)


@pytest.fixture()
def movie_service(fake_omdb, caches, flight, fetcher) -> MovieService:
    return MovieService(
        fake_omdb,
        search_cache=caches["search"],
        details_cache=caches["details"],
        flight=flight,
        fetcher=fetcher,
        batch_limit=10,
    )


@pytest.fixture()
def pipeline(fake_recommender, fake_omdb, caches, flight, fetcher) -> RecommendationPipeline:
    return RecommendationPipeline(
        fake_recommender,
        fake_omdb,
        cache=caches["recommendations"],
        flight=flight,
        fetcher=fetcher,
        default_top_n=10,
        max_top_n=20,
    )
