from __future__ import annotations

from fastapi.testclient import TestClient
import pytest

import main
from cinelink.errors import UnavailableError, UpstreamTimeoutError
from cinelink.rate_limit import RateLimiter
from conftest import movie
from main import app, get_movie_service, get_recommendation_pipeline


@pytest.fixture()
def api_client(monkeypatch, movie_service, pipeline, fake_omdb, fake_recommender):
    monkeypatch.setattr(main, "rate_limiter", RateLimiter(1000, 60))
    app.dependency_overrides[get_movie_service] = lambda: movie_service
    app.dependency_overrides[get_recommendation_pipeline] = lambda: pipeline
    client = TestClient(app)
    try:
        yield client, fake_omdb, fake_recommender
    finally:
        app.dependency_overrides.pop(get_movie_service, None)
        app.dependency_overrides.pop(get_recommendation_pipeline, None)


def test_health_reports_ok(api_client):
    client, _, _ = api_client

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "X-Request-ID" in response.headers


def test_search_requires_query(api_client):
    client, _, _ = api_client

    assert client.get("/api/movies/search").status_code == 400
    response = client.get("/api/movies/search?q=%20%20")
    assert response.status_code == 400
    assert response.json() == {"error": "Query parameter required"}


def test_search_marks_cached_responses(api_client):
    client, fake_omdb, _ = api_client
    fake_omdb.search_results["inception"] = {"Search": [{"Title": "Inception"}], "totalResults": 1}

    first = client.get("/api/movies/search?q=Inception").json()
    second = client.get("/api/movies/search?q=inception").json()

    assert first == {"Search": [{"Title": "Inception"}], "totalResults": 1}
    assert second["fromCache"] is True


def test_details_not_found_is_404(api_client):
    client, _, _ = api_client

    response = client.get("/api/movies/details/tt0000000")

    assert response.status_code == 404
    assert response.json() == {"error": "Movie not found!"}


def test_details_unavailable_is_503(api_client):
    client, fake_omdb, _ = api_client
    fake_omdb.failures["tt1375666"] = UnavailableError("OMDb is temporarily unavailable")

    response = client.get("/api/movies/details/tt1375666")

    assert response.status_code == 503
    assert response.json() == {"error": "OMDb is temporarily unavailable"}


def test_episode_route(api_client):
    client, fake_omdb, _ = api_client
    fake_omdb.titles["tt0944947/1/1"] = {"Title": "Winter Is Coming"}

    response = client.get("/api/movies/episode/tt0944947/1/1")

    assert response.status_code == 200
    assert response.json()["Title"] == "Winter Is Coming"
    assert client.get("/api/movies/season/tt0944947/x").status_code == 400


def test_batch_details_caps_at_ten(api_client):
    client, fake_omdb, _ = api_client
    ids = [f"tt{i:07d}" for i in range(11)]
    for imdb_id in ids:
        fake_omdb.titles[imdb_id] = movie(imdb_id, imdb_id)

    response = client.post("/api/movies/batch-details", json={"imdbIDs": ids})

    assert response.status_code == 200
    assert len(response.json()["results"]) == 10


def test_batch_details_rejects_bad_body(api_client):
    client, _, _ = api_client

    assert client.post("/api/movies/batch-details", json={"imdbIDs": "tt1"}).status_code == 400
    assert client.post("/api/movies/batch-details", json={}).status_code == 400


def test_recommendations_cold_then_cached(api_client):
    client, fake_omdb, fake_recommender = api_client
    fake_recommender.stubs = [{"title": f"Film {i}", "release_year": 2000 + i} for i in range(8)]
    for i in range(8):
        fake_omdb.titles[f"Film {i}"] = movie(f"tt{i:07d}", f"Film {i}")

    first = client.post("/api/recommendations", json={"title": "Inception", "top_n": 5})
    upstream_calls = len(fake_omdb.calls)
    second = client.post("/api/recommendations", json={"title": "Inception", "top_n": 5})

    assert first.status_code == 200
    body = first.json()
    assert body["total"] == len(body["recommendations"]) <= 5
    assert body["source"] == "Inception"
    assert "fromCache" not in body
    assert second.json()["fromCache"] is True
    assert second.json()["recommendations"] == body["recommendations"]
    assert len(fake_recommender.calls) == 1
    assert len(fake_omdb.calls) == upstream_calls


def test_recommendations_blank_title_is_400(api_client):
    client, _, _ = api_client

    response = client.post("/api/recommendations", json={"title": "  "})

    assert response.status_code == 400
    assert response.json() == {"error": "Movie title required"}


@pytest.mark.parametrize(
    "error, status",
    [
        (UpstreamTimeoutError("Request timeout - recommendation service is slow"), 408),
        (UnavailableError("Recommendation service temporarily unavailable"), 503),
        (RuntimeError("unexpected"), 500),
    ],
)
def test_recommendation_failures_map_to_status(api_client, error, status):
    client, _, fake_recommender = api_client
    fake_recommender.error = error

    response = client.post("/api/recommendations", json={"title": "Inception"})

    assert response.status_code == status
    assert "error" in response.json()


def test_unknown_route_is_404(api_client):
    client, _, _ = api_client

    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "Endpoint not found"}


def test_rate_limit_returns_429(api_client, monkeypatch):
    client, _, _ = api_client
    monkeypatch.setattr(main, "rate_limiter", RateLimiter(2, 60))

    statuses = [client.get("/api/health").status_code for _ in range(3)]

    assert statuses == [200, 200, 429]


def test_rate_limited_answer_carries_cors_headers(api_client, monkeypatch):
    client, _, _ = api_client
    monkeypatch.setattr(main, "rate_limiter", RateLimiter(0, 60))

    response = client.get("/api/health", headers={"Origin": "https://app.example"})

    assert response.status_code == 429
    assert response.headers["access-control-allow-origin"] in ("*", "https://app.example")
