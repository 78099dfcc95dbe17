"""FastAPI application that aggregates movie metadata and recommendations."""
from __future__ import annotations

import logging
import time
import uuid
from datetime import UTC, datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from cinelink import __version__
from cinelink.batch import BatchFetcher
from cinelink.cache import TTLCache
from cinelink.clients import OmdbClient, RecommenderClient
from cinelink.config import get_settings
from cinelink.errors import CineLinkError
from cinelink.logging_config import configure_logging
from cinelink.rate_limit import RateLimiter
from cinelink.services import MovieService, RecommendationPipeline
from cinelink.singleflight import SingleFlight

settings = get_settings()
configure_logging(settings.log_level)
LOGGER = logging.getLogger(__name__)

search_cache = TTLCache(settings.search_cache_ttl_seconds, max_entries=settings.cache_max_entries)
details_cache = TTLCache(settings.details_cache_ttl_seconds, max_entries=settings.cache_max_entries)
recommendation_cache = TTLCache(
    settings.recommendation_cache_ttl_seconds, max_entries=settings.cache_max_entries
)
flight = SingleFlight()
omdb_client = OmdbClient(settings)
recommender_client = RecommenderClient(settings)
details_fetcher = BatchFetcher(
    details_cache, flight, concurrency_limit=settings.enrichment_concurrency
)
movie_service = MovieService(
    omdb_client,
    search_cache=search_cache,
    details_cache=details_cache,
    flight=flight,
    fetcher=details_fetcher,
    batch_limit=settings.batch_details_limit,
)
recommendation_pipeline = RecommendationPipeline(
    recommender_client,
    omdb_client,
    cache=recommendation_cache,
    flight=flight,
    fetcher=details_fetcher,
    default_top_n=settings.default_top_n,
    max_top_n=settings.max_top_n,
)
rate_limiter = RateLimiter(settings.rate_limit_requests, settings.rate_limit_window_seconds)

app = FastAPI(title="CineLink Backend", version=__version__)


class BatchDetailsRequest(BaseModel):
    imdbIDs: Optional[List[str]] = None


class RecommendationRequest(BaseModel):
    title: Optional[str] = None
    top_n: Optional[int] = None


@app.middleware("http")
async def log_and_limit(request: Request, call_next):  # type: ignore[override]
    client_ip = request.client.host if request.client else "unknown"
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    context = {
        "request_id": request_id,
        "client_ip": client_ip,
        "method": request.method,
        "path": request.url.path,
    }
    if not rate_limiter.allow(client_ip):
        LOGGER.warning("rate limited", extra=context)
        return JSONResponse(
            status_code=429, content={"error": "Too many requests. Please slow down."}
        )

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:  # noqa: BLE001
        LOGGER.exception("Unhandled exception", extra=context)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
    elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
    LOGGER.info(
        "request served",
        extra={**context, "status": response.status_code, "elapsed_ms": elapsed_ms},
    )
    response.headers["X-Request-ID"] = request_id
    return response


# Registered after the http middleware so CORS headers also cover its 429/500 answers.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CineLinkError)
async def handle_cinelink_error(request: Request, exc: CineLinkError) -> JSONResponse:
    if exc.status_code >= 500:
        LOGGER.error("request failed", extra={"path": request.url.path, "detail": str(exc)})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"Invalid request: {location} {errors[0].get('msg', '')}".strip()
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Endpoint not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": message})


def get_movie_service() -> MovieService:
    """Provide the shared movie service."""

    return movie_service


def get_recommendation_pipeline() -> RecommendationPipeline:
    """Provide the shared recommendation pipeline."""

    return recommendation_pipeline


@app.get("/api/health")
def health() -> dict:
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
    }


@app.get("/api/test")
def smoke_test() -> dict:
    return {
        "message": "CineLink Backend is running!",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/api/movies/search")
def search_movies(
    q: Optional[str] = Query(None, description="Title to search for."),
    service: MovieService = Depends(get_movie_service),
) -> dict:
    """Search titles; short queries use exact-title lookup."""

    return service.search(q)


@app.get("/api/movies/details/{imdb_id}")
def movie_details(imdb_id: str, service: MovieService = Depends(get_movie_service)) -> dict:
    return service.details(imdb_id)


@app.get("/api/movies/season/{imdb_id}/{season}")
def season_details(
    imdb_id: str, season: str, service: MovieService = Depends(get_movie_service)
) -> dict:
    return service.season(imdb_id, season)


@app.get("/api/movies/episode/{imdb_id}/{season}/{episode}")
def episode_details(
    imdb_id: str,
    season: str,
    episode: str,
    service: MovieService = Depends(get_movie_service),
) -> dict:
    return service.episode(imdb_id, season, episode)


@app.post("/api/movies/batch-details")
def batch_details(
    body: BatchDetailsRequest, service: MovieService = Depends(get_movie_service)
) -> dict:
    """Fetch details for up to ten ids; failures are reported per id."""

    return service.batch_details(body.imdbIDs)


@app.post("/api/recommendations")
def recommendations(
    body: RecommendationRequest,
    pipeline: RecommendationPipeline = Depends(get_recommendation_pipeline),
) -> dict:
    """Recommend titles similar to ``title``, enriched with movie details."""

    return pipeline.recommend(body.title, body.top_n)


if __name__ == "__main__":
    import uvicorn

    LOGGER.info("Starting CineLink Backend", extra={"detail": f"{settings.host}:{settings.port}"})
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
