"""Application settings and environment loading utilities."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


def _load_dotenv() -> None:
    env_path = Path(".env")
    if not env_path.exists():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip().strip("\"'"))


_load_dotenv()


def _validate_non_empty(value: Optional[str], name: str) -> str:
    if not value or not value.strip():
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value.strip()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Runtime configuration derived from environment variables."""

    omdb_api_key: str
    omdb_base_url: str = "https://www.omdbapi.com/"
    recommendation_api_url: str = "https://movie-reco-api.onrender.com/recommend"
    search_cache_ttl_seconds: int = 300
    details_cache_ttl_seconds: int = 1800
    recommendation_cache_ttl_seconds: int = 3600
    cache_max_entries: int = 1024
    detail_timeout_seconds: int = 5
    recommendation_timeout_seconds: int = 10
    enrichment_concurrency: int = 5
    batch_details_limit: int = 10
    default_top_n: int = 10
    max_top_n: int = 20
    rate_limit_requests: int = 120
    rate_limit_window_seconds: int = 60
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5001

    @classmethod
    def from_env(cls) -> "Settings":
        api_key = _validate_non_empty(os.getenv("OMDB_API_KEY"), "OMDB_API_KEY")

        return cls(
            omdb_api_key=api_key,
            omdb_base_url=os.getenv("OMDB_BASE_URL") or cls.omdb_base_url,
            recommendation_api_url=(
                os.getenv("RECOMMENDATION_API_URL") or cls.recommendation_api_url
            ),
            search_cache_ttl_seconds=_int_env("SEARCH_CACHE_TTL_SECONDS", 300),
            details_cache_ttl_seconds=_int_env("DETAILS_CACHE_TTL_SECONDS", 1800),
            recommendation_cache_ttl_seconds=_int_env("RECOMMENDATION_CACHE_TTL_SECONDS", 3600),
            cache_max_entries=_int_env("CACHE_MAX_ENTRIES", 1024),
            detail_timeout_seconds=_int_env("DETAIL_TIMEOUT_SECONDS", 5),
            recommendation_timeout_seconds=_int_env("RECOMMENDATION_TIMEOUT_SECONDS", 10),
            enrichment_concurrency=_int_env("ENRICHMENT_CONCURRENCY", 5),
            batch_details_limit=_int_env("BATCH_DETAILS_LIMIT", 10),
            default_top_n=_int_env("DEFAULT_TOP_N", 10),
            max_top_n=_int_env("MAX_TOP_N", 20),
            rate_limit_requests=_int_env("RATE_LIMIT_REQUESTS", 120),
            rate_limit_window_seconds=_int_env("RATE_LIMIT_WINDOW_SECONDS", 60),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
            host=os.getenv("HOST") or cls.host,
            port=_int_env("PORT", 5001),
        )


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings.from_env()
