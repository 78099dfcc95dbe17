"""Cache key construction.

Every key starts with the kind of request it belongs to, followed by the
normalized parameters, so logically identical requests map to the same key
and different kinds of request never collide.
"""
from __future__ import annotations

from typing import Any

from cinelink.errors import InvalidRequestError
from cinelink.utils import normalize_text, parse_positive_int, slugify_title


def _require_id(imdb_id: str) -> str:
    cleaned = (imdb_id or "").strip()
    if not cleaned:
        raise InvalidRequestError("imdbID is required")
    return cleaned


def search_key(query: str) -> str:
    return f"search_{normalize_text(query)}"


def details_key(imdb_id: str) -> str:
    return f"details_{_require_id(imdb_id)}"


def season_key(imdb_id: str, season: Any) -> str:
    return f"season_{_require_id(imdb_id)}_{parse_positive_int(season, 'season')}"


def episode_key(imdb_id: str, season: Any, episode: Any) -> str:
    season_number = parse_positive_int(season, "season")
    episode_number = parse_positive_int(episode, "episode")
    return f"episode_{_require_id(imdb_id)}_{season_number}_{episode_number}"


def recommendations_key(title: str, top_n: int) -> str:
    return f"reco_{slugify_title(title)}_{top_n}"


def title_key(title: str, year: Any = None) -> str:
    """Key for a title+year lookup used when enriching recommendation stubs."""

    year_part = str(year).strip() if year not in (None, "") else "any"
    return f"title_{slugify_title(title)}_{year_part}"
