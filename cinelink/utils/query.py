"""Request parameter normalization helpers."""
from __future__ import annotations

import re
from typing import Any

from cinelink.errors import InvalidRequestError

EXACT_TITLE_MAX_LENGTH = 2

_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(value: str) -> str:
    """Trim and collapse internal whitespace runs to a single space."""

    return _WHITESPACE.sub(" ", value.strip())


def normalize_text(value: str) -> str:
    """Trim, lower-case and collapse internal whitespace."""

    return collapse_whitespace(value).lower()


def slugify_title(title: str) -> str:
    """Normalize a title for use inside a cache key: ``"The  Matrix"`` -> ``"the_matrix"``."""

    return _WHITESPACE.sub("_", title.strip().lower())


def uses_exact_title(query: str) -> bool:
    """Return ``True`` when ``query`` is too short for the provider's fuzzy search."""

    return len(query.strip()) <= EXACT_TITLE_MAX_LENGTH


def parse_positive_int(value: Any, name: str) -> int:
    """Parse a season/episode style number, rejecting anything non-numeric."""

    if isinstance(value, bool):
        raise InvalidRequestError(f"{name} must be a positive integer")
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise InvalidRequestError(f"{name} must be a positive integer") from exc
    if number < 1:
        raise InvalidRequestError(f"{name} must be a positive integer")
    return number


def clamp_top_n(value: Any, *, default: int, maximum: int) -> int:
    """Return the requested recommendation count bounded to ``[1, maximum]``."""

    if value is None:
        return min(default, maximum)
    if isinstance(value, bool):
        raise InvalidRequestError("top_n must be a number")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRequestError("top_n must be a number") from exc
    return max(1, min(number, maximum))
