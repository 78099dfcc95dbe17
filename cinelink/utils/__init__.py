"""Utility helpers."""
from .query import (  # noqa: F401
    clamp_top_n,
    collapse_whitespace,
    normalize_text,
    parse_positive_int,
    slugify_title,
    uses_exact_title,
)
