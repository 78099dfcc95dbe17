"""Upstream provider clients."""
from .omdb import OmdbClient  # noqa: F401
from .recommender import RecommenderClient  # noqa: F401
