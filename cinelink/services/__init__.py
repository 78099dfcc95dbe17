"""Request-level services built on the cache, single-flight and batch layers."""
from .movies import MovieService  # noqa: F401
from .recommendations import RecommendationPipeline  # noqa: F401
