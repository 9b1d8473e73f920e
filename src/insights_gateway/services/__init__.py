"""Gateway services: insights lookup and result caching."""

from .insights import INSIGHTS_TWEAKS, InsightsService, cache_key
from .result_cache import InMemoryResultCache, ResultCache

__all__ = [
    "INSIGHTS_TWEAKS",
    "InMemoryResultCache",
    "InsightsService",
    "ResultCache",
    "cache_key",
]
