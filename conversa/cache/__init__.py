"""
Response caching for the query engine.
"""

from .response_cache import CacheEntry, CacheStats, ResponseCache, cache_key

__all__ = ["CacheEntry", "CacheStats", "ResponseCache", "cache_key"]
