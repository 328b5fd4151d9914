"""
Response Cache with TTL expiry and LRU-bounded capacity.
"""

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, asdict, is_dataclass
from typing import Dict, Any, Optional, Callable

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_MAX_SIZE = 1000


def cache_key(text: str, context: Optional[Dict[str, Any]] = None) -> str:
    """Deterministic key for a query text and its call context."""
    text_hash = hashlib.sha256(text.encode("utf-8")).hexdigest()[:32]
    context_hash = ""
    if context:
        serialized = json.dumps(context, sort_keys=True, default=str)
        context_hash = hashlib.sha256(serialized.encode("utf-8")).hexdigest()[:32]
    return f"query_{text_hash}_{context_hash}"


@dataclass
class CacheEntry:
    key: str
    response: Any
    expires_at: float
    last_accessed_at: float


@dataclass
class CacheStats:
    total_entries: int
    expired_entries: int
    total_size: int
    max_size: int
    hits: int
    misses: int
    hit_rate: float


class ResponseCache:
    """In-memory response cache; every operation holds a single lock."""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        clock: Callable[[], float] = time.time
    ):
        config = config or {}
        self.enabled = config.get("enabled", True)
        self.default_ttl = float(config.get("ttl_seconds", DEFAULT_TTL_SECONDS))
        self.max_size = int(config.get("max_size", DEFAULT_MAX_SIZE))
        if self.max_size < 1:
            raise ValueError("Cache max_size must be at least 1")

        self.clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Return the cached response, or None when absent, expired or disabled."""
        if not self.enabled:
            return None

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None

            now = self.clock()
            if now > entry.expires_at:
                del self._entries[key]
                self.misses += 1
                logger.debug(f"Cache entry expired: {key}")
                return None

            entry.last_accessed_at = now
            self._entries.move_to_end(key)
            self.hits += 1
            return entry.response

    def set(self, key: str, response: Any, ttl: Optional[float] = None):
        """Store a response, evicting the least recently accessed entry when full."""
        if not self.enabled:
            return

        with self._lock:
            now = self.clock()
            if key not in self._entries:
                while len(self._entries) >= self.max_size:
                    self._evict_lru()

            self._entries[key] = CacheEntry(
                key=key,
                response=response,
                expires_at=now + (self.default_ttl if ttl is None else ttl),
                last_accessed_at=now
            )
            self._entries.move_to_end(key)

    def delete(self, key: str):
        with self._lock:
            self._entries.pop(key, None)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def cleanup_expired(self) -> int:
        """Remove every expired entry and return how many were removed."""
        with self._lock:
            now = self.clock()
            expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.info(f"Removed {len(expired)} expired cache entries")
        return len(expired)

    def set_enabled(self, enabled: bool):
        """Enable or disable caching; disabling drops every entry."""
        self.enabled = enabled
        if not enabled:
            self.clear()

    def set_timeout(self, ttl: float):
        self.default_ttl = float(ttl)

    def set_max_size(self, max_size: int):
        if max_size < 1:
            raise ValueError("Cache max_size must be at least 1")
        with self._lock:
            self.max_size = max_size
            while len(self._entries) > max_size:
                self._evict_lru()

    def get_stats(self) -> CacheStats:
        with self._lock:
            now = self.clock()
            expired = sum(1 for entry in self._entries.values() if now > entry.expires_at)
            total_size = sum(_estimate_size(entry.response) for entry in self._entries.values())
            lookups = self.hits + self.misses

            return CacheStats(
                total_entries=len(self._entries),
                expired_entries=expired,
                total_size=total_size,
                max_size=self.max_size,
                hits=self.hits,
                misses=self.misses,
                hit_rate=self.hits / lookups if lookups else 0.0
            )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def _evict_lru(self):
        # Caller holds the lock. min() keeps the earliest entry on ties.
        if not self._entries:
            return
        lru_key = min(self._entries.values(), key=lambda entry: entry.last_accessed_at).key
        del self._entries[lru_key]
        logger.debug(f"Evicted least recently used cache entry: {lru_key}")


def _estimate_size(response: Any) -> int:
    data = asdict(response) if is_dataclass(response) else response
    return len(json.dumps(data, default=str).encode("utf-8"))
