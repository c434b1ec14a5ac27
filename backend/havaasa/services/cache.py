"""In-process read-through cache for article JSON payloads."""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

ALL_ARTICLES_KEY = "articles:all"
PAGE_KEY_PREFIX = "articles:page:"


def article_key(article_id: int) -> str:
    return f"article:{article_id}"


def page_key(page: int, limit: int) -> str:
    return f"{PAGE_KEY_PREFIX}{page}:{limit}"


@dataclass
class CacheEntry:
    """Cached payload plus the clock reading at insertion."""

    value: Any
    inserted_at: float


class ResponseCache:
    """
    TTL cache keyed by request shape (single article, full list, page).

    Entries expire lazily: an expired entry is dropped when it is read.
    Only JSON-shaped payloads for non-crawler requests are stored here.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss or expired entry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug("cache_miss", key=key)
                return None
            if self._clock() - entry.inserted_at >= self.ttl_seconds:
                del self._entries[key]
                logger.debug("cache_expired", key=key)
                return None
            logger.debug("cache_hit", key=key)
            return entry.value

    def set(self, key: str, value: Any) -> None:
        """Store a value. A failed store is logged and otherwise ignored."""
        try:
            with self._lock:
                self._entries[key] = CacheEntry(value=value, inserted_at=self._clock())
        except Exception as e:  # caching is an optimisation only
            logger.warning("cache_set_failed", key=key, error=str(e))

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_aggregates(self) -> int:
        """Drop the full-list entry and every paginated-list entry."""
        with self._lock:
            stale = [
                key
                for key in self._entries
                if key == ALL_ARTICLES_KEY or key.startswith(PAGE_KEY_PREFIX)
            ]
            for key in stale:
                del self._entries[key]
        logger.debug("cache_aggregates_invalidated", removed=len(stale))
        return len(stale)
