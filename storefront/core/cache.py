"""
Listing cache keyed by collection name ("products", "customers", ...).

Listings are derived on read and can be re-fetched at any time, so the
cache only needs to forget a key whenever something writes to that
collection. Values are plain serialised dicts, never ORM rows.
"""
import logging
import threading
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)


class QueryCache:
    """In-process cache for listing responses."""

    def __init__(self):
        self._entries: Dict[str, Any] = {}
        self._generations: Dict[str, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> Any:
        """
        Cached value for ``key``, loading it on a miss.

        The loader runs outside the lock. Its result is only kept if no
        invalidation of ``key`` happened while it ran; otherwise it is
        returned to this caller but not cached.
        """
        with self._lock:
            if key in self._entries:
                return self._entries[key]
            generation = (self._epoch, self._generations.get(key, 0))
        value = loader()
        with self._lock:
            if (self._epoch, self._generations.get(key, 0)) == generation:
                self._entries[key] = value
            else:
                logger.debug(f"[Cache] Dropped load of '{key}' invalidated mid-flight")
        return value

    def invalidate(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._generations[key] = self._generations.get(key, 0) + 1
                if self._entries.pop(key, None) is not None:
                    logger.debug(f"[Cache] Invalidated '{key}'")

    def clear(self) -> None:
        with self._lock:
            self._epoch += 1
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
