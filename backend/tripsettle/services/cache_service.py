"""
Short-TTL display cache for settlement summaries.

The cache is never the source of truth: every failure is logged and treated
as a miss, and writers invalidate the travel's entry after each mutation.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from tripsettle.core.config import settings

logger = logging.getLogger(__name__)

SUMMARY_PREFIX = "settlement:summary"


class CacheBackend(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl: int) -> None: ...

    def delete(self, key: str) -> None: ...


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float


class InMemoryTTLCache:
    """Process-local cache with monotonic-clock expiry."""

    def __init__(self):
        self._entries: Dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= time.monotonic():
                self._entries.pop(key, None)
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: int) -> None:
        if ttl <= 0:
            return
        with self._lock:
            self._entries[key] = _CacheEntry(value=value, expires_at=time.monotonic() + ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)


class SummaryCache:
    """Best-effort wrapper keyed by travel id."""

    def __init__(self, backend: Optional[CacheBackend], ttl: int = None, enabled: bool = True):
        self._backend = backend
        self._ttl = ttl if ttl is not None else settings.SETTLEMENT_CACHE_TTL_SECONDS
        self._enabled = enabled and backend is not None

    @staticmethod
    def _key(travel_id: int) -> str:
        return f"{SUMMARY_PREFIX}:{travel_id}"

    def get(self, travel_id: int) -> Optional[Any]:
        if not self._enabled:
            return None
        try:
            return self._backend.get(self._key(travel_id))
        except Exception:
            logger.warning("summary cache read failed for travel %s", travel_id, exc_info=True)
            return None

    def set(self, travel_id: int, summary: Any) -> None:
        if not self._enabled:
            return
        try:
            self._backend.set(self._key(travel_id), summary, self._ttl)
        except Exception:
            logger.warning("summary cache write failed for travel %s", travel_id, exc_info=True)

    def invalidate(self, travel_id: int) -> None:
        if not self._enabled:
            return
        try:
            self._backend.delete(self._key(travel_id))
        except Exception:
            logger.warning("summary cache invalidation failed for travel %s", travel_id, exc_info=True)


_backend = InMemoryTTLCache()


def get_summary_cache() -> SummaryCache:
    """Dependency returning the process-wide summary cache."""
    return SummaryCache(_backend, enabled=settings.SETTLEMENT_CACHE_ENABLED)
