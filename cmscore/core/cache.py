"""
In-process cache with per-entry expiry and a bounded size.

Callers own the keys. Keys are built as ``<prefix>:<suffix>`` so a whole family
can be dropped with ``delete_start_with(prefix)`` when its source data changes.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

from cmscore.core.config import settings

logger = logging.getLogger(__name__)

_MISSING = object()


class CacheService:
    """Short-lived key/value cache shared by the request handlers of one process."""

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
        self.max_entries = max_entries if max_entries is not None else settings.cache_max_entries
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def build_key(prefix: str, suffix: Any = None) -> str:
        return f"{prefix}:{'' if suffix is None else suffix}"

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key, _MISSING)
        if entry is _MISSING:
            return default
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return default
        return value

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        now = self._clock()
        self._purge_expired(now)
        if key not in self._entries:
            while self._entries and len(self._entries) >= self.max_entries:
                self._evict_oldest()
        self._entries[key] = (now + ttl, value)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]

    def _evict_oldest(self) -> None:
        """Drop the entry closest to expiry."""
        oldest_key = min(self._entries, key=lambda k: self._entries[k][0])
        del self._entries[oldest_key]

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def delete_start_with(self, prefix: str) -> int:
        """Drop every key starting with ``prefix``; returns how many were removed."""
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.debug("Invalidated %d cache entries with prefix %s", len(keys), prefix)
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()


# Global cache instance
cache_service = CacheService()
