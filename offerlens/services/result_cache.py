"""
ResultCache - URL-keyed, time-boxed memoization of scored results.

- Keys are lowercased and trimmed URLs
- Entries expire TTL seconds after insertion (checked lazily on get)
- When full, the oldest-inserted entry is evicted (insertion order, not LRU)
- Only successful results are ever put here
- Payloads are deep-copied on put and get, so callers never share the
  cached instance
"""

import copy
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from ..core.config import Config

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    url: str
    payload: T
    inserted_at: float


def normalize_cache_key(url: str) -> str:
    return (url or "").strip().lower()


class ResultCache(Generic[T]):
    """Thread- and task-safe TTL cache with a size bound."""

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else Config.CACHE_TTL_SECONDS
        self.max_entries = max_entries if max_entries is not None else Config.CACHE_MAX_ENTRIES
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry[T]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: str) -> bool:
        return self.get(url) is not None

    def _expired(self, entry: CacheEntry[T], now: float) -> bool:
        return now - entry.inserted_at >= self.ttl_seconds

    def get(self, url: str) -> Optional[T]:
        """Return the cached payload, or None when absent or expired."""
        key = normalize_cache_key(url)
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._expired(entry, self._clock()):
            with self._lock:
                # Another task may have replaced it meanwhile
                if self._entries.get(key) is entry:
                    del self._entries[key]
            logger.debug(f"Cache entry expired: {key}")
            return None

        logger.debug(f"Cache hit: {key}")
        return copy.deepcopy(entry.payload)

    def put(self, url: str, payload: T) -> None:
        """Insert or replace an entry, evicting the oldest one if full."""
        key = normalize_cache_key(url)
        if not key:
            return

        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache full ({self.max_entries}), evicted oldest: {evicted}")

            self._entries[key] = CacheEntry(url=key, payload=copy.deepcopy(payload), inserted_at=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Result cache cleared")
