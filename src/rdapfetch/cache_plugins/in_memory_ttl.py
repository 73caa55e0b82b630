from __future__ import annotations

import threading
import time
from typing import Any, Hashable, Optional, Tuple

from cachetools import TLRUCache

from .base import CachePlugin, cache_aliases


def _entry_expiry(_key: Hashable, value: Tuple[float, int, Any], _now: float) -> float:
    return value[0]


@cache_aliases("in_memory_ttl", "memory", "ttl")
class InMemoryTTLCache(CachePlugin):
    """In-memory TTL cache plugin.

    Brief:
      Default CachePlugin implementation backed by a cachetools TLRUCache so
      each entry expires after its own TTL.

    Inputs:
      - **config: Optional implementation-specific config.
          - maxsize: Positive int upper bound on stored entries (default 256).
          - min_cache_ttl: Non-negative int seconds floor applied to TTLs.

    Outputs:
      - InMemoryTTLCache instance.
    """

    def __init__(self, **config: object) -> None:
        """Brief: Initialize an in-memory TTL cache.

        Inputs:
          - **config:
              - maxsize: Positive int capacity.
              - min_cache_ttl: Non-negative int seconds cache TTL floor.

        Outputs:
          - None.
        """

        self.maxsize = max(1, int(config.get("maxsize", 256) or 256))
        self.min_cache_ttl = max(0, int(config.get("min_cache_ttl", 0) or 0))
        self._timer = time.monotonic
        self._cache: TLRUCache = TLRUCache(
            maxsize=self.maxsize, ttu=_entry_expiry, timer=self._timer
        )
        self._lock = threading.RLock()

    def get(self, key: Hashable) -> Any | None:
        """Brief: Return cached value when present.

        Inputs:
          - key: Hashable cache key.

        Outputs:
          - Any | None: Cached value, or None.
        """

        return self.get_with_meta(key)[0]

    def get_with_meta(
        self, key: Hashable
    ) -> Tuple[Any | None, Optional[float], Optional[int]]:
        """Brief: Return cached value plus seconds_remaining and original TTL.

        Inputs:
          - key: Hashable cache key.

        Outputs:
          - (value_or_None, seconds_remaining_or_None, original_ttl_or_None)
        """

        with self._lock:
            entry = self._cache.get(key)
        if entry is None:
            return None, None, None
        expiry, ttl, value = entry
        return value, max(0.0, expiry - self._timer()), ttl

    def set(self, key: Hashable, ttl: int, value: Any) -> None:
        """Brief: Store a cached value.

        Inputs:
          - key: Hashable cache key.
          - ttl: int time-to-live seconds (raised to min_cache_ttl).
          - value: cached payload.

        Outputs:
          - None.
        """

        effective = max(int(ttl), self.min_cache_ttl)
        if effective <= 0:
            return
        with self._lock:
            self._cache[key] = (self._timer() + effective, effective, value)

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def purge(self) -> int:
        """Brief: Purge expired items from the cache.

        Inputs:
          - None.

        Outputs:
          - int: Number of removed entries.
        """

        with self._lock:
            return len(self._cache.expire())
