from __future__ import annotations

from typing import Any, Hashable, Optional, Tuple

from .base import CachePlugin, cache_aliases


@cache_aliases("none", "off", "disabled", "no_cache", "null")
class NullCache(CachePlugin):
    """Null cache plugin that never stores anything.

    Brief:
      Disables HTTP caching while keeping the CachingSession in place; every
      bootstrap request then reaches the network and is never reported as
      cached.

    Example:
      cache:
        module: none
    """

    def __init__(self, **config: object) -> None:
        pass

    def get(self, key: Hashable) -> Any | None:
        return None

    def get_with_meta(
        self, key: Hashable
    ) -> Tuple[Any | None, Optional[float], Optional[int]]:
        return None, None, None

    def set(self, key: Hashable, ttl: int, value: Any) -> None:
        return None

    def delete(self, key: Hashable) -> None:
        return None

    def purge(self) -> int:
        return 0
