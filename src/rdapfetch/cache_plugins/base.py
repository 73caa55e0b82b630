from __future__ import annotations

from typing import Any, Hashable, Optional, Tuple


def cache_aliases(*aliases: str):
    """Brief: Class decorator naming the config aliases of a cache plugin.

    Example:
      >>> @cache_aliases('memory', 'ttl')
      ... class Demo(CachePlugin):
      ...     pass
      >>> Demo.aliases
      ('memory', 'ttl')
    """

    def _apply(cls: type) -> type:
        cls.aliases = tuple(aliases)
        return cls

    return _apply


class CachePlugin:
    """Storage interface behind rdapfetch.http_cache.CachingSession.

    Brief:
      Keys are (url, Accept) tuples and values are CachedResponse snapshots,
      but implementations should treat both as opaque. Every method must be
      overridden.
    """

    aliases: tuple[str, ...] = ()

    def _missing(self, method: str) -> NotImplementedError:
        return NotImplementedError(
            f"{type(self).__name__}.{method}() is not implemented"
        )

    def get(self, key: Hashable) -> Any | None:
        """Brief: Fresh value stored under key, or None."""

        raise self._missing("get")

    def get_with_meta(
        self, key: Hashable
    ) -> Tuple[Any | None, Optional[float], Optional[int]]:
        """Brief: Like get(), plus freshness data used for the Age header.

        Outputs:
          - (value, seconds left before expiry, TTL the value was stored with);
            all three are None on a miss.
        """

        raise self._missing("get_with_meta")

    def set(self, key: Hashable, ttl: int, value: Any) -> None:
        """Brief: Store value for ttl seconds, replacing any previous entry."""

        raise self._missing("set")

    def delete(self, key: Hashable) -> None:
        """Brief: Forget key; unknown keys are ignored."""

        raise self._missing("delete")

    def purge(self) -> int:
        """Brief: Evict expired entries and return how many went."""

        raise self._missing("purge")
