"""Cache plugins.

Brief: Defines the CachePlugin interface used by the HTTP cache layer and the
default implementations.

Inputs:
  - None

Outputs:
  - None
"""

from __future__ import annotations

from .base import CachePlugin, cache_aliases
from .in_memory_ttl import InMemoryTTLCache
from .none import NullCache
from .registry import load_cache_plugin

__all__ = [
    "CachePlugin",
    "InMemoryTTLCache",
    "NullCache",
    "cache_aliases",
    "load_cache_plugin",
]
