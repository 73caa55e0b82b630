"""Cache plugin lookup by alias or dotted path.

Brief:
  Response cache backends live as CachePlugin subclasses in this package.
  Each is reachable by the aliases set with @cache_aliases and by a default
  alias derived from its class name (InMemoryTTLCache -> in_memory_ttl).
  Third-party backends are referenced by dotted import path instead.
"""

from __future__ import annotations

import difflib
import importlib
import inspect
import pkgutil
import re
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional, Type

from .base import CachePlugin

DEFAULT_CACHE = "in_memory_ttl"
DISABLED_CACHE = "none"

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def alias_key(alias: str) -> str:
    """Brief: Canonical form of an alias (case and '-' vs '_' insensitive).

    Example:
      >>> alias_key(" In-Memory-TTL ")
      'in_memory_ttl'
    """

    return alias.strip().lower().replace("-", "_")


def class_alias(cls: Type[CachePlugin]) -> str:
    """Brief: Default alias for a plugin class.

    Inputs:
      - cls: CachePlugin subclass.

    Outputs:
      - str: snake_case class name without a trailing Cache/CachePlugin.

    Example:
      >>> from rdapfetch.cache_plugins.in_memory_ttl import InMemoryTTLCache
      >>> class_alias(InMemoryTTLCache)
      'in_memory_ttl'
    """

    name = re.sub(r"(CachePlugin|Cache)$", "", cls.__name__) or cls.__name__
    return _WORD_BOUNDARY.sub("_", name).lower()


@lru_cache(maxsize=4)
def discover_cache_plugins(
    package_name: str = "rdapfetch.cache_plugins",
) -> Dict[str, Type[CachePlugin]]:
    """Brief: Map every alias found in package_name to its plugin class.

    Inputs:
      - package_name: Package whose submodules are scanned.

    Outputs:
      - dict: alias_key -> CachePlugin subclass.

    Raises:
      - ValueError when two classes claim the same alias.
    """

    pkg = importlib.import_module(package_name)
    found: Dict[str, Type[CachePlugin]] = {}

    for modinfo in pkgutil.iter_modules(pkg.__path__, pkg.__name__ + "."):
        module = importlib.import_module(modinfo.name)
        for _, cls in inspect.getmembers(module, inspect.isclass):
            if cls is CachePlugin or not issubclass(cls, CachePlugin):
                continue
            names = {alias_key(a) for a in getattr(cls, "aliases", ()) or ()}
            names.add(class_alias(cls))
            for name in names:
                owner = found.setdefault(name, cls)
                if owner is not cls:
                    raise ValueError(
                        f"cache alias {name!r} is claimed by both "
                        f"{owner.__module__}.{owner.__qualname__} and "
                        f"{cls.__module__}.{cls.__qualname__}"
                    )

    return found


def get_cache_plugin_class(identifier: str) -> Type[CachePlugin]:
    """Brief: Resolve an alias or dotted path to a CachePlugin subclass.

    Inputs:
      - identifier: 'memory', 'none', 'package.module.ClassName', ...

    Outputs:
      - CachePlugin subclass.

    Raises:
      - ValueError for unknown aliases (with close-match suggestions) and for
        dotted paths that do not import or name something else.
    """

    ident = str(identifier).strip()
    if "." in ident:
        modname, _, attr = ident.rpartition(".")
        try:
            cls = getattr(importlib.import_module(modname), attr)
        except (ImportError, AttributeError) as exc:
            raise ValueError(f"cannot load cache plugin {ident}: {exc}") from exc
        if not (inspect.isclass(cls) and issubclass(cls, CachePlugin)):
            raise ValueError(f"{ident} is not a CachePlugin subclass")
        return cls

    plugins = discover_cache_plugins()
    key = alias_key(ident)
    if key in plugins:
        return plugins[key]
    hints = difflib.get_close_matches(key, sorted(plugins), n=3)
    raise ValueError(
        f"unknown cache plugin {identifier!r}; known: {', '.join(sorted(plugins))}"
        + (f"; did you mean {', '.join(hints)}?" if hints else "")
    )


def load_cache_plugin(cfg: Optional[object]) -> CachePlugin:
    """Brief: Instantiate the cache described by a config value.

    Inputs:
      - cfg:
        - None: the default in-memory TTL cache.
        - str: alias or dotted path, built without options.
        - mapping: {"module": <alias|path|null>, "config": {...}}; a null
          module disables caching, a missing one selects the default.

    Outputs:
      - CachePlugin instance.

    Raises:
      - ValueError for an unusable cache setting.

    Example:
      cache:
        module: memory
        config: {maxsize: 512, min_cache_ttl: 60}
    """

    if cfg is None:
        return get_cache_plugin_class(DEFAULT_CACHE)()
    if isinstance(cfg, str):
        return get_cache_plugin_class(cfg)()
    if not isinstance(cfg, Mapping):
        raise ValueError("cache config must be a mapping, string, or null")

    if "module" in cfg and cfg["module"] is None:
        name = DISABLED_CACHE
    else:
        name = str(cfg.get("module") or "").strip() or DEFAULT_CACHE
    options: Any = cfg.get("config")
    if not isinstance(options, Mapping):
        options = {}
    return get_cache_plugin_class(name)(**dict(options))
