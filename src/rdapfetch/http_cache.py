"""Cache-aware wrapper around requests.Session.

Brief:
  CachingSession answers repeated GET requests from a CachePlugin and tags
  those responses with ``X-From-Cache: 1`` so the bootstrap fetcher can tell
  a possibly stale registry from a fresh one. A request carrying
  ``Cache-Control: max-age=0`` (or ``no-cache``) skips the lookup and
  refreshes the stored copy.

Inputs:
  - session: requests.Session performing the real requests.
  - cache: CachePlugin storing response snapshots.

Outputs:
  - requests.Response objects (fresh or rebuilt from cache).
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple

import requests
from requests.structures import CaseInsensitiveDict

from rdapfetch.cache_plugins.base import CachePlugin
from rdapfetch.cache_plugins.in_memory_ttl import InMemoryTTLCache
from rdapfetch.transport import FROM_CACHE_HEADER

logger = logging.getLogger("rdapfetch.http_cache")

DEFAULT_TTL = 3600

_MAX_AGE = re.compile(r"max-age\s*=\s*(\d+)", re.IGNORECASE)


class CachedResponse(NamedTuple):
    """Snapshot of a response kept in the cache."""

    url: str
    status_code: int
    reason: str
    headers: Dict[str, str]
    content: bytes
    encoding: Optional[str]


def _header(headers: Optional[Mapping[str, str]], name: str) -> str:
    for k, v in (headers or {}).items():
        if str(k).lower() == name.lower():
            return str(v)
    return ""


def _directives(value: str) -> set:
    return {d.strip().lower() for d in value.split(",") if d.strip()}


def wants_revalidation(headers: Optional[Mapping[str, str]]) -> bool:
    """Brief: Whether request headers ask to bypass cached copies.

    Inputs:
      - headers: Request headers.

    Outputs:
      - bool: True for Cache-Control max-age=0 or no-cache.

    Example:
      >>> wants_revalidation({"Cache-Control": "max-age=0"})
      True
      >>> wants_revalidation({"Accept": "application/json"})
      False
    """

    cc = _header(headers, "Cache-Control")
    if not cc:
        return False
    directives = _directives(cc)
    if "no-cache" in directives:
        return True
    m = _MAX_AGE.search(cc)
    return bool(m and int(m.group(1)) == 0)


def response_ttl(response: requests.Response, default_ttl: int) -> int:
    """Brief: Cache lifetime for a response.

    Inputs:
      - response: Fresh HTTP response.
      - default_ttl: Seconds used when the response has no max-age.

    Outputs:
      - int: TTL seconds; 0 means do not store.
    """

    cc = str(response.headers.get("Cache-Control", ""))
    directives = _directives(cc)
    if "no-store" in directives or "private" in directives:
        return 0
    m = _MAX_AGE.search(cc)
    if m:
        return int(m.group(1))
    return max(0, int(default_ttl))


def _snapshot(response: requests.Response) -> CachedResponse:
    return CachedResponse(
        url=str(response.url),
        status_code=int(response.status_code),
        reason=str(response.reason or ""),
        headers=dict(response.headers),
        content=response.content,
        encoding=response.encoding,
    )


def _rebuild(snapshot: CachedResponse, age: Optional[int] = None) -> requests.Response:
    resp = requests.Response()
    resp.url = snapshot.url
    resp.status_code = snapshot.status_code
    resp.reason = snapshot.reason
    resp.headers = CaseInsensitiveDict(snapshot.headers)
    resp.headers[FROM_CACHE_HEADER] = "1"
    if age is not None:
        resp.headers["Age"] = str(age)
    resp.encoding = snapshot.encoding
    resp._content = snapshot.content
    return resp


class CachingSession:
    """Brief: requests.Session-compatible GET client with a response cache.

    Inputs:
      - session: Optional requests.Session (a new one by default).
      - cache: Optional CachePlugin (InMemoryTTLCache by default).
      - default_ttl: Seconds to keep responses without Cache-Control max-age.

    Outputs:
      - CachingSession instance.

    Notes:
      - Only 200 responses to GET are stored; keys are (url, Accept).
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        cache: Optional[CachePlugin] = None,
        default_ttl: int = DEFAULT_TTL,
    ) -> None:
        self.session = session if session is not None else requests.Session()
        self.cache = cache if cache is not None else InMemoryTTLCache()
        self.default_ttl = int(default_ttl)

    @staticmethod
    def cache_key(url: str, headers: Optional[Mapping[str, str]]) -> Tuple[str, str]:
        return (str(url), _header(headers, "Accept"))

    def get(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Any = None,
        **kwargs: Any,
    ) -> requests.Response:
        """Brief: GET url, answering from cache when allowed.

        Inputs:
          - url: Request URL.
          - headers: Request headers.
          - timeout: Passed to requests.
          - **kwargs: Other requests.Session.get keyword arguments.

        Outputs:
          - requests.Response; cached responses carry X-From-Cache: 1.
        """

        key = self.cache_key(url, headers)
        if not wants_revalidation(headers):
            snapshot, remaining, ttl = self.cache.get_with_meta(key)
            if snapshot is not None:
                logger.debug("Cache hit for %s", url)
                age = None
                if remaining is not None and ttl is not None:
                    age = max(0, int(ttl - remaining))
                return _rebuild(snapshot, age)
        else:
            logger.debug("Revalidating %s", url)

        resp = self.session.get(url, headers=dict(headers or {}), timeout=timeout, **kwargs)
        if resp.status_code == 200:
            ttl = response_ttl(resp, self.default_ttl)
            if ttl > 0:
                self.cache.set(key, ttl, _snapshot(resp))
            else:
                self.cache.delete(key)
        return resp

    def purge(self) -> int:
        """Brief: Drop expired entries; returns how many were removed."""

        return self.cache.purge()

    def close(self) -> None:
        self.session.close()
