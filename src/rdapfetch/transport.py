"""RDAP fetchers: direct multi-server fetch and bootstrap resolution.

Brief:
  A Fetcher retrieves the RDAP document for (query type, query value) by
  trying a list of candidate base URIs in order. Two implementations are
  composed at construction time:

    - DefaultFetcher: HTTP GET against each candidate with sequential
      fallback and response classification.
    - BootstrapFetcher: wraps another Fetcher, first resolving the candidate
      URIs from the IANA bootstrap registry for the query (RFC 7484).

  new_bootstrap_fetcher() chains them; direct-mode callers use DefaultFetcher
  alone with their own server list.
"""

from __future__ import annotations

import http
import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

import requests

from rdapfetch.bootstrap.matchers import (
    match_as,
    match_domain,
    match_ip,
    match_ip_network,
)
from rdapfetch.bootstrap.registry import (
    ServiceRegistry,
    decode_registry,
    prioritize_https,
)
from rdapfetch.delegation import lookup_ns
from rdapfetch.errors import (
    BootstrapError,
    ErrorPayloadDecodeError,
    InvalidQueryError,
    NoCandidatesError,
    NoMatchError,
    NotFoundError,
    ProtocolError,
    RDAPError,
    TransportError,
    UnexpectedResponseError,
)
from rdapfetch.query import (
    Autnum,
    BootstrapSpace,
    Domain,
    Identifier,
    IPAddress,
    IPNetwork,
    QueryType,
    bootstrap_space,
    from_query,
)

logger = logging.getLogger("rdapfetch.transport")

RDAP_MEDIA_TYPE = "application/rdap+json"
BOOTSTRAP_MEDIA_TYPE = "application/json"
IANA_BOOTSTRAP = "https://data.iana.org/rdap/{}.json"
FROM_CACHE_HEADER = "X-From-Cache"
DEFAULT_TIMEOUT_MS = 5000

CacheDetector = Callable[[requests.Response], bool]


def from_cache_header(response: requests.Response) -> bool:
    """Brief: Default cache detector.

    Inputs:
      - response: Bootstrap HTTP response.

    Outputs:
      - bool: True when the response carries X-From-Cache: 1 (set by
        rdapfetch.http_cache.CachingSession) or a truthy from_cache attribute.
    """

    if str(response.headers.get(FROM_CACHE_HEADER, "")).strip() == "1":
        return True
    return getattr(response, "from_cache", False) is True


def _media_type(content_type: Optional[str]) -> str:
    return str(content_type or "").split(";", 1)[0].strip().lower()


def _reason(response: requests.Response) -> str:
    reason = getattr(response, "reason", None)
    if reason:
        return str(reason)
    try:
        return http.HTTPStatus(response.status_code).phrase
    except ValueError:
        return ""


def _error_from_payload(response: requests.Response) -> RDAPError:
    """Brief: Decode an RDAP error body (RFC 7483 section 6).

    Inputs:
      - response: Non-2xx RDAP response.

    Outputs:
      - ProtocolError, or ErrorPayloadDecodeError when the body is unusable.
    """

    try:
        payload = response.json()
    except ValueError as exc:
        err = ErrorPayloadDecodeError(
            f"invalid error response from {response.url}: {exc}"
        )
        err.__cause__ = exc
        return err
    if not isinstance(payload, dict):
        return ErrorPayloadDecodeError(
            f"invalid error response from {response.url}: not a JSON object"
        )

    code = payload.get("errorCode", response.status_code)
    try:
        error_code: Optional[int] = int(code)
    except (TypeError, ValueError):
        error_code = response.status_code
    description = payload.get("description") or []
    if isinstance(description, str):
        description = [description]
    notices = payload.get("notices") or []
    return ProtocolError(
        error_code,
        title=str(payload.get("title") or ""),
        description=[str(d) for d in description],
        notices=notices if isinstance(notices, list) else [],
        lang=payload.get("lang"),
    )


class Fetcher:
    """Brief: Capability to fetch an RDAP document from candidate servers.

    Implementations keep only configuration between calls and may be invoked
    repeatedly.
    """

    def fetch(
        self, uris: Sequence[str], query_type: QueryType, query_value: str
    ) -> requests.Response:
        """Brief: Fetch the document for a query.

        Inputs:
          - uris: Candidate RDAP base URIs, tried in order (may be empty).
          - query_type: QueryType of the lookup.
          - query_value: Query value as sent in the request path.

        Outputs:
          - requests.Response: Successful RDAP response.

        Raises:
          - RDAPError subclasses on failure.
        """

        raise NotImplementedError("Fetcher.fetch() must be implemented by a subclass")


class FetcherFunc(Fetcher):
    """Adapter exposing a plain callable as a Fetcher."""

    def __init__(
        self, func: Callable[[Sequence[str], QueryType, str], requests.Response]
    ) -> None:
        self._func = func

    def fetch(
        self, uris: Sequence[str], query_type: QueryType, query_value: str
    ) -> requests.Response:
        return self._func(uris, query_type, query_value)


Decorator = Callable[[Fetcher], Fetcher]


def decorate(fetcher: Fetcher, *decorators: Decorator) -> Fetcher:
    """Brief: Wrap fetcher with each decorator in order.

    Inputs:
      - fetcher: Innermost Fetcher.
      - *decorators: Callables taking and returning a Fetcher.

    Outputs:
      - Fetcher: Outermost wrapper (the last decorator applied).
    """

    for wrap in decorators:
        fetcher = wrap(fetcher)
    return fetcher


class DefaultFetcher(Fetcher):
    """Brief: Fetch directly from the given candidates with sequential fallback.

    Inputs:
      - http_client: requests.Session-compatible object providing
        get(url, headers=..., timeout=...). Defaults to a new Session.
      - x_forwarded_for: Optional client address sent as X-Forwarded-For.
      - timeout_ms: Per-request timeout handed to the HTTP client.

    Outputs:
      - DefaultFetcher instance.
    """

    def __init__(
        self,
        http_client: Any = None,
        x_forwarded_for: Optional[str] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        self.http_client = http_client if http_client is not None else requests.Session()
        self.x_forwarded_for = x_forwarded_for or None
        self.timeout = max(1, int(timeout_ms)) / 1000.0

    def _headers(self) -> dict:
        headers = {"Accept": RDAP_MEDIA_TYPE}
        if self.x_forwarded_for:
            headers["X-Forwarded-For"] = self.x_forwarded_for
        return headers

    def fetch(
        self, uris: Sequence[str], query_type: QueryType, query_value: str
    ) -> requests.Response:
        """Brief: Try each candidate until one returns an RDAP document.

        Inputs:
          - uris: Candidate base URIs.
          - query_type: QueryType of the lookup.
          - query_value: Query value.

        Outputs:
          - requests.Response: First 2xx response with an RDAP media type.

        Notes:
          - 404, transport failures, non-RDAP content types and RDAP error
            responses all move on to the next candidate. When every candidate
            fails the error recorded for the last one is raised.
        """

        qtype = QueryType(query_type)
        if not uris:
            raise NoCandidatesError(query_value)

        last_error: Optional[RDAPError] = None
        for base in uris:
            uri = f"{str(base).rstrip('/')}/{qtype.path}/{query_value}"
            logger.debug("Fetching %s", uri)

            try:
                resp = self.http_client.get(
                    uri, headers=self._headers(), timeout=self.timeout
                )
            except requests.RequestException as exc:
                logger.debug("Request to %s failed: %s", uri, exc)
                last_error = TransportError(uri, exc)
                last_error.__cause__ = exc
                continue

            if resp.status_code == 404:
                logger.debug("%s returned 404, trying next server", uri)
                last_error = NotFoundError(uri)
                continue

            content_type = resp.headers.get("Content-Type")
            if _media_type(content_type) != RDAP_MEDIA_TYPE:
                logger.debug(
                    "%s returned %d with content type %r, trying next server",
                    uri,
                    resp.status_code,
                    content_type,
                )
                last_error = UnexpectedResponseError(
                    resp.status_code, _reason(resp), content_type
                )
                continue

            if not 200 <= resp.status_code < 300:
                last_error = _error_from_payload(resp)
                logger.debug("%s returned error: %s", uri, last_error)
                continue

            return resp

        logger.warning(
            "All RDAP servers failed for %s %s. Last error: %s",
            qtype.value,
            query_value,
            last_error,
        )
        if last_error is None:
            raise NoCandidatesError(query_value)
        raise last_error


class BootstrapFetcher(Fetcher):
    """Brief: Resolve candidate servers from the bootstrap registry, then fetch.

    Inputs:
      - fetcher: Wrapped Fetcher receiving the resolved candidates.
      - http_client: requests.Session-compatible client for registry requests
        (usually the same, cache-aware client as the wrapped fetcher).
      - bootstrap_template: Registry URL; '{}' is replaced by the registry
        name (dns, asn, ipv4, ipv6). Without '{}' the name is appended as a
        path segment.
      - cache_detector: Predicate telling whether a registry response was
        served from cache.
      - ns_lookup: Callable returning the NS targets of a domain name.
      - timeout_ms: Per-request timeout for registry requests.

    Outputs:
      - BootstrapFetcher instance.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        http_client: Any = None,
        bootstrap_template: str = IANA_BOOTSTRAP,
        cache_detector: Optional[CacheDetector] = None,
        ns_lookup: Optional[Callable[[str], Sequence[str]]] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        self.fetcher = fetcher
        self.http_client = http_client if http_client is not None else requests.Session()
        self.bootstrap_template = bootstrap_template or IANA_BOOTSTRAP
        self.cache_detector = cache_detector or from_cache_header
        self.ns_lookup = ns_lookup or lookup_ns
        self.timeout = max(1, int(timeout_ms)) / 1000.0

    def registry_uri(self, space: BootstrapSpace) -> str:
        """Brief: Registry URL for a bootstrap space.

        Example:
          >>> BootstrapFetcher(None, object()).registry_uri(BootstrapSpace.ASN)
          'https://data.iana.org/rdap/asn.json'
        """

        if "{}" in self.bootstrap_template:
            return self.bootstrap_template.format(space.value)
        return f"{self.bootstrap_template.rstrip('/')}/{space.value}"

    def fetch_registry(
        self, space: BootstrapSpace, reload: bool = False
    ) -> Tuple[ServiceRegistry, bool]:
        """Brief: Download and decode the registry for a bootstrap space.

        Inputs:
          - space: Registry to fetch.
          - reload: When True, send Cache-Control: max-age=0 so caches
            revalidate instead of answering from storage.

        Outputs:
          - (registry, cached): cached tells whether the cache detector saw a
            cached response.

        Raises:
          - TransportError, BootstrapError, RegistryDecodeError,
            IncompatibleVersionError.
        """

        uri = self.registry_uri(space)
        headers = {"Accept": BOOTSTRAP_MEDIA_TYPE}
        if reload:
            headers["Cache-Control"] = "max-age=0"

        logger.debug("Fetching bootstrap registry %s (reload=%s)", uri, reload)
        try:
            resp = self.http_client.get(uri, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(uri, exc) from exc

        cached = bool(self.cache_detector(resp))
        if resp.status_code not in (200, 304):
            raise BootstrapError(
                f"unexpected status code {resp.status_code} {_reason(resp)}"
            )
        return decode_registry(resp.content), cached

    def resolve(self, identifier: Identifier) -> List[str]:
        """Brief: Candidate URIs for an identifier, https first.

        Inputs:
          - identifier: Domain, Autnum, IPAddress or IPNetwork.

        Outputs:
          - list[str]: Prioritized candidate URIs.

        Raises:
          - NoMatchError when no service covers the identifier, plus the
            errors of fetch_registry() and the matchers.
          - InvalidQueryError for identifiers outside every bootstrap space
            (entities).
        """

        space = bootstrap_space(identifier)
        if space is None:
            raise InvalidQueryError(identifier.query_value, "no bootstrap registry")

        registry, cached = self.fetch_registry(space)
        uris = self._match(registry, identifier)

        if not uris and cached and isinstance(identifier, Domain):
            nameservers = self.ns_lookup(identifier.name)
            if nameservers:
                logger.info(
                    "%s is delegated but missing from cached bootstrap data; reloading %s",
                    identifier.name,
                    self.registry_uri(space),
                )
                registry, _cached = self.fetch_registry(space, reload=True)
                uris = match_domain(registry, identifier.name)

        if not uris:
            raise NoMatchError(identifier.query_value)

        return prioritize_https(uris)

    def _match(self, registry: ServiceRegistry, identifier: Identifier) -> List[str]:
        if isinstance(identifier, Domain):
            return match_domain(registry, identifier.name)
        if isinstance(identifier, Autnum):
            return match_as(registry, identifier.number)
        if isinstance(identifier, IPAddress):
            return match_ip(registry, identifier.address)
        if isinstance(identifier, IPNetwork):
            return match_ip_network(registry, identifier.network)
        return []

    def fetch(
        self, uris: Sequence[str], query_type: QueryType, query_value: str
    ) -> requests.Response:
        """Brief: Bootstrap the candidate list, then delegate.

        Inputs:
          - uris: Caller candidates; only used for queries without a
            bootstrap registry (entities), which are forwarded verbatim.
          - query_type: QueryType of the lookup.
          - query_value: Query value.

        Outputs:
          - requests.Response from the wrapped fetcher.
        """

        qtype = QueryType(query_type)
        if qtype is QueryType.ENTITY:
            return self.fetcher.fetch(uris, qtype, query_value)

        identifier = from_query(qtype, query_value)
        resolved = self.resolve(identifier)
        logger.debug("Bootstrapped %s %s to %s", qtype.value, query_value, resolved)
        return self.fetcher.fetch(resolved, qtype, identifier.query_value)


def bootstrap(
    bootstrap_template: str = IANA_BOOTSTRAP,
    http_client: Any = None,
    cache_detector: Optional[CacheDetector] = None,
    ns_lookup: Optional[Callable[[str], Sequence[str]]] = None,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> Decorator:
    """Brief: Decorator factory wrapping a Fetcher in a BootstrapFetcher."""

    def _wrap(fetcher: Fetcher) -> Fetcher:
        return BootstrapFetcher(
            fetcher,
            http_client=http_client,
            bootstrap_template=bootstrap_template,
            cache_detector=cache_detector,
            ns_lookup=ns_lookup,
            timeout_ms=timeout_ms,
        )

    return _wrap


def new_bootstrap_fetcher(
    http_client: Any = None,
    x_forwarded_for: Optional[str] = None,
    bootstrap_template: str = IANA_BOOTSTRAP,
    cache_detector: Optional[CacheDetector] = None,
    ns_lookup: Optional[Callable[[str], Sequence[str]]] = None,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> Fetcher:
    """Brief: Build DefaultFetcher wrapped by bootstrap resolution.

    Inputs:
      - http_client: Shared HTTP client for registry and RDAP requests.
      - x_forwarded_for: Optional X-Forwarded-For value for RDAP requests.
      - bootstrap_template: Registry URL template.
      - cache_detector: Optional cache detector (default: X-From-Cache).
      - ns_lookup: Optional NS lookup callable (default: dnspython).
      - timeout_ms: Per-request timeout.

    Outputs:
      - Fetcher ready for fetch([], query_type, query_value).
    """

    client = http_client if http_client is not None else requests.Session()
    return decorate(
        DefaultFetcher(client, x_forwarded_for, timeout_ms=timeout_ms),
        bootstrap(
            bootstrap_template,
            client,
            cache_detector=cache_detector,
            ns_lookup=ns_lookup,
            timeout_ms=timeout_ms,
        ),
    )
