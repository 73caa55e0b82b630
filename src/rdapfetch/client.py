"""High-level RDAP client.

Brief:
  Client turns typed lookups (domain, autnum, ip, ip_network, entity) or a
  free-form object string into fetcher calls and decodes the returned RDAP
  JSON document. With no server list it bootstraps every query through the
  IANA registries; with servers configured it queries them directly.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Tuple

import requests

from rdapfetch.cache_plugins.none import NullCache
from rdapfetch.cache_plugins.registry import load_cache_plugin
from rdapfetch.config.config_schema import ClientConfig
from rdapfetch.errors import DocumentDecodeError
from rdapfetch.http_cache import CachingSession
from rdapfetch.query import (
    Autnum,
    Domain,
    Identifier,
    IPAddress,
    IPNetwork,
    from_query,
    identify,
    parse_autnum,
    parse_domain,
    parse_ip,
    parse_ip_network,
    QueryType,
)
from rdapfetch.transport import (
    DEFAULT_TIMEOUT_MS,
    DefaultFetcher,
    Fetcher,
    IANA_BOOTSTRAP,
    new_bootstrap_fetcher,
)

logger = logging.getLogger("rdapfetch.client")

Result = Tuple[Dict[str, Any], requests.Response]


def decode_document(response: requests.Response) -> Dict[str, Any]:
    """Brief: Parse an RDAP response body.

    Inputs:
      - response: Successful RDAP response.

    Outputs:
      - dict: Decoded JSON object.

    Raises:
      - DocumentDecodeError when the body is not a JSON object.
    """

    try:
        doc = response.json()
    except ValueError as exc:
        raise DocumentDecodeError(f"invalid RDAP response from {response.url}: {exc}") from exc
    if not isinstance(doc, dict):
        raise DocumentDecodeError(
            f"invalid RDAP response from {response.url}: not a JSON object"
        )
    return doc


class Client:
    """Brief: RDAP lookups over a Fetcher.

    Inputs:
      - uris: Candidate RDAP base URIs. Empty means bootstrap mode.
      - fetcher: Optional Fetcher; built from the other arguments when None.
      - http_client: requests.Session-compatible client for the built fetcher.
      - x_forwarded_for: Optional X-Forwarded-For value.
      - bootstrap_template: Registry URL template used in bootstrap mode.
      - timeout_ms: Per-request timeout.

    Outputs:
      - Client instance.

    Example:
      >>> client = Client(["https://rdap.registro.br"])
      >>> isinstance(client.fetcher, DefaultFetcher)
      True
    """

    def __init__(
        self,
        uris: Optional[Iterable[str]] = None,
        fetcher: Optional[Fetcher] = None,
        http_client: Any = None,
        x_forwarded_for: Optional[str] = None,
        bootstrap_template: str = IANA_BOOTSTRAP,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        self.uris = [str(u) for u in (uris or [])]
        if fetcher is None:
            if self.uris:
                fetcher = DefaultFetcher(http_client, x_forwarded_for, timeout_ms=timeout_ms)
            else:
                fetcher = new_bootstrap_fetcher(
                    http_client,
                    x_forwarded_for,
                    bootstrap_template,
                    timeout_ms=timeout_ms,
                )
        self.fetcher = fetcher

    def lookup(self, identifier: Identifier) -> Result:
        """Brief: Fetch and decode the document for a typed identifier.

        Inputs:
          - identifier: Domain, Autnum, IPAddress, IPNetwork or Entity.

        Outputs:
          - (document, response)
        """

        logger.debug(
            "Querying %s %s", identifier.query_type.value, identifier.query_value
        )
        resp = self.fetcher.fetch(
            list(self.uris), identifier.query_type, identifier.query_value
        )
        return decode_document(resp), resp

    def domain(self, fqdn: str) -> Result:
        return self.lookup(Domain(parse_domain(fqdn)))

    def autnum(self, asn: Any) -> Result:
        return self.lookup(Autnum(parse_autnum(asn)))

    def ip(self, address: Any) -> Result:
        return self.lookup(IPAddress(parse_ip(address)))

    def ip_network(self, cidr: Any) -> Result:
        return self.lookup(IPNetwork(parse_ip_network(cidr)))

    def entity(self, handle: str) -> Result:
        return self.lookup(from_query(QueryType.ENTITY, handle))

    def query(self, obj: str) -> Result:
        """Brief: Look up a free-form object, guessing its type.

        Inputs:
          - obj: AS number, IP address, CIDR network, domain or entity handle.

        Outputs:
          - (document, response)
        """

        return self.lookup(identify(obj))


def build_http_client(config: ClientConfig) -> CachingSession:
    """Brief: Build the cache-aware HTTP client described by config.

    Inputs:
      - config: Validated ClientConfig.

    Outputs:
      - CachingSession wrapping a requests.Session.
    """

    session = requests.Session()
    session.verify = bool(config.verify_tls)
    cache = NullCache() if config.cache is None else load_cache_plugin(config.cache)
    return CachingSession(session, cache, default_ttl=config.cache_ttl)


def new_client(config: Optional[ClientConfig] = None, http_client: Any = None) -> Client:
    """Brief: Build a Client from configuration.

    Inputs:
      - config: ClientConfig (defaults apply when None).
      - http_client: Optional prebuilt HTTP client (skips build_http_client).

    Outputs:
      - Client in direct mode when config.servers is set, else bootstrap mode.

    Raises:
      - ValueError when neither servers nor a bootstrap URL are configured.
    """

    cfg = config or ClientConfig()
    if not cfg.servers and not cfg.bootstrap:
        raise ValueError("either servers or bootstrap must be configured")
    client = http_client if http_client is not None else build_http_client(cfg)
    return Client(
        cfg.servers,
        http_client=client,
        x_forwarded_for=cfg.x_forwarded_for,
        bootstrap_template=cfg.bootstrap or IANA_BOOTSTRAP,
        timeout_ms=cfg.timeout_ms,
    )


__all__ = [
    "Client",
    "QueryType",
    "build_http_client",
    "decode_document",
    "new_client",
]
