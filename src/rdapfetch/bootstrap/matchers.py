"""Bootstrap registry matchers.

Brief:
  Pure functions selecting the candidate URIs of the most specific registry
  service for an identifier (RFC 7484 sections 4 and 5). Every matcher
  returns a fresh list (empty when nothing matches) so callers may reorder it
  without touching the registry.

Notes:
  - match_ip() and match_ip_network() intentionally use different rules.
    match_ip_network() picks the longest-prefix entry enclosing the whole
    query network, while match_ip() returns the first entry containing the
    address without comparing specificity.
  - Malformed AS ranges and CIDR entries raise MatchError instead of being
    skipped, so a broken registry is never mistaken for a missing delegation.
"""

from __future__ import annotations

import ipaddress
import re
from typing import List, Optional, Union

import dns.exception
import dns.name

from rdapfetch.bootstrap.registry import ServiceRegistry
from rdapfetch.errors import InvalidQueryError, MatchError

IPAddressT = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetworkT = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

_UINT32_MAX = 2**32 - 1
_DIGITS = re.compile(r"[0-9]+")


def normalize_domain(fqdn: str) -> str:
    """Brief: Lower-case and IDNA-encode a domain name for label matching.

    Inputs:
      - fqdn: Domain name, possibly with Unicode labels or a trailing dot.

    Outputs:
      - str: ASCII-compatible, lower-cased name without trailing dot.

    Example:
      >>> normalize_domain("Exemplo.COM.BR.")
      'exemplo.com.br'
    """

    text = str(fqdn).strip().rstrip(".")
    if not text:
        raise InvalidQueryError(fqdn, "empty domain name")
    try:
        name = dns.name.from_unicode(text)
    except (dns.exception.DNSException, UnicodeError) as exc:
        raise InvalidQueryError(fqdn, str(exc)) from exc
    return name.to_text(omit_final_dot=True).lower()


def match_domain(registry: ServiceRegistry, fqdn: str) -> List[str]:
    """Brief: Label-wise longest suffix match of a domain name.

    Inputs:
      - registry: Decoded DNS bootstrap registry.
      - fqdn: Domain name to match; normalized with normalize_domain().

    Outputs:
      - list[str]: URIs of the service owning the entry with the most
        labels among all entries that are a suffix of fqdn, or [].
    """

    fqdn_labels = normalize_domain(fqdn).split(".")
    uris: List[str] = []
    longest = 0

    for service in registry.services:
        for entry in service.entries:
            entry_labels = entry.split(".")
            if len(fqdn_labels) < len(entry_labels):
                continue

            excerpt = fqdn_labels[len(fqdn_labels) - len(entry_labels) :]
            matched = True
            for i in range(len(entry_labels) - 1, -1, -1):
                if excerpt[i] != entry_labels[i]:
                    matched = False
                    break
            if not matched:
                continue

            if len(entry_labels) > longest:
                longest = len(entry_labels)
                uris = list(service.uris)

    return uris


def _parse_uint32(text: str, entry: str) -> int:
    if not _DIGITS.fullmatch(text):
        raise MatchError(f"invalid AS number {text!r} in registry entry {entry!r}")
    value = int(text)
    if value > _UINT32_MAX:
        raise MatchError(f"AS number {text} out of range in registry entry {entry!r}")
    return value


def match_as(registry: ServiceRegistry, asn: int) -> List[str]:
    """Brief: Find the narrowest AS range containing asn.

    Inputs:
      - registry: Decoded ASN bootstrap registry.
      - asn: Autonomous system number.

    Outputs:
      - list[str]: URIs of the service with the smallest end-begin span
        containing asn (first seen on equal spans), or [].

    Example:
      >>> reg = ServiceRegistry(version="1.0", services=[
      ...     [["100-200"], ["https://wide"]], [["150-160"], ["https://narrow"]]])
      >>> match_as(reg, 155)
      ['https://narrow']
    """

    uris: List[str] = []
    size: Optional[int] = None

    for service in registry.services:
        for entry in service.entries:
            parts = entry.split("-")
            if len(parts) != 2:
                raise MatchError(f"invalid AS range in registry entry {entry!r}")
            begin = _parse_uint32(parts[0], entry)
            end = _parse_uint32(parts[1], entry)

            if begin <= asn <= end:
                diff = end - begin
                if size is None or diff < size:
                    size = diff
                    uris = list(service.uris)

    return uris


def _parse_cidr(entry: str) -> IPNetworkT:
    if "/" not in entry:
        raise MatchError(f"invalid CIDR address: {entry}")
    try:
        return ipaddress.ip_network(entry.strip(), strict=False)
    except ValueError as exc:
        raise MatchError(f"invalid CIDR address: {entry}") from exc


def match_ip_network(registry: ServiceRegistry, network: IPNetworkT) -> List[str]:
    """Brief: Find the most specific entry enclosing a whole network.

    Inputs:
      - registry: Decoded IPv4 or IPv6 bootstrap registry.
      - network: Query network.

    Outputs:
      - list[str]: URIs of the longest-prefix entry containing both the first
        and last address of network (first seen on ties), or [].
    """

    uris: List[str] = []
    size = -1
    first = network.network_address
    last = network.broadcast_address

    for service in registry.services:
        for entry in service.entries:
            ipnet = _parse_cidr(entry)
            if ipnet.version != network.version:
                continue
            if first in ipnet and last in ipnet and ipnet.prefixlen > size:
                size = ipnet.prefixlen
                uris = list(service.uris)

    return uris


def match_ip(registry: ServiceRegistry, address: IPAddressT) -> List[str]:
    """Brief: Return the URIs of the first entry containing address.

    Inputs:
      - registry: Decoded IPv4 or IPv6 bootstrap registry.
      - address: Query address.

    Outputs:
      - list[str]: URIs of the first containing entry, or [].

    Notes:
      - First sufficient match wins; unlike match_ip_network() a later, more
        specific entry does not override an earlier one.
    """

    for service in registry.services:
        for entry in service.entries:
            ipnet = _parse_cidr(entry)
            if ipnet.version == address.version and address in ipnet:
                return list(service.uris)

    return []
