"""Query types and typed RDAP identifiers.

Brief:
  An RDAP query is a (query type, query value) pair. Identifiers are a closed
  set of frozen dataclasses (Domain, Autnum, IPAddress, IPNetwork, Entity);
  identify() guesses the kind of a free-form object string the way the
  command-line client does, and from_query() parses a value for a known type.
"""

from __future__ import annotations

import enum
import ipaddress
import re
from dataclasses import dataclass
from typing import Optional, Union

from rdapfetch.bootstrap.matchers import normalize_domain
from rdapfetch.errors import InvalidQueryError


class QueryType(str, enum.Enum):
    """RDAP query types understood by the fetchers."""

    DOMAIN = "domain"
    AUTNUM = "autnum"
    IP = "ip"
    IP_NETWORK = "ipnetwork"
    ENTITY = "entity"

    @property
    def path(self) -> str:
        """Brief: RDAP path segment for this type (RFC 7482 section 3.1).

        Outputs:
          - str: 'ip' for both address and network lookups, else the value.
        """

        if self is QueryType.IP_NETWORK:
            return "ip"
        return self.value


class BootstrapSpace(str, enum.Enum):
    """IANA bootstrap registry names, substituted into the bootstrap template."""

    DNS = "dns"
    ASN = "asn"
    IPV4 = "ipv4"
    IPV6 = "ipv6"


_AUTNUM = re.compile(r"(?:as)?([0-9]+)", re.IGNORECASE)
_LABEL = re.compile(r"[a-z0-9_](?:[a-z0-9_-]{0,61}[a-z0-9_])?")
_UINT32_MAX = 2**32 - 1


@dataclass(frozen=True)
class Domain:
    name: str

    query_type = QueryType.DOMAIN

    @property
    def query_value(self) -> str:
        return self.name


@dataclass(frozen=True)
class Autnum:
    number: int

    query_type = QueryType.AUTNUM

    @property
    def query_value(self) -> str:
        return str(self.number)


@dataclass(frozen=True)
class IPAddress:
    address: Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

    query_type = QueryType.IP

    @property
    def query_value(self) -> str:
        return str(self.address)


@dataclass(frozen=True)
class IPNetwork:
    network: Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

    query_type = QueryType.IP_NETWORK

    @property
    def query_value(self) -> str:
        return self.network.with_prefixlen


@dataclass(frozen=True)
class Entity:
    handle: str

    query_type = QueryType.ENTITY

    @property
    def query_value(self) -> str:
        return self.handle


Identifier = Union[Domain, Autnum, IPAddress, IPNetwork, Entity]


def parse_autnum(value: object) -> int:
    """Brief: Parse an AS number, accepting an optional 'AS' prefix.

    Inputs:
      - value: '64496', 'AS64496' or an int.

    Outputs:
      - int: AS number in the unsigned 32-bit range.

    Example:
      >>> parse_autnum("AS64496")
      64496
    """

    m = _AUTNUM.fullmatch(str(value).strip())
    if not m:
        raise InvalidQueryError(value, "not an AS number")
    number = int(m.group(1))
    if number > _UINT32_MAX:
        raise InvalidQueryError(value, "AS number out of range")
    return number


def parse_domain(value: object) -> str:
    """Brief: Normalize and validate a domain name.

    Inputs:
      - value: Domain name, Unicode labels allowed.

    Outputs:
      - str: Lower-cased ASCII form without trailing dot.
    """

    name = normalize_domain(str(value))
    labels = name.split(".")
    if not all(_LABEL.fullmatch(label) for label in labels):
        raise InvalidQueryError(value, "not a domain name")
    return name


def parse_ip(value: object) -> Union[ipaddress.IPv4Address, ipaddress.IPv6Address]:
    try:
        return ipaddress.ip_address(str(value).strip())
    except ValueError as exc:
        raise InvalidQueryError(value, "not an IP address") from exc


def parse_ip_network(
    value: object,
) -> Union[ipaddress.IPv4Network, ipaddress.IPv6Network]:
    text = str(value).strip()
    if "/" not in text:
        raise InvalidQueryError(value, "not an IP network in CIDR notation")
    try:
        return ipaddress.ip_network(text, strict=False)
    except ValueError as exc:
        raise InvalidQueryError(value, "not an IP network in CIDR notation") from exc


def from_query(query_type: QueryType, query_value: object) -> Identifier:
    """Brief: Build the typed identifier for a known query type.

    Inputs:
      - query_type: QueryType (or its string value).
      - query_value: Raw query value.

    Outputs:
      - Identifier instance.

    Raises:
      - InvalidQueryError when the value does not parse for the type.
    """

    qtype = QueryType(query_type)
    if qtype is QueryType.DOMAIN:
        return Domain(parse_domain(query_value))
    if qtype is QueryType.AUTNUM:
        return Autnum(parse_autnum(query_value))
    if qtype is QueryType.IP:
        return IPAddress(parse_ip(query_value))
    if qtype is QueryType.IP_NETWORK:
        return IPNetwork(parse_ip_network(query_value))
    handle = str(query_value).strip()
    if not handle:
        raise InvalidQueryError(query_value, "empty entity handle")
    return Entity(handle)


def identify(obj: str) -> Identifier:
    """Brief: Guess the identifier kind of a free-form query object.

    Inputs:
      - obj: Object string as typed by a user.

    Outputs:
      - Identifier: first of Autnum, IPAddress, IPNetwork, Domain that parses;
        anything else is treated as an Entity handle.

    Example:
      >>> identify("AS1")
      Autnum(number=1)
      >>> identify("192.0.2.0/24").query_value
      '192.0.2.0/24'
      >>> identify("example.br")
      Domain(name='example.br')
      >>> identify("XXXX-BR")
      Entity(handle='XXXX-BR')
    """

    for qtype in (QueryType.AUTNUM, QueryType.IP, QueryType.IP_NETWORK):
        try:
            return from_query(qtype, obj)
        except InvalidQueryError:
            continue

    if "." in str(obj).strip().rstrip("."):
        try:
            return Domain(parse_domain(obj))
        except InvalidQueryError:
            pass

    return from_query(QueryType.ENTITY, obj)


def bootstrap_space(identifier: Identifier) -> Optional[BootstrapSpace]:
    """Brief: Bootstrap registry covering an identifier, if any.

    Inputs:
      - identifier: Typed identifier.

    Outputs:
      - BootstrapSpace, or None for entities (no bootstrap registry).
    """

    if isinstance(identifier, Domain):
        return BootstrapSpace.DNS
    if isinstance(identifier, Autnum):
        return BootstrapSpace.ASN
    if isinstance(identifier, IPAddress):
        version = identifier.address.version
    elif isinstance(identifier, IPNetwork):
        version = identifier.network.version
    else:
        return None
    return BootstrapSpace.IPV4 if version == 4 else BootstrapSpace.IPV6
