"""
Brief: Tests for rdapfetch.query identifiers, parsers and auto-detection.

Inputs:
  - None

Outputs:
  - None
"""

import ipaddress

import pytest

from rdapfetch.errors import InvalidQueryError
from rdapfetch.query import (
    Autnum,
    BootstrapSpace,
    Domain,
    Entity,
    IPAddress,
    IPNetwork,
    QueryType,
    bootstrap_space,
    from_query,
    identify,
    parse_autnum,
    parse_domain,
    parse_ip_network,
)


@pytest.mark.parametrize(
    "obj,expected",
    [
        ("AS3333", Autnum(3333)),
        ("as64496", Autnum(64496)),
        ("15169", Autnum(15169)),
        ("192.0.2.1", IPAddress(ipaddress.ip_address("192.0.2.1"))),
        ("2001:db8::1", IPAddress(ipaddress.ip_address("2001:db8::1"))),
        ("192.0.2.0/24", IPNetwork(ipaddress.ip_network("192.0.2.0/24"))),
        ("Example.COM", Domain("example.com")),
        ("registro.br.", Domain("registro.br")),
        ("XXXX-BR", Entity("XXXX-BR")),
        ("ABC123-ARIN", Entity("ABC123-ARIN")),
    ],
)
def test_identify_detection_order(obj, expected):
    """
    Brief: identify() tries autnum, ip, network and domain before entity.

    Inputs:
      - obj: free-form query string
      - expected: typed identifier

    Outputs:
      - None
    """
    assert identify(obj) == expected


def test_identify_dotted_non_domain_is_entity():
    """
    Brief: Dotted strings that are not valid host names fall back to entities.

    Inputs:
      - 'foo bar.baz'

    Outputs:
      - None
    """
    assert isinstance(identify("foo bar.baz"), Entity)


def test_query_values_are_normalized():
    """
    Brief: query_value renders each identifier as sent in the request path.

    Inputs:
      - one identifier of each kind

    Outputs:
      - None
    """
    assert Autnum(1).query_value == "1"
    assert IPNetwork(ipaddress.ip_network("192.0.2.7/24", strict=False)).query_value == (
        "192.0.2.0/24"
    )
    assert IPAddress(ipaddress.ip_address("2001:DB8::1")).query_value == "2001:db8::1"
    assert Domain("example.br").query_value == "example.br"


def test_query_type_paths():
    """
    Brief: Network lookups use the RDAP 'ip' path segment.

    Inputs:
      - QueryType members

    Outputs:
      - None
    """
    assert QueryType.IP_NETWORK.path == "ip"
    assert QueryType.IP.path == "ip"
    assert QueryType.DOMAIN.path == "domain"
    assert QueryType.AUTNUM.path == "autnum"
    assert QueryType.ENTITY.path == "entity"


@pytest.mark.parametrize("value", ["", "AS", "AS-1", "4294967296", "12a"])
def test_parse_autnum_rejects_invalid(value):
    """
    Brief: Non-numeric or out-of-range AS numbers raise InvalidQueryError.

    Inputs:
      - value: bad AS string

    Outputs:
      - None
    """
    with pytest.raises(InvalidQueryError):
        parse_autnum(value)


def test_parse_domain_rejects_bad_labels():
    """
    Brief: Labels with spaces or leading hyphens are not domain names.

    Inputs:
      - 'bad label.com', '-x.com'

    Outputs:
      - None
    """
    for value in ("bad label.com", "-x.com"):
        with pytest.raises(InvalidQueryError):
            parse_domain(value)


def test_parse_ip_network_requires_prefix():
    """
    Brief: A bare address is not accepted as a network.

    Inputs:
      - '192.0.2.0'

    Outputs:
      - None
    """
    with pytest.raises(InvalidQueryError):
        parse_ip_network("192.0.2.0")


def test_from_query_empty_entity_raises():
    """
    Brief: Blank entity handles are rejected.

    Inputs:
      - '  '

    Outputs:
      - None
    """
    with pytest.raises(InvalidQueryError):
        from_query(QueryType.ENTITY, "  ")


def test_from_query_accepts_string_types():
    """
    Brief: Query types may be given by value.

    Inputs:
      - 'ipnetwork', '2001:db8::/32'

    Outputs:
      - None
    """
    ident = from_query("ipnetwork", "2001:db8::/32")
    assert isinstance(ident, IPNetwork)


def test_bootstrap_space_per_identifier():
    """
    Brief: Each identifier maps to its IANA registry; entities have none.

    Inputs:
      - identifiers of each kind

    Outputs:
      - None
    """
    assert bootstrap_space(Domain("example.br")) is BootstrapSpace.DNS
    assert bootstrap_space(Autnum(1)) is BootstrapSpace.ASN
    assert bootstrap_space(IPAddress(ipaddress.ip_address("192.0.2.1"))) is BootstrapSpace.IPV4
    assert (
        bootstrap_space(IPNetwork(ipaddress.ip_network("2001:db8::/32")))
        is BootstrapSpace.IPV6
    )
    assert bootstrap_space(Entity("H")) is None
