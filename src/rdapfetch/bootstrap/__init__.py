"""RDAP bootstrap registry model and matchers.

Brief: Decodes IANA-style bootstrap registries and selects candidate RDAP
servers for domains, AS numbers and IP addresses/networks.
"""

from __future__ import annotations

from .matchers import (
    match_as,
    match_domain,
    match_ip,
    match_ip_network,
    normalize_domain,
)
from .registry import (
    BOOTSTRAP_VERSION,
    Service,
    ServiceRegistry,
    decode_registry,
    prioritize_https,
)

__all__ = [
    "BOOTSTRAP_VERSION",
    "Service",
    "ServiceRegistry",
    "decode_registry",
    "match_as",
    "match_domain",
    "match_ip",
    "match_ip_network",
    "normalize_domain",
    "prioritize_https",
]
