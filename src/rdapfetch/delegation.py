"""Live DNS delegation checks used for stale bootstrap recovery."""

from __future__ import annotations

import logging
from typing import List, Optional

import dns.exception
import dns.name
import dns.resolver

logger = logging.getLogger("rdapfetch.delegation")


def _resolver(lifetime: float = 5.0) -> dns.resolver.Resolver:
    r = dns.resolver.Resolver(configure=True)
    r.lifetime = lifetime
    return r


def lookup_ns(
    fqdn: str,
    resolver: Optional[dns.resolver.Resolver] = None,
    lifetime: float = 5.0,
) -> List[str]:
    """Brief: Return the NS targets currently published for a name.

    Inputs:
      - fqdn: Domain name to look up (trailing dot optional).
      - resolver: Optional dnspython resolver; a system-configured one with
        the given lifetime is built when omitted.
      - lifetime: Total lookup budget in seconds for the default resolver.

    Outputs:
      - list[str]: NS target names; empty when the name does not exist, has
        no NS records or the lookup fails.

    Notes:
      - Lookup failures are logged at debug and reported as "no delegation".
    """

    try:
        r = resolver if resolver is not None else _resolver(lifetime)
        answer = r.resolve(dns.name.from_text(fqdn), "NS")
    except (dns.exception.DNSException, UnicodeError) as exc:
        logger.debug("NS lookup for %s failed: %s", fqdn, exc)
        return []
    return [rdata.target.to_text() for rdata in answer]
