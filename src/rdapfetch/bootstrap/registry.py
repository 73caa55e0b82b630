"""RDAP bootstrap service registry model (RFC 7484 section 10.2).

Brief:
  A registry is a version tag, a publication timestamp and an ordered list of
  services. Each service pairs a list of match entries with a list of
  candidate RDAP base URIs:

    {"version": "1.0",
     "publication": "2024-01-01T00:00:00Z",
     "services": [[["br"], ["https://rdap.registro.br/"]], ...]}

  Documents are decoded once per resolution and not modified afterwards.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError, validator

from rdapfetch.errors import IncompatibleVersionError, RegistryDecodeError

BOOTSTRAP_VERSION = "1.0"


class Service(BaseModel):
    """Brief: One registry service: match entries plus candidate URIs.

    Inputs:
      - entries: Match keys (domain suffixes, AS ranges or CIDR networks).
      - uris: Candidate RDAP base URIs in publication order.

    Outputs:
      - Service instance.
    """

    entries: Tuple[str, ...] = Field(default_factory=tuple)
    uris: List[str] = Field(default_factory=list)

    class Config:
        frozen = True


class ServiceRegistry(BaseModel):
    """Brief: Typed bootstrap registry document.

    Inputs:
      - version: Bootstrap specification version (must be "1.0").
      - publication: Publication timestamp, when present.
      - description: Optional free-form description.
      - services: Ordered services, given either as Service objects or as the
        on-the-wire [[entries...], [uris...]] pairs.

    Outputs:
      - ServiceRegistry instance.
    """

    version: str
    publication: Optional[datetime] = None
    description: Optional[str] = None
    services: List[Service] = Field(default_factory=list)

    class Config:
        frozen = True

    @validator("services", pre=True)
    def _services_from_pairs(cls, v: object) -> List[object]:  # type: ignore[override]
        """Brief: Convert [[entries], [uris]] pairs into Service mappings.

        Inputs:
          - v: Raw services member.

        Outputs:
          - list: Items suitable for Service validation.
        """

        if v is None:
            return []
        if not isinstance(v, (list, tuple)):
            raise ValueError("services must be a list")
        out: List[object] = []
        for item in v:
            if isinstance(item, (Service, dict)):
                out.append(item)
                continue
            if not isinstance(item, (list, tuple)) or len(item) != 2:
                raise ValueError(
                    "each service must be a pair of [entries, uris] lists"
                )
            entries, uris = item
            if not isinstance(entries, (list, tuple)) or not isinstance(
                uris, (list, tuple)
            ):
                raise ValueError("service entries and uris must be lists")
            out.append({"entries": tuple(entries), "uris": list(uris)})
        return out


def decode_registry(data: Union[bytes, str, dict]) -> ServiceRegistry:
    """Brief: Decode and validate a bootstrap registry document.

    Inputs:
      - data: Raw JSON body (bytes/str) or an already-parsed mapping.

    Outputs:
      - ServiceRegistry: Validated registry.

    Raises:
      - IncompatibleVersionError: version member is not "1.0".
      - RegistryDecodeError: body is not JSON or does not have the registry
        shape.

    Example:
      >>> reg = decode_registry('{"version": "1.0", "services": [[["br"], ["https://b"]]]}')
      >>> reg.services[0].uris
      ['https://b']
    """

    if isinstance(data, (bytes, str)):
        try:
            doc: Any = json.loads(data)
        except ValueError as exc:
            raise RegistryDecodeError(f"invalid bootstrap registry JSON: {exc}") from exc
    else:
        doc = data

    if not isinstance(doc, dict):
        raise RegistryDecodeError("bootstrap registry must be a JSON object")

    version = doc.get("version")
    if version != BOOTSTRAP_VERSION:
        raise IncompatibleVersionError(version, BOOTSTRAP_VERSION)

    try:
        return ServiceRegistry(**doc)
    except ValidationError as exc:
        raise RegistryDecodeError(f"invalid bootstrap registry: {exc}") from exc


def _is_https(uri: str) -> bool:
    return uri.split(":", 1)[0].strip().lower() == "https"


def prioritize_https(uris: List[str]) -> List[str]:
    """Brief: Order URIs so https ones come first, keeping relative order.

    Inputs:
      - uris: Candidate URI list; reordered in place.

    Outputs:
      - list: The same list object, for chaining.

    Example:
      >>> prioritize_https(["http://a", "https://b", "http://c", "https://d"])
      ['https://b', 'https://d', 'http://a', 'http://c']
    """

    # list.sort is stable, so each group keeps its publication order.
    uris.sort(key=lambda uri: 0 if _is_https(uri) else 1)
    return uris
