"""Exception types raised by rdapfetch.

Brief:
  Every failure surfaced by the bootstrap and fetch pipeline derives from
  RDAPError so callers can catch one type. Subclasses separate the error
  classes a caller usually wants to render differently:

    - decode errors (registry or error payload could not be decoded)
    - match errors (registry entries are malformed)
    - no-match (a well-formed registry has no covering entry)
    - transport errors (connection/URL failures)
    - protocol errors (non-2xx responses from an RDAP server)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class RDAPError(Exception):
    """Base class for all rdapfetch errors."""


class InvalidQueryError(RDAPError):
    """Brief: The query value cannot be interpreted for its query type.

    Inputs:
      - value: Offending query value.
      - reason: Optional detail.
    """

    def __init__(self, value: object, reason: Optional[str] = None) -> None:
        self.value = value
        msg = f"invalid query: {value}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class BootstrapError(RDAPError):
    """The bootstrap endpoint answered with an unusable HTTP status."""


class RegistryDecodeError(RDAPError):
    """The bootstrap registry document could not be decoded."""


class IncompatibleVersionError(RegistryDecodeError):
    """Brief: Registry declares an unsupported bootstrap version.

    Inputs:
      - version: Version string found in the document.
      - expected: Supported version string.
    """

    def __init__(self, version: object, expected: str) -> None:
        self.version = version
        self.expected = expected
        super().__init__(
            f"incompatible bootstrap specification version: {version} "
            f"(expecting {expected})"
        )


class MatchError(RDAPError):
    """A registry entry could not be parsed while matching."""


class NoMatchError(RDAPError):
    """Brief: No registry service covers the identifier.

    Inputs:
      - identifier: Query value that had no match.
    """

    def __init__(self, identifier: object) -> None:
        self.identifier = identifier
        super().__init__(f"no matches for {identifier}")


class NoCandidatesError(RDAPError):
    """Brief: A fetch was attempted without any candidate server."""

    def __init__(self, query_value: object = None) -> None:
        self.query_value = query_value
        msg = "no candidate RDAP servers"
        if query_value is not None:
            msg = f"{msg} for {query_value}"
        super().__init__(msg)


class TransportError(RDAPError):
    """Brief: Connection or URL failure talking to a server.

    Inputs:
      - uri: Request URI that failed.
      - cause: Underlying exception (also chained as __cause__).
    """

    def __init__(self, uri: str, cause: BaseException) -> None:
        self.uri = uri
        self.cause = cause
        super().__init__(f"{uri}: {cause}")


class NotFoundError(RDAPError):
    """The RDAP server holds no information for the requested object."""

    def __init__(self, uri: Optional[str] = None) -> None:
        self.uri = uri
        super().__init__("not found")


class UnexpectedResponseError(RDAPError):
    """Brief: Response was not an RDAP JSON document.

    Inputs:
      - status: HTTP status code.
      - reason: HTTP reason phrase.
      - content_type: Content-Type header received.
    """

    def __init__(
        self, status: int, reason: str, content_type: Optional[str] = None
    ) -> None:
        self.status = status
        self.reason = reason
        self.content_type = content_type
        super().__init__(f"unexpected response: {status} {reason}")


class ErrorPayloadDecodeError(RDAPError):
    """A non-2xx RDAP response carried an undecodable error body."""


class ProtocolError(RDAPError):
    """Brief: Structured RDAP error response (RFC 7483 section 6).

    Inputs:
      - error_code: errorCode member (usually the HTTP status).
      - title: Short error title.
      - description: List of description lines.
      - notices: Raw notices list.
      - lang: Optional language tag.
    """

    def __init__(
        self,
        error_code: Optional[int],
        title: str = "",
        description: Optional[List[str]] = None,
        notices: Optional[List[Dict[str, Any]]] = None,
        lang: Optional[str] = None,
    ) -> None:
        self.error_code = error_code
        self.title = title
        self.description = list(description or [])
        self.notices = list(notices or [])
        self.lang = lang
        parts = [str(error_code) if error_code is not None else "error"]
        if title:
            parts.append(title)
        msg = " ".join(parts)
        if self.description:
            msg = f"{msg}: {' '.join(self.description)}"
        super().__init__(msg)


class DocumentDecodeError(RDAPError):
    """A successful RDAP response body was not a JSON object."""
