"""Application-wide exception hierarchy for Readthrough.

All custom exceptions subclass ``ReadthroughError``.  Failures of a page
analysis are drawn from a closed taxonomy: every member subclasses
``AnalysisError`` and carries an :class:`ErrorKind`, a user-facing message,
an HTTP-style status code and an optional detail string.

Hierarchy::

    ReadthroughError
    ├── AnalysisError                (kind, message, status_code, detail)
    │   ├── InvalidURLError          400
    │   ├── RestrictedURLError       403
    │   ├── DMCADomainError          451
    │   ├── BlockedDomainError       403
    │   ├── NotFoundError            404
    │   ├── UpstreamHTTPError        502
    │   ├── DNSFailureError          504
    │   ├── ConnectionFailureError   503
    │   ├── ContentError             502
    │   └── GenericError             500
    └── CacheError
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of analysis failure kinds."""

    INVALID_URL = "INVALID_URL"
    RESTRICTED_URL = "RESTRICTED_URL"
    DMCA_DOMAIN = "DMCA_DOMAIN"
    BLOCKED_DOMAIN = "BLOCKED_DOMAIN"
    NOT_FOUND = "NOT_FOUND"
    HTTP_ERROR = "HTTP_ERROR"
    DNS_FAILURE = "DNS_FAILURE"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    CONTENT_ERROR = "CONTENT_ERROR"
    GENERIC_ERROR = "GENERIC_ERROR"


class ReadthroughError(Exception):
    """Base class for all Readthrough exceptions.

    All application-specific exceptions inherit from this class so that
    callers can catch the entire hierarchy with a single ``except`` clause
    when needed.
    """


# ---------------------------------------------------------------------------
# Analysis errors
# ---------------------------------------------------------------------------


class AnalysisError(ReadthroughError):
    """A classified analysis failure.

    Subclasses pin ``kind``, ``status_code`` and ``default_message``.  Once
    raised, an ``AnalysisError`` travels unchanged to the caller of
    :meth:`readthrough.scraper.analyzer.Analyzer.analyze`.

    Args:
        message: User-facing message.  Defaults to the subclass's
            ``default_message`` when empty.
        detail: Extra context (an upstream status code, the original failure
            message).
    """

    kind: ErrorKind = ErrorKind.GENERIC_ERROR
    status_code: int = 500
    default_message: str = "An unexpected error occurred while processing the page."

    def __init__(self, message: str | None = None, detail: str | None = None) -> None:
        self.message = message or self.default_message
        self.detail = detail or None
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialise for a JSON error response body."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "detail": self.detail,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r}, detail={self.detail!r})"


class InvalidURLError(AnalysisError):
    """Raised when no host can be extracted from the requested URL."""

    kind = ErrorKind.INVALID_URL
    status_code = 400
    default_message = "The URL is invalid."


class RestrictedURLError(AnalysisError):
    """Raised when the URL matches the restricted-keyword policy."""

    kind = ErrorKind.RESTRICTED_URL
    status_code = 403
    default_message = "This URL cannot be processed."


class DMCADomainError(AnalysisError):
    """Raised when the host is covered by a DMCA takedown entry.

    The entry's custom message, when present, replaces the default one.
    """

    kind = ErrorKind.DMCA_DOMAIN
    status_code = 451
    default_message = "This site's content is unavailable due to a takedown request."


class BlockedDomainError(AnalysisError):
    """Raised when the host is on the static blocklist."""

    kind = ErrorKind.BLOCKED_DOMAIN
    status_code = 403
    default_message = "This domain is blocked."


class NotFoundError(AnalysisError):
    """Raised when the upstream page does not exist."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "The page was not found."


class UpstreamHTTPError(AnalysisError):
    """Raised when the upstream answered with an unusable HTTP status.

    ``detail`` carries the status code when it is known.
    """

    kind = ErrorKind.HTTP_ERROR
    status_code = 502
    default_message = "The site returned an HTTP error."


class DNSFailureError(AnalysisError):
    """Raised when the upstream host name could not be resolved."""

    kind = ErrorKind.DNS_FAILURE
    status_code = 504
    default_message = "The site's address could not be resolved."


class ConnectionFailureError(AnalysisError):
    """Raised on transport-level failures (refused, reset, TLS, timeout)."""

    kind = ErrorKind.CONNECTION_ERROR
    status_code = 503
    default_message = "Could not connect to the site."


class ContentError(AnalysisError):
    """Raised when no usable content could be obtained.

    Covers pages too short to be real content, hard-paywalled articles, and
    fetch chains that produced nothing more specific.
    """

    kind = ErrorKind.CONTENT_ERROR
    status_code = 502
    default_message = "Could not obtain readable content for this page."


class GenericError(AnalysisError):
    """Catch-all for unclassified failures.  ``detail`` holds the original message."""

    kind = ErrorKind.GENERIC_ERROR
    status_code = 500


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------


class CacheError(ReadthroughError):
    """Raised when a cache backend cannot read or write an entry.

    Args:
        message: Human-readable description of the failure.
        key: Storage key of the affected entry.
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key
