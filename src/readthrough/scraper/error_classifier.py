"""Maps raw fetch failures onto the :class:`~readthrough.core.exceptions.AnalysisError` taxonomy.

Fetchers report failures as plain messages.  Classification is a substring
sniff against a small set of markers, checked in this order:

=================  ==============================
marker             error
=================  ==============================
``DNS``            :class:`DNSFailureError`
``CURL``           :class:`ConnectionFailureError`
``HTTP``           :class:`UpstreamHTTPError`
``not found``      :class:`NotFoundError`
=================  ==============================

The markers are a contract with the fetchers: a fetcher that wants its
failure classified must put one of them in its message.  Fetchers in this
package build messages with :func:`failure_message`.
"""

from __future__ import annotations

from readthrough.core.exceptions import (
    AnalysisError,
    ConnectionFailureError,
    ContentError,
    DNSFailureError,
    GenericError,
    NotFoundError,
    UpstreamHTTPError,
)

DNS_MARKER: str = "DNS"
CONNECTION_MARKER: str = "CURL"
HTTP_MARKER: str = "HTTP"
NOT_FOUND_MARKER: str = "not found"

_MARKERS: tuple[tuple[str, type[AnalysisError]], ...] = (
    (DNS_MARKER, DNSFailureError),
    (CONNECTION_MARKER, ConnectionFailureError),
    (HTTP_MARKER, UpstreamHTTPError),
    (NOT_FOUND_MARKER, NotFoundError),
)


def failure_message(marker: str, reason: object) -> str:
    """Build a fetcher failure message that classifies under *marker*."""
    return f"{marker} error: {reason}"


def classify_failure_message(message: str | None) -> AnalysisError:
    """Return the error for a raw failure message.

    Args:
        message: The last failure message of a fetch chain, or ``None`` when
            no fetcher failed (they all returned empty content).

    Returns:
        The matching marker's error; :class:`GenericError` carrying
        *message* when no marker matches; :class:`ContentError` when there
        is no message at all.
    """
    if message is None:
        return ContentError()
    for marker, error_cls in _MARKERS:
        if marker in message:
            return error_cls()
    return GenericError(detail=message)


def classify_exception(exc: BaseException) -> AnalysisError:
    """Return *exc* unchanged if already classified, else sniff its message."""
    if isinstance(exc, AnalysisError):
        return exc
    return classify_failure_message(str(exc) or type(exc).__name__)


def error_for_status(status_code: int) -> AnalysisError | None:
    """Return the error for a status-probe result, or ``None`` for HTTP 200."""
    if status_code == 200:
        return None
    if status_code == 404:
        return NotFoundError()
    return UpstreamHTTPError(detail=str(status_code))
