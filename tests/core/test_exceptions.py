"""Tests for the analysis error taxonomy."""

from __future__ import annotations

import pytest

from readthrough.core.exceptions import (
    AnalysisError,
    BlockedDomainError,
    CacheError,
    ConnectionFailureError,
    ContentError,
    DMCADomainError,
    DNSFailureError,
    ErrorKind,
    GenericError,
    InvalidURLError,
    NotFoundError,
    ReadthroughError,
    RestrictedURLError,
    UpstreamHTTPError,
)

ALL_ANALYSIS_ERRORS = [
    (InvalidURLError, ErrorKind.INVALID_URL, 400),
    (RestrictedURLError, ErrorKind.RESTRICTED_URL, 403),
    (DMCADomainError, ErrorKind.DMCA_DOMAIN, 451),
    (BlockedDomainError, ErrorKind.BLOCKED_DOMAIN, 403),
    (NotFoundError, ErrorKind.NOT_FOUND, 404),
    (UpstreamHTTPError, ErrorKind.HTTP_ERROR, 502),
    (DNSFailureError, ErrorKind.DNS_FAILURE, 504),
    (ConnectionFailureError, ErrorKind.CONNECTION_ERROR, 503),
    (ContentError, ErrorKind.CONTENT_ERROR, 502),
    (GenericError, ErrorKind.GENERIC_ERROR, 500),
]


@pytest.mark.parametrize(("error_cls", "kind", "status"), ALL_ANALYSIS_ERRORS)
def test_kind_and_status(error_cls: type[AnalysisError], kind: ErrorKind, status: int) -> None:
    error = error_cls()
    assert isinstance(error, AnalysisError)
    assert isinstance(error, ReadthroughError)
    assert error.kind is kind
    assert error.status_code == status
    assert error.message


def test_custom_message_replaces_default() -> None:
    error = DMCADomainError("Removed at the publisher's request.")
    assert error.message == "Removed at the publisher's request."
    assert str(error) == "Removed at the publisher's request."


def test_empty_message_falls_back_to_default() -> None:
    assert DMCADomainError("").message == DMCADomainError.default_message


def test_to_dict() -> None:
    error = UpstreamHTTPError(detail="503")
    assert error.to_dict() == {
        "kind": "HTTP_ERROR",
        "message": UpstreamHTTPError.default_message,
        "detail": "503",
    }


def test_repr_names_kind() -> None:
    assert "NOT_FOUND" in repr(NotFoundError())


def test_cache_error_is_not_an_analysis_error() -> None:
    error = CacheError("disk full", key="abc")
    assert error.key == "abc"
    assert not isinstance(error, AnalysisError)
