"""Direct HTTP fetcher and the fetch result types shared by every fetcher.

Every fetcher exposes a ``name`` and an async ``fetch`` taking a
:class:`FetchRequest` and returning a :class:`FetchResult`.  Failures are
reported in the result rather than raised; the failure message follows the
marker contract of :mod:`readthrough.scraper.error_classifier` so the
analyzer can classify it.
"""

from __future__ import annotations

import logging
import random
import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

import httpx

from readthrough.scraper.config import (
    CRAWLER_FORWARDED_PREFIX,
    CRAWLER_HEADERS,
    CRAWLER_USER_AGENT,
    FETCHER_DIRECT,
)
from readthrough.scraper.error_classifier import (
    CONNECTION_MARKER,
    DNS_MARKER,
    HTTP_MARKER,
    NOT_FOUND_MARKER,
    failure_message,
)
from readthrough.scraper.rules import RuleSet

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request / result dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FetchRequest:
    """Everything a fetcher needs to retrieve one page.

    Attributes:
        url: The page to fetch, exactly as requested.
        rules: The host's RuleSet (headers, cookies, engine hints).
        browser: Engine for browser rendering; ignored by other fetchers.
    """

    url: str
    rules: RuleSet = field(default_factory=RuleSet)
    browser: str | None = None


class FetchStatus(str, Enum):
    """Outcome of a single fetch attempt."""

    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass
class FetchResult:
    """Result of a single fetch attempt.

    Attributes:
        fetcher: Name of the fetcher that produced this result.
        html: Raw HTML, ``""`` when the upstream answered with an empty body,
            or ``None`` when the fetch failed.
        status_code: HTTP status code, or ``None`` when unknown.
        final_url: URL after following redirects, or ``None`` on error.
        error: Failure message, or ``None`` on success.
    """

    fetcher: str
    html: str | None
    status_code: int | None = None
    final_url: str | None = None
    error: str | None = None

    @property
    def status(self) -> FetchStatus:
        if self.error is not None or self.html is None:
            return FetchStatus.FAILED
        if not self.html.strip():
            return FetchStatus.EMPTY
        return FetchStatus.OK

    @classmethod
    def failed(
        cls,
        fetcher: str,
        error: str,
        *,
        status_code: int | None = None,
        final_url: str | None = None,
    ) -> FetchResult:
        return cls(
            fetcher=fetcher,
            html=None,
            status_code=status_code,
            final_url=final_url,
            error=error,
        )


class Fetcher(Protocol):
    """A strategy for retrieving the raw HTML of a page."""

    name: str

    async def fetch(self, request: FetchRequest) -> FetchResult:
        ...


# ---------------------------------------------------------------------------
# Crawler identity
# ---------------------------------------------------------------------------


def crawler_headers(user_agent: str | None = None) -> dict[str, str]:
    """Return the crawler request headers with a fresh ``X-Forwarded-For``.

    Args:
        user_agent: Overrides :data:`~readthrough.scraper.config.CRAWLER_USER_AGENT`.
    """
    headers = {"User-Agent": user_agent or CRAWLER_USER_AGENT, **CRAWLER_HEADERS}
    headers["X-Forwarded-For"] = (
        f"{CRAWLER_FORWARDED_PREFIX}.{random.randint(64, 95)}.{random.randint(1, 254)}"
    )
    return headers


# ---------------------------------------------------------------------------
# Failure helpers
# ---------------------------------------------------------------------------

_DNS_ERROR_HINTS: tuple[str, ...] = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated",
    "name resolution",
)


def is_dns_failure(exc: BaseException) -> bool:
    """Return ``True`` if *exc* (or its cause chain) is a name-resolution failure."""
    current: BaseException | None = exc
    while current is not None:
        if isinstance(current, socket.gaierror):
            return True
        text = str(current).lower()
        if any(hint in text for hint in _DNS_ERROR_HINTS):
            return True
        current = current.__cause__ or current.__context__
    return False


def transport_failure_message(exc: httpx.RequestError) -> str:
    """Describe an httpx transport failure using the classifier markers."""
    if isinstance(exc, httpx.ConnectError) and is_dns_failure(exc):
        return failure_message(DNS_MARKER, f"could not resolve host: {exc}")
    if isinstance(exc, httpx.TimeoutException):
        return failure_message(CONNECTION_MARKER, f"timeout: {exc}")
    return failure_message(CONNECTION_MARKER, f"{type(exc).__name__}: {exc}")


def _cookie_stripper(prefixes: tuple[str, ...]):
    """Build an httpx request hook that drops cookies starting with *prefixes*.

    Hooks run before every hop, redirects included, so cookies set by an
    intermediate response never reach the next request either.
    """

    async def strip_cookies(request: httpx.Request) -> None:
        header = request.headers.get("Cookie")
        if not header:
            return
        kept = [
            pair.strip()
            for pair in header.split(";")
            if pair.strip() and not pair.strip().split("=", 1)[0].startswith(prefixes)
        ]
        if kept:
            request.headers["Cookie"] = "; ".join(kept)
        else:
            del request.headers["Cookie"]

    return strip_cookies


# ---------------------------------------------------------------------------
# Direct fetcher
# ---------------------------------------------------------------------------


class HttpFetcher:
    """Fetch a page directly from its origin with httpx.

    Presents the crawler identity, follows redirects, and applies the
    RuleSet's ``userAgent``, ``headers``, ``cookies`` and
    ``cookiePrefixRemove`` directives.

    Args:
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify upstream TLS certificates.
    """

    name = FETCHER_DIRECT

    def __init__(self, *, timeout: float = 30.0, verify_ssl: bool = True) -> None:
        self._timeout = timeout
        self._verify_ssl = verify_ssl

    async def fetch(self, request: FetchRequest) -> FetchResult:
        rules = request.rules
        headers = crawler_headers(rules.user_agent)
        headers.update(rules.headers)
        cookies = {name: value for name, value in rules.cookies.items() if value is not None}
        event_hooks = (
            {"request": [_cookie_stripper(rules.cookie_prefix_remove)]}
            if rules.cookie_prefix_remove
            else None
        )

        try:
            async with httpx.AsyncClient(
                headers=headers,
                cookies=cookies,
                timeout=self._timeout,
                verify=self._verify_ssl,
                follow_redirects=True,
                event_hooks=event_hooks,
            ) as client:
                response = await client.get(request.url)
        except httpx.RequestError as exc:
            logger.warning("scraper: direct fetch failed for %s: %s", request.url, exc)
            return FetchResult.failed(self.name, transport_failure_message(exc), final_url=request.url)

        final_url = str(response.url)
        if response.status_code >= 400:
            logger.info("scraper: HTTP %d for %s", response.status_code, request.url)
            message = f"{HTTP_MARKER} {response.status_code} from {final_url}"
            if response.status_code == 404:
                message = f"{message}: {NOT_FOUND_MARKER}"
            return FetchResult.failed(
                self.name,
                message,
                status_code=response.status_code,
                final_url=final_url,
            )

        return FetchResult(
            fetcher=self.name,
            html=response.text,
            status_code=response.status_code,
            final_url=final_url,
        )
