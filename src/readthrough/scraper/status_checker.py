"""Pre-flight status probe.

Sends a bodiless ``HEAD`` request under the crawler identity to learn the
final status code and redirect target of a URL before any full fetch is
attempted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from readthrough.scraper.http_fetcher import crawler_headers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusInfo:
    """Result of a status probe.

    Attributes:
        final_url: URL after following redirects; the requested URL when the
            probe failed.
        has_redirect: ``True`` iff ``final_url`` differs from the request.
        http_code: Final HTTP status code, ``0`` when no response arrived.
    """

    final_url: str
    has_redirect: bool
    http_code: int

    def as_dict(self) -> dict[str, object]:
        return {
            "finalUrl": self.final_url,
            "hasRedirect": self.has_redirect,
            "httpCode": self.http_code,
        }


class StatusChecker:
    """Issue ``HEAD`` probes with redirect following and a short timeout.

    Args:
        timeout: Probe timeout in seconds.
        verify_ssl: Whether to verify upstream TLS certificates.
    """

    def __init__(self, *, timeout: float = 5.0, verify_ssl: bool = True) -> None:
        self._timeout = timeout
        self._verify_ssl = verify_ssl

    async def check_status(self, url: str) -> StatusInfo:
        """Probe *url*.

        Transport failures are not raised: the result then carries the
        original URL, ``has_redirect=False`` and ``http_code=0``.
        """
        try:
            async with httpx.AsyncClient(
                headers=crawler_headers(),
                timeout=self._timeout,
                verify=self._verify_ssl,
                follow_redirects=True,
            ) as client:
                response = await client.head(url)
        except httpx.HTTPError as exc:
            logger.info("scraper: status probe failed for %s: %s", url, exc)
            return StatusInfo(final_url=url, has_redirect=False, http_code=0)

        final_url = str(response.url)
        return StatusInfo(
            final_url=final_url,
            has_redirect=response.url != httpx.URL(url),
            http_code=response.status_code,
        )
