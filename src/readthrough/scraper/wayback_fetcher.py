"""Wayback Machine snapshot fetcher.

Looks up the closest archived capture of a URL through the Availability API
and downloads it through the raw (``id_``) playback URL, so the HTML is the
page as archived without the Wayback toolbar or rewritten links.

Reference: https://archive.org/help/wayback_api.php
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from readthrough.scraper.config import (
    FETCHER_WAYBACK,
    WB_AVAILABILITY_URL,
    WB_PLAYBACK_URL_TEMPLATE,
)
from readthrough.scraper.error_classifier import HTTP_MARKER, NOT_FOUND_MARKER
from readthrough.scraper.http_fetcher import (
    FetchRequest,
    FetchResult,
    transport_failure_message,
)

logger = logging.getLogger(__name__)

# User-Agent sent to archive.org (distinct from the crawler identity).
_WAYBACK_UA: str = "Readthrough/1.0 (wayback snapshot reader)"


def closest_snapshot(payload: dict[str, Any]) -> dict[str, Any] | None:
    """Return the ``closest`` snapshot of an Availability API payload.

    Returns ``None`` when the payload has no available capture.
    """
    snapshots = payload.get("archived_snapshots") or {}
    closest = snapshots.get("closest") or None
    if not closest or not closest.get("available", True):
        return None
    if not closest.get("timestamp"):
        return None
    return closest


class WaybackFetcher:
    """Fetch the latest archived capture of a page.

    Args:
        timeout: Timeout in seconds for each of the two requests.
    """

    name = FETCHER_WAYBACK

    def __init__(self, *, timeout: float = 30.0) -> None:
        self._timeout = timeout

    async def fetch(self, request: FetchRequest) -> FetchResult:
        async with httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            headers={"User-Agent": _WAYBACK_UA},
        ) as client:
            # 1. Availability lookup
            try:
                response = await client.get(WB_AVAILABILITY_URL, params={"url": request.url})
            except httpx.RequestError as exc:
                logger.warning("wayback: availability lookup failed for %s: %s", request.url, exc)
                return FetchResult.failed(self.name, transport_failure_message(exc))

            if response.status_code >= 400:
                return FetchResult.failed(
                    self.name,
                    f"{HTTP_MARKER} {response.status_code} from Wayback availability API",
                    status_code=response.status_code,
                )

            try:
                payload = response.json()
            except ValueError:
                return FetchResult.failed(self.name, "Wayback availability API returned invalid JSON")

            snapshot = closest_snapshot(payload if isinstance(payload, dict) else {})
            if snapshot is None:
                logger.info("wayback: no snapshot for %s", request.url)
                return FetchResult.failed(self.name, f"Wayback snapshot {NOT_FOUND_MARKER} for {request.url}")

            # 2. Raw capture download
            playback_url = WB_PLAYBACK_URL_TEMPLATE.format(
                timestamp=snapshot["timestamp"], url=request.url
            )
            try:
                capture = await client.get(playback_url)
            except httpx.RequestError as exc:
                logger.warning("wayback: capture download failed for %s: %s", playback_url, exc)
                return FetchResult.failed(self.name, transport_failure_message(exc), final_url=playback_url)

        if capture.status_code >= 400:
            return FetchResult.failed(
                self.name,
                f"{HTTP_MARKER} {capture.status_code} from {playback_url}",
                status_code=capture.status_code,
                final_url=playback_url,
            )

        logger.debug("wayback: fetched capture %s (%d chars)", playback_url, len(capture.text))
        return FetchResult(
            fetcher=self.name,
            html=capture.text,
            status_code=capture.status_code,
            final_url=str(capture.url),
        )
