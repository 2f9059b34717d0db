"""Playwright-based headless browser fetcher for JavaScript-rendered pages.

Browser automation is the most expensive fetch strategy and sits last in
the fallback chain.  Domains whose content only exists after rendering name
it explicitly through the ``fetchStrategies: browser`` rule, optionally with
a ``browser`` engine.

Install Playwright and download the browser binaries::

    pip install playwright
    playwright install firefox chromium
"""

from __future__ import annotations

import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from readthrough.scraper.config import BROWSER_ENGINES, BROWSER_USER_AGENT, FETCHER_BROWSER
from readthrough.scraper.error_classifier import (
    CONNECTION_MARKER,
    DNS_MARKER,
    failure_message,
)
from readthrough.scraper.http_fetcher import FetchRequest, FetchResult

logger = logging.getLogger(__name__)

#: Navigation error codes meaning the host name did not resolve
#: (Chromium and Firefox spellings).
_DNS_NAV_ERRORS: tuple[str, ...] = ("ERR_NAME_NOT_RESOLVED", "NS_ERROR_UNKNOWN_HOST")


def browser_failure_message(exc: Exception) -> str:
    """Describe a Playwright failure using the classifier markers."""
    text = str(exc)
    if any(code in text for code in _DNS_NAV_ERRORS):
        return failure_message(DNS_MARKER, text)
    if isinstance(exc, PlaywrightTimeoutError):
        return failure_message(CONNECTION_MARKER, f"browser navigation timeout: {text}")
    return f"browser error: {text}"


class BrowserFetcher:
    """Render a page in a headless browser and return its final DOM.

    Args:
        timeout: Navigation timeout in seconds (converted to milliseconds
            for Playwright).
        default_engine: Engine used when the request names none.
        ws_endpoint: Playwright browser-server endpoint.  When set, the
            fetcher connects to it instead of launching a local browser.
    """

    name = FETCHER_BROWSER

    def __init__(
        self,
        *,
        timeout: float = 60.0,
        default_engine: str = "firefox",
        ws_endpoint: str | None = None,
    ) -> None:
        self._timeout_ms = int(timeout * 1000)
        self._default_engine = default_engine
        self._ws_endpoint = ws_endpoint

    def _engine_for(self, request: FetchRequest) -> str:
        engine = (request.browser or self._default_engine).lower()
        if engine not in BROWSER_ENGINES:
            logger.warning("scraper: unknown browser engine %r, using %s", engine, self._default_engine)
            engine = self._default_engine
        return engine

    async def fetch(self, request: FetchRequest) -> FetchResult:
        engine = self._engine_for(request)
        try:
            async with async_playwright() as p:
                browser_type = getattr(p, engine)
                if self._ws_endpoint:
                    browser = await browser_type.connect(self._ws_endpoint)
                else:
                    browser = await browser_type.launch(headless=True)
                try:
                    context = await browser.new_context(
                        user_agent=request.rules.user_agent or BROWSER_USER_AGENT,
                        extra_http_headers=dict(request.rules.headers) or None,
                    )
                    page = await context.new_page()
                    try:
                        response = await page.goto(
                            request.url,
                            timeout=self._timeout_ms,
                            wait_until="networkidle",
                        )
                        html = await page.content()
                        return FetchResult(
                            fetcher=self.name,
                            html=html,
                            status_code=response.status if response else None,
                            final_url=page.url,
                        )
                    finally:
                        await page.close()
                        await context.close()
                finally:
                    await browser.close()

        except PlaywrightError as exc:
            logger.warning("scraper: %s browser fetch failed for %s: %s", engine, request.url, exc)
            return FetchResult.failed(self.name, browser_failure_message(exc), final_url=request.url)
