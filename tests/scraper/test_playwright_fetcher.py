"""Tests for the headless browser fetcher.

Browser automation itself is not exercised; ``async_playwright`` is
replaced with a mock so the tests cover engine selection, page lifecycle
and failure reporting.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from readthrough.core.exceptions import ConnectionFailureError, DNSFailureError
from readthrough.scraper.error_classifier import classify_failure_message
from readthrough.scraper.http_fetcher import FetchRequest, FetchStatus
from readthrough.scraper.playwright_fetcher import BrowserFetcher, browser_failure_message
from readthrough.scraper.rules import RuleSet

URL = "https://site.example/app"


def _mock_playwright(engine: str, *, goto_side_effect: Exception | None = None):
    page = MagicMock()
    page.goto = AsyncMock(side_effect=goto_side_effect, return_value=MagicMock(status=200))
    page.content = AsyncMock(return_value="<html><body>rendered</body></html>")
    page.close = AsyncMock()
    page.url = URL

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    browser_type = MagicMock()
    browser_type.launch = AsyncMock(return_value=browser)
    browser_type.connect = AsyncMock(return_value=browser)

    playwright = MagicMock()
    setattr(playwright, engine, browser_type)

    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=playwright)
    manager.__aexit__ = AsyncMock(return_value=False)
    return manager, browser_type, browser, context, page


class TestBrowserFailureMessage:
    @pytest.mark.parametrize(
        "text",
        ["net::ERR_NAME_NOT_RESOLVED at https://x", "NS_ERROR_UNKNOWN_HOST"],
    )
    def test_unresolved_host_is_dns(self, text: str) -> None:
        message = browser_failure_message(PlaywrightError(text))
        assert isinstance(classify_failure_message(message), DNSFailureError)

    def test_timeout_is_connection_error(self) -> None:
        message = browser_failure_message(PlaywrightTimeoutError("Timeout 60000ms exceeded."))
        assert isinstance(classify_failure_message(message), ConnectionFailureError)


@pytest.mark.asyncio
class TestBrowserFetcher:
    async def test_renders_with_requested_engine(self) -> None:
        manager, browser_type, browser, context, page = _mock_playwright("chromium")
        with patch("readthrough.scraper.playwright_fetcher.async_playwright", return_value=manager):
            result = await BrowserFetcher(timeout=5).fetch(FetchRequest(url=URL, browser="chromium"))

        assert result.status is FetchStatus.OK
        assert result.fetcher == "browser"
        assert "rendered" in result.html
        browser_type.launch.assert_awaited_once_with(headless=True)
        assert page.goto.await_args.kwargs["timeout"] == 5000
        page.close.assert_awaited_once()
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()

    async def test_unknown_engine_falls_back_to_default(self) -> None:
        manager, browser_type, *_ = _mock_playwright("firefox")
        with patch("readthrough.scraper.playwright_fetcher.async_playwright", return_value=manager):
            result = await BrowserFetcher(default_engine="firefox").fetch(
                FetchRequest(url=URL, browser="netscape")
            )

        assert result.status is FetchStatus.OK
        browser_type.launch.assert_awaited_once()

    async def test_connects_to_remote_browser(self) -> None:
        manager, browser_type, *_ = _mock_playwright("firefox")
        with patch("readthrough.scraper.playwright_fetcher.async_playwright", return_value=manager):
            await BrowserFetcher(ws_endpoint="ws://browser:3000/").fetch(FetchRequest(url=URL))

        browser_type.connect.assert_awaited_once_with("ws://browser:3000/")
        browser_type.launch.assert_not_called()

    async def test_rule_user_agent_used(self) -> None:
        manager, _, browser, *_ = _mock_playwright("firefox")
        rules = RuleSet(user_agent="Reader/2.0")
        with patch("readthrough.scraper.playwright_fetcher.async_playwright", return_value=manager):
            await BrowserFetcher().fetch(FetchRequest(url=URL, rules=rules))

        assert browser.new_context.await_args.kwargs["user_agent"] == "Reader/2.0"

    async def test_navigation_error_reported_and_resources_closed(self) -> None:
        manager, _, browser, context, page = _mock_playwright(
            "firefox", goto_side_effect=PlaywrightError("net::ERR_NAME_NOT_RESOLVED")
        )
        with patch("readthrough.scraper.playwright_fetcher.async_playwright", return_value=manager):
            result = await BrowserFetcher().fetch(FetchRequest(url=URL))

        assert result.status is FetchStatus.FAILED
        assert result.error.startswith("DNS")
        page.close.assert_awaited_once()
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()
