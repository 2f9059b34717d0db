"""Unit tests for the direct HTTP fetcher and its helpers.

Covers crawler identity headers, DNS detection, failure messages, rule
headers and cookie stripping, using mocked httpx responses.
"""

from __future__ import annotations

import socket

import httpx
import pytest
import respx

from readthrough.scraper.http_fetcher import (
    FetchRequest,
    FetchResult,
    FetchStatus,
    HttpFetcher,
    crawler_headers,
    is_dns_failure,
    transport_failure_message,
)
from readthrough.scraper.rules import RuleSet

URL = "https://site.example/article"
PAGE = "<html><body>" + ("word " * 200) + "</body></html>"


# ---------------------------------------------------------------------------
# Unit tests for helper functions
# ---------------------------------------------------------------------------


class TestFetchResult:
    def test_ok(self) -> None:
        assert FetchResult("direct", PAGE).status is FetchStatus.OK

    def test_blank_is_empty(self) -> None:
        assert FetchResult("direct", " \n ").status is FetchStatus.EMPTY

    def test_error_is_failed(self) -> None:
        assert FetchResult.failed("direct", "HTTP 500").status is FetchStatus.FAILED


class TestCrawlerHeaders:
    def test_googlebot_identity_with_forwarded_for(self) -> None:
        headers = crawler_headers()
        assert "Googlebot" in headers["User-Agent"]
        first, second, third, fourth = headers["X-Forwarded-For"].split(".")
        assert (first, second) == ("66", "249")
        assert 64 <= int(third) <= 95
        assert 1 <= int(fourth) <= 254

    def test_user_agent_override(self) -> None:
        assert crawler_headers("Custom/1.0")["User-Agent"] == "Custom/1.0"


class TestFailureMessages:
    def test_gaierror_in_cause_chain_is_dns(self) -> None:
        exc = httpx.ConnectError("connection failed")
        exc.__cause__ = socket.gaierror(-2, "Name or service not known")
        assert is_dns_failure(exc)
        assert transport_failure_message(exc).startswith("DNS")

    def test_refused_connection_is_curl(self) -> None:
        exc = httpx.ConnectError("[Errno 111] Connection refused")
        assert not is_dns_failure(exc)
        assert transport_failure_message(exc).startswith("CURL")

    def test_timeout_is_curl(self) -> None:
        assert "timeout" in transport_failure_message(httpx.ReadTimeout("read timed out"))


# ---------------------------------------------------------------------------
# Integration tests using respx (mock httpx)
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestHttpFetcher:
    async def test_successful_fetch(self) -> None:
        with respx.mock(base_url="https://site.example") as mock:
            route = mock.get("/article").mock(return_value=httpx.Response(200, text=PAGE))
            result = await HttpFetcher().fetch(FetchRequest(url=URL))

        assert result.status is FetchStatus.OK
        assert result.html == PAGE
        assert result.fetcher == "direct"
        assert "Googlebot" in route.calls.last.request.headers["User-Agent"]

    async def test_redirect_followed(self) -> None:
        with respx.mock(base_url="https://site.example") as mock:
            mock.get("/article").mock(
                return_value=httpx.Response(301, headers={"Location": "https://site.example/moved"})
            )
            mock.get("/moved").mock(return_value=httpx.Response(200, text=PAGE))
            result = await HttpFetcher().fetch(FetchRequest(url=URL))

        assert result.final_url == "https://site.example/moved"
        assert result.status is FetchStatus.OK

    async def test_http_error_status(self) -> None:
        with respx.mock(base_url="https://site.example") as mock:
            mock.get("/article").mock(return_value=httpx.Response(404))
            result = await HttpFetcher().fetch(FetchRequest(url=URL))

        assert result.status is FetchStatus.FAILED
        assert result.status_code == 404
        assert "HTTP 404" in result.error
        assert result.error.endswith("not found")

    async def test_server_error_status_not_reported_as_missing(self) -> None:
        with respx.mock(base_url="https://site.example") as mock:
            mock.get("/article").mock(return_value=httpx.Response(503))
            result = await HttpFetcher().fetch(FetchRequest(url=URL))

        assert result.status_code == 503
        assert "HTTP 503" in result.error
        assert "not found" not in result.error

    async def test_dns_failure(self) -> None:
        with respx.mock(base_url="https://site.example") as mock:
            mock.get("/article").mock(side_effect=httpx.ConnectError("[Errno -2] Name or service not known"))
            result = await HttpFetcher().fetch(FetchRequest(url=URL))

        assert result.status is FetchStatus.FAILED
        assert result.error.startswith("DNS")

    async def test_timeout(self) -> None:
        with respx.mock(base_url="https://site.example") as mock:
            mock.get("/article").mock(side_effect=httpx.ConnectTimeout("timed out"))
            result = await HttpFetcher().fetch(FetchRequest(url=URL))

        assert result.error.startswith("CURL")

    async def test_rule_headers_and_user_agent_applied(self) -> None:
        rules = RuleSet(user_agent="Reader/2.0", headers={"Referer": "https://www.google.com/"})
        with respx.mock(base_url="https://site.example") as mock:
            route = mock.get("/article").mock(return_value=httpx.Response(200, text=PAGE))
            await HttpFetcher().fetch(FetchRequest(url=URL, rules=rules))

        sent = route.calls.last.request.headers
        assert sent["User-Agent"] == "Reader/2.0"
        assert sent["Referer"] == "https://www.google.com/"

    async def test_cookie_prefixes_stripped(self) -> None:
        rules = RuleSet(
            cookies={"__utp_session": "a", "_pc_id": "b", "keep": "c", "dropped": None},
            cookie_prefix_remove=("__utp", "_pc_"),
        )
        with respx.mock(base_url="https://site.example") as mock:
            route = mock.get("/article").mock(return_value=httpx.Response(200, text=PAGE))
            await HttpFetcher().fetch(FetchRequest(url=URL, rules=rules))

        assert route.calls.last.request.headers["Cookie"] == "keep=c"

    async def test_all_cookies_stripped_removes_header(self) -> None:
        rules = RuleSet(cookies={"__utp": "a"}, cookie_prefix_remove=("__utp",))
        with respx.mock(base_url="https://site.example") as mock:
            route = mock.get("/article").mock(return_value=httpx.Response(200, text=PAGE))
            await HttpFetcher().fetch(FetchRequest(url=URL, rules=rules))

        assert "Cookie" not in route.calls.last.request.headers
