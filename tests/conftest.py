"""Shared pytest fixtures for Readthrough tests.

Fixture summary
---------------
make_article     - factory for raw HTML pages above the minimum content size.
memory_cache     - empty in-process cache.
rule_provider    - StaticRuleProvider over a small test rule table.
fake_fetcher     - factory for scripted fetchers that record their calls.
status_checker   - scripted status probe (HTTP 200 by default).
make_analyzer    - factory wiring an Analyzer from the fixtures above.

No fixture touches the network.  HTTP-level tests mock httpx with respx.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from readthrough.config.settings import get_settings
from readthrough.scraper.analyzer import Analyzer
from readthrough.scraper.cache import MemoryCache
from readthrough.scraper.content_processor import ContentProcessor
from readthrough.scraper.http_fetcher import FetchRequest, FetchResult
from readthrough.scraper.policy import DenyPolicy
from readthrough.scraper.rules import StaticRuleProvider
from readthrough.scraper.status_checker import StatusInfo

SITE_URL = "https://readthrough.test"

TEST_DOMAIN_RULES: dict[str, dict[str, Any]] = {
    "globo.com": {
        "containsElementRemove": ["paywall"],
        "classElementRemove": ["wall"],
    },
    "wayback-first.example": {"fetchStrategies": "wayback"},
    "browser-first.example": {"fetchStrategies": "browser", "browser": "chromium"},
}

TEST_DMCA_ENTRIES: list[dict[str, str]] = [
    {"host": "takedown.example", "message": "Removed at the publisher's request."},
]

# ---------------------------------------------------------------------------
# Settings isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Iterator[None]:
    """Make every test read settings from its own (possibly patched) environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------


@pytest.fixture
def make_article() -> Callable[..., str]:
    """Return a factory building a full HTML page around *body*.

    The page is padded with a hidden comment so it always passes the
    minimum content size check without adding visible text.
    """

    def _make(body: str = "<p>Article text.</p>", head: str = "") -> str:
        padding = "<!-- " + ("x" * 6000) + " -->"
        return (
            "<!DOCTYPE html><html><head><title>Article</title>"
            f"{head}</head><body>{body}{padding}</body></html>"
        )

    return _make


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


class FakeFetcher:
    """Fetcher returning a scripted result (or raising a scripted exception)."""

    def __init__(
        self,
        name: str,
        *,
        html: str | None = None,
        error: str | None = None,
        raises: Exception | None = None,
    ) -> None:
        self.name = name
        self._html = html
        self._error = error
        self._raises = raises
        self.requests: list[FetchRequest] = []

    @property
    def called(self) -> bool:
        return bool(self.requests)

    async def fetch(self, request: FetchRequest) -> FetchResult:
        self.requests.append(request)
        if self._raises is not None:
            raise self._raises
        if self._error is not None:
            return FetchResult.failed(self.name, self._error)
        return FetchResult(fetcher=self.name, html=self._html or "", status_code=200)


class FakeStatusChecker:
    """Status probe answering with a fixed HTTP code."""

    def __init__(self, http_code: int = 200) -> None:
        self.http_code = http_code
        self.calls: list[str] = []

    async def check_status(self, url: str) -> StatusInfo:
        self.calls.append(url)
        return StatusInfo(final_url=url, has_redirect=False, http_code=self.http_code)


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def rule_provider() -> StaticRuleProvider:
    return StaticRuleProvider(TEST_DOMAIN_RULES, {})


@pytest.fixture
def fake_fetcher() -> Callable[..., FakeFetcher]:
    return FakeFetcher


@pytest.fixture
def status_checker() -> FakeStatusChecker:
    return FakeStatusChecker()


@pytest.fixture
def make_analyzer(
    memory_cache: MemoryCache,
    rule_provider: StaticRuleProvider,
    status_checker: FakeStatusChecker,
) -> Callable[..., Analyzer]:
    """Return a factory for an Analyzer over test collaborators.

    Fetchers not passed explicitly fail with a generic message, so a test
    only scripts the ones it cares about.
    """

    def _make(
        *,
        direct: FakeFetcher | None = None,
        wayback: FakeFetcher | None = None,
        browser: FakeFetcher | None = None,
        provider: Any = None,
        cache: Any = None,
        checker: Any = None,
        blocked_domains: tuple[str, ...] = ("blocked.example",),
        debug: bool = False,
    ) -> Analyzer:
        provider = provider or rule_provider
        fetchers = {
            "direct": direct or FakeFetcher("direct", error="direct fetch failed"),
            "wayback": wayback or FakeFetcher("wayback", error="wayback fetch failed"),
            "browser": browser or FakeFetcher("browser", error="browser fetch failed"),
        }
        return Analyzer(
            rule_provider=provider,
            cache=cache if cache is not None else memory_cache,
            policy=DenyPolicy.build(
                blocked_domains=blocked_domains,
                dmca_entries=TEST_DMCA_ENTRIES,
                restricted_keywords=("/wp-admin", "file://"),
            ),
            status_checker=checker or status_checker,
            fetchers=fetchers,
            processor=ContentProcessor(provider, site_url=SITE_URL, debug=debug),
        )

    return _make
