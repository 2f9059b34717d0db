"""Top-level page analysis: policy checks, cache, fetch fallback chain, rewriting.

:meth:`Analyzer.analyze` runs these steps in order, stopping at the first
failure:

1. extract the host (:class:`InvalidURLError`);
2. restricted-keyword policy (:class:`RestrictedURLError`);
3. DMCA takedown list, host or any subdomain (:class:`DMCADomainError`);
4. cache hit: re-process the cached raw HTML and return;
5. blocklist (:class:`BlockedDomainError`);
6. status probe, only for hosts without domain rules;
7. the host's preferred fetch strategy, if it names one;
8. the fallback chain ``direct -> wayback -> browser``;
9. classification of the last fetch failure.

Steps 1-3 never touch the cache or the network.  Every fresh fetch is
cached raw; processing always runs on raw HTML so rule changes apply to
cached pages too.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from readthrough.core.exceptions import (
    AnalysisError,
    BlockedDomainError,
    CacheError,
    DMCADomainError,
    InvalidURLError,
    RestrictedURLError,
)
from readthrough.core.logging_config import log_url_event
from readthrough.scraper.cache import Cache, build_cache
from readthrough.scraper.config import DEFAULT_FETCH_ORDER
from readthrough.scraper.content_processor import ContentProcessor
from readthrough.scraper.domains import extract_host
from readthrough.scraper.error_classifier import (
    classify_exception,
    classify_failure_message,
    error_for_status,
)
from readthrough.scraper.http_fetcher import (
    Fetcher,
    FetchRequest,
    FetchResult,
    FetchStatus,
    HttpFetcher,
)
from readthrough.scraper.paywall import validate_hard_paywall
from readthrough.scraper.playwright_fetcher import BrowserFetcher
from readthrough.scraper.policy import DenyPolicy
from readthrough.scraper.rules import RuleProvider, RuleSet, StaticRuleProvider
from readthrough.scraper.status_checker import StatusChecker, StatusInfo
from readthrough.scraper.wayback_fetcher import WaybackFetcher

if TYPE_CHECKING:
    from readthrough.config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    """A successfully processed page.

    Attributes:
        html: The rewritten page.
        url: The requested URL.
        host: Host of ``url``.
        activated_rules: Rules and fetch strategy that fired, in order.
        fetcher: Name of the fetcher that produced the raw HTML, or ``None``
            for a cache hit.
        from_cache: ``True`` when the raw HTML came from the cache.
    """

    html: str
    url: str
    host: str
    activated_rules: tuple[str, ...] = field(default_factory=tuple)
    fetcher: str | None = None
    from_cache: bool = False


class Analyzer:
    """Coordinates policy, cache, fetchers and the content processor.

    Holds no per-analysis state; concurrent :meth:`analyze` calls are
    independent.

    Args:
        rule_provider: Per-host rule lookup.
        cache: Raw-HTML cache.
        policy: Blocklist, DMCA list and restricted keywords.
        status_checker: Pre-flight probe for hosts without rules.
        fetchers: Available fetchers keyed by name.
        processor: HTML rewriter.
        fetch_order: Names of the fetchers in the fallback chain.
        default_browser: Engine the chain's browser fetch uses, and the
            preferred-strategy fallback when a rule names no engine.
    """

    def __init__(
        self,
        *,
        rule_provider: RuleProvider,
        cache: Cache,
        policy: DenyPolicy,
        status_checker: StatusChecker,
        fetchers: dict[str, Fetcher],
        processor: ContentProcessor,
        fetch_order: Sequence[str] = DEFAULT_FETCH_ORDER,
        default_browser: str = "firefox",
    ) -> None:
        unknown = [name for name in fetch_order if name not in fetchers]
        if unknown:
            raise ValueError(f"fetch_order names unknown fetchers: {unknown}")
        self._rules = rule_provider
        self._cache = cache
        self._policy = policy
        self._status_checker = status_checker
        self._fetchers = fetchers
        self._processor = processor
        self._fetch_order = tuple(fetch_order)
        self._default_browser = default_browser

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        rule_provider: RuleProvider | None = None,
    ) -> Analyzer:
        """Wire the default collaborators from *settings*."""
        rule_provider = rule_provider or StaticRuleProvider.from_defaults()
        fetchers: list[Fetcher] = [
            HttpFetcher(timeout=settings.request_timeout, verify_ssl=settings.verify_ssl),
            WaybackFetcher(timeout=settings.wayback_timeout),
            BrowserFetcher(
                timeout=settings.browser_timeout,
                default_engine=settings.browser_engine,
                ws_endpoint=settings.browser_ws_endpoint,
            ),
        ]
        return cls(
            rule_provider=rule_provider,
            cache=build_cache(settings),
            policy=DenyPolicy.from_settings(settings),
            status_checker=StatusChecker(
                timeout=settings.status_check_timeout,
                verify_ssl=settings.verify_ssl,
            ),
            fetchers={fetcher.name: fetcher for fetcher in fetchers},
            processor=ContentProcessor(
                rule_provider,
                site_url=settings.site_url,
                debug=settings.debug,
            ),
            default_browser=settings.browser_engine,
        )

    async def check_status(self, url: str) -> StatusInfo:
        """Probe *url* with the status checker."""
        return await self._status_checker.check_status(url)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def analyze(self, url: str) -> AnalysisResult:
        """Fetch and rewrite *url*.

        Returns:
            The processed page.

        Raises:
            AnalysisError: A member of the error taxonomy.  Errors raised as
                ``AnalysisError`` anywhere below propagate unchanged; any
                other exception is classified once, here.
        """
        try:
            return await self._analyze(url)
        except AnalysisError:
            raise
        except Exception as exc:
            logger.exception("scraper: unclassified failure analysing %s", url)
            raise classify_exception(exc) from exc

    async def _analyze(self, url: str) -> AnalysisResult:
        host = extract_host(url)
        if not host:
            raise InvalidURLError()

        if self._policy.is_restricted(url):
            log_url_event(url, "RESTRICTED_URL")
            raise RestrictedURLError()

        dmca_entry = self._policy.dmca_entry_for(host)
        if dmca_entry is not None:
            log_url_event(url, "DMCA_DOMAIN")
            raise DMCADomainError(dmca_entry.message)

        activated: list[str] = []

        cached = self._read_cache(url)
        if cached is not None:
            logger.debug("scraper: cache hit for %s", url)
            return self._finish(url, host, cached, activated, fetcher=None)

        if self._policy.is_blocked(host):
            log_url_event(url, "BLOCKED_DOMAIN")
            raise BlockedDomainError()

        if not self._rules.has_rules(host):
            status = await self._status_checker.check_status(url)
            status_error = error_for_status(status.http_code)
            if status_error is not None:
                log_url_event(url, "INVALID_STATUS_CODE", f"HTTP {status.http_code}")
                raise status_error

        rules = self._rules.get_rules(host)
        result = await self._preferred_fetch(url, rules)
        last_error: str | None = None
        if result is None:
            result, last_error = await self._fallback_chain(url, rules)

        if result is None:
            log_url_event(url, "GENERAL_FETCH_ERROR", last_error)
            raise classify_failure_message(last_error)

        activated.append(f"fetchStrategy: {result.fetcher}")
        self._write_cache(url, result.html)
        return self._finish(url, host, result.html, activated, fetcher=result.fetcher)

    def _read_cache(self, url: str) -> str | None:
        """Return the cached raw HTML for *url*; an unreadable entry counts as a miss."""
        try:
            if not self._cache.exists(url):
                return None
            return self._cache.get(url).decode("utf-8", errors="replace")
        except CacheError as exc:
            logger.warning("scraper: cache read failed for %s: %s", url, exc)
            return None

    def _write_cache(self, url: str, raw_html: str) -> None:
        try:
            self._cache.set(url, raw_html.encode("utf-8"))
        except CacheError as exc:
            logger.warning("scraper: cache write failed for %s: %s", url, exc)

    def _finish(
        self,
        url: str,
        host: str,
        raw_html: str,
        activated: list[str],
        *,
        fetcher: str | None,
    ) -> AnalysisResult:
        processed = self._processor.process(raw_html, host, url, activated)
        validate_hard_paywall(host, processed)
        return AnalysisResult(
            html=processed,
            url=url,
            host=host,
            activated_rules=tuple(activated),
            fetcher=fetcher,
            from_cache=fetcher is None,
        )

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def _preferred_fetch(self, url: str, rules: RuleSet) -> FetchResult | None:
        """Try the strategy named by the host's rules.

        Returns:
            The result when it has content; ``None`` when no strategy is
            named or it returned an empty page.

        Raises:
            AnalysisError: The named strategy failed.  Failures here are
                final and skip the fallback chain.
        """
        name = rules.fetch_strategy
        if not name:
            return None
        fetcher = self._fetchers.get(name)
        if fetcher is None:
            logger.warning("scraper: rules name unknown fetch strategy %r for %s", name, url)
            return None

        request = FetchRequest(url=url, rules=rules, browser=rules.browser or self._default_browser)
        try:
            result = await fetcher.fetch(request)
        except Exception as exc:
            log_url_event(url, f"{name.upper()}_ERROR", str(exc))
            raise

        if result.status is FetchStatus.FAILED:
            log_url_event(url, f"{name.upper()}_ERROR", result.error)
            raise classify_failure_message(result.error or f"{name} fetch failed")
        if result.status is FetchStatus.EMPTY:
            return None
        return result

    async def _fallback_chain(self, url: str, rules: RuleSet) -> tuple[FetchResult | None, str | None]:
        """Run the fetchers of the fallback chain one at a time.

        Returns:
            ``(result, None)`` for the first result with content, otherwise
            ``(None, last_failure_message)``; the message is ``None`` when
            every fetcher returned an empty page.
        """
        last_error: str | None = None
        for name in self._fetch_order:
            request = FetchRequest(url=url, rules=rules, browser=self._default_browser)
            try:
                result = await self._fetchers[name].fetch(request)
            except Exception as exc:  # noqa: BLE001
                last_error = str(exc) or type(exc).__name__
                log_url_event(url, f"{name.upper()}_ERROR", last_error)
                continue

            if result.status is FetchStatus.OK:
                return result, None
            if result.status is FetchStatus.FAILED:
                last_error = result.error or f"{name} fetch failed"
                log_url_event(url, f"{name.upper()}_ERROR", last_error)
            else:
                logger.info("scraper: %s returned an empty page for %s", name, url)
        return None, last_error
