"""Constants and tuning parameters for the fetch and rewrite pipeline."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Content size guards
# ---------------------------------------------------------------------------

#: Raw HTML under this many bytes (UTF-8) is treated as an error page or an
#: empty shell, never as an article.
MIN_CONTENT_LENGTH: int = 5120

# ---------------------------------------------------------------------------
# Hard paywall
# ---------------------------------------------------------------------------

#: Publisher whose articles are checked for a hard paywall after processing.
HARD_PAYWALL_DOMAIN: str = "valor.globo.com"

#: Minimum visible-text length (characters) a processed page from
#: :data:`HARD_PAYWALL_DOMAIN` must have.
HARD_PAYWALL_MIN_CHARS: int = 200

HARD_PAYWALL_MESSAGE: str = (
    "Este artigo do Valor Economico e exclusivo para assinantes (hard paywall)."
)

# ---------------------------------------------------------------------------
# Rewriting
# ---------------------------------------------------------------------------

#: Inline ``style`` properties stripped from every element.  Paywall scripts
#: use these to clip or hide the article body.
DANGEROUS_STYLE_PROPERTIES: tuple[str, ...] = (
    "max-height",
    "height",
    "overflow",
    "position",
    "display",
    "visibility",
)

#: ``href`` prefixes left untouched by the relative-URL rewrite.
UNREWRITTEN_HREF_PREFIXES: tuple[str, ...] = ("mailto:", "tel:", "javascript:", "#", "data:")

#: ``src`` prefixes left untouched by the relative-URL rewrite.
UNREWRITTEN_SRC_PREFIXES: tuple[str, ...] = ("data:",)

#: Placeholder shown in the debug panel when no rule fired.
NO_RULES_ACTIVATED: str = "No rules activated"

# ---------------------------------------------------------------------------
# HTTP identity
# ---------------------------------------------------------------------------

#: Crawler user agent presented by the status probe and the direct fetch.
CRAWLER_USER_AGENT: str = (
    "Mozilla/5.0 (Linux; Android 6.0.1; Nexus 5X Build/MMB29P) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/W.X.Y.Z Mobile Safari/537.36 "
    "(compatible; Googlebot/2.1; +http://www.google.com/bot.html)"
)

#: Headers sent alongside :data:`CRAWLER_USER_AGENT`.
CRAWLER_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "DNT": "1",
    "From": "googlebot(at)googlebot.com",
}

#: Crawler address block used for the spoofed ``X-Forwarded-For`` header.
CRAWLER_FORWARDED_PREFIX: str = "66.249"

#: User agent of the headless browser.
BROWSER_USER_AGENT: str = (
    "Mozilla/5.0 (X11; Linux x86_64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

# ---------------------------------------------------------------------------
# Wayback Machine
# ---------------------------------------------------------------------------

WB_AVAILABILITY_URL: str = "https://archive.org/wayback/available"
"""Availability API: returns the closest archived snapshot of a URL."""

WB_PLAYBACK_URL_TEMPLATE: str = "https://web.archive.org/web/{timestamp}id_/{url}"
"""Raw capture URL.  The ``id_`` suffix omits the Wayback toolbar and link
rewriting, so the capture is the page exactly as archived."""

# ---------------------------------------------------------------------------
# Fetch strategies
# ---------------------------------------------------------------------------

FETCHER_DIRECT: str = "direct"
FETCHER_WAYBACK: str = "wayback"
FETCHER_BROWSER: str = "browser"

#: Order of the generic fallback chain.  Browser automation is the most
#: expensive and is attempted last.
DEFAULT_FETCH_ORDER: tuple[str, ...] = (FETCHER_DIRECT, FETCHER_WAYBACK, FETCHER_BROWSER)

#: Engines accepted by the browser fetcher.
BROWSER_ENGINES: frozenset[str] = frozenset({"chromium", "firefox", "webkit"})
