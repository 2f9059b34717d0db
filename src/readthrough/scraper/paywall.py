"""Hard-paywall detection for publishers that serve no body text to non-subscribers.

Rule-driven rewriting removes overlay-style ("soft") paywalls.  Some
publishers instead omit the article body server-side; after rewriting, the
page is an empty shell.  For those publishers the processed page must carry
a minimum amount of visible text.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup
from bs4.element import CData, NavigableString, Script, Stylesheet, TemplateString

from readthrough.core.exceptions import ContentError
from readthrough.scraper.config import (
    HARD_PAYWALL_DOMAIN,
    HARD_PAYWALL_MESSAGE,
    HARD_PAYWALL_MIN_CHARS,
)
from readthrough.scraper.domains import normalize_domain

_WHITESPACE_RE = re.compile(r"\s+")

#: String types counted as text.  Script and style bodies count; comments,
#: doctypes and processing instructions do not.
_TEXT_TYPES = (NavigableString, CData, Script, Stylesheet, TemplateString)


def visible_text(processed_html: str) -> str:
    """Return *processed_html* with tags stripped and whitespace collapsed.

    Only the markup is removed: the bodies of ``<script>`` and ``<style>``
    elements stay in the text.
    """
    text = BeautifulSoup(processed_html, "html.parser").get_text(" ", types=_TEXT_TYPES)
    return _WHITESPACE_RE.sub(" ", text).strip()


def validate_hard_paywall(host: str, processed_html: str) -> None:
    """Reject a hard-paywalled article.

    Only pages whose normalised host equals
    :data:`~readthrough.scraper.config.HARD_PAYWALL_DOMAIN` are checked.

    Raises:
        ContentError: If the visible text is shorter than
            :data:`~readthrough.scraper.config.HARD_PAYWALL_MIN_CHARS`.
    """
    if normalize_domain(host) != HARD_PAYWALL_DOMAIN:
        return
    if len(visible_text(processed_html)) < HARD_PAYWALL_MIN_CHARS:
        raise ContentError(HARD_PAYWALL_MESSAGE)
