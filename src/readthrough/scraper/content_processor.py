"""Rule-driven HTML rewriting.

:class:`ContentProcessor` turns the raw HTML of a fetched page into the page
served to the reader.  The transform sequence is fixed:

1. replace canonical links with one pointing at the requested URL;
2. make relative ``src`` / ``href`` values absolute;
3. apply the host's :class:`~readthrough.scraper.rules.RuleSet`;
4. strip layout-hiding inline style declarations;
5. append the attribution bar;
6. in debug mode, append the activated-rules panel.

Each rule that changes the document appends an entry such as
``"classElementRemove: wall"`` to the caller's activated-rules list.
"""

from __future__ import annotations

import html
import logging
import re
import urllib.parse
from collections.abc import Iterable

from bs4 import BeautifulSoup, Tag

from readthrough.core.exceptions import ContentError
from readthrough.scraper.config import (
    DANGEROUS_STYLE_PROPERTIES,
    MIN_CONTENT_LENGTH,
    NO_RULES_ACTIVATED,
    UNREWRITTEN_HREF_PREFIXES,
    UNREWRITTEN_SRC_PREFIXES,
)
from readthrough.scraper.rules import RuleProvider, RuleSet

logger = logging.getLogger(__name__)

_DANGEROUS_STYLE_RE = re.compile(
    r"(?<![\w-])(?:" + "|".join(re.escape(p) for p in DANGEROUS_STYLE_PROPERTIES) + r")\s*:\s*[^;]+;?",
    re.IGNORECASE,
)

_BAR_STYLE = (
    "z-index: 2147483647; position: fixed; top: 0; right: 1rem; display: flex; gap: 8px;"
)
_BAR_LINK_STYLE = (
    "color: #fff; line-height: 1em; z-index: 2147483647; text-decoration: none; "
    "font-weight: bold; background: rgba(37,99,235, 0.9); "
    "box-shadow: 0 4px 6px rgba(0, 0, 0, 0.1); padding: 6px 10px; margin: 0px; "
    "overflow: hidden; border-bottom-left-radius: 8px; border-bottom-right-radius: 8px;"
)
_ORIGINAL_ICON = (
    '<svg xmlns="http://www.w3.org/2000/svg" fill="#fff" viewBox="0 0 16 16" width="20" height="20">'
    '<path d="M4.715 6.542 3.343 7.914a3 3 0 1 0 4.243 4.243l1.828-1.829A3 3 0 0 0 8.586 5.5L8 '
    '6.086a1 1 0 0 0-.154.199 2 2 0 0 1 .861 3.337L6.88 11.45a2 2 0 1 1-2.83-2.83l.793-.792a4 4 '
    '0 0 1-.128-1.287z"/><path d="M6.586 4.672A3 3 0 0 0 7.414 9.5l.775-.776a2 2 0 0 '
    '1-.896-3.346L9.12 3.55a2 2 0 1 1 2.83 2.83l-.793.792c.112.42.155.855.128 1.287l1.372-1.372a3 '
    '3 0 1 0-4.243-4.243z"/></svg>'
)
_SITE_ICON = (
    '<svg xmlns="http://www.w3.org/2000/svg" fill="#fff" viewBox="0 0 16 16" width="20" height="20">'
    '<path d="M8 1a2 2 0 0 1 2 2v4H6V3a2 2 0 0 1 2-2m3 6V3a3 3 0 0 0-6 0v4a2 2 0 0 0-2 2v5a2 2 0 0 '
    '0 2 2h6a2 2 0 0 0 2-2V9a2 2 0 0 0-2-2"/></svg>'
)
_DEBUG_PANEL_STYLE = (
    "z-index: 2147483647; position: fixed; bottom: 1rem; right: 1rem; max-width: 400px; "
    "padding: 1rem; color: #000; background: rgba(255, 255, 255, 0.9); "
    "border: 1px solid #e5e7eb; border-radius: 0.5rem; "
    "box-shadow: 0 4px 6px rgba(0, 0, 0, 0.1); overflow: auto; max-height: 80vh; "
    "font-family: monospace; font-size: 13px; line-height: 1.4;"
)


# ---------------------------------------------------------------------------
# DOM helpers
# ---------------------------------------------------------------------------


def _remove_all(elements: Iterable[Tag]) -> int:
    """Decompose *elements*, skipping those already gone with an ancestor.

    Returns:
        Number of elements removed.
    """
    removed = 0
    for element in list(elements):
        if element.decomposed:
            continue
        element.decompose()
        removed += 1
    return removed


def _class_string(tag: Tag) -> str:
    value = tag.get("class")
    if isinstance(value, list):
        return " ".join(value)
    return value or ""


def _glob_to_regex(pattern: str) -> re.Pattern[str]:
    return re.compile("^" + ".*".join(re.escape(part) for part in pattern.split("*")) + "$")


def site_root(url: str) -> str:
    """Return ``scheme://host[:port]`` of *url*."""
    parts = urllib.parse.urlsplit(url)
    netloc = parts.netloc.rsplit("@", 1)[-1]
    return f"{parts.scheme or 'http'}://{netloc}"


def _absolutize(value: str, root: str) -> str:
    return f"{root}/{value.lstrip('/')}"


def _is_absolute(value: str) -> bool:
    return value.startswith(("http", "//"))


# ---------------------------------------------------------------------------
# Processor
# ---------------------------------------------------------------------------


class ContentProcessor:
    """Apply structural transforms and domain rules to raw HTML.

    Args:
        rule_provider: Source of per-host rules.
        site_url: This service's public URL, linked from the attribution bar.
        debug: Append the activated-rules panel to every page.
    """

    def __init__(self, rule_provider: RuleProvider, *, site_url: str, debug: bool = False) -> None:
        self._rules = rule_provider
        self._site_url = site_url
        self._debug = debug

    def process(
        self,
        raw_html: str,
        host: str,
        url: str,
        activated_rules: list[str] | None = None,
    ) -> str:
        """Rewrite *raw_html* fetched for *url*.

        Args:
            raw_html: The page exactly as fetched.
            host: Host whose rules apply.
            url: The URL the reader requested.
            activated_rules: Per-analysis accumulator; rule entries are
                appended to it.  A fresh list is used when omitted.

        Returns:
            The rewritten document as an HTML string.

        Raises:
            ContentError: If *raw_html* is shorter, in UTF-8 bytes, than
                :data:`~readthrough.scraper.config.MIN_CONTENT_LENGTH`.
        """
        size = len(raw_html.encode("utf-8"))
        if size < MIN_CONTENT_LENGTH:
            raise ContentError(detail=f"content too short ({size} bytes)")

        activated = activated_rules if activated_rules is not None else []
        soup = BeautifulSoup(raw_html, "html.parser")

        self._replace_canonical(soup, url)
        self._fix_relative_urls(soup, url)
        self.apply_rules(soup, self._rules.get_rules(host), activated)
        self._clean_inline_styles(soup)
        self._add_brand_bar(soup, url)
        if self._debug:
            self._add_debug_panel(soup, activated)

        logger.debug("scraper: processed %s (%d rules fired)", url, len(activated))
        return str(soup)

    # ------------------------------------------------------------------
    # Structural transforms
    # ------------------------------------------------------------------

    @staticmethod
    def _replace_canonical(soup: BeautifulSoup, url: str) -> None:
        _remove_all(
            link for link in soup.find_all("link")
            if "canonical" in [rel.lower() for rel in (link.get("rel") or [])]
        )
        if soup.head is not None:
            soup.head.append(soup.new_tag("link", attrs={"rel": "canonical", "href": url}))

    @staticmethod
    def _fix_relative_urls(soup: BeautifulSoup, url: str) -> None:
        root = site_root(url)
        for element in soup.find_all(src=True):
            src = element["src"]
            if src.startswith(UNREWRITTEN_SRC_PREFIXES) or _is_absolute(src):
                continue
            element["src"] = _absolutize(src, root)
        for element in soup.find_all(href=True):
            href = element["href"]
            if href.startswith(UNREWRITTEN_HREF_PREFIXES) or _is_absolute(href):
                continue
            element["href"] = _absolutize(href, root)

    @staticmethod
    def _clean_inline_styles(soup: BeautifulSoup) -> None:
        for element in soup.find_all(style=True):
            cleaned = _DANGEROUS_STYLE_RE.sub("", element["style"]).strip()
            if cleaned:
                element["style"] = cleaned
            else:
                del element["style"]

    def _add_brand_bar(self, soup: BeautifulSoup, url: str) -> None:
        if soup.body is None:
            return
        bar_html = (
            f'<div style="{_BAR_STYLE}">'
            f'<a href="{html.escape(url)}" style="{_BAR_LINK_STYLE}" target="_blank" '
            f'title="Original page">{_ORIGINAL_ICON}</a>'
            f'<a href="{html.escape(self._site_url)}" style="{_BAR_LINK_STYLE}" target="_blank" '
            f'title="Readthrough">{_SITE_ICON}</a>'
            "</div>"
        )
        soup.body.append(BeautifulSoup(bar_html, "html.parser").div)

    @staticmethod
    def _add_debug_panel(soup: BeautifulSoup, activated: list[str]) -> None:
        if soup.body is None:
            return
        panel = soup.new_tag("div", attrs={"style": _DEBUG_PANEL_STYLE})
        for entry in activated or [NO_RULES_ACTIVATED]:
            line = soup.new_tag("div")
            line.string = entry
            panel.append(line)
        soup.body.append(panel)

    # ------------------------------------------------------------------
    # Domain rules
    # ------------------------------------------------------------------

    def apply_rules(self, soup: BeautifulSoup, rules: RuleSet, activated: list[str]) -> None:
        """Apply *rules* to *soup* in place, recording each rule that fired."""
        if rules.custom_style:
            style = soup.new_tag("style")
            style.string = rules.custom_style
            if soup.head is not None:
                soup.head.append(style)
                activated.append("customStyle")

        if rules.custom_code:
            script = soup.new_tag("script", attrs={"type": "text/javascript"})
            script.string = rules.custom_code
            if soup.body is not None:
                soup.body.append(script)
                activated.append("customCode")

        for class_name in rules.class_attr_remove:
            elements = soup.find_all(class_=class_name)
            for element in elements:
                remaining = [c for c in element.get("class", []) if c != class_name]
                if remaining:
                    element["class"] = remaining
                else:
                    del element["class"]
            if elements:
                activated.append(f"classAttrRemove: {class_name}")

        for tag_name in rules.remove_elements_by_tag:
            if _remove_all(soup.find_all(tag_name)):
                activated.append(f"removeElementsByTag: {tag_name}")

        for element_id in rules.id_element_remove:
            if _remove_all(soup.find_all(id=element_id)):
                activated.append(f"idElementRemove: {element_id}")

        for class_name in rules.class_element_remove:
            if _remove_all(soup.find_all(class_=class_name)):
                activated.append(f"classElementRemove: {class_name}")

        for raw_keyword in rules.contains_element_remove:
            keyword = raw_keyword.strip().lower()
            if not keyword:
                continue
            matches = soup.find_all(
                lambda tag, kw=keyword: kw in _class_string(tag).lower()
                or kw in (tag.get("id") or "").lower()
            )
            if _remove_all(matches):
                activated.append(f"containsElementRemove: {keyword}")

        for needle in rules.script_tag_remove:
            matches = [
                *soup.find_all("script", src=lambda src, n=needle: bool(src) and n in src),
                *soup.find_all(
                    "link",
                    attrs={"as": "script", "href": lambda href, n=needle: bool(href) and n in href},
                ),
                *soup.find_all(
                    "script",
                    string=lambda text, n=needle: bool(text) and n in text,
                ),
            ]
            if _remove_all(matches):
                activated.append(f"scriptTagRemove: {needle}")

        for attr_pattern in rules.remove_custom_attr:
            if self._remove_attributes(soup, attr_pattern):
                activated.append(f"removeCustomAttr: {attr_pattern}")

    @staticmethod
    def _remove_attributes(soup: BeautifulSoup, attr_pattern: str) -> bool:
        found = False
        if "*" in attr_pattern:
            regex = _glob_to_regex(attr_pattern)
            for element in soup.find_all(True):
                for name in [name for name in element.attrs if regex.match(name)]:
                    del element[name]
                    found = True
        else:
            for element in soup.find_all(attrs={attr_pattern: True}):
                del element[attr_pattern]
                found = True
        return found
