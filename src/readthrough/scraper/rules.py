"""Per-domain rewrite rules and the provider that resolves them.

A :class:`RuleSet` is the typed view of one domain's rule mapping.  The
mapping vocabulary (camelCase keys) is what rule tables are written in; see
:data:`readthrough.config.domain_rules.DOMAIN_RULES` for examples.

Rule providers implement :class:`RuleProvider`.  The bundled
:class:`StaticRuleProvider` serves an in-memory table with subdomain
inheritance and global-rule merging.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from readthrough.scraper.domains import normalize_domain, parent_domains

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Rule vocabulary
# ---------------------------------------------------------------------------

#: Mapping key -> :class:`RuleSet` attribute.
RULE_KEYS: dict[str, str] = {
    "classAttrRemove": "class_attr_remove",
    "removeElementsByTag": "remove_elements_by_tag",
    "idElementRemove": "id_element_remove",
    "classElementRemove": "class_element_remove",
    "containsElementRemove": "contains_element_remove",
    "scriptTagRemove": "script_tag_remove",
    "removeCustomAttr": "remove_custom_attr",
    "cookiePrefixRemove": "cookie_prefix_remove",
    "customStyle": "custom_style",
    "customCode": "custom_code",
    "fetchStrategies": "fetch_strategy",
    "browser": "browser",
    "userAgent": "user_agent",
    "headers": "headers",
    "cookies": "cookies",
}

#: Keys whose values are lists and take part in global-rule merging.
LIST_RULE_KEYS: tuple[str, ...] = (
    "classAttrRemove",
    "removeElementsByTag",
    "idElementRemove",
    "classElementRemove",
    "containsElementRemove",
    "scriptTagRemove",
    "removeCustomAttr",
    "cookiePrefixRemove",
)


@dataclass(frozen=True)
class RuleSet:
    """Rewrite and fetch directives for one domain.

    Empty lists and ``None`` mean "rule not applicable".

    Attributes:
        class_attr_remove: Class tokens stripped from ``class`` attributes
            (the element itself is kept).
        remove_elements_by_tag: Tag names whose elements are removed.
        id_element_remove: Element ids removed.
        class_element_remove: Classes whose elements are removed.
        contains_element_remove: Keywords; any element whose class or id
            contains the keyword (case-insensitive) is removed.
        script_tag_remove: Substrings matched against script ``src``, script
            preload ``href`` and inline script text.
        remove_custom_attr: Attribute names, or glob patterns with ``*``,
            removed from every element.
        cookie_prefix_remove: Cookie-name prefixes never sent upstream.
        custom_style: CSS appended to ``<head>``.
        custom_code: JavaScript appended to ``<body>``.
        fetch_strategy: Name of the fetcher to try before the fallback chain.
        browser: Engine for browser rendering (``chromium``/``firefox``/``webkit``).
        user_agent: User agent override for the direct fetch.
        headers: Extra request headers for the direct fetch.
        cookies: Cookies for the direct fetch; a ``None`` value deletes the
            cookie instead.
    """

    class_attr_remove: tuple[str, ...] = ()
    remove_elements_by_tag: tuple[str, ...] = ()
    id_element_remove: tuple[str, ...] = ()
    class_element_remove: tuple[str, ...] = ()
    contains_element_remove: tuple[str, ...] = ()
    script_tag_remove: tuple[str, ...] = ()
    remove_custom_attr: tuple[str, ...] = ()
    cookie_prefix_remove: tuple[str, ...] = ()
    custom_style: str | None = None
    custom_code: str | None = None
    fetch_strategy: str | None = None
    browser: str | None = None
    user_agent: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str | None] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, rules: Mapping[str, Any] | None) -> RuleSet:
        """Build a RuleSet from a camelCase rule mapping.

        Unknown keys are ignored.  List values may be given as any iterable;
        a bare string is treated as a one-element list.  A list-valued
        ``fetchStrategies`` contributes its first entry.
        """
        if not rules:
            return cls()
        kwargs: dict[str, Any] = {}
        for key, attr in RULE_KEYS.items():
            if key not in rules or rules[key] is None:
                continue
            value = rules[key]
            if key in LIST_RULE_KEYS:
                kwargs[attr] = _as_tuple(value)
            elif key in ("headers", "cookies"):
                kwargs[attr] = dict(value)
            elif key == "fetchStrategies" and not isinstance(value, str):
                strategies = _as_tuple(value)
                kwargs[attr] = strategies[0] if strategies else None
            else:
                kwargs[attr] = str(value)
        return cls(**kwargs)


def _as_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    return tuple(str(item) for item in value)


def _merge_unique(*groups: tuple[str, ...] | list[str]) -> list[str]:
    """Concatenate *groups*, dropping duplicates while keeping first-seen order."""
    seen: dict[str, None] = {}
    for group in groups:
        for item in group:
            seen.setdefault(item, None)
    return list(seen)


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class RuleProvider(Protocol):
    """Lookup service for domain rules."""

    def has_rules(self, host: str) -> bool:
        """Return ``True`` if *host* (or a parent domain) has specific rules."""
        ...

    def get_rules(self, host: str) -> RuleSet:
        """Return the effective RuleSet for *host*; empty when none apply."""
        ...


class StaticRuleProvider:
    """In-memory rule table with subdomain inheritance.

    The most specific registered domain wins: for ``a.valor.globo.com`` the
    provider looks up ``a.valor.globo.com``, then ``valor.globo.com``, then
    ``globo.com``.  List-valued global rules are merged into the result
    unless the domain entry lists them under ``excludeGlobalRules``, either
    as a list of rule keys (drop the whole key) or as a mapping of rule key
    to the values to drop.

    Args:
        domain_rules: Rule mappings keyed by registered domain.
        global_rules: Rule mapping applied to every host.
    """

    def __init__(
        self,
        domain_rules: Mapping[str, Mapping[str, Any]] | None = None,
        global_rules: Mapping[str, Any] | None = None,
    ) -> None:
        self._domain_rules: dict[str, Mapping[str, Any]] = {
            normalize_domain(domain): rules for domain, rules in (domain_rules or {}).items()
        }
        self._global_rules: Mapping[str, Any] = global_rules or {}

    @classmethod
    def from_defaults(cls) -> StaticRuleProvider:
        """Provider over the bundled :mod:`readthrough.config.domain_rules` table."""
        from readthrough.config.domain_rules import DOMAIN_RULES, GLOBAL_RULES  # noqa: PLC0415

        return cls(DOMAIN_RULES, GLOBAL_RULES)

    def _find_domain_entry(self, host: str) -> Mapping[str, Any] | None:
        for candidate in parent_domains(host):
            entry = self._domain_rules.get(candidate)
            if entry is not None:
                return entry
        return None

    def has_rules(self, host: str) -> bool:
        return self._find_domain_entry(host) is not None

    def get_rules(self, host: str) -> RuleSet:
        entry = self._find_domain_entry(host) or {}
        merged: dict[str, Any] = {key: value for key, value in entry.items() if key != "excludeGlobalRules"}

        excluded = entry.get("excludeGlobalRules") or {}
        for key in LIST_RULE_KEYS:
            global_values = list(_as_tuple(self._global_rules.get(key, ())))
            if isinstance(excluded, Mapping):
                dropped = set(_as_tuple(excluded.get(key, ())))
                global_values = [value for value in global_values if value not in dropped]
            elif key in excluded:
                global_values = []
            domain_values = _as_tuple(merged.get(key, ()))
            combined = _merge_unique(global_values, domain_values)
            if combined:
                merged[key] = combined

        for key, value in self._global_rules.items():
            if key not in LIST_RULE_KEYS:
                merged.setdefault(key, value)

        rule_set = RuleSet.from_mapping(merged)
        logger.debug("rules: resolved %s (domain entry=%s)", host, bool(entry))
        return rule_set
