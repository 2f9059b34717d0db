"""Access policy checks applied before any cache or network access."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from readthrough.scraper.domains import is_domain_match, normalize_domain

if TYPE_CHECKING:
    from readthrough.config.settings import Settings


@dataclass(frozen=True)
class DMCAEntry:
    """A takedown entry covering ``host`` and its subdomains."""

    host: str
    message: str | None = None


@dataclass(frozen=True)
class DenyPolicy:
    """Blocklist, DMCA list and restricted-keyword predicate.

    Attributes:
        blocked_domains: Lowercased hosts rejected on a cache miss.
        dmca_entries: Takedown entries, checked in order.
        restricted_keywords: Lowercased URL substrings that make a URL
            ineligible.
    """

    blocked_domains: frozenset[str] = frozenset()
    dmca_entries: tuple[DMCAEntry, ...] = ()
    restricted_keywords: tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        blocked_domains: Iterable[str] = (),
        dmca_entries: Iterable[Mapping[str, str] | DMCAEntry] = (),
        restricted_keywords: Iterable[str] = (),
    ) -> DenyPolicy:
        """Normalise raw list data into a policy.

        DMCA entries may be mappings with ``host`` / ``message`` keys; entries
        without a usable host are skipped.
        """
        entries: list[DMCAEntry] = []
        for raw in dmca_entries:
            entry = raw if isinstance(raw, DMCAEntry) else DMCAEntry(
                host=str(raw.get("host") or ""), message=raw.get("message") or None
            )
            if normalize_domain(entry.host):
                entries.append(entry)
        return cls(
            blocked_domains=frozenset(domain.strip().lower() for domain in blocked_domains),
            dmca_entries=tuple(entries),
            restricted_keywords=tuple(k.lower() for k in restricted_keywords if k),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> DenyPolicy:
        """Policy over :mod:`readthrough.config.deny_lists` plus ``extra_blocked_domains``."""
        from readthrough.config.deny_lists import (  # noqa: PLC0415
            BLOCKED_DOMAINS,
            DMCA_DOMAINS,
            RESTRICTED_KEYWORDS,
        )

        return cls.build(
            blocked_domains=[*BLOCKED_DOMAINS, *settings.extra_blocked_domains],
            dmca_entries=DMCA_DOMAINS,
            restricted_keywords=RESTRICTED_KEYWORDS,
        )

    def is_restricted(self, url: str) -> bool:
        lowered = url.lower()
        return any(keyword in lowered for keyword in self.restricted_keywords)

    def dmca_entry_for(self, host: str) -> DMCAEntry | None:
        for entry in self.dmca_entries:
            if is_domain_match(host, entry.host):
                return entry
        return None

    def is_blocked(self, host: str) -> bool:
        return host.lower() in self.blocked_domains
