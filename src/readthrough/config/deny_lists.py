"""Static access-policy data: blocked hosts, DMCA takedowns, restricted keywords.

These lists are consumed by :class:`readthrough.scraper.policy.DenyPolicy`.
Deployments extend the blocklist through ``EXTRA_BLOCKED_DOMAINS`` instead of
editing this module.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Blocked hosts
# ---------------------------------------------------------------------------

#: Hosts that are never fetched.  Matched exactly against the lowercased
#: request host, and only on a cache miss.
BLOCKED_DOMAINS: frozenset[str] = frozenset(
    {
        "localhost",
        "127.0.0.1",
        "0.0.0.0",
        "metadata.google.internal",
        "169.254.169.254",
    }
)

# ---------------------------------------------------------------------------
# DMCA takedowns
# ---------------------------------------------------------------------------

#: Takedown entries.  Each entry has a ``host`` and an optional ``message``
#: shown to the user instead of the default one.  An entry covers the host
#: and all of its subdomains.
DMCA_DOMAINS: tuple[dict[str, str], ...] = (
    {
        "host": "takedown.example",
        "message": "This site asked us to stop serving its content.",
    },
)

# ---------------------------------------------------------------------------
# Restricted keywords
# ---------------------------------------------------------------------------

#: Case-insensitive substrings that make a URL ineligible for processing.
RESTRICTED_KEYWORDS: tuple[str, ...] = (
    "file://",
    "/wp-admin",
    "/.env",
    "/.git/",
)
