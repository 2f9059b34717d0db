"""Configuration package for Readthrough.

Re-exports the most commonly used configuration symbols so that
callers can write::

    from readthrough.config import get_settings, DOMAIN_RULES, BLOCKED_DOMAINS

without needing to know which sub-module each symbol lives in.
"""

from __future__ import annotations

from readthrough.config.deny_lists import (
    BLOCKED_DOMAINS,
    DMCA_DOMAINS,
    RESTRICTED_KEYWORDS,
)
from readthrough.config.domain_rules import DOMAIN_RULES, GLOBAL_RULES
from readthrough.config.settings import Settings, get_settings

__all__ = [
    # settings
    "Settings",
    "get_settings",
    # deny lists
    "BLOCKED_DOMAINS",
    "DMCA_DOMAINS",
    "RESTRICTED_KEYWORDS",
    # rule table
    "DOMAIN_RULES",
    "GLOBAL_RULES",
]
