"""Bundled rule table for the default :class:`~readthrough.scraper.rules.StaticRuleProvider`.

Keys follow the camelCase rule vocabulary understood by
:meth:`readthrough.scraper.rules.RuleSet.from_mapping`.  ``GLOBAL_RULES``
applies to every host; ``DOMAIN_RULES`` is keyed by registered domain and is
inherited by subdomains (``valor.globo.com`` gets the ``globo.com`` entry).
"""

from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Global rules
# ---------------------------------------------------------------------------

GLOBAL_RULES: dict[str, list[str]] = {
    "classElementRemove": [
        "subscription",
        "subscriber-content",
        "premium-content",
        "signin-wall",
        "register-wall",
        "paywall",
    ],
    "scriptTagRemove": [
        "tinypass.com",
        "poool.fr",
        "piano.io",
        "cxense.com",
    ],
}

# ---------------------------------------------------------------------------
# Domain rules
# ---------------------------------------------------------------------------

DOMAIN_RULES: dict[str, dict[str, Any]] = {
    "globo.com": {
        "idElementRemove": ["cookie-banner-lgpd", "paywall-cpt", "paywall-desktop", "paywall-mobile"],
        "classElementRemove": [
            "barreira-cadastro",
            "wall",
            "protected-content",
            "hide-all-content",
            "fade-top",
        ],
        "containsElementRemove": ["paywall", "piano"],
        "scriptTagRemove": [
            "static.infoglobo.com.br/paywall/js/tiny.js",
            "experience.tinypass.com/xbuilder/experience/load?aid=VnaP3rYVKc",
        ],
        "cookiePrefixRemove": ["__utp", "_pc_"],
        "removeCustomAttr": ["data-paywall*"],
        "customStyle": ".protected-content, .article__content { display: block !important; }",
    },
    "estadao.com.br": {
        "classElementRemove": ["paywall-container", "styles__Container-sc-1ylecsg-0"],
        "scriptTagRemove": ["paywall.estadao.com.br"],
        "fetchStrategies": "wayback",
    },
    "nytimes.com": {
        "idElementRemove": ["gateway-content", "standalone-footer"],
        "classElementRemove": ["css-mcm29f", "css-1bd8bfl"],
        "removeElementsByTag": ["dialog"],
        "fetchStrategies": "browser",
        "browser": "chromium",
    },
    "medium.com": {
        "classAttrRemove": ["overlay"],
        "cookiePrefixRemove": ["uid", "sid"],
        "excludeGlobalRules": {"classElementRemove": ["subscription"]},
    },
}
