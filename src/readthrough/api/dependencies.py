"""Shared FastAPI dependencies.

Route handlers receive the process-wide :class:`Analyzer` through
:func:`get_analyzer`; tests replace it with
``app.dependency_overrides[get_analyzer]``.
"""

from __future__ import annotations

from functools import lru_cache

from readthrough.config.settings import get_settings
from readthrough.scraper.analyzer import Analyzer


@lru_cache
def get_analyzer() -> Analyzer:
    """Return the cached :class:`Analyzer` built from the current settings."""
    return Analyzer.from_settings(get_settings())
