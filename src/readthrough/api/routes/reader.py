"""Reader routes.

``GET /p/{url}``
    Fetch, rewrite and serve the page at ``url``.  The target may be given
    without a scheme (``https://`` is assumed); the request's own query
    string belongs to the target and is re-attached to it.

``GET /api/status?url=``
    Run the status probe against ``url`` and return its result.

Analysis failures are raised as :class:`~readthrough.core.exceptions.AnalysisError`
and rendered by the handler registered in :mod:`readthrough.api.main`.
"""

from __future__ import annotations

import re
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse

from readthrough.api.dependencies import get_analyzer
from readthrough.scraper.analyzer import Analyzer

logger = structlog.get_logger(__name__)

router = APIRouter()

# Proxies and browsers sometimes collapse "//" in paths to "/".
_SCHEME_RE = re.compile(r"^(https?):/+", re.IGNORECASE)


def normalize_target_url(raw: str, query: str = "") -> str:
    """Turn the path-embedded target into an absolute URL.

    Args:
        raw: The ``{url}`` path segment.
        query: The request's raw query string, without ``?``.

    Returns:
        ``raw`` with a scheme and the query string attached.
    """
    target = raw.strip()
    match = _SCHEME_RE.match(target)
    if match:
        target = f"{match.group(1).lower()}://{target[match.end():]}"
    else:
        target = f"https://{target.lstrip('/')}"
    if query:
        target = f"{target}?{query}"
    return target


@router.get("/p/{url:path}", response_class=HTMLResponse, tags=["reader"])
async def read_page(
    url: str,
    request: Request,
    analyzer: Annotated[Analyzer, Depends(get_analyzer)],
) -> HTMLResponse:
    """Serve the rewritten page for *url*."""
    target = normalize_target_url(url, request.url.query)
    result = await analyzer.analyze(target)
    logger.info(
        "page_served",
        url=target,
        fetcher=result.fetcher,
        from_cache=result.from_cache,
        rules=len(result.activated_rules),
    )
    return HTMLResponse(result.html)


@router.get("/api/status", tags=["reader"])
async def page_status(
    url: Annotated[str, Query(min_length=1)],
    analyzer: Annotated[Analyzer, Depends(get_analyzer)],
) -> JSONResponse:
    """Return ``{finalUrl, hasRedirect, httpCode}`` for *url*."""
    info = await analyzer.check_status(normalize_target_url(url))
    return JSONResponse(info.as_dict())
