"""Health check route.

``GET /api/health`` is a liveness check used by Docker health checks and
load balancers.  It performs no I/O and never fails.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

router = APIRouter(tags=["system"])


@router.get("/api/health")
async def health() -> JSONResponse:
    """Return ``{"status": "ok"}``."""
    return JSONResponse({"status": "ok"})
