"""ASGI entry point of the reader service.

``create_app()`` assembles the FastAPI instance; the module-level ``app`` is
what Uvicorn serves::

    uvicorn readthrough.api.main:app --reload
    uvicorn readthrough.api.main:app --host 0.0.0.0 --port 8000 --workers 4
"""

from __future__ import annotations

import time
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from readthrough.api.routes import health, reader
from readthrough.config.settings import get_settings
from readthrough.core.exceptions import AnalysisError
from readthrough.core.logging_config import configure_logging, request_id_var

# Records emitted while the app is being built still need a handler; the
# configured level replaces this inside create_app().
configure_logging("INFO")

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


async def tag_request(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Attach a request id to every log line of the request and to the response.

    An id supplied by an upstream proxy in ``X-Request-ID`` is kept, otherwise
    a fresh UUID is minted.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request_id_var.set(request_id)
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id, method=request.method, path=request.url.path
    )

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("request_crashed")
        raise

    took_ms = round((time.perf_counter() - started) * 1000, 2)
    emit = logger.info if response.status_code < 400 else logger.warning
    emit("request_complete", status_code=response.status_code, elapsed_ms=took_ms)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def render_analysis_error(request: Request, exc: AnalysisError) -> JSONResponse:  # noqa: ARG001
    """Turn a classified failure into ``{"error": {...}}`` with its HTTP status."""
    logger.info("analysis_failed", kind=exc.kind.value, detail=exc.detail)
    return JSONResponse({"error": exc.to_dict()}, status_code=exc.status_code)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info(
        "application_startup",
        app_name=application.title,
        cache_backend=settings.cache_backend,
        log_level=settings.log_level,
    )
    yield
    logger.info("application_shutdown")


def create_app() -> FastAPI:
    """Return a new application wired from the current settings.

    Kept apart from ``app`` so tests can build an instance after patching the
    environment.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description="Reads paywalled articles by fetching and rewriting the original page.",
        version="0.1.0",
        debug=settings.debug,
        redirect_slashes=False,
        lifespan=lifespan,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    application.middleware("http")(tag_request)
    application.add_exception_handler(AnalysisError, render_analysis_error)

    for router in (health.router, reader.router):
        application.include_router(router)
    return application


app = create_app()
