"""Structured logging configuration using structlog.

Call ``configure_logging()`` once at application startup (the API does it in
``api/main.py``).  Library modules log through the stdlib API::

    import logging
    logger = logging.getLogger(__name__)
    logger.info("scraper: fetched %s", url)

while the HTTP layer binds richer context with structlog::

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("page_served", url=url, fetcher="wayback")

Both paths end in the same renderer: newline-delimited JSON, or structlog's
console renderer when the level is ``DEBUG``.  Every record carries
``timestamp``, ``level``, ``logger``, ``event`` and, inside a request,
``request_id``.

URL-level policy and fetch events (restricted URL, DMCA hit, fetch errors)
go through :func:`log_url_event` so they share one event name and shape.
"""

from __future__ import annotations

import logging
import re
import sys
from contextvars import ContextVar

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

#: Loggers kept at WARNING outside debug mode; they log every request.
_CHATTY_LOGGERS: tuple[str, ...] = ("uvicorn.access", "httpx", "httpcore", "urllib3", "minio")

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
"""Per-request ID.  Set by the request middleware, read by :func:`_add_request_id`."""


# ---------------------------------------------------------------------------
# Processors
# ---------------------------------------------------------------------------

_SENSITIVE_KEYS: tuple[str, ...] = (
    "password",
    "secret",
    "token",
    "cookie",
    "authorization",
    "access_key",
    "minio_root",
)

_URL_USERINFO_RE = re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)[^/@\s]+@")


def _is_sensitive(key: object) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in _SENSITIVE_KEYS)


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Mask secret-bearing values before rendering.

    Keys are checked at the top level and one level into ``dict`` values
    (request headers are logged as a dict).  ``user:password@`` credentials
    embedded in string values are removed as well, since requested URLs may
    carry them.
    """
    for key, value in list(event_dict.items()):
        if _is_sensitive(key):
            event_dict[key] = "[REDACTED]"
        elif isinstance(value, dict):
            event_dict[key] = {
                inner: "[REDACTED]" if _is_sensitive(inner) else inner_value
                for inner, inner_value in value.items()
            }
        elif isinstance(value, str) and "@" in value:
            event_dict[key] = _URL_USERINFO_RE.sub(r"\g<scheme>[REDACTED]@", value)
    return event_dict


def _add_request_id(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Fill ``request_id`` from :data:`request_id_var` unless already bound."""
    request_id = request_id_var.get()
    if request_id is not None:
        event_dict.setdefault("request_id", request_id)
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        _add_request_id,
        _redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


# ---------------------------------------------------------------------------
# Public configuration entry-point
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Safe to call repeatedly: the root handler and structlog's configuration
    are replaced each time.

    Args:
        log_level: ``"DEBUG"``, ``"INFO"``, ``"WARNING"``, ``"ERROR"`` or
            ``"CRITICAL"``, case-insensitive.  Unknown values mean ``INFO``.
    """
    level_name = log_level.upper()
    debug = level_name == "DEBUG"
    shared = _shared_processors()

    renderer: Processor = (
        structlog.dev.ConsoleRenderer(colors=True) if debug else structlog.processors.JSONRenderer()
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if debug else logging.WARNING)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# URL event log
# ---------------------------------------------------------------------------

_url_events = structlog.get_logger("readthrough.url_events")


def log_url_event(url: str, event_kind: str, detail: str | None = None) -> None:
    """Record a policy or fetch event for *url*.

    Emits one ``url_event`` warning record.

    Args:
        url: The URL under analysis.
        event_kind: Upper-case event name, e.g. ``"DMCA_DOMAIN"`` or
            ``"WAYBACK_ERROR"``.
        detail: Optional free-form detail (an HTTP code, an error message).
    """
    _url_events.warning("url_event", url=url, event_kind=event_kind, detail=detail)
