"""Structured logging configuration using structlog.

Call ``configure_logging()`` once at process startup (the API factory and the
CLI both do).  Modules then use either the stdlib logging API or structlog:

Stdlib usage::

    import logging
    logger = logging.getLogger(__name__)
    logger.info("scraper: primary tier failed for %s", url)

Structlog usage::

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("tier_failed", tier="playwright", url=url)

Two context variables are merged into every record when set: ``request_id``
(populated by the HTTP middleware) and ``extraction_url`` (populated by the
orchestrator for the lifetime of one ``extract`` call).
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

import structlog
from structlog.types import EventDict, WrappedLogger

# ---------------------------------------------------------------------------
# Context variables
# ---------------------------------------------------------------------------

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
"""Per-request ID propagated from the HTTP middleware to log processors."""

extraction_url_var: ContextVar[str | None] = ContextVar("extraction_url", default=None)
"""URL currently being extracted; set by the orchestrator."""


# ---------------------------------------------------------------------------
# Custom processors
# ---------------------------------------------------------------------------


_SECRET_SUBSTRINGS: frozenset[str] = frozenset({
    "api_key",
    "password",
    "secret",
    "token",
    "cookie",
    "authorization",
    "proxy_auth",
})
"""Lower-cased substrings that identify event-dict keys whose values must be
redacted before the record reaches any renderer."""

_REDACTED = "[REDACTED]"

_CONTEXT_FIELDS: tuple[tuple[str, ContextVar[str | None]], ...] = (
    ("request_id", request_id_var),
    ("extraction_url", extraction_url_var),
)


def _is_secret_key(key: object) -> bool:
    lowered = str(key).lower()
    return any(secret in lowered for secret in _SECRET_SUBSTRINGS)


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Replace values of secret-bearing keys with a redaction marker.

    Scans top-level keys and one level of nested ``dict`` values (request
    headers are the usual offender).
    """
    for key, value in list(event_dict.items()):
        if _is_secret_key(key):
            event_dict[key] = _REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: _REDACTED if _is_secret_key(k) else v for k, v in value.items()
            }
    return event_dict


def _inject_context(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Copy set context variables into the event dict.

    Runs after ``merge_contextvars``; keys already bound through
    ``structlog.contextvars.bind_contextvars`` win.
    """
    for field, var in _CONTEXT_FIELDS:
        value = var.get()
        if value is not None:
            event_dict.setdefault(field, value)
    return event_dict


# ---------------------------------------------------------------------------
# Public configuration entry-point
# ---------------------------------------------------------------------------

_QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "trafilatura", "PIL", "asyncio")

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    _inject_context,
    _redact_secrets,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _build_handler(development: bool) -> logging.Handler:
    renderer: structlog.types.Processor = (
        structlog.dev.ConsoleRenderer(colors=True)
        if development
        else structlog.processors.JSONRenderer()
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog and the stdlib root logger.

    At ``DEBUG`` a coloured ``ConsoleRenderer`` is used; at any other level
    records are emitted as newline-delimited JSON.  Stdlib records are routed
    through structlog's ``ProcessorFormatter`` so both APIs share the same
    processors and output.

    Idempotent: the root handler list is replaced on every call.

    Args:
        log_level: One of ``"DEBUG"``, ``"INFO"``, ``"WARNING"``, ``"ERROR"``,
            ``"CRITICAL"``.  Case-insensitive; unknown values map to INFO.
    """
    level_name = log_level.upper()
    development = level_name == "DEBUG"

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_build_handler(development))
    root.setLevel(getattr(logging, level_name, logging.INFO))

    # The HTTP stack and the parsing libraries are chatty below WARNING.
    if not development:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
