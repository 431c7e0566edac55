"""FastAPI application factory and entry point.

Exposes the extraction pipeline over HTTP:

``POST /extract-content``   body ``{"url": "..."}``
``GET  /extract-content``   query ``?url=...``
``GET  /metrics/strategies`` in-memory strategy aggregates
``GET  /metrics``            Prometheus exposition
``GET  /health``             liveness

Usage::

    uvicorn content_extraction.api:create_app --factory
"""

from __future__ import annotations

import time
import urllib.parse
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

import structlog
from fastapi import FastAPI, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from content_extraction.config.settings import get_settings
from content_extraction.core.logging_config import configure_logging, request_id_var
from content_extraction.monitoring.metrics import get_metrics_response
from content_extraction.orchestrator import ExtractionOrchestrator

logger = structlog.get_logger(__name__)


class ExtractRequest(BaseModel):
    """Body of ``POST /extract-content``."""

    url: str | None = None


def validate_url(url: str | None) -> str:
    """Return the stripped URL or raise HTTP 400 if it is not absolute http(s)."""
    if not url or not url.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="URL is required")
    url = url.strip()
    try:
        parsed = urllib.parse.urlparse(url)
    except ValueError:
        parsed = None
    if parsed is None or parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid URL format")
    return url


def _envelope(payload: dict[str, Any], success: bool) -> dict[str, Any]:
    return {
        "success": success,
        "data": payload,
        "extractedAt": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(orchestrator: ExtractionOrchestrator | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Args:
        orchestrator: Pre-built orchestrator (tests inject fakes here).
            When omitted one is created from the current settings and closed
            on shutdown.

    Returns:
        A fully configured ``FastAPI`` instance.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description="Tiered content extraction: rendered DOM, article parsing, metadata.",
        version="0.1.0",
        redirect_slashes=False,
    )
    owns_orchestrator = orchestrator is None
    application.state.orchestrator = orchestrator or ExtractionOrchestrator.create(settings)

    # ---- Request logging middleware ----------------------------------------

    @application.middleware("http")
    async def request_logging_middleware(
        request: Request, call_next: Callable
    ) -> Response:
        """Log every request with a correlation ID and its duration."""
        request_id = str(uuid.uuid4())
        request_id_var.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("unhandled_exception", exc_info=exc)
            raise
        finally:
            elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = getattr(response, "status_code", 500)
            log_fn = logger.warning if status_code >= 400 else logger.info
            log_fn("request_complete", status_code=status_code, elapsed_ms=elapsed_ms)

        response.headers["X-Request-ID"] = request_id
        return response

    # ---- Extraction --------------------------------------------------------

    async def _extract(request: Request, url: str | None) -> JSONResponse:
        target = validate_url(url)
        result = await request.app.state.orchestrator.extract(target)
        return JSONResponse(_envelope(result.to_dict(), result.success))

    @application.post("/extract-content", tags=["extraction"])
    async def extract_content_post(request: Request, body: ExtractRequest) -> JSONResponse:
        """Extract structured content from the URL in the request body."""
        return await _extract(request, body.url)

    @application.get("/extract-content", tags=["extraction"])
    async def extract_content_get(
        request: Request, url: str | None = Query(default=None)
    ) -> JSONResponse:
        """Extract structured content from the ``url`` query parameter."""
        return await _extract(request, url)

    # ---- Observability -----------------------------------------------------

    @application.get("/metrics/strategies", tags=["system"])
    async def strategy_metrics(request: Request) -> JSONResponse:
        """Return the strategy monitor's aggregates."""
        metrics = request.app.state.orchestrator.monitor.get_metrics()
        return JSONResponse(metrics.to_dict())

    @application.get("/metrics", tags=["system"], include_in_schema=False)
    async def prometheus_metrics() -> Response:
        if not settings.metrics_enabled:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        body, content_type = get_metrics_response()
        return Response(content=body, media_type=content_type)

    @application.get("/health", tags=["system"])
    async def health() -> JSONResponse:
        """Return a minimal process-level liveness status."""
        return JSONResponse({"status": "ok"})

    # ---- Lifecycle events -------------------------------------------------

    @application.on_event("startup")
    async def on_startup() -> None:
        logger.info(
            "application_startup",
            app_name=settings.app_name,
            pool_size=settings.pool_size,
            log_level=settings.log_level,
        )

    @application.on_event("shutdown")
    async def on_shutdown() -> None:
        """Close renderers and the HTTP client if this app created them."""
        if owns_orchestrator:
            await application.state.orchestrator.aclose()
        logger.info("application_shutdown")

    return application
