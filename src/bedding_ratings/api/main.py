"""FastAPI application factory and entry point.

Creates the application instance, registers middleware (CORS, request
logging, HTTP metrics, slowapi throttling) and mounts the route routers.

Usage::

    # Development server (from project root)
    uvicorn bedding_ratings.api.main:app --reload

    # Production
    gunicorn bedding_ratings.api.main:app -k uvicorn.workers.UvicornWorker
"""

from __future__ import annotations

import time
import uuid
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from bedding_ratings import __version__
from bedding_ratings.api.metrics import (
    get_metrics_response,
    http_request_duration_seconds,
    http_requests_total,
)
from bedding_ratings.config.settings import get_settings
from bedding_ratings.core.logging_config import configure_logging, request_id_var

# ---------------------------------------------------------------------------
# Logging configuration, applied once at module import time so that log
# records emitted during app construction are captured correctly.
# The log level is re-applied inside create_app() after settings are loaded.
# ---------------------------------------------------------------------------

configure_logging("INFO")

logger = structlog.get_logger(__name__)

BANNER_TEXT = "Hotel Bedding Ratings backend is running"


def _route_template(request: Request) -> str:
    """Return the matched route template, falling back to the raw path.

    Keeps metric label cardinality bounded for path-parameter routes.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application.

    Separated from the module-level ``app`` singleton so that tests can
    call ``create_app()`` with a patched settings environment before the
    singleton is created.

    Returns:
        A fully configured ``FastAPI`` instance.
    """
    settings = get_settings()

    # Re-apply logging configuration with the correct level from settings.
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description=(
            "Collects structured, anonymous ratings of hotel bedding and "
            "serves per-location top-2 summaries."
        ),
        version=__version__,
        debug=settings.debug,
        redirect_slashes=False,
    )

    # ---- Throttling (slowapi) ---------------------------------------------

    from bedding_ratings.api.limiter import limiter  # noqa: PLC0415

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    application.add_middleware(SlowAPIMiddleware)

    # ---- CORS --------------------------------------------------------------

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_origin_regex=settings.allowed_origin_regex,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # ---- Request logging and HTTP metrics middleware ------------------------

    @application.middleware("http")
    async def request_logging_middleware(
        request: Request, call_next: Callable
    ) -> Response:
        """Log every request with its status and duration, and record metrics.

        Attaches a unique ``request_id`` to the structlog context so that all
        log lines emitted during a request can be correlated.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or route handler in the chain.

        Returns:
            The HTTP response from the handler.
        """
        request_id = str(uuid.uuid4())
        request_id_var.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("unhandled_exception", exc_info=exc)
            raise
        finally:
            elapsed = time.perf_counter() - start
            status_code = getattr(response, "status_code", 500)
            path = _route_template(request)
            http_requests_total.labels(
                method=request.method, path=path, status=str(status_code)
            ).inc()
            http_request_duration_seconds.labels(
                method=request.method, path=path
            ).observe(elapsed)
            log_fn = logger.warning if status_code >= 400 else logger.info
            log_fn(
                "request_complete",
                status_code=status_code,
                elapsed_ms=round(elapsed * 1000, 2),
            )

        response.headers["X-Request-ID"] = request_id
        return response

    # ---- Routers -------------------------------------------------------------

    from bedding_ratings.api.routes import (  # noqa: PLC0415
        health as health_routes,
        ratings,
    )

    application.include_router(health_routes.router)
    application.include_router(ratings.router, prefix="/ratings", tags=["ratings"])

    # ---- Lifecycle events -------------------------------------------------

    @application.on_event("startup")
    async def on_startup() -> None:
        """Log application startup information."""
        logger.info(
            "application_startup",
            app_name=settings.app_name,
            debug=settings.debug,
            log_level=settings.log_level,
            rating_window_days=settings.rating_window_days,
        )

    @application.on_event("shutdown")
    async def on_shutdown() -> None:
        """Dispose of the connection pool on clean shutdown."""
        from bedding_ratings.core.database import async_engine  # noqa: PLC0415

        await async_engine.dispose()
        logger.info("application_shutdown")

    # ---- System endpoints -------------------------------------------------

    @application.get("/", tags=["system"], response_class=PlainTextResponse)
    async def banner() -> PlainTextResponse:
        """Return a plain-text liveness banner."""
        return PlainTextResponse(BANNER_TEXT)

    @application.get("/health", tags=["system"], include_in_schema=True)
    async def health() -> JSONResponse:
        """Return a minimal process-level liveness status.

        Used by container health checks and load balancers that need a fast
        ``200 OK`` without performing any I/O.  The database check is at
        ``/api/health``.

        Returns:
            JSON response with ``{"status": "ok"}``.
        """
        return JSONResponse({"status": "ok"})

    if settings.metrics_enabled:

        @application.get("/metrics", tags=["system"], include_in_schema=False)
        async def metrics() -> Response:
            """Expose Prometheus metrics in text format."""
            body, content_type = get_metrics_response()
            return Response(content=body, media_type=content_type)

    return application


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

app = create_app()
"""The FastAPI application instance.

This is the ASGI callable passed to Uvicorn / Gunicorn.
"""
