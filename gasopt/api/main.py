"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
import os
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from gasopt import __version__
from gasopt.api.deps import get_report_store
from gasopt.api.errors import register_error_handlers
from gasopt.api.middleware.metrics import PrometheusMiddleware, setup_metrics_route
from gasopt.api.middleware.request import RequestIDMiddleware, RequestSizeLimitMiddleware
from gasopt.api.routes import admin, events, health, reports, stats
from gasopt.api.services.notifications import WebhookRelay
from gasopt.core.config import get_settings
from gasopt.core.database import create_tables
from gasopt.core.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup and shutdown events."""
    settings = get_settings()
    setup_logging(env=settings.app_env, log_level="DEBUG" if settings.debug else "INFO")

    if settings.app_env == "production" and not os.environ.get("GASOPT_SECRET_KEY"):
        raise RuntimeError(
            "GASOPT_SECRET_KEY must be set explicitly in production. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if not settings.owner_address:
        logger.warning("GASOPT_OWNER_ADDRESS is not set; admin routes will reject every caller")

    await create_tables()

    relay: WebhookRelay | None = None
    if settings.webhook_urls:
        relay = WebhookRelay(settings.webhook_urls, timeout=settings.event_webhook_timeout)
        get_report_store().events.subscribe(relay)
        logger.info("Relaying ledger events to %d webhook(s)", len(settings.webhook_urls))

    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)
    yield

    if relay is not None:
        get_report_store().events.unsubscribe(relay)
        await relay.drain()
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="GasOpt Ledger API",
        description=(
            "Records gas-optimization analyses against smart contracts, reconciles "
            "estimates against measured gas, and reports efficiency statistics.\n\n"
            "## Authentication\n"
            "Caller endpoints require a Bearer JWT whose `sub` claim is the caller identity."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url=None if settings.app_env == "production" else "/api/docs",
        redoc_url=None if settings.app_env == "production" else "/api/redoc",
        openapi_url=None if settings.app_env == "production" else "/api/openapi.json",
        openapi_tags=[
            {"name": "health", "description": "Liveness and readiness probes"},
            {"name": "reports", "description": "Create, list, and reconcile optimization reports"},
            {"name": "stats", "description": "Per-caller and global efficiency statistics"},
            {"name": "events", "description": "Persisted ledger events for indexers"},
            {"name": "admin", "description": "Owner-only fee management and balance"},
        ],
        license_info={"name": "MIT", "url": "https://opensource.org/licenses/MIT"},
    )

    # ── CORS — configurable origins ──────────────────────────────────
    allowed_origins = [o.strip() for o in settings.cors_allowed_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID", "Accept"],
        expose_headers=["X-Request-ID"],
    )

    # ── Middleware (outermost first) ─────────────────────────────────
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware)
    app.add_middleware(PrometheusMiddleware)

    # ── Security headers ─────────────────────────────────────────────
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.app_env == "production":
            response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"
        return response

    setup_metrics_route(app)

    # ── Access logging middleware ────────────────────────────────────
    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s → %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
            extra={"method": request.method, "path": request.url.path,
                   "status_code": response.status_code, "duration_ms": round(elapsed, 1),
                   "request_id": response.headers.get("X-Request-ID")},
        )
        return response

    # ── Routes ───────────────────────────────────────────────────────
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(reports.router, prefix="/api/v1/reports", tags=["reports"])
    app.include_router(stats.router, prefix="/api/v1/stats", tags=["stats"])
    app.include_router(events.router, prefix="/api/v1/events", tags=["events"])
    app.include_router(admin.router, prefix="/api/v1/admin", tags=["admin"])

    register_error_handlers(app)

    return app


app = create_app()
