"""FastAPI application for the telops lifecycle API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.base import BaseHTTPMiddleware

from telops import __version__
from telops.config import get_config
from telops.core.logging import configure_logging
from telops.db.connection import Database
from telops.services import build_services
from telops.web.routes import faults, health, inventory, maintenance, metrics

logger = structlog.get_logger()


# Request Logging Middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)

            logger.info(
                "request_completed",
                status_code=response.status_code,
            )
            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise


def create_app(database: Database | None = None) -> FastAPI:
    """Build the API.

    When ``database`` is given (tests, embedding) it is used as-is and left
    open on shutdown; otherwise one is built from ``get_config()`` at startup
    and disposed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = getattr(app.state, "database", None) is None
        if owned:
            config = get_config()
            configure_logging(config.log_level, config.log_format)
            app.state.database = Database.from_config(config)
            app.state.services = build_services(app.state.database, config)
        logger.info("telops_started", version=__version__)
        try:
            yield
        finally:
            if owned:
                await app.state.database.dispose()
                app.state.database = None
            logger.info("telops_stopped")

    app = FastAPI(
        title="telops",
        description="Operational lifecycle API for network faults, maintenance and inventory",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.database = database
    if database is not None:
        app.state.services = build_services(database)

    app.add_middleware(RequestLoggingMiddleware)

    # Prometheus Metrics
    Instrumentator().instrument(app).expose(app, endpoint="/prometheus")

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=exc.headers,
        )

    app.include_router(health.router)
    app.include_router(faults.router)
    app.include_router(maintenance.router)
    app.include_router(inventory.router)
    app.include_router(metrics.router)

    return app
