"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from hlsrelay.infrastructure.config import AppConfig
from hlsrelay.interfaces.api.errors import register_error_handlers
from hlsrelay.interfaces.app_state import AppState
from hlsrelay.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration ONLY, NO resource initialization.

    Resources (HTTP client, token store, use case) are created in lifespan().
    """
    app = FastAPI(
        title="hlsrelay",
        description="HLS relay with manifest rewriting and token indirection",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    register_error_handlers(app)

    from hlsrelay.interfaces.api.relay import router as relay_router

    app.include_router(relay_router)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            # Query strings carry origin URLs; keep them out of INFO logs.
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
