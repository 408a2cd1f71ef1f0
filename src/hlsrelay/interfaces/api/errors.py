"""Map relay errors to JSON responses."""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hlsrelay.domain.entities.relay import CORS_HEADERS
from hlsrelay.domain.exceptions import (
    MissingParameterError,
    RelayError,
    StoreUnavailableError,
    TokenNotFoundError,
    UpstreamFetchError,
)

log = structlog.get_logger(__name__)

_STATUS_BY_ERROR: dict[type[RelayError], int] = {
    MissingParameterError: 400,
    TokenNotFoundError: 404,
    UpstreamFetchError: 502,
    StoreUnavailableError: 503,
}


def status_for(exc: RelayError) -> int:
    for error_type, status in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status
    return 500


async def relay_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RelayError)
    status = status_for(exc)
    if status >= 500:
        log.warning("relay_failed", kind=exc.kind, detail=exc.detail, path=request.url.path)
    else:
        log.info("relay_rejected", kind=exc.kind, path=request.url.path)
    return JSONResponse(
        status_code=status,
        content={"error": exc.kind, "detail": exc.detail},
        headers=dict(CORS_HEADERS),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RelayError, relay_error_handler)
