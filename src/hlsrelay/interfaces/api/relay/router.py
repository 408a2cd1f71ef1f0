"""Relay API endpoints (manifest/resource relay, segment and key follow-ups)."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
from starlette.responses import Response

from hlsrelay.domain.entities.relay import (
    CORS_HEADERS,
    RelayRequest,
    RelayResponse,
    ResourceRole,
)
from hlsrelay.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["relay"])

_METHODS = ["GET", "HEAD"]


def _to_response(result: RelayResponse) -> Response:
    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type=result.content_type,
        headers=result.headers,
    )


async def _relay(request: Request, relay_request: RelayRequest) -> Response:
    state = cast(AppState, request.app.state)
    result = await state.relay_uc.execute(relay_request)
    return _to_response(result)


@router.get("/health")
async def health() -> PlainTextResponse:
    """Liveness probe: 200 as long as the process is running."""
    return PlainTextResponse("OK", headers=CORS_HEADERS)


@router.api_route("/", methods=_METHODS)
async def relay_resource(
    request: Request,
    url: str | None = None,
    ref: str | None = None,
    token: str | None = None,
) -> Response:
    """Relay a manifest or resource by origin URL (``url`` + ``ref``) or ``token``."""
    return await _relay(request, RelayRequest(url=url, token=token, referer=ref))


@router.api_route("/segment", methods=_METHODS)
async def segment_by_url(
    request: Request, url: str | None = None, ref: str | None = None
) -> Response:
    """Direct-mode media reference; variant playlists are rewritten too."""
    return await _relay(
        request, RelayRequest(url=url, referer=ref, role=ResourceRole.SEGMENT)
    )


@router.api_route("/key", methods=_METHODS)
async def key_by_url(
    request: Request, url: str | None = None, ref: str | None = None
) -> Response:
    """Direct-mode key URI, always passed through as opaque bytes."""
    return await _relay(request, RelayRequest(url=url, referer=ref, role=ResourceRole.KEY))


@router.api_route("/segment/{token}", methods=_METHODS)
async def segment_by_token(request: Request, token: str) -> Response:
    return await _relay(request, RelayRequest(token=token, role=ResourceRole.SEGMENT))


@router.api_route("/key/{token}", methods=_METHODS)
async def key_by_token(request: Request, token: str) -> Response:
    return await _relay(request, RelayRequest(token=token, role=ResourceRole.KEY))


@router.options("/{path:path}")
async def preflight(path: str) -> Response:
    """CORS preflight for every relay path."""
    return Response(status_code=204, headers=CORS_HEADERS)
