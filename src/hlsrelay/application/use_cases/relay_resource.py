"""Relay use case.

Request -> resolve target (direct URL or token) -> fetch upstream
-> classify -> rewrite manifest | pass through -> RelayResponse.
"""

from __future__ import annotations

from urllib.parse import urlsplit

import structlog

from hlsrelay.domain.entities.relay import (
    CORS_HEADERS,
    DEFAULT_OPAQUE_CONTENT_TYPE,
    DEFAULT_TEXT_CONTENT_TYPE,
    IMMUTABLE_CACHE_CONTROL,
    MANIFEST_MIME,
    ContentKind,
    RelayRequest,
    RelayResponse,
    RelayTarget,
    ResourceRole,
    UpstreamResponse,
)
from hlsrelay.domain.exceptions import MissingParameterError, TokenNotFoundError
from hlsrelay.domain.hls import (
    base_url_from,
    classify_content,
    decode_manifest,
    encode_manifest,
    rewrite_manifest,
)
from hlsrelay.domain.ports import (
    ReferenceEmitterPort,
    TokenStorePort,
    UpstreamFetcherPort,
)

log = structlog.get_logger(__name__)


def _origin_of(referer: str) -> str | None:
    try:
        parts = urlsplit(referer)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


class RelayResourceUseCase:
    """Relay one manifest or resource on behalf of a client.

    Args:
        fetcher: Upstream fetcher.
        emitter: Emit strategy used when rewriting manifests.
        store: Token store for token lookups. None = direct mode only,
            every token lookup misses.
        forward_origin: Also send an ``Origin`` header derived from the
            referer.
    """

    def __init__(
        self,
        *,
        fetcher: UpstreamFetcherPort,
        emitter: ReferenceEmitterPort,
        store: TokenStorePort | None = None,
        forward_origin: bool = True,
    ) -> None:
        self._fetcher = fetcher
        self._emitter = emitter
        self._store = store
        self._forward_origin = forward_origin

    async def execute(self, request: RelayRequest) -> RelayResponse:
        target = await self._resolve_target(request)
        upstream = await self._fetcher.fetch(
            target.url, self._upstream_headers(target.referer)
        )

        if request.role is ResourceRole.KEY:
            kind = ContentKind.KEY_OR_OPAQUE
        else:
            kind = classify_content(upstream.content_type, target.url)

        if kind is ContentKind.MANIFEST:
            text = decode_manifest(upstream.body)
            if text is None:
                log.info("manifest_marker_missing", status_code=upstream.status_code)
                return self._plain_text(upstream)
            return await self._rewritten(text, target, upstream)

        return self._opaque(upstream)

    async def _resolve_target(self, request: RelayRequest) -> RelayTarget:
        if request.token:
            entry = await self._store.get(request.token) if self._store else None
            if entry is None:
                raise TokenNotFoundError("token not found or expired")
            return RelayTarget(url=entry.origin_url, referer=entry.referer)

        if request.url:
            return RelayTarget(url=request.url, referer=request.referer or None)

        raise MissingParameterError("No URL provided")

    def _upstream_headers(self, referer: str | None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if referer:
            headers["Referer"] = referer
            if self._forward_origin:
                origin = _origin_of(referer)
                if origin:
                    headers["Origin"] = origin
        return headers

    async def _rewritten(
        self, text: str, target: RelayTarget, upstream: UpstreamResponse
    ) -> RelayResponse:
        rewritten = await rewrite_manifest(
            text, base_url_from(target.url), target.referer, self._emitter
        )
        log.info("hls_manifest_relayed", status_code=upstream.status_code)
        return RelayResponse(
            status_code=upstream.status_code,
            body=encode_manifest(rewritten),
            content_type=MANIFEST_MIME,
            headers=dict(CORS_HEADERS),
            kind=ContentKind.MANIFEST,
        )

    def _plain_text(self, upstream: UpstreamResponse) -> RelayResponse:
        return RelayResponse(
            status_code=upstream.status_code,
            body=upstream.body,
            content_type=upstream.content_type or DEFAULT_TEXT_CONTENT_TYPE,
            headers=dict(CORS_HEADERS),
            kind=ContentKind.PLAIN_TEXT,
        )

    def _opaque(self, upstream: UpstreamResponse) -> RelayResponse:
        headers = dict(CORS_HEADERS)
        # Published segments and keys never change.
        if 200 <= upstream.status_code < 300:
            headers["Cache-Control"] = IMMUTABLE_CACHE_CONTROL
        return RelayResponse(
            status_code=upstream.status_code,
            body=upstream.body,
            content_type=upstream.content_type or DEFAULT_OPAQUE_CONTENT_TYPE,
            headers=headers,
            kind=ContentKind.KEY_OR_OPAQUE,
        )
