"""Emit strategies for the manifest rewriter (direct vs. token indirection)."""

from __future__ import annotations

import structlog

from hlsrelay.domain.entities.relay import ResourceRole
from hlsrelay.domain.ports.token_store import TokenStorePort
from hlsrelay.infrastructure.hls.relay_urls import build_query_url, build_token_url

log = structlog.get_logger(__name__)


class DirectEmitter:
    """Encode origin URL and referer as query parameters of a relay URL."""

    def __init__(self, public_base_url: str = "") -> None:
        self.public_base_url = public_base_url

    async def __call__(
        self,
        resolved: str,
        referer: str | None,
        role: ResourceRole = ResourceRole.SEGMENT,
    ) -> str:
        return build_query_url(
            self.public_base_url,
            f"/{role.value}",
            {"url": resolved, "ref": referer},
        )


class TokenEmitter:
    """Register each reference in the token store and emit a token URL.

    Every call creates a fresh entry, even for a URL seen before, so each
    manifest rewrite expires independently.
    """

    def __init__(self, store: TokenStorePort, public_base_url: str = "") -> None:
        self.store = store
        self.public_base_url = public_base_url

    async def __call__(
        self,
        resolved: str,
        referer: str | None,
        role: ResourceRole = ResourceRole.SEGMENT,
    ) -> str:
        token = await self.store.put(resolved, referer)
        log.debug("reference_tokenized", role=role.value, origin_url=resolved)
        return build_token_url(self.public_base_url, role, token)
