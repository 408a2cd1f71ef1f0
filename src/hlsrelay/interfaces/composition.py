"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from hlsrelay.application.use_cases.relay_resource import RelayResourceUseCase
from hlsrelay.domain.exceptions import StoreUnavailableError
from hlsrelay.domain.ports import ReferenceEmitterPort
from hlsrelay.infrastructure.hls.emitters import DirectEmitter, TokenEmitter
from hlsrelay.infrastructure.store.store_factory import create_token_store
from hlsrelay.infrastructure.upstream.httpx_fetcher import HttpxUpstreamFetcher
from hlsrelay.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Token store (indirection mode only; the emitter needs it)
        2. HTTP client + upstream fetcher
        3. Emit strategy + relay use case
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Token store
    state.token_store = None
    if config.relay.mode == "indirection":
        store = create_token_store(
            backend=config.store.backend,
            ttl_seconds=config.store.ttl_seconds,
            max_entries=config.store.max_entries,
            redis_url=config.store.redis_url,
            redis_key_prefix=config.store.redis_key_prefix,
            redis_timeout_seconds=config.store.redis_timeout_seconds,
            max_concurrent=config.store.max_concurrent,
        )
        try:
            await store.__aenter__()
        except StoreUnavailableError:
            # Keep serving; token requests report 503 until the backend recovers.
            log.error("token_store_unavailable_at_startup", backend=config.store.backend)
        state.token_store = store
        log.info("token_store_initialized", backend=config.store.backend)

    # 2) HTTP client (one pool for all upstream fetches)
    state.http_client = httpx.AsyncClient(
        headers={"User-Agent": config.http_user_agent},
        timeout=config.http_timeout_seconds,
        follow_redirects=config.http_follow_redirects,
    )
    state.fetcher = HttpxUpstreamFetcher(
        state.http_client,
        timeout_seconds=config.http_timeout_seconds,
        max_concurrent=config.http_max_concurrent,
        follow_redirects=config.http_follow_redirects,
    )

    # 3) Emit strategy + use case
    emitter: ReferenceEmitterPort
    if state.token_store is not None:
        emitter = TokenEmitter(state.token_store, config.relay.public_base_url)
    else:
        emitter = DirectEmitter(config.relay.public_base_url)

    state.relay_uc = RelayResourceUseCase(
        fetcher=state.fetcher,
        emitter=emitter,
        store=state.token_store,
        forward_origin=config.relay.forward_origin,
    )
    log.info("app_startup_complete", relay_mode=config.relay.mode)

    try:
        yield
    finally:
        await state.http_client.aclose()
        if state.token_store is not None:
            await state.token_store.aclose()
        log.info("app_shutdown")
