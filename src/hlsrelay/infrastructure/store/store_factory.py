"""Token store factory - builds the configured backend."""

from __future__ import annotations

from typing import Literal

import structlog

from hlsrelay.domain.ports.token_store import TokenStorePort
from hlsrelay.infrastructure.store.memory_store import MemoryTokenStore
from hlsrelay.infrastructure.store.redis_store import RedisTokenStore

log = structlog.get_logger(__name__)

StoreBackend = Literal["memory", "redis"]


def create_token_store(
    backend: StoreBackend = "memory",
    *,
    ttl_seconds: int = 3600,
    max_entries: int = 10_000,
    redis_url: str = "redis://localhost:6379/0",
    redis_key_prefix: str = "hlsrelay:",
    redis_timeout_seconds: float = 5.0,
    max_concurrent: int = 50,
) -> TokenStorePort:
    """Create the token store for *backend*.

    Raises:
        ValueError: If `backend` is unknown.
    """
    log.info(
        "token_store_factory_create",
        backend=backend,
        ttl=ttl_seconds,
        max_entries=max_entries,
    )
    if backend == "memory":
        return MemoryTokenStore(ttl_seconds=ttl_seconds, max_entries=max_entries)
    if backend == "redis":
        return RedisTokenStore(
            url=redis_url,
            ttl_seconds=ttl_seconds,
            max_entries=max_entries,
            key_prefix=redis_key_prefix,
            timeout_seconds=redis_timeout_seconds,
            max_concurrent=max_concurrent,
        )
    raise ValueError(
        f"Unknown token store backend: {backend!r}. Must be 'memory' or 'redis'."
    )
