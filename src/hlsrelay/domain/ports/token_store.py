"""Token Store Port - opaque token -> origin mapping with TTL and LRU bound."""

from __future__ import annotations

from typing import Protocol

from hlsrelay.domain.entities.relay import CacheEntry


class TokenStorePort(Protocol):
    """Port for the indirection store.

    Implementations:
      - MemoryTokenStore (in-process OrderedDict, bounded LRU)
      - RedisTokenStore (shared redis.asyncio backend)

    Both honor identical TTL and lookup semantics. Backend outages raise
    ``StoreUnavailableError``, never a silent miss.
    """

    async def put(self, origin_url: str, referer: str | None = None) -> str:
        """Insert a fresh entry (expiring at now + TTL) and return its token."""
        ...

    async def get(self, token: str) -> CacheEntry | None:
        """Return the live entry for *token*. None = unknown or expired."""
        ...

    async def aclose(self) -> None:
        """Cleanup hook (e.g. close Redis connection)."""
        ...

    async def __aenter__(self) -> TokenStorePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
