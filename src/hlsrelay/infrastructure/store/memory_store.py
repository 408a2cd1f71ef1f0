"""In-process token store - bounded LRU with per-entry expiry."""

from __future__ import annotations

import threading
import time
import uuid
from collections import OrderedDict
from collections.abc import Callable

import structlog

from hlsrelay.domain.entities.relay import CacheEntry

log = structlog.get_logger(__name__)

# How many inserts between full sweeps of expired entries.
_SWEEP_INTERVAL = 256


class MemoryTokenStore:
    """Token store scoped to the lifetime of one server process.

    - ``OrderedDict`` kept in least-recently-used order; ``get`` refreshes.
    - Expired entries are dropped lazily on read and by a periodic sweep.
    - Inserting past ``max_entries`` evicts the least-recently-used entry
      regardless of its expiry time.
    - A single lock guards every mutation, so concurrent callers (event
      loop tasks or threads) never see a torn mapping.

    Args:
        ttl_seconds: Lifetime of each entry.
        max_entries: Upper bound on resident entries.
        clock: Wall-clock source (epoch seconds), injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: int = 3600,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self.ttl = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._inserts = 0

        log.info(
            "memory_token_store_init",
            ttl=ttl_seconds,
            max_entries=max_entries,
        )

    # --- Context Manager ---
    async def __aenter__(self) -> MemoryTokenStore:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
        log.info("memory_token_store_closed", dropped=dropped)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # --- TokenStorePort implementation ---
    async def put(self, origin_url: str, referer: str | None = None) -> str:
        token = uuid.uuid4().hex
        now = self._clock()
        entry = CacheEntry(
            origin_url=origin_url,
            referer=referer,
            expires_at=now + self.ttl,
        )

        with self._lock:
            self._inserts += 1
            if self._inserts >= _SWEEP_INTERVAL:
                self._inserts = 0
                self._sweep_locked(now)

            self._entries[token] = entry

            evicted = 0
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
                evicted += 1

        if evicted:
            log.debug("token_store_evicted", evicted=evicted, reason="capacity")
        return token

    async def get(self, token: str) -> CacheEntry | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(token)
            if entry is None:
                return None
            if entry.is_expired(now):
                del self._entries[token]
                log.debug("token_store_evicted", evicted=1, reason="expired")
                return None
            self._entries.move_to_end(token)
            return entry

    def sweep(self) -> int:
        """Drop every expired entry now. Returns the number removed."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now: float) -> int:
        expired = [t for t, e in self._entries.items() if e.is_expired(now)]
        for token in expired:
            del self._entries[token]
        if expired:
            log.debug("token_store_swept", removed=len(expired))
        return len(expired)
