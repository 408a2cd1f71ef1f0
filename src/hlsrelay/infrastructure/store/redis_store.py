"""Redis token store - shared indirection store via redis.asyncio."""

from __future__ import annotations

import asyncio
import json
import time
import uuid
from collections.abc import Callable

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from hlsrelay.domain.entities.relay import CacheEntry
from hlsrelay.domain.exceptions import StoreUnavailableError

log = structlog.get_logger(__name__)


def _serialize_entry(entry: CacheEntry) -> str:
    return json.dumps(
        {
            "origin_url": entry.origin_url,
            "referer": entry.referer,
            "expires_at": entry.expires_at,
        }
    )


def _deserialize_entry(data: bytes | str) -> CacheEntry:
    d = json.loads(data)
    return CacheEntry(
        origin_url=d["origin_url"],
        referer=d.get("referer"),
        expires_at=float(d["expires_at"]),
    )


def _as_str(member: bytes | str) -> str:
    return member.decode("utf-8") if isinstance(member, bytes) else member


class RedisTokenStore:
    """Token store shared by every relay process pointing at the same Redis.

    - Entries are JSON under ``<prefix>entry:<token>`` with native TTL.
    - Recency lives in the sorted set ``<prefix>lru`` (score = last access),
      expiry in ``<prefix>exp`` (score = ``expires_at``). Both index the
      same tokens.
    - Each insert first drops every expired token from both indexes, so
      only live entries count toward ``max_entries``; it then pops the
      least-recently-used tokens past the bound and deletes their entries.
    - A read that finds its entry gone or expired unindexes the token.
    - Every Redis error (connection refused, socket timeout, ...) surfaces
      as ``StoreUnavailableError`` so an outage is never mistaken for an
      expired token.

    Args:
        url: Redis URL (e.g. ``redis://localhost:6379/0``).
        ttl_seconds: Lifetime of each entry.
        max_entries: Upper bound on indexed entries.
        key_prefix: Namespace for all keys written by this store.
        timeout_seconds: Socket connect/read timeout for every call.
        max_concurrent: Max parallel Redis ops.
        client: Pre-built client (tests); created from *url* otherwise.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        ttl_seconds: int = 3600,
        max_entries: int = 10_000,
        key_prefix: str = "hlsrelay:",
        timeout_seconds: float = 5.0,
        max_concurrent: int = 50,
        client: Redis | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self.url = url
        self.ttl = ttl_seconds
        self.max_entries = max_entries
        self.key_prefix = key_prefix
        self.timeout_seconds = timeout_seconds
        self._client = client
        self._clock = clock
        self._semaphore = asyncio.Semaphore(max_concurrent)

        log.info(
            "redis_token_store_init",
            url=url,
            ttl=ttl_seconds,
            max_entries=max_entries,
            key_prefix=key_prefix,
        )

    @property
    def index_key(self) -> str:
        return f"{self.key_prefix}lru"

    @property
    def expiry_key(self) -> str:
        return f"{self.key_prefix}exp"

    def entry_key(self, token: str) -> str:
        return f"{self.key_prefix}entry:{token}"

    # --- Context Manager ---
    async def __aenter__(self) -> RedisTokenStore:
        if self._client is None:
            self._client = Redis.from_url(
                self.url,
                decode_responses=False,
                socket_timeout=self.timeout_seconds,
                socket_connect_timeout=self.timeout_seconds,
            )
        try:
            await self._client.ping()
        except RedisError as e:
            log.error("redis_connection_failed", url=self.url, error=str(e))
            raise StoreUnavailableError(f"redis unreachable: {e}") from e
        log.info("redis_connected", url=self.url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.info("redis_closed")

    def _require_client(self) -> Redis:
        if self._client is None:
            raise RuntimeError("Redis not initialized. Use 'async with store:'")
        return self._client

    # --- TokenStorePort implementation ---
    async def put(self, origin_url: str, referer: str | None = None) -> str:
        client = self._require_client()
        token = uuid.uuid4().hex
        now = self._clock()
        entry = CacheEntry(
            origin_url=origin_url,
            referer=referer,
            expires_at=now + self.ttl,
        )

        async with self._semaphore:
            try:
                async with client.pipeline(transaction=True) as pipe:
                    pipe.zrangebyscore(self.expiry_key, "-inf", now)
                    pipe.set(self.entry_key(token), _serialize_entry(entry), ex=self.ttl)
                    pipe.zadd(self.index_key, {token: now})
                    pipe.zadd(self.expiry_key, {token: entry.expires_at})
                    pipe.zcard(self.index_key)
                    expired, _, _, _, size = await pipe.execute()

                if expired:
                    size -= await self._forget(client, expired)

                overflow = int(size) - self.max_entries
                if overflow > 0:
                    await self._evict(client, overflow)
            except RedisError as e:
                log.error("redis_put_error", error=str(e))
                raise StoreUnavailableError(f"redis put failed: {e}") from e

        return token

    async def _forget(self, client: Redis, members: list[bytes | str]) -> int:
        """Unindex *members* and delete their entries. Returns how many left the LRU index."""
        tokens = [_as_str(m) for m in members]
        async with client.pipeline(transaction=True) as pipe:
            pipe.zrem(self.index_key, *tokens)
            pipe.zrem(self.expiry_key, *tokens)
            pipe.delete(*(self.entry_key(t) for t in tokens))
            removed, _, _ = await pipe.execute()
        if removed:
            log.debug("token_store_evicted", evicted=removed, reason="expired")
        return int(removed)

    async def _evict(self, client: Redis, count: int) -> None:
        popped = await client.zpopmin(self.index_key, count)
        tokens = [_as_str(member) for member, _score in popped]
        if tokens:
            async with client.pipeline(transaction=True) as pipe:
                pipe.zrem(self.expiry_key, *tokens)
                pipe.delete(*(self.entry_key(t) for t in tokens))
                await pipe.execute()
            log.debug("token_store_evicted", evicted=len(tokens), reason="capacity")

    async def get(self, token: str) -> CacheEntry | None:
        client = self._require_client()

        async with self._semaphore:
            try:
                raw = await client.get(self.entry_key(token))
                now = self._clock()
                entry = _deserialize_entry(raw) if raw is not None else None
                if entry is None or entry.is_expired(now):
                    # Gone natively or past its deadline: free the index slot.
                    await self._forget(client, [token])
                    return None
                await client.zadd(self.index_key, {token: now}, xx=True)
                return entry
            except RedisError as e:
                log.error("redis_get_error", error=str(e))
                raise StoreUnavailableError(f"redis get failed: {e}") from e
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                log.error("token_entry_deserialize_error", error=str(e))
                return None
