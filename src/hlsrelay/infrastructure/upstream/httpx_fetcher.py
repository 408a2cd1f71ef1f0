"""Upstream fetcher over a shared httpx.AsyncClient."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping

import httpx
import structlog

from hlsrelay.domain.entities.relay import UpstreamResponse
from hlsrelay.domain.exceptions import UpstreamFetchError

log = structlog.get_logger(__name__)


class HttpxUpstreamFetcher:
    """GET origin resources on the relay's behalf.

    - Every call is bounded by ``timeout_seconds``; a timeout is a fetch
      error, never a hang.
    - A semaphore caps parallel origin fetches (prevents stampedes when
      many players hit the same relay).
    - Non-2xx statuses are returned to the caller, not raised.

    Args:
        http_client: Shared client (owned by the composition root).
        timeout_seconds: Per-request timeout.
        max_concurrent: Max parallel upstream fetches.
        follow_redirects: Whether origin redirects are followed.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        timeout_seconds: float = 30.0,
        max_concurrent: int = 50,
        follow_redirects: bool = True,
    ) -> None:
        self._client = http_client
        self._timeout = timeout_seconds
        self._follow_redirects = follow_redirects
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def fetch(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> UpstreamResponse:
        async with self._semaphore:
            try:
                resp = await self._client.get(
                    url,
                    headers=dict(headers or {}),
                    follow_redirects=self._follow_redirects,
                    timeout=self._timeout,
                )
            except httpx.TimeoutException as e:
                log.warning("upstream_fetch_timeout", timeout=self._timeout)
                raise UpstreamFetchError(
                    f"upstream timed out after {self._timeout}s"
                ) from e
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                log.warning("upstream_fetch_failed", error=str(e))
                raise UpstreamFetchError(str(e) or type(e).__name__) from e

        log.debug(
            "upstream_fetched",
            url=url,
            status_code=resp.status_code,
            size_bytes=len(resp.content),
        )
        return UpstreamResponse(
            status_code=resp.status_code,
            headers=dict(resp.headers),
            body=resp.content,
        )
