"""Upstream Fetcher Port - bounded HTTP GET against an origin."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from hlsrelay.domain.entities.relay import UpstreamResponse


class UpstreamFetcherPort(Protocol):
    async def fetch(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> UpstreamResponse:
        """GET *url* with header overrides.

        Non-2xx statuses are returned, not raised. Network failures and
        timeouts raise ``UpstreamFetchError``.
        """
        ...
