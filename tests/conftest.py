"""Shared test fixtures for the hlsrelay test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from hlsrelay.domain.entities.relay import MANIFEST_MIME, UpstreamResponse
from hlsrelay.infrastructure.store.memory_store import MemoryTokenStore

MANIFEST_URL = "https://origin.example/video/index.m3u8"
BASE_URL = "https://origin.example/video/"

SCENARIO_MANIFEST = (
    "#EXTM3U\n"
    '#EXT-X-KEY:METHOD=AES-128,URI="enc.key"\n'
    "seg0.ts\n"
    "https://cdn.example/seg1.ts\n"
)


class FakeClock:
    """Manually advanced epoch clock for expiry tests."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_upstream(
    body: bytes | str = b"",
    *,
    status_code: int = 200,
    content_type: str | None = None,
) -> UpstreamResponse:
    if isinstance(body, str):
        body = body.encode("utf-8")
    headers = {"content-type": content_type} if content_type is not None else {}
    return UpstreamResponse(status_code=status_code, headers=headers, body=body)


def manifest_upstream(text: str = SCENARIO_MANIFEST) -> UpstreamResponse:
    return make_upstream(text, content_type=MANIFEST_MIME)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def memory_store(clock: FakeClock) -> MemoryTokenStore:
    """Memory store on a fake clock, 1h TTL."""
    return MemoryTokenStore(ttl_seconds=3600, max_entries=1000, clock=clock)


@pytest.fixture()
def mock_fetcher() -> AsyncMock:
    """Mock UpstreamFetcherPort returning the scenario manifest."""
    fetcher = AsyncMock()
    fetcher.fetch = AsyncMock(return_value=manifest_upstream())
    return fetcher


@pytest.fixture()
def mock_store() -> AsyncMock:
    """Mock TokenStorePort."""
    store = AsyncMock()
    store.put = AsyncMock(return_value="0" * 32)
    store.get = AsyncMock(return_value=None)
    store.aclose = AsyncMock()
    return store
