"""Tests for HttpxUpstreamFetcher (respx-mocked upstream)."""

from __future__ import annotations

import httpx
import pytest
import respx

from hlsrelay.domain.exceptions import UpstreamFetchError
from hlsrelay.infrastructure.upstream.httpx_fetcher import HttpxUpstreamFetcher

_URL = "https://origin.example/video/index.m3u8"


@pytest.fixture()
async def fetcher():
    async with httpx.AsyncClient() as client:
        yield HttpxUpstreamFetcher(client, timeout_seconds=5.0, max_concurrent=2)


class TestFetch:
    @respx.mock
    async def test_returns_status_headers_body(
        self, fetcher: HttpxUpstreamFetcher
    ) -> None:
        respx.get(_URL).respond(
            200,
            content=b"#EXTM3U\n",
            headers={"Content-Type": "application/vnd.apple.mpegurl"},
        )

        resp = await fetcher.fetch(_URL)

        assert resp.status_code == 200
        assert resp.body == b"#EXTM3U\n"
        assert resp.content_type == "application/vnd.apple.mpegurl"

    @respx.mock
    async def test_forwards_headers(self, fetcher: HttpxUpstreamFetcher) -> None:
        route = respx.get(_URL).respond(200)

        await fetcher.fetch(
            _URL, {"Referer": "https://site.example/", "Origin": "https://site.example"}
        )

        request = route.calls.last.request
        assert request.headers["Referer"] == "https://site.example/"
        assert request.headers["Origin"] == "https://site.example"

    @respx.mock
    async def test_non_2xx_is_returned_not_raised(
        self, fetcher: HttpxUpstreamFetcher
    ) -> None:
        respx.get(_URL).respond(403, text="forbidden")

        resp = await fetcher.fetch(_URL)

        assert resp.status_code == 403
        assert resp.body == b"forbidden"

    @respx.mock
    async def test_follows_redirects(self, fetcher: HttpxUpstreamFetcher) -> None:
        respx.get(_URL).respond(302, headers={"Location": "https://cdn.example/i.m3u8"})
        respx.get("https://cdn.example/i.m3u8").respond(200, text="#EXTM3U\n")

        resp = await fetcher.fetch(_URL)

        assert resp.status_code == 200

    @respx.mock
    async def test_connect_error(self, fetcher: HttpxUpstreamFetcher) -> None:
        respx.get(_URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(UpstreamFetchError, match="refused"):
            await fetcher.fetch(_URL)

    @respx.mock
    async def test_timeout(self, fetcher: HttpxUpstreamFetcher) -> None:
        respx.get(_URL).mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(UpstreamFetchError, match="timed out after 5.0s"):
            await fetcher.fetch(_URL)

    async def test_unsupported_scheme(self, fetcher: HttpxUpstreamFetcher) -> None:
        with pytest.raises(UpstreamFetchError):
            await fetcher.fetch("ftp://origin.example/a.ts")

    async def test_invalid_url(self, fetcher: HttpxUpstreamFetcher) -> None:
        with pytest.raises(UpstreamFetchError):
            await fetcher.fetch("http://[bad")
