"""Tests for RelayResourceUseCase."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from hlsrelay.application.use_cases.relay_resource import RelayResourceUseCase
from hlsrelay.domain.entities.relay import (
    IMMUTABLE_CACHE_CONTROL,
    MANIFEST_MIME,
    CacheEntry,
    ContentKind,
    RelayRequest,
    ResourceRole,
    UpstreamResponse,
)
from hlsrelay.domain.exceptions import (
    MissingParameterError,
    StoreUnavailableError,
    TokenNotFoundError,
    UpstreamFetchError,
)
from hlsrelay.infrastructure.hls.emitters import DirectEmitter, TokenEmitter
from hlsrelay.infrastructure.store.memory_store import MemoryTokenStore

_MANIFEST_URL = "https://origin.example/video/index.m3u8"
_REFERER = "https://site.example/watch/1"


def _upstream(
    body: bytes | str = b"",
    *,
    status_code: int = 200,
    content_type: str | None = None,
) -> UpstreamResponse:
    if isinstance(body, str):
        body = body.encode("utf-8")
    headers = {"Content-Type": content_type} if content_type else {}
    return UpstreamResponse(status_code=status_code, headers=headers, body=body)


def _make_uc(fetcher: AsyncMock, **kwargs) -> RelayResourceUseCase:
    kwargs.setdefault("emitter", DirectEmitter())
    return RelayResourceUseCase(fetcher=fetcher, **kwargs)


class TestTargetResolution:
    async def test_missing_url_and_token(self, mock_fetcher: AsyncMock) -> None:
        uc = _make_uc(mock_fetcher)
        with pytest.raises(MissingParameterError, match="No URL provided"):
            await uc.execute(RelayRequest())
        mock_fetcher.fetch.assert_not_awaited()

    async def test_empty_url_is_missing(self, mock_fetcher: AsyncMock) -> None:
        uc = _make_uc(mock_fetcher)
        with pytest.raises(MissingParameterError):
            await uc.execute(RelayRequest(url=""))

    async def test_direct_url_with_referer_and_origin(
        self, mock_fetcher: AsyncMock
    ) -> None:
        uc = _make_uc(mock_fetcher)
        await uc.execute(RelayRequest(url=_MANIFEST_URL, referer=_REFERER))

        mock_fetcher.fetch.assert_awaited_once_with(
            _MANIFEST_URL,
            {"Referer": _REFERER, "Origin": "https://site.example"},
        )

    async def test_origin_forwarding_disabled(self, mock_fetcher: AsyncMock) -> None:
        uc = _make_uc(mock_fetcher, forward_origin=False)
        await uc.execute(RelayRequest(url=_MANIFEST_URL, referer=_REFERER))
        mock_fetcher.fetch.assert_awaited_once_with(
            _MANIFEST_URL, {"Referer": _REFERER}
        )

    async def test_no_referer_sends_no_headers(self, mock_fetcher: AsyncMock) -> None:
        uc = _make_uc(mock_fetcher)
        await uc.execute(RelayRequest(url=_MANIFEST_URL))
        mock_fetcher.fetch.assert_awaited_once_with(_MANIFEST_URL, {})

    async def test_token_resolves_origin_and_referer(
        self, mock_fetcher: AsyncMock, mock_store: AsyncMock
    ) -> None:
        mock_store.get = AsyncMock(
            return_value=CacheEntry(
                origin_url="https://cdn.example/seg1.ts",
                referer=_REFERER,
                expires_at=9e12,
            )
        )
        mock_fetcher.fetch = AsyncMock(
            return_value=_upstream(b"\x47\x00", content_type="video/mp2t")
        )
        uc = _make_uc(mock_fetcher, store=mock_store)

        await uc.execute(RelayRequest(token="tok", role=ResourceRole.SEGMENT))

        mock_store.get.assert_awaited_once_with("tok")
        assert mock_fetcher.fetch.call_args[0][0] == "https://cdn.example/seg1.ts"
        assert mock_fetcher.fetch.call_args[0][1]["Referer"] == _REFERER

    async def test_token_takes_precedence_over_url(
        self, mock_fetcher: AsyncMock, mock_store: AsyncMock
    ) -> None:
        mock_store.get = AsyncMock(
            return_value=CacheEntry("https://cdn.example/a.ts", None, 9e12)
        )
        uc = _make_uc(mock_fetcher, store=mock_store)
        await uc.execute(RelayRequest(url=_MANIFEST_URL, token="tok"))
        assert mock_fetcher.fetch.call_args[0][0] == "https://cdn.example/a.ts"

    async def test_unknown_token(
        self, mock_fetcher: AsyncMock, mock_store: AsyncMock
    ) -> None:
        uc = _make_uc(mock_fetcher, store=mock_store)
        with pytest.raises(TokenNotFoundError):
            await uc.execute(RelayRequest(token="nope"))
        mock_fetcher.fetch.assert_not_awaited()

    async def test_token_without_store(self, mock_fetcher: AsyncMock) -> None:
        uc = _make_uc(mock_fetcher)
        with pytest.raises(TokenNotFoundError):
            await uc.execute(RelayRequest(token="tok"))

    async def test_store_outage_propagates(
        self, mock_fetcher: AsyncMock, mock_store: AsyncMock
    ) -> None:
        mock_store.get = AsyncMock(side_effect=StoreUnavailableError("down"))
        uc = _make_uc(mock_fetcher, store=mock_store)
        with pytest.raises(StoreUnavailableError):
            await uc.execute(RelayRequest(token="tok"))


class TestManifestBranch:
    async def test_rewrites_manifest(self, mock_fetcher: AsyncMock) -> None:
        uc = _make_uc(mock_fetcher)
        result = await uc.execute(RelayRequest(url=_MANIFEST_URL))

        assert result.kind is ContentKind.MANIFEST
        assert result.status_code == 200
        assert result.content_type == MANIFEST_MIME
        assert "Cache-Control" not in result.headers
        assert result.headers["Access-Control-Allow-Origin"] == "*"
        text = result.body.decode("utf-8")
        assert "/segment?url=https%3A%2F%2Forigin.example%2Fvideo%2Fseg0.ts" in text
        assert "/key?url=https%3A%2F%2Forigin.example%2Fvideo%2Fenc.key" in text

    async def test_indirection_mode_tokens_resolve(
        self, mock_fetcher: AsyncMock, memory_store: MemoryTokenStore
    ) -> None:
        uc = _make_uc(
            mock_fetcher,
            emitter=TokenEmitter(memory_store),
            store=memory_store,
        )
        result = await uc.execute(RelayRequest(url=_MANIFEST_URL, referer=_REFERER))

        lines = result.body.decode("utf-8").split("\n")
        seg_token = lines[2].removeprefix("/segment/")
        entry = await memory_store.get(seg_token)
        assert entry is not None
        assert entry.origin_url == "https://origin.example/video/seg0.ts"
        assert entry.referer == _REFERER

    async def test_variant_base_follows_token_target(
        self, mock_fetcher: AsyncMock, memory_store: MemoryTokenStore
    ) -> None:
        token = await memory_store.put("https://origin.example/video/720p/index.m3u8")
        mock_fetcher.fetch = AsyncMock(
            return_value=_upstream("#EXTM3U\nseg.ts\n", content_type=MANIFEST_MIME)
        )
        uc = _make_uc(mock_fetcher, store=memory_store)

        result = await uc.execute(RelayRequest(token=token, role=ResourceRole.SEGMENT))

        assert result.kind is ContentKind.MANIFEST
        assert (
            "url=https%3A%2F%2Forigin.example%2Fvideo%2F720p%2Fseg.ts"
            in result.body.decode("utf-8")
        )

    async def test_non_utf8_bytes_survive_rewrite(
        self, mock_fetcher: AsyncMock
    ) -> None:
        mock_fetcher.fetch = AsyncMock(
            return_value=_upstream(
                b"#EXTM3U\n#EXTINF:10,Caf\xe9\nseg0.ts\n", content_type=MANIFEST_MIME
            )
        )
        uc = _make_uc(mock_fetcher)
        result = await uc.execute(RelayRequest(url=_MANIFEST_URL))

        assert result.kind is ContentKind.MANIFEST
        lines = result.body.split(b"\n")
        assert lines[1] == b"#EXTINF:10,Caf\xe9"
        assert lines[2].startswith(b"/segment?url=")

    async def test_bom_survives_rewrite(self, mock_fetcher: AsyncMock) -> None:
        mock_fetcher.fetch = AsyncMock(
            return_value=_upstream(
                b"\xef\xbb\xbf#EXTM3U\nseg0.ts\n", content_type=MANIFEST_MIME
            )
        )
        uc = _make_uc(mock_fetcher)
        result = await uc.execute(RelayRequest(url=_MANIFEST_URL))

        assert result.kind is ContentKind.MANIFEST
        assert result.body.startswith(b"\xef\xbb\xbf#EXTM3U\n/segment?url=")

    async def test_marker_missing_returned_as_is(self, mock_fetcher: AsyncMock) -> None:
        mock_fetcher.fetch = AsyncMock(
            return_value=_upstream(
                "<html>denied</html>",
                status_code=403,
                content_type="application/vnd.apple.mpegurl",
            )
        )
        uc = _make_uc(mock_fetcher)
        result = await uc.execute(RelayRequest(url=_MANIFEST_URL))

        assert result.kind is ContentKind.PLAIN_TEXT
        assert result.status_code == 403
        assert result.body == b"<html>denied</html>"
        assert "Cache-Control" not in result.headers

    async def test_text_plain_never_rewritten(self, mock_fetcher: AsyncMock) -> None:
        mock_fetcher.fetch = AsyncMock(
            return_value=_upstream(
                "hello seg0.ts", status_code=404, content_type="text/plain"
            )
        )
        uc = _make_uc(mock_fetcher)
        result = await uc.execute(RelayRequest(url=_MANIFEST_URL))

        assert result.status_code == 404
        assert result.body == b"hello seg0.ts"
        assert result.content_type == "text/plain"


class TestOpaqueBranch:
    async def test_segment_passthrough_is_immutable(
        self, mock_fetcher: AsyncMock
    ) -> None:
        body = bytes(range(256))
        mock_fetcher.fetch = AsyncMock(
            return_value=_upstream(body, content_type="video/mp2t")
        )
        uc = _make_uc(mock_fetcher)
        result = await uc.execute(
            RelayRequest(url="https://o.example/seg.ts", role=ResourceRole.SEGMENT)
        )

        assert result.kind is ContentKind.KEY_OR_OPAQUE
        assert result.body == body
        assert result.content_type == "video/mp2t"
        assert result.headers["Cache-Control"] == IMMUTABLE_CACHE_CONTROL

    async def test_key_role_never_rewritten(self, mock_fetcher: AsyncMock) -> None:
        uc = _make_uc(mock_fetcher)
        result = await uc.execute(
            RelayRequest(url="https://o.example/license", role=ResourceRole.KEY)
        )

        assert result.kind is ContentKind.KEY_OR_OPAQUE
        assert result.body.startswith(b"#EXTM3U")
        assert result.content_type == MANIFEST_MIME

    async def test_key_suffix_passthrough(self, mock_fetcher: AsyncMock) -> None:
        mock_fetcher.fetch = AsyncMock(
            return_value=_upstream(b"0123456789abcdef", content_type=MANIFEST_MIME)
        )
        uc = _make_uc(mock_fetcher)
        result = await uc.execute(RelayRequest(url="https://o.example/enc.key"))

        assert result.kind is ContentKind.KEY_OR_OPAQUE
        assert result.body == b"0123456789abcdef"

    async def test_default_content_type(self, mock_fetcher: AsyncMock) -> None:
        mock_fetcher.fetch = AsyncMock(return_value=_upstream(b"\x00\x01"))
        uc = _make_uc(mock_fetcher)
        result = await uc.execute(RelayRequest(url="https://o.example/seg"))
        assert result.content_type == "application/octet-stream"

    async def test_error_status_not_cached(self, mock_fetcher: AsyncMock) -> None:
        mock_fetcher.fetch = AsyncMock(
            return_value=_upstream(b"gone", status_code=410, content_type="video/mp2t")
        )
        uc = _make_uc(mock_fetcher)
        result = await uc.execute(RelayRequest(url="https://o.example/seg.ts"))

        assert result.status_code == 410
        assert "Cache-Control" not in result.headers


class TestUpstreamFailure:
    async def test_fetch_error_propagates(self, mock_fetcher: AsyncMock) -> None:
        mock_fetcher.fetch = AsyncMock(side_effect=UpstreamFetchError("refused"))
        uc = _make_uc(mock_fetcher)
        with pytest.raises(UpstreamFetchError):
            await uc.execute(RelayRequest(url=_MANIFEST_URL))
