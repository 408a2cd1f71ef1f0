"""Domain entities for the HLS relay.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

MANIFEST_MIME = "application/vnd.apple.mpegurl"
MANIFEST_MIME_TOKENS = ("application/vnd.apple.mpegurl", "application/x-mpegurl")
MANIFEST_MAGIC = "#EXTM3U"
KEY_SUFFIX = ".key"

DEFAULT_OPAQUE_CONTENT_TYPE = "application/octet-stream"
DEFAULT_TEXT_CONTENT_TYPE = "text/plain"

IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,HEAD,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class ContentKind(str, Enum):
    """What a fetched body turned out to be."""

    KEY_OR_OPAQUE = "key_or_opaque"
    PLAIN_TEXT = "plain_text"
    MANIFEST = "manifest"


class LineKind(str, Enum):
    """Classification of a single manifest line."""

    KEY_DIRECTIVE = "key_directive"
    COMMENT_OR_BLANK = "comment_or_blank"
    MEDIA_REFERENCE = "media_reference"


class ResourceRole(str, Enum):
    """Which follow-up endpoint a rewritten reference points at."""

    SEGMENT = "segment"
    KEY = "key"


@dataclass(frozen=True)
class CacheEntry:
    """Origin mapping held by the token store. Never mutated after creation."""

    origin_url: str
    referer: str | None
    expires_at: float  # epoch seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class RelayTarget:
    """Resolved origin URL plus the referer to present upstream."""

    url: str
    referer: str | None = None


@dataclass(frozen=True)
class RelayRequest:
    """Incoming relay request: either a direct origin URL or a token."""

    url: str | None = None
    token: str | None = None
    referer: str | None = None
    role: ResourceRole | None = None  # None = top-level manifest/resource


@dataclass(frozen=True)
class UpstreamResponse:
    """What the upstream fetcher hands back."""

    status_code: int
    headers: dict[str, str]
    body: bytes

    @property
    def content_type(self) -> str:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return ""


@dataclass(frozen=True)
class RelayResponse:
    """Outgoing response produced by the relay use case."""

    status_code: int
    body: bytes
    content_type: str
    headers: dict[str, str] = field(default_factory=dict)
    kind: ContentKind = ContentKind.KEY_OR_OPAQUE
