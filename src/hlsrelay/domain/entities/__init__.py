from .relay import (
    CORS_HEADERS,
    DEFAULT_OPAQUE_CONTENT_TYPE,
    DEFAULT_TEXT_CONTENT_TYPE,
    IMMUTABLE_CACHE_CONTROL,
    KEY_SUFFIX,
    MANIFEST_MAGIC,
    MANIFEST_MIME,
    MANIFEST_MIME_TOKENS,
    CacheEntry,
    ContentKind,
    LineKind,
    RelayRequest,
    RelayResponse,
    RelayTarget,
    ResourceRole,
    UpstreamResponse,
)

__all__ = [
    "CORS_HEADERS",
    "DEFAULT_OPAQUE_CONTENT_TYPE",
    "DEFAULT_TEXT_CONTENT_TYPE",
    "IMMUTABLE_CACHE_CONTROL",
    "KEY_SUFFIX",
    "MANIFEST_MAGIC",
    "MANIFEST_MIME",
    "MANIFEST_MIME_TOKENS",
    "CacheEntry",
    "ContentKind",
    "LineKind",
    "RelayRequest",
    "RelayResponse",
    "RelayTarget",
    "ResourceRole",
    "UpstreamResponse",
]
