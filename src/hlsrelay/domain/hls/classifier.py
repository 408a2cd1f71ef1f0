"""Content classification of upstream responses."""

from __future__ import annotations

from urllib.parse import urlsplit

from hlsrelay.domain.entities.relay import (
    KEY_SUFFIX,
    MANIFEST_MAGIC,
    MANIFEST_MIME_TOKENS,
    ContentKind,
)

BOM = "\ufeff"

# Bytes that are not valid UTF-8 survive decode/encode as lone surrogates.
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def is_key_url(url: str) -> bool:
    try:
        path = urlsplit(url).path
    except ValueError:
        path = url
    return path.lower().endswith(KEY_SUFFIX)


def classify_content(content_type: str, url: str) -> ContentKind:
    """Decide from headers alone whether a body should be treated as a manifest.

    A key-file URL always wins over the declared content type. Anything
    that is not a manifest MIME type is treated as opaque bytes.
    ``PLAIN_TEXT`` is only ever produced by :func:`decode_manifest` failing
    the magic-marker check.
    """
    if is_key_url(url):
        return ContentKind.KEY_OR_OPAQUE
    lowered = (content_type or "").lower()
    if any(token in lowered for token in MANIFEST_MIME_TOKENS):
        return ContentKind.MANIFEST
    return ContentKind.KEY_OR_OPAQUE

def decode_manifest(body: bytes) -> str | None:
    """Decode *body* and confirm the ``#EXTM3U`` marker.

    Returns None when the marker is missing (origin mislabelled the
    content type). A leading UTF-8 BOM is tolerated and kept in the text.
    Invalid UTF-8 is carried losslessly, so :func:`encode_manifest` gives
    back the original bytes for every line left untouched.
    """
    text = body.decode(_ENCODING, errors=_ERRORS)
    if not text.removeprefix(BOM).startswith(MANIFEST_MAGIC):
        return None
    return text


def encode_manifest(text: str) -> bytes:
    return text.encode(_ENCODING, errors=_ERRORS)
