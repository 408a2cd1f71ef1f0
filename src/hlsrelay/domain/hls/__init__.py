from .classifier import (
    classify_content,
    decode_manifest,
    encode_manifest,
    is_key_url,
)
from .manifest import classify_line, rewrite_manifest
from .resolver import base_url_from, is_absolute, resolve_reference

__all__ = [
    "base_url_from",
    "classify_content",
    "classify_line",
    "decode_manifest",
    "encode_manifest",
    "is_absolute",
    "is_key_url",
    "resolve_reference",
    "rewrite_manifest",
]
