"""Reference resolution for URIs found inside HLS manifests."""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit, urlunsplit

from hlsrelay.domain.exceptions import MalformedReferenceError

# Control characters, and lone surrogates standing in for non-UTF-8 bytes.
_UNPARSEABLE_CHARS = re.compile(r"[\x00-\x1f\x7f\udc80-\udcff]")


def base_url_from(manifest_url: str) -> str:
    """Return the resolution base (scheme, host and directory) of a manifest URL.

    >>> base_url_from("https://origin.example/video/index.m3u8?t=abc")
    'https://origin.example/video/'
    """
    parsed = urlsplit(manifest_url)
    path = parsed.path
    last_slash = path.rfind("/")
    base_path = path[: last_slash + 1] if last_slash >= 0 else "/"
    return f"{parsed.scheme}://{parsed.netloc}{base_path}"


def _split(raw: str):
    if not raw or _UNPARSEABLE_CHARS.search(raw):
        raise MalformedReferenceError(f"unparseable reference: {raw!r}")
    try:
        parts = urlsplit(raw)
        # Accessing .port validates the authority component.
        parts.port
    except ValueError as e:
        raise MalformedReferenceError(f"unparseable reference: {raw!r} ({e})") from e
    return parts


def is_absolute(raw: str) -> bool:
    return bool(_split(raw).scheme)


def resolve_reference(raw: str, base: str) -> str:
    """Resolve *raw* against *base* into a fully-qualified origin URL.

    Absolute references come back normalized but otherwise unchanged,
    so resolving an already-resolved URL is a no-op. Relative ones are
    joined with standard RFC 3986 rules (``.``/``..`` collapse against
    the base directory, a leading ``/`` replaces the base path, scheme
    and host are inherited).

    Raises:
        MalformedReferenceError: *raw* is not a URI reference at all.
    """
    parts = _split(raw)
    if parts.scheme:
        return urlunsplit(parts)
    try:
        return urlunsplit(_split(urljoin(base, raw)))
    except ValueError as e:
        raise MalformedReferenceError(f"cannot join {raw!r} onto {base!r}") from e
