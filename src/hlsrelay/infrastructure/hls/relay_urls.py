"""Relay URL building.

Query values are percent-encoded and tokens are escaped as a single path
segment; nothing is spliced into a URL raw.
"""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import quote, urlencode

from hlsrelay.domain.entities.relay import ResourceRole


def _join(public_base_url: str, path: str) -> str:
    return f"{public_base_url.rstrip('/')}/{path.lstrip('/')}"


def build_query_url(
    public_base_url: str, path: str, params: Mapping[str, str | None]
) -> str:
    """Build ``<base>/<path>?k=v`` skipping None values.

    >>> build_query_url("", "/segment", {"url": "https://o/a b.ts", "ref": None})
    '/segment?url=https%3A%2F%2Fo%2Fa%20b.ts'
    """
    query = urlencode(
        [(k, v) for k, v in params.items() if v is not None],
        quote_via=quote,
        safe="",
    )
    url = _join(public_base_url, path)
    return f"{url}?{query}" if query else url


def build_token_url(public_base_url: str, role: ResourceRole, token: str) -> str:
    """Build ``<base>/<role>/<token>``.

    >>> build_token_url("https://relay.example", ResourceRole.KEY, "ab/c")
    'https://relay.example/key/ab%2Fc'
    """
    return _join(public_base_url, f"{role.value}/{quote(token, safe='')}")
