"""Relay error taxonomy.

Every surfaced error carries a machine-readable ``kind`` and a
human-readable ``detail``. None of them are process-fatal.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for all relay errors."""

    kind = "relay_error"

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail)
        self.detail = detail


class MissingParameterError(RelayError):
    """Neither an origin URL nor a token was supplied."""

    kind = "missing_parameter"


class MalformedReferenceError(RelayError):
    """A manifest reference could not be parsed as a URI."""

    kind = "malformed_reference"


class TokenNotFoundError(RelayError):
    """The token is unknown or its entry has expired."""

    kind = "not_found"


class UpstreamFetchError(RelayError):
    """The upstream fetch failed or timed out."""

    kind = "network_error"


class StoreUnavailableError(RelayError):
    """The token store backend could not be reached."""

    kind = "store_unavailable"
