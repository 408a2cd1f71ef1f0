"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from hlsrelay.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from hlsrelay.application.use_cases.relay_resource import RelayResourceUseCase
    from hlsrelay.domain.ports import TokenStorePort, UpstreamFetcherPort


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient
    token_store: TokenStorePort | None  # None in direct mode
    fetcher: UpstreamFetcherPort

    # Application Services
    relay_uc: RelayResourceUseCase
