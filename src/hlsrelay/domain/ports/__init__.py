from .reference_emitter import ReferenceEmitterPort
from .token_store import TokenStorePort
from .upstream_fetcher import UpstreamFetcherPort

__all__ = [
    "ReferenceEmitterPort",
    "TokenStorePort",
    "UpstreamFetcherPort",
]
