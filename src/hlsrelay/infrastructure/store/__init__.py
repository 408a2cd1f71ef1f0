"""Token store backends."""

from .memory_store import MemoryTokenStore
from .redis_store import RedisTokenStore
from .store_factory import StoreBackend, create_token_store

__all__ = [
    "MemoryTokenStore",
    "RedisTokenStore",
    "StoreBackend",
    "create_token_store",
]
