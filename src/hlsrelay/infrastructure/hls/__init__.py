from .emitters import DirectEmitter, TokenEmitter
from .relay_urls import build_query_url, build_token_url

__all__ = [
    "DirectEmitter",
    "TokenEmitter",
    "build_query_url",
    "build_token_url",
]
