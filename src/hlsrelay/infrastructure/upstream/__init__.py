from .httpx_fetcher import HttpxUpstreamFetcher

__all__ = ["HttpxUpstreamFetcher"]
