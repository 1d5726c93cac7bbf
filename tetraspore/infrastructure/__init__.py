"""Shared services used by executors: storage, cache, rate limiting, cost."""

from tetraspore.infrastructure.cache import AssetCache, InMemoryAssetCache, NullAssetCache, cache_key
from tetraspore.infrastructure.cost_tracker import CostTracker
from tetraspore.infrastructure.rate_limiter import ResourceRateLimiter
from tetraspore.infrastructure.storage import AssetStorage, InMemoryAssetStorage, LocalAssetStorage

__all__ = [
    "AssetCache",
    "AssetStorage",
    "CostTracker",
    "InMemoryAssetCache",
    "InMemoryAssetStorage",
    "LocalAssetStorage",
    "NullAssetCache",
    "ResourceRateLimiter",
    "cache_key",
]
