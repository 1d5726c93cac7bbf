"""
Asset cache.

Results are keyed by a hash of the normalized action so an identical request
is never generated twice while its entry is fresh.
"""

from __future__ import annotations

import hashlib
import json
import time
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from tetraspore.executors.models import AssetResult
from tetraspore.utils.logging import get_logger

logger = get_logger("infrastructure.cache")

DEFAULT_TTL_SECONDS = 3600.0


def normalize_for_key(value: Any) -> Any:
    """Recursively sort mapping keys and drop callables."""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    if isinstance(value, dict):
        return {
            key: normalize_for_key(value[key])
            for key in sorted(value)
            if not callable(value[key])
        }
    if isinstance(value, (list, tuple)):
        return [normalize_for_key(item) for item in value if not callable(item)]
    return value


def cache_key(action: Any) -> str:
    """Deterministic key for an action: identical actions share a key."""
    normalized = normalize_for_key(action)
    encoded = json.dumps(normalized, sort_keys=True, ensure_ascii=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


@runtime_checkable
class AssetCache(Protocol):
    async def get(self, key: str) -> AssetResult | None:
        ...

    async def set(self, key: str, value: AssetResult, ttl: float | None = None) -> None:
        ...

    async def clear(self) -> None:
        ...


class InMemoryAssetCache:
    """Dict-backed cache with per-entry expiry on the monotonic clock."""

    def __init__(self, default_ttl: float = DEFAULT_TTL_SECONDS):
        self.default_ttl = default_ttl
        self._entries: dict[str, tuple[AssetResult, float]] = {}
        self.hits = 0
        self.misses = 0

    async def get(self, key: str) -> AssetResult | None:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            self.misses += 1
            return None
        self.hits += 1
        return value.model_copy(deep=True)

    async def set(self, key: str, value: AssetResult, ttl: float | None = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (value.model_copy(deep=True), time.monotonic() + ttl)

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class NullAssetCache:
    """Cache that never stores anything."""

    async def get(self, key: str) -> AssetResult | None:
        return None

    async def set(self, key: str, value: AssetResult, ttl: float | None = None) -> None:
        return None

    async def clear(self) -> None:
        return None
