"""
Asset storage backends.

Executors write generated bytes (images, audio) and JSON (cutscene
definitions) through the ``AssetStorage`` protocol and get back a
``StoredAsset`` whose URL the front end can load.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from tetraspore.errors import StorageError
from tetraspore.executors.models import AssetMetadata, StoredAsset
from tetraspore.utils.logging import get_logger

logger = get_logger("infrastructure.storage")

DEFAULT_EXTENSIONS = {"image": "png", "audio": "mp3", "cutscene": "json"}

_SAFE_ID = re.compile(r"^[A-Za-z0-9_.\-]+$")


@runtime_checkable
class AssetStorage(Protocol):
    """Protocol for asset stores."""

    async def store(self, data: bytes, metadata: AssetMetadata) -> StoredAsset:
        """Persist binary data and return the stored record."""
        ...

    async def store_json(self, payload: dict[str, Any], metadata: AssetMetadata) -> StoredAsset:
        """Persist a JSON document and return the stored record."""
        ...

    async def get_url(self, asset_id: str) -> str:
        ...

    async def get_duration(self, asset_id: str) -> float | None:
        ...

    async def exists(self, asset_id: str) -> bool:
        ...

    async def delete(self, asset_id: str) -> bool:
        ...

    async def list(self) -> list[StoredAsset]:
        ...


def _extension(metadata: AssetMetadata) -> str:
    return metadata.format or DEFAULT_EXTENSIONS[metadata.type]


# ============================================================================
# In-Memory Storage
# ============================================================================


class InMemoryAssetStorage:
    """Keeps assets in a dict; URLs use the ``memory://`` scheme."""

    def __init__(self, base_url: str = "memory://assets"):
        self.base_url = base_url.rstrip("/")
        self._data: dict[str, bytes] = {}
        self._metadata: dict[str, AssetMetadata] = {}

    def _url(self, metadata: AssetMetadata) -> str:
        return f"{self.base_url}/{metadata.id}.{_extension(metadata)}"

    async def store(self, data: bytes, metadata: AssetMetadata) -> StoredAsset:
        self._data[metadata.id] = bytes(data)
        self._metadata[metadata.id] = metadata
        return StoredAsset(id=metadata.id, url=self._url(metadata), metadata=metadata)

    async def store_json(self, payload: dict[str, Any], metadata: AssetMetadata) -> StoredAsset:
        data = json.dumps(payload, indent=2).encode("utf-8")
        return await self.store(data, metadata.model_copy(update={"format": "json"}))

    async def get_url(self, asset_id: str) -> str:
        metadata = self._metadata.get(asset_id)
        if metadata is None:
            raise StorageError(f"Asset not found: {asset_id}", operation="get_url")
        return self._url(metadata)

    async def get_duration(self, asset_id: str) -> float | None:
        metadata = self._metadata.get(asset_id)
        return metadata.duration if metadata else None

    async def exists(self, asset_id: str) -> bool:
        return asset_id in self._metadata

    async def delete(self, asset_id: str) -> bool:
        self._data.pop(asset_id, None)
        return self._metadata.pop(asset_id, None) is not None

    async def list(self) -> list[StoredAsset]:
        return [
            StoredAsset(id=asset_id, url=self._url(metadata), metadata=metadata)
            for asset_id, metadata in self._metadata.items()
        ]

    def get_data(self, asset_id: str) -> bytes | None:
        """Raw bytes of a stored asset (test helper)."""
        return self._data.get(asset_id)


# ============================================================================
# Local Filesystem Storage
# ============================================================================


class LocalAssetStorage:
    """Stores assets as files in a directory.

    Each asset ``<id>.<ext>`` gets a ``<id>.meta.json`` sidecar holding its
    metadata; URLs are ``{base_url}/<id>.<ext>``.
    """

    def __init__(self, base_dir: str | Path = "public/assets", base_url: str = "/assets"):
        self.base_dir = Path(base_dir)
        self.base_url = base_url.rstrip("/")
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _check_id(self, asset_id: str, operation: str) -> None:
        if not _SAFE_ID.match(asset_id) or ".." in asset_id:
            raise StorageError(f"Invalid asset ID for storage: {asset_id!r}", operation=operation)

    def _meta_path(self, asset_id: str) -> Path:
        return self.base_dir / f"{asset_id}.meta.json"

    def _read_metadata(self, asset_id: str) -> AssetMetadata | None:
        meta_path = self._meta_path(asset_id)
        if not meta_path.exists():
            return None
        try:
            with open(meta_path, "r", encoding="utf-8") as f:
                return AssetMetadata.model_validate(json.load(f))
        except (OSError, ValueError) as e:
            raise StorageError(f"Unreadable metadata for {asset_id}: {e}", operation="read_metadata") from e

    async def store(self, data: bytes, metadata: AssetMetadata) -> StoredAsset:
        self._check_id(metadata.id, "store")
        filename = f"{metadata.id}.{_extension(metadata)}"
        try:
            (self.base_dir / filename).write_bytes(data)
            with open(self._meta_path(metadata.id), "w", encoding="utf-8") as f:
                json.dump(metadata.model_dump(mode="json"), f, indent=2)
        except OSError as e:
            raise StorageError(f"Failed to store {metadata.id}: {e}", operation="store") from e

        logger.debug(f"Stored {metadata.type} asset {filename} ({len(data)} bytes)")
        return StoredAsset(id=metadata.id, url=f"{self.base_url}/{filename}", metadata=metadata)

    async def store_json(self, payload: dict[str, Any], metadata: AssetMetadata) -> StoredAsset:
        data = json.dumps(payload, indent=2).encode("utf-8")
        return await self.store(data, metadata.model_copy(update={"format": "json"}))

    async def get_url(self, asset_id: str) -> str:
        self._check_id(asset_id, "get_url")
        metadata = self._read_metadata(asset_id)
        if metadata is None:
            raise StorageError(f"Asset not found: {asset_id}", operation="get_url")
        return f"{self.base_url}/{asset_id}.{_extension(metadata)}"

    async def get_duration(self, asset_id: str) -> float | None:
        self._check_id(asset_id, "get_duration")
        metadata = self._read_metadata(asset_id)
        return metadata.duration if metadata else None

    async def exists(self, asset_id: str) -> bool:
        if not _SAFE_ID.match(asset_id):
            return False
        return self._meta_path(asset_id).exists()

    async def delete(self, asset_id: str) -> bool:
        self._check_id(asset_id, "delete")
        metadata = self._read_metadata(asset_id)
        if metadata is None:
            return False
        try:
            (self.base_dir / f"{asset_id}.{_extension(metadata)}").unlink(missing_ok=True)
            self._meta_path(asset_id).unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete {asset_id}: {e}", operation="delete") from e
        return True

    async def list(self) -> list[StoredAsset]:
        assets = []
        for meta_path in sorted(self.base_dir.glob("*.meta.json")):
            asset_id = meta_path.name[: -len(".meta.json")]
            metadata = self._read_metadata(asset_id)
            if metadata is not None:
                assets.append(StoredAsset(
                    id=asset_id,
                    url=f"{self.base_url}/{asset_id}.{_extension(metadata)}",
                    metadata=metadata,
                ))
        return assets

    async def stats(self) -> dict[str, Any]:
        """Asset counts per type and total size on disk."""
        by_type: dict[str, int] = {}
        total_bytes = 0
        for asset in await self.list():
            by_type[asset.metadata.type] = by_type.get(asset.metadata.type, 0) + 1
            asset_path = self.base_dir / f"{asset.id}.{_extension(asset.metadata)}"
            if asset_path.exists():
                total_bytes += asset_path.stat().st_size
        return {
            "total_assets": sum(by_type.values()),
            "by_type": by_type,
            "total_bytes": total_bytes,
        }
