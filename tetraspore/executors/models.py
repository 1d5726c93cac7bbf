"""Data models exchanged between executors, storage and the processor."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


AssetKind = Literal["image", "audio", "cutscene"]
CostAssetType = Literal["image", "tts"]


class AssetResult(BaseModel):
    """A generated asset as returned by an executor."""

    id: str = Field(description="Action ID the asset was generated for")
    url: str = Field(description="Where the front end can fetch the asset")
    metadata: dict[str, Any] = Field(default_factory=dict)
    cost: float = Field(default=0.0, description="Provider cost in USD")
    duration: float | None = Field(default=None, description="Playback length in seconds (audio)")


class AssetMetadata(BaseModel):
    """Metadata recorded alongside a stored asset."""

    id: str
    type: AssetKind
    format: str | None = None
    duration: float | None = None
    extra: dict[str, Any] = Field(default_factory=dict)


class StoredAsset(BaseModel):
    id: str
    url: str
    metadata: AssetMetadata


class CostRecord(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    asset_type: CostAssetType
    model: str
    units: float
    cost: float


class CostEstimate(BaseModel):
    min: float
    max: float
    currency: str = "USD"


class FieldError(BaseModel):
    field: str
    message: str
    code: str


class ExecutorValidationResult(BaseModel):
    valid: bool
    errors: list[FieldError] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[FieldError]) -> "ExecutorValidationResult":
        return cls(valid=not errors, errors=errors)

    def summary(self) -> str:
        return ", ".join(f"{err.field}: {err.message}" for err in self.errors)


class CutsceneDefinitionShot(BaseModel):
    image_url: str
    audio_url: str
    duration: float
    animation: str
    audio_duration: float = 0.0


class CutsceneDefinition(BaseModel):
    """Playable cutscene: resolved asset URLs per shot."""

    id: str
    shots: list[CutsceneDefinitionShot]
    total_duration: float
