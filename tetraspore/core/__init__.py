"""Batch execution of parsed action graphs."""

from tetraspore.core.processor import (
    ActionProcessor,
    BatchError,
    BatchResult,
    GameActionMarker,
    GeneratedAsset,
    ProcessorStatus,
)

__all__ = [
    "ActionProcessor",
    "BatchError",
    "BatchResult",
    "GameActionMarker",
    "GeneratedAsset",
    "ProcessorStatus",
]
