"""
Exception hierarchy for Tetraspore.

Parse-time problems are collected as ``ValidationError`` records (see
``tetraspore.actions.errors``); the exceptions here are raised at runtime.
"""

from __future__ import annotations

from typing import Any


class TetrasporeError(Exception):
    """Base exception for all Tetraspore errors."""
    pass


class ActionParseError(TetrasporeError):
    """A document failed to parse; carries every validation error found."""

    def __init__(self, errors: list[Any]):
        self.errors = list(errors)
        summary = "; ".join(err.message for err in self.errors[:3])
        if len(self.errors) > 3:
            summary = f"{summary}; ... ({len(self.errors) - 3} more)"
        super().__init__(f"Action document is invalid: {summary}")


class AssetGenerationError(TetrasporeError):
    """An asset executor failed.

    ``retryable`` tells the retry loop whether another attempt can help.
    Validation failures, missing references and missing credentials are not
    retryable.
    """

    def __init__(
        self,
        message: str,
        action: Any = None,
        retryable: bool = True,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.action = action
        self.retryable = retryable
        self.details = details or {}

    @property
    def action_id(self) -> str | None:
        return getattr(self.action, "id", None)


class ProviderError(TetrasporeError):
    """Transient failure reported by a generation provider."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: dict | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class RateLimitError(ProviderError):
    """Rate limit exceeded; ``retry_after`` is the suggested wait in seconds."""

    def __init__(self, message: str, retry_after: float = 1.0):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class StorageError(TetrasporeError):
    """Asset storage operation failed."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class ExecutorNotFoundError(TetrasporeError):
    """No executor is registered for an asset action type."""
    pass
