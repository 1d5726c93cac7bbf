"""
Base asset executor.

``BaseAssetExecutor.execute`` wraps a concrete ``generate`` with the shared
pipeline: validation, cache lookup, rate limiting, retry with exponential
backoff, cache write and metrics logging.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

from tetraspore.app.config import ApiKeys
from tetraspore.errors import AssetGenerationError, RateLimitError
from tetraspore.executors.models import (
    AssetResult,
    CostEstimate,
    ExecutorValidationResult,
    FieldError,
)
from tetraspore.infrastructure.cache import AssetCache, InMemoryAssetCache, cache_key
from tetraspore.infrastructure.cost_tracker import CostTracker
from tetraspore.infrastructure.rate_limiter import ResourceRateLimiter
from tetraspore.infrastructure.storage import AssetStorage, InMemoryAssetStorage
from tetraspore.utils.logging import get_logger

logger = get_logger("executors.base")

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_RETRY_DELAY = 1.0
DEFAULT_MAX_RETRY_DELAY = 30.0


@dataclass
class ExecutionContext:
    """Services an executor may use while producing an asset."""

    api_keys: ApiKeys = field(default_factory=ApiKeys)
    storage: AssetStorage = field(default_factory=InMemoryAssetStorage)
    cache: AssetCache = field(default_factory=InMemoryAssetCache)
    rate_limiter: ResourceRateLimiter | None = None
    cost_tracker: CostTracker = field(default_factory=CostTracker)


@runtime_checkable
class AssetExecutor(Protocol):
    """Contract every asset executor satisfies."""

    action_type: str

    def validate(self, action: BaseModel) -> ExecutorValidationResult:
        ...

    def estimate_cost(self, action: BaseModel) -> CostEstimate:
        ...

    async def execute(self, action: BaseModel, context: ExecutionContext) -> AssetResult:
        ...


class BaseAssetExecutor(ABC):
    """Shared execution pipeline for asset executors.

    Subclasses set ``action_type`` (and ``resource_class`` when they call a
    rate-limited provider) and implement ``validate``, ``estimate_cost`` and
    ``generate``.
    """

    action_type: str = ""
    resource_class: str | None = None

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_retry_delay: float = DEFAULT_BASE_RETRY_DELAY,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
        cache_ttl: float | None = None,
    ):
        self.max_retries = max(1, max_retries)
        self.base_retry_delay = base_retry_delay
        self.max_retry_delay = max_retry_delay
        self.cache_ttl = cache_ttl
        self.logger = get_logger(f"executors.{self.action_type or 'base'}")

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @abstractmethod
    def validate(self, action: BaseModel) -> ExecutorValidationResult:
        ...

    @abstractmethod
    def estimate_cost(self, action: BaseModel) -> CostEstimate:
        ...

    @abstractmethod
    async def generate(self, action: BaseModel, context: ExecutionContext) -> AssetResult:
        """Produce the asset. Called inside the retry loop."""
        ...

    async def execute(self, action: BaseModel, context: ExecutionContext) -> AssetResult:
        started = time.perf_counter()
        self.validate_action(action)

        key = cache_key(action)
        cached = await self.check_cache(key, context)
        if cached is not None:
            return cached

        if self.resource_class is not None:
            await self.apply_rate_limit(context)

        result = await self.execute_with_retry(
            lambda: self.generate(action, context),
            action,
            f"{self.action_type} generation",
        )

        await self.store_in_cache(key, result, context)
        self.log_metrics(action, result, started)
        return result

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def validate_action(self, action: BaseModel) -> None:
        """Raise a non-retryable error if ``validate`` rejects the action."""
        validation = self.validate(action)
        if not validation.valid:
            raise AssetGenerationError(
                f"Validation failed: {validation.summary()}",
                action=action,
                retryable=False,
                details={"errors": [err.model_dump() for err in validation.errors]},
            )

    async def check_cache(self, key: str, context: ExecutionContext) -> AssetResult | None:
        try:
            cached = await context.cache.get(key)
        except Exception as e:
            self.logger.warning(f"Cache read failed, treating as miss: {e}")
            return None
        if cached is not None:
            self.logger.info(f"Cache hit for {cached.id}")
        return cached

    async def store_in_cache(self, key: str, result: AssetResult, context: ExecutionContext) -> None:
        try:
            await context.cache.set(key, result, self.cache_ttl)
        except Exception as e:
            self.logger.warning(f"Cache write failed for {result.id}: {e}")

    async def apply_rate_limit(self, context: ExecutionContext) -> None:
        """Take a rate-limit slot, waiting once if the limiter pushes back."""
        if context.rate_limiter is None:
            return
        try:
            await context.rate_limiter.acquire(self.resource_class)
        except RateLimitError as e:
            self.logger.warning(
                f"Rate limited on {self.resource_class}, waiting {e.retry_after:.1f}s"
            )
            await asyncio.sleep(e.retry_after)
            await context.rate_limiter.acquire(self.resource_class)

    def retry_delay(self, attempt: int) -> float:
        """Backoff before retrying after failed attempt number ``attempt`` (1-based)."""
        return min(self.base_retry_delay * (2 ** (attempt - 1)), self.max_retry_delay)

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        action: BaseModel,
        operation_name: str,
    ) -> T:
        """Run ``operation`` up to ``max_retries`` times.

        Non-retryable ``AssetGenerationError``s propagate immediately; any
        other failure is retried after an exponential backoff.
        """
        last_error: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                return await operation()
            except AssetGenerationError as e:
                if not e.retryable:
                    raise
                last_error = e
            except Exception as e:
                last_error = e

            if attempt < self.max_retries:
                delay = self.retry_delay(attempt)
                self.logger.warning(
                    f"{operation_name} failed (attempt {attempt}/{self.max_retries}), "
                    f"retrying in {delay:.1f}s: {last_error}"
                )
                await asyncio.sleep(delay)

        raise AssetGenerationError(
            f"{operation_name} failed after {self.max_retries} attempts: {last_error}",
            action=action,
            retryable=False,
        ) from last_error

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def create_base_metadata(self, action: BaseModel) -> dict[str, Any]:
        return {
            "action_id": getattr(action, "id", None),
            "action_type": action.type,
            "created_at": datetime.now(UTC).isoformat(),
        }

    def require_api_keys(self, context: ExecutionContext, action: BaseModel, *names: str) -> None:
        missing = [name for name in names if not getattr(context.api_keys, name, None)]
        if missing:
            raise AssetGenerationError(
                f"Missing required API keys: {', '.join(missing)}",
                action=action,
                retryable=False,
            )

    def log_metrics(self, action: BaseModel, result: AssetResult, started: float) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        self.logger.info(
            f"Generated {action.type} '{result.id}' in {elapsed_ms:.0f}ms (cost ${result.cost:.4f})"
        )


def required(value: Any, field_name: str) -> list[FieldError]:
    """Field error list for a missing or blank required value."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return [FieldError(field=field_name, message=f"{field_name} is required", code="required")]
    return []


def one_of(value: Any, choices: tuple[str, ...], field_name: str) -> list[FieldError]:
    if value not in choices:
        return [FieldError(
            field=field_name,
            message=f"{field_name} must be one of: {', '.join(choices)}",
            code="invalid_enum",
        )]
    return []
