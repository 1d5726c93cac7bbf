"""
Action Processor - executes parsed action graphs.

The processor walks a graph's execution order once, sequentially:
- Asset actions are dispatched to the registered executor
- Game actions are not interpreted here; each emits a marker for the game
  layer to apply
- Reasoning actions are acknowledged and skipped

A failing node is recorded in the batch errors and the walk continues.

Usage:
    processor = ActionProcessor(config=TetrasporeConfig.load())
    result = await processor.process(document)
    if not result.success:
        for error in result.errors:
            print(error.message)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from tetraspore.actions.errors import ValidationError
from tetraspore.actions.graph import ActionGraph, ActionNode, NodeStatus
from tetraspore.actions.parser import ActionParser, ParseResult
from tetraspore.app.config import ApiKeys, StorageConfig, TetrasporeConfig
from tetraspore.errors import AssetGenerationError, TetrasporeError
from tetraspore.executors.base import ExecutionContext
from tetraspore.executors.models import AssetKind, AssetResult, CutsceneDefinition
from tetraspore.executors.registry import ExecutorRegistry
from tetraspore.infrastructure.cache import AssetCache, InMemoryAssetCache, NullAssetCache
from tetraspore.infrastructure.cost_tracker import CostTracker
from tetraspore.infrastructure.rate_limiter import ResourceRateLimiter
from tetraspore.infrastructure.storage import AssetStorage, InMemoryAssetStorage, LocalAssetStorage
from tetraspore.utils.logging import get_logger, log_error, log_operation

logger = get_logger("core.processor")


MarkerKind = Literal[
    "game_action",
    "conditional_action",
    "player_choice",
    "modal",
    "feature_change",
]

GAME_ACTION_MARKERS: dict[str, MarkerKind] = {
    "play_cutscene": "game_action",
    "when_then": "conditional_action",
    "add_player_choice": "player_choice",
    "show_modal": "modal",
    "add_feature": "feature_change",
    "remove_feature": "feature_change",
}

ASSET_KINDS: dict[str, AssetKind] = {
    "asset_image": "image",
    "asset_subtitle": "audio",
    "asset_cutscene": "cutscene",
}


# ============================================================================
# Result Models
# ============================================================================


class GeneratedAsset(BaseModel):
    """An executor result tagged with its asset kind."""

    kind: AssetKind
    action_id: str
    result: AssetResult
    definition: CutsceneDefinition | None = Field(default=None, description="Set for cutscenes")


class GameActionMarker(BaseModel):
    """A game action handed through to the game layer."""

    kind: MarkerKind
    action_id: str
    action_type: str
    action: Any = None


class BatchError(BaseModel):
    message: str
    kind: Literal["parse", "execution"] = "execution"
    action_id: str | None = None
    action_type: str | None = None
    retryable: bool = False


class BatchResult(BaseModel):
    success: bool
    assets_generated: list[GeneratedAsset] = Field(default_factory=list)
    actions_executed: list[str] = Field(default_factory=list)
    game_actions: list[GameActionMarker] = Field(default_factory=list)
    errors: list[BatchError] = Field(default_factory=list)
    parse_errors: list[ValidationError] = Field(default_factory=list)
    node_status: dict[str, NodeStatus] = Field(default_factory=dict)
    total_cost: float = 0.0
    cost_breakdown: dict[str, Any] = Field(default_factory=dict)
    execution_time_ms: float = 0.0


@dataclass
class ProcessorStatus:
    is_processing: bool = False
    current_action: str | None = None
    progress: float = 0.0  # Fraction of the batch walked, 0..1
    queue_length: int = 0


def build_storage(config: StorageConfig) -> AssetStorage:
    if config.backend == "local":
        return LocalAssetStorage(config.base_dir, config.base_url)
    return InMemoryAssetStorage()


# ============================================================================
# Processor
# ============================================================================


class ActionProcessor:
    """Executes action graphs against asset executors.

    Every collaborator can be injected; anything left out is built from
    ``config``.
    """

    def __init__(
        self,
        registry: ExecutorRegistry | None = None,
        storage: AssetStorage | None = None,
        cache: AssetCache | None = None,
        rate_limiter: ResourceRateLimiter | None = None,
        cost_tracker: CostTracker | None = None,
        api_keys: ApiKeys | None = None,
        parser: ActionParser | None = None,
        config: TetrasporeConfig | None = None,
    ):
        self.config = config or TetrasporeConfig()
        self.registry = registry or ExecutorRegistry.default(
            self.config.execution,
            cache_ttl=self.config.cache.ttl_seconds,
        )
        self.storage = storage or build_storage(self.config.storage)
        if cache is not None:
            self.cache = cache
        elif self.config.cache.enabled:
            self.cache = InMemoryAssetCache(self.config.cache.ttl_seconds)
        else:
            self.cache = NullAssetCache()
        self.rate_limiter = rate_limiter or ResourceRateLimiter(
            max_requests=self.config.rate_limit.max_requests,
            window_seconds=self.config.rate_limit.window_seconds,
            min_delay=self.config.rate_limit.min_delay,
        )
        self.cost_tracker = cost_tracker or CostTracker()
        self.api_keys = api_keys or self.config.api_keys
        self.parser = parser or ActionParser()

        self._status = ProcessorStatus()
        self._asset_counts: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def process(self, document: Any) -> BatchResult:
        """Parse ``document`` (dict, JSON string or file path) and execute it."""
        parsed = self._parse(document)
        if not parsed.success:
            logger.warning(f"Batch rejected: {len(parsed.errors)} parse error(s)")
            return BatchResult(
                success=False,
                parse_errors=parsed.errors,
                errors=[BatchError(message=str(error), kind="parse", action_id=error.action_id) for error in parsed.errors],
            )
        return await self.execute(parsed.graph)

    async def execute(self, graph: ActionGraph) -> BatchResult:
        """Walk ``graph.execution_order`` once and collect the outcome."""
        started = time.perf_counter()
        self.cost_tracker.clear()
        self._asset_counts = {kind: 0 for kind in ASSET_KINDS.values()}

        context = self._context()
        status = {node_id: node.status for node_id, node in graph.nodes.items()}
        completed: set[str] = set()
        result = BatchResult(success=True)

        order = graph.execution_order
        self._status = ProcessorStatus(is_processing=True, queue_length=len(order))
        logger.info(f"Executing batch of {len(order)} action(s)")

        try:
            for position, node_id in enumerate(order):
                node = graph.nodes[node_id]
                self._status.current_action = node_id
                self._status.queue_length = len(order) - position - 1
                status[node_id] = NodeStatus.EXECUTING

                try:
                    await self._execute_node(node, context, result)
                except AssetGenerationError as e:
                    status[node_id] = NodeStatus.FAILED
                    logger.error(f"Action '{node_id}' failed: {e}")
                    result.errors.append(self._batch_error(node, str(e), e.retryable))
                except TetrasporeError as e:
                    status[node_id] = NodeStatus.FAILED
                    logger.error(f"Action '{node_id}' failed: {e}")
                    result.errors.append(self._batch_error(node, str(e), False))
                except Exception as e:
                    status[node_id] = NodeStatus.FAILED
                    log_error(logger, f"execute {node_id}", e, {"type": node.type})
                    result.errors.append(self._batch_error(node, f"{type(e).__name__}: {e}", False))
                else:
                    status[node_id] = NodeStatus.COMPLETED
                    completed.add(node_id)
                    result.actions_executed.append(node_id)
                    self._promote_dependents(graph, node, completed, status)

                self._status.progress = (position + 1) / len(order)
        finally:
            self._status.is_processing = False
            self._status.current_action = None

        result.success = not result.errors
        result.node_status = status
        result.total_cost = self.cost_tracker.get_total_cost()
        result.cost_breakdown = self.get_cost_breakdown()
        result.execution_time_ms = (time.perf_counter() - started) * 1000

        log_operation(logger, "Batch finished", {
            "executed": f"{len(result.actions_executed)}/{len(order)}",
            "assets": len(result.assets_generated),
            "errors": len(result.errors),
            "cost": f"${result.total_cost:.4f}",
            "elapsed_ms": f"{result.execution_time_ms:.0f}",
        })
        return result

    # ------------------------------------------------------------------
    # Status and costs
    # ------------------------------------------------------------------

    def get_status(self) -> ProcessorStatus:
        return ProcessorStatus(**vars(self._status))

    def get_cost_breakdown(self) -> dict[str, Any]:
        """Costs of the current (or last) batch per asset kind and model."""
        ledger = self.cost_tracker.get_cost_breakdown()
        return {
            "images": {"count": self._asset_counts.get("image", 0), "cost": ledger["by_type"].get("image", 0.0)},
            "audio": {"count": self._asset_counts.get("audio", 0), "cost": ledger["by_type"].get("tts", 0.0)},
            "cutscenes": {"count": self._asset_counts.get("cutscene", 0), "cost": 0.0},
            "by_model": ledger["by_model"],
            "total": ledger["total"],
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _parse(self, document: Any) -> ParseResult:
        if isinstance(document, Path):
            return self.parser.parse_file(document)
        if isinstance(document, str):
            return self.parser.parse(document)
        return self.parser.parse_object(document)

    def _context(self) -> ExecutionContext:
        return ExecutionContext(
            api_keys=self.api_keys,
            storage=self.storage,
            cache=self.cache,
            rate_limiter=self.rate_limiter,
            cost_tracker=self.cost_tracker,
        )

    async def _execute_node(self, node: ActionNode, context: ExecutionContext, result: BatchResult) -> None:
        if node.is_asset:
            result.assets_generated.append(await self._execute_asset(node, context))
        elif node.type in GAME_ACTION_MARKERS:
            result.game_actions.append(GameActionMarker(
                kind=GAME_ACTION_MARKERS[node.type],
                action_id=node.id,
                action_type=node.type,
                action=node.action,
            ))
            logger.debug(f"Game action '{node.id}' passed through as {GAME_ACTION_MARKERS[node.type]}")
        else:
            logger.debug(f"Skipping {node.type} action '{node.id}'")

    async def _execute_asset(self, node: ActionNode, context: ExecutionContext) -> GeneratedAsset:
        executor = self.registry.get(node.type)
        estimate = executor.estimate_cost(node.action)
        logger.debug(f"Executing {node.type} '{node.id}' (estimated ${estimate.max:.4f})")

        asset = await executor.execute(node.action, context)
        kind = ASSET_KINDS[node.type]
        self._asset_counts[kind] = self._asset_counts.get(kind, 0) + 1

        definition = None
        if kind == "cutscene":
            definition = CutsceneDefinition(
                id=asset.id,
                shots=asset.metadata.get("shots", []),
                total_duration=asset.metadata.get("total_duration", 0.0),
            )
        return GeneratedAsset(kind=kind, action_id=node.id, result=asset, definition=definition)

    def _promote_dependents(
        self,
        graph: ActionGraph,
        node: ActionNode,
        completed: set[str],
        status: dict[str, NodeStatus],
    ) -> None:
        for dependent_id in node.dependents:
            if status.get(dependent_id) != NodeStatus.PENDING:
                continue
            if graph.nodes[dependent_id].dependencies <= completed:
                status[dependent_id] = NodeStatus.READY

    @staticmethod
    def _batch_error(node: ActionNode, message: str, retryable: bool) -> BatchError:
        return BatchError(
            message=message,
            action_id=node.id,
            action_type=node.type,
            retryable=retryable,
        )
