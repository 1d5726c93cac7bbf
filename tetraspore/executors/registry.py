"""Registry mapping asset action types to executors."""

from __future__ import annotations

from tetraspore.app.config import ExecutionConfig
from tetraspore.errors import ExecutorNotFoundError
from tetraspore.executors.base import AssetExecutor
from tetraspore.executors.cutscene import CutsceneAssetExecutor
from tetraspore.executors.generators import (
    ImageGenerator,
    SimulatedImageGenerator,
    SimulatedSpeechSynthesizer,
    SpeechSynthesizer,
)
from tetraspore.executors.image import ImageAssetExecutor
from tetraspore.executors.speech import SpeechAssetExecutor
from tetraspore.utils.logging import get_logger

logger = get_logger("executors.registry")


class ExecutorRegistry:
    """Name -> executor lookup, backed by a dict."""

    def __init__(self):
        self._executors: dict[str, AssetExecutor] = {}

    def register(self, name: str, executor: AssetExecutor) -> None:
        if name in self._executors:
            logger.debug(f"Replacing executor for {name}")
        self._executors[name] = executor

    def unregister(self, name: str) -> None:
        self._executors.pop(name, None)

    def get(self, name: str) -> AssetExecutor:
        try:
            return self._executors[name]
        except KeyError:
            raise ExecutorNotFoundError(f"No executor registered for action type: {name}") from None

    def has(self, name: str) -> bool:
        return name in self._executors

    def list(self) -> list[str]:
        return list(self._executors)

    @classmethod
    def default(
        cls,
        execution: ExecutionConfig | None = None,
        image_generator: ImageGenerator | None = None,
        speech_synthesizer: SpeechSynthesizer | None = None,
        cache_ttl: float | None = None,
    ) -> "ExecutorRegistry":
        """Registry with the image, speech and cutscene executors.

        Generators default to the simulated providers configured by
        ``execution``.
        """
        execution = execution or ExecutionConfig()
        retry = {
            "max_retries": execution.max_retries,
            "base_retry_delay": execution.base_retry_delay,
            "max_retry_delay": execution.max_retry_delay,
            "cache_ttl": cache_ttl,
        }
        simulated = {
            "latency": execution.simulated_latency,
            "failure_rate": execution.simulated_failure_rate,
        }

        registry = cls()
        registry.register("asset_image", ImageAssetExecutor(
            generator=image_generator or SimulatedImageGenerator(**simulated),
            **retry,
        ))
        registry.register("asset_subtitle", SpeechAssetExecutor(
            synthesizer=speech_synthesizer or SimulatedSpeechSynthesizer(**simulated),
            **retry,
        ))
        registry.register("asset_cutscene", CutsceneAssetExecutor(**retry))
        return registry
