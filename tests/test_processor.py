"""Batch execution of parsed action graphs."""

import json
import unittest

import pytest

from action_documents import (
    ALL_KEYS,
    AlwaysFailingImageGenerator,
    end_to_end,
    evolution_turn,
    image,
    modal,
    subtitle,
)

from tetraspore.actions.errors import ErrorKind
from tetraspore.actions.graph import NodeStatus
from tetraspore.actions.parser import ActionParser
from tetraspore.app.config import ApiKeys, ExecutionConfig, StorageConfig, TetrasporeConfig
from tetraspore.core.processor import ActionProcessor, build_storage
from tetraspore.executors.registry import ExecutorRegistry
from tetraspore.infrastructure.storage import InMemoryAssetStorage, LocalAssetStorage


FAST = ExecutionConfig(base_retry_delay=0, max_retry_delay=0)


def _processor(**overrides):
    fields = {
        "registry": ExecutorRegistry.default(FAST),
        "api_keys": ALL_KEYS,
    }
    fields.update(overrides)
    return ActionProcessor(**fields)


class ActionProcessorTest(unittest.IsolatedAsyncioTestCase):
    async def test_end_to_end_batch(self) -> None:
        processor = _processor()

        result = await processor.process(end_to_end())

        self.assertTrue(result.success)
        self.assertEqual([asset.kind for asset in result.assets_generated], ["image", "audio", "cutscene"])
        self.assertEqual([marker.kind for marker in result.game_actions], ["game_action"])
        self.assertEqual(result.game_actions[0].action_id, "play_cutscene_3")
        self.assertEqual(set(result.node_status.values()), {NodeStatus.COMPLETED})
        self.assertEqual(result.actions_executed, ["bg", "n", "cs", "play_cutscene_3"])

        cutscene = result.assets_generated[2]
        self.assertEqual(cutscene.definition.id, "cs")
        self.assertEqual(cutscene.definition.total_duration, 5)
        self.assertEqual(cutscene.definition.shots[0].image_url, "memory://assets/bg.png")
        self.assertEqual(cutscene.definition.shots[0].audio_url, "memory://assets/n.mp3")

        # One character of openai-tts; flux-schnell images are free
        self.assertAlmostEqual(result.total_cost, 1.5e-5)
        self.assertEqual(result.cost_breakdown["images"]["count"], 1)
        self.assertEqual(result.cost_breakdown["audio"]["count"], 1)
        self.assertEqual(result.cost_breakdown["cutscenes"]["count"], 1)
        self.assertGreaterEqual(result.execution_time_ms, 0)

    async def test_failed_asset_does_not_stop_the_batch(self) -> None:
        processor = _processor(
            registry=ExecutorRegistry.default(FAST, image_generator=AlwaysFailingImageGenerator()),
        )

        result = await processor.process({"actions": [image("bg"), subtitle("n")]})

        self.assertFalse(result.success)
        self.assertEqual(len(result.errors), 1)
        self.assertEqual(result.errors[0].action_id, "bg")
        self.assertEqual(result.errors[0].kind, "execution")
        self.assertIn("after 3 attempts", result.errors[0].message)
        self.assertEqual([asset.kind for asset in result.assets_generated], ["audio"])
        self.assertEqual(result.node_status["bg"], NodeStatus.FAILED)
        self.assertEqual(result.node_status["n"], NodeStatus.COMPLETED)

    async def test_cutscene_over_failed_image_reports_missing_assets(self) -> None:
        processor = _processor(
            registry=ExecutorRegistry.default(FAST, image_generator=AlwaysFailingImageGenerator()),
        )

        result = await processor.process(end_to_end())

        self.assertEqual([error.action_id for error in result.errors], ["bg", "cs"])
        self.assertEqual(result.errors[1].message, "Missing referenced assets: image: bg")
        self.assertFalse(result.errors[1].retryable)
        self.assertEqual(result.node_status["play_cutscene_3"], NodeStatus.COMPLETED)
        self.assertEqual(len(result.game_actions), 1)

    async def test_empty_batch_succeeds(self) -> None:
        result = await _processor().process({"actions": []})

        self.assertTrue(result.success)
        self.assertEqual(result.assets_generated, [])
        self.assertEqual(result.total_cost, 0)

    async def test_parse_failure_executes_nothing(self) -> None:
        processor = _processor()

        result = await processor.process({"actions": [image("x"), image("x")]})

        self.assertFalse(result.success)
        self.assertEqual(result.errors[0].kind, "parse")
        self.assertEqual(result.parse_errors[0].kind, ErrorKind.DUPLICATE_ID)
        self.assertEqual(result.actions_executed, [])
        self.assertEqual(await processor.storage.list(), [])

    async def test_game_actions_become_markers(self) -> None:
        document = evolution_turn()
        document["actions"].append(modal("Landfall"))

        result = await _processor().process(document)

        self.assertTrue(result.success)
        self.assertEqual(
            [(marker.action_id, marker.kind) for marker in result.game_actions],
            [
                ("play_cutscene_4", "game_action"),
                ("add_feature_5", "feature_change"),
                ("when_then_6", "conditional_action"),
                ("next_branch", "player_choice"),
                ("show_modal_8", "modal"),
            ],
        )
        self.assertIn("reason_0", result.actions_executed)
        self.assertEqual(result.game_actions[1].action.feature_data["name"], "Tetrapod")

    async def test_status_after_batch(self) -> None:
        processor = _processor()
        self.assertFalse(processor.get_status().is_processing)

        await processor.process(end_to_end())

        status = processor.get_status()
        self.assertFalse(status.is_processing)
        self.assertIsNone(status.current_action)
        self.assertEqual(status.progress, 1.0)
        self.assertEqual(status.queue_length, 0)

    async def test_costs_are_per_batch(self) -> None:
        processor = _processor()
        document = {"actions": [image("bg", model="sdxl")]}

        first = await processor.process(document)
        second = await processor.process(document)

        self.assertAlmostEqual(first.total_cost, 0.009)
        # Second run is served from the cache
        self.assertEqual(second.total_cost, 0)
        self.assertEqual(len(second.assets_generated), 1)
        self.assertEqual(processor.get_cost_breakdown()["total"], 0)

    async def test_missing_executor_is_reported(self) -> None:
        registry = ExecutorRegistry.default(FAST)
        registry.unregister("asset_image")

        result = await _processor(registry=registry).process({"actions": [image("bg"), subtitle("n")]})

        self.assertEqual(len(result.errors), 1)
        self.assertIn("No executor registered for action type: asset_image", result.errors[0].message)
        self.assertEqual(result.node_status["n"], NodeStatus.COMPLETED)

    async def test_missing_api_key_fails_without_retry(self) -> None:
        processor = _processor(api_keys=ApiKeys(flux="flux-key"))

        result = await processor.process({"actions": [image("bg"), subtitle("n")]})

        self.assertEqual([error.action_id for error in result.errors], ["n"])
        self.assertIn("Missing required API keys: openai", result.errors[0].message)
        self.assertFalse(result.errors[0].retryable)

    async def test_execute_accepts_a_prebuilt_graph(self) -> None:
        graph = ActionParser().parse_or_raise(end_to_end())

        result = await _processor().execute(graph)

        self.assertTrue(result.success)
        # Build-time statuses are untouched
        self.assertEqual(graph.nodes["cs"].status, NodeStatus.PENDING)

    async def test_batch_summary_is_logged(self) -> None:
        with self.assertLogs("tetraspore.core.processor", level="INFO") as logs:
            await _processor().process(end_to_end())

        summary = [line for line in logs.output if "Batch finished:" in line]
        self.assertEqual(len(summary), 1)
        self.assertIn("executed=4/4, assets=3, errors=0", summary[0])


@pytest.mark.asyncio
async def test_process_reads_files_and_json_text(tmp_path):
    path = tmp_path / "turn.json"
    path.write_text(json.dumps(end_to_end()), encoding="utf-8")
    processor = _processor()

    from_file = await processor.process(path)
    from_text = await processor.process(json.dumps(end_to_end()))

    assert from_file.success
    assert from_text.success


@pytest.mark.asyncio
async def test_local_storage_from_config(tmp_path):
    config = TetrasporeConfig(
        execution=FAST,
        storage=StorageConfig(backend="local", base_dir=tmp_path, base_url="/static"),
    )
    processor = ActionProcessor(config=config, api_keys=ALL_KEYS)

    result = await processor.process(end_to_end())

    assert result.success
    assert isinstance(processor.storage, LocalAssetStorage)
    assert result.assets_generated[0].result.url == "/static/bg.png"
    assert (tmp_path / "cs.json").exists()


def test_build_storage_defaults_to_memory():
    assert isinstance(build_storage(StorageConfig()), InMemoryAssetStorage)
