"""End-to-end parsing into an ActionGraph."""

import dataclasses
import json
from pathlib import Path

import pytest
import yaml

from action_documents import cutscene, end_to_end, evolution_turn, image, subtitle

from tetraspore.actions.errors import ErrorKind
from tetraspore.actions.graph import ActionGraph, ActionNode, NodeStatus
from tetraspore.actions.models import AssetImageAction
from tetraspore.actions.parser import (
    ActionParser,
    empty_result,
    execution_stats,
    validate_graph_readiness,
)
from tetraspore.errors import ActionParseError


def test_end_to_end_document():
    result = ActionParser().parse(json.dumps(end_to_end()))

    assert result.success
    graph = result.graph
    order = graph.execution_order
    assert order.index("bg") < order.index("cs")
    assert order.index("n") < order.index("cs")
    assert list(graph.asset_actions) == ["bg", "n", "cs"]
    assert list(graph.game_actions) == ["play_cutscene_3"]
    assert graph.nodes["cs"].dependencies == frozenset({"bg", "n"})
    assert graph.nodes["bg"].dependents == frozenset({"cs"})
    assert graph.nodes["play_cutscene_3"].dependencies == frozenset({"cs"})


def test_build_time_status_reflects_dependencies():
    graph = ActionParser().parse_object(end_to_end()).graph

    assert graph.nodes["bg"].status == NodeStatus.READY
    assert graph.nodes["n"].status == NodeStatus.READY
    assert graph.nodes["cs"].status == NodeStatus.PENDING
    assert [node.id for node in graph.ready_nodes()] == ["bg", "n"]


def test_unknown_shot_reference_fails_parse():
    document = {"actions": [subtitle("n"), cutscene("cs", ("undeclared_image", "n"))]}

    result = ActionParser().parse_object(document)

    assert not result.success
    assert result.graph is None
    assert result.errors[0].kind == ErrorKind.UNKNOWN_REFERENCE
    assert "undeclared_image" in result.errors[0].message


def test_schema_errors_stop_before_semantic_checks():
    bad = image("x")
    bad["size"] = "huge"
    document = {"actions": [bad, image("x")]}

    result = ActionParser().parse_object(document)

    assert [error.kind for error in result.errors] == [ErrorKind.SCHEMA]


def test_reason_nodes_are_tracked_but_not_partitioned():
    graph = ActionParser().parse_object(evolution_turn()).graph

    assert "reason_0" in graph.nodes
    assert "reason_0" in graph.execution_order
    assert "reason_0" not in graph.asset_actions
    assert "reason_0" not in graph.game_actions
    assert list(graph.asset_actions) == ["shore", "shore_line", "landfall"]
    assert list(graph.game_actions) == [
        "play_cutscene_4", "add_feature_5", "when_then_6", "next_branch",
    ]


def test_invalid_json_is_a_schema_error():
    result = ActionParser().parse('{"actions": [')

    assert not result.success
    assert result.errors[0].kind == ErrorKind.SCHEMA
    assert result.errors[0].path == "root"
    assert "Invalid JSON" in result.errors[0].message


def test_parse_yaml_file(tmp_path):
    path = tmp_path / "turn.yaml"
    path.write_text(yaml.safe_dump(end_to_end()), encoding="utf-8")

    result = ActionParser().parse_file(path)

    assert result.success
    assert len(result.graph) == 4


def test_parse_json_file(tmp_path):
    path = tmp_path / "turn.json"
    path.write_text(json.dumps(end_to_end()), encoding="utf-8")

    assert ActionParser().parse_file(path).success


def test_missing_file_is_a_schema_error(tmp_path):
    result = ActionParser().parse_file(tmp_path / "absent.json")

    assert not result.success
    assert [error.kind for error in result.errors] == [ErrorKind.SCHEMA]
    assert result.errors[0].message.startswith("Cannot read ")
    assert "absent.json" in result.errors[0].message


def test_non_utf8_file_is_a_schema_error(tmp_path):
    path = tmp_path / "latin1.yaml"
    path.write_bytes(b"\xff\xfe actions: []")

    result = ActionParser().parse_file(path)

    assert not result.success
    assert result.errors[0].kind == ErrorKind.SCHEMA
    assert "Cannot read" in result.errors[0].message


def test_parse_or_raise():
    parser = ActionParser()

    graph = parser.parse_or_raise(end_to_end())
    assert "cs" in graph

    with pytest.raises(ActionParseError) as excinfo:
        parser.parse_or_raise({"actions": [image("x"), image("x")]})
    assert excinfo.value.errors[0].kind == ErrorKind.DUPLICATE_ID


def test_execution_stats():
    parser = ActionParser()

    stats = execution_stats(parser.parse_object(end_to_end()))

    assert stats == {"total_actions": 4, "asset_actions": 3, "game_actions": 1, "ready_actions": 2}
    assert execution_stats(parser.parse("nonsense")) is None


def test_empty_document_parses_to_empty_graph():
    result = ActionParser().parse_object({"actions": []})

    assert result.success
    assert len(result.graph) == 0
    assert empty_result().graph.execution_order == ()


def test_parsed_graph_is_ready():
    graph = ActionParser().parse_object(evolution_turn()).graph

    assert validate_graph_readiness(graph) == []


def test_readiness_flags_misordered_graph():
    action = AssetImageAction(id="a", prompt="p", size="1024x768", model="sdxl")
    nodes = {
        "a": ActionNode(id="a", action=action, dependencies=frozenset({"b"})),
        "b": ActionNode(id="b", action=action.model_copy(update={"id": "b"}), dependents=frozenset({"a"})),
        "c": ActionNode(id="c", action=action.model_copy(update={"id": "c"})),
    }
    graph = ActionGraph(nodes=nodes, execution_order=("a", "b"))

    problems = validate_graph_readiness(graph)

    assert "Node 'c' is missing from the execution order" in problems
    assert "Node 'a' is scheduled before its dependency 'b'" in problems


def test_graph_is_immutable():
    graph = ActionParser().parse_object(end_to_end()).graph

    with pytest.raises(TypeError):
        graph.nodes["extra"] = graph.nodes["bg"]
    with pytest.raises(dataclasses.FrozenInstanceError):
        graph.execution_order = ()
    with pytest.raises(dataclasses.FrozenInstanceError):
        graph.nodes["bg"].status = NodeStatus.COMPLETED


def test_to_networkx_has_dependency_edges():
    digraph = ActionParser().parse_object(end_to_end()).graph.to_networkx()

    assert set(digraph.predecessors("cs")) == {"bg", "n"}
    assert digraph.nodes["bg"]["type"] == "asset_image"


@pytest.mark.parametrize("name", ["planet_intro.json", "landfall.yaml"])
def test_bundled_example_scripts_parse(name):
    path = Path(__file__).resolve().parent.parent / "examples" / "scripts" / name

    result = ActionParser().parse_file(path)

    assert result.success, result.errors
    assert validate_graph_readiness(result.graph) == []
