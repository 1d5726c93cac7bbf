"""
Action DSL parser.

Pipeline: schema validation, semantic checks, dependency resolution and
graph construction. Each stage runs only when the previous one produced no
errors, and every stage reports all the problems it finds.

Usage:
    parser = ActionParser()
    result = parser.parse(json_text)
    if result.success:
        for node in result.graph:
            ...
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from tetraspore.actions.dependencies import DependencyResolver, collect_nodes
from tetraspore.actions.errors import ValidationError
from tetraspore.actions.graph import ActionGraph, GraphBuilder
from tetraspore.actions.schema import SchemaValidator
from tetraspore.actions.semantic import SemanticValidator
from tetraspore.errors import ActionParseError
from tetraspore.utils.logging import get_logger

logger = get_logger("actions.parser")


@dataclass
class ParseResult:
    """Either a graph (``success``) or the list of errors that prevented one."""

    success: bool
    graph: ActionGraph | None = None
    errors: list[ValidationError] = field(default_factory=list)

    @classmethod
    def failure(cls, errors: list[ValidationError]) -> "ParseResult":
        return cls(success=False, errors=list(errors))


class ActionParser:
    """Parses action documents into ``ActionGraph`` values.

    Collaborators can be swapped for testing; each defaults to a fresh
    instance.
    """

    def __init__(
        self,
        schema_validator: SchemaValidator | None = None,
        semantic_validator: SemanticValidator | None = None,
        resolver: DependencyResolver | None = None,
        builder: GraphBuilder | None = None,
    ):
        self.schema_validator = schema_validator or SchemaValidator()
        self.semantic_validator = semantic_validator or SemanticValidator()
        self.resolver = resolver or DependencyResolver()
        self.builder = builder or GraphBuilder()

    def parse(self, text: str) -> ParseResult:
        """Parse a JSON string."""
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            return ParseResult.failure([ValidationError.schema_error(f"Invalid JSON: {e}")])
        return self.parse_object(document)

    def parse_file(self, path: str | Path) -> ParseResult:
        """Parse a ``.json``, ``.yaml`` or ``.yml`` file."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return ParseResult.failure([ValidationError.schema_error(f"Cannot read {path}: {e}")])
        if path.suffix.lower() in (".yaml", ".yml"):
            try:
                document = yaml.safe_load(text)
            except yaml.YAMLError as e:
                return ParseResult.failure([ValidationError.schema_error(f"Invalid YAML: {e}")])
            return self.parse_object(document)
        return self.parse(text)

    def parse_object(self, document: Any) -> ParseResult:
        """Parse an already-decoded document."""
        parsed, errors = self.schema_validator.validate(document)
        if errors:
            logger.info(f"Rejected document: {len(errors)} schema error(s)")
            return ParseResult.failure(errors)

        actions = parsed.actions
        errors = self.semantic_validator.validate(actions)
        if errors:
            logger.info(f"Rejected document: {len(errors)} semantic error(s)")
            return ParseResult.failure(errors)

        entries = collect_nodes(actions)
        resolution = self.resolver.resolve(entries)
        if not resolution.success:
            return ParseResult.failure(resolution.errors)

        graph = self.builder.build(entries, resolution.dependencies, resolution.order)
        logger.info(
            f"Parsed {len(actions)} action(s) into {len(graph)} node(s): "
            f"{len(graph.asset_actions)} asset, {len(graph.game_actions)} game"
        )
        return ParseResult(success=True, graph=graph)

    def parse_or_raise(self, document: Any) -> ActionGraph:
        """Like ``parse_object`` (or ``parse`` for strings) but raises ``ActionParseError``."""
        result = self.parse(document) if isinstance(document, str) else self.parse_object(document)
        if not result.success:
            raise ActionParseError(result.errors)
        return result.graph


# ============================================================================
# Helpers
# ============================================================================


def execution_stats(result: ParseResult) -> dict[str, int] | None:
    """Node counts for a successful parse, None otherwise."""
    if not result.success or result.graph is None:
        return None
    graph = result.graph
    return {
        "total_actions": len(graph),
        "asset_actions": len(graph.asset_actions),
        "game_actions": len(graph.game_actions),
        "ready_actions": len(graph.ready_nodes()),
    }


def validate_graph_readiness(graph: ActionGraph) -> list[str]:
    """Problems that would stop ``graph`` from executing cleanly.

    Checks that every node is scheduled exactly once and that every
    dependency is scheduled before its dependent.
    """
    problems = []
    position = {node_id: i for i, node_id in enumerate(graph.execution_order)}

    if len(position) != len(graph.execution_order):
        problems.append("Execution order contains duplicate entries")
    for node_id in graph.nodes:
        if node_id not in position:
            problems.append(f"Node '{node_id}' is missing from the execution order")
    for node_id in graph.execution_order:
        if node_id not in graph.nodes:
            problems.append(f"Execution order references unknown node '{node_id}'")

    for node in graph.nodes.values():
        for dep in sorted(node.dependencies):
            if dep in position and node.id in position and position[dep] > position[node.id]:
                problems.append(f"Node '{node.id}' is scheduled before its dependency '{dep}'")
    return problems


def empty_result() -> ParseResult:
    return ParseResult(success=True, graph=ActionGraph())
