"""Immutable action graph produced by a successful parse."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

import networkx as nx
from pydantic import BaseModel

from tetraspore.actions.dependencies import NodeEntry
from tetraspore.actions.models import ASSET_ACTION_TYPES


class NodeStatus(str, Enum):
    PENDING = "pending"
    READY = "ready"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class ActionNode:
    """An action with its resolved dependency edges.

    ``status`` is the build-time status: READY when the node has no
    dependencies, PENDING otherwise. Execution progress is tracked by the
    processor, never written back into the graph.
    """

    id: str
    action: BaseModel
    dependencies: frozenset[str] = frozenset()
    dependents: frozenset[str] = frozenset()
    status: NodeStatus = NodeStatus.PENDING
    index: int = 0
    synthetic: bool = False

    @property
    def type(self) -> str:
        return self.action.type

    @property
    def is_asset(self) -> bool:
        return self.action.type in ASSET_ACTION_TYPES


@dataclass(frozen=True)
class ActionGraph:
    """Nodes keyed by ID plus a topological execution order.

    ``asset_actions`` and ``game_actions`` partition the nodes by kind in
    declaration order; ``reason`` nodes belong to neither.
    """

    nodes: Mapping[str, ActionNode] = field(default_factory=lambda: MappingProxyType({}))
    execution_order: tuple[str, ...] = ()
    asset_actions: tuple[str, ...] = ()
    game_actions: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __iter__(self) -> Iterator[ActionNode]:
        """Iterate nodes in execution order."""
        return (self.nodes[node_id] for node_id in self.execution_order)

    def get(self, node_id: str) -> ActionNode | None:
        return self.nodes.get(node_id)

    def ready_nodes(self) -> list[ActionNode]:
        return [node for node in self.nodes.values() if node.status == NodeStatus.READY]

    def to_networkx(self) -> nx.DiGraph:
        """Export as a DiGraph with an edge from each dependency to its dependent."""
        graph = nx.DiGraph()
        for node in self.nodes.values():
            graph.add_node(node.id, type=node.type, status=node.status.value)
        for node in self.nodes.values():
            for dep in node.dependencies:
                graph.add_edge(dep, node.id)
        return graph


class GraphBuilder:
    """Turns resolved node entries into an ``ActionGraph``."""

    def build(
        self,
        entries: Sequence[NodeEntry],
        dependencies: Mapping[str, Sequence[str]],
        order: Sequence[str],
    ) -> ActionGraph:
        dependents: dict[str, list[str]] = {entry.node_id: [] for entry in entries}
        for node_id, deps in dependencies.items():
            for dep in deps:
                dependents[dep].append(node_id)

        nodes: dict[str, ActionNode] = {}
        asset_actions: list[str] = []
        game_actions: list[str] = []
        for entry in entries:
            deps = frozenset(dependencies.get(entry.node_id, ()))
            nodes[entry.node_id] = ActionNode(
                id=entry.node_id,
                action=entry.action,
                dependencies=deps,
                dependents=frozenset(dependents[entry.node_id]),
                status=NodeStatus.PENDING if deps else NodeStatus.READY,
                index=entry.index,
                synthetic=entry.synthetic,
            )
            if entry.action.type in ASSET_ACTION_TYPES:
                asset_actions.append(entry.node_id)
            elif entry.action.type != "reason":
                game_actions.append(entry.node_id)

        return ActionGraph(
            nodes=MappingProxyType(nodes),
            execution_order=tuple(order),
            asset_actions=tuple(asset_actions),
            game_actions=tuple(game_actions),
        )
