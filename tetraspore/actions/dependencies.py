"""Dependency resolution for action graphs.

Every addressable action becomes a node: actions with a declared ID
(including nested ones) and anonymous top-level actions, which receive a
synthetic ``{type}_{index}`` ID. A node depends on every ID referenced in its
action's subtree. A self-reference from the action's own fields is a one-node
cycle; nested actions referring back to their owner are ignored. Anonymous
nested actions are not nodes; their references count toward the closest
addressable ancestor.
"""

from __future__ import annotations

import heapq
from collections.abc import Sequence
from dataclasses import dataclass, field

import networkx as nx
from pydantic import BaseModel

from tetraspore.actions.errors import ValidationError
from tetraspore.actions.traversal import child_actions, direct_references, referenced_ids
from tetraspore.utils.ids import synthetic_action_id
from tetraspore.utils.logging import get_logger

logger = get_logger("actions.dependencies")


@dataclass(frozen=True)
class NodeEntry:
    """An addressable action and where it came from."""

    node_id: str
    action: BaseModel
    index: int
    synthetic: bool = False


@dataclass
class Resolution:
    """Output of ``DependencyResolver.resolve``."""

    dependencies: dict[str, tuple[str, ...]] = field(default_factory=dict)
    order: list[str] = field(default_factory=list)
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def collect_nodes(actions: Sequence[BaseModel]) -> list[NodeEntry]:
    """List addressable actions in declaration (preorder) order."""
    declared: set[str] = set()
    for action in actions:
        stack = [action]
        while stack:
            current = stack.pop()
            if getattr(current, "id", None) is not None:
                declared.add(current.id)
            stack.extend(child_actions(current))

    entries: list[NodeEntry] = []
    taken = set(declared)

    def visit(action: BaseModel, index: int, top_level: bool) -> None:
        action_id = getattr(action, "id", None)
        if action_id is not None:
            entries.append(NodeEntry(action_id, action, index))
        elif top_level:
            node_id = synthetic_action_id(action.type, index, taken)
            taken.add(node_id)
            entries.append(NodeEntry(node_id, action, index, synthetic=True))
        for child in child_actions(action):
            visit(child, index, top_level=False)

    for index, action in enumerate(actions):
        visit(action, index, top_level=True)
    return entries


class DependencyResolver:
    """Builds the dependency map, detects cycles and orders the nodes."""

    def build_dependency_map(self, nodes: Sequence[NodeEntry]) -> dict[str, tuple[str, ...]]:
        """Map each node to the node IDs it references, in encounter order.

        A node referencing itself from its own fields keeps the self-edge so
        the cycle scan reports it. Nested actions pointing back at their
        owner do not count.
        """
        node_ids = {entry.node_id for entry in nodes}
        dependencies: dict[str, tuple[str, ...]] = {}
        for entry in nodes:
            own = set(direct_references(entry.action))
            deps: list[str] = []
            for ref in referenced_ids(entry.action):
                if ref == entry.node_id and ref not in own:
                    continue
                if ref in node_ids and ref not in deps:
                    deps.append(ref)
            dependencies[entry.node_id] = tuple(deps)
        return dependencies

    def find_cycles(self, dependencies: dict[str, tuple[str, ...]]) -> list[list[str]]:
        """Depth-first search for cycles.

        Reaching a node that is still on the recursion stack closes a cycle;
        it is reported from that node onward in traversal order.
        """
        visited: set[str] = set()
        cycles: list[list[str]] = []

        for start in dependencies:
            if start in visited:
                continue
            path: list[str] = [start]
            on_stack: set[str] = {start}
            iterators = [iter(dependencies.get(start, ()))]
            visited.add(start)

            while iterators:
                dep = next(iterators[-1], None)
                if dep is None:
                    iterators.pop()
                    on_stack.discard(path.pop())
                    continue
                if dep in on_stack:
                    cycles.append(path[path.index(dep):])
                elif dep not in visited:
                    visited.add(dep)
                    on_stack.add(dep)
                    path.append(dep)
                    iterators.append(iter(dependencies.get(dep, ())))
        return cycles

    def build_graph(self, dependencies: dict[str, tuple[str, ...]]) -> nx.DiGraph:
        """Directed graph with an edge from each dependency to its dependent."""
        graph = nx.DiGraph()
        for position, node_id in enumerate(dependencies):
            graph.add_node(node_id, position=position)
        for node_id, deps in dependencies.items():
            for dep in deps:
                graph.add_edge(dep, node_id)
        return graph

    def topological_order(self, dependencies: dict[str, tuple[str, ...]]) -> list[str]:
        """Kahn's algorithm; among ready nodes the earliest declared goes first."""
        graph = self.build_graph(dependencies)
        in_degree = dict(graph.in_degree())
        position = nx.get_node_attributes(graph, "position")

        ready = [(position[n], n) for n, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)

        order: list[str] = []
        while ready:
            _, node_id = heapq.heappop(ready)
            order.append(node_id)
            for dependent in graph.successors(node_id):
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, (position[dependent], dependent))
        return order

    def resolve(self, nodes: Sequence[NodeEntry]) -> Resolution:
        dependencies = self.build_dependency_map(nodes)
        cycles = self.find_cycles(dependencies)
        if cycles:
            errors = [ValidationError.circular_dependency(cycle) for cycle in cycles]
            for error in errors:
                logger.warning(error.message)
            return Resolution(dependencies=dependencies, errors=errors)

        order = self.topological_order(dependencies)
        logger.debug(f"Resolved execution order for {len(order)} node(s)")
        return Resolution(dependencies=dependencies, order=order)
