"""Action DSL: models, validation, dependency resolution and graph building."""

from tetraspore.actions.errors import ErrorKind, ValidationError
from tetraspore.actions.graph import ActionGraph, ActionNode, NodeStatus
from tetraspore.actions.models import ACTION_TYPES, ActionDocument
from tetraspore.actions.parser import (
    ActionParser,
    ParseResult,
    empty_result,
    execution_stats,
    validate_graph_readiness,
)

__all__ = [
    "ACTION_TYPES",
    "ActionDocument",
    "ActionGraph",
    "ActionNode",
    "ActionParser",
    "ErrorKind",
    "NodeStatus",
    "ParseResult",
    "ValidationError",
    "empty_result",
    "execution_stats",
    "validate_graph_readiness",
]
