"""Validation error records produced while parsing an action document."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ErrorKind(str, Enum):
    SCHEMA = "schema"
    DUPLICATE_ID = "duplicate_id"
    UNKNOWN_REFERENCE = "unknown_reference"
    CIRCULAR_DEPENDENCY = "circular_dependency"
    INVALID_CONDITION = "invalid_condition"
    INVALID_TARGET = "invalid_target"


class ValidationError(BaseModel):
    """A single problem found in an action document.

    Errors are collected, never raised: every phase reports all problems it
    finds before parsing stops.
    """

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    action_index: int | None = Field(default=None, description="Position of the top-level action")
    action_id: str | None = None
    path: str | None = Field(default=None, description="Dotted path, e.g. actions[2].prompt")
    suggestions: tuple[str, ...] = ()
    cycle: tuple[str, ...] = ()

    def __str__(self) -> str:
        where = f" at {self.path}" if self.path else ""
        return f"[{self.kind.value}]{where}: {self.message}"

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def schema_error(
        cls,
        message: str,
        path: str = "root",
        action_index: int | None = None,
    ) -> "ValidationError":
        return cls(
            kind=ErrorKind.SCHEMA,
            message=message,
            path=path,
            action_index=action_index,
        )

    @classmethod
    def duplicate_id(cls, action_id: str, action_index: int) -> "ValidationError":
        return cls(
            kind=ErrorKind.DUPLICATE_ID,
            message=f"Duplicate action ID '{action_id}'",
            action_id=action_id,
            action_index=action_index,
            path=f"actions[{action_index}]",
        )

    @classmethod
    def unknown_reference(
        cls,
        reference: str,
        action_index: int,
        action_id: str | None,
        suggestions: list[str],
    ) -> "ValidationError":
        owner = f"action '{action_id}'" if action_id else f"action at index {action_index}"
        message = f"Unknown reference '{reference}' in {owner}"
        if suggestions:
            message += f". Did you mean: {', '.join(suggestions)}?"
        return cls(
            kind=ErrorKind.UNKNOWN_REFERENCE,
            message=message,
            action_id=action_id,
            action_index=action_index,
            path=f"actions[{action_index}]",
            suggestions=tuple(suggestions),
        )

    @classmethod
    def circular_dependency(cls, cycle: list[str]) -> "ValidationError":
        chain = " → ".join([*cycle, cycle[0]])
        return cls(
            kind=ErrorKind.CIRCULAR_DEPENDENCY,
            message=f"Circular dependency detected: {chain}",
            action_id=cycle[0],
            cycle=tuple(cycle),
        )

    @classmethod
    def invalid_condition(
        cls,
        condition: str,
        action_index: int,
        action_id: str | None,
    ) -> "ValidationError":
        return cls(
            kind=ErrorKind.INVALID_CONDITION,
            message=f"Invalid condition path '{condition}': expected dotted identifiers like 'species.count'",
            action_id=action_id,
            action_index=action_index,
            path=f"actions[{action_index}]",
        )

    @classmethod
    def invalid_target(
        cls,
        target: str,
        action_index: int,
        action_id: str | None,
    ) -> "ValidationError":
        return cls(
            kind=ErrorKind.INVALID_TARGET,
            message=f"Invalid target path '{target}': expected dotted identifiers like 'species.tetrapod'",
            action_id=action_id,
            action_index=action_index,
            path=f"actions[{action_index}]",
        )
