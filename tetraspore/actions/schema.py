"""Structural validation of action documents against the pydantic models."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from tetraspore.actions.errors import ValidationError
from tetraspore.actions.models import ACTION_TYPES, ActionDocument
from tetraspore.utils.logging import get_logger

logger = get_logger("actions.schema")


def format_location(loc: tuple[str | int, ...]) -> str:
    """Render a pydantic error location as a dotted path.

    Integer segments become subscripts and the discriminator tags pydantic
    inserts for tagged unions are dropped, so
    ``("actions", 2, "asset_image", "prompt")`` becomes
    ``"actions[2].prompt"``.
    """
    parts: list[str] = []
    previous: str | int | None = None
    for segment in loc:
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
        elif segment in ACTION_TYPES and (isinstance(previous, int) or previous == "action"):
            pass
        elif parts:
            parts.append(f".{segment}")
        else:
            parts.append(str(segment))
        previous = segment
    return "".join(parts) or "root"


def _action_index(loc: tuple[str | int, ...]) -> int | None:
    if len(loc) >= 2 and loc[0] == "actions" and isinstance(loc[1], int):
        return loc[1]
    return None


class SchemaValidator:
    """Validates raw documents against ``ActionDocument``.

    Every violated field produces its own error, so a document with three
    malformed actions reports all three at once.
    """

    def validate(self, document: Any) -> tuple[ActionDocument | None, list[ValidationError]]:
        try:
            parsed = ActionDocument.model_validate(document)
        except PydanticValidationError as e:
            errors = [
                ValidationError.schema_error(
                    message=detail["msg"],
                    path=format_location(tuple(detail["loc"])),
                    action_index=_action_index(tuple(detail["loc"])),
                )
                for detail in e.errors()
            ]
            logger.debug(f"Schema validation failed with {len(errors)} error(s)")
            return None, errors
        return parsed, []
