"""Semantic checks over a schema-valid action document.

Four independent passes run on every document, so one call reports every
duplicate ID, dangling reference and malformed state path at once.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from pydantic import BaseModel

from tetraspore.actions.errors import ValidationError
from tetraspore.actions.models import AddFeatureAction, RemoveFeatureAction, WhenThenAction
from tetraspore.actions.traversal import direct_references, walk_document
from tetraspore.utils.logging import get_logger

logger = get_logger("actions.semantic")

# Dotted identifier path into game state: species.tetrapod.count
STATE_PATH_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)*$")

MAX_SUGGESTIONS = 3


# ============================================================================
# Suggestions
# ============================================================================


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (char_a != char_b),
            ))
        previous = current
    return previous[-1]


def suggest_ids(reference: str, known_ids: Sequence[str], limit: int = MAX_SUGGESTIONS) -> list[str]:
    """Known IDs close enough to ``reference`` to be a likely typo.

    A candidate qualifies when its distance is at most half the length of
    the reference. Results are ordered by distance, ties in ``known_ids``
    order.
    """
    threshold = len(reference) / 2
    scored = []
    for position, candidate in enumerate(known_ids):
        distance = levenshtein_distance(reference, candidate)
        if distance <= threshold:
            scored.append((distance, position, candidate))
    scored.sort()
    return [candidate for _, _, candidate in scored[:limit]]


def is_valid_state_path(path: str) -> bool:
    return bool(STATE_PATH_PATTERN.match(path))


# ============================================================================
# Validator
# ============================================================================


class SemanticValidator:
    """Runs the ID, reference, condition and target checks."""

    def validate(self, actions: Sequence[BaseModel]) -> list[ValidationError]:
        errors: list[ValidationError] = []
        errors.extend(self.check_unique_ids(actions))
        errors.extend(self.check_references(actions))
        errors.extend(self.check_conditions(actions))
        errors.extend(self.check_targets(actions))
        if errors:
            logger.debug(f"Semantic validation found {len(errors)} error(s)")
        return errors

    def check_unique_ids(self, actions: Sequence[BaseModel]) -> list[ValidationError]:
        """One error per repeated occurrence of an ID, nested actions included."""
        seen: set[str] = set()
        errors = []
        for visit in walk_document(actions):
            action_id = getattr(visit.action, "id", None)
            if action_id is None:
                continue
            if action_id in seen:
                errors.append(ValidationError.duplicate_id(action_id, visit.index))
            else:
                seen.add(action_id)
        return errors

    def check_references(self, actions: Sequence[BaseModel]) -> list[ValidationError]:
        declared = (getattr(visit.action, "id", None) for visit in walk_document(actions))
        known_ids = list(dict.fromkeys(action_id for action_id in declared if action_id is not None))
        known = set(known_ids)

        errors = []
        for visit in walk_document(actions):
            for reference in direct_references(visit.action):
                if reference in known:
                    continue
                errors.append(ValidationError.unknown_reference(
                    reference,
                    action_index=visit.index,
                    action_id=getattr(visit.action, "id", None),
                    suggestions=suggest_ids(reference, known_ids),
                ))
        return errors

    def check_conditions(self, actions: Sequence[BaseModel]) -> list[ValidationError]:
        errors = []
        for visit in walk_document(actions):
            action = visit.action
            if isinstance(action, WhenThenAction) and not is_valid_state_path(action.condition):
                errors.append(ValidationError.invalid_condition(
                    action.condition, visit.index, action.id,
                ))
        return errors

    def check_targets(self, actions: Sequence[BaseModel]) -> list[ValidationError]:
        errors = []
        for visit in walk_document(actions):
            action = visit.action
            if isinstance(action, (AddFeatureAction, RemoveFeatureAction)) and not is_valid_state_path(action.target):
                errors.append(ValidationError.invalid_target(
                    action.target, visit.index, action.id,
                ))
        return errors
