"""Recursive walks over action trees.

``when_then`` embeds one action and each player-choice option embeds a list
of reactions; every check that looks for IDs or references has to descend
into both.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from pydantic import BaseModel

from tetraspore.actions.models import (
    AddPlayerChoiceAction,
    AssetCutsceneAction,
    PlayCutsceneAction,
    ShowModalAction,
    WhenThenAction,
)


@dataclass(frozen=True)
class ActionVisit:
    """One action reached during a walk.

    ``index`` is the position of the top-level action the visit belongs to;
    ``parent`` is the closest enclosing action, None at top level.
    """

    index: int
    action: BaseModel
    parent: BaseModel | None = None

    @property
    def is_nested(self) -> bool:
        return self.parent is not None


def child_actions(action: BaseModel) -> list[BaseModel]:
    """Actions embedded directly in ``action``."""
    if isinstance(action, WhenThenAction):
        return [action.action]
    if isinstance(action, AddPlayerChoiceAction):
        return [reaction for option in action.options for reaction in option.reactions]
    return []


def walk(action: BaseModel, index: int, parent: BaseModel | None = None) -> Iterator[ActionVisit]:
    """Yield ``action`` and everything nested in it, in preorder."""
    yield ActionVisit(index=index, action=action, parent=parent)
    for child in child_actions(action):
        yield from walk(child, index, parent=action)


def walk_document(actions: Iterable[BaseModel]) -> Iterator[ActionVisit]:
    """Preorder walk over every action of a document, nested ones included."""
    for index, action in enumerate(actions):
        yield from walk(action, index)


def direct_references(action: BaseModel) -> list[str]:
    """IDs referenced by the action's own fields, excluding nested actions."""
    if isinstance(action, AssetCutsceneAction):
        refs: list[str] = []
        for shot in action.shots:
            refs.append(shot.image_id)
            refs.append(shot.subtitle_id)
        return refs
    if isinstance(action, PlayCutsceneAction):
        return [action.cutscene_id]
    if isinstance(action, ShowModalAction):
        return [ref for ref in (action.image_id, action.subtitle_id) if isinstance(ref, str)]
    return []


def referenced_ids(action: BaseModel) -> list[str]:
    """IDs referenced anywhere in the action's subtree, in encounter order."""
    refs: list[str] = []
    for visit in walk(action, 0):
        refs.extend(direct_references(visit.action))
    return refs


def declared_ids(action: BaseModel) -> list[str]:
    """IDs declared anywhere in the action's subtree, in preorder."""
    ids = []
    for visit in walk(action, 0):
        action_id = getattr(visit.action, "id", None)
        if action_id is not None:
            ids.append(action_id)
    return ids
