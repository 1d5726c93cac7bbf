"""
ID helpers for action graphs.

Anonymous top-level actions are addressed in the graph by a synthetic ID
built from their type and position.
"""

from __future__ import annotations

from collections.abc import Collection


def synthetic_action_id(action_type: str, index: int, taken: Collection[str] = ()) -> str:
    """Build the graph ID for an anonymous top-level action.

    Format: {action_type}_{index}, with a numeric suffix appended when the
    plain form collides with an ID already in use.

    Args:
        action_type: The action's ``type`` tag
        index: Position of the action in the document
        taken: IDs already in use

    Returns:
        An ID not contained in ``taken``

    Example:
        >>> synthetic_action_id("play_cutscene", 3)
        "play_cutscene_3"
    """
    candidate = f"{action_type}_{index}"
    if candidate not in taken:
        return candidate

    suffix = 2
    while f"{candidate}_{suffix}" in taken:
        suffix += 1
    return f"{candidate}_{suffix}"
