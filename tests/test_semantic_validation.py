"""Semantic checks: unique IDs, references, condition and target paths."""

import pytest

from action_documents import cutscene, end_to_end, image, modal, play, subtitle

from tetraspore.actions.errors import ErrorKind
from tetraspore.actions.models import ActionDocument
from tetraspore.actions.semantic import (
    SemanticValidator,
    is_valid_state_path,
    levenshtein_distance,
    suggest_ids,
)


def _check(document):
    actions = ActionDocument.model_validate(document).actions
    return SemanticValidator().validate(actions)


def _kinds(errors):
    return [error.kind for error in errors]


# ============================================================================
# Unique IDs
# ============================================================================


def test_clean_document_has_no_semantic_errors():
    assert _check(end_to_end()) == []


def test_two_actions_sharing_an_id_yield_one_error():
    errors = _check({"actions": [image("x"), subtitle("x")]})

    assert _kinds(errors) == [ErrorKind.DUPLICATE_ID]
    assert errors[0].action_id == "x"
    assert errors[0].action_index == 1


def test_three_actions_sharing_an_id_yield_two_errors():
    errors = _check({"actions": [image("x"), subtitle("x"), image("x")]})

    assert _kinds(errors) == [ErrorKind.DUPLICATE_ID, ErrorKind.DUPLICATE_ID]
    assert [error.action_index for error in errors] == [1, 2]


def test_duplicates_inside_player_choice_reactions_are_found():
    document = {
        "actions": [
            image("reward"),
            {
                "type": "add_player_choice",
                "id": "choice",
                "prompt": "Pick",
                "options": [
                    {"label": "A", "description": "a", "reactions": [image("reward", prompt="again")]},
                ],
            },
        ]
    }

    errors = _check(document)

    assert _kinds(errors) == [ErrorKind.DUPLICATE_ID]
    assert errors[0].action_index == 1


# ============================================================================
# References
# ============================================================================


def test_unknown_shot_image_is_reported_by_id():
    errors = _check({"actions": [subtitle("n"), cutscene("cs", ("missing_bg", "n"))]})

    assert _kinds(errors) == [ErrorKind.UNKNOWN_REFERENCE]
    assert "missing_bg" in errors[0].message
    assert errors[0].action_id == "cs"


def test_typo_gets_a_suggestion():
    errors = _check({"actions": [image("bg"), subtitle("n"), cutscene("cs", ("bgg", "n"))]})

    assert errors[0].suggestions == ("bg",)
    assert "Did you mean: bg?" in errors[0].message


def test_distant_reference_gets_no_suggestions():
    errors = _check({"actions": [image("bg"), play("zzzz")]})

    assert errors[0].suggestions == ()
    assert "Did you mean" not in errors[0].message


def test_suggestions_are_capped_and_ordered_by_distance():
    document = {
        "actions": [
            image("ca"),
            image("cat123"),
            image("cat12"),
            image("cats"),
            image("dog1"),
            play("cat1"),
        ]
    }

    errors = _check(document)

    assert errors[0].suggestions == ("cat12", "cats", "ca")


def test_modal_references_are_checked_when_present():
    errors = _check({"actions": [modal("Hello", image_id="nope"), modal("Bare")]})

    assert _kinds(errors) == [ErrorKind.UNKNOWN_REFERENCE]
    assert "nope" in errors[0].message


def test_references_inside_nested_actions_are_checked():
    document = {
        "actions": [
            {"type": "when_then", "condition": "planet.ready", "action": play("ghost")},
            {
                "type": "add_player_choice",
                "id": "choice",
                "prompt": "Pick",
                "options": [{"label": "A", "description": "a", "reactions": [play("phantom")]}],
            },
        ]
    }

    errors = _check(document)

    assert _kinds(errors) == [ErrorKind.UNKNOWN_REFERENCE, ErrorKind.UNKNOWN_REFERENCE]
    assert [error.action_index for error in errors] == [0, 1]


def test_nested_declarations_can_be_referenced():
    document = {
        "actions": [
            {"type": "when_then", "condition": "planet.ready", "action": image("late_bg")},
            modal("Late", image_id="late_bg"),
        ]
    }

    assert _check(document) == []


# ============================================================================
# Condition and Target Paths
# ============================================================================


@pytest.mark.parametrize("path", ["species", "species.count", "_hidden.value2", "a.b.c.d"])
def test_valid_state_paths(path):
    assert is_valid_state_path(path)


@pytest.mark.parametrize("path", ["", "species..count", "1species", "species-count", "species.", ".species", "a b"])
def test_invalid_state_paths(path):
    assert not is_valid_state_path(path)


def test_bad_condition_is_reported():
    document = {"actions": [{"type": "when_then", "condition": "planet..hot", "action": modal("Hot")}]}

    errors = _check(document)

    assert _kinds(errors) == [ErrorKind.INVALID_CONDITION]
    assert "planet..hot" in errors[0].message


def test_bad_target_is_reported_at_any_depth():
    document = {
        "actions": [
            {
                "type": "when_then",
                "condition": "planet.hot",
                "action": {"type": "remove_feature", "feature_type": "biome", "target": "biomes/ice"},
            },
            {"type": "add_feature", "feature_type": "species", "feature_data": {}, "target": "9lives"},
        ]
    }

    errors = _check(document)

    assert _kinds(errors) == [ErrorKind.INVALID_TARGET, ErrorKind.INVALID_TARGET]


def test_all_passes_run_together():
    document = {
        "actions": [
            image("x"),
            image("x"),
            play("nowhere"),
            {"type": "when_then", "condition": "bad path", "action": modal("M")},
            {"type": "remove_feature", "feature_type": "biome", "target": "bad target"},
        ]
    }

    errors = _check(document)

    assert set(_kinds(errors)) == {
        ErrorKind.DUPLICATE_ID,
        ErrorKind.UNKNOWN_REFERENCE,
        ErrorKind.INVALID_CONDITION,
        ErrorKind.INVALID_TARGET,
    }


# ============================================================================
# Edit Distance
# ============================================================================


def test_levenshtein_distance():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


def test_suggest_ids_threshold_is_half_the_reference_length():
    assert suggest_ids("abcd", ["abxy"]) == ["abxy"]
    assert suggest_ids("abcd", ["axyz"]) == []
