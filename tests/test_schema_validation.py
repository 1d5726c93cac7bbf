"""Schema validation: structure, types and dotted error paths."""

from action_documents import end_to_end, image, modal, subtitle

from tetraspore.actions.errors import ErrorKind
from tetraspore.actions.schema import SchemaValidator, format_location


def _validate(document):
    return SchemaValidator().validate(document)


def test_valid_document_parses_into_models():
    parsed, errors = _validate(end_to_end())

    assert errors == []
    assert [action.type for action in parsed.actions] == [
        "asset_image", "asset_subtitle", "asset_cutscene", "play_cutscene",
    ]
    assert parsed.actions[2].shots[0].duration == 5


def test_wrong_field_type_reports_dotted_path():
    bad = image("bg")
    bad["prompt"] = 42
    parsed, errors = _validate({"actions": [image("ok"), bad]})

    assert parsed is None
    assert len(errors) == 1
    assert errors[0].kind == ErrorKind.SCHEMA
    assert errors[0].path == "actions[1].prompt"
    assert errors[0].action_index == 1


def test_every_malformed_field_is_reported():
    first = image("a")
    first["size"] = "640x480"
    second = subtitle("b")
    del second["text"]
    second["voice_tone"] = "cheerful"

    _, errors = _validate({"actions": [first, second]})

    paths = sorted(error.path for error in errors)
    assert paths == ["actions[0].size", "actions[1].text", "actions[1].voice_tone"]


def test_unknown_fields_are_rejected():
    action = image("bg")
    action["style"] = "watercolor"

    _, errors = _validate({"actions": [action]})

    assert [error.path for error in errors] == ["actions[0].style"]


def test_unknown_action_type_is_a_schema_error():
    _, errors = _validate({"actions": [{"type": "spawn_meteor", "id": "m"}]})

    assert len(errors) == 1
    assert errors[0].path == "actions[0]"
    assert errors[0].action_index == 0


def test_numbers_are_not_coerced_from_strings():
    document = end_to_end()
    document["actions"][2]["shots"][0]["duration"] = "5"

    _, errors = _validate(document)

    assert [error.path for error in errors] == ["actions[2].shots[0].duration"]


def test_shot_duration_must_be_positive():
    document = end_to_end()
    document["actions"][2]["shots"][0]["duration"] = 0

    _, errors = _validate(document)

    assert [error.path for error in errors] == ["actions[2].shots[0].duration"]


def test_cutscene_needs_at_least_one_shot():
    _, errors = _validate({"actions": [{"type": "asset_cutscene", "id": "cs", "shots": []}]})

    assert [error.path for error in errors] == ["actions[0].shots"]


def test_nested_when_then_errors_have_nested_paths():
    document = {
        "actions": [
            {
                "type": "when_then",
                "condition": "species.count",
                "action": {"type": "asset_image", "id": "x", "size": "1024x768", "model": "sdxl"},
            }
        ]
    }

    _, errors = _validate(document)

    assert [error.path for error in errors] == ["actions[0].action.prompt"]


def test_choice_reaction_errors_have_nested_paths():
    broken = modal("Drought")
    del broken["title"]
    document = {
        "actions": [
            {
                "type": "add_player_choice",
                "id": "choice",
                "prompt": "Pick",
                "options": [{"label": "A", "description": "a", "reactions": [broken]}],
            }
        ]
    }

    _, errors = _validate(document)

    assert [error.path for error in errors] == ["actions[0].options[0].reactions[0].title"]


def test_player_choice_needs_options():
    document = {"actions": [{"type": "add_player_choice", "id": "c", "prompt": "Pick", "options": []}]}

    _, errors = _validate(document)

    assert [error.path for error in errors] == ["actions[0].options"]


def test_non_object_document_fails_at_root():
    _, errors = _validate(["not", "a", "document"])

    assert len(errors) == 1
    assert errors[0].path == "root"
    assert errors[0].action_index is None


def test_optional_ids_on_game_actions():
    parsed, errors = _validate({
        "actions": [image("bg"), {"type": "play_cutscene", "id": "intro", "cutscene_id": "bg"}],
    })

    assert errors == []
    assert parsed.actions[1].id == "intro"


def test_format_location_drops_union_tags():
    loc = ("actions", 3, "when_then", "action", "add_player_choice", "options", 1, "reactions", 0, "show_modal", "title")

    assert format_location(loc) == "actions[3].action.options[1].reactions[0].title"
    assert format_location(()) == "root"
