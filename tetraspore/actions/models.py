"""Action models for the Tetraspore action DSL.

An action script is a JSON object ``{"actions": [...]}`` whose entries are
discriminated on their ``type`` tag. Two variants embed further actions:
``when_then.action`` and the ``reactions`` of each player-choice option.

The literal vocabularies defined here (sizes, models, voice settings,
animations) are the only ones in the package; executors import them rather
than keeping their own lists.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, StrictStr


# ============================================================================
# Vocabularies
# ============================================================================


ImageSize = Literal["1024x768", "768x1024", "1024x1024"]
ImageModel = Literal["flux-schnell", "sdxl"]
VoiceTone = Literal["epic", "mysterious", "calm", "urgent", "triumphant"]
VoiceGender = Literal["neutral", "feminine", "masculine"]
VoicePace = Literal["slow", "normal", "fast"]
TTSModel = Literal["openai-tts", "google-tts"]
Animation = Literal["none", "slow_zoom", "pan_left", "pan_right", "fade"]

IMAGE_SIZES: tuple[str, ...] = get_args(ImageSize)
IMAGE_MODELS: tuple[str, ...] = get_args(ImageModel)
VOICE_TONES: tuple[str, ...] = get_args(VoiceTone)
VOICE_GENDERS: tuple[str, ...] = get_args(VoiceGender)
VOICE_PACES: tuple[str, ...] = get_args(VoicePace)
TTS_MODELS: tuple[str, ...] = get_args(TTSModel)
ANIMATIONS: tuple[str, ...] = get_args(Animation)


class _ActionModel(BaseModel):
    """Shared configuration: unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")


# ============================================================================
# Reasoning
# ============================================================================


class ReasonAction(_ActionModel):
    """Chain-of-thought scratch space emitted by the LLM; never executed."""

    type: Literal["reason"] = "reason"
    id: StrictStr | None = None
    ephemeral_reasoning: StrictStr


# ============================================================================
# Asset Actions
# ============================================================================


class AssetImageAction(_ActionModel):
    type: Literal["asset_image"] = "asset_image"
    id: StrictStr = Field(description="ID other actions use to reference the image")
    prompt: StrictStr = Field(description="Text prompt for the image generator")
    size: ImageSize
    model: ImageModel


class AssetSubtitleAction(_ActionModel):
    """Narration line rendered to speech."""

    type: Literal["asset_subtitle"] = "asset_subtitle"
    id: StrictStr
    text: StrictStr
    voice_tone: VoiceTone
    voice_gender: VoiceGender
    voice_pace: VoicePace
    model: TTSModel


class CutsceneShot(_ActionModel):
    image_id: StrictStr
    subtitle_id: StrictStr
    duration: float = Field(gt=0, strict=True, description="Shot length in seconds")
    animation: Animation


class AssetCutsceneAction(_ActionModel):
    """Sequence of shots pairing previously generated images and narration."""

    type: Literal["asset_cutscene"] = "asset_cutscene"
    id: StrictStr
    shots: list[CutsceneShot] = Field(min_length=1)


# ============================================================================
# Game Actions
# ============================================================================


class PlayCutsceneAction(_ActionModel):
    type: Literal["play_cutscene"] = "play_cutscene"
    id: StrictStr | None = None
    cutscene_id: StrictStr


class ShowModalAction(_ActionModel):
    type: Literal["show_modal"] = "show_modal"
    id: StrictStr | None = None
    title: StrictStr
    content: StrictStr
    image_id: StrictStr | None = None
    subtitle_id: StrictStr | None = None


class AddFeatureAction(_ActionModel):
    type: Literal["add_feature"] = "add_feature"
    id: StrictStr | None = None
    feature_type: StrictStr
    feature_data: dict[str, Any]
    target: StrictStr = Field(description="Dotted path into game state, e.g. species.tetrapod")


class RemoveFeatureAction(_ActionModel):
    type: Literal["remove_feature"] = "remove_feature"
    id: StrictStr | None = None
    feature_type: StrictStr
    target: StrictStr


class WhenThenAction(_ActionModel):
    """Conditional wrapper: ``action`` runs when ``condition`` holds."""

    type: Literal["when_then"] = "when_then"
    id: StrictStr | None = None
    condition: StrictStr = Field(description="Dotted path into game state")
    action: Action


class ChoiceOption(_ActionModel):
    label: StrictStr
    description: StrictStr
    reactions: list[Action]


class AddPlayerChoiceAction(_ActionModel):
    type: Literal["add_player_choice"] = "add_player_choice"
    id: StrictStr
    prompt: StrictStr
    options: list[ChoiceOption] = Field(min_length=1)


# ============================================================================
# Union and Document
# ============================================================================


Action = Annotated[
    Union[
        ReasonAction,
        AssetImageAction,
        AssetSubtitleAction,
        AssetCutsceneAction,
        PlayCutsceneAction,
        ShowModalAction,
        AddFeatureAction,
        RemoveFeatureAction,
        WhenThenAction,
        AddPlayerChoiceAction,
    ],
    Field(discriminator="type"),
]

AssetAction = Union[AssetImageAction, AssetSubtitleAction, AssetCutsceneAction]


class ActionDocument(_ActionModel):
    """Top-level script: an ordered list of actions."""

    actions: list[Action]


WhenThenAction.model_rebuild()
ChoiceOption.model_rebuild()
AddPlayerChoiceAction.model_rebuild()
ActionDocument.model_rebuild()


# Registry of action types for dispatch and path formatting
ACTION_TYPES: dict[str, type[BaseModel]] = {
    "reason": ReasonAction,
    "asset_image": AssetImageAction,
    "asset_subtitle": AssetSubtitleAction,
    "asset_cutscene": AssetCutsceneAction,
    "play_cutscene": PlayCutsceneAction,
    "show_modal": ShowModalAction,
    "add_feature": AddFeatureAction,
    "remove_feature": RemoveFeatureAction,
    "when_then": WhenThenAction,
    "add_player_choice": AddPlayerChoiceAction,
}

ASSET_ACTION_TYPES = frozenset({"asset_image", "asset_subtitle", "asset_cutscene"})


def is_asset_action(action: BaseModel) -> bool:
    """Whether the action produces an asset (its type starts with ``asset_``)."""
    return getattr(action, "type", "") in ASSET_ACTION_TYPES
