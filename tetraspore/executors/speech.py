"""Narration executor (``asset_subtitle``): text to speech."""

from __future__ import annotations

import re

from pydantic import BaseModel

from tetraspore.actions.models import TTS_MODELS, VOICE_GENDERS, VOICE_PACES, VOICE_TONES
from tetraspore.errors import AssetGenerationError
from tetraspore.executors.base import BaseAssetExecutor, ExecutionContext, one_of, required
from tetraspore.executors.generators import SimulatedSpeechSynthesizer, SpeechSynthesizer, VoiceSettings
from tetraspore.executors.models import (
    AssetMetadata,
    AssetResult,
    CostEstimate,
    ExecutorValidationResult,
    FieldError,
)
from tetraspore.executors.pricing import TTS_PRICES_PER_MILLION_CHARS
from tetraspore.infrastructure.rate_limiter import TTS_GENERATION

MAX_TEXT_LENGTH = 4000
FALLBACK_VOICE_KEY = "neutral-calm"

# "<gender>-<tone>" -> provider voice
VOICE_MAP: dict[str, dict[str, str]] = {
    "openai-tts": {
        "neutral-epic": "onyx",
        "neutral-calm": "nova",
        "neutral-mysterious": "echo",
        "neutral-urgent": "alloy",
        "neutral-triumphant": "onyx",
        "feminine-epic": "shimmer",
        "feminine-calm": "nova",
        "feminine-mysterious": "shimmer",
        "feminine-urgent": "shimmer",
        "feminine-triumphant": "shimmer",
        "masculine-epic": "onyx",
        "masculine-calm": "onyx",
        "masculine-mysterious": "echo",
        "masculine-urgent": "echo",
        "masculine-triumphant": "onyx",
    },
    "google-tts": {
        "neutral-epic": "en-US-Journey-F",
        "neutral-calm": "en-US-Neural2-C",
        "neutral-mysterious": "en-US-Neural2-E",
        "neutral-urgent": "en-US-Neural2-H",
        "neutral-triumphant": "en-US-Journey-F",
        "feminine-epic": "en-US-Neural2-F",
        "feminine-calm": "en-US-Neural2-A",
        "feminine-mysterious": "en-US-Neural2-F",
        "feminine-urgent": "en-US-Neural2-G",
        "feminine-triumphant": "en-US-Neural2-F",
        "masculine-epic": "en-US-Neural2-I",
        "masculine-calm": "en-US-Neural2-J",
        "masculine-mysterious": "en-US-Neural2-D",
        "masculine-urgent": "en-US-Neural2-D",
        "masculine-triumphant": "en-US-Neural2-I",
    },
}

PACE_SPEED = {"slow": 0.8, "normal": 1.0, "fast": 1.2}

TONE_PITCH = {
    "epic": 0.0,
    "calm": -0.1,
    "mysterious": -0.2,
    "urgent": 0.1,
    "triumphant": 0.1,
}

WORDS_PER_MINUTE = {"slow": 120, "normal": 150, "fast": 180}

MODEL_API_KEYS = {
    "openai-tts": "openai",
    "google-tts": "google_cloud",
}

SAMPLE_RATE = 22050


def voice_settings(model: str, gender: str, tone: str, pace: str) -> VoiceSettings:
    """Resolve provider voice, speed and pitch for a voice description."""
    voices = VOICE_MAP[model]
    voice = voices.get(f"{gender}-{tone}", voices[FALLBACK_VOICE_KEY])
    return VoiceSettings(
        voice=voice,
        speed=PACE_SPEED.get(pace, 1.0),
        pitch=TONE_PITCH.get(tone, 0.0),
    )


def estimate_speech_duration(text: str, pace: str = "normal") -> int:
    """Spoken length in whole seconds from word count and pace (minimum 1)."""
    words = len(text.split())
    seconds = words / WORDS_PER_MINUTE.get(pace, WORDS_PER_MINUTE["normal"]) * 60
    return max(1, int(seconds + 0.5))


def clean_text_for_tts(text: str) -> str:
    """Strip markdown markers, collapse whitespace and end on punctuation."""
    cleaned = re.sub(r"[*_`]", "", text)
    cleaned = re.sub(r"\s+", " ", cleaned)
    cleaned = re.sub(r"\.{2,}", ".", cleaned).strip()
    if cleaned and cleaned[-1] not in ".!?":
        cleaned += "."
    return cleaned


class SpeechAssetExecutor(BaseAssetExecutor):
    """Synthesizes narration through a ``SpeechSynthesizer``."""

    action_type = "asset_subtitle"
    resource_class = TTS_GENERATION

    def __init__(self, synthesizer: SpeechSynthesizer | None = None, **kwargs):
        super().__init__(**kwargs)
        self.synthesizer = synthesizer or SimulatedSpeechSynthesizer()

    def validate(self, action: BaseModel) -> ExecutorValidationResult:
        errors: list[FieldError] = []
        errors += required(getattr(action, "id", None), "id")
        text = getattr(action, "text", None)
        errors += required(text, "text")
        if isinstance(text, str) and len(text) > MAX_TEXT_LENGTH:
            errors.append(FieldError(
                field="text",
                message=f"text must be at most {MAX_TEXT_LENGTH} characters",
                code="too_long",
            ))
        errors += one_of(getattr(action, "voice_gender", None), VOICE_GENDERS, "voice_gender")
        errors += one_of(getattr(action, "voice_tone", None), VOICE_TONES, "voice_tone")
        errors += one_of(getattr(action, "voice_pace", None), VOICE_PACES, "voice_pace")
        errors += one_of(getattr(action, "model", None), TTS_MODELS, "model")
        return ExecutorValidationResult.from_errors(errors)

    def estimate_cost(self, action: BaseModel) -> CostEstimate:
        per_million = TTS_PRICES_PER_MILLION_CHARS.get(action.model, 0.0)
        cost = len(action.text) * per_million / 1_000_000
        return CostEstimate(min=cost, max=cost)

    async def generate(self, action: BaseModel, context: ExecutionContext) -> AssetResult:
        key_name = MODEL_API_KEYS.get(action.model)
        if key_name is None:
            raise AssetGenerationError(f"Unsupported TTS model: {action.model}", action=action, retryable=False)
        self.require_api_keys(context, action, key_name)

        voice = voice_settings(action.model, action.voice_gender, action.voice_tone, action.voice_pace)
        audio = await self.synthesizer.synthesize(action.text, voice, action.model)
        duration = estimate_speech_duration(action.text, action.voice_pace)

        stored = await context.storage.store(
            audio.data,
            AssetMetadata(id=action.id, type="audio", format=audio.format, duration=duration),
        )
        cost = context.cost_tracker.record("tts", action.model, len(action.text)).cost

        return AssetResult(
            id=action.id,
            url=stored.url,
            cost=cost,
            duration=duration,
            metadata={
                **self.create_base_metadata(action),
                "format": audio.format,
                "sample_rate": audio.sample_rate,
                "duration": duration,
                "model": action.model,
                "voice": voice.voice,
                "speed": voice.speed,
                "pitch": voice.pitch,
                "text": action.text,
                "characters": len(action.text),
            },
        )

    # ------------------------------------------------------------------
    # Authoring helpers
    # ------------------------------------------------------------------

    @staticmethod
    def recommended_model(use_case: str) -> str:
        """Short UI feedback goes to the cheaper provider."""
        return "google-tts" if use_case == "ui_feedback" else "openai-tts"

    @staticmethod
    def recommended_voice(role: str) -> dict[str, str]:
        voices = {
            "narrator": {"voice_gender": "neutral", "voice_tone": "epic", "voice_pace": "normal"},
            "character": {"voice_gender": "feminine", "voice_tone": "mysterious", "voice_pace": "normal"},
            "system": {"voice_gender": "neutral", "voice_tone": "calm", "voice_pace": "normal"},
        }
        return dict(voices.get(role, voices["narrator"]))
