"""Cutscene assembler (``asset_cutscene``).

A cutscene generates nothing itself: it resolves the images and narration
its shots reference into a playable ``CutsceneDefinition`` and stores that
as JSON.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from tetraspore.actions.models import ANIMATIONS, AssetCutsceneAction
from tetraspore.errors import AssetGenerationError
from tetraspore.executors.base import BaseAssetExecutor, ExecutionContext, required
from tetraspore.executors.models import (
    AssetMetadata,
    AssetResult,
    CostEstimate,
    CutsceneDefinition,
    CutsceneDefinitionShot,
    ExecutorValidationResult,
    FieldError,
)

MAX_SHOTS = 50
MAX_SHOT_DURATION = 30.0
MAX_TOTAL_DURATION = 300.0

# Pacing guidance, in seconds
MIN_COMFORTABLE_SHOT = 2.0
MAX_COMFORTABLE_SHOT = 15.0
MIN_AVERAGE_SHOT = 3.0
MAX_AVERAGE_SHOT = 10.0


def pacing_warnings(definition: CutsceneDefinition) -> list[str]:
    """Timing problems worth flagging; none of them block assembly."""
    warnings = []
    for index, shot in enumerate(definition.shots):
        if shot.audio_duration > shot.duration:
            warnings.append(
                f"Shot {index}: narration ({shot.audio_duration:g}s) is longer than the shot ({shot.duration:g}s)"
            )
        elif 0 < shot.audio_duration < shot.duration / 2:
            warnings.append(
                f"Shot {index}: narration ({shot.audio_duration:g}s) covers less than half of the shot ({shot.duration:g}s)"
            )
        if shot.duration < MIN_COMFORTABLE_SHOT:
            warnings.append(f"Shot {index}: very short duration ({shot.duration:g}s)")
        if shot.duration > MAX_COMFORTABLE_SHOT:
            warnings.append(f"Shot {index}: very long duration ({shot.duration:g}s)")

    if definition.shots:
        average = definition.total_duration / len(definition.shots)
        if average < MIN_AVERAGE_SHOT:
            warnings.append(f"Average shot duration {average:.1f}s may feel rushed")
        elif average > MAX_AVERAGE_SHOT:
            warnings.append(f"Average shot duration {average:.1f}s may feel slow")
    return warnings


class CutsceneAssetExecutor(BaseAssetExecutor):
    action_type = "asset_cutscene"

    def validate(self, action: BaseModel) -> ExecutorValidationResult:
        errors: list[FieldError] = []
        errors += required(getattr(action, "id", None), "id")

        shots = getattr(action, "shots", None) or []
        if not shots:
            errors.append(FieldError(field="shots", message="cutscene must have at least one shot", code="required"))
        if len(shots) > MAX_SHOTS:
            errors.append(FieldError(
                field="shots",
                message=f"cutscene must not have more than {MAX_SHOTS} shots",
                code="too_many",
            ))

        total = 0.0
        for index, shot in enumerate(shots):
            prefix = f"shots[{index}]"
            errors += required(getattr(shot, "image_id", None), f"{prefix}.image_id")
            errors += required(getattr(shot, "subtitle_id", None), f"{prefix}.subtitle_id")

            duration = getattr(shot, "duration", None)
            if not isinstance(duration, (int, float)) or duration <= 0:
                errors.append(FieldError(
                    field=f"{prefix}.duration",
                    message="duration must be a positive number",
                    code="invalid_value",
                ))
            else:
                total += duration
                if duration > MAX_SHOT_DURATION:
                    errors.append(FieldError(
                        field=f"{prefix}.duration",
                        message=f"duration must be at most {MAX_SHOT_DURATION:g} seconds",
                        code="too_long",
                    ))

            if getattr(shot, "animation", None) not in ANIMATIONS:
                errors.append(FieldError(
                    field=f"{prefix}.animation",
                    message=f"animation must be one of: {', '.join(ANIMATIONS)}",
                    code="invalid_enum",
                ))

        if shots and total == 0:
            errors.append(FieldError(field="shots", message="total duration must be positive", code="invalid_value"))
        if total > MAX_TOTAL_DURATION:
            errors.append(FieldError(
                field="shots",
                message=f"total duration must not exceed {MAX_TOTAL_DURATION:g} seconds",
                code="too_long",
            ))
        return ExecutorValidationResult.from_errors(errors)

    def estimate_cost(self, action: BaseModel) -> CostEstimate:
        return CostEstimate(min=0.0, max=0.0)

    async def generate(self, action: BaseModel, context: ExecutionContext) -> AssetResult:
        storage = context.storage

        missing = []
        for shot in action.shots:
            if not await storage.exists(shot.image_id):
                missing.append(f"image: {shot.image_id}")
            if not await storage.exists(shot.subtitle_id):
                missing.append(f"subtitle: {shot.subtitle_id}")
        if missing:
            raise AssetGenerationError(
                f"Missing referenced assets: {', '.join(missing)}",
                action=action,
                retryable=False,
                details={"missing": missing},
            )

        shots = []
        for shot in action.shots:
            shots.append(CutsceneDefinitionShot(
                image_url=await storage.get_url(shot.image_id),
                audio_url=await storage.get_url(shot.subtitle_id),
                duration=shot.duration,
                animation=shot.animation,
                audio_duration=await storage.get_duration(shot.subtitle_id) or 0.0,
            ))
        definition = CutsceneDefinition(
            id=action.id,
            shots=shots,
            total_duration=sum(shot.duration for shot in shots),
        )

        warnings = pacing_warnings(definition)
        for warning in warnings:
            self.logger.warning(f"Cutscene '{action.id}': {warning}")

        stored = await storage.store_json(
            definition.model_dump(mode="json"),
            AssetMetadata(id=action.id, type="cutscene", format="json", duration=definition.total_duration),
        )

        return AssetResult(
            id=action.id,
            url=stored.url,
            cost=0.0,
            duration=definition.total_duration,
            metadata={
                **self.create_base_metadata(action),
                "total_duration": definition.total_duration,
                "shot_count": len(shots),
                "shots": [shot.model_dump(mode="json") for shot in shots],
                "warnings": warnings,
            },
        )

    # ------------------------------------------------------------------
    # Authoring helpers
    # ------------------------------------------------------------------

    @staticmethod
    def analyze_cutscene(definition: CutsceneDefinition) -> dict[str, Any]:
        shot_count = len(definition.shots)
        animations: dict[str, int] = {}
        for shot in definition.shots:
            animations[shot.animation] = animations.get(shot.animation, 0) + 1
        return {
            "total_duration": definition.total_duration,
            "shot_count": shot_count,
            "average_shot_duration": definition.total_duration / shot_count if shot_count else 0.0,
            "animation_breakdown": animations,
            "timing_issues": pacing_warnings(definition),
        }

    @staticmethod
    def optimize_cutscene(action: AssetCutsceneAction) -> AssetCutsceneAction:
        """Clamp shot durations to the comfortable range and liven up animations.

        Short static shots get a fade; long fades become a pan.
        """
        shots = []
        for shot in action.shots:
            duration = min(max(shot.duration, MIN_COMFORTABLE_SHOT), MAX_COMFORTABLE_SHOT)
            animation = shot.animation
            if duration < 3 and animation == "none":
                animation = "fade"
            elif duration > 10 and animation == "fade":
                animation = "pan_left"
            shots.append(shot.model_copy(update={"duration": duration, "animation": animation}))
        return action.model_copy(update={"shots": shots})

    @staticmethod
    def validate_accessibility(definition: CutsceneDefinition) -> dict[str, Any]:
        has_audio = all(shot.audio_url for shot in definition.shots)
        has_visuals = all(shot.image_url for shot in definition.shots)
        average = definition.total_duration / len(definition.shots) if definition.shots else 0.0

        suggestions = []
        if not has_audio:
            suggestions.append("Add narration for players who cannot see the visuals")
        if not has_visuals:
            suggestions.append("Add visuals for players who cannot hear the narration")
        if average < MIN_AVERAGE_SHOT:
            suggestions.append("Shot durations may be too short for comfortable reading")
        return {
            "has_audio": has_audio,
            "has_visuals": has_visuals,
            "average_reading_time": average,
            "suggestions": suggestions,
        }
