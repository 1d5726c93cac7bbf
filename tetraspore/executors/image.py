"""Image asset executor (``asset_image``)."""

from __future__ import annotations

from pydantic import BaseModel

from tetraspore.actions.models import IMAGE_MODELS, IMAGE_SIZES
from tetraspore.errors import AssetGenerationError
from tetraspore.executors.base import BaseAssetExecutor, ExecutionContext, one_of, required
from tetraspore.executors.generators import ImageGenerator, SimulatedImageGenerator
from tetraspore.executors.models import (
    AssetMetadata,
    AssetResult,
    CostEstimate,
    ExecutorValidationResult,
    FieldError,
)
from tetraspore.executors.pricing import IMAGE_PRICES
from tetraspore.infrastructure.rate_limiter import IMAGE_GENERATION

MAX_PROMPT_LENGTH = 1000

BLOCKED_TERMS = (
    "violence", "violent", "gore", "blood", "nude", "naked",
    "nsfw", "sexual", "hate", "racist", "discrimination",
)

QUALITY_MODIFIERS = (
    "high quality",
    "detailed",
    "cinematic lighting",
    "professional photography",
)

# Which API key each model needs
MODEL_API_KEYS = {
    "flux-schnell": "flux",
    "sdxl": "replicate",
}


def enhance_prompt(prompt: str) -> str:
    """Append quality modifiers unless the prompt already carries one."""
    lowered = prompt.lower()
    if any(modifier in lowered for modifier in QUALITY_MODIFIERS):
        return prompt
    return f"{prompt}, {', '.join(QUALITY_MODIFIERS)}"


class ImageAssetExecutor(BaseAssetExecutor):
    """Generates images through an ``ImageGenerator``."""

    action_type = "asset_image"
    resource_class = IMAGE_GENERATION

    def __init__(self, generator: ImageGenerator | None = None, **kwargs):
        super().__init__(**kwargs)
        self.generator = generator or SimulatedImageGenerator()

    def validate(self, action: BaseModel) -> ExecutorValidationResult:
        errors: list[FieldError] = []
        errors += required(getattr(action, "id", None), "id")
        prompt = getattr(action, "prompt", None)
        errors += required(prompt, "prompt")
        errors += one_of(getattr(action, "size", None), IMAGE_SIZES, "size")
        errors += one_of(getattr(action, "model", None), IMAGE_MODELS, "model")

        if isinstance(prompt, str):
            if len(prompt) > MAX_PROMPT_LENGTH:
                errors.append(FieldError(
                    field="prompt",
                    message=f"prompt must be at most {MAX_PROMPT_LENGTH} characters",
                    code="too_long",
                ))
            lowered = prompt.lower()
            blocked = [term for term in BLOCKED_TERMS if term in lowered]
            if blocked:
                errors.append(FieldError(
                    field="prompt",
                    message=f"prompt contains blocked content: {', '.join(blocked)}",
                    code="content_policy",
                ))
        return ExecutorValidationResult.from_errors(errors)

    def estimate_cost(self, action: BaseModel) -> CostEstimate:
        cost = IMAGE_PRICES.get(action.model, 0.0)
        return CostEstimate(min=cost, max=cost)

    async def generate(self, action: BaseModel, context: ExecutionContext) -> AssetResult:
        key_name = MODEL_API_KEYS.get(action.model)
        if key_name is None:
            raise AssetGenerationError(f"Unsupported image model: {action.model}", action=action, retryable=False)
        self.require_api_keys(context, action, key_name)

        enhanced = enhance_prompt(action.prompt)
        image = await self.generator.generate(enhanced, action.size, action.model)

        stored = await context.storage.store(
            image.data,
            AssetMetadata(id=action.id, type="image", format=image.format),
        )
        cost = context.cost_tracker.record("image", action.model, 1).cost

        return AssetResult(
            id=action.id,
            url=stored.url,
            cost=cost,
            metadata={
                **self.create_base_metadata(action),
                "format": image.format,
                "width": image.width,
                "height": image.height,
                "model": action.model,
                "prompt": action.prompt,
                "enhanced_prompt": enhanced,
            },
        )

    # ------------------------------------------------------------------
    # Authoring helpers
    # ------------------------------------------------------------------

    @staticmethod
    def recommended_model(use_case: str) -> str:
        """``draft`` or ``preview`` favour the free model, anything else quality."""
        return "flux-schnell" if use_case in ("draft", "preview", "iteration") else "sdxl"

    @staticmethod
    def recommended_size(orientation: str) -> str:
        return {
            "landscape": "1024x768",
            "portrait": "768x1024",
            "square": "1024x1024",
        }.get(orientation, "1024x768")

    @staticmethod
    def sci_fi_prompt(base: str, theme: str = "evolution") -> str:
        styles = {
            "evolution": "primordial alien biosphere, bioluminescent organisms",
            "space": "deep space vista, nebulae, distant planets",
            "planet": "alien planetary surface, dramatic atmosphere",
        }
        return f"{base}, {styles.get(theme, styles['evolution'])}"
