"""Provider price table shared by executors and the cost tracker."""

from __future__ import annotations

# USD per generated image
IMAGE_PRICES: dict[str, float] = {
    "flux-schnell": 0.0,
    "sdxl": 0.009,
}

# USD per million characters synthesized
TTS_PRICES_PER_MILLION_CHARS: dict[str, float] = {
    "openai-tts": 15.0,
    "google-tts": 4.0,
}


def unit_price(asset_type: str, model: str) -> float | None:
    """Price of one unit (an image, or one character of speech), None if unknown."""
    if asset_type == "image":
        return IMAGE_PRICES.get(model)
    if asset_type == "tts":
        per_million = TTS_PRICES_PER_MILLION_CHARS.get(model)
        return None if per_million is None else per_million / 1_000_000
    return None


def price(asset_type: str, model: str, units: float) -> float:
    """Cost of ``units`` units; unknown models cost nothing."""
    per_unit = unit_price(asset_type, model)
    return 0.0 if per_unit is None else per_unit * units
