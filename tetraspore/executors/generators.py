"""
Generation back ends.

Executors talk to providers through the ``ImageGenerator`` and
``SpeechSynthesizer`` protocols. The simulated implementations here stand in
for real providers: they wait a configurable latency, can inject transient
failures, and return deterministic placeholder bytes.
"""

from __future__ import annotations

import asyncio
import hashlib
import random
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from tetraspore.errors import ProviderError
from tetraspore.utils.logging import get_logger

logger = get_logger("executors.generators")

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
MP3_FRAME_HEADER = b"\xff\xfb\x90\x64"


@dataclass(frozen=True)
class GeneratedImage:
    data: bytes
    width: int
    height: int
    format: str = "png"


@dataclass(frozen=True)
class VoiceSettings:
    voice: str
    speed: float
    pitch: float


@dataclass(frozen=True)
class GeneratedAudio:
    data: bytes
    format: str = "mp3"
    sample_rate: int = 22050


@runtime_checkable
class ImageGenerator(Protocol):
    async def generate(self, prompt: str, size: str, model: str) -> GeneratedImage:
        ...


@runtime_checkable
class SpeechSynthesizer(Protocol):
    async def synthesize(self, text: str, voice: VoiceSettings, model: str) -> GeneratedAudio:
        ...


def parse_size(size: str) -> tuple[int, int]:
    """``"1024x768"`` -> ``(1024, 768)``."""
    width, height = size.lower().split("x")
    return int(width), int(height)


class _SimulatedProvider:
    def __init__(self, latency: float = 0.0, failure_rate: float = 0.0, seed: int | None = None):
        self.latency = latency
        self.failure_rate = failure_rate
        self.calls = 0
        self._random = random.Random(seed)

    async def _simulate_call(self, name: str) -> None:
        self.calls += 1
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        if self.failure_rate > 0 and self._random.random() < self.failure_rate:
            logger.debug(f"Simulated transient failure from {name}")
            raise ProviderError(f"{name} temporarily unavailable", status_code=503)


class SimulatedImageGenerator(_SimulatedProvider):
    """Returns a PNG-signed placeholder derived from the request."""

    async def generate(self, prompt: str, size: str, model: str) -> GeneratedImage:
        await self._simulate_call(f"image provider ({model})")
        width, height = parse_size(size)
        digest = hashlib.sha256(f"{model}|{size}|{prompt}".encode("utf-8")).digest()
        return GeneratedImage(data=PNG_SIGNATURE + digest, width=width, height=height)


class SimulatedSpeechSynthesizer(_SimulatedProvider):
    """Returns an MP3-framed placeholder derived from the request."""

    async def synthesize(self, text: str, voice: VoiceSettings, model: str) -> GeneratedAudio:
        await self._simulate_call(f"speech provider ({model})")
        key = f"{model}|{voice.voice}|{voice.speed}|{voice.pitch}|{text}"
        digest = hashlib.sha256(key.encode("utf-8")).digest()
        return GeneratedAudio(data=MP3_FRAME_HEADER + digest)
