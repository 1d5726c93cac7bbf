"""Rate limiter for asset generation requests, per resource class."""

from __future__ import annotations

import asyncio
import os
import time
from collections import deque
from typing import Optional

from dotenv import load_dotenv

from tetraspore.errors import RateLimitError
from tetraspore.utils.logging import get_logger

load_dotenv()

logger = get_logger("infrastructure.rate_limiter")

IMAGE_GENERATION = "image_generation"
TTS_GENERATION = "tts_generation"


class ResourceRateLimiter:
    """Sliding-window limiter with a minimum delay between admissions.

    Each resource class (``image_generation``, ``tts_generation``) has its
    own window. ``acquire`` waits out the minimum delay, and raises
    ``RateLimitError`` with a ``retry_after`` hint when the window is full.
    """

    def __init__(
        self,
        max_requests: Optional[int] = None,
        window_seconds: Optional[float] = None,
        min_delay: Optional[float] = None,
    ):
        """Initialize the rate limiter.

        Args:
            max_requests: Requests admitted per window per resource (default: 100, or TETRASPORE_RATE_LIMIT_MAX_REQUESTS env var)
            window_seconds: Window length in seconds (default: 60, or TETRASPORE_RATE_LIMIT_WINDOW env var)
            min_delay: Minimum delay between requests to one resource in seconds (default: 0, or TETRASPORE_RATE_LIMIT_MIN_DELAY env var)
        """
        self.max_requests = max_requests if max_requests is not None else int(
            os.getenv("TETRASPORE_RATE_LIMIT_MAX_REQUESTS", "100")
        )
        self.window_seconds = window_seconds if window_seconds is not None else float(
            os.getenv("TETRASPORE_RATE_LIMIT_WINDOW", "60")
        )
        self.min_delay = min_delay if min_delay is not None else float(
            os.getenv("TETRASPORE_RATE_LIMIT_MIN_DELAY", "0")
        )

        self._windows: dict[str, deque[float]] = {}
        self._last_request_time: dict[str, float] = {}

        # Lock is created lazily so the limiter is not bound to the loop that built it
        self._lock: Optional[asyncio.Lock] = None
        self._loop_id: Optional[int] = None

        logger.debug(
            f"ResourceRateLimiter initialized: max_requests={self.max_requests}, "
            f"window={self.window_seconds}s, min_delay={self.min_delay}s"
        )

    def _get_lock(self) -> asyncio.Lock:
        loop_id = id(asyncio.get_running_loop())
        if self._lock is None or self._loop_id != loop_id:
            self._lock = asyncio.Lock()
            self._loop_id = loop_id
        return self._lock

    def _prune(self, resource: str, now: float) -> deque[float]:
        window = self._windows.setdefault(resource, deque())
        while window and now - window[0] >= self.window_seconds:
            window.popleft()
        return window

    async def acquire(self, resource: str) -> None:
        """Admit one request for ``resource``.

        Raises:
            RateLimitError: The window for ``resource`` is exhausted.
        """
        async with self._get_lock():
            window = self._prune(resource, time.monotonic())
            if len(window) >= self.max_requests:
                retry_after = max(self.window_seconds - (time.monotonic() - window[0]), 0.0)
                logger.warning(f"Rate limit reached for {resource}, retry after {retry_after:.1f}s")
                raise RateLimitError(
                    f"Rate limit exceeded for {resource}",
                    retry_after=retry_after,
                )

            last = self._last_request_time.get(resource)
            if last is not None and self.min_delay > 0:
                elapsed = time.monotonic() - last
                if elapsed < self.min_delay:
                    await asyncio.sleep(self.min_delay - elapsed)

            now = time.monotonic()
            window.append(now)
            self._last_request_time[resource] = now

    def count(self, resource: str) -> int:
        """Requests admitted for ``resource`` in the current window."""
        return len(self._prune(resource, time.monotonic()))

    def reset(self, resource: str | None = None) -> None:
        if resource is None:
            self._windows.clear()
            self._last_request_time.clear()
        else:
            self._windows.pop(resource, None)
            self._last_request_time.pop(resource, None)
