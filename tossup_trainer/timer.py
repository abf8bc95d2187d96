"""Cancellable single-step timer driving the word-by-word reveal."""
from __future__ import annotations

import asyncio
from collections.abc import Callable

MAX_WORD_DELAY = 0.8  # seconds per word at reading speed 0
MIN_WORD_DELAY = 0.05  # seconds per word at reading speed 100


def reading_delay(reading_speed: int) -> float:
    """Map a 0-100 reading speed to seconds per word (faster = shorter)."""
    speed = max(0, min(100, int(reading_speed)))
    return MAX_WORD_DELAY - (MAX_WORD_DELAY - MIN_WORD_DELAY) * speed / 100


class RevealTimer:
    """At most one pending step; a cancelled step never runs.

    Every schedule/cancel bumps a generation counter and a firing step
    checks its generation before calling back, so a step that was already
    queued on the loop when cancel() ran is still a no-op.
    """

    def __init__(self):
        self._handle: asyncio.TimerHandle | None = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(delay, self._fire, self._generation, callback)

    def cancel(self) -> bool:
        """Cancel the pending step. Returns False if nothing was pending."""
        self._generation += 1
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _fire(self, generation: int, callback: Callable[[], None]) -> None:
        if generation != self._generation:
            return
        self._handle = None
        callback()
