"""Tests for the reveal timer."""
from __future__ import annotations

import asyncio

import pytest

from tossup_trainer.timer import MAX_WORD_DELAY, MIN_WORD_DELAY, RevealTimer, reading_delay


class TestReadingDelay:
    def test_bounds(self):
        assert reading_delay(0) == MAX_WORD_DELAY
        assert reading_delay(100) == pytest.approx(MIN_WORD_DELAY)

    def test_clamped(self):
        assert reading_delay(-10) == MAX_WORD_DELAY
        assert reading_delay(500) == pytest.approx(MIN_WORD_DELAY)

    def test_faster_is_shorter(self):
        assert reading_delay(80) < reading_delay(20)


class TestRevealTimer:
    @pytest.mark.asyncio
    async def test_fires(self):
        fired = []
        timer = RevealTimer()
        timer.schedule(0.01, lambda: fired.append(1))
        assert timer.pending
        await asyncio.sleep(0.05)
        assert fired == [1]
        assert not timer.pending

    @pytest.mark.asyncio
    async def test_cancel_prevents_step(self):
        fired = []
        timer = RevealTimer()
        timer.schedule(0.01, lambda: fired.append(1))
        assert timer.cancel() is True
        await asyncio.sleep(0.05)
        assert fired == []

    @pytest.mark.asyncio
    async def test_cancel_idempotent(self):
        timer = RevealTimer()
        timer.schedule(0.01, lambda: None)
        assert timer.cancel() is True
        assert timer.cancel() is False

    @pytest.mark.asyncio
    async def test_reschedule_replaces_pending(self):
        fired = []
        timer = RevealTimer()
        timer.schedule(0.01, lambda: fired.append("old"))
        timer.schedule(0.01, lambda: fired.append("new"))
        await asyncio.sleep(0.05)
        assert fired == ["new"]

    @pytest.mark.asyncio
    async def test_stale_fire_ignored(self):
        fired = []
        timer = RevealTimer()
        timer.schedule(0.01, lambda: fired.append(1))
        generation = timer._generation
        timer.cancel()
        # A step that was already dequeued when cancel() ran
        timer._fire(generation, lambda: fired.append(1))
        assert fired == []
