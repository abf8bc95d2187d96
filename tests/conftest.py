"""Shared test fixtures."""
from __future__ import annotations

import pytest

from tossup_trainer.db import Database
from tossup_trainer.models import Bonus, BonusPart, QueryFilters, Tossup
from tossup_trainer.providers.base import QuestionSource


class FakeSource(QuestionSource):
    """In-memory question source that hands out fixed-size batches in order."""

    def __init__(self, tossups=(), bonuses=(), batch_size: int = 10):
        self.tossups = list(tossups)
        self.bonuses = list(bonuses)
        self.batch_size = batch_size
        self.tossup_calls = 0
        self.bonus_calls = 0
        self.last_filters: QueryFilters | None = None

    async def fetch_tossups(self, filters: QueryFilters) -> list[Tossup]:
        self.tossup_calls += 1
        self.last_filters = filters
        batch = [t for t in self.tossups if filters.matches(t)][:self.batch_size]
        for t in batch:
            self.tossups.remove(t)
        return batch

    async def fetch_bonuses(self, filters: QueryFilters) -> list[Bonus]:
        self.bonus_calls += 1
        self.last_filters = filters
        batch = [b for b in self.bonuses if filters.matches(b)][:self.batch_size]
        for b in batch:
            self.bonuses.remove(b)
        return batch

    def name(self) -> str:
        return "fake"


def make_tossup(n_words: int = 10, power_words: int = 0, answer: str = "Napoleon",
                category: int | None = 1, tag: str = "") -> Tossup:
    words = [f"w{tag}{i}" for i in range(n_words)]
    if power_words:
        formatted = "<b>" + " ".join(words[:power_words]) + "</b> " + " ".join(words[power_words:])
    else:
        formatted = " ".join(words)
    return Tossup(
        text=" ".join(words),
        answer=answer,
        formatted_text=formatted,
        formatted_answer=answer,
        category=category,
        tournament="Test Open",
    )


@pytest.fixture
def tmp_db(tmp_path):
    """Create a fresh temporary database."""
    db = Database(tmp_path / "test.db")
    yield db
    db.close()


@pytest.fixture
def napoleon_line():
    return (
        "<b>Napoleon</b> Bonaparte [accept Napoleon I; prompt on "
        "<u>Bonaparte</u>; do not accept \"Louis Napoleon\"] <ED, Packet 4>"
    )


@pytest.fixture
def sample_tossup():
    return make_tossup(n_words=10, power_words=4)


@pytest.fixture
def sample_bonus():
    return Bonus(
        leadin="For 10 points each, name these French rulers.",
        parts=(
            BonusPart("This emperor lost at Waterloo.", "<b>Napoleon</b> Bonaparte"),
            BonusPart("This Sun King built Versailles.", "<b>Louis XIV</b> [accept Louis the Fourteenth]"),
            BonusPart("This Frankish king was crowned in 800.", "<b>Charlemagne</b>"),
        ),
        category=1,
        tournament="Test Open",
    )
