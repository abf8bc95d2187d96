from __future__ import annotations

from abc import ABC, abstractmethod

from tossup_trainer.models import Bonus, QueryFilters, Tossup


class QuestionSource(ABC):
    """Supplies batches of questions. Failures must come back as []."""

    @abstractmethod
    async def fetch_tossups(self, filters: QueryFilters) -> list[Tossup]:
        ...

    @abstractmethod
    async def fetch_bonuses(self, filters: QueryFilters) -> list[Bonus]:
        ...

    @abstractmethod
    def name(self) -> str:
        ...
