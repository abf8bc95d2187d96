"""Serve questions from a local JSON dump of the question API.

The file holds {"tossups": [...], "bonuses": [...]} with records in the
API's shape. Batches are handed out in file order, so a session walks the
dump once and then reports an empty batch.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

from tossup_trainer.models import Bonus, QueryFilters, Tossup
from tossup_trainer.parsers.question_parser import bonus_from_record, tossup_from_record
from tossup_trainer.providers.base import QuestionSource

log = logging.getLogger("tossup_trainer.source")


def _text_matches(needle: str, haystack: str) -> bool:
    return not needle or needle.lower() in haystack.lower()


class JsonFileQuestionSource(QuestionSource):
    def __init__(self, path: Path):
        self.path = Path(path)
        self._tossup_cursor = 0
        self._bonus_cursor = 0

    def _load(self, key: str) -> list[dict]:
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as e:
            log.warning("Could not read %s: %s", self.path, e)
            return []
        records = data.get(key, []) if isinstance(data, dict) else []
        return [r for r in records if isinstance(r, dict)]

    async def fetch_tossups(self, filters: QueryFilters) -> list[Tossup]:
        tossups = [
            tu for tu in map(tossup_from_record, self._load("tossups"))
            if tu is not None
            and filters.matches(tu)
            and _text_matches(filters.text, tu.text)
            and _text_matches(filters.answer, tu.answer)
        ]
        start = self._tossup_cursor + filters.offset
        batch = tossups[start:start + filters.limit]
        self._tossup_cursor += len(batch)
        return batch

    async def fetch_bonuses(self, filters: QueryFilters) -> list[Bonus]:
        bonuses = [
            b for b in map(bonus_from_record, self._load("bonuses"))
            if b is not None
            and filters.matches(b)
            and _text_matches(filters.text, " ".join([b.leadin] + [p.text for p in b.parts]))
            and _text_matches(filters.answer, " ".join(p.answer for p in b.parts))
        ]
        start = self._bonus_cursor + filters.offset
        batch = bonuses[start:start + filters.limit]
        self._bonus_cursor += len(batch)
        return batch

    def name(self) -> str:
        return f"file/{self.path.name}"
