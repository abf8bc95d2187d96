from __future__ import annotations

import logging
import time

import httpx

from tossup_trainer.models import Bonus, QueryFilters, Tossup
from tossup_trainer.parsers.question_parser import bonus_from_record, tossup_from_record
from tossup_trainer.providers.base import QuestionSource

log = logging.getLogger("tossup_trainer.source")


def build_params(filters: QueryFilters) -> list[tuple[str, str | int]]:
    """Query string in the API's array style: categories[]=1&categories[]=2."""
    params: list[tuple[str, str | int]] = []
    params += [("categories[]", c) for c in filters.categories]
    params += [("subcategories[]", c) for c in filters.subcategories]
    params += [("difficulties[]", d) for d in filters.difficulties]
    if filters.text:
        params.append(("text", filters.text))
    if filters.answer:
        params.append(("answer", filters.answer))
    params.append(("limit", filters.limit))
    params.append(("offset", filters.offset))
    return params


class HttpQuestionSource(QuestionSource):
    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def _get_records(self, path: str, filters: QueryFilters) -> list[dict]:
        log.info("Fetching %s.", path)
        t0 = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(f"{self.base_url}/{path}", params=build_params(filters))
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning("Fetching %s failed: %s", path, e)
            return []
        if not isinstance(data, list):
            log.warning("Unexpected %s payload: %s", path, type(data).__name__)
            return []
        log.info("Received %d %s (%.1fs).", len(data), path, time.monotonic() - t0)
        return [r for r in data if isinstance(r, dict)]

    async def fetch_tossups(self, filters: QueryFilters) -> list[Tossup]:
        records = await self._get_records("tossups", filters)
        return [tu for tu in map(tossup_from_record, records) if tu is not None]

    async def fetch_bonuses(self, filters: QueryFilters) -> list[Bonus]:
        records = await self._get_records("bonuses", filters)
        return [b for b in map(bonus_from_record, records) if b is not None]

    def name(self) -> str:
        return f"http/{self.base_url}"
