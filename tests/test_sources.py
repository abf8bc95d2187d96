"""Tests for the question sources."""
from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest

from tossup_trainer.models import QueryFilters
from tossup_trainer.providers.source_file import JsonFileQuestionSource
from tossup_trainer.providers.source_http import HttpQuestionSource, build_params

TOSSUP_RECORDS = [
    {"text": "First (*) question.", "answer": "Alpha", "category": 1},
    {"text": "Second (*) question.", "answer": "Beta", "category": 2},
    {"text": "Third (*) question about rivers.", "answer": "Gamma", "category": 1},
    {"text": "Broken record"},
]

BONUS_RECORDS = [
    {"leadin": "For 10 points each:", "parts": ["a", "b", "c"], "answers": ["A", "B", "C"], "category": 1},
    {"leadin": "Too short:", "parts": ["a"], "answers": ["A"]},
]


@pytest.fixture
def questions_file(tmp_path):
    path = tmp_path / "questions.json"
    path.write_text(json.dumps({"tossups": TOSSUP_RECORDS, "bonuses": BONUS_RECORDS}))
    return path


def _mock_client(handler):
    """Patch httpx.AsyncClient so every request goes to *handler*."""
    transport = httpx.MockTransport(handler)
    real_client = httpx.AsyncClient
    return patch(
        "httpx.AsyncClient",
        lambda **kw: real_client(transport=transport, **kw),
    )


class TestBuildParams:
    def test_array_style(self):
        params = build_params(QueryFilters(categories=[1, 2], difficulties=[3], limit=5))
        assert ("categories[]", 1) in params
        assert ("categories[]", 2) in params
        assert ("difficulties[]", 3) in params
        assert ("limit", 5) in params
        assert ("offset", 0) in params

    def test_text_filters_only_when_set(self):
        keys = [k for k, _ in build_params(QueryFilters())]
        assert "text" not in keys
        assert "answer" not in keys
        keys = [k for k, _ in build_params(QueryFilters(text="river", answer="nile"))]
        assert "text" in keys
        assert "answer" in keys


class TestJsonFileSource:
    @pytest.mark.asyncio
    async def test_skips_broken_records(self, questions_file):
        source = JsonFileQuestionSource(questions_file)
        tossups = await source.fetch_tossups(QueryFilters())
        assert [t.answer for t in tossups] == ["Alpha", "Beta", "Gamma"]

    @pytest.mark.asyncio
    async def test_batches_in_order(self, questions_file):
        source = JsonFileQuestionSource(questions_file)
        first = await source.fetch_tossups(QueryFilters(limit=2))
        second = await source.fetch_tossups(QueryFilters(limit=2))
        third = await source.fetch_tossups(QueryFilters(limit=2))
        assert [t.answer for t in first] == ["Alpha", "Beta"]
        assert [t.answer for t in second] == ["Gamma"]
        assert third == []

    @pytest.mark.asyncio
    async def test_filters(self, questions_file):
        source = JsonFileQuestionSource(questions_file)
        tossups = await source.fetch_tossups(QueryFilters(categories=[1], text="RIVERS"))
        assert [t.answer for t in tossups] == ["Gamma"]

    @pytest.mark.asyncio
    async def test_bonuses(self, questions_file):
        source = JsonFileQuestionSource(questions_file)
        bonuses = await source.fetch_bonuses(QueryFilters())
        assert len(bonuses) == 1
        assert bonuses[0].leadin == "For 10 points each:"

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        source = JsonFileQuestionSource(tmp_path / "missing.json")
        assert await source.fetch_tossups(QueryFilters()) == []

    def test_name(self, questions_file):
        assert JsonFileQuestionSource(questions_file).name() == "file/questions.json"


class TestHttpSource:
    @pytest.mark.asyncio
    async def test_fetch_tossups(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url)
            return httpx.Response(200, json=TOSSUP_RECORDS)

        source = HttpQuestionSource("http://qb.test/api/")
        with _mock_client(handler):
            tossups = await source.fetch_tossups(QueryFilters(categories=[1]))
        assert [t.answer for t in tossups] == ["Alpha", "Beta", "Gamma"]
        assert seen[0].path == "/api/tossups"
        assert seen[0].params.get_list("categories[]") == ["1"]

    @pytest.mark.asyncio
    async def test_fetch_bonuses(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=BONUS_RECORDS)

        source = HttpQuestionSource("http://qb.test/api")
        with _mock_client(handler):
            bonuses = await source.fetch_bonuses(QueryFilters())
        assert len(bonuses) == 1

    @pytest.mark.asyncio
    async def test_server_error_gives_empty_batch(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        source = HttpQuestionSource("http://qb.test/api")
        with _mock_client(handler):
            assert await source.fetch_tossups(QueryFilters()) == []

    @pytest.mark.asyncio
    async def test_connection_error_gives_empty_batch(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        source = HttpQuestionSource("http://qb.test/api")
        with _mock_client(handler):
            assert await source.fetch_tossups(QueryFilters()) == []

    @pytest.mark.asyncio
    async def test_bad_payload_gives_empty_batch(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"error": "nope"})

        source = HttpQuestionSource("http://qb.test/api")
        with _mock_client(handler):
            assert await source.fetch_tossups(QueryFilters()) == []

    def test_name(self):
        assert HttpQuestionSource("http://qb.test/api/").name() == "http/http://qb.test/api"
