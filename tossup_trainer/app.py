"""FastAPI application with all routes."""
from __future__ import annotations

import logging
import os

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request

from tossup_trainer.config import Settings, check_setting, load_settings, save_settings
from tossup_trainer.db import Database
from tossup_trainer.judge import Judge
from tossup_trainer.providers.base import QuestionSource
from tossup_trainer.reader import BonusReader, InvalidTransitionError, TossupReader

app = FastAPI(title="Tossup Trainer")

# Global state (initialized in startup)
_db: Database | None = None
_settings: Settings | None = None
_tossups: TossupReader | None = None
_bonuses: BonusReader | None = None

FILTER_KEYS = {"categories", "subcategories", "difficulties", "text_filter", "answer_filter"}


def get_db() -> Database | None:
    return _db


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def get_tossup_reader() -> TossupReader:
    assert _tossups is not None
    return _tossups


def get_bonus_reader() -> BonusReader:
    assert _bonuses is not None
    return _bonuses


def _get_source(s: Settings) -> QuestionSource:
    path = s.questions_full_path
    if path is not None:
        from tossup_trainer.providers.source_file import JsonFileQuestionSource
        return JsonFileQuestionSource(path)
    from tossup_trainer.providers.source_http import HttpQuestionSource
    return HttpQuestionSource(s.api_url, timeout=s.request_timeout)


def _record_tossup(result) -> None:
    db = get_db()
    if db is not None:
        db.record_tossup_result(result)


def _record_bonus(result) -> None:
    db = get_db()
    if db is not None:
        db.record_bonus_result(result)


def init_state(settings: Settings, source: QuestionSource, db: Database | None) -> None:
    """Wire up the readers. Called by startup() and directly by tests."""
    global _db, _settings, _tossups, _bonuses
    _settings = settings
    _db = db
    _tossups = TossupReader(source, settings, on_result=_record_tossup)
    _bonuses = BonusReader(source, settings, on_result=_record_bonus)


@app.on_event("startup")
async def startup():
    if _settings is not None:
        return  # Already initialized (e.g. by tests)
    settings = load_settings()
    db = None if os.environ.get("TOSSUP_TRAINER_NO_HISTORY") else Database(settings.db_full_path)
    source = _get_source(settings)
    logging.getLogger("tossup_trainer.app").info("Question source: %s", source.name())
    init_state(settings, source, db)


@app.on_event("shutdown")
async def shutdown():
    if _tossups:
        await _tossups.close()
    if _bonuses:
        await _bonuses.close()
    if _db:
        _db.close()


async def _body(request: Request) -> dict:
    if not await request.body():
        return {}
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(400, "Invalid JSON")
    if not isinstance(body, dict):
        raise HTTPException(400, "Expected a JSON object")
    return body


def _answer_from(body: dict) -> str:
    answer = body.get("answer")
    if not isinstance(answer, str):
        raise HTTPException(400, "No answer provided")
    return answer


# ── API: Tossups ──────────────────────────────────────────────────────────

@app.get("/api/tossup/state")
async def api_tossup_state():
    return get_tossup_reader().state.to_dict()


@app.post("/api/tossup/next")
async def api_tossup_next():
    reader = get_tossup_reader()
    try:
        state = await reader.next_question()
    except InvalidTransitionError as e:
        raise HTTPException(409, str(e))
    return state.to_dict()


@app.post("/api/tossup/buzz")
async def api_tossup_buzz():
    reader = get_tossup_reader()
    try:
        state = reader.buzz()
    except InvalidTransitionError as e:
        raise HTTPException(409, str(e))
    return state.to_dict()


@app.post("/api/tossup/answer")
async def api_tossup_answer(request: Request):
    answer = _answer_from(await _body(request))
    reader = get_tossup_reader()
    try:
        verdict = reader.submit(answer)
    except InvalidTransitionError as e:
        raise HTTPException(409, str(e))
    return {"verdict": verdict.to_dict(), "state": reader.state.to_dict()}


@app.get("/api/tossup/results")
async def api_tossup_results():
    state = get_tossup_reader().state
    return {
        "score": state.score,
        "results": [r.to_dict() for r in state.results],
    }


# ── API: Bonuses ──────────────────────────────────────────────────────────

@app.get("/api/bonus/state")
async def api_bonus_state():
    return get_bonus_reader().state.to_dict()


@app.post("/api/bonus/next")
async def api_bonus_next():
    reader = get_bonus_reader()
    try:
        state = await reader.next_bonus()
    except InvalidTransitionError as e:
        raise HTTPException(409, str(e))
    return state.to_dict()


@app.post("/api/bonus/answer")
async def api_bonus_answer(request: Request):
    answer = _answer_from(await _body(request))
    reader = get_bonus_reader()
    try:
        verdict = reader.submit(answer)
    except InvalidTransitionError as e:
        raise HTTPException(409, str(e))
    return {"verdict": verdict.to_dict(), "state": reader.state.to_dict()}


# ── API: Judging ──────────────────────────────────────────────────────────

@app.post("/api/parse")
async def api_parse(request: Request):
    body = await _body(request)
    answerline = body.get("answerline", "")
    if not answerline:
        raise HTTPException(400, "No answerline provided")
    return Judge.from_answerline(answerline).answers.to_dict()


@app.post("/api/judge")
async def api_judge(request: Request):
    """Judge one or more answers in sequence against an answerline."""
    body = await _body(request)
    answerline = body.get("answerline", "")
    if not answerline:
        raise HTTPException(400, "No answerline provided")
    answers = body.get("answers")
    if answers is None:
        answers = [_answer_from(body)]
    if not isinstance(answers, list) or not all(isinstance(a, str) for a in answers):
        raise HTTPException(400, "answers must be a list of strings")

    judge = Judge.from_answerline(answerline)
    verdicts = [judge.judge(a).to_dict() for a in answers]
    return {"verdicts": verdicts, "answers": judge.answers.to_dict()}


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await _body(request)
    s = get_settings()
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    updates = {k: v for k, v in body.items() if k in known}
    try:
        for k, v in updates.items():
            check_setting(k, v)
    except ValueError as e:
        raise HTTPException(400, str(e))

    for k, v in updates.items():
        setattr(s, k, v)
    save_settings(s)

    if FILTER_KEYS & updates.keys():
        filters = s.to_filters()
        get_tossup_reader().apply_filters(filters)
        get_bonus_reader().apply_filters(filters)
    return s.to_dict()


# ── API: History ──────────────────────────────────────────────────────────

@app.get("/api/stats")
async def api_stats():
    db = get_db()
    if db is None:
        raise HTTPException(404, "History is disabled")
    stats = db.get_stats()
    stats["session_score"] = get_tossup_reader().state.score + get_bonus_reader().state.score
    return stats


@app.get("/api/history")
async def api_history(limit: int = 20):
    db = get_db()
    if db is None:
        raise HTTPException(404, "History is disabled")
    return {
        "tossups": db.get_tossup_history(limit=limit),
        "bonuses": db.get_bonus_history(limit=limit),
    }
