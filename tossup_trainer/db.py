from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from tossup_trainer.models import BonusResult, TossupResult

log = logging.getLogger("tossup_trainer.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS tossup_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    answered_at TEXT NOT NULL,
    text TEXT NOT NULL,
    answer TEXT NOT NULL,
    category INTEGER,
    subcategory INTEGER,
    difficulty INTEGER,
    tournament TEXT,
    submitted_answer TEXT,
    verdict TEXT NOT NULL,
    rating REAL,
    score INTEGER NOT NULL,
    buzz_index INTEGER NOT NULL,
    word_count INTEGER NOT NULL,
    is_power INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS bonus_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    answered_at TEXT NOT NULL,
    leadin TEXT,
    answers_json TEXT NOT NULL,
    submitted_json TEXT NOT NULL,
    correct_json TEXT NOT NULL,
    category INTEGER,
    subcategory INTEGER,
    difficulty INTEGER,
    tournament TEXT,
    score INTEGER NOT NULL
);
"""


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    # ── Tossups ───────────────────────────────────────────────────────────

    def record_tossup_result(self, result: TossupResult) -> int:
        tu = result.tossup
        cur = self.conn.execute(
            "INSERT INTO tossup_results "
            "(answered_at, text, answer, category, subcategory, difficulty, tournament, "
            "submitted_answer, verdict, rating, score, buzz_index, word_count, is_power) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                datetime.now(timezone.utc).isoformat(),
                tu.text,
                tu.answer,
                tu.category,
                tu.subcategory,
                tu.difficulty,
                tu.tournament,
                result.submitted_answer,
                result.verdict.result.value,
                result.verdict.rating,
                result.score,
                result.buzz.index,
                len(result.buzz.words),
                int(result.buzz.is_power),
            ),
        )
        self.conn.commit()
        log.debug("Recorded tossup result %d (%+d)", cur.lastrowid, result.score)
        return cur.lastrowid

    def get_tossup_history(self, limit: int = 20) -> list[dict]:
        rows = self.conn.execute(
            "SELECT * FROM tossup_results ORDER BY id DESC LIMIT ?", (limit,)
        ).fetchall()
        return [dict(r) for r in rows]

    # ── Bonuses ───────────────────────────────────────────────────────────

    def record_bonus_result(self, result: BonusResult) -> int:
        b = result.bonus
        cur = self.conn.execute(
            "INSERT INTO bonus_results "
            "(answered_at, leadin, answers_json, submitted_json, correct_json, "
            "category, subcategory, difficulty, tournament, score) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                datetime.now(timezone.utc).isoformat(),
                b.leadin,
                json.dumps([p.answer for p in b.parts]),
                json.dumps([p.submitted_answer for p in result.parts]),
                json.dumps([p.is_correct for p in result.parts]),
                b.category,
                b.subcategory,
                b.difficulty,
                b.tournament,
                result.score,
            ),
        )
        self.conn.commit()
        return cur.lastrowid

    def get_bonus_history(self, limit: int = 20) -> list[dict]:
        rows = self.conn.execute(
            "SELECT * FROM bonus_results ORDER BY id DESC LIMIT ?", (limit,)
        ).fetchall()
        history = []
        for r in rows:
            d = dict(r)
            d["answers"] = json.loads(d.pop("answers_json"))
            d["submitted"] = json.loads(d.pop("submitted_json"))
            d["correct"] = json.loads(d.pop("correct_json"))
            history.append(d)
        return history

    # ── Stats ─────────────────────────────────────────────────────────────

    def get_stats(self) -> dict:
        tu = self.conn.execute(
            "SELECT COUNT(*) AS heard, "
            "COALESCE(SUM(score), 0) AS points, "
            "COALESCE(SUM(CASE WHEN score = 15 THEN 1 ELSE 0 END), 0) AS powers, "
            "COALESCE(SUM(CASE WHEN score = 10 THEN 1 ELSE 0 END), 0) AS tens, "
            "COALESCE(SUM(CASE WHEN score < 0 THEN 1 ELSE 0 END), 0) AS negs "
            "FROM tossup_results"
        ).fetchone()
        bonus = self.conn.execute(
            "SELECT COUNT(*) AS heard, COALESCE(SUM(score), 0) AS points FROM bonus_results"
        ).fetchone()

        heard = tu["heard"]
        correct = tu["powers"] + tu["tens"]
        return {
            "tossups_heard": heard,
            "tossup_points": tu["points"],
            "powers": tu["powers"],
            "tens": tu["tens"],
            "negs": tu["negs"],
            "accuracy": round(correct / heard * 100, 1) if heard else 0,
            "bonuses_heard": bonus["heard"],
            "bonus_points": bonus["points"],
            "points_per_bonus": round(bonus["points"] / bonus["heard"], 2) if bonus["heard"] else 0,
        }
