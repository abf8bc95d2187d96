from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from tossup_trainer.models import QueryFilters

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "api_url": "http://localhost:8000/api",
    "questions_file": "",
    "reading_speed": 50,
    "categories": [],
    "subcategories": [],
    "difficulties": [],
    "text_filter": "",
    "answer_filter": "",
    "batch_size": 10,
    "queue_low_water": 5,
    "request_timeout": 10.0,
    "db_path": "history.db",
}


@dataclass
class Settings:
    api_url: str = DEFAULTS["api_url"]
    questions_file: str = DEFAULTS["questions_file"]
    reading_speed: int = DEFAULTS["reading_speed"]
    categories: list[int] = field(default_factory=lambda: list(DEFAULTS["categories"]))
    subcategories: list[int] = field(default_factory=lambda: list(DEFAULTS["subcategories"]))
    difficulties: list[int] = field(default_factory=lambda: list(DEFAULTS["difficulties"]))
    text_filter: str = DEFAULTS["text_filter"]
    answer_filter: str = DEFAULTS["answer_filter"]
    batch_size: int = DEFAULTS["batch_size"]
    queue_low_water: int = DEFAULTS["queue_low_water"]
    request_timeout: float = DEFAULTS["request_timeout"]
    db_path: str = DEFAULTS["db_path"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def db_full_path(self) -> Path:
        return self.project_root / self.db_path

    @property
    def questions_full_path(self) -> Path | None:
        if not self.questions_file:
            return None
        return self.project_root / self.questions_file

    def to_filters(self) -> QueryFilters:
        return QueryFilters(
            categories=list(self.categories),
            subcategories=list(self.subcategories),
            difficulties=list(self.difficulties),
            text=self.text_filter,
            answer=self.answer_filter,
            limit=self.batch_size,
        )

    def to_dict(self) -> dict:
        return {
            "api_url": self.api_url,
            "questions_file": self.questions_file,
            "reading_speed": self.reading_speed,
            "categories": self.categories,
            "subcategories": self.subcategories,
            "difficulties": self.difficulties,
            "text_filter": self.text_filter,
            "answer_filter": self.answer_filter,
            "batch_size": self.batch_size,
            "queue_low_water": self.queue_low_water,
            "request_timeout": self.request_timeout,
            "db_path": self.db_path,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")


def check_setting(key: str, value) -> None:
    """Raise ValueError if *value* does not fit the type of setting *key*."""
    default = DEFAULTS[key]
    if value is None or isinstance(value, bool):
        ok = False
    elif isinstance(default, list):
        ok = isinstance(value, list) and all(
            isinstance(v, int) and not isinstance(v, bool) for v in value
        )
    elif isinstance(default, float):
        ok = isinstance(value, (int, float))
    else:
        ok = isinstance(value, type(default))
    if ok and key == "batch_size":
        ok = value >= 1
    if not ok:
        raise ValueError(f"Invalid value for {key}: {value!r}")
