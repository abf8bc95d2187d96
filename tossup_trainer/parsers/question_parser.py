"""Turn raw question records into Tossup/Bonus objects and readable words.

Records come from the question API (or a JSON dump of it):

  {"text": "...", "answer": "...", "formatted_text": "<b>...</b> ...",
   "formatted_answer": "...", "category": 1, "subcategory": 4,
   "difficulty": 3, "tournament": "..."}

Bonus records carry "leadin", "parts" and "answers" lists instead.
"""
from __future__ import annotations

import re

from tossup_trainer.models import Bonus, BonusPart, Tossup, Word
from tossup_trainer.normalizer import remove_tags

POWER_MARKER = "(*)"
BONUS_PART_COUNT = 3

BOLD_TEXT = re.compile(r"<(b|strong)\b[^>]*>(.*?)</\1>", re.S)


def clean_tossup_text(text: str) -> str:
    """Give the power marker its own token and squeeze spacing."""
    text = re.sub(r"</(strong|b)>\s*\(\*\)", r"(*) </\1>", text or "")
    text = text.replace(POWER_MARKER, f" {POWER_MARKER} ")
    return re.sub(r"\s\s+", " ", text).strip()


def _power_word_counts(formatted_text: str) -> dict[str, int]:
    bold = " ".join(remove_tags(m.group(2)) for m in BOLD_TEXT.finditer(formatted_text))
    counts: dict[str, int] = {}
    for w in bold.split():
        counts[w] = counts.get(w, 0) + 1
    return counts


def get_tossup_words(text: str, formatted_text: str = "") -> list[Word]:
    """Split tossup text into words, flagging the ones inside the power span.

    Power words are the bold words of the formatted text, matched to the
    plain text in order of appearance. Without bold markup, everything
    before the (*) marker is power.
    """
    words = text.split()
    counts = _power_word_counts(formatted_text or "")

    if counts:
        tossup_words = []
        for w in words:
            if counts.get(w, 0) > 0:
                counts[w] -= 1
                tossup_words.append(Word(w, True))
            else:
                tossup_words.append(Word(w, False))
        return tossup_words

    plain = [Word(w) for w in words]
    marker = get_power_index(plain)
    return [Word(w.word, i < marker) for i, w in enumerate(plain)]


def get_power_index(words: list[Word]) -> int:
    return next((i for i, w in enumerate(words) if w.word == POWER_MARKER), -1)


def _tournament_name(raw) -> str:
    if isinstance(raw, dict):
        return str(raw.get("name", ""))
    return str(raw or "")


def _optional_int(raw) -> int | None:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def tossup_from_record(record: dict) -> Tossup | None:
    text = record.get("text")
    answer = record.get("answer")
    if not text or not answer:
        return None
    return Tossup(
        text=clean_tossup_text(text),
        answer=answer,
        formatted_text=clean_tossup_text(record.get("formatted_text") or text),
        formatted_answer=record.get("formatted_answer") or answer,
        category=_optional_int(record.get("category")),
        subcategory=_optional_int(record.get("subcategory")),
        difficulty=_optional_int(record.get("difficulty")),
        tournament=_tournament_name(record.get("tournament")),
    )


def bonus_from_record(record: dict) -> Bonus | None:
    texts = record.get("parts") or []
    answers = record.get("answers") or []
    if len(texts) != BONUS_PART_COUNT or len(answers) != BONUS_PART_COUNT:
        return None
    formatted_texts = record.get("formatted_parts") or texts
    formatted_answers = record.get("formatted_answers") or answers
    parts = tuple(
        BonusPart(
            text=texts[i],
            answer=answers[i],
            formatted_text=formatted_texts[i] if i < len(formatted_texts) else texts[i],
            formatted_answer=formatted_answers[i] if i < len(formatted_answers) else answers[i],
        )
        for i in range(BONUS_PART_COUNT)
    )
    leadin = record.get("leadin") or ""
    return Bonus(
        leadin=leadin,
        parts=parts,
        formatted_leadin=record.get("formatted_leadin") or leadin,
        category=_optional_int(record.get("category")),
        subcategory=_optional_int(record.get("subcategory")),
        difficulty=_optional_int(record.get("difficulty")),
        tournament=_tournament_name(record.get("tournament")),
    )
