from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum


@dataclass(frozen=True)
class Tossup:
    text: str
    answer: str
    formatted_text: str = ""
    formatted_answer: str = ""
    category: int | None = None
    subcategory: int | None = None
    difficulty: int | None = None
    tournament: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BonusPart:
    text: str
    answer: str
    formatted_text: str = ""
    formatted_answer: str = ""


@dataclass(frozen=True)
class Bonus:
    leadin: str
    parts: tuple[BonusPart, ...]
    formatted_leadin: str = ""
    category: int | None = None
    subcategory: int | None = None
    difficulty: int | None = None
    tournament: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Word:
    word: str
    in_power: bool = False


@dataclass(frozen=True)
class AnswerSet:
    """Normalized acceptable and promptable answers for one question."""

    acceptable: tuple[str, ...] = ()
    promptable: tuple[str, ...] = ()
    # prompts already given during this attempt
    consumed: tuple[str, ...] = ()

    def without_prompt(self, index: int) -> AnswerSet:
        remaining = self.promptable[:index] + self.promptable[index + 1:]
        return AnswerSet(
            acceptable=self.acceptable,
            promptable=remaining,
            consumed=self.consumed + (self.promptable[index],),
        )

    def to_dict(self) -> dict:
        return {
            "acceptable": list(self.acceptable),
            "promptable": list(self.promptable),
            "consumed": list(self.consumed),
        }


@dataclass(frozen=True)
class BuzzSnapshot:
    index: int = 0
    is_power: bool = False
    read_text: str = ""
    words: tuple[Word, ...] = ()

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "is_power": self.is_power,
            "read_text": self.read_text,
            "words": [{"word": w.word, "in_power": w.in_power} for w in self.words],
        }


class JudgeResult(str, Enum):
    CORRECT = "correct"
    PROMPT = "prompt"
    INCORRECT = "incorrect"


@dataclass(frozen=True)
class JudgeVerdict:
    result: JudgeResult
    rating: float = 0.0
    consumed_prompt: str | None = None

    @property
    def is_final(self) -> bool:
        return self.result is not JudgeResult.PROMPT

    def to_dict(self) -> dict:
        return {
            "result": self.result.value,
            "rating": round(self.rating, 4),
            "consumed_prompt": self.consumed_prompt,
        }


@dataclass(frozen=True)
class TossupResult:
    tossup: Tossup
    verdict: JudgeVerdict
    submitted_answer: str
    score: int
    buzz: BuzzSnapshot

    @property
    def is_correct(self) -> bool:
        return self.verdict.result is JudgeResult.CORRECT

    def to_dict(self) -> dict:
        return {
            "tossup": self.tossup.to_dict(),
            "verdict": self.verdict.to_dict(),
            "is_correct": self.is_correct,
            "submitted_answer": self.submitted_answer,
            "score": self.score,
            "buzz": self.buzz.to_dict(),
        }


@dataclass(frozen=True)
class BonusPartResult:
    part: BonusPart
    verdict: JudgeVerdict
    submitted_answer: str

    @property
    def is_correct(self) -> bool:
        return self.verdict.result is JudgeResult.CORRECT

    def to_dict(self) -> dict:
        return {
            "answer": self.part.answer,
            "verdict": self.verdict.to_dict(),
            "is_correct": self.is_correct,
            "submitted_answer": self.submitted_answer,
        }


@dataclass(frozen=True)
class BonusResult:
    bonus: Bonus
    parts: tuple[BonusPartResult, ...]
    score: int

    def to_dict(self) -> dict:
        return {
            "bonus": self.bonus.to_dict(),
            "parts": [p.to_dict() for p in self.parts],
            "score": self.score,
        }


@dataclass
class QueryFilters:
    categories: list[int] = field(default_factory=list)
    subcategories: list[int] = field(default_factory=list)
    difficulties: list[int] = field(default_factory=list)
    text: str = ""
    answer: str = ""
    limit: int = 10
    offset: int = 0

    def matches(self, question: Tossup | Bonus) -> bool:
        """Whether an already-fetched question still passes the id filters."""
        if self.categories and question.category not in self.categories:
            return False
        if self.subcategories and question.subcategory not in self.subcategories:
            return False
        if self.difficulties and question.difficulty not in self.difficulties:
            return False
        return True
