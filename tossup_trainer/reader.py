"""Tossup and bonus readers: question queue, timed reveal, buzz and judging.

Each reader owns an immutable state object that is replaced on every
change; the only way to move between statuses is transition(), which
checks the move against the reader's transition table. Display code
subscribes to state changes and never mutates anything itself.

Everything runs on one asyncio loop. The reveal is a chain of single
delayed steps (RevealTimer), and leaving READING cancels the pending step
before the new state is published.
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Generic, TypeVar

from tossup_trainer.config import Settings
from tossup_trainer.judge import judge_answer
from tossup_trainer.models import (
    AnswerSet,
    Bonus,
    BonusPartResult,
    BonusResult,
    BuzzSnapshot,
    JudgeResult,
    JudgeVerdict,
    QueryFilters,
    Tossup,
    TossupResult,
    Word,
)
from tossup_trainer.parsers.answerline_parser import parse_answerline
from tossup_trainer.parsers.question_parser import get_tossup_words
from tossup_trainer.providers.base import QuestionSource
from tossup_trainer.scoring import BONUS_PARTS, bonus_score, tossup_score
from tossup_trainer.timer import RevealTimer, reading_delay

log = logging.getLogger("tossup_trainer.reader")
_refill_log = logging.getLogger("tossup_trainer.reader.refill")

T = TypeVar("T")
S = TypeVar("S")


class ReaderStatus(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    READING = "reading"
    ANSWERING = "answering"
    PROMPTING = "prompting"
    JUDGED = "judged"
    EMPTY = "empty"


# READING -> EMPTY is taken only when a fetched question cannot be started.
TOSSUP_TRANSITIONS: dict[ReaderStatus, frozenset[ReaderStatus]] = {
    ReaderStatus.IDLE: frozenset({ReaderStatus.FETCHING}),
    ReaderStatus.FETCHING: frozenset({ReaderStatus.READING, ReaderStatus.EMPTY}),
    ReaderStatus.READING: frozenset({ReaderStatus.ANSWERING, ReaderStatus.EMPTY}),
    ReaderStatus.ANSWERING: frozenset({ReaderStatus.PROMPTING, ReaderStatus.JUDGED}),
    ReaderStatus.PROMPTING: frozenset({ReaderStatus.PROMPTING, ReaderStatus.JUDGED}),
    ReaderStatus.JUDGED: frozenset({ReaderStatus.FETCHING, ReaderStatus.IDLE}),
    ReaderStatus.EMPTY: frozenset({ReaderStatus.FETCHING, ReaderStatus.IDLE}),
}

# Bonus parts are shown whole, so there is no READING; ANSWERING -> ANSWERING
# moves on to the next part.
BONUS_TRANSITIONS: dict[ReaderStatus, frozenset[ReaderStatus]] = {
    ReaderStatus.IDLE: frozenset({ReaderStatus.FETCHING}),
    ReaderStatus.FETCHING: frozenset({ReaderStatus.ANSWERING, ReaderStatus.EMPTY}),
    ReaderStatus.READING: frozenset(),
    ReaderStatus.ANSWERING: frozenset(
        {ReaderStatus.ANSWERING, ReaderStatus.PROMPTING, ReaderStatus.JUDGED}
    ),
    ReaderStatus.PROMPTING: frozenset(
        {ReaderStatus.ANSWERING, ReaderStatus.PROMPTING, ReaderStatus.JUDGED}
    ),
    ReaderStatus.JUDGED: frozenset({ReaderStatus.FETCHING, ReaderStatus.IDLE}),
    ReaderStatus.EMPTY: frozenset({ReaderStatus.FETCHING, ReaderStatus.IDLE}),
}


class InvalidTransitionError(ValueError):
    def __init__(self, source: ReaderStatus, target: ReaderStatus):
        super().__init__(f"Cannot go from {source.value} to {target.value}")
        self.source = source
        self.target = target


def validate_transition(
    table: dict[ReaderStatus, frozenset[ReaderStatus]],
    source: ReaderStatus,
    target: ReaderStatus,
) -> None:
    if target not in table[source]:
        raise InvalidTransitionError(source, target)


def transition(state: S, target: ReaderStatus, table=TOSSUP_TRANSITIONS, **changes) -> S:
    """Return a copy of *state* in status *target*, with *changes* applied."""
    validate_transition(table, state.status, target)
    return replace(state, status=target, **changes)


@dataclass(frozen=True)
class ReaderState:
    status: ReaderStatus = ReaderStatus.IDLE
    current: Tossup | None = None
    words: tuple[Word, ...] = ()
    answers: AnswerSet = AnswerSet()
    visible_index: int = 0
    buzz: BuzzSnapshot = BuzzSnapshot()
    results: tuple[TossupResult, ...] = ()  # newest first
    score: int = 0
    last_result: TossupResult | None = None

    @property
    def did_buzz_at_end(self) -> bool:
        return self.buzz.index >= len(self.words) - 1

    def to_dict(self) -> dict:
        revealed = self.status is ReaderStatus.JUDGED
        # Words after the buzz stay hidden until the answer is judged
        shown = self.words if revealed else self.words[:self.visible_index + 1]
        return {
            "status": self.status.value,
            "words": [{"word": w.word, "in_power": w.in_power} for w in shown],
            "word_count": len(self.words),
            "visible_index": self.visible_index,
            "buzz_index": self.buzz.index,
            "is_power": self.buzz.is_power,
            "answer": self.current.formatted_answer if revealed and self.current else None,
            "tournament": self.current.tournament if self.current else None,
            "score": self.score,
            "last_result": self.last_result.to_dict() if self.last_result else None,
        }


@dataclass(frozen=True)
class BonusState:
    status: ReaderStatus = ReaderStatus.IDLE
    current: Bonus | None = None
    part_index: int = 0
    answers: AnswerSet = AnswerSet()
    part_results: tuple[BonusPartResult, ...] = ()
    results: tuple[BonusResult, ...] = ()  # newest first
    score: int = 0
    last_result: BonusResult | None = None

    def to_dict(self) -> dict:
        bonus = self.current
        part = bonus.parts[self.part_index] if bonus else None
        return {
            "status": self.status.value,
            "leadin": bonus.leadin if bonus else None,
            "part_index": self.part_index,
            "part": part.text if part else None,
            "part_results": [p.to_dict() for p in self.part_results],
            "tournament": bonus.tournament if bonus else None,
            "score": self.score,
            "last_result": self.last_result.to_dict() if self.last_result else None,
        }


class QuestionQueue(Generic[T]):
    """Pending questions, topped up by at most one background fetch at a time.

    Only the reader pops; refills only append. Pruning bumps an epoch so a
    fetch that started under the old filters is dropped instead of appended.
    """

    def __init__(self, fetch: Callable[[], Awaitable[list[T]]]):
        self._fetch = fetch
        self._items: deque[T] = deque()
        self._task: asyncio.Task | None = None
        self._epoch = 0

    def __len__(self) -> int:
        return len(self._items)

    @property
    def refilling(self) -> bool:
        return self._task is not None

    def extend(self, items: list[T]) -> None:
        self._items.extend(items)

    def prune(self, keep: Callable[[T], bool]) -> int:
        before = len(self._items)
        self._items = deque(q for q in self._items if keep(q))
        self._epoch += 1
        return before - len(self._items)

    async def refill(self) -> int:
        epoch = self._epoch
        try:
            batch = await self._fetch()
        except Exception as e:
            _refill_log.warning("Refill failed: %s", e)
            return 0
        if epoch != self._epoch:
            _refill_log.info("Dropping %d questions fetched under old filters", len(batch))
            return 0
        self._items.extend(batch)
        _refill_log.info("Refill: received %d, queue now %d", len(batch), len(self._items))
        return len(batch)

    def refill_in_background(self) -> None:
        if self._task is not None:
            _refill_log.debug("Refill skipped (already running)")
            return

        async def run():
            try:
                await self.refill()
            finally:
                self._task = None

        self._task = asyncio.create_task(run())

    async def take(self, low_water: int) -> T | None:
        """Pop the next question, fetching first only if nothing is queued."""
        if not self._items:
            if self._task is not None:
                await self._task
            if not self._items:
                await self.refill()
        elif len(self._items) < low_water:
            self.refill_in_background()
        return self._items.popleft() if self._items else None

    async def close(self) -> None:
        task = self._task
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


class _Reader(Generic[S]):
    transitions: dict[ReaderStatus, frozenset[ReaderStatus]]

    def __init__(self, settings: Settings, initial: S):
        self.settings = settings
        self.state = initial
        self._subscribers: list[Callable[[S], None]] = []

    def subscribe(self, callback: Callable[[S], None]) -> Callable[[], None]:
        """Call *callback* with every new state. Returns an unsubscribe function."""
        self._subscribers.append(callback)
        return lambda: self._subscribers.remove(callback)

    def _publish(self, state: S) -> None:
        self.state = state
        for callback in list(self._subscribers):
            callback(state)

    def _transition(self, target: ReaderStatus, **changes) -> None:
        source = self.state.status
        new_state = transition(self.state, target, self.transitions, **changes)
        self._leaving(source, target)
        log.debug("%s: %s -> %s", type(self).__name__, source.value, target.value)
        self._publish(new_state)

    def _leaving(self, source: ReaderStatus, target: ReaderStatus) -> None:
        pass


class TossupReader(_Reader[ReaderState]):
    transitions = TOSSUP_TRANSITIONS

    def __init__(
        self,
        source: QuestionSource,
        settings: Settings,
        on_result: Callable[[TossupResult], None] | None = None,
    ):
        super().__init__(settings, ReaderState())
        self.source = source
        self.queue: QuestionQueue[Tossup] = QuestionQueue(self._fetch)
        self._timer = RevealTimer()
        self._on_result = on_result

    async def _fetch(self) -> list[Tossup]:
        return await self.source.fetch_tossups(self.settings.to_filters())

    def _leaving(self, source: ReaderStatus, target: ReaderStatus) -> None:
        if source is ReaderStatus.READING:
            self._timer.cancel()

    @property
    def reveal_pending(self) -> bool:
        return self._timer.pending

    async def next_question(self) -> ReaderState:
        self._transition(ReaderStatus.FETCHING)
        try:
            tossup = await self.queue.take(self.settings.queue_low_water)
            if tossup is None:
                log.info("No tossups left")
                self._transition(ReaderStatus.EMPTY, current=None, words=(), answers=AnswerSet())
                return self.state

            words = tuple(get_tossup_words(tossup.text, tossup.formatted_text))
            self._transition(
                ReaderStatus.READING,
                current=tossup,
                words=words,
                answers=parse_answerline(tossup.formatted_answer or tossup.answer),
                visible_index=0,
                buzz=BuzzSnapshot(words=words),
                last_result=None,
            )
            self._reveal()
        except Exception as e:
            log.warning("Could not start the next tossup: %s", e)
            self._transition(ReaderStatus.EMPTY, current=None, words=(), answers=AnswerSet())
            raise
        return self.state

    def _reveal(self) -> None:
        """Publish the word at visible_index, then schedule the next step."""
        state = self.state
        if state.status is not ReaderStatus.READING:
            return
        index, words = state.visible_index, state.words
        if index >= len(words):
            self._transition(ReaderStatus.ANSWERING)
            return
        snapshot = BuzzSnapshot(
            index=index,
            is_power=words[index].in_power,
            read_text=" ".join(w.word for w in words[:index + 1]),
            words=words,
        )
        self._publish(replace(state, buzz=snapshot))
        self._timer.schedule(reading_delay(self.settings.reading_speed), self._advance)

    def _advance(self) -> None:
        if self.state.status is not ReaderStatus.READING:
            return
        self._publish(replace(self.state, visible_index=self.state.visible_index + 1))
        self._reveal()

    def buzz(self) -> ReaderState:
        self._transition(ReaderStatus.ANSWERING)
        log.info("Buzz at word %d/%d", self.state.buzz.index + 1, len(self.state.words))
        return self.state

    def submit(self, answer: str) -> JudgeVerdict:
        state = self.state
        validate_transition(self.transitions, state.status, ReaderStatus.JUDGED)
        verdict, answers = judge_answer(answer, state.answers)

        if verdict.result is JudgeResult.PROMPT:
            self._transition(ReaderStatus.PROMPTING, answers=answers)
            return verdict

        score = tossup_score(
            verdict.result is JudgeResult.CORRECT,
            state.buzz.is_power,
            state.did_buzz_at_end,
        )
        result = TossupResult(
            tossup=state.current,
            verdict=verdict,
            submitted_answer=answer,
            score=int(score),
            buzz=state.buzz,
        )
        self._transition(
            ReaderStatus.JUDGED,
            answers=answers,
            visible_index=len(state.words),
            results=(result,) + state.results,
            score=state.score + result.score,
            last_result=result,
        )
        log.info("Judged %r as %s for %d", answer, verdict.result.value, result.score)
        if self._on_result is not None:
            self._on_result(result)
        return verdict

    def reset(self) -> ReaderState:
        self._transition(ReaderStatus.IDLE, current=None, words=(), answers=AnswerSet())
        return self.state

    def apply_filters(self, filters: QueryFilters) -> int:
        dropped = self.queue.prune(filters.matches)
        if dropped:
            log.info("Dropped %d queued tossups not matching filters", dropped)
        return dropped

    async def close(self) -> None:
        self._timer.cancel()
        await self.queue.close()


class BonusReader(_Reader[BonusState]):
    transitions = BONUS_TRANSITIONS

    def __init__(
        self,
        source: QuestionSource,
        settings: Settings,
        on_result: Callable[[BonusResult], None] | None = None,
    ):
        super().__init__(settings, BonusState())
        self.source = source
        self.queue: QuestionQueue[Bonus] = QuestionQueue(self._fetch)
        self._on_result = on_result

    async def _fetch(self) -> list[Bonus]:
        return await self.source.fetch_bonuses(self.settings.to_filters())

    async def next_bonus(self) -> BonusState:
        self._transition(ReaderStatus.FETCHING)
        try:
            bonus = await self.queue.take(self.settings.queue_low_water)
            if bonus is None:
                log.info("No bonuses left")
                self._transition(ReaderStatus.EMPTY, current=None, part_index=0)
                return self.state
            self._transition(
                ReaderStatus.ANSWERING,
                current=bonus,
                part_index=0,
                answers=self._answers_for(bonus, 0),
                part_results=(),
                last_result=None,
            )
        except Exception as e:
            log.warning("Could not start the next bonus: %s", e)
            self._transition(ReaderStatus.EMPTY, current=None, part_index=0)
            raise
        return self.state

    @staticmethod
    def _answers_for(bonus: Bonus, index: int) -> AnswerSet:
        part = bonus.parts[index]
        return parse_answerline(part.formatted_answer or part.answer)

    def submit(self, answer: str) -> JudgeVerdict:
        state = self.state
        validate_transition(self.transitions, state.status, ReaderStatus.JUDGED)
        verdict, answers = judge_answer(answer, state.answers)

        if verdict.result is JudgeResult.PROMPT:
            self._transition(ReaderStatus.PROMPTING, answers=answers)
            return verdict

        part_result = BonusPartResult(
            part=state.current.parts[state.part_index],
            verdict=verdict,
            submitted_answer=answer,
        )
        part_results = state.part_results + (part_result,)

        if len(part_results) < BONUS_PARTS:
            next_index = state.part_index + 1
            self._transition(
                ReaderStatus.ANSWERING,
                part_index=next_index,
                answers=self._answers_for(state.current, next_index),
                part_results=part_results,
            )
            return verdict

        score = bonus_score(p.is_correct for p in part_results)
        result = BonusResult(bonus=state.current, parts=part_results, score=int(score))
        self._transition(
            ReaderStatus.JUDGED,
            answers=answers,
            part_results=part_results,
            results=(result,) + state.results,
            score=state.score + result.score,
            last_result=result,
        )
        log.info("Bonus judged for %d", result.score)
        if self._on_result is not None:
            self._on_result(result)
        return verdict

    def apply_filters(self, filters: QueryFilters) -> int:
        return self.queue.prune(filters.matches)

    async def close(self) -> None:
        await self.queue.close()
