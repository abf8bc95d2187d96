"""Point values for tossups and bonuses."""
from __future__ import annotations

from collections.abc import Iterable
from enum import IntEnum


class TossupScore(IntEnum):
    NEG = -5
    INCORRECT = 0
    TEN = 10
    POWER = 15


class BonusScore(IntEnum):
    ZERO = 0
    TEN = 10
    TWENTY = 20
    THIRTY = 30


BONUS_PARTS = 3

_BONUS_BY_CORRECT_COUNT = {
    0: BonusScore.ZERO,
    1: BonusScore.TEN,
    2: BonusScore.TWENTY,
    3: BonusScore.THIRTY,
}


def tossup_score(is_correct: bool, is_in_power: bool, did_buzz_at_end: bool) -> TossupScore:
    """Score a tossup buzz.

    A wrong answer only costs points if the question was still being read.
    """
    if is_correct:
        return TossupScore.POWER if is_in_power else TossupScore.TEN
    return TossupScore.INCORRECT if did_buzz_at_end else TossupScore.NEG


def bonus_score(part_results: Iterable[bool]) -> BonusScore:
    """Score a bonus from the correctness of each of its three parts."""
    results = list(part_results)
    if len(results) != BONUS_PARTS:
        raise ValueError(f"A bonus has {BONUS_PARTS} parts, got {len(results)}")
    return _BONUS_BY_CORRECT_COUNT[sum(1 for r in results if r)]
