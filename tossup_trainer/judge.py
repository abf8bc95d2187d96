"""Judge free-text answers against a parsed answer line.

Matching is approximate: Dice's coefficient over character bigrams
(whitespace ignored), with a fixed acceptance threshold.
"""
from __future__ import annotations

import logging
import re
from collections import Counter

from tossup_trainer.models import AnswerSet, JudgeResult, JudgeVerdict
from tossup_trainer.normalizer import normalize_answer
from tossup_trainer.parsers.answerline_parser import parse_answerline

_log = logging.getLogger("tossup_trainer.judge")

MIN_RATING = 0.6


def _bigrams(s: str) -> Counter:
    return Counter(s[i:i + 2] for i in range(len(s) - 1))


def dice_coefficient(first: str, second: str) -> float:
    first = re.sub(r"\s+", "", first)
    second = re.sub(r"\s+", "", second)
    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0
    overlap = sum((_bigrams(first) & _bigrams(second)).values())
    return 2.0 * overlap / (len(first) + len(second) - 2)


def find_best_match(guess: str, answers: tuple[str, ...]) -> tuple[int, float]:
    """Return (index, rating) of the closest answer, or (-1, 0.0) if none."""
    best_index, best_rating = -1, 0.0
    for i, answer in enumerate(answers):
        rating = dice_coefficient(guess, answer)
        if rating > best_rating:
            best_index, best_rating = i, rating
    return best_index, best_rating


def judge_answer(submission: str, answers: AnswerSet) -> tuple[JudgeVerdict, AnswerSet]:
    """Judge one submission. Returns the verdict and the answer set to use next.

    A prompt verdict moves the matched promptable answer to ``consumed`` so
    the same guess cannot trigger it twice. A guess that resembles a
    promptable answer (pending or consumed) more than any acceptable one is
    never marked correct: the answer line explicitly calls it insufficient.
    """
    guess = normalize_answer(submission)

    _, accept_rating = find_best_match(guess, answers.acceptable)
    prompt_index, prompt_rating = find_best_match(guess, answers.promptable)
    _, consumed_rating = find_best_match(guess, answers.consumed)
    _log.debug(
        "Ratings for %r: accept=%.3f prompt=%.3f consumed=%.3f",
        guess, accept_rating, prompt_rating, consumed_rating,
    )

    if accept_rating > MIN_RATING and accept_rating >= max(prompt_rating, consumed_rating):
        return JudgeVerdict(JudgeResult.CORRECT, accept_rating), answers

    if prompt_rating > MIN_RATING and prompt_rating >= consumed_rating:
        consumed = answers.promptable[prompt_index]
        verdict = JudgeVerdict(JudgeResult.PROMPT, prompt_rating, consumed_prompt=consumed)
        return verdict, answers.without_prompt(prompt_index)

    return JudgeVerdict(JudgeResult.INCORRECT, accept_rating), answers


class Judge:
    """Judges answers for one question attempt, remembering prompts given."""

    def __init__(self, answers: AnswerSet):
        self.answers = answers
        _log.info("Correct answers: %s", list(answers.acceptable))
        _log.info("Promptable answers: %s", list(answers.promptable))

    @classmethod
    def from_answerline(cls, answerline: str) -> Judge:
        return cls(parse_answerline(answerline))

    def judge(self, submission: str) -> JudgeVerdict:
        verdict, self.answers = judge_answer(submission, self.answers)
        return verdict
