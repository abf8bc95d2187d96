"""Parse acceptable and promptable answers out of a tossup answer line.

Answer lines follow tournament conventions loosely, e.g.

  <b>Napoleon</b> Bonaparte [accept Napoleon I; prompt on <u>Bonaparte</u>;
  do not accept "Louis Napoleon"] <ED, Packet 4>

Bold spans are always acceptable, underlined spans are always promptable.
Everything else is scraped with two keyword regexes, then negated matches
("do not accept X", "do not prompt on or accept Y") are thrown away.
Parsing is a heuristic and never raises.
"""
from __future__ import annotations

import logging
import re

from tossup_trainer.models import AnswerSet
from tossup_trainer.normalizer import (
    normalize_answer,
    normalize_spacing,
    remove_first_names,
    remove_tags,
)

_log = logging.getLogger("tossup_trainer.parser")

MARKUP_TAGS = "b|strong|u|i|em|span|br|p|sup|sub"

# Author/editor metadata: escaped angle brackets or an angle-bracketed
# note that is not one of the markup tags we understand.
METADATA = re.compile(rf"&lt;.*?&gt;|<(?!/?(?:{MARKUP_TAGS})\b)[^<>]*>")
UNIMPORTANT_PARENS = re.compile(r"\((?!accept|or|prompt).*?\)")
BOLD = re.compile(r"<(?:b|strong)\b[^>]*>(.*?)</(?:b|strong)>", re.S)
UNDERLINE = re.compile(r"<u\b[^>]*>(.*?)</u>", re.S)

# First answer: everything up to '[' or ' or ', or the whole line.
PRIMARY_ANSWER = re.compile(r"^(.*?)(?:$|(?:\[| or ).*)")
STOP = r"(?= (?:do not|prompt|accept|or|until|before|after) |[,;\[\]]|$)"
ACCEPT_ANSWER = re.compile(r"[\[,; ](?:accept |or )(.*?)" + STOP)
PROMPT_ANSWER = re.compile(r"[\[,; ](?:prompt on |or )(.*?)" + STOP)

CLAUSE_DELIMITERS = (";", ",", "[")

ACCEPT_NEGATIONS = ("do not", "do not prompt on or", "do not prompt or")
PROMPT_NEGATIONS = ("do not", "do not accept or")
OR_ACCEPT_NEGATIONS = ("do not accept", "prompt on", "prompt")
OR_PROMPT_NEGATIONS = ("do not ", "do not accept or ")


def clean_answerline(s: str) -> str:
    """Strip metadata and unimportant asides; turn kept parens into brackets."""
    s = METADATA.sub("", s or "")
    s = UNIMPORTANT_PARENS.sub("", s)
    s = s.replace("(", "[").replace(")", "]")
    return normalize_spacing(s)


def _unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return out


def _last_clause_start(text: str, index: int) -> int:
    start = max(text.rfind(d, 0, index + 1) for d in CLAUSE_DELIMITERS)
    return max(start, 0)


def _is_affirmative(match: re.Match, answer_type: str) -> bool:
    """Reject matches that sit inside a negated clause.

    The regexes fire on every 'accept'/'prompt on'/'or', so 'do not accept
    foo or bar' yields two matches that both have to be discarded.
    """
    text = match.string
    index = match.start()
    keyword = match.group(0)[1:].split(" ")[0]
    before = text[:index]

    if answer_type == "accept" and keyword == "accept":
        return not any(before.endswith(neg) for neg in ACCEPT_NEGATIONS)

    if answer_type == "prompt" and keyword == "prompt":
        return not any(before.endswith(neg) for neg in PROMPT_NEGATIONS)

    clause = text[_last_clause_start(text, index):index]

    if answer_type == "accept" and keyword == "or":
        return not any(neg in clause for neg in OR_ACCEPT_NEGATIONS)

    if answer_type == "prompt" and keyword == "or":
        prompt_index = clause.rfind("prompt on")
        if prompt_index == -1:
            return False
        return not any(clause[:prompt_index].endswith(neg) for neg in OR_PROMPT_NEGATIONS)

    return True


def _scan(pattern: re.Pattern, text: str, answer_type: str) -> list[str]:
    return [
        m.group(1)
        for m in pattern.finditer(text)
        if _is_affirmative(m, answer_type)
    ]


def _marked(pattern: re.Pattern, text: str) -> list[str]:
    return [remove_tags(m) for m in pattern.findall(text)]


def parse_acceptable_answers(answerline: str) -> list[str]:
    line = clean_answerline((answerline or "").lower())
    bold = _marked(BOLD, line)
    line = remove_tags(line)

    primary = PRIMARY_ANSWER.match(line)
    answers = bold + ([primary.group(1)] if primary else []) + _scan(ACCEPT_ANSWER, line, "accept")

    explicit = _unique([normalize_answer(a) for a in answers])
    # A last-name-only variant never overrides an explicit prompt on it
    prompts = set(parse_promptable_answers(answerline))
    variants = [normalize_answer(remove_first_names(a.strip())) for a in answers]
    normalized = _unique(explicit + [v for v in variants if v not in prompts])

    if not normalized:
        fallback = normalize_answer(remove_tags(answerline or ""))
        normalized = [fallback] if fallback else []
    return normalized


def parse_promptable_answers(answerline: str) -> list[str]:
    line = clean_answerline((answerline or "").lower())
    underlined = _marked(UNDERLINE, line)
    line = remove_tags(line)

    prompts = underlined + _scan(PROMPT_ANSWER, line, "prompt")
    return _unique([normalize_answer(p) for p in prompts])


def parse_answerline(answerline: str) -> AnswerSet:
    answers = AnswerSet(
        acceptable=tuple(parse_acceptable_answers(answerline)),
        promptable=tuple(parse_promptable_answers(answerline)),
    )
    _log.debug("Parsed %r -> %s", answerline, answers)
    return answers
