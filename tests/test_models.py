"""Tests for data model classes."""
from __future__ import annotations

from conftest import make_tossup
from tossup_trainer.models import AnswerSet, JudgeResult, JudgeVerdict, QueryFilters


class TestAnswerSet:
    def test_without_prompt(self):
        answers = AnswerSet(acceptable=("a",), promptable=("p1", "p2"))
        after = answers.without_prompt(0)
        assert after.promptable == ("p2",)
        assert after.consumed == ("p1",)
        assert after.acceptable == ("a",)
        assert answers.promptable == ("p1", "p2")

    def test_to_dict(self):
        d = AnswerSet(acceptable=("a",)).to_dict()
        assert d == {"acceptable": ["a"], "promptable": [], "consumed": []}


class TestJudgeVerdict:
    def test_is_final(self):
        assert JudgeVerdict(JudgeResult.CORRECT).is_final
        assert JudgeVerdict(JudgeResult.INCORRECT).is_final
        assert not JudgeVerdict(JudgeResult.PROMPT).is_final

    def test_to_dict_rounds_rating(self):
        d = JudgeVerdict(JudgeResult.CORRECT, 2 / 3).to_dict()
        assert d["result"] == "correct"
        assert d["rating"] == 0.6667


class TestQueryFilters:
    def test_empty_matches_everything(self):
        assert QueryFilters().matches(make_tossup(category=None))

    def test_category(self):
        f = QueryFilters(categories=[1, 2])
        assert f.matches(make_tossup(category=2))
        assert not f.matches(make_tossup(category=3))

    def test_difficulty(self):
        assert not QueryFilters(difficulties=[5]).matches(make_tossup())
