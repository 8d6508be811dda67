"""Tests for composite question expansion."""

import pytest

from skill_rating import Condition, Question, QuestionType, SubQuestion, expand
from skill_rating.expander import composite_parent, expanded_key


@pytest.fixture
def composite() -> Question:
    """A two-part composite gated on a heuristic answer."""
    return Question(
        key="skills",
        prompt="Rate your skills:",
        type=QuestionType.COMPOSITE,
        sub_questions={
            "serving": SubQuestion(prompt="Serving", options=["Low", "High"], help_text="Serve"),
            "dinking": SubQuestion(prompt="Dinking", options=["Low", "High"]),
        },
        visibility_rule=Condition(key="has_dupr", operator="!=", value="Yes"),
        optional=True,
    )


@pytest.fixture
def plain() -> Question:
    return Question(key="experience", prompt="Experience?", options=["New", "Veteran"])


class TestExpand:
    """Tests for expand()."""

    def test_expanded_key(self):
        assert expanded_key("skills", "serving") == "skills_serving"

    def test_expands_each_sub_question(self, composite):
        expanded = expand([composite])
        assert [q.key for q in expanded] == ["skills_serving", "skills_dinking"]
        assert all(q.type == QuestionType.SINGLE_CHOICE for q in expanded)
        assert expanded[0].prompt == "Serving"
        assert expanded[0].options == ["Low", "High"]
        assert expanded[0].help_text == "Serve"

    def test_inherits_parent_visibility_and_optional(self, composite):
        for question in expand([composite]):
            assert question.visibility_rule == composite.visibility_rule
            assert question.optional is True

    def test_plain_questions_pass_through(self, plain, composite):
        expanded = expand([plain, composite, plain.model_copy(update={"key": "last"})])
        assert [q.key for q in expanded] == [
            "experience",
            "skills_serving",
            "skills_dinking",
            "last",
        ]
        assert expanded[0] is plain

    def test_deterministic(self, plain, composite):
        assert expand([plain, composite]) == expand([plain, composite])

    def test_idempotent(self, plain, composite):
        once = expand([plain, composite])
        assert expand(once) == once

    def test_empty(self):
        assert expand([]) == []


class TestCompositeParent:
    """Tests for mapping expanded keys back to their composite."""

    def test_known_sub_key(self, plain, composite):
        assert composite_parent("skills_dinking", [plain, composite]) == ("skills", "dinking")

    def test_non_composite_key(self, plain, composite):
        assert composite_parent("experience", [plain, composite]) is None
        assert composite_parent("skills_lobbing", [plain, composite]) is None
