"""Composite question expansion.

A composite question asks several related sub-ratings at once. The flow and
the progress indicator work on atomic questions, so each composite is
expanded into one single-choice question per sub-rating, keyed
``<parent>_<sub>``. Every expanded question keeps the parent's visibility
rule; otherwise sub-questions would show up in flows where the parent is
hidden.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import Question, QuestionType


def expanded_key(parent_key: str, sub_key: str) -> str:
    """Response key of one sub-rating of a composite question."""
    return f"{parent_key}_{sub_key}"


def expand(questions: Iterable[Question]) -> list[Question]:
    """Expand composite questions into atomic single-choice questions.

    Non-composite questions pass through unchanged and order is preserved,
    so repeated calls on the same catalog give the same list.

    Args:
        questions: Catalog questions, possibly containing composites.

    Returns:
        Flat list of atomic questions.
    """
    flat: list[Question] = []
    for question in questions:
        if question.type != QuestionType.COMPOSITE or not question.sub_questions:
            flat.append(question)
            continue
        for sub_key, sub in question.sub_questions.items():
            flat.append(
                Question(
                    key=expanded_key(question.key, sub_key),
                    prompt=sub.prompt,
                    type=QuestionType.SINGLE_CHOICE,
                    options=list(sub.options),
                    visibility_rule=question.visibility_rule,
                    optional=question.optional,
                    help_text=sub.help_text,
                )
            )
    return flat


def composite_parent(key: str, questions: Iterable[Question]) -> tuple[str, str] | None:
    """Map an expanded key back to ``(parent_key, sub_key)``.

    Returns None when the key does not belong to a composite question.
    """
    for question in questions:
        if question.type != QuestionType.COMPOSITE:
            continue
        for sub_key in question.sub_questions:
            if expanded_key(question.key, sub_key) == key:
                return question.key, sub_key
    return None
