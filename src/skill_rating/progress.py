"""Questionnaire progress ("question N of M").

Progress is derived from scratch on every call: the catalog is expanded,
filtered against the merged answers, and the answered visible questions are
counted. It always reports at least 1 of 1 and never current > total.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from .catalog.schema import SportCatalog
from .conditions import filter_visible, has_value
from .expander import expand as expand_questions
from .models import Progress, Question


def progress(
    catalog: SportCatalog | Iterable[Question],
    responses: Mapping[str, Any],
    page_answers: Mapping[str, Any] | None = None,
    expand: Callable[[Iterable[Question]], list[Question]] = expand_questions,
) -> Progress:
    """Compute the step indicator for a questionnaire.

    Args:
        catalog: A SportCatalog or its question list.
        responses: Committed answers.
        page_answers: Uncommitted answers of the current page (win on conflict).
        expand: Composite expander.

    Returns:
        Progress with current and total.
    """
    questions = catalog.questions if isinstance(catalog, SportCatalog) else list(catalog)
    all_responses = {**responses, **(page_answers or {})}
    visible_questions = filter_visible(expand(questions), all_responses)

    total_visible = len(visible_questions)
    answered = sum(1 for q in visible_questions if has_value(all_responses.get(q.key)))

    current = max(1, min(answered + 1, total_visible))
    return Progress(current=current, total=max(current, total_visible))
