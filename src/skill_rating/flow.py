"""Questionnaire flow controller.

The flow is a set of pure transitions over an immutable FlowState: each
function takes a state (plus input) and returns a new state, and none of them
raise. Applying the same transitions to the same state always gives equal
states, which is what makes "back" exact and sessions resumable.

Navigation back is an undo log: every forward page transition pushes a
Snapshot, and ``go_back`` restores the latest one instead of recomputing.

Example:
    ```python
    catalog = load_catalog("pickleball")
    state = start(catalog)
    state = answer(state, "No")
    state = advance(state, catalog)      # next page: experience
    state = previous(state)              # back on the has_dupr page
    ```
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from .catalog.schema import SportCatalog
from .conditions import filter_visible, has_value, visible
from .expander import expand
from .models import FlowState, Question, QuestionType, Snapshot

logger = logging.getLogger(__name__)


# ============================================================================
# Transitions
# ============================================================================


def snapshot(state: FlowState) -> Snapshot:
    """Capture the parts of a state that "back" restores."""
    return Snapshot(
        questions=state.questions,
        responses=dict(state.responses),
        page_answers=dict(state.page_answers),
        question_index=state.question_index,
    )


def set_question_index(state: FlowState, index: int) -> FlowState:
    if not isinstance(index, int) or isinstance(index, bool):
        return state
    return state.model_copy(update={"question_index": index})


def add_response(state: FlowState, key: str, value: Any) -> FlowState:
    return state.model_copy(update={"responses": {**state.responses, key: value}})


def replace_responses(state: FlowState, responses: Mapping[str, Any]) -> FlowState:
    if not isinstance(responses, Mapping):
        return state
    return state.model_copy(update={"responses": dict(responses)})


def merge_page_answers(state: FlowState, answers: Mapping[str, Any]) -> FlowState:
    if not isinstance(answers, Mapping):
        return state
    return state.model_copy(update={"page_answers": {**state.page_answers, **answers}})


def clear_page_answers(state: FlowState) -> FlowState:
    return state.model_copy(update={"page_answers": {}})


def set_questions(state: FlowState, questions: Iterable[Question]) -> FlowState:
    return state.model_copy(update={"questions": tuple(questions)})


def select_sport(state: FlowState, sport: str | None) -> FlowState:
    return state.model_copy(update={"sport": sport})


def init_history(state: FlowState, entry: Snapshot) -> FlowState:
    """Reset the history to exactly one entry (a questionnaire was just chosen)."""
    if not isinstance(entry, Snapshot):
        return state
    return state.model_copy(update={"history": (entry,), "page_index": 0})


def push_history(state: FlowState, entry: Snapshot) -> FlowState:
    """Record a snapshot when advancing past a page."""
    if not isinstance(entry, Snapshot):
        return state
    return state.model_copy(
        update={"history": (*state.history, entry), "page_index": state.page_index + 1}
    )


def go_back(state: FlowState) -> FlowState:
    """Restore the most recent snapshot; unchanged if there is none."""
    if not state.history:
        return state
    previous_page = state.history[-1]
    return state.model_copy(
        update={
            "questions": previous_page.questions,
            "responses": dict(previous_page.responses),
            "page_answers": dict(previous_page.page_answers),
            "question_index": previous_page.question_index,
            "history": state.history[:-1],
            "page_index": max(state.page_index - 1, 0),
            "completed": False,
        }
    )


def reset(state: FlowState) -> FlowState:
    """Clear everything except the active sport."""
    return FlowState(sport=state.sport)


def remove_response(state: FlowState, key: str) -> FlowState:
    """Delete one answer, e.g. when a changed gate answer invalidates it."""
    if key not in state.responses:
        return state
    return state.model_copy(
        update={"responses": {k: v for k, v in state.responses.items() if k != key}}
    )


def can_go_back(state: FlowState) -> bool:
    return state.page_index > 0


def current_question(state: FlowState) -> Question | None:
    if 0 <= state.question_index < len(state.questions):
        return state.questions[state.question_index]
    return None


def is_last_question(state: FlowState) -> bool:
    return state.question_index == len(state.questions) - 1


def _pair(payload: Any) -> tuple[Any, Any] | None:
    if isinstance(payload, Mapping) and "key" in payload:
        return payload["key"], payload.get("value")
    if isinstance(payload, (tuple, list)) and len(payload) == 2:
        return payload[0], payload[1]
    return None


def _add_response_action(state: FlowState, payload: Any) -> FlowState:
    pair = _pair(payload)
    if pair is None or not isinstance(pair[0], str):
        return state
    return add_response(state, *pair)


def _remove_response_action(state: FlowState, payload: Any) -> FlowState:
    if not isinstance(payload, str):
        return state
    return remove_response(state, payload)


def _set_questions_action(state: FlowState, payload: Any) -> FlowState:
    if not isinstance(payload, (list, tuple)) or not all(isinstance(q, Question) for q in payload):
        return state
    return set_questions(state, payload)


def _select_sport_action(state: FlowState, payload: Any) -> FlowState:
    if payload is not None and not isinstance(payload, str):
        return state
    return select_sport(state, payload)


TRANSITIONS: dict[str, Callable[[FlowState, Any], FlowState]] = {
    "set_question_index": set_question_index,
    "add_response": _add_response_action,
    "replace_responses": replace_responses,
    "merge_page_answers": merge_page_answers,
    "clear_page_answers": lambda state, _: clear_page_answers(state),
    "set_questions": _set_questions_action,
    "select_sport": _select_sport_action,
    "init_history": init_history,
    "push_history": push_history,
    "go_back": lambda state, _: go_back(state),
    "reset": lambda state, _: reset(state),
    "remove_response": _remove_response_action,
}


def apply(state: FlowState, action: str, payload: Any = None) -> FlowState:
    """Apply a transition by name.

    Unknown actions and payloads of the wrong shape leave the state unchanged.

    Args:
        state: Current state.
        action: Transition name, e.g. "add_response".
        payload: Transition input ((key, value) or {"key", "value"} for add_response).

    Returns:
        The new state.
    """
    transition = TRANSITIONS.get(action)
    if transition is None:
        logger.debug(f"Ignoring unknown flow action '{action}'")
        return state
    return transition(state, payload)


# ============================================================================
# Session helpers
# ============================================================================


def next_page(catalog: SportCatalog, responses: Mapping[str, Any]) -> tuple[Question, ...]:
    """The next page of visible questions that have no answer yet.

    A page is a single question, or every pending sub-question of one
    composite. A key present in the responses counts as answered, even when
    blank (a skipped optional question).
    """
    for question in catalog.questions:
        if not visible(question.visibility_rule, responses):
            continue
        pending = tuple(q for q in expand([question]) if q.key not in responses)
        if pending:
            return pending
    return ()


def normalize_page_answers(
    questions: Iterable[Question], answers: Mapping[str, Any]
) -> dict[str, Any]:
    """Turn text typed into number questions into floats ("3,75" -> 3.75).

    Blank or unparseable text is kept as typed.
    """
    number_keys = {q.key for q in questions if q.type == QuestionType.NUMBER}
    normalized: dict[str, Any] = {}
    for key, value in answers.items():
        if key in number_keys and isinstance(value, str) and value.strip():
            try:
                value = float(value.strip().replace(",", "."))
            except ValueError:
                pass
        normalized[key] = value
    return normalized


def prune_hidden(state: FlowState, catalog: SportCatalog) -> FlowState:
    """Drop answers to catalog questions that the current answers now hide.

    Repeats until stable, since dropping one answer can hide further
    questions (gate -> reference rating -> reliability).
    """
    catalog_keys = {q.key for q in expand(catalog.questions)}
    while True:
        shown = {q.key for q in filter_visible(expand(catalog.questions), state.responses)}
        hidden = [k for k in state.responses if k in catalog_keys and k not in shown]
        if not hidden:
            return state
        for key in hidden:
            logger.debug(f"Removing answer to hidden question '{key}'")
            state = remove_response(state, key)


def start(catalog: SportCatalog, sport: str | None = None) -> FlowState:
    """Begin a fresh questionnaire for a catalog."""
    state = reset(select_sport(FlowState(), sport or catalog.sport))
    state = set_question_index(set_questions(state, next_page(catalog, {})), 0)
    return init_history(state, snapshot(state))


def answer(state: FlowState, value: Any) -> FlowState:
    """Buffer an answer for the current question."""
    question = current_question(state)
    if question is None:
        return state
    return merge_page_answers(state, {question.key: value})


def advance(state: FlowState, catalog: SportCatalog) -> FlowState:
    """Move forward.

    Inside a multi-question page this only moves the index. At the end of a
    page the page answers are committed, answers hidden by the new responses
    are pruned, the next page is loaded and a snapshot of the left page is
    pushed for "back". With no next page the state is marked completed.

    A page with a required question left blank is not committed: the state
    is returned unchanged.
    """
    if state.completed or current_question(state) is None:
        return state
    if state.question_index < len(state.questions) - 1:
        return set_question_index(state, state.question_index + 1)

    page_answers = normalize_page_answers(state.questions, state.page_answers)
    for question in state.questions:
        if question.optional:
            page_answers.setdefault(question.key, "")
        elif not has_value(page_answers.get(question.key)):
            logger.debug(f"Required question '{question.key}' has no answer; staying on page")
            return state

    moved = replace_responses(state, {**state.responses, **page_answers})
    moved = prune_hidden(clear_page_answers(moved), catalog)
    moved = push_history(moved, snapshot(state))

    page = next_page(catalog, moved.responses)
    moved = set_question_index(set_questions(moved, page), 0)
    if not page:
        logger.debug(f"Questionnaire '{moved.sport}' complete after {moved.page_index} pages")
        moved = moved.model_copy(update={"completed": True})
    return moved


def previous(state: FlowState) -> FlowState:
    """Step back inside the page, or restore the previous page."""
    if state.question_index > 0:
        return set_question_index(state, state.question_index - 1)
    if can_go_back(state):
        return go_back(state)
    return state
