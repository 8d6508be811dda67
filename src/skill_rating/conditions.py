"""Visibility rule evaluation.

A question's visibility rule is evaluated fresh against the live response
map every time the flow needs it; nothing is cached between calls.

Example:
    ```python
    rule = Condition(key="has_dupr", operator="==", value="Yes")
    visible(rule, {"has_dupr": "Yes"})  # True
    visible(rule, {})  # False
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from .models import Condition, Operator, Question

Q = TypeVar("Q", bound=Question)


def has_value(value: Any) -> bool:
    """True unless the value is absent (None) or blank."""
    return value is not None and not (isinstance(value, str) and value == "")


def _strict_equals(left: Any, right: Any) -> bool:
    """Equality without cross-type coercion ("3" never equals 3, True never equals 1)."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    return type(left) is type(right) and left == right


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    Operator.EQUALS.value: lambda actual, expected: _strict_equals(actual, expected),
    Operator.NOT_EQUALS.value: lambda actual, expected: not _strict_equals(actual, expected),
    Operator.EXISTS.value: lambda actual, _: has_value(actual),
    Operator.NOT_EXISTS.value: lambda actual, _: not has_value(actual),
}


def _clause_parts(clause: Any) -> tuple[Any, Any, Any]:
    """Pull (key, operator, value) out of a Condition, a dict or anything else."""
    if isinstance(clause, Condition):
        return clause.key, clause.operator, clause.value
    if isinstance(clause, Mapping):
        return clause.get("key"), clause.get("operator"), clause.get("value")
    return (
        getattr(clause, "key", None),
        getattr(clause, "operator", None),
        getattr(clause, "value", None),
    )


def evaluate_clause(clause: Any, responses: Mapping[str, Any]) -> bool:
    """Evaluate one clause against the responses.

    Unknown operators evaluate to True. Absent keys read as None.
    """
    key, operator, expected = _clause_parts(clause)
    if isinstance(operator, Operator):
        operator = operator.value
    check = _OPERATORS.get(operator) if isinstance(operator, str) else None
    if check is None:
        return True
    try:
        actual = responses.get(key)
    except TypeError:
        # unhashable key in a malformed clause
        actual = None
    return check(actual, expected)


def visible(rule: Any, responses: Mapping[str, Any]) -> bool:
    """Decide whether a question with this rule should be shown.

    Args:
        rule: None, a single clause, or a list/tuple of clauses (AND).
        responses: Current response map.

    Returns:
        True if every clause holds (or there is no rule).
    """
    if rule is None:
        return True
    clauses: Iterable[Any] = rule if isinstance(rule, (list, tuple)) else (rule,)
    return all(evaluate_clause(clause, responses) for clause in clauses)


def filter_visible(questions: Iterable[Q], responses: Mapping[str, Any]) -> list[Q]:
    """Return the questions whose visibility rule holds, in catalog order."""
    return [q for q in questions if visible(q.visibility_rule, responses)]
