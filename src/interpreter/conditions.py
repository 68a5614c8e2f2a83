"""Condition evaluation.

A node is visible only when every condition holds. Evaluation is total: an
absent field, a type mismatch or an unknown operator makes the condition
false rather than raising.
"""

import math
from typing import Any, Iterable

from schema import Condition, Operator
from .environment import Environment

NUMERIC_OPERATORS = frozenset(
    {
        Operator.GREATER_THAN,
        Operator.GREATER_THAN_OR_EQUAL,
        Operator.LESS_THAN,
        Operator.LESS_THAN_OR_EQUAL,
    }
)


def _as_string(value: Any, coerce: bool) -> str | None:
    if isinstance(value, str):
        return value
    if not coerce or value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _as_number(value: Any, coerce: bool) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if coerce and isinstance(value, str):
        return _parse_number(value)
    return None


def _parse_number(text: str) -> float | None:
    try:
        number = float(text.strip())
    except ValueError:
        return None
    return None if math.isnan(number) else number


def _is_empty(value: Any, coerce: bool) -> bool | None:
    """True/False for sized values, None when emptiness is meaningless."""
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False if coerce else None


def _compare(operator: Operator, left: float, right: float) -> bool:
    if operator is Operator.GREATER_THAN:
        return left > right
    if operator is Operator.GREATER_THAN_OR_EQUAL:
        return left >= right
    if operator is Operator.LESS_THAN:
        return left < right
    return left <= right


def evaluate_condition(condition: Condition, env: Environment, coerce: bool = False) -> bool:
    """
    Evaluate a single condition against an environment.

    Args:
        condition: Condition to evaluate
        env: Bindings
        coerce: Compare numbers and booleans as strings (and numeric strings
            as numbers) instead of treating the mismatch as false

    Returns:
        Whether the condition holds
    """
    operator = condition.operator
    if operator is Operator.UNKNOWN or not condition.field:
        return False

    found, actual = env.lookup(condition.field)
    if not found:
        return False

    if operator is Operator.EXISTS:
        return actual is not None

    if operator in (Operator.IS_EMPTY, Operator.IS_NOT_EMPTY):
        empty = _is_empty(actual, coerce)
        if empty is None:
            return False
        return empty if operator is Operator.IS_EMPTY else not empty

    if operator in NUMERIC_OPERATORS:
        left = _as_number(actual, coerce)
        right = _parse_number(condition.value)
        if left is None or right is None:
            return False
        return _compare(operator, left, right)

    # Membership in a list of scalars
    if operator in (Operator.CONTAINS, Operator.NOT_CONTAINS) and isinstance(actual, (list, tuple)):
        members = {_as_string(member, True) for member in actual}
        contained = condition.value in members
        return contained if operator is Operator.CONTAINS else not contained

    text = _as_string(actual, coerce)
    if text is None:
        return False

    if operator is Operator.EQUALS:
        return text == condition.value
    if operator is Operator.NOT_EQUALS:
        return text != condition.value
    if operator is Operator.CONTAINS:
        return condition.value in text
    if operator is Operator.NOT_CONTAINS:
        return condition.value not in text
    if operator is Operator.IN:
        return text in {option.strip() for option in condition.value.split(",")}
    return False


def all_hold(conditions: Iterable[Condition], env: Environment, coerce: bool = False) -> bool:
    """Logical AND over conditions (an empty set holds)."""
    return all(evaluate_condition(c, env, coerce) for c in conditions)
