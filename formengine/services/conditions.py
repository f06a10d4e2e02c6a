"""Condition evaluation service for step and field visibility.

This module decides whether a condition tree holds for the values a user
has filled in so far. Evaluation is a total function: a missing field, a
type mismatch or an unparseable number makes a comparison false, it never
raises. Form schemas are user-authored and must not be able to break
submission handling.
"""

from typing import Any, Mapping, Optional

from formengine.schemas.condition import (
    AndCondition,
    Comparison,
    Condition,
    ConditionOp,
    OrCondition,
)
from formengine.schemas.value import FLOAT_EPSILON, Value, parse_number
from formengine.logging_config import get_logger

logger = get_logger(__name__)

_MISSING = object()


class ConditionEvaluator:
    """Evaluates condition trees against submitted values."""

    @staticmethod
    def evaluate(condition: Optional[Condition], values: Mapping[str, Any]) -> bool:
        """Evaluate a condition against a map of field values.

        Values may be Value instances or plain JSON values (str, int, float,
        bool, list, dict, None). A missing condition is always true.

        Supported operators:
        - Equality: eq, neq (numeric strings and numbers compare as numbers)
        - Numeric: gt, gte, lt, lte (false unless both sides are numeric)
        - Membership: contains, not_contains, in
        - Strings: starts_with, ends_with
        - Presence: empty, not_empty

        Args:
            condition: Condition tree, or None
            values: Field name -> current value

        Returns:
            Whether the condition holds

        Example:
            >>> cond = Comparison.gte("age", 18)
            >>> ConditionEvaluator.evaluate(cond, {"age": "21"})
            True
            >>> ConditionEvaluator.evaluate(cond, {})
            False
        """
        if condition is None:
            return True

        if isinstance(condition, AndCondition):
            return all(
                ConditionEvaluator.evaluate(child, values)
                for child in condition.conditions
            )

        if isinstance(condition, OrCondition):
            return any(
                ConditionEvaluator.evaluate(child, values)
                for child in condition.conditions
            )

        if isinstance(condition, Comparison):
            actual = values.get(condition.field, _MISSING)
            if isinstance(actual, Value):
                actual = actual.to_json()
            result = ConditionEvaluator._compare(condition.op, actual, condition.value)
            logger.debug(
                f"Evaluated {condition.field} {condition.op.value} = {result}"
            )
            return result

        logger.warning(f"Unrecognised condition node: {type(condition).__name__}")
        return False

    @staticmethod
    def _compare(op: ConditionOp, actual: Any, expected: Any) -> bool:
        if op == ConditionOp.EMPTY:
            return is_empty_value(actual)
        if op == ConditionOp.NOT_EMPTY:
            return not is_empty_value(actual)

        # An absent field never satisfies a positive comparison
        if actual is _MISSING or expected is None:
            return False

        if op == ConditionOp.EQ:
            return values_equal(actual, expected)
        if op == ConditionOp.NEQ:
            return not values_equal(actual, expected)
        if op == ConditionOp.GT:
            return _compare_numeric(actual, expected, lambda a, b: a > b)
        if op == ConditionOp.GTE:
            return _compare_numeric(actual, expected, lambda a, b: a >= b)
        if op == ConditionOp.LT:
            return _compare_numeric(actual, expected, lambda a, b: a < b)
        if op == ConditionOp.LTE:
            return _compare_numeric(actual, expected, lambda a, b: a <= b)
        if op == ConditionOp.CONTAINS:
            return _contains(actual, expected)
        if op == ConditionOp.NOT_CONTAINS:
            return not _contains(actual, expected)
        if op == ConditionOp.STARTS_WITH:
            return isinstance(actual, str) and isinstance(expected, str) and actual.startswith(expected)
        if op == ConditionOp.ENDS_WITH:
            return isinstance(actual, str) and isinstance(expected, str) and actual.endswith(expected)
        if op == ConditionOp.IN:
            if not isinstance(expected, list):
                return False
            return any(values_equal(actual, item) for item in expected)

        return False


def is_empty_value(value: Any) -> bool:
    """Missing, null, blank string, empty list and empty object are all empty."""
    if value is _MISSING or value is None:
        return True
    if isinstance(value, Value):
        return value.is_empty()
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


def values_equal(a: Any, b: Any) -> bool:
    """Equality with cross-type coercion.

    Tried in order: both numeric (numbers or numeric strings) compare as
    floats; both strings compare exactly; booleans compare with each other
    or with the strings "true"/"false"; otherwise structural equality.
    """
    a_num = parse_number(a)
    b_num = parse_number(b)
    if a_num is not None and b_num is not None:
        return abs(a_num - b_num) < FLOAT_EPSILON

    if isinstance(a, str) and isinstance(b, str):
        return a == b

    if isinstance(a, bool) and isinstance(b, str):
        return b == ("true" if a else "false")
    if isinstance(a, str) and isinstance(b, bool):
        return a == ("true" if b else "false")

    return _structurally_equal(a, b)


def _structurally_equal(a: Any, b: Any) -> bool:
    # bool is an int subclass; True must not equal 1 here
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (list, tuple)) or isinstance(b, (list, tuple)):
        if not (isinstance(a, (list, tuple)) and isinstance(b, (list, tuple))):
            return False
        return len(a) == len(b) and all(
            _structurally_equal(x, y) for x, y in zip(a, b)
        )
    if isinstance(a, dict) or isinstance(b, dict):
        if not (isinstance(a, dict) and isinstance(b, dict)):
            return False
        return a.keys() == b.keys() and all(
            _structurally_equal(a[k], b[k]) for k in a
        )
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    if type(a) is not type(b):
        return False
    return a == b


def _compare_numeric(actual: Any, expected: Any, cmp) -> bool:
    actual_num = parse_number(actual)
    expected_num = parse_number(expected)
    if actual_num is None or expected_num is None:
        return False
    return cmp(actual_num, expected_num)


def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, str):
        return isinstance(expected, str) and expected in actual
    if isinstance(actual, (list, tuple)):
        return any(_structurally_equal(item, expected) for item in actual)
    return False
