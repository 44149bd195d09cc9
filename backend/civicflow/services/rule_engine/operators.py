"""Comparison operator dispatch for eligibility criteria."""

import operator as op
from decimal import Decimal
from typing import Any, Callable, Dict

from civicflow.core.enums import ComparisonOperator
from civicflow.core.exceptions import InvalidCriterionTypeError
from civicflow.core.fields import to_decimal

Comparison = Callable[[Any, Any], bool]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def values_equal(left: Any, right: Any) -> bool:
    """
    Deep JSON-style equality.

    Numbers compare by value (2 == 2.0), booleans only equal booleans,
    mappings and sequences compare element by element.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        left_number, right_number = to_decimal(left), to_decimal(right)
        return left_number is not None and left_number == right_number
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(
            values_equal(left[key], right[key]) for key in left
        )
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left, right)
        )
    return left == right


def _ordered(compare: Callable[[Decimal, Decimal], bool]) -> Comparison:
    def _apply(actual: Any, expected: Any) -> bool:
        actual_number = to_decimal(actual)
        expected_number = to_decimal(expected)
        if expected_number is None:
            raise TypeError(f"expected value {expected!r} is not numeric")
        if actual_number is None:
            raise TypeError(f"actual value {actual!r} is not numeric")
        return compare(actual_number, expected_number)

    return _apply


_COMPARISONS: Dict[ComparisonOperator, Comparison] = {
    ComparisonOperator.GREATER_OR_EQUAL: _ordered(op.ge),
    ComparisonOperator.LESS_OR_EQUAL: _ordered(op.le),
    ComparisonOperator.GREATER: _ordered(op.gt),
    ComparisonOperator.LESS: _ordered(op.lt),
    ComparisonOperator.EQUAL: values_equal,
    ComparisonOperator.NOT_EQUAL: lambda actual, expected: not values_equal(actual, expected),
}

_unhandled = set(ComparisonOperator) - set(_COMPARISONS)
if _unhandled:
    raise RuntimeError(f"Comparison operators without a handler: {sorted(o.value for o in _unhandled)}")


def compare(operator: ComparisonOperator, actual: Any, expected: Any, field: str = "") -> bool:
    """
    Apply a comparison operator.

    Args:
        operator: Operator from the criterion
        actual: Value resolved from the application
        expected: Operand from the criterion
        field: Field name, used in error messages

    Returns:
        Whether the comparison holds

    Raises:
        InvalidCriterionTypeError: If an ordering operator receives a non-numeric operand
    """
    try:
        return _COMPARISONS[operator](actual, expected)
    except TypeError as e:
        raise InvalidCriterionTypeError(field, operator.value, expected, str(e)) from e
