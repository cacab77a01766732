"""Operator overloads per operand shape."""

from __future__ import annotations

from typing import Callable, Final

from . import algebra
from .algebra import AlgebraicExpression
from .errors import DivisionByZeroError, NonConstantLengthError, TypeMismatchError
from .field import Field
from .values import (
    FALSE,
    TRUE,
    Array,
    Bool,
    ColumnHandle,
    FieldElement,
    Integer,
    String,
    Symbolic,
    Tuple,
    Value,
    describe,
    is_symbolic,
)

ARITHMETIC_OPS: Final[frozenset[str]] = frozenset({"+", "-", "*", "/", "%", "**"})
BITWISE_OPS: Final[frozenset[str]] = frozenset({"&", "|", "^", "<<", ">>"})
COMPARISON_OPS: Final[frozenset[str]] = frozenset({"==", "!=", "<", "<=", ">", ">="})
LOGICAL_OPS: Final[frozenset[str]] = frozenset({"&&", "||"})


def _int_div(left: int, right: int) -> int:
    if right == 0:
        raise DivisionByZeroError("Integer division by zero")
    return left // right


def _int_mod(left: int, right: int) -> int:
    if right == 0:
        raise DivisionByZeroError("Integer remainder by zero")
    return left % right


def _int_pow(left: int, right: int) -> int:
    if right < 0:
        raise TypeMismatchError(f"Negative integer exponent {right}")
    return left**right


def _int_shift(left: int, right: int, *, leftward: bool) -> int:
    if right < 0:
        raise TypeMismatchError(f"Negative shift amount {right}")
    return left << right if leftward else left >> right


_INTEGER_OPS: Final[dict[str, Callable[[int, int], int]]] = {
    "+": lambda l, r: l + r,
    "-": lambda l, r: l - r,
    "*": lambda l, r: l * r,
    "/": _int_div,
    "%": _int_mod,
    "**": _int_pow,
    "&": lambda l, r: l & r,
    "|": lambda l, r: l | r,
    "^": lambda l, r: l ^ r,
    "<<": lambda l, r: _int_shift(l, r, leftward=True),
    ">>": lambda l, r: _int_shift(l, r, leftward=False),
}


def expect_integer(value: Value, *, what: str) -> int:
    """Reduces ``value`` to a Python int usable as a compile-time quantity."""
    if isinstance(value, Integer):
        return value.value
    if is_symbolic(value):
        raise NonConstantLengthError(f"{what} depends on a column ({describe(value)}); it must be a known integer")
    raise TypeMismatchError(f"{what} must be an integer, got {describe(value)}")


def expect_bool(value: Value, *, what: str) -> bool:
    if isinstance(value, Bool):
        return value.value
    if is_symbolic(value):
        raise NonConstantLengthError(f"{what} depends on a column ({describe(value)}); it must be known at elaboration time")
    raise TypeMismatchError(f"{what} must be a bool, got {describe(value)}")


def to_field(value: Value, field: Field) -> int | None:
    if isinstance(value, FieldElement):
        return value.value
    if isinstance(value, Integer):
        return field.reduce(value.value)
    return None


def to_algebraic(value: Value, field: Field, *, what: str = "operand") -> AlgebraicExpression:
    if isinstance(value, ColumnHandle):
        return algebra.ColumnReference(value.column, value.offset)
    if isinstance(value, Symbolic):
        return value.expression
    constant = to_field(value, field)
    if constant is not None:
        return algebra.Constant(constant)
    raise TypeMismatchError(f"{what} cannot be used in a polynomial expression: {describe(value)}")


def _symbolic_binary(op: str, left: Value, right: Value, field: Field) -> Value:
    if op in COMPARISON_OPS or op in LOGICAL_OPS or op in BITWISE_OPS or op == "%":
        symbolic = left if is_symbolic(left) else right
        raise NonConstantLengthError(
            f"Operator {op!r} needs values known at elaboration time, got {describe(symbolic)}"
        )
    lhs = to_algebraic(left, field, what=f"left operand of {op!r}")
    if op == "**":
        if not isinstance(right, Integer) or right.value < 0:
            raise TypeMismatchError(f"Exponent of a column expression must be a non-negative integer, got {describe(right)}")
        return Symbolic(algebra.power(lhs, right.value, field))
    if op == "/":
        divisor = to_field(right, field)
        if divisor is None:
            raise TypeMismatchError(f"Cannot divide by {describe(right)}; only constant divisors are supported")
        return Symbolic(algebra.mul(lhs, algebra.Constant(field.inverse(divisor)), field))
    rhs = to_algebraic(right, field, what=f"right operand of {op!r}")
    if op == "+":
        return Symbolic(algebra.add(lhs, rhs, field))
    if op == "-":
        return Symbolic(algebra.sub(lhs, rhs, field))
    if op == "*":
        return Symbolic(algebra.mul(lhs, rhs, field))
    raise TypeMismatchError(f"Unsupported operator {op!r} on column expressions")


def _field_binary(op: str, left: int, right: Value, right_fe: int, field: Field) -> Value:
    if op == "+":
        return FieldElement(field.reduce(left + right_fe))
    if op == "-":
        return FieldElement(field.reduce(left - right_fe))
    if op == "*":
        return FieldElement(field.reduce(left * right_fe))
    if op == "/":
        return FieldElement(field.reduce(left * field.inverse(right_fe)))
    if op == "**":
        if not isinstance(right, Integer) or right.value < 0:
            raise TypeMismatchError(f"Field exponent must be a non-negative integer, got {describe(right)}")
        return FieldElement(pow(left, right.value, field.modulus))
    raise TypeMismatchError(f"Operator {op!r} is not defined on field elements")


def binary_operation(op: str, left: Value, right: Value, field: Field) -> Value:
    if op in COMPARISON_OPS:
        return compare(op, left, right, field)
    if op in LOGICAL_OPS:
        lhs = expect_bool(left, what=f"left operand of {op!r}")
        rhs = expect_bool(right, what=f"right operand of {op!r}")
        return Bool(lhs and rhs) if op == "&&" else Bool(lhs or rhs)
    if is_symbolic(left) or is_symbolic(right):
        return _symbolic_binary(op, left, right, field)

    if isinstance(left, Integer) and isinstance(right, Integer):
        fn = _INTEGER_OPS.get(op)
        if fn is None:
            raise TypeMismatchError(f"Unknown binary operator {op!r}")
        return Integer(fn(left.value, right.value))

    if isinstance(left, FieldElement) or isinstance(right, FieldElement):
        lhs = to_field(left, field)
        rhs = to_field(right, field)
        if op == "**" and lhs is not None and isinstance(right, Integer):
            return _field_binary(op, lhs, right, right.value, field)
        if lhs is not None and rhs is not None:
            return _field_binary(op, lhs, right, rhs, field)

    if op == "+" and isinstance(left, String) and isinstance(right, String):
        return String(left.value + right.value)
    if op == "+" and isinstance(left, Array) and isinstance(right, Array):
        return Array(left.items + right.items)

    raise TypeMismatchError(f"Operator {op!r} is not defined for {describe(left)} and {describe(right)}")


def unary_operation(op: str, value: Value, field: Field) -> Value:
    if op == "-":
        if isinstance(value, Integer):
            return Integer(-value.value)
        if isinstance(value, FieldElement):
            return FieldElement(field.reduce(-value.value))
        if is_symbolic(value):
            return Symbolic(algebra.neg(to_algebraic(value, field), field))
    elif op == "!":
        return FALSE if expect_bool(value, what="operand of '!'") else TRUE
    raise TypeMismatchError(f"Unary operator {op!r} is not defined for {describe(value)}")


def values_equal(left: Value, right: Value, field: Field) -> bool:
    """Structural equality; integers and field elements compare modulo the field."""
    if is_symbolic(left) or is_symbolic(right):
        symbolic = left if is_symbolic(left) else right
        raise NonConstantLengthError(f"Cannot compare {describe(symbolic)} at elaboration time")
    if isinstance(left, Integer) and isinstance(right, Integer):
        return left.value == right.value
    lhs = to_field(left, field)
    rhs = to_field(right, field)
    if lhs is not None and rhs is not None:
        return lhs == rhs
    if isinstance(left, (Bool, String)) and type(left) is type(right):
        return left.value == right.value
    if isinstance(left, (Tuple, Array)) and type(left) is type(right):
        if len(left.items) != len(right.items):
            return False
        return all(values_equal(a, b, field) for a, b in zip(left.items, right.items))
    raise TypeMismatchError(f"Cannot compare {describe(left)} with {describe(right)}")


def _ordering(left: Value, right: Value) -> int:
    if isinstance(left, Integer) and isinstance(right, Integer):
        return (left.value > right.value) - (left.value < right.value)
    if isinstance(left, String) and isinstance(right, String):
        return (left.value > right.value) - (left.value < right.value)
    if isinstance(left, (Tuple, Array)) and type(left) is type(right):
        for a, b in zip(left.items, right.items):
            order = _ordering(a, b)
            if order:
                return order
        return (len(left.items) > len(right.items)) - (len(left.items) < len(right.items))
    if is_symbolic(left) or is_symbolic(right):
        symbolic = left if is_symbolic(left) else right
        raise NonConstantLengthError(f"Cannot order {describe(symbolic)} at elaboration time")
    raise TypeMismatchError(f"Ordering is not defined for {describe(left)} and {describe(right)}")


def compare(op: str, left: Value, right: Value, field: Field) -> Bool:
    if op == "==":
        return Bool(values_equal(left, right, field))
    if op == "!=":
        return Bool(not values_equal(left, right, field))
    order = _ordering(left, right)
    if op == "<":
        return Bool(order < 0)
    if op == "<=":
        return Bool(order <= 0)
    if op == ">":
        return Bool(order > 0)
    if op == ">=":
        return Bool(order >= 0)
    raise TypeMismatchError(f"Unknown comparison {op!r}")
