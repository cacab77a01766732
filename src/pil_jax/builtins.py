"""The ``std`` library available to every namespace."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Final

from .errors import InvalidDegreeError, NonConstantLengthError, PanicError, TypeMismatchError
from .operators import binary_operation, expect_bool, expect_integer
from .values import UNIT, Array, Builtin, FieldElement, Integer, String, Tuple, Value, describe, is_symbolic

if TYPE_CHECKING:
    from .evaluator import Evaluator

logger = logging.getLogger(__name__)

_REGISTRY: dict[str, Builtin] = {}

# Bare names resolvable from any namespace without qualification.
PRELUDE: Final[dict[str, str]] = {
    "fold": "std::utils::fold",
    "sum": "std::utils::sum",
    "len": "std::array::len",
    "fe": "std::convert::fe",
    "int": "std::convert::int",
    "panic": "std::check::panic",
    "assert": "std::check::assert",
    "modulus": "std::field::modulus",
    "degree": "std::prover::degree",
}


def builtin(name: str, arity: int) -> Callable[[Callable], Callable]:
    def register(implementation: Callable) -> Callable:
        _REGISTRY[name] = Builtin(name=name, arity=arity, implementation=implementation)
        return implementation

    return register


def standard_library() -> dict[str, Builtin]:
    return dict(_REGISTRY)


def _length(value: Value, *, what: str) -> int:
    length = expect_integer(value, what=what)
    if length < 0:
        raise NonConstantLengthError(f"{what} must be non-negative, got {length}")
    return length


@builtin("std::array::len", 1)
def _array_len(ev: "Evaluator", args):
    (value,) = args
    if isinstance(value, (Array, Tuple)):
        return Integer(len(value.items))
    if isinstance(value, String):
        return Integer(len(value.value))
    raise TypeMismatchError(f"len expects an array, got {describe(value)}")


@builtin("std::array::new", 2)
def _array_new(ev: "Evaluator", args):
    length_value, function = args
    length = _length(length_value, what="array length")
    items = []
    for i in range(length):
        items.append((yield ev.apply(function, (Integer(i),))))
    return Array(tuple(items))


@builtin("std::array::map", 2)
def _array_map(ev: "Evaluator", args):
    array, function = args
    if not isinstance(array, Array):
        raise TypeMismatchError(f"map expects an array, got {describe(array)}")
    items = []
    for item in array.items:
        items.append((yield ev.apply(function, (item,))))
    return Array(tuple(items))


@builtin("std::utils::fold", 4)
def _fold(ev: "Evaluator", args):
    """``fold(length, f, initial, folder)``: ``folder(...folder(initial, f(0))..., f(length - 1))``."""
    length_value, function, accumulator, folder = args
    length = _length(length_value, what="fold length")
    for i in range(length):
        item = yield ev.apply(function, (Integer(i),))
        accumulator = yield ev.apply(folder, (accumulator, item))
    return accumulator


@builtin("std::utils::sum", 2)
def _sum(ev: "Evaluator", args):
    length_value, function = args
    length = _length(length_value, what="sum length")
    total: Value = Integer(0)
    for i in range(length):
        term = yield ev.apply(function, (Integer(i),))
        total = binary_operation("+", total, term, ev.field)
    return total


@builtin("std::convert::fe", 1)
def _to_fe(ev: "Evaluator", args):
    (value,) = args
    if isinstance(value, FieldElement):
        return value
    if isinstance(value, Integer):
        return FieldElement(ev.field.reduce(value.value))
    if is_symbolic(value):
        raise NonConstantLengthError(f"Cannot convert {describe(value)} to a field element at elaboration time")
    raise TypeMismatchError(f"fe expects a number, got {describe(value)}")


@builtin("std::convert::int", 1)
def _to_int(ev: "Evaluator", args):
    (value,) = args
    if isinstance(value, (FieldElement, Integer)):
        return Integer(value.value)
    if is_symbolic(value):
        raise NonConstantLengthError(f"Cannot convert {describe(value)} to an integer at elaboration time")
    raise TypeMismatchError(f"int expects a number, got {describe(value)}")


@builtin("std::field::modulus", 0)
def _modulus(ev: "Evaluator", args):
    return Integer(ev.field.modulus)


@builtin("std::prover::degree", 0)
def _degree(ev: "Evaluator", args):
    if ev.current_namespace is None:
        raise InvalidDegreeError("degree() is only available while elaborating a namespace")
    degree = ev.env.namespace(ev.current_namespace).degree
    if degree is None:
        raise InvalidDegreeError(f"Namespace {ev.current_namespace!r} has no degree")
    return Integer(degree)


def _message(value: Value) -> str:
    return value.value if isinstance(value, String) else describe(value)


@builtin("std::check::panic", 1)
def _panic(ev: "Evaluator", args):
    raise PanicError(_message(args[0]))


@builtin("std::check::assert", 2)
def _assert(ev: "Evaluator", args):
    condition, message = args
    if not expect_bool(condition, what="assertion condition"):
        raise PanicError(f"Assertion failed: {_message(message)}")
    return UNIT


@builtin("std::debug::print", 1)
def _print(ev: "Evaluator", args):
    logger.info("%s", _message(args[0]))
    return UNIT
