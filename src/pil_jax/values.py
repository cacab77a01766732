"""Runtime value model of the elaborator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Union

from .algebra import AlgebraicExpression
from .columns import ColumnId, ColumnKind
from .constraints import CONSTRAINT_TYPES, Constraint

if TYPE_CHECKING:
    from .ast import Expr
    from .env import Scope


@dataclass(frozen=True)
class Integer:
    value: int


@dataclass(frozen=True)
class FieldElement:
    """Canonical representative in ``[0, modulus)``."""

    value: int


@dataclass(frozen=True)
class Bool:
    value: bool


@dataclass(frozen=True)
class String:
    value: str


@dataclass(frozen=True)
class Tuple:
    items: tuple["Value", ...]


@dataclass(frozen=True)
class Array:
    items: tuple["Value", ...]

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True, eq=False)
class Closure:
    params: tuple[str, ...]
    body: "Expr"
    namespace: str
    scope: "Scope"
    name: str | None = None


@dataclass(frozen=True, eq=False)
class Builtin:
    """Library function; ``implementation`` is a generator run on the trampoline."""

    name: str
    arity: int
    implementation: Callable
    bound: tuple["Value", ...] = ()


@dataclass(frozen=True)
class ColumnHandle:
    column: ColumnId
    kind: ColumnKind
    offset: int = 0


@dataclass(frozen=True)
class Symbolic:
    """Per-row quantity built from column handles; never evaluated to a number."""

    expression: AlgebraicExpression


@dataclass(frozen=True)
class Unit:
    pass


UNIT = Unit()
TRUE = Bool(True)
FALSE = Bool(False)

Value = Union[
    Integer, FieldElement, Bool, String, Tuple, Array, Closure, Builtin, ColumnHandle, Symbolic, Unit, Constraint
]


class ValueKind(str, Enum):
    INTEGER = "int"
    FIELD_ELEMENT = "fe"
    BOOL = "bool"
    STRING = "string"
    TUPLE = "tuple"
    ARRAY = "array"
    CLOSURE = "closure"
    BUILTIN = "builtin"
    COLUMN = "column"
    SYMBOLIC = "expr"
    UNIT = "unit"
    CONSTRAINT = "constr"


@dataclass(frozen=True)
class ValueInfo:
    kind: ValueKind
    length: int | None
    symbolic: bool


_KIND_BY_TYPE: dict[type, ValueKind] = {
    Integer: ValueKind.INTEGER,
    FieldElement: ValueKind.FIELD_ELEMENT,
    Bool: ValueKind.BOOL,
    String: ValueKind.STRING,
    Tuple: ValueKind.TUPLE,
    Array: ValueKind.ARRAY,
    Closure: ValueKind.CLOSURE,
    Builtin: ValueKind.BUILTIN,
    ColumnHandle: ValueKind.COLUMN,
    Symbolic: ValueKind.SYMBOLIC,
    Unit: ValueKind.UNIT,
}


def kind_of(value: object) -> ValueKind:
    kind = _KIND_BY_TYPE.get(type(value))
    if kind is not None:
        return kind
    if isinstance(value, CONSTRAINT_TYPES):
        return ValueKind.CONSTRAINT
    raise TypeError(f"Unsupported runtime value {type(value).__name__}")


def is_callable(value: object) -> bool:
    return isinstance(value, (Closure, Builtin))


def is_symbolic(value: object) -> bool:
    """True for values that only exist per row (handles and expressions over them)."""
    return isinstance(value, (ColumnHandle, Symbolic))


def is_constraint(value: object) -> bool:
    return isinstance(value, CONSTRAINT_TYPES)


def value_info(value: object) -> ValueInfo:
    kind = kind_of(value)
    length = len(value.items) if isinstance(value, (Tuple, Array)) else None
    return ValueInfo(kind=kind, length=length, symbolic=is_symbolic(value))


def describe(value: object) -> str:
    """Short description for error messages."""
    kind = kind_of(value)
    if isinstance(value, (Integer, FieldElement, Bool)):
        return f"{kind.value} {value.value}"
    if isinstance(value, String):
        return f"string {value.value!r}"
    if isinstance(value, ColumnHandle):
        return f"{value.kind.value} column {value.column.display_name}"
    if isinstance(value, Closure) and value.name:
        return f"closure {value.name}"
    if isinstance(value, Builtin):
        return f"builtin {value.name}"
    if isinstance(value, (Tuple, Array)):
        return f"{kind.value} of length {len(value.items)}"
    return kind.value


def validate_value(value: object, *, where: str = "value") -> None:
    if isinstance(value, (Tuple, Array)):
        for idx, item in enumerate(value.items):
            validate_value(item, where=f"{where}[{idx}]")
        return
    try:
        kind_of(value)
    except TypeError:
        raise TypeError(f"{where} has unsupported runtime type {type(value).__name__}") from None
