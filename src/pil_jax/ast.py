"""AST nodes for the identity language, as handed over by a parser."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Number:
    value: int


@dataclass(frozen=True)
class String:
    value: str


@dataclass(frozen=True)
class Reference:
    """A bare (``x``) or qualified (``Main::x``, ``std::utils::sum``) name."""

    path: str

    @property
    def segments(self) -> tuple[str, ...]:
        return tuple(self.path.split("::"))


@dataclass(frozen=True)
class PublicReference:
    name: str


@dataclass(frozen=True)
class Tuple:
    items: tuple["Expr", ...]


@dataclass(frozen=True)
class ArrayLiteral:
    items: tuple["Expr", ...]


@dataclass(frozen=True)
class UnaryOperation:
    op: str
    operand: "Expr"


@dataclass(frozen=True)
class BinaryOperation:
    op: str
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class Next:
    """Postfix row shift, ``x'``."""

    operand: "Expr"


@dataclass(frozen=True)
class IndexAccess:
    array: "Expr"
    index: "Expr"


@dataclass(frozen=True)
class FunctionCall:
    function: "Expr"
    arguments: tuple["Expr", ...]


@dataclass(frozen=True)
class Lambda:
    params: tuple[str, ...]
    body: "Expr"


@dataclass(frozen=True)
class MatchArm:
    # None is the catch-all arm (``_``).
    pattern: "Expr | None"
    value: "Expr"


@dataclass(frozen=True)
class Match:
    scrutinee: "Expr"
    arms: tuple[MatchArm, ...]


@dataclass(frozen=True)
class IfElse:
    condition: "Expr"
    then: "Expr"
    otherwise: "Expr"


@dataclass(frozen=True)
class Identity:
    """``left = right``, a polynomial identity once both sides are known."""

    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class SelectedExpressions:
    selector: "Expr | None"
    expressions: "Expr"


@dataclass(frozen=True)
class Lookup:
    left: SelectedExpressions
    right: SelectedExpressions


@dataclass(frozen=True)
class Permutation:
    left: SelectedExpressions
    right: SelectedExpressions


@dataclass(frozen=True)
class Connect:
    left: "Expr"
    right: "Expr"


Expr = Union[
    Number,
    String,
    Reference,
    PublicReference,
    Tuple,
    ArrayLiteral,
    UnaryOperation,
    BinaryOperation,
    Next,
    IndexAccess,
    FunctionCall,
    Lambda,
    Match,
    IfElse,
    Identity,
    Lookup,
    Permutation,
    Connect,
]


# Fixed-column array definitions: ``[1, 2] + [0]*`` fills the column up to the
# namespace degree with the repeated segment.


@dataclass(frozen=True)
class ArrayValue:
    items: tuple[Expr, ...]


@dataclass(frozen=True)
class RepeatedArray:
    items: tuple[Expr, ...]


@dataclass(frozen=True)
class ConcatArray:
    left: "ArrayExpression"
    right: "ArrayExpression"


ArrayExpression = Union[ArrayValue, RepeatedArray, ConcatArray]


@dataclass(frozen=True)
class LetStatement:
    name: str
    value: Expr


@dataclass(frozen=True)
class ConstantDefinition:
    """``constant %N = 8;`` evaluated eagerly to a number."""

    name: str
    value: Expr


@dataclass(frozen=True)
class ColumnDeclaration:
    name: str
    array_size: Expr | None = None


@dataclass(frozen=True)
class WitnessColumns:
    declarations: tuple[ColumnDeclaration, ...]


@dataclass(frozen=True)
class FixedColumn:
    name: str
    definition: "Expr | ArrayExpression"
    array_size: Expr | None = None


@dataclass(frozen=True)
class IntermediateColumn:
    name: str
    value: Expr
    array_size: Expr | None = None


@dataclass(frozen=True)
class PublicDeclaration:
    name: str
    column: Expr
    row: Expr


@dataclass(frozen=True)
class ExpressionStatement:
    """A top-level assertion; ``selector`` marks the gated form."""

    expression: Expr
    selector: Expr | None = None


Statement = Union[
    LetStatement,
    ConstantDefinition,
    WitnessColumns,
    FixedColumn,
    IntermediateColumn,
    PublicDeclaration,
    ExpressionStatement,
]


@dataclass(frozen=True)
class NamespaceBlock:
    name: str
    degree: Expr | None
    statements: tuple[Statement, ...]


@dataclass(frozen=True)
class Program:
    namespaces: tuple[NamespaceBlock, ...]
