"""Helpers for constructing ASTs in code.

Python ints become ``Number`` nodes and strings become ``Reference`` nodes
wherever an expression is expected, so ``add("x", 1)`` reads ``x + 1``.
"""

from __future__ import annotations

from functools import reduce
from typing import Iterable, Union

from .ast import (
    ArrayExpression,
    ArrayLiteral,
    ArrayValue,
    BinaryOperation,
    ColumnDeclaration,
    ConcatArray,
    Connect,
    ConstantDefinition,
    Expr,
    ExpressionStatement,
    FixedColumn,
    FunctionCall,
    Identity,
    IfElse,
    IndexAccess,
    IntermediateColumn,
    Lambda,
    LetStatement,
    Lookup,
    Match,
    MatchArm,
    NamespaceBlock,
    Next,
    Number,
    Permutation,
    Program,
    PublicDeclaration,
    PublicReference,
    Reference,
    RepeatedArray,
    SelectedExpressions,
    Statement,
    String,
    Tuple,
    UnaryOperation,
    WitnessColumns,
)

ExprLike = Union[Expr, int, str]


def expr(value: ExprLike) -> Expr:
    if isinstance(value, bool):
        raise TypeError("Booleans have no literal form; compare numbers instead")
    if isinstance(value, int):
        return Number(value)
    if isinstance(value, str):
        return Reference(value)
    return value


def _exprs(values: Iterable[ExprLike]) -> tuple[Expr, ...]:
    return tuple(expr(value) for value in values)


def num(value: int) -> Number:
    return Number(value)


def ref(path: str) -> Reference:
    return Reference(path)


def string(value: str) -> String:
    return String(value)


def public(name: str) -> PublicReference:
    return PublicReference(name)


def next_ref(value: ExprLike) -> Next:
    return Next(expr(value))


def binop(op: str, left: ExprLike, right: ExprLike) -> BinaryOperation:
    return BinaryOperation(op, expr(left), expr(right))


def add(left: ExprLike, right: ExprLike) -> BinaryOperation:
    return binop("+", left, right)


def sub(left: ExprLike, right: ExprLike) -> BinaryOperation:
    return binop("-", left, right)


def mul(left: ExprLike, right: ExprLike) -> BinaryOperation:
    return binop("*", left, right)


def neg(value: ExprLike) -> UnaryOperation:
    return UnaryOperation("-", expr(value))


def not_(value: ExprLike) -> UnaryOperation:
    return UnaryOperation("!", expr(value))


def sum_of(terms: Iterable[ExprLike]) -> Expr:
    """``t0 + t1 + ...``; zero for no terms."""
    items = _exprs(terms)
    if not items:
        return Number(0)
    return reduce(add, items)


def tuple_(*items: ExprLike) -> Tuple:
    return Tuple(_exprs(items))


def array(*items: ExprLike) -> ArrayLiteral:
    return ArrayLiteral(_exprs(items))


def index(container: ExprLike, position: ExprLike) -> IndexAccess:
    return IndexAccess(expr(container), expr(position))


def call(function: ExprLike, *arguments: ExprLike) -> FunctionCall:
    return FunctionCall(expr(function), _exprs(arguments))


def lam(params: str | Iterable[str], body: ExprLike) -> Lambda:
    names = (params,) if isinstance(params, str) else tuple(params)
    return Lambda(names, expr(body))


def match(scrutinee: ExprLike, *arms: tuple[ExprLike | None, ExprLike]) -> Match:
    """Arms are ``(pattern, value)`` pairs; a ``None`` pattern is the catch-all."""
    return Match(
        expr(scrutinee),
        tuple(MatchArm(None if pattern is None else expr(pattern), expr(value)) for pattern, value in arms),
    )


def if_else(condition: ExprLike, then: ExprLike, otherwise: ExprLike) -> IfElse:
    return IfElse(expr(condition), expr(then), expr(otherwise))


def identity(left: ExprLike, right: ExprLike = 0) -> Identity:
    return Identity(expr(left), expr(right))


def selected(*expressions: ExprLike, selector: ExprLike | None = None) -> SelectedExpressions:
    items = _exprs(expressions)
    body = items[0] if len(items) == 1 else Tuple(items)
    return SelectedExpressions(None if selector is None else expr(selector), body)


def lookup(left: SelectedExpressions, right: SelectedExpressions) -> Lookup:
    return Lookup(left, right)


def permutation(left: SelectedExpressions, right: SelectedExpressions) -> Permutation:
    return Permutation(left, right)


def connect(left: Iterable[ExprLike], right: Iterable[ExprLike]) -> Connect:
    return Connect(Tuple(_exprs(left)), Tuple(_exprs(right)))


# -- statements ---------------------------------------------------------


def let(name: str, value: ExprLike) -> LetStatement:
    return LetStatement(name, expr(value))


def constant(name: str, value: ExprLike) -> ConstantDefinition:
    return ConstantDefinition(name, expr(value))


def witness(*names: str | tuple[str, ExprLike]) -> WitnessColumns:
    """``witness("a", ("b", 4))`` declares ``a`` and the column array ``b[4]``."""
    declarations = []
    for entry in names:
        if isinstance(entry, str):
            declarations.append(ColumnDeclaration(entry))
        else:
            name, size = entry
            declarations.append(ColumnDeclaration(name, expr(size)))
    return WitnessColumns(tuple(declarations))


def fixed(name: str, definition: ExprLike | ArrayExpression, array_size: ExprLike | None = None) -> FixedColumn:
    if not isinstance(definition, (ArrayValue, RepeatedArray, ConcatArray)):
        definition = expr(definition)
    return FixedColumn(name, definition, None if array_size is None else expr(array_size))


def values(*items: ExprLike) -> ArrayValue:
    return ArrayValue(_exprs(items))


def repeated(*items: ExprLike) -> RepeatedArray:
    return RepeatedArray(_exprs(items))


def concat(*parts: ArrayExpression) -> ArrayExpression:
    return reduce(ConcatArray, parts)


def intermediate(name: str, value: ExprLike, array_size: ExprLike | None = None) -> IntermediateColumn:
    return IntermediateColumn(name, expr(value), None if array_size is None else expr(array_size))


def public_declaration(name: str, column: ExprLike, row: ExprLike) -> PublicDeclaration:
    return PublicDeclaration(name, expr(column), expr(row))


def assert_(expression: Expr, selector: ExprLike | None = None) -> ExpressionStatement:
    return ExpressionStatement(expression, None if selector is None else expr(selector))


def namespace(name: str, degree: ExprLike | None, *statements: Statement) -> NamespaceBlock:
    return NamespaceBlock(name, None if degree is None else expr(degree), tuple(statements))


def program(*namespaces: NamespaceBlock) -> Program:
    return Program(tuple(namespaces))
