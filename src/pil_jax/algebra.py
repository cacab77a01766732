"""Flat algebraic expressions over columns, the payload of emitted identities.

Trees produced by unrolling large sums can be tens of thousands of nodes deep,
so every traversal here is iterative and shares work between repeated
sub-trees.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterator, TypeVar, Union

from .field import Field

if TYPE_CHECKING:
    from .columns import ColumnId


@dataclass(frozen=True)
class Constant:
    value: int


@dataclass(frozen=True)
class ColumnReference:
    column: "ColumnId"
    offset: int = 0

    @property
    def next(self) -> bool:
        return self.offset == 1


@dataclass(frozen=True)
class PublicValue:
    namespace: str
    name: str


@dataclass(frozen=True)
class BinaryOperation:
    op: str
    left: "AlgebraicExpression"
    right: "AlgebraicExpression"


@dataclass(frozen=True)
class Negation:
    operand: "AlgebraicExpression"


@dataclass(frozen=True)
class Power:
    base: "AlgebraicExpression"
    exponent: int


AlgebraicExpression = Union[Constant, ColumnReference, PublicValue, BinaryOperation, Negation, Power]

Monomial = tuple[tuple[object, int], ...]
Polynomial = dict[Monomial, int]

T = TypeVar("T")


def _children(expr: AlgebraicExpression) -> tuple[AlgebraicExpression, ...]:
    if isinstance(expr, BinaryOperation):
        return (expr.left, expr.right)
    if isinstance(expr, Negation):
        return (expr.operand,)
    if isinstance(expr, Power):
        return (expr.base,)
    return ()


def _shared(expr: AlgebraicExpression) -> set[int]:
    """Ids of the sub-trees reachable along more than one path."""
    seen: set[int] = set()
    shared: set[int] = set()
    stack = [expr]
    while stack:
        current = stack.pop()
        key = id(current)
        if key in seen:
            shared.add(key)
            continue
        seen.add(key)
        stack.extend(_children(current))
    return shared


def fold(
    expr: AlgebraicExpression,
    leaf: Callable[[AlgebraicExpression], T],
    node: Callable[[AlgebraicExpression, list[T]], T],
    copy: Callable[[T], T] | None = None,
) -> T:
    """Post-order reduction without recursion; shared sub-trees are reduced once.

    Only results of shared sub-trees are kept. When ``copy`` is given, each use
    of a shared result receives its own copy, so ``node`` may consume its
    arguments.
    """
    shared = _shared(expr)
    memo: dict[int, T] = {}
    results: list[T] = []
    stack: list[tuple[AlgebraicExpression, bool]] = [(expr, False)]
    while stack:
        current, expanded = stack.pop()
        key = id(current)
        if not expanded and key in memo:
            value = memo[key]
            results.append(value if copy is None else copy(value))
            continue
        children = _children(current)
        if not children:
            value = leaf(current)
        elif expanded:
            args = results[len(results) - len(children):]
            del results[len(results) - len(children):]
            value = node(current, args)
        else:
            stack.append((current, True))
            for child in reversed(children):
                stack.append((child, False))
            continue
        if key in shared:
            memo[key] = value
            if copy is not None:
                value = copy(value)
        results.append(value)
    return results[0]


def postorder(expr: AlgebraicExpression) -> Iterator[AlgebraicExpression]:
    seen: set[int] = set()
    stack: list[tuple[AlgebraicExpression, bool]] = [(expr, False)]
    while stack:
        current, expanded = stack.pop()
        if expanded:
            yield current
            continue
        if id(current) in seen:
            continue
        seen.add(id(current))
        stack.append((current, True))
        for child in reversed(_children(current)):
            stack.append((child, False))


def _rebuild(expr: AlgebraicExpression, args: list[AlgebraicExpression]) -> AlgebraicExpression:
    if isinstance(expr, BinaryOperation):
        return BinaryOperation(expr.op, args[0], args[1])
    if isinstance(expr, Negation):
        return Negation(args[0])
    if isinstance(expr, Power):
        return Power(args[0], expr.exponent)
    raise TypeError(f"Unsupported algebraic node: {type(expr)!r}")


def map_references(
    expr: AlgebraicExpression, fn: Callable[[ColumnReference], AlgebraicExpression]
) -> AlgebraicExpression:
    def leaf(node: AlgebraicExpression) -> AlgebraicExpression:
        if isinstance(node, ColumnReference):
            return fn(node)
        return node

    return fold(expr, leaf, _rebuild)


def shift(expr: AlgebraicExpression, rows: int) -> AlgebraicExpression:
    if rows == 0:
        return expr
    return map_references(expr, lambda ref: ColumnReference(ref.column, ref.offset + rows))


def references(expr: AlgebraicExpression) -> list[ColumnReference]:
    """Distinct column references in first-occurrence order."""
    out: list[ColumnReference] = []
    seen: set[ColumnReference] = set()
    for node in postorder(expr):
        if isinstance(node, ColumnReference) and node not in seen:
            seen.add(node)
            out.append(node)
    return out


# Smart constructors. They fold constants and drop neutral elements but never
# compare sub-trees, which keeps building O(1) per node.


def constant(value: int, field: Field) -> Constant:
    return Constant(field.reduce(value))


def add(left: AlgebraicExpression, right: AlgebraicExpression, field: Field) -> AlgebraicExpression:
    if isinstance(left, Constant) and isinstance(right, Constant):
        return constant(left.value + right.value, field)
    if isinstance(left, Constant) and left.value == 0:
        return right
    if isinstance(right, Constant) and right.value == 0:
        return left
    return BinaryOperation("+", left, right)


def sub(left: AlgebraicExpression, right: AlgebraicExpression, field: Field) -> AlgebraicExpression:
    if isinstance(left, Constant) and isinstance(right, Constant):
        return constant(left.value - right.value, field)
    if isinstance(right, Constant) and right.value == 0:
        return left
    if isinstance(left, Constant) and left.value == 0:
        return neg(right, field)
    return BinaryOperation("-", left, right)


def mul(left: AlgebraicExpression, right: AlgebraicExpression, field: Field) -> AlgebraicExpression:
    if isinstance(left, Constant) and isinstance(right, Constant):
        return constant(left.value * right.value, field)
    for a, b in ((left, right), (right, left)):
        if isinstance(a, Constant):
            if a.value == 0:
                return Constant(0)
            if a.value == 1:
                return b
    return BinaryOperation("*", left, right)


def neg(operand: AlgebraicExpression, field: Field) -> AlgebraicExpression:
    if isinstance(operand, Constant):
        return constant(-operand.value, field)
    if isinstance(operand, Negation):
        return operand.operand
    return Negation(operand)


def power(base: AlgebraicExpression, exponent: int, field: Field) -> AlgebraicExpression:
    if exponent < 0:
        raise ValueError("exponent must be non-negative")
    if isinstance(base, Constant):
        return Constant(pow(base.value, exponent, field.modulus))
    if exponent == 0:
        return Constant(1)
    if exponent == 1:
        return base
    return Power(base, exponent)


def _variable_key(var: object) -> tuple:
    if isinstance(var, ColumnReference):
        column = var.column
        index = -1 if column.index is None else column.index
        return (0, column.namespace, column.name, index, var.offset)
    if isinstance(var, PublicValue):
        return (1, var.namespace, var.name, -1, 0)
    raise TypeError(f"Unsupported polynomial variable: {var!r}")


def _poly_add(a: Polynomial, b: Polynomial, modulus: int, *, sign: int = 1) -> Polynomial:
    """Adds ``sign * b`` into ``a`` in place."""
    for mono, coeff in b.items():
        value = (a.get(mono, 0) + sign * coeff) % modulus
        if value:
            a[mono] = value
        else:
            a.pop(mono, None)
    return a


def _mono_mul(a: Monomial, b: Monomial) -> Monomial:
    exponents: dict[object, int] = dict(a)
    for var, exp in b:
        exponents[var] = exponents.get(var, 0) + exp
    return tuple(sorted(exponents.items(), key=lambda item: _variable_key(item[0])))


def _poly_mul(a: Polynomial, b: Polynomial, modulus: int) -> Polynomial:
    out: Polynomial = {}
    for mono_a, coeff_a in a.items():
        for mono_b, coeff_b in b.items():
            mono = _mono_mul(mono_a, mono_b)
            value = (out.get(mono, 0) + coeff_a * coeff_b) % modulus
            if value:
                out[mono] = value
            else:
                out.pop(mono, None)
    return out


def to_polynomial(expr: AlgebraicExpression, field: Field) -> Polynomial:
    """Canonical sum-of-monomials form; the zero polynomial is ``{}``."""
    modulus = field.modulus

    def leaf(node: AlgebraicExpression) -> Polynomial:
        if isinstance(node, Constant):
            value = node.value % modulus
            return {(): value} if value else {}
        if isinstance(node, (ColumnReference, PublicValue)):
            return {((node, 1),): 1}
        raise TypeError(f"Unsupported algebraic leaf: {node!r}")

    def combine(node: AlgebraicExpression, args: list[Polynomial]) -> Polynomial:
        if isinstance(node, BinaryOperation):
            if node.op == "+":
                return _poly_add(args[0], args[1], modulus)
            if node.op == "-":
                return _poly_add(args[0], args[1], modulus, sign=-1)
            if node.op == "*":
                return _poly_mul(args[0], args[1], modulus)
            raise TypeError(f"Unsupported algebraic operator {node.op!r}")
        if isinstance(node, Negation):
            return _poly_add({}, args[0], modulus, sign=-1)
        if isinstance(node, Power):
            result: Polynomial = {(): 1}
            for _ in range(node.exponent):
                result = _poly_mul(result, args[0], modulus)
            return result
        raise TypeError(f"Unsupported algebraic node: {node!r}")

    return fold(expr, leaf, combine, copy=dict)


def is_zero(expr: AlgebraicExpression, field: Field) -> bool:
    return not to_polynomial(expr, field)


def boolean_forced_reference(expr: AlgebraicExpression, field: Field) -> ColumnReference | None:
    """Returns ``x`` when ``expr`` is a non-zero multiple of ``x * (1 - x)``."""
    if len(references(expr)) != 1:
        return None
    poly = to_polynomial(expr, field)
    if len(poly) != 2:
        return None
    squares = [mono for mono in poly if len(mono) == 1 and mono[0][1] == 2]
    linears = [mono for mono in poly if len(mono) == 1 and mono[0][1] == 1]
    if len(squares) != 1 or len(linears) != 1:
        return None
    var = squares[0][0][0]
    if linears[0][0][0] != var or not isinstance(var, ColumnReference):
        return None
    if (poly[squares[0]] + poly[linears[0]]) % field.modulus != 0:
        return None
    return var


def degree(expr: AlgebraicExpression) -> int:
    def leaf(node: AlgebraicExpression) -> int:
        return 1 if isinstance(node, ColumnReference) else 0

    def combine(node: AlgebraicExpression, args: list[int]) -> int:
        if isinstance(node, BinaryOperation):
            return args[0] + args[1] if node.op == "*" else max(args)
        if isinstance(node, Power):
            return args[0] * node.exponent
        return args[0]

    return fold(expr, leaf, combine)


def _render_reference(ref: ColumnReference) -> str:
    text = ref.column.display_name
    if ref.offset == 1:
        return f"{text}'"
    if ref.offset:
        return f"{text}@{ref.offset}"
    return text


_PRECEDENCE = {"+": 1, "-": 1, "*": 2}


def render(expr: AlgebraicExpression, field: Field | None = None) -> str:
    """Human-readable infix form, used in logs and error messages."""

    def leaf(node: AlgebraicExpression) -> tuple[str, int]:
        if isinstance(node, Constant):
            value = node.value if field is None else field.to_signed(node.value)
            return (str(value), 4 if value >= 0 else 0)
        if isinstance(node, ColumnReference):
            return (_render_reference(node), 4)
        if isinstance(node, PublicValue):
            return (f":{node.name}", 4)
        raise TypeError(f"Unsupported algebraic leaf: {node!r}")

    def wrap(part: tuple[str, int], minimum: int) -> str:
        text, precedence = part
        return f"({text})" if precedence < minimum else text

    def combine(node: AlgebraicExpression, args: list[tuple[str, int]]) -> tuple[str, int]:
        if isinstance(node, BinaryOperation):
            prec = _PRECEDENCE[node.op]
            right_min = prec + 1 if node.op == "-" else prec
            return (f"{wrap(args[0], prec)} {node.op} {wrap(args[1], right_min)}", prec)
        if isinstance(node, Negation):
            return (f"-{wrap(args[0], 3)}", 3)
        if isinstance(node, Power):
            return (f"{wrap(args[0], 4)}**{node.exponent}", 3)
        raise TypeError(f"Unsupported algebraic node: {node!r}")

    return fold(expr, leaf, combine)[0]
