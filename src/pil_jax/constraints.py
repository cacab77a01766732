"""Constraint records: the identities handed to a proving backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from . import algebra
from .algebra import AlgebraicExpression
from .field import Field


@dataclass(frozen=True)
class SelectedTuple:
    selector: AlgebraicExpression | None
    expressions: tuple[AlgebraicExpression, ...]

    @property
    def arity(self) -> int:
        return len(self.expressions)


@dataclass(frozen=True)
class PolynomialIdentity:
    """``expression`` is zero at every row where ``selector`` (if any) is one."""

    expression: AlgebraicExpression
    selector: AlgebraicExpression | None = None
    namespace: str | None = None
    statement_index: int | None = None

    def gated_expression(self, field: Field) -> AlgebraicExpression:
        if self.selector is None:
            return self.expression
        return algebra.mul(self.selector, self.expression, field)


@dataclass(frozen=True)
class LookupIdentity:
    """Every selected left row tuple appears among the selected right row tuples."""

    left: SelectedTuple
    right: SelectedTuple
    namespace: str | None = None
    statement_index: int | None = None


@dataclass(frozen=True)
class PermutationIdentity:
    """Selected left and right row tuples are equal as multisets."""

    left: SelectedTuple
    right: SelectedTuple
    namespace: str | None = None
    statement_index: int | None = None


@dataclass(frozen=True)
class ConnectIdentity:
    left: tuple[AlgebraicExpression, ...]
    right: tuple[AlgebraicExpression, ...]
    namespace: str | None = None
    statement_index: int | None = None


Constraint = Union[PolynomialIdentity, LookupIdentity, PermutationIdentity, ConnectIdentity]
CONSTRAINT_TYPES = (PolynomialIdentity, LookupIdentity, PermutationIdentity, ConnectIdentity)


def render_constraint(constraint: Constraint, field: Field | None = None) -> str:
    def tuple_text(selected: SelectedTuple) -> str:
        body = ", ".join(algebra.render(e, field) for e in selected.expressions)
        if selected.selector is None:
            return f"{{ {body} }}"
        return f"{algebra.render(selected.selector, field)} {{ {body} }}"

    if isinstance(constraint, PolynomialIdentity):
        text = f"{algebra.render(constraint.expression, field)} = 0"
        if constraint.selector is not None:
            return f"[{algebra.render(constraint.selector, field)}] {text}"
        return text
    if isinstance(constraint, LookupIdentity):
        return f"{tuple_text(constraint.left)} in {tuple_text(constraint.right)}"
    if isinstance(constraint, PermutationIdentity):
        return f"{tuple_text(constraint.left)} is {tuple_text(constraint.right)}"
    if isinstance(constraint, ConnectIdentity):
        left = ", ".join(algebra.render(e, field) for e in constraint.left)
        right = ", ".join(algebra.render(e, field) for e in constraint.right)
        return f"{{ {left} }} connect {{ {right} }}"
    raise TypeError(f"Unsupported constraint: {type(constraint)!r}")
