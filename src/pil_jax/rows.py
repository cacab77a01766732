"""Row-reference resolution: ``next`` shifts and intermediate-column inlining."""

from __future__ import annotations

from dataclasses import replace

from . import algebra
from .algebra import AlgebraicExpression, ColumnReference
from .columns import ColumnId, ColumnKind, ColumnRegistry
from .errors import TypeMismatchError
from .values import ColumnHandle, Value, describe


def next_row(value: Value) -> ColumnHandle:
    """``x'``: the same column one row forward."""
    if not isinstance(value, ColumnHandle):
        raise TypeMismatchError(f"The next-row operator applies to columns only, got {describe(value)}")
    return replace(value, offset=value.offset + 1)


def wrap_row(row: int, offset: int, degree: int) -> int:
    """Row read by a reference with ``offset`` at ``row`` on a cyclic domain."""
    return (row + offset) % degree


class ReferenceResolver:
    """Flattens identities so only witness/fixed references and constants remain.

    Intermediate columns are replaced by their definitions; a reference to
    ``inter'`` shifts every reference inside the definition by one row, so
    offsets compose additively.
    """

    def __init__(self, registry: ColumnRegistry) -> None:
        self._registry = registry
        self._inlined: dict[ColumnId, AlgebraicExpression] = {}

    def _definition(self, column_id: ColumnId) -> AlgebraicExpression:
        resolved = self._inlined.get(column_id)
        if resolved is None:
            column = self._registry.get(column_id)
            resolved = self.resolve(column.expression)
            self._inlined[column_id] = resolved
        return resolved

    def _reference(self, ref: ColumnReference) -> AlgebraicExpression:
        column = self._registry.get(ref.column)
        if column.kind is ColumnKind.INTERMEDIATE:
            return algebra.shift(self._definition(ref.column), ref.offset)
        return ref

    def resolve(self, expr: AlgebraicExpression) -> AlgebraicExpression:
        return algebra.map_references(expr, self._reference)

    def resolve_optional(self, expr: AlgebraicExpression | None) -> AlgebraicExpression | None:
        return None if expr is None else self.resolve(expr)
