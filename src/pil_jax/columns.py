"""Registry of every declared column."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .algebra import AlgebraicExpression
from .errors import DuplicateDefinitionError, TypeMismatchError, UnresolvedReferenceError


class ColumnKind(str, Enum):
    FIXED = "fixed"
    WITNESS = "witness"
    INTERMEDIATE = "intermediate"


@dataclass(frozen=True)
class ColumnId:
    namespace: str
    name: str
    index: int | None = None

    @property
    def display_name(self) -> str:
        base = f"{self.namespace}::{self.name}"
        if self.index is None:
            return base
        return f"{base}[{self.index}]"


@dataclass(frozen=True)
class Column:
    id: ColumnId
    kind: ColumnKind
    degree: int
    # Fixed columns: one canonical field element per row.
    values: tuple[int, ...] | None = None
    # Intermediate columns: the (unshifted) defining expression.
    expression: AlgebraicExpression | None = None

    @property
    def namespace(self) -> str:
        return self.id.namespace

    @property
    def name(self) -> str:
        return self.id.name

    @property
    def index(self) -> int | None:
        return self.id.index

    def row_value(self, row: int) -> int:
        """Row function of a fixed column, cyclic over the row domain."""
        if self.values is None:
            raise TypeMismatchError(f"{self.kind.value} column {self.id.display_name} has no compile-time value")
        return self.values[row % self.degree]


class ColumnRegistry:
    def __init__(self) -> None:
        self._columns: dict[ColumnId, Column] = {}
        self._arity: dict[tuple[str, str], int | None] = {}

    def declare(
        self,
        namespace: str,
        name: str,
        kind: ColumnKind,
        *,
        degree: int,
        arity: int | None = None,
        values: list[tuple[int, ...]] | None = None,
        expressions: list[AlgebraicExpression] | None = None,
    ) -> list[Column]:
        """Registers ``arity`` columns (one unindexed column when ``arity`` is None)."""
        key = (namespace, name)
        if key in self._arity:
            raise DuplicateDefinitionError(f"Column {namespace}::{name} is already declared")
        if arity is not None and arity < 0:
            raise TypeMismatchError(f"Column array {namespace}::{name} has negative size {arity}")
        count = 1 if arity is None else arity
        if kind is ColumnKind.FIXED and (values is None or len(values) != count):
            raise TypeMismatchError(f"Fixed column {namespace}::{name} requires a definition")
        if kind is ColumnKind.INTERMEDIATE and (expressions is None or len(expressions) != count):
            raise TypeMismatchError(f"Intermediate column {namespace}::{name} requires a definition")

        declared: list[Column] = []
        for position in range(count):
            column = Column(
                id=ColumnId(namespace, name, None if arity is None else position),
                kind=kind,
                degree=degree,
                values=None if values is None else values[position],
                expression=None if expressions is None else expressions[position],
            )
            self._columns[column.id] = column
            declared.append(column)
        self._arity[key] = arity
        return declared

    def get(self, column_id: ColumnId) -> Column:
        try:
            return self._columns[column_id]
        except KeyError:
            raise UnresolvedReferenceError(f"Unknown column {column_id.display_name}") from None

    def columns(self, kind: ColumnKind | None = None) -> tuple[Column, ...]:
        return tuple(column for column in self._columns.values() if kind is None or column.kind is kind)

    def __len__(self) -> int:
        return len(self._columns)
