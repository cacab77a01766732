"""Elaboration driver and identity collector.

``elaborate`` walks the namespaces of a program in declaration order, forces
every top-level statement through the evaluator and collects the constraints
they produce. The result is an ``ElaboratedSpec``: the column table, the
identity list and the public declarations, with all intermediate columns
inlined.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from . import algebra
from .algebra import AlgebraicExpression, ColumnReference
from .ast import (
    ArrayExpression,
    ArrayValue,
    ConcatArray,
    ConstantDefinition,
    Expr,
    ExpressionStatement,
    FixedColumn,
    IntermediateColumn,
    LetStatement,
    NamespaceBlock,
    Program,
    PublicDeclaration,
    RepeatedArray,
    Statement,
    WitnessColumns,
)
from .builtins import PRELUDE, standard_library
from .columns import Column, ColumnId, ColumnKind, ColumnRegistry
from .config import ElaborationConfig
from .constraints import (
    Constraint,
    LookupIdentity,
    PermutationIdentity,
    PolynomialIdentity,
    SelectedTuple,
    render_constraint,
)
from .env import BindingKind, Environment, PublicEntry
from .errors import (
    ElaborationError,
    IndexOutOfBoundsError,
    InvalidDegreeError,
    NonConstantLengthError,
    StatementNotAConstraintError,
    TypeMismatchError,
)
from .evaluator import Evaluator
from .field import Field
from .operators import expect_integer
from .rows import ReferenceResolver
from .values import (
    Array,
    Builtin,
    Closure,
    ColumnHandle,
    FieldElement,
    Integer,
    Tuple,
    Unit,
    Value,
    describe,
    is_callable,
    is_constraint,
    is_symbolic,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NamespaceInfo:
    name: str
    degree: int | None


@dataclass(frozen=True)
class ElaboratedSpec:
    field: Field
    namespaces: tuple[NamespaceInfo, ...]
    columns: tuple[Column, ...]
    identities: tuple[Constraint, ...]
    publics: tuple[PublicEntry, ...]

    def columns_of(self, kind: ColumnKind) -> tuple[Column, ...]:
        return tuple(column for column in self.columns if column.kind is kind)

    def identities_of(self, kind: type) -> tuple[Constraint, ...]:
        return tuple(identity for identity in self.identities if isinstance(identity, kind))

    def render(self) -> str:
        lines = []
        for info in self.namespaces:
            lines.append(f"namespace {info.name}({info.degree if info.degree is not None else ''});")
            for column in self.columns:
                if column.namespace == info.name and column.kind is not ColumnKind.INTERMEDIATE:
                    lines.append(f"    {column.kind.value} {column.id.display_name};")
            for identity in self.identities:
                if identity.namespace == info.name:
                    lines.append(f"    {render_constraint(identity, self.field)};")
        return "\n".join(lines)


def _is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


class Elaborator:
    def __init__(self, config: ElaborationConfig | None = None) -> None:
        self.config = config or ElaborationConfig()
        self.field = self.config.field
        self.env = Environment(builtins=standard_library(), prelude=PRELUDE)
        self.columns = ColumnRegistry()
        self.evaluator = Evaluator(self.env, self.columns, self.config)
        self.resolver = ReferenceResolver(self.columns)
        self._identities: list[Constraint] = []
        self._boolean_columns: set[ColumnId] = set()

    def run(self, program: Program) -> ElaboratedSpec:
        logger.debug("elaborating %d namespace(s) over %s", len(program.namespaces), self.field.name)
        for block in program.namespaces:
            self._namespace(block)
        self.evaluator.current_namespace = None
        spec = ElaboratedSpec(
            field=self.field,
            namespaces=tuple(NamespaceInfo(scope.name, scope.degree) for scope in self.env.namespaces()),
            columns=self.columns.columns(),
            identities=tuple(self._identities),
            publics=self.env.publics(),
        )
        logger.debug("elaborated %d column(s), %d identity(ies)", len(spec.columns), len(spec.identities))
        return spec

    # -- namespaces and statements --------------------------------------

    def _namespace(self, block: NamespaceBlock) -> None:
        try:
            scope = self.env.open_namespace(block.name, None)
            self.evaluator.current_namespace = block.name
            if block.degree is not None:
                degree = expect_integer(self.evaluator.evaluate(block.degree, block.name), what="namespace degree")
                if not _is_power_of_two(degree):
                    raise InvalidDegreeError(f"Degree of namespace {block.name!r} must be a power of two, got {degree}")
                scope.degree = degree
        except ElaborationError as err:
            raise err.locate(block.name, None)
        logger.debug("namespace %s (degree %s): %d statement(s)", block.name, scope.degree, len(block.statements))

        for index, statement in enumerate(block.statements):
            try:
                self._statement(block.name, index, statement)
            except ElaborationError as err:
                raise err.locate(block.name, index)

    def _statement(self, namespace: str, index: int, statement: Statement) -> None:
        if isinstance(statement, LetStatement):
            self.env.define(namespace, statement.name, statement.value)
        elif isinstance(statement, ConstantDefinition):
            binding = self.env.define(namespace, statement.name, statement.value, kind=BindingKind.CONSTANT)
            self.evaluator.force(binding)
        elif isinstance(statement, WitnessColumns):
            for declaration in statement.declarations:
                arity = self._array_size(declaration.array_size, namespace)
                self._declare(namespace, declaration.name, ColumnKind.WITNESS, arity)
        elif isinstance(statement, FixedColumn):
            self._fixed_column(namespace, statement)
        elif isinstance(statement, IntermediateColumn):
            self._intermediate_column(namespace, statement)
        elif isinstance(statement, PublicDeclaration):
            self._public(namespace, statement)
        elif isinstance(statement, ExpressionStatement):
            value = self.evaluator.evaluate(statement.expression, namespace)
            gate = None
            if statement.selector is not None:
                selector = self.evaluator.evaluate(statement.selector, namespace)
                gate = self.evaluator.constraint_operand(selector, what="statement selector")
            self._collect(value, gate, namespace, index)
        else:
            raise TypeError(f"Unsupported statement: {type(statement)!r}")

    # -- columns --------------------------------------------------------

    def _degree(self, namespace: str) -> int:
        degree = self.env.namespace(namespace).degree
        if degree is None:
            raise InvalidDegreeError(f"Namespace {namespace!r} declares columns but has no degree")
        return degree

    def _array_size(self, size: Expr | None, namespace: str) -> int | None:
        if size is None:
            return None
        arity = expect_integer(self.evaluator.evaluate(size, namespace), what="column array size")
        if arity < 0:
            raise NonConstantLengthError(f"Column array size must be non-negative, got {arity}")
        return arity

    def _declare(
        self,
        namespace: str,
        name: str,
        kind: ColumnKind,
        arity: int | None,
        *,
        values: list[tuple[int, ...]] | None = None,
        expressions: list[AlgebraicExpression] | None = None,
    ) -> None:
        declared = self.columns.declare(
            namespace,
            name,
            kind,
            degree=self._degree(namespace),
            arity=arity,
            values=values,
            expressions=expressions,
        )
        handles = [ColumnHandle(column.id, kind) for column in declared]
        value: Value = handles[0] if arity is None else Array(tuple(handles))
        self.env.define(namespace, name, kind=BindingKind.COLUMN, value=value)
        logger.debug("declared %s column %s::%s%s", kind.value, namespace, name, "" if arity is None else f"[{arity}]")

    def _fixed_column(self, namespace: str, statement: FixedColumn) -> None:
        degree = self._degree(namespace)
        arity = self._array_size(statement.array_size, namespace)
        definition = statement.definition
        if isinstance(definition, (ArrayValue, RepeatedArray, ConcatArray)):
            if arity is not None:
                raise TypeMismatchError(f"Fixed column array {statement.name} needs one definition per column")
            values = [self._array_expression(definition, namespace, degree)]
        else:
            value = self.evaluator.evaluate(definition, namespace)
            if arity is None:
                values = [self._row_values(value, degree, statement.name)]
            else:
                if not isinstance(value, Array) or len(value) != arity:
                    raise TypeMismatchError(
                        f"Fixed column array {statement.name}[{arity}] needs an array of {arity} definitions, "
                        f"got {describe(value)}"
                    )
                values = [self._row_values(item, degree, f"{statement.name}[{i}]") for i, item in enumerate(value.items)]
        self._declare(namespace, statement.name, ColumnKind.FIXED, arity, values=values)

    def _row_values(self, definition: Value, degree: int, name: str) -> tuple[int, ...]:
        """Evaluates a row function (or reads a value array) over ``[0, degree)``."""
        if is_callable(definition):
            rows = [self.evaluator.call(definition, (Integer(row),)) for row in range(degree)]
        elif isinstance(definition, Array):
            if len(definition) != degree:
                raise TypeMismatchError(
                    f"Fixed column {name} has {len(definition)} value(s) but the namespace degree is {degree}"
                )
            rows = list(definition.items)
        else:
            raise TypeMismatchError(f"Fixed column {name} must be defined by a function or an array, got {describe(definition)}")
        return tuple(self._fixed_value(value, name) for value in rows)

    def _fixed_value(self, value: Value, name: str) -> int:
        if isinstance(value, FieldElement):
            return value.value
        if isinstance(value, Integer):
            return self.field.reduce(value.value)
        if is_symbolic(value):
            raise NonConstantLengthError(f"Fixed column {name} depends on {describe(value)}")
        raise TypeMismatchError(f"Fixed column {name} must evaluate to numbers, got {describe(value)}")

    def _array_expression(self, definition: ArrayExpression, namespace: str, degree: int) -> tuple[int, ...]:
        segments: list[tuple[bool, list[int]]] = []
        pending: list[ArrayExpression] = [definition]
        while pending:
            current = pending.pop()
            if isinstance(current, ConcatArray):
                pending.append(current.right)
                pending.append(current.left)
                continue
            items = [
                self._fixed_value(self.evaluator.evaluate(item, namespace), "array definition")
                for item in current.items
            ]
            segments.append((isinstance(current, RepeatedArray), items))

        repeated = [items for is_repeated, items in segments if is_repeated]
        if len(repeated) > 1:
            raise TypeMismatchError("An array definition may contain at most one repeated segment")
        fixed_length = sum(len(items) for is_repeated, items in segments if not is_repeated)
        remaining = degree - fixed_length
        if remaining < 0 or (not repeated and remaining != 0):
            raise TypeMismatchError(f"Array definition has {fixed_length} value(s) but the namespace degree is {degree}")
        if repeated and not repeated[0] and remaining:
            raise TypeMismatchError("A repeated array segment must not be empty")

        values: list[int] = []
        for is_repeated, items in segments:
            if is_repeated:
                values.extend(items[i % len(items)] for i in range(remaining))
            else:
                values.extend(items)
        return tuple(values)

    def _intermediate_column(self, namespace: str, statement: IntermediateColumn) -> None:
        arity = self._array_size(statement.array_size, namespace)
        value = self.evaluator.evaluate(statement.value, namespace)
        if arity is None:
            expressions = [self.evaluator.constraint_operand(value, what=f"intermediate column {statement.name}")]
        else:
            if not isinstance(value, (Array, Tuple)) or len(value.items) != arity:
                raise TypeMismatchError(
                    f"Intermediate column array {statement.name}[{arity}] needs {arity} expressions, got {describe(value)}"
                )
            expressions = [
                self.evaluator.constraint_operand(item, what=f"intermediate column {statement.name}[{i}]") for i, item in enumerate(value.items)
            ]
        self._declare(namespace, statement.name, ColumnKind.INTERMEDIATE, arity, expressions=expressions)

    def _public(self, namespace: str, statement: PublicDeclaration) -> None:
        column = self.evaluator.evaluate(statement.column, namespace)
        if not isinstance(column, ColumnHandle) or column.kind is ColumnKind.INTERMEDIATE:
            raise TypeMismatchError(f"Public {statement.name} must refer to a fixed or witness column, got {describe(column)}")
        row = expect_integer(self.evaluator.evaluate(statement.row, namespace), what="public row")
        degree = self.columns.get(column.column).degree
        if not 0 <= row < degree:
            raise IndexOutOfBoundsError(f"Public {statement.name} reads row {row} outside [0, {degree})")
        self.env.define_public(namespace, statement.name, ColumnReference(column.column, column.offset), row)

    # -- identities -----------------------------------------------------

    def _collect(self, value: Value, gate: AlgebraicExpression | None, namespace: str, index: int) -> None:
        if isinstance(value, Unit):
            return
        if is_constraint(value):
            self._emit(self._gated(value, gate), namespace, index)
            return
        if isinstance(value, (Array, Tuple)) and all(is_constraint(item) for item in value.items):
            for item in value.items:
                self._emit(self._gated(item, gate), namespace, index)
            return
        if isinstance(value, (Closure, Builtin)):
            raise StatementNotAConstraintError(f"Statement evaluates to an uncalled function ({describe(value)})")
        raise StatementNotAConstraintError(f"Statement evaluates to {describe(value)}, not a constraint")

    def _gated(self, constraint: Constraint, gate: AlgebraicExpression | None) -> Constraint:
        if gate is None:
            return constraint
        if isinstance(constraint, PolynomialIdentity):
            selector = gate if constraint.selector is None else algebra.mul(gate, constraint.selector, self.field)
            return replace(constraint, selector=selector)
        if isinstance(constraint, (LookupIdentity, PermutationIdentity)):
            left = constraint.left
            selector = gate if left.selector is None else algebra.mul(gate, left.selector, self.field)
            return replace(constraint, left=replace(left, selector=selector))
        raise TypeMismatchError("A connect identity cannot be gated by a selector")

    def _resolve_selected(self, selected: SelectedTuple) -> SelectedTuple:
        return SelectedTuple(
            selector=self.resolver.resolve_optional(selected.selector),
            expressions=tuple(self.resolver.resolve(expr) for expr in selected.expressions),
        )

    def _check_selector(self, selector: AlgebraicExpression | None, namespace: str, index: int) -> None:
        if not isinstance(selector, ColumnReference) or selector.column in self._boolean_columns:
            return
        column = self.columns.get(selector.column)
        if column.kind is ColumnKind.FIXED:
            if set(column.values) <= {0, 1}:
                self._boolean_columns.add(column.id)
                return
        logger.warning(
            "%s#%d: selector %s is not constrained to be boolean", namespace, index, selector.column.display_name
        )

    def _emit(self, constraint: Constraint, namespace: str, index: int) -> None:
        if isinstance(constraint, PolynomialIdentity):
            expression = self.resolver.resolve(constraint.expression)
            selector = self.resolver.resolve_optional(constraint.selector)
            self._check_selector(selector, namespace, index)
            if isinstance(expression, algebra.Constant) and expression.value:
                logger.warning("%s#%d: identity reduces to the non-zero constant %d", namespace, index, expression.value)
            elif selector is None and algebra.degree(expression) == 2:
                forced = algebra.boolean_forced_reference(expression, self.field)
                if forced is not None:
                    self._boolean_columns.add(forced.column)
            constraint = replace(constraint, expression=expression, selector=selector)
        elif isinstance(constraint, (LookupIdentity, PermutationIdentity)):
            left = self._resolve_selected(constraint.left)
            right = self._resolve_selected(constraint.right)
            self._check_selector(left.selector, namespace, index)
            self._check_selector(right.selector, namespace, index)
            constraint = replace(constraint, left=left, right=right)
        else:
            constraint = replace(
                constraint,
                left=tuple(self.resolver.resolve(expr) for expr in constraint.left),
                right=tuple(self.resolver.resolve(expr) for expr in constraint.right),
            )
        constraint = replace(constraint, namespace=namespace, statement_index=index)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s#%d: %s", namespace, index, render_constraint(constraint, self.field))
        self._identities.append(constraint)


def elaborate(program: Program, config: ElaborationConfig | None = None) -> ElaboratedSpec:
    """Reduces ``program`` to its column table and identity list.

    Any failure raises an ``ElaborationError`` located at the offending
    namespace and statement; no partial result is returned.
    """
    return Elaborator(config).run(program)
