"""Partial evaluator for the identity language.

Everything that does not touch a column is reduced to a concrete value; what
does is expanded into a flat algebraic expression. Evaluation runs on a
generator trampoline: each ``_eval``/``_apply`` step is a generator that
yields the sub-computations it needs and receives their results, so deep
language-level recursion only grows an explicit frame stack that is bounded
by ``ElaborationConfig.max_depth``.
"""

from __future__ import annotations

import types
from dataclasses import dataclass, replace
from typing import Generator, Sequence

from . import algebra
from .ast import (
    ArrayLiteral,
    BinaryOperation,
    Connect,
    Expr,
    FunctionCall,
    Identity,
    IfElse,
    IndexAccess,
    Lambda,
    Lookup,
    Match,
    Next,
    Number,
    Permutation,
    PublicReference,
    Reference,
    SelectedExpressions,
    String,
    Tuple,
    UnaryOperation,
)
from .columns import ColumnKind, ColumnRegistry
from .config import ElaborationConfig
from .constraints import ConnectIdentity, LookupIdentity, PermutationIdentity, PolynomialIdentity, SelectedTuple
from .env import EMPTY_SCOPE, Binding, BindingKind, BindingState, Environment, Scope
from .errors import (
    ArityMismatchError,
    IndexOutOfBoundsError,
    LookupArityMismatchError,
    NonConstantLengthError,
    NonExhaustiveMatchError,
    RecursionLimitExceededError,
    TypeMismatchError,
    UnderSpecifiedError,
    UnresolvedReferenceError,
)
from .operators import LOGICAL_OPS, binary_operation, expect_bool, expect_integer, to_algebraic, unary_operation, values_equal
from .rows import next_row
from .values import (
    FALSE,
    TRUE,
    Array,
    Builtin,
    Closure,
    ColumnHandle,
    FieldElement,
    Integer,
    Symbolic,
    Value,
    describe,
)
from .values import String as StringValue
from .values import Tuple as TupleValue

Step = Generator[object, Value, Value]


@dataclass(frozen=True)
class Context:
    namespace: str
    scope: Scope = EMPTY_SCOPE


class Evaluator:
    def __init__(self, env: Environment, columns: ColumnRegistry, config: ElaborationConfig | None = None) -> None:
        self.env = env
        self.columns = columns
        self.config = config or ElaborationConfig()
        self.field = self.config.field
        # Degree context for ``std::prover::degree``: the namespace of the statement
        # being elaborated, or of the binding being forced.
        self.current_namespace: str | None = None

    # -- entry points ---------------------------------------------------

    def evaluate(self, expr: Expr, namespace: str, scope: Scope = EMPTY_SCOPE) -> Value:
        return self._run(self._eval(expr, Context(namespace, scope)))

    def call(self, function: Value, arguments: Sequence[Value]) -> Value:
        return self._run(self.apply(function, tuple(arguments)))

    def force(self, binding: Binding) -> Value:
        if binding.state is BindingState.RESOLVED:
            return binding.value
        return self._run(self._force(binding))

    def _run(self, root: Step) -> Value:
        stack: list[Step] = [root]
        steps = 1
        sent: Value | None = None
        try:
            while True:
                try:
                    request = stack[-1].send(sent)
                except StopIteration as stop:
                    stack.pop()
                    sent = stop.value
                    if not stack:
                        return sent
                    continue
                steps += 1
                if steps > self.config.max_steps:
                    raise RecursionLimitExceededError(
                        f"Evaluation exceeded {self.config.max_steps} steps; is a recursion bound decreasing?"
                    )
                stack.append(request)
                if len(stack) > self.config.max_depth:
                    raise RecursionLimitExceededError(f"Evaluation exceeded call depth {self.config.max_depth}")
                sent = None
        except BaseException:
            for frame in reversed(stack):
                frame.close()
            raise

    # -- names ----------------------------------------------------------

    def _force(self, binding: Binding) -> Step:
        if binding.state is BindingState.RESOLVED:
            return binding.value
        if binding.state is BindingState.RESOLVING:
            raise RecursionLimitExceededError(f"Cyclic definition of {binding.qualified_name}")
        if binding.definition is None:
            raise UnresolvedReferenceError(f"{binding.qualified_name} is declared but has no definition")
        # A definition sees the degree of the namespace it is written in.
        outer_namespace = self.current_namespace
        self.current_namespace = binding.namespace
        binding.state = BindingState.RESOLVING
        try:
            value = yield self._eval(binding.definition, Context(binding.namespace))
            if binding.kind is BindingKind.CONSTANT and not isinstance(value, (Integer, FieldElement)):
                raise TypeMismatchError(f"Constant {binding.qualified_name} must be a number, got {describe(value)}")
            if isinstance(value, Closure) and value.name is None:
                value = replace(value, name=binding.qualified_name)
            return binding.resolve_to(value)
        finally:
            self.current_namespace = outer_namespace
            if binding.state is BindingState.RESOLVING:
                binding.state = BindingState.UNRESOLVED

    def _lookup(self, path: str, ctx: Context) -> Step:
        if "::" not in path:
            local = ctx.scope.lookup(path)
            if local is not None:
                return local
        target = self.env.resolve(ctx.namespace, path)
        if isinstance(target, Builtin):
            return target
        return (yield self._force(target))

    # -- expressions ----------------------------------------------------

    def _eval(self, expr: Expr, ctx: Context) -> Step:
        if isinstance(expr, Number):
            return Integer(expr.value)

        if isinstance(expr, String):
            return StringValue(expr.value)

        if isinstance(expr, Reference):
            return (yield self._lookup(expr.path, ctx))

        if isinstance(expr, PublicReference):
            entry = self.env.resolve_public(ctx.namespace, expr.name)
            return Symbolic(algebra.PublicValue(entry.namespace, entry.name))

        if isinstance(expr, Tuple):
            items = []
            for item in expr.items:
                items.append((yield self._eval(item, ctx)))
            return TupleValue(tuple(items))

        if isinstance(expr, ArrayLiteral):
            items = []
            for item in expr.items:
                items.append((yield self._eval(item, ctx)))
            return Array(tuple(items))

        if isinstance(expr, UnaryOperation):
            operand = yield self._eval(expr.operand, ctx)
            return unary_operation(expr.op, operand, self.field)

        if isinstance(expr, BinaryOperation):
            left = yield self._eval(expr.left, ctx)
            if expr.op in LOGICAL_OPS:
                decided = expect_bool(left, what=f"left operand of {expr.op!r}")
                if decided == (expr.op == "||"):
                    return TRUE if decided else FALSE
                right = yield self._eval(expr.right, ctx)
                return TRUE if expect_bool(right, what=f"right operand of {expr.op!r}") else FALSE
            right = yield self._eval(expr.right, ctx)
            return binary_operation(expr.op, left, right, self.field)

        if isinstance(expr, Next):
            operand = yield self._eval(expr.operand, ctx)
            return next_row(operand)

        if isinstance(expr, IndexAccess):
            container = yield self._eval(expr.array, ctx)
            index_value = yield self._eval(expr.index, ctx)
            return self._index(container, index_value)

        if isinstance(expr, FunctionCall):
            function = yield self._eval(expr.function, ctx)
            arguments = []
            for argument in expr.arguments:
                arguments.append((yield self._eval(argument, ctx)))
            return (yield self.apply(function, tuple(arguments)))

        if isinstance(expr, Lambda):
            return Closure(params=expr.params, body=expr.body, namespace=ctx.namespace, scope=ctx.scope)

        if isinstance(expr, Match):
            scrutinee = yield self._eval(expr.scrutinee, ctx)
            for arm in expr.arms:
                if arm.pattern is not None:
                    pattern = yield self._eval(arm.pattern, ctx)
                    if not values_equal(scrutinee, pattern, self.field):
                        continue
                return (yield self._eval(arm.value, ctx))
            raise NonExhaustiveMatchError(f"No match arm applies to {describe(scrutinee)}")

        if isinstance(expr, IfElse):
            condition = yield self._eval(expr.condition, ctx)
            branch = expr.then if expect_bool(condition, what="if condition") else expr.otherwise
            return (yield self._eval(branch, ctx))

        if isinstance(expr, Identity):
            left = yield self._eval(expr.left, ctx)
            right = yield self._eval(expr.right, ctx)
            lhs = self.constraint_operand(left, what="left side of identity")
            rhs = self.constraint_operand(right, what="right side of identity")
            return PolynomialIdentity(expression=algebra.sub(lhs, rhs, self.field))

        if isinstance(expr, (Lookup, Permutation)):
            left = yield self._selected(expr.left, ctx)
            right = yield self._selected(expr.right, ctx)
            kind = "lookup" if isinstance(expr, Lookup) else "permutation"
            if left.arity != right.arity:
                raise LookupArityMismatchError(
                    f"{kind} compares {left.arity} expression(s) with {right.arity} expression(s)"
                )
            if isinstance(expr, Lookup):
                return LookupIdentity(left=left, right=right)
            return PermutationIdentity(left=left, right=right)

        if isinstance(expr, Connect):
            left = yield self._eval(expr.left, ctx)
            right = yield self._eval(expr.right, ctx)
            left_items = self._constraint_tuple(left, what="connect")
            right_items = self._constraint_tuple(right, what="connect")
            if len(left_items) != len(right_items):
                raise LookupArityMismatchError(
                    f"connect compares {len(left_items)} expression(s) with {len(right_items)} expression(s)"
                )
            return ConnectIdentity(left=left_items, right=right_items)

        raise TypeError(f"Unsupported expression node: {type(expr)!r}")

    def _index(self, container: Value, index_value: Value) -> Value:
        if not isinstance(container, (Array, TupleValue)):
            raise TypeMismatchError(f"Cannot index into {describe(container)}")
        index = expect_integer(index_value, what="array index")
        if not 0 <= index < len(container.items):
            raise IndexOutOfBoundsError(f"Index {index} out of bounds for {describe(container)}")
        return container.items[index]

    # -- application ----------------------------------------------------

    def apply(self, function: Value, arguments: tuple[Value, ...]) -> Step:
        if isinstance(function, Closure):
            params = function.params
            if len(arguments) > len(params):
                name = function.name or "closure"
                raise ArityMismatchError(f"{name} takes {len(params)} argument(s), got {len(arguments)}")
            scope = function.scope.extend(dict(zip(params, arguments)))
            if len(arguments) < len(params):
                return replace(function, params=params[len(arguments):], scope=scope)
            return (yield self._eval(function.body, Context(function.namespace, scope)))

        if isinstance(function, Builtin):
            arguments = function.bound + arguments
            if len(arguments) > function.arity:
                raise ArityMismatchError(f"{function.name} takes {function.arity} argument(s), got {len(arguments)}")
            if len(arguments) < function.arity:
                return replace(function, bound=arguments)
            result = function.implementation(self, arguments)
            if isinstance(result, types.GeneratorType):
                result = yield result
            return result

        if isinstance(function, ColumnHandle):
            return self._fixed_row(function, arguments)

        raise TypeMismatchError(f"{describe(function)} is not callable")

    def _fixed_row(self, handle: ColumnHandle, arguments: tuple[Value, ...]) -> FieldElement:
        if len(arguments) != 1:
            raise ArityMismatchError(f"Column {handle.column.display_name} takes one row index, got {len(arguments)}")
        if handle.kind is not ColumnKind.FIXED:
            raise NonConstantLengthError(
                f"{handle.kind.value} column {handle.column.display_name} has no value at elaboration time"
            )
        row = expect_integer(arguments[0], what="row index")
        column = self.columns.get(handle.column)
        return FieldElement(column.row_value(row + handle.offset))

    # -- constraint operands --------------------------------------------

    def constraint_operand(self, value: Value, *, what: str) -> algebra.AlgebraicExpression:
        if isinstance(value, (ColumnHandle, Symbolic, Integer, FieldElement)):
            return to_algebraic(value, self.field, what=what)
        raise UnderSpecifiedError(f"{what} must reduce to a polynomial expression, got {describe(value)}")

    def _constraint_tuple(self, value: Value, *, what: str) -> tuple[algebra.AlgebraicExpression, ...]:
        items = value.items if isinstance(value, (Array, TupleValue)) else (value,)
        return tuple(self.constraint_operand(item, what=f"{what} element {i}") for i, item in enumerate(items))

    def _selected(self, selected: SelectedExpressions, ctx: Context) -> Step:
        selector = None
        if selected.selector is not None:
            selector_value = yield self._eval(selected.selector, ctx)
            selector = self.constraint_operand(selector_value, what="selector")
        value = yield self._eval(selected.expressions, ctx)
        return SelectedTuple(selector=selector, expressions=self._constraint_tuple(value, what="lookup"))
