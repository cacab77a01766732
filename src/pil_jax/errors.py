"""Structured error types for elaboration failures."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNRESOLVED_REFERENCE = "UnresolvedReference"
    DUPLICATE_DEFINITION = "DuplicateDefinition"
    TYPE_MISMATCH = "TypeMismatch"
    ARITY_MISMATCH = "ArityMismatch"
    NON_CONSTANT_LENGTH = "NonConstantLength"
    RECURSION_LIMIT_EXCEEDED = "RecursionLimitExceeded"
    NON_EXHAUSTIVE_MATCH = "NonExhaustiveMatch"
    STATEMENT_NOT_A_CONSTRAINT = "StatementNotAConstraint"
    UNDER_SPECIFIED = "UnderSpecified"
    LOOKUP_ARITY_MISMATCH = "LookupArityMismatch"
    INDEX_OUT_OF_BOUNDS = "IndexOutOfBounds"
    DIVISION_BY_ZERO = "DivisionByZero"
    INVALID_DEGREE = "InvalidDegree"
    PANIC = "Panic"


class PILError(Exception):
    """Base class for structured pil-jax errors."""


class ElaborationError(PILError):
    """Failure while reducing a specification to its constraint set.

    The location is unknown where the error is raised (deep inside the
    evaluator) and is filled in by the identity collector once the failing
    statement is known.
    """

    kind: ErrorKind = ErrorKind.TYPE_MISMATCH

    def __init__(self, message: str, *, namespace: str | None = None, statement_index: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.namespace = namespace
        self.statement_index = statement_index

    def locate(self, namespace: str, statement_index: int | None) -> "ElaborationError":
        if self.namespace is None:
            self.namespace = namespace
            self.statement_index = statement_index
        return self

    @property
    def location(self) -> str | None:
        if self.namespace is None:
            return None
        if self.statement_index is None:
            return self.namespace
        return f"{self.namespace}#{self.statement_index}"

    def __str__(self) -> str:
        location = self.location
        if location is None:
            return f"{self.kind.value}: {self.message}"
        return f"{self.kind.value} at {location}: {self.message}"


class UnresolvedReferenceError(ElaborationError):
    kind = ErrorKind.UNRESOLVED_REFERENCE


class DuplicateDefinitionError(ElaborationError):
    kind = ErrorKind.DUPLICATE_DEFINITION


class TypeMismatchError(ElaborationError):
    kind = ErrorKind.TYPE_MISMATCH


class ArityMismatchError(ElaborationError):
    kind = ErrorKind.ARITY_MISMATCH


class NonConstantLengthError(ElaborationError):
    """A compile-time quantity depends on a witness column."""

    kind = ErrorKind.NON_CONSTANT_LENGTH


class RecursionLimitExceededError(ElaborationError):
    kind = ErrorKind.RECURSION_LIMIT_EXCEEDED


class NonExhaustiveMatchError(ElaborationError):
    kind = ErrorKind.NON_EXHAUSTIVE_MATCH


class StatementNotAConstraintError(ElaborationError):
    kind = ErrorKind.STATEMENT_NOT_A_CONSTRAINT


class UnderSpecifiedError(ElaborationError):
    """A constraint still contains closures or arrays after evaluation."""

    kind = ErrorKind.UNDER_SPECIFIED


class LookupArityMismatchError(ArityMismatchError):
    kind = ErrorKind.LOOKUP_ARITY_MISMATCH


class IndexOutOfBoundsError(ElaborationError):
    kind = ErrorKind.INDEX_OUT_OF_BOUNDS


class DivisionByZeroError(ElaborationError):
    kind = ErrorKind.DIVISION_BY_ZERO


class InvalidDegreeError(ElaborationError):
    kind = ErrorKind.INVALID_DEGREE


class PanicError(ElaborationError):
    """Raised by ``std::check::panic`` and failed ``std::check::assert``."""

    kind = ErrorKind.PANIC
