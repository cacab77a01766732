"""pil-jax public API."""

from .algebra import AlgebraicExpression, to_polynomial
from .ast import Program
from .columns import Column, ColumnId, ColumnKind
from .config import ElaborationConfig
from .constraints import (
    ConnectIdentity,
    Constraint,
    LookupIdentity,
    PermutationIdentity,
    PolynomialIdentity,
    SelectedTuple,
    render_constraint,
)
from .elaborator import ElaboratedSpec, Elaborator, NamespaceInfo, elaborate
from .errors import (
    ArityMismatchError,
    DivisionByZeroError,
    DuplicateDefinitionError,
    ElaborationError,
    ErrorKind,
    IndexOutOfBoundsError,
    InvalidDegreeError,
    LookupArityMismatchError,
    NonConstantLengthError,
    NonExhaustiveMatchError,
    PanicError,
    PILError,
    RecursionLimitExceededError,
    StatementNotAConstraintError,
    TypeMismatchError,
    UnderSpecifiedError,
    UnresolvedReferenceError,
)
from .field import BABYBEAR, BN254, GOLDILOCKS, MERSENNE31, Field, field_by_name

try:
    from .materialize import limbs_to_ints, materialize_fixed_columns
except ModuleNotFoundError as exc:
    if exc.name and exc.name.startswith("jax"):
        _jax_import_error = exc

        def materialize_fixed_columns(*_args, **_kwargs):
            raise ModuleNotFoundError(
                "jax is required for materialize_fixed_columns(). Install runtime deps first."
            ) from _jax_import_error

        def limbs_to_ints(*_args, **_kwargs):
            raise ModuleNotFoundError(
                "jax is required for limbs_to_ints(). Install runtime deps first."
            ) from _jax_import_error

    else:
        raise

__all__ = [
    "AlgebraicExpression",
    "ArityMismatchError",
    "BABYBEAR",
    "BN254",
    "Column",
    "ColumnId",
    "ColumnKind",
    "ConnectIdentity",
    "Constraint",
    "DivisionByZeroError",
    "DuplicateDefinitionError",
    "ElaboratedSpec",
    "ElaborationConfig",
    "ElaborationError",
    "Elaborator",
    "ErrorKind",
    "Field",
    "GOLDILOCKS",
    "IndexOutOfBoundsError",
    "InvalidDegreeError",
    "LookupArityMismatchError",
    "LookupIdentity",
    "MERSENNE31",
    "NamespaceInfo",
    "NonConstantLengthError",
    "NonExhaustiveMatchError",
    "PILError",
    "PanicError",
    "PermutationIdentity",
    "PolynomialIdentity",
    "Program",
    "RecursionLimitExceededError",
    "SelectedTuple",
    "StatementNotAConstraintError",
    "TypeMismatchError",
    "UnderSpecifiedError",
    "UnresolvedReferenceError",
    "elaborate",
    "field_by_name",
    "limbs_to_ints",
    "materialize_fixed_columns",
    "render_constraint",
    "to_polynomial",
]
