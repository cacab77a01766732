"""Fixed-column values as JAX arrays for a proving backend.

Field elements can be wider than any JAX integer dtype, so each row is stored
as little-endian 32-bit limbs: a column becomes a ``uint32`` array of shape
``(degree, limbs)`` with ``limbs = ceil(field.bits / 32)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, Sequence

import jax.numpy as jnp

from .columns import ColumnKind
from .field import Field

if TYPE_CHECKING:
    from .elaborator import ElaboratedSpec

LIMB_BITS: Final[int] = 32
_LIMB_MASK: Final[int] = (1 << LIMB_BITS) - 1


def limb_count(field: Field) -> int:
    return max(1, -(-field.bits // LIMB_BITS))


def _limbs(value: int, count: int) -> list[int]:
    return [(value >> (LIMB_BITS * i)) & _LIMB_MASK for i in range(count)]


def to_limbs(values: Sequence[int], field: Field) -> jnp.ndarray:
    count = limb_count(field)
    rows = [_limbs(field.reduce(value), count) for value in values]
    if not rows:
        return jnp.zeros((0, count), dtype=jnp.uint32)
    return jnp.asarray(rows, dtype=jnp.uint32)


def limbs_to_ints(array: jnp.ndarray) -> list[int]:
    """Inverse of ``to_limbs``: one Python int per row."""
    out = []
    for row in array.tolist():
        value = 0
        for position, limb in enumerate(row):
            value |= int(limb) << (LIMB_BITS * position)
        out.append(value)
    return out


def materialize_fixed_columns(spec: "ElaboratedSpec") -> dict[str, jnp.ndarray]:
    """Maps each fixed column's display name to its limb array."""
    columns = {}
    for column in spec.columns_of(ColumnKind.FIXED):
        columns[column.id.display_name] = to_limbs(column.values, spec.field)
    return columns


def stack_namespace(spec: "ElaboratedSpec", namespace: str) -> jnp.ndarray:
    """All fixed columns of ``namespace`` as one ``(columns, degree, limbs)`` array."""
    arrays = [
        to_limbs(column.values, spec.field)
        for column in spec.columns_of(ColumnKind.FIXED)
        if column.namespace == namespace
    ]
    if not arrays:
        return jnp.zeros((0, 0, limb_count(spec.field)), dtype=jnp.uint32)
    return jnp.stack(arrays, axis=0)
