"""Prime fields supported as elaboration targets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .errors import DivisionByZeroError, TypeMismatchError


@dataclass(frozen=True)
class Field:
    name: str
    modulus: int

    @property
    def bits(self) -> int:
        return self.modulus.bit_length()

    def reduce(self, value: int) -> int:
        return value % self.modulus

    def inverse(self, value: int) -> int:
        value = self.reduce(value)
        if value == 0:
            raise DivisionByZeroError(f"Division by zero in field {self.name}")
        return pow(value, -1, self.modulus)

    def to_signed(self, value: int) -> int:
        """Maps a canonical element to the representative closest to zero."""
        value = self.reduce(value)
        if value > self.modulus // 2:
            return value - self.modulus
        return value


GOLDILOCKS: Final = Field(name="goldilocks", modulus=2**64 - 2**32 + 1)
BN254: Final = Field(
    name="bn254",
    modulus=21888242871839275222246405745257275088548364400416034343698204186575808495617,
)
BABYBEAR: Final = Field(name="babybear", modulus=2**31 - 2**27 + 1)
MERSENNE31: Final = Field(name="mersenne31", modulus=2**31 - 1)

_FIELDS: Final[dict[str, Field]] = {field.name: field for field in (GOLDILOCKS, BN254, BABYBEAR, MERSENNE31)}


def field_by_name(name: str) -> Field:
    try:
        return _FIELDS[name.casefold()]
    except KeyError:
        raise TypeMismatchError(f"Unknown field {name!r}; expected one of {', '.join(sorted(_FIELDS))}") from None


def known_fields() -> tuple[str, ...]:
    return tuple(sorted(_FIELDS))
