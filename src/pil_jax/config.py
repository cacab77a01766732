"""Elaboration settings; defaults come from the environment at import time."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Final

from .field import Field, field_by_name

_DEFAULT_FIELD: Final[str] = os.environ.get("PIL_JAX_FIELD", "goldilocks")
_DEFAULT_MAX_STEPS: Final[int] = max(1, int(os.environ.get("PIL_JAX_MAX_STEPS", "20000000")))
_DEFAULT_MAX_DEPTH: Final[int] = max(1, int(os.environ.get("PIL_JAX_MAX_DEPTH", "200000")))


@dataclass(frozen=True)
class ElaborationConfig:
    field: Field = field(default_factory=lambda: field_by_name(_DEFAULT_FIELD))
    # Frames pushed on the trampoline per evaluation run.
    max_steps: int = _DEFAULT_MAX_STEPS
    # Simultaneously live frames, i.e. language-level call depth.
    max_depth: int = _DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        if self.max_steps < 1 or self.max_depth < 1:
            raise ValueError("max_steps and max_depth must be positive")
