"""
Engine options shared by the parser, validator, evaluator and compiler.

``EngineOptions`` is an immutable value passed explicitly to every
component; there is no global or environment-driven configuration.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, replace
from typing import Any

DEFAULT_MAX_DEPTH = 64

# Interpreter frames used per filter level by the recursive walkers.
FRAMES_PER_LEVEL = 4


@dataclass(frozen=True)
class EngineOptions:
    """
    Immutable container for engine tuning parameters.

    Attributes:
        max_depth: Maximum nesting of filter nodes. Deeper filters are
            rejected with :class:`~cqrs_ddd_relation_filters.exceptions.FilterDepthError`
            instead of exhausting the interpreter stack.  It must stay
            below ``sys.getrecursionlimit() // FRAMES_PER_LEVEL``.
        short_circuit: Stop evaluating combinator children and related
            items once the result is determined.
        fold_constants: Let the compiler collapse constant sub-predicates.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    short_circuit: bool = True
    fold_constants: bool = True

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")
        ceiling = sys.getrecursionlimit() // FRAMES_PER_LEVEL
        if self.max_depth >= ceiling:
            raise ValueError(
                f"max_depth must be < {ceiling} for the current recursion "
                f"limit ({sys.getrecursionlimit()}), got {self.max_depth}"
            )

    def with_max_depth(self, max_depth: int) -> EngineOptions:
        """Return a copy with a different nesting limit."""
        return replace(self, max_depth=max_depth)

    def with_short_circuit(self, enabled: bool) -> EngineOptions:
        return replace(self, short_circuit=enabled)

    def with_constant_folding(self, enabled: bool) -> EngineOptions:
        return replace(self, fold_constants=enabled)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dictionary."""
        return {
            "max_depth": self.max_depth,
            "short_circuit": self.short_circuit,
            "fold_constants": self.fold_constants,
        }
