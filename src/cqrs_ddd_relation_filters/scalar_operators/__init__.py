"""Built-in in-memory scalar operators."""

from __future__ import annotations

from ..strategy import ScalarOperatorRegistry
from .set import InOperator, NotInOperator
from .standard import (
    EqualsOperator,
    GreaterEqualOperator,
    GreaterThanOperator,
    LessEqualOperator,
    LessThanOperator,
    NotEqualsOperator,
)
from .string import ContainsOperator, EndsWithOperator, StartsWithOperator


def build_default_registry() -> ScalarOperatorRegistry:
    """
    Return a fresh registry holding one strategy per :class:`FilterOperator`.

    Callers may ``register`` their own strategy afterwards to replace a
    built-in one, e.g. a case-insensitive ``contains``.
    """
    return ScalarOperatorRegistry(
        EqualsOperator(),
        NotEqualsOperator(),
        GreaterThanOperator(),
        GreaterEqualOperator(),
        LessThanOperator(),
        LessEqualOperator(),
        InOperator(),
        NotInOperator(),
        ContainsOperator(),
        StartsWithOperator(),
        EndsWithOperator(),
    )


__all__ = [
    "ContainsOperator",
    "EndsWithOperator",
    "EqualsOperator",
    "GreaterEqualOperator",
    "GreaterThanOperator",
    "InOperator",
    "LessEqualOperator",
    "LessThanOperator",
    "NotEqualsOperator",
    "NotInOperator",
    "StartsWithOperator",
    "build_default_registry",
]
