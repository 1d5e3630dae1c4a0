"""
Operator strategies keyed by :class:`FilterOperator`.

Each scalar operator is a small class; a registry maps the operator's
wire name to the class that implements it.  The in-memory evaluator and
the predicate executor share :class:`ScalarOperatorRegistry`; query
backends build their own registries on :class:`OperatorRegistry`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

if TYPE_CHECKING:
    from .operators import FilterOperator


class _Named(Protocol):
    @property
    def name(self) -> FilterOperator: ...


StrategyT = TypeVar("StrategyT", bound=_Named)


class OperatorRegistry(Generic[StrategyT]):
    """
    Mapping of operator → strategy shared by every backend.

    Registering a strategy for an operator that is already present
    replaces the previous one, which is how callers override built-ins.
    """

    #: Shown in the error raised for an operator with no strategy.
    target = "in-memory evaluation"

    def __init__(self, *strategies: StrategyT) -> None:
        self._strategies: dict[FilterOperator, StrategyT] = {}
        self.register_all(*strategies)

    def register(self, strategy: StrategyT) -> None:
        self._strategies[strategy.name] = strategy

    def register_all(self, *strategies: StrategyT) -> None:
        for strategy in strategies:
            self.register(strategy)

    def unregister(self, name: FilterOperator) -> None:
        self._strategies.pop(name, None)

    def get(self, name: FilterOperator) -> StrategyT | None:
        return self._strategies.get(name)

    def has(self, name: FilterOperator) -> bool:
        return name in self._strategies

    @property
    def supported_operators(self) -> set[FilterOperator]:
        return set(self._strategies)

    def require(self, name: FilterOperator) -> StrategyT:
        """Return the strategy for ``name`` or raise ``ValueError``."""
        strategy = self._strategies.get(name)
        if strategy is None:
            raise ValueError(f"Unsupported operator for {self.target}: {name}")
        return strategy


class ScalarOperator(ABC):
    """Compare one field value against a condition operand in Python."""

    @property
    @abstractmethod
    def name(self) -> FilterOperator: ...

    @abstractmethod
    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        """
        Args:
            field_value: The value read from the entity (may be ``None``).
            condition_value: The operand of the scalar condition.
        """
        ...


class ScalarOperatorRegistry(OperatorRegistry[ScalarOperator]):
    """
    Usage::

        registry = ScalarOperatorRegistry(EqualsOperator())
        registry.evaluate(FilterOperator.EQUALS, actual, expected)   # → bool
    """

    def evaluate(
        self, name: FilterOperator, field_value: Any, condition_value: Any
    ) -> bool:
        return self.require(name).evaluate(field_value, condition_value)
