"""
Filter AST.

A filter is a tree of immutable nodes:

- :class:`ScalarCondition` compares one scalar field with an operand.
- :class:`And`, :class:`Or` and :class:`Not` combine ordered children.
- :class:`ToOneRelation` and :class:`ToManyRelation` descend into the
  target kind of a relation field.

Nodes compose with ``&``, ``|`` and ``~`` and render back to the keyed
filter shape with ``to_dict()``::

    node = ScalarCondition("label", "contains", "He") & ~ToOneRelation("assignedTo")
    node.to_dict()
    # → {"AND": [{"label": {"contains": "He"}}, {"NOT": [{"assignedTo": None}]}]}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from .operators import LIST_OPERATORS, Combinator, FilterOperator, Quantifier


class EmptyMatch:
    """The distinguished "no constraint" inner filter of a to-many relation."""

    _instance: EmptyMatch | None = None

    def __new__(cls) -> EmptyMatch:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def to_dict(self) -> dict[str, Any]:
        return {}

    def __repr__(self) -> str:
        return "EMPTY_MATCH"

    def __reduce__(self) -> str:
        return "EMPTY_MATCH"


EMPTY_MATCH = EmptyMatch()


class _Composable:
    """Logical operator support shared by every node."""

    def __and__(self, other: FilterNode) -> And:
        return And((self, other))  # type: ignore[arg-type]

    def __or__(self, other: FilterNode) -> Or:
        return Or((self, other))  # type: ignore[arg-type]

    def __invert__(self) -> Not:
        return Not((self,))  # type: ignore[arg-type]


@dataclass(frozen=True)
class ScalarCondition(_Composable):
    """``field operator operand`` on the entity under evaluation."""

    field: str
    operator: FilterOperator
    operand: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.operator, FilterOperator):
            object.__setattr__(self, "operator", FilterOperator(self.operator))
        if self.operator in LIST_OPERATORS and isinstance(
            self.operand, list | set | frozenset
        ):
            object.__setattr__(self, "operand", tuple(self.operand))

    def to_dict(self) -> dict[str, Any]:
        operand = self.operand
        if isinstance(operand, tuple):
            operand = list(operand)
        return {self.field: {self.operator.value: operand}}


@dataclass(frozen=True)
class _Group(_Composable):
    children: tuple[FilterNode, ...] = ()

    key = ""

    def __post_init__(self) -> None:
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))

    @classmethod
    def of(cls, *children: FilterNode) -> Any:
        return cls(children)

    def to_dict(self) -> dict[str, Any]:
        return {self.key: [child.to_dict() for child in self.children]}


@dataclass(frozen=True)
class And(_Group):
    """Matches iff every child matches; ``And(())`` matches everything."""

    key = Combinator.AND.value


@dataclass(frozen=True)
class Or(_Group):
    """Matches iff at least one child matches; ``Or(())`` matches nothing."""

    key = Combinator.OR.value


@dataclass(frozen=True)
class Not(_Group):
    """Children are AND-ed, then negated; ``Not(())`` matches nothing."""

    key = Combinator.NOT.value


@dataclass(frozen=True)
class ToOneRelation(_Composable):
    """
    Filter on a to-one relation.

    ``inner=None`` matches when no related entity is linked. Otherwise a
    related entity must exist and satisfy ``inner``.
    """

    field: str
    inner: FilterNode | None = None

    def to_dict(self) -> dict[str, Any]:
        return {self.field: None if self.inner is None else self.inner.to_dict()}


@dataclass(frozen=True)
class ToManyRelation(_Composable):
    """Quantified filter (``some`` / ``none`` / ``every``) on a to-many relation."""

    field: str
    quantifier: Quantifier
    inner: FilterNode | EmptyMatch = EMPTY_MATCH

    def __post_init__(self) -> None:
        if not isinstance(self.quantifier, Quantifier):
            object.__setattr__(self, "quantifier", Quantifier(self.quantifier))

    @property
    def is_empty_match(self) -> bool:
        return self.inner is EMPTY_MATCH

    def to_dict(self) -> dict[str, Any]:
        return {self.field: {self.quantifier.value: self.inner.to_dict()}}


FilterNode = Union[ScalarCondition, And, Or, Not, ToOneRelation, ToManyRelation]

FILTER_NODE_TYPES: tuple[type, ...] = (
    ScalarCondition,
    And,
    Or,
    Not,
    ToOneRelation,
    ToManyRelation,
)


def is_filter_node(value: object) -> bool:
    return isinstance(value, FILTER_NODE_TYPES)
