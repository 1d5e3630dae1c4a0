"""
Backend-agnostic predicate expressions.

The compiler lowers a filter tree into this small language whose only
relation primitives are existence checks:

- :class:`Comparison`: scalar comparison on the current entity
- :class:`AllOf` / :class:`AnyOf` / :class:`Negation`: boolean connectives
- :class:`LinkAbsent`: the to-one relation has no linked entity
- :class:`Exists`: some related entity satisfies ``where``
- :class:`Literal`: constant ``TRUE`` / ``FALSE``

Backends translate these nodes into their own query language (see
``backends.sqlalchemy``); :class:`PredicateExecutor` runs them in memory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from .scalar_operators import build_default_registry

if TYPE_CHECKING:
    from .access import DataAccess
    from .operators import FilterOperator
    from .strategy import ScalarOperatorRegistry


@dataclass(frozen=True)
class Literal:
    value: bool


TRUE = Literal(True)
FALSE = Literal(False)


@dataclass(frozen=True)
class Comparison:
    field: str
    operator: FilterOperator
    operand: Any = None


@dataclass(frozen=True)
class AllOf:
    terms: tuple[PredicateExpr, ...] = ()


@dataclass(frozen=True)
class AnyOf:
    terms: tuple[PredicateExpr, ...] = ()


@dataclass(frozen=True)
class Negation:
    term: PredicateExpr


@dataclass(frozen=True)
class LinkAbsent:
    """The to-one relation ``relation`` has no linked entity."""

    relation: str


@dataclass(frozen=True)
class Exists:
    """Some entity of ``target_kind`` related through ``relation`` satisfies ``where``."""

    relation: str
    target_kind: str
    where: PredicateExpr = TRUE
    many: bool = True


PredicateExpr = Union[Literal, Comparison, AllOf, AnyOf, Negation, LinkAbsent, Exists]


def render(expr: PredicateExpr) -> str:
    """Human-readable rendering, used in logs and test failure messages."""
    if isinstance(expr, Literal):
        return "TRUE" if expr.value else "FALSE"
    if isinstance(expr, Comparison):
        return f"{expr.field} {expr.operator.value} {expr.operand!r}"
    if isinstance(expr, AllOf):
        return "(" + " AND ".join(render(t) for t in expr.terms) + ")" if expr.terms else "TRUE"
    if isinstance(expr, AnyOf):
        return "(" + " OR ".join(render(t) for t in expr.terms) + ")" if expr.terms else "FALSE"
    if isinstance(expr, Negation):
        return f"NOT {render(expr.term)}"
    if isinstance(expr, LinkAbsent):
        return f"{expr.relation} IS ABSENT"
    if isinstance(expr, Exists):
        return f"EXISTS {expr.relation}:{expr.target_kind} [{render(expr.where)}]"
    raise TypeError(f"Not a predicate expression: {type(expr).__name__}")


class PredicateExecutor:
    """
    Execute a :data:`PredicateExpr` for one entity over a :class:`DataAccess`.

    For any filter ``f`` compiled by
    :class:`~cqrs_ddd_relation_filters.compiler.FilterCompiler`,
    ``executor.execute(compile(f), kind, id)`` equals
    ``FilterEvaluator.matches(f, kind, id)`` on the same data snapshot.
    """

    def __init__(
        self,
        access: DataAccess,
        *,
        registry: ScalarOperatorRegistry | None = None,
    ) -> None:
        self._access = access
        self._registry = registry if registry is not None else build_default_registry()

    def execute(self, expr: PredicateExpr, kind: str, entity_id: Any) -> bool:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Comparison):
            value = self._access.get_value(kind, entity_id, expr.field)
            return self._registry.evaluate(expr.operator, value, expr.operand)
        if isinstance(expr, AllOf):
            return all(self.execute(t, kind, entity_id) for t in expr.terms)
        if isinstance(expr, AnyOf):
            return any(self.execute(t, kind, entity_id) for t in expr.terms)
        if isinstance(expr, Negation):
            return not self.execute(expr.term, kind, entity_id)
        if isinstance(expr, LinkAbsent):
            return self._access.resolve_one(kind, entity_id, expr.relation) is None
        if isinstance(expr, Exists):
            if not expr.many:
                target_id = self._access.resolve_one(kind, entity_id, expr.relation)
                return target_id is not None and self.execute(
                    expr.where, expr.target_kind, target_id
                )
            return any(
                self.execute(expr.where, expr.target_kind, related_id)
                for related_id in self._access.resolve_many(
                    kind, entity_id, expr.relation
                )
            )
        raise TypeError(f"Not a predicate expression: {type(expr).__name__}")

    def filter(self, expr: PredicateExpr, kind: str) -> list[Any]:
        """Return the ids of ``kind`` satisfying ``expr``."""
        return [
            entity_id
            for entity_id in self._access.list_ids(kind)
            if self.execute(expr, kind, entity_id)
        ]
