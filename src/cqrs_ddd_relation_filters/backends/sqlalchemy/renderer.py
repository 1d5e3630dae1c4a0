"""
Render predicate expressions as SQLAlchemy boolean clauses.

Relation primitives become correlated ``EXISTS`` subqueries over fresh
aliases of the link table and the target table, so self-referencing
relations and nested quantifiers never share a FROM element::

    renderer = SQLAlchemyPredicateRenderer(mapping)
    stmt = renderer.build_select(predicate, "Person")
    # SELECT person.id FROM person
    # WHERE NOT (EXISTS (SELECT * FROM link_person_tasks AS link_person_tasks_1, task AS task_1
    #     WHERE link_person_tasks_1.left_id = person.id
    #     AND link_person_tasks_1.right_id = task_1.id
    #     AND NOT (task_1."isComplete" IS NOT NULL AND task_1."isComplete" = 1)))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import Select, and_, exists, false, not_, or_, select, true

from ...casting import to_utc
from ...predicate import AllOf, AnyOf, Comparison, Exists, LinkAbsent, Literal, Negation
from .operators import build_default_sqla_registry

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession

    from ...predicate import PredicateExpr
    from .mapping import SQLAlchemySchemaMapping
    from .strategy import SQLAlchemyOperatorRegistry


class SQLAlchemyPredicateRenderer:
    """Translate :data:`PredicateExpr` trees over a :class:`SQLAlchemySchemaMapping`."""

    def __init__(
        self,
        mapping: SQLAlchemySchemaMapping,
        *,
        registry: SQLAlchemyOperatorRegistry | None = None,
    ) -> None:
        self._mapping = mapping
        self._registry = registry or build_default_sqla_registry()

    def render(
        self,
        expr: PredicateExpr,
        kind: str,
        source: Any | None = None,
    ) -> ColumnElement[bool]:
        """
        Render ``expr`` for rows of ``kind``.

        Args:
            expr: Compiled predicate.
            kind: Entity kind the predicate applies to.
            source: Table or alias providing the rows; defaults to the
                kind's table.
        """
        if source is None:
            source = self._mapping.table(kind)
        return self._render(expr, kind, source)

    def build_select(self, expr: PredicateExpr, kind: str) -> Select[Any]:
        """``SELECT id FROM <kind> WHERE <expr> ORDER BY id``."""
        table = self._mapping.table(kind)
        id_column = self._mapping.id_of(table)
        return select(id_column).where(self._render(expr, kind, table)).order_by(id_column)

    async def select_ids(
        self,
        connection: AsyncConnection | AsyncSession,
        expr: PredicateExpr,
        kind: str,
    ) -> list[Any]:
        """Execute :meth:`build_select` and return the matching ids."""
        result = await connection.execute(self.build_select(expr, kind))
        return list(result.scalars().all())

    # -- internals -----------------------------------------------------------

    def _render(self, expr: PredicateExpr, kind: str, source: Any) -> ColumnElement[bool]:
        if isinstance(expr, Literal):
            return cast("ColumnElement[bool]", true() if expr.value else false())

        if isinstance(expr, Comparison):
            return self._registry.apply(
                expr.operator, source.c[expr.field], _utc_operand(expr.operand)
            )

        if isinstance(expr, AllOf):
            if not expr.terms:
                return cast("ColumnElement[bool]", true())
            return and_(*[self._render(t, kind, source) for t in expr.terms])

        if isinstance(expr, AnyOf):
            if not expr.terms:
                return cast("ColumnElement[bool]", false())
            return or_(*[self._render(t, kind, source) for t in expr.terms])

        if isinstance(expr, Negation):
            return not_(self._render(expr.term, kind, source))

        if isinstance(expr, LinkAbsent):
            link, source_col, _ = self._mapping.link_table(kind, expr.relation)
            link_alias = link.alias()
            return not_(
                exists().where(
                    link_alias.c[source_col] == self._mapping.id_of(source)
                )
            )

        if isinstance(expr, Exists):
            link, source_col, target_col = self._mapping.link_table(kind, expr.relation)
            link_alias = link.alias()
            target_alias = self._mapping.table(expr.target_kind).alias()
            return cast(
                "ColumnElement[bool]",
                exists().where(
                    link_alias.c[source_col] == self._mapping.id_of(source),
                    link_alias.c[target_col] == self._mapping.id_of(target_alias),
                    self._render(expr.where, expr.target_kind, target_alias),
                ),
            )

        raise TypeError(f"Not a predicate expression: {type(expr).__name__}")


def _utc_operand(operand: Any) -> Any:
    # Timestamp columns hold naive UTC values.
    if isinstance(operand, list | tuple | set | frozenset):
        return [to_utc(v) for v in operand]
    return to_utc(operand)
