"""
Data access ports and the in-memory reference graph.

The engine reads entity data only through :class:`DataAccess` (or its
async twin :class:`AsyncDataAccess`).  Relation resolution may be lazy:
``resolve_many`` returns an iterable that the evaluator consumes only as
far as a quantifier needs, and no upper bound on its size is assumed.

:class:`InMemoryGraph` stores one canonical edge set per
:class:`~cqrs_ddd_relation_filters.schema.RelationLink`, so both views of
a two-sided relation always resolve against the same edges.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .exceptions import DataAccessError
from .schema import Cardinality

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable, Iterator, Mapping

    from .schema import RelationDef, RelationLink, SchemaRegistry


@runtime_checkable
class DataAccess(Protocol):
    """Synchronous read capability over entities and relations."""

    def list_ids(self, kind: str) -> Iterable[Any]: ...

    def get_value(self, kind: str, entity_id: Any, field: str) -> Any: ...

    def resolve_one(self, kind: str, entity_id: Any, relation: str) -> Any | None: ...

    def resolve_many(self, kind: str, entity_id: Any, relation: str) -> Iterable[Any]: ...


@runtime_checkable
class AsyncDataAccess(Protocol):
    """
    Asynchronous read capability.

    Every call may suspend; ``resolve_many`` streams related ids so the
    evaluator can stop early without loading the whole related set.
    """

    async def list_ids(self, kind: str) -> list[Any]: ...

    async def get_value(self, kind: str, entity_id: Any, field: str) -> Any: ...

    async def resolve_one(
        self, kind: str, entity_id: Any, relation: str
    ) -> Any | None: ...

    def resolve_many(
        self, kind: str, entity_id: Any, relation: str
    ) -> AsyncIterator[Any]: ...


class InMemoryGraph:
    """
    Reference data layer keeping entities and edges in dictionaries.

    Usage::

        graph = InMemoryGraph(schema)
        graph.add("Person", "p1", name="Ada")
        graph.add("Task", "t1", label="Hello", isComplete=False)
        graph.link("Person", "p1", "tasks", "t1")

        graph.resolve_one("Task", "t1", "assignedTo")   # → "p1"
    """

    def __init__(self, schema: SchemaRegistry) -> None:
        self._schema = schema
        self._rows: dict[str, dict[Any, dict[str, Any]]] = {
            kind.name: {} for kind in schema
        }
        # link name → left id → ordered right ids, and the reverse index
        self._forward: dict[str, dict[Any, dict[Any, None]]] = {}
        self._backward: dict[str, dict[Any, dict[Any, None]]] = {}
        for link in schema.links:
            self._forward[link.name] = {}
            self._backward[link.name] = {}

    # -- writes (setup only; the engine never mutates) -----------------------

    def add(
        self,
        kind: str,
        entity_id: Any,
        values: Mapping[str, Any] | None = None,
        **fields: Any,
    ) -> None:
        """Insert or replace an entity's scalar values."""
        kind_def = self._schema.get_kind(kind)
        row = {**(values or {}), **fields}
        known = {f.name for f in kind_def.fields}
        unknown = sorted(set(row) - known)
        if unknown:
            raise DataAccessError(
                f"'{kind}' has no scalar fields {unknown}",
                kind=kind,
                entity_id=entity_id,
                member=unknown[0],
            )
        self._rows[kind][entity_id] = {name: row.get(name) for name in known}

    def link(self, kind: str, entity_id: Any, relation: str, target_id: Any) -> None:
        """Add an edge; visible from both views of a two-sided relation."""
        relation_def, link = self._relation(kind, entity_id, relation)
        self._require(relation_def.target_kind, target_id)
        left_id, right_id = self._orient(link, kind, relation, entity_id, target_id)
        if right_id in self._forward[link.name].get(left_id, {}):
            return

        self._check_to_one(kind, entity_id, relation_def)
        counterpart = self._schema.counterpart_of(kind, relation)
        if counterpart is not None:
            self._check_to_one(relation_def.target_kind, target_id, counterpart)

        self._forward[link.name].setdefault(left_id, {})[right_id] = None
        self._backward[link.name].setdefault(right_id, {})[left_id] = None

    def unlink(self, kind: str, entity_id: Any, relation: str, target_id: Any) -> None:
        _, link = self._relation(kind, entity_id, relation)
        left_id, right_id = self._orient(link, kind, relation, entity_id, target_id)
        self._forward[link.name].get(left_id, {}).pop(right_id, None)
        self._backward[link.name].get(right_id, {}).pop(left_id, None)

    # -- DataAccess ----------------------------------------------------------

    def list_ids(self, kind: str) -> list[Any]:
        self._schema.get_kind(kind)
        return list(self._rows[kind])

    def get_value(self, kind: str, entity_id: Any, field: str) -> Any:
        row = self._require(kind, entity_id)
        if field not in row:
            raise DataAccessError(
                f"'{kind}' has no scalar field '{field}'",
                kind=kind,
                entity_id=entity_id,
                member=field,
            )
        return row[field]

    def resolve_one(self, kind: str, entity_id: Any, relation: str) -> Any | None:
        return next(iter(self.resolve_many(kind, entity_id, relation)), None)

    def resolve_many(self, kind: str, entity_id: Any, relation: str) -> Iterator[Any]:
        _, link = self._relation(kind, entity_id, relation)
        index = self._forward if link.is_left(kind, relation) else self._backward
        return iter(list(index[link.name].get(entity_id, {})))

    def as_async(self) -> AsyncInMemoryGraph:
        """Expose this graph through the :class:`AsyncDataAccess` port."""
        return AsyncInMemoryGraph(self)

    # -- internals -----------------------------------------------------------

    def _require(self, kind: str, entity_id: Any) -> dict[str, Any]:
        rows = self._rows.get(kind)
        if rows is None:
            raise DataAccessError(f"Unknown entity kind '{kind}'", kind=kind)
        row = rows.get(entity_id)
        if row is None:
            raise DataAccessError(
                f"{kind} with id={entity_id!r} not found",
                kind=kind,
                entity_id=entity_id,
            )
        return row

    def _relation(
        self, kind: str, entity_id: Any, relation: str
    ) -> tuple[RelationDef, RelationLink]:
        self._require(kind, entity_id)
        relation_def = self._schema.get_kind(kind).get_relation(relation)
        if relation_def is None:
            raise DataAccessError(
                f"'{kind}' has no relation '{relation}'",
                kind=kind,
                entity_id=entity_id,
                member=relation,
            )
        return relation_def, self._schema.link_for(kind, relation)

    @staticmethod
    def _orient(
        link: RelationLink, kind: str, relation: str, entity_id: Any, target_id: Any
    ) -> tuple[Any, Any]:
        if link.is_left(kind, relation):
            return entity_id, target_id
        return target_id, entity_id

    def _check_to_one(self, kind: str, entity_id: Any, relation_def: RelationDef) -> None:
        if relation_def.cardinality is not Cardinality.ONE:
            return
        current = self.resolve_one(kind, entity_id, relation_def.name)
        if current is not None:
            raise DataAccessError(
                f"{kind} {entity_id!r} is already linked to {current!r} "
                f"through to-one relation '{relation_def.name}'",
                kind=kind,
                entity_id=entity_id,
                member=relation_def.name,
            )


class AsyncInMemoryGraph:
    """:class:`AsyncDataAccess` adapter over an :class:`InMemoryGraph`."""

    def __init__(self, graph: InMemoryGraph) -> None:
        self._graph = graph

    async def list_ids(self, kind: str) -> list[Any]:
        return self._graph.list_ids(kind)

    async def get_value(self, kind: str, entity_id: Any, field: str) -> Any:
        return self._graph.get_value(kind, entity_id, field)

    async def resolve_one(self, kind: str, entity_id: Any, relation: str) -> Any | None:
        return self._graph.resolve_one(kind, entity_id, relation)

    async def resolve_many(
        self, kind: str, entity_id: Any, relation: str
    ) -> AsyncIterator[Any]:
        for target_id in self._graph.resolve_many(kind, entity_id, relation):
            yield target_id
