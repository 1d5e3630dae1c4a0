"""
Derive SQLAlchemy tables from a :class:`SchemaRegistry`.

Every entity kind gets one table (an id column plus one column per
scalar field).  Every relation link gets one link table with
``left_id`` / ``right_id`` columns, shared by both views of a two-sided
relation.  Timestamps are stored as naive UTC values.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    insert,
)

from ...casting import to_utc
from ...exceptions import SchemaError
from ...schema import ScalarType

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncConnection
    from sqlalchemy.types import TypeEngine

    from ...access import DataAccess
    from ...schema import RelationLink, SchemaRegistry

logger = logging.getLogger("cqrs_ddd.relation_filters.sqlalchemy")

LEFT_COLUMN = "left_id"
RIGHT_COLUMN = "right_id"

_COLUMN_TYPES: dict[ScalarType, type[TypeEngine[Any]]] = {
    ScalarType.TEXT: String,
    ScalarType.INTEGER: Integer,
    ScalarType.FLOAT: Float,
    ScalarType.BOOLEAN: Boolean,
    ScalarType.TIMESTAMP: DateTime,
    ScalarType.ENUM: String,
    ScalarType.IDENTIFIER: String,
}

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(name: str) -> str:
    return _CAMEL_RE.sub("_", name).lower()


class SQLAlchemySchemaMapping:
    """
    Tables for every entity kind and relation link of a schema.

    Usage::

        mapping = SQLAlchemySchemaMapping(schema)
        async with engine.begin() as conn:
            await conn.run_sync(mapping.metadata.create_all)
            await mapping.populate(conn, graph)
    """

    def __init__(
        self,
        schema: SchemaRegistry,
        metadata: MetaData | None = None,
        *,
        id_type: type[TypeEngine[Any]] = String,
        id_column: str = "id",
        table_prefix: str = "",
    ) -> None:
        self.schema = schema
        self.metadata = metadata if metadata is not None else MetaData()
        self.id_column = id_column
        self._tables: dict[str, Table] = {}
        self._link_tables: dict[str, Table] = {}

        for kind in schema:
            if kind.get_field(id_column) is not None:
                raise SchemaError(
                    f"Field '{kind.name}.{id_column}' clashes with the id column; "
                    "pass a different id_column",
                    kind=kind.name,
                    member=id_column,
                )
            columns = [Column(id_column, id_type, primary_key=True)]
            columns.extend(
                Column(
                    field.name,
                    _COLUMN_TYPES[field.scalar_type],
                    nullable=field.nullable,
                )
                for field in kind.fields
            )
            self._tables[kind.name] = Table(
                f"{table_prefix}{_snake(kind.name)}", self.metadata, *columns
            )

        for link in schema.links:
            self._link_tables[link.name] = self._build_link_table(
                link, id_type, table_prefix
            )

        logger.debug(
            "Mapped %d entity tables and %d link tables",
            len(self._tables),
            len(self._link_tables),
        )

    # -- look-up -------------------------------------------------------------

    def table(self, kind: str) -> Table:
        return self._tables[kind]

    def id_of(self, selectable: Any) -> Any:
        """The id column of an entity table or one of its aliases."""
        return selectable.c[self.id_column]

    def link_table(self, kind: str, relation: str) -> tuple[Table, str, str]:
        """
        Return ``(link_table, source_column, target_column)`` for the
        ``kind.relation`` view of its link.
        """
        link = self.schema.link_for(kind, relation)
        table = self._link_tables[link.name]
        if link.is_left(kind, relation):
            return table, LEFT_COLUMN, RIGHT_COLUMN
        return table, RIGHT_COLUMN, LEFT_COLUMN

    @property
    def tables(self) -> dict[str, Table]:
        return dict(self._tables)

    # -- data loading --------------------------------------------------------

    def snapshot_rows(self, access: DataAccess) -> dict[Table, list[dict[str, Any]]]:
        """Read every entity and edge visible through ``access`` as table rows."""
        rows: dict[Table, list[dict[str, Any]]] = {}
        for kind in self.schema:
            rows[self._tables[kind.name]] = [
                {
                    self.id_column: entity_id,
                    **{
                        field.name: to_utc(
                            access.get_value(kind.name, entity_id, field.name)
                        )
                        for field in kind.fields
                    },
                }
                for entity_id in access.list_ids(kind.name)
            ]
        for link in self.schema.links:
            rows[self._link_tables[link.name]] = [
                {LEFT_COLUMN: left_id, RIGHT_COLUMN: right_id}
                for left_id in access.list_ids(link.left.kind)
                for right_id in self._edges_from(access, link, left_id)
            ]
        return rows

    def _edges_from(
        self, access: DataAccess, link: RelationLink, left_id: Any
    ) -> list[Any]:
        relation = self.schema.get_kind(link.left.kind).get_relation(link.left.relation)
        if relation is not None and not relation.is_many:
            target_id = access.resolve_one(link.left.kind, left_id, link.left.relation)
            return [] if target_id is None else [target_id]
        return list(access.resolve_many(link.left.kind, left_id, link.left.relation))

    async def populate(self, connection: AsyncConnection, access: DataAccess) -> None:
        """Insert a snapshot of ``access`` into the mapped tables."""
        for table, table_rows in self.snapshot_rows(access).items():
            if table_rows:
                await connection.execute(insert(table), table_rows)

    # -- internals -----------------------------------------------------------

    def _build_link_table(
        self,
        link: RelationLink,
        id_type: type[TypeEngine[Any]],
        table_prefix: str,
    ) -> Table:
        left_table = self._tables.get(link.left.kind)
        right_table = self._tables.get(link.right_kind)
        left_args: list[Any] = []
        right_args: list[Any] = []
        if left_table is not None:
            left_args.append(ForeignKey(left_table.c[self.id_column]))
        if right_table is not None:
            right_args.append(ForeignKey(right_table.c[self.id_column]))
        return Table(
            f"{table_prefix}link_{_snake(link.left.kind)}_{_snake(link.left.relation)}",
            self.metadata,
            Column(LEFT_COLUMN, id_type, *left_args, primary_key=True),
            Column(RIGHT_COLUMN, id_type, *right_args, primary_key=True),
        )
