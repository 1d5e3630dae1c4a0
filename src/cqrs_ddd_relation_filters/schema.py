"""
Schema registry: entity kinds, scalar fields and relation fields.

Definitions are immutable pydantic models.  A :class:`SchemaRegistry` is
built once from a set of :class:`EntityKind` definitions, checks every
two-sided relation pairing while it initialises, and is read-only
afterwards, so it can be shared by concurrent evaluations.

Two-sided relations are modelled as a single :class:`RelationLink`: both
named views resolve against the same canonical edge set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from .exceptions import (
    BrokenRelationPairingError,
    DuplicateDefinitionError,
    SchemaError,
    SelfReferencingRelationError,
    UnknownEntityKindError,
)
from .operators import Combinator, FilterOperator

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger("cqrs_ddd.relation_filters.schema")


class ScalarType(str, Enum):
    """Closed set of scalar field types."""

    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    ENUM = "enum"
    IDENTIFIER = "identifier"


class Cardinality(str, Enum):
    ONE = "one"
    MANY = "many"


class Direction(str, Enum):
    ONE_SIDED = "oneSided"
    TWO_SIDED = "twoSided"


_EQUALITY = frozenset(
    {
        FilterOperator.EQUALS,
        FilterOperator.NOT,
        FilterOperator.IN,
        FilterOperator.NOT_IN,
    }
)
_ORDERED = _EQUALITY | frozenset(
    {
        FilterOperator.LT,
        FilterOperator.LTE,
        FilterOperator.GT,
        FilterOperator.GTE,
    }
)

DEFAULT_OPERATORS: dict[ScalarType, frozenset[FilterOperator]] = {
    ScalarType.TEXT: _EQUALITY
    | frozenset(
        {
            FilterOperator.CONTAINS,
            FilterOperator.STARTS_WITH,
            FilterOperator.ENDS_WITH,
        }
    ),
    ScalarType.INTEGER: _ORDERED,
    ScalarType.FLOAT: _ORDERED,
    ScalarType.TIMESTAMP: _ORDERED,
    ScalarType.BOOLEAN: frozenset({FilterOperator.EQUALS, FilterOperator.NOT}),
    ScalarType.ENUM: _EQUALITY,
    ScalarType.IDENTIFIER: _EQUALITY,
}

_RESERVED_NAMES: frozenset[str] = frozenset(c.value for c in Combinator)


class SchemaModel(BaseModel):
    """Base for immutable schema definitions."""

    model_config = ConfigDict(frozen=True)


class FieldDef(SchemaModel):
    """
    A scalar field on an entity kind.

    ``supported_operators`` overrides the per-type default table when set.
    ``enum_values`` restricts operands of ``enum`` fields.
    """

    name: str
    scalar_type: ScalarType
    supported_operators: frozenset[FilterOperator] | None = None
    enum_values: tuple[str, ...] | None = None
    nullable: bool = True

    @property
    def operators(self) -> frozenset[FilterOperator]:
        if self.supported_operators is not None:
            return self.supported_operators
        return DEFAULT_OPERATORS[self.scalar_type]


class RelationDef(SchemaModel):
    """A relation field pointing at ``target_kind``."""

    name: str
    target_kind: str
    cardinality: Cardinality
    direction: Direction = Direction.ONE_SIDED
    counterpart: str | None = None

    @property
    def is_many(self) -> bool:
        return self.cardinality is Cardinality.MANY


class EntityKind(SchemaModel):
    """A named record type with ordered scalar and relation fields."""

    name: str
    fields: tuple[FieldDef, ...] = ()
    relations: tuple[RelationDef, ...] = ()

    def get_field(self, name: str) -> FieldDef | None:
        return next((f for f in self.fields if f.name == name), None)

    def get_relation(self, name: str) -> RelationDef | None:
        return next((r for r in self.relations if r.name == name), None)

    @property
    def member_names(self) -> list[str]:
        """All field and relation names, in declaration order."""
        return [f.name for f in self.fields] + [r.name for r in self.relations]


@dataclass(frozen=True)
class RelationEnd:
    """One named view of a relation link."""

    kind: str
    relation: str


@dataclass(frozen=True)
class RelationLink:
    """
    Canonical identity of a relation's edge set.

    Edges are stored as ``(left_id, right_id)`` pairs.  A one-sided
    relation has no ``right`` view; a two-sided relation exposes both
    ends over the same edges.
    """

    name: str
    left: RelationEnd
    right_kind: str
    right: RelationEnd | None = None

    def is_left(self, kind: str, relation: str) -> bool:
        """True when ``kind.relation`` views the link from its left end."""
        return self.left == RelationEnd(kind, relation)

    @property
    def ends(self) -> tuple[RelationEnd, ...]:
        return (self.left,) if self.right is None else (self.left, self.right)


class SchemaRegistry:
    """
    Read-only registry of entity kinds and their relation links.

    Raises :class:`SchemaError` during construction when a kind or
    member is duplicated, a member uses a reserved combinator key, or a
    two-sided relation pairing is broken or self-referencing.
    """

    def __init__(self, kinds: Iterable[EntityKind]) -> None:
        self._kinds: dict[str, EntityKind] = {}
        for kind in kinds:
            if kind.name in self._kinds:
                raise DuplicateDefinitionError(
                    f"Entity kind '{kind.name}' is registered twice",
                    kind=kind.name,
                )
            self._check_members(kind)
            self._kinds[kind.name] = kind

        self._links: dict[tuple[str, str], RelationLink] = {}
        for kind in self._kinds.values():
            for relation in kind.relations:
                self._check_pairing(kind, relation)
                self._register_link(kind, relation)

        logger.debug(
            "Schema registered: %d kinds, %d relation links",
            len(self._kinds),
            len(set(self._links.values())),
        )

    # -- look-up -------------------------------------------------------------

    def get_kind(self, name: str) -> EntityKind:
        """Return the kind named ``name`` or raise :class:`UnknownEntityKindError`."""
        kind = self._kinds.get(name)
        if kind is None:
            raise UnknownEntityKindError(name, list(self._kinds))
        return kind

    def find_kind(self, name: str) -> EntityKind | None:
        return self._kinds.get(name)

    def resolve_kind(self, kind: EntityKind | str) -> EntityKind:
        """Accept a kind or its name; always return the registered kind."""
        return self.get_kind(kind if isinstance(kind, str) else kind.name)

    @property
    def kinds(self) -> tuple[EntityKind, ...]:
        return tuple(self._kinds.values())

    def link_for(self, kind: str, relation: str) -> RelationLink:
        """Return the canonical link behind ``kind.relation``."""
        link = self._links.get((kind, relation))
        if link is None:
            raise SchemaError(
                f"'{kind}.{relation}' is not a registered relation",
                kind=kind,
                member=relation,
            )
        return link

    @property
    def links(self) -> tuple[RelationLink, ...]:
        """Distinct links, in registration order."""
        return tuple(dict.fromkeys(self._links.values()))

    def counterpart_of(self, kind: str, relation: str) -> RelationDef | None:
        """Return the paired view of a two-sided relation, if any."""
        relation_def = self.get_kind(kind).get_relation(relation)
        if relation_def is None or relation_def.counterpart is None:
            return None
        return self.get_kind(relation_def.target_kind).get_relation(
            relation_def.counterpart
        )

    def __contains__(self, name: object) -> bool:
        return name in self._kinds

    def __iter__(self) -> Iterator[EntityKind]:
        return iter(self._kinds.values())

    def __len__(self) -> int:
        return len(self._kinds)

    # -- construction checks -------------------------------------------------

    @staticmethod
    def _check_members(kind: EntityKind) -> None:
        seen: set[str] = set()
        for name in kind.member_names:
            if name in _RESERVED_NAMES:
                raise SchemaError(
                    f"'{kind.name}.{name}' uses a reserved combinator key",
                    kind=kind.name,
                    member=name,
                )
            if name in seen:
                raise DuplicateDefinitionError(
                    f"Member '{name}' is declared twice on '{kind.name}'",
                    kind=kind.name,
                    member=name,
                )
            seen.add(name)

    def _check_pairing(self, kind: EntityKind, relation: RelationDef) -> None:
        if relation.direction is Direction.ONE_SIDED:
            if relation.counterpart is not None:
                raise BrokenRelationPairingError(
                    kind.name, relation.name, "one-sided relation declares a counterpart"
                )
            return

        if relation.counterpart is None:
            raise BrokenRelationPairingError(
                kind.name, relation.name, "two-sided relation has no counterpart"
            )
        if (
            relation.target_kind == kind.name
            and relation.counterpart == relation.name
        ):
            raise SelfReferencingRelationError(kind.name, relation.name)

        target = self._kinds.get(relation.target_kind)
        if target is None:
            raise BrokenRelationPairingError(
                kind.name,
                relation.name,
                f"target kind '{relation.target_kind}' is not registered",
            )
        other = target.get_relation(relation.counterpart)
        if other is None:
            raise BrokenRelationPairingError(
                kind.name,
                relation.name,
                f"'{target.name}.{relation.counterpart}' does not exist",
            )
        if other.direction is not Direction.TWO_SIDED:
            raise BrokenRelationPairingError(
                kind.name,
                relation.name,
                f"'{target.name}.{other.name}' is not two-sided",
            )
        if other.target_kind != kind.name or other.counterpart != relation.name:
            raise BrokenRelationPairingError(
                kind.name,
                relation.name,
                f"'{target.name}.{other.name}' points to "
                f"'{other.target_kind}.{other.counterpart}'",
            )

    def _register_link(self, kind: EntityKind, relation: RelationDef) -> None:
        key = (kind.name, relation.name)
        if key in self._links:
            # Already registered through its counterpart.
            return
        end = RelationEnd(kind.name, relation.name)
        if relation.counterpart is None:
            self._links[key] = RelationLink(
                name=f"{kind.name}.{relation.name}",
                left=end,
                right_kind=relation.target_kind,
            )
            return

        left, right = sorted(
            [end, RelationEnd(relation.target_kind, relation.counterpart)],
            key=lambda e: (e.kind, e.relation),
        )
        link = RelationLink(
            name=f"{left.kind}.{left.relation}<>{right.kind}.{right.relation}",
            left=left,
            right_kind=right.kind,
            right=right,
        )
        self._links[(left.kind, left.relation)] = link
        self._links[(right.kind, right.relation)] = link
