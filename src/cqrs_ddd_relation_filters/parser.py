"""
FilterParser: keyed filter objects → filter AST.

The input shape is a nested mapping per entity kind::

    {
        "label": {"contains": "He"},
        "assignedTo": None,
        "tags": {"some": {"name": {"in": ["urgent", "blocked"]}}},
        "OR": [{"priority": {"gte": 3}}, {"isComplete": True}],
    }

Keys of one object are AND-ed.  The parser resolves keys against the
schema to tell scalar fields from relation fields, but leaves operator
support, operand types and relation cardinality to
:class:`~cqrs_ddd_relation_filters.validator.FilterValidator`.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from .ast import EMPTY_MATCH, And, Not, Or, ScalarCondition, ToManyRelation, ToOneRelation
from .casting import cast_operand
from .exceptions import (
    FilterDepthError,
    FilterParseError,
    UnknownFieldError,
    UnresolvedTargetKindError,
    UnsupportedOperatorError,
)
from .operators import Combinator, FilterOperator, Quantifier
from .options import EngineOptions

if TYPE_CHECKING:
    from .ast import EmptyMatch, FilterNode
    from .schema import EntityKind, FieldDef, RelationDef, SchemaRegistry

_QUANTIFIER_KEYS: frozenset[str] = frozenset(q.value for q in Quantifier)
_IS = "is"
_IS_NOT = "isNot"


class FilterParser:
    """Parse keyed filter objects into :data:`FilterNode` trees."""

    def __init__(
        self,
        schema: SchemaRegistry,
        options: EngineOptions | None = None,
    ) -> None:
        self._schema = schema
        self._options = options or EngineOptions()

    # ------------------------------------------------------------------ #
    # Public API                                                          #
    # ------------------------------------------------------------------ #

    def parse(self, data: dict[str, Any], kind: EntityKind | str) -> FilterNode:
        """
        Build a filter tree for ``kind`` from a nested dict.

        Raises:
            FilterParseError: The input does not have the keyed shape.
            UnknownFieldError: A key is neither a field, a relation nor
                a combinator of the current kind.
            UnsupportedOperatorError: An operator name is unknown.
            FilterDepthError: Nesting exceeds ``options.max_depth``.
        """
        return self._parse_object(
            data, self._schema.resolve_kind(kind), path="<root>", depth=1
        )

    def parse_json(self, text: str, kind: EntityKind | str) -> FilterNode:
        """Parse a JSON string and build a filter tree."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise FilterParseError(f"Invalid JSON: {exc}", path="<root>") from exc

        if not isinstance(data, dict):
            raise FilterParseError(
                "Top-level JSON value must be an object", path="<root>"
            )
        return self.parse(data, kind)

    # ------------------------------------------------------------------ #
    # Internal: objects and combinators                                  #
    # ------------------------------------------------------------------ #

    def _parse_object(
        self, data: Any, kind: EntityKind, path: str, depth: int
    ) -> FilterNode:
        if depth > self._options.max_depth:
            raise FilterDepthError(self._options.max_depth, path=path)
        if not isinstance(data, dict):
            raise FilterParseError(
                f"Expected a filter object, got {type(data).__name__}", path=path
            )

        nodes: list[FilterNode] = []
        for key, value in data.items():
            key_path = f"{path}.{key}"
            if key == Combinator.AND:
                nodes.append(
                    And(self._parse_sequence(value, kind, key_path, depth, True))
                )
            elif key == Combinator.OR:
                nodes.append(
                    Or(self._parse_sequence(value, kind, key_path, depth, False))
                )
            elif key == Combinator.NOT:
                nodes.append(
                    Not(self._parse_sequence(value, kind, key_path, depth, True))
                )
            else:
                nodes.extend(self._parse_member(key, value, kind, key_path, depth))

        return nodes[0] if len(nodes) == 1 else And(tuple(nodes))

    def _parse_sequence(
        self,
        value: Any,
        kind: EntityKind,
        path: str,
        depth: int,
        allow_single: bool,
    ) -> tuple[FilterNode, ...]:
        if isinstance(value, dict) and allow_single:
            items: list[Any] = [value]
        elif isinstance(value, list | tuple):
            items = list(value)
        else:
            expected = "an object or a list" if allow_single else "a list"
            raise FilterParseError(
                f"Combinator expects {expected} of filter objects, "
                f"got {type(value).__name__}",
                path=path,
            )
        return tuple(
            self._parse_object(item, kind, f"{path}[{idx}]", depth + 1)
            for idx, item in enumerate(items)
        )

    def _parse_member(
        self, key: str, value: Any, kind: EntityKind, path: str, depth: int
    ) -> list[FilterNode]:
        field = kind.get_field(key)
        if field is not None:
            return self._parse_scalar(field, value, path, depth)
        relation = kind.get_relation(key)
        if relation is not None:
            return self._parse_relation(relation, value, kind, path, depth)
        raise UnknownFieldError(
            key,
            kind.name,
            kind.member_names + [c.value for c in Combinator],
            path=path,
        )

    # ------------------------------------------------------------------ #
    # Internal: scalar fields                                            #
    # ------------------------------------------------------------------ #

    def _parse_scalar(
        self, field: FieldDef, value: Any, path: str, depth: int
    ) -> list[FilterNode]:
        if depth > self._options.max_depth:
            raise FilterDepthError(self._options.max_depth, path=path)
        if not isinstance(value, dict):
            # Shorthand: {field: value} means equals.
            return [
                ScalarCondition(
                    field.name,
                    FilterOperator.EQUALS,
                    cast_operand(field, FilterOperator.EQUALS, value),
                )
            ]
        if not value:
            raise FilterParseError(
                f"Operator object for '{field.name}' is empty", path=path
            )

        nodes: list[FilterNode] = []
        for op_name, operand in value.items():
            op_path = f"{path}.{op_name}"
            operator = self._operator(op_name, field, op_path)
            if operator is FilterOperator.NOT and isinstance(operand, dict):
                nodes.append(
                    Not(tuple(self._parse_scalar(field, operand, op_path, depth + 1)))
                )
            else:
                nodes.append(
                    ScalarCondition(
                        field.name, operator, cast_operand(field, operator, operand)
                    )
                )
        return nodes

    @staticmethod
    def _operator(name: str, field: FieldDef, path: str) -> FilterOperator:
        try:
            return FilterOperator(name)
        except ValueError:
            raise UnsupportedOperatorError(
                name,
                field.name,
                [op.value for op in field.operators],
                path=path,
            ) from None

    # ------------------------------------------------------------------ #
    # Internal: relation fields                                          #
    # ------------------------------------------------------------------ #

    def _parse_relation(
        self,
        relation: RelationDef,
        value: Any,
        kind: EntityKind,
        path: str,
        depth: int,
    ) -> list[FilterNode]:
        target = self._schema.find_kind(relation.target_kind)
        if target is None:
            raise UnresolvedTargetKindError(
                relation.name, kind.name, relation.target_kind, path=path
            )
        if value is None:
            return [ToOneRelation(relation.name, None)]
        if not isinstance(value, dict):
            raise FilterParseError(
                f"Relation '{relation.name}' expects a filter object or null, "
                f"got {type(value).__name__}",
                path=path,
            )

        if self._uses_keys(value, target, _QUANTIFIER_KEYS):
            return [
                ToManyRelation(
                    relation.name,
                    Quantifier(key),
                    self._parse_inner(inner, target, f"{path}.{key}", depth),
                )
                for key, inner in value.items()
            ]
        if relation.is_many and _QUANTIFIER_KEYS.intersection(value):
            raise FilterParseError(
                f"Relation '{relation.name}' mixes quantifiers with other keys",
                path=path,
            )
        if self._uses_keys(value, target, frozenset({_IS, _IS_NOT})):
            nodes: list[FilterNode] = []
            for key, inner in value.items():
                node = ToOneRelation(
                    relation.name,
                    None
                    if inner is None
                    else self._parse_object(inner, target, f"{path}.{key}", depth + 1),
                )
                nodes.append(node if key == _IS else Not((node,)))
            return nodes
        return [
            ToOneRelation(
                relation.name, self._parse_object(value, target, path, depth + 1)
            )
        ]

    def _parse_inner(
        self, inner: Any, target: EntityKind, path: str, depth: int
    ) -> FilterNode | EmptyMatch:
        if not isinstance(inner, dict):
            raise FilterParseError(
                f"Quantifier expects a filter object, got {type(inner).__name__}",
                path=path,
            )
        if not inner:
            return EMPTY_MATCH
        return self._parse_object(inner, target, path, depth + 1)

    @staticmethod
    def _uses_keys(
        value: dict[str, Any], target: EntityKind, keys: frozenset[str]
    ) -> bool:
        """True when every key is a reserved key not shadowed by a target member."""
        members = set(target.member_names)
        return bool(value) and all(k in keys and k not in members for k in value)
