"""
Relation filter exception hierarchy with fuzzy-match suggestions.

All exceptions inherit from ``RelationFilterError`` and provide
``to_dict()`` for API-friendly error responses.

Three families exist:

- :class:`SchemaError` is fatal and raised while a
  :class:`~cqrs_ddd_relation_filters.schema.SchemaRegistry` is built.
- :class:`ValidationError` is raised per query and always carries the
  dotted ``path`` of the offending filter node.
- :class:`DataAccessError` comes from the data layer and is propagated
  unchanged by the evaluator.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class RelationFilterError(Exception):
    """Base exception for all relation filter errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


# ── Schema errors ────────────────────────────────────────────────────


class SchemaError(RelationFilterError):
    """Schema definition is inconsistent; the registry refuses to initialise."""

    def __init__(
        self,
        message: str,
        kind: str | None = None,
        member: str | None = None,
    ) -> None:
        self.message = message
        self.kind = kind
        self.member = member
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "SCHEMA_ERROR",
            "message": self.message,
            "kind": self.kind,
            "member": self.member,
        }


class DuplicateDefinitionError(SchemaError):
    """An entity kind or a member name is declared twice."""


class UnknownEntityKindError(SchemaError):
    """Lookup of an entity kind that is not registered."""

    def __init__(self, kind: str, available_kinds: list[str]) -> None:
        self.available_kinds = available_kinds
        self.suggestions = get_close_matches(kind, available_kinds, n=3, cutoff=0.6)
        message = f"Unknown entity kind: '{kind}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message, kind=kind)


class BrokenRelationPairingError(SchemaError):
    """A two-sided relation's counterpart does not point back to it."""

    def __init__(self, kind: str, relation: str, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"Relation '{kind}.{relation}' has a broken counterpart: {reason}",
            kind=kind,
            member=relation,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "BROKEN_RELATION_PAIRING",
            "kind": self.kind,
            "relation": self.member,
            "reason": self.reason,
        }


class SelfReferencingRelationError(SchemaError):
    """A relation field names itself as its own counterpart."""

    def __init__(self, kind: str, relation: str) -> None:
        super().__init__(
            f"Relation '{kind}.{relation}' cannot be its own counterpart",
            kind=kind,
            member=relation,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "SELF_REFERENCING_RELATION",
            "kind": self.kind,
            "relation": self.member,
        }


# ── Validation errors ────────────────────────────────────────────────


class ValidationError(RelationFilterError):
    """Filter validation failed at ``path``."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "path": self.path,
        }


class FilterParseError(ValidationError):
    """The filter input does not have the expected keyed shape."""

    code = "FILTER_PARSE_ERROR"


class UnknownFieldError(ValidationError):
    """
    Filter names a field that the entity kind does not declare.

    Example error message::

        Unknown field 'lable' on 'Task'. Did you mean: label?
    """

    code = "UNKNOWN_FIELD"

    def __init__(
        self,
        field: str,
        kind: str,
        available_fields: list[str],
        path: str | None = None,
    ) -> None:
        self.field = field
        self.kind = kind
        self.available_fields = available_fields
        self.suggestions = get_close_matches(field, available_fields, n=3, cutoff=0.6)

        message = f"Unknown field '{field}' on '{kind}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message, path=path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "field": self.field,
            "kind": self.kind,
            "path": self.path,
            "suggestions": self.suggestions,
            "available_fields": sorted(self.available_fields),
        }


class UnsupportedOperatorError(ValidationError):
    """
    Operator is unknown, or not in the field's supported operator set.

    Provides fuzzy-matched suggestions for likely intended operators.
    """

    code = "UNSUPPORTED_OPERATOR"

    def __init__(
        self,
        operator: str,
        field: str,
        supported_operators: list[str],
        path: str | None = None,
    ) -> None:
        self.operator = operator
        self.field = field
        self.supported_operators = supported_operators
        self.suggestions = get_close_matches(
            operator, supported_operators, n=3, cutoff=0.6
        )

        message = f"Operator '{operator}' is not supported for field '{field}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        message += f" Supported operators: {', '.join(sorted(supported_operators))}"
        super().__init__(message, path=path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "field": self.field,
            "operator": self.operator,
            "path": self.path,
            "suggestions": self.suggestions,
            "supported_operators": sorted(self.supported_operators),
        }


class OperandTypeError(ValidationError):
    """Operand type or shape does not match the field's scalar type."""

    code = "OPERAND_TYPE_MISMATCH"

    def __init__(
        self,
        field: str,
        operator: str,
        expected: str,
        operand: Any,
        path: str | None = None,
    ) -> None:
        self.field = field
        self.operator = operator
        self.expected = expected
        self.operand = operand
        super().__init__(
            f"Operand for '{field}.{operator}' must be {expected}, "
            f"got {type(operand).__name__}: {operand!r}",
            path=path,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "field": self.field,
            "operator": self.operator,
            "expected": self.expected,
            "path": self.path,
        }


class CardinalityMismatchError(ValidationError):
    """A to-one filter was used on a to-many relation, or vice versa."""

    code = "CARDINALITY_MISMATCH"

    def __init__(
        self,
        relation: str,
        kind: str,
        declared: str,
        used: str,
        path: str | None = None,
    ) -> None:
        self.relation = relation
        self.kind = kind
        self.declared = declared
        self.used = used
        super().__init__(
            f"Relation '{kind}.{relation}' has cardinality '{declared}' "
            f"but was filtered as a to-{used} relation",
            path=path,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "relation": self.relation,
            "kind": self.kind,
            "declared": self.declared,
            "used": self.used,
            "path": self.path,
        }


class UnresolvedTargetKindError(ValidationError):
    """A relation's target kind is not registered in the schema."""

    code = "UNRESOLVED_TARGET_KIND"

    def __init__(
        self,
        relation: str,
        kind: str,
        target_kind: str,
        path: str | None = None,
    ) -> None:
        self.relation = relation
        self.kind = kind
        self.target_kind = target_kind
        super().__init__(
            f"Relation '{kind}.{relation}' targets unknown kind '{target_kind}'",
            path=path,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "relation": self.relation,
            "kind": self.kind,
            "target_kind": self.target_kind,
            "path": self.path,
        }


# ── Runtime errors ───────────────────────────────────────────────────


class FilterDepthError(RelationFilterError):
    """Filter nesting exceeds the configured ``max_depth``."""

    def __init__(self, max_depth: int, path: str | None = None) -> None:
        self.max_depth = max_depth
        self.path = path
        super().__init__(
            f"Filter nesting exceeds max_depth={max_depth} at '{path or '<root>'}'"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "FILTER_TOO_DEEP",
            "max_depth": self.max_depth,
            "path": self.path,
        }


class DataAccessError(RelationFilterError):
    """The data layer failed to resolve an entity, a field or a relation."""

    def __init__(
        self,
        message: str,
        *,
        kind: str | None = None,
        entity_id: object = None,
        member: str | None = None,
    ) -> None:
        self.kind = kind
        self.entity_id = entity_id
        self.member = member
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "DATA_ACCESS_ERROR",
            "message": str(self),
            "kind": self.kind,
            "entity_id": self.entity_id,
            "member": self.member,
        }
