"""
FilterValidator: type-level checks of a filter tree against the schema.

Validation never touches entity data.  It walks the tree with the
current entity kind, switching to a relation's target kind when it
descends into a relation filter, and reports every problem with the
dotted path of the offending node.
"""

from __future__ import annotations

import datetime
import logging
import uuid
from typing import TYPE_CHECKING, Any, cast

from .ast import EMPTY_MATCH, And, Not, Or, ScalarCondition, ToManyRelation, ToOneRelation
from .exceptions import (
    CardinalityMismatchError,
    FilterDepthError,
    OperandTypeError,
    UnknownFieldError,
    UnresolvedTargetKindError,
    UnsupportedOperatorError,
    ValidationError,
)
from .operators import LIST_OPERATORS, STRING_OPERATORS, FilterOperator
from .options import EngineOptions
from .schema import Cardinality, ScalarType

if TYPE_CHECKING:
    from .ast import FilterNode
    from .schema import EntityKind, FieldDef, SchemaRegistry

logger = logging.getLogger("cqrs_ddd.relation_filters.validator")

_OPERAND_LABELS: dict[ScalarType, str] = {
    ScalarType.TEXT: "a string",
    ScalarType.INTEGER: "an integer",
    ScalarType.FLOAT: "a number",
    ScalarType.BOOLEAN: "a boolean",
    ScalarType.TIMESTAMP: "a datetime",
    ScalarType.ENUM: "an enum member name",
    ScalarType.IDENTIFIER: "a string, integer or UUID",
}


def operand_matches(field: FieldDef, value: Any) -> bool:
    """Return True if ``value`` is a legal single operand for ``field``."""
    scalar_type = field.scalar_type
    if scalar_type is ScalarType.TEXT:
        return isinstance(value, str)
    if scalar_type is ScalarType.INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)
    if scalar_type is ScalarType.FLOAT:
        return isinstance(value, int | float) and not isinstance(value, bool)
    if scalar_type is ScalarType.BOOLEAN:
        return isinstance(value, bool)
    if scalar_type is ScalarType.TIMESTAMP:
        return isinstance(value, datetime.datetime)
    if scalar_type is ScalarType.ENUM:
        if not isinstance(value, str):
            return False
        return field.enum_values is None or value in field.enum_values
    if scalar_type is ScalarType.IDENTIFIER:
        return isinstance(value, str | uuid.UUID) or (
            isinstance(value, int) and not isinstance(value, bool)
        )
    return False


class FilterValidator:
    """
    Check filter trees against a :class:`SchemaRegistry`.

    Usage::

        validator = FilterValidator(schema)
        validator.validate(node, "Task")          # raises on first error
        errors = validator.collect_errors(node, "Task")   # never raises
    """

    def __init__(
        self,
        schema: SchemaRegistry,
        options: EngineOptions | None = None,
    ) -> None:
        self._schema = schema
        self._options = options or EngineOptions()

    def validate(self, node: FilterNode, kind: EntityKind | str) -> None:
        """
        Raise the first :class:`ValidationError` found (fail-fast).

        Raises:
            ValidationError: A subclass naming the offending path.
            FilterDepthError: Nesting exceeds ``options.max_depth``.
        """
        errors = self._walk(node, self._schema.resolve_kind(kind), fail_fast=True)
        if errors:
            raise errors[0]

    def collect_errors(
        self, node: FilterNode, kind: EntityKind | str
    ) -> list[ValidationError]:
        """Return every validation error in the tree (empty list when valid)."""
        return self._walk(node, self._schema.resolve_kind(kind), fail_fast=False)

    def is_valid(self, node: FilterNode, kind: EntityKind | str) -> bool:
        return not self.collect_errors(node, kind)

    # ------------------------------------------------------------------ #
    # Internal: traversal                                                #
    # ------------------------------------------------------------------ #

    def _walk(
        self, node: FilterNode, kind: EntityKind, *, fail_fast: bool
    ) -> list[ValidationError]:
        errors: list[ValidationError] = []
        try:
            self._check_node(node, kind, "<root>", 1, errors, fail_fast)
        except _StopValidation:
            pass
        if errors:
            logger.debug(
                "Filter on '%s' failed validation: %s",
                kind.name,
                "; ".join(f"{e.path}: {e.message}" for e in errors),
            )
        return errors

    def _check_node(
        self,
        node: FilterNode,
        kind: EntityKind,
        path: str,
        depth: int,
        errors: list[ValidationError],
        fail_fast: bool,
    ) -> None:
        if depth > self._options.max_depth:
            raise FilterDepthError(self._options.max_depth, path=path)

        if isinstance(node, ScalarCondition):
            error = self._check_scalar(node, kind, f"{path}.{node.field}")
            if error is not None:
                errors.append(error)
                if fail_fast:
                    raise _StopValidation
            return

        if isinstance(node, And | Or | Not):
            for idx, child in enumerate(node.children):
                self._check_node(
                    child,
                    kind,
                    f"{path}.{node.key}[{idx}]",
                    depth + 1,
                    errors,
                    fail_fast,
                )
            return

        if isinstance(node, ToOneRelation | ToManyRelation):
            self._check_relation(node, kind, path, depth, errors, fail_fast)
            return

        errors.append(
            ValidationError(f"Not a filter node: {type(node).__name__}", path=path)
        )
        if fail_fast:
            raise _StopValidation

    def _check_relation(
        self,
        node: ToOneRelation | ToManyRelation,
        kind: EntityKind,
        path: str,
        depth: int,
        errors: list[ValidationError],
        fail_fast: bool,
    ) -> None:
        rel_path = f"{path}.{node.field}"
        error: ValidationError | None = None
        target: EntityKind | None = None

        relation = kind.get_relation(node.field)
        if relation is None:
            error = UnknownFieldError(
                node.field,
                kind.name,
                [r.name for r in kind.relations],
                path=rel_path,
            )
        else:
            used = Cardinality.MANY if isinstance(node, ToManyRelation) else Cardinality.ONE
            target = self._schema.find_kind(relation.target_kind)
            if relation.cardinality is not used:
                error = CardinalityMismatchError(
                    relation.name,
                    kind.name,
                    relation.cardinality.value,
                    used.value,
                    path=rel_path,
                )
            elif target is None:
                error = UnresolvedTargetKindError(
                    relation.name, kind.name, relation.target_kind, path=rel_path
                )

        if error is not None:
            errors.append(error)
            if fail_fast:
                raise _StopValidation
            return

        target = cast("EntityKind", target)
        if isinstance(node, ToManyRelation):
            if node.inner is EMPTY_MATCH:
                return
            inner_path = f"{rel_path}.{node.quantifier.value}"
            self._check_node(
                node.inner, target, inner_path, depth + 1, errors, fail_fast  # type: ignore[arg-type]
            )
        elif node.inner is not None:
            self._check_node(node.inner, target, rel_path, depth + 1, errors, fail_fast)

    # ------------------------------------------------------------------ #
    # Internal: scalar conditions                                        #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _check_scalar(
        node: ScalarCondition, kind: EntityKind, path: str
    ) -> ValidationError | None:
        field = kind.get_field(node.field)
        if field is None:
            return UnknownFieldError(
                node.field, kind.name, [f.name for f in kind.fields], path=path
            )

        operator = node.operator
        if operator not in field.operators:
            return UnsupportedOperatorError(
                operator.value,
                field.name,
                [op.value for op in field.operators],
                path=f"{path}.{operator.value}",
            )

        expected = _OPERAND_LABELS[field.scalar_type]
        operand = node.operand
        if operator in LIST_OPERATORS:
            if not isinstance(operand, list | tuple | set | frozenset):
                return OperandTypeError(
                    field.name, operator.value, f"a list of {expected}s", operand, path
                )
            bad = [v for v in operand if not _is_nullable_match(field, v)]
            if bad:
                return OperandTypeError(
                    field.name, operator.value, f"a list of {expected}s", bad[0], path
                )
            return None

        if operator in (FilterOperator.EQUALS, FilterOperator.NOT):
            if _is_nullable_match(field, operand):
                return None
            return OperandTypeError(field.name, operator.value, expected, operand, path)

        if operator in STRING_OPERATORS and not isinstance(operand, str):
            return OperandTypeError(field.name, operator.value, "a string", operand, path)
        if not operand_matches(field, operand):
            return OperandTypeError(field.name, operator.value, expected, operand, path)
        return None


def _is_nullable_match(field: FieldDef, value: Any) -> bool:
    if value is None:
        return field.nullable
    return operand_matches(field, value)


class _StopValidation(Exception):
    """Internal signal: first error recorded in fail-fast mode."""
