"""
Compile a filter tree into a backend-agnostic predicate expression.

Relation filters become existence checks:

================================  ==========================================
filter                            predicate
================================  ==========================================
``ToOneRelation(f, None)``        ``LinkAbsent(f)``
``ToOneRelation(f, inner)``       ``NOT LinkAbsent(f) AND EXISTS f [inner]``
``ToManyRelation(f, some, i)``    ``EXISTS f [i]``
``ToManyRelation(f, none, i)``    ``NOT EXISTS f [i]``
``ToManyRelation(f, every, i)``   ``NOT EXISTS f [NOT i]``
``ToManyRelation(f, every, {})``  ``TRUE``
================================  ==========================================

An empty-match inner compiles to ``TRUE``.  With ``fold_constants``
enabled, constant sub-expressions are collapsed without changing the
result for any entity.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .ast import EMPTY_MATCH, And, Not, Or, ScalarCondition, ToManyRelation, ToOneRelation
from .exceptions import FilterDepthError, UnknownFieldError, ValidationError
from .operators import Quantifier
from .options import EngineOptions
from .predicate import (
    FALSE,
    TRUE,
    AllOf,
    AnyOf,
    Comparison,
    Exists,
    LinkAbsent,
    Literal,
    Negation,
    render,
)

if TYPE_CHECKING:
    from .ast import FilterNode
    from .predicate import PredicateExpr
    from .schema import EntityKind, SchemaRegistry

logger = logging.getLogger("cqrs_ddd.relation_filters.compiler")


class FilterCompiler:
    """Lower validated filter trees into :data:`PredicateExpr` trees."""

    def __init__(
        self,
        schema: SchemaRegistry,
        options: EngineOptions | None = None,
    ) -> None:
        self._schema = schema
        self._options = options or EngineOptions()

    def compile(self, node: FilterNode, kind: EntityKind | str) -> PredicateExpr:
        kind_def = self._schema.resolve_kind(kind)
        expr = self._compile(node, kind_def, 1)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Compiled filter on %s: %s", kind_def.name, render(expr))
        return expr

    # -- internals -----------------------------------------------------------

    def _compile(self, node: FilterNode, kind: EntityKind, depth: int) -> PredicateExpr:
        if depth > self._options.max_depth:
            raise FilterDepthError(self._options.max_depth)

        if isinstance(node, ScalarCondition):
            return Comparison(node.field, node.operator, node.operand)

        if isinstance(node, And | Or | Not):
            terms = tuple(self._compile(c, kind, depth + 1) for c in node.children)
            if isinstance(node, Or):
                return self._any_of(terms)
            combined = self._all_of(terms)
            return combined if isinstance(node, And) else self._negate(combined)

        if isinstance(node, ToOneRelation):
            if node.inner is None:
                return LinkAbsent(node.field)
            target = self._target(kind, node.field)
            return self._all_of(
                (
                    self._negate(LinkAbsent(node.field)),
                    self._exists(
                        node.field,
                        target,
                        self._compile(node.inner, target, depth + 1),
                        many=False,
                    ),
                )
            )

        if isinstance(node, ToManyRelation):
            return self._compile_to_many(node, kind, depth)

        raise ValidationError(f"Not a filter node: {type(node).__name__}")

    def _compile_to_many(
        self, node: ToManyRelation, kind: EntityKind, depth: int
    ) -> PredicateExpr:
        if node.quantifier is Quantifier.EVERY and node.inner is EMPTY_MATCH:
            return TRUE

        target = self._target(kind, node.field)
        inner: PredicateExpr = (
            TRUE
            if node.inner is EMPTY_MATCH
            else self._compile(node.inner, target, depth + 1)  # type: ignore[arg-type]
        )

        if node.quantifier is Quantifier.SOME:
            return self._exists(node.field, target, inner)
        if node.quantifier is Quantifier.NONE:
            return self._negate(self._exists(node.field, target, inner))
        return self._negate(self._exists(node.field, target, self._negate(inner)))

    def _target(self, kind: EntityKind, relation_name: str) -> EntityKind:
        relation = kind.get_relation(relation_name)
        if relation is None:
            raise UnknownFieldError(
                relation_name, kind.name, [r.name for r in kind.relations]
            )
        return self._schema.get_kind(relation.target_kind)

    # -- connectives (with optional constant folding) ------------------------

    def _all_of(self, terms: tuple[PredicateExpr, ...]) -> PredicateExpr:
        if not self._options.fold_constants:
            return AllOf(terms)
        if FALSE in terms:
            return FALSE
        kept = tuple(t for t in terms if t != TRUE)
        if not kept:
            return TRUE
        return kept[0] if len(kept) == 1 else AllOf(kept)

    def _any_of(self, terms: tuple[PredicateExpr, ...]) -> PredicateExpr:
        if not self._options.fold_constants:
            return AnyOf(terms)
        if TRUE in terms:
            return TRUE
        kept = tuple(t for t in terms if t != FALSE)
        if not kept:
            return FALSE
        return kept[0] if len(kept) == 1 else AnyOf(kept)

    def _negate(self, term: PredicateExpr) -> PredicateExpr:
        if not self._options.fold_constants:
            return Negation(term)
        if isinstance(term, Literal):
            return Literal(not term.value)
        if isinstance(term, Negation):
            return term.term
        return Negation(term)

    def _exists(
        self,
        relation: str,
        target: EntityKind,
        where: PredicateExpr,
        *,
        many: bool = True,
    ) -> PredicateExpr:
        if self._options.fold_constants and where == FALSE:
            return FALSE
        return Exists(relation, target.name, where, many=many)
