"""
Per-entity filter evaluation.

:class:`FilterEvaluator` decides whether one entity satisfies a filter
tree, reading data through a :class:`~cqrs_ddd_relation_filters.access.DataAccess`.
:class:`AsyncFilterEvaluator` does the same over an
:class:`~cqrs_ddd_relation_filters.access.AsyncDataAccess`, so relation
resolution can be a suspension point of the host's event loop.

Quantifier semantics over the related set ``R``:

============  ======================  ================  ====================
quantifier    meaning                 ``R`` empty       ``EMPTY_MATCH`` inner
============  ======================  ================  ====================
``some``      ∃ r ∈ R: inner(r)       False             ``len(R) >= 1``
``none``      ∄ r ∈ R: inner(r)       True              ``len(R) == 0``
``every``     ∀ r ∈ R: inner(r)       True              True (not resolved)
============  ======================  ================  ====================

Evaluation is side-effect free; traversal depth is bounded by the
filter tree (``options.max_depth``), never by the entity graph.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .ast import EMPTY_MATCH, And, Not, Or, ScalarCondition, ToManyRelation, ToOneRelation
from .exceptions import FilterDepthError, UnknownFieldError, ValidationError
from .operators import Quantifier
from .options import EngineOptions
from .scalar_operators import build_default_registry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterable

    from .access import AsyncDataAccess, DataAccess
    from .ast import FilterNode
    from .schema import EntityKind, SchemaRegistry
    from .strategy import ScalarOperatorRegistry

logger = logging.getLogger("cqrs_ddd.relation_filters.evaluator")

_MISSING = object()


class _EvaluatorBase:
    def __init__(
        self,
        schema: SchemaRegistry,
        *,
        registry: ScalarOperatorRegistry | None = None,
        options: EngineOptions | None = None,
    ) -> None:
        self._schema = schema
        self._registry = registry if registry is not None else build_default_registry()
        self._options = options or EngineOptions()

    def _check_depth(self, depth: int) -> None:
        if depth > self._options.max_depth:
            raise FilterDepthError(self._options.max_depth)

    def _target(self, kind: EntityKind, relation_name: str) -> EntityKind:
        relation = kind.get_relation(relation_name)
        if relation is None:
            raise UnknownFieldError(
                relation_name, kind.name, [r.name for r in kind.relations]
            )
        return self._schema.get_kind(relation.target_kind)

    def _compare(self, node: ScalarCondition, value: Any) -> bool:
        return self._registry.evaluate(node.operator, value, node.operand)

    def _fold(
        self, results: Iterable[bool], combine: Callable[[Iterable[bool]], bool]
    ) -> bool:
        if not self._options.short_circuit:
            results = list(results)
        return combine(results)


class FilterEvaluator(_EvaluatorBase):
    """
    Evaluate filter trees against entities of a synchronous data layer.

    Usage::

        evaluator = FilterEvaluator(schema, graph)
        evaluator.matches(node, "Task", "t1")       # → bool
        evaluator.filter(node, "Task")              # → matching ids
    """

    def __init__(
        self,
        schema: SchemaRegistry,
        access: DataAccess,
        *,
        registry: ScalarOperatorRegistry | None = None,
        options: EngineOptions | None = None,
    ) -> None:
        super().__init__(schema, registry=registry, options=options)
        self._access = access

    def matches(self, node: FilterNode, kind: EntityKind | str, entity_id: Any) -> bool:
        """Return True if entity ``entity_id`` of ``kind`` satisfies ``node``."""
        return self._evaluate(node, self._schema.resolve_kind(kind), entity_id, 1)

    def filter(
        self,
        node: FilterNode,
        kind: EntityKind | str,
        entity_ids: Iterable[Any] | None = None,
    ) -> list[Any]:
        """Return the ids (from ``entity_ids`` or the whole kind) that match."""
        kind_def = self._schema.resolve_kind(kind)
        candidates = list(
            self._access.list_ids(kind_def.name) if entity_ids is None else entity_ids
        )
        matched = [
            entity_id
            for entity_id in candidates
            if self._evaluate(node, kind_def, entity_id, 1)
        ]
        logger.debug(
            "Filtered %s: %d of %d entities matched",
            kind_def.name,
            len(matched),
            len(candidates),
        )
        return matched

    # -- internals -----------------------------------------------------------

    def _evaluate(
        self, node: FilterNode, kind: EntityKind, entity_id: Any, depth: int
    ) -> bool:
        self._check_depth(depth)

        if isinstance(node, ScalarCondition):
            value = self._access.get_value(kind.name, entity_id, node.field)
            return self._compare(node, value)

        if isinstance(node, And):
            return self._fold(
                (self._evaluate(c, kind, entity_id, depth + 1) for c in node.children),
                all,
            )
        if isinstance(node, Or):
            return self._fold(
                (self._evaluate(c, kind, entity_id, depth + 1) for c in node.children),
                any,
            )
        if isinstance(node, Not):
            return not self._fold(
                (self._evaluate(c, kind, entity_id, depth + 1) for c in node.children),
                all,
            )

        if isinstance(node, ToOneRelation):
            target = self._target(kind, node.field)
            target_id = self._access.resolve_one(kind.name, entity_id, node.field)
            if target_id is None:
                return node.inner is None
            return node.inner is not None and self._evaluate(
                node.inner, target, target_id, depth + 1
            )

        if isinstance(node, ToManyRelation):
            return self._evaluate_to_many(node, kind, entity_id, depth)

        raise ValidationError(f"Not a filter node: {type(node).__name__}")

    def _evaluate_to_many(
        self, node: ToManyRelation, kind: EntityKind, entity_id: Any, depth: int
    ) -> bool:
        if node.quantifier is Quantifier.EVERY and node.inner is EMPTY_MATCH:
            return True

        target = self._target(kind, node.field)
        related = self._access.resolve_many(kind.name, entity_id, node.field)

        if node.inner is EMPTY_MATCH:
            exists = next(iter(related), _MISSING) is not _MISSING
            return exists if node.quantifier is Quantifier.SOME else not exists

        inner: FilterNode = node.inner  # type: ignore[assignment]
        results = (self._evaluate(inner, target, r, depth + 1) for r in related)
        if node.quantifier is Quantifier.SOME:
            return self._fold(results, any)
        if node.quantifier is Quantifier.NONE:
            return not self._fold(results, any)
        return self._fold(results, all)


class AsyncFilterEvaluator(_EvaluatorBase):
    """
    Evaluate filter trees over an :class:`AsyncDataAccess`.

    Semantics are identical to :class:`FilterEvaluator`; every data access
    call is awaited, and related-id streams are closed as soon as a
    quantifier's result is known.
    """

    def __init__(
        self,
        schema: SchemaRegistry,
        access: AsyncDataAccess,
        *,
        registry: ScalarOperatorRegistry | None = None,
        options: EngineOptions | None = None,
    ) -> None:
        super().__init__(schema, registry=registry, options=options)
        self._access = access

    async def matches(
        self, node: FilterNode, kind: EntityKind | str, entity_id: Any
    ) -> bool:
        return await self._evaluate(
            node, self._schema.resolve_kind(kind), entity_id, 1
        )

    async def filter(
        self,
        node: FilterNode,
        kind: EntityKind | str,
        entity_ids: Iterable[Any] | None = None,
    ) -> list[Any]:
        kind_def = self._schema.resolve_kind(kind)
        if entity_ids is None:
            candidates = list(await self._access.list_ids(kind_def.name))
        else:
            candidates = list(entity_ids)
        matched = [
            entity_id
            for entity_id in candidates
            if await self._evaluate(node, kind_def, entity_id, 1)
        ]
        logger.debug(
            "Filtered %s: %d of %d entities matched",
            kind_def.name,
            len(matched),
            len(candidates),
        )
        return matched

    # -- internals -----------------------------------------------------------

    async def _evaluate(
        self, node: FilterNode, kind: EntityKind, entity_id: Any, depth: int
    ) -> bool:
        self._check_depth(depth)

        if isinstance(node, ScalarCondition):
            value = await self._access.get_value(kind.name, entity_id, node.field)
            return self._compare(node, value)

        if isinstance(node, And | Not):
            result = True
            for child in node.children:
                if not await self._evaluate(child, kind, entity_id, depth + 1):
                    result = False
                    if self._options.short_circuit:
                        break
            return result if isinstance(node, And) else not result

        if isinstance(node, Or):
            result = False
            for child in node.children:
                if await self._evaluate(child, kind, entity_id, depth + 1):
                    result = True
                    if self._options.short_circuit:
                        break
            return result

        if isinstance(node, ToOneRelation):
            target = self._target(kind, node.field)
            target_id = await self._access.resolve_one(kind.name, entity_id, node.field)
            if target_id is None:
                return node.inner is None
            return node.inner is not None and await self._evaluate(
                node.inner, target, target_id, depth + 1
            )

        if isinstance(node, ToManyRelation):
            return await self._evaluate_to_many(node, kind, entity_id, depth)

        raise ValidationError(f"Not a filter node: {type(node).__name__}")

    async def _evaluate_to_many(
        self, node: ToManyRelation, kind: EntityKind, entity_id: Any, depth: int
    ) -> bool:
        if node.quantifier is Quantifier.EVERY and node.inner is EMPTY_MATCH:
            return True

        target = self._target(kind, node.field)
        related = self._access.resolve_many(kind.name, entity_id, node.field)
        try:
            if node.inner is EMPTY_MATCH:
                exists = False
                async for _ in related:
                    exists = True
                    break
                return exists if node.quantifier is Quantifier.SOME else not exists

            inner: FilterNode = node.inner  # type: ignore[assignment]
            # "every r: inner" is "no r: not inner"; look for a witness.
            want = node.quantifier is not Quantifier.EVERY
            found = False
            async for related_id in related:
                if await self._evaluate(inner, target, related_id, depth + 1) is want:
                    found = True
                    if self._options.short_circuit:
                        break
        finally:
            await _aclose(related)

        if node.quantifier is Quantifier.SOME:
            return found
        return not found


async def _aclose(iterator: AsyncIterator[Any]) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is not None:
        await aclose()
