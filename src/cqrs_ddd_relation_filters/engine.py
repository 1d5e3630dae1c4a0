"""
FilterEngine: parse, validate, then evaluate or compile.

Example::

    engine = FilterEngine(schema)
    prepared = engine.prepare({"tasks": {"every": {"isComplete": True}}}, "Person")

    engine.filter(prepared, graph)            # ids, evaluated per entity
    predicate = engine.compile(prepared)      # backend-agnostic predicate
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .compiler import FilterCompiler
from .evaluator import AsyncFilterEvaluator, FilterEvaluator
from .options import EngineOptions
from .parser import FilterParser
from .scalar_operators import build_default_registry
from .validator import FilterValidator

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .access import AsyncDataAccess, DataAccess
    from .ast import FilterNode
    from .predicate import PredicateExpr
    from .schema import EntityKind, SchemaRegistry
    from .strategy import ScalarOperatorRegistry


@dataclass(frozen=True)
class PreparedFilter:
    """A validated filter tree bound to the entity kind it was checked against."""

    node: FilterNode
    kind: str

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "filter": self.node.to_dict()}


class FilterEngine:
    """Entry point wiring parser, validator, evaluators and compiler."""

    def __init__(
        self,
        schema: SchemaRegistry,
        *,
        registry: ScalarOperatorRegistry | None = None,
        options: EngineOptions | None = None,
    ) -> None:
        self.schema = schema
        self.options = options or EngineOptions()
        self._registry = registry if registry is not None else build_default_registry()
        self._parser = FilterParser(schema, self.options)
        self._validator = FilterValidator(schema, self.options)
        self._compiler = FilterCompiler(schema, self.options)

    # -- preparation ---------------------------------------------------------

    def prepare(self, data: dict[str, Any], kind: EntityKind | str) -> PreparedFilter:
        """Parse and validate a keyed filter object."""
        kind_def = self.schema.resolve_kind(kind)
        return self.prepare_node(self._parser.parse(data, kind_def), kind_def)

    def prepare_json(self, text: str, kind: EntityKind | str) -> PreparedFilter:
        kind_def = self.schema.resolve_kind(kind)
        return self.prepare_node(self._parser.parse_json(text, kind_def), kind_def)

    def prepare_node(self, node: FilterNode, kind: EntityKind | str) -> PreparedFilter:
        """Validate an already-built filter tree."""
        kind_def = self.schema.resolve_kind(kind)
        self._validator.validate(node, kind_def)
        return PreparedFilter(node=node, kind=kind_def.name)

    # -- consumers -----------------------------------------------------------

    def evaluator(self, access: DataAccess) -> FilterEvaluator:
        return FilterEvaluator(
            self.schema, access, registry=self._registry, options=self.options
        )

    def async_evaluator(self, access: AsyncDataAccess) -> AsyncFilterEvaluator:
        return AsyncFilterEvaluator(
            self.schema, access, registry=self._registry, options=self.options
        )

    def matches(self, prepared: PreparedFilter, access: DataAccess, entity_id: Any) -> bool:
        return self.evaluator(access).matches(prepared.node, prepared.kind, entity_id)

    def filter(
        self,
        prepared: PreparedFilter,
        access: DataAccess,
        entity_ids: Iterable[Any] | None = None,
    ) -> list[Any]:
        return self.evaluator(access).filter(prepared.node, prepared.kind, entity_ids)

    async def filter_async(
        self,
        prepared: PreparedFilter,
        access: AsyncDataAccess,
        entity_ids: Iterable[Any] | None = None,
    ) -> list[Any]:
        return await self.async_evaluator(access).filter(
            prepared.node, prepared.kind, entity_ids
        )

    def compile(self, prepared: PreparedFilter) -> PredicateExpr:
        return self._compiler.compile(prepared.node, prepared.kind)
