"""Relation-aware filter engine: AST, validation, evaluation and compilation."""

from __future__ import annotations

from .access import AsyncDataAccess, AsyncInMemoryGraph, DataAccess, InMemoryGraph
from .ast import (
    EMPTY_MATCH,
    And,
    EmptyMatch,
    FilterNode,
    Not,
    Or,
    ScalarCondition,
    ToManyRelation,
    ToOneRelation,
    is_filter_node,
)
from .compiler import FilterCompiler
from .engine import FilterEngine, PreparedFilter
from .evaluator import AsyncFilterEvaluator, FilterEvaluator
from .exceptions import (
    BrokenRelationPairingError,
    CardinalityMismatchError,
    DataAccessError,
    DuplicateDefinitionError,
    FilterDepthError,
    FilterParseError,
    OperandTypeError,
    RelationFilterError,
    SchemaError,
    SelfReferencingRelationError,
    UnknownEntityKindError,
    UnknownFieldError,
    UnresolvedTargetKindError,
    UnsupportedOperatorError,
    ValidationError,
)
from .operators import Combinator, FilterOperator, Quantifier
from .options import DEFAULT_MAX_DEPTH, EngineOptions
from .parser import FilterParser
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
    PredicateExecutor,
    PredicateExpr,
    render,
)
from .scalar_operators import build_default_registry
from .schema import (
    DEFAULT_OPERATORS,
    Cardinality,
    Direction,
    EntityKind,
    FieldDef,
    RelationDef,
    RelationEnd,
    RelationLink,
    ScalarType,
    SchemaRegistry,
)
from .strategy import OperatorRegistry, ScalarOperator, ScalarOperatorRegistry
from .validator import FilterValidator

__all__ = [
    # Operators
    "FilterOperator",
    "Quantifier",
    "Combinator",
    # Schema
    "ScalarType",
    "Cardinality",
    "Direction",
    "FieldDef",
    "RelationDef",
    "EntityKind",
    "RelationEnd",
    "RelationLink",
    "SchemaRegistry",
    "DEFAULT_OPERATORS",
    # AST
    "FilterNode",
    "ScalarCondition",
    "And",
    "Or",
    "Not",
    "ToOneRelation",
    "ToManyRelation",
    "EmptyMatch",
    "EMPTY_MATCH",
    "is_filter_node",
    # Parsing / validation
    "FilterParser",
    "FilterValidator",
    # Evaluation
    "DataAccess",
    "AsyncDataAccess",
    "InMemoryGraph",
    "AsyncInMemoryGraph",
    "FilterEvaluator",
    "AsyncFilterEvaluator",
    "ScalarOperator",
    "ScalarOperatorRegistry",
    "OperatorRegistry",
    "build_default_registry",
    # Compilation
    "FilterCompiler",
    "PredicateExpr",
    "Literal",
    "TRUE",
    "FALSE",
    "Comparison",
    "AllOf",
    "AnyOf",
    "Negation",
    "LinkAbsent",
    "Exists",
    "PredicateExecutor",
    "render",
    # Facade / config
    "FilterEngine",
    "PreparedFilter",
    "EngineOptions",
    "DEFAULT_MAX_DEPTH",
    # Exceptions
    "RelationFilterError",
    "SchemaError",
    "DuplicateDefinitionError",
    "UnknownEntityKindError",
    "BrokenRelationPairingError",
    "SelfReferencingRelationError",
    "ValidationError",
    "FilterParseError",
    "UnknownFieldError",
    "UnsupportedOperatorError",
    "OperandTypeError",
    "CardinalityMismatchError",
    "UnresolvedTargetKindError",
    "FilterDepthError",
    "DataAccessError",
]
