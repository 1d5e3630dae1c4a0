"""SQLAlchemy predicate backend (install with the ``sqlalchemy`` extra)."""

from __future__ import annotations

from .mapping import LEFT_COLUMN, RIGHT_COLUMN, SQLAlchemySchemaMapping
from .operators import build_default_sqla_registry
from .renderer import SQLAlchemyPredicateRenderer
from .strategy import SQLAlchemyOperator, SQLAlchemyOperatorRegistry

__all__ = [
    "LEFT_COLUMN",
    "RIGHT_COLUMN",
    "SQLAlchemyOperator",
    "SQLAlchemyOperatorRegistry",
    "SQLAlchemyPredicateRenderer",
    "SQLAlchemySchemaMapping",
    "build_default_sqla_registry",
]
