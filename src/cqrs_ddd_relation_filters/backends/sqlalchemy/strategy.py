"""SQLAlchemy clause strategies, registered the same way as scalar operators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ...strategy import OperatorRegistry

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement

    from ...operators import FilterOperator


class SQLAlchemyOperator(ABC):
    """
    Turn one filter operator into a ``ColumnElement[bool]``.

    Clauses must be two-valued: a NULL column gives the result the
    matching in-memory operator gives for ``None``, never SQL NULL.
    """

    @property
    @abstractmethod
    def name(self) -> FilterOperator: ...

    @abstractmethod
    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        """``column`` belongs to the entity table or one of its aliases."""
        ...


class SQLAlchemyOperatorRegistry(OperatorRegistry[SQLAlchemyOperator]):
    target = "SQLAlchemy"

    def apply(self, name: FilterOperator, column: Any, value: Any) -> ColumnElement[bool]:
        return self.require(name).apply(column, value)
