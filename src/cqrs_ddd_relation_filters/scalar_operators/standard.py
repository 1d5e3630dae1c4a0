"""Equality and ordering operators: equals, not, lt, lte, gt, gte.

Ordering works for any mutually comparable values: numbers compare
numerically, timestamps chronologically and text lexically.  A null
field value never satisfies an ordering operator.  Timestamps are
compared in UTC, so naive and aware values can be mixed.
"""

from __future__ import annotations

import operator
from typing import TYPE_CHECKING, Any, ClassVar

from ..casting import to_utc
from ..operators import FilterOperator
from ..strategy import ScalarOperator

if TYPE_CHECKING:
    from collections.abc import Callable


class EqualsOperator(ScalarOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.EQUALS

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return bool(to_utc(field_value) == to_utc(condition_value))


class NotEqualsOperator(ScalarOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return bool(to_utc(field_value) != to_utc(condition_value))


class _OrderingOperator(ScalarOperator):
    wire_name: ClassVar[FilterOperator]
    compare: ClassVar[Callable[[Any, Any], Any]]

    @property
    def name(self) -> FilterOperator:
        return self.wire_name

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return bool(type(self).compare(to_utc(field_value), to_utc(condition_value)))


class GreaterThanOperator(_OrderingOperator):
    wire_name = FilterOperator.GT
    compare = operator.gt


class GreaterEqualOperator(_OrderingOperator):
    wire_name = FilterOperator.GTE
    compare = operator.ge


class LessThanOperator(_OrderingOperator):
    wire_name = FilterOperator.LT
    compare = operator.lt


class LessEqualOperator(_OrderingOperator):
    wire_name = FilterOperator.LTE
    compare = operator.le
