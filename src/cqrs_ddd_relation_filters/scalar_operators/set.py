"""Set membership operators: in, notIn."""

from __future__ import annotations

from typing import Any

from ..casting import to_utc
from ..operators import FilterOperator
from ..strategy import ScalarOperator


class InOperator(ScalarOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.IN

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return to_utc(field_value) in [to_utc(v) for v in condition_value]


class NotInOperator(ScalarOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_IN

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return to_utc(field_value) not in [to_utc(v) for v in condition_value]
