"""Tests for in-memory scalar operators and their registry."""

from __future__ import annotations

import datetime
from typing import Any

import pytest

from cqrs_ddd_relation_filters import FilterOperator, ScalarOperator, ScalarOperatorRegistry
from cqrs_ddd_relation_filters.scalar_operators import build_default_registry
from cqrs_ddd_relation_filters.scalar_operators.set import InOperator, NotInOperator
from cqrs_ddd_relation_filters.scalar_operators.standard import (
    EqualsOperator,
    GreaterEqualOperator,
    GreaterThanOperator,
    LessEqualOperator,
    LessThanOperator,
    NotEqualsOperator,
)
from cqrs_ddd_relation_filters.scalar_operators.string import (
    ContainsOperator,
    EndsWithOperator,
    StartsWithOperator,
)

# ══════════════════════════════════════════════════════════════════════
# Standard comparison operators
# ══════════════════════════════════════════════════════════════════════


class TestStandardOperators:
    def test_equals(self) -> None:
        op = EqualsOperator()
        assert op.evaluate(42, 42) is True
        assert op.evaluate("Hello", "hello") is False
        assert op.evaluate(None, None) is True
        assert op.evaluate(None, 42) is False

    def test_not_equals(self) -> None:
        op = NotEqualsOperator()
        assert op.evaluate(42, 43) is True
        assert op.evaluate(None, 42) is True
        assert op.evaluate(None, None) is False

    @pytest.mark.parametrize(
        ("op", "low", "high"),
        [
            (LessThanOperator(), 1, 2),
            (LessEqualOperator(), 1, 2),
            (GreaterThanOperator(), 2, 1),
            (GreaterEqualOperator(), 2, 1),
        ],
    )
    def test_ordering(self, op: ScalarOperator, low: Any, high: Any) -> None:
        assert op.evaluate(low, high) is True
        assert op.evaluate(high, low) is False

    def test_ordering_boundaries(self) -> None:
        assert LessEqualOperator().evaluate(2, 2) is True
        assert LessThanOperator().evaluate(2, 2) is False
        assert GreaterEqualOperator().evaluate(2, 2) is True
        assert GreaterThanOperator().evaluate(2, 2) is False

    def test_ordering_timestamps(self) -> None:
        early = datetime.datetime(2024, 1, 1)
        late = datetime.datetime(2024, 6, 1)
        assert LessThanOperator().evaluate(early, late) is True
        assert GreaterThanOperator().evaluate(early, late) is False

    def test_timestamps_compare_in_utc(self) -> None:
        naive = datetime.datetime(2024, 1, 1, 12, 0)
        plus_two = datetime.timezone(datetime.timedelta(hours=2))
        aware = datetime.datetime(2024, 1, 1, 13, 0, tzinfo=plus_two)  # 11:00 UTC
        assert GreaterThanOperator().evaluate(naive, aware) is True
        assert LessThanOperator().evaluate(aware, naive) is True
        assert EqualsOperator().evaluate(
            naive, datetime.datetime(2024, 1, 1, 14, 0, tzinfo=plus_two)
        ) is True
        assert NotEqualsOperator().evaluate(naive, aware) is True
        assert InOperator().evaluate(
            datetime.datetime(2024, 1, 1, 11, 0), [aware]
        ) is True
        assert NotInOperator().evaluate(naive, (aware,)) is True

    @pytest.mark.parametrize(
        "op",
        [
            LessThanOperator(),
            LessEqualOperator(),
            GreaterThanOperator(),
            GreaterEqualOperator(),
        ],
    )
    def test_ordering_against_null_is_false(self, op: ScalarOperator) -> None:
        assert op.evaluate(None, 1) is False


# ══════════════════════════════════════════════════════════════════════
# Set and string operators
# ══════════════════════════════════════════════════════════════════════


class TestSetOperators:
    def test_in(self) -> None:
        op = InOperator()
        assert op.evaluate("a", ("a", "b")) is True
        assert op.evaluate("c", ("a", "b")) is False
        assert op.evaluate(None, ("a", None)) is True
        assert op.evaluate("a", ()) is False

    def test_not_in(self) -> None:
        op = NotInOperator()
        assert op.evaluate("c", ("a", "b")) is True
        assert op.evaluate(None, ("a",)) is True
        assert op.evaluate(None, ("a", None)) is False
        assert op.evaluate("a", ()) is True


class TestStringOperators:
    def test_contains_is_case_sensitive(self) -> None:
        op = ContainsOperator()
        assert op.evaluate("Hello", "He") is True
        assert op.evaluate("Hello", "he") is False
        assert op.evaluate("World", "He") is False
        assert op.evaluate("Hello", "") is True

    def test_starts_and_ends_with(self) -> None:
        assert StartsWithOperator().evaluate("Hello", "Hel") is True
        assert StartsWithOperator().evaluate("Hello", "llo") is False
        assert EndsWithOperator().evaluate("Hello", "llo") is True
        assert EndsWithOperator().evaluate("Hello", "Hel") is False

    @pytest.mark.parametrize(
        "op", [ContainsOperator(), StartsWithOperator(), EndsWithOperator()]
    )
    def test_null_field_never_matches(self, op: ScalarOperator) -> None:
        assert op.evaluate(None, "") is False


# ══════════════════════════════════════════════════════════════════════
# Registry
# ══════════════════════════════════════════════════════════════════════


class TestRegistry:
    def test_default_registry_covers_every_operator(self) -> None:
        registry = build_default_registry()
        assert registry.supported_operators == set(FilterOperator)

    def test_evaluate_shortcut(self) -> None:
        registry = build_default_registry()
        assert registry.evaluate(FilterOperator.CONTAINS, "Hello", "He") is True

    def test_unregistered_operator_raises(self) -> None:
        registry = ScalarOperatorRegistry()
        with pytest.raises(ValueError, match="Unsupported operator"):
            registry.evaluate(FilterOperator.EQUALS, 1, 1)

    def test_register_and_unregister(self) -> None:
        registry = ScalarOperatorRegistry()
        registry.register(EqualsOperator())
        assert registry.has(FilterOperator.EQUALS)
        assert isinstance(registry.get(FilterOperator.EQUALS), EqualsOperator)
        registry.unregister(FilterOperator.EQUALS)
        assert registry.get(FilterOperator.EQUALS) is None

    def test_custom_operator_replaces_builtin(self) -> None:
        class CaseInsensitiveContains(ScalarOperator):
            @property
            def name(self) -> FilterOperator:
                return FilterOperator.CONTAINS

            def evaluate(self, field_value: Any, condition_value: Any) -> bool:
                return field_value is not None and (
                    condition_value.lower() in field_value.lower()
                )

        registry = build_default_registry()
        registry.register(CaseInsensitiveContains())
        assert registry.evaluate(FilterOperator.CONTAINS, "Hello", "he") is True
