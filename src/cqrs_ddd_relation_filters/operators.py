from enum import Enum


class FilterOperator(str, Enum):
    """Scalar operators, keyed by their wire names."""

    # Equality
    EQUALS = "equals"
    NOT = "not"

    # Set membership
    IN = "in"
    NOT_IN = "notIn"

    # Ordering
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"

    # String operations
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"


class Quantifier(str, Enum):
    """How a to-many relation filter aggregates over related items."""

    SOME = "some"
    NONE = "none"
    EVERY = "every"


class Combinator(str, Enum):
    """Logical combinator keys."""

    AND = "AND"
    OR = "OR"
    NOT = "NOT"


LIST_OPERATORS: frozenset[FilterOperator] = frozenset(
    {FilterOperator.IN, FilterOperator.NOT_IN}
)
ORDERING_OPERATORS: frozenset[FilterOperator] = frozenset(
    {FilterOperator.LT, FilterOperator.LTE, FilterOperator.GT, FilterOperator.GTE}
)
STRING_OPERATORS: frozenset[FilterOperator] = frozenset(
    {FilterOperator.CONTAINS, FilterOperator.STARTS_WITH, FilterOperator.ENDS_WITH}
)
