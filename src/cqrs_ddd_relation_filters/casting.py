"""
Operand casting and timestamp normalisation.

Wire formats such as JSON have no timestamp type, so the parser casts
operands by the field's :class:`ScalarType` before validation sees
them.  Timestamps are compared in UTC: aware values are converted to
UTC and made naive, naive values are taken to already be UTC.
"""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any

from .operators import LIST_OPERATORS
from .schema import ScalarType

if TYPE_CHECKING:
    from .operators import FilterOperator
    from .schema import FieldDef


def to_utc(value: Any) -> Any:
    """Return ``value`` as a naive UTC datetime; non-datetimes pass through."""
    if isinstance(value, datetime.datetime) and value.tzinfo is not None:
        return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


def _cast_timestamp(value: Any) -> Any:
    if isinstance(value, datetime.datetime):
        return to_utc(value)
    if not isinstance(value, str):
        return value
    try:
        parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        # Left as a string; the validator reports the operand type.
        return value
    return to_utc(parsed)


def cast_operand(field: FieldDef, operator: FilterOperator, value: Any) -> Any:
    """
    Convert a wire operand to the Python type of ``field``.

    Only timestamp operands are converted (from ISO-8601 strings, with
    ``Z`` read as UTC).  Values that cannot be converted are returned
    unchanged.
    """
    if field.scalar_type is not ScalarType.TIMESTAMP:
        return value
    if operator in LIST_OPERATORS and isinstance(value, list | tuple):
        return [_cast_timestamp(v) for v in value]
    return _cast_timestamp(value)
