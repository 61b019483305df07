"""Best-effort field type inference.

Data sources do not always declare a field type. These helpers inspect field
names and values to pick a concrete FieldType, returning None when nothing
can be inferred.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Final

from .types import DataFrame, Field, FieldType

_NUMBER_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?\s*$")
_BOOLEAN_STRINGS: Final[frozenset[str]] = frozenset({"true", "false"})
_TIME_FIELD_NAMES: Final[frozenset[str]] = frozenset({"time", "date"})


def guess_field_type_from_value(value: object) -> FieldType:
    """Guess a field type from a single non-null value.

    Args:
        value: A sample value.

    Returns:
        The best matching FieldType; `other` when nothing matches.
    """

    if isinstance(value, bool):
        return FieldType.boolean
    if isinstance(value, (int, float)):
        return FieldType.number
    if isinstance(value, (datetime, date)):
        return FieldType.time
    if isinstance(value, str):
        if _NUMBER_PATTERN.match(value):
            return FieldType.number
        if value.strip().casefold() in _BOOLEAN_STRINGS:
            return FieldType.boolean
        return FieldType.string
    return FieldType.other


def guess_field_type_for_field(field: Field) -> FieldType | None:
    """Guess a field type from its name, then from its first non-null value.

    Args:
        field: Field to inspect.

    Returns:
        A FieldType, or None when the field has no usable value.
    """

    if field.name and field.name.casefold() in _TIME_FIELD_NAMES:
        return FieldType.time

    for value in field.values:
        if value is not None:
            return guess_field_type_from_value(value)
    return None


def get_time_field(frame: DataFrame) -> Field | None:
    """Return the frame's time field.

    Declared time fields win; otherwise fields without a concrete type are
    inspected with `guess_field_type_for_field`.
    """

    for field in frame.fields:
        if field.type == FieldType.time:
            return field
    for field in frame.fields:
        if field.type is None or field.type == FieldType.other:
            if guess_field_type_for_field(field) == FieldType.time:
                return field
    return None
