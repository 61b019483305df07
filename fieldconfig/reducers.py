"""Per-field statistics used by range inference and display.

Reducers fold a field's values into named statistics. Missing values (None)
and NaN are ignored by the numeric statistics; `first`/`last` report the raw
values as stored.
"""

from __future__ import annotations

import math
import sys
from collections.abc import Iterable
from enum import StrEnum
from typing import Any

from .types import Field


class ReducerID(StrEnum):
    """Supported reducer identifiers."""

    min = "min"
    max = "max"
    mean = "mean"
    sum = "sum"
    count = "count"
    first = "first"
    last = "last"
    first_not_null = "firstNotNull"
    last_not_null = "lastNotNull"
    range = "range"


def reduce_field(field: Field, reducers: Iterable[ReducerID | str]) -> dict[str, Any]:
    """Compute the requested statistics for a field.

    Args:
        field: Field whose values are reduced.
        reducers: Reducer ids; unknown ids are ignored.

    Returns:
        Mapping of reducer id to value. `min`/`max` fall back to the largest
        and smallest representable floats when the field holds no numbers.
    """

    calcs = standard_calcs(field.values)
    result: dict[str, Any] = {}
    for reducer in reducers:
        key = str(reducer)
        if key in calcs:
            result[key] = calcs[key]
    return result


def standard_calcs(values: Iterable[Any]) -> dict[str, Any]:
    """Compute every standard statistic in a single pass over `values`."""

    calcs: dict[str, Any] = {
        ReducerID.min: sys.float_info.max,
        ReducerID.max: -sys.float_info.max,
        ReducerID.sum: 0.0,
        ReducerID.count: 0,
        ReducerID.first: None,
        ReducerID.last: None,
        ReducerID.first_not_null: None,
        ReducerID.last_not_null: None,
    }
    numeric_count = 0
    seen_first = False
    for value in values:
        if not seen_first:
            calcs[ReducerID.first] = value
            seen_first = True
        calcs[ReducerID.last] = value
        calcs[ReducerID.count] += 1
        if value is None:
            continue
        if calcs[ReducerID.first_not_null] is None:
            calcs[ReducerID.first_not_null] = value
        calcs[ReducerID.last_not_null] = value

        number = _as_number(value)
        if number is None:
            continue
        numeric_count += 1
        calcs[ReducerID.sum] += number
        if number < calcs[ReducerID.min]:
            calcs[ReducerID.min] = number
        if number > calcs[ReducerID.max]:
            calcs[ReducerID.max] = number

    calcs[ReducerID.mean] = calcs[ReducerID.sum] / numeric_count if numeric_count else None
    calcs[ReducerID.range] = calcs[ReducerID.max] - calcs[ReducerID.min] if numeric_count else None
    return {str(key): value for key, value in calcs.items()}


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value):
        return None
    return value
