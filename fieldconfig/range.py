"""Global numeric range across frames."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from dataclasses import dataclass

from .reducers import ReducerID, reduce_field
from .types import DataFrame, FieldType


@dataclass(frozen=True, slots=True)
class GlobalMinMax:
    """Smallest and largest numeric value seen across all numeric fields."""

    min: float
    max: float

    @property
    def is_empty(self) -> bool:
        """True for the degenerate pair produced when no numeric data exists."""

        return self.min > self.max


def find_numeric_field_min_max(data: Iterable[DataFrame]) -> GlobalMinMax:
    """Fold per-field min/max over every numeric field of every frame.

    Args:
        data: Frames to scan.

    Returns:
        GlobalMinMax. Without numeric data the result is
        `(sys.float_info.max, -sys.float_info.max)`; check `is_empty` before
        treating it as a range.
    """

    low = sys.float_info.max
    high = -sys.float_info.max
    reducers = (ReducerID.min, ReducerID.max)
    for frame in data:
        for field in frame.fields:
            if field.type != FieldType.number:
                continue
            stats = reduce_field(field, reducers)
            if stats[ReducerID.min] < low:
                low = stats[ReducerID.min]
            if stats[ReducerID.max] > high:
                high = stats[ReducerID.max]
    return GlobalMinMax(min=low, max=high)
