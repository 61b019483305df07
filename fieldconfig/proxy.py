"""Lazy per-row access to display values of a frame."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .display import DisplayProcessor, Theme, formatted_value_to_string, get_display_processor
from .types import DataFrame, Field


@dataclass(frozen=True, slots=True)
class FieldRowValue:
    """Raw, numeric and formatted value of one field at one row."""

    raw: Any
    numeric: float
    text: str


class FieldDisplayValuesProxy(Mapping[str, FieldRowValue]):
    """Mapping from field name to the display value at a fixed row.

    Fields are also reachable by their configured title and by their index
    (as a string). Values are computed on first access and cached.
    """

    def __init__(
        self,
        frame: DataFrame,
        row_index: int,
        *,
        theme: Theme | None = None,
        time_zone: str | None = None,
    ) -> None:
        """Bind the proxy to a frame row."""

        self._frame = frame
        self._row_index = row_index
        self._theme = theme
        self._time_zone = time_zone
        self._cache: dict[int, FieldRowValue] = {}

    def __getitem__(self, key: str) -> FieldRowValue:
        index = self._find_index(key)
        if index is None:
            raise KeyError(key)
        if index not in self._cache:
            self._cache[index] = self._compute(self._frame.fields[index])
        return self._cache[index]

    def __iter__(self) -> Iterator[str]:
        return iter(field.name for field in self._frame.fields)

    def __len__(self) -> int:
        return len(self._frame.fields)

    def _find_index(self, key: str) -> int | None:
        for index, field in enumerate(self._frame.fields):
            if field.name == key:
                return index
        for index, field in enumerate(self._frame.fields):
            if field.config.title and field.config.title == key:
                return index
        if key.isdigit() and int(key) < len(self._frame.fields):
            return int(key)
        return None

    def _compute(self, field: Field) -> FieldRowValue:
        raw = field.values[self._row_index] if self._row_index < len(field.values) else None
        display: DisplayProcessor = field.display or get_display_processor(field, self._theme, self._time_zone)
        value = display(raw)
        return FieldRowValue(raw=raw, numeric=value.numeric, text=formatted_value_to_string(value))


def get_field_display_values_proxy(
    frame: DataFrame,
    row_index: int,
    *,
    theme: Theme | None = None,
    time_zone: str | None = None,
) -> FieldDisplayValuesProxy:
    """Return a lazy mapping of every field's display value at `row_index`."""

    return FieldDisplayValuesProxy(frame, row_index, theme=theme, time_zone=time_zone)
