"""Default display processor.

A display processor turns a raw field value into display-ready text plus the
numeric value and color used by visualizations. Rendering layers may supply
their own factory; this one covers value mappings, `no_value`, decimals, a
small set of units, time formatting and threshold colors.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, tzinfo
from typing import Any, Final
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .types import Field, FieldColorMode, FieldConfig, FieldType, MappingType, ThresholdsMode, ThresholdStep, ValueMapping

DisplayProcessor = Callable[[Any], "DisplayValue"]

_SHORT_SUFFIXES: Final[tuple[tuple[float, str], ...]] = (
    (1e12, " Tri"),
    (1e9, " Bil"),
    (1e6, " Mil"),
    (1e3, " K"),
)
_TIME_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True, slots=True)
class Theme:
    """Named-color palette used to resolve threshold and fixed colors.

    Args:
        name: Theme identifier (e.g. `dark`, `light`).
        palette: Color name to CSS color. Unknown names resolve to themselves.
    """

    name: str = "dark"
    palette: Mapping[str, str] = field(
        default_factory=lambda: {
            "green": "#73BF69",
            "red": "#F2495C",
            "orange": "#FF9830",
            "yellow": "#FADE2A",
            "blue": "#5794F2",
            "purple": "#B877D9",
            "text": "#D8D9DA",
        }
    )

    def resolve_color(self, name: str) -> str:
        """Return the CSS color for a palette name (or the input unchanged)."""

        return self.palette.get(name, name)


@dataclass(frozen=True, slots=True)
class DisplayValue:
    """Display-ready representation of a raw value.

    Attributes:
        text: Formatted value without prefix/suffix.
        numeric: Numeric interpretation of the value; NaN when not numeric.
        color: Resolved color, when a color policy applies.
        prefix: Text rendered before `text`.
        suffix: Text rendered after `text` (typically the unit).
    """

    text: str
    numeric: float
    color: str | None = None
    prefix: str | None = None
    suffix: str | None = None


def formatted_value_to_string(value: DisplayValue) -> str:
    """Join prefix, text and suffix."""

    return f"{value.prefix or ''}{value.text}{value.suffix or ''}"


def get_display_processor(
    field: Field,
    theme: Theme | None = None,
    time_zone: str | None = None,
) -> DisplayProcessor:
    """Build a display function for a resolved field.

    Args:
        field: Field carrying its resolved config.
        theme: Palette for color resolution; a default dark theme when None.
        time_zone: IANA zone for time fields; `utc`, `browser` or None mean UTC.

    Returns:
        Callable mapping a raw value to a DisplayValue.
    """

    config = field.config
    active_theme = theme or Theme()
    zone = _resolve_zone(time_zone)
    is_time = field.type == FieldType.time

    def display(value: Any) -> DisplayValue:
        mapped = _apply_value_mappings(value, config.mappings or ())
        numeric = _to_number(value)
        prefix: str | None = None
        suffix: str | None = None

        if is_time and value is not None:
            text = _format_time(value, zone)
        elif numeric is not None:
            text, prefix, suffix = _format_number(numeric, config.unit, config.decimals)
        elif value is None:
            text = config.no_value or ""
        else:
            text = str(value)

        if mapped is not None:
            text, prefix, suffix = mapped, None, None

        color = None
        if numeric is not None:
            color = _color_for(numeric, config, active_theme)
        return DisplayValue(
            text=text,
            numeric=numeric if numeric is not None else math.nan,
            color=color,
            prefix=prefix,
            suffix=suffix,
        )

    return display


def get_active_threshold(value: float, steps: Sequence[ThresholdStep]) -> ThresholdStep | None:
    """Return the last step whose lower bound is at or below `value`."""

    if not steps:
        return None
    active = steps[0]
    for step in steps[1:]:
        if value >= step.value:
            active = step
        else:
            break
    return active


def _color_for(numeric: float, config: FieldConfig, theme: Theme) -> str | None:
    color = config.color
    if color is None or color.mode is None:
        return None
    if color.mode == FieldColorMode.fixed:
        return theme.resolve_color(color.fixed_color) if color.fixed_color else None
    if color.mode != FieldColorMode.thresholds:
        return None

    thresholds = config.thresholds
    if thresholds is None or not thresholds.steps:
        return None
    value = numeric
    if thresholds.mode == ThresholdsMode.percentage:
        low = config.min if config.min is not None else 0.0
        high = config.max if config.max is not None else 100.0
        if high == low:
            return None
        value = (numeric - low) / (high - low) * 100
    step = get_active_threshold(value, thresholds.steps)
    return theme.resolve_color(step.color) if step is not None else None


def _apply_value_mappings(value: Any, mappings: Sequence[ValueMapping]) -> str | None:
    if not mappings:
        return None
    numeric = _to_number(value)
    as_text = "null" if value is None else str(value)
    for mapping in mappings:
        if mapping.type == MappingType.value:
            if mapping.value is None:
                continue
            if mapping.value == as_text:
                return mapping.text
            mapped_number = _to_number(mapping.value)
            if numeric is not None and mapped_number is not None and mapped_number == numeric:
                return mapping.text
        elif mapping.type == MappingType.range and numeric is not None:
            if mapping.from_value is not None and numeric < mapping.from_value:
                continue
            if mapping.to_value is not None and numeric > mapping.to_value:
                continue
            if mapping.from_value is None and mapping.to_value is None:
                continue
            return mapping.text
    return None


def _format_number(value: float, unit: str | None, decimals: int | None) -> tuple[str, str | None, str | None]:
    """Return `(text, prefix, suffix)` for a numeric value in a unit."""

    if math.isinf(value):
        return ("+Inf" if value > 0 else "-Inf"), None, None
    if unit in (None, "", "none"):
        return _to_fixed(value, decimals), None, None
    if unit == "percent":
        return _to_fixed(value, decimals), None, "%"
    if unit == "percentunit":
        return _to_fixed(value * 100, decimals), None, "%"
    if unit == "short":
        for size, suffix in _SHORT_SUFFIXES:
            if abs(value) >= size:
                return _to_fixed(value / size, decimals), None, suffix
        return _to_fixed(value, decimals), None, None
    return _to_fixed(value, decimals), None, f" {unit}"


def _to_fixed(value: float, decimals: int | None) -> str:
    if decimals is not None:
        return f"{value:.{max(decimals, 0)}f}"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def _to_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return None if math.isnan(parsed) else parsed
    return None


def _format_time(value: Any, zone: tzinfo) -> str:
    if isinstance(value, datetime):
        moment = value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    elif isinstance(value, date):
        return value.isoformat()
    else:
        millis = _to_number(value)
        if millis is None:
            return str(value)
        moment = datetime.fromtimestamp(millis / 1000, tz=UTC)
    return moment.astimezone(zone).strftime(_TIME_FORMAT)


def _resolve_zone(time_zone: str | None) -> tzinfo:
    if not time_zone or time_zone.casefold() in {"utc", "browser"}:
        return UTC
    try:
        return ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError):
        return UTC
