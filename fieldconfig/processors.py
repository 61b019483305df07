"""Value processors for field config properties.

Every processor has the signature `(value, context, settings) -> value | None`.
A None result tells the resolution engine to remove the property rather than
store a null.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from .registry import FieldOverrideContext
from .serialization import decode_data_links, decode_field_color, decode_thresholds, decode_value_mappings
from .types import DataLink, FieldColor, Thresholds, ValueMapping


def identity_override_processor(value: Any, context: FieldOverrideContext, settings: Mapping[str, Any]) -> Any:
    """Return the value unchanged."""

    return value


def number_override_processor(
    value: Any, context: FieldOverrideContext, settings: Mapping[str, Any]
) -> float | int | None:
    """Parse a number; non-numeric input removes the property.

    Settings:
        integer: Truncate the parsed value to an int.
        min: Lower clamp.
        max: Upper clamp.
    """

    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return None
    if math.isnan(parsed):
        return None
    if settings.get("min") is not None:
        parsed = max(parsed, float(settings["min"]))
    if settings.get("max") is not None:
        parsed = min(parsed, float(settings["max"]))
    if settings.get("integer") and not math.isinf(parsed):
        return int(parsed)
    return parsed


def string_override_processor(value: Any, context: FieldOverrideContext, settings: Mapping[str, Any]) -> str | None:
    """Return the value as text, expanding template variables when enabled.

    Settings:
        expand_template_vars: Substitute scoped variables via the context's
            templating function.
    """

    if value is None:
        return None
    text = str(value)
    if settings.get("expand_template_vars") and context.replace_variables is not None:
        return context.replace_variables(text, context.scoped_vars)
    return text


def boolean_override_processor(value: Any, context: FieldOverrideContext, settings: Mapping[str, Any]) -> bool | None:
    """Parse a boolean; None removes the property."""

    if value is None:
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().casefold() in {"1", "true", "yes", "on"}


def thresholds_override_processor(
    value: Any, context: FieldOverrideContext, settings: Mapping[str, Any]
) -> Thresholds | None:
    """Decode thresholds; invariants are restored later by validation."""

    return decode_thresholds(value)


def value_mappings_override_processor(
    value: Any, context: FieldOverrideContext, settings: Mapping[str, Any]
) -> tuple[ValueMapping, ...] | None:
    """Decode value mappings."""

    return decode_value_mappings(value)


def data_links_override_processor(
    value: Any, context: FieldOverrideContext, settings: Mapping[str, Any]
) -> tuple[DataLink, ...] | None:
    """Decode data link templates."""

    return decode_data_links(value)


def color_override_processor(
    value: Any, context: FieldOverrideContext, settings: Mapping[str, Any]
) -> FieldColor | None:
    """Decode a color block."""

    return decode_field_color(value)
