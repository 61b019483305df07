"""Built-in field config property definitions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Final

from .processors import (
    color_override_processor,
    data_links_override_processor,
    number_override_processor,
    string_override_processor,
    thresholds_override_processor,
    value_mappings_override_processor,
)
from .registry import FieldConfigProperty, FieldConfigRegistry
from .types import Field, FieldType


def _is_number(field: Field) -> bool:
    return field.type == FieldType.number


def _is_not_time(field: Field) -> bool:
    return field.type != FieldType.time


STANDARD_PROPERTIES: Final[tuple[FieldConfigProperty, ...]] = (
    FieldConfigProperty(
        id="unit",
        path="unit",
        name="Unit",
        process=string_override_processor,
        should_apply=_is_number,
    ),
    FieldConfigProperty(
        id="min",
        path="min",
        name="Min",
        description="Leave empty to calculate based on all values",
        process=number_override_processor,
        should_apply=_is_number,
    ),
    FieldConfigProperty(
        id="max",
        path="max",
        name="Max",
        description="Leave empty to calculate based on all values",
        process=number_override_processor,
        should_apply=_is_number,
    ),
    FieldConfigProperty(
        id="decimals",
        path="decimals",
        name="Decimals",
        process=number_override_processor,
        settings={"min": 0, "max": 15, "integer": True},
        should_apply=_is_number,
    ),
    FieldConfigProperty(
        id="title",
        path="title",
        name="Title",
        description="Field's title",
        process=string_override_processor,
        settings={"expand_template_vars": True},
        should_apply=_is_not_time,
    ),
    FieldConfigProperty(
        id="noValue",
        path="no_value",
        name="No Value",
        description="What to show when there is no value",
        process=string_override_processor,
    ),
    FieldConfigProperty(
        id="thresholds",
        path="thresholds",
        name="Thresholds",
        process=thresholds_override_processor,
        should_apply=_is_number,
    ),
    FieldConfigProperty(
        id="mappings",
        path="mappings",
        name="Value mappings",
        process=value_mappings_override_processor,
        should_apply=_is_number,
    ),
    FieldConfigProperty(
        id="links",
        path="links",
        name="Data links",
        process=data_links_override_processor,
    ),
    FieldConfigProperty(
        id="color",
        path="color",
        name="Color",
        process=color_override_processor,
    ),
)

STANDARD_REGISTRY: Final[FieldConfigRegistry] = FieldConfigRegistry(STANDARD_PROPERTIES)


def with_custom_properties(properties: Iterable[FieldConfigProperty]) -> FieldConfigRegistry:
    """Return a registry with the standard properties plus plugin-specific ones.

    Args:
        properties: Extra descriptors; each is marked custom when it is not
            already.

    Returns:
        A new FieldConfigRegistry. `STANDARD_REGISTRY` is not modified.
    """

    custom: list[FieldConfigProperty] = []
    for prop in properties:
        if not prop.is_custom:
            prop = replace(prop, is_custom=True)
        custom.append(prop)
    return STANDARD_REGISTRY.extend(custom)
