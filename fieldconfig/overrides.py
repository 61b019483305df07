"""Field override resolution.

`apply_field_overrides` combines, per field, the data source's own config, the
panel defaults and the matching override rules into a normalized config, then
attaches a display processor and a deferred links supplier. Input frames are
never mutated; every call returns new frames.

Unknown matcher ids and unknown property ids are skipped silently so override
definitions authored against a newer (or plugin-extended) registry keep
working. Skips are reported at DEBUG level.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from .display import DisplayProcessor, Theme, get_display_processor
from .field_type import guess_field_type_for_field
from .links import LinkLocation, get_links_supplier
from .matchers import FIELD_MATCHERS, FieldMatcher, FieldMatcherRegistry
from .range import GlobalMinMax, find_numeric_field_min_max
from .registry import FieldConfigRegistry, FieldOverrideContext
from .standard import STANDARD_REGISTRY
from .templating import Templater
from .types import (
    DataFrame,
    DynamicConfigValue,
    Field,
    FieldConfig,
    FieldConfigSource,
    FieldType,
    InterpolateFunction,
    ScopedVar,
)
from .validation import validate_field_config

logger = logging.getLogger(__name__)

DisplayProcessorFactory = Callable[[Field, Theme | None, str | None], DisplayProcessor]

_UNIT_RANGES: dict[str, tuple[float, float]] = {
    "percent": (0, 100),
    "percentunit": (0, 1),
}


@dataclass(frozen=True, slots=True)
class ApplyFieldOverrideOptions:
    """Inputs of a resolution call.

    Args:
        data: Frames to resolve; None resolves to an empty list.
        field_config: Panel defaults and override rules; None returns `data`
            unchanged.
        replace_variables: Templating function; a `Templater` without
            dashboard variables when None.
        theme: Palette passed to display processors.
        time_zone: Zone passed to display processors.
        auto_min_max: Fill missing numeric min/max from the global range.
        field_config_registry: Property descriptors; `STANDARD_REGISTRY` when None.
        matcher_registry: Matcher factories; `FIELD_MATCHERS` when None.
        location: URL utilities for links.
        display_processor_factory: Builds `Field.display`; `get_display_processor`
            when None.
    """

    data: Sequence[DataFrame] | None
    field_config: FieldConfigSource | None = None
    replace_variables: InterpolateFunction | None = None
    theme: Theme | None = None
    time_zone: str | None = None
    auto_min_max: bool = False
    field_config_registry: FieldConfigRegistry | None = None
    matcher_registry: FieldMatcherRegistry | None = None
    location: LinkLocation | None = None
    display_processor_factory: DisplayProcessorFactory | None = None


@dataclass(frozen=True, slots=True)
class _CompiledOverride:
    match: FieldMatcher
    properties: tuple[DynamicConfigValue, ...]


@dataclass(slots=True)
class _GlobalRange:
    """Global min/max computed at most once per resolution call."""

    data: Sequence[DataFrame]
    _value: GlobalMinMax | None = field(default=None, init=False)

    def get(self) -> GlobalMinMax:
        if self._value is None:
            self._value = find_numeric_field_min_max(self.data)
        return self._value


def apply_field_overrides(options: ApplyFieldOverrideOptions) -> list[DataFrame]:
    """Return copies of the frames with fully resolved field configs.

    Args:
        options: Frames, config source and collaborators for this call.

    Returns:
        New frames whose fields carry resolved config, a display processor
        and a links supplier. When `options.field_config` is None the input
        frames are returned as-is.
    """

    if options.data is None:
        return []
    data = list(options.data)
    source = options.field_config
    if source is None:
        return data

    registry = options.field_config_registry or STANDARD_REGISTRY
    matchers = options.matcher_registry or FIELD_MATCHERS
    replace_variables = options.replace_variables or Templater()
    display_factory = options.display_processor_factory or get_display_processor
    global_range = _GlobalRange(data)

    overrides: list[_CompiledOverride] = []
    for rule in source.overrides:
        match = matchers.compile(rule.matcher)
        if match is not None:
            overrides.append(_CompiledOverride(match=match, properties=rule.properties))

    resolved_frames: list[DataFrame] = []
    for frame_index, frame in enumerate(data):
        frame_name = frame.name or f"Series[{frame_index}]"
        series_var = ScopedVar(text="Series", value={"name": frame_name})

        fields: list[Field] = []
        for field_index, original in enumerate(frame.fields):
            field_name = original.name or f"Field[{field_index}]"
            scoped_vars = {
                "__series": series_var,
                "__field": ScopedVar(text="Field", value={"name": field_name}),
            }

            config = original.config.copy()
            config.scoped_vars = scoped_vars
            context = FieldOverrideContext(
                field=original,
                data=data,
                data_frame_index=frame_index,
                replace_variables=replace_variables,
                scoped_vars=scoped_vars,
                field_config_registry=registry,
            )

            set_field_config_defaults(config, source.defaults, context)
            for rule in overrides:
                if rule.match(original):
                    for prop in rule.properties:
                        set_dynamic_config_value(config, prop, context)

            field_type = original.type
            if field_type is None or field_type == FieldType.other:
                field_type = guess_field_type_for_field(original) or field_type

            unit_range = _UNIT_RANGES.get(config.unit or "")
            if unit_range is not None:
                if not _is_number(config.min):
                    config.min = unit_range[0]
                if not _is_number(config.max):
                    config.max = unit_range[1]

            # Same rule as the aggregator: only declared numeric fields share the range.
            if options.auto_min_max and original.type == FieldType.number:
                if not _is_number(config.min) or not _is_number(config.max):
                    limits = global_range.get()
                    # Without numeric data the range is degenerate; leave the bounds unset.
                    if not limits.is_empty:
                        if not _is_number(config.min):
                            config.min = limits.min
                        if not _is_number(config.max):
                            config.max = limits.max

            validate_field_config(config)

            resolved = replace(original, config=config, type=field_type, display=None, get_links=None)
            resolved = replace(resolved, display=display_factory(resolved, options.theme, options.time_zone))
            supplier = get_links_supplier(
                frame,
                resolved,
                scoped_vars,
                replace_variables,
                location=options.location,
                theme=options.theme,
                time_zone=options.time_zone,
            )
            fields.append(replace(resolved, get_links=supplier))

        resolved_frames.append(replace(frame, fields=tuple(fields), name=frame_name))
    return resolved_frames


def set_field_config_defaults(config: FieldConfig, defaults: FieldConfig, context: FieldOverrideContext) -> None:
    """Fill every unset property of `config` from the panel defaults.

    Values already present in `config` (set by the data source) are never
    overwritten. Properties that do not apply to the field are skipped.
    """

    for prop in context.field_config_registry.list():
        if config.get_value(prop) is not None:
            continue
        if not prop.should_apply(context.field):
            continue
        value = prop.process(defaults.get_value(prop), context, prop.settings)
        if value is not None:
            config.set_value(prop, value)


def set_dynamic_config_value(config: FieldConfig, value: DynamicConfigValue, context: FieldOverrideContext) -> None:
    """Apply one override assignment unconditionally.

    A processed value of None removes the property. Unknown or inapplicable
    properties are skipped.
    """

    prop = context.field_config_registry.get_if_exists(value.id)
    if prop is None:
        logger.debug("Unknown field config property %r; override skipped", value.id)
        return
    if not prop.should_apply(context.field):
        logger.debug("Field config property %r does not apply to field %r", value.id, context.field.name)
        return

    processed: Any = prop.process(value.value, context, prop.settings)
    if processed is None:
        config.unset_value(prop)
    else:
        config.set_value(prop, processed)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)
