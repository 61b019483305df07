"""Encoding/decoding helpers for the dashboard JSON wire format.

Payloads use the camelCase keys of saved dashboards (`noValue`, `schemeName`,
`targetBlank`, ...). Decoding is best-effort for scalar values: malformed
numbers decode to None instead of failing the whole document. JSON cannot
represent `-inf`, so the first threshold step is stored as `null` and decoded
back to `-inf`.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from .types import (
    DataFrame,
    DataLink,
    DynamicConfigValue,
    Field,
    FieldColor,
    FieldColorMode,
    FieldConfig,
    FieldConfigSource,
    FieldType,
    MappingType,
    MatcherConfig,
    OverrideRule,
    Thresholds,
    ThresholdsMode,
    ThresholdStep,
    ValueMapping,
)

_LEGACY_MAPPING_TYPES = {1: MappingType.value, 2: MappingType.range}


def decode_field_config(payload: Mapping[str, Any] | None) -> FieldConfig:
    """Decode a FieldConfig from a JSON-shaped mapping.

    Args:
        payload: Saved field config, or None for an empty config.

    Returns:
        FieldConfig instance. Unknown keys are ignored.

    Raises:
        ValueError: When `payload` is not a mapping.
    """

    if payload is None:
        return FieldConfig()
    if not isinstance(payload, Mapping):
        raise ValueError(f"Field config must be a mapping, got {type(payload).__name__}.")

    custom_raw = payload.get("custom")
    return FieldConfig(
        title=_parse_str(payload.get("title")),
        unit=_parse_str(payload.get("unit")),
        min=_parse_float(payload.get("min")),
        max=_parse_float(payload.get("max")),
        decimals=_parse_int(payload.get("decimals")),
        no_value=_parse_str(payload.get("noValue")),
        thresholds=decode_thresholds(payload.get("thresholds")),
        mappings=decode_value_mappings(payload.get("mappings")),
        links=decode_data_links(payload.get("links")),
        color=decode_field_color(payload.get("color")),
        custom=dict(custom_raw) if isinstance(custom_raw, Mapping) else None,
    )


def encode_field_config(config: FieldConfig) -> dict[str, Any]:
    """Encode a FieldConfig into a JSON-serializable dictionary.

    Unset properties are omitted; scoped variables are never encoded.
    """

    payload: dict[str, Any] = {}
    for key, value in (
        ("title", config.title),
        ("unit", config.unit),
        ("min", config.min),
        ("max", config.max),
        ("decimals", config.decimals),
        ("noValue", config.no_value),
    ):
        if value is not None:
            payload[key] = value
    if config.thresholds is not None:
        payload["thresholds"] = encode_thresholds(config.thresholds)
    if config.mappings is not None:
        payload["mappings"] = [_encode_value_mapping(mapping) for mapping in config.mappings]
    if config.links is not None:
        payload["links"] = [
            {"title": link.title, "url": link.url, "targetBlank": link.target_blank} for link in config.links
        ]
    if config.color is not None:
        color: dict[str, Any] = {}
        if config.color.mode is not None:
            color["mode"] = str(config.color.mode)
        if config.color.scheme_name is not None:
            color["schemeName"] = config.color.scheme_name
        if config.color.fixed_color is not None:
            color["fixedColor"] = config.color.fixed_color
        payload["color"] = color
    if config.custom is not None:
        payload["custom"] = dict(config.custom)
    return payload


def decode_thresholds(value: object) -> Thresholds | None:
    """Decode thresholds; a `null` step value becomes `-inf`.

    A Thresholds instance is returned unchanged. Mode and steps are left as
    None when absent so validation can apply its defaults.
    """

    if value is None:
        return None
    if isinstance(value, Thresholds):
        return value
    if not isinstance(value, Mapping):
        return None

    mode_raw = value.get("mode")
    mode = None
    if mode_raw is not None:
        try:
            mode = ThresholdsMode(str(mode_raw).casefold())
        except ValueError:
            mode = None

    steps_raw = value.get("steps")
    steps = None
    if isinstance(steps_raw, Iterable) and not isinstance(steps_raw, (str, bytes, Mapping)):
        decoded: list[ThresholdStep] = []
        for step in steps_raw:
            if isinstance(step, ThresholdStep):
                decoded.append(step)
                continue
            if not isinstance(step, Mapping):
                continue
            step_value = _parse_float(step.get("value"))
            decoded.append(
                ThresholdStep(
                    value=-math.inf if step_value is None else step_value,
                    color=str(step.get("color") or ""),
                )
            )
        steps = tuple(decoded)
    return Thresholds(mode=mode, steps=steps)


def encode_thresholds(thresholds: Thresholds) -> dict[str, Any]:
    """Encode thresholds; infinite step values are stored as `null`."""

    payload: dict[str, Any] = {}
    if thresholds.mode is not None:
        payload["mode"] = str(thresholds.mode)
    if thresholds.steps is not None:
        payload["steps"] = [
            {"value": None if math.isinf(step.value) else step.value, "color": step.color}
            for step in thresholds.steps
        ]
    return payload


def decode_value_mappings(value: object) -> tuple[ValueMapping, ...] | None:
    """Decode value mappings, skipping malformed entries."""

    if value is None:
        return None
    if not isinstance(value, Iterable) or isinstance(value, (str, bytes, Mapping)):
        return None

    mappings: list[ValueMapping] = []
    for item in value:
        if isinstance(item, ValueMapping):
            mappings.append(item)
            continue
        if not isinstance(item, Mapping):
            continue
        mapping_type = _parse_mapping_type(item.get("type"))
        if mapping_type is None:
            continue
        raw_value = item.get("value")
        mappings.append(
            ValueMapping(
                type=mapping_type,
                text=str(item.get("text") or ""),
                value=None if raw_value is None else str(raw_value),
                from_value=_parse_float(item.get("from")),
                to_value=_parse_float(item.get("to")),
                id=_parse_int(item.get("id")),
            )
        )
    return tuple(mappings)


def decode_data_links(value: object) -> tuple[DataLink, ...] | None:
    """Decode data link templates, skipping entries without a URL."""

    if value is None:
        return None
    if not isinstance(value, Iterable) or isinstance(value, (str, bytes, Mapping)):
        return None

    links: list[DataLink] = []
    for item in value:
        if isinstance(item, DataLink):
            links.append(item)
            continue
        if not isinstance(item, Mapping) or not item.get("url"):
            continue
        links.append(
            DataLink(
                title=str(item.get("title") or ""),
                url=str(item["url"]),
                target_blank=_parse_bool(item.get("targetBlank")),
            )
        )
    return tuple(links)


def decode_field_color(value: object) -> FieldColor | None:
    """Decode a color block; an unknown mode decodes as a missing mode."""

    if value is None:
        return None
    if isinstance(value, FieldColor):
        return value
    if not isinstance(value, Mapping):
        return None

    mode = None
    if value.get("mode"):
        try:
            mode = FieldColorMode(str(value["mode"]))
        except ValueError:
            mode = None
    return FieldColor(
        mode=mode,
        scheme_name=_parse_str(value.get("schemeName")),
        fixed_color=_parse_str(value.get("fixedColor")),
    )


def decode_field_config_source(payload: Mapping[str, Any] | None) -> FieldConfigSource:
    """Decode panel defaults and override rules.

    Override property values are kept in their raw JSON form; property
    processors normalize them during resolution.

    Raises:
        ValueError: When `payload` is not a mapping.
    """

    if payload is None:
        return FieldConfigSource()
    if not isinstance(payload, Mapping):
        raise ValueError(f"Field config source must be a mapping, got {type(payload).__name__}.")

    rules: list[OverrideRule] = []
    for rule in payload.get("overrides") or ():
        if not isinstance(rule, Mapping):
            continue
        matcher_raw = rule.get("matcher")
        if not isinstance(matcher_raw, Mapping) or not matcher_raw.get("id"):
            continue
        properties = tuple(
            DynamicConfigValue(id=str(prop["id"]), value=prop.get("value"))
            for prop in rule.get("properties") or ()
            if isinstance(prop, Mapping) and prop.get("id")
        )
        rules.append(OverrideRule(matcher=decode_matcher_config(matcher_raw), properties=properties))

    return FieldConfigSource(defaults=decode_field_config(payload.get("defaults")), overrides=tuple(rules))


def decode_matcher_config(payload: Mapping[str, Any]) -> MatcherConfig:
    """Decode a matcher reference."""

    return MatcherConfig(id=str(payload["id"]), options=payload.get("options"))


def encode_field_config_source(source: FieldConfigSource) -> dict[str, Any]:
    """Encode panel defaults and override rules into a JSON-serializable dictionary."""

    return {
        "defaults": encode_field_config(source.defaults),
        "overrides": [
            {
                "matcher": {"id": rule.matcher.id, "options": rule.matcher.options},
                "properties": [{"id": prop.id, "value": prop.value} for prop in rule.properties],
            }
            for rule in source.overrides
        ],
    }


def decode_data_frame(payload: Mapping[str, Any]) -> DataFrame:
    """Decode a frame with inline column values.

    Raises:
        ValueError: When `payload` is not a mapping.
    """

    if not isinstance(payload, Mapping):
        raise ValueError(f"Data frame must be a mapping, got {type(payload).__name__}.")

    fields: list[Field] = []
    for raw in payload.get("fields") or ():
        if not isinstance(raw, Mapping):
            continue
        type_raw = raw.get("type")
        try:
            field_type = FieldType(str(type_raw)) if type_raw else None
        except ValueError:
            field_type = FieldType.other
        labels = raw.get("labels")
        fields.append(
            Field(
                name=str(raw.get("name") or ""),
                type=field_type,
                values=tuple(raw.get("values") or ()),
                config=decode_field_config(raw.get("config")),
                labels=dict(labels) if isinstance(labels, Mapping) else None,
            )
        )
    meta = payload.get("meta")
    return DataFrame(
        fields=tuple(fields),
        name=_parse_str(payload.get("name")),
        ref_id=_parse_str(payload.get("refId")),
        meta=dict(meta) if isinstance(meta, Mapping) else None,
    )


def _encode_value_mapping(mapping: ValueMapping) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": str(mapping.type), "text": mapping.text}
    if mapping.id is not None:
        payload["id"] = mapping.id
    if mapping.type == MappingType.value:
        payload["value"] = mapping.value
    else:
        payload["from"] = mapping.from_value
        payload["to"] = mapping.to_value
    return payload


def _parse_mapping_type(value: object) -> MappingType | None:
    """Accept both named types and the legacy numeric ids (1=value, 2=range)."""

    if isinstance(value, int) and not isinstance(value, bool):
        return _LEGACY_MAPPING_TYPES.get(value)
    try:
        return MappingType(str(value))
    except ValueError:
        return None


def _parse_str(value: object) -> str | None:
    """Best-effort string parsing; empty strings decode to None."""

    if value is None or value == "":
        return None
    return str(value)


def _parse_float(value: object) -> float | None:
    """Best-effort float parsing; NaN and garbage decode to None."""

    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        parsed = float(str(value))
    except ValueError:
        return None
    if math.isnan(parsed):
        return None
    return parsed


def _parse_int(value: object) -> int | None:
    """Best-effort int parsing."""

    parsed = _parse_float(value)
    if parsed is None or math.isinf(parsed):
        return None
    return int(parsed)


def _parse_bool(value: object) -> bool:
    """Best-effort bool parsing."""

    if isinstance(value, bool):
        return value
    if value is None:
        return False
    normalized = str(value).strip().casefold()
    return normalized in {"1", "true", "yes", "on"}
