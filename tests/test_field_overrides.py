"""Tests for the field override resolution pipeline."""

from __future__ import annotations

import logging
import math

import pytest

import fieldconfig.overrides as overrides_module
from fieldconfig.matchers import FIELD_MATCHERS, FieldMatcherInfo, FieldMatcherRegistry
from fieldconfig.overrides import (
    ApplyFieldOverrideOptions,
    apply_field_overrides,
    set_dynamic_config_value,
    set_field_config_defaults,
)
from fieldconfig.processors import number_override_processor
from fieldconfig.registry import FieldConfigProperty, FieldOverrideContext
from fieldconfig.standard import STANDARD_REGISTRY, with_custom_properties
from fieldconfig.types import (
    DataFrame,
    DynamicConfigValue,
    Field,
    FieldColorMode,
    FieldConfig,
    FieldConfigSource,
    FieldType,
    MatcherConfig,
    OverrideRule,
    Thresholds,
    ThresholdStep,
)

pytestmark = pytest.mark.unit


def _resolve(data, source, **kwargs) -> list[DataFrame]:
    return apply_field_overrides(ApplyFieldOverrideOptions(data=data, field_config=source, **kwargs))


def _rule(matcher_id: str, options, *properties: tuple[str, object]) -> OverrideRule:
    return OverrideRule(
        matcher=MatcherConfig(id=matcher_id, options=options),
        properties=tuple(DynamicConfigValue(id=prop_id, value=value) for prop_id, value in properties),
    )


def test_apply_field_overrides_returns_empty_list_without_data() -> None:
    """Missing data resolves to an empty list."""

    assert apply_field_overrides(ApplyFieldOverrideOptions(data=None, field_config=FieldConfigSource())) == []


def test_apply_field_overrides_returns_input_without_field_config(numeric_frames) -> None:
    """Without a config source the input frames are returned unchanged."""

    result = apply_field_overrides(ApplyFieldOverrideOptions(data=numeric_frames, field_config=None))

    assert len(result) == len(numeric_frames)
    assert all(a is b for a, b in zip(result, numeric_frames))


def test_defaults_fill_unset_properties_without_overwriting(mixed_frame) -> None:
    """Panel defaults only fill properties the data source left unset."""

    source = FieldConfigSource(defaults=FieldConfig(unit="short", decimals=2, no_value="n/a"))

    [frame] = _resolve([mixed_frame], source)
    value, host, _ = frame.fields

    assert value.config.unit == "ms"
    assert value.config.decimals == 2
    assert value.config.no_value == "n/a"
    assert host.config.unit is None
    assert host.config.decimals is None
    assert host.config.no_value == "n/a"


def test_overrides_apply_in_rule_order_and_last_rule_wins(mixed_frame) -> None:
    """Later matching rules overwrite earlier ones on the same property."""

    source = FieldConfigSource(
        defaults=FieldConfig(decimals=0),
        overrides=(
            _rule("byName", "value", ("decimals", 1), ("unit", "percent")),
            _rule("numeric", None, ("decimals", 3)),
        ),
    )

    [frame] = _resolve([mixed_frame], source)
    value = frame.fields[0]

    assert value.config.decimals == 3
    assert value.config.unit == "percent"


def test_overrides_overwrite_data_source_values(mixed_frame) -> None:
    """Overrides are unconditional, unlike defaults."""

    source = FieldConfigSource(overrides=(_rule("byName", "value", ("unit", "s")),))

    [frame] = _resolve([mixed_frame], source)

    assert frame.fields[0].config.unit == "s"


def test_override_with_null_value_removes_property(numeric_frames) -> None:
    """A processed value of None unsets the property instead of storing None."""

    source = FieldConfigSource(
        defaults=FieldConfig(unit="percent"),
        overrides=(_rule("byName", "b", ("unit", None)),),
    )

    a_frame, b_frame = _resolve(numeric_frames, source)

    assert a_frame.fields[1].config.unit == "percent"
    assert b_frame.fields[0].config.unit is None
    assert b_frame.fields[0].config.min is None
    assert b_frame.fields[0].config.max is None


def test_unknown_matcher_id_drops_rule_silently(mixed_frame, caplog) -> None:
    """Rules with unregistered matcher ids have no effect."""

    caplog.set_level(logging.DEBUG, logger="fieldconfig")
    source = FieldConfigSource(
        overrides=(
            _rule("byPluginMagic", "value", ("unit", "bytes")),
            _rule("byName", "value", ("decimals", 4)),
        ),
    )

    [frame] = _resolve([mixed_frame], source)

    assert frame.fields[0].config.unit == "ms"
    assert frame.fields[0].config.decimals == 4
    assert any("byPluginMagic" in record.getMessage() for record in caplog.records)


def test_unknown_property_id_is_skipped(mixed_frame) -> None:
    """Unregistered property ids are ignored while other assignments still apply."""

    source = FieldConfigSource(
        overrides=(_rule("byName", "value", ("custom.fancyGradient", True), ("decimals", 2)),),
    )

    [frame] = _resolve([mixed_frame], source)

    assert frame.fields[0].config.decimals == 2
    assert frame.fields[0].config.custom is None


def test_inapplicable_override_is_skipped(mixed_frame) -> None:
    """Number-only properties are not applied to string fields."""

    source = FieldConfigSource(overrides=(_rule("byName", "host", ("unit", "percent")),))

    [frame] = _resolve([mixed_frame], source)

    assert frame.fields[1].config.unit is None
    assert frame.fields[1].config.min is None


def test_matcher_registry_option_reaches_nested_matchers(mixed_frame) -> None:
    """Composite rules compile their children with the registry given to the call."""

    suffix = FieldMatcherInfo("suffix", "Suffix", "", lambda options, registry: lambda field: field.name.endswith(options))
    registry = FieldMatcherRegistry([suffix, FIELD_MATCHERS.get_if_exists("invertMatch")])
    source = FieldConfigSource(
        overrides=(_rule("invertMatch", {"id": "suffix", "options": "st"}, ("decimals", 3)),),
    )

    [frame] = _resolve([mixed_frame], source, matcher_registry=registry)

    assert frame.fields[0].config.decimals == 3
    assert frame.fields[1].config.decimals is None


def test_frame_and_field_names_fall_back_to_indexes() -> None:
    """Unnamed frames and fields are named by position."""

    frames = [
        DataFrame(name="first", fields=(Field(name="x", type=FieldType.number, values=(1,)),)),
        DataFrame(fields=(Field(name="y", type=FieldType.number, values=(1,)),)),
        DataFrame(
            fields=(
                Field(name="z", type=FieldType.number, values=(1,)),
                Field(name="", type=FieldType.number, values=(2,)),
            )
        ),
    ]
    source = FieldConfigSource(defaults=FieldConfig(title="${__field.name} of ${__series.name}"))

    result = _resolve(frames, source)

    assert [frame.name for frame in result] == ["first", "Series[1]", "Series[2]"]
    assert result[0].fields[0].config.title == "x of first"
    assert result[2].fields[1].config.title == "Field[1] of Series[2]"
    assert result[2].fields[1].config.scoped_vars["__field"].value == {"name": "Field[1]"}


@pytest.mark.parametrize(
    ("unit", "expected"),
    [("percent", (0, 100)), ("percentunit", (0, 1))],
)
def test_percent_units_imply_range(unit: str, expected: tuple[float, float]) -> None:
    """Percent units imply a fixed range when min/max are not set."""

    frame = DataFrame(fields=(Field(name="v", type=FieldType.number, values=(0.5,)),))

    [resolved] = _resolve([frame], FieldConfigSource(defaults=FieldConfig(unit=unit)))

    assert (resolved.fields[0].config.min, resolved.fields[0].config.max) == expected


def test_percent_unit_keeps_explicit_min() -> None:
    """Only the missing side of the range is implied by the unit."""

    frame = DataFrame(fields=(Field(name="v", type=FieldType.number, values=(50,)),))

    [resolved] = _resolve([frame], FieldConfigSource(defaults=FieldConfig(unit="percent", min=10)))

    assert resolved.fields[0].config.min == 10
    assert resolved.fields[0].config.max == 100


def test_auto_min_max_uses_global_range(numeric_frames) -> None:
    """Every numeric field receives the range across all frames."""

    a_frame, b_frame = _resolve(numeric_frames, FieldConfigSource(), auto_min_max=True)

    for field in (a_frame.fields[1], b_frame.fields[0]):
        assert field.config.min == -2
        assert field.config.max == 10
    assert a_frame.fields[0].config.min is None


def test_auto_min_max_fills_only_missing_side(numeric_frames) -> None:
    """An explicit bound survives global range inference."""

    source = FieldConfigSource(overrides=(_rule("byName", "a", ("max", 50)),))

    a_frame, b_frame = _resolve(numeric_frames, source, auto_min_max=True)

    assert (a_frame.fields[1].config.min, a_frame.fields[1].config.max) == (-2, 50)
    assert (b_frame.fields[0].config.min, b_frame.fields[0].config.max) == (-2, 10)


def test_auto_min_max_computes_global_range_once(numeric_frames, monkeypatch) -> None:
    """The global range is computed lazily and memoized for the call."""

    calls: list[int] = []
    original = overrides_module.find_numeric_field_min_max

    def counting(data):
        calls.append(1)
        return original(data)

    monkeypatch.setattr(overrides_module, "find_numeric_field_min_max", counting)

    _resolve(numeric_frames, FieldConfigSource(), auto_min_max=True)
    assert len(calls) == 1

    _resolve(numeric_frames, FieldConfigSource(defaults=FieldConfig(min=0, max=1)), auto_min_max=True)
    assert len(calls) == 1


def test_auto_min_max_leaves_bounds_unset_without_numeric_data() -> None:
    """The degenerate "no data" range is never copied into a config."""

    frame = DataFrame(fields=(Field(name="v", type=FieldType.number, values=(None, None)),))

    [resolved] = _resolve([frame], FieldConfigSource(), auto_min_max=True)

    assert resolved.fields[0].config.min is None
    assert resolved.fields[0].config.max is None


def test_auto_min_max_skips_fields_with_inferred_type() -> None:
    """Untyped fields are neither scanned nor given the shared range."""

    untyped = DataFrame(fields=(Field(name="u", type=None, values=(100, 200)),))
    typed = DataFrame(fields=(Field(name="n", type=FieldType.number, values=(1, 5)),))

    u_frame, n_frame = _resolve([untyped, typed], FieldConfigSource(), auto_min_max=True)

    assert u_frame.fields[0].type is FieldType.number
    assert (u_frame.fields[0].config.min, u_frame.fields[0].config.max) == (None, None)
    assert (n_frame.fields[0].config.min, n_frame.fields[0].config.max) == (1, 5)


def test_plain_string_field_types_behave_like_enum_members() -> None:
    """`type="number"` gets number-only defaults and the shared range."""

    frame = DataFrame(fields=(Field(name="v", type="number", values=(3, 9)),))

    [resolved] = _resolve([frame], FieldConfigSource(defaults=FieldConfig(decimals=1)), auto_min_max=True)
    config = resolved.fields[0].config

    assert config.decimals == 1
    assert (config.min, config.max) == (3, 9)


def test_plain_string_percent_field_gets_unit_range() -> None:
    """Plain-string types still receive the unit default and its implied range."""

    frame = DataFrame(fields=(Field(name="v", type="number", values=(50,)),))

    [resolved] = _resolve([frame], FieldConfigSource(defaults=FieldConfig(unit="percent")))
    config = resolved.fields[0].config

    assert config.unit == "percent"
    assert (config.min, config.max) == (0, 100)


def test_resolved_range_is_ordered() -> None:
    """Inverted min/max from overrides are swapped."""

    frame = DataFrame(fields=(Field(name="v", type=FieldType.number, values=(1,)),))
    source = FieldConfigSource(overrides=(_rule("numeric", None, ("min", 10), ("max", 5)),))

    [resolved] = _resolve([frame], source)

    assert (resolved.fields[0].config.min, resolved.fields[0].config.max) == (5, 10)


def test_thresholds_from_overrides_are_normalized() -> None:
    """Threshold overrides get a -inf base step and a thresholds color mode."""

    frame = DataFrame(fields=(Field(name="v", type=FieldType.number, values=(1,)),))
    thresholds = {"steps": [{"value": 5, "color": "green"}, {"value": 80, "color": "red"}]}
    source = FieldConfigSource(overrides=(_rule("numeric", None, ("thresholds", thresholds)),))

    [resolved] = _resolve([frame], source)
    config = resolved.fields[0].config

    assert config.thresholds is not None
    assert config.thresholds.steps[0].value == -math.inf
    assert config.thresholds.steps[1] == ThresholdStep(value=80, color="red")
    assert config.color is not None
    assert config.color.mode is FieldColorMode.thresholds


def test_type_repair_guesses_missing_types(mixed_frame) -> None:
    """Unset and `other` types are replaced by an inferred type."""

    frame = DataFrame(
        fields=(
            *mixed_frame.fields,
            Field(name="label", type=FieldType.other, values=("x", "y", "z")),
            Field(name="empty", type=FieldType.other, values=(None,)),
        )
    )

    [resolved] = _resolve([frame], FieldConfigSource())

    assert resolved.fields[2].type is FieldType.number
    assert resolved.fields[3].type is FieldType.string
    assert resolved.fields[4].type is FieldType.other


def test_inputs_are_not_mutated(mixed_frame) -> None:
    """Resolution allocates new frames, fields and configs."""

    thresholds = Thresholds(steps=(ThresholdStep(value=0, color="green"), ThresholdStep(value=10, color="red")))
    frame = DataFrame(
        name=None,
        fields=(Field(name="v", type=FieldType.number, values=(1,), config=FieldConfig(thresholds=thresholds)),),
    )
    source = FieldConfigSource(
        defaults=FieldConfig(decimals=2),
        overrides=(_rule("numeric", None, ("unit", "percent")),),
    )

    [resolved] = _resolve([frame], source)

    original = frame.fields[0]
    assert frame.name is None
    assert original.config == FieldConfig(thresholds=thresholds)
    assert thresholds.steps[0].value == 0
    assert original.display is None
    assert resolved.fields[0] is not original
    assert resolved.fields[0].config is not original.config
    assert resolved.fields[0].config.thresholds.steps[0].value == -math.inf


def test_resolved_fields_carry_display_and_links() -> None:
    """Resolution attaches a display processor and a links supplier."""

    source = FieldConfigSource(defaults=FieldConfig(unit="percent", decimals=1))

    frame = DataFrame(fields=(Field(name="v", type=FieldType.number, values=(42,)),))

    [resolved] = _resolve([frame], source)
    field = resolved.fields[0]

    assert field.display is not None
    value = field.display(42)
    assert value.text == "42.0"
    assert value.suffix == "%"
    assert field.get_links is not None
    assert field.get_links() == []


def test_custom_properties_route_to_custom_namespace(numeric_frames) -> None:
    """Plugin properties live under `custom` and follow the same layering."""

    registry = with_custom_properties(
        (FieldConfigProperty(id="custom.lineWidth", path="lineWidth", process=number_override_processor),)
    )
    source = FieldConfigSource(
        defaults=FieldConfig(custom={"lineWidth": 2}),
        overrides=(
            _rule("byName", "a", ("custom.lineWidth", 5)),
            _rule("byName", "time", ("custom.lineWidth", None)),
        ),
    )

    a_frame, b_frame = _resolve(numeric_frames, source, field_config_registry=registry)

    assert a_frame.fields[0].config.custom == {}
    assert a_frame.fields[1].config.custom == {"lineWidth": 5}
    assert b_frame.fields[0].config.custom == {"lineWidth": 2}


def test_custom_namespace_stays_absent_when_nothing_is_set(numeric_frames) -> None:
    """`custom` is only created once a custom property is set."""

    registry = with_custom_properties(
        (FieldConfigProperty(id="custom.lineWidth", path="lineWidth", process=number_override_processor),)
    )

    a_frame, _ = _resolve(numeric_frames, FieldConfigSource(), field_config_registry=registry)

    assert a_frame.fields[1].config.custom is None


def test_set_field_config_defaults_and_dynamic_value_directly() -> None:
    """The layering helpers work on a bare config and context."""

    field = Field(name="v", type=FieldType.number, values=(1,))
    context = FieldOverrideContext(
        field=field,
        data=[DataFrame(fields=(field,))],
        data_frame_index=0,
        replace_variables=None,
        scoped_vars={},
        field_config_registry=STANDARD_REGISTRY,
    )
    config = FieldConfig(unit="ms")

    set_field_config_defaults(config, FieldConfig(unit="s", max=9), context)
    assert (config.unit, config.max) == ("ms", 9)

    set_dynamic_config_value(config, DynamicConfigValue(id="max", value="not a number"), context)
    assert config.max is None

    set_dynamic_config_value(config, DynamicConfigValue(id="nope", value=1), context)
    assert config == FieldConfig(unit="ms")
