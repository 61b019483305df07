"""Normalization of resolved field configurations.

`validate_field_config` restores the invariants every resolved config must
satisfy. It corrects values in place instead of rejecting them, and it is
idempotent. Nested threshold/color values are replaced rather than mutated so
objects shared with the input frames are never changed.
"""

from __future__ import annotations

import math
from dataclasses import replace

from .types import DEFAULT_COLOR_SCHEME, FieldColor, FieldColorMode, FieldConfig, ThresholdsMode


def validate_field_config(config: FieldConfig) -> FieldConfig:
    """Normalize thresholds, color and range ordering of a config.

    Args:
        config: Working config; modified in place.

    Returns:
        The same config instance.
    """

    thresholds = config.thresholds
    if thresholds is not None:
        mode = thresholds.mode or ThresholdsMode.absolute
        steps = thresholds.steps if thresholds.steps is not None else ()
        if steps and steps[0].value != -math.inf:
            # JSON stores the base step as null; it is always -inf.
            steps = (replace(steps[0], value=-math.inf), *steps[1:])
        if mode is not thresholds.mode or steps is not thresholds.steps:
            config.thresholds = replace(thresholds, mode=mode, steps=steps)

    color = config.color
    if color is None:
        if thresholds is not None:
            config.color = FieldColor(mode=FieldColorMode.thresholds)
    elif color.mode is None:
        config.color = None
    elif color.mode == FieldColorMode.scheme:
        if not color.scheme_name:
            config.color = replace(color, scheme_name=DEFAULT_COLOR_SCHEME)
    elif color.scheme_name is not None:
        config.color = replace(color, scheme_name=None)

    if _is_number(config.min) and _is_number(config.max) and config.min > config.max:
        config.min, config.max = config.max, config.min

    return config


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)
