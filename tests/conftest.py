"""Pytest fixtures shared across the field config test suite."""

from __future__ import annotations

from collections.abc import Sequence

import pytest

from fieldconfig.types import DataFrame, Field, FieldConfig, FieldType


@pytest.fixture
def numeric_frames() -> list[DataFrame]:
    """Return two frames with one numeric field each (global range -2..10)."""

    return [
        DataFrame(
            name="A",
            fields=(
                Field(name="time", type=FieldType.time, values=(1000, 2000, 3000)),
                Field(name="a", type=FieldType.number, values=(1, 5, 3)),
            ),
        ),
        DataFrame(
            name="B",
            fields=(Field(name="b", type=FieldType.number, values=(10, -2, 8)),),
        ),
    ]


@pytest.fixture
def mixed_frame() -> DataFrame:
    """Return a frame with number, string and untyped fields plus a datasource config."""

    return DataFrame(
        name="mixed",
        ref_id="A",
        fields=(
            Field(name="value", type=FieldType.number, values=(1.5, None, 3.0), config=FieldConfig(unit="ms")),
            Field(name="host", type=FieldType.string, values=("a", "b", "c")),
            Field(name="", type=None, values=(None, 4, 5)),
        ),
    )


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Enforce that every test has exactly one speed marker.

    The suite must be runnable by intent:
    - `unit`: pure, fast tests with no filesystem access.
    - `integration`: tests touching files, the CLI, or Django utilities end to end.

    Each test must have exactly one of these markers.
    """

    invalid: list[str] = []
    for item in items:
        has_unit = item.get_closest_marker("unit") is not None
        has_integration = item.get_closest_marker("integration") is not None
        if has_unit == has_integration:
            markers = []
            if has_unit:
                markers.append("unit")
            if has_integration:
                markers.append("integration")
            invalid.append(f"{item.nodeid} (markers={markers or 'none'})")

    if invalid:
        joined = "\n".join(f"- {nodeid}" for nodeid in invalid)
        raise pytest.UsageError(
            "Each test must have exactly one speed marker: `@pytest.mark.unit` or "
            "`@pytest.mark.integration`.\n"
            f"Offending tests:\n{joined}"
        )
