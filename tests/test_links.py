"""Tests for deferred data link resolution."""

from __future__ import annotations

import pytest

from fieldconfig.display import DisplayValue
from fieldconfig.links import LinkContext, PassthroughLocation, get_links_supplier
from fieldconfig.overrides import ApplyFieldOverrideOptions, apply_field_overrides
from fieldconfig.templating import Templater
from fieldconfig.types import DataFrame, DataLink, Field, FieldConfig, FieldConfigSource, FieldType, ScopedVar

pytestmark = pytest.mark.unit


class RecordingLocation(PassthroughLocation):
    """Location that prefixes a base URL and records processed URLs."""

    def __init__(self) -> None:
        self.processed: list[str] = []

    def assure_base_url(self, url: str) -> str:
        return f"/app{url}" if url.startswith("/") else url

    def process_url(self, url: str) -> str:
        self.processed.append(url)
        return url

    def time_range_url_params(self) -> str:
        return "from=1000&to=2000"

    def variables_url_params(self) -> str:
        return "var-host=web"


def _frame(*links: DataLink) -> DataFrame:
    return DataFrame(
        name="cpu",
        ref_id="A",
        fields=(
            Field(name="time", type=FieldType.time, values=(1000, 2000)),
            Field(name="value", type=FieldType.number, values=(10, 20), config=FieldConfig(links=links or None)),
            Field(name="host", type=FieldType.string, values=("a", "b")),
        ),
    )


def _resolved_value_field(frame: DataFrame, **kwargs) -> Field:
    [resolved] = apply_field_overrides(
        ApplyFieldOverrideOptions(data=[frame], field_config=FieldConfigSource(), **kwargs)
    )
    return resolved.fields[1]


def test_links_supplier_returns_empty_list_without_links() -> None:
    """Fields without link templates resolve to no links."""

    field = _resolved_value_field(_frame())

    assert field.get_links(LinkContext(value_row_index=0)) == []


def test_links_resolve_row_context() -> None:
    """Row links see the raw value, the row time and the series name."""

    link = DataLink(
        title="Show ${__field.name}",
        url="https://example.com/d?value=${__value.raw}&time=${__value.time}\n&series=${__series.name}",
        target_blank=True,
    )
    field = _resolved_value_field(_frame(link))

    [resolved] = field.get_links(LinkContext(value_row_index=1))

    assert resolved.href == "https://example.com/d?value=20&time=2000&series=cpu"
    assert resolved.title == "Show value"
    assert resolved.target == "_blank"
    assert resolved.origin == field


def test_links_expose_other_fields_of_the_row() -> None:
    """`__data` gives access to the frame and sibling fields of the row."""

    link = DataLink(title="", url="/explore?ref=${__data.refId}&host=${__data.fields.host.text}")
    field = _resolved_value_field(_frame(link))

    [resolved] = field.get_links(LinkContext(value_row_index=0))

    assert resolved.href == "/explore?ref=A&host=a"
    assert resolved.target == "_self"


def test_links_resolve_calculated_value() -> None:
    """Links for reduced values expose the calculation."""

    link = DataLink(title="", url="/d?calc=${__value.calc}&text=${__value.text}&n=${__value.numeric}")
    field = _resolved_value_field(_frame(link))

    [resolved] = field.get_links(LinkContext(calculated_value=DisplayValue(text="12.5", numeric=12.5, suffix="%")))

    assert resolved.href == "/d?calc=12.5&text=12.5%&n=12.5"


def test_links_without_context_leave_value_variables_untouched() -> None:
    """Value variables are unknown when no row or calculation is given."""

    field = _resolved_value_field(_frame(DataLink(title="", url="/d?v=${__value.raw}")))

    [resolved] = field.get_links()

    assert resolved.href == "/d?v=${__value.raw}"


def test_links_use_location_for_base_url_and_parameters() -> None:
    """The location supplies the base URL, time range and variable parameters."""

    location = RecordingLocation()
    link = DataLink(title="", url="/d/abc?${__url_time_range}&${__all_variables}")
    field = _resolved_value_field(_frame(link), location=location)

    [resolved] = field.get_links(LinkContext(value_row_index=0))

    assert resolved.href == "/app/d/abc?from=1000&to=2000&var-host=web"
    assert location.processed == ["/app/d/abc?from=1000&to=2000&var-host=web"]


def test_links_are_resolved_on_each_call() -> None:
    """Nothing is cached between calls."""

    field = _resolved_value_field(_frame(DataLink(title="", url="/d?v=${__value.raw}")))

    first = field.get_links(LinkContext(value_row_index=0))
    second = field.get_links(LinkContext(value_row_index=1))

    assert [link.href for link in first] == ["/d?v=10"]
    assert [link.href for link in second] == ["/d?v=20"]


def test_get_links_supplier_uses_dashboard_variables() -> None:
    """Dashboard variables are available next to the scoped variables."""

    frame = _frame(DataLink(title="$env", url="/d?env=$env&f=${__field.name}"))
    field = frame.fields[1]
    supplier = get_links_supplier(
        frame,
        field,
        {"__field": ScopedVar(text="Field", value={"name": "value"})},
        Templater({"env": "prod"}),
    )

    [resolved] = supplier(LinkContext(value_row_index=0))

    assert resolved.href == "/d?env=prod&f=value"
    assert resolved.title == "prod"
