"""Deferred data link resolution.

Links are resolved when a consumer asks for them (typically on user
interaction), not while configs are resolved, because the link target can
depend on the hovered row or on a reduced value that is only known at render
time.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Final, Protocol

from .display import DisplayValue, Theme, formatted_value_to_string, get_display_processor
from .field_type import get_time_field
from .proxy import get_field_display_values_proxy
from .types import DataFrame, Field, InterpolateFunction, LinkModel, ScopedVar, ScopedVars

KEEP_TIME_VAR: Final[str] = "__url_time_range"
INCLUDE_VARS_VAR: Final[str] = "__all_variables"


class LinkLocation(Protocol):
    """URL utilities used while resolving links."""

    def assure_base_url(self, url: str) -> str:
        """Prefix relative URLs with the application base URL."""
        ...

    def process_url(self, url: str) -> str:
        """Normalize a fully substituted URL and neutralize unsafe targets."""
        ...

    def time_range_url_params(self) -> str:
        """Query string describing the current time range."""
        ...

    def variables_url_params(self) -> str:
        """Query string carrying the current dashboard variables."""
        ...


class PassthroughLocation:
    """LinkLocation that leaves URLs untouched and exposes no parameters."""

    def assure_base_url(self, url: str) -> str:
        return url

    def process_url(self, url: str) -> str:
        return url

    def time_range_url_params(self) -> str:
        return ""

    def variables_url_params(self) -> str:
        return ""


@dataclass(frozen=True, slots=True)
class LinkContext:
    """Call-time context for a links supplier.

    Args:
        value_row_index: Row whose value the link refers to.
        calculated_value: Reduced value the link refers to, used when no row
            index is given.
    """

    value_row_index: int | None = None
    calculated_value: DisplayValue | None = None


@dataclass(frozen=True, slots=True)
class LinksSupplier:
    """Resolve a field's link templates for a given LinkContext."""

    frame: DataFrame
    field: Field
    field_scoped_vars: ScopedVars
    replace_variables: InterpolateFunction
    location: LinkLocation
    theme: Theme | None = None
    time_zone: str | None = None

    def __call__(self, context: LinkContext | None = None) -> list[LinkModel]:
        """Return resolved links; empty when the field has no link templates."""

        links = self.field.config.links
        if not links:
            return []

        context = context or LinkContext()
        variables: dict[str, Any] = dict(self.field_scoped_vars)
        variables.update(self._value_vars(context))
        time_range = self.location.time_range_url_params()
        variables[KEEP_TIME_VAR] = ScopedVar(text=time_range, value=time_range)
        included = self.location.variables_url_params()
        variables[INCLUDE_VARS_VAR] = ScopedVar(text=included, value=included)

        resolved: list[LinkModel] = []
        for link in links:
            href = self.location.assure_base_url(link.url.replace("\n", ""))
            href = self.replace_variables(href, variables)
            resolved.append(
                LinkModel(
                    href=self.location.process_url(href),
                    title=self.replace_variables(link.title or "", variables),
                    target="_blank" if link.target_blank else "_self",
                    origin=self.field,
                )
            )
        return resolved

    def _value_vars(self, context: LinkContext) -> dict[str, ScopedVar]:
        row = context.value_row_index
        if row is not None and row >= 0:
            display = self.field.display or get_display_processor(self.field, self.theme, self.time_zone)
            raw = self.field.values[row] if row < len(self.field.values) else None
            value = display(raw)
            time_field = get_time_field(self.frame)
            time_value = None
            if time_field is not None and row < len(time_field.values):
                time_value = time_field.values[row]
            fields_proxy = get_field_display_values_proxy(
                self.frame, row, theme=self.theme, time_zone=self.time_zone
            )
            return {
                "__value": ScopedVar(
                    text="Value",
                    value={
                        "raw": raw,
                        "numeric": value.numeric,
                        "text": formatted_value_to_string(value),
                        "time": time_value,
                    },
                ),
                "__data": ScopedVar(
                    text="Data",
                    value={"name": self.frame.name, "refId": self.frame.ref_id, "fields": fields_proxy},
                ),
            }

        calculated = context.calculated_value
        if calculated is not None:
            numeric = None if math.isnan(calculated.numeric) else calculated.numeric
            return {
                "__value": ScopedVar(
                    text="Value",
                    value={
                        "raw": numeric,
                        "numeric": numeric,
                        "text": formatted_value_to_string(calculated),
                        "calc": calculated.text,
                    },
                )
            }
        return {"__value": ScopedVar(text="Value", value={})}


def get_links_supplier(
    frame: DataFrame,
    field: Field,
    field_scoped_vars: ScopedVars,
    replace_variables: InterpolateFunction,
    *,
    location: LinkLocation | None = None,
    theme: Theme | None = None,
    time_zone: str | None = None,
) -> LinksSupplier:
    """Bind a field's link templates to its frame and scoped variables.

    Args:
        frame: Frame that owns the field (used for the time field and the
            per-row `__data` variables).
        field: Resolved field whose `config.links` are templated.
        field_scoped_vars: `__series`/`__field` scoped variables.
        replace_variables: Templating function.
        location: URL utilities; a pass-through when None.
        theme: Palette for display values.
        time_zone: Zone for time values.

    Returns:
        A LinksSupplier; nothing is resolved until it is called.
    """

    return LinksSupplier(
        frame=frame,
        field=field,
        field_scoped_vars=dict(field_scoped_vars),
        replace_variables=replace_variables,
        location=location or PassthroughLocation(),
        theme=theme,
        time_zone=time_zone,
    )
