"""Service entry points wiring panel documents to the resolution engine."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from fieldconfig.display import Theme, formatted_value_to_string
from fieldconfig.links import LinkContext
from fieldconfig.overrides import ApplyFieldOverrideOptions, apply_field_overrides
from fieldconfig.registry import FieldConfigRegistry
from fieldconfig.serialization import encode_field_config
from fieldconfig.templating import Templater
from fieldconfig.types import DataFrame

from .documents import PanelDocument
from .location import DashboardLocation
from .settings import SETTINGS, PanelSettings


def resolve_panel(
    document: PanelDocument,
    *,
    settings: PanelSettings | None = None,
    theme: Theme | None = None,
    registry: FieldConfigRegistry | None = None,
) -> list[DataFrame]:
    """Resolve every field of a panel document.

    Args:
        document: Decoded panel document.
        settings: Settings; the environment-derived `SETTINGS` when None.
        theme: Palette for display colors.
        registry: Property registry; the standard registry when None.

    Returns:
        Resolved frames (see `fieldconfig.apply_field_overrides`).
    """

    active = settings or SETTINGS
    auto_min_max = document.auto_min_max if document.auto_min_max is not None else active.auto_min_max
    options = ApplyFieldOverrideOptions(
        data=document.frames,
        field_config=document.field_config,
        replace_variables=Templater(document.variables),
        theme=theme,
        time_zone=document.time_zone or active.default_time_zone,
        auto_min_max=auto_min_max,
        field_config_registry=registry,
        location=DashboardLocation(
            settings=active,
            time_range=document.time_range,
            variables=document.variables,
        ),
    )
    return apply_field_overrides(options)


def summarize_frames(frames: Iterable[DataFrame]) -> list[dict[str, Any]]:
    """Return a JSON-serializable summary of resolved frames.

    Each field lists its resolved type and config, the display text of its
    first row, and the links resolved for that row.
    """

    summary: list[dict[str, Any]] = []
    for frame in frames:
        fields: list[dict[str, Any]] = []
        for field in frame.fields:
            entry: dict[str, Any] = {
                "name": field.name,
                "type": str(field.type) if field.type is not None else None,
                "config": encode_field_config(field.config),
            }
            if field.values and field.display is not None:
                entry["first"] = formatted_value_to_string(field.display(field.values[0]))
            if field.values and field.get_links is not None:
                entry["links"] = [
                    {"title": link.title, "href": link.href, "target": link.target}
                    for link in field.get_links(LinkContext(value_row_index=0))
                ]
            fields.append(entry)
        summary.append({"name": frame.name, "refId": frame.ref_id, "fields": fields})
    return summary
