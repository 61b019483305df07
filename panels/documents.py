"""Panel documents: field config plus inline data, loaded from YAML or JSON.

A panel document bundles everything a resolution call needs:

```yaml
title: CPU usage
timeZone: Europe/Berlin
autoMinMax: true
variables: {host: web-1}
timeRange: {from: 2024-01-01T00:00:00Z, to: 2024-01-02T00:00:00Z}
fieldConfig:
  defaults: {unit: percent}
  overrides:
    - matcher: {id: byName, options: cpu}
      properties: [{id: decimals, value: 1}]
data:
  - name: web-1
    fields:
      - {name: time, type: time, values: [1704067200000]}
      - {name: cpu, type: number, values: [42.5]}
```

JSON is a subset of YAML, so both formats go through `yaml.safe_load`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml

from fieldconfig.serialization import decode_data_frame, decode_field_config_source
from fieldconfig.types import DataFrame, FieldConfigSource


class PanelDocumentError(ValueError):
    """Raised when a panel document cannot be parsed or has an invalid shape."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Description of the problem.
            source: Path or label of the offending document.
        """

        super().__init__(f"{source}: {message}" if source else message)
        self.source = source


@dataclass(frozen=True, slots=True)
class PanelDocument:
    """A decoded panel document.

    Attributes:
        title: Panel title.
        field_config: Defaults and override rules; None when the document has
            no `fieldConfig` block.
        frames: Inline data frames.
        time_zone: Zone for time fields, if set.
        auto_min_max: Global min/max inference flag, if set.
        variables: Dashboard variables used for templating and link params.
        time_range: `(from, to)` time range, if set.
    """

    title: str
    field_config: FieldConfigSource | None
    frames: tuple[DataFrame, ...]
    time_zone: str | None = None
    auto_min_max: bool | None = None
    variables: Mapping[str, Any] = field(default_factory=dict)
    time_range: tuple[datetime, datetime] | None = None


def load_panel_document(path: str | Path) -> PanelDocument:
    """Read and decode a panel document from a YAML or JSON file.

    Args:
        path: Filesystem path of the document.

    Returns:
        PanelDocument.

    Raises:
        PanelDocumentError: When the file is not valid YAML/JSON or has an
            invalid shape.
        OSError: When the file cannot be read.
    """

    source = str(path)
    raw = Path(path).read_text(encoding="utf-8")
    try:
        payload = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise PanelDocumentError(f"invalid YAML/JSON: {exc}", source=source) from exc
    return parse_panel_document(payload, source=source)


def parse_panel_document(payload: Any, *, source: str | None = None) -> PanelDocument:
    """Decode a panel document from an already-parsed payload.

    Args:
        payload: Mapping produced by a YAML/JSON parser.
        source: Label used in error messages.

    Returns:
        PanelDocument.

    Raises:
        PanelDocumentError: When the payload has an invalid shape.
    """

    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise PanelDocumentError("document root must be a mapping", source=source)

    data_raw = payload.get("data") or []
    if not isinstance(data_raw, list):
        raise PanelDocumentError("`data` must be a list of frames", source=source)

    variables = payload.get("variables") or {}
    if not isinstance(variables, Mapping):
        raise PanelDocumentError("`variables` must be a mapping", source=source)

    auto_min_max = payload.get("autoMinMax")
    try:
        field_config = None
        if payload.get("fieldConfig") is not None:
            field_config = decode_field_config_source(payload["fieldConfig"])
        frames = tuple(decode_data_frame(frame) for frame in data_raw)
    except ValueError as exc:
        raise PanelDocumentError(str(exc), source=source) from exc

    return PanelDocument(
        title=str(payload.get("title") or ""),
        field_config=field_config,
        frames=frames,
        time_zone=str(payload["timeZone"]) if payload.get("timeZone") else None,
        auto_min_max=bool(auto_min_max) if auto_min_max is not None else None,
        variables=dict(variables),
        time_range=_parse_time_range(payload.get("timeRange"), source=source),
    )


def _parse_time_range(value: object, *, source: str | None) -> tuple[datetime, datetime] | None:
    if value is None:
        return None
    if not isinstance(value, Mapping) or "from" not in value or "to" not in value:
        raise PanelDocumentError("`timeRange` must define `from` and `to`", source=source)
    return _parse_datetime(value["from"], source=source), _parse_datetime(value["to"], source=source)


def _parse_datetime(value: object, *, source: str | None) -> datetime:
    """Parse an ISO timestamp, a YAML timestamp or epoch milliseconds."""

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError) as exc:
            raise PanelDocumentError(f"invalid timestamp {value!r}", source=source) from exc
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError as exc:
            raise PanelDocumentError(f"invalid timestamp {value!r}", source=source) from exc
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
