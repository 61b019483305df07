"""Resolve a panel document and print the resolved field configs as JSON."""

from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from dataclasses import replace
from typing import Any

from .documents import PanelDocumentError, load_panel_document
from .services import resolve_panel, summarize_frames
from .settings import load_settings


def main(argv: list[str] | None = None) -> int:
    """Run the resolver CLI.

    Returns:
        0 on success, 2 when the document is invalid or unreadable.
    """

    parser = argparse.ArgumentParser(prog="python -m panels", description="Resolve panel field configs.")
    parser.add_argument("document", help="Path to a YAML or JSON panel document.")
    parser.add_argument("--auto-min-max", action="store_true", help="Force global min/max inference.")
    args = parser.parse_args(argv)

    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        document = load_panel_document(args.document)
    except (PanelDocumentError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.auto_min_max:
        document = replace(document, auto_min_max=True)
    frames = resolve_panel(document, settings=settings)
    print(json.dumps(_json_safe(summarize_frames(frames)), indent=2, sort_keys=True))
    return 0


def _json_safe(value: Any) -> Any:
    """Replace non-finite floats, which strict JSON cannot represent."""

    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_json_safe(item) for item in value]
    return value


if __name__ == "__main__":
    raise SystemExit(main())
