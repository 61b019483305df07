"""Panel integration layer.

Loads panel documents, supplies settings-driven collaborators (link URL
safety, templating, time zone) and runs the pure `fieldconfig` engine.
"""

from .documents import PanelDocument, PanelDocumentError, load_panel_document, parse_panel_document
from .services import resolve_panel, summarize_frames

__all__ = [
    "PanelDocument",
    "PanelDocumentError",
    "load_panel_document",
    "parse_panel_document",
    "resolve_panel",
    "summarize_frames",
]
