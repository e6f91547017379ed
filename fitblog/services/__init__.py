"""Service helpers built on top of the core records."""

from .exporter import EXPORT_FORMATS, export_draft, render_export

__all__ = ["EXPORT_FORMATS", "export_draft", "render_export"]
