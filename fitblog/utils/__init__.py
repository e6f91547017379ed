"""Utility exports."""

from .file_helper import ensure_parent, read_text, replace_text, safe_filename, write_text
from .logging import JsonFormatter, configure_logging, get_logger

__all__ = [
    "ensure_parent",
    "read_text",
    "replace_text",
    "safe_filename",
    "write_text",
    "JsonFormatter",
    "configure_logging",
    "get_logger",
]
