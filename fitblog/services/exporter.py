"""Render a draft as a downloadable document."""

from __future__ import annotations

from pathlib import Path

from ..core.models import Draft
from ..utils.file_helper import safe_filename, write_text
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

EXPORT_FORMATS = ("md", "txt")
TRANSLATION_LABEL = "中文翻译"


def _render_markdown(draft: Draft) -> str:
    return (
        f"# {draft.title}\n\n"
        f"## {draft.language} Version\n\n"
        f"{draft.content}\n\n"
        "---\n\n"
        f"## {TRANSLATION_LABEL}\n\n"
        f"{draft.chinese_translation}\n"
    )


def _render_plain(draft: Draft) -> str:
    rule = "-" * 40
    return (
        f"{draft.title}\n\n"
        f"[{draft.language} Version]\n\n"
        f"{draft.content}\n\n"
        f"{rule}\n\n"
        f"[{TRANSLATION_LABEL}]\n\n"
        f"{draft.chinese_translation}\n"
    )


def render_export(draft: Draft, fmt: str) -> str:
    """``md`` keeps Markdown headings; ``txt`` labels the same sections without markup."""
    if fmt == "md":
        return _render_markdown(draft)
    if fmt == "txt":
        return _render_plain(draft)
    raise ValueError(f"Unsupported export format {fmt!r}; expected one of {', '.join(EXPORT_FORMATS)}")


def export_draft(draft: Draft, directory: Path, fmt: str) -> Path:
    body = render_export(draft, fmt)
    path = directory / f"{safe_filename(draft.title)}.{fmt}"
    write_text(path, body)
    LOGGER.info(
        "Exported draft to %s",
        path,
        extra={"event": "draft.export", "draft_id": draft.id, "format": fmt},
    )
    return path


__all__ = ["EXPORT_FORMATS", "export_draft", "render_export"]
