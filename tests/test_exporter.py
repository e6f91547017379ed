"""Tests for draft export."""

from __future__ import annotations

from pathlib import Path

import pytest

from fitblog.core.models import Draft
from fitblog.services.exporter import export_draft, render_export


def _draft(title: str = "Rower: Buying/Guide") -> Draft:
    return Draft(
        id="d",
        title=title,
        content="Rowing body",
        chinese_translation="划船机正文",
        logic_check_notes="",
        topic="ROWING MACHINE",
        language="Deutsch",
        last_saved=1,
    )


def test_markdown_export_uses_headings() -> None:
    body = render_export(_draft(), "md")
    assert body.startswith("# Rower: Buying/Guide\n")
    assert "## Deutsch Version\n\nRowing body" in body
    assert "---\n\n## 中文翻译\n\n划船机正文" in body


def test_plain_export_has_same_sections_without_markup() -> None:
    body = render_export(_draft(), "txt")
    assert "#" not in body
    for fragment in ("Rower: Buying/Guide", "[Deutsch Version]", "Rowing body", "[中文翻译]", "划船机正文"):
        assert fragment in body


def test_unknown_format_rejected() -> None:
    with pytest.raises(ValueError):
        render_export(_draft(), "pdf")


def test_export_writes_sanitised_filename(tmp_path: Path) -> None:
    path = export_draft(_draft(), tmp_path, "txt")
    assert path.parent == tmp_path
    assert path.name == "Rower- Buying-Guide.txt"
    assert path.read_text(encoding="utf-8") == render_export(_draft(), "txt")


def test_export_falls_back_to_article_name(tmp_path: Path) -> None:
    path = export_draft(_draft(title="  "), tmp_path, "md")
    assert path.name == "article.md"
