"""Tests for CLI commands that do not reach the AI service."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from fitblog.app import cli
from fitblog.core.models import Draft
from fitblog.storage import LocalStore


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(f'[paths]\ndata_dir = "{tmp_path.as_posix()}/data"\n', encoding="utf-8")
    return path


def _run(config_path: Path, *argv: str) -> int:
    return cli.main(["--config", str(config_path), "--log-plain", *argv])


def _store(tmp_path: Path) -> LocalStore:
    return LocalStore(tmp_path / "data" / "state")


def test_library_add_list_and_remove(
    tmp_path: Path, config_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    content = tmp_path / "ref.md"
    content.write_text("Older spin bike article", encoding="utf-8")

    assert _run(
        config_path, "library", "add", "--title", "Spin basics", "--content-file", str(content)
    ) == 0
    article_id = capsys.readouterr().out.strip()

    assert _run(config_path, "library", "list", "--search", "SPIN", "--format", "json") == 0
    listed = json.loads(capsys.readouterr().out)
    assert [item["id"] for item in listed] == [article_id]
    assert listed[0]["isReference"] is True

    assert _run(config_path, "library", "remove", "does-not-exist") == 0
    assert _run(config_path, "library", "remove", article_id) == 0
    assert _store(tmp_path).load_articles() == []


def test_draft_show_without_draft(config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(config_path, "draft", "show") == 0
    assert capsys.readouterr().out.strip() == "<no-draft>"


def test_draft_commands_need_a_draft(config_path: Path) -> None:
    assert _run(config_path, "draft", "save") == 1
    assert _run(config_path, "draft", "export") == 1


def test_draft_edit_export_and_save(
    tmp_path: Path, config_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    store = _store(tmp_path)
    store.save_draft(
        Draft(
            id="d-1",
            title="Treadmill guide",
            content="old",
            chinese_translation="旧",
            logic_check_notes="",
            topic="TREADMILLS",
            language="English",
            last_saved=1,
        )
    )
    new_content = tmp_path / "content.md"
    new_content.write_text("new body", encoding="utf-8")

    assert _run(config_path, "draft", "edit", "--content-file", str(new_content)) == 0
    assert store.load_draft().content == "new body"
    capsys.readouterr()

    export_dir = tmp_path / "out"
    assert _run(config_path, "draft", "export", "--format", "txt", "--output-dir", str(export_dir)) == 0
    exported = Path(capsys.readouterr().out.strip())
    assert exported == export_dir / "Treadmill guide.txt"
    assert "new body" in exported.read_text(encoding="utf-8")

    assert _run(config_path, "draft", "save") == 0
    assert store.load_draft() is None
    assert [a.title for a in store.load_articles()] == ["Treadmill guide"]


def test_draft_edit_without_fields(config_path: Path) -> None:
    assert _run(config_path, "draft", "edit") == 2


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().err


def test_generate_without_api_key_fails_cleanly(
    config_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    assert _run(config_path, "generate", "--topic", "speedbike") == 1
    assert "Gemini API key not found" in caplog.text


def test_export_write_failure_returns_error(tmp_path: Path, config_path: Path) -> None:
    _store(tmp_path).save_draft(
        Draft(
            id="d-1",
            title="Rowing guide",
            content="body",
            chinese_translation="",
            logic_check_notes="",
            topic="ROWING MACHINE",
            language="English",
            last_saved=1,
        )
    )
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")

    assert _run(config_path, "draft", "export", "--output-dir", str(blocker)) == 1
