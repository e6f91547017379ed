"""Filesystem helpers."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def ensure_parent(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def read_text(path: Path, *, encoding: str = "utf-8") -> str:
    with path.open("r", encoding=encoding) as fp:
        return fp.read()


def write_text(path: Path, data: str, *, encoding: str = "utf-8") -> None:
    ensure_parent(path)
    with path.open("w", encoding=encoding) as fp:
        fp.write(data)


def replace_text(path: Path, data: str, *, encoding: str = "utf-8") -> None:
    """Write ``data`` to a sibling temp file, then atomically swap it into place."""
    ensure_parent(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as fp:
            fp.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def safe_filename(value: str, *, fallback: str = "article") -> str:
    cleaned = _UNSAFE_FILENAME_CHARS.sub("-", value).strip().strip(".")
    return cleaned or fallback
