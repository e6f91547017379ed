"""Persistence for the article collection and the current draft."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from ..core.models import Article, Draft
from ..utils.file_helper import read_text, replace_text
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

ARTICLES_KEY = "fitness_blog_articles"
DRAFT_KEY = "fitness_blog_draft"


class StorageError(RuntimeError):
    """Raised when a stored record cannot be decoded."""


class LocalStore:
    """Keeps the two application records as JSON files under one directory.

    Every write replaces the whole record, so a crash mid-write leaves the
    previous version intact.
    """

    def __init__(self, root: Path) -> None:
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        return self._root / f"{key}.json"

    def load_articles(self) -> list[Article]:
        data = self._read(ARTICLES_KEY)
        if data is None:
            return []
        if not isinstance(data, list):
            raise StorageError(f"Invalid record '{ARTICLES_KEY}': expected a list")
        try:
            return [Article.from_dict(item) for item in data]
        except (TypeError, ValueError, AttributeError) as exc:
            raise StorageError(f"Invalid record '{ARTICLES_KEY}': {exc}") from exc

    def save_articles(self, articles: Iterable[Article]) -> Path:
        payload = [article.to_dict() for article in articles]
        path = self._write(ARTICLES_KEY, payload)
        LOGGER.debug("Saved %d articles to %s", len(payload), path)
        return path

    def load_draft(self) -> Draft | None:
        data = self._read(DRAFT_KEY)
        if data is None:
            return None
        if not isinstance(data, dict):
            raise StorageError(f"Invalid record '{DRAFT_KEY}': expected an object")
        try:
            return Draft.from_dict(data)
        except (TypeError, ValueError, AttributeError) as exc:
            raise StorageError(f"Invalid record '{DRAFT_KEY}': {exc}") from exc

    def save_draft(self, draft: Draft) -> Path:
        path = self._write(DRAFT_KEY, draft.to_dict())
        LOGGER.debug("Saved draft %s to %s", draft.id, path)
        return path

    def clear_draft(self) -> None:
        path = self.path_for(DRAFT_KEY)
        if path.exists():
            path.unlink()
            LOGGER.debug("Removed stored draft %s", path)

    def _read(self, key: str) -> Any | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        raw = read_text(path)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Corrupt record '{key}' at {path}: {exc}") from exc
        return data

    def _write(self, key: str, payload: Any) -> Path:
        path = self.path_for(key)
        replace_text(path, json.dumps(payload, ensure_ascii=False, indent=2))
        return path


__all__ = ["ARTICLES_KEY", "DRAFT_KEY", "LocalStore", "StorageError"]
