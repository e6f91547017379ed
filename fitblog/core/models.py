"""Article, draft and reference records with their storage serialisation."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping

TOPICS = ("speedbike", "ROWING MACHINE", "TREADMILLS", "PILATES")
LANGUAGES = ("English", "Deutsch")
LIBRARY_LANGUAGES = ("中文", "English", "Deutsch")

REFERENCE_LIBRARY = "library"
REFERENCE_WEB = "web"


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def new_id() -> str:
    return str(uuid.uuid4())


def _str(data: Mapping[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    return default if value is None else str(value)


@dataclass(slots=True, frozen=True)
class Reference:
    """A citation attached to a generated draft."""

    type: str
    title: str
    url: str | None = None

    @classmethod
    def library(cls, title: str) -> "Reference":
        return cls(type=REFERENCE_LIBRARY, title=title)

    @classmethod
    def web(cls, title: str, url: str) -> "Reference":
        return cls(type=REFERENCE_WEB, title=title, url=url)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Reference":
        ref_type = _str(data, "type", REFERENCE_LIBRARY)
        if ref_type not in (REFERENCE_LIBRARY, REFERENCE_WEB):
            raise ValueError(f"Unknown reference type: {ref_type!r}")
        url = data.get("url")
        return cls(
            type=ref_type,
            title=_str(data, "title"),
            url=None if url is None else str(url),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "title": self.title}
        if self.url is not None:
            data["url"] = self.url
        return data


@dataclass(slots=True, frozen=True)
class RevisionEntry:
    """One change request and the AI's summary of what it changed."""

    request: str
    notes: str
    timestamp: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RevisionEntry":
        return cls(
            request=_str(data, "request"),
            notes=_str(data, "notes"),
            timestamp=int(data.get("timestamp", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"request": self.request, "notes": self.notes, "timestamp": self.timestamp}


@dataclass(slots=True, frozen=True)
class Article:
    """An archived or manually entered library article."""

    id: str
    title: str
    content: str
    topic: str
    language: str
    created_at: int
    chinese_translation: str | None = None
    is_reference: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Article":
        translation = data.get("chinese_translation")
        return cls(
            id=_str(data, "id"),
            title=_str(data, "title"),
            content=_str(data, "content"),
            topic=_str(data, "topic"),
            language=_str(data, "language"),
            created_at=int(data.get("createdAt", 0)),
            chinese_translation=None if translation is None else str(translation),
            is_reference=bool(data.get("isReference", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "chinese_translation": self.chinese_translation,
            "topic": self.topic,
            "language": self.language,
            "createdAt": self.created_at,
            "isReference": self.is_reference,
        }


@dataclass(slots=True, frozen=True)
class Draft:
    """The single in-progress article. Instances are replaced, never mutated in place."""

    id: str
    title: str
    content: str
    chinese_translation: str
    logic_check_notes: str
    topic: str
    language: str
    last_saved: int
    revision_history: tuple[RevisionEntry, ...] = field(default_factory=tuple)
    references: tuple[Reference, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Draft":
        return cls(
            id=_str(data, "id"),
            title=_str(data, "title"),
            content=_str(data, "content"),
            chinese_translation=_str(data, "chinese_translation"),
            logic_check_notes=_str(data, "logic_check_notes"),
            topic=_str(data, "topic"),
            language=_str(data, "language"),
            last_saved=int(data.get("lastSaved", 0)),
            revision_history=tuple(
                RevisionEntry.from_dict(item) for item in data.get("revision_history") or ()
            ),
            references=tuple(Reference.from_dict(item) for item in data.get("references") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "chinese_translation": self.chinese_translation,
            "logic_check_notes": self.logic_check_notes,
            "topic": self.topic,
            "language": self.language,
            "lastSaved": self.last_saved,
            "revision_history": [entry.to_dict() for entry in self.revision_history],
            "references": [ref.to_dict() for ref in self.references],
        }


__all__ = [
    "Article",
    "Draft",
    "LANGUAGES",
    "LIBRARY_LANGUAGES",
    "REFERENCE_LIBRARY",
    "REFERENCE_WEB",
    "Reference",
    "RevisionEntry",
    "TOPICS",
    "new_id",
    "now_ms",
]
