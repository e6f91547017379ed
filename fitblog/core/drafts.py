"""Draft lifecycle: creation, edits, autosave stamps, revisions and promotion.

The module-level functions are pure: they take a draft and return a new one.
:class:`DraftManager` owns the single draft slot and persists every change.

Per-field rules when merging AI results:

========================  ==========================  ===========================
field                     generation                  revision
========================  ==========================  ===========================
title                     value or ``UNTITLED``       kept
content                   value or ``""``             value if non-empty, else kept
chinese_translation       value or ``""``             value if non-empty, else kept
logic_check_notes         value or ``""``             kept
references                value or ``[]``             kept
revision_history          ``[]``                      one entry appended
========================  ==========================  ===========================
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any, Callable

from ..utils.logging import get_logger
from .models import Article, Draft, Reference, RevisionEntry, new_id, now_ms

if TYPE_CHECKING:
    from ..ai.generator import GenerationResult
    from ..ai.reviser import RevisionResult
    from ..storage.local_store import LocalStore
    from .library import ArticleLibrary

LOGGER = get_logger(__name__)

Clock = Callable[[], int]

UNTITLED = "未命名文章"
DEFAULT_REVISION_NOTES = "已完成修改"

EDITABLE_FIELDS = frozenset(
    {
        "title",
        "content",
        "chinese_translation",
        "logic_check_notes",
        "topic",
        "language",
        "references",
    }
)
MANAGED_FIELDS = frozenset({"id", "last_saved", "revision_history"})


class NoActiveDraftError(RuntimeError):
    """Raised when an operation needs a draft but the slot is empty."""


def create_from_generation(
    result: "GenerationResult",
    topic: str,
    language: str,
    *,
    now: Clock = now_ms,
) -> Draft:
    return Draft(
        id=new_id(),
        title=result.title or UNTITLED,
        content=result.content or "",
        chinese_translation=result.chinese_translation or "",
        logic_check_notes=result.logic_check_notes or "",
        topic=topic,
        language=language,
        last_saved=now(),
        revision_history=(),
        references=tuple(result.references or ()),
    )


def apply_edit(draft: Draft, **patch: Any) -> Draft:
    managed = sorted(set(patch) & MANAGED_FIELDS)
    if managed:
        raise ValueError(f"Draft fields cannot be edited directly: {', '.join(managed)}")
    unknown = sorted(set(patch) - EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown draft fields: {', '.join(unknown)}")
    if "references" in patch:
        patch["references"] = tuple(
            ref if isinstance(ref, Reference) else Reference.from_dict(ref)
            for ref in patch["references"]
        )
    return dataclasses.replace(draft, **patch)


def tick(draft: Draft | None, *, now: Clock = now_ms) -> Draft | None:
    """Restamp ``last_saved``. Each stamp is strictly later than the previous one."""
    if draft is None:
        return None
    return dataclasses.replace(draft, last_saved=max(now(), draft.last_saved + 1))


def apply_revision(
    draft: Draft,
    result: "RevisionResult",
    request_text: str,
    *,
    now: Clock = now_ms,
) -> Draft:
    history = draft.revision_history
    timestamp = now()
    if history:
        timestamp = max(timestamp, history[-1].timestamp)
    entry = RevisionEntry(
        request=request_text,
        notes=result.revision_notes or DEFAULT_REVISION_NOTES,
        timestamp=timestamp,
    )
    return dataclasses.replace(
        draft,
        content=result.content or draft.content,
        chinese_translation=result.chinese_translation or draft.chinese_translation,
        revision_history=history + (entry,),
    )


def promote(draft: Draft, *, now: Clock = now_ms) -> Article:
    """Build the archived article. Clearing the draft is the caller's job."""
    return Article(
        id=new_id(),
        title=draft.title,
        content=draft.content,
        chinese_translation=draft.chinese_translation,
        topic=draft.topic,
        language=draft.language,
        created_at=now(),
        is_reference=False,
    )


class DraftManager:
    """Owns the one optional draft and keeps storage in step with it."""

    def __init__(self, store: "LocalStore", *, now: Clock = now_ms) -> None:
        self._store = store
        self._now = now
        self._draft: Draft | None = store.load_draft()

    @property
    def current(self) -> Draft | None:
        return self._draft

    @property
    def active(self) -> bool:
        return self._draft is not None

    def require(self) -> Draft:
        if self._draft is None:
            raise NoActiveDraftError("当前没有正在编辑的草稿")
        return self._draft

    def start(self, result: "GenerationResult", topic: str, language: str) -> Draft:
        if self._draft is not None:
            LOGGER.info(
                "Replacing draft %s with a new generation",
                self._draft.id,
                extra={"event": "draft.replace", "draft_id": self._draft.id},
            )
        draft = create_from_generation(result, topic, language, now=self._now)
        self._set(draft)
        LOGGER.info(
            "Draft created",
            extra={"event": "draft.create", "draft_id": draft.id, "topic": topic},
        )
        return draft

    def edit(self, **patch: Any) -> Draft:
        draft = apply_edit(self.require(), **patch)
        self._set(draft)
        LOGGER.debug("Draft edited fields=%s", sorted(patch))
        return draft

    def autosave(self) -> Draft | None:
        draft = tick(self._draft, now=self._now)
        if draft is None:
            return None
        self._set(draft)
        LOGGER.info(
            "Auto-saved draft",
            extra={"event": "draft.autosave", "draft_id": draft.id, "last_saved": draft.last_saved},
        )
        return draft

    def apply_revision(self, result: "RevisionResult", request_text: str) -> Draft:
        draft = apply_revision(self.require(), result, request_text, now=self._now)
        self._set(draft)
        LOGGER.info(
            "Revision applied",
            extra={
                "event": "draft.revise",
                "draft_id": draft.id,
                "revisions": len(draft.revision_history),
            },
        )
        return draft

    def promote(self, library: "ArticleLibrary") -> Article:
        """Archive the draft into ``library``, then clear the slot."""
        article = promote(self.require(), now=self._now)
        library.add(article)
        self.discard()
        return article

    def discard(self) -> None:
        if self._draft is not None:
            LOGGER.info("Draft cleared", extra={"event": "draft.clear", "draft_id": self._draft.id})
        self._draft = None
        self._store.clear_draft()

    def _set(self, draft: Draft) -> None:
        self._store.save_draft(draft)
        self._draft = draft


__all__ = [
    "DEFAULT_REVISION_NOTES",
    "DraftManager",
    "EDITABLE_FIELDS",
    "NoActiveDraftError",
    "UNTITLED",
    "apply_edit",
    "apply_revision",
    "create_from_generation",
    "promote",
    "tick",
]
