"""Application session wiring storage, the draft slot, the library and the AI gateways."""

from __future__ import annotations

import contextlib
from typing import Any, Iterator

from ..ai.generator import ArticleGenerator
from ..ai.reviser import ArticleReviser
from ..core.autosave import AutosaveTask
from ..core.cancellation import CancellationToken
from ..core.drafts import Clock, DraftManager
from ..core.library import ArticleLibrary
from ..core.models import Article, Draft, now_ms
from ..settings import AppConfig
from ..storage import LocalStore
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


class AIRequestInProgressError(RuntimeError):
    """Raised when an AI call is started while another one is outstanding."""


class AuthoringSession:
    """One user's authoring state: at most one draft and at most one AI call at a time.

    A failed or cancelled AI call leaves the draft and the library exactly as
    they were before the call.
    """

    def __init__(
        self,
        store: LocalStore,
        *,
        generator: ArticleGenerator | None = None,
        reviser: ArticleReviser | None = None,
        autosave_interval: float = 60.0,
        now: Clock = now_ms,
    ) -> None:
        self.store = store
        self.library = ArticleLibrary.load(store)
        self.drafts = DraftManager(store, now=now)
        self._generator = generator
        self._reviser = reviser
        self._autosave_interval = autosave_interval
        self._busy = False

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        generator: ArticleGenerator | None = None,
        reviser: ArticleReviser | None = None,
    ) -> "AuthoringSession":
        return cls(
            LocalStore(config.paths.state_dir),
            generator=generator,
            reviser=reviser,
            autosave_interval=config.app.autosave_interval,
        )

    @property
    def draft(self) -> Draft | None:
        return self.drafts.current

    @property
    def busy(self) -> bool:
        return self._busy

    @contextlib.contextmanager
    def _ai_call(self, kind: str) -> Iterator[None]:
        if self._busy:
            raise AIRequestInProgressError(f"Cannot start {kind}: another AI request is outstanding")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    async def generate(
        self,
        *,
        topic: str,
        language: str,
        instructions: str = "",
        token: CancellationToken,
    ) -> Draft:
        if self._generator is None:
            raise RuntimeError("No article generator configured")
        with self._ai_call("generation"):
            result = await self._generator.generate(
                topic=topic,
                language=language,
                instructions=instructions,
                references=self.library.filter_by_topic(topic),
                token=token,
            )
        return self.drafts.start(result, topic, language)

    async def revise(self, request: str, *, token: CancellationToken) -> Draft:
        if self._reviser is None:
            raise RuntimeError("No article reviser configured")
        if not request.strip():
            raise ValueError("Revision request must not be empty")
        draft = self.drafts.require()
        with self._ai_call("revision"):
            result = await self._reviser.revise(
                content=draft.content,
                translation=draft.chinese_translation,
                instruction=request,
                history=draft.revision_history,
                token=token,
            )
        return self.drafts.apply_revision(result, request)

    def edit_draft(self, **patch: Any) -> Draft:
        return self.drafts.edit(**patch)

    def save_to_library(self) -> Article:
        article = self.drafts.promote(self.library)
        LOGGER.info(
            "Draft saved to library",
            extra={"event": "session.promote", "article_id": article.id},
        )
        return article

    def discard_draft(self) -> None:
        self.drafts.discard()

    def autosave(self) -> AutosaveTask:
        return AutosaveTask(self.drafts, interval=self._autosave_interval)


__all__ = ["AIRequestInProgressError", "AuthoringSession"]
