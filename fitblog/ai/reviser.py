"""Incremental article revision powered by the google-genai SDK."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from google.genai import types

from ..core.cancellation import CancellationToken
from ..core.models import RevisionEntry
from ..utils.logging import get_logger
from .base_node import BaseGateway, text_field

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class RevisionResult:
    content: str = ""
    chinese_translation: str = ""
    revision_notes: str = ""


REVISION_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "content": types.Schema(
            type=types.Type.STRING, description="修改后的文章正文，使用Markdown格式"
        ),
        "chinese_translation": types.Schema(
            type=types.Type.STRING, description="修改后的中文翻译，使用Markdown格式"
        ),
        "revision_notes": types.Schema(type=types.Type.STRING, description="修改说明（中文）"),
    },
    required=["content", "chinese_translation", "revision_notes"],
)


def render_history(history: Sequence[RevisionEntry]) -> str:
    if not history:
        return "（这是第一次修改。）"
    lines = []
    for index, entry in enumerate(history, start=1):
        lines.append(f"[第{index}次用户要求]: {entry.request}\n[第{index}次AI说明]: {entry.notes}")
    return "之前的修改历史：\n" + "\n\n".join(lines)


class ArticleReviser(BaseGateway):
    """Applies one change request on top of all earlier ones."""

    stage_name = "revise"

    def render_prompt(
        self,
        *,
        content: str,
        translation: str,
        instruction: str,
        history: Sequence[RevisionEntry],
    ) -> str:
        return self._prompt_template.format(
            history=render_history(history),
            content=content,
            translation=translation,
            instruction=instruction,
        )

    async def revise(
        self,
        *,
        content: str,
        translation: str,
        instruction: str,
        history: Sequence[RevisionEntry],
        token: CancellationToken,
    ) -> RevisionResult:
        prompt_text = self.render_prompt(
            content=content,
            translation=translation,
            instruction=instruction,
            history=history,
        )
        self._logger.info(
            "Revising article history=%d instruction_chars=%d",
            len(history),
            len(instruction),
            extra={"event": "ai.revise", "history": len(history)},
        )
        response = await self._make_request(prompt_text, schema=REVISION_SCHEMA, token=token)
        payload = self._decode_payload(response)
        return RevisionResult(
            content=text_field(payload, "content"),
            chinese_translation=text_field(payload, "chinese_translation"),
            revision_notes=text_field(payload, "revision_notes"),
        )


__all__ = ["ArticleReviser", "REVISION_SCHEMA", "RevisionResult", "render_history"]
