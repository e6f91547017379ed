"""Article generation powered by the google-genai SDK."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from google.genai import types

from ..core.cancellation import CancellationToken
from ..core.models import LANGUAGES, TOPICS, Article, Reference
from ..utils.logging import get_logger
from .base_node import BaseGateway, text_field
from .errors import ResponseParseError

LOGGER = get_logger(__name__)

REFERENCE_SEPARATOR = "\n\n---\n\n"


@dataclass(slots=True)
class GenerationResult:
    """Decoded generation response. Missing fields are already defaulted."""

    title: str = ""
    content: str = ""
    chinese_translation: str = ""
    logic_check_notes: str = ""
    references: list[Reference] = field(default_factory=list)


def generation_schema(language: str) -> types.Schema:
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "title": types.Schema(type=types.Type.STRING, description=f"文章标题（{language}）"),
            "content": types.Schema(
                type=types.Type.STRING,
                description=f"文章正文（{language}），使用Markdown格式",
            ),
            "chinese_translation": types.Schema(
                type=types.Type.STRING, description="文章的中文翻译，使用Markdown格式"
            ),
            "logic_check_notes": types.Schema(
                type=types.Type.STRING, description="逻辑检查报告（中文）"
            ),
            "referenced_library_articles": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(type=types.Type.STRING),
                description="实际参考的本地文章库中的文章标题列表",
            ),
        },
        required=[
            "title",
            "content",
            "chinese_translation",
            "logic_check_notes",
            "referenced_library_articles",
        ],
    )


def render_reference_context(references: Sequence[Article]) -> str:
    if not references:
        return "（文章库中暂无同类文章，可自由选择切入角度。）"
    blocks = REFERENCE_SEPARATOR.join(
        f"【标题】：{article.title}\n【内容】：{article.content}" for article in references
    )
    return (
        "以下是我们之前发表过的同类产品文章。请先分析这些文章，新文章绝对不能出现与它们"
        "相似的内容、观点或段落，必须提供全新的视角或侧重点：\n\n" + blocks
    )


def extract_web_references(response: Any) -> list[Reference]:
    """Collect web citations attached to the first candidate by search grounding."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    references: list[Reference] = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        title = getattr(web, "title", None)
        if uri and title:
            references.append(Reference.web(title=title, url=uri))
    return references


def _library_titles(payload: dict[str, Any]) -> list[str]:
    raw = payload.get("referenced_library_articles")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ResponseParseError("Field 'referenced_library_articles' must be a list")
    return [str(title) for title in raw if title]


class ArticleGenerator(BaseGateway):
    """Drafts a new article, its translation and a logic-check report."""

    stage_name = "generate"

    def render_prompt(
        self,
        *,
        topic: str,
        language: str,
        instructions: str,
        references: Sequence[Article],
    ) -> str:
        return self._prompt_template.format(
            topic=topic,
            language=language,
            reference_context=render_reference_context(references),
            instructions=instructions.strip() or "（无）",
        )

    async def generate(
        self,
        *,
        topic: str,
        language: str,
        instructions: str,
        references: Iterable[Article],
        token: CancellationToken,
    ) -> GenerationResult:
        if topic not in TOPICS:
            raise ValueError(f"Unknown topic {topic!r}; expected one of {', '.join(TOPICS)}")
        if language not in LANGUAGES:
            raise ValueError(
                f"Unknown language {language!r}; expected one of {', '.join(LANGUAGES)}"
            )

        same_topic = [article for article in references if article.topic == topic]
        prompt_text = self.render_prompt(
            topic=topic,
            language=language,
            instructions=instructions,
            references=same_topic,
        )
        self._logger.info(
            "Generating article topic=%s language=%s references=%d",
            topic,
            language,
            len(same_topic),
            extra={"event": "ai.generate", "topic": topic, "language": language},
        )
        response = await self._make_request(
            prompt_text, schema=generation_schema(language), token=token
        )
        payload = self._decode_payload(response)

        library_refs = [Reference.library(title) for title in _library_titles(payload)]
        return GenerationResult(
            title=text_field(payload, "title"),
            content=text_field(payload, "content"),
            chinese_translation=text_field(payload, "chinese_translation"),
            logic_check_notes=text_field(payload, "logic_check_notes"),
            references=library_refs + extract_web_references(response),
        )


__all__ = [
    "ArticleGenerator",
    "GenerationResult",
    "extract_web_references",
    "generation_schema",
    "render_reference_context",
]
