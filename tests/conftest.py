"""Shared stubs for the google-genai client."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Iterable

import pytest

from fitblog.ai import ArticleGenerator, ArticleReviser
from fitblog.settings import project_path


class StubModels:
    """Stands in for ``client.aio.models``; records every request."""

    def __init__(
        self,
        response: Any = None,
        *,
        gate: asyncio.Event | None = None,
        error: BaseException | None = None,
        on_call: Callable[[], None] | None = None,
    ) -> None:
        self.response = response
        self.gate = gate
        self.error = error
        self.on_call = on_call
        self.calls: list[dict[str, Any]] = []
        self.finished = False

    async def generate_content(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.on_call is not None:
            self.on_call()
        if self.gate is not None:
            await self.gate.wait()
        self.finished = True
        if self.error is not None:
            raise self.error
        return self.response


def stub_client(models: StubModels) -> SimpleNamespace:
    return SimpleNamespace(aio=SimpleNamespace(models=models))


def build_response(
    payload: dict[str, Any] | None = None,
    *,
    text: str | None = None,
    web: Iterable[tuple[str | None, str | None]] = (),
) -> SimpleNamespace:
    chunks = [SimpleNamespace(web=SimpleNamespace(title=title, uri=uri)) for title, uri in web]
    candidate = SimpleNamespace(grounding_metadata=SimpleNamespace(grounding_chunks=chunks))
    body = text if text is not None else json.dumps(payload or {}, ensure_ascii=False)
    return SimpleNamespace(text=body, candidates=[candidate])


_GENERATED = {
    "title": "Choosing a speedbike for small apartments",
    "content": "## Introduction\n\nA speedbike ...",
    "chinese_translation": "## 引言\n\n动感单车……",
    "logic_check_notes": "未发现逻辑问题。",
    "referenced_library_articles": [],
}

_REVISED = {
    "content": "## Introduction\n\nA quieter speedbike ...",
    "chinese_translation": "## 引言\n\n更安静的动感单车……",
    "revision_notes": "强调了静音效果。",
}


@pytest.fixture
def generated() -> dict[str, Any]:
    return dict(_GENERATED)


@pytest.fixture
def revised() -> dict[str, Any]:
    return dict(_REVISED)


@pytest.fixture
def make_models() -> Callable[..., StubModels]:
    """Build a :class:`StubModels` answering with one canned response."""

    def _make(
        payload: dict[str, Any] | None = None,
        *,
        text: str | None = None,
        web: Iterable[tuple[str | None, str | None]] = (),
        gate: asyncio.Event | None = None,
        error: BaseException | None = None,
        on_call: Callable[[], None] | None = None,
    ) -> StubModels:
        return StubModels(
            build_response(payload, text=text, web=web), gate=gate, error=error, on_call=on_call
        )

    return _make


@pytest.fixture
def prompts_dir() -> Path:
    return project_path("prompts")


@pytest.fixture
def make_generator(prompts_dir: Path) -> Callable[..., ArticleGenerator]:
    prompt = (prompts_dir / "generate.txt").read_text(encoding="utf-8")

    def _make(models: StubModels, *, use_search: bool = True) -> ArticleGenerator:
        return ArticleGenerator(
            stub_client(models), prompt=prompt, model="test-model", use_search=use_search
        )

    return _make


@pytest.fixture
def make_reviser(prompts_dir: Path) -> Callable[..., ArticleReviser]:
    prompt = (prompts_dir / "revise.txt").read_text(encoding="utf-8")

    def _make(models: StubModels) -> ArticleReviser:
        return ArticleReviser(stub_client(models), prompt=prompt, model="test-model")

    return _make
