"""Shared helpers for Gemini-powered gateways."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import time
from pathlib import Path
from typing import Any

from google import genai
from google.genai import types

from ..core.cancellation import CancellationToken, RequestCancelled
from ..settings import StageSettings
from ..utils.logging import get_logger
from .errors import RemoteCallError, ResponseParseError

LOGGER = get_logger(__name__)


def _consume_result(task: asyncio.Future[Any]) -> None:
    if not task.cancelled():
        task.exception()


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    lines = stripped.splitlines()[1:]
    if lines and lines[-1].strip().startswith("```"):
        lines = lines[:-1]
    return "\n".join(lines).strip()


class BaseGateway:
    """Reusable scaffold for the generation and revision calls.

    Subclasses render a prompt, describe the response schema and turn the
    decoded JSON into a result object. The scaffold owns the cancellable
    request and the decoding.
    """

    stage_name: str = ""

    def __init__(
        self,
        client: genai.Client,
        *,
        prompt: str,
        model: str,
        thinking_budget: int | None = None,
        timeout: float | None = None,
        use_search: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._prompt_template = prompt
        self._model = model
        self._thinking_budget = thinking_budget
        self._timeout = timeout
        self._use_search = use_search
        self._logger = logger or LOGGER

    @property
    def model(self) -> str:
        return self._model

    @classmethod
    def from_stage(
        cls,
        stage: StageSettings,
        *,
        api_key: str | None = None,
        client: genai.Client | None = None,
    ):
        prompt = cls.load_prompt_text(stage.prompt_path)
        resolved_client = client or cls.create_client(api_key)
        LOGGER.info(
            "Initialized %s model=%s prompt=%s search=%s",
            cls.__name__,
            stage.model,
            stage.prompt_path,
            stage.use_search,
        )
        return cls(
            resolved_client,
            prompt=prompt,
            model=stage.model,
            thinking_budget=stage.thinking_budget,
            timeout=stage.timeout,
            use_search=stage.use_search,
        )

    @staticmethod
    def load_prompt_text(prompt_path: Path) -> str:
        """Load a prompt from a file or concatenate all .txt files in a directory."""
        if prompt_path.is_dir():
            parts: list[str] = []
            for file in sorted(prompt_path.glob("*.txt")):
                content = file.read_text(encoding="utf-8").strip()
                if content:
                    parts.append(content)
            if not parts:
                raise RuntimeError(f"No prompt files found in {prompt_path}")
            return "\n\n".join(parts)
        return prompt_path.read_text(encoding="utf-8")

    @staticmethod
    def create_client(api_key: str | None = None) -> genai.Client:
        resolved_key = api_key or os.environ.get("GEMINI_API_KEY")
        if not resolved_key:
            raise RuntimeError(
                "Gemini API key not found. Set GEMINI_API_KEY or pass --api-key."
            )
        return genai.Client(api_key=resolved_key)

    def _build_config(self, schema: types.Schema) -> types.GenerateContentConfig:
        config_kwargs: dict[str, Any] = {
            "response_mime_type": "application/json",
            "response_schema": schema,
        }
        if self._use_search:
            config_kwargs["tools"] = [types.Tool(google_search=types.GoogleSearch())]
        if self._thinking_budget and self._thinking_budget > 0:
            config_kwargs["thinking_config"] = types.ThinkingConfig(
                thinking_budget=self._thinking_budget
            )
            self._logger.debug("Thinking mode enabled budget=%s", self._thinking_budget)
        if self._timeout:
            config_kwargs["http_options"] = types.HttpOptions(timeout=int(self._timeout * 1000))
        return types.GenerateContentConfig(**config_kwargs)

    async def _make_request(
        self,
        prompt_text: str,
        *,
        schema: types.Schema,
        token: CancellationToken,
    ) -> Any:
        """Send one request, racing it against ``token``.

        Raises :class:`RequestCancelled` when the token is (or becomes)
        cancelled before a result is handed back, even if the remote call
        finished in the meantime.
        """
        try:
            token.raise_if_cancelled()
        except RequestCancelled:
            self._logger.info(
                "Skipping %s request: already cancelled",
                self.stage_name,
                extra={"event": "ai.cancelled", "stage": self.stage_name, "phase": "before"},
            )
            raise

        config = self._build_config(schema)
        loop = asyncio.get_running_loop()
        cancelled: asyncio.Future[None] = loop.create_future()

        def _resolve_cancelled() -> None:
            if not cancelled.done():
                cancelled.set_result(None)

        def _on_cancel() -> None:
            loop.call_soon_threadsafe(_resolve_cancelled)

        self._logger.info(
            "Sending Gemini %s request model=%s chars=%s",
            self.stage_name,
            self._model,
            len(prompt_text),
            extra={"event": "ai.request", "stage": self.stage_name},
        )
        start = time.monotonic()
        request = asyncio.ensure_future(
            self._client.aio.models.generate_content(
                model=self._model,
                contents=prompt_text,
                config=config,
            )
        )
        request.add_done_callback(_consume_result)
        handle = token.add_listener(_on_cancel)
        try:
            await asyncio.wait({request, cancelled}, return_when=asyncio.FIRST_COMPLETED)
            if token.cancelled:
                self._logger.info(
                    "Gemini %s request cancelled after %.2fs",
                    self.stage_name,
                    time.monotonic() - start,
                    extra={"event": "ai.cancelled", "stage": self.stage_name, "phase": "during"},
                )
                raise RequestCancelled(f"{self.stage_name} request cancelled")
            try:
                response = request.result()
            except Exception as exc:
                self._logger.error(
                    "Gemini %s request failed: %s",
                    self.stage_name,
                    exc,
                    extra={"event": "ai.error", "stage": self.stage_name},
                )
                raise RemoteCallError(f"Gemini API call failed: {exc}") from exc
        finally:
            token.remove_listener(handle)
            if not request.done():
                request.cancel()
            cancelled.cancel()

        self._logger.info(
            "Gemini %s request succeeded in %.2fs",
            self.stage_name,
            time.monotonic() - start,
            extra={"event": "ai.response", "stage": self.stage_name},
        )
        return response

    def _decode_payload(self, response: Any) -> dict[str, Any]:
        text = _strip_code_fence(getattr(response, "text", None) or "") or "{}"
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ResponseParseError(
                f"Failed to decode Gemini {self.stage_name} response: {exc}\nRaw: {text[:200]!r}"
            ) from exc
        if not isinstance(payload, dict):
            raise ResponseParseError(
                f"Gemini {self.stage_name} response is not a JSON object: {text[:200]!r}"
            )
        return payload


def text_field(payload: dict[str, Any], key: str) -> str:
    """Return ``payload[key]`` as text, or an empty string when missing or null."""
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ResponseParseError(f"Field '{key}' must be a string, got {type(value).__name__}")
    return value


__all__ = ["BaseGateway", "text_field"]
