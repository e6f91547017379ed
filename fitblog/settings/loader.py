"""Helpers for loading configuration and static settings."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_NAME = "config.toml"
CONFIG_ENV_VAR = "FITBLOG_CONFIG"
DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_AUTOSAVE_INTERVAL = 60.0

_STAGE_FALLBACK_PROMPTS = {
    "generate": PROJECT_ROOT / "prompts" / "generate.txt",
    "revise": PROJECT_ROOT / "prompts" / "revise.txt",
}

_STAGE_FALLBACK_SEARCH = {
    "generate": True,
    "revise": False,
}


@dataclass(slots=True)
class AppSettings:
    autosave_interval: float = DEFAULT_AUTOSAVE_INTERVAL


@dataclass(slots=True)
class PathSettings:
    data_dir: Path
    state_dir: Path
    export_dir: Path
    log_dir: Path


@dataclass(slots=True)
class StageSettings:
    """Configuration for a single AI call type (generation or revision)."""

    name: str
    model: str
    prompt_path: Path
    timeout: float | None = None
    thinking_budget: int | None = None
    use_search: bool = False


@dataclass(slots=True)
class AISettings:
    api_key: str | None
    stages: dict[str, StageSettings]

    def get(self, name: str) -> StageSettings:
        try:
            return self.stages[name]
        except KeyError as exc:
            available = ", ".join(sorted(self.stages)) or "<none>"
            raise KeyError(f"未配置名为 '{name}' 的 AI 阶段，可用阶段: {available}") from exc

    @property
    def generate(self) -> StageSettings:
        return self.get("generate")

    @property
    def revise(self) -> StageSettings:
        return self.get("revise")


@dataclass(slots=True)
class AppConfig:
    app: AppSettings
    paths: PathSettings
    ai: AISettings
    source_path: Path | None = None


def _to_path(value: str | None, *, fallback: Path) -> Path:
    if not value:
        return fallback
    candidate = Path(value).expanduser()
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _config_path(explicit: str | os.PathLike[str] | None = None) -> Path:
    candidate: Path
    if explicit:
        candidate = Path(explicit)
    else:
        env_value = os.environ.get(CONFIG_ENV_VAR)
        candidate = Path(env_value) if env_value else PROJECT_ROOT / DEFAULT_CONFIG_NAME
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _load_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("rb") as fp:
        return tomllib.load(fp)


def _ensure_directories(paths: Iterable[Path]) -> None:
    for directory in paths:
        directory.mkdir(parents=True, exist_ok=True)


def _optional_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str) and value.strip():
        return int(float(value))
    return None


def _build_stage(name: str, data: dict[str, Any], *, default_model: str) -> StageSettings:
    prompt_fallback = _STAGE_FALLBACK_PROMPTS.get(name, PROJECT_ROOT / "prompts" / f"{name}.txt")
    timeout = float(data["timeout"]) if data.get("timeout") is not None else None
    return StageSettings(
        name=name,
        model=str(data.get("model") or default_model),
        prompt_path=_to_path(data.get("prompt_path"), fallback=prompt_fallback),
        timeout=timeout,
        thinking_budget=_optional_int(data.get("thinking_budget")),
        use_search=bool(data.get("use_search", _STAGE_FALLBACK_SEARCH.get(name, False))),
    )


def load_config(config_path: str | os.PathLike[str] | None = None) -> AppConfig:
    path = _config_path(config_path)
    data = _load_toml(path)

    app_section = data.get("app", {})
    paths_section = data.get("paths", {})
    ai_section = data.get("ai", {})
    stages_section = ai_section.get("stages", {})

    data_dir = _to_path(paths_section.get("data_dir"), fallback=PROJECT_ROOT / "data")
    state_dir = _to_path(paths_section.get("state_dir"), fallback=data_dir / "state")
    export_dir = _to_path(paths_section.get("export_dir"), fallback=data_dir / "exports")
    log_dir = _to_path(paths_section.get("log_dir"), fallback=data_dir / "logs")
    _ensure_directories((data_dir, state_dir, export_dir, log_dir))

    interval = float(app_section.get("autosave_interval", DEFAULT_AUTOSAVE_INTERVAL))
    if interval <= 0:
        raise ValueError(f"autosave_interval must be positive, got {interval}")

    default_model = str(ai_section.get("model") or DEFAULT_MODEL)
    stages = {
        name: _build_stage(name, stages_section.get(name, {}), default_model=default_model)
        for name in _STAGE_FALLBACK_PROMPTS
    }
    for name, stage_data in stages_section.items():
        if name not in stages:
            stages[name] = _build_stage(name, stage_data, default_model=default_model)

    return AppConfig(
        app=AppSettings(autosave_interval=interval),
        paths=PathSettings(
            data_dir=data_dir,
            state_dir=state_dir,
            export_dir=export_dir,
            log_dir=log_dir,
        ),
        ai=AISettings(api_key=ai_section.get("api_key") or None, stages=stages),
        source_path=path,
    )


def project_path(*parts: Any) -> Path:
    return PROJECT_ROOT.joinpath(*parts)
