"""Settings package exports."""

from .loader import (
    AISettings,
    AppConfig,
    AppSettings,
    PathSettings,
    StageSettings,
    load_config,
    project_path,
)

__all__ = [
    "AISettings",
    "AppConfig",
    "AppSettings",
    "PathSettings",
    "StageSettings",
    "load_config",
    "project_path",
]
