"""Application layer: authoring session and command-line entry point."""

from .cli import main
from .session import AIRequestInProgressError, AuthoringSession

__all__ = ["AIRequestInProgressError", "AuthoringSession", "main"]
