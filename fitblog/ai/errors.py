"""Failure outcomes for AI calls."""

from __future__ import annotations

from ..core.cancellation import RequestCancelled


class AIServiceError(RuntimeError):
    """Base class for AI calls that failed to produce a usable result."""


class RemoteCallError(AIServiceError):
    """The remote call itself failed (network, quota, service error)."""


class ResponseParseError(AIServiceError):
    """The remote service answered with a body that is not the expected JSON object."""


__all__ = ["AIServiceError", "RemoteCallError", "RequestCancelled", "ResponseParseError"]
