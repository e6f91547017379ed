"""AI gateways for article generation and revision."""

from .base_node import BaseGateway
from .errors import AIServiceError, RemoteCallError, RequestCancelled, ResponseParseError
from .generator import ArticleGenerator, GenerationResult
from .reviser import ArticleReviser, RevisionResult

__all__ = [
    "AIServiceError",
    "ArticleGenerator",
    "ArticleReviser",
    "BaseGateway",
    "GenerationResult",
    "RemoteCallError",
    "RequestCancelled",
    "ResponseParseError",
    "RevisionResult",
]
