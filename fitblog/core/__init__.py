"""Draft lifecycle, article collection and cancellation primitives."""

from .autosave import AutosaveTask
from .cancellation import CancellationToken, RequestCancelled
from .drafts import DraftManager, NoActiveDraftError
from .library import ArticleLibrary
from .models import LANGUAGES, LIBRARY_LANGUAGES, TOPICS, Article, Draft, Reference, RevisionEntry

__all__ = [
    "Article",
    "ArticleLibrary",
    "AutosaveTask",
    "CancellationToken",
    "Draft",
    "DraftManager",
    "LANGUAGES",
    "LIBRARY_LANGUAGES",
    "NoActiveDraftError",
    "Reference",
    "RequestCancelled",
    "RevisionEntry",
    "TOPICS",
]
