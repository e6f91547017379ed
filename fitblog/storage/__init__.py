"""Local persistence for articles and drafts."""

from .local_store import ARTICLES_KEY, DRAFT_KEY, LocalStore, StorageError

__all__ = ["ARTICLES_KEY", "DRAFT_KEY", "LocalStore", "StorageError"]
