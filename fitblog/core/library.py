"""The archived and reference article collection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Iterator

from ..utils.logging import get_logger
from .models import LIBRARY_LANGUAGES, TOPICS, Article, new_id, now_ms

if TYPE_CHECKING:
    from ..storage.local_store import LocalStore

LOGGER = get_logger(__name__)


class ArticleLibrary:
    """Newest-first list of articles, persisted in full after each change."""

    def __init__(self, articles: Iterable[Article] = (), *, store: "LocalStore | None" = None) -> None:
        self._articles: list[Article] = []
        self._store = store
        seen: set[str] = set()
        for article in articles:
            if article.id in seen:
                LOGGER.warning("Dropping duplicate article id %s", article.id)
                continue
            seen.add(article.id)
            self._articles.append(article)

    @classmethod
    def load(cls, store: "LocalStore") -> "ArticleLibrary":
        return cls(store.load_articles(), store=store)

    def __iter__(self) -> Iterator[Article]:
        return iter(self._articles)

    def __len__(self) -> int:
        return len(self._articles)

    def __contains__(self, article_id: object) -> bool:
        return any(article.id == article_id for article in self._articles)

    def get(self, article_id: str) -> Article | None:
        for article in self._articles:
            if article.id == article_id:
                return article
        return None

    def add(self, article: Article) -> Article:
        """Prepend ``article`` and persist the collection.

        Ids are unique within the collection. Adding an id that is already
        stored is a caller error and raises :class:`ValueError` without
        touching the stored collection.
        """
        if article.id in self:
            raise ValueError(f"Article id already exists: {article.id}")
        self._articles.insert(0, article)
        self._persist()
        LOGGER.info(
            "Article added",
            extra={
                "event": "library.add",
                "article_id": article.id,
                "topic": article.topic,
                "reference": article.is_reference,
            },
        )
        return article

    def add_reference(self, *, title: str, content: str, topic: str, language: str) -> Article:
        """Store a manually written article the generator should steer away from."""
        if not title.strip() or not content.strip():
            raise ValueError("Reference articles need both a title and content")
        if topic not in TOPICS:
            raise ValueError(f"Unknown topic {topic!r}; expected one of {', '.join(TOPICS)}")
        if language not in LIBRARY_LANGUAGES:
            raise ValueError(
                f"Unknown language {language!r}; expected one of {', '.join(LIBRARY_LANGUAGES)}"
            )
        article = Article(
            id=new_id(),
            title=title,
            content=content,
            topic=topic,
            language=language,
            created_at=now_ms(),
            is_reference=True,
        )
        return self.add(article)

    def remove(self, article_id: str) -> bool:
        remaining = [article for article in self._articles if article.id != article_id]
        if len(remaining) == len(self._articles):
            LOGGER.debug("Remove ignored, no article with id %s", article_id)
            return False
        self._articles = remaining
        self._persist()
        LOGGER.info("Article removed", extra={"event": "library.remove", "article_id": article_id})
        return True

    def filter_by_topic(self, topic: str) -> list[Article]:
        return [article for article in self._articles if article.topic == topic]

    def search(self, term: str) -> list[Article]:
        needle = term.lower()
        return [
            article
            for article in self._articles
            if needle in article.title.lower() or needle in article.topic.lower()
        ]

    def _persist(self) -> None:
        if self._store is not None:
            self._store.save_articles(self._articles)


__all__ = ["ArticleLibrary"]
