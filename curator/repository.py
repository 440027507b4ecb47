import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from curator.db import Database, ARTICLES_KEY
from curator.errors import InvalidTransitionError, PreconditionError
from curator.models import Article, ArticleStatus, RawItem

logger = logging.getLogger(__name__)

# Edges reachable through update_status. RAW -> SCORED goes through update_score
# so the assessment and the status change land together.
ALLOWED_TRANSITIONS = {
    ArticleStatus.RAW: set(),
    ArticleStatus.SCORED: {ArticleStatus.SELECTED, ArticleStatus.ARCHIVED},
    ArticleStatus.SELECTED: set(),
    ArticleStatus.ARCHIVED: {ArticleStatus.SELECTED},
}


class ArticleRepository:
    """
    Article collection persisted as one record, newest first.
    Every read goes back to the store; nothing is cached here.
    """

    def __init__(self, store: Database):
        self.store = store

    def _load(self) -> List[Article]:
        return [Article.from_dict(a) for a in self.store.load(ARTICLES_KEY, [])]

    def _save(self, articles: List[Article]):
        self.store.save(ARTICLES_KEY, [a.to_dict() for a in articles])

    def insert_batch(self, items: Iterable[RawItem]) -> List[Article]:
        now = datetime.now(timezone.utc).isoformat()
        new_articles = [
            Article(
                id=str(uuid.uuid4()),
                title=item.title,
                url=item.url,
                source=item.source,
                content=item.content,
                collected_at=now,
                status=ArticleStatus.RAW,
            )
            for item in items
        ]
        if new_articles:
            self._save(new_articles + self._load())
        return new_articles

    def list_all(self) -> List[Article]:
        return self._load()

    def list_by_status(self, status: ArticleStatus) -> List[Article]:
        return [a for a in self._load() if a.status == status]

    def list_by_category(self, category: str) -> List[Article]:
        return [a for a in self._load() if a.category == category]

    def list_by_min_score(self, min_score: int) -> List[Article]:
        return [a for a in self._load() if a.score is not None and a.score >= min_score]

    def search(self, text: str, status: Optional[ArticleStatus] = None) -> List[Article]:
        """Case-insensitive match against title and source."""
        needle = text.lower()
        return [
            a for a in self._load()
            if (status is None or a.status == status)
            and (needle in a.title.lower() or needle in a.source.lower())
        ]

    def get(self, article_id: str) -> Optional[Article]:
        for article in self._load():
            if article.id == article_id:
                return article
        return None

    def _require(self, articles: List[Article], article_id: str) -> Article:
        for article in articles:
            if article.id == article_id:
                return article
        raise PreconditionError(f"No article with id {article_id}")

    def update_score(self, article_id: str, score: int, category: str, reasoning: str) -> Article:
        """Attach an assessment to a RAW article and move it to SCORED."""
        articles = self._load()
        article = self._require(articles, article_id)
        if article.status != ArticleStatus.RAW:
            raise InvalidTransitionError(
                f"Article {article_id} is {article.status.value}, only RAW articles can be scored"
            )
        article.score = score
        article.category = category
        article.reasoning = reasoning
        article.status = ArticleStatus.SCORED
        self._save(articles)
        return article

    def update_category(self, article_id: str, category: str) -> Article:
        articles = self._load()
        article = self._require(articles, article_id)
        if article.status == ArticleStatus.RAW:
            raise PreconditionError(f"Article {article_id} has not been scored yet")
        article.category = category
        self._save(articles)
        return article

    def update_status(self, article_id: str, status: ArticleStatus) -> Article:
        return self.update_statuses({article_id: status})[0]

    def update_statuses(self, changes: Dict[str, ArticleStatus]) -> List[Article]:
        """
        Apply several status transitions with a single save. Every transition is
        checked before anything is written.
        """
        articles = self._load()
        updated = []
        for article_id, status in changes.items():
            article = self._require(articles, article_id)
            if status not in ALLOWED_TRANSITIONS[article.status]:
                raise InvalidTransitionError(
                    f"Article {article_id} cannot move from {article.status.value} to {status.value}"
                )
            updated.append((article, status))

        for article, status in updated:
            article.status = status
        if updated:
            self._save(articles)
        return [article for article, _ in updated]
