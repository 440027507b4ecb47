import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List

from curator.audit import AuditLog
from curator.config import ConfigManager, AppConfig
from curator.errors import CollaboratorError, PreconditionError, StoreError
from curator.interfaces import Collector, ScoringOracle
from curator.models import Article, ArticleStatus, Assessment
from curator.repository import ArticleRepository

logger = logging.getLogger(__name__)

FALLBACK_SCORE = 3
FALLBACK_CATEGORY = "Uncategorized"


@dataclass
class FilterOutcome:
    selected: List[str] = field(default_factory=list)
    archived: List[str] = field(default_factory=list)


@dataclass
class BalanceOutcome:
    promoted: List[str] = field(default_factory=list)
    # category -> promotions still missing after the top-up
    shortfalls: Dict[str, int] = field(default_factory=dict)


@dataclass
class ProcessOutcome:
    scored: int = 0
    filtered: FilterOutcome = field(default_factory=FilterOutcome)
    balanced: BalanceOutcome = field(default_factory=BalanceOutcome)

    @property
    def selected_count(self) -> int:
        return len(self.filtered.selected) + len(self.balanced.promoted)


def compute_deficits(config: AppConfig, selected: List[Article]) -> Dict[str, int]:
    """Per configured category, how many SELECTED articles short of its quota it is."""
    counts = {}
    for article in selected:
        counts[article.category] = counts.get(article.category, 0) + 1
    return {
        category: max(0, config.quota_for(category) - counts.get(category, 0))
        for category in config.categories
    }


def rescue_candidates(archived: List[Article], category: str) -> List[Article]:
    """
    ARCHIVED articles of one category in promotion order: score descending,
    ties keep repository order (newest first). sorted() is stable.
    """
    pool = [a for a in archived if a.category == category]
    return sorted(pool, key=lambda a: a.score, reverse=True)


class PipelineEngine:
    """
    Drives articles through RAW -> SCORED -> SELECTED / ARCHIVED.
    Stages hold one lock so a single run is in flight at a time.
    """

    def __init__(self, repository: ArticleRepository, config: ConfigManager, audit: AuditLog,
                 collector: Collector, oracle: ScoringOracle):
        self.repository = repository
        self.config = config
        self.audit = audit
        self.collector = collector
        self.oracle = oracle
        self._lock = asyncio.Lock()

    async def collect(self) -> List[Article]:
        async with self._lock:
            config = self.config.get()
            self.audit.info(f"Collection started for {len(config.target_urls)} target(s)")
            try:
                items = await self.collector.collect(config.target_urls, config.keywords)
            except CollaboratorError as e:
                self.audit.error(f"Collection failed: {e}")
                raise
            except Exception as e:
                self.audit.error(f"Collection failed: {e}")
                raise CollaboratorError(f"Collector failed: {e}") from e

            try:
                articles = self.repository.insert_batch(items)
            except StoreError as e:
                self.audit.error(f"Collection failed, articles not saved: {e}")
                raise
            self.audit.success(f"Collection finished, {len(articles)} new article(s)")
            return articles

    async def score(self) -> int:
        async with self._lock:
            try:
                count = await self._score()
            except StoreError as e:
                self.audit.error(f"Scoring stopped, article not saved: {e}")
                raise
            if count:
                self.audit.success(f"Scoring finished, {count} article(s) scored")
            return count

    async def _score(self) -> int:
        raw = self.repository.list_by_status(ArticleStatus.RAW)
        if not raw:
            self.audit.warning("No RAW articles waiting to be scored")
            return 0

        config = self.config.get()
        self.audit.info(f"Scoring {len(raw)} article(s)")
        for article in raw:
            assessment = await self._assess(article, config.categories)
            # One save per article: a cancellation between articles keeps the ones already scored
            self.repository.update_score(article.id, assessment.score, assessment.category, assessment.reasoning)
            logger.info(f"Scored '{article.title[:50]}' = {assessment.score} ({assessment.category})")
        return len(raw)

    async def _assess(self, article: Article, categories: List[str]) -> Assessment:
        try:
            assessment = await self.oracle.score(article, categories)
            if isinstance(assessment.score, bool) or not isinstance(assessment.score, int) \
                    or not 1 <= assessment.score <= 5:
                raise CollaboratorError(f"score {assessment.score!r} outside 1-5")
            if not assessment.category:
                raise CollaboratorError("empty category")
            return assessment
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.audit.warning(f"Scoring failed for '{article.title}', using fallback score: {e}")
            return Assessment(
                score=FALLBACK_SCORE,
                category=FALLBACK_CATEGORY,
                reasoning=f"AI analysis failed: {e}",
            )

    async def filter(self) -> FilterOutcome:
        async with self._lock:
            try:
                outcome = self._filter(self.config.get())
            except StoreError as e:
                self.audit.error(f"Filter failed, statuses not saved: {e}")
                raise
            self.audit.success(
                f"Filter finished: {len(outcome.selected)} selected, {len(outcome.archived)} archived"
            )
            return outcome

    def _filter(self, config: AppConfig) -> FilterOutcome:
        outcome = FilterOutcome()
        changes = {}
        for article in self.repository.list_by_status(ArticleStatus.SCORED):
            if article.score >= config.score_threshold:
                changes[article.id] = ArticleStatus.SELECTED
                outcome.selected.append(article.id)
            else:
                changes[article.id] = ArticleStatus.ARCHIVED
                outcome.archived.append(article.id)
        self.repository.update_statuses(changes)
        logger.info(
            f"Threshold {config.score_threshold}: {len(outcome.selected)} selected, "
            f"{len(outcome.archived)} archived"
        )
        return outcome

    async def balance(self) -> BalanceOutcome:
        async with self._lock:
            try:
                outcome = self._balance(self.config.get())
            except StoreError as e:
                self.audit.error(f"Quota balancing stopped, promotion not saved: {e}")
                raise
            self.audit.success(f"Quota balancing finished, {len(outcome.promoted)} article(s) promoted")
            return outcome

    def _balance(self, config: AppConfig) -> BalanceOutcome:
        pending = self.repository.list_by_status(ArticleStatus.SCORED)
        if pending:
            message = f"Quota balancing refused: {len(pending)} article(s) still SCORED, run the filter first"
            self.audit.error(message)
            raise PreconditionError(message)

        outcome = BalanceOutcome()
        articles = self.repository.list_all()
        selected = [a for a in articles if a.status == ArticleStatus.SELECTED]
        archived = [a for a in articles if a.status == ArticleStatus.ARCHIVED]

        for category, deficit in compute_deficits(config, selected).items():
            if deficit == 0:
                continue
            chosen = rescue_candidates(archived, category)[:deficit]
            for article in chosen:
                self.repository.update_status(article.id, ArticleStatus.SELECTED)
                outcome.promoted.append(article.id)
                self.audit.success(f"Quota top-up: selected '{article.title}' for {category}")
            if len(chosen) < deficit:
                outcome.shortfalls[category] = deficit - len(chosen)
                self.audit.warning(
                    f"Quota for {category} not met: {deficit - len(chosen)} more article(s) needed, "
                    f"no archived candidates left"
                )
        return outcome

    async def process(self) -> ProcessOutcome:
        """Score, filter and balance as one run."""
        async with self._lock:
            outcome = ProcessOutcome()
            try:
                outcome.scored = await self._score()
                if not self.repository.list_by_status(ArticleStatus.SCORED):
                    return outcome

                config = self.config.get()
                self.audit.info(f"Applying score threshold (>= {config.score_threshold})")
                outcome.filtered = self._filter(config)
                outcome.balanced = self._balance(config)
            except StoreError as e:
                self.audit.error(f"Processing stopped, article changes not saved: {e}")
                raise
            self.audit.success(
                f"Processing finished: {len(outcome.filtered.selected)} passed the threshold, "
                f"{len(outcome.balanced.promoted)} promoted for quotas"
            )
            return outcome
