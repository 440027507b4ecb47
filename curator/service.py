import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from curator.audit import AuditLog
from curator.config import AppConfig, ConfigManager
from curator.db import Database
from curator.errors import CuratorError
from curator.interfaces import Collector, Publisher, ReportGenerator, ScoringOracle
from curator.models import Article, ArticleStatus, LogEntry, Report
from curator.pipeline import PipelineEngine
from curator.reports import ReportManager
from curator.repository import ArticleRepository

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    ok: bool
    message: str
    count: int = 0
    payload: Any = None


class CuratorService:
    """
    Actions and read accessors used by the console and the scheduler.
    Failures come back as ActionResult(ok=False) instead of exceptions.
    """

    def __init__(self, store: Database, collector: Collector, oracle: ScoringOracle,
                 generator: ReportGenerator, publisher: Publisher):
        self.store = store
        self.audit = AuditLog(store)
        self.config_manager = ConfigManager(store, self.audit)
        self.repository = ArticleRepository(store)
        self.pipeline = PipelineEngine(self.repository, self.config_manager, self.audit, collector, oracle)
        self.reports = ReportManager(store, self.repository, self.config_manager, self.audit, generator, publisher)

    async def collect(self) -> ActionResult:
        try:
            articles = await self.pipeline.collect()
        except CuratorError as e:
            return ActionResult(ok=False, message=str(e))
        return ActionResult(ok=True, message=f"Collected {len(articles)} article(s)",
                            count=len(articles), payload=articles)

    async def process(self) -> ActionResult:
        try:
            outcome = await self.pipeline.process()
        except CuratorError as e:
            return ActionResult(ok=False, message=str(e))
        if outcome.scored == 0 and not outcome.filtered.selected and not outcome.filtered.archived:
            return ActionResult(ok=True, message="Nothing to process", payload=outcome)
        return ActionResult(ok=True, message=f"{outcome.selected_count} article(s) selected",
                            count=outcome.selected_count, payload=outcome)

    async def generate_report(self) -> ActionResult:
        try:
            report = await self.reports.generate()
        except CuratorError as e:
            return ActionResult(ok=False, message=str(e))
        return ActionResult(ok=True, message=f"Generated {report.title}",
                            count=len(report.included_article_ids), payload=report)

    async def publish_report(self, report_id: str, markdown: str) -> ActionResult:
        try:
            report = await self.reports.publish(report_id, markdown)
        except CuratorError as e:
            return ActionResult(ok=False, message=str(e))
        return ActionResult(ok=True, message=f"Published {report.title}", count=1, payload=report)

    async def run_cycle(self) -> List[ActionResult]:
        """Scheduled run: collect, process, then draft a report for review."""
        results = [await self.collect(), await self.process()]
        if self.repository.list_by_status(ArticleStatus.SELECTED):
            results.append(await self.generate_report())
        return results

    def update_config(self, **changes) -> ActionResult:
        try:
            config = self.config_manager.update(**changes)
        except CuratorError as e:
            return ActionResult(ok=False, message=str(e))
        return ActionResult(ok=True, message="Configuration saved", payload=config)

    @property
    def config(self) -> AppConfig:
        return self.config_manager.get()

    def articles(self, status: Optional[ArticleStatus] = None, search: Optional[str] = None) -> List[Article]:
        if search:
            return self.repository.search(search, status)
        if status is not None:
            return self.repository.list_by_status(status)
        return self.repository.list_all()

    def report_list(self) -> List[Report]:
        return self.reports.list_reports()

    def logs(self) -> List[LogEntry]:
        return self.audit.list()
