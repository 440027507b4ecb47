import asyncio
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from curator.audit import AuditLog
from curator.config import ConfigManager
from curator.db import Database, REPORTS_KEY
from curator.errors import CollaboratorError, PreconditionError, StoreError
from curator.interfaces import Publisher, ReportGenerator
from curator.models import Article, ArticleStatus, Report, ReportStatus
from curator.repository import ArticleRepository

logger = logging.getLogger(__name__)

_ISSUE_NUMBER = re.compile(r"#(\d+)\s*$")


def _seed_reports() -> List[Report]:
    return [
        Report(
            id="seed-2",
            generated_at="2024-11-29T09:00:00+00:00",
            title="AI Weekly #2",
            markdown="# AI Weekly #2\n\nWelcome back. This issue collects the week's model releases and policy news.",
            status=ReportStatus.PUBLISHED,
            included_article_ids=["seed-article-3", "seed-article-4"],
            tags=["AI Technology", "Policy & Regulation"],
        ),
        Report(
            id="seed-1",
            generated_at="2024-11-22T09:00:00+00:00",
            title="AI Weekly #1",
            markdown="# AI Weekly #1\n\nThe first issue of the digest, focused on market trends.",
            status=ReportStatus.PUBLISHED,
            included_article_ids=["seed-article-1", "seed-article-2"],
            tags=["Market Trends"],
        ),
    ]


def next_issue_number(reports: List[Report]) -> int:
    numbers = [int(m.group(1)) for m in (_ISSUE_NUMBER.search(r.title) for r in reports) if m]
    return max(numbers, default=0) + 1


def report_tags(articles: List[Article], categories: List[str]) -> List[str]:
    """Categories present in the report, in configured order, then any others."""
    present = []
    for article in articles:
        if article.category and article.category not in present:
            present.append(article.category)
    ordered = [c for c in categories if c in present]
    return ordered + [c for c in present if c not in ordered]


class ReportManager:
    """
    Builds digests from SELECTED articles and moves them through
    PENDING_REVIEW -> PUBLISHED.
    """

    def __init__(self, store: Database, repository: ArticleRepository, config: ConfigManager,
                 audit: AuditLog, generator: ReportGenerator, publisher: Publisher):
        self.store = store
        self.repository = repository
        self.config = config
        self.audit = audit
        self.generator = generator
        self.publisher = publisher
        self._lock = asyncio.Lock()

    def _load(self) -> List[Report]:
        return [Report.from_dict(r) for r in self.store.load(REPORTS_KEY, [])]

    def _save(self, reports: List[Report]):
        self.store.save(REPORTS_KEY, [r.to_dict() for r in reports])

    def list_reports(self) -> List[Report]:
        """All reports, newest first. The very first read of an empty store seeds two examples."""
        saved = self.store.load(REPORTS_KEY)
        if saved is None:
            seed = _seed_reports()
            self._save(seed)
            logger.info(f"Seeded {len(seed)} example reports")
            return seed
        return [Report.from_dict(r) for r in saved]

    def get(self, report_id: str) -> Optional[Report]:
        for report in self.list_reports():
            if report.id == report_id:
                return report
        return None

    def pending_review(self) -> Optional[Report]:
        """Newest report waiting for review, if any."""
        for report in self.list_reports():
            if report.status == ReportStatus.PENDING_REVIEW:
                return report
        return None

    async def generate(self) -> Report:
        async with self._lock:
            selected = self.repository.list_by_status(ArticleStatus.SELECTED)
            if not selected:
                message = "Cannot generate report: no SELECTED articles"
                self.audit.error(message)
                raise PreconditionError(message)

            config = self.config.get()
            logger.info(f"Generating report from {len(selected)} selected article(s)")
            try:
                markdown = await self.generator.generate(selected, config.prompt_template)
            except Exception as e:
                self.audit.error(f"Report generation failed: {e}")
                if isinstance(e, CollaboratorError):
                    raise
                raise CollaboratorError(f"Report generator failed: {e}") from e

            # Read the raw collection, not list_reports(): generating before the first listing skips the seed reports
            reports = self._load()
            report = Report(
                id=str(uuid.uuid4()),
                generated_at=datetime.now(timezone.utc).isoformat(),
                title=f"{config.report_title} #{next_issue_number(reports)}",
                markdown=markdown,
                status=ReportStatus.PENDING_REVIEW,
                included_article_ids=[a.id for a in selected],
                tags=report_tags(selected, config.categories),
            )
            try:
                self._save([report] + reports)
            except StoreError as e:
                self.audit.error(f"Report generation failed, report not saved: {e}")
                raise
            self.audit.success(f"Report '{report.title}' generated with {len(selected)} article(s), awaiting review")
            return report

    async def publish(self, report_id: str, final_markdown: str) -> Report:
        async with self._lock:
            reports = self._load()
            report = next((r for r in reports if r.id == report_id), None)
            if report is None:
                message = f"Cannot publish: no report with id {report_id}"
                self.audit.error(message)
                raise PreconditionError(message)
            if not report.included_article_ids:
                message = f"Cannot publish '{report.title}': it includes no articles"
                self.audit.error(message)
                raise PreconditionError(message)

            logger.info(f"Publishing report {report.title}")
            try:
                sent = await self.publisher.publish(final_markdown)
            except Exception as e:
                self.audit.error(f"Publishing '{report.title}' failed: {e}")
                if isinstance(e, CollaboratorError):
                    raise
                raise CollaboratorError(f"Publisher failed: {e}") from e
            if not sent:
                message = f"Publishing '{report.title}' failed: publisher rejected the report"
                self.audit.error(message)
                raise CollaboratorError(message)

            # Reload so a report list changed while the publisher was busy is not overwritten
            reports = self._load()
            for r in reports:
                if r.id == report_id:
                    r.markdown = final_markdown
                    r.status = ReportStatus.PUBLISHED
                    report = r
            try:
                self._save(reports)
            except StoreError as e:
                self.audit.error(f"'{report.title}' was sent but its PUBLISHED status was not saved: {e}")
                raise
            self.audit.success(f"Report '{report.title}' published")
            return report
