from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, List


class ArticleStatus(str, Enum):
    RAW = "RAW"
    SCORED = "SCORED"
    SELECTED = "SELECTED"
    ARCHIVED = "ARCHIVED"


class ReportStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING_REVIEW = "PENDING_REVIEW"
    PUBLISHED = "PUBLISHED"


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class RawItem:
    """What a Collector hands back before the item becomes an Article."""
    title: str
    url: str
    content: str
    source: str  # Site or feed name


@dataclass
class Assessment:
    score: int  # 1-5
    category: str
    reasoning: str


@dataclass
class Article:
    id: str
    title: str
    url: str
    source: str
    content: str
    collected_at: str  # ISO timestamp
    status: ArticleStatus = ArticleStatus.RAW
    score: Optional[int] = None
    category: Optional[str] = None
    reasoning: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Article":
        return cls(
            id=data["id"],
            title=data["title"],
            url=data["url"],
            source=data["source"],
            content=data.get("content", ""),
            collected_at=data["collected_at"],
            status=ArticleStatus(data.get("status", ArticleStatus.RAW.value)),
            score=data.get("score"),
            category=data.get("category"),
            reasoning=data.get("reasoning"),
        )


@dataclass
class Report:
    id: str
    generated_at: str
    title: str
    markdown: str
    status: ReportStatus
    included_article_ids: List[str]
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Report":
        return cls(
            id=data["id"],
            generated_at=data["generated_at"],
            title=data["title"],
            markdown=data.get("markdown", ""),
            status=ReportStatus(data["status"]),
            included_article_ids=list(data.get("included_article_ids", [])),
            tags=list(data.get("tags", [])),
        )


@dataclass
class LogEntry:
    id: str
    timestamp: str
    message: str
    severity: Severity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "message": self.message,
            "severity": self.severity.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LogEntry":
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            message=data["message"],
            severity=Severity(data["severity"]),
        )
