import logging
import os
from dataclasses import dataclass, field, asdict, fields
from typing import Dict, List, Optional

from curator.audit import AuditLog
from curator.db import Database, CONFIG_KEY
from curator.errors import ConfigurationError, StoreError

logger = logging.getLogger(__name__)

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
FREQUENCIES = ("daily", "weekly")

DEFAULT_CATEGORIES = ["AI Technology", "Industry Applications", "Policy & Regulation", "Market Trends"]

DEFAULT_PROMPT_TEMPLATE = """Write a professional weekly digest from the articles below.

For every article:
1. Summarize its core point in 2-3 sentences
2. List 3-5 key takeaways
3. Explain why it matters to the reader

Group articles by category, keep the tone professional, concise and objective,
and format the whole digest as Markdown."""


@dataclass
class AppConfig:
    # Collection inputs
    target_urls: List[str] = field(default_factory=lambda: [
        "https://news.ycombinator.com/rss",
        "https://dev.to/feed/tag/ai",
    ])
    keywords: List[str] = field(default_factory=lambda: [
        "AI", "LLM", "Generative AI", "Machine Learning",
    ])

    # Schedule
    schedule_frequency: str = "weekly"
    schedule_day: str = "Friday"
    schedule_hour: int = 9
    schedule_minute: int = 0

    # Scoring
    score_threshold: int = 4
    categories: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))

    # Quotas
    category_quotas: Dict[str, int] = field(default_factory=lambda: {
        "AI Technology": 2,
        "Industry Applications": 2,
        "Policy & Regulation": 1,
        "Market Trends": 2,
    })

    # Output
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE
    report_title: str = "AI Weekly"

    def validate(self):
        """Raise ConfigurationError describing the first invalid field."""
        for name in ("target_urls", "keywords", "categories"):
            value = getattr(self, name)
            if not isinstance(value, list) or any(not isinstance(v, str) for v in value):
                raise ConfigurationError(f"{name} must be a list of strings, got {value!r}")
        for name in ("prompt_template", "report_title", "schedule_frequency", "schedule_day"):
            if not isinstance(getattr(self, name), str):
                raise ConfigurationError(f"{name} must be a string, got {getattr(self, name)!r}")
        if not isinstance(self.category_quotas, dict):
            raise ConfigurationError(f"category_quotas must be a mapping, got {self.category_quotas!r}")

        if isinstance(self.score_threshold, bool) or not isinstance(self.score_threshold, int):
            raise ConfigurationError(f"score_threshold must be an integer, got {self.score_threshold!r}")
        if not 1 <= self.score_threshold <= 5:
            raise ConfigurationError(f"score_threshold must be between 1 and 5, got {self.score_threshold}")

        if not self.categories:
            raise ConfigurationError("At least one category is required")
        if any(not c.strip() for c in self.categories):
            raise ConfigurationError("Category names must be non-empty strings")
        if len(set(self.categories)) != len(self.categories):
            raise ConfigurationError("Category names must be unique")

        for category, quota in self.category_quotas.items():
            if category not in self.categories:
                raise ConfigurationError(f"Quota set for unknown category '{category}'")
            if isinstance(quota, bool) or not isinstance(quota, int) or quota < 0:
                raise ConfigurationError(f"Quota for '{category}' must be a non-negative integer, got {quota!r}")

        if self.schedule_frequency not in FREQUENCIES:
            raise ConfigurationError(f"schedule_frequency must be one of {FREQUENCIES}")
        if self.schedule_day not in WEEKDAYS:
            raise ConfigurationError(f"schedule_day must be a weekday name, got {self.schedule_day!r}")
        for name, upper in (("schedule_hour", 23), ("schedule_minute", 59)):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= upper:
                raise ConfigurationError(f"{name} must be 0-{upper}, got {value!r}")

        if not self.report_title.strip():
            raise ConfigurationError("report_title must not be empty")

    def quota_for(self, category: str) -> int:
        return self.category_quotas.get(category, 0)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "AppConfig":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


class ConfigManager:
    """Reads and validates the persisted AppConfig."""

    def __init__(self, store: Database, audit: AuditLog):
        self.store = store
        self.audit = audit

    def get(self) -> AppConfig:
        data = self.store.load(CONFIG_KEY)
        if data is None:
            return AppConfig()
        return AppConfig.from_dict(data)

    def save(self, config: AppConfig) -> AppConfig:
        try:
            config.validate()
        except ConfigurationError as e:
            self.audit.error(f"Configuration rejected: {e}")
            raise
        try:
            self.store.save(CONFIG_KEY, config.to_dict())
        except StoreError as e:
            self.audit.error(f"Configuration not saved: {e}")
            raise
        self.audit.success("Configuration saved")
        return config

    def update(self, **changes) -> AppConfig:
        """Merge changes into the current config and save the result."""
        current = self.get().to_dict()
        unknown = set(changes) - set(current)
        if unknown:
            message = f"Unknown configuration field(s): {', '.join(sorted(unknown))}"
            self.audit.error(f"Configuration rejected: {message}")
            raise ConfigurationError(message)
        current.update(changes)
        return self.save(AppConfig.from_dict(current))


def _env_flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    """Process settings read from the environment (.env is loaded by main.py)."""
    db_path: str = "curator.db"
    db_enabled: bool = True
    gemini_model: Optional[str] = None
    enrich_articles: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            db_path=os.getenv("CURATOR_DB_PATH", "curator.db"),
            db_enabled=_env_flag("ENABLE_DATABASE"),
            gemini_model=os.getenv("GEMINI_MODEL") or None,
            enrich_articles=_env_flag("ENRICH_ARTICLES", "false"),
        )
