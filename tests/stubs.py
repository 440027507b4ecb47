import asyncio

from curator.db import Database
from curator.errors import StoreError
from curator.interfaces import Collector, Publisher, ReportGenerator, ScoringOracle
from curator.models import Assessment, RawItem


def run(coro):
    return asyncio.run(coro)


def raw_item(title, source="Example News"):
    slug = title.lower().replace(" ", "-")
    return RawItem(title=title, url=f"https://example.com/{slug}", content=f"Body of {title}", source=source)


class StubCollector(Collector):
    def __init__(self, items=None, error=None):
        self.items = items or []
        self.error = error
        self.calls = []

    async def collect(self, target_urls, keywords):
        self.calls.append((list(target_urls), list(keywords)))
        if self.error:
            raise self.error
        return list(self.items)


class StubOracle(ScoringOracle):
    """Scores by title: {title: (score, category)} or {title: Exception}."""

    def __init__(self, verdicts=None):
        self.verdicts = verdicts or {}
        self.calls = []

    async def score(self, article, categories):
        self.calls.append(article.title)
        verdict = self.verdicts.get(article.title, (3, categories[0]))
        if isinstance(verdict, Exception):
            raise verdict
        score, category = verdict
        return Assessment(score=score, category=category, reasoning=f"stub reasoning for {article.title}")


class StubGenerator(ReportGenerator):
    def __init__(self, markdown="# Digest\n\nGenerated body", error=None):
        self.markdown = markdown
        self.error = error
        self.calls = []

    async def generate(self, articles, prompt_template):
        self.calls.append(([a.id for a in articles], prompt_template))
        if self.error:
            raise self.error
        return self.markdown


class StubPublisher(Publisher):
    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.sent = []

    async def publish(self, markdown):
        self.sent.append(markdown)
        if self.error:
            raise self.error
        return self.result


class FailingStore(Database):
    """In-memory store whose writes to the given keys fail."""

    def __init__(self, failing_keys=()):
        super().__init__(enabled=False)
        self.failing_keys = set(failing_keys)

    def save(self, key, value):
        if key in self.failing_keys:
            raise StoreError(f"disk full while saving '{key}'")
        super().save(key, value)
