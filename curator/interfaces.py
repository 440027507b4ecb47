from abc import ABC, abstractmethod
from typing import List

from curator.models import Article, Assessment, RawItem


class Collector(ABC):
    @abstractmethod
    async def collect(self, target_urls: List[str], keywords: List[str]) -> List[RawItem]:
        """
        Gather candidate items for the configured targets.
        May return an empty list; raises CollaboratorError on failure.
        """
        pass


class ScoringOracle(ABC):
    @abstractmethod
    async def score(self, article: Article, categories: List[str]) -> Assessment:
        """Rate one article 1-5 and assign it a category. Raises CollaboratorError."""
        pass


class ReportGenerator(ABC):
    @abstractmethod
    async def generate(self, articles: List[Article], prompt_template: str) -> str:
        """Return the markdown body of a digest. Raises CollaboratorError."""
        pass


class Publisher(ABC):
    @abstractmethod
    async def publish(self, markdown: str) -> bool:
        """Send a finished digest. Returns False (or raises CollaboratorError) on failure."""
        pass
