from typing import List
from urllib.parse import urlparse
import logging

import feedparser

from curator.collector_base import BaseCollector
from curator.errors import CollaboratorError
from curator.models import RawItem

logger = logging.getLogger(__name__)


class FeedCollector(BaseCollector):
    """
    Collects from RSS/Atom feeds. A target URL that is not a feed is treated as
    a single article page and extracted with readability.
    """

    def __init__(self, http_client, enrich_entries: bool = False, max_per_target: int = 30):
        super().__init__(http_client)
        self.enrich_entries = enrich_entries
        self.max_per_target = max_per_target

    async def collect(self, target_urls: List[str], keywords: List[str]) -> List[RawItem]:
        items = []
        failures = []
        for url in target_urls:
            try:
                found = await self._collect_target(url, keywords)
                logger.info(f"Found {len(found)} items from {url}")
                items.extend(found)
            except Exception as e:
                logger.error(f"Collecting from {url} failed: {e}")
                failures.append(url)

        if target_urls and len(failures) == len(target_urls):
            raise CollaboratorError(f"All {len(target_urls)} target(s) failed: {', '.join(failures)}")
        return items

    async def _collect_target(self, url: str, keywords: List[str]) -> List[RawItem]:
        content = await self.http_client.fetch(url)
        if not content:
            return []

        feed = feedparser.parse(content)
        if not feed.entries:
            return self._page_item(url, content, keywords)

        source = feed.feed.get('title') or urlparse(url).netloc
        items = []
        for entry in feed.entries[:self.max_per_target]:
            title = entry.get('title', '').strip()
            link = entry.get('link', '')
            if not title or not link:
                continue

            summary = self.strip_html(entry.get('summary', ''))
            if not self.matches_keywords(f"{title} {summary}", keywords):
                logger.debug(f"No keyword match, skipped: {title}")
                continue

            body = summary
            if self.enrich_entries:
                body = await self.enrich(link) or summary

            items.append(RawItem(title=title, url=link, content=body, source=source))
        return items

    def _page_item(self, url: str, html: str, keywords: List[str]) -> List[RawItem]:
        title, text = self.extract_page(html)
        if not text:
            logger.warning(f"No readable content at {url}")
            return []
        title = title or url
        if not self.matches_keywords(f"{title} {text}", keywords):
            return []
        return [RawItem(title=title, url=url, content=text, source=urlparse(url).netloc)]
