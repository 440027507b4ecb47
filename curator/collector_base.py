import logging
import re
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup
from readability import Document

from curator.http_client import HTTPClient
from curator.interfaces import Collector

logger = logging.getLogger(__name__)


class BaseCollector(Collector):
    def __init__(self, http_client: HTTPClient):
        self.http_client = http_client
        self.name = self.__class__.__name__

    def extract_page(self, html: str) -> Tuple[Optional[str], str]:
        """
        Pull the readable title and body text out of an HTML page.
        Paragraph structure is kept as blank-line separated text.
        """
        doc = Document(html)
        title = doc.short_title() or None
        soup = BeautifulSoup(doc.summary(), 'lxml')

        # Try to find main content area (works for most sites)
        article_body = (soup.find('article') or
                        soup.find('div', class_=lambda x: x and 'article' in x.lower()) or
                        soup)

        paragraphs = []
        for p in article_body.find_all(['p', 'h2', 'h3']):
            # Inline external links as "text (url)"
            for link in p.find_all('a'):
                link_text = link.get_text()
                link_url = link.get('href', '')
                if link_url and link_url.startswith('http') and link_text.strip() and len(link_url) < 100:
                    link.replace_with(f"{link_text} ({link_url})")
                else:
                    link.replace_with(link_text)

            para_text = re.sub(r'\s+', ' ', p.get_text(separator=" ", strip=True))
            if para_text.strip():
                paragraphs.append(para_text.strip())

        return title, '\n\n'.join(paragraphs)

    async def enrich(self, url: str) -> Optional[str]:
        """Fetch url and return its readable text, or None when that fails."""
        try:
            logger.info(f"Enriching article: {url}")
            html = await self.http_client.fetch(url)
            if not html:
                return None
            _, text = self.extract_page(html)
            return text or None
        except Exception as e:
            logger.warning(f"Failed to enrich article {url}: {e}")
            return None

    @staticmethod
    def matches_keywords(text: str, keywords: List[str]) -> bool:
        """True when any keyword occurs in text as a whole word. No keywords keeps everything."""
        if not keywords:
            return True
        for keyword in keywords:
            if re.search(rf'\b{re.escape(keyword)}\b', text, re.IGNORECASE):
                return True
        return False

    @staticmethod
    def strip_html(fragment: str) -> str:
        if not fragment:
            return ""
        return re.sub(r'\s+', ' ', BeautifulSoup(fragment, 'lxml').get_text(separator=" ")).strip()
