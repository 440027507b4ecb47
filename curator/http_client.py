import logging
import httpx
from typing import Optional
from fake_useragent import UserAgent
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

logger = logging.getLogger(__name__)

class HTTPClient:
    def __init__(self, timeout: float = 15.0):
        self.ua = UserAgent()
        self.timeout = timeout
        self.client = httpx.AsyncClient(follow_redirects=True)

    def _get_headers(self):
        return {
            "User-Agent": self.ua.random,
            "Accept": "application/rss+xml,application/atom+xml,text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "DNT": "1",
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.RequestError, httpx.TimeoutException)),
        reraise=True,
    )
    async def fetch(self, url: str) -> Optional[str]:
        """
        Fetch a URL with retries on network errors.
        Returns the body as text; HTTP error statuses raise httpx.HTTPStatusError.
        """
        response = await self.client.get(url, headers=self._get_headers(), timeout=self.timeout)
        response.raise_for_status()
        logger.info(f"Successfully fetched {url}")
        return response.text

    async def close(self):
        await self.client.aclose()
