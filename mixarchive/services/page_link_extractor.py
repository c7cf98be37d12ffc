import asyncio
import logging
from typing import Callable, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from mixarchive.exceptions import PageLoadFailure
from mixarchive.services.http_service import HttpService

logger = logging.getLogger(__name__)


class PageLinkExtractor:
    """Fetch one listing page and return the absolute item links on it.

    An empty list means the page exists but lists no items (end of pagination).
    A page that cannot be loaded raises `PageLoadFailure`; there is no retry.
    """

    def __init__(
        self,
        http_service: HttpService,
        soup_factory: Optional[Callable[[str], BeautifulSoup]] = None,
    ):
        self.http_service = http_service
        self._soup_factory = soup_factory or (lambda html: BeautifulSoup(html, "html.parser"))

    async def extract(self, page_url: str, selector: str) -> List[str]:
        response = await asyncio.to_thread(self.http_service.fetch, page_url)
        status = int(response.status_code)
        if status < 200 or status >= 300:
            raise PageLoadFailure(page_url, RuntimeError(f"HTTP {status}"))
        logger.info("Opened the page: %s", page_url)
        return self.parse_links(page_url, response.text, selector)

    def parse_links(self, base_url: str, html: Optional[str], selector: str) -> List[str]:
        if not html:
            return []
        soup = self._soup_factory(html)
        links = []
        for el in soup.select(selector):
            href = el.get("href")
            if not href:
                continue
            links.append(urljoin(base_url, href))
        # preserve page order, drop repeats within the page
        return list(dict.fromkeys(links))
