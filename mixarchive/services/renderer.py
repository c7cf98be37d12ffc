from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, List, Optional

from mixarchive.exceptions import PageLoadFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaywrightRenderOptions:
    timeout_ms: int = 10_000
    selector_timeout_ms: int = 5_000
    wait_until: str = "load"  # domcontentloaded | load | networkidle


class RenderedPage:
    """Handle on a rendered page.

    `text` and `texts` are single DOM reads; `evaluate` may be called
    repeatedly to poll for script-populated state.
    """

    def __init__(self, page, url: str, selector_timeout_ms: int):
        self._page = page
        self.url = url
        self._selector_timeout_ms = selector_timeout_ms

    async def wait_for(self, selector: str) -> bool:
        """Wait until `selector` is attached; False once the readiness timeout passes."""
        from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError  # type: ignore

        try:
            await self._page.wait_for_selector(selector, state="attached", timeout=self._selector_timeout_ms)
            return True
        except PlaywrightTimeoutError:
            logger.info("Selector %s not ready on %s", selector, self.url)
            return False
        except PlaywrightError as e:
            raise PageLoadFailure(self.url, e) from e

    async def text(self, selector: str) -> Optional[str]:
        """Raises `PageLoadFailure` if the page can no longer be read."""
        from playwright.async_api import Error as PlaywrightError  # type: ignore

        try:
            el = await self._page.query_selector(selector)
            if el is None:
                return None
            value = await el.text_content()
        except PlaywrightError as e:
            raise PageLoadFailure(self.url, e) from e
        return value.strip() if value is not None else None

    async def texts(self, selector: str) -> List[str]:
        from playwright.async_api import Error as PlaywrightError  # type: ignore

        out = []
        try:
            for el in await self._page.query_selector_all(selector):
                value = await el.text_content()
                if value is not None:
                    out.append(value.strip())
        except PlaywrightError as e:
            raise PageLoadFailure(self.url, e) from e
        return out

    async def evaluate(self, script: str) -> Any:
        from playwright.async_api import Error as PlaywrightError  # type: ignore

        try:
            return await self._page.evaluate(script)
        except PlaywrightError as e:
            raise PageLoadFailure(self.url, e) from e


class PlaywrightRenderer:
    """Headless Chromium renderer backed by Playwright's async API.

    One browser is launched lazily and reused; every `open` gets its own
    browser context so concurrent item workers do not share page state.
    Playwright is imported lazily so API-only installs still work.
    """

    def __init__(self, *, user_agent: str, options: Optional[PlaywrightRenderOptions] = None):
        self._user_agent = user_agent
        self._options = options or PlaywrightRenderOptions()
        self._playwright = None
        self._browser = None
        self._lock = asyncio.Lock()

    async def _ensure_browser(self):
        async with self._lock:
            if self._browser is not None:
                return self._browser
            try:
                from playwright.async_api import async_playwright  # type: ignore
            except ImportError as e:
                raise RuntimeError(
                    "Rendering requested but Playwright is not installed. "
                    "Install 'playwright' and run 'python -m playwright install chromium'."
                ) from e
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=True,
                args=["--disable-dev-shm-usage"],
            )
            logger.info("Launched headless chromium")
            return self._browser

    @asynccontextmanager
    async def open(self, url: str) -> AsyncIterator[RenderedPage]:
        browser = await self._ensure_browser()
        from playwright.async_api import Error as PlaywrightError  # type: ignore

        try:
            context = await browser.new_context(user_agent=self._user_agent)
        except PlaywrightError as e:
            raise PageLoadFailure(url, e) from e
        try:
            try:
                page = await context.new_page()
                await page.goto(url, wait_until=self._options.wait_until, timeout=self._options.timeout_ms)
            except PlaywrightError as e:
                raise PageLoadFailure(url, e) from e
            logger.info("Opened the page: %s", url)
            yield RenderedPage(page, url, self._options.selector_timeout_ms)
        finally:
            await context.close()

    async def close(self) -> None:
        async with self._lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
