"""
Browsing-session interface and its Playwright implementation.

Everything the scraper does against the remote site goes through a
``BrowsingSession``. A session has a single navigation cursor, so calls
against one session must be issued one at a time. Work that runs in
parallel checks out its own isolated context from a ``ContextPool``.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Protocol

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, TimeoutError as PlaywrightTimeout

from .errors import ExtractionError, NavigationError, ScraperError
from .utils import get_logger


class BrowsingSession(Protocol):
    """The calls the scraper issues against a remote document view."""

    async def navigate(self, url: str, timeout_ms: int) -> None: ...

    async def wait_for_ready(self, marker: str, timeout_ms: int) -> bool: ...

    async def query_all(self, selector: str, root: Any = None) -> List[Any]: ...

    async def query_one(self, selector: str, root: Any = None) -> Optional[Any]: ...

    async def extract_text(self, handle: Any) -> Optional[str]: ...

    async def extract_attribute(self, handle: Any, name: str) -> Optional[str]: ...

    async def open_isolated_context(self) -> "BrowsingSession": ...

    async def close_context(self, ctx: "BrowsingSession") -> None: ...


class PlaywrightSession:
    """
    ``BrowsingSession`` over a Playwright page.

    The browser itself is launched and closed by the caller; this class
    only drives the page it is given, plus any isolated contexts it opens.
    """

    def __init__(self, page: Page, logger: Optional[logging.Logger] = None):
        self.page = page
        self.logger = get_logger(logger)

    @property
    def url(self) -> str:
        return self.page.url

    async def navigate(self, url: str, timeout_ms: int) -> None:
        try:
            response = await self.page.goto(url, timeout=timeout_ms, wait_until="domcontentloaded")
        except PlaywrightTimeout as e:
            raise NavigationError(url, f"timed out after {timeout_ms} ms") from e
        except PlaywrightError as e:
            raise NavigationError(url, str(e)) from e
        if response is not None and response.status >= 400:
            raise NavigationError(url, f"HTTP {response.status}")

    async def wait_for_ready(self, marker: str, timeout_ms: int) -> bool:
        try:
            await self.page.wait_for_selector(marker, timeout=timeout_ms, state="attached")
            return True
        except PlaywrightTimeout:
            return False
        except PlaywrightError as e:
            # Page crashed or navigated away mid-wait
            self.logger.debug(f"Waiting for {marker} failed: {e}")
            return False

    async def query_all(self, selector: str, root: Any = None) -> List[Any]:
        scope = root if root is not None else self.page
        try:
            return await scope.query_selector_all(selector)
        except PlaywrightError as e:
            raise ExtractionError(f"query {selector!r} failed: {e}") from e

    async def query_one(self, selector: str, root: Any = None) -> Optional[Any]:
        scope = root if root is not None else self.page
        try:
            return await scope.query_selector(selector)
        except PlaywrightError as e:
            raise ExtractionError(f"query {selector!r} failed: {e}") from e

    async def extract_text(self, handle: Any) -> Optional[str]:
        try:
            return await handle.text_content()
        except PlaywrightError as e:
            raise ExtractionError(f"reading text failed: {e}") from e

    async def extract_attribute(self, handle: Any, name: str) -> Optional[str]:
        try:
            return await handle.get_attribute(name)
        except PlaywrightError as e:
            raise ExtractionError(f"reading attribute {name!r} failed: {e}") from e

    async def open_isolated_context(self) -> "PlaywrightSession":
        browser = self.page.context.browser
        if browser is None:
            raise ScraperError("isolated contexts need a launched browser, not a persistent context")
        context = await browser.new_context(locale="sr-RS")
        page = await context.new_page()
        return PlaywrightSession(page, logger=self.logger)

    async def close_context(self, ctx: "PlaywrightSession") -> None:
        try:
            await ctx.page.context.close()
        except PlaywrightError as e:
            self.logger.debug(f"Closing browser context failed: {e}")


class ContextPool:
    """
    Bounded checkout of isolated browsing contexts.

    At most ``size`` contexts are open at once; each is closed when the
    ``async with`` block exits, whether it finished or raised.
    """

    def __init__(self, session: BrowsingSession, size: int, logger: Optional[logging.Logger] = None):
        if size < 1:
            raise ValueError("pool size must be at least 1")
        self.session = session
        self.size = size
        self.logger = get_logger(logger)
        self._slots = asyncio.Semaphore(size)
        self.in_use = 0
        self.peak = 0

    @asynccontextmanager
    async def context(self) -> AsyncIterator[BrowsingSession]:
        async with self._slots:
            ctx = await self.session.open_isolated_context()
            self.in_use += 1
            self.peak = max(self.peak, self.in_use)
            try:
                yield ctx
            finally:
                self.in_use -= 1
                await self.session.close_context(ctx)
