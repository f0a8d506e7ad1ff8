import asyncio
import logging
from typing import Optional

from patchright.async_api import Browser, Page, Playwright, async_playwright

from screenshot_maker.config import settings

logger = logging.getLogger(__name__)

# Tuned for containers and serverless sandboxes
PRODUCTION_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
    "--no-first-run",
    "--no-zygote",
    "--hide-scrollbars",
    "--mute-audio",
]

DEVELOPMENT_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
]


class BrowserSession:
    """One lazily launched browser shared by every request in the process."""

    def __init__(self, max_concurrent: Optional[int] = None) -> None:
        if max_concurrent is None:
            max_concurrent = settings.screenshot_max_concurrent
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._lock = asyncio.Lock()
        self.launch_count = 0

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def acquire(self) -> Browser:
        if self.is_running:
            return self._browser

        async with self._lock:
            # another task may have launched while we waited
            if self.is_running:
                return self._browser
            if self._browser is not None:
                logger.warning("Browser disconnected, relaunching...")
                await self._close_browser()
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            self._browser = await self._launch_browser()
            self.launch_count += 1
            return self._browser

    async def _launch_browser(self) -> Browser:
        if settings.environment == "production":
            browser = await self._playwright.chromium.launch(
                headless=True,
                executable_path=settings.chromium_executable_path,
                args=PRODUCTION_BROWSER_ARGS,
            )
            logger.info(
                "Chromium launched (production, executable=%s)",
                settings.chromium_executable_path or "bundled",
            )
        else:
            browser = await self._playwright.chromium.launch(
                headless=True,
                channel="chrome",
                args=DEVELOPMENT_BROWSER_ARGS,
            )
            logger.info("Chrome launched (development)")
        return browser

    async def new_page(self, width: int, height: int) -> Page:
        """Open a page in its own context. Pair with ``release_page``."""
        await self._semaphore.acquire()
        try:
            browser = await self.acquire()
            return await browser.new_page(viewport={"width": width, "height": height})
        except Exception:
            self._semaphore.release()
            raise

    async def release_page(self, page: Page) -> None:
        try:
            await page.context.close()
        except Exception as e:
            logger.debug("Page already closed: %s", e)
        finally:
            self._semaphore.release()

    async def _close_browser(self) -> None:
        try:
            await self._browser.close()
        except Exception as e:
            logger.debug("Browser already closed: %s", e)
        self._browser = None

    async def stop(self) -> None:
        async with self._lock:
            if self._browser is not None:
                await self._close_browser()
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
        logger.info("Browser session stopped")


browser_session = BrowserSession()
