import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from patchright.async_api import TimeoutError as PlaywrightTimeoutError

from screenshot_maker.config import settings
from screenshot_maker.models.requests import ScreenshotOptions
from screenshot_maker.services.browser_session import BrowserSession, browser_session
from screenshot_maker.services.image_service import process_image_async

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WaitPolicy:
    """How long to wait for a page before capturing it.

    ``settle_delay_ms`` is a fixed pause after the load event for content
    that keeps rendering asynchronously. It is a heuristic, not a guarantee.
    """

    wait_until: str = "load"
    navigation_timeout_ms: int = 10000
    settle_delay_ms: int = 0

    @classmethod
    def from_settings(cls) -> "WaitPolicy":
        return cls(
            wait_until=settings.wait_until,
            navigation_timeout_ms=settings.navigation_timeout,
            settle_delay_ms=settings.post_load_delay,
        )


class RenderFailure(str, Enum):
    BROWSER = "browser"
    TIMEOUT = "timeout"
    PAGE = "page"
    ENCODE = "encode"


@dataclass(frozen=True)
class RenderResult:
    image: Optional[bytes] = None
    failure: Optional[RenderFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, image: bytes) -> "RenderResult":
        return cls(image=image)

    @classmethod
    def failed(cls, reason: RenderFailure) -> "RenderResult":
        return cls(failure=reason)


async def render_screenshot(
    options: ScreenshotOptions,
    policy: Optional[WaitPolicy] = None,
    session: Optional[BrowserSession] = None,
) -> RenderResult:
    policy = policy or WaitPolicy.from_settings()
    session = session or browser_session
    start = time.time()

    try:
        page = await session.new_page(options.width, options.height)
    except Exception:
        logger.exception("Could not open a browser page for %s", options.url)
        return RenderResult.failed(RenderFailure.BROWSER)

    try:
        logger.info(
            "Navigating to %s (wait_until=%s, timeout: %dms)...",
            options.url, policy.wait_until, policy.navigation_timeout_ms,
        )
        await page.goto(options.url, wait_until=policy.wait_until, timeout=policy.navigation_timeout_ms)

        if policy.settle_delay_ms > 0:
            logger.debug("Waiting %dms for dynamic content...", policy.settle_delay_ms)
            await asyncio.sleep(policy.settle_delay_ms / 1000)

        # always capture lossless; resizing and encoding happen afterwards
        capture = await page.screenshot(type="png", full_page=options.full_page)
    except PlaywrightTimeoutError:
        logger.error("Timed out rendering %s after %dms", options.url, policy.navigation_timeout_ms)
        return RenderResult.failed(RenderFailure.TIMEOUT)
    except Exception:
        logger.exception("Failed to render %s", options.url)
        return RenderResult.failed(RenderFailure.PAGE)
    finally:
        await session.release_page(page)

    try:
        image = await process_image_async(capture, options.type, options.quality, options.scale)
    except Exception:
        logger.exception("Failed to encode %s screenshot of %s", options.type, options.url)
        return RenderResult.failed(RenderFailure.ENCODE)

    elapsed = int((time.time() - start) * 1000)
    logger.info("Rendered %s as %s (%d bytes, %dms)", options.url, options.type, len(image), elapsed)
    return RenderResult.success(image)
