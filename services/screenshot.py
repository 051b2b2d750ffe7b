"""
Above-the-fold screenshot capture.

Pages come from the shared BrowserPool. The capture waits for the network to go
quiet and for common loading spinners to disappear before taking a
viewport-only JPEG, which is then letterboxed to the configured size.
"""

import asyncio
import logging
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browser_pool import BrowserPool, close_browser_pool, get_browser_pool
from config import settings
from errors import ScreenshotError
from utils.images.processor import normalize_screenshot, process_uploaded_image, to_base64

logger = logging.getLogger(__name__)

DEFAULT_MAX_TIMEOUT_MS = 15000
NAVIGATION_CAP_MS = 12000
MIN_RETRY_TIMEOUT_MS = 5000
IDLE_DEBOUNCE_MS = 700
IDLE_FLOOR_MS = 8000
NETWORKIDLE_FALLBACK_MS = 3000
SPINNER_TIMEOUT_MS = 1500
SETTLE_MS = 500

SPINNER_SELECTORS = [
    ".loading",
    ".spinner",
    ".loader",
    '[class*="loading"]',
    '[class*="spinner"]',
    '[data-loading="true"]',
]


class NetworkIdleTracker:
    """
    Counts in-flight requests on a page and resolves once none have been
    pending for idle_ms.

    Usage:
        idle = await NetworkIdleTracker(page).wait(timeout_ms=10000)
    """

    def __init__(self, page: Page, idle_ms: int = IDLE_DEBOUNCE_MS):
        self.page = page
        self.idle_ms = idle_ms
        self.inflight = 0
        self._idle: Optional[asyncio.Event] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    def _on_request(self, _request):
        self.inflight += 1
        self._cancel_timer()

    def _on_done(self, _request):
        self.inflight = max(0, self.inflight - 1)
        self._schedule()

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule(self):
        self._cancel_timer()
        if self.inflight == 0 and self._idle is not None:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self.idle_ms / 1000, self._idle.set)

    async def wait(self, timeout_ms: int) -> bool:
        """Return True when the network went idle, False when timeout_ms ran out."""
        self._idle = asyncio.Event()
        self.page.on("request", self._on_request)
        self.page.on("requestfinished", self._on_done)
        self.page.on("requestfailed", self._on_done)
        self._schedule()

        try:
            await asyncio.wait_for(self._idle.wait(), timeout=timeout_ms / 1000)
            return True
        except asyncio.TimeoutError:
            return False
        finally:
            self._cancel_timer()
            self.page.remove_listener("request", self._on_request)
            self.page.remove_listener("requestfinished", self._on_done)
            self.page.remove_listener("requestfailed", self._on_done)


class ScreenshotService:
    def __init__(self, pool: Optional[BrowserPool] = None):
        self._pool = pool

    @property
    def pool(self) -> BrowserPool:
        return self._pool or get_browser_pool()

    async def capture_website(self, url: str, max_timeout_ms: int = DEFAULT_MAX_TIMEOUT_MS) -> bytes:
        """
        Capture the viewport of url as a normalized JPEG.

        Raises:
            ScreenshotError: on navigation or capture failure
        """
        logger.info(f"📸 Capturing screenshot: {url} (max {max_timeout_ms}ms)")
        try:
            async with self.pool.page() as page:
                await self._navigate(page, url, max_timeout_ms)
                await self._wait_for_network_idle(page, max_timeout_ms)
                await self._wait_for_spinners(page)
                await page.wait_for_timeout(SETTLE_MS)

                raw = await page.screenshot(
                    type="jpeg", quality=settings.JPEG_QUALITY, full_page=False
                )
        except ScreenshotError:
            raise
        except (PlaywrightError, OSError) as e:
            logger.error(f"❌ Screenshot failed for {url}: {str(e)}")
            raise ScreenshotError(f"Failed to capture screenshot: {str(e)}") from e

        logger.info(f"✅ Screenshot captured: {url}")
        return normalize_screenshot(
            raw,
            width=settings.VIEWPORT_WIDTH,
            height=settings.VIEWPORT_HEIGHT,
            quality=settings.JPEG_QUALITY,
        )

    async def _navigate(self, page: Page, url: str, max_timeout_ms: int):
        timeout = min(max_timeout_ms, NAVIGATION_CAP_MS)
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout)
        except PlaywrightTimeoutError:
            retry_timeout = max(timeout // 2, MIN_RETRY_TIMEOUT_MS)
            logger.warning(f"⚠️  Navigation timed out, retrying once with {retry_timeout}ms")
            await page.goto(url, wait_until="domcontentloaded", timeout=retry_timeout)

    async def _wait_for_network_idle(self, page: Page, max_timeout_ms: int):
        ceiling = max(max_timeout_ms - 5000, IDLE_FLOOR_MS)
        if await NetworkIdleTracker(page).wait(ceiling):
            return

        logger.info("Network idle ceiling reached, trying networkidle load state")
        try:
            await page.wait_for_load_state("networkidle", timeout=NETWORKIDLE_FALLBACK_MS)
        except PlaywrightTimeoutError:
            logger.info("Proceeding without network idle")

    async def _wait_for_spinners(self, page: Page):
        for selector in SPINNER_SELECTORS:
            try:
                await page.wait_for_selector(selector, state="hidden", timeout=SPINNER_TIMEOUT_MS)
                break
            except PlaywrightTimeoutError:
                continue

    @staticmethod
    def process_uploaded_image(image_bytes: bytes) -> bytes:
        return process_uploaded_image(
            image_bytes,
            max_width=settings.VIEWPORT_WIDTH,
            max_height=settings.VIEWPORT_HEIGHT,
            quality=settings.JPEG_QUALITY,
        )

    @staticmethod
    def buffer_to_base64(image_bytes: bytes) -> str:
        return to_base64(image_bytes)

    async def cleanup(self):
        if self._pool is not None:
            await self._pool.cleanup()
        else:
            await close_browser_pool()
