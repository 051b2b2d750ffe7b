"""
Browser pool manager for the UX Audit service
Keeps a small set of Playwright Chromium instances alive across requests
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, List, Optional, Tuple

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from config import settings
from utils.http import DESKTOP_USER_AGENT

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",  # Prevents memory issues in Docker
    "--disable-gpu",
    "--disable-extensions",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
]


class BrowserPool:
    """
    Pool of persistent Chromium instances.

    Initialization runs once behind an asyncio.Lock, so concurrent first
    requests never launch duplicate browsers. A semaphore bounds the number
    of pages open at the same time.
    """

    def __init__(
        self,
        pool_size: int = settings.BROWSER_POOL_SIZE,
        max_pages_per_browser: int = settings.BROWSER_MAX_PAGES,
        browser_timeout: int = settings.BROWSER_TIMEOUT,
    ):
        self.pool_size = pool_size
        self.max_pages_per_browser = max_pages_per_browser
        self.browser_timeout = browser_timeout

        self.playwright = None
        self.slots: List[dict] = []
        self.semaphore = asyncio.Semaphore(pool_size)
        self._lock = asyncio.Lock()
        self._initialized = False

    async def initialize(self):
        """Start Playwright and launch the browsers (idempotent)."""
        if self._initialized:
            return

        async with self._lock:
            if self._initialized:
                return

            try:
                logger.info(f"🚀 Launching {self.pool_size} browser(s)...")
                self.playwright = await async_playwright().start()
                for _ in range(self.pool_size):
                    self.slots.append(await self._new_slot())
                self._initialized = True
                logger.info(f"✅ Browser pool ready with {len(self.slots)} browser(s)")
            except Exception as e:
                logger.error(f"❌ Failed to initialize browser pool: {str(e)}")
                await self._shutdown()
                raise

    async def _new_slot(self) -> dict:
        browser = await self.playwright.chromium.launch(headless=True, args=LAUNCH_ARGS)
        return {"browser": browser, "created_at": datetime.now(), "page_count": 0, "in_use": False}

    def _needs_recycle(self, slot: dict) -> bool:
        age = (datetime.now() - slot["created_at"]).total_seconds()
        return (
            age > self.browser_timeout
            or slot["page_count"] >= self.max_pages_per_browser
            or not slot["browser"].is_connected()
        )

    async def acquire(self) -> Tuple[dict, BrowserContext, Page]:
        """
        Take a free browser and open a fresh context and page on it.

        Returns:
            Tuple of (slot, context, page); pass them back to release()
        """
        await self.initialize()
        await self.semaphore.acquire()

        slot = None
        try:
            async with self._lock:
                slot = next(s for s in self.slots if not s["in_use"])
                if self._needs_recycle(slot):
                    logger.info(f"♻️  Recycling browser (pages: {slot['page_count']})")
                    try:
                        await slot["browser"].close()
                    except Exception as e:
                        logger.warning(f"⚠️  Error closing browser: {str(e)}")
                    slot.update(await self._new_slot())

                slot["in_use"] = True
                slot["page_count"] += 1

            context = await slot["browser"].new_context(
                viewport={"width": settings.VIEWPORT_WIDTH, "height": settings.VIEWPORT_HEIGHT},
                device_scale_factor=1,
                user_agent=DESKTOP_USER_AGENT,
            )
            page = await context.new_page()
            return slot, context, page

        except Exception:
            await self._free(slot)
            raise

    async def release(self, slot: dict, context: BrowserContext, page: Page):
        """Close the page and context, keep the browser."""
        try:
            await page.close()
            await context.close()
        except Exception as e:
            logger.warning(f"⚠️  Error releasing browser page: {str(e)}")
        finally:
            await self._free(slot)

    async def _free(self, slot: Optional[dict]):
        if slot is not None:
            async with self._lock:
                slot["in_use"] = False
        self.semaphore.release()

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Async context manager yielding a ready page that is always released."""
        slot, context, page = await self.acquire()
        try:
            yield page
        finally:
            await self.release(slot, context, page)

    async def health_check(self) -> dict:
        async with self._lock:
            total = len(self.slots)
            in_use = sum(1 for s in self.slots if s["in_use"])
            return {
                "total_browsers": total,
                "in_use": in_use,
                "available": total - in_use,
                "status": "healthy" if total - in_use > 0 else "saturated",
            }

    async def cleanup(self):
        """Close all browsers and stop Playwright."""
        logger.info("🧹 Cleaning up browser pool...")
        async with self._lock:
            await self._shutdown()
        logger.info("✅ Browser pool cleaned up")

    async def _shutdown(self):
        for slot in self.slots:
            try:
                await slot["browser"].close()
            except Exception as e:
                logger.warning(f"⚠️  Error closing browser: {str(e)}")
        self.slots.clear()

        if self.playwright:
            try:
                await self.playwright.stop()
            except Exception as e:
                logger.warning(f"⚠️  Error stopping Playwright: {str(e)}")
            self.playwright = None

        self._initialized = False


# Global browser pool instance
_browser_pool: Optional[BrowserPool] = None


def get_browser_pool() -> BrowserPool:
    """Get or create the global browser pool (browsers launch on first use)."""
    global _browser_pool

    if _browser_pool is None:
        _browser_pool = BrowserPool()

    return _browser_pool


async def close_browser_pool():
    """Close the global browser pool"""
    global _browser_pool

    if _browser_pool is not None:
        await _browser_pool.cleanup()
        _browser_pool = None
