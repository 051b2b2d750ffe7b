"""
Contextual UX audit orchestration.

Combines the sitemap, parsed HTML of up to three pages and an above-the-fold
screenshot into one prompt. When any part of that pipeline fails, the audit
falls back to the single-page analysis.
"""

import asyncio
import logging
import time
from typing import List, Optional

import httpx

from analyzer.prompts import build_contextual_prompt
from config import settings
from models import AnalysisRequest, AuditData, AuditOutcome, PageContext, SitemapUrl
from services.html_parser import HtmlParserService
from services.screenshot import ScreenshotService
from services.sitemap import SitemapService
from utils.clients import get_ai_client
from utils.images.processor import to_data_url

logger = logging.getLogger(__name__)

PING_TIMEOUT = 5.0
PING_FAILURE_MS = 5000
FAST_SITE_MS = 1000
MEDIUM_SITE_MS = 3000
MAX_SITEMAP_URLS_IN_PROMPT = 20

ADAPTIVE_TIMEOUTS = {
    "screenshot": {"fast": 15000, "medium": 20000, "slow": 25000},
    "html": {"fast": 12000, "medium": 15000, "slow": 18000},
}


def get_adaptive_timeout(ping_ms: float, operation: str) -> int:
    """Timeout in ms for 'screenshot' or 'html' work, scaled by how fast the site answered."""
    timeouts = ADAPTIVE_TIMEOUTS[operation]
    if ping_ms < FAST_SITE_MS:
        return timeouts["fast"]
    if ping_ms < MEDIUM_SITE_MS:
        return timeouts["medium"]
    return timeouts["slow"]


class ContextualAuditService:
    def __init__(
        self,
        ai_client=None,
        screenshot_service: Optional[ScreenshotService] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.ai_client = ai_client or get_ai_client()
        self.screenshot_service = screenshot_service or ScreenshotService()
        self._client = client
        self.sitemap_service = SitemapService(client=client)

    async def quick_ping(self, url: str) -> int:
        """HEAD round-trip in ms, any status accepted; PING_FAILURE_MS when unreachable."""
        start = time.monotonic()
        try:
            if self._client is not None:
                await self._client.head(url, timeout=PING_TIMEOUT)
            else:
                async with httpx.AsyncClient(follow_redirects=True) as client:
                    await client.head(url, timeout=PING_TIMEOUT)
            return round((time.monotonic() - start) * 1000)
        except httpx.HTTPError:
            return PING_FAILURE_MS

    async def audit(self, request: AnalysisRequest) -> AuditOutcome:
        """
        Run a URL audit and report how it went.

        Returns:
            ok with contextual data, degraded with baseline data and the
            contextual failure reason, or failed when the baseline also failed
        """
        try:
            return AuditOutcome.ok(await self._contextual_audit(request))
        except Exception as e:
            reason = str(e) or type(e).__name__
            logger.warning(f"⚠️  Contextual audit failed, falling back to single-page analysis: {reason}")

        try:
            data = await self.ai_client.analyze_ux(request)
        except Exception as e:
            logger.error(f"❌ Baseline analysis failed: {str(e)}")
            return AuditOutcome.failed(str(e) or type(e).__name__)

        data.analysis_metadata.degraded_reason = reason
        return AuditOutcome.degraded(data, reason)

    async def perform_contextual_audit(self, request: AnalysisRequest) -> AuditData:
        """Contextual audit, or the baseline analysis when the contextual pipeline fails."""
        try:
            return await self._contextual_audit(request)
        except Exception as e:
            logger.warning(f"⚠️  Contextual audit failed, falling back to single-page analysis: {str(e)}")
            return await self.ai_client.analyze_ux(request)

    async def _contextual_audit(self, request: AnalysisRequest) -> AuditData:
        start = time.monotonic()
        url = request.url
        logger.info(f"🚀 Starting contextual audit: {url}")

        ping_ms = await self.quick_ping(url)
        logger.info(f"Site responded in {ping_ms}ms")
        parser = HtmlParserService(
            client=self._client, timeout=get_adaptive_timeout(ping_ms, "html") / 1000
        )

        sitemap_urls, image_base64, target_context = await asyncio.gather(
            self._sitemap_task(url),
            self._screenshot_task(request, ping_ms),
            self._target_page_task(parser, url),
        )

        selected_pages = self.sitemap_service.get_optimal_page_selection(sitemap_urls, url)
        sibling_pages = [page for page in selected_pages if page != url]
        sibling_contexts: List[PageContext] = []
        if sibling_pages:
            logger.info(f"Parsing {len(sibling_pages)} sibling page(s)...")
            sibling_contexts = await parser.parse_multiple_pages(sibling_pages)

        contexts = ([target_context] if target_context else []) + sibling_contexts
        contexts = parser.optimize_for_tokens(contexts, settings.TOKEN_BUDGET)

        prompt = build_contextual_prompt(
            request, [u.url for u in sitemap_urls][:MAX_SITEMAP_URLS_IN_PROMPT], contexts
        )

        logger.info("🤖 Running contextual AI analysis...")
        result = await self.ai_client.analyze_with_context(prompt, image_base64, url=url)

        processing_time = round((time.monotonic() - start) * 1000)
        result.image_url = to_data_url(image_base64) if image_base64 else None
        result.analysis_metadata.processing_time = processing_time
        result.analysis_metadata.pages_analyzed = selected_pages
        result.analysis_metadata.site_business_goal = (
            f"Contextual analysis ({len(sitemap_urls)} pages in sitemap)"
        )

        logger.info(f"✅ Contextual audit completed in {processing_time}ms")
        return result

    async def _sitemap_task(self, url: str) -> List[SitemapUrl]:
        try:
            urls = await self.sitemap_service.extract_sitemap(url)
            logger.info(f"✅ Sitemap extracted: {len(urls)} URLs")
            return urls
        except Exception as e:
            logger.warning(f"⚠️  Sitemap unavailable, using target page only: {str(e)}")
            return [SitemapUrl(url=url, priority=1.0)]

    async def _screenshot_task(self, request: AnalysisRequest, ping_ms: int) -> Optional[str]:
        if request.image_base64:
            return request.image_base64
        try:
            timeout = get_adaptive_timeout(ping_ms, "screenshot")
            screenshot = await self.screenshot_service.capture_website(request.url, timeout)
            return self.screenshot_service.buffer_to_base64(screenshot)
        except Exception as e:
            logger.warning(f"⚠️  Screenshot unavailable, continuing with HTML only: {str(e)}")
            return None

    async def _target_page_task(self, parser: HtmlParserService, url: str) -> Optional[PageContext]:
        try:
            contexts = await parser.parse_multiple_pages([url])
            logger.info("✅ Target page parsed")
            return contexts[0]
        except Exception as e:
            logger.warning(f"⚠️  HTML parsing failed for target page: {str(e)}")
            return None
