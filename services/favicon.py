"""
Favicon lookup for audited sites.

Strategies, in order: /favicon.ico, icon links in the page HTML, Google's
favicon service, and finally a fallback letter. Results are cached per origin.
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup
from cachetools import TTLCache

from config import settings
from models import FaviconResult
from services.sitemap import extract_domain
from utils.http import client_session

logger = logging.getLogger(__name__)

TOTAL_TIMEOUT = 5.0
HEAD_TIMEOUT = 2.0
HTML_TIMEOUT = 3.0
GOOGLE_FAVICON_URL = "https://www.google.com/s2/favicons?domain={domain}&sz=128"

ICON_SELECTORS = [
    'link[rel="icon"]',
    'link[rel="shortcut icon"]',
    'link[rel="apple-touch-icon"]',
]


def make_absolute(href: str, domain: str) -> str:
    if href.startswith("//"):
        return "https:" + href
    if href.startswith("/"):
        return domain + href
    if not href.startswith("http"):
        return domain + "/" + href
    return href


def fallback_result(url: str) -> FaviconResult:
    """First letter of the hostname (without www.), 'W' when there is none."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        hostname = None

    letter = hostname.replace("www.", "", 1)[:1].upper() if hostname else ""
    return FaviconResult(success=False, fallback_letter=letter or "W")


class FaviconService:
    def __init__(self, cache: Optional[TTLCache] = None, client: Optional[httpx.AsyncClient] = None):
        if cache is None:
            cache = TTLCache(maxsize=settings.FAVICON_CACHE_SIZE, ttl=settings.FAVICON_CACHE_TTL)
        self.cache = cache
        self._client = client

    async def get_favicon(self, url: str) -> FaviconResult:
        domain = extract_domain(url)

        cached = self.cache.get(domain)
        if cached is not None:
            logger.info(f"📦 Favicon cache hit: {domain}")
            return cached

        logger.info(f"🔍 Fetching favicon for: {domain}")
        try:
            result = await asyncio.wait_for(self._try_all_strategies(domain, url), timeout=TOTAL_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("⚠️  Favicon fetch timed out, using fallback")
            return fallback_result(url)

        self.cache[domain] = result
        return result

    async def _try_all_strategies(self, domain: str, url: str) -> FaviconResult:
        async with client_session(self._client) as client:
            favicon_url = f"{domain}/favicon.ico"
            if await self._head_ok(client, favicon_url):
                logger.info(f"✅ Found favicon.ico: {favicon_url}")
                return FaviconResult(success=True, favicon_url=favicon_url)

            icon_url = await self._icon_from_html(client, domain, url)
            if icon_url:
                logger.info(f"✅ Found icon in HTML: {icon_url}")
                return FaviconResult(success=True, favicon_url=icon_url)

            google_url = GOOGLE_FAVICON_URL.format(domain=domain)
            if await self._head_ok(client, google_url):
                logger.info("✅ Using Google favicon service")
                return FaviconResult(success=True, favicon_url=google_url)

        result = fallback_result(url)
        logger.warning(f"⚠️  Using fallback letter: {result.fallback_letter}")
        return result

    @staticmethod
    async def _head_ok(client: httpx.AsyncClient, url: str) -> bool:
        try:
            response = await client.head(url, timeout=HEAD_TIMEOUT)
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    @staticmethod
    async def _icon_from_html(client: httpx.AsyncClient, domain: str, url: str) -> Optional[str]:
        try:
            response = await client.get(url, timeout=HTML_TIMEOUT, headers={"User-Agent": "Mozilla/5.0"})
            response.raise_for_status()
        except httpx.HTTPError:
            return None

        soup = BeautifulSoup(response.text, "html.parser")
        for selector in ICON_SELECTORS:
            link = soup.select_one(selector)
            if link is not None and link.get("href"):
                return make_absolute(link["href"], domain)
        return None

    def clear_cache(self):
        self.cache.clear()
