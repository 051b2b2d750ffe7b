"""
Sitemap discovery and page ranking.

Finds a site's URL list from sitemap.xml, sitemap_index.xml, sitemap.txt or
robots.txt, ranks it against the audited page, and picks the handful of pages
worth parsing for context.
"""

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional
from urllib.parse import urlparse

import httpx

from models import SitemapUrl
from utils.http import client_session

logger = logging.getLogger(__name__)

SITEMAP_PATHS = ["/sitemap.xml", "/sitemap_index.xml", "/sitemap.txt", "/robots.txt"]
FETCH_TIMEOUT = 10.0
USER_AGENT = "UX-Audit-Bot/1.0"
MAX_SITEMAP_DEPTH = 3

# Ranking weights
DEFAULT_PRIORITY = 0.5
EXACT_MATCH_BONUS = 10
HOME_PAGE_BONUS = 5
SAME_SECTION_BONUS = 3
DEEP_PAGE_PENALTY = 1
DEEP_PAGE_DEPTH = 3
QUERY_PENALTY = 0.5
TOP_URLS = 10
MAX_SELECTED_PAGES = 3
SIBLING_PRIORITY_THRESHOLD = 0.8


def extract_domain(url: str) -> str:
    """Return scheme://host for a URL, with a best-effort fallback for junk input."""
    parsed = urlparse(url)
    if parsed.scheme and parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}"
    if "://" in url:
        return "/".join(url.split("/")[:3])
    return f"https://{url}"


def _path(url: str) -> str:
    return urlparse(url).path or "/"


def _same_page(a: str, b: str) -> bool:
    """Equal scheme, host, path and query, ignoring case in the host and a trailing slash."""

    def key(url: str):
        parsed = urlparse(url)
        return parsed.scheme.lower(), parsed.netloc.lower(), parsed.path.rstrip("/") or "/", parsed.query

    return key(a) == key(b)


def _section(url: str) -> str:
    """First path segment ('' for the home page)."""
    return _path(url).split("/")[1]


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child_text(node: ET.Element, name: str) -> Optional[str]:
    for child in node:
        if _local_name(child.tag) == name and child.text:
            return child.text.strip()
    return None


class SitemapService:
    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client

    async def extract_sitemap(self, base_url: str) -> List[SitemapUrl]:
        """
        Discover site URLs, ranked against base_url.

        Never raises: when no source yields URLs the result is just the
        audited page with priority 1.0.
        """
        try:
            domain = extract_domain(base_url)
            async with client_session(
                self._client, timeout=FETCH_TIMEOUT, headers={"User-Agent": USER_AGENT}
            ) as client:
                for path in SITEMAP_PATHS:
                    sitemap_url = f"{domain}{path}"
                    try:
                        urls = await self._fetch_sitemap(client, sitemap_url)
                    except (httpx.HTTPError, ValueError) as e:
                        logger.info(f"Sitemap not found at: {sitemap_url} ({type(e).__name__})")
                        continue

                    if urls:
                        logger.info(f"✅ Sitemap found at: {sitemap_url} ({len(urls)} URLs)")
                        return self.prioritize_urls(urls, base_url)
        except Exception as e:
            logger.error(f"❌ Sitemap extraction failed: {str(e)}")

        logger.info("No sitemap found, using base URL only")
        return [SitemapUrl(url=base_url, priority=1.0)]

    async def _fetch_sitemap(
        self, client: httpx.AsyncClient, sitemap_url: str, depth: int = 0
    ) -> List[SitemapUrl]:
        """Fetch and parse one sitemap source, following index and robots.txt references."""
        response = await client.get(
            sitemap_url, timeout=FETCH_TIMEOUT, headers={"User-Agent": USER_AGENT}
        )
        response.raise_for_status()
        content = response.text
        path = urlparse(sitemap_url).path.lower()

        if path.endswith("robots.txt"):
            return await self._from_robots(client, content, depth)
        if path.endswith(".txt"):
            return self.parse_text_sitemap(content)
        if path.endswith(".xml") or content.lstrip().startswith("<"):
            return await self._parse_xml_sitemap(client, content, depth)
        return []

    async def _parse_xml_sitemap(
        self, client: httpx.AsyncClient, xml_content: str, depth: int
    ) -> List[SitemapUrl]:
        try:
            root = ET.fromstring(xml_content.strip())
        except ET.ParseError as e:
            logger.warning(f"⚠️  XML sitemap parsing failed: {str(e)}")
            return []

        root_name = _local_name(root.tag)

        # Sitemap index: aggregate every child sitemap
        if root_name == "sitemapindex":
            children = [
                loc
                for node in root
                if _local_name(node.tag) == "sitemap"
                for loc in [_child_text(node, "loc")]
                if loc
            ]
            return await self._fetch_children(client, children, depth)

        if root_name == "urlset":
            return self.parse_urlset(root)

        return []

    @staticmethod
    def parse_urlset(root: ET.Element) -> List[SitemapUrl]:
        urls = []
        for node in root:
            if _local_name(node.tag) != "url":
                continue
            loc = _child_text(node, "loc")
            if not loc:
                continue

            priority = _child_text(node, "priority")
            try:
                priority_value = float(priority) if priority is not None else None
            except ValueError:
                priority_value = None

            urls.append(
                SitemapUrl(
                    url=loc,
                    priority=priority_value,
                    lastmod=_child_text(node, "lastmod"),
                    changefreq=_child_text(node, "changefreq"),
                )
            )
        return urls

    @staticmethod
    def parse_text_sitemap(text_content: str) -> List[SitemapUrl]:
        """One URL per line."""
        return [
            SitemapUrl(url=line, priority=DEFAULT_PRIORITY)
            for line in (raw.strip() for raw in text_content.splitlines())
            if line.startswith("http")
        ]

    @staticmethod
    def sitemaps_from_robots(robots_content: str) -> List[str]:
        sitemaps = []
        for line in robots_content.splitlines():
            line = line.strip()
            if line.lower().startswith("sitemap:"):
                sitemaps.append(line.split(":", 1)[1].strip())
        return [s for s in sitemaps if s]

    async def _from_robots(
        self, client: httpx.AsyncClient, robots_content: str, depth: int
    ) -> List[SitemapUrl]:
        return await self._fetch_children(client, self.sitemaps_from_robots(robots_content), depth)

    async def _fetch_children(
        self, client: httpx.AsyncClient, sitemap_urls: List[str], depth: int
    ) -> List[SitemapUrl]:
        if depth >= MAX_SITEMAP_DEPTH:
            logger.warning(f"⚠️  Sitemap nesting deeper than {MAX_SITEMAP_DEPTH}, skipping children")
            return []

        urls: List[SitemapUrl] = []
        for child_url in sitemap_urls:
            try:
                urls.extend(await self._fetch_sitemap(client, child_url, depth + 1))
            except (httpx.HTTPError, ValueError) as e:
                logger.info(f"Failed to fetch child sitemap: {child_url} ({type(e).__name__})")
        return urls

    def prioritize_urls(self, urls: List[SitemapUrl], audit_url: str) -> List[SitemapUrl]:
        """Rank URLs by relevance to the audited page and keep the top ten."""
        audit_section = _section(audit_url)

        def score(item: SitemapUrl) -> float:
            value = item.priority if item.priority is not None else DEFAULT_PRIORITY
            item_path = _path(item.url)

            if _same_page(item.url, audit_url):
                value += EXACT_MATCH_BONUS
            if item_path == "/":
                value += HOME_PAGE_BONUS
            if audit_section and _section(item.url) == audit_section:
                value += SAME_SECTION_BONUS
            if len(item_path.split("/")) - 1 > DEEP_PAGE_DEPTH:
                value -= DEEP_PAGE_PENALTY
            if urlparse(item.url).query:
                value -= QUERY_PENALTY
            return value

        # sorted() is stable, so ties keep sitemap order
        return sorted(urls, key=score, reverse=True)[:TOP_URLS]

    def get_optimal_page_selection(self, urls: List[SitemapUrl], audit_url: str) -> List[str]:
        """Audited page first, then the home page, then one related page. At most three."""
        prioritized = self.prioritize_urls(urls, audit_url)
        selection = [audit_url]

        home_page = next((u for u in prioritized if _path(u.url) == "/"), None)
        if home_page and not _same_page(home_page.url, audit_url):
            selection.append(home_page.url)

        audit_section = _section(audit_url)
        sibling = next(
            (
                u
                for u in prioritized
                if not _same_page(u.url, audit_url)
                and (home_page is None or not _same_page(u.url, home_page.url))
                and (_section(u.url) == audit_section or (u.priority or 0) > SIBLING_PRIORITY_THRESHOLD)
            ),
            None,
        )
        if sibling:
            selection.append(sibling.url)

        return selection[:MAX_SELECTED_PAGES]


