"""
Compact HTML extraction for LLM context.

Each fetched page is reduced to a PageContext: head metadata, navigation,
main content headings/paragraphs, forms and primary CTAs. Everything is
capped so a handful of pages fits in the prompt's token budget.
"""

import json
import logging
import math
import re
from typing import List, Optional

import httpx
from bs4 import BeautifulSoup, Tag

from models import (
    CtaInfo,
    FormInfo,
    FormsAndCtas,
    MainContent,
    NavLink,
    PageContext,
    PageHead,
)
from utils.http import DESKTOP_USER_AGENT, client_session

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 15.0
DEFAULT_TOKEN_BUDGET = 6000

NAV_SELECTORS = ["nav a", "header a", ".nav a, .navigation a, .menu a"]
MAIN_SELECTORS = [
    "main",
    '[role="main"]',
    ".main-content",
    ".content",
    "article",
    ".post-content",
    ".entry-content",
]
CTA_SELECTORS = [
    'button[type="submit"]',
    ".btn-primary, .button-primary, .cta",
    'a[href*="signup"], a[href*="register"], a[href*="contact"]',
    ".hero button, .hero a",
]

MAX_NAV_LINKS = 15
MAX_TEXT = 50
MAX_HEADINGS = 5
MAX_PARAGRAPHS = 3
MIN_PARAGRAPH = 20
MAX_PARAGRAPH_TEXT = 800
MAX_FORMS = 3
MAX_FIELDS = 10
MAX_CTAS = 5
MAX_JSON_LD = 2


def _text(element: Tag) -> str:
    return element.get_text().strip()


def _short_selector(element: Tag) -> str:
    """tag#id.firstclass, as far as the element has them."""
    selector = element.name.lower()
    if element.get("id"):
        selector += f"#{element['id']}"
    classes = element.get("class") or []
    if classes:
        selector += f".{classes[0]}"
    return selector


class HtmlParserService:
    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = FETCH_TIMEOUT):
        self._client = client
        self.timeout = timeout

    async def parse_multiple_pages(self, urls: List[str]) -> List[PageContext]:
        """
        Parse each URL in order. A page that fails to fetch or parse becomes
        a fallback context, so the result always has one entry per URL.
        """
        contexts = []
        async with client_session(self._client, timeout=self.timeout) as client:
            for url in urls:
                try:
                    logger.info(f"Parsing content for: {url}")
                    contexts.append(await self.parse_single_page(url, client))
                except Exception as e:
                    logger.warning(f"⚠️  Failed to parse {url}: {str(e)}")
                    contexts.append(self.create_fallback_context(url))
        return contexts

    async def parse_single_page(self, url: str, client: httpx.AsyncClient) -> PageContext:
        response = await client.get(
            url, timeout=self.timeout, headers={"User-Agent": DESKTOP_USER_AGENT}
        )
        response.raise_for_status()
        return self.parse_html(url, response.text)

    def parse_html(self, url: str, html: str) -> PageContext:
        soup = BeautifulSoup(html, "html.parser")
        return PageContext(
            url=url,
            head=self.extract_head_data(soup),
            nav=self.extract_navigation(soup),
            main_content=self.extract_main_content(soup),
            forms_and_ctas=self.extract_forms_and_ctas(soup),
        )

    def extract_head_data(self, soup: BeautifulSoup) -> PageHead:
        title_tag = soup.find("title")
        title = _text(title_tag) if title_tag else ""

        meta = soup.select_one('meta[name="description"]')
        meta_description = (meta.get("content") or "").strip() if meta else ""

        canonical_tag = soup.select_one('link[rel="canonical"]')
        canonical = canonical_tag.get("href") if canonical_tag else None

        # Structured data, first two blocks only
        json_ld = []
        for script in soup.select('script[type="application/ld+json"]')[:MAX_JSON_LD]:
            try:
                json_ld.append(json.loads(script.string or "{}"))
            except json.JSONDecodeError:
                continue
        json_ld = [block for block in json_ld if block]

        return PageHead(
            title=title,
            meta_description=meta_description,
            canonical=canonical or None,
            json_ld=json_ld or None,
        )

    def extract_navigation(self, soup: BeautifulSoup) -> List[NavLink]:
        anchors = []
        for selector in NAV_SELECTORS:
            anchors.extend(soup.select(selector))

        links = []
        seen = set()
        for anchor in anchors[:MAX_NAV_LINKS]:
            text = _text(anchor)[:MAX_TEXT]
            if not text or text in seen:
                continue
            seen.add(text)
            links.append(NavLink(text=text, href=anchor.get("href") or ""))
        return links

    def extract_main_content(self, soup: BeautifulSoup) -> MainContent:
        main = None
        for selector in MAIN_SELECTORS:
            main = soup.select_one(selector)
            if main is not None:
                break
        if main is None:
            main = soup.body or soup

        headings = [_text(h) for h in main.select("h1, h2, h3")[:MAX_HEADINGS]]
        headings = [h for h in headings if h]

        paragraphs = [_text(p) for p in main.select("p")]
        paragraphs = [p for p in paragraphs if len(p) > MIN_PARAGRAPH][:MAX_PARAGRAPHS]
        first_paragraphs = re.sub(r"\s+", " ", " ".join(paragraphs)[:MAX_PARAGRAPH_TEXT])

        selectors = []
        if isinstance(main, Tag) and main.name != "[document]":
            selectors.append(_short_selector(main))
        if headings:
            selectors.append("h1, h2, h3")
        if paragraphs:
            selectors.append("p")

        return MainContent(headings=headings, first_paragraphs=first_paragraphs, selectors=selectors)

    def extract_forms_and_ctas(self, soup: BeautifulSoup) -> FormsAndCtas:
        forms = []
        for form in soup.find_all("form")[:MAX_FORMS]:
            fields = []
            for field in form.select("input, select, textarea"):
                name = field.get("name") or field.get("type") or "unnamed"
                if name not in fields:
                    fields.append(name)

            if form.get("id"):
                selector = f"#{form['id']}"
            elif form.get("class"):
                selector = f".{form['class'][0]}"
            else:
                selector = "form"
            forms.append(FormInfo(selector=selector, fields=fields[:MAX_FIELDS]))

        # An element matched by several selectors counts once
        elements = []
        for selector in CTA_SELECTORS:
            for element in soup.select(selector):
                if not any(element is seen for seen in elements):
                    elements.append(element)

        ctas = []
        for element in elements[:MAX_CTAS]:
            text = _text(element)[:MAX_TEXT]
            if not text:
                continue
            ctas.append(
                CtaInfo(
                    text=text,
                    selector=_short_selector(element),
                    href=element.get("href") or None,
                )
            )

        return FormsAndCtas(forms=forms, primary_ctas=ctas)

    @staticmethod
    def create_fallback_context(url: str) -> PageContext:
        return PageContext(url=url, head=PageHead(title="Parse failed"))

    @staticmethod
    def estimate_token_count(contexts: List[PageContext]) -> int:
        """Rough estimate: one token per four characters of serialized JSON."""
        serialized = json.dumps(
            [c.model_dump(by_alias=True, exclude_none=True) for c in contexts]
        )
        return math.ceil(len(serialized) / 4)

    def optimize_for_tokens(
        self, contexts: List[PageContext], max_tokens: int = DEFAULT_TOKEN_BUDGET
    ) -> List[PageContext]:
        """
        Shrink contexts to fit max_tokens, in place.

        Drops trailing pages first (the first page is the audited one and is
        always kept), then trims fields on what remains.
        """
        while self.estimate_token_count(contexts) > max_tokens and len(contexts) > 1:
            dropped = contexts.pop()
            logger.info(f"Dropped {dropped.url} from context to fit token budget")

        if self.estimate_token_count(contexts) > max_tokens:
            for context in contexts:
                context.main_content.first_paragraphs = context.main_content.first_paragraphs[:400]
                context.main_content.headings = context.main_content.headings[:3]
                context.nav = context.nav[:8]
                context.forms_and_ctas.forms = context.forms_and_ctas.forms[:2]
                context.forms_and_ctas.primary_ctas = context.forms_and_ctas.primary_ctas[:3]

        return contexts
