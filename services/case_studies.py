"""
Lemon Yellow case-study catalog and relevance matching.

Picks the portfolio entries most relevant to an audited site, using the
site's domain, URL tokens and the audit summary.
"""

import logging
import re
from typing import List, Optional
from urllib.parse import urlparse

from models import CaseStudy

logger = logging.getLogger(__name__)

WORK_URL = "https://lemonyellow.design/work/{slug}"


def _study(id, title, industry, description, work_type, keywords, priority, slug=None) -> CaseStudy:
    return CaseStudy(
        id=id,
        title=title,
        url=WORK_URL.format(slug=slug or id),
        industry=industry,
        description=description,
        work_type=work_type,
        keywords=keywords,
        priority=priority,
    )


CASE_STUDIES: List[CaseStudy] = [
    # FinTech
    _study("phongsavanh-bank", "Phongsavanh Bank", "fintech",
           "Catered to the diverse users of a multi-lingual app with three different currencies",
           ["ui-ux-design"],
           ["banking", "multi-language", "multi-currency", "mobile-app", "financial"], 8),
    _study("vayana", "Vayana", "fintech",
           "Defined a frictionless loan origination system to boost conversions",
           ["ui-ux-design"],
           ["lending", "loan", "conversion-optimization", "financial", "b2b"], 7),
    _study("arthaone", "ArthaOne", "fintech",
           "Designing an extensive wealth management platform",
           ["ui-ux-design", "visual-design", "branding"],
           ["wealth-management", "investment", "financial-planning", "dashboard"], 9),
    _study("fibe", "Fibe", "fintech",
           "Application redesign aimed at revamping brand identity",
           ["ui-ux-design", "graphic-design", "performance-marketing"],
           ["redesign", "brand-identity", "mobile-app", "financial"], 8),
    _study("rxil", "RXIL", "fintech",
           "A modern MSME transaction experience for easy accessibility",
           ["ui-ux-design", "frontend-development", "cms"],
           ["msme", "transactions", "accessibility", "business", "b2b"], 7),
    _study("pay-unified", "PayUnified", "fintech",
           "A unified payment platform for businesses of all sizes",
           ["ui-ux-design", "platform-design"],
           ["payment", "payment-processing", "platform", "saas", "b2b", "fintech"], 10),
    # Healthcare
    _study("curebay", "Curebay", "healthcare",
           "Unified the complete healthcare experience for doctors, patients, and their families",
           ["ui-ux-design"],
           ["healthcare", "medical", "doctor", "patient", "telemedicine", "health-platform"], 9),
    # E-commerce
    _study("uppercase", "Uppercase", "ecommerce",
           "Designed a complete e-commerce shopping experience for sustainable travel gears",
           ["ui-ux-design"],
           ["e-commerce", "shopping", "travel", "sustainable", "retail", "product-catalog"], 8),
    _study("tata-neu", "Tata Neu", "ecommerce",
           "Design in collaboration to create an integrated super app experience",
           ["ui-ux-design"],
           ["super-app", "marketplace", "integrated-platform", "multi-service", "tata"], 10),
    _study("rezolve", "Rezolve", "ecommerce",
           "Designed for an innovative platform aimed at revolutionizing experiences across brands",
           ["ui-ux-design"],
           ["platform", "brand-experience", "innovation", "multi-brand"], 7),
    _study("tata-cliq", "Tata CLiQ", "ecommerce",
           "UI design to create an aesthetic, seamless shopping experience",
           ["ui-design"],
           ["e-commerce", "shopping", "aesthetic", "seamless", "tata", "retail"], 8),
    _study("orra", "Orra", "ecommerce",
           "Polishing the Orra buying experience with a simple and seamless checkout journey",
           ["ui-ux-design"],
           ["jewelry", "luxury", "checkout", "conversion-optimization", "e-commerce"], 7),
    # EdTech
    _study("mkcl", "MKCL", "edtech",
           "Revamped the entire website with a smooth-flowing concept and thoughtful designs",
           ["website-design"],
           ["education", "website-redesign", "learning-platform", "edtech"], 6),
    _study("ffreedom", "ffreedom", "edtech",
           "A redesign that complemented the new futuristic leap of the brand",
           ["redesign", "branding"],
           ["education", "learning", "brand-redesign", "futuristic", "edtech"], 7),
    _study("nijuedx", "NijuEDx", "edtech",
           "An immersive online learning experience for IB Board students",
           ["ui-ux-design"],
           ["online-learning", "education", "ib-board", "students", "immersive"], 8),
    # Real Estate
    _study("clicbrics", "Clicbrics", "real-estate",
           "Transforming the search of easily finding, comparing, and purchasing properties",
           ["ui-ux-design"],
           ["real-estate", "property-search", "comparison", "property-purchase", "search-experience"], 8),
    # SaaS & Technology
    _study("rxil-saas", "RXIL Platform", "saas",
           "A modern business platform with dashboard design and user experience optimization",
           ["ui-ux-design", "platform-design"],
           ["saas", "platform", "dashboard", "business-tool", "interface-design", "user-experience"], 9,
           slug="rxil"),
    _study("curebay-saas", "Curebay Platform", "saas",
           "Healthcare platform with comprehensive user interface and experience design",
           ["ui-ux-design", "platform-design"],
           ["saas", "platform", "dashboard", "interface", "user-experience", "design-system"], 8,
           slug="curebay"),
]

INDUSTRY_MAPPING = {
    "fintech": ["financial", "banking", "investment", "payment", "lending", "insurance", "cryptocurrency", "trading"],
    "healthcare": ["medical", "health", "hospital", "clinic", "telemedicine", "pharma", "wellness", "fitness"],
    "ecommerce": ["retail", "shopping", "marketplace", "store", "commerce", "fashion", "goods", "products"],
    "edtech": ["education", "learning", "school", "university", "course", "training", "academy", "knowledge"],
    "real-estate": ["property", "real-estate", "housing", "construction", "architecture", "apartment"],
    "saas": ["software", "platform", "service", "tool", "dashboard", "analytics", "crm", "enterprise", "interface", "app", "system"],
    "logistics": ["shipping", "delivery", "transport", "logistics", "supply-chain", "warehouse"],
    "travel": ["travel", "tourism", "booking", "hotel", "flight", "vacation", "trip"],
    "media": ["news", "media", "entertainment", "streaming", "content", "social"],
    "food": ["food", "restaurant", "delivery", "recipe", "dining", "catering"],
    "default": ["business", "corporate", "company", "service", "platform", "website", "app"],
}

# Domain-based industry detection
FINTECH_DOMAINS = ["stripe.com", "paypal.com", "square.com", "klarna.com", "razorpay.com", "payu.com"]
FINTECH_PATTERNS = ["pay", "bank", "finance", "loan", "money", "card", "payment"]
HEALTHCARE_PATTERNS = ["health", "medical", "doctor", "hospital", "clinic", "pharma"]
ECOMMERCE_PATTERNS = ["shop", "store", "market", "buy", "cart", "retail"]

# Scoring weights
FINTECH_DOMAIN_SCORE = 60
HEALTHCARE_DOMAIN_SCORE = 80
ECOMMERCE_DOMAIN_SCORE = 80
URL_INDUSTRY_SCORE = 50
KEYWORD_SCORE = 10
SUMMARY_INDUSTRY_SCORE = 40
SUMMARY_INDUSTRY_SCORE_AFTER_MATCH = 20
SUMMARY_MATCH_SCORE = 5
TOP_PRIORITY_BONUS = 20
HIGH_PRIORITY_BONUS = 15


def _hostname(url: str) -> str:
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        hostname = None
    return (hostname or url).lower()


def extract_keywords_from_url(url: str) -> List[str]:
    return [part for part in re.split(r"[./\-_?:]+", url.lower()) if len(part) > 2]


def calculate_relevance_score(
    case_study: CaseStudy, audit_url: Optional[str] = None, audit_summary: Optional[str] = None
) -> float:
    score = 0
    industry_match = False

    # Direct domain-based industry detection
    if audit_url:
        domain = _hostname(audit_url)

        if domain in FINTECH_DOMAINS or any(p in domain for p in FINTECH_PATTERNS):
            if case_study.industry == "fintech":
                score += FINTECH_DOMAIN_SCORE
                industry_match = True

        if any(p in domain for p in HEALTHCARE_PATTERNS) and case_study.industry == "healthcare":
            score += HEALTHCARE_DOMAIN_SCORE
            industry_match = True

        if any(p in domain for p in ECOMMERCE_PATTERNS) and case_study.industry == "ecommerce":
            score += ECOMMERCE_DOMAIN_SCORE
            industry_match = True

    # Broader industry terms and case keywords in the URL
    if audit_url and not industry_match:
        domain = _hostname(audit_url)
        url_keywords = extract_keywords_from_url(audit_url)

        keywords = INDUSTRY_MAPPING.get(case_study.industry, [])
        if any(k in domain or k in url_keywords for k in keywords):
            score += URL_INDUSTRY_SCORE
            industry_match = True

        matching = [k for k in case_study.keywords if k in domain or k in url_keywords]
        score += len(matching) * KEYWORD_SCORE

    # Summary-based analysis
    if audit_summary:
        summary = audit_summary.lower()

        matches = [k for k in INDUSTRY_MAPPING.get(case_study.industry, []) if k in summary]
        if matches:
            base = SUMMARY_INDUSTRY_SCORE_AFTER_MATCH if industry_match else SUMMARY_INDUSTRY_SCORE
            score += base + len(matches) * SUMMARY_MATCH_SCORE
            industry_match = True

        matching = [k for k in case_study.keywords if k.replace("-", " ", 1) in summary]
        score += len(matching) * KEYWORD_SCORE

    # Versatile high-quality studies for sites with no industry signal
    if not industry_match:
        if case_study.priority >= 9:
            score += TOP_PRIORITY_BONUS
        elif case_study.priority >= 7:
            score += HIGH_PRIORITY_BONUS

    return score + case_study.priority


def get_relevant_case_studies(
    audit_url: Optional[str] = None, audit_summary: Optional[str] = None, limit: int = 2
) -> List[CaseStudy]:
    """Top `limit` case studies by relevance, ties broken by priority."""
    scored = [
        (calculate_relevance_score(study, audit_url, audit_summary), study)
        for study in CASE_STUDIES
    ]
    scored.sort(key=lambda item: (item[0], item[1].priority), reverse=True)

    logger.debug(
        f"Case study matches for {audit_url}: "
        f"{[(s.title, score) for score, s in scored[:5]]}"
    )
    return [study for _, study in scored[:limit]]
