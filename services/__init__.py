# Services package - site context gathering, audit orchestration and delivery
from .sitemap import SitemapService
from .html_parser import HtmlParserService
from .screenshot import ScreenshotService
from .contextual_audit import ContextualAuditService
from .email import BrevoEmailService
from .admin_archive import AdminArchiveService
from .favicon import FaviconService
from .case_studies import get_relevant_case_studies

__all__ = [
    "SitemapService",
    "HtmlParserService",
    "ScreenshotService",
    "ContextualAuditService",
    "BrevoEmailService",
    "AdminArchiveService",
    "FaviconService",
    "get_relevant_case_studies",
]
