import asyncio
import logging
import platform
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool

from config import settings
from errors import ConfigurationError, EmailDeliveryError, ImageProcessingError
from models import (
    AnalysisRequest,
    AuditData,
    CaseStudy,
    FaviconResult,
    ShareReportRequest,
    ShareReportResponse,
)
from services.admin_archive import AdminArchiveService
from services.case_studies import get_relevant_case_studies
from services.contextual_audit import ContextualAuditService
from services.email import BrevoEmailService
from services.favicon import FaviconService
from services.screenshot import ScreenshotService
from utils.clients import get_ai_client
from utils.images.processor import to_base64
from utils.reporting.pdf import generate_pdf

logger = logging.getLogger(__name__)

SERVICE_NAME = "UX Audit Platform API"
VERSION = "1.0.0"
ANALYSIS_FAILED = "Failed to complete UX analysis. Please try again."

# Create router
router = APIRouter(prefix="/api")

_favicon_service: Optional[FaviconService] = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ======================
# Dependencies
# ======================

def get_ai():
    return get_ai_client()


def get_screenshot_service() -> ScreenshotService:
    return ScreenshotService()


def get_audit_service(
    ai_client=Depends(get_ai), screenshot_service: ScreenshotService = Depends(get_screenshot_service)
) -> ContextualAuditService:
    return ContextualAuditService(ai_client=ai_client, screenshot_service=screenshot_service)


def get_favicon_service() -> FaviconService:
    """One service (and cache) per process."""
    global _favicon_service
    if _favicon_service is None:
        _favicon_service = FaviconService()
    return _favicon_service


def get_email_service() -> Optional[BrevoEmailService]:
    try:
        return BrevoEmailService()
    except ConfigurationError as e:
        logger.error(f"❌ {str(e)}")
        return None


def get_archive_service() -> AdminArchiveService:
    return AdminArchiveService()


# ======================
# Status endpoints
# ======================

@router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "timestamp": _now(),
        "version": VERSION,
    }


@router.get("/status")
async def status():
    return {
        "status": "ready",
        "message": "UX Audit service is running",
        "timestamp": _now(),
    }


@router.get("/diagnostics")
async def diagnostics(ai_client=Depends(get_ai)):
    """Deployment diagnostics. Reports whether an API key is set, never the key."""
    key_info = ai_client.diagnostics()
    return {
        "ok": True,
        "hasKey": key_info["hasKey"],
        "environment": settings.VERCEL_ENV or "development",
        "region": settings.VERCEL_REGION or "unknown",
        "timestamp": _now(),
        "runtime": "python",
        "pythonVersion": platform.python_version(),
        "keyStatus": key_info["keyStatus"],
    }


# ======================
# Supporting endpoints
# ======================

@router.get("/favicon", response_model=FaviconResult, response_model_exclude_none=True)
async def favicon(url: str = Query(...), service: FaviconService = Depends(get_favicon_service)):
    return await service.get_favicon(url)


@router.get("/case-studies", response_model=List[CaseStudy])
async def case_studies(
    url: Optional[str] = None,
    summary: Optional[str] = None,
    limit: int = Query(2, ge=1, le=18),
):
    return get_relevant_case_studies(url, summary, limit)


# ======================
# Audit
# ======================

def _validate_url(url: str):
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise HTTPException(status_code=400, detail="Invalid URL format")


@router.post("/audit", response_model=AuditData, response_model_exclude_none=True)
async def run_audit(
    audit_type: Optional[str] = Form(None, alias="type"),
    url: Optional[str] = Form(None),
    target_audience: Optional[str] = Form(None, alias="targetAudience"),
    user_goals: Optional[str] = Form(None, alias="userGoals"),
    business_objectives: Optional[str] = Form(None, alias="businessObjectives"),
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    audit_service: ContextualAuditService = Depends(get_audit_service),
    screenshot_service: ScreenshotService = Depends(get_screenshot_service),
):
    """
    Run a UX audit.

    type=url runs the contextual pipeline (sitemap, page content, screenshot);
    type=image analyzes an uploaded design. A degraded run still returns 200,
    with analysisMetadata.degradedReason set.
    """
    if audit_type not in ("url", "image"):
        raise HTTPException(status_code=400, detail='Invalid audit type. Must be "url" or "image"')

    context = {
        "target_audience": target_audience or None,
        "user_goals": user_goals or None,
        "business_objectives": business_objectives or None,
    }
    if name or email:
        logger.info(f"Audit requested by {name or 'anonymous'} <{email or 'no email'}>")

    if audit_type == "url":
        if not url:
            raise HTTPException(status_code=400, detail="URL is required for URL audit")
        _validate_url(url)

        request = AnalysisRequest(url=url, analysis_type="url", **context)
        outcome = await audit_service.audit(request)
        if outcome.status == "failed":
            raise HTTPException(status_code=500, detail={"error": ANALYSIS_FAILED, "message": outcome.reason})
        if outcome.status == "degraded":
            logger.warning(f"⚠️  Returning degraded audit for {url}: {outcome.reason}")
        return outcome.data

    if image is None:
        raise HTTPException(status_code=400, detail="Image file is required for image audit")
    if not (image.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")

    contents = await image.read()
    if len(contents) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail="File too large. Maximum size is 10MB.")

    try:
        processed = await run_in_threadpool(screenshot_service.process_uploaded_image, contents)
    except ImageProcessingError as e:
        logger.error(f"❌ Image processing error: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to process uploaded image")

    request = AnalysisRequest(image_base64=to_base64(processed), analysis_type="screenshot", **context)
    try:
        return await audit_service.ai_client.analyze_ux(request)
    except Exception as e:
        logger.error(f"❌ Analysis error: {str(e)}")
        raise HTTPException(status_code=500, detail={"error": ANALYSIS_FAILED, "message": str(e)})


# ======================
# Share report
# ======================

@router.post("/share-report", response_model=ShareReportResponse)
async def share_report(
    body: ShareReportRequest,
    email_service: Optional[BrevoEmailService] = Depends(get_email_service),
    archive_service: AdminArchiveService = Depends(get_archive_service),
):
    """Render the audit as a PDF, email it, and archive it best-effort."""
    required = {
        "auditData": body.audit_data,
        "recipientEmail": body.recipient_email,
        "recipientName": body.recipient_name,
        "platformName": body.platform_name,
    }
    missing = [field for field, value in required.items() if not value]
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing required fields: {', '.join(missing)}")

    try:
        pdf_buffer = await run_in_threadpool(generate_pdf, body.audit_data, body.platform_name)
    except Exception as e:
        logger.error(f"❌ PDF generation failed: {str(e)}")
        raise HTTPException(status_code=500, detail={"error": "Failed to generate report PDF", "message": str(e)})
    pdf_bytes = pdf_buffer.getvalue()

    async def send_email():
        if email_service is None:
            raise ConfigurationError("BREVO_API_KEY environment variable is required")
        return await email_service.send_audit_report(
            body.recipient_email, body.recipient_name, body.platform_name, pdf_bytes
        )

    email_result, db_status = await asyncio.gather(
        send_email(),
        archive_service.forward_report(
            pdf_bytes, body.audit_data, body.recipient_email, body.recipient_name, body.platform_name
        ),
        return_exceptions=True,
    )

    if isinstance(db_status, BaseException):
        logger.warning(f"⚠️  Admin archive raised: {str(db_status)}")
        db_status = "failed"

    if isinstance(email_result, (EmailDeliveryError, ConfigurationError)):
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to send report email", "message": str(email_result)},
        )
    if isinstance(email_result, BaseException):
        raise email_result

    return ShareReportResponse(
        success=True,
        message="Report sent successfully",
        to=body.recipient_email,
        timestamp=_now(),
        db_status=db_status,
    )
