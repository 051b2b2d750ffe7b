"""
Best-effort forwarding of shared reports to the admin archive endpoint.
"""

import base64
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from config import settings
from utils.http import client_session

logger = logging.getLogger(__name__)


class AdminArchiveService:
    def __init__(self, endpoint: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.endpoint = endpoint if endpoint is not None else settings.ADMIN_ENDPOINT
        self._client = client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.ConnectError, httpx.ReadTimeout)),
        reraise=True,
    )
    async def _post(self, payload: dict) -> httpx.Response:
        async with client_session(self._client, timeout=settings.ADMIN_TIMEOUT) as client:
            return await client.post(self.endpoint, json=payload, timeout=settings.ADMIN_TIMEOUT)

    async def forward_report(
        self,
        pdf_bytes: bytes,
        audit_data: Dict[str, Any],
        recipient_email: str,
        recipient_name: str,
        platform_name: str,
    ) -> str:
        """
        Archive a shared report.

        Returns:
            "saved" on a 2xx answer, "failed" on any error (never raised),
            "skipped" when no endpoint is configured
        """
        if not self.endpoint:
            logger.info("Admin endpoint not configured, skipping archive")
            return "skipped"

        scores = audit_data.get("scores") if isinstance(audit_data.get("scores"), dict) else {}
        overall = scores.get("overall") if isinstance(scores.get("overall"), dict) else {}

        payload = {
            "recipientEmail": recipient_email,
            "recipientName": recipient_name,
            "platformName": platform_name,
            "auditUrl": audit_data.get("url"),
            "overallScore": overall.get("percentage"),
            "grade": overall.get("grade"),
            "fileName": f"{platform_name}-ux-audit-report.pdf",
            "pdfBase64": base64.b64encode(pdf_bytes).decode("utf-8"),
            "sharedAt": datetime.now(timezone.utc).isoformat(),
        }

        try:
            response = await self._post(payload)
        except httpx.HTTPError as e:
            logger.warning(f"⚠️  Admin archive request failed: {str(e)}")
            return "failed"

        if response.is_success:
            logger.info(f"✅ Report archived for {platform_name}")
            return "saved"

        logger.warning(f"⚠️  Admin archive returned HTTP {response.status_code}")
        return "failed"
