"""
Brevo transactional email delivery for shared audit reports.
"""

import base64
import html
import logging
from typing import Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from config import settings
from errors import ConfigurationError, EmailDeliveryError
from utils.http import client_session

logger = logging.getLogger(__name__)

BREVO_BASE_URL = "https://api.brevo.com/v3"


def build_email_template(recipient_name: str, platform_name: str) -> str:
    name = html.escape(recipient_name)
    platform = html.escape(platform_name)
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Your UX Audit Report</title>
</head>
<body style="margin: 0; padding: 0; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; background-color: #f5f5f5;">
  <div style="max-width: 600px; margin: 40px auto; background: white; border-radius: 12px; overflow: hidden;">
    <div style="background: #EF4171; padding: 40px 30px; text-align: center;">
      <h1 style="color: white; margin: 0; font-size: 28px; font-weight: 600;">🎉 UX Audit Report Ready!</h1>
      <p style="color: white; margin: 10px 0 0 0; font-size: 16px;">Your comprehensive analysis for {platform}</p>
    </div>
    <div style="padding: 40px 30px;">
      <p style="font-size: 16px; line-height: 1.6; color: #333;">Hi <strong>{name}</strong>,</p>
      <p style="font-size: 16px; line-height: 1.6; color: #333;">
        Thank you for using LYcheeLens! We've completed a comprehensive analysis of <strong>{platform}</strong> and have attached your detailed report.
      </p>
      <div style="background: #f8f9fa; padding: 25px; border-radius: 8px; margin: 30px 0; border-left: 4px solid #EF4171;">
        <h3 style="margin: 0 0 15px 0; color: #333; font-size: 18px;">📋 What's in your report:</h3>
        <ul style="margin: 0; padding-left: 20px; color: #555; line-height: 1.8;">
          <li>Overall UX Score &amp; Category Breakdown</li>
          <li>Heuristic Violations Analysis</li>
          <li>Accessibility Insights</li>
          <li>Prioritized Fixes with Business Impact</li>
          <li>User Journey Analysis</li>
        </ul>
      </div>
      <div style="text-align: center; margin: 35px 0;">
        <a href="https://lemonyellow.design" style="display: inline-block; background: #EF4171; color: white; padding: 14px 32px; text-decoration: none; border-radius: 6px; font-weight: 600;">Visit Our Website</a>
      </div>
    </div>
    <div style="background: #f8f9fa; padding: 25px 30px; text-align: center; border-top: 1px solid #eee;">
      <p style="margin: 0 0 8px 0; font-size: 13px; color: #666;">This email was sent from <strong>LYcheeLens</strong></p>
      <p style="margin: 0; font-size: 12px; color: #999;">Your privacy is important to us. We never share your data.</p>
    </div>
  </div>
</body>
</html>"""


class BrevoEmailService:
    def __init__(self, api_key: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key if api_key is not None else settings.BREVO_API_KEY
        if not self.api_key:
            raise ConfigurationError("BREVO_API_KEY environment variable is required")

        self.sender_email = settings.EMAIL_FROM
        self.sender_name = settings.EMAIL_FROM_NAME
        self._client = client

    @property
    def headers(self) -> dict:
        return {
            "api-key": self.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.ConnectError, httpx.ReadTimeout)),
        reraise=True,
    )
    async def _post_email(self, payload: dict) -> httpx.Response:
        async with client_session(self._client, timeout=settings.EMAIL_TIMEOUT) as client:
            return await client.post(
                f"{BREVO_BASE_URL}/smtp/email",
                json=payload,
                headers=self.headers,
                timeout=settings.EMAIL_TIMEOUT,
            )

    async def send_audit_report(
        self, recipient_email: str, recipient_name: str, platform_name: str, pdf_bytes: bytes
    ) -> str:
        """
        Email the PDF report as an attachment.

        Returns:
            Brevo message id (empty string when the response carries none)

        Raises:
            EmailDeliveryError: on any non-201 response or transport failure
        """
        payload = {
            "sender": {"name": self.sender_name, "email": self.sender_email},
            "to": [{"email": recipient_email, "name": recipient_name}],
            "subject": f"Your UX Audit Report for {platform_name}",
            "htmlContent": build_email_template(recipient_name, platform_name),
            "attachment": [
                {
                    "name": f"{platform_name}-ux-audit-report.pdf",
                    "content": base64.b64encode(pdf_bytes).decode("utf-8"),
                }
            ],
        }

        logger.info(f"📧 Sending audit report to {recipient_email} via Brevo...")
        try:
            response = await self._post_email(payload)
        except httpx.HTTPError as e:
            logger.error(f"❌ Error sending email via Brevo: {str(e)}")
            raise EmailDeliveryError("Failed to send audit report email via Brevo") from e

        if response.status_code != 201:
            logger.error(f"❌ Brevo API error {response.status_code}: {response.text[:300]}")
            raise EmailDeliveryError(f"Brevo API Error: {response.status_code} {response.text[:300]}")

        try:
            message_id = response.json().get("messageId", "")
        except ValueError:
            message_id = ""
        logger.info(f"✅ Audit report email sent to {recipient_email} (message id: {message_id})")
        return message_id

    async def verify_connection(self) -> bool:
        """Check that the API key is accepted (GET /account)."""
        logger.info("🔍 Verifying Brevo API connection...")
        try:
            async with client_session(self._client, timeout=30.0) as client:
                response = await client.get(f"{BREVO_BASE_URL}/account", headers=self.headers)
        except httpx.HTTPError as e:
            logger.error(f"❌ Brevo API connection failed: {str(e)}")
            return False

        if response.status_code == 200:
            logger.info("✅ Brevo API connection verified")
            return True
        logger.error(f"❌ Brevo API connection failed: HTTP {response.status_code}")
        return False
