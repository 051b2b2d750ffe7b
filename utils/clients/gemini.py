"""
Gemini adapter for UX analysis (selected with AI_PROVIDER=gemini).

Produces the same AuditData as the OpenRouter client by sending the same
prompts and feeding the answer through the shared normalizer.
"""

import asyncio
import base64
import logging
import time
from typing import Optional

from google import genai
from google.genai import types

from analyzer.normalization import build_audit_data
from analyzer.prompts import build_analysis_prompt
from config import settings
from errors import AIAnalysisError, ConfigurationError, InvalidAIResponseError
from models import AnalysisRequest, AuditData
from utils.parsing.json import extract_json_from_response

logger = logging.getLogger(__name__)


class GeminiClient:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, timeout: Optional[float] = None):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.timeout = timeout or settings.AI_TIMEOUT
        self._client = None

    def _get_client(self) -> genai.Client:
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def analyze_ux(self, request: AnalysisRequest) -> AuditData:
        prompt = build_analysis_prompt(request)
        return await self.analyze_with_context(prompt, request.image_base64, url=request.url)

    async def analyze_with_context(
        self, prompt_text: str, image_base64: Optional[str] = None, url: Optional[str] = None
    ) -> AuditData:
        client = self._get_client()

        contents = [prompt_text]
        if image_base64:
            contents.append(
                types.Part.from_bytes(data=base64.b64decode(image_base64), mime_type="image/jpeg")
            )

        start = time.monotonic()
        logger.info(f"🤖 Requesting analysis from {self.model}")
        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self.model,
                    contents=contents,
                    config=types.GenerateContentConfig(
                        temperature=0.1,
                        max_output_tokens=8192,
                        response_mime_type="application/json",
                    ),
                ),
                timeout=self.timeout,
            )
            raw = extract_json_from_response(response.text or "")
        except asyncio.TimeoutError as e:
            raise AIAnalysisError(f"Gemini timed out after {self.timeout}s") from e
        except InvalidAIResponseError as e:
            raise AIAnalysisError(str(e)) from e
        except Exception as e:
            logger.error(f"❌ Gemini API error: {str(e)}")
            raise AIAnalysisError(str(e)) from e

        try:
            audit = build_audit_data(
                raw,
                model=self.model,
                url=url,
                image_base64=image_base64,
                processing_time=round((time.monotonic() - start) * 1000),
            )
        except InvalidAIResponseError as e:
            raise AIAnalysisError(str(e)) from e

        logger.info(f"✅ Analysis completed with {self.model}")
        return audit

    def diagnostics(self) -> dict:
        has_key = bool(self.api_key)
        return {"hasKey": has_key, "keyStatus": "configured" if has_key else "missing"}
