"""
OpenRouter chat-completions client for UX analysis.

Models are tried in order; a rate limit (429) or exhausted credits (402)
moves on to the next one. Models that reject image input get one text-only
retry before the failure counts.
"""

import logging
import re
import time
from typing import List, Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from analyzer.normalization import build_audit_data
from analyzer.prompts import build_analysis_prompt
from config import settings
from errors import AIAnalysisError, ConfigurationError, InvalidAIResponseError
from models import AnalysisRequest, AuditData
from utils.http import client_session
from utils.images.processor import to_data_url
from utils.parsing.json import extract_json_from_response, repair_and_parse_json

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
TEMPERATURE = 0.1
MAX_TOKENS = 4096

FALLBACK_STATUSES = (429, 402)
IMAGE_REJECTION_STATUSES = (400, 404, 415)
IMAGE_REJECTION_PATTERN = re.compile(r"image input|image not supported|no endpoints.*image", re.IGNORECASE)


class ModelRequestError(Exception):
    """One model attempt failed with an HTTP or provider-level error."""

    def __init__(self, status: int, reason: str):
        self.status = status
        self.reason = reason
        super().__init__(f"{status}: {reason}")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or error)
    if error:
        return str(error)
    return response.text[:500]


def is_image_rejection(status: int, message: str) -> bool:
    return status in IMAGE_REJECTION_STATUSES or bool(IMAGE_REJECTION_PATTERN.search(message or ""))


class OpenRouterClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        models: Optional[List[str]] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENROUTER_API_KEY
        self.models = models or settings.openrouter_models
        self.timeout = timeout or settings.AI_TIMEOUT
        self._client = client

    async def analyze_ux(self, request: AnalysisRequest) -> AuditData:
        """Baseline single-page analysis using the standard audit prompt."""
        prompt = build_analysis_prompt(request)
        return await self._run_models(prompt, request.image_base64, url=request.url)

    async def analyze_with_context(
        self, prompt_text: str, image_base64: Optional[str] = None, url: Optional[str] = None
    ) -> AuditData:
        """Analysis with a caller-built (contextual) prompt."""
        return await self._run_models(prompt_text, image_base64, url=url)

    def diagnostics(self) -> dict:
        has_key = bool(self.api_key)
        return {"hasKey": has_key, "keyStatus": "configured" if has_key else "missing"}

    async def _run_models(self, prompt: str, image_base64: Optional[str], url: Optional[str]) -> AuditData:
        if not self.api_key:
            raise ConfigurationError("OPENROUTER_API_KEY is not configured")

        start = time.monotonic()
        async with client_session(self._client, timeout=self.timeout) as client:
            for index, model in enumerate(self.models):
                is_last = index == len(self.models) - 1
                try:
                    logger.info(f"🤖 Requesting analysis from {model}")
                    content = await self._complete(client, model, prompt, image_base64)
                    raw = self._parse_content(content)
                    audit = build_audit_data(
                        raw,
                        model=model,
                        url=url,
                        image_base64=image_base64,
                        processing_time=round((time.monotonic() - start) * 1000),
                    )
                    logger.info(f"✅ Analysis completed with {model}")
                    return audit

                except ModelRequestError as e:
                    logger.error(f"❌ OpenRouter error with {model}: {e.reason}")
                    if e.status in FALLBACK_STATUSES and not is_last:
                        logger.warning(f"⚠️  Rate limited or out of credits on {model}, trying {self.models[index + 1]}...")
                        continue
                    raise AIAnalysisError(e.reason) from e
                except InvalidAIResponseError as e:
                    logger.error(f"❌ Unusable response from {model}: {str(e)}")
                    raise AIAnalysisError(str(e)) from e
                except httpx.HTTPError as e:
                    logger.error(f"❌ OpenRouter request failed with {model}: {str(e)}")
                    raise AIAnalysisError(str(e) or type(e).__name__) from e

        raise AIAnalysisError("all model attempts exhausted")

    def _build_body(self, model: str, prompt: str, image_base64: Optional[str]) -> dict:
        if image_base64:
            content = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": to_data_url(image_base64)}},
            ]
        else:
            content = prompt

        return {
            "model": model,
            "messages": [{"role": "user", "content": content}],
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
            "response_format": {"type": "json_object"},
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.ConnectError, httpx.ReadTimeout)),
        reraise=True,
    )
    async def _post(self, client: httpx.AsyncClient, body: dict) -> httpx.Response:
        """
        POST one completion request.

        Retries up to 3 times for connection errors and read timeouts; HTTP
        error statuses are returned to the caller unchanged.
        """
        return await client.post(
            OPENROUTER_URL,
            json=body,
            timeout=self.timeout,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
                "HTTP-Referer": settings.OPENROUTER_REFERER,
                "X-Title": settings.OPENROUTER_TITLE,
            },
        )

    async def _complete(
        self, client: httpx.AsyncClient, model: str, prompt: str, image_base64: Optional[str]
    ) -> str:
        response = await self._post(client, self._build_body(model, prompt, image_base64))

        if response.status_code >= 400 and image_base64:
            message = _error_message(response)
            if is_image_rejection(response.status_code, message):
                logger.warning(f"⚠️  {model} rejected image input, retrying text-only")
                response = await self._post(client, self._build_body(model, prompt, None))

        if response.status_code >= 400:
            raise ModelRequestError(response.status_code, _error_message(response))

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidAIResponseError("OpenRouter returned a non-JSON body") from e

        # Provider errors sometimes arrive in a 200 body
        if isinstance(data, dict) and data.get("error"):
            error = data["error"]
            code = error.get("code") if isinstance(error, dict) else None
            try:
                status = int(code) if code is not None else 500
            except (TypeError, ValueError):
                status = 500
            raise ModelRequestError(status, _error_message(response))

        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise InvalidAIResponseError("OpenRouter response has no choices") from e

        content = message.get("content") if isinstance(message, dict) else message
        if not content or not isinstance(content, str):
            raise InvalidAIResponseError("OpenRouter response has empty content")
        return content

    @staticmethod
    def _parse_content(content: str) -> dict:
        try:
            return extract_json_from_response(content)
        except InvalidAIResponseError:
            logger.warning("⚠️  Direct JSON extraction failed, attempting repair")
            return repair_and_parse_json(content)
