import json
from types import SimpleNamespace

import pytest

from config import settings as client_settings
from errors import AIAnalysisError, ConfigurationError
from models import AnalysisRequest
from utils.clients import GeminiClient, OpenRouterClient, get_ai_client


def _client_returning(text=None, error=None):
    calls = []

    async def generate_content(model, contents, config):
        calls.append({"model": model, "contents": contents, "config": config})
        if error:
            raise error
        return SimpleNamespace(text=text)

    fake = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))
    return fake, calls


def _gemini(fake):
    client = GeminiClient(api_key="g-key", model="gemini-test")
    client._client = fake
    return client


async def test_analyze_ux(ai_response):
    fake, calls = _client_returning(json.dumps(ai_response))
    audit = await _gemini(fake).analyze_ux(
        AnalysisRequest(image_base64="aGVsbG8=", analysis_type="screenshot")
    )

    assert audit.analysis_metadata.model == "gemini-test"
    assert audit.image_url == "data:image/jpeg;base64,aGVsbG8="
    call = calls[0]
    assert call["model"] == "gemini-test"
    assert len(call["contents"]) == 2
    assert call["config"].response_mime_type == "application/json"
    assert call["config"].temperature == 0.1


@pytest.mark.parametrize(
    "text,error",
    [
        ("not json", None),
        ('{"scores": "none"}', None),
        (None, RuntimeError("quota exceeded")),
    ],
)
async def test_failures_become_analysis_errors(text, error):
    fake, _ = _client_returning(text, error)

    with pytest.raises(AIAnalysisError):
        await _gemini(fake).analyze_with_context("prompt")


async def test_missing_key():
    client = GeminiClient(api_key="")

    with pytest.raises(ConfigurationError):
        await client.analyze_with_context("prompt")
    assert client.diagnostics() == {"hasKey": False, "keyStatus": "missing"}


@pytest.mark.parametrize("provider,expected", [("gemini", GeminiClient), ("openrouter", OpenRouterClient)])
def test_get_ai_client(monkeypatch, provider, expected):
    monkeypatch.setattr(client_settings, "AI_PROVIDER", provider)
    assert isinstance(get_ai_client(), expected)
