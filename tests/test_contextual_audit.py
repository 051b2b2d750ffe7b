import httpx
import pytest

from analyzer.normalization import build_audit_data
from errors import AIAnalysisError, ScreenshotError
from models import AnalysisRequest
from services.contextual_audit import ContextualAuditService, get_adaptive_timeout

SITEMAP = """<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://acme.test/</loc></url>
  <url><loc>https://acme.test/docs/intro</loc></url>
  <url><loc>https://acme.test/docs/setup</loc></url>
</urlset>
"""

PAGE = "<html><head><title>{title}</title></head><body><nav><a href='/'>Home</a></nav></body></html>"


def site_handler(request: httpx.Request):
    if request.url.path == "/sitemap.xml":
        return httpx.Response(200, text=SITEMAP)
    if request.url.path.endswith((".xml", ".txt")):
        return httpx.Response(404)
    return httpx.Response(200, text=PAGE.format(title=f"Page {request.url.path}"))


class FakeAI:
    def __init__(self, ai_response, contextual_error=None, baseline_error=None):
        self.ai_response = ai_response
        self.contextual_error = contextual_error
        self.baseline_error = baseline_error
        self.prompts = []
        self.images = []

    async def analyze_with_context(self, prompt_text, image_base64=None, url=None):
        self.prompts.append(prompt_text)
        self.images.append(image_base64)
        if self.contextual_error:
            raise self.contextual_error
        return build_audit_data(self.ai_response, model="fake/model", url=url)

    async def analyze_ux(self, request):
        if self.baseline_error:
            raise self.baseline_error
        return build_audit_data(self.ai_response, model="fake/baseline", url=request.url)


class FakeScreenshots:
    def __init__(self, error=None):
        self.error = error
        self.timeouts = []

    async def capture_website(self, url, max_timeout_ms=15000):
        self.timeouts.append(max_timeout_ms)
        if self.error:
            raise self.error
        return b"jpeg-bytes"

    @staticmethod
    def buffer_to_base64(image_bytes):
        return "anBlZy1ieXRlcw=="


def _service(mock_client, ai, screenshots=None):
    return ContextualAuditService(
        ai_client=ai,
        screenshot_service=screenshots or FakeScreenshots(),
        client=mock_client(site_handler),
    )


@pytest.mark.parametrize(
    "ping_ms,operation,expected",
    [
        (200, "screenshot", 15000),
        (1500, "screenshot", 20000),
        (5000, "screenshot", 25000),
        (999, "html", 12000),
        (1000, "html", 15000),
        (3000, "html", 18000),
    ],
)
def test_adaptive_timeout(ping_ms, operation, expected):
    assert get_adaptive_timeout(ping_ms, operation) == expected


async def test_contextual_audit_ok(mock_client, ai_response):
    ai = FakeAI(ai_response)
    screenshots = FakeScreenshots()
    service = _service(mock_client, ai, screenshots)

    outcome = await service.audit(AnalysisRequest(url="https://acme.test/docs/setup"))

    assert outcome.status == "ok"
    data = outcome.data
    assert data.analysis_metadata.pages_analyzed == [
        "https://acme.test/docs/setup",
        "https://acme.test/",
        "https://acme.test/docs/intro",
    ]
    assert data.analysis_metadata.site_business_goal == "Contextual analysis (3 pages in sitemap)"
    assert data.analysis_metadata.degraded_reason is None
    assert data.image_url == "data:image/jpeg;base64,anBlZy1ieXRlcw=="
    assert ai.images == ["anBlZy1ieXRlcw=="]

    prompt = ai.prompts[0]
    assert "=== USER EXPERIENCE ON: https://acme.test/docs/setup ===" in prompt
    assert "=== USER EXPERIENCE ON: https://acme.test/docs/intro ===" in prompt
    assert prompt.index("ON: https://acme.test/docs/setup") < prompt.index("ON: https://acme.test/docs/intro")
    assert screenshots.timeouts == [15000]


async def test_screenshot_failure_continues_without_image(mock_client, ai_response):
    ai = FakeAI(ai_response)
    service = _service(mock_client, ai, FakeScreenshots(error=ScreenshotError("Failed to capture screenshot: boom")))

    outcome = await service.audit(AnalysisRequest(url="https://acme.test/"))

    assert outcome.status == "ok"
    assert ai.images == [None]
    assert outcome.data.image_url is None


async def test_uploaded_image_skips_capture(mock_client, ai_response):
    ai = FakeAI(ai_response)
    screenshots = FakeScreenshots()
    service = _service(mock_client, ai, screenshots)

    await service.audit(AnalysisRequest(url="https://acme.test/", image_base64="dXBsb2Fk"))

    assert screenshots.timeouts == []
    assert ai.images == ["dXBsb2Fk"]


async def test_contextual_failure_degrades_to_baseline(mock_client, ai_response):
    ai = FakeAI(ai_response, contextual_error=AIAnalysisError("context too long"))
    service = _service(mock_client, ai)

    outcome = await service.audit(AnalysisRequest(url="https://acme.test/"))

    assert outcome.status == "degraded"
    assert outcome.reason == "AI analysis failed: context too long"
    assert outcome.data.analysis_metadata.model == "fake/baseline"
    assert outcome.data.analysis_metadata.degraded_reason == outcome.reason
    wire = outcome.data.model_dump(by_alias=True, exclude_none=True)
    assert wire["analysisMetadata"]["degradedReason"] == outcome.reason


async def test_both_paths_failing(mock_client, ai_response):
    ai = FakeAI(
        ai_response,
        contextual_error=AIAnalysisError("context too long"),
        baseline_error=AIAnalysisError("all model attempts exhausted"),
    )
    outcome = await _service(mock_client, ai).audit(AnalysisRequest(url="https://acme.test/"))

    assert outcome.status == "failed"
    assert outcome.data is None
    assert outcome.reason == "AI analysis failed: all model attempts exhausted"


async def test_perform_contextual_audit_returns_baseline_data(mock_client, ai_response):
    ai = FakeAI(ai_response, contextual_error=AIAnalysisError("boom"))
    data = await _service(mock_client, ai).perform_contextual_audit(AnalysisRequest(url="https://acme.test/"))

    assert data.analysis_metadata.model == "fake/baseline"


async def test_quick_ping_unreachable():
    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    service = ContextualAuditService(
        ai_client=object(),
        screenshot_service=FakeScreenshots(),
        client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)),
    )
    assert await service.quick_ping("https://down.test/") == 5000
