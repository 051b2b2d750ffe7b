import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

import routes
from analyzer.normalization import build_audit_data
from errors import AIAnalysisError, EmailDeliveryError
from main import app
from models import AuditOutcome, FaviconResult
from services.screenshot import ScreenshotService


class FakeAI:
    def __init__(self, ai_response, has_key=True):
        self.ai_response = ai_response
        self.has_key = has_key
        self.requests = []

    def diagnostics(self):
        return {"hasKey": self.has_key, "keyStatus": "configured" if self.has_key else "missing"}

    async def analyze_ux(self, request):
        self.requests.append(request)
        return build_audit_data(self.ai_response, model="fake/model", image_base64=request.image_base64)


class FakeAuditService:
    def __init__(self, ai_client, outcome=None):
        self.ai_client = ai_client
        self.outcome = outcome
        self.requests = []

    async def audit(self, request):
        self.requests.append(request)
        return self.outcome


class FakeEmail:
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    async def send_audit_report(self, recipient_email, recipient_name, platform_name, pdf_bytes):
        self.sent.append((recipient_email, recipient_name, platform_name, pdf_bytes))
        if self.error:
            raise self.error
        return "msg-1"


class FakeArchive:
    def __init__(self, status="saved"):
        self.status = status

    async def forward_report(self, pdf_bytes, audit_data, recipient_email, recipient_name, platform_name):
        return self.status


class FakeFavicons:
    async def get_favicon(self, url):
        return FaviconResult(success=False, fallback_letter="A")


@pytest.fixture
def fakes(ai_response):
    ai = FakeAI(ai_response)
    data = build_audit_data(ai_response, model="fake/contextual", url="https://acme.test")
    audit_service = FakeAuditService(ai, AuditOutcome.ok(data))
    email = FakeEmail()

    app.dependency_overrides[routes.get_ai] = lambda: ai
    app.dependency_overrides[routes.get_audit_service] = lambda: audit_service
    app.dependency_overrides[routes.get_screenshot_service] = lambda: ScreenshotService()
    app.dependency_overrides[routes.get_email_service] = lambda: email
    app.dependency_overrides[routes.get_archive_service] = lambda: FakeArchive()
    app.dependency_overrides[routes.get_favicon_service] = lambda: FakeFavicons()
    yield {"ai": ai, "audit": audit_service, "email": email, "data": data}
    app.dependency_overrides.clear()


@pytest.fixture
def client(fakes):
    return TestClient(app, raise_server_exceptions=False)


def _png(size=(64, 32)):
    buffer = io.BytesIO()
    Image.new("RGB", size, (10, 120, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


def test_health(client):
    body = client.get("/api/health").json()

    assert body["status"] == "healthy"
    assert body["service"] == "UX Audit Platform API"
    assert body["version"] == "1.0.0"
    assert "timestamp" in body


def test_status(client):
    body = client.get("/api/status").json()
    assert body["status"] == "ready"
    assert body["message"] == "UX Audit service is running"


def test_diagnostics_never_exposes_key(client):
    body = client.get("/api/diagnostics").json()

    assert body["ok"] is True
    assert body["hasKey"] is True
    assert body["keyStatus"] == "configured"
    assert body["runtime"] == "python"
    assert set(body) == {
        "ok", "hasKey", "environment", "region", "timestamp", "runtime", "pythonVersion", "keyStatus"
    }


@pytest.mark.parametrize("method", ["get", "post"])
def test_unknown_api_route(client, method):
    response = getattr(client, method)("/api/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"error": "Endpoint not found"}


@pytest.mark.parametrize(
    "form,message",
    [
        ({}, 'Invalid audit type. Must be "url" or "image"'),
        ({"type": "pdf"}, 'Invalid audit type. Must be "url" or "image"'),
        ({"type": "url"}, "URL is required for URL audit"),
        ({"type": "url", "url": "not a url"}, "Invalid URL format"),
        ({"type": "url", "url": "ftp://acme.test/file"}, "Invalid URL format"),
        ({"type": "image"}, "Image file is required for image audit"),
    ],
)
def test_audit_validation(client, form, message):
    response = client.post("/api/audit", data=form)

    assert response.status_code == 400
    assert response.json() == {"error": message}


def test_url_audit_ok(client, fakes):
    response = client.post(
        "/api/audit",
        data={"type": "url", "url": "https://acme.test", "targetAudience": "CTOs", "userGoals": ""},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["url"] == "https://acme.test"
    assert body["scores"]["overall"]["grade"] == "C"
    assert body["analysisMetadata"]["model"] == "fake/contextual"
    assert "degradedReason" not in body["analysisMetadata"]

    request = fakes["audit"].requests[0]
    assert request.target_audience == "CTOs"
    assert request.user_goals is None


def test_url_audit_degraded_still_200(client, fakes):
    data = fakes["data"]
    data.analysis_metadata.degraded_reason = "AI analysis failed: timeout"
    fakes["audit"].outcome = AuditOutcome.degraded(data, "AI analysis failed: timeout")

    response = client.post("/api/audit", data={"type": "url", "url": "https://acme.test"})

    assert response.status_code == 200
    assert response.json()["analysisMetadata"]["degradedReason"] == "AI analysis failed: timeout"


def test_url_audit_failed(client, fakes):
    fakes["audit"].outcome = AuditOutcome.failed("AI analysis failed: all model attempts exhausted")

    response = client.post("/api/audit", data={"type": "url", "url": "https://acme.test"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to complete UX analysis. Please try again.",
        "message": "AI analysis failed: all model attempts exhausted",
    }


def test_image_audit(client, fakes):
    response = client.post(
        "/api/audit",
        data={"type": "image", "businessObjectives": "More signups"},
        files={"image": ("design.png", _png(), "image/png")},
    )

    assert response.status_code == 200
    assert response.json()["imageUrl"].startswith("data:image/jpeg;base64,")
    request = fakes["ai"].requests[0]
    assert request.analysis_type == "screenshot"
    assert request.business_objectives == "More signups"


def test_image_audit_rejects_non_image(client):
    response = client.post(
        "/api/audit",
        data={"type": "image"},
        files={"image": ("notes.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "File must be an image"}


def test_image_audit_rejects_large_file(client, monkeypatch):
    monkeypatch.setattr(routes.settings, "MAX_UPLOAD_BYTES", 100)
    response = client.post(
        "/api/audit",
        data={"type": "image"},
        files={"image": ("design.png", _png((200, 200)), "image/png")},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "File too large. Maximum size is 10MB."}


def test_image_audit_undecodable_upload(client):
    response = client.post(
        "/api/audit",
        data={"type": "image"},
        files={"image": ("design.png", b"not really a png", "image/png")},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process uploaded image"}


def test_image_audit_analysis_failure(client, fakes):
    async def fail(request):
        raise AIAnalysisError("all model attempts exhausted")

    fakes["ai"].analyze_ux = fail
    response = client.post(
        "/api/audit", data={"type": "image"}, files={"image": ("design.png", _png(), "image/png")}
    )

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to complete UX analysis. Please try again."


def _share_body(fakes, **overrides):
    body = {
        "auditData": fakes["data"].model_dump(by_alias=True, exclude_none=True),
        "recipientEmail": "ann@acme.test",
        "recipientName": "Ann",
        "platformName": "Acme",
    }
    body.update(overrides)
    return body


def test_share_report_missing_fields(client):
    response = client.post("/api/share-report", json={"recipientEmail": "ann@acme.test"})

    assert response.status_code == 400
    assert response.json() == {
        "error": "Missing required fields: auditData, recipientName, platformName"
    }


def test_share_report_success(client, fakes):
    response = client.post("/api/share-report", json=_share_body(fakes))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Report sent successfully"
    assert body["to"] == "ann@acme.test"
    assert body["dbStatus"] == "saved"

    recipient, name, platform, pdf_bytes = fakes["email"].sent[0]
    assert (recipient, name, platform) == ("ann@acme.test", "Ann", "Acme")
    assert pdf_bytes.startswith(b"%PDF")


def test_share_report_email_failure(client, fakes):
    app.dependency_overrides[routes.get_email_service] = lambda: FakeEmail(
        error=EmailDeliveryError("Brevo API Error: 401 unauthorized")
    )

    response = client.post("/api/share-report", json=_share_body(fakes))

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to send report email",
        "message": "Brevo API Error: 401 unauthorized",
    }


def test_share_report_without_email_config(client, fakes):
    app.dependency_overrides[routes.get_email_service] = lambda: None

    response = client.post("/api/share-report", json=_share_body(fakes))

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to send report email"


def test_share_report_archive_failure_does_not_block(client, fakes):
    app.dependency_overrides[routes.get_archive_service] = lambda: FakeArchive("failed")

    response = client.post("/api/share-report", json=_share_body(fakes))

    assert response.status_code == 200
    assert response.json()["dbStatus"] == "failed"


def test_favicon_endpoint(client):
    body = client.get("/api/favicon", params={"url": "https://acme.test"}).json()
    assert body == {"success": False, "fallbackLetter": "A"}


def test_case_studies_endpoint(client):
    body = client.get("/api/case-studies", params={"url": "https://stripe.com", "limit": 3}).json()

    assert len(body) == 3
    assert body[0]["id"] == "pay-unified"
    assert body[0]["workType"] == ["ui-ux-design", "platform-design"]


def test_case_studies_limit_validation(client):
    response = client.get("/api/case-studies", params={"limit": 0})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"


def test_image_audit_decompression_bomb(client, monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    response = client.post(
        "/api/audit", data={"type": "image"}, files={"image": ("design.png", _png(), "image/png")}
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process uploaded image"}
