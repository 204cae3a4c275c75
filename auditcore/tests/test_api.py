"""
HTTP surface tests.

The app is exercised without its startup hook; services are wired onto
``app.state`` directly with scripted collaborators.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from auditcore.app.config import AuditCoreConfig
from auditcore.app.main import app, build_services
from auditcore.app.synthesis.cache import InMemoryAuditCacheStore
from auditcore.app.synthesis.pipeline import AuditSynthesisPipeline
from auditcore.app.synthesis.transcription import silent_placeholder

from auditcore.tests.synthesis.helpers import CURE_LINE, audit_response, cure_issue
from auditcore.tests.synthesis.mock_text_executor import MockTextExecutor


# ----------------------------------------------------------------------
# Test doubles
# ----------------------------------------------------------------------
class FakeTranscriber:
    def __init__(self, transcript: str) -> None:
        self.transcript = transcript
        self.filenames: list[str] = []

    async def transcribe(self, audio_bytes: bytes, filename: str) -> str:
        self.filenames.append(filename)
        return self.transcript


def _wire(executor=None, transcriber=None, config=None) -> TestClient:
    config = config or AuditCoreConfig()
    app.state.config = config
    app.state.pipeline = (
        AuditSynthesisPipeline(
            executor=executor,
            config=config,
            cache_store=InMemoryAuditCacheStore(),
        )
        if executor is not None
        else None
    )
    app.state.transcriber = transcriber
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_state():
    yield
    for name in ("config", "pipeline", "transcriber"):
        if hasattr(app.state, name):
            delattr(app.state, name)


# ----------------------------------------------------------------------
# /audit
# ----------------------------------------------------------------------
def test_audit_returns_wire_result():
    client = _wire(MockTextExecutor(responses=[audit_response(cure_issue())]))

    response = client.post("/audit", json={"text": CURE_LINE})

    assert response.status_code == 200
    body = response.json()
    assert body["risk_score"] == 80
    assert body["status"] == "NON_COMPLIANT"
    assert body["violations"][0]["problematicContent"].startswith("EVIDENCE / URL\n")


def test_audit_without_text_is_bad_request():
    client = _wire(MockTextExecutor())
    assert client.post("/audit", json={"text": "   "}).status_code == 400


def test_unknown_request_field_is_rejected():
    client = _wire(MockTextExecutor())
    assert client.post("/audit", json={"text": CURE_LINE, "score": 5}).status_code == 422


def test_audit_without_model_is_unavailable():
    client = _wire()
    assert client.post("/audit", json={"text": CURE_LINE}).status_code == 503


def test_model_failure_maps_to_bad_gateway():
    client = _wire(MockTextExecutor(mode="timeout"))

    response = client.post("/audit", json={"text": CURE_LINE})

    assert response.status_code == 502
    assert response.json()["detail"] == {"failure_type": "transport", "detail": "timeout"}


def test_email_audit():
    client = _wire(MockTextExecutor(default=audit_response()))

    response = client.post(
        "/audit",
        json={"email": {"subject": "Offer", "from": "a@example.com", "body": CURE_LINE}},
    )

    assert response.status_code == 200
    assert response.json()["detected_content_types"] == ["email"]


# ----------------------------------------------------------------------
# /audit/media
# ----------------------------------------------------------------------
def test_media_audit_transcribes_then_audits():
    transcriber = FakeTranscriber(CURE_LINE)
    client = _wire(MockTextExecutor(responses=[audit_response(cure_issue())]), transcriber)

    response = client.post(
        "/audit/media",
        files={"media": ("ad.mp3", b"ID3-fake-audio", "audio/mpeg")},
    )

    assert response.status_code == 200
    assert response.json()["detected_content_types"] == ["audio"]
    assert transcriber.filenames == ["ad.mp3"]


def test_media_rejects_non_audio_video():
    client = _wire(MockTextExecutor(), FakeTranscriber(CURE_LINE))
    response = client.post(
        "/audit/media",
        files={"media": ("doc.pdf", b"%PDF", "application/pdf")},
    )
    assert response.status_code == 400


def test_media_rejects_empty_upload():
    client = _wire(MockTextExecutor(), FakeTranscriber(CURE_LINE))
    response = client.post(
        "/audit/media",
        files={"media": ("ad.mp3", b"", "audio/mpeg")},
    )
    assert response.status_code == 400


def test_media_rejects_oversized_upload():
    client = _wire(
        MockTextExecutor(),
        FakeTranscriber(CURE_LINE),
        config=AuditCoreConfig(MAX_UPLOAD_SIZE_MB=1),
    )
    response = client.post(
        "/audit/media",
        files={"media": ("clip.mp4", b"0" * (1024 * 1024 + 1), "video/mp4")},
    )
    assert response.status_code == 413


def test_silent_media_is_unprocessable():
    executor = MockTextExecutor()
    client = _wire(executor, FakeTranscriber(silent_placeholder("ad.mp3")))

    response = client.post(
        "/audit/media",
        files={"media": ("ad.mp3", b"ID3-fake-audio", "audio/mpeg")},
    )

    assert response.status_code == 422
    assert executor.calls == 0


# ----------------------------------------------------------------------
# /audit/stream
# ----------------------------------------------------------------------
def test_stream_emits_lifecycle_events():
    client = _wire(MockTextExecutor(responses=[audit_response(cure_issue())]))

    response = client.post("/audit/stream", json={"text": CURE_LINE})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert "event: audit_started" in response.text
    assert response.text.rstrip().splitlines()[-2] == "event: audit_completed"


def test_stream_reports_failure_event():
    client = _wire(MockTextExecutor(mode="timeout"))

    response = client.post("/audit/stream", json={"text": CURE_LINE})

    assert "event: audit_failed" in response.text


# ----------------------------------------------------------------------
# Health / wiring
# ----------------------------------------------------------------------
def test_health():
    client = _wire()
    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["service"] == "auditcore"
    assert body["model_enabled"] is False


def test_disabled_provider_builds_no_services():
    assert build_services(AuditCoreConfig()) == (None, None)
