"""
Tests for the video generation API.

Covers both proxy endpoints:
1. POST /api/generate-video (validation, stub fallback, deferred result)
2. GET /api/operations/{operationId} (handle decoding, verbatim payloads)
"""
import base64

import pytest
from fastapi.testclient import TestClient

import videos.routes as routes
from app import app
from config import Config
from videos.models import DeferredResult, ImmediateResult
from videos.services import ProviderError

PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(b"\x89PNG\r\n\x1a\nfake-png").decode("ascii")
TEXT_DATA_URL = "data:text/plain;base64," + base64.b64encode(b"not an image").decode("ascii")


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def no_provider_call(monkeypatch):
    """Fail the test if the route reaches the provider."""
    def _fail(**kwargs):
        raise AssertionError("provider must not be called")

    monkeypatch.setattr(routes, "generate_video_with_google", _fail)


def _payload(prompt="A serene lake at sunset", images=None):
    if images is None:
        images = [{"name": "lake.png", "imageData": PNG_DATA_URL}]
    return {"prompt": prompt, "referenceImages": images}


def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
def test_blank_prompt_is_rejected(client, no_provider_call, prompt):
    response = client.post("/api/generate-video", json=_payload(prompt=prompt))

    assert response.status_code == 400
    assert response.json() == {"error": "Prompt is required."}


def test_missing_reference_images_is_rejected(client, no_provider_call):
    response = client.post("/api/generate-video", json=_payload(images=[]))

    assert response.status_code == 400
    assert response.json() == {"error": "At least one reference image is required."}


def test_missing_fields_default_to_validation_errors(client, no_provider_call):
    response = client.post("/api/generate-video", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Prompt is required."}


def test_non_image_reference_is_rejected(client, no_provider_call):
    images = [{"name": "notes.txt", "imageData": TEXT_DATA_URL}]
    response = client.post("/api/generate-video", json=_payload(images=images))

    assert response.status_code == 400
    assert response.json() == {"error": "Reference image 'notes.txt' is not a valid image data URL."}


def test_malformed_body_is_a_client_error(client, no_provider_call):
    response = client.post(
        "/api/generate-video",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert "error" in response.json()


def test_stub_fallback_without_credentials(client, monkeypatch):
    monkeypatch.setattr(Config, "GOOGLE_GENAI_API_KEY", "")
    monkeypatch.setattr(Config, "VIDEO_GENERATION_ENABLED", True)

    response = client.post("/api/generate-video", json=_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "stub"
    assert "GOOGLE_GENAI_API_KEY" in body["message"]


def test_deferred_result_shape(client, monkeypatch):
    calls = []

    def fake_generate(prompt, reference_images):
        calls.append((prompt, reference_images))
        return DeferredResult(operation_id="op-123", raw={"done": False})

    monkeypatch.setattr(routes, "generate_video_with_google", fake_generate)

    response = client.post("/api/generate-video", json=_payload(prompt="  A lake  "))

    assert response.status_code == 200
    assert response.json() == {"status": "success", "operationId": "op-123", "raw": {"done": False}}
    assert calls[0][0] == "A lake"
    assert calls[0][1][0].name == "lake.png"


def test_reference_images_are_capped(client, monkeypatch):
    seen = {}

    def fake_generate(prompt, reference_images):
        seen["count"] = len(reference_images)
        return ImmediateResult(message="ok")

    monkeypatch.setattr(routes, "generate_video_with_google", fake_generate)
    monkeypatch.setattr(Config, "MAX_REFERENCE_IMAGES", 4)

    images = [{"name": f"ref-{i}.png", "imageData": PNG_DATA_URL} for i in range(6)]
    response = client.post("/api/generate-video", json=_payload(images=images))

    assert response.status_code == 200
    assert seen["count"] == 4


def test_data_url_key_is_accepted(client, monkeypatch):
    monkeypatch.setattr(routes, "generate_video_with_google", lambda prompt, reference_images: ImmediateResult(message="ok"))

    images = [{"name": "lake.png", "dataUrl": PNG_DATA_URL}]
    response = client.post("/api/generate-video", json=_payload(images=images))

    assert response.status_code == 200
    assert response.json() == {"status": "stub", "message": "ok"}


def test_provider_failure_is_a_server_error(client, monkeypatch):
    def fake_generate(prompt, reference_images):
        raise ProviderError("quota exceeded")

    monkeypatch.setattr(routes, "generate_video_with_google", fake_generate)

    response = client.post("/api/generate-video", json=_payload())

    assert response.status_code == 500
    assert response.json() == {"error": "quota exceeded"}


def test_status_requires_operation_id(client):
    response = client.get("/api/operations/")

    assert response.status_code == 400
    assert response.json() == {"error": "operationId is required"}


def test_status_blank_operation_id(client):
    response = client.get("/api/operations/%20%20")

    assert response.status_code == 400
    assert response.json() == {"error": "operationId is required"}


def test_status_returns_provider_payload_verbatim(client, monkeypatch):
    payload = {"name": "op-123", "done": True, "response": {"generated_videos": [{"video": {"uri": "gs://x"}}]}}
    seen = []

    def fake_status(operation_id):
        seen.append(operation_id)
        return payload

    monkeypatch.setattr(routes, "get_operation_status", fake_status)

    response = client.get("/api/operations/op-123")

    assert response.status_code == 200
    assert response.json() == payload
    assert seen == ["op-123"]


def test_status_decodes_encoded_handle(client, monkeypatch):
    seen = []

    def fake_status(operation_id):
        seen.append(operation_id)
        return {"done": False}

    monkeypatch.setattr(routes, "get_operation_status", fake_status)

    response = client.get("/api/operations/models%2Fveo-3.1-generate-preview%2Foperations%2Fabc123")

    assert response.status_code == 200
    assert seen == ["models/veo-3.1-generate-preview/operations/abc123"]


def test_status_provider_failure(client, monkeypatch):
    def fake_status(operation_id):
        raise ProviderError("operation not found")

    monkeypatch.setattr(routes, "get_operation_status", fake_status)

    response = client.get("/api/operations/op-404")

    assert response.status_code == 500
    assert response.json() == {"error": "operation not found"}


def test_null_prompt_is_reported_as_missing(client, no_provider_call):
    response = client.post("/api/generate-video", json={"prompt": None, "referenceImages": [{"name": "lake.png", "imageData": PNG_DATA_URL}]})

    assert response.status_code == 400
    assert response.json() == {"error": "Prompt is required."}


def test_null_reference_images_are_reported_as_missing(client, no_provider_call):
    response = client.post("/api/generate-video", json={"prompt": "A lake", "referenceImages": None})

    assert response.status_code == 400
    assert response.json() == {"error": "At least one reference image is required."}
