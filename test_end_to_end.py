"""Controller driving the real FastAPI app in-process through httpx.ASGITransport."""
import asyncio
import base64

import httpx

import videos.routes as routes
from app import app
from config import Config
from videos.controller import OperationLifecycleController
from videos.models import DeferredResult, GenerateVideoRequest, LifecyclePhase, ReferenceImage

PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(b"\x89PNG\r\n\x1a\nfake-png").decode("ascii")
TEXT_DATA_URL = "data:text/plain;base64," + base64.b64encode(b"hello").decode("ascii")


def _controller():
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
    return OperationLifecycleController(base_url="http://testserver", poll_interval=0.01, http_client=client)


def _request(image_data=PNG_DATA_URL):
    return GenerateVideoRequest(
        prompt="A lighthouse in a storm",
        reference_images=[ReferenceImage(name="lighthouse.png", image_data=image_data)],
    )


def test_stub_fallback_reaches_completed(monkeypatch):
    monkeypatch.setattr(Config, "GOOGLE_GENAI_API_KEY", "")
    monkeypatch.setattr(Config, "VIDEO_GENERATION_ENABLED", True)
    status_calls = []
    monkeypatch.setattr(routes, "get_operation_status", lambda operation_id: status_calls.append(operation_id))

    async def scenario():
        async with _controller() as controller:
            await controller.submit(_request())
            return await controller.wait()

    state = asyncio.run(scenario())

    assert state.phase == LifecyclePhase.COMPLETED
    assert "GOOGLE_GENAI_API_KEY" in state.message
    assert status_calls == []


def test_deferred_operation_is_polled_to_completion(monkeypatch):
    replies = [{"name": "models/veo/operations/op-123", "done": False}, {"name": "models/veo/operations/op-123", "done": True}]
    seen = []

    def fake_status(operation_id):
        seen.append(operation_id)
        return replies.pop(0)

    monkeypatch.setattr(
        routes,
        "generate_video_with_google",
        lambda prompt, reference_images: DeferredResult(operation_id="models/veo/operations/op-123", raw={"done": False}),
    )
    monkeypatch.setattr(routes, "get_operation_status", fake_status)

    async def scenario():
        async with _controller() as controller:
            await controller.submit(_request())
            assert controller.current_state().phase == LifecyclePhase.POLLING
            return await controller.wait()

    state = asyncio.run(scenario())

    assert state.phase == LifecyclePhase.COMPLETED
    assert state.operation_id == "models/veo/operations/op-123"
    assert seen == ["models/veo/operations/op-123", "models/veo/operations/op-123"]


def test_non_image_reference_fails_before_provider(monkeypatch):
    def _fail(**kwargs):
        raise AssertionError("provider must not be called")

    monkeypatch.setattr(routes, "generate_video_with_google", _fail)

    async def scenario():
        async with _controller() as controller:
            await controller.submit(_request(image_data=TEXT_DATA_URL))
            return controller.current_state()

    state = asyncio.run(scenario())

    assert state.phase == LifecyclePhase.FAILED
    assert state.error_message == "Reference image 'lighthouse.png' is not a valid image data URL."


def test_percent_in_operation_handle_reaches_provider_unchanged(monkeypatch):
    seen = []

    def fake_status(operation_id):
        seen.append(operation_id)
        return {"name": operation_id, "done": True}

    monkeypatch.setattr(
        routes,
        "generate_video_with_google",
        lambda prompt, reference_images: DeferredResult(operation_id="ops/a%20b", raw={"done": False}),
    )
    monkeypatch.setattr(routes, "get_operation_status", fake_status)

    async def scenario():
        async with _controller() as controller:
            await controller.submit(_request())
            return await controller.wait()

    state = asyncio.run(scenario())

    assert state.phase == LifecyclePhase.COMPLETED
    assert seen == ["ops/a%20b"]
