"""Video generation services - Gemini Veo integration.

Submissions are normalized into one of two results: an immediate stub when the
provider cannot be used, or a deferred operation handle to be polled through
``get_operation_status``.
"""
import base64
import binascii
import re
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx

from config import Config
from utils.logger import get_logger
from videos.models import DeferredResult, ImmediateResult, ReferenceImage

logger = get_logger("videos.services")

# Gemini client
try:
    from google import genai
    from google.genai import errors as genai_errors
    from google.genai import types
except Exception:
    genai = None
    genai_errors = None
    types = None


DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?P<params>(;[^;,]*)*?);base64,(?P<data>.*)$", re.DOTALL)

# Provider replies that mean the credential itself is unusable
CREDENTIAL_ERROR_CODES = (401, 403)


class ProviderError(RuntimeError):
    """Provider or transport failure surfaced to the caller with its message."""


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """
    Split a base64 data URL into its mime type and decoded bytes.

    Raises:
        ValueError: if the value is not a base64 data URL
    """
    match = DATA_URL_PATTERN.match((data_url or "").strip())
    if not match:
        raise ValueError("Expected a base64 data URL")
    try:
        payload = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e
    if not payload:
        raise ValueError("Data URL payload is empty")
    return match.group("mime").lower(), payload


def is_image_data_url(data_url: str) -> bool:
    """True when the value is a decodable data URL declaring an image/* type."""
    try:
        mime_type, _ = parse_data_url(data_url)
    except ValueError:
        return False
    return mime_type.startswith("image/")


def _stub(message: str) -> ImmediateResult:
    logger.warning(f"Returning stub result: {message}")
    return ImmediateResult(message=message)


def _unavailable_reason() -> Optional[str]:
    """Explain why the provider cannot be called, or None when it can."""
    if not Config.VIDEO_GENERATION_ENABLED:
        return "Video generation is disabled (VIDEO_GENERATION_ENABLED=false)."
    if not Config.has_google_credentials():
        return "GOOGLE_GENAI_API_KEY is not configured."
    if genai is None or types is None:
        return "google-genai is not installed."
    return None


def _get_client():
    return genai.Client(api_key=Config.get_google_api_key())


def _serialize_operation(operation: Any) -> Dict[str, Any]:
    """Convert an SDK operation into a JSON-safe dict, keeping `done` and `name`."""
    if isinstance(operation, dict):
        return operation
    if hasattr(operation, "model_dump"):
        return operation.model_dump(mode="json", exclude_none=True)
    return {
        "name": getattr(operation, "name", None),
        "done": getattr(operation, "done", None),
    }


def _build_reference_payload(reference_images: List[ReferenceImage]) -> List[Dict[str, Any]]:
    payload = []
    for image in reference_images:
        mime_type, image_bytes = parse_data_url(image.image_data)
        payload.append({
            "image": {
                "imageBytes": image_bytes,
                "mimeType": mime_type,
            },
            "referenceType": "ASSET",
        })
        logger.info(f"Added reference image '{image.name}' with mime type: {mime_type}")
    return payload


def generate_video_with_google(
    prompt: str,
    reference_images: List[ReferenceImage],
) -> Union[ImmediateResult, DeferredResult]:
    """
    Submit a Veo generation job.

    Args:
        prompt: Text prompt (already trimmed and validated by the route)
        reference_images: Reference images (already bounded by the route)

    Returns:
        ImmediateResult when the provider is disabled, unconfigured or
        unreachable; DeferredResult with the operation name otherwise.

    Raises:
        ProviderError: the provider rejected the job for any other reason
    """
    reason = _unavailable_reason()
    if reason:
        return _stub(f"{reason} Returning a stub response instead of calling Veo.")

    generate_video_payload = {
        "model": Config.VEO_MODEL,
        "prompt": prompt,
        "config": {
            "numberOfVideos": 1,
            "referenceImages": _build_reference_payload(reference_images),
        },
    }

    logger.info(f"Submitting video generation request to Veo (model: {Config.VEO_MODEL}, references: {len(reference_images)})")
    try:
        client = _get_client()
        operation = client.models.generate_videos(**generate_video_payload)
    except httpx.TransportError as e:
        return _stub(f"Veo is unreachable ({e}); returning a stub response.")
    except Exception as e:
        if genai_errors is not None and isinstance(e, genai_errors.APIError):
            if e.code in CREDENTIAL_ERROR_CODES:
                return _stub(f"Veo rejected the configured credential: {e.message or e}")
            logger.error(f"Video generation request failed: {e}")
            raise ProviderError(e.message or str(e)) from e
        logger.error(f"Video generation request failed: {e}", exc_info=True)
        raise ProviderError(str(e) or "Video generation failed") from e

    raw = _serialize_operation(operation)
    operation_id = raw.get("name") or getattr(operation, "name", None)
    if not operation_id:
        raise ProviderError("Veo did not return an operation name")

    logger.info(f"Video generation operation started: {operation_id}")
    return DeferredResult(operation_id=operation_id, raw=raw)


def get_operation_status(operation_id: str) -> Dict[str, Any]:
    """
    Look up a Veo operation and return the provider payload as-is.

    `done` is not interpreted here; callers decide completion.

    Raises:
        ProviderError: provider unavailable or the lookup failed
    """
    reason = _unavailable_reason()
    if reason:
        raise ProviderError(f"{reason} Operation status cannot be queried.")

    logger.debug(f"Querying operation status: {operation_id}")
    try:
        client = _get_client()
        operation = client.operations.get(types.GenerateVideosOperation(name=operation_id))
    except httpx.TransportError as e:
        logger.error(f"Operation status request failed: {e}")
        raise ProviderError(f"Veo is unreachable: {e}") from e
    except Exception as e:
        message = getattr(e, "message", None) or str(e) or "Operation status request failed"
        logger.error(f"Operation status request failed for {operation_id}: {message}")
        raise ProviderError(message) from e

    status = _serialize_operation(operation)
    logger.info(f"Operation {operation_id} done={status.get('done')}")
    return status
