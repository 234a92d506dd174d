"""Video generation routes."""
from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from common.error_messages import ErrorCode, format_error_detail, get_error_response
from config import Config
from utils.logger import get_logger
from videos.models import DeferredResult, GenerateVideoRequest, GenerationResult
from videos.services import (
    ProviderError,
    generate_video_with_google,
    get_operation_status,
    is_image_data_url,
)

logger = get_logger("videos")
router = APIRouter(tags=["videos"])


def _raise(error_code: ErrorCode, custom_message: str = None):
    message, status_code = get_error_response(error_code, custom_message)
    raise HTTPException(status_code=status_code, detail=message)


@router.post("/api/generate-video", response_model=GenerationResult, response_model_by_alias=True)
def generate_video_endpoint(req: GenerateVideoRequest):
    """
    Submit a Veo generation job.

    Accepts:
      { prompt: "...", referenceImages: [{ name, imageData }] }

    Behavior:
      - reject blank prompts, missing or non-image reference images (400)
      - keep at most MAX_REFERENCE_IMAGES images
      - return { status: "stub", message } when Veo cannot be used
      - return { status: "success", operationId, raw } when Veo accepted the job
    """
    prompt = req.prompt.strip()
    if not prompt:
        _raise(ErrorCode.MISSING_PROMPT)

    reference_images = req.reference_images[:Config.MAX_REFERENCE_IMAGES]
    if not reference_images:
        _raise(ErrorCode.MISSING_REFERENCE_IMAGES)
    if len(req.reference_images) > len(reference_images):
        logger.warning(f"Dropping {len(req.reference_images) - len(reference_images)} reference image(s) over the limit of {Config.MAX_REFERENCE_IMAGES}")

    for image in reference_images:
        if not is_image_data_url(image.image_data):
            raise HTTPException(
                status_code=400,
                detail=format_error_detail(ErrorCode.INVALID_IMAGE_DATA, f"Reference image '{image.name}'"),
            )

    logger.info(f"Video generation request - references: {len(reference_images)}, prompt: '{prompt[:50]}'")
    try:
        result = generate_video_with_google(prompt=prompt, reference_images=reference_images)
    except ProviderError as e:
        logger.error(f"Video generation failed: {e}")
        _raise(ErrorCode.VIDEO_GENERATION_FAILED, str(e))

    if isinstance(result, DeferredResult):
        logger.info(f"Video generation deferred as operation {result.operation_id}")
    return result


@router.get("/api/operations/{operation_id:path}")
def operation_status_endpoint(operation_id: str) -> Dict[str, Any]:
    """
    Return the provider's status payload for an operation handle, unmodified.
    """
    # Starlette has already percent-decoded the path segment.
    decoded_id = (operation_id or "").strip()
    if not decoded_id:
        _raise(ErrorCode.MISSING_OPERATION_ID)

    try:
        return get_operation_status(decoded_id)
    except ProviderError as e:
        logger.error(f"Operation status lookup failed for {decoded_id}: {e}")
        _raise(ErrorCode.OPERATION_STATUS_FAILED, str(e))
