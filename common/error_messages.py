"""
User-friendly error messages and status codes.

This module provides centralized error message definitions shared by the
video routes and the global exception handlers.
"""
from typing import Tuple, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for different types of failures."""

    # Validation Errors (400)
    MISSING_PROMPT = "MISSING_PROMPT"
    MISSING_REFERENCE_IMAGES = "MISSING_REFERENCE_IMAGES"
    TOO_MANY_REFERENCE_IMAGES = "TOO_MANY_REFERENCE_IMAGES"
    MISSING_OPERATION_ID = "MISSING_OPERATION_ID"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_IMAGE_DATA = "INVALID_IMAGE_DATA"

    # Provider Errors (500)
    VIDEO_GENERATION_FAILED = "VIDEO_GENERATION_FAILED"
    OPERATION_STATUS_FAILED = "OPERATION_STATUS_FAILED"

    # Generic Errors
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


ERROR_MESSAGES = {
    ErrorCode.MISSING_PROMPT: "Prompt is required.",
    ErrorCode.MISSING_REFERENCE_IMAGES: "At least one reference image is required.",
    ErrorCode.TOO_MANY_REFERENCE_IMAGES: "At most {limit} reference images are allowed.",
    ErrorCode.MISSING_OPERATION_ID: "operationId is required",
    ErrorCode.INVALID_FORMAT: "The request body is malformed.",
    ErrorCode.INVALID_IMAGE_DATA: "is not a valid image data URL.",

    ErrorCode.VIDEO_GENERATION_FAILED: "Something went wrong generating the video.",
    ErrorCode.OPERATION_STATUS_FAILED: "Something went wrong querying operation status.",

    ErrorCode.UNKNOWN_ERROR: "Something unexpected happened. Please try again.",
}


ERROR_STATUS_CODES = {
    ErrorCode.MISSING_PROMPT: 400,
    ErrorCode.MISSING_REFERENCE_IMAGES: 400,
    ErrorCode.TOO_MANY_REFERENCE_IMAGES: 400,
    ErrorCode.MISSING_OPERATION_ID: 400,
    ErrorCode.INVALID_FORMAT: 400,
    ErrorCode.INVALID_IMAGE_DATA: 400,

    ErrorCode.VIDEO_GENERATION_FAILED: 500,
    ErrorCode.OPERATION_STATUS_FAILED: 500,

    ErrorCode.UNKNOWN_ERROR: 500,
}


def get_error_response(
    error_code: ErrorCode,
    custom_message: Optional[str] = None
) -> Tuple[str, int]:
    """
    Get user-friendly error message and HTTP status code.

    Args:
        error_code: The error code enum
        custom_message: Optional message that replaces the standard one
            (provider messages are passed through verbatim)

    Returns:
        Tuple of (error_message, status_code)
    """
    message = ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCode.UNKNOWN_ERROR])
    status_code = ERROR_STATUS_CODES.get(error_code, 500)

    if custom_message:
        message = custom_message

    return message, status_code


def format_error_detail(error_code: ErrorCode, subject: Optional[str] = None) -> str:
    """
    Format error detail for API response.

    Args:
        error_code: The error code enum
        subject: Optional subject prefixed to the standard message

    Returns:
        Formatted error message
    """
    base_message = ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCode.UNKNOWN_ERROR])

    if subject:
        return f"{subject} {base_message}"

    return base_message
