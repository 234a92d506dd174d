"""Video generation module."""
from videos.models import (
    DeferredResult,
    GenerateVideoRequest,
    ImmediateResult,
    LifecyclePhase,
    LifecycleState,
    OperationStatus,
    ReferenceImage,
)
from videos.controller import OperationLifecycleController
from videos.references import load_reference_image, load_reference_images

__all__ = [
    "DeferredResult",
    "GenerateVideoRequest",
    "ImmediateResult",
    "LifecyclePhase",
    "LifecycleState",
    "OperationStatus",
    "ReferenceImage",
    "OperationLifecycleController",
    "load_reference_image",
    "load_reference_images",
]
