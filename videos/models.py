"""Video generation Pydantic models."""
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class ReferenceImage(BaseModel):
    """Reference image sent to the provider as an asset reference."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field("reference-image", description="Display name of the image")
    image_data: str = Field(
        ...,
        validation_alias=AliasChoices("imageData", "dataUrl", "image_data"),
        serialization_alias="imageData",
        description="Image encoded as a base64 data URL",
    )


class GenerateVideoRequest(BaseModel):
    """Request model for video generation.

    Fields default to empty so the route can answer with its own 400 messages
    instead of a schema error.
    """
    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field("", description="Text prompt for video generation")
    reference_images: List[ReferenceImage] = Field(
        default_factory=list,
        validation_alias=AliasChoices("referenceImages", "reference_images"),
        serialization_alias="referenceImages",
        description="Reference images for asset-based generation",
    )

    @field_validator("prompt", "reference_images", mode="before")
    @classmethod
    def _null_as_empty(cls, value, info):
        # An explicit null is treated like a missing field.
        if value is None:
            return "" if info.field_name == "prompt" else []
        return value


class ImmediateResult(BaseModel):
    """Provider finished synchronously or the integration returned a stub."""
    status: Literal["stub"] = "stub"
    message: str


class DeferredResult(BaseModel):
    """Provider accepted the job; the operation must be polled."""
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["success"] = "success"
    operation_id: str = Field(
        ...,
        validation_alias=AliasChoices("operationId", "operation_id"),
        serialization_alias="operationId",
    )
    raw: Any = None


GenerationResult = Annotated[Union[ImmediateResult, DeferredResult], Field(discriminator="status")]

generation_result_adapter = TypeAdapter(GenerationResult)


def parse_generation_result(payload: Any) -> Union[ImmediateResult, DeferredResult]:
    """Validate a submit reply into one of the two result variants."""
    return generation_result_adapter.validate_python(payload)


class OperationStatus(BaseModel):
    """Most recent known status for an operation."""
    done: bool = False
    raw: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> "OperationStatus":
        # Anything other than a literal boolean True counts as not done yet.
        done = isinstance(raw, dict) and raw.get("done") is True
        return cls(done=done, raw=raw)


class LifecyclePhase(str, Enum):
    """Phases of a single generation operation."""
    IDLE = "idle"
    SUBMITTING = "submitting"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (LifecyclePhase.COMPLETED, LifecyclePhase.FAILED)


class LifecycleState(BaseModel):
    """State owned by the lifecycle controller; readers get copies."""
    phase: LifecyclePhase = LifecyclePhase.IDLE
    operation_id: Optional[str] = None
    last_status: Optional[OperationStatus] = None
    error_message: Optional[str] = None
    message: Optional[str] = Field(None, description="Stub message of an immediate result")
