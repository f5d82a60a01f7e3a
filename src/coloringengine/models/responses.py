"""Response models for the coloring page engine."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from coloringengine.models.costs import CostBreakdown
from coloringengine.models.errors import ErrorCode, is_retryable


class GenerationError(BaseModel):
    """Error details for a failed generation."""

    model_config = ConfigDict(frozen=True)

    code: ErrorCode = Field(..., description="Error category code")
    message: str = Field(..., description="User-friendly error message")
    status_code: Optional[int] = Field(None, description="Provider HTTP status, when one was returned")
    flagged_terms: list[str] = Field(
        default_factory=list,
        description="Terms that caused a content safety rejection",
    )
    details: Optional[dict[str, Any]] = Field(None, description="Optional additional context for debugging")

    @property
    def retryable(self) -> bool:
        """Whether the client may reasonably resubmit the same request later."""
        return is_retryable(self.code)


class GenerationResult(BaseModel):
    """The single, normalized output of one orchestration."""

    model_config = ConfigDict(frozen=True)

    success: bool = Field(..., description="Whether an image was produced")
    request_id: str = Field(..., description="Correlation id shared with every log line")
    processing_time_ms: int = Field(0, ge=0, description="Wall-clock time of the orchestration")

    # Success fields
    image_ref: Optional[str] = Field(None, description="Image URL or data: URI")
    model_used: Optional[str] = Field(None, description="Model that produced the image")
    provider: Optional[str] = Field(None, description="Profile name that produced the image")
    revised_prompt: Optional[str] = Field(None, description="Prompt as rewritten by the provider")
    cost_breakdown: Optional[CostBreakdown] = None
    attempt_count: Optional[int] = Field(None, ge=1, description="Attempts made on the winning provider")
    size: Optional[str] = None
    quality: Optional[str] = None
    mock: bool = False

    # Failure fields
    error: Optional[GenerationError] = Field(None, description="Error details if success=False")
    attempts_exhausted: dict[str, int] = Field(
        default_factory=dict,
        description="Attempts made per provider before giving up",
    )

    @model_validator(mode="after")
    def validate_success_state(self):
        """Ensure success state is consistent."""
        if self.success is True:
            if not self.image_ref:
                raise ValueError("image_ref must be present when success=True")
            if self.cost_breakdown is None:
                raise ValueError("cost_breakdown must be present when success=True")
            if self.attempt_count is None:
                raise ValueError("attempt_count must be present when success=True")
            if self.error is not None:
                raise ValueError("error must be None when success=True")
        else:
            if self.error is None:
                raise ValueError("error must be present when success=False")
            if self.image_ref is not None:
                raise ValueError("image_ref must be None when success=False")
        return self

    @property
    def error_kind(self) -> Optional[ErrorCode]:
        return self.error.code if self.error else None

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error else None


class HealthStatus(BaseModel):
    """Service health snapshot for monitoring endpoints."""

    status: Literal["healthy", "degraded"] = Field(
        ...,
        description="healthy, or degraded when the real provider is unreachable. No other value is reported.",
    )
    service: str = "Coloring Page Generation Engine"
    timestamp: datetime
    mode: str = Field(..., description="real-openai-api or development-mock")
    has_real_credential: bool
    models: dict[str, str] = Field(default_factory=dict)
    features: dict[str, bool] = Field(default_factory=dict)
    provider_connected: bool = False
    connection_error: Optional[str] = None
    response_time_ms: int = Field(0, ge=0)
