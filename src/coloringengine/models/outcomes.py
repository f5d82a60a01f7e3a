"""Attempt outcome models.

Each provider call produces exactly one of three outcomes. They are consumed
immediately by the retry scheduler and never persisted.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from coloringengine.models.errors import ErrorCode


class ImageUsage(BaseModel):
    """Token usage reported by the provider for one call."""

    model_config = ConfigDict(frozen=True)

    input_tokens: int = Field(0, ge=0)
    output_tokens: int = Field(0, ge=0)
    total_tokens: int = Field(0, ge=0)


class _AttemptBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: str = Field(..., description="Profile name of the provider (primary/fallback)")
    model: str = Field(..., description="Model the attempt was sent to")
    attempt_index: int = Field(..., ge=0, description="0-based index within the provider run")


class AttemptSuccess(_AttemptBase):
    """The provider returned an image."""

    kind: Literal["success"] = "success"
    image_ref: str = Field(..., min_length=1, description="URL or data: URI of the image")
    revised_prompt: Optional[str] = None
    usage: ImageUsage = Field(default_factory=ImageUsage)
    size: str = Field(..., description="Size the image was billed at")
    quality: str = Field(..., description="Quality the image was billed at")
    billable: bool = Field(True, description="False for mock attempts that cost nothing")


class AttemptRetryableError(_AttemptBase):
    """Rate limit, timeout, network or 5xx failure. Worth another attempt."""

    kind: Literal["retryable_error"] = "retryable_error"
    code: ErrorCode
    reason: str
    status_code: Optional[int] = None


class AttemptTerminalError(_AttemptBase):
    """Failure that another attempt on the same provider cannot fix."""

    kind: Literal["terminal_error"] = "terminal_error"
    code: ErrorCode
    reason: str
    status_code: Optional[int] = None
    is_content_policy: bool = False


AttemptError = Union[AttemptRetryableError, AttemptTerminalError]

AttemptOutcome = Annotated[
    Union[AttemptSuccess, AttemptRetryableError, AttemptTerminalError],
    Field(discriminator="kind"),
]


def more_informative_error(primary: Optional[AttemptError], fallback: AttemptError) -> AttemptError:
    """Pick the error to surface when both providers failed.

    Precedence: content-policy rejection > error with a provider status code >
    bare error. On a tie the primary error wins.
    """
    if primary is None:
        return fallback
    if _informativeness(fallback) > _informativeness(primary):
        return fallback
    return primary


def _informativeness(error: AttemptError) -> int:
    if isinstance(error, AttemptTerminalError) and error.is_content_policy:
        return 2
    if error.status_code is not None:
        return 1
    return 0
