"""Request models for the coloring page engine."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerationRequest(BaseModel):
    """Request model for a single coloring page generation.

    Emptiness and length of ``prompt`` are checked by the orchestrator rather
    than here, so a blank prompt still produces a normal failure result.
    """

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="Final (already refined) image generation prompt")
    size: str = Field(
        "1024x1024",
        pattern=r"^(\d{3,4}x\d{3,4}|auto)$",
        description="Output image dimensions as WIDTHxHEIGHT",
    )
    quality: Optional[str] = Field(
        None,
        min_length=1,
        description="Requested quality. Translated per provider; provider default when omitted.",
    )
    force_fallback: bool = Field(False, description="Skip the primary provider entirely")
    request_id: Optional[str] = Field(
        None,
        min_length=1,
        description="Correlation id. Assigned by the orchestrator when omitted.",
    )
