"""Metrics models for the coloring page engine."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from coloringengine.models.errors import ErrorCode


class GenerationMetrics(BaseModel):
    """Tracking data for one orchestration."""

    request_id: str = Field(..., description="Correlation id of the orchestration")
    success: bool = Field(..., description="Whether an image was produced")
    duration_ms: int = Field(..., ge=0, description="Total orchestration time in milliseconds")
    tokens_used: Optional[int] = Field(None, ge=0, description="Output tokens reported by the provider")
    estimated_cost_usd: Optional[float] = Field(None, ge=0.0, description="Estimated cost in USD")
    model_used: Optional[str] = Field(None, description="Model that produced the image")
    attempts: dict[str, int] = Field(default_factory=dict, description="Attempts made per provider")
    error_code: Optional[ErrorCode] = Field(None, description="Error category when success=False")
    mock: bool = Field(False, description="True when produced in mock mode")
    timestamp: Optional[datetime] = Field(None, description="When the orchestration completed (UTC)")
