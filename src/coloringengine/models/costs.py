"""Cost breakdown model."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CostBreakdown(BaseModel):
    """Cost of one successful generation attempt, in USD."""

    model_config = ConfigDict(frozen=True)

    image_cost: float = Field(0.0, ge=0.0, description="Per-image price from the pricing table")
    token_cost: float = Field(0.0, ge=0.0, description="Output token cost (token-billed models only)")
    total_cost: float = Field(0.0, ge=0.0, description="image_cost + token_cost")
    model: Optional[str] = None
    size: Optional[str] = None
    quality: Optional[str] = None
    output_tokens: int = Field(0, ge=0)
    error: Optional[str] = Field(None, description="Set when the model/size pair has no pricing")
    mock: bool = Field(False, description="True when produced by a mock attempt")
