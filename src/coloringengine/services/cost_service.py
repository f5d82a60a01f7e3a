"""Cost accounting for image generation attempts."""

import logging
from typing import Optional

from coloringengine.models.costs import CostBreakdown
from coloringengine.models.outcomes import ImageUsage

logger = logging.getLogger(__name__)

STANDARD_QUALITY = "standard"

# Per-image pricing in USD by model -> size -> quality.
# Source: https://platform.openai.com/docs/pricing
PRICING_TABLE: dict[str, dict[str, dict[str, float]]] = {
    "gpt-image-1": {
        "1024x1024": {"high": 0.167, "standard": 0.120},
    },
    "dall-e-3": {
        "1024x1024": {"hd": 0.080, "standard": 0.040},
        "1792x1024": {"hd": 0.120, "standard": 0.080},
        "1024x1792": {"hd": 0.120, "standard": 0.080},
    },
}

# Models billed per output token on top of the image price (USD per token).
OUTPUT_TOKEN_PRICING: dict[str, float] = {
    "gpt-image-1": 40.0 / 1_000_000,
}


def _round(amount: float) -> float:
    return round(amount, 4)


class CostAccountant:
    """Computes the cost of a completed attempt from the pricing table."""

    def __init__(
        self,
        pricing: dict[str, dict[str, dict[str, float]]] | None = None,
        token_pricing: dict[str, float] | None = None,
    ):
        self.pricing = pricing if pricing is not None else PRICING_TABLE
        self.token_pricing = token_pricing if token_pricing is not None else OUTPUT_TOKEN_PRICING

    def compute(
        self,
        model: str,
        size: str,
        quality: str,
        usage: Optional[ImageUsage] = None,
        *,
        billable: bool = True,
    ) -> CostBreakdown:
        """
        Compute the cost breakdown for one image.

        Args:
            model: Model that produced the image
            size: Size the image was generated at
            quality: Quality the image was generated at
            usage: Token usage reported by the provider
            billable: False for mock attempts, which always cost nothing

        Returns:
            CostBreakdown. Unknown model/size pairs yield zero cost with ``error`` set.
        """
        output_tokens = _output_tokens(usage)
        base = {"model": model, "size": size, "quality": quality, "output_tokens": output_tokens}

        if not billable:
            return CostBreakdown(mock=True, **base)

        model_pricing = self.pricing.get(model)
        if model_pricing is None:
            logger.warning(f"💰 [CostAccountant] No pricing for model {model}, reporting zero cost")
            return CostBreakdown(error="Unknown model", **base)

        size_pricing = model_pricing.get(size)
        if size_pricing is None:
            logger.warning(f"💰 [CostAccountant] No pricing for {model} at {size}, reporting zero cost")
            return CostBreakdown(error="Unknown size", **base)

        image_cost = size_pricing.get(quality, size_pricing.get(STANDARD_QUALITY))
        if image_cost is None:
            logger.warning(f"💰 [CostAccountant] No {quality} or standard tier for {model} at {size}")
            return CostBreakdown(error="Unknown quality", **base)

        token_price = self.token_pricing.get(model)
        token_cost = output_tokens * token_price if token_price and output_tokens else 0.0

        return CostBreakdown(
            image_cost=_round(image_cost),
            token_cost=_round(token_cost),
            total_cost=_round(image_cost + token_cost),
            **base,
        )


def _output_tokens(usage: Optional[ImageUsage]) -> int:
    if usage is None:
        return 0
    # Some responses only report a total.
    return usage.output_tokens or usage.total_tokens
