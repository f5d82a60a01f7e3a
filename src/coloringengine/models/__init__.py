"""Models package for the coloring page engine."""

from coloringengine.models.costs import CostBreakdown
from coloringengine.models.errors import ErrorCode, GenerationCancelled, is_retryable
from coloringengine.models.metrics import GenerationMetrics
from coloringengine.models.outcomes import (
    AttemptError,
    AttemptOutcome,
    AttemptRetryableError,
    AttemptSuccess,
    AttemptTerminalError,
    ImageUsage,
    more_informative_error,
)
from coloringengine.models.requests import GenerationRequest
from coloringengine.models.responses import GenerationError, GenerationResult, HealthStatus

__all__ = [
    "AttemptError",
    "AttemptOutcome",
    "AttemptRetryableError",
    "AttemptSuccess",
    "AttemptTerminalError",
    "CostBreakdown",
    "ErrorCode",
    "GenerationCancelled",
    "GenerationError",
    "GenerationMetrics",
    "GenerationRequest",
    "GenerationResult",
    "HealthStatus",
    "ImageUsage",
    "is_retryable",
    "more_informative_error",
]
