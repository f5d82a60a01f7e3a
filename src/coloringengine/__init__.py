"""Coloring page generation engine - resilient image generation orchestration."""

from coloringengine.config import EngineSettings
from coloringengine.interfaces import IGenerator
from coloringengine.models.costs import CostBreakdown
from coloringengine.models.errors import ErrorCode, GenerationCancelled, is_retryable
from coloringengine.models.metrics import GenerationMetrics
from coloringengine.models.requests import GenerationRequest
from coloringengine.models.responses import GenerationError, GenerationResult, HealthStatus
from coloringengine.providers.base import ImageProvider
from coloringengine.providers.mock_provider import MockImageProvider
from coloringengine.providers.openai_provider import OpenAIImageProvider
from coloringengine.services.content_safety import ContentSafetyGate, SafetyVerdict
from coloringengine.services.cost_service import PRICING_TABLE, CostAccountant
from coloringengine.services.metrics_service import MetricsService
from coloringengine.services.orchestrator import GenerationOrchestrator, OrchestrationState
from coloringengine.services.request_context import CancellationToken

__version__ = "0.1.0"

__all__ = [
    # Interfaces
    "IGenerator",
    # Configuration
    "EngineSettings",
    # Response/Error types
    "GenerationResult",
    "GenerationError",
    "GenerationCancelled",
    "GenerationMetrics",
    "HealthStatus",
    "CostBreakdown",
    "ErrorCode",
    "is_retryable",
    # Request types
    "GenerationRequest",
    "CancellationToken",
    # Providers
    "ImageProvider",
    "MockImageProvider",
    "OpenAIImageProvider",
    # Services
    "GenerationOrchestrator",
    "OrchestrationState",
    "ContentSafetyGate",
    "SafetyVerdict",
    "CostAccountant",
    "PRICING_TABLE",
    "MetricsService",
]
