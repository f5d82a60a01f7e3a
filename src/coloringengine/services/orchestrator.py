"""Generation orchestrator: safety gate, primary/fallback retries and cost accounting."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import ValidationError

from coloringengine.config import MODE_MOCK, EngineSettings
from coloringengine.models.costs import CostBreakdown
from coloringengine.models.errors import ErrorCode, GenerationCancelled
from coloringengine.models.metrics import GenerationMetrics
from coloringengine.models.outcomes import (
    AttemptError,
    AttemptSuccess,
    AttemptTerminalError,
    ImageUsage,
    more_informative_error,
)
from coloringengine.models.requests import GenerationRequest
from coloringengine.models.responses import GenerationError, GenerationResult, HealthStatus
from coloringengine.providers.base import ImageProvider
from coloringengine.providers.mock_provider import MockImageProvider
from coloringengine.providers.openai_provider import OpenAIImageProvider
from coloringengine.providers.profiles import ProviderProfile, fallback_profile, primary_profile
from coloringengine.services.content_safety import ContentSafetyGate
from coloringengine.services.cost_service import CostAccountant
from coloringengine.services.metrics_service import MetricsService
from coloringengine.services.request_context import CancellationToken, RequestContext
from coloringengine.services.retry_service import RetryScheduler, SleepFunc
from coloringengine.utils.log_utils import elapsed_ms, prompt_preview
from coloringengine.utils.request_ids import RequestIdSource

logger = logging.getLogger(__name__)


class OrchestrationState(str, Enum):
    """States of a single orchestration."""

    VALIDATING = "validating"
    FILTERING = "filtering"
    ATTEMPTING_PRIMARY = "attempting_primary"
    ATTEMPTING_FALLBACK = "attempting_fallback"
    COMPLETED = "completed"


class GenerationOrchestrator:
    """Turns a prompt into a coloring page image with retries and provider fallback."""

    def __init__(
        self,
        provider: ImageProvider,
        settings: EngineSettings,
        *,
        mode: Optional[str] = None,
        primary: Optional[ProviderProfile] = None,
        fallback: Optional[ProviderProfile] = None,
        safety_gate: Optional[ContentSafetyGate] = None,
        cost_accountant: Optional[CostAccountant] = None,
        metrics_service: Optional[MetricsService] = None,
        request_ids: Optional[RequestIdSource] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        """
        Initialize the orchestrator with explicit collaborators.

        Args:
            provider: Attempt executor shared by the primary and fallback profiles
            settings: Resolved engine settings
            mode: Mode label for logs/health (defaults to the settings' mode)
            primary: Primary profile (built from settings when omitted)
            fallback: Fallback profile (built from settings when omitted)
            safety_gate: Content gate (default keyword lists when omitted)
            cost_accountant: Cost calculator (default pricing table when omitted)
            metrics_service: Optional MetricsService for recording metrics
            request_ids: Request id source (a private one when omitted)
            sleep: Backoff sleep override, mainly for tests
        """
        self.provider = provider
        self.settings = settings
        self.mode = mode or settings.mode
        self.primary_profile = primary or primary_profile(settings)
        self.fallback_profile = fallback or fallback_profile(settings)
        self.safety_gate = safety_gate or ContentSafetyGate()
        self.cost_accountant = cost_accountant or CostAccountant()
        self.request_ids = request_ids or RequestIdSource()
        self.scheduler = RetryScheduler(provider, sleep=sleep)
        self._metrics_service = metrics_service

    @property
    def generator_type(self) -> str:
        return "coloring_page"

    @classmethod
    def from_settings(cls, settings: Optional[EngineSettings] = None, **kwargs: Any) -> "GenerationOrchestrator":
        """
        Build an orchestrator, resolving real vs mock mode once.

        Args:
            settings: Engine settings (loaded from the environment when omitted)
            **kwargs: Extra keyword arguments for the constructor

        Returns:
            Orchestrator backed by OpenAI when a real key is configured, else by MockImageProvider
        """
        settings = settings or EngineSettings()

        provider: ImageProvider
        if settings.has_real_credential:
            provider = OpenAIImageProvider(
                api_key=settings.openai_api_key.get_secret_value(),
                timeout_seconds=settings.attempt_timeout_seconds,
            )
        else:
            provider = MockImageProvider()

        logger.info(
            f"🚀 [GenerationOrchestrator] Initialized in {settings.mode} mode "
            f"(primary={settings.primary_model}, fallback={settings.fallback_model})",
            extra={"mode": settings.mode, "has_real_credential": settings.has_real_credential},
        )
        return cls(provider, settings, mode=settings.mode, **kwargs)

    async def generate(
        self,
        request: GenerationRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> GenerationResult:
        """
        Generate a coloring page image.

        Args:
            request: Generation request
            cancel_token: Optional token the caller sets to abandon the request

        Returns:
            GenerationResult. Provider failures never raise; they are reported in the result.
        """
        start = time.monotonic()
        context = RequestContext(
            request_id=request.request_id or self.request_ids.next_id(),
            token=cancel_token,
        )
        deadline = self.settings.total_deadline_seconds

        try:
            if deadline is not None:
                result = await asyncio.wait_for(self._orchestrate(request, context, start), timeout=deadline)
            else:
                result = await self._orchestrate(request, context, start)
        except asyncio.TimeoutError:
            logger.error(
                f"⏱️ [GenerationOrchestrator] Deadline of {deadline}s exceeded (request {context.request_id})",
                extra={"request_id": context.request_id, "attempts": dict(context.attempts)},
            )
            result = self._failure(
                context,
                start,
                GenerationError(
                    code=ErrorCode.DEADLINE_EXCEEDED,
                    message=f"Image generation did not finish within {deadline} seconds",
                ),
            )
        except GenerationCancelled as e:
            logger.info(
                f"🛑 [GenerationOrchestrator] {e.message} (request {context.request_id})",
                extra={"request_id": context.request_id, "attempts": dict(context.attempts)},
            )
            result = self._failure(context, start, GenerationError(code=ErrorCode.CANCELLED, message=e.message))
        except Exception as e:
            logger.exception(
                f"❌ [GenerationOrchestrator] Unexpected error (request {context.request_id}): {e}",
                extra={"request_id": context.request_id},
            )
            result = self._failure(
                context,
                start,
                GenerationError(code=ErrorCode.INTERNAL_ERROR, message=f"Unexpected error: {e}"),
            )

        self._record_metrics(result, context)
        return result

    async def generate_image(
        self,
        prompt: str,
        *,
        size: Optional[str] = None,
        quality: Optional[str] = None,
        force_fallback: bool = False,
        request_id: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> GenerationResult:
        """Build a GenerationRequest from loose options and generate it."""
        start = time.monotonic()
        try:
            request = GenerationRequest(
                prompt=prompt,
                size=size or self.settings.default_size,
                quality=quality,
                force_fallback=force_fallback,
                request_id=request_id,
            )
        except ValidationError as e:
            context = RequestContext(request_id=self.request_ids.next_id())
            fields = [".".join(str(part) for part in error["loc"]) for error in e.errors()]
            logger.warning(
                f"🚫 [GenerationOrchestrator] Invalid request fields {fields} (request {context.request_id})",
                extra={"request_id": context.request_id},
            )
            result = self._failure(
                context,
                start,
                GenerationError(
                    code=ErrorCode.INVALID_INPUT,
                    message=f"Invalid generation request: {', '.join(fields)}",
                    details={"fields": fields},
                ),
            )
            self._record_metrics(result, context)
            return result

        return await self.generate(request, cancel_token=cancel_token)

    def estimate_cost(
        self,
        model: Optional[str] = None,
        size: Optional[str] = None,
        quality: str = "high",
        estimated_tokens: int = 0,
    ) -> CostBreakdown:
        """Estimate the cost of one image without generating it."""
        return self.cost_accountant.compute(
            model or self.primary_profile.model,
            size or self.settings.default_size,
            quality,
            ImageUsage(output_tokens=estimated_tokens),
        )

    async def health_check(self) -> HealthStatus:
        """Report mode, models and provider connectivity."""
        start = time.monotonic()
        connected = False
        connection_error = None

        if self.mode != MODE_MOCK:
            try:
                connected = await self.provider.ping()
            except Exception as e:
                connection_error = str(e)

        status = "healthy" if connected or self.mode == MODE_MOCK else "degraded"
        health = HealthStatus(
            status=status,
            timestamp=datetime.now(timezone.utc),
            mode=self.mode,
            has_real_credential=self.settings.has_real_credential,
            models={"primary": self.primary_profile.model, "fallback": self.fallback_profile.model},
            features={
                "retry_logic": True,
                "cost_tracking": True,
                "content_filtering": True,
                "exponential_backoff": True,
                "cancellation": True,
            },
            provider_connected=connected,
            connection_error=connection_error,
            response_time_ms=elapsed_ms(start, time.monotonic()),
        )
        logger.info(
            f"🩺 [GenerationOrchestrator] Health check: {health.status} ({health.mode})",
            extra={"mode": health.mode, "provider_connected": connected},
        )
        return health

    async def _orchestrate(
        self,
        request: GenerationRequest,
        context: RequestContext,
        start: float,
    ) -> GenerationResult:
        self._enter(OrchestrationState.VALIDATING, context)
        prompt = request.prompt.strip()
        if not prompt:
            return self._failure(
                context,
                start,
                GenerationError(code=ErrorCode.INVALID_INPUT, message="Invalid prompt: must be a non-empty string"),
            )
        if len(prompt) > self.settings.max_prompt_length:
            return self._failure(
                context,
                start,
                GenerationError(
                    code=ErrorCode.INVALID_INPUT,
                    message=f"Invalid prompt: longer than {self.settings.max_prompt_length} characters",
                ),
            )

        self._enter(OrchestrationState.FILTERING, context)
        verdict = self.safety_gate.check(prompt)
        if not verdict.appropriate:
            logger.warning(
                f"🚫 [GenerationOrchestrator] Prompt rejected by content gate: {verdict.flagged_terms} "
                f"(request {context.request_id})",
                extra={"request_id": context.request_id, "flagged_terms": verdict.flagged_terms},
            )
            return self._failure(
                context,
                start,
                GenerationError(
                    code=ErrorCode.CONTENT_POLICY,
                    message=verdict.message,
                    flagged_terms=verdict.flagged_terms,
                ),
            )

        logger.info(
            f"🎨 [GenerationOrchestrator] Starting image generation (request {context.request_id})",
            extra={
                "request_id": context.request_id,
                "prompt_length": len(prompt),
                "prompt_preview": prompt_preview(prompt),
                "size": request.size,
                "quality": request.quality,
                "force_fallback": request.force_fallback,
                "mode": self.mode,
                "has_real_credential": self.settings.has_real_credential,
                "adult_context": verdict.adult_context,
            },
        )

        params = {"size": request.size, "quality": request.quality}
        primary_error: Optional[AttemptError] = None

        if not request.force_fallback:
            self._enter(OrchestrationState.ATTEMPTING_PRIMARY, context)
            outcome = await self._run_profile(self.primary_profile, prompt, params, context)
            if isinstance(outcome, AttemptSuccess):
                return self._success(outcome, context, start)
            primary_error = outcome
            logger.warning(
                f"🔄 [GenerationOrchestrator] Primary model {self.primary_profile.model} failed with "
                f"{outcome.code.value}, attempting fallback {self.fallback_profile.model} "
                f"(request {context.request_id})",
                extra={"request_id": context.request_id, "error_code": outcome.code.value},
            )

        self._enter(OrchestrationState.ATTEMPTING_FALLBACK, context)
        outcome = await self._run_profile(self.fallback_profile, prompt, params, context)
        if isinstance(outcome, AttemptSuccess):
            return self._success(outcome, context, start)

        surfaced = more_informative_error(primary_error, outcome)
        both_failed = primary_error is not None
        if both_failed:
            logger.error(
                f"❌ [GenerationOrchestrator] Both primary and fallback models failed "
                f"(primary={primary_error.code.value}, fallback={outcome.code.value}, "
                f"surfacing {surfaced.provider}) (request {context.request_id})",
                extra={"request_id": context.request_id, "attempts": dict(context.attempts)},
            )

        details: dict[str, Any] = {
            "both_providers_failed": both_failed,
            "fallback_error": _error_summary(outcome),
        }
        if primary_error is not None:
            details["primary_error"] = _error_summary(primary_error)

        return self._failure(
            context,
            start,
            GenerationError(
                code=surfaced.code,
                message=surfaced.reason,
                status_code=surfaced.status_code,
                details=details,
            ),
        )

    async def _run_profile(
        self,
        profile: ProviderProfile,
        prompt: str,
        params: dict[str, Any],
        context: RequestContext,
    ):
        return await self.scheduler.run(
            profile,
            prompt,
            params,
            max_attempts=self.settings.max_attempts,
            delays=self.settings.retry_delays,
            context=context,
        )

    def _enter(self, state: OrchestrationState, context: RequestContext) -> None:
        logger.debug(
            f"[GenerationOrchestrator] -> {state.value} (request {context.request_id})",
            extra={"request_id": context.request_id, "state": state.value},
        )

    def _success(self, outcome: AttemptSuccess, context: RequestContext, start: float) -> GenerationResult:
        self._enter(OrchestrationState.COMPLETED, context)
        cost = self.cost_accountant.compute(
            outcome.model,
            outcome.size,
            outcome.quality,
            outcome.usage,
            billable=outcome.billable,
        )
        result = GenerationResult(
            success=True,
            request_id=context.request_id,
            processing_time_ms=elapsed_ms(start, time.monotonic()),
            image_ref=outcome.image_ref,
            model_used=outcome.model,
            provider=outcome.provider,
            revised_prompt=outcome.revised_prompt,
            cost_breakdown=cost,
            attempt_count=outcome.attempt_index + 1,
            size=outcome.size,
            quality=outcome.quality,
            mock=not outcome.billable,
            attempts_exhausted={
                name: count for name, count in context.attempts.items() if name != outcome.provider
            },
        )
        logger.info(
            f"✅ [GenerationOrchestrator] Image generation completed with {outcome.model} in "
            f"{result.processing_time_ms}ms after {result.attempt_count} attempt(s), "
            f"cost=${cost.total_cost:.4f} (request {context.request_id})",
            extra={
                "request_id": context.request_id,
                "model": outcome.model,
                "attempt_count": result.attempt_count,
                "total_cost": cost.total_cost,
                "output_tokens": cost.output_tokens,
                "mock": result.mock,
            },
        )
        return result

    def _failure(self, context: RequestContext, start: float, error: GenerationError) -> GenerationResult:
        self._enter(OrchestrationState.COMPLETED, context)
        return GenerationResult(
            success=False,
            request_id=context.request_id,
            processing_time_ms=elapsed_ms(start, time.monotonic()),
            error=error,
            attempts_exhausted=dict(context.attempts),
        )

    def _record_metrics(self, result: GenerationResult, context: RequestContext) -> None:
        if self._metrics_service is None:
            return
        cost = result.cost_breakdown
        self._metrics_service.record(
            GenerationMetrics(
                request_id=result.request_id,
                success=result.success,
                duration_ms=result.processing_time_ms,
                tokens_used=cost.output_tokens if cost else None,
                estimated_cost_usd=cost.total_cost if cost else None,
                model_used=result.model_used,
                attempts=dict(context.attempts),
                error_code=result.error_kind,
                mock=result.mock,
                timestamp=datetime.now(timezone.utc),
            )
        )


def _error_summary(error: AttemptError) -> dict[str, Any]:
    return {
        "provider": error.provider,
        "model": error.model,
        "code": error.code.value,
        "status_code": error.status_code,
        "reason": error.reason,
        "is_content_policy": isinstance(error, AttemptTerminalError) and error.is_content_policy,
        "attempts": error.attempt_index + 1,
    }
