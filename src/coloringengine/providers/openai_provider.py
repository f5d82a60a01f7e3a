"""OpenAI image generation provider."""

import asyncio
import logging
import time
from typing import Any, Optional

import httpx
from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    RateLimitError,
)

from coloringengine.models.errors import ErrorCode, GenerationCancelled
from coloringengine.models.outcomes import (
    AttemptError,
    AttemptOutcome,
    AttemptRetryableError,
    AttemptSuccess,
    AttemptTerminalError,
    ImageUsage,
)
from coloringengine.providers.profiles import ProviderProfile
from coloringengine.services.request_context import RequestContext
from coloringengine.utils.log_utils import elapsed_ms, prompt_preview

logger = logging.getLogger(__name__)

CONTENT_POLICY_MARKERS = ("content_policy", "safety system")

CONTENT_POLICY_MESSAGE = (
    "Generated content violates the image provider's content policy. Please try a different prompt."
)


class OpenAIImageProvider:
    """Image provider using the OpenAI Images API."""

    def __init__(
        self,
        api_key: str | None = None,
        client: AsyncOpenAI | None = None,
        timeout_seconds: float = 60.0,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key, used when no client is supplied
            client: Pre-built AsyncOpenAI client (injected in tests)
            timeout_seconds: Deadline for a single attempt
        """
        if client is None:
            if not api_key:
                raise ValueError("api_key or client is required for OpenAIImageProvider")
            # Retries are owned by RetryScheduler, so the SDK must not retry on its own.
            client = AsyncOpenAI(api_key=api_key, max_retries=0, timeout=timeout_seconds)

        self.client = client
        self.timeout_seconds = timeout_seconds

    async def execute(
        self,
        profile: ProviderProfile,
        prompt: str,
        params: dict[str, Any],
        attempt_index: int,
        context: Optional[RequestContext] = None,
    ) -> AttemptOutcome:
        """
        Make one call to the Images API and classify the result.

        Args:
            profile: Provider slot (model and accepted fields)
            prompt: Final prompt text
            params: Generic ``size``/``quality`` parameters
            attempt_index: 0-based attempt index within the provider run
            context: Per-request context for correlation and cancellation

        Returns:
            AttemptOutcome for this single attempt

        Raises:
            GenerationCancelled: If the cancellation token fires during the call
        """
        request_id = context.request_id if context else None
        request = profile.build_request(prompt, params)
        start = time.monotonic()

        try:
            call = asyncio.wait_for(
                self.client.images.generate(**request, timeout=self.timeout_seconds),
                timeout=self.timeout_seconds,
            )
            response = await (context.guard(call) if context else call)
            outcome = self._to_outcome(response, profile, request, attempt_index)
        except GenerationCancelled:
            logger.info(
                f"🛑 [OpenAIImageProvider] {profile.name}/{profile.model} attempt {attempt_index + 1} "
                f"abandoned after {elapsed_ms(start, time.monotonic())}ms (request {request_id})",
                extra={"request_id": request_id, "provider": profile.name, "attempt": attempt_index},
            )
            raise
        except Exception as e:
            outcome = classify_exception(
                e,
                provider=profile.name,
                model=profile.model,
                attempt_index=attempt_index,
            )

        self._log_attempt(outcome, prompt, request_id, elapsed_ms(start, time.monotonic()))
        return outcome

    async def ping(self) -> bool:
        """List models to confirm the API key and network path work."""
        await self.client.models.list()
        return True

    def _to_outcome(
        self,
        response: Any,
        profile: ProviderProfile,
        request: dict[str, Any],
        attempt_index: int,
    ) -> AttemptOutcome:
        data = getattr(response, "data", None) or []
        image = data[0] if data else None

        url = _str_attr(image, "url")
        b64_json = _str_attr(image, "b64_json")
        # Prefer a direct reference; gpt-image-1 only ever returns base64 payloads.
        image_ref = url or (f"data:image/png;base64,{b64_json}" if b64_json else None)

        if not image_ref:
            return AttemptTerminalError(
                provider=profile.name,
                model=profile.model,
                attempt_index=attempt_index,
                code=ErrorCode.INTERNAL_ERROR,
                reason="Provider response contained no image data",
            )

        return AttemptSuccess(
            provider=profile.name,
            model=profile.model,
            attempt_index=attempt_index,
            image_ref=image_ref,
            revised_prompt=_str_attr(image, "revised_prompt"),
            usage=_extract_usage(getattr(response, "usage", None)),
            size=profile.billed_size(request),
            quality=profile.billed_quality(request),
        )

    def _log_attempt(self, outcome: AttemptOutcome, prompt: str, request_id: str | None, elapsed: int) -> None:
        extra = {
            "request_id": request_id,
            "provider": outcome.provider,
            "model": outcome.model,
            "attempt": outcome.attempt_index,
            "elapsed_ms": elapsed,
            "outcome": outcome.kind,
            "prompt_preview": prompt_preview(prompt),
        }
        label = f"{outcome.provider}/{outcome.model} attempt {outcome.attempt_index + 1}"

        if isinstance(outcome, AttemptSuccess):
            logger.info(f"✅ [OpenAIImageProvider] {label} succeeded in {elapsed}ms (request {request_id})", extra=extra)
            return

        extra["error_code"] = outcome.code.value
        extra["status_code"] = outcome.status_code
        logger.warning(
            f"⚠️ [OpenAIImageProvider] {label} failed in {elapsed}ms with {outcome.code.value} "
            f"(status={outcome.status_code}, request {request_id}): {outcome.reason}",
            extra=extra,
        )


def classify_exception(exc: Exception, *, provider: str, model: str, attempt_index: int) -> AttemptError:
    """Map an exception raised by one provider call onto an attempt outcome."""
    common = {"provider": provider, "model": model, "attempt_index": attempt_index}

    if isinstance(exc, RateLimitError):
        return AttemptRetryableError(
            code=ErrorCode.RATE_LIMITED,
            reason=f"OpenAI rate limit exceeded: {exc}",
            status_code=exc.status_code,
            **common,
        )
    if isinstance(exc, (APITimeoutError, asyncio.TimeoutError, httpx.TimeoutException)):
        return AttemptRetryableError(
            code=ErrorCode.PROVIDER_TIMEOUT,
            reason=f"OpenAI request timed out: {str(exc) or type(exc).__name__}",
            **common,
        )
    if isinstance(exc, (APIConnectionError, httpx.TransportError)):
        return AttemptRetryableError(
            code=ErrorCode.PROVIDER_UNAVAILABLE,
            reason=f"Could not reach OpenAI: {exc}",
            **common,
        )
    if isinstance(exc, APIStatusError):
        status_code = exc.status_code
        if status_code == 429:
            return AttemptRetryableError(
                code=ErrorCode.RATE_LIMITED,
                reason=f"OpenAI rate limit exceeded: {exc}",
                status_code=status_code,
                **common,
            )
        if status_code >= 500:
            return AttemptRetryableError(
                code=ErrorCode.PROVIDER_OVERLOADED,
                reason=f"OpenAI server error {status_code}: {exc}",
                status_code=status_code,
                **common,
            )
        if status_code == 400 and is_content_policy_error(exc):
            return AttemptTerminalError(
                code=ErrorCode.CONTENT_POLICY,
                reason=CONTENT_POLICY_MESSAGE,
                status_code=status_code,
                is_content_policy=True,
                **common,
            )
        # Non-retryable error (4xx client errors)
        return AttemptTerminalError(
            code=ErrorCode.PROVIDER_REJECTED,
            reason=f"OpenAI API error {status_code}: {exc}",
            status_code=status_code,
            **common,
        )

    return AttemptTerminalError(
        code=ErrorCode.INTERNAL_ERROR,
        reason=f"OpenAI generation failed: {type(exc).__name__}: {exc}",
        **common,
    )


def is_content_policy_error(exc: APIStatusError) -> bool:
    """Whether a 400 response carries OpenAI's content-policy indicator."""
    candidates = [str(exc), str(getattr(exc, "code", "") or "")]
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        candidates.extend(str(body.get(key) or "") for key in ("code", "type", "message"))
    text = " ".join(candidates).lower()
    return any(marker in text for marker in CONTENT_POLICY_MARKERS)


def _str_attr(obj: Any, name: str) -> Optional[str]:
    value = getattr(obj, name, None)
    return value if isinstance(value, str) and value else None


def _int_attr(obj: Any, name: str) -> int:
    value = getattr(obj, name, None)
    return value if isinstance(value, int) and value >= 0 else 0


def _extract_usage(usage: Any) -> ImageUsage:
    if usage is None:
        return ImageUsage()
    return ImageUsage(
        input_tokens=_int_attr(usage, "input_tokens"),
        output_tokens=_int_attr(usage, "output_tokens"),
        total_tokens=_int_attr(usage, "total_tokens"),
    )
