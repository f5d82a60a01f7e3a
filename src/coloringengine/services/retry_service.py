"""Retry scheduling with a fixed backoff schedule for provider attempts."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt
from tenacity.wait import wait_base

from coloringengine.models.errors import ErrorCode, GenerationCancelled
from coloringengine.models.outcomes import (
    AttemptOutcome,
    AttemptRetryableError,
    AttemptSuccess,
    AttemptTerminalError,
)
from coloringengine.providers.base import ImageProvider
from coloringengine.providers.profiles import ProviderProfile
from coloringengine.services.request_context import RequestContext

logger = logging.getLogger(__name__)

# Standard retry configuration: 3 attempts, sleeping 2s then 4s between them
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAYS = (2.0, 4.0, 8.0)

SleepFunc = Callable[[float], Awaitable[Any]]


def should_retry(outcome: AttemptOutcome) -> bool:
    """Only rate limits and transient failures earn another attempt."""
    return isinstance(outcome, AttemptRetryableError)


def backoff_delay(delays: Sequence[float], attempt_index: int) -> float:
    """Delay after the attempt at ``attempt_index``; the last delay repeats if the schedule is short."""
    if not delays:
        return 0.0
    return delays[min(attempt_index, len(delays) - 1)]


class wait_schedule(wait_base):
    """Tenacity wait strategy that reads delays from a fixed schedule."""

    def __init__(self, delays: Sequence[float]):
        self.delays = tuple(delays)

    def __call__(self, retry_state: RetryCallState) -> float:
        return backoff_delay(self.delays, retry_state.attempt_number - 1)


class RetryScheduler:
    """Drives sequential attempts against one provider profile."""

    def __init__(self, provider: ImageProvider, sleep: Optional[SleepFunc] = None):
        """
        Initialize the scheduler.

        Args:
            provider: Executor that performs single attempts
            sleep: Override for the backoff sleep. Defaults to the request
                context's cancellable sleep, or asyncio.sleep without a context.
        """
        self.provider = provider
        self._sleep = sleep

    async def run(
        self,
        profile: ProviderProfile,
        prompt: str,
        params: dict[str, Any],
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delays: Sequence[float] = DEFAULT_RETRY_DELAYS,
        context: Optional[RequestContext] = None,
    ) -> AttemptOutcome:
        """
        Attempt generation until success, a terminal error, or budget exhaustion.

        Args:
            profile: Provider slot to call
            prompt: Final prompt text
            params: Generic ``size``/``quality`` parameters
            max_attempts: Attempt budget for this provider run
            delays: Backoff schedule in seconds
            context: Per-request context for correlation and cancellation

        Returns:
            The first success, the first terminal error, or the last retryable error

        Raises:
            GenerationCancelled: If the cancellation token fires between or during attempts
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        request_id = context.request_id if context else None
        outcome: Optional[AttemptOutcome] = None

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_schedule(delays),
            retry=retry_if_result(should_retry),
            before_sleep=self._log_backoff(profile, max_attempts, request_id),
            sleep=self._resolve_sleep(context),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )

        async for attempt in retrying:
            with attempt:
                attempt_index = attempt.retry_state.attempt_number - 1
                if context is not None:
                    context.raise_if_cancelled()
                    context.record_attempt(profile.name)
                outcome = await self._execute(profile, prompt, params, attempt_index, context)
            if not attempt.retry_state.outcome.failed:
                attempt.retry_state.set_result(outcome)

        self._log_final(profile, outcome, max_attempts, request_id)
        return outcome

    async def _execute(
        self,
        profile: ProviderProfile,
        prompt: str,
        params: dict[str, Any],
        attempt_index: int,
        context: Optional[RequestContext],
    ) -> AttemptOutcome:
        try:
            return await self.provider.execute(profile, prompt, params, attempt_index, context)
        except GenerationCancelled:
            raise
        except Exception as e:
            request_id = context.request_id if context else None
            logger.exception(
                f"❌ [RetryScheduler] {profile.name}/{profile.model} raised {type(e).__name__} on attempt "
                f"{attempt_index + 1} (request {request_id})",
                extra={"request_id": request_id, "provider": profile.name, "attempt": attempt_index},
            )
            return AttemptTerminalError(
                provider=profile.name,
                model=profile.model,
                attempt_index=attempt_index,
                code=ErrorCode.INTERNAL_ERROR,
                reason=f"Provider {profile.model} failed unexpectedly: {type(e).__name__}: {e}",
            )

    def _resolve_sleep(self, context: Optional[RequestContext]) -> SleepFunc:
        if self._sleep is not None:
            return self._sleep
        if context is not None:
            return context.sleep
        return asyncio.sleep

    @staticmethod
    def _log_backoff(profile: ProviderProfile, max_attempts: int, request_id: Optional[str]):
        def before_sleep(retry_state: RetryCallState) -> None:
            outcome = retry_state.outcome.result()
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            logger.warning(
                f"🔁 [RetryScheduler] {profile.name}/{profile.model} {outcome.code.value} on attempt "
                f"{retry_state.attempt_number}/{max_attempts}, retrying in {delay}s (request {request_id})",
                extra={
                    "request_id": request_id,
                    "provider": profile.name,
                    "attempt": retry_state.attempt_number - 1,
                    "delay_seconds": delay,
                    "error_code": outcome.code.value,
                },
            )

        return before_sleep

    @staticmethod
    def _log_final(
        profile: ProviderProfile,
        outcome: AttemptOutcome,
        max_attempts: int,
        request_id: Optional[str],
    ) -> None:
        extra = {"request_id": request_id, "provider": profile.name, "outcome": outcome.kind}
        if isinstance(outcome, AttemptSuccess):
            logger.debug(f"[RetryScheduler] {profile.name} succeeded on attempt {outcome.attempt_index + 1}", extra=extra)
        elif isinstance(outcome, AttemptTerminalError):
            logger.warning(
                f"⛔ [RetryScheduler] {profile.name}/{profile.model} terminal {outcome.code.value}, "
                f"not retrying (request {request_id})",
                extra=extra,
            )
        else:
            logger.error(
                f"❌ [RetryScheduler] {profile.name}/{profile.model} failed after {max_attempts} attempts: "
                f"{outcome.code.value} (request {request_id})",
                extra=extra,
            )
