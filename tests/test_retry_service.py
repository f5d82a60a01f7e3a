"""Tests for retry scheduling with a fixed backoff schedule."""

import pytest

from helpers import RecordingSleep, ScriptedProvider, content_policy, explode, retryable, success
from coloringengine.models.errors import ErrorCode, GenerationCancelled
from coloringengine.models.outcomes import AttemptRetryableError, AttemptSuccess, AttemptTerminalError
from coloringengine.providers.profiles import PRIMARY, build_profile
from coloringengine.services.request_context import CancellationToken, RequestContext
from coloringengine.services.retry_service import RetryScheduler, backoff_delay, should_retry


@pytest.fixture
def profile():
    return build_profile(PRIMARY, "gpt-image-1", default_quality="high")


def test_backoff_delay_reuses_last_delay():
    """Test that a short schedule repeats its last delay."""
    assert backoff_delay([2.0, 4.0, 8.0], 0) == 2.0
    assert backoff_delay([2.0, 4.0, 8.0], 2) == 8.0
    assert backoff_delay([2.0], 5) == 2.0
    assert backoff_delay([], 0) == 0.0


def test_should_retry_only_retryable_outcomes(profile):
    """Test that only retryable errors earn another attempt."""
    assert should_retry(retryable()(profile, 0)) is True
    assert should_retry(content_policy()(profile, 0)) is False
    assert should_retry(success()(profile, 0)) is False


@pytest.mark.asyncio
async def test_retry_succeeds_after_failures(profile):
    """Test that retry succeeds after transient failures."""
    provider = ScriptedProvider(primary=[retryable(), retryable(ErrorCode.PROVIDER_TIMEOUT, None), success()])
    sleep = RecordingSleep()

    outcome = await RetryScheduler(provider, sleep=sleep).run(profile, "A dragon", {})

    assert isinstance(outcome, AttemptSuccess)
    assert outcome.attempt_index == 2
    assert len(provider.calls) == 3
    assert sleep.delays == [2.0, 4.0]


@pytest.mark.asyncio
async def test_retry_exhausts_after_max_attempts(profile):
    """Test that the last retryable error is returned after max attempts."""
    provider = ScriptedProvider(primary=[retryable()] * 3)
    sleep = RecordingSleep()

    outcome = await RetryScheduler(provider, sleep=sleep).run(profile, "A dragon", {})

    assert isinstance(outcome, AttemptRetryableError)
    assert outcome.attempt_index == 2
    assert len(provider.calls) == 3
    # No sleep after the final attempt
    assert sleep.delays == [2.0, 4.0]


@pytest.mark.asyncio
async def test_terminal_error_stops_immediately(profile):
    """Test that terminal errors are returned without retrying."""
    provider = ScriptedProvider(primary=[content_policy()])
    sleep = RecordingSleep()

    outcome = await RetryScheduler(provider, sleep=sleep).run(profile, "A dragon", {})

    assert isinstance(outcome, AttemptTerminalError)
    assert len(provider.calls) == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_custom_budget_and_schedule(profile):
    """Test that the attempt budget and delays are configurable."""
    provider = ScriptedProvider(primary=[retryable()] * 5)
    sleep = RecordingSleep()

    await RetryScheduler(provider, sleep=sleep).run(profile, "A dragon", {}, max_attempts=5, delays=[0.5, 1.0])

    assert len(provider.calls) == 5
    assert sleep.delays == [0.5, 1.0, 1.0, 1.0]


@pytest.mark.asyncio
async def test_invalid_budget_rejected(profile):
    """Test that a budget below one attempt is refused."""
    with pytest.raises(ValueError):
        await RetryScheduler(ScriptedProvider()).run(profile, "A dragon", {}, max_attempts=0)


@pytest.mark.asyncio
async def test_attempts_recorded_on_context(profile):
    """Test that attempts are counted per provider on the request context."""
    provider = ScriptedProvider(primary=[retryable(), success()])
    context = RequestContext(request_id="img_1_1")

    await RetryScheduler(provider, sleep=RecordingSleep()).run(profile, "A dragon", {}, context=context)

    assert context.attempts == {"primary": 2}


@pytest.mark.asyncio
async def test_cancelled_token_prevents_next_attempt(profile):
    """Test that a cancelled token stops retries before the next call."""
    token = CancellationToken()
    provider = ScriptedProvider(primary=[retryable(), success()])

    async def cancel_instead_of_sleeping(seconds):
        token.cancel()

    context = RequestContext(request_id="img_1_1", token=token)

    with pytest.raises(GenerationCancelled):
        await RetryScheduler(provider, sleep=cancel_instead_of_sleeping).run(
            profile, "A dragon", {}, context=context
        )

    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_raised_exception_becomes_terminal_error(profile):
    """Test that a provider exception ends the run as INTERNAL_ERROR without retrying."""
    provider = ScriptedProvider(primary=[explode(RuntimeError("boom")), success()])
    sleep = RecordingSleep()

    outcome = await RetryScheduler(provider, sleep=sleep).run(profile, "A dragon", {})

    assert isinstance(outcome, AttemptTerminalError)
    assert outcome.code == ErrorCode.INTERNAL_ERROR
    assert outcome.status_code is None
    assert "RuntimeError: boom" in outcome.reason
    assert len(provider.calls) == 1
    assert sleep.delays == []
