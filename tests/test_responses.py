"""Contract tests for result and outcome models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from coloringengine.models.costs import CostBreakdown
from coloringengine.models.errors import ErrorCode, is_retryable
from coloringengine.models.outcomes import (
    AttemptRetryableError,
    AttemptTerminalError,
    more_informative_error,
)
from coloringengine.models.requests import GenerationRequest
from coloringengine.models.responses import GenerationError, GenerationResult, HealthStatus


def _error(code=ErrorCode.PROVIDER_OVERLOADED, **kwargs):
    return GenerationError(code=code, message="Something went wrong", **kwargs)


def _retryable(provider="primary", status_code=None):
    return AttemptRetryableError(
        provider=provider,
        model="gpt-image-1",
        attempt_index=2,
        code=ErrorCode.PROVIDER_TIMEOUT,
        reason="timed out",
        status_code=status_code,
    )


def _terminal(provider="fallback", status_code=400, is_content_policy=False):
    return AttemptTerminalError(
        provider=provider,
        model="dall-e-3",
        attempt_index=0,
        code=ErrorCode.CONTENT_POLICY if is_content_policy else ErrorCode.PROVIDER_REJECTED,
        reason="rejected",
        status_code=status_code,
        is_content_policy=is_content_policy,
    )


# Contract tests for GenerationResult
def test_generation_result_success_valid():
    """Test that a complete success result passes validation."""
    result = GenerationResult(
        success=True,
        request_id="img_1_1",
        image_ref="https://images.example.com/page.png",
        model_used="gpt-image-1",
        provider="primary",
        cost_breakdown=CostBreakdown(image_cost=0.167, total_cost=0.167),
        attempt_count=1,
    )

    assert result.success is True
    assert result.error_kind is None
    assert result.error_message is None


def test_generation_result_success_requires_image_and_cost():
    """Test that success=True requires image_ref, cost_breakdown and attempt_count."""
    with pytest.raises(ValidationError):
        GenerationResult(success=True, request_id="img_1_1", cost_breakdown=CostBreakdown(), attempt_count=1)

    with pytest.raises(ValidationError):
        GenerationResult(success=True, request_id="img_1_1", image_ref="x", attempt_count=1)

    with pytest.raises(ValidationError):
        GenerationResult(success=True, request_id="img_1_1", image_ref="x", cost_breakdown=CostBreakdown())


def test_generation_result_success_rejects_error():
    """Test that success=True cannot carry an error."""
    with pytest.raises(ValidationError):
        GenerationResult(
            success=True,
            request_id="img_1_1",
            image_ref="x",
            cost_breakdown=CostBreakdown(),
            attempt_count=1,
            error=_error(),
        )


def test_generation_result_failure_requires_error():
    """Test that success=False requires an error and no image."""
    with pytest.raises(ValidationError):
        GenerationResult(success=False, request_id="img_1_1")

    with pytest.raises(ValidationError):
        GenerationResult(success=False, request_id="img_1_1", error=_error(), image_ref="x")

    result = GenerationResult(success=False, request_id="img_1_1", error=_error())
    assert result.error_kind == ErrorCode.PROVIDER_OVERLOADED
    assert result.error_message == "Something went wrong"


def test_generation_error_retryable_flag():
    """Test that retryable follows the error code."""
    assert _error(ErrorCode.RATE_LIMITED).retryable is True
    assert _error(ErrorCode.CONTENT_POLICY).retryable is False
    assert _error(ErrorCode.CANCELLED).retryable is False
    assert is_retryable(ErrorCode.PROVIDER_UNAVAILABLE) is True


def test_generation_request_validation():
    """Test that malformed sizes and empty quality are rejected."""
    assert GenerationRequest(prompt="A cat").size == "1024x1024"
    assert GenerationRequest(prompt="A cat", size="auto").size == "auto"

    with pytest.raises(ValidationError):
        GenerationRequest(prompt="A cat", size="big")

    with pytest.raises(ValidationError):
        GenerationRequest(prompt="A cat", quality="")


# Error precedence
def test_more_informative_error_prefers_content_policy():
    """Test that a content-policy error beats one with a status code."""
    primary = _retryable(status_code=503)
    fallback = _terminal(is_content_policy=True)

    assert more_informative_error(primary, fallback) is fallback
    assert more_informative_error(fallback, primary) is fallback


def test_more_informative_error_prefers_status_code():
    """Test that an error with a status code beats a bare one."""
    primary = _retryable(status_code=None)
    fallback = _terminal(status_code=400)

    assert more_informative_error(primary, fallback) is fallback


def test_more_informative_error_tie_keeps_primary():
    """Test that equally informative errors keep the primary."""
    primary = _retryable(status_code=503)
    fallback = _terminal(status_code=400)

    assert more_informative_error(primary, fallback) is primary


def test_more_informative_error_without_primary():
    """Test that a fallback-only run surfaces the fallback error."""
    fallback = _terminal()

    assert more_informative_error(None, fallback) is fallback


def test_health_status_only_healthy_or_degraded():
    """Test that health reports no status besides healthy and degraded."""
    common = {"timestamp": datetime.now(timezone.utc), "mode": "development-mock", "has_real_credential": False}

    assert HealthStatus(status="degraded", **common).status == "degraded"

    with pytest.raises(ValidationError):
        HealthStatus(status="unhealthy", **common)
