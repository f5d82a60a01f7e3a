"""Shared pytest fixtures for coloring engine tests."""

import pytest

from coloringengine.services.metrics_service import MetricsService
from coloringengine.services.orchestrator import GenerationOrchestrator
from helpers import RecordingSleep, make_settings


@pytest.fixture
def settings():
    """Fixture for default settings in mock mode."""
    return make_settings()


@pytest.fixture
def recording_sleep():
    """Fixture for a backoff sleep that never waits."""
    return RecordingSleep()


@pytest.fixture
def metrics_service():
    """Fixture for an empty metrics service."""
    return MetricsService()


@pytest.fixture
def build_orchestrator(settings, recording_sleep, metrics_service):
    """Fixture returning a factory for orchestrators around a scripted provider."""

    def build(provider, **kwargs):
        kwargs.setdefault("sleep", recording_sleep)
        kwargs.setdefault("metrics_service", metrics_service)
        return GenerationOrchestrator(provider, kwargs.pop("settings", settings), **kwargs)

    return build
