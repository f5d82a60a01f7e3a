"""Base provider interface for image generation."""

from typing import Any, Optional, Protocol

from typing_extensions import runtime_checkable

from coloringengine.models.outcomes import AttemptOutcome
from coloringengine.providers.profiles import ProviderProfile
from coloringengine.services.request_context import RequestContext


@runtime_checkable
class ImageProvider(Protocol):
    """Protocol for image generation providers.

    A provider performs exactly one call per ``execute`` and never raises for
    provider-side failures; every failure is classified into an outcome.
    """

    async def execute(
        self,
        profile: ProviderProfile,
        prompt: str,
        params: dict[str, Any],
        attempt_index: int,
        context: Optional[RequestContext] = None,
    ) -> AttemptOutcome:
        """
        Make one generation attempt.

        Args:
            profile: Provider slot describing the model and its accepted fields
            prompt: Final prompt text
            params: Generic parameters (``size``, ``quality``)
            attempt_index: 0-based attempt number within this provider run
            context: Per-request context for correlation and cancellation

        Returns:
            AttemptSuccess, AttemptRetryableError or AttemptTerminalError

        Raises:
            GenerationCancelled: If the request's cancellation token fires mid-call
        """
        ...

    async def ping(self) -> bool:
        """Check connectivity to the provider. Mock providers return False."""
        ...
