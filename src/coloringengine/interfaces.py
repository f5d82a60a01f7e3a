"""Protocol interfaces for the coloring page engine."""

from typing import Optional, Protocol

from coloringengine.models.requests import GenerationRequest
from coloringengine.models.responses import GenerationResult
from coloringengine.services.request_context import CancellationToken


class IGenerator(Protocol):
    """Interface the HTTP layer depends on for image generation."""

    async def generate(
        self,
        request: GenerationRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> GenerationResult:
        """Generate an image for the request. Never raises for provider failures."""
        ...

    @property
    def generator_type(self) -> str:
        """Return generator type identifier (coloring_page)."""
        ...
