"""Credential-free provider used in development and tests.

Returns a deterministic placeholder coloring page as an inline SVG data URI,
so results are directly resolvable without any network access or cost.
"""

import asyncio
import base64
import logging
import re
from functools import lru_cache
from typing import Any, Optional

from coloringengine.config import MODE_MOCK
from coloringengine.models.outcomes import AttemptOutcome, AttemptSuccess, ImageUsage
from coloringengine.providers.profiles import ProviderProfile
from coloringengine.services.request_context import RequestContext

logger = logging.getLogger(__name__)

_SIZE_PATTERN = re.compile(r"^(\d+)x(\d+)$")

_PLACEHOLDER_SVG = """<svg width="{w}" height="{h}" viewBox="0 0 {w} {h}" fill="none" xmlns="http://www.w3.org/2000/svg">
<rect width="{w}" height="{h}" fill="white" stroke="black" stroke-width="4"/>
<circle cx="{cx}" cy="{face_y}" r="{r}" fill="none" stroke="black" stroke-width="4"/>
<path d="M{mouth_l} {mouth_y} Q{cx} {smile_y} {mouth_r} {mouth_y}" fill="none" stroke="black" stroke-width="4"/>
<text x="{cx}" y="{title_y}" font-family="Arial" font-size="24" fill="black" text-anchor="middle">Mock Coloring Page</text>
<text x="{cx}" y="{subtitle_y}" font-family="Arial" font-size="16" fill="black" text-anchor="middle">(Development Mode)</text>
</svg>"""


@lru_cache(maxsize=16)
def placeholder_image_ref(size: str = "1024x1024") -> str:
    """Build the placeholder page for ``size`` as a ``data:image/svg+xml`` URI."""
    match = _SIZE_PATTERN.match(size)
    width, height = (int(match.group(1)), int(match.group(2))) if match else (1024, 1024)
    cx = width // 2
    r = min(width, height) // 8
    svg = _PLACEHOLDER_SVG.format(
        w=width,
        h=height,
        cx=cx,
        r=r,
        face_y=height * 3 // 10,
        mouth_l=cx - r // 2,
        mouth_r=cx + r // 2,
        mouth_y=height * 3 // 10 + r // 3,
        smile_y=height * 3 // 10 + r * 2 // 3,
        title_y=height * 7 // 10,
        subtitle_y=height * 7 // 10 + 30,
    )
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


class MockImageProvider:
    """Provider that always succeeds with a zero-cost placeholder image."""

    def __init__(self, latency_seconds: float = 0.0):
        self.latency_seconds = latency_seconds

    async def execute(
        self,
        profile: ProviderProfile,
        prompt: str,
        params: dict[str, Any],
        attempt_index: int,
        context: Optional[RequestContext] = None,
    ) -> AttemptOutcome:
        request = profile.build_request(prompt, params)

        if self.latency_seconds > 0:
            if context is not None:
                await context.guard(asyncio.sleep(self.latency_seconds))
            else:
                await asyncio.sleep(self.latency_seconds)

        size = profile.billed_size(request)
        outcome = AttemptSuccess(
            provider=profile.name,
            model=profile.model,
            attempt_index=attempt_index,
            image_ref=placeholder_image_ref(size),
            revised_prompt=f"Enhanced {prompt} (mock development mode)",
            usage=ImageUsage(),
            size=size,
            quality=profile.billed_quality(request),
            billable=False,
        )

        logger.info(
            f"🧪 [MockImageProvider] {profile.name}/{profile.model} returned placeholder "
            f"(request {context.request_id if context else None})",
            extra={
                "request_id": context.request_id if context else None,
                "provider": profile.name,
                "model": profile.model,
                "attempt": attempt_index,
                "outcome": outcome.kind,
                "mode": MODE_MOCK,
            },
        )
        return outcome

    async def ping(self) -> bool:
        return False
