"""Static provider descriptors.

A profile knows which request fields its model accepts and how to translate
the engine's generic size/quality into that model's vocabulary. Anything the
model does not accept is omitted from the request rather than defaulted.
"""

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from coloringengine.config import EngineSettings

logger = logging.getLogger(__name__)

PRIMARY = "primary"
FALLBACK = "fallback"


class ProviderProfile(BaseModel):
    """Descriptor for one provider slot (primary or fallback)."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Slot name, e.g. primary or fallback")
    model: str = Field(..., description="Provider model identifier")
    qualities: tuple[str, ...] = Field((), description="Accepted quality values. Empty means no quality field.")
    quality_aliases: dict[str, str] = Field(default_factory=dict, description="Generic quality -> model quality")
    default_quality: Optional[str] = None
    sizes: tuple[str, ...] = Field((), description="Accepted sizes. Empty means any size is forwarded.")
    default_size: str = "1024x1024"
    extra_params: dict[str, Any] = Field(default_factory=dict, description="Fixed model-specific fields")
    bills_output_tokens: bool = Field(False, description="Whether output tokens are billed on top of the image")

    def resolve_quality(self, requested: Optional[str]) -> Optional[str]:
        """Translate a requested quality, or None when the field must be omitted."""
        if not self.qualities:
            return None
        if requested:
            quality = self._translate_quality(requested)
            if quality is not None:
                return quality
            logger.info(
                f"🔧 [ProviderProfile] {self.model} does not accept quality '{requested}', "
                f"using '{self.default_quality}'"
            )
        if self.default_quality:
            return self._translate_quality(self.default_quality)
        return None

    def _translate_quality(self, quality: str) -> Optional[str]:
        quality = quality.lower()
        quality = self.quality_aliases.get(quality, quality)
        return quality if quality in self.qualities else None

    def resolve_size(self, requested: Optional[str]) -> Optional[str]:
        """Return the size to send, or None when the model does not accept it."""
        size = requested or self.default_size
        if not self.sizes or size in self.sizes:
            return size
        return None

    def build_request(self, prompt: str, params: dict[str, Any]) -> dict[str, Any]:
        """Build provider keyword arguments from generic ``size``/``quality`` params."""
        request: dict[str, Any] = {"model": self.model, "prompt": prompt, "n": 1}

        size = self.resolve_size(params.get("size"))
        if size is not None:
            request["size"] = size
        elif params.get("size"):
            logger.debug(f"🔧 [ProviderProfile] {self.model} does not accept size {params['size']}, omitting")

        quality = self.resolve_quality(params.get("quality"))
        if quality is not None:
            request["quality"] = quality

        for key, value in self.extra_params.items():
            if value is not None:
                request[key] = value
        return request

    def billed_size(self, request: dict[str, Any]) -> str:
        return request.get("size", self.default_size)

    def billed_quality(self, request: dict[str, Any]) -> str:
        return request.get("quality") or self.default_quality or "standard"


# Per-model request vocabulary for the OpenAI Images API.
MODEL_CAPABILITIES: dict[str, dict[str, Any]] = {
    "gpt-image-1": {
        "qualities": ("low", "medium", "high", "auto"),
        "quality_aliases": {"hd": "high", "standard": "medium"},
        "sizes": ("1024x1024", "1536x1024", "1024x1536", "auto"),
        "bills_output_tokens": True,
    },
    "dall-e-3": {
        "qualities": ("standard", "hd"),
        "quality_aliases": {"high": "hd", "medium": "standard", "low": "standard", "auto": "standard"},
        "sizes": ("1024x1024", "1792x1024", "1024x1792"),
        "bills_output_tokens": False,
    },
    "dall-e-2": {
        "qualities": (),
        "sizes": ("256x256", "512x512", "1024x1024"),
        "bills_output_tokens": False,
    },
}


def build_profile(
    name: str,
    model: str,
    default_quality: Optional[str],
    default_size: str = "1024x1024",
    extra_params: Optional[dict[str, Any]] = None,
) -> ProviderProfile:
    """Create a profile for ``model`` using its known request vocabulary."""
    capabilities = MODEL_CAPABILITIES.get(model, {})
    if not capabilities:
        logger.warning(f"⚠️ [ProviderProfile] No capability table for model {model}, forwarding params as-is")
    return ProviderProfile(
        name=name,
        model=model,
        default_quality=default_quality,
        default_size=default_size,
        extra_params=extra_params or {},
        **capabilities,
    )


def primary_profile(settings: EngineSettings) -> ProviderProfile:
    return build_profile(
        PRIMARY,
        settings.primary_model,
        default_quality=settings.primary_quality,
        default_size=settings.default_size,
    )


def fallback_profile(settings: EngineSettings) -> ProviderProfile:
    extra: dict[str, Any] = {}
    if settings.fallback_model == "dall-e-3" and settings.fallback_style:
        extra["style"] = settings.fallback_style
    return build_profile(
        FALLBACK,
        settings.fallback_model,
        default_quality=settings.fallback_quality,
        default_size=settings.default_size,
        extra_params=extra,
    )
