"""Configuration for the coloring page engine.

Settings are loaded from environment variables with the ``COLORING_`` prefix,
then a ``.env`` file, then the defaults below. The OpenAI key is also read from
the conventional ``OPENAI_API_KEY`` variable.

Settings are resolved once and handed to the orchestrator explicitly:

    from coloringengine import EngineSettings, GenerationOrchestrator

    settings = EngineSettings()
    orchestrator = GenerationOrchestrator.from_settings(settings)

When no real key is configured (missing, not ``sk-`` prefixed, or equal to the
mock sentinel) the engine runs in mock mode and never calls the network.
"""

from typing import Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MODE_REAL = "real-openai-api"
MODE_MOCK = "development-mock"


class EngineSettings(BaseSettings):
    """Runtime configuration for providers, retries and deadlines."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="COLORING_",
        case_sensitive=False,
        extra="ignore",
    )

    # Credentials
    openai_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("COLORING_OPENAI_API_KEY", "OPENAI_API_KEY", "openai_api_key"),
        description="OpenAI API key. Never logged.",
    )
    mock_api_key: str = Field(
        default="sk-mock-key-for-testing",
        description="Sentinel key value that always selects mock mode",
    )

    # Models
    primary_model: str = Field(default="gpt-image-1", description="Model used by the primary profile")
    fallback_model: str = Field(default="dall-e-3", description="Model used by the fallback profile")
    default_size: str = Field(default="1024x1024", description="Size used when a request omits it")
    primary_quality: str = Field(default="high", description="Default quality for the primary model")
    fallback_quality: str = Field(default="standard", description="Default quality for the fallback model")
    fallback_style: Optional[str] = Field(default="natural", description="dall-e-3 style parameter")

    # Retry policy
    max_attempts: int = Field(default=3, ge=1, le=10, description="Attempts per provider")
    retry_delays: list[float] = Field(
        default_factory=lambda: [2.0, 4.0, 8.0],
        description="Backoff schedule in seconds between retryable attempts",
    )

    # Deadlines
    attempt_timeout_seconds: float = Field(default=60.0, gt=0, description="Per-attempt network deadline")
    total_deadline_seconds: Optional[float] = Field(
        default=400.0,
        gt=0,
        description=(
            "Deadline for the whole orchestration (both providers, all sleeps). "
            "Must cover two full provider runs. None disables it."
        ),
    )

    # Input limits
    max_prompt_length: int = Field(default=4000, ge=1, description="Longest prompt accepted")

    @field_validator("retry_delays")
    @classmethod
    def validate_retry_delays(cls, value: list[float]) -> list[float]:
        if not value:
            raise ValueError("retry_delays must contain at least one delay")
        if any(delay < 0 for delay in value):
            raise ValueError("retry_delays must be non-negative")
        return value

    @model_validator(mode="after")
    def validate_deadlines(self):
        # The primary may use its whole budget and the fallback still needs one.
        required = 2 * self.provider_run_budget_seconds
        if self.total_deadline_seconds is not None and self.total_deadline_seconds < required:
            raise ValueError(
                f"total_deadline_seconds must be >= {required}s "
                f"(two provider runs of {self.max_attempts} attempts with backoff)"
            )
        return self

    @property
    def provider_run_budget_seconds(self) -> float:
        """Worst-case duration of one provider run: every attempt times out."""
        delays = self.retry_delays
        backoff = sum(delays[min(index, len(delays) - 1)] for index in range(self.max_attempts - 1))
        return self.max_attempts * self.attempt_timeout_seconds + backoff

    @property
    def has_real_credential(self) -> bool:
        """True when a usable OpenAI key is configured."""
        if self.openai_api_key is None:
            return False
        key = self.openai_api_key.get_secret_value()
        return bool(key) and key != self.mock_api_key and key.startswith("sk-")

    @property
    def mode(self) -> str:
        """Coarse mode label that is safe to log."""
        return MODE_REAL if self.has_real_credential else MODE_MOCK
