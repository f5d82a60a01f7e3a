"""Scripted providers and settings builders shared by the test modules."""

import asyncio

from coloringengine.config import EngineSettings
from coloringengine.models.errors import ErrorCode
from coloringengine.models.outcomes import (
    AttemptRetryableError,
    AttemptSuccess,
    AttemptTerminalError,
    ImageUsage,
)
from coloringengine.providers.profiles import FALLBACK, PRIMARY


def success(output_tokens: int = 0):
    """Script step: the provider returns an image."""

    def step(profile, attempt_index):
        return AttemptSuccess(
            provider=profile.name,
            model=profile.model,
            attempt_index=attempt_index,
            image_ref=f"https://images.example.com/{profile.name}-{attempt_index}.png",
            revised_prompt="A revised prompt",
            usage=ImageUsage(output_tokens=output_tokens, total_tokens=output_tokens),
            size="1024x1024",
            quality=profile.default_quality or "standard",
        )

    return step


def retryable(code: ErrorCode = ErrorCode.PROVIDER_OVERLOADED, status_code: int | None = 503):
    """Script step: a rate limit, timeout or 5xx failure."""

    def step(profile, attempt_index):
        return AttemptRetryableError(
            provider=profile.name,
            model=profile.model,
            attempt_index=attempt_index,
            code=code,
            reason=f"{profile.name} failed with {code.value}",
            status_code=status_code,
        )

    return step


def terminal(
    code: ErrorCode = ErrorCode.PROVIDER_REJECTED,
    status_code: int | None = 400,
    is_content_policy: bool = False,
):
    """Script step: a failure that must not be retried."""

    def step(profile, attempt_index):
        return AttemptTerminalError(
            provider=profile.name,
            model=profile.model,
            attempt_index=attempt_index,
            code=code,
            reason=f"{profile.name} rejected with {code.value}",
            status_code=status_code,
            is_content_policy=is_content_policy,
        )

    return step


def content_policy():
    """Script step: the provider's own content policy rejected the prompt."""
    return terminal(ErrorCode.CONTENT_POLICY, status_code=400, is_content_policy=True)


def hang(seconds: float = 10.0):
    """Script step: the provider never answers in time."""

    async def step(profile, attempt_index):
        await asyncio.sleep(seconds)
        return success()(profile, attempt_index)

    return step


def explode(exc: Exception):
    """Script step: the provider raises instead of classifying."""

    def step(profile, attempt_index):
        raise exc

    return step


class ScriptedProvider:
    """Image provider that replays a scripted outcome per attempt, keyed by profile name."""

    def __init__(self, primary=None, fallback=None):
        self.scripts = {PRIMARY: list(primary or []), FALLBACK: list(fallback or [])}
        self.calls: list[tuple[str, int]] = []
        self.requests: list[dict] = []

    def calls_for(self, name: str) -> int:
        return sum(1 for provider, _ in self.calls if provider == name)

    async def execute(self, profile, prompt, params, attempt_index, context=None):
        self.calls.append((profile.name, attempt_index))
        self.requests.append(profile.build_request(prompt, params))
        script = self.scripts[profile.name]
        if not script:
            raise AssertionError(f"Unexpected call to {profile.name} (attempt {attempt_index})")
        step = script.pop(0)
        outcome = step(profile, attempt_index)
        if asyncio.iscoroutine(outcome):
            call = outcome
            outcome = await (context.guard(call) if context else call)
        return outcome

    async def ping(self) -> bool:
        return True


class RecordingSleep:
    """Backoff sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_settings(**overrides) -> EngineSettings:
    """Settings isolated from the process environment and any .env file."""
    values = {"openai_api_key": None}
    values.update(overrides)
    return EngineSettings(_env_file=None, **values)

