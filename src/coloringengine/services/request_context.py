"""Per-request execution context: correlation id, attempt counters and cancellation."""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Optional, TypeVar

from coloringengine.models.errors import GenerationCancelled

T = TypeVar("T")


class CancellationToken:
    """Caller-side signal to abandon an in-flight generation.

    The orchestrator checks the token before every attempt and races it against
    each provider call and each backoff sleep. Setting it never interrupts other
    requests.
    """

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise GenerationCancelled()

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless cancelled first."""
        self.raise_if_cancelled()
        if seconds <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise GenerationCancelled("Generation cancelled during backoff")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` but abandon it as soon as the token is cancelled."""
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise GenerationCancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
        if task in done:
            return task.result()
        raise GenerationCancelled("Generation cancelled during provider call")


@dataclass
class RequestContext:
    """State that lives for exactly one orchestration."""

    request_id: str
    token: Optional[CancellationToken] = None
    attempts: dict[str, int] = field(default_factory=dict)

    def record_attempt(self, provider: str) -> None:
        self.attempts[provider] = self.attempts.get(provider, 0) + 1

    def raise_if_cancelled(self) -> None:
        if self.token is not None:
            self.token.raise_if_cancelled()

    async def sleep(self, seconds: float) -> None:
        if self.token is not None:
            await self.token.sleep(seconds)
        elif seconds > 0:
            await asyncio.sleep(seconds)

    async def guard(self, awaitable: Awaitable[T]) -> T:
        if self.token is None:
            return await awaitable
        return await self.token.guard(awaitable)
