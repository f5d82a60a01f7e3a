"""Helpers for keeping log lines bounded and free of sensitive data."""

PROMPT_PREVIEW_LENGTH = 100


def prompt_preview(prompt: str, limit: int = PROMPT_PREVIEW_LENGTH) -> str:
    """Return at most ``limit`` characters of a prompt for logging."""
    if len(prompt) <= limit:
        return prompt
    return prompt[:limit] + "..."


def elapsed_ms(start: float, end: float) -> int:
    """Milliseconds between two ``time.monotonic()`` readings, never negative."""
    return max(0, int((end - start) * 1000))
