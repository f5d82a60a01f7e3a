"""Family-friendly content gate applied before any provider call."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Substring-matched, grouped by category.
BLOCKED_KEYWORDS: dict[str, tuple[str, ...]] = {
    "violence": ("violence", "blood", "weapon", "gun", "knife", "death", "kill"),
    "sexual": ("sexual", "nude", "naked", "explicit", "inappropriate"),
    "substance": ("drug", "alcohol", "beer", "wine", "cigarette", "smoking"),
    "horror": ("scary", "horror", "demon", "devil", "evil", "dark magic"),
    "hate": ("hate speech", "racist", "nazi", "swastika"),
}

ADULT_TOKEN = "adult"

# Uses of "adult" that are about the audience of the coloring page.
ADULT_ALLOWED_CONTEXTS = (
    "adult coloring",
    "for adults",
    "adults",
    "suitable for adults",
    "adult age group",
    "age group",
    "agegroup",
    "age: adult",
    "complexity",
)

# Uses of "adult" that always reject, regardless of allowed contexts.
ADULT_BLOCKED_PHRASES = (
    "adult content",
    "adult material",
    "adult themes",
    "adult entertainment",
)


class SafetyVerdict(BaseModel):
    """Result of a content safety check."""

    model_config = ConfigDict(frozen=True)

    appropriate: bool
    flagged_terms: list[str] = Field(default_factory=list)
    adult_context: Optional[str] = Field(
        None,
        description="How \"adult\" was used: allowed, ambiguous or blocked. None when absent.",
    )

    @property
    def message(self) -> str:
        if self.appropriate:
            return "Content is appropriate"
        return f"Content contains inappropriate terms: {', '.join(self.flagged_terms)}"


class ContentSafetyGate:
    """Keyword and context based classifier for coloring page prompts.

    ``check`` is pure: no I/O and no state beyond the configured term lists.
    """

    def __init__(
        self,
        blocked_keywords: dict[str, tuple[str, ...]] | None = None,
        adult_allowed_contexts: tuple[str, ...] = ADULT_ALLOWED_CONTEXTS,
        adult_blocked_phrases: tuple[str, ...] = ADULT_BLOCKED_PHRASES,
    ):
        keywords = blocked_keywords if blocked_keywords is not None else BLOCKED_KEYWORDS
        self._keywords = tuple(term for terms in keywords.values() for term in terms)
        self._adult_allowed = adult_allowed_contexts
        self._adult_blocked = adult_blocked_phrases

    def check(self, prompt: str) -> SafetyVerdict:
        """Classify ``prompt``, reporting every offending term found."""
        text = prompt.lower()
        flagged = [keyword for keyword in self._keywords if keyword in text]

        adult_context = None
        if ADULT_TOKEN in text:
            blocked = [phrase for phrase in self._adult_blocked if phrase in text]
            flagged.extend(blocked)
            if blocked:
                adult_context = "blocked"
            elif any(context in text for context in self._adult_allowed):
                adult_context = "allowed"
            else:
                # Ambiguous uses are let through.
                adult_context = "ambiguous"

        return SafetyVerdict(appropriate=not flagged, flagged_terms=flagged, adult_context=adult_context)
