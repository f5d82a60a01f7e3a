"""Tests for the family-friendly content gate."""

import pytest

from coloringengine.services.content_safety import ContentSafetyGate


@pytest.fixture
def gate():
    return ContentSafetyGate()


def test_clean_prompt_is_appropriate(gate):
    """Test that ordinary coloring prompts pass."""
    verdict = gate.check("A happy unicorn jumping over a rainbow")

    assert verdict.appropriate is True
    assert verdict.flagged_terms == []
    assert verdict.adult_context is None
    assert verdict.message == "Content is appropriate"


def test_all_offending_terms_are_reported(gate):
    """Test that every matching keyword is reported, case-insensitively."""
    verdict = gate.check("A DEMON drinking BEER next to a Gun")

    assert verdict.appropriate is False
    assert set(verdict.flagged_terms) == {"demon", "beer", "gun"}
    assert verdict.message.startswith("Content contains inappropriate terms: ")


def test_multiword_keywords_match(gate):
    """Test that phrases such as 'dark magic' are matched."""
    verdict = gate.check("A wizard casting dark magic")

    assert verdict.flagged_terms == ["dark magic"]


def test_substring_matching_is_intentional(gate):
    """Test that keywords match inside longer words."""
    verdict = gate.check("A burgundy sky")

    assert verdict.appropriate is False
    assert "gun" in verdict.flagged_terms


@pytest.mark.parametrize(
    "prompt",
    [
        "Geometric patterns for adult coloring",
        "Detailed garden scene suitable for adults",
        "Owl portrait, age group: adult, high complexity",
    ],
)
def test_adult_audience_is_allowed(gate, prompt):
    """Test that 'adult' describing the audience passes."""
    verdict = gate.check(prompt)

    assert verdict.appropriate is True
    assert verdict.adult_context == "allowed"


def test_ambiguous_adult_is_let_through(gate):
    """Test that 'adult' outside known contexts is not rejected."""
    verdict = gate.check("An adult elephant with its calf")

    assert verdict.appropriate is True
    assert verdict.adult_context == "ambiguous"


@pytest.mark.parametrize("phrase", ["adult content", "adult material", "adult themes", "adult entertainment"])
def test_adult_block_phrases_always_reject(gate, phrase):
    """Test that explicit adult phrases reject even with an allowed context."""
    verdict = gate.check(f"Mandala for adult coloring with {phrase}")

    assert verdict.appropriate is False
    assert phrase in verdict.flagged_terms
    assert verdict.adult_context == "blocked"


def test_custom_keywords():
    """Test that the term lists can be replaced."""
    gate = ContentSafetyGate(blocked_keywords={"custom": ("spider",)})

    assert gate.check("A spider web").flagged_terms == ["spider"]
    assert gate.check("A knife").appropriate is True
