from __future__ import annotations
from enum import Enum


MIN_LEVEL = 1
MAX_LEVEL = 50
XP_PER_LEVEL = 100

# Upper bound (inclusive) of each tier
BEGINNER_MAX_LEVEL = 20
INTERMEDIATE_MAX_LEVEL = 40


class DifficultyTier(str, Enum):
    BEGINNER = "Beginner (Basic Communication)"
    INTERMEDIATE = "Intermediate (Technical Discussion)"
    ADVANCED = "Advanced (Management & Strategy)"


def tier_of(level: int) -> DifficultyTier:
    if level <= BEGINNER_MAX_LEVEL:
        return DifficultyTier.BEGINNER
    if level <= INTERMEDIATE_MAX_LEVEL:
        return DifficultyTier.INTERMEDIATE
    return DifficultyTier.ADVANCED


_PROMPT_CONTEXT = {
    DifficultyTier.BEGINNER: (
        "Level: Beginner (Levels 1-20). The user can barely communicate. "
        "Use simple vocabulary, short sentences, and very clear context."
    ),
    DifficultyTier.INTERMEDIATE: (
        "Level: Intermediate (Levels 21-40). The user is a standard engineer. "
        "Use technical jargon (API, latency, PRs, CI/CD) freely."
    ),
    DifficultyTier.ADVANCED: (
        "Level: Advanced (Levels 41-50). The user is a manager or lead. "
        "Use sophisticated language, idioms, and nuance."
    ),
}


def prompt_context_of(level: int) -> str:
    """Describe the learner's tier in a form the LLM can use to pick tone and vocabulary."""
    return _PROMPT_CONTEXT[tier_of(level)]
