"""Ambiguity scoring for feature descriptions.

The weights below are fixed; downstream gates and tests depend on them.
"""

from typing import Optional

from contracts import FeatureInput
from config import settings

VAGUE_WORDS = ("some", "maybe", "possibly", "could", "might", "perhaps", "probably")
PRONOUNS = ("it", "this", "that", "they", "them")

SHORT_DESCRIPTION = 100
MEDIUM_DESCRIPTION = 200

SHORT_WEIGHT = 0.3
MEDIUM_WEIGHT = 0.1
NO_DIGIT_WEIGHT = 0.2
VAGUE_WORD_WEIGHT = 0.1
PRONOUN_WEIGHT = 0.05
MISSING_CONTEXT_WEIGHT = 0.1


def calculate_ambiguity_score(feature: FeatureInput) -> float:
    """Score how vague a feature description is, from 0.0 (clear) to 1.0.

    Signals, each added once:
    - description shorter than 100 chars (+0.3), else shorter than 200 (+0.1)
    - no digit anywhere in the description (+0.2)
    - each distinct vague word appearing as a substring (+0.1)
    - each distinct pronoun appearing as a whitespace-separated token (+0.05)
    - no stakeholders (+0.1) and no constraints (+0.1) on the input context
    """
    description = feature.description
    lowered = description.lower()
    score = 0.0

    if len(description) < SHORT_DESCRIPTION:
        score += SHORT_WEIGHT
    elif len(description) < MEDIUM_DESCRIPTION:
        score += MEDIUM_WEIGHT

    if not any(ch.isdigit() for ch in description):
        score += NO_DIGIT_WEIGHT

    score += VAGUE_WORD_WEIGHT * sum(1 for word in VAGUE_WORDS if word in lowered)

    tokens = set(lowered.split())
    score += PRONOUN_WEIGHT * sum(1 for pronoun in PRONOUNS if pronoun in tokens)

    if not feature.context.stakeholders:
        score += MISSING_CONTEXT_WEIGHT
    if not feature.context.constraints:
        score += MISSING_CONTEXT_WEIGHT

    # Rounded so that summed weights compare exactly (0.3 + 0.2 + 0.1 + 0.1 == 0.7)
    return round(min(score, 1.0), 4)


def needs_clarification(score: float, threshold: Optional[float] = None) -> bool:
    """Whether a score is high enough to ask clarifying questions first."""
    if threshold is None:
        threshold = settings.ambiguity_threshold
    return score > threshold
