"""
Qualitative risk tiers and their numeric scores.
"""
from enum import Enum
from typing import Dict, Optional


class Tier(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    UNKNOWN = "Unknown"


TIER_SCORES: Dict[Tier, float] = {
    Tier.HIGH: 0.9,
    Tier.MEDIUM: 0.5,
    Tier.LOW: 0.2,
}

# Unknown or unrecognized tiers score as Low
DEFAULT_TIER_SCORE: float = 0.2

HIGH_THRESHOLD: float = 0.7
MEDIUM_THRESHOLD: float = 0.4


def tier_to_score(tier: Optional[Tier]) -> float:
    """
    Convert a qualitative tier to its score in [0, 1].

    Args:
        tier: Tier to convert (None and Unknown score as Low)

    Returns:
        0.9 for High, 0.5 for Medium, 0.2 otherwise
    """
    return TIER_SCORES.get(tier, DEFAULT_TIER_SCORE)


def score_to_tier(score: float) -> Tier:
    """Classify a total score into Low, Medium or High."""
    if score >= HIGH_THRESHOLD:
        return Tier.HIGH
    if score >= MEDIUM_THRESHOLD:
        return Tier.MEDIUM
    return Tier.LOW


def upgrade(tier: Tier) -> Tier:
    """Raise a tier by one step. High stays High, Unknown stays Unknown."""
    if tier is Tier.LOW:
        return Tier.MEDIUM
    if tier is Tier.MEDIUM:
        return Tier.HIGH
    return tier
