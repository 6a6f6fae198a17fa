"""
Score Fusion

Combines the pattern signal, the optional external ML signal, and the
PII summary into a single ThreatVerdict.

    pattern_score = 1 - exp(-sum(weights) / PATTERN_SATURATION)
    confidence    = (PATTERN_WEIGHT * pattern + ML_WEIGHT * ml)
                    / (PATTERN_WEIGHT + ML_WEIGHT)

When the ML score is absent its weight is dropped and confidence
falls back to the pattern score alone; the verdict is marked degraded.

The threat level comes from ordered thresholds on confidence, then
two PII rules are applied on top:
  - any PII at all floors the level at LOW
  - more than PII_ESCALATION_THRESHOLD instances raises the level one
    step, with a floor of MEDIUM

PII is never blended into confidence. It only ever moves the level up.

All tuning constants live in this block.
"""

from __future__ import annotations

import math
from typing import Optional

from adshield.categories import CATEGORIES
from adshield.config import settings
from adshield.errors import InvalidInputError
from adshield.models import (
    PatternMatch,
    PiiSummary,
    ThreatVerdict,
    max_level,
    raise_level,
)


# ============================================================
# TUNING CONSTANTS
# ============================================================

PATTERN_SATURATION = 1.0   # Weight sum at which pattern_score reaches ~0.63
PATTERN_WEIGHT = 0.6       # Pattern signal share of the blend
ML_WEIGHT = 0.4            # ML signal share of the blend

# Minimum confidence for each level, checked most severe first.
# LOW has no entry: any confidence above zero is at least LOW.
LEVEL_THRESHOLDS: list[tuple[str, float]] = [
    ("critical", 0.90),
    ("high", 0.65),
    ("medium", 0.35),
]

PII_ESCALATION_THRESHOLD = settings.PII_ESCALATION_THRESHOLD
PII_PRESENT_FLOOR = "low"
PII_ESCALATED_FLOOR = "medium"

DEGRADED_NO_ML = "ml_score_unavailable"


# ============================================================
# FUSION
# ============================================================

def pattern_score(matches: list[PatternMatch]) -> float:
    """Saturating weighted sum of matched-rule severities, in [0, 1]."""
    total = sum(max(m.weight, 0.0) for m in matches)
    if total <= 0:
        return 0.0
    return min(1.0, max(0.0, 1.0 - math.exp(-total / PATTERN_SATURATION)))


def blend(pattern: float, ml_score: Optional[float]) -> float:
    """Convex combination of the two signals, renormalized if ML is absent."""
    if ml_score is None:
        return pattern
    return (PATTERN_WEIGHT * pattern + ML_WEIGHT * ml_score) / (PATTERN_WEIGHT + ML_WEIGHT)


def level_for_confidence(confidence: float) -> str:
    """Map blended confidence onto the ordered threat levels."""
    for level, threshold in LEVEL_THRESHOLDS:
        if confidence >= threshold:
            return level
    return "low" if confidence > 0 else "safe"


def fuse(
    matches: list[PatternMatch],
    pii: PiiSummary,
    ml_score: Optional[float] = None,
    pii_threshold: Optional[int] = None,
    degraded_reason: Optional[str] = None,
) -> ThreatVerdict:
    """
    Produce the threat verdict for one content item.

    Args:
        matches: Pattern matcher output.
        pii: PII summary for the same text.
        ml_score: External ML risk probability in [0, 1], or None if absent.
        pii_threshold: Override for PII_ESCALATION_THRESHOLD.
        degraded_reason: Why the ML score is missing, when the caller knows.

    Raises:
        InvalidInputError: ml_score outside [0, 1].
    """
    if ml_score is not None and not 0.0 <= ml_score <= 1.0:
        raise InvalidInputError(f"ml_score must be within [0, 1], got {ml_score}.")

    threshold = PII_ESCALATION_THRESHOLD if pii_threshold is None else pii_threshold

    p_score = pattern_score(matches)
    confidence = blend(p_score, ml_score)

    # The ML signal corroborates pattern evidence; it cannot flag on its own.
    if matches:
        level = level_for_confidence(confidence)
    else:
        level = "safe"

    escalated = False
    if pii.total_count > 0:
        level = max_level(level, PII_PRESENT_FLOOR)
    if pii.total_count > threshold:
        level = max_level(raise_level(level), PII_ESCALATED_FLOOR)
        escalated = True

    attack_types: list[str] = []
    for m in matches:
        if m.category not in attack_types:
            attack_types.append(m.category)
    flagged_patterns = [CATEGORIES[tag].description for tag in attack_types]

    degraded = ml_score is None
    return ThreatVerdict(
        threat_level=level,
        confidence=min(1.0, max(0.0, confidence)),
        attack_types=tuple(attack_types),
        flagged_patterns=tuple(flagged_patterns),
        pattern_score=p_score,
        ml_score=ml_score,
        pii=pii,
        pii_escalated=escalated,
        degraded=degraded,
        degraded_reason=(degraded_reason or DEGRADED_NO_ML) if degraded else None,
    )
