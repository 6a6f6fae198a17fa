"""
Recommendation Synthesizer

Turns a verdict into a recommendation sentence and an ordered list of
remediation suggestions. Template selection is keyed by threat level
only, so a given verdict always produces the same text.
"""

from __future__ import annotations

from adshield.categories import CATEGORIES, PII_REMEDIATION
from adshield.models import ThreatVerdict

RECOMMENDATION_TEMPLATES: dict[str, str] = {
    "safe": (
        "Content appears to be compliant and safe for marketing use. "
        "It follows ethical guidelines and does not contain manipulative language."
    ),
    "low": (
        "LOW RISK: Content is broadly compliant, with minor issues worth "
        "reviewing before publishing."
    ),
    "medium": (
        "WARN: Potentially risky content. While not explicitly harmful, consider "
        "toning down pressure and promotional language for better compliance."
    ),
    "high": (
        "HIGH RISK: Content contains elements that could be considered manipulative. "
        "Rephrase to be more transparent and less pressuring before publishing."
    ),
    "critical": (
        "CRITICAL: Content combines multiple manipulative or non-compliant elements "
        "and should not be published without a substantial rewrite."
    ),
}


def synthesize(verdict: ThreatVerdict) -> tuple[str, list[str]]:
    """
    Build (recommendation_text, suggestions) for a verdict.

    Suggestions follow attack-type order, then PII. A remediation shared
    by several categories appears once, at its first position.
    """
    text = RECOMMENDATION_TEMPLATES[verdict.threat_level]
    if verdict.threat_level == "safe":
        return text, []

    suggestions: list[str] = []
    seen: set[str] = set()

    def _add(suggestion: str) -> None:
        if suggestion not in seen:
            seen.add(suggestion)
            suggestions.append(suggestion)

    for tag in verdict.attack_types:
        for remediation in CATEGORIES[tag].remediation:
            _add(remediation)

    if verdict.pii.total_count:
        _add(PII_REMEDIATION)

    return text, suggestions
