"""
Compliance / Marketing Score Calculator

Derives two 0-100 scores from a ThreatVerdict. Separated from
fusion.py for single-responsibility.

Both scores start at 100 and lose the category table's penalty for
each distinct attack type. They then diverge:

  Compliance (regulatory risk):
    PII types:       -15 each
    PII instances:   -5 each, capped at -60 together with the type penalty
  Marketing (message quality):
    PII types:       -5 each
    Channel match:   category marketing penalty x1.5 when the category's
                     channel equals the content type being scored

Floor at 0, cap at 100.
"""

from __future__ import annotations

from adshield.categories import CATEGORIES
from adshield.models import ThreatVerdict

STARTING_SCORE = 100

COMPLIANCE_PII_TYPE_PENALTY = 15
COMPLIANCE_PII_INSTANCE_PENALTY = 5
COMPLIANCE_PII_MAX_PENALTY = 60
MARKETING_PII_TYPE_PENALTY = 5
CHANNEL_MARKETING_MULTIPLIER = 1.5


def _clamp(score: float) -> int:
    return int(max(0, min(100, round(score))))


def score_with_breakdown(
    verdict: ThreatVerdict,
    content_type: str = "general",
) -> tuple[int, int, dict]:
    """
    Calculate compliance and marketing scores.

    Returns:
        (compliance, marketing, breakdown) where breakdown lists every
        penalty applied to each score.
    """
    compliance = float(STARTING_SCORE)
    marketing = float(STARTING_SCORE)
    breakdown: dict = {
        "starting_score": STARTING_SCORE,
        "category_penalties": [],
        "compliance_pii_penalty": 0,
        "marketing_pii_penalty": 0,
    }

    for tag in verdict.attack_types:
        profile = CATEGORIES[tag]
        c_pen = profile.compliance_penalty
        m_pen = float(profile.marketing_penalty)
        if profile.channel is not None and profile.channel == content_type:
            m_pen *= CHANNEL_MARKETING_MULTIPLIER
        compliance -= c_pen
        marketing -= m_pen
        breakdown["category_penalties"].append({
            "category": tag,
            "compliance": -c_pen,
            "marketing": -m_pen,
        })

    pii = verdict.pii
    if pii.total_count:
        c_pen = min(
            pii.types_found * COMPLIANCE_PII_TYPE_PENALTY
            + pii.total_count * COMPLIANCE_PII_INSTANCE_PENALTY,
            COMPLIANCE_PII_MAX_PENALTY,
        )
        m_pen = pii.types_found * MARKETING_PII_TYPE_PENALTY
        compliance -= c_pen
        marketing -= m_pen
        breakdown["compliance_pii_penalty"] = -c_pen
        breakdown["marketing_pii_penalty"] = -m_pen

    final_compliance = _clamp(compliance)
    final_marketing = _clamp(marketing)
    breakdown["compliance_score"] = final_compliance
    breakdown["marketing_score"] = final_marketing
    return final_compliance, final_marketing, breakdown


def score(verdict: ThreatVerdict, content_type: str = "general") -> tuple[int, int]:
    """(compliance_score, marketing_score) for a verdict."""
    compliance, marketing, _ = score_with_breakdown(verdict, content_type)
    return compliance, marketing
