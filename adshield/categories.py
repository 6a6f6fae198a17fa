"""
Category Table — Static Configuration

One entry per pattern category. Everything downstream of the matcher
(fusion weight, score penalties, flagged-pattern text, remediation)
is looked up here, so adding a category is a single new entry plus
its rules in patterns.py.

Penalties are in score points (0-100 scale). Channel categories
(channel != None) weigh heavier on the marketing score than on the
compliance score; regulatory categories do the opposite.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CategoryProfile:
    """Static configuration for one pattern category."""
    tag: str
    severity_weight: float        # Base weight of every rule in this category
    compliance_penalty: int
    marketing_penalty: int
    description: str              # Shown in flagged_patterns
    remediation: tuple[str, ...]  # Suggestions, in display order
    channel: Optional[str] = None # Content type this category is specific to


# Remediation strings shared by several categories
_REMOVE_DEADLINES = (
    "Remove artificial deadlines, or state the real end date of the offer."
)
_CLEAR_CTA = (
    "Replace pressure phrases like 'act now' with a clear, calm call to action."
)
_BACK_CLAIMS = (
    "Support results or performance claims with verifiable evidence."
)


CATEGORIES: dict[str, CategoryProfile] = {
    # --- General ---
    "urgency_manipulation": CategoryProfile(
        tag="urgency_manipulation",
        severity_weight=0.35,
        compliance_penalty=15,
        marketing_penalty=20,
        description="False urgency claim",
        remediation=(_REMOVE_DEADLINES, _CLEAR_CTA),
    ),
    "false_scarcity": CategoryProfile(
        tag="false_scarcity",
        severity_weight=0.30,
        compliance_penalty=15,
        marketing_penalty=20,
        description="Scarcity manipulation",
        remediation=(
            "Only claim limited availability when it is genuine, and state the actual quantity.",
        ),
    ),
    "psychological_pressure": CategoryProfile(
        tag="psychological_pressure",
        severity_weight=0.30,
        compliance_penalty=20,
        marketing_penalty=20,
        description="Psychological pressure tactics",
        remediation=(
            "Avoid fear-of-missing-out and social-pressure framing; let readers decide at their own pace.",
            _CLEAR_CTA,
        ),
    ),
    "promotional_language": CategoryProfile(
        tag="promotional_language",
        severity_weight=0.15,
        compliance_penalty=5,
        marketing_penalty=10,
        description="Promotional language detected",
        remediation=(
            "Tone down superlatives and describe concrete benefits instead.",
        ),
    ),
    "unsubstantiated_claims": CategoryProfile(
        tag="unsubstantiated_claims",
        severity_weight=0.30,
        compliance_penalty=25,
        marketing_penalty=15,
        description="Unsubstantiated or guaranteed outcome claim",
        remediation=(
            _BACK_CLAIMS,
            "Remove guarantees you cannot honour, or add the terms that apply.",
        ),
    ),

    # --- Channel-specific ---
    "email_spam_indicators": CategoryProfile(
        tag="email_spam_indicators",
        severity_weight=0.25,
        compliance_penalty=10,
        marketing_penalty=20,
        description="Spam-filter trigger phrasing",
        remediation=(
            "Rewrite spam-trigger phrases; they hurt deliverability and reader trust.",
            _REMOVE_DEADLINES,
        ),
        channel="email",
    ),
    "engagement_baiting": CategoryProfile(
        tag="engagement_baiting",
        severity_weight=0.25,
        compliance_penalty=5,
        marketing_penalty=25,
        description="Engagement bait",
        remediation=(
            "Drop 'like and share' style bait; invite engagement by offering something worth responding to.",
        ),
        channel="social",
    ),
    "clickbait_headline": CategoryProfile(
        tag="clickbait_headline",
        severity_weight=0.20,
        compliance_penalty=5,
        marketing_penalty=20,
        description="Clickbait framing",
        remediation=(
            "Make headlines describe the article honestly instead of withholding the point.",
        ),
        channel="blog",
    ),
    "misleading_advertising": CategoryProfile(
        tag="misleading_advertising",
        severity_weight=0.30,
        compliance_penalty=20,
        marketing_penalty=25,
        description="Potentially misleading advertising claim",
        remediation=(
            _BACK_CLAIMS,
            "Disclose prices, fees, and trial terms plainly next to the offer.",
        ),
        channel="ad",
    ),
}


# PII is not a pattern category but shares the remediation mechanism
PII_REMEDIATION = (
    "Remove personal data (emails, phone numbers, ID numbers) from the content before publishing."
)


def get_category(tag: str) -> CategoryProfile:
    """Look up a category profile. Unknown tags are a programming error."""
    return CATEGORIES[tag]
