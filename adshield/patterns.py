"""
Pattern Matcher — Layered Rule Sets

Deterministic, rule-based detection of manipulative marketing
language. No NLP, no model, no randomness: identical (text,
content_type) always yields the identical match list.

Rule sets are layered:
  1. GENERAL_RULES apply to every content type.
  2. CHANNEL_RULES[content_type] are appended when the content type
     names a known channel (email, social, blog, ad).

Each rule is a single regex indicator. Phrase rules are built with
phrase_indicator(), which matches whole phrases only (so "cure" does
not fire inside "secure"). Every rule that matches yields exactly one
PatternMatch; severity comes from the category table.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from adshield.categories import CATEGORIES
from adshield.models import PatternMatch


# ============================================================
# RULE DEFINITION
# ============================================================

@dataclass(frozen=True)
class PatternRule:
    """A single detection rule."""
    id: str
    category: str
    name: str
    indicator: str                 # Regex applied to normalized text
    weight: Optional[float] = None # Overrides the category weight
    literal: bool = True           # False: report `name` instead of the matched text

    @property
    def severity_weight(self) -> float:
        if self.weight is not None:
            return self.weight
        return CATEGORIES[self.category].severity_weight


def phrase_indicator(*phrases: str) -> str:
    """Build a whole-phrase alternation. Longer phrases are tried first."""
    ordered = sorted(phrases, key=len, reverse=True)
    body = "|".join(re.escape(p) for p in ordered)
    return rf"(?<![a-z0-9])(?:{body})(?![a-z0-9])"


# ============================================================
# GENERAL RULES (all content types)
# ============================================================

GENERAL_RULES: list[PatternRule] = [
    # --- Urgency ---
    PatternRule(
        id="URG_IMMEDIACY",
        category="urgency_manipulation",
        name="Demand for immediate action",
        indicator=phrase_indicator(
            "act now", "act fast", "hurry", "urgent", "don't wait",
            "dont wait", "right now", "immediately", "before it's too late",
            "before its too late", "what are you waiting for",
        ),
    ),
    PatternRule(
        id="URG_DEADLINE",
        category="urgency_manipulation",
        name="Artificial deadline",
        indicator=phrase_indicator(
            "limited time", "expires", "expiring", "ends tonight",
            "ends today", "ends soon", "today only", "last chance",
            "final hours", "discount ends", "offer ends", "deadline",
            "countdown",
        ),
    ),
    PatternRule(
        id="URG_COUNTDOWN",
        category="urgency_manipulation",
        name="Countdown pressure",
        indicator=r"\b(?:only|just)\s+\d+\s+(?:hours?|minutes?|days?)\s+(?:left|remaining|to go)\b",
        literal=False,
    ),

    # --- Scarcity ---
    PatternRule(
        id="SCARCITY_STOCK",
        category="false_scarcity",
        name="Limited availability claim",
        indicator=phrase_indicator(
            "while supplies last", "limited stock", "almost gone",
            "selling out", "selling fast", "few left", "low stock",
            "limited quantities", "limited spots", "limited seats",
            "won't last", "wont last",
        ),
    ),
    PatternRule(
        id="SCARCITY_COUNT",
        category="false_scarcity",
        name="Remaining-quantity claim",
        indicator=r"\b(?:only|just)\s+\d+\s+(?:left|remaining|spots?|seats?|items?|units?)\b",
        literal=False,
    ),

    # --- Psychological pressure ---
    PatternRule(
        id="PRESSURE_FOMO",
        category="psychological_pressure",
        name="Fear of missing out",
        indicator=phrase_indicator(
            "don't miss", "dont miss", "you'll regret", "youll regret",
            "fear of missing out", "miss out", "you can't afford to",
            "before everyone else",
        ),
    ),
    PatternRule(
        id="PRESSURE_SOCIAL",
        category="psychological_pressure",
        name="Social pressure or secrecy appeal",
        indicator=phrase_indicator(
            "everyone is", "everyone's buying", "join thousands",
            "people like you", "you must", "you need this", "secret",
            "exclusive", "insider", "they don't want you to know",
        ),
    ),

    # --- Promotional ---
    PatternRule(
        id="PROMO_FREEBIES",
        category="promotional_language",
        name="Free or no-risk offer",
        indicator=phrase_indicator(
            "free", "free gift", "no risk", "risk-free", "risk free",
            "no obligation", "bonus",
        ),
    ),
    PatternRule(
        id="PROMO_SUPERLATIVES",
        category="promotional_language",
        name="Superlative deal language",
        indicator=phrase_indicator(
            "amazing deal", "incredible offer", "best deal", "unbeatable",
            "once in a lifetime", "best ever", "lowest price ever",
            "mind-blowing", "revolutionary",
        ),
    ),

    # --- Claims ---
    PatternRule(
        id="CLAIM_GUARANTEE",
        category="unsubstantiated_claims",
        name="Guaranteed outcome",
        indicator=phrase_indicator(
            "guaranteed", "guaranteed results", "100% effective",
            "100% success", "never fails", "no side effects",
        ),
    ),
    PatternRule(
        id="CLAIM_MIRACLE",
        category="unsubstantiated_claims",
        name="Miracle or instant-result claim",
        indicator=phrase_indicator(
            "miracle", "instant results", "overnight success", "cure",
            "clinically proven", "scientifically proven",
            "doctors recommend", "lose weight fast", "get rich quick",
            "double your money",
        ),
    ),
    PatternRule(
        id="CLAIM_PERCENTAGE",
        category="unsubstantiated_claims",
        name="Unqualified percentage claim",
        indicator=r"\b\d{2,3}\s?%\s+(?:more|better|faster|cheaper|guaranteed)\b",
        literal=False,
    ),
]


# ============================================================
# CHANNEL RULES (appended by content type)
# ============================================================

EMAIL_RULES: list[PatternRule] = [
    PatternRule(
        id="EMAIL_TRIGGER_PHRASES",
        category="email_spam_indicators",
        name="Spam-filter trigger phrase",
        indicator=phrase_indicator(
            "click here", "click below", "act now", "urgent",
            "offer expires", "call now", "order now", "buy now", "apply now",
        ),
    ),
    PatternRule(
        id="EMAIL_SPAM_CLASSICS",
        category="email_spam_indicators",
        name="Classic spam wording",
        indicator=phrase_indicator(
            "dear friend", "congratulations", "you have been selected",
            "you're a winner", "winner", "cash bonus", "no credit check",
            "100% free", "this is not spam",
        ),
    ),
    PatternRule(
        id="EMAIL_PUNCTUATION",
        category="email_spam_indicators",
        name="Excessive punctuation",
        indicator=r"!{2,}|\?{3,}|\${2,}",
        literal=False,
    ),
]

SOCIAL_RULES: list[PatternRule] = [
    PatternRule(
        id="SOCIAL_ENGAGEMENT_BAIT",
        category="engagement_baiting",
        name="Engagement bait",
        indicator=phrase_indicator(
            "like and share", "like & share", "share if", "like if",
            "tag a friend", "tag someone", "comment below", "comment yes",
            "type amen", "follow for more", "share this post",
            "smash that like", "double tap",
        ),
    ),
    PatternRule(
        id="SOCIAL_VIRAL_BAIT",
        category="engagement_baiting",
        name="Virality bait",
        indicator=phrase_indicator(
            "going viral", "goes viral", "must share",
            "share before it's deleted", "share before its deleted",
        ),
    ),
]

BLOG_RULES: list[PatternRule] = [
    PatternRule(
        id="BLOG_CLICKBAIT",
        category="clickbait_headline",
        name="Clickbait phrasing",
        indicator=phrase_indicator(
            "you won't believe", "you wont believe", "what happens next",
            "this one trick", "one weird trick", "doctors hate", "shocking",
            "will blow your mind", "the truth about",
        ),
    ),
    PatternRule(
        id="BLOG_LISTICLE_HOOK",
        category="clickbait_headline",
        name="Listicle curiosity hook",
        indicator=(
            r"\b\d+\s+(?:reasons|things|ways|secrets|tricks)\b.{0,40}?"
            r"(?:won't|wont|never|will shock|will surprise)"
        ),
        literal=False,
    ),
]

AD_RULES: list[PatternRule] = [
    PatternRule(
        id="AD_PRICE_CLAIMS",
        category="misleading_advertising",
        name="Absolute price claim",
        indicator=phrase_indicator(
            "lowest price", "best price guaranteed", "cheapest anywhere",
            "no hidden fees", "unbeatable price", "prices slashed",
        ),
    ),
    PatternRule(
        id="AD_ENDORSEMENT",
        category="misleading_advertising",
        name="Unverified endorsement",
        indicator=phrase_indicator(
            "as seen on", "as seen on tv", "#1 rated", "number one rated",
            "award-winning", "recommended by experts", "trusted by millions",
        ),
    ),
]

CHANNEL_RULES: dict[str, list[PatternRule]] = {
    "email": EMAIL_RULES,
    "social": SOCIAL_RULES,
    "blog": BLOG_RULES,
    "ad": AD_RULES,
}


# ============================================================
# NORMALIZATION
# ============================================================

_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "ʼ": "'"})
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Lowercase, fold curly apostrophes, collapse whitespace."""
    return _WHITESPACE.sub(" ", text.translate(_APOSTROPHES).lower()).strip()


# ============================================================
# THE MATCHER
# ============================================================

class PatternMatcher:
    """
    Applies the layered rule sets to text.

    Instantiated once as a module singleton. Rules are compiled at
    construction and never change afterwards, so a single instance is
    safe to share between threads.
    """

    def __init__(
        self,
        general_rules: Optional[list[PatternRule]] = None,
        channel_rules: Optional[dict[str, list[PatternRule]]] = None,
    ):
        self._general_rules = list(general_rules if general_rules is not None else GENERAL_RULES)
        self._channel_rules = dict(channel_rules if channel_rules is not None else CHANNEL_RULES)
        self._compiled = {
            rule.id: re.compile(rule.indicator, re.DOTALL)
            for rule in self._all_rules()
        }

    def _all_rules(self) -> list[PatternRule]:
        rules = list(self._general_rules)
        for channel_rules in self._channel_rules.values():
            rules.extend(channel_rules)
        return rules

    def active_rules(self, content_type: str) -> list[PatternRule]:
        """General rules plus the channel layer for this content type."""
        rules = list(self._general_rules)
        rules.extend(self._channel_rules.get(content_type, []))
        return rules

    def match(self, text: str, content_type: str = "general") -> list[PatternMatch]:
        """
        Scan text and return every matching rule, in rule-table order.

        Empty or whitespace-only text yields an empty list.
        """
        normalized = normalize(text)
        if not normalized:
            return []

        matches: list[PatternMatch] = []
        for rule in self.active_rules(content_type):
            found = self._compiled[rule.id].search(normalized)
            if found is None:
                continue
            matches.append(PatternMatch(
                category=rule.category,
                rule_id=rule.id,
                snippet=found.group(0)[:120] if rule.literal else rule.name,
                weight=rule.severity_weight,
            ))
        return matches

    def get_rules(self, content_type: str = "general") -> list[dict]:
        """
        Describe the active rule surface for a content type.

        content_type="all" lists every channel layer as well.
        """
        if content_type == "all":
            rules = self._all_rules()
        else:
            rules = self.active_rules(content_type)

        channel_of = {
            rule.id: channel
            for channel, channel_rules in self._channel_rules.items()
            for rule in channel_rules
        }
        return [
            {
                "id": r.id,
                "name": r.name,
                "category": r.category,
                "weight": r.severity_weight,
                "channel": channel_of.get(r.id, "general"),
            }
            for r in rules
        ]


pattern_matcher = PatternMatcher()


def match(text: str, content_type: str = "general") -> list[PatternMatch]:
    """Module-level shortcut for pattern_matcher.match()."""
    return pattern_matcher.match(text, content_type)
