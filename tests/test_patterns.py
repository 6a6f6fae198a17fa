"""
Pattern Matcher Tests

Covers the layered rule sets: general rules on every content type,
channel rules only on their channel, whole-phrase matching, and the
rule listing served by /patterns.
"""

from __future__ import annotations

import pytest

from adshield.patterns import (
    CHANNEL_RULES,
    GENERAL_RULES,
    PatternMatcher,
    PatternRule,
    match,
    normalize,
    pattern_matcher,
    phrase_indicator,
)


def _rule_ids(text: str, content_type: str = "general") -> list[str]:
    return [m.rule_id for m in match(text, content_type)]


# ============================================================
# NORMALIZATION
# ============================================================

class TestNormalize:

    def test_lowercases_and_collapses_whitespace(self):
        assert normalize("  ACT\n\tNOW  ") == "act now"

    def test_folds_curly_apostrophes(self):
        assert normalize("Don’t Wait") == "don't wait"

    def test_phrase_indicator_prefers_longer_phrase(self):
        import re
        found = re.search(phrase_indicator("free", "free gift"), "claim your free gift")
        assert found.group(0) == "free gift"


# ============================================================
# GENERAL RULES
# ============================================================

class TestGeneralRules:

    def test_empty_text_yields_no_matches(self):
        assert match("") == []
        assert match("   \n\t ") == []

    def test_neutral_text_yields_no_matches(self):
        assert match("Our product helps you save time.") == []

    def test_urgency_detected(self):
        ids = _rule_ids("Hurry, this offer ends tonight!")
        assert "URG_IMMEDIACY" in ids
        assert "URG_DEADLINE" in ids

    def test_whole_phrase_only(self):
        """'cure' must not fire inside 'secure'."""
        assert "CLAIM_MIRACLE" not in _rule_ids("Your account is secure.")
        assert "CLAIM_MIRACLE" in _rule_ids("A cure for tired skin.")

    def test_curly_apostrophe_matches(self):
        assert "PRESSURE_FOMO" in _rule_ids("Don’t miss this one.")

    def test_case_insensitive(self):
        assert _rule_ids("GUARANTEED") == _rule_ids("guaranteed")

    def test_one_match_per_rule(self):
        matches = match("hurry hurry hurry, act now, right now")
        assert [m.rule_id for m in matches].count("URG_IMMEDIACY") == 1

    def test_regex_rule_reports_rule_name(self):
        matches = [m for m in match("Only 3 left at this price") if m.rule_id == "SCARCITY_COUNT"]
        assert len(matches) == 1
        assert matches[0].snippet == "Remaining-quantity claim"

    def test_literal_rule_reports_matched_text(self):
        m = next(m for m in match("It is guaranteed.") if m.rule_id == "CLAIM_GUARANTEE")
        assert m.snippet == "guaranteed"

    def test_weight_comes_from_category(self):
        m = next(m for m in match("Act now") if m.rule_id == "URG_IMMEDIACY")
        assert m.weight == pytest.approx(0.35)

    def test_matches_follow_rule_table_order(self):
        matches = match("Guaranteed results. Hurry!")
        ids = [m.rule_id for m in matches]
        assert ids.index("URG_IMMEDIACY") < ids.index("CLAIM_GUARANTEE")

    def test_deterministic(self):
        text = "Act now! Only 2 hours left. Free gift, guaranteed."
        assert match(text, "email") == match(text, "email")


# ============================================================
# CHANNEL LAYERING
# ============================================================

class TestChannelRules:

    def test_channel_rule_inactive_for_other_types(self):
        assert _rule_ids("Click here to read more.") == []
        assert _rule_ids("Click here to read more.", "email") == ["EMAIL_TRIGGER_PHRASES"]

    def test_social_engagement_bait(self):
        text = "Like and share if you agree! Tag a friend."
        assert _rule_ids(text, "general") == []
        assert "SOCIAL_ENGAGEMENT_BAIT" in _rule_ids(text, "social")

    def test_blog_clickbait(self):
        assert "BLOG_CLICKBAIT" in _rule_ids("You won't believe what happens next", "blog")

    def test_ad_endorsement(self):
        assert "AD_ENDORSEMENT" in _rule_ids("As seen on TV!", "ad")

    def test_email_punctuation(self):
        assert "EMAIL_PUNCTUATION" in _rule_ids("Big news!!!", "email")
        assert "EMAIL_PUNCTUATION" not in _rule_ids("Big news!", "email")

    def test_document_uses_general_rules_only(self):
        text = "Click here. Tag a friend. As seen on TV."
        assert _rule_ids(text, "document") == []

    def test_active_rules_layering(self):
        general = pattern_matcher.active_rules("general")
        email = pattern_matcher.active_rules("email")
        assert len(general) == len(GENERAL_RULES)
        assert len(email) == len(GENERAL_RULES) + len(CHANNEL_RULES["email"])
        assert email[:len(general)] == general


# ============================================================
# RULE LISTING
# ============================================================

class TestGetRules:

    def test_all_lists_every_rule(self):
        total = len(GENERAL_RULES) + sum(len(r) for r in CHANNEL_RULES.values())
        assert len(pattern_matcher.get_rules("all")) == total

    def test_rule_fields(self):
        rule = pattern_matcher.get_rules("email")[-1]
        assert set(rule) == {"id", "name", "category", "weight", "channel"}
        assert rule["channel"] == "email"

    def test_matched_rule_ids_are_listed(self):
        listed = {r["id"] for r in pattern_matcher.get_rules("all")}
        matches = pattern_matcher.match(
            "URGENT: ACT NOW, this offer expires soon, guaranteed results!", "email",
        )
        assert matches
        assert {m.rule_id for m in matches} <= listed
        assert "URG_IMMEDIACY" in listed

    def test_general_rules_report_general_channel(self):
        assert all(r["channel"] == "general" for r in pattern_matcher.get_rules("general"))

    def test_custom_rule_set(self):
        matcher = PatternMatcher(
            general_rules=[PatternRule(
                id="TEST_ONLY",
                category="promotional_language",
                name="Test rule",
                indicator=phrase_indicator("sparkle"),
                weight=0.5,
            )],
            channel_rules={},
        )
        matches = matcher.match("Now with extra SPARKLE")
        assert [m.rule_id for m in matches] == ["TEST_ONLY"]
        assert matches[0].weight == 0.5
        assert matcher.match("Act now") == []
