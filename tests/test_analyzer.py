"""
Analyzer Tests — Single-Item Pipeline and Batch Aggregation
"""

from __future__ import annotations

import logging
import time

import pytest

from adshield.analyzer import analyze, analyze_batch
from adshield.errors import ExtractionError, InvalidInputError
from adshield.extraction import UploadedDocument
from adshield.logging import setup_logging
from adshield.models import ContentItem

EXAMPLE_RISKY = "URGENT: ACT NOW, this offer expires soon, guaranteed results!"
EXAMPLE_CLEAN = "Our product helps you save time."


def _stable(result_dict: dict) -> dict:
    """Strip the per-call fields (id, timing, timestamp)."""
    d = dict(result_dict)
    d.pop("request_id")
    d.pop("processing_time")
    d["metadata"] = {k: v for k, v in d["metadata"].items() if k != "timestamp"}
    return d


# ============================================================
# SINGLE ITEM
# ============================================================

class TestAnalyze:

    def test_risky_email(self):
        result = analyze(ContentItem(EXAMPLE_RISKY, content_type="email"))
        data = result.to_dict()
        assert data["threat_level"] == "high"
        assert data["is_malicious"] is True
        assert "urgency_manipulation" in data["attack_types"]
        assert "email_spam_indicators" in data["attack_types"]
        assert data["suggestions"]
        assert data["compliance_score"] == 50
        assert data["marketing_score"] == 35

    def test_clean_general(self):
        data = analyze(ContentItem(EXAMPLE_CLEAN)).to_dict()
        assert data["threat_level"] == "safe"
        assert data["is_malicious"] is False
        assert data["compliance_score"] == 100
        assert data["marketing_score"] >= 80
        assert data["suggestions"] == []
        assert data["attack_types"] == []

    def test_envelope_fields(self):
        data = analyze(ContentItem(EXAMPLE_CLEAN, user_id="u-42")).to_dict()
        assert data["request_id"].startswith("req_")
        assert data["metadata"]["client_id"] == "u-42"
        assert data["metadata"]["content_length"] == len(EXAMPLE_CLEAN)
        assert data["metadata"]["degraded"] is True
        assert data["pii_detected"] == {}

    def test_anonymous_client(self):
        data = analyze(ContentItem(EXAMPLE_CLEAN)).to_dict()
        assert data["metadata"]["client_id"] == "anonymous"

    def test_ml_score_passed_through(self):
        data = analyze(ContentItem(EXAMPLE_RISKY, "email"), ml_score=0.9).to_dict()
        assert data["metadata"]["ml_score"] == 0.9
        assert data["metadata"]["degraded"] is False

    def test_pii_reported(self):
        text = "Contact jane@example.com, bob@example.com or (555) 123-4567."
        data = analyze(ContentItem(text)).to_dict()
        assert data["pii_detected"] == {"email": 2, "phone": 1}
        assert data["metadata"]["pii_types_found"] == 2
        assert data["metadata"]["pii_count"] == 3
        assert data["threat_level"] == "medium"
        assert data["is_malicious"] is True

    def test_pii_detection_switched_off(self):
        text = "Contact jane@example.com, bob@example.com or (555) 123-4567."
        data = analyze(ContentItem(text), detect_pii=False).to_dict()
        assert data["pii_detected"] == {}
        assert data["metadata"]["pii_count"] == 0
        assert data["threat_level"] == "safe"
        assert data["compliance_score"] == 100

    @pytest.mark.parametrize("text", ["a." * 25_000, "a" * 50_000, "a@" * 25_000])
    def test_max_length_input_stays_fast(self, text):
        start = time.perf_counter()
        analyze(ContentItem(text))
        assert time.perf_counter() - start < 2.0

    def test_idempotent(self):
        item = ContentItem(EXAMPLE_RISKY, content_type="email")
        assert _stable(analyze(item).to_dict()) == _stable(analyze(item).to_dict())

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_empty_rejected(self, text):
        with pytest.raises(InvalidInputError):
            analyze(ContentItem(text))

    def test_unknown_content_type_rejected(self):
        with pytest.raises(InvalidInputError):
            ContentItem("hello", content_type="newsletter")


# ============================================================
# BATCH
# ============================================================

def _five_items() -> list:
    return [
        ContentItem(EXAMPLE_RISKY, content_type="email", filename="a.txt"),
        ContentItem(EXAMPLE_CLEAN, filename="b.txt"),
        ContentItem("Like and share if you agree!", content_type="social", filename="c.txt"),
        UploadedDocument(filename="brochure.pdf", data=b"%PDF-1.7 binary"),
        UploadedDocument(filename="e.txt", data="Don’t miss out!".encode("utf-8")),
    ]


class TestBatch:

    def test_order_and_error_marker(self):
        items = _five_items()
        batch = analyze_batch(items, max_workers=4)

        assert len(batch) == 5
        assert [e.index for e in batch.entries] == [0, 1, 2, 3, 4]
        assert batch.succeeded == 4
        assert batch.failed == 1

        failed = batch[3]
        assert failed.ok is False
        assert failed.error == ExtractionError.code
        assert failed.filename == "brochure.pdf"
        assert failed.to_dict()["index"] == 3

    def test_matches_standalone_analysis(self):
        items = _five_items()
        batch = analyze_batch(items, max_workers=4)
        for i in (0, 1, 2):
            assert _stable(batch[i].result.to_dict()) == _stable(analyze(items[i]).to_dict())

        extracted = ContentItem("Don’t miss out!", content_type="document", filename="e.txt")
        assert _stable(batch[4].result.to_dict()) == _stable(analyze(extracted).to_dict())

    def test_sequential_equals_parallel(self):
        items = _five_items()
        seq = analyze_batch(items, max_workers=1)
        par = analyze_batch(items, max_workers=4)
        assert [e.ok for e in seq.entries] == [e.ok for e in par.entries]
        for a, b in zip(seq.entries, par.entries):
            if a.ok:
                assert _stable(a.result.to_dict()) == _stable(b.result.to_dict())

    def test_empty_item_is_marker_not_failure(self):
        batch = analyze_batch([ContentItem(EXAMPLE_CLEAN), ContentItem("  ")])
        assert batch[0].ok
        assert batch[1].error == InvalidInputError.code

    def test_ml_scores_aligned(self):
        items = [ContentItem(EXAMPLE_RISKY, "email"), ContentItem(EXAMPLE_CLEAN)]
        batch = analyze_batch(items, ml_scores=[0.8, None])
        assert batch[0].result.verdict.ml_score == 0.8
        assert batch[1].result.verdict.degraded is True

    def test_ml_scores_misaligned(self):
        with pytest.raises(InvalidInputError):
            analyze_batch([ContentItem(EXAMPLE_CLEAN)], ml_scores=[0.1, 0.2])
        with pytest.raises(InvalidInputError):
            analyze_batch([ContentItem(EXAMPLE_CLEAN)], degraded_reasons=[])
        with pytest.raises(InvalidInputError):
            analyze_batch([ContentItem(EXAMPLE_CLEAN)], detect_pii=[True, False])

    def test_pii_switch_per_index(self):
        text = "Write to jane@example.com."
        batch = analyze_batch(
            [ContentItem(text), ContentItem(text)], detect_pii=[True, False],
        )
        assert batch[0].result.to_dict()["pii_detected"] == {"email": 1}
        assert batch[1].result.to_dict()["pii_detected"] == {}

    def test_failed_item_logged_with_logging_configured(self, caplog):
        setup_logging()
        items = [
            ContentItem(EXAMPLE_CLEAN),
            UploadedDocument("brochure.pdf", b"%PDF-1.7"),
            ContentItem(EXAMPLE_RISKY, content_type="email"),
        ]
        with caplog.at_level(logging.INFO, logger="adshield"):
            batch = analyze_batch(items, max_workers=1)

        assert [e.ok for e in batch.entries] == [True, False, True]
        failures = [r for r in caplog.records if r.getMessage() == "Batch item failed"]
        assert len(failures) == 1
        assert failures[0].upload_name == "brochure.pdf"
        assert failures[0].index == 1
        assert failures[0].error_type == ExtractionError.code

    def test_degraded_reasons_recorded(self):
        batch = analyze_batch(
            [ContentItem(EXAMPLE_CLEAN)], degraded_reasons=["ml_provider_disabled"],
        )
        assert batch[0].result.verdict.degraded_reason == "ml_provider_disabled"

    def test_extractor_failure_wrapped(self):
        def broken(doc):
            raise RuntimeError("parser crashed")

        batch = analyze_batch(
            [UploadedDocument("x.txt", b"hello")], extractor=broken,
        )
        assert batch[0].error == ExtractionError.code
        assert "parser crashed" in batch[0].message

    def test_custom_extractor(self):
        batch = analyze_batch(
            [UploadedDocument("deck.pdf", b"...")],
            extractor=lambda doc: "Guaranteed results!",
        )
        assert batch[0].ok
        assert "unsubstantiated_claims" in batch[0].result.verdict.attack_types

    def test_empty_batch(self):
        batch = analyze_batch([])
        assert len(batch) == 0
        assert batch.failed == 0


# ============================================================
# SCORE DIVERGENCE (end to end)
# ============================================================

def _on_one_line(points: list[tuple[int, int]]) -> bool:
    """True when a single marketing = a * compliance + b fits every point."""
    by_compliance: dict[int, int] = {}
    for compliance, marketing in points:
        if by_compliance.setdefault(compliance, marketing) != marketing:
            return False
    xs = sorted(by_compliance)
    if len(xs) < 3:
        return True
    x0, x1 = xs[0], xs[1]
    y0, y1 = by_compliance[x0], by_compliance[x1]
    return all(
        (x1 - x0) * (by_compliance[x] - y0) == (y1 - y0) * (x - x0)
        for x in xs[2:]
    )


class TestScoreDivergence:
    """PII plus a channel pattern moves the two scores apart."""

    ITEMS = [
        ContentItem(
            "Like and share if you agree! Email jane@example.com, "
            "bob@example.com or amy@example.com.",
            content_type="social",
        ),
        ContentItem(
            "Tag a friend and comment below! Call (555) 123-4567 "
            "or write to jane@example.com.",
            content_type="social",
        ),
        ContentItem(
            "As seen on TV. Reach us at jane@example.com or +44 20 7946 0958.",
            content_type="ad",
        ),
    ]

    def test_scores_differ_per_item(self):
        for item in self.ITEMS:
            data = analyze(item).to_dict()
            assert data["pii_detected"]
            assert data["attack_types"]
            assert data["compliance_score"] != data["marketing_score"]

    def test_scores_not_affine(self):
        points = []
        for item in self.ITEMS:
            data = analyze(item).to_dict()
            points.append((data["compliance_score"], data["marketing_score"]))
        assert not _on_one_line(points)
