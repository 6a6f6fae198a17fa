"""
Data Model

Plain dataclasses passed between pipeline stages. Everything here is
created fresh per request and never mutated once the orchestrator has
built it, so results can be shared across threads without copying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from adshield.errors import InvalidInputError


# ============================================================
# ENUMERATIONS
# ============================================================

CONTENT_TYPES = ("general", "email", "social", "blog", "ad", "document")

# Ordered from least to most severe. Index comparisons rely on this order.
THREAT_LEVELS = ("safe", "low", "medium", "high", "critical")


def level_index(level: str) -> int:
    """Position of a threat level in the severity order."""
    return THREAT_LEVELS.index(level)


def raise_level(level: str, steps: int = 1) -> str:
    """Move a threat level up by `steps`, saturating at critical."""
    idx = min(level_index(level) + steps, len(THREAT_LEVELS) - 1)
    return THREAT_LEVELS[idx]


def max_level(*levels: str) -> str:
    """The most severe of the given levels."""
    return max(levels, key=level_index)


# ============================================================
# INPUT
# ============================================================

@dataclass(frozen=True)
class ContentItem:
    """A single piece of content submitted for analysis."""
    text: str
    content_type: str = "general"
    filename: Optional[str] = None
    user_id: Optional[str] = None

    def __post_init__(self):
        if self.content_type not in CONTENT_TYPES:
            raise InvalidInputError(
                f"Unknown content type '{self.content_type}'. "
                f"Expected one of: {', '.join(CONTENT_TYPES)}."
            )


# ============================================================
# DETECTION OUTPUT
# ============================================================

@dataclass(frozen=True)
class PatternMatch:
    """One matched rule."""
    category: str       # e.g. "urgency_manipulation"
    rule_id: str        # e.g. "URG_IMMEDIACY"
    snippet: str        # Matched text, or a description for regex rules
    weight: float       # Base severity weight of the rule


@dataclass(frozen=True)
class PiiFinding:
    """Occurrences of one PII type. The matched values are never kept."""
    pii_type: str
    count: int


@dataclass(frozen=True)
class PiiSummary:
    """Aggregate view over all PII findings for one text."""
    findings: tuple[PiiFinding, ...] = ()

    @property
    def types_found(self) -> int:
        return len(self.findings)

    @property
    def total_count(self) -> int:
        return sum(f.count for f in self.findings)

    def as_map(self) -> dict[str, int]:
        return {f.pii_type: f.count for f in self.findings}


# ============================================================
# VERDICT + RESULT
# ============================================================

@dataclass(frozen=True)
class ThreatVerdict:
    """The fused decision for one content item."""
    threat_level: str
    confidence: float
    attack_types: tuple[str, ...]
    flagged_patterns: tuple[str, ...]
    pattern_score: float
    ml_score: Optional[float]
    pii: PiiSummary = field(default_factory=PiiSummary)
    pii_escalated: bool = False
    degraded: bool = False
    degraded_reason: Optional[str] = None

    @property
    def is_flagged(self) -> bool:
        # Derived from the level only; there is no independent flag
        return level_index(self.threat_level) > 0


@dataclass(frozen=True)
class AnalysisResult:
    """The complete response envelope for one content item."""
    item: ContentItem
    verdict: ThreatVerdict
    compliance_score: int
    marketing_score: int
    recommendation: str
    suggestions: tuple[str, ...]
    processing_time_ms: float
    content_length: int
    request_id: str
    timestamp: str

    def to_dict(self) -> dict:
        """Serialize to the public wire format."""
        v = self.verdict
        return {
            "request_id": self.request_id,
            "is_malicious": v.is_flagged,
            "threat_level": v.threat_level,
            "confidence": round(v.confidence, 3),
            "attack_types": list(v.attack_types),
            "flagged_patterns": list(v.flagged_patterns),
            "processing_time": round(self.processing_time_ms, 3),
            "recommendation": self.recommendation,
            "pii_detected": v.pii.as_map(),
            "metadata": {
                "content_length": self.content_length,
                "pattern_score": round(v.pattern_score, 3),
                "ml_score": round(v.ml_score, 3) if v.ml_score is not None else None,
                "client_id": self.item.user_id or "anonymous",
                "timestamp": self.timestamp,
                "pii_types_found": v.pii.types_found,
                "pii_count": v.pii.total_count,
                "degraded": v.degraded,
                "degraded_reason": v.degraded_reason,
            },
            "content_type": self.item.content_type,
            "filename": self.item.filename,
            "compliance_score": self.compliance_score,
            "marketing_score": self.marketing_score,
            "suggestions": list(self.suggestions),
        }


@dataclass(frozen=True)
class BatchEntry:
    """One slot of a batch: either a result or an error marker."""
    index: int
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None         # Stable error code
    message: Optional[str] = None
    filename: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    def to_dict(self) -> dict:
        if self.result is not None:
            return {"analysis": self.result.to_dict()}
        return {
            "error": self.error,
            "message": self.message,
            "filename": self.filename,
            "index": self.index,
        }


@dataclass(frozen=True)
class BatchResult:
    """Index-aligned results for a sequence of items."""
    entries: tuple[BatchEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> BatchEntry:
        return self.entries[index]

    @property
    def succeeded(self) -> int:
        return sum(1 for e in self.entries if e.ok)

    @property
    def failed(self) -> int:
        return len(self.entries) - self.succeeded
