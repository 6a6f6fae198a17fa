"""
AdShield — Marketing Content Risk Assessment Engine

Deterministic detection of manipulative marketing language and PII,
fused with an optional external ML risk signal into a threat verdict,
compliance and marketing scores, and remediation suggestions.

Public API:
  - analyze:          Analyze one ContentItem
  - analyze_batch:    Analyze many items, order-preserving, per-index errors
  - pattern_matcher:  Layered rule sets (general + channel)
  - fuse:             Pattern + ML + PII → ThreatVerdict
  - score:            Compliance / marketing scores for a verdict
  - synthesize:       Recommendation text and suggestions
  - resolve_ml_score: Fetch the external ML signal, degrading on failure
  - generate_if_safe: Generate copy from a prompt only when it is rated safe
  - LLMProvider:      Abstract LLM interface for provider swapping

Usage:
    from adshield import analyze, ContentItem
    result = analyze(ContentItem("Hurry! Only 3 left.", content_type="email"))
"""

__version__ = "1.0.0"

from adshield.analyzer import analyze, analyze_batch
from adshield.errors import (
    AnalysisError,
    ExtractionError,
    FileTooLargeError,
    GenerationUnavailable,
    InvalidInputError,
    UpstreamScoringUnavailable,
)
from adshield.extraction import UploadedDocument, extract_text
from adshield.fusion import fuse
from adshield.generation import GuardedGeneration, generate_if_safe
from adshield.llm import LLMProvider
from adshield.llm.factory import get_provider
from adshield.ml_signal import fetch_ml_score, resolve_ml_score
from adshield.models import (
    AnalysisResult,
    BatchEntry,
    BatchResult,
    ContentItem,
    PatternMatch,
    PiiFinding,
    PiiSummary,
    ThreatVerdict,
)
from adshield.patterns import pattern_matcher
from adshield.recommender import synthesize
from adshield.scorer import score

__all__ = [
    "analyze",
    "analyze_batch",
    "AnalysisError",
    "ExtractionError",
    "FileTooLargeError",
    "GenerationUnavailable",
    "InvalidInputError",
    "UpstreamScoringUnavailable",
    "UploadedDocument",
    "extract_text",
    "fuse",
    "generate_if_safe",
    "GuardedGeneration",
    "LLMProvider",
    "get_provider",
    "fetch_ml_score",
    "resolve_ml_score",
    "AnalysisResult",
    "BatchEntry",
    "BatchResult",
    "ContentItem",
    "PatternMatch",
    "PiiFinding",
    "PiiSummary",
    "ThreatVerdict",
    "pattern_matcher",
    "synthesize",
    "score",
]
