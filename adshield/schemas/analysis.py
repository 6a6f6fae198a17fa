"""
API Schemas — Request and Response Models

Pydantic models for the AdShield API.
"""

from __future__ import annotations

from typing import Optional
from pydantic import AliasChoices, BaseModel, Field

_CONTENT_TYPE_PATTERN = "^(general|email|social|blog|ad|document)$"


# ============================================================
# ANALYZE
# ============================================================

class AnalyzeRequest(BaseModel):
    """POST /analyze request body."""
    content: str = Field(
        ..., max_length=50_000,
        validation_alias=AliasChoices("content", "prompt"),
        description="The marketing text to analyze. `prompt` is accepted as an alias.",
    )
    content_type: str = Field("general", pattern=_CONTENT_TYPE_PATTERN,
                              description="Channel the content is written for.")
    user_id: Optional[str] = Field(None, max_length=128)
    ml_score: Optional[float] = Field(
        None, ge=0.0, le=1.0,
        description="Externally computed ML risk probability. Fetched from the "
                    "configured provider when omitted.",
    )
    include_pii: bool = Field(
        True, description="Run PII detection. When false, no PII findings, "
                          "floors, or penalties are applied.",
    )
    confidence_threshold: Optional[float] = Field(
        None, ge=0.0, le=1.0,
        description="Accepted for client compatibility and not used: threat "
                    "levels come from fixed confidence thresholds.",
    )

    model_config = {"json_schema_extra": {"examples": [
        {"content": "Hurry! Only 3 left, offer ends tonight.", "content_type": "email"},
    ]}}


class AnalysisMetadata(BaseModel):
    content_length: int
    pattern_score: float
    ml_score: Optional[float] = None
    client_id: str
    timestamp: str
    pii_types_found: int
    pii_count: int
    degraded: bool
    degraded_reason: Optional[str] = None


class AnalysisResponse(BaseModel):
    """Single-item analysis result."""
    request_id: str
    is_malicious: bool
    threat_level: str
    confidence: float
    attack_types: list[str]
    flagged_patterns: list[str]
    processing_time: float
    recommendation: str
    pii_detected: dict[str, int]
    metadata: AnalysisMetadata
    content_type: str
    filename: Optional[str] = None
    compliance_score: int
    marketing_score: int
    suggestions: list[str]


# ============================================================
# BATCH
# ============================================================

class BatchRequest(BaseModel):
    """POST /analyze/batch request body."""
    items: list[AnalyzeRequest] = Field(..., min_length=1, max_length=100)


class BatchItemResponse(BaseModel):
    """One slot of a batch: `analysis` on success, `error` otherwise."""
    analysis: Optional[AnalysisResponse] = None
    error: Optional[str] = None
    message: Optional[str] = None
    filename: Optional[str] = None
    index: Optional[int] = None


class BatchResponse(BaseModel):
    """POST /analyze/batch response body."""
    results: list[BatchItemResponse]
    total: int
    succeeded: int
    failed: int


# ============================================================
# META
# ============================================================

class HealthResponse(BaseModel):
    status: str
    version: str
    engine_version: str
    ml_provider: str
    rules_loaded: int


# ============================================================
# GUARDED GENERATION
# ============================================================

class GenerateRequest(BaseModel):
    """POST /generate request body. PII detection always runs here."""
    content: str = Field(
        ..., max_length=50_000,
        validation_alias=AliasChoices("content", "prompt"),
        description="The generation prompt. It is analyzed first and only "
                    "sent to the provider when rated safe.",
    )
    content_type: str = Field("general", pattern=_CONTENT_TYPE_PATTERN)
    user_id: Optional[str] = Field(None, max_length=128)
    ml_score: Optional[float] = Field(None, ge=0.0, le=1.0)


class GenerateResponse(BaseModel):
    success: bool
    blocked: bool
    timestamp: str
    request_id: str
    analysis: AnalysisResponse
    generated_text: Optional[str] = None
    processing_time: float
