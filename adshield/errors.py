"""
Pipeline Errors

Every failure the analysis pipeline can raise. Each error carries a
stable `code` that the HTTP layer and the batch aggregator put on the
wire, so callers can branch on it without parsing messages.
"""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for per-request analysis failures."""

    code = "analysis_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidInputError(AnalysisError):
    """Empty or whitespace-only content, or a malformed request field."""

    code = "invalid_input"


class ExtractionError(AnalysisError):
    """A document could not be turned into plain text."""

    code = "extraction_failed"


class UpstreamScoringUnavailable(AnalysisError):
    """The external ML scoring signal could not be obtained."""

    code = "upstream_scoring_unavailable"


class FileTooLargeError(ExtractionError):
    """An uploaded document exceeds the per-file size limit."""

    code = "file_too_large"


class GenerationUnavailable(AnalysisError):
    """Content generation was requested but no provider could serve it."""

    code = "generation_unavailable"
