"""
External ML Signal

Fetches the optional ML risk probability that Score Fusion blends
with the pattern score. The pipeline never computes this signal
itself; it asks the configured LLM provider and validates the answer.

Any failure (no provider, transport error, open circuit, malformed
or out-of-range answer) raises UpstreamScoringUnavailable. Callers
that want graceful degradation use resolve_ml_score(), which logs the
failure and returns (None, reason) so fusion can renormalize onto the
pattern score and record the reason in the result metadata.
"""

from __future__ import annotations

import time
from typing import Optional

from adshield.errors import UpstreamScoringUnavailable
from adshield.llm import LLMProvider
from adshield.logging import get_logger

logger = get_logger("ml_signal")

# Only a bounded prefix is sent upstream
MAX_SCORED_CHARS = 8_000

RISK_SCORING_PROMPT = """You are a marketing compliance classifier.

Rate how likely the following {content_type} content is to be manipulative,
deceptive, or non-compliant marketing (false urgency, fake scarcity, pressure
tactics, unsubstantiated claims, spam or bait patterns).

## Content
{text}

Return ONLY valid JSON with a single key:
- "risk_probability": float from 0.0 (clearly compliant) to 1.0 (clearly manipulative)"""


async def fetch_ml_score(
    text: str,
    content_type: str,
    llm: Optional[LLMProvider],
) -> float:
    """
    Ask the provider for a risk probability in [0, 1].

    Raises:
        UpstreamScoringUnavailable: on any failure to obtain a valid score.
    """
    if llm is None:
        raise UpstreamScoringUnavailable("no ML provider configured")

    prompt = RISK_SCORING_PROMPT.format(
        content_type=content_type, text=text[:MAX_SCORED_CHARS],
    )
    try:
        payload = await llm.generate_json(prompt, temperature=0.0)
    except Exception as e:
        raise UpstreamScoringUnavailable(f"ML provider error: {e}") from e

    raw = payload.get("risk_probability")
    if isinstance(raw, bool):
        raw = None
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise UpstreamScoringUnavailable(
            f"ML provider returned no usable risk_probability: {raw!r}"
        ) from e
    if not 0.0 <= value <= 1.0:
        raise UpstreamScoringUnavailable(
            f"ML provider returned out-of-range risk_probability: {value}"
        )
    return value


async def resolve_ml_score(
    text: str,
    content_type: str,
    llm: Optional[LLMProvider],
) -> tuple[Optional[float], Optional[str]]:
    """
    Fetch the ML score, degrading instead of failing.

    Returns:
        (score, None) on success, (None, reason) when unavailable.
    """
    if llm is None:
        return None, "ml_provider_disabled"

    start = time.perf_counter()
    try:
        value = await fetch_ml_score(text, content_type, llm)
    except UpstreamScoringUnavailable as e:
        logger.warning(
            "ML scoring unavailable, falling back to pattern-only scoring",
            extra={
                "error": e.message,
                "error_type": e.code,
                "content_type": content_type,
                "provider": llm.name,
                "duration_ms": round((time.perf_counter() - start) * 1000, 1),
            },
        )
        return None, e.code
    logger.info(
        "ML score fetched",
        extra={
            "content_type": content_type,
            "provider": llm.name,
            "duration_ms": round((time.perf_counter() - start) * 1000, 1),
        },
    )
    return value, None
