"""
Guarded Generation

Generates marketing copy from a prompt, but only after the prompt
itself has been analyzed and rated safe. A prompt at any other
threat level is blocked and the provider is never called.

The analysis result is always returned, blocked or not, so callers
can show why a prompt was refused.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Optional

from adshield.analyzer import analyze
from adshield.errors import GenerationUnavailable
from adshield.llm import LLMProvider
from adshield.logging import get_logger
from adshield.models import AnalysisResult, ContentItem

logger = get_logger("generation")

GENERATION_SYSTEM_INSTRUCTION = (
    "You write marketing copy. Keep the user's key message. Do not add "
    "urgency, scarcity, pressure, guarantees, or claims the prompt does "
    "not make. Focus on concrete value and a calm call to action."
)

GENERATION_TEMPERATURE = 0.7


@dataclass(frozen=True)
class GuardedGeneration:
    """Outcome of a guarded generation request."""
    analysis: AnalysisResult
    generated_text: Optional[str]
    processing_time_ms: float

    @property
    def blocked(self) -> bool:
        return self.generated_text is None

    def to_dict(self) -> dict:
        return {
            "success": not self.blocked,
            "blocked": self.blocked,
            "timestamp": self.analysis.timestamp,
            "request_id": self.analysis.request_id,
            "analysis": self.analysis.to_dict(),
            "generated_text": self.generated_text,
            "processing_time": round(self.processing_time_ms, 3),
        }


async def generate_if_safe(
    item: ContentItem,
    llm: Optional[LLMProvider],
    ml_score: Optional[float] = None,
    degraded_reason: Optional[str] = None,
) -> GuardedGeneration:
    """
    Analyze the prompt and generate copy only when it is rated safe.

    Raises:
        InvalidInputError: empty prompt or invalid ml_score.
        GenerationUnavailable: the prompt is safe but no provider is
            configured, or the provider failed.
    """
    start = time.perf_counter()
    result = await asyncio.to_thread(
        analyze, item, ml_score=ml_score, degraded_reason=degraded_reason,
    )

    if result.verdict.threat_level != "safe":
        logger.info(
            "Generation blocked",
            extra={
                "request_id": result.request_id,
                "threat_level": result.verdict.threat_level,
                "attack_count": len(result.verdict.attack_types),
            },
        )
        return GuardedGeneration(
            analysis=result,
            generated_text=None,
            processing_time_ms=(time.perf_counter() - start) * 1000,
        )

    if llm is None:
        raise GenerationUnavailable("No generation provider is configured.")
    try:
        text = await llm.generate(
            item.text,
            system_instruction=GENERATION_SYSTEM_INSTRUCTION,
            temperature=GENERATION_TEMPERATURE,
        )
    except Exception as e:
        raise GenerationUnavailable(f"{llm.name} generation failed: {e}") from e
    if not text or not text.strip():
        raise GenerationUnavailable(f"{llm.name} returned no content.")

    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "Generation complete",
        extra={
            "request_id": result.request_id,
            "provider": llm.name,
            "duration_ms": round(duration_ms, 1),
        },
    )
    return GuardedGeneration(
        analysis=result, generated_text=text.strip(), processing_time_ms=duration_ms,
    )
