"""
Analyzer — Pipeline Orchestrator

Coordinates the pipeline for one content item:

  text ─┬─ pattern matcher ─┐
        └─ PII detector ────┴─ fusion ─┬─ scorer
                  external ML score ─┘ └─ recommender

and fans it out over many items for batch analysis.

analyze() is a pure, synchronous computation: no I/O, no shared
mutable state. It is safe to call from any number of threads at once.
The external ML score, when there is one, is fetched by the caller
and passed in.
"""

from __future__ import annotations

import time
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence, Union

from adshield import pii
from adshield.config import settings
from adshield.errors import AnalysisError, ExtractionError, InvalidInputError
from adshield.extraction import UploadedDocument, extract_text
from adshield.fusion import fuse
from adshield.logging import get_logger
from adshield.models import (
    AnalysisResult,
    BatchEntry,
    BatchResult,
    ContentItem,
)
from adshield.patterns import pattern_matcher
from adshield.recommender import synthesize
from adshield.scorer import score

logger = get_logger("analyzer")

BatchItem = Union[ContentItem, UploadedDocument]


def analyze(
    item: ContentItem,
    ml_score: Optional[float] = None,
    degraded_reason: Optional[str] = None,
    detect_pii: bool = True,
) -> AnalysisResult:
    """
    Analyze a single content item.

    Args:
        item: The content to analyze.
        ml_score: External ML risk probability in [0, 1], or None.
        degraded_reason: Why ml_score is None, recorded in metadata.
        detect_pii: False skips PII detection; the result then carries
            no PII findings, floors, or penalties.

    Raises:
        InvalidInputError: text is empty after trimming, or ml_score is
            out of range.
    """
    if not item.text or not item.text.strip():
        raise InvalidInputError("Content is empty. Provide text to analyze.")

    start = time.perf_counter()

    matches = pattern_matcher.match(item.text, item.content_type)
    pii_summary = pii.summarize(pii.detect(item.text) if detect_pii else [])
    verdict = fuse(
        matches, pii_summary, ml_score=ml_score, degraded_reason=degraded_reason,
    )
    compliance, marketing = score(verdict, item.content_type)
    recommendation, suggestions = synthesize(verdict)

    duration_ms = (time.perf_counter() - start) * 1000
    result = AnalysisResult(
        item=item,
        verdict=verdict,
        compliance_score=compliance,
        marketing_score=marketing,
        recommendation=recommendation,
        suggestions=tuple(suggestions),
        processing_time_ms=duration_ms,
        content_length=len(item.text),
        request_id=f"req_{uuid.uuid4().hex}",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )

    logger.info(
        f"Analysis complete: level={verdict.threat_level} type={item.content_type}",
        extra={
            "request_id": result.request_id,
            "threat_level": verdict.threat_level,
            "content_type": item.content_type,
            "attack_count": len(verdict.attack_types),
            "pii_count": pii_summary.total_count,
            "duration_ms": round(duration_ms, 3),
            "degraded": verdict.degraded,
        },
    )
    return result


def _to_content_item(
    item: BatchItem,
    extractor: Callable[[UploadedDocument], str],
) -> ContentItem:
    if isinstance(item, ContentItem):
        return item
    try:
        text = extractor(item)
    except AnalysisError:
        raise
    except Exception as e:
        # Failures inside a third-party extractor are still extraction failures
        raise ExtractionError(f"Extraction failed for '{item.filename}': {e}") from e
    return ContentItem(
        text=text,
        content_type=item.content_type,
        filename=item.filename,
        user_id=item.user_id,
    )


def analyze_batch(
    items: Sequence[BatchItem],
    ml_scores: Optional[Sequence[Optional[float]]] = None,
    degraded_reasons: Optional[Sequence[Optional[str]]] = None,
    max_workers: Optional[int] = None,
    extractor: Callable[[UploadedDocument], str] = extract_text,
    detect_pii: Optional[Sequence[bool]] = None,
) -> BatchResult:
    """
    Analyze many items independently.

    Each item is a ContentItem or an UploadedDocument (extracted first).
    A failure on one index becomes an error marker at that index; every
    other index is still analyzed. Output order always equals input
    order, whatever order the workers finish in.

    Args:
        items: Items to analyze.
        ml_scores: Optional per-index ML scores, aligned with items.
        degraded_reasons: Optional per-index reasons for a missing ML score.
        max_workers: Thread count. 1 runs sequentially. Defaults to
            settings.BATCH_MAX_WORKERS.
        extractor: Document-to-text function for UploadedDocument items.
        detect_pii: Optional per-index PII detection switches; all on
            when omitted.

    Raises:
        InvalidInputError: a per-index sequence is not aligned with items.
    """
    per_index = (
        ("ml_scores", ml_scores),
        ("degraded_reasons", degraded_reasons),
        ("detect_pii", detect_pii),
    )
    for name, aligned in per_index:
        if aligned is not None and len(aligned) != len(items):
            raise InvalidInputError(
                f"{name} has {len(aligned)} entries for {len(items)} items."
            )

    def _run(index: int) -> BatchEntry:
        item = items[index]
        filename = getattr(item, "filename", None)
        try:
            content = _to_content_item(item, extractor)
            result = analyze(
                content,
                ml_score=ml_scores[index] if ml_scores is not None else None,
                degraded_reason=degraded_reasons[index] if degraded_reasons is not None else None,
                detect_pii=detect_pii[index] if detect_pii is not None else True,
            )
        except AnalysisError as e:
            logger.warning(
                "Batch item failed",
                extra={
                    "index": index,
                    "upload_name": filename,
                    "error": e.message,
                    "error_type": e.code,
                },
            )
            return BatchEntry(index=index, error=e.code, message=e.message, filename=filename)
        return BatchEntry(index=index, result=result, filename=filename)

    total = len(items)
    # Index-addressed buffer: completion order never leaks into output order
    entries: list[Optional[BatchEntry]] = [None] * total
    workers = max_workers if max_workers is not None else settings.BATCH_MAX_WORKERS

    if workers <= 1 or total <= 1:
        for i in range(total):
            entries[i] = _run(i)
    else:
        with ThreadPoolExecutor(max_workers=min(workers, total)) as pool:
            futures = [pool.submit(_run, i) for i in range(total)]
            for future in as_completed(futures):
                entry = future.result()
                entries[entry.index] = entry

    batch = BatchResult(entries=tuple(entries))  # type: ignore[arg-type]
    logger.info(
        f"Batch complete: {batch.succeeded}/{total} analyzed",
        extra={"total": total, "failed": batch.failed},
    )
    return batch
