"""
AdShield API — Main Application

POST /analyze          — Analyze one piece of marketing text
POST /analyze/file     — Analyze one uploaded plain-text document
POST /analyze/files    — Analyze several uploaded documents (order-preserving)
POST /analyze/batch    — Analyze several texts in one JSON request
POST /generate         — Generate copy from a prompt, only if the prompt is safe
GET  /patterns         — List active detection rules (by content type)
GET  /health           — Health check
"""

from __future__ import annotations

import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, File, Form, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from adshield import __version__
from adshield.analyzer import analyze, analyze_batch
from adshield.config import settings
from adshield.errors import (
    AnalysisError,
    ExtractionError,
    FileTooLargeError,
    InvalidInputError,
)
from adshield.extraction import UploadedDocument, extract_text
from adshield.generation import generate_if_safe
from adshield.llm.factory import get_provider
from adshield.logging import get_logger, setup_logging
from adshield.ml_signal import resolve_ml_score
from adshield.models import ContentItem
from adshield.patterns import pattern_matcher
from adshield.schemas.analysis import (
    AnalysisResponse,
    AnalyzeRequest,
    BatchItemResponse,
    BatchRequest,
    BatchResponse,
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
)

logger = get_logger("api")

_CONTENT_TYPE_FORM = "^(general|email|social|blog|ad|document)$"


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(
        f"AdShield API starting (ml_provider={settings.ML_PROVIDER})",
    )
    yield
    logger.info("AdShield API shutting down")


app = FastAPI(
    title="AdShield API",
    description="Marketing content risk assessment: manipulation patterns, PII, compliance scoring",
    version=f"{__version__} (engine {settings.ENGINE_VERSION})",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["X-Request-ID"],
    allow_credentials=False,
)


# ============================================================
# ERROR HANDLERS
# ============================================================

# Checked in order; subclasses first. Anything unlisted is an upstream failure.
_ERROR_STATUS = (
    (FileTooLargeError, 413),
    (InvalidInputError, 400),
    (ExtractionError, 422),
)


def _error_body(code: str, detail) -> dict:
    return {"error": code, "detail": detail}


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    status = next((code for cls, code in _ERROR_STATUS if isinstance(exc, cls)), 503)
    logger.info(
        f"Request rejected: {exc.code}",
        extra={"error": exc.message, "error_type": exc.code, "path": request.url.path},
    )
    return JSONResponse(status_code=status, content=_error_body(exc.code, exc.message))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=_error_body("invalid_input", jsonable_encoder(exc.errors())),
    )


@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions — return structured error, don't leak internals."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"error": str(exc), "path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content=_error_body("internal_error", "The analysis could not be completed."),
    )


# Lazy LLM provider (risk scoring and guarded generation)
_llm_provider = None
_llm_provider_loaded = False


def _get_llm_provider():
    global _llm_provider, _llm_provider_loaded
    if not _llm_provider_loaded:
        _llm_provider = get_provider(settings.ML_PROVIDER)
        _llm_provider_loaded = True
    return _llm_provider


async def _ml_scores_for(texts: list[Optional[str]], content_types: list[str]):
    """Resolve ML scores concurrently. None texts are skipped."""

    async def _one(text: Optional[str], content_type: str):
        if not text or not text.strip():
            return None, None
        return await resolve_ml_score(text, content_type, _get_llm_provider())

    return await asyncio.gather(
        *[_one(t, ct) for t, ct in zip(texts, content_types)],
    )


async def _read_upload(file: UploadFile, content_type: str, user_id: Optional[str]) -> UploadedDocument:
    return UploadedDocument(
        filename=file.filename or "upload",
        data=await file.read(),
        content_type=content_type,
        user_id=user_id,
    )


# ============================================================
# ROUTES
# ============================================================

@app.post("/analyze", response_model=AnalysisResponse)
async def analyze_content(request: AnalyzeRequest):
    """Analyze a single piece of content."""
    if not request.content.strip():
        raise InvalidInputError("Content is empty. Provide text to analyze.")

    ml_score, reason = request.ml_score, None
    if ml_score is None:
        ml_score, reason = await resolve_ml_score(
            request.content, request.content_type, _get_llm_provider(),
        )

    item = ContentItem(
        text=request.content,
        content_type=request.content_type,
        user_id=request.user_id,
    )
    result = await run_in_threadpool(
        analyze, item,
        ml_score=ml_score, degraded_reason=reason, detect_pii=request.include_pii,
    )
    return result.to_dict()


@app.post("/analyze/file", response_model=AnalysisResponse)
async def analyze_file(
    files: list[UploadFile] = File(...),
    content_type: str = Form("document", pattern=_CONTENT_TYPE_FORM),
    user_id: Optional[str] = Form(None),
):
    """Analyze exactly one uploaded document."""
    if len(files) != 1:
        raise InvalidInputError(
            f"/analyze/file takes exactly one file, got {len(files)}. Use /analyze/files."
        )
    document = await _read_upload(files[0], content_type, user_id)
    text = extract_text(document)
    if not text.strip():
        raise InvalidInputError(f"'{document.filename}' contains no text.")

    ml_score, reason = await resolve_ml_score(text, content_type, _get_llm_provider())
    item = ContentItem(
        text=text,
        content_type=content_type,
        filename=document.filename,
        user_id=user_id,
    )
    result = await run_in_threadpool(analyze, item, ml_score=ml_score, degraded_reason=reason)
    return result.to_dict()


@app.post("/analyze/files", response_model=list[BatchItemResponse])
async def analyze_files(
    files: list[UploadFile] = File(...),
    content_type: str = Form("document", pattern=_CONTENT_TYPE_FORM),
    user_id: Optional[str] = Form(None),
):
    """
    Analyze several uploaded documents.

    The response array is aligned with upload order. A file that is too
    large, cannot be extracted, or cannot be analyzed gets an error
    entry at its index; the other files are still analyzed.
    """
    if len(files) > settings.MAX_FILES:
        raise InvalidInputError(f"At most {settings.MAX_FILES} files per request.")

    documents = [await _read_upload(f, content_type, user_id) for f in files]

    # Pre-extract only to feed the ML provider; the batch re-raises per index
    texts: list[Optional[str]] = []
    for doc in documents:
        try:
            texts.append(extract_text(doc))
        except ExtractionError:
            texts.append(None)
    resolved = await _ml_scores_for(texts, [content_type] * len(documents))

    batch = await run_in_threadpool(
        analyze_batch,
        documents,
        ml_scores=[score for score, _ in resolved],
        degraded_reasons=[reason for _, reason in resolved],
    )
    return [entry.to_dict() for entry in batch.entries]


@app.post("/analyze/batch", response_model=BatchResponse)
async def analyze_texts(request: BatchRequest):
    """Analyze several texts; failures are reported per index."""
    resolved = await _ml_scores_for(
        [item.content if item.ml_score is None else None for item in request.items],
        [item.content_type for item in request.items],
    )
    ml_scores = [
        item.ml_score if item.ml_score is not None else score
        for item, (score, _) in zip(request.items, resolved)
    ]
    reasons = [reason for _, reason in resolved]
    items = [
        ContentItem(text=i.content, content_type=i.content_type, user_id=i.user_id)
        for i in request.items
    ]

    batch = await run_in_threadpool(
        analyze_batch,
        items,
        ml_scores=ml_scores,
        degraded_reasons=reasons,
        detect_pii=[i.include_pii for i in request.items],
    )
    return {
        "results": [entry.to_dict() for entry in batch.entries],
        "total": len(batch),
        "succeeded": batch.succeeded,
        "failed": batch.failed,
    }


@app.post("/generate", response_model=GenerateResponse)
async def generate(request: GenerateRequest):
    """
    Analyze a prompt, then generate copy from it only if it is safe.

    A prompt rated above safe comes back with blocked=true and the
    analysis explaining why; the provider is not called.
    """
    if not request.content.strip():
        raise InvalidInputError("Prompt is empty. Provide text to generate from.")

    llm = _get_llm_provider()
    ml_score, reason = request.ml_score, None
    if ml_score is None:
        ml_score, reason = await resolve_ml_score(request.content, request.content_type, llm)

    item = ContentItem(
        text=request.content,
        content_type=request.content_type,
        user_id=request.user_id,
    )
    outcome = await generate_if_safe(item, llm, ml_score=ml_score, degraded_reason=reason)
    return outcome.to_dict()


@app.get("/patterns")
async def get_patterns(
    content_type: str = Query(
        "general", pattern="^(general|email|social|blog|ad|document|all)$",
    ),
):
    """
    Return the detection rules active for a content type.

    Use content_type="all" to see every channel layer.
    """
    rules = pattern_matcher.get_rules(content_type)
    return {
        "content_type": content_type,
        "engine_version": settings.ENGINE_VERSION,
        "total_rules": len(rules),
        "rules": rules,
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check."""
    return {
        "status": "operational",
        "version": __version__,
        "engine_version": settings.ENGINE_VERSION,
        "ml_provider": settings.ML_PROVIDER,
        "rules_loaded": len(pattern_matcher.get_rules("all")),
    }


# --- Body Size Limit Middleware ---
# Whole-request cap: every file at the per-file limit, plus form overhead.
# Individual oversized files are reported per index by extraction.
_MAX_BODY_BYTES = settings.MAX_UPLOAD_BYTES * max(settings.MAX_FILES, 1) + 65_536


@app.middleware("http")
async def enforce_body_size_limit(request: Request, call_next):
    """Reject requests whose declared Content-Length is over the limit."""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > _MAX_BODY_BYTES:
        return JSONResponse(
            status_code=413,
            content=_error_body(
                "payload_too_large", f"Request body exceeds {_MAX_BODY_BYTES} bytes.",
            ),
        )
    return await call_next(request)


# --- Observation Middleware: request id, version + security headers, access log ---
_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


@app.middleware("http")
async def observe_requests(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or f"http_{uuid.uuid4().hex[:16]}"
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - start) * 1000, 1)

    response.headers.update(_SECURITY_HEADERS)
    response.headers["X-AdShield-Version"] = __version__
    response.headers["X-Engine-Version"] = settings.ENGINE_VERSION
    response.headers["X-Request-ID"] = request_id

    if request.url.path != "/health":
        logger.info(
            f"{request.method} {request.url.path} → {response.status_code} ({duration_ms}ms)",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
    return response
