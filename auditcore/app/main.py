"""
FastAPI entrypoint for the audit synthesis service.

This module is a thin composition root. It loads configuration once,
wires the model executor, cache store and transcriber, and exposes the
frozen wire-format AuditResult. No synthesis logic lives here.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional, Tuple
from uuid import uuid4

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.responses import Response

from auditcore.app.config import AuditCoreConfig
from auditcore.app.schemas.audit import AuditInput, SourceType
from auditcore.app.schemas.requests import AuditRequest
from auditcore.app.synthesis.cache import InMemoryAuditCacheStore
from auditcore.app.synthesis.errors import AuditSynthesisError
from auditcore.app.synthesis.llm_executor import OpenAITextExecutor
from auditcore.app.synthesis.pipeline import AuditSynthesisPipeline
from auditcore.app.synthesis.transcription import (
    OpenAITranscriber,
    Transcriber,
    is_transcription_placeholder,
)

# Events / streaming
from auditcore.app.events import MemoryQueueEventEmitter

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Presentation helpers (presentation-only)
# ---------------------------------------------------------------------------

def pretty_json(data: Any) -> str:
    """
    Pretty-print JSON for human-readable output.
    """
    return json.dumps(
        data,
        ensure_ascii=False,
        allow_nan=False,
        indent=2,
        separators=(", ", ": "),
    )


class PrettyJSONResponse(Response):
    """
    Pretty-printed JSON response. Presentation concern only.
    """

    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        return pretty_json(content).encode("utf-8")


# ---------------------------------------------------------------------------
# Application setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Audit Synthesis Service",
    description="Deterministic compliance audit synthesis over generative model output",
    version="1.0.0",
)


def build_services(
    config: AuditCoreConfig,
) -> Tuple[Optional[AuditSynthesisPipeline], Optional[Transcriber]]:
    """
    Wire external collaborators. With the model provider disabled the
    service still starts, and audit endpoints answer 503.
    """
    if not config.model_enabled:
        logger.warning("MODEL_PROVIDER is disabled; audit endpoints are unavailable")
        return None, None

    pipeline = AuditSynthesisPipeline(
        executor=OpenAITextExecutor.from_config(config),
        config=config,
        cache_store=InMemoryAuditCacheStore(),
    )
    transcriber = OpenAITranscriber.from_config(config)
    return pipeline, transcriber


# ---------------------------------------------------------------------------
# Startup / Shutdown
# ---------------------------------------------------------------------------

@app.on_event("startup")
def startup_event() -> None:
    """
    Application startup hook.

    Configuration is loaded once and treated as immutable for the lifetime
    of the process.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = AuditCoreConfig.from_env()
    pipeline, transcriber = build_services(config)

    app.state.config = config
    app.state.pipeline = pipeline
    app.state.transcriber = transcriber


# ---------------------------------------------------------------------------
# Request helpers
# ---------------------------------------------------------------------------

def _pipeline() -> AuditSynthesisPipeline:
    pipeline = getattr(app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(
            status_code=503,
            detail="Audit model provider is not configured",
        )
    return pipeline


def _audit_input(request: AuditRequest) -> AuditInput:
    try:
        return request.to_audit_input()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _synthesis_failure(exc: AuditSynthesisError) -> HTTPException:
    return HTTPException(
        status_code=502,
        detail={"failure_type": exc.failure_type, "detail": exc.detail},
    )


async def _run(audit_input: AuditInput) -> PrettyJSONResponse:
    pipeline = _pipeline()
    try:
        result = await pipeline.run(audit_input, audit_id=str(uuid4()))
    except AuditSynthesisError as exc:
        raise _synthesis_failure(exc) from exc
    return PrettyJSONResponse(content=result.to_wire())


# ---------------------------------------------------------------------------
# API Routes
# ---------------------------------------------------------------------------

@app.post(
    "/audit",
    response_class=PrettyJSONResponse,
    summary="Audit text, URL-derived, image-derived or email content",
)
async def audit_content(request: AuditRequest) -> PrettyJSONResponse:
    return await _run(_audit_input(request))


@app.post(
    "/audit/media",
    response_class=PrettyJSONResponse,
    summary="Transcribe and audit an audio or video upload",
)
async def audit_media(
    media: UploadFile = File(..., description="Audio or video file to audit"),
) -> PrettyJSONResponse:
    content_type = (media.content_type or "").lower()
    if content_type.startswith("audio/"):
        source_type = SourceType.AUDIO
    elif content_type.startswith("video/"):
        source_type = SourceType.VIDEO
    else:
        raise HTTPException(
            status_code=400,
            detail="Only audio/* and video/* content is supported",
        )

    try:
        media_bytes = await media.read()
    except Exception as exc:
        raise HTTPException(
            status_code=400,
            detail="Failed to read uploaded media",
        ) from exc

    if not media_bytes:
        raise HTTPException(
            status_code=400,
            detail="Uploaded media is empty",
        )

    # ------------------------------------------------------------------
    # Hard resource safety limits
    # ------------------------------------------------------------------
    config: AuditCoreConfig = app.state.config
    if len(media_bytes) > config.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=(
                f"Media exceeds maximum allowed size of "
                f"{config.MAX_UPLOAD_SIZE_MB} MB"
            ),
        )

    _pipeline()
    transcriber: Optional[Transcriber] = getattr(app.state, "transcriber", None)
    if transcriber is None:
        raise HTTPException(
            status_code=503,
            detail="Transcription is not configured",
        )

    filename = media.filename or "upload"
    transcript = await transcriber.transcribe(media_bytes, filename)
    if is_transcription_placeholder(transcript):
        raise HTTPException(status_code=422, detail=transcript)

    audit_input = AuditInput(
        text=transcript,
        source_type=source_type,
        metadata={"filename": filename, "content_type": content_type},
    )
    return await _run(audit_input)


# ---------------------------------------------------------------------------
# Streaming Audit (SSE)
# ---------------------------------------------------------------------------

@app.post(
    "/audit/stream",
    summary="Audit content while streaming progress events",
)
async def audit_content_stream(request: AuditRequest):
    """
    Run an audit while streaming deterministic progress events.

    This endpoint is observational only:
    - Client disconnects do NOT cancel the audit
    - Events do NOT influence execution
    - The final audit_completed event carries the wire-format result
    """
    audit_input = _audit_input(request)
    pipeline = _pipeline()
    audit_id = str(uuid4())
    emitter = MemoryQueueEventEmitter()

    # --------------------------------------------------------------
    # Background audit execution
    # --------------------------------------------------------------
    async def run_audit_task() -> None:
        try:
            await pipeline.run(audit_input, audit_id=audit_id, emitter=emitter)
        except AuditSynthesisError:
            # Pipeline already emitted AUDIT_FAILED
            pass
        except Exception:
            logger.exception("Streaming audit %s crashed", audit_id)
            await emitter.close()

    asyncio.create_task(run_audit_task())

    # --------------------------------------------------------------
    # SSE event stream
    # --------------------------------------------------------------
    async def event_stream():
        try:
            async for event in emitter.stream():
                yield event.to_sse_payload()
        except asyncio.CancelledError:
            # Client disconnected; audit continues
            pass

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


# ---------------------------------------------------------------------------
# Health Check
# ---------------------------------------------------------------------------

@app.get(
    "/health",
    summary="Service health check",
)
def health_check() -> JSONResponse:
    """Simple health check endpoint."""
    config: Optional[AuditCoreConfig] = getattr(app.state, "config", None)
    return JSONResponse(
        content={
            "status": "ok",
            "service": "auditcore",
            "model_enabled": bool(config and config.model_enabled),
            "rule_pack_version": config.RULE_PACK_VERSION if config else None,
        }
    )
