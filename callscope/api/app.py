"""
callscope/api/app.py
=====================
HTTP API - CallScope

Responsibility:
    - POST /api/v1/upload-transcript   validate a transcript file, return its text
    - POST /api/v1/analyze-call        sanitize + validate, run the analysis
    - GET  /api/v1/analysis/{id}       fetch a cached analysis result
    - POST /api/v1/session             issue a session id
    - GET  /api/v1/rate-limits         remaining capacity of both limiters
    - POST /api/v1/csp-report          registered at startup by initialize(),
                                       exempt from the API limiter

Ownership:
    create_app() builds and owns the storage and BOTH rate limiters
    (analysis: 5 / minute, general API: 100 / 15 minutes by default).
    They live on ``app.state``; nothing is shared between app instances.

Error mapping:
    - Validation failure          → 422, ``detail`` is the validation error
    - Missing analysis inputs     → 400
    - Rate limit exceeded         → 429 with ``Retry-After``
    - No secure random source     → 503
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

import aiohttp
from fastapi import APIRouter, Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from callscope import __version__
from callscope.analysis import (
    MISSING_INPUTS_MESSAGE,
    AnalysisInputError,
    AnalyzeRequest,
    analyze_transcript,
)
from callscope.clock import Clock, now_ms
from callscope.config import Settings, load_settings
from callscope.security.bootstrap import initialize
from callscope.security.rate_limiter import SlidingWindowRateLimiter, create_rate_limiter
from callscope.security.sanitizer import sanitize_input
from callscope.security.session_id import (
    InsecureRandomSourceError,
    RandomSource,
    generate_session_id,
    secure_random_bytes,
)
from callscope.security.transcript_validator import validate_transcript
from callscope.security.upload_validator import UploadCandidate, validate_file_upload
from callscope.storage import JsonFileBackend, MemoryBackend, NamespacedStorage

logger = logging.getLogger("callscope.api")

WEBHOOK_TIMEOUT_SECONDS: int = 30


# ---------------------------------------------------------------------------
# Rate-limit enforcement
# ---------------------------------------------------------------------------


def _enforce(limiter: SlidingWindowRateLimiter, clock: Clock, action: str) -> None:
    """Raise 429 if ``limiter`` denies the request."""
    decision = limiter.check_limit()
    if decision.allowed:
        return

    retry_after = decision.retry_after_seconds(clock())
    logger.warning("Rate limit exceeded for %s - retry in %ds.", action, retry_after)
    raise HTTPException(
        status_code=429,
        detail={
            "error": f"Too many {action} requests. Please try again later.",
            "reset_time": decision.reset_time,
        },
        headers={"Retry-After": str(retry_after)},
    )


def enforce_api_limit(request: Request) -> None:
    """Router dependency - every /api/v1 endpoint counts against the API limiter."""
    state = request.app.state
    _enforce(state.api_limiter, state.clock, "API")


# ---------------------------------------------------------------------------
# Webhook
# ---------------------------------------------------------------------------


async def _forward_to_webhook(url: str, payload: dict[str, Any]) -> None:
    """POST ``payload`` to ``url``. Failures are logged, never raised."""
    try:
        async with aiohttp.ClientSession() as session:
            async with session.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=aiohttp.ClientTimeout(total=WEBHOOK_TIMEOUT_SECONDS),
            ) as resp:
                logger.info("Webhook POST to %s - status %d", url, resp.status)
    except Exception as exc:
        logger.error("Webhook POST failed: %s", exc)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def _build_storage(settings: Settings, clock: Clock) -> NamespacedStorage:
    backend = JsonFileBackend(settings.storage_path) if settings.storage_path else MemoryBackend()
    return NamespacedStorage(
        backend,
        prefix=settings.storage_prefix,
        clock=clock,
        sweep_interval_ms=settings.storage_sweep_interval_ms,
    )


def create_app(
    settings: Settings | None = None,
    storage: NamespacedStorage | None = None,
    clock: Clock = now_ms,
    random_source: RandomSource | None = secure_random_bytes,
) -> FastAPI:
    """
    Build a fully wired CallScope application.

    Args:
        settings:      Service settings (default: read from the environment).
        storage:       Storage instance (default: built from ``settings``).
        clock:         Millisecond clock shared by the limiters and storage.
        random_source: Secure random-byte source for session ids, or None.
    """
    settings = settings or load_settings()
    storage = storage or _build_storage(settings, clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        initialize(app, storage)
        yield

    app = FastAPI(
        title="CallScope",
        description="Sales-call transcript intake - validation and analysis endpoints.",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.storage = storage
    app.state.clock = clock
    app.state.random_source = random_source
    app.state.analysis_limiter = create_rate_limiter(
        settings.analysis_rate_limit, settings.analysis_window_ms, clock=clock,
    )
    app.state.api_limiter = create_rate_limiter(
        settings.api_rate_limit, settings.api_window_ms, clock=clock,
    )

    _register_routes(app)
    return app


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


def _register_routes(app: FastAPI) -> None:
    # The CSP listener is added to the app itself by initialize(), outside
    # this router, so reports never count against the API limiter.
    router = APIRouter(prefix="/api/v1", dependencies=[Depends(enforce_api_limit)])

    @router.post("/upload-transcript")
    async def upload_transcript(file: UploadFile = File(...)):
        """
        Validate an uploaded transcript file and return its text.

        The declared type, size and filename are checked BEFORE the content
        is decoded. The decoded text is then checked as a transcript; that
        result is reported, not enforced, so the user can still edit it.
        """
        if file is None or file.filename is None:
            raise HTTPException(status_code=400, detail="Transcript file is required.")

        content: bytes | None = None
        size = file.size
        if size is None:
            content = await file.read()
            size = len(content)

        candidate = UploadCandidate(
            filename=file.filename,
            content_type=file.content_type or "",
            size=size,
        )
        result = validate_file_upload(candidate)
        if not result.valid:
            logger.info("Upload rejected (%s): %s", file.filename, result.error)
            raise HTTPException(status_code=422, detail=result.error)

        if content is None:
            content = await file.read()

        transcript = content.decode("utf-8", errors="replace")
        logger.info("Transcript file received: %s (%.2f KB)", file.filename, size / 1024)

        return {
            "filename": file.filename,
            "transcript": transcript,
            "validation": validate_transcript(transcript).to_dict(),
        }

    @router.post("/analyze-call")
    async def analyze_call(body: AnalyzeRequest, request: Request):
        """Sanitize and validate the transcript, then run the analysis."""
        state = request.app.state
        settings: Settings = state.settings

        transcript = sanitize_input(body.transcript)
        metadata = body.metadata.sanitized(sanitize_input)

        result = validate_transcript(transcript)
        if not result.valid:
            raise HTTPException(status_code=422, detail=result.error)
        if not metadata.prospect_name.strip():
            raise HTTPException(status_code=400, detail=MISSING_INPUTS_MESSAGE)

        _enforce(state.analysis_limiter, state.clock, "analysis")

        try:
            analysis = await analyze_transcript(
                transcript, metadata, delay_seconds=settings.analysis_delay_seconds,
            )
        except AnalysisInputError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

        state.storage.set(
            f"analysis_{analysis['analysisId']}",
            analysis,
            settings.analysis_cache_ttl_ms,
        )

        if settings.webhook_url:
            await _forward_to_webhook(settings.webhook_url, analysis)
        else:
            logger.debug("WEBHOOK_URL not configured - skipping POST.")

        return analysis

    @router.get("/analysis/{analysis_id}")
    async def get_analysis(analysis_id: str, request: Request):
        cached = request.app.state.storage.get(f"analysis_{analysis_id}")
        if cached is None:
            raise HTTPException(status_code=404, detail="Analysis not found or expired.")
        return cached

    @router.post("/session")
    async def create_session(request: Request):
        state = request.app.state
        settings: Settings = state.settings
        try:
            session_id = generate_session_id(
                state.random_source,
                allow_insecure_fallback=settings.allow_insecure_session_ids,
            )
        except InsecureRandomSourceError as exc:
            logger.error("Session id generation refused: %s", exc)
            raise HTTPException(status_code=503, detail="Secure session ids are unavailable.")

        created_at = state.clock()
        state.storage.set(
            f"session_{session_id}",
            {"createdAt": created_at},
            settings.session_ttl_ms,
        )
        return {
            "sessionId": session_id,
            "createdAt": created_at,
            "expiresAt": created_at + settings.session_ttl_ms,
        }

    @router.get("/rate-limits")
    async def rate_limits(request: Request):
        state = request.app.state
        return {
            name: {
                "remaining": limiter.get_remaining(),
                "limit": limiter.max_requests,
                "windowMs": limiter.window_ms,
            }
            for name, limiter in (
                ("analysis", state.analysis_limiter),
                ("api", state.api_limiter),
            )
        }

    app.include_router(router)
