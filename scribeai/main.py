"""
ScribeAI - FastAPI Main Application
"""

import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, Depends, status, UploadFile, File, Form
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from scribeai.config import settings, Environment
from scribeai.core.logging import setup_logging, get_logger
from scribeai.core.security import require_api_key, security_manager
from scribeai.dependencies import Services, create_http_client, get_services
from scribeai.models.requests import TemplateSaveRequest, TrainingExampleRequest
from scribeai.models.responses import (
    ChunkResult, ErrorResponse, ErrorResult, HealthCheckResponse, NoteResult,
    RateLimitResponse, TemplateChangeResponse, TemplateListResponse,
    TrainingExampleAddResponse, TrainingExampleListResponse,
)

# Initialize logging
setup_logging()
logger = get_logger(__name__)

# Prometheus metrics
request_count = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
request_duration = Histogram('http_request_duration_seconds', 'HTTP request duration')
transcription_outcomes = Counter('transcription_outcomes_total', 'Transcription request outcomes', ['status'])
note_sources = Counter('soap_notes_total', 'Generated SOAP notes by source', ['source'])

# Rate limiter
limiter = Limiter(key_func=get_remote_address)

started_at = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("🚀 ScribeAI starting...")
    logger.info(f"Environment: {settings.environment.value}")
    logger.info(f"API Version: {settings.api_version}")

    app.state.services = Services(create_http_client())

    yield

    await app.state.services.aclose()
    logger.info("🛑 ScribeAI shutting down...")


# Create FastAPI app
app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment == Environment.DEVELOPMENT else None,
    redoc_url="/redoc" if settings.environment == Environment.DEVELOPMENT else None,
    debug=settings.debug,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == Environment.DEVELOPMENT else [],
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

# Rate limiting
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


# Middleware for security headers
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)
    if "X-Content-Type-Options" not in response.headers:
        response.headers["X-Content-Type-Options"] = "nosniff"
    if "X-Frame-Options" not in response.headers:
        response.headers["X-Frame-Options"] = "DENY"
    return response


# Middleware for request tracking and metrics
@app.middleware("http")
async def track_requests(request: Request, call_next):
    """Request tracking and Prometheus metrics"""

    start_time = time.time()
    request_id = security_manager.generate_request_id()

    request.state.request_id = request_id
    request.state.start_time = start_time

    try:
        response = await call_next(request)

        duration = time.time() - start_time
        request_count.labels(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code
        ).inc()
        request_duration.observe(duration)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time"] = f"{duration:.3f}s"

        return response

    except Exception as e:
        request_count.labels(
            method=request.method,
            endpoint=request.url.path,
            status=500
        ).inc()

        logger.error(f"Request {request_id} failed: {e}")

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An internal error occurred",
                "request_id": request_id,
                "timestamp": datetime.now(timezone.utc).isoformat()
            },
            headers={"X-Request-ID": request_id}
        )


# Health check endpoint
@app.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Service health check"""

    return HealthCheckResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.api_version,
        uptime_seconds=int(time.time() - started_at)
    )


# Prometheus metrics endpoint
@app.get("/metrics")
async def metrics():
    """Prometheus metrics"""
    if not settings.enable_metrics:
        raise HTTPException(status_code=404, detail="Metrics disabled")

    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def _transcription_response(result) -> JSONResponse:
    """Maps a pipeline result to an HTTP response."""
    if isinstance(result, NoteResult):
        transcription_outcomes.labels(status="succeeded").inc()
        note_sources.labels(source=result.note_source.value).inc()
        return JSONResponse(status_code=status.HTTP_200_OK, content=result.model_dump(mode="json"))

    transcription_outcomes.labels(status=(result.status or "error").lower()).inc()
    status_code = status.HTTP_202_ACCEPTED if result.still_running else status.HTTP_502_BAD_GATEWAY
    if result.status is None:
        status_code = status.HTTP_400_BAD_REQUEST
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json", exclude_none=True))


@app.post(
    "/v1/notes",
    response_model=NoteResult,
    responses={
        202: {"model": ErrorResult},
        400: {"model": ErrorResult},
        401: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResult},
    },
    dependencies=[Depends(require_api_key)],
)
@limiter.limit(f"{settings.rate_limit_requests}/minute")
async def transcribe_and_note(
    request: Request,
    audio_file: UploadFile = File(..., alias="file"),
    specialty: str = Form("general"),
    detail_level: str = Form("standard"),
    template: str = Form("none"),
    template_instructions: Optional[str] = Form(None),
    services: Services = Depends(get_services),
):
    """
    Transcribes an uploaded recording and returns the transcript with a SOAP note.
    Blocks until recognition completes or the polling budget runs out.
    """
    audio_data = await audio_file.read()
    logger.info(f"[{request.state.request_id}] Transcription requested: {len(audio_data)} bytes, {audio_file.content_type}")

    result = await services.pipeline.transcribe_and_note(
        audio_data=audio_data,
        content_type=audio_file.content_type,
        specialty=specialty,
        detail_level=detail_level,
        template=template,
        template_instructions=template_instructions or "",
    )
    return _transcription_response(result)


@app.post("/v1/transcribe/chunk", response_model=ChunkResult, dependencies=[Depends(require_api_key)])
async def transcribe_chunk(
    request: Request,
    audio_file: UploadFile = File(..., alias="file"),
    services: Services = Depends(get_services),
):
    """Quick single-shot transcription of a short live-recording chunk."""
    audio_data = await audio_file.read()
    return await services.pipeline.transcribe_chunk(audio_data, audio_file.content_type)


@app.get("/v1/templates", response_model=TemplateListResponse, dependencies=[Depends(require_api_key)])
async def list_templates(services: Services = Depends(get_services)):
    return TemplateListResponse(templates=services.templates.list_templates())


@app.post("/v1/templates", response_model=TemplateChangeResponse, dependencies=[Depends(require_api_key)])
async def save_template(payload: TemplateSaveRequest, services: Services = Depends(get_services)):
    try:
        names = services.templates.save_template(payload.name, payload.instructions)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return TemplateChangeResponse(message="Template saved successfully.", templates=names)


@app.delete("/v1/templates/{name}", response_model=TemplateChangeResponse, dependencies=[Depends(require_api_key)])
async def delete_template(name: str, services: Services = Depends(get_services)):
    try:
        names = services.templates.delete_template(name)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found.")
    return TemplateChangeResponse(message="Template deleted successfully.", templates=names)


@app.get("/v1/training-examples", response_model=TrainingExampleListResponse, dependencies=[Depends(require_api_key)])
async def list_training_examples(services: Services = Depends(get_services)):
    return TrainingExampleListResponse(examples=services.training.list_examples())


@app.post("/v1/training-examples", response_model=TrainingExampleAddResponse, dependencies=[Depends(require_api_key)])
async def add_training_example(payload: TrainingExampleRequest, services: Services = Depends(get_services)):
    try:
        count = services.training.add_example(payload.transcript, payload.original_note, payload.improved_note)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return TrainingExampleAddResponse(message="Training example saved successfully.", count=count)


@app.get("/v1/training-examples/export", dependencies=[Depends(require_api_key)])
async def export_training_examples(services: Services = Depends(get_services)):
    """Training examples as JSONL for supervised fine-tuning."""
    content = services.training.export_jsonl()
    if not content:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No training examples available to export")
    return PlainTextResponse(content, media_type="application/x-ndjson")


# Override rate limit handler
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Custom rate limit error handler"""

    response = RateLimitResponse(
        message="Too many requests. Please try again later.",
        retry_after=settings.rate_limit_window,
        limit=settings.rate_limit_requests,
        window=settings.rate_limit_window,
        timestamp=datetime.now(timezone.utc)
    )

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=response.model_dump(mode="json"),
        headers={"Retry-After": str(settings.rate_limit_window)}
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors"""

    request_id = getattr(request.state, 'request_id', 'unknown')

    logger.error(f"Unhandled error in request {request_id}: {exc}")
    logger.error(f"Stacktrace: {traceback.format_exc()}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat()
        },
        headers={"X-Request-ID": request_id}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "scribeai.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == Environment.DEVELOPMENT
    )
