"""FastAPI backend for the incident assistant.

Decodes HTTP requests into IncidentService calls and maps service error kinds
to status codes. The service (and its AI client) is built once at startup and
shared across requests.
"""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field

from src.ai.factory import create_client
from src.config import Settings, build_client_config, get_settings
from src.errors import (
    AIConfigurationError,
    AIError,
    AITimeoutError,
    AIUnavailableError,
    IncidentAssistantError,
    IncidentNotFoundError,
    IncidentValidationError,
)
from src.incidents.models import (
    CreateIncidentRequest,
    Incident,
    IncidentStatus,
    LogSummary,
    Severity,
    UpdateIncidentRequest,
)
from src.incidents.service import IncidentService
from src.incidents.store import IncidentStore
from src.observability.metrics import AI_PROVIDER_HEALTHY, APP_INFO, REQUEST_DURATION, REQUESTS_TOTAL

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class SummarizeLogsRequest(BaseModel):
    """Request body for POST /api/v1/logs/summarize."""

    logs: list[str] = Field(min_length=1)


class ErrorResponse(BaseModel):
    error: str
    detail: str
    incident: Incident | None = None


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str
    version: str
    ai_provider: str
    ai_model: str
    ai_status: str
    ai_detail: str | None = None
    incidents: int
    timestamp: str


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


def build_service(settings: Settings) -> IncidentService:
    """Create the store, the AI client, and the service around them.

    Raises:
        AIConfigurationError: If the configured AI provider is unknown.
    """
    client_config = build_client_config(settings)
    return IncidentService(
        IncidentStore(),
        ai_client=create_client(client_config),
        ai_timeout=client_config.timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the incident service once at startup."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        app.state.service = build_service(settings)
    except AIConfigurationError:
        logger.exception("Invalid AI configuration")
        raise

    client = app.state.service.ai_client
    APP_INFO.info(
        {
            "version": VERSION,
            "provider": client.provider_name if client else "none",
            "model": client.model_name if client else "none",
        }
    )
    logger.info("Incident assistant ready")
    yield
    logger.info("Shutting down incident assistant")


app = FastAPI(title="Incident Assistant", version=VERSION, lifespan=lifespan)


def _service(request: Request) -> IncidentService:
    return request.app.state.service


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def _status_for(exc: IncidentAssistantError) -> int:
    if isinstance(exc, IncidentNotFoundError):
        return 404
    if isinstance(exc, IncidentValidationError):
        return 400
    if isinstance(exc, AIUnavailableError):
        return 503
    if isinstance(exc, AITimeoutError):
        return 504
    if isinstance(exc, AIError):
        return 502
    return 500


@app.exception_handler(IncidentAssistantError)
async def handle_service_error(request: Request, exc: IncidentAssistantError) -> JSONResponse:
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    body = ErrorResponse(
        error=type(exc).__name__,
        detail=str(exc),
        incident=exc.incident if isinstance(exc, AIError) else None,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


@app.middleware("http")
async def record_metrics(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    start = time.monotonic()
    response = await call_next(request)
    route = request.scope.get("route")
    endpoint = getattr(route, "path", "unmatched")
    REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(time.monotonic() - start)
    REQUESTS_TOTAL.labels(method=request.method, endpoint=endpoint, status=str(response.status_code)).inc()
    return response


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics in exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Report service health. An unreachable AI provider only degrades status."""
    service = _service(request)
    client = service.ai_client
    ai_status, ai_detail = "healthy", None
    try:
        await service.check_ai_health()
    except AIUnavailableError as exc:
        ai_status, ai_detail = "not_configured", str(exc)
    except AIError as exc:
        ai_status, ai_detail = "unhealthy", str(exc)
    AI_PROVIDER_HEALTHY.set(1.0 if ai_status == "healthy" else 0.0)

    return HealthResponse(
        status="healthy" if ai_status == "healthy" else "degraded",
        version=VERSION,
        ai_provider=client.provider_name if client else "none",
        ai_model=client.model_name if client else "none",
        ai_status=ai_status,
        ai_detail=ai_detail,
        incidents=len(service.list_incidents()),
        timestamp=datetime.now(UTC).isoformat(),
    )


@app.post("/api/v1/incidents", response_model=Incident, status_code=201)
async def create_incident(body: CreateIncidentRequest, request: Request) -> Incident:
    return await _service(request).create_incident(body)


@app.get("/api/v1/incidents", response_model=list[Incident])
async def list_incidents(
    request: Request,
    status: IncidentStatus | None = None,
    severity: Severity | None = None,
) -> list[Incident]:
    return _service(request).list_incidents(status=status, severity=severity)


@app.get("/api/v1/incidents/{incident_id}", response_model=Incident)
async def get_incident(incident_id: str, request: Request) -> Incident:
    return _service(request).get_incident(incident_id)


@app.put("/api/v1/incidents/{incident_id}", response_model=Incident)
async def update_incident(incident_id: str, body: UpdateIncidentRequest, request: Request) -> Incident:
    return _service(request).update_incident(incident_id, body)


@app.delete("/api/v1/incidents/{incident_id}", status_code=204)
async def delete_incident(incident_id: str, request: Request) -> Response:
    _service(request).delete_incident(incident_id)
    return Response(status_code=204)


@app.post("/api/v1/incidents/{incident_id}/analyze", response_model=Incident)
async def analyze_incident(incident_id: str, request: Request) -> Incident:
    return await _service(request).analyze_incident(incident_id)


@app.post("/api/v1/incidents/{incident_id}/rca/generate", response_model=Incident)
async def generate_rca(incident_id: str, request: Request) -> Incident:
    return await _service(request).generate_rca(incident_id)


@app.post("/api/v1/logs/summarize", response_model=LogSummary)
async def summarize_logs(body: SummarizeLogsRequest, request: Request) -> LogSummary:
    return await _service(request).summarize_logs(body.logs)
