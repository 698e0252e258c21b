"""
Pydantic Models für API Responses
"""

from typing import Optional, Dict, Any, List
from datetime import datetime
from pydantic import BaseModel, Field

from scribeai.models.domain import NoteSource, TrainingExample


class NoteResult(BaseModel):
    """Transcript plus the SOAP note produced for it"""
    transcript: str = Field(description="Full recognized transcript")
    note: str = Field(description="SOAP note text")
    note_source: NoteSource = Field(description="Whether the note came from the model or the heuristic fallback")


class ErrorResult(BaseModel):
    """Structured failure of a transcription request"""
    error: str = Field(description="User-facing error message")
    status: Optional[str] = Field(default=None, description="Machine-readable status, e.g. STILL_RUNNING")
    operation_name: Optional[str] = Field(default=None, description="Recognition operation that can be resumed out-of-band")
    message: Optional[str] = Field(default=None, description="Additional guidance for the user")

    @property
    def still_running(self) -> bool:
        return self.status == "STILL_RUNNING"


class ChunkResult(BaseModel):
    """Result of a single-shot real-time chunk transcription"""
    transcript: str = Field(description="Recognized text, '[silence]' or a placeholder on error")
    error: Optional[str] = Field(default=None, description="Set when recognition did not succeed")


class TemplateListResponse(BaseModel):
    templates: Dict[str, str] = Field(default_factory=dict)


class TemplateChangeResponse(BaseModel):
    message: str
    templates: List[str] = Field(default_factory=list)


class TrainingExampleListResponse(BaseModel):
    examples: List[TrainingExample] = Field(default_factory=list)


class TrainingExampleAddResponse(BaseModel):
    message: str
    count: int


class HealthCheckResponse(BaseModel):
    """Health Check Response"""
    status: str = Field(description="Service Status (healthy/unhealthy)")
    timestamp: datetime = Field(description="Check-Zeitpunkt")
    version: str = Field(description="Service-Version")
    uptime_seconds: int = Field(description="Uptime in Sekunden")

    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Detaillierte Gesundheitsinformationen"
    )


class ErrorResponse(BaseModel):
    """Standardisierte Fehlerantwort"""
    error: str = Field(description="Fehlertyp")
    message: str = Field(description="Fehlerbeschreibung")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Zusätzliche Fehlerdetails")
    request_id: Optional[str] = Field(default=None, description="Request-ID für Debugging")
    timestamp: datetime = Field(description="Fehlerzeitpunkt")


class RateLimitResponse(BaseModel):
    """Rate Limit Exceeded Response"""
    error: str = Field(default="rate_limit_exceeded")
    message: str = Field(description="Rate Limit Fehlermeldung")
    retry_after: int = Field(description="Sekunden bis zum nächsten Versuch")
    limit: int = Field(description="Request-Limit")
    window: int = Field(description="Zeitfenster in Sekunden")
    timestamp: datetime = Field(description="Fehlerzeitpunkt")
