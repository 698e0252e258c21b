"""
Strukturiertes Logging Setup für ScribeAI
"""

import logging
import structlog
from datetime import datetime, timezone
from typing import Optional
from scribeai.config import settings, Environment


def setup_logging():
    """Konfiguriert strukturiertes Logging"""

    # Timestamper für konsistente Zeitstempel
    timestamper = structlog.processors.TimeStamper(fmt="ISO")

    # Processor-Chain definieren
    processors = [
        structlog.processors.add_log_level,
        timestamper,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.environment == Environment.DEVELOPMENT:
        # Development: Colored console output
        processors.extend([
            structlog.dev.ConsoleRenderer(colors=True)
        ])
    else:
        # Production: JSON output
        processors.extend([
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer()
        ])

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None):
    """Erstellt einen konfigurierten Logger"""
    return structlog.get_logger(name or __name__)


def preview(text: Optional[str], limit: int = 100) -> str:
    """Erste `limit` Zeichen des Textes, mit "..." wenn gekürzt"""
    text = text or ""
    return text[:limit] + ("..." if len(text) > limit else "")


class AuditLogger:
    """Spezieller Logger für Audit-Events"""

    def __init__(self):
        self.logger = get_logger("audit")

    def log_external_api_call(
        self,
        service: str,
        endpoint: str,
        response_status: Optional[int],
        response_time_ms: int,
        **kwargs
    ):
        """Loggt Calls zu externen APIs"""
        self.logger.info(
            "external_api_call",
            service=service,
            endpoint=endpoint,
            response_status=response_status,
            response_time_ms=response_time_ms,
            timestamp=datetime.now(timezone.utc).isoformat(),
            **kwargs
        )

    def log_transcription_request(
        self,
        object_name: str,
        encoding: str,
        language: str,
        model: str,
        **kwargs
    ):
        """Loggt gestartete Transkriptionsjobs"""
        self.logger.info(
            "transcription_request",
            object_name=object_name,
            encoding=encoding,
            language=language,
            model=model,
            timestamp=datetime.now(timezone.utc).isoformat(),
            **kwargs
        )

    def log_note_generation(
        self,
        specialty: str,
        detail_level: str,
        template: str,
        note_source: str,
        transcript_chars: int,
        **kwargs
    ):
        """Loggt erzeugte SOAP-Notizen (ohne Inhalte)"""
        self.logger.info(
            "note_generation",
            specialty=specialty,
            detail_level=detail_level,
            template=template,
            note_source=note_source,
            transcript_chars=transcript_chars,
            timestamp=datetime.now(timezone.utc).isoformat(),
            **kwargs
        )


# Global audit logger instance
audit_logger = AuditLogger()
