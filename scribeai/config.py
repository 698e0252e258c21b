"""
Central configuration for the ScribeAI service
"""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from enum import Enum


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Specialty(str, Enum):
    GENERAL = "general"
    CARDIOLOGY = "cardiology"
    DERMATOLOGY = "dermatology"
    NEUROLOGY = "neurology"
    ORTHOPEDICS = "orthopedics"
    PEDIATRICS = "pediatrics"
    PSYCHIATRY = "psychiatry"


class DetailLevel(str, Enum):
    STANDARD = "standard"
    DETAILED = "detailed"
    CONCISE = "concise"


class NoteTemplate(str, Enum):
    NONE = "none"
    FOLLOWUP = "followup"
    NEW_PATIENT = "newpatient"
    CHRONIC = "chronic"
    ACUTE = "acute"
    PREVENTIVE = "preventive"
    CUSTOM = "custom"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Environment
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # API Configuration
    api_title: str = Field(default="ScribeAI API")
    api_description: str = Field(default="Medical Transcription and SOAP Note Service")
    api_version: str = Field(default="1.0.0")
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=3001)
    api_key: Optional[str] = Field(default=None)

    # Google Cloud
    gcp_project_id: str = Field(default="scribeai-415023")
    gcs_bucket_name: str = Field(default="scribeai-audio-uploads")
    storage_api_base_url: str = Field(default="https://storage.googleapis.com/storage/v1")
    storage_upload_base_url: str = Field(default="https://storage.googleapis.com/upload/storage/v1")
    speech_api_base_url: str = Field(default="https://speech.googleapis.com/v1")
    vertex_location: str = Field(default="us-central1")
    vertex_model: str = Field(default="gemini-pro")
    sheets_api_base_url: str = Field(default="https://sheets.googleapis.com/v4")
    google_scopes: List[str] = Field(
        default=["https://www.googleapis.com/auth/cloud-platform"]
    )

    # Recognition
    recognition_language: str = Field(default="en-US")
    recognition_model: str = Field(default="medical_dictation")
    recognition_use_enhanced: bool = Field(default=True)
    recognition_channel_count: int = Field(default=1)  # mono only

    # Polling
    poll_interval_seconds: float = Field(default=5.0)
    max_poll_attempts: int = Field(default=60)
    max_execution_seconds: float = Field(default=350.0)  # host execution ceiling

    # Generation
    llm_temperature: float = Field(default=0.2)
    llm_max_output_tokens: int = Field(default=1024)
    llm_top_p: float = Field(default=0.95)
    llm_top_k: int = Field(default=40)
    llm_timeout: int = Field(default=60)

    # Training examples
    max_training_examples: int = Field(default=50)
    prompt_training_examples: int = Field(default=2)
    training_transcript_chars: int = Field(default=200)
    training_note_chars: int = Field(default=300)

    # Persistence and spreadsheet logging
    property_store_path: str = Field(default="scribeai_properties.json")
    sheet_logging_enabled: bool = Field(default=True)
    log_spreadsheet_title: str = Field(default="ScribeAI Transcription Logs")
    log_sheet_name: str = Field(default="Transcription Logs")

    # Outbound HTTP
    http_timeout: float = Field(default=60.0)

    # Rate Limiting
    rate_limit_requests: int = Field(default=10)
    rate_limit_window: int = Field(default=60)  # seconds

    # Monitoring
    enable_metrics: bool = Field(default=True)

    @property
    def vertex_base_url(self) -> str:
        return f"https://{self.vertex_location}-aiplatform.googleapis.com/v1"


# Global settings instance
settings = Settings()
