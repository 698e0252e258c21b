"""
Domain models shared by the transcription and note services
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class AudioEncoding(str, Enum):
    WEBM_OPUS = "WEBM_OPUS"
    MP3 = "MP3"
    LINEAR16 = "LINEAR16"
    FLAC = "FLAC"
    OGG_OPUS = "OGG_OPUS"


class PollState(str, Enum):
    IN_PROGRESS = "in_progress"
    TRANSIENT_ERROR = "transient_error"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class NoteSource(str, Enum):
    AI = "ai"
    HEURISTIC = "heuristic"


class AudioObject(BaseModel):
    """Audio payload staged in object storage for one request"""
    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False, description="Raw audio bytes")
    content_type: str = Field(description="Declared MIME type")
    name: str = Field(description="Object name in the bucket")
    bucket: str = Field(description="Bucket name")

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def gcs_uri(self) -> str:
        return f"gs://{self.bucket}/{self.name}"


class RecognitionConfig(BaseModel):
    """Speech API recognition config, serialized with the API's camelCase names"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    encoding: AudioEncoding
    sample_rate_hertz: Optional[int] = Field(default=None, alias="sampleRateHertz")
    language_code: str = Field(default="en-US", alias="languageCode")
    enable_automatic_punctuation: bool = Field(default=True, alias="enableAutomaticPunctuation")
    model: str = Field(default="medical_dictation")
    use_enhanced: bool = Field(default=True, alias="useEnhanced")
    audio_channel_count: int = Field(default=1, alias="audioChannelCount")

    def to_api_dict(self) -> Dict[str, Any]:
        # sampleRateHertz is left out entirely for self-describing formats
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class JobHandle(BaseModel):
    """Handle of a long-running recognition operation"""
    model_config = ConfigDict(frozen=True)

    operation_name: str
    object_name: str
    bucket: str


class PollOutcome(BaseModel):
    """Result of one status check, or of a whole polling run"""
    state: PollState
    transcript: Optional[str] = None
    message: Optional[str] = None
    operation_name: Optional[str] = None
    still_running: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.state in (PollState.SUCCEEDED, PollState.FAILED, PollState.TIMED_OUT)

    @classmethod
    def in_progress(cls, operation_name: str) -> "PollOutcome":
        return cls(state=PollState.IN_PROGRESS, operation_name=operation_name)

    @classmethod
    def transient(cls, operation_name: str, message: str) -> "PollOutcome":
        return cls(state=PollState.TRANSIENT_ERROR, operation_name=operation_name, message=message)

    @classmethod
    def succeeded(cls, operation_name: str, transcript: str) -> "PollOutcome":
        return cls(state=PollState.SUCCEEDED, operation_name=operation_name, transcript=transcript)

    @classmethod
    def failed(cls, operation_name: str, message: str) -> "PollOutcome":
        return cls(state=PollState.FAILED, operation_name=operation_name, message=message)

    @classmethod
    def timed_out(cls, operation_name: str, message: str, still_running: bool) -> "PollOutcome":
        return cls(
            state=PollState.TIMED_OUT,
            operation_name=operation_name,
            message=message,
            still_running=still_running,
        )


class NoteRequest(BaseModel):
    """Input to note synthesis. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    transcript: str
    specialty: str = "general"
    detail_level: str = "standard"
    template: str = "none"
    template_instructions: str = ""


class TrainingExample(BaseModel):
    """A clinician-corrected note kept to steer future prompts"""
    model_config = ConfigDict(populate_by_name=True)

    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    transcript: str
    original_note: str = Field(alias="originalNote")
    improved_note: str = Field(alias="improvedNote")
