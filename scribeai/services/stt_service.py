"""
Speech-to-Text Service
Uses the Google Speech-to-Text REST API with long-running recognition jobs.
"""

from typing import Any, Dict, Optional, Tuple

import httpx

from scribeai.config import settings
from scribeai.core.logging import get_logger, audit_logger, preview
from scribeai.exceptions import PollTransientError, RecognitionFailure, SubmissionError
from scribeai.models.domain import AudioEncoding, AudioObject, JobHandle, RecognitionConfig
from scribeai.services.google_api import GoogleApiClient, TokenProvider

logger = get_logger(__name__)

# Checked in order; first match wins.
ENCODING_TABLE = (
    (("webm", "opus"), AudioEncoding.WEBM_OPUS, 48000),
    (("mp3",), AudioEncoding.MP3, None),
    (("wav", "x-wav"), AudioEncoding.LINEAR16, 16000),
    (("flac",), AudioEncoding.FLAC, None),
    (("m4a", "mp4a"), AudioEncoding.LINEAR16, 16000),
)
DEFAULT_ENCODING = (AudioEncoding.OGG_OPUS, 16000)


def derive_encoding(content_type: str) -> Tuple[AudioEncoding, Optional[int]]:
    """Encoding and sample rate for a declared MIME type."""
    content_type = (content_type or "").lower()
    for markers, encoding, sample_rate in ENCODING_TABLE:
        if any(marker in content_type for marker in markers):
            return encoding, sample_rate
    return DEFAULT_ENCODING


def build_recognition_config(content_type: str) -> RecognitionConfig:
    encoding, sample_rate = derive_encoding(content_type)
    return RecognitionConfig(
        encoding=encoding,
        sample_rate_hertz=sample_rate,
        language_code=settings.recognition_language,
        enable_automatic_punctuation=True,
        model=settings.recognition_model,
        use_enhanced=settings.recognition_use_enhanced,
        audio_channel_count=settings.recognition_channel_count,
    )


def extract_transcript(response: Optional[Dict[str, Any]], separator: str = "\n") -> str:
    """Joins the top alternative of every result, in order."""
    results = (response or {}).get("results") or []
    pieces = []
    for result in results:
        alternatives = result.get("alternatives") or []
        if alternatives:
            pieces.append(alternatives[0].get("transcript", ""))
    return separator.join(pieces)


class STTService(GoogleApiClient):
    """Starts recognition jobs and reads their status."""

    service_name = "speech"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_provider: TokenProvider,
        api_base_url: Optional[str] = None,
    ):
        super().__init__(http_client, token_provider)
        self.api_base_url = (api_base_url or settings.speech_api_base_url).rstrip("/")

    async def submit(self, audio: AudioObject) -> JobHandle:
        """
        Starts a long-running recognition job for a stored audio object.

        Raises:
            SubmissionError: non-2xx status, transport failure, or no operation name.
            AuthError: if no access token is available.
        """
        config = build_recognition_config(audio.content_type)
        logger.info(
            f"Audio format detected: {config.encoding.value} with sample rate: "
            f"{config.sample_rate_hertz or 'auto-detected'}"
        )
        audit_logger.log_transcription_request(
            object_name=audio.name,
            encoding=config.encoding.value,
            language=config.language_code,
            model=config.model,
        )

        payload = {"config": config.to_api_dict(), "audio": {"uri": audio.gcs_uri}}
        try:
            response = await self._request(
                "POST", f"{self.api_base_url}/speech:longrunningrecognize", json=payload
            )
        except httpx.HTTPError as e:
            raise SubmissionError(None, str(e)) from e

        body = _json_or_empty(response)
        if not response.is_success or not body.get("name"):
            logger.error(f"Error starting recognition job: {response.status_code} - {response.text[:500]}")
            raise SubmissionError(response.status_code, str(body.get("error") or response.text))

        operation_name = body["name"]
        logger.info(f"Recognition job started. Operation Name: {operation_name}")
        return JobHandle(operation_name=operation_name, object_name=audio.name, bucket=audio.bucket)

    async def fetch_operation(self, operation_name: str) -> Dict[str, Any]:
        """
        Reads the operation status document.

        Raises:
            PollTransientError: non-2xx status, transport failure or unreadable body.
        """
        try:
            response = await self._request("GET", f"{self.api_base_url}/operations/{operation_name}")
        except httpx.HTTPError as e:
            raise PollTransientError(operation_name, detail=str(e)) from e

        if not response.is_success:
            raise PollTransientError(operation_name, code=response.status_code, detail=response.text[:500])
        try:
            status = response.json()
        except ValueError as e:
            raise PollTransientError(operation_name, code=response.status_code, detail="invalid JSON") from e
        if not isinstance(status, dict):
            raise PollTransientError(operation_name, code=response.status_code, detail="status is not a JSON object")
        return status

    async def recognize(self, audio: AudioObject) -> str:
        """
        Synchronous recognition for short real-time chunks.

        Raises:
            RecognitionFailure: on a non-2xx status or transport failure.
        """
        config = build_recognition_config(audio.content_type)
        payload = {"config": config.to_api_dict(), "audio": {"uri": audio.gcs_uri}}
        try:
            response = await self._request("POST", f"{self.api_base_url}/speech:recognize", json=payload)
        except httpx.HTTPError as e:
            raise RecognitionFailure(f"Speech API request failed: {e}") from e

        if not response.is_success:
            logger.error(f"Speech API error: {response.status_code} - {response.text[:500]}")
            raise RecognitionFailure(f"Error from speech service ({response.status_code}).")

        transcript = extract_transcript(_json_or_empty(response), separator=" ")
        logger.info(f"Real-time transcription result: {preview(transcript)}")
        return transcript or "[silence]"


def _json_or_empty(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
