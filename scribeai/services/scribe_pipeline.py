"""
End-to-end flow: audio bytes -> stored object -> recognition job -> SOAP note

Fatal problems (auth, upload, submission, recognition failure, timeout)
come back as an ErrorResult. Note synthesis, cleanup and spreadsheet
logging degrade silently.
"""

import time
from typing import Optional, Union

from scribeai.config import DetailLevel, NoteTemplate, Specialty, settings
from scribeai.core.logging import get_logger
from scribeai.exceptions import AuthError, RecognitionFailure, StorageError, SubmissionError
from scribeai.models.domain import AudioObject, NoteRequest, PollOutcome, PollState
from scribeai.models.responses import ChunkResult, ErrorResult, NoteResult
from scribeai.services.job_poller import JobPoller, STILL_RUNNING_ERROR, TIMED_OUT_ERROR
from scribeai.services.llm_service import LLMService
from scribeai.services.sheet_logger import SheetLogger
from scribeai.services.storage_service import StorageService, make_object_name
from scribeai.services.stt_service import STTService
from scribeai.services.template_service import TemplateService

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "audio/webm"


class ScribePipeline:
    """Single-flow orchestration of one transcription request."""

    def __init__(
        self,
        storage: StorageService,
        stt: STTService,
        poller: JobPoller,
        llm: LLMService,
        sheet_logger: SheetLogger,
        bucket: Optional[str] = None,
        templates: Optional[TemplateService] = None,
    ):
        self.storage = storage
        self.stt = stt
        self.poller = poller
        self.llm = llm
        self.sheet_logger = sheet_logger
        self.bucket = bucket or settings.gcs_bucket_name
        self.templates = templates

    def _stage(self, audio_data: bytes, content_type: Optional[str], prefix: str) -> AudioObject:
        content_type = content_type or DEFAULT_CONTENT_TYPE
        return AudioObject(
            data=audio_data,
            content_type=content_type,
            name=make_object_name(content_type, prefix=prefix),
            bucket=self.bucket,
        )

    async def _cleanup(self, audio: AudioObject) -> None:
        await self.storage.delete(audio.bucket, audio.name)

    def _resolve_template(self, template: Optional[str], instructions: Optional[str]):
        """
        A saved custom template can be selected by name. Built-in names and
        explicit instructions are passed through unchanged.
        """
        template = template or NoteTemplate.NONE.value
        instructions = instructions or ""
        builtin = {t.value for t in NoteTemplate}
        if instructions or template in builtin or self.templates is None:
            return template, instructions

        saved = self.templates.get_instructions(template)
        if saved:
            logger.info(f"Using saved custom template '{template}'")
            return NoteTemplate.CUSTOM.value, saved
        return template, instructions

    @staticmethod
    def _remaining_budget(started_at: float) -> float:
        return settings.max_execution_seconds - (time.monotonic() - started_at)

    @staticmethod
    def _error_for_outcome(outcome: PollOutcome) -> ErrorResult:
        if outcome.state == PollState.FAILED:
            return ErrorResult(error=outcome.message, status="FAILED", operation_name=outcome.operation_name)
        if outcome.still_running:
            return ErrorResult(
                error=STILL_RUNNING_ERROR,
                status="STILL_RUNNING",
                operation_name=outcome.operation_name,
                message=outcome.message,
            )
        return ErrorResult(error=TIMED_OUT_ERROR, status="TIMED_OUT", operation_name=outcome.operation_name)

    async def transcribe_and_note(
        self,
        audio_data: bytes,
        content_type: Optional[str],
        specialty: str = "general",
        detail_level: str = "standard",
        template: str = "none",
        template_instructions: str = "",
    ) -> Union[NoteResult, ErrorResult]:
        started_at = time.monotonic()

        if not audio_data:
            logger.warning("Failed to create audio blob from empty data.")
            return ErrorResult(error="Failed to create audio blob.")

        audio = self._stage(audio_data, content_type, prefix="audio")
        logger.info(f"Audio blob created: {audio.name}, Type: {audio.content_type}, Size: {audio.size} bytes")

        try:
            await self.storage.upload(audio)
        except AuthError as e:
            return ErrorResult(error=str(e), status="AUTH_ERROR")
        except StorageError as e:
            logger.error(f"Upload of {audio.name} failed: {e}")
            return ErrorResult(error=str(e), status="STORAGE_ERROR")

        try:
            try:
                handle = await self.stt.submit(audio)
                outcome = await self.poller.wait(handle, time_budget=self._remaining_budget(started_at))
            except AuthError as e:
                return ErrorResult(error=str(e), status="AUTH_ERROR")
            except SubmissionError as e:
                return ErrorResult(error=str(e), status="SUBMISSION_ERROR")

            if outcome.state != PollState.SUCCEEDED:
                logger.warning(f"Recognition did not succeed: {outcome.state.value} - {outcome.message}")
                return self._error_for_outcome(outcome)

            template, template_instructions = self._resolve_template(template, template_instructions)
            request = NoteRequest(
                transcript=outcome.transcript or "",
                specialty=specialty or Specialty.GENERAL.value,
                detail_level=detail_level or DetailLevel.STANDARD.value,
                template=template,
                template_instructions=template_instructions,
            )
            result = await self.llm.synthesize(request)
        finally:
            await self._cleanup(audio)

        await self.sheet_logger.append_row(
            transcript=result.transcript,
            note=result.note,
            specialty=request.specialty,
            detail_level=request.detail_level,
            template=request.template,
        )
        logger.info("Returning final transcript and note.")
        return result

    async def transcribe_chunk(self, audio_data: bytes, content_type: Optional[str]) -> ChunkResult:
        """Single-shot recognition for live feedback; no long-running job."""
        if not audio_data:
            return ChunkResult(transcript="", error="Empty audio chunk.")

        audio = self._stage(audio_data, content_type, prefix="temp-chunk")
        try:
            await self.storage.upload(audio)
        except AuthError as e:
            return ChunkResult(transcript="Authentication error for real-time transcription.", error=str(e))
        except StorageError as e:
            return ChunkResult(transcript="Error processing audio chunk.", error=str(e))

        try:
            transcript = await self.stt.recognize(audio)
        except AuthError as e:
            return ChunkResult(transcript="Authentication error for real-time transcription.", error=str(e))
        except RecognitionFailure as e:
            return ChunkResult(transcript="Error from speech service.", error=str(e))
        finally:
            await self._cleanup(audio)

        return ChunkResult(transcript=transcript)
