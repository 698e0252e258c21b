"""
Polling of long-running recognition operations

Submitted -> Polling -> {Completed, Failed, TimedOut}

The remote job is never cancelled. On timeout it keeps running unobserved,
and the caller gets the operation name so it can check back later.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional

from tenacity import (
    AsyncRetrying,
    retry_if_result,
    stop_after_attempt,
    stop_before_delay,
    wait_fixed,
)

from scribeai.config import settings
from scribeai.core.logging import get_logger, preview
from scribeai.exceptions import PollTransientError
from scribeai.models.domain import JobHandle, PollOutcome, PollState
from scribeai.services.stt_service import STTService, extract_transcript

logger = get_logger(__name__)

STILL_RUNNING_ERROR = "Speech-to-Text recognition is still in progress but exceeded our waiting time."
STILL_RUNNING_MESSAGE = (
    "The audio file is being processed but is taking longer than expected. "
    "Please try again in a few minutes or use a shorter recording."
)
TIMED_OUT_ERROR = "Speech-to-Text recognition timed out."


def classify_operation(operation_name: str, status: Dict[str, Any]) -> PollOutcome:
    """Reduces one operation status document to a PollOutcome."""
    error = status.get("error")
    if error:
        detail = error.get("message") if isinstance(error, dict) else None
        return PollOutcome.failed(
            operation_name,
            f"Speech-to-Text recognition failed: {detail or json.dumps(error)}",
        )

    if status.get("done"):
        transcript = extract_transcript(status.get("response"))
        if transcript:
            logger.info(f"Transcript retrieved: {preview(transcript)}")
        else:
            # done with nothing said is a valid, empty result
            logger.info("Job done but no transcript found in results.")
        return PollOutcome.succeeded(operation_name, transcript)

    metadata = status.get("metadata") or {}
    if metadata.get("lastUpdateTime"):
        logger.info(
            f"Job in progress. Last update: {metadata['lastUpdateTime']}, "
            f"progress: {metadata.get('progressPercent', 0)}%"
        )
    return PollOutcome.in_progress(operation_name)


class JobPoller:
    """Fixed-interval polling bounded by an attempt count and a time budget."""

    def __init__(
        self,
        stt_service: STTService,
        interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.stt_service = stt_service
        self.interval = settings.poll_interval_seconds if interval is None else interval
        self.max_attempts = max_attempts or settings.max_poll_attempts
        self.sleep = sleep

    async def check(self, handle: JobHandle) -> PollOutcome:
        """One status read. Fetch problems become TRANSIENT_ERROR, not exceptions."""
        try:
            status = await self.stt_service.fetch_operation(handle.operation_name)
        except PollTransientError as e:
            logger.warning(f"Error polling operation {handle.operation_name}: {e}")
            return PollOutcome.transient(handle.operation_name, str(e))
        return classify_operation(handle.operation_name, status)

    def _log_attempt(self, retry_state) -> None:
        logger.info(
            f"Polling attempt {retry_state.attempt_number}/{self.max_attempts} "
            f"for operation {retry_state.args[0].operation_name}"
        )

    async def wait(self, handle: JobHandle, time_budget: Optional[float] = None) -> PollOutcome:
        """
        Polls until the job succeeds, fails, or the attempts/time budget run out.

        Every attempt is preceded by one interval of sleep. Returns a
        SUCCEEDED, FAILED or TIMED_OUT outcome.
        """
        if time_budget is None:
            time_budget = settings.max_execution_seconds

        await self.sleep(self.interval)
        retrying = AsyncRetrying(
            stop=(
                stop_after_attempt(self.max_attempts)
                | stop_before_delay(max(time_budget - self.interval, 0))
            ),
            wait=wait_fixed(self.interval),
            retry=retry_if_result(lambda outcome: not outcome.is_terminal),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
            before=self._log_attempt,
            sleep=self.sleep,
        )
        outcome = await retrying(self.check, handle)
        if outcome.is_terminal:
            return outcome
        return await self._final_check(handle)

    async def _final_check(self, handle: JobHandle) -> PollOutcome:
        logger.info(f"Recognition job {handle.operation_name} exceeded the polling limit")
        try:
            status = await self.stt_service.fetch_operation(handle.operation_name)
        except PollTransientError as e:
            logger.error(f"Error during final status check: {e}")
            return PollOutcome.timed_out(handle.operation_name, TIMED_OUT_ERROR, still_running=False)

        outcome = classify_operation(handle.operation_name, status)
        if outcome.state == PollState.IN_PROGRESS:
            logger.info("Job still in progress but we've reached our polling limit")
            return PollOutcome.timed_out(handle.operation_name, STILL_RUNNING_MESSAGE, still_running=True)
        # finished between the last poll and this check
        return outcome
