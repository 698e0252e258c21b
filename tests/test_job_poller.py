import asyncio
import unittest

from helpers import RecordingSleep, operation
from scribeai.exceptions import PollTransientError
from scribeai.models.domain import JobHandle, PollState
from scribeai.services.job_poller import (
    STILL_RUNNING_MESSAGE,
    TIMED_OUT_ERROR,
    JobPoller,
    classify_operation,
)

HANDLE = JobHandle(operation_name="op-123", object_name="audio-1.webm", bucket="bucket")


class ScriptedSTT:
    """Returns queued status documents; the last one repeats forever."""

    def __init__(self, *statuses):
        self.statuses = list(statuses)
        self.calls = 0

    async def fetch_operation(self, operation_name):
        self.calls += 1
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(status, Exception):
            raise status
        return status


def transient():
    return PollTransientError("op-123", code=503, detail="unavailable")


def poll(stt, time_budget=None, max_attempts=60):
    sleep = RecordingSleep()
    poller = JobPoller(stt, interval=5, max_attempts=max_attempts, sleep=sleep)
    outcome = asyncio.run(poller.wait(HANDLE, time_budget=time_budget))
    return outcome, sleep


class ClassifyOperationUnitTests(unittest.TestCase):
    def test_done_without_results_is_empty_success(self):
        outcome = classify_operation("op", {"done": True})
        self.assertEqual(outcome.state, PollState.SUCCEEDED)
        self.assertEqual(outcome.transcript, "")

    def test_error_message_is_extracted(self):
        outcome = classify_operation("op", {"done": True, "error": {"code": 3, "message": "bad audio"}})
        self.assertEqual(outcome.state, PollState.FAILED)
        self.assertEqual(outcome.message, "Speech-to-Text recognition failed: bad audio")

    def test_error_without_message_is_serialized(self):
        outcome = classify_operation("op", {"error": {"code": 13}})
        self.assertIn('"code": 13', outcome.message)

    def test_not_done_is_in_progress(self):
        outcome = classify_operation("op", {"done": False, "metadata": {"lastUpdateTime": "2024-01-01T00:00:00Z"}})
        self.assertEqual(outcome.state, PollState.IN_PROGRESS)
        self.assertFalse(outcome.is_terminal)


class JobPollerUnitTests(unittest.TestCase):
    def test_success_after_a_few_polls(self):
        stt = ScriptedSTT(operation(), operation(), operation(done=True, transcripts=["chest pain", "since monday"]))
        outcome, sleep = poll(stt)
        self.assertEqual(outcome.state, PollState.SUCCEEDED)
        self.assertEqual(outcome.transcript, "chest pain\nsince monday")
        self.assertEqual(stt.calls, 3)
        self.assertEqual(sleep.delays, [5, 5, 5])

    def test_done_with_no_results_succeeds(self):
        outcome, _ = poll(ScriptedSTT(operation(done=True)))
        self.assertEqual(outcome.state, PollState.SUCCEEDED)
        self.assertEqual(outcome.transcript, "")

    def test_error_fails_immediately(self):
        stt = ScriptedSTT(operation(error={"message": "Invalid recognition config"}))
        outcome, sleep = poll(stt)
        self.assertEqual(outcome.state, PollState.FAILED)
        self.assertIn("Invalid recognition config", outcome.message)
        self.assertEqual(stt.calls, 1)
        self.assertEqual(len(sleep.delays), 1)

    def test_transient_errors_count_as_attempts_and_polling_continues(self):
        stt = ScriptedSTT(transient(), transient(), operation(done=True, transcripts=["ok"]))
        outcome, _ = poll(stt)
        self.assertEqual(outcome.state, PollState.SUCCEEDED)
        self.assertEqual(outcome.transcript, "ok")
        self.assertEqual(stt.calls, 3)

    def test_transient_errors_exhaust_attempts(self):
        stt = ScriptedSTT(transient())
        outcome, _ = poll(stt, max_attempts=4)
        self.assertEqual(outcome.state, PollState.TIMED_OUT)
        self.assertFalse(outcome.still_running)
        self.assertEqual(outcome.message, TIMED_OUT_ERROR)
        self.assertEqual(stt.calls, 5)

    def test_still_running_after_all_attempts(self):
        stt = ScriptedSTT(operation())
        outcome, sleep = poll(stt)
        self.assertEqual(outcome.state, PollState.TIMED_OUT)
        self.assertTrue(outcome.still_running)
        self.assertEqual(outcome.operation_name, "op-123")
        self.assertEqual(outcome.message, STILL_RUNNING_MESSAGE)
        # 60 polls plus the post-loop verification
        self.assertEqual(stt.calls, 61)
        self.assertEqual(len(sleep.delays), 60)
        self.assertLessEqual(sleep.total, 5 * 60)

    def test_final_check_picks_up_late_completion(self):
        statuses = [operation()] * 3 + [operation(done=True, transcripts=["late"])]
        outcome, _ = poll(ScriptedSTT(*statuses), max_attempts=3)
        self.assertEqual(outcome.state, PollState.SUCCEEDED)
        self.assertEqual(outcome.transcript, "late")

    def test_time_budget_cuts_polling_short(self):
        stt = ScriptedSTT(operation())
        outcome, sleep = poll(stt, time_budget=5)
        self.assertEqual(outcome.state, PollState.TIMED_OUT)
        self.assertEqual(stt.calls, 2)
        self.assertEqual(sleep.delays, [5])


if __name__ == "__main__":
    unittest.main()
