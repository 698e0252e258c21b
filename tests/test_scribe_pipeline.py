import asyncio
import json
import random
import unittest

import httpx

from helpers import FakeTokenProvider, RecordingSleep, RecordingTransport, json_response, operation
from scribeai.dependencies import Services
from scribeai.models.domain import NoteSource
from scribeai.models.responses import ChunkResult, ErrorResult, NoteResult
from scribeai.services.job_poller import STILL_RUNNING_ERROR, STILL_RUNNING_MESSAGE, JobPoller
from scribeai.services.property_store import LOG_SPREADSHEET_ID_KEY, InMemoryPropertyStore
from scribeai.services.template_service import TemplateService

WEBM = b"\x1aE\xdf\xa3" + b"\x00" * 64


class FakeGoogle:
    """Routes requests to canned responses for each Google API."""

    def __init__(self):
        self.upload = json_response(200, {"name": "uploaded"})
        self.submit = json_response(200, {"name": "op-123"})
        self.statuses = [operation(done=True, transcripts=["Patient reports chest pain and BP 120/80."])]
        self.recognize = json_response(200, {"results": [{"alternatives": [{"transcript": "hello"}]}]})
        self.predict = json_response(200, {"predictions": [{"content": "Subjective: chest pain"}]})
        self.delete = httpx.Response(204)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if request.method == "DELETE":
            return self.delete
        if "/upload/storage/" in url:
            return self.upload
        if url.endswith("speech:longrunningrecognize"):
            return self.submit
        if "/operations/" in url:
            status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
            return json_response(200, status)
        if url.endswith("speech:recognize"):
            return self.recognize
        if url.endswith(":predict"):
            return self.predict
        if request.url.host.startswith("sheets."):
            if request.url.path.endswith("/spreadsheets"):
                return json_response(200, {"spreadsheetId": "sheet-1"})
            return json_response(200, {})
        return json_response(404)


def run_pipeline(google, case, token_provider=None, max_attempts=60, store=None):
    transport = RecordingTransport(google)
    store = store if store is not None else InMemoryPropertyStore()
    sleep = RecordingSleep()

    async def run():
        async with httpx.AsyncClient(transport=transport) as client:
            services = Services(client, store=store, token_provider=token_provider or FakeTokenProvider(), rng=random.Random(1))
            services.poller = JobPoller(services.stt, interval=5, max_attempts=max_attempts, sleep=sleep)
            services.pipeline.poller = services.poller
            return await case(services.pipeline)

    return asyncio.run(run()), transport, store


def transcribe(pipeline):
    return pipeline.transcribe_and_note(WEBM, "audio/webm;codecs=opus", "cardiology", "standard", "none")


class TranscribeAndNoteUnitTests(unittest.TestCase):
    def test_success(self):
        google = FakeGoogle()
        google.statuses = [operation(), operation(done=True, transcripts=["Patient reports chest pain and BP 120/80."])]
        result, transport, store = run_pipeline(google, transcribe)

        self.assertIsInstance(result, NoteResult)
        self.assertEqual(result.transcript, "Patient reports chest pain and BP 120/80.")
        self.assertEqual(result.note, "Subjective: chest pain")
        self.assertEqual(result.note_source, NoteSource.AI)

        self.assertEqual(len(transport.matching("GET", "/operations/op-123")), 2)
        deletes = transport.matching("DELETE", "/o/audio-")
        self.assertEqual(len(deletes), 1)
        self.assertTrue(str(deletes[0].url).endswith(".webm"))
        self.assertEqual(store.get(LOG_SPREADSHEET_ID_KEY), "sheet-1")

    def test_model_failure_uses_heuristic_note(self):
        google = FakeGoogle()
        google.predict = json_response(500, {"error": {"message": "boom"}})
        result, _, _ = run_pipeline(google, transcribe)
        self.assertIsInstance(result, NoteResult)
        self.assertEqual(result.note_source, NoteSource.HEURISTIC)
        self.assertIn("BP 120/80", result.note)

    def test_sheet_failure_does_not_affect_result(self):
        google = FakeGoogle()
        original = google.__call__

        def handler(request):
            if request.url.host.startswith("sheets."):
                return json_response(500, {})
            return original(request)

        result, _, store = run_pipeline(handler, transcribe)
        self.assertIsInstance(result, NoteResult)
        self.assertIsNone(store.get(LOG_SPREADSHEET_ID_KEY))

    def test_empty_audio(self):
        result, transport, _ = run_pipeline(
            FakeGoogle(), lambda pipeline: pipeline.transcribe_and_note(b"", "audio/webm")
        )
        self.assertEqual(result, ErrorResult(error="Failed to create audio blob."))
        self.assertEqual(transport.requests, [])

    def test_upload_failure(self):
        google = FakeGoogle()
        google.upload = httpx.Response(403, text="no access")
        result, transport, _ = run_pipeline(google, transcribe)
        self.assertIsInstance(result, ErrorResult)
        self.assertEqual(result.status, "STORAGE_ERROR")
        self.assertIn("GCS Upload Failed (403)", result.error)
        self.assertEqual(transport.matching("POST", "speech:"), [])

    def test_auth_failure(self):
        result, transport, _ = run_pipeline(FakeGoogle(), transcribe, token_provider=FakeTokenProvider(fail=True))
        self.assertEqual(result.status, "AUTH_ERROR")
        self.assertEqual(transport.requests, [])

    def test_submission_failure_cleans_up(self):
        google = FakeGoogle()
        google.submit = json_response(400, {"error": {"message": "bad config"}})
        result, transport, _ = run_pipeline(google, transcribe)
        self.assertEqual(result.status, "SUBMISSION_ERROR")
        self.assertIn("bad config", result.error)
        self.assertEqual(len(transport.matching("DELETE", "/o/audio-")), 1)

    def test_recognition_failure_cleans_up(self):
        google = FakeGoogle()
        google.statuses = [operation(done=True, error={"code": 3, "message": "corrupt audio"})]
        result, transport, _ = run_pipeline(google, transcribe)
        self.assertEqual(result.status, "FAILED")
        self.assertEqual(result.error, "Speech-to-Text recognition failed: corrupt audio")
        self.assertEqual(len(transport.matching("DELETE", "/o/audio-")), 1)
        self.assertEqual(transport.matching("POST", ":predict"), [])

    def test_still_running(self):
        google = FakeGoogle()
        google.statuses = [operation()]
        result, transport, _ = run_pipeline(google, transcribe, max_attempts=3)
        self.assertTrue(result.still_running)
        self.assertEqual(result.error, STILL_RUNNING_ERROR)
        self.assertEqual(result.message, STILL_RUNNING_MESSAGE)
        self.assertEqual(result.operation_name, "op-123")
        self.assertEqual(len(transport.matching("GET", "/operations/")), 4)
        self.assertEqual(len(transport.matching("DELETE", "/o/audio-")), 1)

    def test_cleanup_failure_is_ignored(self):
        google = FakeGoogle()
        google.delete = httpx.Response(500, text="nope")
        result, _, _ = run_pipeline(google, transcribe)
        self.assertIsInstance(result, NoteResult)

    def test_non_object_status_body_times_out_and_cleans_up(self):
        google = FakeGoogle()

        def handler(request):
            if "/operations/" in str(request.url):
                return httpx.Response(200, content=b"null", headers={"Content-Type": "application/json"})
            return google(request)

        result, transport, _ = run_pipeline(handler, transcribe, max_attempts=2)
        self.assertIsInstance(result, ErrorResult)
        self.assertEqual(result.status, "TIMED_OUT")
        self.assertFalse(result.still_running)
        self.assertEqual(len(transport.matching("GET", "/operations/")), 3)
        self.assertEqual(len(transport.matching("DELETE", "/o/audio-")), 1)

    def test_unexpected_error_after_upload_still_cleans_up(self):
        async def broken_synthesize(request):
            raise RuntimeError("synthesis crashed")

        async def case(pipeline):
            pipeline.llm.synthesize = broken_synthesize
            try:
                return await transcribe(pipeline)
            except RuntimeError as e:
                return e

        result, transport, _ = run_pipeline(FakeGoogle(), case)
        self.assertIsInstance(result, RuntimeError)
        self.assertEqual(len(transport.matching("DELETE", "/o/audio-")), 1)

    def test_saved_template_selected_by_name(self):
        store = InMemoryPropertyStore()
        TemplateService(store).save_template("sports", "Lead with the injury mechanism")

        result, transport, _ = run_pipeline(
            FakeGoogle(),
            lambda pipeline: pipeline.transcribe_and_note(WEBM, "audio/webm", "orthopedics", "standard", "sports"),
            store=store,
        )
        self.assertIsInstance(result, NoteResult)
        prompt = json.loads(transport.matching("POST", ":predict")[0].content)["instances"][0]["content"]
        self.assertIn("Template Instructions: Lead with the injury mechanism", prompt)

    def test_builtin_template_and_explicit_instructions_win(self):
        store = InMemoryPropertyStore()
        TemplateService(store).save_template("acute", "shadowed")
        TemplateService(store).save_template("sports", "saved text")

        _, transport, _ = run_pipeline(FakeGoogle(), transcribe_with("acute", ""), store=store)
        prompt = json.loads(transport.matching("POST", ":predict")[0].content)["instances"][0]["content"]
        self.assertIn("ACUTE ILLNESS", prompt)
        self.assertNotIn("shadowed", prompt)

        _, transport, _ = run_pipeline(FakeGoogle(), transcribe_with("custom", "typed text"), store=store)
        prompt = json.loads(transport.matching("POST", ":predict")[0].content)["instances"][0]["content"]
        self.assertIn("Template Instructions: typed text", prompt)
        self.assertNotIn("saved text", prompt)


def transcribe_with(template, instructions):
    def case(pipeline):
        return pipeline.transcribe_and_note(WEBM, "audio/webm", "general", "standard", template, instructions)

    return case


class TranscribeChunkUnitTests(unittest.TestCase):
    def chunk(self, google, **kwargs):
        return run_pipeline(google, lambda pipeline: pipeline.transcribe_chunk(WEBM, "audio/webm"), **kwargs)

    def test_chunk_success(self):
        result, transport, _ = self.chunk(FakeGoogle())
        self.assertEqual(result, ChunkResult(transcript="hello"))
        self.assertEqual(len(transport.matching("DELETE", "/o/temp-chunk-")), 1)
        self.assertEqual(transport.matching("GET", "/operations/"), [])

    def test_chunk_silence(self):
        google = FakeGoogle()
        google.recognize = json_response(200, {})
        result, _, _ = self.chunk(google)
        self.assertEqual(result.transcript, "[silence]")

    def test_chunk_recognition_error_still_cleans_up(self):
        google = FakeGoogle()
        google.recognize = json_response(400, {"error": {"message": "bad"}})
        result, transport, _ = self.chunk(google)
        self.assertEqual(result.transcript, "Error from speech service.")
        self.assertIsNotNone(result.error)
        self.assertEqual(len(transport.matching("DELETE", "/o/temp-chunk-")), 1)

    def test_chunk_auth_error(self):
        result, _, _ = self.chunk(FakeGoogle(), token_provider=FakeTokenProvider(fail=True))
        self.assertEqual(result.transcript, "Authentication error for real-time transcription.")


if __name__ == "__main__":
    unittest.main()
