"""Fakes shared by the test modules."""

import json
from typing import Callable, Dict, List, Optional

import httpx

from scribeai.exceptions import AuthError


class FakeTokenProvider:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = 0

    async def get_access_token(self) -> str:
        self.calls += 1
        if self.fail:
            raise AuthError("Failed to authenticate with Google Cloud. Please check your OAuth scopes and permissions.")
        return "test-token"


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)

    @property
    def total(self) -> float:
        return sum(self.delays)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it saw."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)

    def matching(self, method: str, fragment: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and fragment in str(r.url)]


def json_response(status_code: int, body: Optional[Dict] = None) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(body or {}), headers={"Content-Type": "application/json"})


def operation(done: bool = False, transcripts: Optional[List[str]] = None, error: Optional[Dict] = None) -> Dict:
    status = {"name": "op-123", "done": done, "metadata": {"progressPercent": 50}}
    if error:
        status["error"] = error
    if transcripts is not None:
        status["response"] = {
            "results": [{"alternatives": [{"transcript": t, "confidence": 0.9}]} for t in transcripts]
        }
    return status
