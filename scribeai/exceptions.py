"""Custom exceptions for the ScribeAI service."""

from typing import Optional


class ScribeError(Exception):
    """Base class for all ScribeAI service errors."""


class AuthError(ScribeError):
    """Raised when an OAuth access token cannot be obtained."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class StorageError(ScribeError):
    """Raised when an object store upload does not return a 2xx status."""

    def __init__(self, code: Optional[int], body: str, object_name: str = ""):
        self.code = code
        self.body = body
        self.object_name = object_name
        super().__init__(f"GCS Upload Failed ({code}): {body}")


class SubmissionError(ScribeError):
    """Raised when a recognition job cannot be started."""

    def __init__(self, code: Optional[int], body: str):
        self.code = code
        self.body = body
        super().__init__(f"Failed to start Speech-to-Text job: {code} - {body}")


class PollTransientError(ScribeError):
    """A single status check failed in a way worth retrying."""

    def __init__(self, operation_name: str, code: Optional[int] = None, detail: str = ""):
        self.operation_name = operation_name
        self.code = code
        self.detail = detail
        super().__init__(f"Status check for {operation_name} failed ({code}): {detail}")


class RecognitionFailure(ScribeError):
    """The recognition job reached a terminal error state."""

    def __init__(self, message: str, operation_name: str = ""):
        self.operation_name = operation_name
        super().__init__(message)


class SynthesisError(ScribeError):
    """The generative text service did not return a usable note."""

    def __init__(self, message: str, status_code: Optional[int] = None, cause: Optional[Exception] = None):
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)
