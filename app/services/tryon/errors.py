from __future__ import annotations

from typing import Optional


class TryOnError(Exception):
    """Base class for try-on domain errors."""

    code = "tryon_error"


class ValidationError(TryOnError):
    code = "invalid_request"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        if code:
            self.code = code


class NotFoundError(TryOnError):
    code = "not_found"


class BatchNotFoundError(NotFoundError):
    code = "batch_not_found"

    def __init__(self, batch_id: str):
        super().__init__(f"Batch not found: {batch_id}")
        self.batch_id = batch_id


class ResolutionError(TryOnError):
    """Image bytes could not be obtained."""

    code = "image_unavailable"


class DecodeError(ResolutionError):
    code = "invalid_image"


class FetchError(ResolutionError):
    code = "image_fetch_failed"


class ImageNotFoundError(ResolutionError):
    code = "image_not_found"


class RemoteSubmitError(TryOnError):
    code = "remote_submit_failed"

    def __init__(self, status_code: Optional[int]):
        super().__init__(f"FitRoom API failed: {status_code}")
        self.status_code = status_code


class RemoteTaskFailed(TryOnError):
    code = "remote_task_failed"

    def __init__(self, reason: str):
        super().__init__(f"FitRoom task failed: {reason}")
        self.reason = reason


class RemoteTimeoutError(TryOnError):
    code = "remote_timeout"

    def __init__(self, attempts: int):
        super().__init__("Task timeout")
        self.attempts = attempts


class OrchestrationError(TryOnError):
    code = "orchestration_failed"


class BatchClosedError(OrchestrationError):
    code = "batch_closed"


# Failures isolated to a single outfit; anything else aborts the batch.
ITEM_ERRORS = (ResolutionError, RemoteSubmitError, RemoteTaskFailed, RemoteTimeoutError)
