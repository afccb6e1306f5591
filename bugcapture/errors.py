"""Exceptions raised by the bug capture engine and its collaborators.

Only configuration and submission failures ever reach callers. Capture
failures (unrenderable console arguments, unreadable bodies, a broken
rasterizer) are degraded to fallback values inside the engine.
"""

from typing import Optional


class BugCaptureError(Exception):
    """Base error for bug capture."""

    def __init__(
        self,
        message: str = "Bug capture failed",
        error_code: str = "bug_capture_error",
        details: Optional[dict] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(BugCaptureError):
    """Raised when the engine is initialized without a usable configuration."""

    def __init__(self, message: str = "Invalid configuration", field: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="configuration_error",
            details={"field": field} if field else {}
        )


class SubmissionError(BugCaptureError):
    """Raised when the ingestion endpoint is unreachable or rejects a report."""

    def __init__(
        self,
        message: str = "Failed to submit bug report",
        status_code: Optional[int] = None,
        code: Optional[str] = None
    ):
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        if code:
            details["code"] = code
        super().__init__(message=message, error_code="submission_failed", details=details)
        self.status_code = status_code
        self.code = code


class RasterizerUnavailableError(BugCaptureError):
    """Raised when the page rasterizer cannot be loaded into the page."""

    def __init__(self, message: str = "Rasterizer unavailable", source: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="rasterizer_unavailable",
            details={"source": source} if source else {}
        )
