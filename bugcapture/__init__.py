"""Bug capture for Playwright pages.

Records console output, fetch/XHR traffic and user interactions on a live page
into bounded buffers, and files bug reports with a screenshot and device
information to an ingestion API.

Usage:
    from bugcapture import CaptureEngine

    engine = CaptureEngine(page)
    await engine.initialize({"projectKey": "demo", "apiEndpoint": "https://bugs.example.com"})
    result = await engine.submit(title="Checkout button does nothing")
"""

__version__ = "1.0.0"

from .errors import (
    BugCaptureError,
    ConfigurationError,
    SubmissionError,
    RasterizerUnavailableError,
)
from .models import (
    CaptureSnapshot,
    ConsoleLogEntry,
    NetworkEntry,
    UserAction,
    DeviceInfo,
    ReportOptions,
    SubmissionResult,
)
from .capture import CaptureEngine, CaptureConfig, load_config
from .submission import SubmissionClient

__all__ = [
    "__version__",

    # Engine
    "CaptureEngine",
    "CaptureConfig",
    "load_config",
    "SubmissionClient",

    # Models
    "CaptureSnapshot",
    "ConsoleLogEntry",
    "NetworkEntry",
    "UserAction",
    "DeviceInfo",
    "ReportOptions",
    "SubmissionResult",

    # Errors
    "BugCaptureError",
    "ConfigurationError",
    "SubmissionError",
    "RasterizerUnavailableError",
]
