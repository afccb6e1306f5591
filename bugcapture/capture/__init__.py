"""Bug capture engine for Playwright pages.

This package attaches to a live page and records what happened before a bug
report is filed: console messages, fetch/XHR exchanges and user interactions,
each in its own bounded buffer. Snapshots of the buffers are assembled with
device information and an optional screenshot and handed to the submission
client.

Main Components:
- Buffers: FIFO-bounded entry buffers
- Observers: console, network and user action interception
- Event Pipeline: keeps buffer order equal to event order
- Screenshot Orchestration: rasterizer selection and failure tolerance
- Capture Engine: lifecycle and programmatic surface

Usage:
    from bugcapture.capture import CaptureEngine

    engine = CaptureEngine(page)
    await engine.initialize({"projectKey": "demo", "apiEndpoint": "http://localhost:8000"})
    snapshot = await engine.capture()
"""

__all__ = [
    # Main components
    "CaptureEngine",
    "CaptureConfig",
    "load_config",
    "BoundedBuffer",
    "EventPipeline",

    # Observers
    "ConsoleObserver",
    "NetworkObserver",
    "ActionObserver",

    # Screenshots
    "Rasterizer",
    "Html2CanvasRasterizer",
    "PlaywrightRasterizer",
    "ScreenshotOrchestrator",
    "create_rasterizer",

    # Helpers
    "derive_target_descriptor",
    "normalize_headers",
    "collect_device_info",

    # Browser
    "BrowserFactory",
]

from .buffers import BoundedBuffer
from .pipeline import EventPipeline
from .selectors import derive_target_descriptor
from .headers import normalize_headers
from .device import collect_device_info

from .console_observer import ConsoleObserver
from .network_observer import NetworkObserver
from .action_observer import ActionObserver

from .screenshot import (
    Rasterizer,
    Html2CanvasRasterizer,
    PlaywrightRasterizer,
    ScreenshotOrchestrator,
    create_rasterizer,
)

from .config import CaptureConfig, load_config
from .engine import CaptureEngine
from .browser_factory import BrowserFactory
