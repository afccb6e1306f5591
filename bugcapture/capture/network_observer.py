"""Network observer for requests issued by page scripts.

This module provides the NetworkObserver class that hooks into Playwright
network events and records one NetworkEntry per completed or failed
fetch/XHR exchange. Entries are appended in completion order.
"""

import logging
from typing import Dict, Iterable, Optional, Tuple

from playwright.async_api import Page, Request, Response

from .buffers import BoundedBuffer
from .clock import epoch_ms, monotonic_ms
from .headers import normalize_headers
from .pipeline import EventPipeline
from ..models.capture import NetworkEntry

logger = logging.getLogger(__name__)


CAPTURED_RESOURCE_TYPES = ("fetch", "xhr")
MAX_BODY_CHARS = 10000
TRUNCATION_MARKER = "... [truncated]"
TEXTUAL_CONTENT_TYPES = ("application/json", "text/")


def _header(headers: Dict[str, str], name: str) -> str:
    """Case-insensitive header lookup."""
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return ""


class NetworkObserver:
    """Observes fetch/XHR requests and builds NetworkEntry records."""

    def __init__(
        self,
        page: Page,
        buffer: BoundedBuffer,
        pipeline: EventPipeline,
        resource_types: Iterable[str] = CAPTURED_RESOURCE_TYPES,
        max_body_chars: int = MAX_BODY_CHARS,
    ):
        """Initialize network observer for a page.

        Args:
            page: Playwright page to observe
            buffer: Buffer receiving NetworkEntry records
            pipeline: Ordered pipeline the entries are appended through
            resource_types: Playwright resource types to record
            max_body_chars: Ceiling for captured textual response bodies
        """
        self.page = page
        self.buffer = buffer
        self.pipeline = pipeline
        self.resource_types = frozenset(resource_types)
        self.max_body_chars = max_body_chars
        self._installed = False

        # (epoch ms, monotonic ms) per in-flight request
        self._request_start_times: Dict[Request, Tuple[float, float]] = {}

        self.requests_completed = 0
        self.requests_failed = 0

    @property
    def is_installed(self) -> bool:
        return self._installed

    @property
    def in_flight(self) -> int:
        return len(self._request_start_times)

    def install(self) -> None:
        """Register Playwright network listeners."""
        if self._installed:
            return
        self.page.on("request", self._on_request)
        self.page.on("requestfinished", self._on_request_finished)
        self.page.on("requestfailed", self._on_request_failed)
        self._installed = True
        logger.debug("Network observer listeners setup complete")

    def uninstall(self) -> None:
        """Remove listeners and forget in-flight requests."""
        if not self._installed:
            return
        self.page.remove_listener("request", self._on_request)
        self.page.remove_listener("requestfinished", self._on_request_finished)
        self.page.remove_listener("requestfailed", self._on_request_failed)
        self._request_start_times.clear()
        self._installed = False
        logger.debug("Network observer listeners removed")

    def _on_request(self, request: Request) -> None:
        """Stamp the start time of a captured request."""
        if request.resource_type not in self.resource_types:
            return
        self._request_start_times[request] = (epoch_ms(), monotonic_ms())
        logger.debug(f"Request started: {request.method} {request.url}")

    def _on_request_finished(self, request: Request) -> None:
        """Queue a completed exchange for recording."""
        started = self._request_start_times.pop(request, None)
        if started is None:
            return
        ended = monotonic_ms()

        async def record() -> None:
            await self._record_completed(request, started, ended)

        self.pipeline.submit(record)

    def _on_request_failed(self, request: Request) -> None:
        """Queue a failed exchange (DNS, connectivity, abort) for recording."""
        started = self._request_start_times.pop(request, None)
        if started is None:
            return
        ended = monotonic_ms()

        async def record() -> None:
            await self._record_failed(request, started, ended)

        self.pipeline.submit(record)

    async def _record_completed(
        self,
        request: Request,
        started: Tuple[float, float],
        ended: float
    ) -> None:
        response = await request.response()
        if response is None:
            await self._record_failed(request, started, ended, error_text="No response received")
            return

        request_headers = await self._read_request_headers(request)
        response_headers = await self._read_response_headers(response)
        content_type = _header(response_headers, "content-type")
        response_body, size = await self._read_response_body(response, content_type)

        start_epoch, start_mono = started
        self.buffer.append(NetworkEntry(
            method=request.method,
            url=request.url,
            status=response.status,
            status_text=response.status_text or "",
            request_headers=request_headers,
            response_headers=response_headers,
            request_body=self._read_request_body(request, request_headers),
            response_body=response_body,
            start_time=start_epoch,
            duration=ended - start_mono,
            size=size,
            content_type=content_type or "unknown",
        ))
        self.requests_completed += 1
        logger.debug(f"Response recorded: {response.status} {request.url}")

    async def _record_failed(
        self,
        request: Request,
        started: Tuple[float, float],
        ended: float,
        error_text: Optional[str] = None
    ) -> None:
        if error_text is None:
            try:
                error_text = request.failure
            except Exception as e:
                logger.debug(f"Failed to read request failure: {e}")
        request_headers = await self._read_request_headers(request)

        start_epoch, start_mono = started
        self.buffer.append(NetworkEntry(
            method=request.method,
            url=request.url,
            status=0,
            status_text="Network Error",
            request_headers=request_headers,
            response_headers={},
            request_body=self._read_request_body(request, request_headers),
            response_body=error_text or "Request failed",
            start_time=start_epoch,
            duration=ended - start_mono,
            size=0,
            content_type="error",
        ))
        self.requests_failed += 1
        logger.debug(f"Request failed: {request.method} {request.url} - {error_text}")

    async def _read_request_headers(self, request: Request) -> Dict[str, str]:
        try:
            return normalize_headers(await request.headers_array())
        except Exception as e:
            logger.debug(f"Failed to read request headers array: {e}")
        try:
            return normalize_headers(request.headers)
        except Exception as e:
            logger.debug(f"Failed to read request headers: {e}")
            return {}

    async def _read_response_headers(self, response: Response) -> Dict[str, str]:
        try:
            return normalize_headers(await response.headers_array())
        except Exception as e:
            logger.debug(f"Failed to read response headers array: {e}")
        try:
            return normalize_headers(response.headers)
        except Exception as e:
            logger.debug(f"Failed to read response headers: {e}")
            return {}

    async def _read_response_body(self, response: Response, content_type: str) -> Tuple[str, int]:
        """Read a best-effort response body and its byte size.

        Textual bodies are kept up to max_body_chars; binary bodies are
        described by type and size only.
        """
        try:
            if any(t in content_type for t in TEXTUAL_CONTENT_TYPES):
                text = await response.text()
                size = len(text.encode("utf-8"))
                if len(text) > self.max_body_chars:
                    text = text[:self.max_body_chars] + TRUNCATION_MARKER
                return text, size

            body = await response.body()
            return f"[Binary: {content_type}, {len(body)} bytes]", len(body)

        except Exception as e:
            logger.debug(f"Failed to read response body: {e}")
            return "[Unable to read response]", 0

    def _read_request_body(self, request: Request, headers: Dict[str, str]) -> Optional[str]:
        try:
            data = request.post_data_buffer
        except Exception as e:
            logger.debug(f"Failed to read request body: {e}")
            return None
        if not data:
            return None

        if "multipart/form-data" in _header(headers, "content-type"):
            return "[FormData]"
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return "[Binary Data]"

    def get_stats(self) -> Dict[str, int]:
        """Get network observer statistics."""
        return {
            'requests_completed': self.requests_completed,
            'requests_failed': self.requests_failed,
            'requests_in_flight': self.in_flight,
            'buffered': len(self.buffer),
        }

    def __repr__(self) -> str:
        return (
            f"NetworkObserver(installed={self._installed}, "
            f"buffered={len(self.buffer)}, in_flight={self.in_flight}, "
            f"failed={self.requests_failed})"
        )
