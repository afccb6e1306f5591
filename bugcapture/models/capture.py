"""Pydantic models for captured page activity and bug report payloads.

This module defines the entries recorded by the capture engine (console
messages, network exchanges, user actions), the point-in-time device snapshot,
and the payload exchanged with the ingestion endpoint. Field names are
snake_case in Python and camelCase on the wire.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> Dict[str, Any]:
        """Dump to the JSON-compatible wire representation."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class CapturedEntry(WireModel):
    """Base for buffered entries; entries never change after creation."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ConsoleLevel(str, Enum):
    """Console levels recorded by the engine."""
    LOG = "log"
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


class ActionKind(str, Enum):
    """DOM interactions recorded by the engine."""
    CLICK = "click"
    CHANGE = "change"
    SUBMIT = "submit"


class ConsoleLogEntry(CapturedEntry):
    """One console call or runtime error."""

    level: ConsoleLevel = Field(alias="type", description="Console level")
    message: str = Field(description="Rendered message, arguments joined by spaces")
    timestamp: int = Field(description="Epoch milliseconds when the call happened")
    stack: Optional[str] = Field(
        default=None,
        description="Stack trace for runtime errors"
    )


class NetworkEntry(CapturedEntry):
    """One completed or failed HTTP exchange issued by the page."""

    method: str = Field(description="HTTP method")
    url: str = Field(description="Request URL")
    status: int = Field(description="HTTP status, 0 for network failures")
    status_text: str = Field(default="", description="HTTP status text")
    request_headers: Dict[str, str] = Field(default_factory=dict)
    response_headers: Dict[str, str] = Field(default_factory=dict)
    request_body: Optional[str] = Field(default=None)
    response_body: Optional[str] = Field(default=None)
    start_time: float = Field(description="Epoch milliseconds when the request started")
    duration: float = Field(description="Milliseconds between start and completion")
    size: int = Field(default=0, description="Response size in bytes")
    content_type: str = Field(
        default="unknown",
        alias="type",
        description="Response content type, or 'error' for failures"
    )

    @property
    def failed(self) -> bool:
        """Whether the exchange never produced a response."""
        return self.status == 0


class UserAction(CapturedEntry):
    """One DOM interaction, described by a selector-like string."""

    action: ActionKind = Field(description="Interaction kind")
    target: str = Field(description="Derived target descriptor")
    timestamp: int = Field(description="Epoch milliseconds when the event fired")


class DeviceInfo(CapturedEntry):
    """Browser environment at the time of capture."""

    user_agent: str = ""
    platform: str = ""
    language: str = ""
    screen_width: int = 0
    screen_height: int = 0
    viewport_width: int = 0
    viewport_height: int = 0
    device_pixel_ratio: float = 1.0
    timezone: str = ""
    cookies_enabled: bool = False


class CaptureSnapshot(WireModel):
    """Buffers, device info and page URL assembled for one submission."""

    console_logs: List[ConsoleLogEntry] = Field(default_factory=list)
    network_logs: List[NetworkEntry] = Field(default_factory=list)
    user_actions: List[UserAction] = Field(default_factory=list)
    device_info: DeviceInfo
    page_url: str
    screenshot: Optional[str] = Field(
        default=None,
        description="data: URI of the rendered page"
    )

    def with_screenshot(self, screenshot: Optional[str]) -> "CaptureSnapshot":
        """Return a copy carrying the given screenshot."""
        return self.model_copy(update={"screenshot": screenshot})


class ReportOptions(WireModel):
    """Operator-entered metadata for a report."""

    title: Optional[str] = None
    description: Optional[str] = None
    reporter_email: Optional[str] = None
    reporter_name: Optional[str] = None
    session_id: Optional[str] = None


class BugReportPayload(WireModel):
    """Submission body accepted by the ingestion endpoint."""

    project_key: str = Field(min_length=1)
    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    page_url: str
    screenshot: Optional[str] = None
    console_logs: List[ConsoleLogEntry] = Field(default_factory=list)
    network_logs: List[NetworkEntry] = Field(default_factory=list)
    user_actions: List[UserAction] = Field(default_factory=list)
    device_info: Optional[DeviceInfo] = None
    reporter_email: Optional[EmailStr] = None
    reporter_name: Optional[str] = Field(default=None, max_length=255)
    session_id: Optional[str] = Field(default=None, max_length=64)

    @classmethod
    def from_snapshot(
        cls,
        project_key: str,
        snapshot: CaptureSnapshot,
        options: Optional[ReportOptions] = None
    ) -> "BugReportPayload":
        """Combine a snapshot with operator metadata."""
        options = options or ReportOptions()
        return cls(
            project_key=project_key,
            title=options.title or "Bug Report",
            description=options.description or "",
            page_url=snapshot.page_url,
            screenshot=snapshot.screenshot,
            console_logs=list(snapshot.console_logs),
            network_logs=list(snapshot.network_logs),
            user_actions=list(snapshot.user_actions),
            device_info=snapshot.device_info,
            reporter_email=options.reporter_email or None,
            reporter_name=options.reporter_name or None,
            session_id=options.session_id or None,
        )


class SubmissionResult(WireModel):
    """Acceptance returned by the ingestion endpoint."""

    id: Any = Field(description="Identifier assigned to the stored report")
    success: bool = True
