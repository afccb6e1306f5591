"""Bug capture data models package."""

from .capture import (
    ActionKind,
    BugReportPayload,
    CaptureSnapshot,
    ConsoleLevel,
    ConsoleLogEntry,
    DeviceInfo,
    NetworkEntry,
    ReportOptions,
    SubmissionResult,
    UserAction,
)

__all__ = [
    # Enums
    'ActionKind',
    'ConsoleLevel',

    # Captured entries
    'ConsoleLogEntry',
    'NetworkEntry',
    'UserAction',
    'DeviceInfo',

    # Assembled data
    'CaptureSnapshot',
    'ReportOptions',
    'BugReportPayload',
    'SubmissionResult',
]
