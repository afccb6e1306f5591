"""In-memory report store for the development ingestion endpoint."""

import base64
import binascii
import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..models.capture import BugReportPayload

logger = logging.getLogger(__name__)

_DATA_URI_PREFIX = re.compile(r"^data:image/\w+;base64,")


@dataclass
class StoredReport:
    """A report accepted by the endpoint."""
    id: int
    project_key: str
    title: str
    payload: BugReportPayload
    screenshot: Optional[bytes] = None
    received_at: datetime = field(default_factory=datetime.utcnow)


def decode_screenshot(data_uri: str) -> bytes:
    """Decode a base64 image data URI into raw bytes.

    Raises:
        ValueError: If the data is not valid base64
    """
    try:
        return base64.b64decode(_DATA_URI_PREFIX.sub("", data_uri), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid screenshot data: {e}") from e


class ReportStore:
    """Holds projects and their submitted reports in process memory."""

    def __init__(self, project_keys: Iterable[str] = ()):
        self._project_keys = set(project_keys)
        self._reports: Dict[int, StoredReport] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def add_project(self, project_key: str) -> None:
        self._project_keys.add(project_key)

    def is_known_project(self, project_key: str) -> bool:
        return project_key in self._project_keys

    def add(self, payload: BugReportPayload) -> StoredReport:
        """Store a validated report and assign its id."""
        screenshot = None
        if payload.screenshot:
            try:
                screenshot = decode_screenshot(payload.screenshot)
            except ValueError as e:
                # Reports are kept without the image
                logger.error(f"Failed to store screenshot: {e}")

        with self._lock:
            report = StoredReport(
                id=self._next_id,
                project_key=payload.project_key,
                title=payload.title or "Untitled Bug Report",
                payload=payload,
                screenshot=screenshot,
            )
            self._reports[report.id] = report
            self._next_id += 1

        logger.info(f"Stored bug report {report.id} for project {report.project_key}")
        return report

    def get(self, report_id: int) -> Optional[StoredReport]:
        return self._reports.get(report_id)

    def list(self, project_key: Optional[str] = None) -> List[StoredReport]:
        """List reports, newest first."""
        reports = [
            r for r in self._reports.values()
            if project_key is None or r.project_key == project_key
        ]
        return sorted(reports, key=lambda r: r.id, reverse=True)

    def __len__(self) -> int:
        return len(self._reports)
