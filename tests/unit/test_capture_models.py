"""Unit tests for capture data models."""

import pytest
from pydantic import ValidationError

from bugcapture.models.capture import (
    ActionKind,
    BugReportPayload,
    CaptureSnapshot,
    ConsoleLevel,
    ConsoleLogEntry,
    DeviceInfo,
    NetworkEntry,
    ReportOptions,
    UserAction,
)


@pytest.fixture
def snapshot():
    return CaptureSnapshot(
        console_logs=[ConsoleLogEntry(level=ConsoleLevel.ERROR, message="boom", timestamp=1, stack="at x")],
        network_logs=[NetworkEntry(
            method="GET",
            url="https://api.example.com/items",
            status=200,
            status_text="OK",
            start_time=1700000000000,
            duration=12.5,
            size=2,
            content_type="application/json",
        )],
        user_actions=[UserAction(action=ActionKind.CLICK, target="#save", timestamp=2)],
        device_info=DeviceInfo(user_agent="UA", viewport_width=800),
        page_url="https://shop.example.com/",
    )


class TestCapturedEntries:
    """Tests for buffered entry models."""

    def test_entries_are_frozen(self):
        entry = ConsoleLogEntry(level=ConsoleLevel.LOG, message="x", timestamp=1)
        with pytest.raises(ValidationError):
            entry.message = "changed"

    def test_console_entry_wire_format(self):
        entry = ConsoleLogEntry(level=ConsoleLevel.WARN, message="careful", timestamp=5)
        assert entry.to_wire() == {"type": "warn", "message": "careful", "timestamp": 5}

    def test_network_entry_wire_format(self, snapshot):
        wire = snapshot.network_logs[0].to_wire()

        assert wire["statusText"] == "OK"
        assert wire["requestHeaders"] == {}
        assert wire["startTime"] == 1700000000000
        assert wire["type"] == "application/json"
        assert "requestBody" not in wire

    def test_network_entry_from_wire(self):
        entry = NetworkEntry.model_validate({
            "method": "POST",
            "url": "https://api.example.com/x",
            "status": 0,
            "statusText": "Network Error",
            "startTime": 1,
            "duration": 2,
            "type": "error",
        })
        assert entry.failed
        assert entry.content_type == "error"

    def test_device_info_defaults(self):
        info = DeviceInfo()
        assert info.device_pixel_ratio == 1.0
        assert info.to_wire()["cookiesEnabled"] is False


class TestCaptureSnapshot:
    """Tests for CaptureSnapshot."""

    def test_with_screenshot_returns_copy(self, snapshot):
        with_image = snapshot.with_screenshot("data:image/png;base64,AAAA")

        assert with_image.screenshot == "data:image/png;base64,AAAA"
        assert snapshot.screenshot is None
        assert with_image.console_logs == snapshot.console_logs


class TestBugReportPayload:
    """Tests for BugReportPayload."""

    def test_from_snapshot_defaults(self, snapshot):
        payload = BugReportPayload.from_snapshot("proj_1", snapshot)
        wire = payload.to_wire()

        assert wire["projectKey"] == "proj_1"
        assert wire["title"] == "Bug Report"
        assert wire["description"] == ""
        assert wire["pageUrl"] == "https://shop.example.com/"
        assert wire["consoleLogs"][0]["stack"] == "at x"
        assert wire["userActions"] == [{"action": "click", "target": "#save", "timestamp": 2}]
        assert wire["deviceInfo"]["viewportWidth"] == 800
        assert "reporterEmail" not in wire
        assert "screenshot" not in wire

    def test_from_snapshot_with_options(self, snapshot):
        options = ReportOptions(
            title="Save fails",
            description="Nothing happens",
            reporter_email="qa@example.com",
            reporter_name="QA",
            session_id="sess-1",
        )
        wire = BugReportPayload.from_snapshot("proj_1", snapshot, options).to_wire()

        assert wire["title"] == "Save fails"
        assert wire["reporterEmail"] == "qa@example.com"
        assert wire["reporterName"] == "QA"
        assert wire["sessionId"] == "sess-1"

    def test_invalid_email_rejected(self, snapshot):
        with pytest.raises(ValidationError):
            BugReportPayload.from_snapshot("proj_1", snapshot, ReportOptions(reporter_email="not-an-email"))

    @pytest.mark.parametrize("address", ["a@b..com", "qa@", "qa example@example.com"])
    def test_malformed_email_rejected(self, address):
        with pytest.raises(ValidationError):
            BugReportPayload(project_key="proj_1", page_url="https://shop.example.com/", reporter_email=address)

    def test_title_optional_on_ingestion(self):
        payload = BugReportPayload(project_key="proj_1", page_url="https://shop.example.com/")

        assert payload.title is None
        assert "title" not in payload.to_wire()

    def test_title_length_limit(self, snapshot):
        with pytest.raises(ValidationError):
            BugReportPayload.from_snapshot("proj_1", snapshot, ReportOptions(title="x" * 256))

    def test_project_key_required(self, snapshot):
        with pytest.raises(ValidationError):
            BugReportPayload.from_snapshot("", snapshot)

    def test_round_trip_from_wire(self, snapshot):
        wire = BugReportPayload.from_snapshot("proj_1", snapshot).to_wire()
        payload = BugReportPayload.model_validate(wire)

        assert payload.network_logs[0].status_text == "OK"
        assert payload.console_logs[0].level == ConsoleLevel.ERROR
