"""Unit tests for capture engine."""

import json
import logging
from unittest.mock import AsyncMock

import httpx
import pytest

from bugcapture.capture import engine as engine_module
from bugcapture.capture.action_observer import INSTALL_LISTENERS_JS, REMOVE_LISTENERS_JS
from bugcapture.capture.engine import CaptureEngine
from bugcapture.errors import ConfigurationError, SubmissionError
from bugcapture.launcher.widget import INSTALL_LAUNCHER_JS, OPEN_DIALOG_JS
from bugcapture.models.capture import ConsoleLevel, ReportOptions
from bugcapture.submission import SubmissionClient

from tests.fakes import DEVICE_INFO, make_console_message, make_request

PNG_DATA_URI = "data:image/png;base64,iVBORw0KGgo="


def trpc_ok(report_id):
    return httpx.Response(200, json={"result": {"data": {"json": {"id": report_id, "success": True}}}})


class FailingRasterizer:
    async def render(self, page, ignore_ids):
        raise RuntimeError("canvas is tainted")


class TestCaptureEngineInitialize:
    """Tests for engine initialization."""

    @pytest.mark.asyncio
    async def test_installs_enabled_categories(self, page, capture_config):
        engine = CaptureEngine(page)
        await engine.initialize(capture_config)

        assert engine.is_initialized
        assert page.listener_count("console") == 1
        assert page.listener_count("pageerror") == 1
        assert page.listener_count("request") == 1
        assert page.listener_count("requestfinished") == 1
        assert page.listener_count("requestfailed") == 1
        assert page.evaluate_calls(INSTALL_LISTENERS_JS) == [engine.binding_name]
        assert engine.binding_name in page.bindings

        await engine.teardown()

    @pytest.mark.asyncio
    async def test_default_buffer_sizes(self, page, capture_config):
        engine = CaptureEngine(page)
        await engine.initialize(capture_config)

        assert engine.console_logs.max_size == 100
        assert engine.network_logs.max_size == 50
        assert engine.user_actions.max_size == 50

        await engine.teardown()

    @pytest.mark.asyncio
    async def test_disabled_categories_not_installed(self, page, capture_config):
        engine = CaptureEngine(page)
        await engine.initialize(
            capture_config,
            captureConsole=False,
            captureNetwork=False,
            captureUserActions=False,
        )

        assert page.listener_count() == 0
        assert page.bindings == {}
        assert engine.console_observer is None
        assert engine.network_observer is None
        assert engine.action_observer is None

        await engine.teardown()

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, page, capture_config):
        engine = CaptureEngine(page)
        await engine.initialize(capture_config)
        await engine.initialize(capture_config, maxConsoleLogs=5)

        assert page.listener_count("console") == 1
        assert engine.console_logs.max_size == 100
        page.expose_binding.assert_awaited_once()

        await engine.teardown()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["projectKey", "apiEndpoint"])
    async def test_missing_required_config(self, page, capture_config, caplog, missing):
        caplog.set_level(logging.ERROR)
        del capture_config[missing]
        engine = CaptureEngine(page)

        with pytest.raises(ConfigurationError) as exc_info:
            await engine.initialize(capture_config)

        assert missing in exc_info.value.message
        assert any(r.levelno == logging.ERROR for r in caplog.records)
        assert not engine.is_initialized
        assert page.listener_count() == 0
        page.evaluate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_config_value(self, page, capture_config):
        engine = CaptureEngine(page)

        with pytest.raises(ConfigurationError):
            await engine.initialize(capture_config, maxConsoleLogs=0)

        assert page.listener_count() == 0

    @pytest.mark.asyncio
    async def test_launcher_installed_when_button_shown(self, page, capture_config):
        engine = CaptureEngine(page)
        await engine.initialize(capture_config, showButton=True, buttonPosition="bottom-left")

        assert page.evaluate_calls(INSTALL_LAUNCHER_JS) == [{
            "bindingName": engine.binding_name,
            "position": "bottom-left",
            "showButton": True,
        }]

        await engine.teardown()


class TestCaptureEngineInitializeRollback:
    """Tests for undoing a partially completed initialize."""

    @pytest.fixture
    def created(self, monkeypatch):
        """Record the pipeline and submission client each initialize creates."""
        created = {'pipelines': [], 'clients': []}
        make_pipeline = engine_module.EventPipeline
        make_client = SubmissionClient.from_config

        def tracking_pipeline(*args, **kwargs):
            pipeline = make_pipeline(*args, **kwargs)
            created['pipelines'].append(pipeline)
            return pipeline

        def tracking_client(config, transport=None):
            client = make_client(config, transport=transport)
            created['clients'].append(client)
            return client

        monkeypatch.setattr(engine_module, "EventPipeline", tracking_pipeline)
        monkeypatch.setattr(SubmissionClient, "from_config", tracking_client)
        return created

    def assert_released(self, engine, page, created):
        assert not engine.is_initialized
        assert page.listener_count() == 0
        assert engine.pipeline is None
        assert engine.client is None
        assert not created['pipelines'][0].is_running
        assert created['clients'][0].client.is_closed

    @pytest.mark.asyncio
    async def test_binding_failure_rolls_back(self, page, capture_config, created):
        page.expose_binding.side_effect = RuntimeError("Target page, context or browser has been closed")
        engine = CaptureEngine(page)

        with pytest.raises(RuntimeError):
            await engine.initialize(capture_config)

        self.assert_released(engine, page, created)

    @pytest.mark.asyncio
    async def test_late_failure_removes_installed_listeners(self, page, capture_config, created, monkeypatch):
        monkeypatch.setattr(
            "bugcapture.capture.engine.LauncherWidget.install",
            AsyncMock(side_effect=RuntimeError("Execution context was destroyed")),
        )
        engine = CaptureEngine(page)

        with pytest.raises(RuntimeError):
            await engine.initialize(capture_config, showButton=True)

        self.assert_released(engine, page, created)
        assert engine.console_observer is None
        assert engine.network_observer is None
        assert engine.action_observer is None
        assert page.evaluate_calls(REMOVE_LISTENERS_JS) == [engine.binding_name]

    @pytest.mark.asyncio
    async def test_initialize_after_rollback(self, page, capture_config, created):
        page.expose_binding.side_effect = [RuntimeError("closed"), None]
        engine = CaptureEngine(page)

        with pytest.raises(RuntimeError):
            await engine.initialize(capture_config)
        await engine.initialize(capture_config)

        assert engine.is_initialized
        assert page.listener_count("console") == 1
        assert created['pipelines'][1].is_running
        await engine.teardown()


class TestCaptureEngineCapture:
    """Tests for snapshot assembly."""

    @pytest.fixture
    async def engine(self, page, capture_config):
        rasterizer = AsyncMock()
        rasterizer.render.return_value = PNG_DATA_URI
        engine = CaptureEngine(page, rasterizer=rasterizer)
        await engine.initialize(capture_config)
        yield engine
        await engine.teardown()

    @pytest.mark.asyncio
    async def test_console_bound(self, page, capture_config):
        """With maxConsoleLogs=2, three logs leave the last two."""
        engine = CaptureEngine(page)
        await engine.initialize(capture_config, maxConsoleLogs=2)

        for text in ["a", "b", "c"]:
            page.emit("console", make_console_message("log", [text]))
        snapshot = await engine.capture()

        assert [e.message for e in snapshot.console_logs] == ["b", "c"]
        assert all(e.level == ConsoleLevel.LOG for e in snapshot.console_logs)

        await engine.teardown()

    @pytest.mark.asyncio
    async def test_capture_assembles_all_categories(self, engine, page):
        page.emit("console", make_console_message("error", ["Payment failed"]))
        request = make_request(url="https://api.example.com/pay", method="POST", status=402, status_text="Payment Required")
        page.emit("request", request)
        page.emit("requestfinished", request)
        await page.call_binding(engine.binding_name, {
            "kind": "action",
            "action": "click",
            "timestamp": 1700000000000,
            "targetId": "pay",
            "chain": [{"tag": "BUTTON", "className": ""}],
        })

        snapshot = await engine.capture()

        assert [e.message for e in snapshot.console_logs] == ["Payment failed"]
        assert [(e.url, e.status) for e in snapshot.network_logs] == [("https://api.example.com/pay", 402)]
        assert [a.target for a in snapshot.user_actions] == ["#pay"]
        assert snapshot.device_info.user_agent == DEVICE_INFO["userAgent"]
        assert snapshot.device_info.viewport_width == 1280
        assert snapshot.page_url == "https://shop.example.com/checkout"

    @pytest.mark.asyncio
    async def test_capture_never_uses_rasterizer(self, engine):
        snapshot = await engine.capture()

        assert snapshot.screenshot is None
        engine.rasterizer.render.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_capture_reads_current_url(self, engine, page):
        page.url = "https://shop.example.com/cart"
        snapshot = await engine.capture()
        assert snapshot.page_url == "https://shop.example.com/cart"

    @pytest.mark.asyncio
    async def test_snapshot_independent_of_later_activity(self, engine, page):
        page.emit("console", make_console_message("log", ["first"]))
        snapshot = await engine.capture()

        page.emit("console", make_console_message("log", ["second"]))
        await engine.flush()

        assert [e.message for e in snapshot.console_logs] == ["first"]
        assert len(engine.console_logs) == 2

    @pytest.mark.asyncio
    async def test_collect_includes_screenshot(self, engine):
        snapshot = await engine.collect()
        assert snapshot.screenshot == PNG_DATA_URI

    @pytest.mark.asyncio
    async def test_collect_with_failing_rasterizer(self, page, capture_config, caplog):
        caplog.set_level(logging.WARNING)
        engine = CaptureEngine(page, rasterizer=FailingRasterizer())
        await engine.initialize(capture_config)
        page.emit("console", make_console_message("log", ["still captured"]))

        snapshot = await engine.collect()

        assert snapshot.screenshot is None
        assert [e.message for e in snapshot.console_logs] == ["still captured"]
        assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1

        await engine.teardown()

    @pytest.mark.asyncio
    async def test_clear_empties_buffers(self, engine, page):
        page.emit("console", make_console_message("log", ["x"]))
        await engine.flush()

        engine.clear()
        snapshot = await engine.capture()

        assert snapshot.console_logs == []
        assert engine.is_initialized


class TestCaptureEngineTeardown:
    """Tests for engine teardown."""

    @pytest.mark.asyncio
    async def test_teardown_removes_everything(self, page, capture_config):
        engine = CaptureEngine(page)
        await engine.initialize(capture_config, showButton=True)
        page.emit("console", make_console_message("log", ["x"]))
        await engine.flush()

        await engine.teardown()

        assert not engine.is_initialized
        assert page.listener_count() == 0
        assert page.evaluate_calls(REMOVE_LISTENERS_JS) == [engine.binding_name]
        assert len(engine.console_logs) == 0
        assert len(engine.network_logs) == 0
        assert len(engine.user_actions) == 0

    @pytest.mark.asyncio
    async def test_teardown_only_removes_installed(self, page, capture_config):
        engine = CaptureEngine(page)
        await engine.initialize(capture_config, captureNetwork=False)

        await engine.teardown()

        assert page.listener_count() == 0

    @pytest.mark.asyncio
    async def test_events_after_teardown_ignored(self, page, capture_config):
        engine = CaptureEngine(page)
        await engine.initialize(capture_config)
        binding = engine.binding_name
        await engine.teardown()

        page.emit("console", make_console_message("log", ["late"]))
        await page.call_binding(binding, {"kind": "action", "action": "click", "targetId": "late"})

        assert len(engine.console_logs) == 0
        assert len(engine.user_actions) == 0

    @pytest.mark.asyncio
    async def test_teardown_before_initialize_is_noop(self, page):
        engine = CaptureEngine(page)
        await engine.teardown()
        assert not engine.is_initialized

    @pytest.mark.asyncio
    async def test_reinitialize_after_teardown(self, page, capture_config):
        engine = CaptureEngine(page)
        await engine.initialize(capture_config)
        await engine.teardown()

        await engine.initialize(capture_config, maxConsoleLogs=3)

        assert engine.is_initialized
        assert engine.console_logs.max_size == 3
        assert page.listener_count("console") == 1
        # The page binding survives teardown and is reused
        page.expose_binding.assert_awaited_once()

        await engine.teardown()


class TestCaptureEngineSubmit:
    """Tests for report submission."""

    @pytest.mark.asyncio
    async def test_submit_posts_snapshot(self, page, capture_config):
        requests = []

        def handler(request):
            requests.append(request)
            return trpc_ok(101)

        rasterizer = AsyncMock()
        rasterizer.render.return_value = PNG_DATA_URI
        engine = CaptureEngine(page, rasterizer=rasterizer, transport=httpx.MockTransport(handler))
        await engine.initialize(capture_config)
        page.emit("console", make_console_message("warning", ["Slow response"]))

        result = await engine.submit(title="Checkout hangs", reporter_email="qa@example.com")

        assert result.id == 101
        assert str(requests[0].url) == "https://bugs.example.com/api/trpc/bugReports.submit"
        body = json.loads(requests[0].content)["json"]
        assert body["projectKey"] == "proj_test_123"
        assert body["title"] == "Checkout hangs"
        assert body["reporterEmail"] == "qa@example.com"
        assert body["screenshot"] == PNG_DATA_URI
        assert body["pageUrl"] == "https://shop.example.com/checkout"
        assert body["consoleLogs"][0]["type"] == "warn"
        assert body["consoleLogs"][0]["message"] == "Slow response"
        assert body["deviceInfo"]["userAgent"] == DEVICE_INFO["userAgent"]

        await engine.teardown()

    @pytest.mark.asyncio
    async def test_submit_without_screenshot_when_rasterizer_fails(self, page, capture_config):
        requests = []

        def handler(request):
            requests.append(json.loads(request.content)["json"])
            return trpc_ok(7)

        engine = CaptureEngine(page, rasterizer=FailingRasterizer(), transport=httpx.MockTransport(handler))
        await engine.initialize(capture_config)

        await engine.submit(ReportOptions(title="No image"))

        assert "screenshot" not in requests[0]
        await engine.teardown()

    @pytest.mark.asyncio
    async def test_submit_rejected(self, page, capture_config):
        def handler(request):
            return httpx.Response(404, json={
                "error": {"json": {"message": "Invalid project key", "data": {"code": "NOT_FOUND"}}}
            })

        engine = CaptureEngine(page, rasterizer=FailingRasterizer(), transport=httpx.MockTransport(handler))
        await engine.initialize(capture_config)

        with pytest.raises(SubmissionError) as exc_info:
            await engine.submit()

        assert exc_info.value.message == "Invalid project key"
        assert exc_info.value.code == "NOT_FOUND"
        await engine.teardown()

    @pytest.mark.asyncio
    async def test_submit_requires_initialize(self, page):
        engine = CaptureEngine(page)
        with pytest.raises(ConfigurationError):
            await engine.submit()

    @pytest.mark.asyncio
    async def test_launcher_submission_through_binding(self, page, capture_config):
        engine = CaptureEngine(
            page,
            rasterizer=FailingRasterizer(),
            transport=httpx.MockTransport(lambda request: trpc_ok(55)),
        )
        await engine.initialize(capture_config, showButton=True)

        response = await page.call_binding(engine.binding_name, {
            "kind": "submit",
            "title": "From dialog",
            "description": "",
            "reporterEmail": "",
        })

        assert response == {"ok": True, "id": 55}
        assert engine.reports_submitted == 1
        await engine.teardown()

    @pytest.mark.asyncio
    async def test_show_dialog(self, page, capture_config):
        page.evaluate_results[OPEN_DIALOG_JS] = True
        engine = CaptureEngine(page)
        await engine.initialize(capture_config, showButton=True)

        await engine.show_dialog()

        assert len(page.evaluate_calls(OPEN_DIALOG_JS)) == 1
        await engine.teardown()

    @pytest.mark.asyncio
    async def test_show_dialog_without_button(self, page, capture_config):
        page.evaluate_results[OPEN_DIALOG_JS] = True
        engine = CaptureEngine(
            page,
            rasterizer=FailingRasterizer(),
            transport=httpx.MockTransport(lambda request: trpc_ok(8)),
        )
        await engine.initialize(capture_config, captureUserActions=False)
        assert page.bindings == {}

        await engine.show_dialog()

        assert page.evaluate_calls(INSTALL_LAUNCHER_JS) == [{
            "bindingName": engine.binding_name,
            "position": "bottom-right",
            "showButton": False,
        }]
        assert len(page.evaluate_calls(OPEN_DIALOG_JS)) == 1

        response = await page.call_binding(engine.binding_name, {"kind": "submit", "title": "Manual"})
        assert response == {"ok": True, "id": 8}

        await engine.show_dialog()
        assert len(page.evaluate_calls(INSTALL_LAUNCHER_JS)) == 1
        await engine.teardown()
        assert page.listener_count() == 0

    @pytest.mark.asyncio
    async def test_show_dialog_requires_initialize(self, page):
        engine = CaptureEngine(page)
        with pytest.raises(ConfigurationError):
            await engine.show_dialog()

    @pytest.mark.asyncio
    async def test_stats(self, page, capture_config):
        engine = CaptureEngine(page)
        await engine.initialize(capture_config)
        page.emit("console", make_console_message("log", ["x"]))
        await engine.flush()

        stats = engine.get_stats()

        assert stats["initialized"] is True
        assert stats["console_logs"] == 1
        assert stats["console"]["messages_seen"] == 1
        await engine.teardown()
