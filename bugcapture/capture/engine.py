"""Capture engine that attaches bug capture to one Playwright page.

This module provides the CaptureEngine class that coordinates the observers,
bounded buffers, ordered event pipeline, screenshot orchestration, submission
client and floating launcher behind a small programmatic surface.
"""

import logging
import uuid
from typing import Any, Dict, Optional, Union

import httpx
from playwright.async_api import Page

from ..errors import ConfigurationError
from ..launcher import LauncherWidget
from ..models.capture import (
    CaptureSnapshot,
    ConsoleLogEntry,
    NetworkEntry,
    ReportOptions,
    SubmissionResult,
    UserAction,
)
from ..submission import SubmissionClient
from .action_observer import ActionObserver
from .buffers import BoundedBuffer
from .config import CaptureConfig
from .console_observer import ConsoleObserver
from .device import collect_device_info
from .network_observer import NetworkObserver
from .pipeline import EventPipeline
from .screenshot import Rasterizer, ScreenshotOrchestrator, create_rasterizer

logger = logging.getLogger(__name__)


class CaptureEngine:
    """Records console, network and user activity on a page and submits reports."""

    def __init__(
        self,
        page: Page,
        rasterizer: Optional[Rasterizer] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize capture engine.

        Args:
            page: Playwright page to attach to
            rasterizer: Screenshot rasterizer; chosen from config when omitted
            transport: Optional httpx transport for the submission client
        """
        self.page = page
        self.rasterizer = rasterizer
        self.transport = transport
        self.binding_name = f"__bugCapture_{uuid.uuid4().hex[:12]}"

        self.config: Optional[CaptureConfig] = None
        self.pipeline: Optional[EventPipeline] = None
        self.client: Optional[SubmissionClient] = None
        self.screenshots: Optional[ScreenshotOrchestrator] = None
        self.launcher: Optional[LauncherWidget] = None

        self.console_logs: BoundedBuffer[ConsoleLogEntry] = BoundedBuffer(100)
        self.network_logs: BoundedBuffer[NetworkEntry] = BoundedBuffer(50)
        self.user_actions: BoundedBuffer[UserAction] = BoundedBuffer(50)

        self.console_observer: Optional[ConsoleObserver] = None
        self.network_observer: Optional[NetworkObserver] = None
        self.action_observer: Optional[ActionObserver] = None

        self._initialized = False
        self._binding_exposed = False
        self.reports_submitted = 0

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(
        self,
        config: Union[CaptureConfig, Dict[str, Any], None] = None,
        **overrides
    ) -> None:
        """Install interception for the enabled capture categories.

        Calling initialize on an initialized engine does nothing.

        Args:
            config: CaptureConfig or mapping (camelCase or snake_case keys)
            **overrides: Individual config values

        Raises:
            ConfigurationError: If the config is invalid or lacks a project
                key or API endpoint; nothing is installed in that case

        Any later failure undoes the partial install before it propagates.
        """
        if self._initialized:
            logger.debug("Capture engine already initialized")
            return

        try:
            config = CaptureConfig.from_any(config, **overrides)
            client = SubmissionClient.from_config(config, transport=self.transport)
        except ConfigurationError as e:
            logger.error(f"Bug capture initialization failed: {e.message}")
            raise

        self.config = config
        self.client = client
        self.console_logs = BoundedBuffer(config.max_console_logs)
        self.network_logs = BoundedBuffer(config.max_network_logs)
        self.user_actions = BoundedBuffer(config.max_user_actions)

        rasterizer = self.rasterizer or create_rasterizer(
            config.screenshot_renderer, config.rasterizer_script_url
        )
        self.screenshots = ScreenshotOrchestrator(self.page, rasterizer)

        self.pipeline = EventPipeline(name="capture")
        self.pipeline.start()

        try:
            await self._install(config)
        except Exception as e:
            logger.error(f"Bug capture initialization failed, rolling back: {e}")
            await self._release()
            raise

        self._initialized = True
        logger.info(
            f"Bug capture initialized (console={config.capture_console}, "
            f"network={config.capture_network}, actions={config.capture_user_actions})"
        )

    async def teardown(self) -> None:
        """Remove every installed listener, stop processing and clear buffers."""
        if not self._initialized:
            return
        self._initialized = False
        await self._release()
        self.clear()
        logger.info("Bug capture torn down")

    async def _install(self, config: CaptureConfig) -> None:
        if config.capture_user_actions or config.show_button:
            await self._expose_binding()

        if config.capture_console:
            self.console_observer = ConsoleObserver(self.page, self.console_logs, self.pipeline)
            self.console_observer.install()

        if config.capture_network:
            self.network_observer = NetworkObserver(
                self.page,
                self.network_logs,
                self.pipeline,
                resource_types=config.network_resource_types,
                max_body_chars=config.max_body_chars,
            )
            self.network_observer.install()

        if config.capture_user_actions:
            self.action_observer = ActionObserver(self.page, self.user_actions, self.binding_name)
            await self.action_observer.install()

        if config.show_button:
            await self._install_launcher(show_button=True)

    async def _install_launcher(self, show_button: bool) -> None:
        await self._expose_binding()
        self.launcher = LauncherWidget(
            self.page,
            self.binding_name,
            on_submit=self.submit,
            position=self.config.button_position,
            show_button=show_button,
        )
        await self.launcher.install()

    async def _release(self) -> None:
        """Undo whatever initialize installed so far."""
        if self.console_observer:
            self.console_observer.uninstall()
            self.console_observer = None
        if self.network_observer:
            self.network_observer.uninstall()
            self.network_observer = None
        if self.action_observer:
            await self.action_observer.uninstall()
            self.action_observer = None
        if self.launcher:
            await self.launcher.remove()
            self.launcher = None

        if self.pipeline:
            await self.pipeline.stop()
            self.pipeline = None

        if self.client:
            await self.client.aclose()
            self.client = None

    async def flush(self) -> None:
        """Wait until every event observed so far has reached its buffer."""
        if self.pipeline:
            await self.pipeline.drain()

    async def capture(self) -> CaptureSnapshot:
        """Assemble buffers, device info and page URL without a screenshot."""
        await self.flush()
        return CaptureSnapshot(
            console_logs=self.console_logs.snapshot(),
            network_logs=self.network_logs.snapshot(),
            user_actions=self.user_actions.snapshot(),
            device_info=await collect_device_info(self.page),
            page_url=self.page.url,
        )

    async def capture_screenshot(self) -> Optional[str]:
        """Render the page, or None when no screenshot could be produced."""
        if self.screenshots is None:
            self.screenshots = ScreenshotOrchestrator(
                self.page, self.rasterizer or create_rasterizer("html2canvas")
            )
        return await self.screenshots.capture()

    async def collect(self, include_screenshot: bool = True) -> CaptureSnapshot:
        """Assemble a snapshot, adding a screenshot when one can be produced."""
        snapshot = await self.capture()
        if include_screenshot:
            snapshot = snapshot.with_screenshot(await self.capture_screenshot())
        return snapshot

    async def submit(
        self,
        options: Optional[ReportOptions] = None,
        **kwargs
    ) -> SubmissionResult:
        """Collect a snapshot with screenshot and submit it as a bug report.

        Args:
            options: Operator metadata; keyword arguments build one if omitted

        Returns:
            SubmissionResult from the ingestion API

        Raises:
            ConfigurationError: If the engine is not initialized
            SubmissionError: If the report is rejected or cannot be sent
        """
        if not self._initialized or self.client is None:
            raise ConfigurationError("Bug capture is not initialized")

        if options is None:
            options = ReportOptions(**kwargs)

        snapshot = await self.collect(include_screenshot=True)
        result = await self.client.submit(snapshot, options)
        self.reports_submitted += 1
        return result

    def clear(self) -> None:
        """Empty all three buffers in place."""
        self.console_logs.clear()
        self.network_logs.clear()
        self.user_actions.clear()

    async def show_dialog(self) -> None:
        """Open the report dialog.

        Without a floating button the dialog is injected on first use.

        Raises:
            ConfigurationError: If the engine is not initialized
        """
        if not self._initialized:
            raise ConfigurationError("Bug capture is not initialized")
        if self.launcher is None:
            await self._install_launcher(show_button=False)
        await self.launcher.show_dialog()

    async def _expose_binding(self) -> None:
        if self._binding_exposed:
            return
        await self.page.expose_binding(self.binding_name, self._on_binding)
        self._binding_exposed = True

    async def _on_binding(self, source: Dict[str, Any], payload: Any) -> Any:
        """Route messages sent by injected page code."""
        if not isinstance(payload, dict):
            return None

        kind = payload.get("kind")
        if kind == "action":
            if self.action_observer:
                self.action_observer.handle_event(payload)
            return None
        if kind == "submit":
            if self.launcher is None:
                return {"ok": False, "error": "Bug capture is not initialized"}
            return await self.launcher.handle_submit(payload)

        logger.debug(f"Ignoring page message of kind {kind!r}")
        return None

    def get_stats(self) -> Dict[str, Any]:
        """Get engine statistics."""
        stats: Dict[str, Any] = {
            "initialized": self._initialized,
            "console_logs": len(self.console_logs),
            "network_logs": len(self.network_logs),
            "user_actions": len(self.user_actions),
            "reports_submitted": self.reports_submitted,
        }
        if self.console_observer:
            stats["console"] = self.console_observer.get_stats()
        if self.network_observer:
            stats["network"] = self.network_observer.get_stats()
        if self.action_observer:
            stats["actions"] = self.action_observer.get_stats()
        if self.screenshots:
            stats["screenshots"] = {
                "attempts": self.screenshots.attempts,
                "failures": self.screenshots.failures,
            }
        return stats

    def __repr__(self) -> str:
        return (
            f"CaptureEngine(initialized={self._initialized}, "
            f"console={len(self.console_logs)}, network={len(self.network_logs)}, "
            f"actions={len(self.user_actions)})"
        )
