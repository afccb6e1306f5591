"""Console and page error observer for browser pages.

This module provides the ConsoleObserver class that records console calls
(log, error, warn, info, debug) and uncaught page errors into a bounded
buffer, rendering arguments the same way for every message.
"""

import logging
from typing import Dict, List, Optional

from playwright.async_api import ConsoleMessage, Page

from .buffers import BoundedBuffer
from .clock import epoch_ms
from .pipeline import EventPipeline
from ..models.capture import ConsoleLevel, ConsoleLogEntry

logger = logging.getLogger(__name__)


# Playwright message types mapped to recorded levels; other types are ignored
CONSOLE_LEVELS: Dict[str, ConsoleLevel] = {
    "log": ConsoleLevel.LOG,
    "error": ConsoleLevel.ERROR,
    "warning": ConsoleLevel.WARN,
    "warn": ConsoleLevel.WARN,
    "info": ConsoleLevel.INFO,
    "debug": ConsoleLevel.DEBUG,
}

# Runs in the page with the first argument handle and the remaining handles
RENDER_ARGS_JS = """
(first, rest) => [first, ...rest].map((arg) => {
    if (typeof arg === 'object') {
        try {
            return JSON.stringify(arg, null, 2);
        } catch (e) {
            return String(arg);
        }
    }
    return String(arg);
})
"""


class ConsoleObserver:
    """Observer for console messages and page errors."""

    def __init__(self, page: Page, buffer: BoundedBuffer, pipeline: EventPipeline):
        """Initialize console observer for a page.

        Args:
            page: Playwright page to observe
            buffer: Buffer receiving ConsoleLogEntry records
            pipeline: Ordered pipeline the entries are appended through
        """
        self.page = page
        self.buffer = buffer
        self.pipeline = pipeline
        self._installed = False
        self.messages_seen = 0
        self.errors_seen = 0

    @property
    def is_installed(self) -> bool:
        return self._installed

    def install(self) -> None:
        """Register Playwright console and page error listeners."""
        if self._installed:
            return
        self.page.on("console", self._on_console_message)
        self.page.on("pageerror", self._on_page_error)
        self._installed = True
        logger.debug("Console observer listeners setup complete")

    def uninstall(self) -> None:
        """Remove the listeners registered by install()."""
        if not self._installed:
            return
        self.page.remove_listener("console", self._on_console_message)
        self.page.remove_listener("pageerror", self._on_page_error)
        self._installed = False
        logger.debug("Console observer listeners removed")

    def _on_console_message(self, message: ConsoleMessage) -> None:
        """Handle console message event.

        Args:
            message: Playwright console message
        """
        level = CONSOLE_LEVELS.get(message.type)
        if level is None:
            return

        timestamp = epoch_ms()
        self.messages_seen += 1

        async def record() -> None:
            text = await self.render_message(message)
            self.buffer.append(ConsoleLogEntry(level=level, message=text, timestamp=timestamp))

        self.pipeline.submit(record)

    def _on_page_error(self, error: Exception) -> None:
        """Handle uncaught exception or unhandled rejection.

        Args:
            error: Playwright error carrying message, name and stack
        """
        timestamp = epoch_ms()
        self.errors_seen += 1

        message = getattr(error, "message", None) or str(error)
        name = getattr(error, "name", None)
        text = f"Uncaught {name}: {message}" if name else f"Uncaught {message}"
        stack: Optional[str] = getattr(error, "stack", None) or None

        async def record() -> None:
            self.buffer.append(ConsoleLogEntry(
                level=ConsoleLevel.ERROR,
                message=text,
                timestamp=timestamp,
                stack=stack,
            ))

        self.pipeline.submit(record)
        logger.debug(f"Page error: {text}")

    async def render_message(self, message: ConsoleMessage) -> str:
        """Render console arguments into one space-joined message.

        Falls back to Playwright's own message text when the arguments can
        no longer be evaluated (navigation, closed context).
        """
        try:
            args: List = list(message.args)
        except Exception as e:
            logger.debug(f"Failed to read console arguments: {e}")
            return message.text

        if not args:
            return message.text

        try:
            rendered = await args[0].evaluate(RENDER_ARGS_JS, args[1:])
            return " ".join(str(part) for part in rendered)
        except Exception as e:
            logger.debug(f"Failed to render console arguments: {e}")
            return message.text

    def get_stats(self) -> Dict[str, int]:
        """Get console observer statistics."""
        return {
            'messages_seen': self.messages_seen,
            'page_errors_seen': self.errors_seen,
            'buffered': len(self.buffer),
        }

    def __repr__(self) -> str:
        return (
            f"ConsoleObserver(installed={self._installed}, "
            f"buffered={len(self.buffer)}, errors={self.errors_seen})"
        )
