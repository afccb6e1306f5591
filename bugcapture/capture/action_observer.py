"""User action observer for click, change and submit interactions.

Listeners are attached in the page at document level during the capture
phase, so dynamically added elements are covered. The in-page handler only
forwards plain data (the target's id and up to three tag/class levels) through
the engine's page binding; element handles never reach Python.
"""

import logging
from typing import Any, Dict

from playwright.async_api import Page

from .buffers import BoundedBuffer
from .clock import epoch_ms
from .selectors import descriptor_from_event
from ..models.capture import ActionKind, UserAction

logger = logging.getLogger(__name__)


INSTALL_LISTENERS_JS = """
(bindingName) => {
    const key = '__bugCaptureActions_' + bindingName;
    if (window[key]) {
        return false;
    }
    const describe = (target) => {
        const element = target instanceof Element ? target : null;
        const chain = [];
        let current = element;
        while (current && current !== document.body && chain.length < 3) {
            chain.push({tag: current.tagName, className: current.getAttribute('class') || ''});
            current = current.parentElement;
        }
        return {targetId: element && element.id ? element.id : '', chain: chain};
    };
    const handlers = {};
    ['click', 'change', 'submit'].forEach((action) => {
        handlers[action] = (event) => {
            try {
                const binding = window[bindingName];
                if (typeof binding === 'function') {
                    const payload = Object.assign({kind: 'action', action: action, timestamp: Date.now()}, describe(event.target));
                    binding(payload).catch(() => {});
                }
            } catch (e) {
                // never break the host page
            }
        };
        document.addEventListener(action, handlers[action], true);
    });
    window[key] = handlers;
    return true;
}
"""

REMOVE_LISTENERS_JS = """
(bindingName) => {
    const key = '__bugCaptureActions_' + bindingName;
    const handlers = window[key];
    if (!handlers) {
        return false;
    }
    Object.keys(handlers).forEach((action) => {
        document.removeEventListener(action, handlers[action], true);
    });
    delete window[key];
    return true;
}
"""


class ActionObserver:
    """Observer for DOM interactions in a page."""

    def __init__(self, page: Page, buffer: BoundedBuffer, binding_name: str):
        """Initialize action observer.

        Args:
            page: Playwright page to observe
            buffer: Buffer receiving UserAction records
            binding_name: Name of the page binding the listeners report through
        """
        self.page = page
        self.buffer = buffer
        self.binding_name = binding_name
        self._installed = False
        self.actions_seen = 0

    @property
    def is_installed(self) -> bool:
        return self._installed

    async def install(self) -> None:
        """Attach document-level listeners now and after every navigation."""
        if self._installed:
            return
        self.page.on("domcontentloaded", self._on_document_loaded)
        self._installed = True
        await self._attach()
        logger.debug("Action observer listeners setup complete")

    async def uninstall(self) -> None:
        """Detach listeners from the current document.

        Events already dispatched by the page before removal are ignored by
        handle_event().
        """
        if not self._installed:
            return
        self._installed = False
        self.page.remove_listener("domcontentloaded", self._on_document_loaded)
        try:
            await self.page.evaluate(REMOVE_LISTENERS_JS, self.binding_name)
        except Exception as e:
            logger.debug(f"Failed to remove action listeners: {e}")
        logger.debug("Action observer listeners removed")

    async def _attach(self) -> None:
        try:
            await self.page.evaluate(INSTALL_LISTENERS_JS, self.binding_name)
        except Exception as e:
            logger.debug(f"Failed to attach action listeners: {e}")

    async def _on_document_loaded(self, page: Page) -> None:
        if self._installed:
            await self._attach()

    def handle_event(self, payload: Dict[str, Any]) -> None:
        """Record one action reported by the in-page listener."""
        if not self._installed:
            return
        try:
            action = ActionKind(payload.get("action"))
        except ValueError:
            logger.debug(f"Ignoring unknown action: {payload.get('action')}")
            return

        timestamp = payload.get("timestamp")
        if not isinstance(timestamp, (int, float)):
            timestamp = epoch_ms()

        self.buffer.append(UserAction(
            action=action,
            target=descriptor_from_event(payload),
            timestamp=int(timestamp),
        ))
        self.actions_seen += 1

    def get_stats(self) -> Dict[str, int]:
        """Get action observer statistics."""
        return {
            'actions_seen': self.actions_seen,
            'buffered': len(self.buffer),
        }

    def __repr__(self) -> str:
        return f"ActionObserver(installed={self._installed}, buffered={len(self.buffer)})"
