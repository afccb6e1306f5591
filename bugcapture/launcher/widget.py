"""Floating report launcher injected into the captured page.

The launcher is a fixed-position button plus a small modal form (title,
description, email). Submitting the form calls back into Python through the
engine's page binding; the dialog then shows a success message or the error
with a retry button.
"""

import logging
from typing import Any, Awaitable, Callable, Dict

from playwright.async_api import Page

from ..errors import SubmissionError
from ..models.capture import ReportOptions, SubmissionResult

logger = logging.getLogger(__name__)


BUTTON_ID = "bug-capture-button"
OVERLAY_ID = "bug-capture-overlay"

INSTALL_LAUNCHER_JS = """
(options) => {
    const key = '__bugCaptureLauncher_' + options.bindingName;
    if (window[key]) {
        return false;
    }
    const positions = {
        'bottom-right': 'bottom: 20px; right: 20px;',
        'bottom-left': 'bottom: 20px; left: 20px;',
        'top-right': 'top: 20px; right: 20px;',
        'top-left': 'top: 20px; left: 20px;'
    };
    const fieldStyle = 'width: 100%; padding: 10px; border: 1px solid #ddd; border-radius: 6px; ' +
        'margin-bottom: 12px; box-sizing: border-box; font-size: 14px;';

    const closeDialog = () => {
        const overlay = document.getElementById('bug-capture-overlay');
        if (overlay) {
            overlay.remove();
        }
    };

    const openDialog = () => {
        if (document.getElementById('bug-capture-overlay')) {
            return;
        }
        const overlay = document.createElement('div');
        overlay.id = 'bug-capture-overlay';
        overlay.style.cssText = 'position: fixed; top: 0; left: 0; right: 0; bottom: 0; ' +
            'background: rgba(0,0,0,0.5); z-index: 9999999; display: flex; align-items: center; justify-content: center;';

        const dialog = document.createElement('div');
        dialog.style.cssText = 'background: white; padding: 24px; border-radius: 12px; width: 90%; max-width: 400px; ' +
            'box-shadow: 0 20px 40px rgba(0,0,0,0.2); font-family: sans-serif;';
        dialog.innerHTML = '<h2 style="margin: 0 0 16px 0; font-size: 18px;">Report a Bug</h2>' +
            '<p style="margin: 0 0 16px 0; color: #666; font-size: 14px;">Describe the issue you encountered. ' +
            'A screenshot and debug information will be captured automatically.</p>' +
            '<input type="text" id="bug-title" placeholder="Brief title" style="' + fieldStyle + '">' +
            '<textarea id="bug-description" placeholder="Describe the issue..." style="' + fieldStyle +
            ' height: 100px; resize: vertical;"></textarea>' +
            '<input type="email" id="bug-email" placeholder="Your email (optional)" style="' + fieldStyle + '">' +
            '<div id="bug-error" style="display: none; color: #b91c1c; font-size: 13px; margin-bottom: 12px;"></div>' +
            '<div style="display: flex; gap: 12px;">' +
            '<button id="bug-cancel" style="flex: 1; padding: 10px; border: 1px solid #ddd; background: white; ' +
            'border-radius: 6px; cursor: pointer; font-size: 14px;">Cancel</button>' +
            '<button id="bug-submit" style="flex: 1; padding: 10px; border: none; background: #3b82f6; color: white; ' +
            'border-radius: 6px; cursor: pointer; font-size: 14px;">Submit Report</button>' +
            '</div>';
        overlay.appendChild(dialog);
        document.body.appendChild(overlay);

        overlay.addEventListener('click', (event) => {
            if (event.target === overlay) {
                closeDialog();
            }
        });
        dialog.querySelector('#bug-cancel').addEventListener('click', closeDialog);

        const submitButton = dialog.querySelector('#bug-submit');
        const errorBox = dialog.querySelector('#bug-error');
        submitButton.addEventListener('click', async () => {
            submitButton.textContent = 'Submitting...';
            submitButton.disabled = true;
            errorBox.style.display = 'none';

            let result;
            try {
                result = await window[options.bindingName]({
                    kind: 'submit',
                    title: dialog.querySelector('#bug-title').value,
                    description: dialog.querySelector('#bug-description').value,
                    reporterEmail: dialog.querySelector('#bug-email').value
                });
            } catch (e) {
                result = {ok: false, error: String(e)};
            }

            if (result && result.ok) {
                dialog.innerHTML = '<div style="text-align: center; padding: 20px;">' +
                    '<h3 style="margin: 0 0 8px 0;">Thank you!</h3>' +
                    '<p style="color: #666; margin: 0;">Your bug report has been submitted.</p>' +
                    '</div>';
                setTimeout(closeDialog, 2000);
            } else {
                errorBox.textContent = 'Failed to submit report: ' + ((result && result.error) || 'Unknown error');
                errorBox.style.display = 'block';
                submitButton.textContent = 'Retry';
                submitButton.disabled = false;
            }
        });
    };

    const createButton = () => {
        if (!options.showButton || document.getElementById('bug-capture-button')) {
            return;
        }
        const button = document.createElement('button');
        button.id = 'bug-capture-button';
        button.textContent = 'Report Bug';
        button.style.cssText = 'position: fixed; ' + (positions[options.position] || positions['bottom-right']) +
            ' z-index: 999999; padding: 12px 20px; background: #3b82f6; color: white; border: none; ' +
            'border-radius: 8px; cursor: pointer; font-size: 14px; font-weight: 500; ' +
            'box-shadow: 0 4px 12px rgba(0,0,0,0.15);';
        button.addEventListener('click', openDialog);
        document.body.appendChild(button);
    };

    const remove = () => {
        closeDialog();
        const button = document.getElementById('bug-capture-button');
        if (button) {
            button.remove();
        }
        delete window[key];
    };

    window[key] = {open: openDialog, close: closeDialog, remove: remove};
    if (document.readyState === 'loading') {
        document.addEventListener('DOMContentLoaded', createButton);
    } else {
        createButton();
    }
    return true;
}
"""

OPEN_DIALOG_JS = """
(key) => {
    const launcher = window[key];
    if (!launcher) {
        return false;
    }
    launcher.open();
    return true;
}
"""

REMOVE_LAUNCHER_JS = """
(key) => {
    const launcher = window[key];
    if (launcher) {
        launcher.remove();
    }
}
"""

SubmitCallback = Callable[[ReportOptions], Awaitable[SubmissionResult]]


class LauncherWidget:
    """Injects the launcher and answers its submissions."""

    def __init__(
        self,
        page: Page,
        binding_name: str,
        on_submit: SubmitCallback,
        position: str = "bottom-right",
        show_button: bool = True,
    ):
        """Initialize launcher widget.

        Args:
            page: Playwright page to decorate
            binding_name: Name of the page binding the form submits through
            on_submit: Coroutine submitting a report for the given options
            position: Corner for the floating button
            show_button: Whether the floating button is shown
        """
        self.page = page
        self.binding_name = binding_name
        self.on_submit = on_submit
        self.position = position
        self.show_button = show_button
        self._installed = False

    @property
    def window_key(self) -> str:
        return f"__bugCaptureLauncher_{self.binding_name}"

    @property
    def options(self) -> Dict[str, Any]:
        return {
            "bindingName": self.binding_name,
            "position": self.position,
            "showButton": self.show_button,
        }

    async def install(self) -> None:
        """Inject the launcher now and after every navigation."""
        if self._installed:
            return
        self.page.on("domcontentloaded", self._on_document_loaded)
        self._installed = True
        await self._inject()
        logger.debug(f"Launcher installed ({self.position}, button={self.show_button})")

    async def remove(self) -> None:
        """Remove the button and any open dialog."""
        if not self._installed:
            return
        self._installed = False
        self.page.remove_listener("domcontentloaded", self._on_document_loaded)
        try:
            await self.page.evaluate(REMOVE_LAUNCHER_JS, self.window_key)
        except Exception as e:
            logger.debug(f"Failed to remove launcher: {e}")

    async def show_dialog(self) -> None:
        """Open the report dialog."""
        if not await self.page.evaluate(OPEN_DIALOG_JS, self.window_key):
            await self._inject()
            await self.page.evaluate(OPEN_DIALOG_JS, self.window_key)

    async def handle_submit(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Submit a report for the dialog and describe the outcome for the page."""
        if not self._installed:
            return {"ok": False, "error": "Bug capture is not initialized"}

        options = ReportOptions(
            title=payload.get("title") or "Bug Report",
            description=payload.get("description") or "",
            reporter_email=payload.get("reporterEmail") or None,
        )
        try:
            result = await self.on_submit(options)
        except SubmissionError as e:
            return {"ok": False, "error": e.message}
        except Exception as e:
            logger.error(f"Launcher submission failed: {e}")
            return {"ok": False, "error": str(e)}
        return {"ok": True, "id": result.id}

    async def _inject(self) -> None:
        try:
            await self.page.evaluate(INSTALL_LAUNCHER_JS, self.options)
        except Exception as e:
            logger.debug(f"Failed to inject launcher: {e}")

    async def _on_document_loaded(self, page: Page) -> None:
        if self._installed:
            await self._inject()

    def __repr__(self) -> str:
        return f"LauncherWidget(installed={self._installed}, position={self.position})"
