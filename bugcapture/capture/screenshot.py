"""Screenshot orchestration for bug reports.

The orchestrator renders the current page to a PNG data URI with a pluggable
rasterizer and never raises: an unavailable or failing rasterizer yields no
screenshot and one warning.

Two rasterizers are provided:
- Html2CanvasRasterizer renders inside the page with html2canvas, loading the
  library from a CDN when the page does not already provide it.
- PlaywrightRasterizer uses the browser's own screenshot support.

Both leave the capture UI's own elements out of the image.
"""

import base64
import logging
from typing import Optional, Protocol, Sequence

from playwright.async_api import Page

from ..errors import RasterizerUnavailableError

logger = logging.getLogger(__name__)


HTML2CANVAS_URL = "https://cdnjs.cloudflare.com/ajax/libs/html2canvas/1.4.1/html2canvas.min.js"
CAPTURE_UI_IDS = ("bug-capture-button", "bug-capture-overlay")

HTML2CANVAS_AVAILABLE_JS = "() => typeof window.html2canvas === 'function'"

# Cloned elements get computed colors so modern color syntaxes stay renderable
HTML2CANVAS_RENDER_JS = """
async (ignoreIds) => {
    const canvas = await window.html2canvas(document.body, {
        useCORS: true,
        allowTaint: true,
        logging: false,
        scale: 1,
        windowWidth: document.documentElement.scrollWidth,
        windowHeight: document.documentElement.scrollHeight,
        ignoreElements: (element) => ignoreIds.includes(element.id),
        onclone: (clonedDoc) => {
            clonedDoc.querySelectorAll('*').forEach((el) => {
                const computed = window.getComputedStyle(el);
                if (computed.backgroundColor) {
                    el.style.backgroundColor = computed.backgroundColor;
                }
                if (computed.color) {
                    el.style.color = computed.color;
                }
                if (computed.borderColor) {
                    el.style.borderColor = computed.borderColor;
                }
            });
        }
    });
    return canvas.toDataURL('image/png');
}
"""


class Rasterizer(Protocol):
    """Renders a page to a data URI."""

    async def render(self, page: Page, ignore_ids: Sequence[str]) -> str:
        ...


class Html2CanvasRasterizer:
    """In-page rasterizer backed by html2canvas."""

    def __init__(self, script_url: str = HTML2CANVAS_URL):
        self.script_url = script_url

    async def ensure_loaded(self, page: Page) -> None:
        """Load html2canvas into the page unless it is already present.

        Raises:
            RasterizerUnavailableError: If the script cannot be loaded
        """
        if await page.evaluate(HTML2CANVAS_AVAILABLE_JS):
            return
        try:
            await page.add_script_tag(url=self.script_url)
        except Exception as e:
            raise RasterizerUnavailableError(
                f"Failed to load html2canvas: {e}",
                source=self.script_url
            ) from e

    async def render(self, page: Page, ignore_ids: Sequence[str]) -> str:
        await self.ensure_loaded(page)
        return await page.evaluate(HTML2CANVAS_RENDER_JS, list(ignore_ids))


class PlaywrightRasterizer:
    """Rasterizer using the browser's native screenshot support."""

    def __init__(self, full_page: bool = False):
        self.full_page = full_page

    async def render(self, page: Page, ignore_ids: Sequence[str]) -> str:
        hide = " ".join(f"#{element_id} {{ visibility: hidden !important; }}" for element_id in ignore_ids)
        png = await page.screenshot(type="png", full_page=self.full_page, style=hide or None)
        return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def create_rasterizer(renderer: str, script_url: str = HTML2CANVAS_URL) -> Rasterizer:
    """Create a rasterizer by configured name."""
    if renderer == "html2canvas":
        return Html2CanvasRasterizer(script_url)
    if renderer == "native":
        return PlaywrightRasterizer()
    raise ValueError(f"Unknown screenshot renderer: {renderer}")


class ScreenshotOrchestrator:
    """Produces one screenshot per call, tolerating rasterizer failures."""

    def __init__(
        self,
        page: Page,
        rasterizer: Optional[Rasterizer] = None,
        ignore_ids: Sequence[str] = CAPTURE_UI_IDS
    ):
        self.page = page
        self.rasterizer = rasterizer or Html2CanvasRasterizer()
        self.ignore_ids = tuple(ignore_ids)
        self.attempts = 0
        self.failures = 0

    async def capture(self) -> Optional[str]:
        """Render the page.

        Returns:
            PNG data URI, or None if no screenshot could be produced
        """
        self.attempts += 1
        try:
            image = await self.rasterizer.render(self.page, self.ignore_ids)
        except RasterizerUnavailableError as e:
            self.failures += 1
            logger.warning(f"{e.message}, submitting without screenshot")
            return None
        except Exception as e:
            self.failures += 1
            logger.warning(f"Screenshot capture failed: {e}")
            return None

        if not isinstance(image, str) or not image.startswith("data:image/"):
            self.failures += 1
            logger.warning("Screenshot capture returned no image data")
            return None
        return image
