"""Point-in-time device and viewport snapshot of a page."""

import logging

from playwright.async_api import Page

from ..models.capture import DeviceInfo

logger = logging.getLogger(__name__)


DEVICE_INFO_JS = """
() => ({
    userAgent: navigator.userAgent,
    platform: navigator.platform,
    language: navigator.language,
    screenWidth: window.screen.width,
    screenHeight: window.screen.height,
    viewportWidth: window.innerWidth,
    viewportHeight: window.innerHeight,
    devicePixelRatio: window.devicePixelRatio,
    timezone: Intl.DateTimeFormat().resolvedOptions().timeZone,
    cookiesEnabled: navigator.cookieEnabled
})
"""


async def collect_device_info(page: Page) -> DeviceInfo:
    """Evaluate the device snapshot in the page.

    Returns default values when the page cannot be evaluated.
    """
    try:
        data = await page.evaluate(DEVICE_INFO_JS)
    except Exception as e:
        logger.warning(f"Failed to collect device info: {e}")
        return DeviceInfo()
    return DeviceInfo.model_validate(data or {})
