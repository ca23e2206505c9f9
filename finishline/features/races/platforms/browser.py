"""
Shared headless browser sessions (Playwright).

Each lookup gets its own browser + page, released on every exit path.
Concurrent sessions are capped because every session is a real Chromium
process. The cap applies per event loop: callers running several loops
(one per worker thread, or successive asyncio.run calls) each get their own.
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from finishline.config import settings

from ..errors import NetworkError

logger = logging.getLogger(__name__)

# Event loop -> session semaphore, created on first use in that loop
_session_slots: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Semaphore]" = (
    weakref.WeakKeyDictionary()
)


def _slots() -> asyncio.Semaphore:
    loop = asyncio.get_running_loop()
    slots = _session_slots.get(loop)
    if slots is None:
        slots = asyncio.Semaphore(settings.browser_max_sessions)
        _session_slots[loop] = slots
    return slots


@asynccontextmanager
async def browser_page() -> AsyncIterator[Page]:
    """Open a headless Chromium page; close page and browser on exit.

    Raises:
        NetworkError: browser or page could not be started
    """
    async with _slots():
        async with async_playwright() as pw:
            try:
                browser = await pw.chromium.launch(
                    headless=settings.browser_headless,
                    executable_path=settings.browser_executable_path,
                    args=["--no-sandbox", "--disable-setuid-sandbox"],
                )
            except PlaywrightError as e:
                raise NetworkError(f"Browser launch failed: {e}") from e

            logger.debug("Browser session opened")
            try:
                try:
                    page = await browser.new_page(user_agent=settings.user_agent)
                except PlaywrightError as e:
                    raise NetworkError(f"Browser page could not be opened: {e}") from e
                page.set_default_timeout(settings.browser_navigation_timeout_seconds * 1000)
                yield page
            finally:
                try:
                    await browser.close()
                except PlaywrightError as e:
                    logger.warning(f"Browser close failed: {e}")
                logger.debug("Browser session closed")
