"""
Browser automation used by the login and refresh flows.

The flows only talk to the small BrowserDriver protocol so they can run
against an in-memory fake in tests. PlaywrightBrowser implements it with a
Chromium page driven through Playwright's sync API.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeout
from playwright.sync_api import sync_playwright

from destream.exceptions import BrowserError

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = ["--disable-dev-shm-usage", "--fast-start", "--no-sandbox"]


class BrowserDriver(Protocol):
    """Minimal page interface needed to log in and read the session.

    Wait methods take timeouts in seconds and return False when the wait
    expires instead of raising.
    """

    @property
    def url(self) -> str: ...

    def goto(self, url: str) -> None: ...

    def wait_for_selector(self, selector: str, timeout: float) -> bool: ...

    def wait_for_url(self, predicate: Callable[[str], bool], timeout: float) -> bool: ...

    def type(self, selector: str, text: str) -> None: ...

    def click(self, selector: str) -> None: ...

    def evaluate(self, expression: str) -> Any: ...

    def close(self) -> None: ...


class PlaywrightBrowser:
    """Chromium page controlled through Playwright.

    Args:
        headless: Run without a visible window
        user_data_dir: Persistent profile directory; cookies saved there
            survive between runs. None uses a throwaway profile.

    Raises:
        BrowserError: If Chromium cannot be launched
    """

    def __init__(self, headless: bool = True, user_data_dir: Path | str | None = None):
        self._playwright = sync_playwright().start()
        self._browser = None
        try:
            if user_data_dir is not None:
                Path(user_data_dir).mkdir(parents=True, exist_ok=True)
                self._context = self._playwright.chromium.launch_persistent_context(
                    str(user_data_dir), headless=headless, args=CHROMIUM_ARGS
                )
            else:
                self._browser = self._playwright.chromium.launch(
                    headless=headless, args=CHROMIUM_ARGS
                )
                self._context = self._browser.new_context()
        except PlaywrightError as e:
            self._playwright.stop()
            raise BrowserError(
                f"Failed to launch Chromium: {e}",
                suggestion="Run 'playwright install chromium' to download the browser.",
            ) from e

        pages = self._context.pages
        self._page = pages[0] if pages else self._context.new_page()
        self._closed = False

    @property
    def url(self) -> str:
        return self._page.url

    def goto(self, url: str) -> None:
        try:
            self._page.goto(url, wait_until="load")
        except PlaywrightError as e:
            raise BrowserError(f"Navigation to {url} failed: {e}") from e

    def wait_for_selector(self, selector: str, timeout: float) -> bool:
        try:
            self._page.wait_for_selector(selector, timeout=timeout * 1000)
        except PlaywrightTimeout:
            return False
        return True

    def wait_for_url(self, predicate: Callable[[str], bool], timeout: float) -> bool:
        try:
            self._page.wait_for_url(predicate, timeout=timeout * 1000, wait_until="commit")
        except PlaywrightTimeout:
            return False
        return True

    def type(self, selector: str, text: str) -> None:
        try:
            self._page.fill(selector, text)
        except PlaywrightError as e:
            raise BrowserError(f"Could not type into {selector}: {e}") from e

    def click(self, selector: str) -> None:
        try:
            self._page.click(selector)
        except PlaywrightError as e:
            raise BrowserError(f"Could not click {selector}: {e}") from e

    def evaluate(self, expression: str) -> Any:
        try:
            return self._page.evaluate(expression)
        except PlaywrightError as e:
            raise BrowserError(f"Page evaluation failed: {e}") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._context.close()
            if self._browser is not None:
                self._browser.close()
        except PlaywrightError as e:
            logger.debug(f"Error while closing browser: {e}")
        finally:
            self._playwright.stop()
