"""Browser manager using nodriver for undetectable Chrome automation."""

from __future__ import annotations

import asyncio
import contextlib
import random
from typing import TYPE_CHECKING, Any, TypeVar

import nodriver
from nodriver import cdp

from blinkit_checkout.exceptions import (
    AutomationTimeoutError,
    BrowserNotInitializedError,
    ElementNotFoundError,
    NavigationError,
)
from blinkit_checkout.utils.constants import BROWSER_ARGS
from blinkit_checkout.utils.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Awaitable

    from nodriver import Tab as Page
else:
    Page = nodriver.Tab

__all__ = ["BrowserManager", "Page"]

logger = get_logger(__name__)

T = TypeVar("T")


class BrowserManager:
    """
    Owns one Chrome process and one tab for a single checkout session.

    Every engine interaction is bounded by a timeout and raises a
    ``BrowserError`` subclass on failure. Each instance starts with a
    fresh temporary profile, so sessions never share cookies or storage.
    """

    def __init__(
        self,
        headless: bool = True,
        action_timeout: float = 30.0,
        navigation_timeout: float = 60.0,
        launch_timeout: float = 45.0,
        lang: str = "en-IN",
    ) -> None:
        self.headless = headless
        self.action_timeout = action_timeout
        self.navigation_timeout = navigation_timeout
        self.launch_timeout = launch_timeout
        self.lang = lang

        self._browser: nodriver.Browser | None = None
        self._page: Page | None = None

    async def _bounded(
        self,
        awaitable: Awaitable[T],
        action: str,
        timeout: float | None = None,
    ) -> T:
        """Await ``awaitable`` or raise AutomationTimeoutError."""
        limit = timeout or self.action_timeout
        try:
            return await asyncio.wait_for(awaitable, timeout=limit)
        except asyncio.TimeoutError as e:
            logger.warning("Browser action timed out", action=action, timeout=limit)
            raise AutomationTimeoutError(f"{action} timed out after {limit}s") from e

    async def start(self) -> None:
        """Start Chrome via nodriver with an isolated temporary profile."""
        logger.info("Starting Chrome browser", headless=self.headless)

        self._browser = await self._bounded(
            nodriver.start(
                headless=self.headless,
                browser_args=list(BROWSER_ARGS),
                lang=self.lang,
            ),
            action="launch",
            timeout=self.launch_timeout,
        )
        self._page = await self._bounded(
            self._browser.get("about:blank"), action="open tab"
        )

        logger.info("Browser started successfully")

    @property
    def page(self) -> Page:
        """Return the session's tab."""
        if self._page is None:
            raise BrowserNotInitializedError("Browser has not been started")
        return self._page

    @property
    def is_running(self) -> bool:
        """Check whether the browser has been started and not closed."""
        return self._browser is not None

    @property
    def current_url(self) -> str:
        """Get current URL of the tab."""
        return self.page.target.url or ""

    async def goto(self, url: str) -> None:
        """Navigate to URL with human-like settling delay."""
        logger.info("Navigating to URL", url=url)

        try:
            await self._bounded(
                self.page.get(url),
                action=f"navigate {url}",
                timeout=self.navigation_timeout,
            )
        except AutomationTimeoutError:
            raise
        except Exception as e:
            logger.error("Navigation failed", url=url, error=str(e))
            raise NavigationError(f"Navigation to {url} failed: {e}") from e
        await self.random_delay(1.0, 2.5)

    async def random_delay(self, min_sec: float = 0.5, max_sec: float = 2.0) -> None:
        """Add random delay to simulate human behavior."""
        delay = random.uniform(min_sec, max_sec)
        await asyncio.sleep(delay)

    async def select(self, selector: str) -> Any:
        """Find the first element matching a CSS selector."""
        try:
            element = await self._bounded(
                self.page.select(selector, timeout=self.action_timeout),
                action=f"select {selector}",
                timeout=self.action_timeout + 1,
            )
        except AutomationTimeoutError as e:
            raise ElementNotFoundError(f"Selector not found: {selector}") from e
        if element is None:
            raise ElementNotFoundError(f"Selector not found: {selector}")
        return element

    async def select_all(self, selector: str) -> list[Any]:
        """Find all elements matching a CSS selector."""
        try:
            elements = await self._bounded(
                self.page.select_all(selector, timeout=self.action_timeout),
                action=f"select all {selector}",
                timeout=self.action_timeout + 1,
            )
        except AutomationTimeoutError as e:
            raise ElementNotFoundError(f"Selector not found: {selector}") from e
        return list(elements or [])

    async def find_text(self, text: str) -> Any:
        """Find the element whose text best matches ``text``."""
        try:
            element = await self._bounded(
                self.page.find(text, best_match=True, timeout=self.action_timeout),
                action=f"find text {text!r}",
                timeout=self.action_timeout + 1,
            )
        except AutomationTimeoutError as e:
            raise ElementNotFoundError(f"Text not found: {text!r}") from e
        if element is None:
            raise ElementNotFoundError(f"Text not found: {text!r}")
        return element

    async def click(self, selector: str) -> None:
        """Find element by selector and click it."""
        element = await self.select(selector)
        await self._bounded(element.click(), action=f"click {selector}")

    async def click_text(self, text: str) -> None:
        """Find element by visible text and click it."""
        element = await self.find_text(text)
        await self._bounded(element.click(), action=f"click text {text!r}")

    async def fill(self, selector: str, value: str) -> None:
        """Find input by selector and type value."""
        element = await self.select(selector)
        await self._type_into(element, value, action=f"fill {selector}")

    async def fill_nth(self, selector: str, index: int, value: str) -> None:
        """Type value into the ``index``-th element matching selector."""
        elements = await self.select_all(selector)
        if index >= len(elements):
            raise ElementNotFoundError(
                f"Selector {selector} has {len(elements)} matches, wanted #{index}"
            )
        await self._type_into(elements[index], value, action=f"fill {selector}[{index}]")

    async def _type_into(self, element: Any, value: str, action: str) -> None:
        await self._bounded(element.click(), action=action)
        await self._bounded(element.clear_input(), action=action)
        await self._bounded(element.send_keys(value), action=action)

    async def evaluate(self, script: str) -> Any:
        """Run JavaScript in the tab and return its value."""
        return await self._bounded(
            self.page.evaluate(script, return_by_value=True),
            action="evaluate",
        )

    async def content(self) -> str:
        """Get the tab's current HTML."""
        return await self._bounded(self.page.get_content(), action="read content")

    async def get_cookies(self) -> list[dict[str, Any]]:
        """Get all cookies from browser."""
        result = await self._bounded(
            self.page.send(cdp.network.get_all_cookies()), action="read cookies"
        )
        cookies = []
        for c in result:
            cookies.append(
                {
                    "name": c.name,
                    "value": c.value,
                    "domain": c.domain,
                    "path": c.path,
                    "expires": c.expires,
                    "httpOnly": c.http_only,
                    "secure": c.secure,
                    "sameSite": c.same_site.value if c.same_site else "Lax",
                }
            )
        return cookies

    async def set_cookies(self, cookies: list[dict[str, Any]]) -> None:
        """Set cookies in browser."""
        if not cookies:
            return

        cookie_params = []
        for c in cookies:
            cookie_params.append(
                cdp.network.CookieParam(
                    name=c["name"],
                    value=c["value"],
                    domain=c.get("domain"),
                    path=c.get("path", "/"),
                    secure=c.get("secure"),
                    http_only=c.get("httpOnly"),
                )
            )

        await self._bounded(
            self.page.send(cdp.network.set_cookies(cookie_params)),
            action="restore cookies",
        )
        logger.info("Cookies set", count=len(cookies))

    async def close(self) -> None:
        """Close browser and cleanup."""
        logger.info("Closing browser")

        if self._page is not None:
            with contextlib.suppress(Exception):
                await self._bounded(self._page.close(), action="close tab")
            self._page = None

        if self._browser:
            with contextlib.suppress(Exception):
                self._browser.stop()
            self._browser = None

        logger.info("Browser closed")

    async def __aenter__(self) -> BrowserManager:
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()
