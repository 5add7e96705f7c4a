"""Chromium session with console/network buffers and page-state capture."""
from __future__ import annotations

import asyncio
import base64
import time
from collections import deque
from typing import Deque, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from journeyqa.src.utils.console import RunLogger
from journeyqa.src.utils.models import ConsoleMessage, NetworkError, PageState, Viewport


BUFFER_LIMIT = 200
MAX_ARIA_SNAPSHOT_CHARS = 60_000
ARIA_SNAPSHOT_FAILED = "Failed to capture accessibility snapshot"
SCREENSHOT_QUALITY = 50


class BrowserSession:
    """One browser, one context and one page, plus recent diagnostics."""

    def __init__(
        self,
        playwright: Playwright,
        browser: Browser,
        context: BrowserContext,
        page: Page,
        logger: Optional[RunLogger] = None,
    ) -> None:
        self.playwright = playwright
        self.browser = browser
        self.context = context
        self.page = page
        self.logger = logger or RunLogger()
        self.console_messages: Deque[ConsoleMessage] = deque(maxlen=BUFFER_LIMIT)
        self.network_errors: Deque[NetworkError] = deque(maxlen=BUFFER_LIMIT)
        page.on("console", self._on_console)
        page.on("response", self._on_response)

    @classmethod
    async def launch(
        cls,
        headed: bool = False,
        viewport: Optional[Viewport] = None,
        logger: Optional[RunLogger] = None,
    ) -> "BrowserSession":
        viewport = viewport or Viewport()
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(headless=not headed)
            context = await browser.new_context(viewport=viewport.as_dict())
            page = await context.new_page()
        except BaseException:
            await playwright.stop()
            raise
        return cls(playwright, browser, context, page, logger=logger)

    def _on_console(self, message) -> None:
        kind = message.type
        if kind == "warn":
            kind = "warning"
        self.console_messages.append(ConsoleMessage(type=kind, text=message.text))

    def _on_response(self, response) -> None:
        if response.status >= 400:
            self.network_errors.append(
                NetworkError(
                    url=response.url,
                    status=response.status,
                    status_text=response.status_text,
                    method=response.request.method,
                )
            )

    def clear_buffers(self) -> None:
        self.console_messages.clear()
        self.network_errors.clear()

    async def reset(self, viewport: Optional[Viewport] = None) -> None:
        """Prepare a shared session for the next journey."""
        await self.page.set_viewport_size((viewport or Viewport()).as_dict())
        self.clear_buffers()

    async def navigate(self, url: str, timeout_ms: int) -> None:
        await self.page.goto(url, wait_until="networkidle", timeout=timeout_ms)

    async def wait_for_idle(self, timeout_ms: int = 5000) -> None:
        """Best-effort network quiescence; pages that never settle are fine."""
        try:
            await self.page.wait_for_load_state("networkidle", timeout=timeout_ms)
        except PlaywrightError:
            self.logger.debug("Network did not go idle, continuing")

    async def _aria_snapshot(self) -> str:
        try:
            snapshot = await self.page.locator("body").aria_snapshot()
        except PlaywrightError as exc:
            self.logger.debug(f"ariaSnapshot failed: {exc}")
            return ARIA_SNAPSHOT_FAILED
        if len(snapshot) > MAX_ARIA_SNAPSHOT_CHARS:
            snapshot = snapshot[:MAX_ARIA_SNAPSHOT_CHARS]
        return snapshot

    async def _screenshot(self) -> str:
        data = await self.page.screenshot(type="jpeg", quality=SCREENSHOT_QUALITY, full_page=False)
        return base64.b64encode(data).decode("ascii")

    async def capture_state(self, include_screenshot: bool = False) -> PageState:
        """Snapshot the page. Screenshots are only taken when asked for."""
        if include_screenshot:
            screenshot, aria, title = await asyncio.gather(
                self._screenshot(), self._aria_snapshot(), self.page.title()
            )
        else:
            aria, title = await asyncio.gather(self._aria_snapshot(), self.page.title())
            screenshot = ""
        return PageState(
            url=self.page.url,
            title=title,
            aria_snapshot=aria,
            screenshot_base64=screenshot,
            console_messages=list(self.console_messages),
            network_errors=list(self.network_errors),
            timestamp=time.time(),
        )

    async def close(self) -> None:
        try:
            await self.browser.close()
        finally:
            await self.playwright.stop()
