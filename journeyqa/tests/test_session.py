"""Tests for BrowserSession buffering and state capture without a real browser."""
import asyncio
import base64
from types import SimpleNamespace

from playwright.async_api import Error as PlaywrightError

from journeyqa.src.browser.session import ARIA_SNAPSHOT_FAILED, BUFFER_LIMIT, BrowserSession
from journeyqa.src.utils.models import Viewport


class SnapshotLocator:
    def __init__(self, page):
        self.page = page

    async def aria_snapshot(self):
        if self.page.snapshot is None:
            raise PlaywrightError("detached")
        return self.page.snapshot


class EventPage:
    def __init__(self, snapshot='- heading "Home" [level=1]'):
        self.handlers = {}
        self.snapshot = snapshot
        self.url = "https://example.com/"
        self.viewports = []
        self.idle_error = False

    def on(self, event, handler):
        self.handlers[event] = handler

    def emit(self, event, payload):
        self.handlers[event](payload)

    def locator(self, selector):
        return SnapshotLocator(self)

    async def title(self):
        return "Home"

    async def screenshot(self, type=None, quality=None, full_page=None):
        return b"jpeg-bytes"

    async def set_viewport_size(self, size):
        self.viewports.append(size)

    async def wait_for_load_state(self, state, timeout=None):
        if self.idle_error:
            raise PlaywrightError("Timeout exceeded")


class Closable:
    def __init__(self):
        self.closed = False

    async def close(self):
        self.closed = True

    async def stop(self):
        self.closed = True


def _session(page=None):
    page = page or EventPage()
    return BrowserSession(Closable(), Closable(), None, page), page


def _response(status, url="https://example.com/api"):
    return SimpleNamespace(status=status, url=url, status_text="Error", request=SimpleNamespace(method="POST"))


class TestBuffers:
    def test_console_and_network_are_buffered(self):
        session, page = _session()
        page.emit("console", SimpleNamespace(type="warn", text="deprecated"))
        page.emit("response", _response(200))
        page.emit("response", _response(503))

        assert [(m.type, m.text) for m in session.console_messages] == [("warning", "deprecated")]
        assert [(e.status, e.method) for e in session.network_errors] == [(503, "POST")]

    def test_buffers_are_bounded(self):
        session, page = _session()
        for index in range(BUFFER_LIMIT + 5):
            page.emit("console", SimpleNamespace(type="log", text=str(index)))
        assert len(session.console_messages) == BUFFER_LIMIT
        assert session.console_messages[0].text == "5"

    def test_reset_resizes_and_clears(self):
        session, page = _session()
        page.emit("console", SimpleNamespace(type="error", text="x"))
        asyncio.run(session.reset(Viewport(width=390, height=844)))
        assert page.viewports == [{"width": 390, "height": 844}]
        assert len(session.console_messages) == 0


class TestCaptureState:
    def test_without_screenshot(self):
        session, page = _session()
        page.emit("response", _response(404))
        state = asyncio.run(session.capture_state())
        assert state.title == "Home"
        assert state.aria_snapshot.startswith("- heading")
        assert state.screenshot_base64 == ""
        assert state.network_errors[0].status == 404

    def test_with_screenshot(self):
        session, _ = _session()
        state = asyncio.run(session.capture_state(include_screenshot=True))
        assert base64.b64decode(state.screenshot_base64) == b"jpeg-bytes"

    def test_snapshot_failure_uses_placeholder(self):
        session, _ = _session(EventPage(snapshot=None))
        assert asyncio.run(session.capture_state()).aria_snapshot == ARIA_SNAPSHOT_FAILED


def test_wait_for_idle_tolerates_timeouts():
    session, page = _session()
    page.idle_error = True
    asyncio.run(session.wait_for_idle(10))


def test_close_stops_playwright():
    session, _ = _session()
    asyncio.run(session.close())
    assert session.browser.closed and session.playwright.closed
