"""Execute typed browser actions against a Playwright page."""
from __future__ import annotations

from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError

from journeyqa.src.browser.selectors import find_visible_text, resolve_selector
from journeyqa.src.utils.console import RunLogger
from journeyqa.src.utils.models import (
    AssertTextAction,
    AssertVisibleAction,
    BrowserAction,
    ClickAction,
    FillAction,
    HoverAction,
    NavigateAction,
    PressKeyAction,
    ScrollAction,
    SelectAction,
    WaitAction,
)
from journeyqa.src.utils.urls import NavigationError, validate_navigation_url


class ActionError(Exception):
    """An action could not be performed or an assertion did not hold."""


def _locator(page: Any, selector: str, action_type: str):
    if not selector or not selector.strip():
        raise ActionError(f"{action_type} requires a selector")
    return resolve_selector(page, selector)


async def _page_text(page: Any) -> str:
    title = await page.title() or ""
    body = await page.text_content("body") or ""
    return f"{title} {body}"


async def _dispatch(page: Any, action: BrowserAction, timeout_ms: int, logger: RunLogger) -> None:
    if isinstance(action, ClickAction):
        await _locator(page, action.selector, action.type).click(timeout=timeout_ms)
    elif isinstance(action, FillAction):
        await _locator(page, action.selector, action.type).fill(action.value, timeout=timeout_ms)
    elif isinstance(action, SelectAction):
        await _locator(page, action.selector, action.type).select_option(action.value, timeout=timeout_ms)
    elif isinstance(action, HoverAction):
        await _locator(page, action.selector, action.type).hover(timeout=timeout_ms)
    elif isinstance(action, PressKeyAction):
        if not action.key:
            raise ActionError("press_key requires a key")
        await page.keyboard.press(action.key)
    elif isinstance(action, NavigateAction):
        try:
            url = validate_navigation_url(action.url)
        except NavigationError as exc:
            raise ActionError(str(exc)) from exc
        await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
    elif isinstance(action, WaitAction):
        await page.wait_for_timeout(max(0, action.milliseconds))
    elif isinstance(action, ScrollAction):
        distance = action.amount if action.amount is not None else 500
        await page.mouse.wheel(0, distance if action.direction == "down" else -distance)
    elif isinstance(action, AssertVisibleAction):
        strategy = await find_visible_text(page, action.text)
        if strategy is None:
            raise ActionError(f'Assertion failed: expected "{action.text}" to be visible on the page')
        logger.debug(f'"{action.text}" found via {strategy}')
    elif isinstance(action, AssertTextAction):
        if action.text.lower() not in (await _page_text(page)).lower():
            raise ActionError(f'Assertion failed: page does not contain text "{action.text}"')
    else:
        raise ActionError(f"Unsupported action type: {getattr(action, 'type', action)!r}")


async def apply_action(
    page: Any,
    action: BrowserAction,
    timeout_ms: int,
    logger: Optional[RunLogger] = None,
) -> None:
    """Perform one action; every driver failure surfaces as ActionError."""
    logger = logger or RunLogger()
    logger.debug(f"Executing: {action.type} - {action.description}")
    try:
        await _dispatch(page, action, timeout_ms, logger)
    except PlaywrightError as exc:
        message = str(exc).splitlines()[0] if str(exc) else exc.__class__.__name__
        raise ActionError(f"{action.type} failed: {message}") from exc
