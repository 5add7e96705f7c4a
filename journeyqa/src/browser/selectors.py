"""Turn model-emitted selector strings into Playwright locators."""
from __future__ import annotations

import re
from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError


ROLE_WITH_NAME = re.compile(r'^role=(\w+)\[name="(.+)"\]$')
ROLE_ONLY = re.compile(r"^role=(\w+)$")
ARIA_NOTATION = re.compile(r'^(\w+) "(.+)"$')
TAG_WITH_TEXT = re.compile(r'^(\w+)\[text="(.+)"\]$')
PLAIN_TEXT = re.compile(r"^[\w ,!?'\"()\-]+$")

TAG_ROLES = {
    "link": "link",
    "a": "link",
    "button": "button",
    "heading": "heading",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "h4": "heading",
    "h5": "heading",
    "h6": "heading",
    "input": "textbox",
    "textbox": "textbox",
}


def resolve_selector(page: Any, selector: str):
    """Map a selector string onto a locator. First matching rule wins.

    Supported forms::

        role=button[name="Submit"]   role=button
        text=...  label=...  placeholder=...  css=...
        link "About"                 (accessibility-tree notation)
        link[text="About"]
        Plain words                  (visible text)

    Anything else is handed to ``page.locator`` as CSS.
    """
    selector = selector.strip()

    match = ROLE_WITH_NAME.match(selector)
    if match:
        return page.get_by_role(match.group(1), name=match.group(2))

    match = ROLE_ONLY.match(selector)
    if match:
        return page.get_by_role(match.group(1))

    if selector.startswith("text="):
        return page.get_by_text(selector[len("text="):])
    if selector.startswith("label="):
        return page.get_by_label(selector[len("label="):])
    if selector.startswith("placeholder="):
        return page.get_by_placeholder(selector[len("placeholder="):])
    if selector.startswith("css="):
        return page.locator(selector[len("css="):])

    match = ARIA_NOTATION.match(selector)
    if match:
        name = match.group(2)
        if name.startswith("text="):
            name = name[len("text="):]
        return page.get_by_role(match.group(1), name=name)

    match = TAG_WITH_TEXT.match(selector)
    if match:
        tag, text = match.groups()
        role = TAG_ROLES.get(tag.lower())
        if role:
            return page.get_by_role(role, name=text)
        return page.get_by_text(text)

    if PLAIN_TEXT.match(selector) and "." not in selector and "#" not in selector:
        return page.get_by_text(selector)

    return page.locator(selector)


async def _locator_visible(locator) -> bool:
    try:
        return bool(await locator.first.is_visible())
    except PlaywrightError:
        return False


def _attribute_selector(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return ", ".join(
        f'[{attr}*="{escaped}" i]' for attr in ("alt", "title", "aria-label", "placeholder")
    )


async def find_visible_text(page: Any, text: str) -> Optional[str]:
    """Return the name of the first strategy that finds ``text``, or ``None``."""
    needle = text.lower()

    if await _locator_visible(page.get_by_text(text)):
        return "text"
    if await _locator_visible(page.get_by_role("heading", name=text)):
        return "heading"
    if await _locator_visible(page.locator(_attribute_selector(text))):
        return "attribute"
    if await _locator_visible(page.get_by_label(text)):
        return "label"
    if await _locator_visible(page.get_by_placeholder(text)):
        return "placeholder"

    try:
        body = await page.text_content("body") or ""
    except PlaywrightError:
        body = ""
    if needle in body.lower():
        return "body"

    try:
        title = await page.title()
    except PlaywrightError:
        title = ""
    if needle in (title or "").lower():
        return "title"
    return None
