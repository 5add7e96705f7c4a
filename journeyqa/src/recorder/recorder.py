"""Record manual browser interactions as a natural-language journey file."""
from __future__ import annotations

import asyncio
import json
import re
import signal
import time
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from playwright.async_api import async_playwright
from pydantic import BaseModel, ValidationError

from journeyqa.src.utils.console import RunLogger
from journeyqa.src.utils.urls import validate_navigation_url


CLICK_INPUT_WINDOW_MS = 2000

LISTENER_SCRIPT = r"""
(() => {
  if (window.__journeyqaRecording) return;
  window.__journeyqaRecording = true;
  let inputTimer = null;
  let scrollTimer = null;
  let lastY = window.scrollY;
  const send = (payload) => window.__journeyqaEvent(JSON.stringify({ timestamp: Date.now(), ...payload }));
  const describe = (el) => ({
    tag: el.tagName.toLowerCase(),
    text: (el.textContent || '').trim().slice(0, 100),
    role: el.getAttribute('role') || el.tagName.toLowerCase(),
    aria_label: el.getAttribute('aria-label') || '',
    placeholder: el.getAttribute('placeholder') || '',
  });
  document.addEventListener('click', (e) => {
    if (e.button !== 0 || e.ctrlKey || e.metaKey || e.shiftKey || e.altKey) return;
    send({ type: 'click', ...describe(e.target) });
  }, true);
  document.addEventListener('input', (e) => {
    const el = e.target;
    if (!el || !el.tagName) return;
    const info = describe(el);
    const isPassword = el.type === 'password';
    clearTimeout(inputTimer);
    inputTimer = setTimeout(() => send({
      type: 'input', tag: info.tag, aria_label: info.aria_label, placeholder: info.placeholder,
      text: info.aria_label || info.placeholder || el.name || '',
      value: isPassword ? '***' : el.value, is_password: isPassword,
    }), 800);
  }, true);
  document.addEventListener('change', (e) => {
    const el = e.target;
    if (!el || el.tagName.toLowerCase() !== 'select') return;
    const info = describe(el);
    const option = el.options[el.selectedIndex];
    send({
      type: 'select', tag: 'select', aria_label: info.aria_label,
      text: info.aria_label || info.placeholder || el.name || '',
      value: option ? option.text : el.value,
    });
  }, true);
  window.addEventListener('scroll', () => {
    clearTimeout(scrollTimer);
    scrollTimer = setTimeout(() => {
      const direction = window.scrollY > lastY ? 'down' : 'up';
      lastY = window.scrollY;
      send({ type: 'scroll', direction });
    }, 500);
  }, true);
  document.addEventListener('submit', () => send({ type: 'submit', tag: 'form' }), true);
})();
"""


class RecordedEvent(BaseModel):
    type: Literal["click", "input", "select", "scroll", "submit", "navigation"]
    timestamp: float = 0
    tag: str = ""
    text: str = ""
    role: str = ""
    aria_label: str = ""
    placeholder: str = ""
    value: str = ""
    is_password: bool = False
    direction: Literal["up", "down"] = "down"
    url: str = ""


def _element_description(event: RecordedEvent) -> str:
    if event.aria_label:
        return f"'{event.aria_label}'"
    if event.placeholder:
        return f"'{event.placeholder}'"
    text = event.text.replace("\n", " ").strip()
    if text and len(text) <= 60:
        return f"'{text}'"
    return f"the {event.tag or 'element'}"


def _role_label(event: RecordedEvent) -> str:
    tag = event.tag.lower()
    if tag == "a" or event.role == "link":
        return "link"
    if tag == "button" or event.role == "button":
        return "button"
    if tag in ("input", "textarea"):
        return "field"
    if tag == "select":
        return "dropdown"
    if re.fullmatch(r"h[1-6]", tag):
        return "heading"
    if tag == "img":
        return "image"
    return tag


def to_natural_language(event: RecordedEvent) -> str:
    if event.type == "click":
        role = _role_label(event)
        description = _element_description(event)
        if role == "link":
            return f"Click the {description} link"
        if role == "button":
            return f"Click the {description} button"
        return f"Click on {description}"
    if event.type == "input":
        value = "[password]" if event.is_password else event.value
        return f"Type '{value}' into the {_element_description(event)} field"
    if event.type == "select":
        return f"Select '{event.value}' from the {_element_description(event)} dropdown"
    if event.type == "scroll":
        return f"Scroll {event.direction} the page"
    if event.type == "navigation":
        return f"Navigate to {event.url}"
    return "Submit the form"


def coalesce_events(events: List[RecordedEvent]) -> List[RecordedEvent]:
    """Drop clicks that only focused a field, and repeated same-direction scrolls."""
    result: List[RecordedEvent] = []
    for index, event in enumerate(events):
        if event.type == "click" and index + 1 < len(events):
            following = events[index + 1]
            if following.type == "input" and following.timestamp - event.timestamp < CLICK_INPUT_WINDOW_MS:
                continue
        if event.type == "scroll" and result:
            previous = result[-1]
            if previous.type == "scroll" and previous.direction == event.direction:
                continue
        result.append(event)
    return result


def build_journey_yaml(name: str, url: str, events: List[RecordedEvent]) -> str:
    steps = [{"action": to_natural_language(event)} for event in coalesce_events(events)]
    return yaml.safe_dump(
        {"name": name, "url": url, "steps": steps}, sort_keys=False, allow_unicode=True
    )


class JourneyRecorder:
    """Opens a headed browser and collects interactions until stopped."""

    def __init__(self, logger: Optional[RunLogger] = None) -> None:
        self.logger = logger or RunLogger()
        self.events: List[RecordedEvent] = []
        self.start_url = ""
        self._initial_navigation_seen = False

    def handle_payload(self, payload: str) -> None:
        try:
            event = RecordedEvent.model_validate(json.loads(payload))
        except (ValueError, ValidationError) as exc:
            self.logger.debug(f"Ignoring malformed recorder payload: {exc}")
            return
        self.events.append(event)
        self.logger.info(f"  [{len(self.events)}] {to_natural_language(event)}")

    def handle_navigation(self, url: str) -> None:
        if not self._initial_navigation_seen:
            self._initial_navigation_seen = True
            self.start_url = url
            return
        if url.startswith("about:") or url == self.start_url:
            return
        self.events.append(RecordedEvent(type="navigation", timestamp=time.time() * 1000, url=url))
        self.logger.info(f"  [{len(self.events)}] Navigate to {url}")

    async def record(self, url: str, stop: Optional[asyncio.Event] = None) -> None:
        url = validate_navigation_url(url)
        self.start_url = url
        stop = stop or asyncio.Event()
        loop = asyncio.get_running_loop()
        handler_installed = False
        try:
            loop.add_signal_handler(signal.SIGINT, stop.set)
            handler_installed = True
        except (NotImplementedError, RuntimeError):
            self.logger.debug("SIGINT handler unavailable; close the browser window to stop")

        self.logger.info("\nStarting recording session...")
        self.logger.info(f"Opening: {url}")
        self.logger.info("\nInteract with the page. Press Ctrl+C (or close the window) when done.\n")

        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=False)
            try:
                context = await browser.new_context(viewport={"width": 1280, "height": 720})
                page = await context.new_page()
                await page.expose_function("__journeyqaEvent", self.handle_payload)
                await page.add_init_script(LISTENER_SCRIPT)
                page.on(
                    "framenavigated",
                    lambda frame: self.handle_navigation(frame.url) if frame == page.main_frame else None,
                )
                page.on("close", lambda _page: stop.set())
                await page.goto(url, wait_until="networkidle", timeout=30000)
                await stop.wait()
            finally:
                if handler_installed:
                    loop.remove_signal_handler(signal.SIGINT)
                await browser.close()

        self.logger.info(f"\n\nRecording stopped. Captured {len(self.events)} raw events.")


async def record_journey(url: str, name: str, output: str | Path, logger: Optional[RunLogger] = None) -> Optional[Path]:
    """Record a session and save it as journey YAML; ``None`` when nothing was captured."""
    recorder = JourneyRecorder(logger)
    await recorder.record(url)

    if not coalesce_events(recorder.events):
        recorder.logger.info("No interactions recorded. No file written.")
        return None

    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(build_journey_yaml(name, recorder.start_url, recorder.events), encoding="utf-8")

    steps = [to_natural_language(event) for event in coalesce_events(recorder.events)]
    recorder.logger.info(f"\nJourney saved: {path}")
    recorder.logger.info(f"Steps: {len(steps)}")
    for index, step in enumerate(steps, start=1):
        recorder.logger.info(f"  {index}. {step}")
    return path
