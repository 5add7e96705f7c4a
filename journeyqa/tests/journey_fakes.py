"""In-memory stand-ins for Playwright pages, browser sessions and the AI client."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Set, Tuple

from playwright.async_api import Error as PlaywrightError

from journeyqa.src.utils.config import RunOptions
from journeyqa.src.utils.models import (
    AIStepInterpretation,
    JourneyDefinition,
    JourneyStep,
    PageState,
    UXAnalysis,
    UXIssue,
)


class FakeLocator:
    def __init__(self, page: "FakePage", key: Tuple[Any, ...]) -> None:
        self.page = page
        self.key = key

    @property
    def first(self) -> "FakeLocator":
        return self

    async def is_visible(self) -> bool:
        if self.key in self.page.raising:
            raise PlaywrightError("locator exploded")
        return self.key in self.page.visible

    async def _act(self, name: str, *args: Any, timeout: Optional[int] = None) -> None:
        if self.key in self.page.failing:
            raise PlaywrightError(f"Timeout {timeout}ms exceeded.\n=== logs ===")
        self.page.performed.append((name, self.key, args, timeout))

    async def click(self, timeout: Optional[int] = None) -> None:
        await self._act("click", timeout=timeout)

    async def fill(self, value: str, timeout: Optional[int] = None) -> None:
        await self._act("fill", value, timeout=timeout)

    async def select_option(self, value: str, timeout: Optional[int] = None) -> None:
        await self._act("select_option", value, timeout=timeout)

    async def hover(self, timeout: Optional[int] = None) -> None:
        await self._act("hover", timeout=timeout)


class FakeKeyboard:
    def __init__(self, page: "FakePage") -> None:
        self.page = page

    async def press(self, key: str) -> None:
        self.page.performed.append(("press", key, (), None))


class FakeMouse:
    def __init__(self, page: "FakePage") -> None:
        self.page = page

    async def wheel(self, delta_x: int, delta_y: int) -> None:
        self.page.performed.append(("wheel", (delta_x, delta_y), (), None))


class FakePage:
    """Records locator lookups; ``visible`` holds keys whose locators are visible."""

    def __init__(
        self,
        *,
        body: str = "",
        title: str = "",
        url: str = "https://example.com/",
        visible: Optional[Set[Tuple[Any, ...]]] = None,
        failing: Optional[Set[Tuple[Any, ...]]] = None,
        raising: Optional[Set[Tuple[Any, ...]]] = None,
    ) -> None:
        self.body = body
        self._title = title
        self.url = url
        self.visible = set(visible or ())
        self.failing = set(failing or ())
        self.raising = set(raising or ())
        self.calls: List[Tuple[str, Tuple[Any, ...], Dict[str, Any]]] = []
        self.performed: List[Tuple[Any, ...]] = []
        self.keyboard = FakeKeyboard(self)
        self.mouse = FakeMouse(self)

    def get_by_role(self, role: str, **kwargs: Any) -> FakeLocator:
        self.calls.append(("get_by_role", (role,), kwargs))
        return FakeLocator(self, ("role", role, kwargs.get("name")))

    def get_by_text(self, text: str) -> FakeLocator:
        self.calls.append(("get_by_text", (text,), {}))
        return FakeLocator(self, ("text", text))

    def get_by_label(self, text: str) -> FakeLocator:
        self.calls.append(("get_by_label", (text,), {}))
        return FakeLocator(self, ("label", text))

    def get_by_placeholder(self, text: str) -> FakeLocator:
        self.calls.append(("get_by_placeholder", (text,), {}))
        return FakeLocator(self, ("placeholder", text))

    def locator(self, selector: str) -> FakeLocator:
        self.calls.append(("locator", (selector,), {}))
        return FakeLocator(self, ("css", selector))

    async def title(self) -> str:
        return self._title

    async def text_content(self, selector: str) -> str:
        return self.body

    async def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[int] = None) -> None:
        self.performed.append(("goto", url, (wait_until,), timeout))
        self.url = url

    async def wait_for_timeout(self, milliseconds: int) -> None:
        self.performed.append(("wait", milliseconds, (), None))


class FakeSession:
    """``capture_errors`` maps a zero-based capture number to the exception it raises."""

    def __init__(self, page: Optional[FakePage] = None, capture_errors: Optional[Dict[int, Exception]] = None) -> None:
        self.page = page or FakePage()
        self.closed = False
        self.navigations: List[Tuple[str, int]] = []
        self.resets: List[Any] = []
        self.captures: List[bool] = []
        self.idle_waits = 0
        self.capture_errors = dict(capture_errors or {})

    async def reset(self, viewport) -> None:
        self.resets.append(viewport)

    async def navigate(self, url: str, timeout_ms: int) -> None:
        self.navigations.append((url, timeout_ms))
        self.page.url = url

    async def wait_for_idle(self, timeout_ms: int = 5000) -> None:
        self.idle_waits += 1

    async def capture_state(self, include_screenshot: bool = False) -> PageState:
        error = self.capture_errors.get(len(self.captures))
        self.captures.append(include_screenshot)
        if error is not None:
            raise error
        return PageState(
            url=self.page.url,
            title="Example",
            aria_snapshot='- heading "Example" [level=1]',
            screenshot_base64="c2hvdA==" if include_screenshot else "",
        )

    async def close(self) -> None:
        self.closed = True


class FakeInterpreter:
    """Returns queued interpretations (or raises queued exceptions); the last one repeats."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: List[Tuple[str, Optional[str], Optional[str]]] = []

    async def interpret_step(self, step, page_state, model=None, fallback_model=None):
        self.calls.append((step.action, model, fallback_model))
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


def interpretation(*actions, score: float = 8, critical: bool = False, thinking: str = "ok") -> AIStepInterpretation:
    issues = [UXIssue(severity="critical", category="error", description="Broken")] if critical else []
    return AIStepInterpretation(
        thinking=thinking,
        actions=list(actions),
        ux_analysis=UXAnalysis(score=score, issues=issues),
    )


def journey(*steps: str, url: str = "https://example.com", name: str = "Demo") -> JourneyDefinition:
    return JourneyDefinition(name=name, url=url, steps=[JourneyStep(action=step) for step in steps])


def quiet_options(**overrides: Any) -> RunOptions:
    options = RunOptions(delay=0, retries=1, interactive=False, timeout=1000)
    for key, value in overrides.items():
        setattr(options, key, value)
    return options
