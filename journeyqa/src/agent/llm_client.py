"""
LLM client that turns one journey step into concrete browser actions.
Uses OpenAI tool calling over the page's accessibility tree (and a
screenshot for visual checks).
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import openai

from journeyqa.src.agent.parsing import interpret_tool_calls, parse_arguments
from journeyqa.src.agent.retry import with_retry
from journeyqa.src.utils.config import LLMConfig
from journeyqa.src.utils.console import RunLogger
from journeyqa.src.utils.models import AIStepInterpretation, JourneyStep, PageState


MAX_ARIA_LINES = 150
MAX_CONSOLE_MESSAGES = 10
MAX_NETWORK_ERRORS = 5

VISUAL_STEP = re.compile(
    r"\b(verify|check|confirm|ensure|assert|look|visual|layout|screenshot)\b", re.IGNORECASE
)

SYSTEM_PROMPT = """You are a browser test automation agent. You receive a page's accessibility tree and a natural language instruction, and you execute the instruction by calling tools.

Selector formats, most preferred first:
- role=button[name="Submit"]  (roles and names from the accessibility tree)
- label=Email  (labelled form fields)
- placeholder=Search  (inputs with placeholder text)
- text=Click here  (visible text)
- css=#my-id  (CSS, last resort)

Rules:
- Call exactly one action tool for the step.
- For verification steps (verify, check, confirm, ensure) use assert_visible.
- Also call report_ux_issues with any UX or accessibility problems you notice."""


def _tool(name: str, description: str, properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {"type": "object", "properties": properties, "required": required},
        },
    }


def _thinking(description: str = "Why you chose this action") -> Dict[str, str]:
    return {"type": "string", "description": description}


TOOLS: List[Dict[str, Any]] = [
    _tool(
        "click",
        "Click an element on the page",
        {
            "selector": {"type": "string", "description": 'Element selector, e.g. role=button[name="Submit"]'},
            "thinking": _thinking("Why you chose this action and selector"),
        },
        ["selector", "thinking"],
    ),
    _tool(
        "fill",
        "Type text into an input field",
        {
            "selector": {"type": "string", "description": 'Input selector, e.g. role=searchbox[name="Search"]'},
            "value": {"type": "string", "description": "Text to type into the field"},
            "thinking": _thinking("Why you chose this action and selector"),
        },
        ["selector", "value", "thinking"],
    ),
    _tool(
        "select_option",
        "Select an option from a dropdown",
        {
            "selector": {"type": "string", "description": "Dropdown selector"},
            "value": {"type": "string", "description": "Option value to select"},
            "thinking": _thinking(),
        },
        ["selector", "value", "thinking"],
    ),
    _tool(
        "press_key",
        "Press a keyboard key (Enter, Tab, Escape, ...)",
        {
            "key": {"type": "string", "description": "Key to press, e.g. Enter"},
            "thinking": _thinking(),
        },
        ["key", "thinking"],
    ),
    _tool(
        "navigate",
        "Navigate to a URL",
        {
            "url": {"type": "string", "description": "Absolute http(s) URL"},
            "thinking": _thinking(),
        },
        ["url", "thinking"],
    ),
    _tool(
        "scroll",
        "Scroll the page up or down",
        {
            "direction": {"type": "string", "enum": ["up", "down"], "description": "Scroll direction"},
            "thinking": _thinking(),
        },
        ["direction", "thinking"],
    ),
    _tool(
        "hover",
        "Hover over an element",
        {
            "selector": {"type": "string", "description": "Element selector to hover over"},
            "thinking": _thinking(),
        },
        ["selector", "thinking"],
    ),
    _tool(
        "assert_visible",
        "Verify that text or an element is visible on the page. Use for verification steps.",
        {
            "text": {"type": "string", "description": "Text that should be visible on the page"},
            "thinking": _thinking("Your assessment of whether the condition is met"),
        },
        ["text", "thinking"],
    ),
    _tool(
        "report_ux_issues",
        "Report UX, accessibility or usability issues found on the current page",
        {
            "score": {"type": "number", "description": "UX quality score from 1-10"},
            "issues": {
                "type": "string",
                "description": (
                    "JSON array of issues, each with severity (critical/warning/info), category "
                    "(accessibility/usability/error/performance/visual), description and recommendation"
                ),
            },
            "positives": {"type": "string", "description": "Comma-separated good UX patterns observed"},
        },
        ["score", "issues", "positives"],
    ),
]


def truncate_aria_snapshot(snapshot: str, max_lines: int = MAX_ARIA_LINES) -> str:
    lines = snapshot.split("\n")
    if len(lines) <= max_lines:
        return snapshot
    hidden = len(lines) - max_lines
    return "\n".join(lines[:max_lines]) + f"\n... (truncated, {hidden} more lines)"


def is_visual_step(step: JourneyStep) -> bool:
    """Steps that verify what the page looks like get a screenshot."""
    return bool(VISUAL_STEP.search(step.action))


def build_prompt_text(step: JourneyStep, page_state: PageState) -> str:
    console = page_state.console_messages[-MAX_CONSOLE_MESSAGES:]
    network = page_state.network_errors[-MAX_NETWORK_ERRORS:]
    console_text = "\n".join(f"[{m.type}] {m.text}" for m in console) if console else "None"
    network_text = (
        "\n".join(f"{e.method} {e.url} -> {e.status} {e.status_text}" for e in network)
        if network
        else "None"
    )
    step_text = step.action + (f" ({step.description})" if step.description else "")

    return f"""Page URL: {page_state.url}
Page Title: {page_state.title}

Accessibility Tree:
```
{truncate_aria_snapshot(page_state.aria_snapshot)}
```

Console: {console_text}
Network Errors: {network_text}

STEP: {step_text}

Call the appropriate action tool for this step. Also call report_ux_issues."""


class LLMActionClient:
    """Client for step interpretation via OpenAI chat completions."""

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        client: Any = None,
        logger: Optional[RunLogger] = None,
        sleep=None,
    ) -> None:
        self.config = config or LLMConfig()
        self._client = client
        self.logger = logger or RunLogger()
        self._sleep = sleep

    @property
    def client(self):
        if self._client is None:
            # Retries are handled by with_retry.
            self._client = openai.AsyncOpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                timeout=self.config.request_timeout,
                max_retries=0,
            )
        return self._client

    def build_messages(self, step: JourneyStep, page_state: PageState) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = []
        if is_visual_step(step) and page_state.screenshot_base64:
            content.append(
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:image/jpeg;base64,{page_state.screenshot_base64}"},
                }
            )
        content.append({"type": "text", "text": build_prompt_text(step, page_state)})
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": content},
        ]

    async def _request(self, model: str, messages: List[Dict[str, Any]]) -> AIStepInterpretation:
        response = await self.client.chat.completions.create(
            model=model,
            messages=messages,
            tools=TOOLS,
            tool_choice="required",
            max_completion_tokens=self.config.max_completion_tokens,
        )
        message = response.choices[0].message
        calls = []
        for call in message.tool_calls or []:
            name = call.function.name
            args = parse_arguments(call.function.arguments)
            self.logger.debug(f"Tool: {name} -> {str(args)[:200]}")
            calls.append((name, args))
        self.logger.debug(f"Model returned {len(calls)} tool call(s): {', '.join(n for n, _ in calls)}")

        thinking, actions, ux = interpret_tool_calls(calls, fallback_text=message.content or "")
        return AIStepInterpretation(thinking=thinking, actions=actions, ux_analysis=ux)

    async def _request_with_retry(self, model: str, messages: List[Dict[str, Any]]) -> AIStepInterpretation:
        kwargs: Dict[str, Any] = {"logger": self.logger}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        return await with_retry(
            lambda: self._request(model, messages),
            self.config.max_retries,
            self.config.base_delay_ms,
            **kwargs,
        )

    async def interpret_step(
        self,
        step: JourneyStep,
        page_state: PageState,
        model: Optional[str] = None,
        fallback_model: Optional[str] = None,
    ) -> AIStepInterpretation:
        """Ask the model which actions satisfy ``step`` on the current page.

        If the primary model still fails after its retries and a different
        fallback model is configured, the request is retried on the fallback.
        """
        model = model or self.config.model
        fallback_model = fallback_model or self.config.fallback_model
        messages = self.build_messages(step, page_state)
        self.logger.debug(
            f'Sending step to {model}: "{step.action}" (screenshot: {len(messages[1]["content"]) > 1})'
        )
        try:
            return await self._request_with_retry(model, messages)
        except Exception as exc:
            if not fallback_model or fallback_model == model:
                raise
            self.logger.info(f"  Model {model} failed ({str(exc)[:80]}), falling back to {fallback_model}")
            return await self._request_with_retry(fallback_model, messages)
