"""Parsing helpers for model tool-call payloads."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Tuple

from journeyqa.src.utils.models import (
    AssertVisibleAction,
    BrowserAction,
    ClickAction,
    FillAction,
    HoverAction,
    NavigateAction,
    PressKeyAction,
    ScrollAction,
    SelectAction,
    UXAnalysis,
    UXIssue,
)


UX_TOOL_NAME = "report_ux_issues"
SEVERITIES = {"critical", "warning", "info"}
CATEGORIES = {"accessibility", "usability", "error", "performance", "visual"}


def parse_arguments(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    text = str(raw or "").strip()
    if not text:
        return {}
    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None
    return parsed if isinstance(parsed, dict) else {}


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value).strip()
    return text or None


def _score(raw: Any) -> float:
    try:
        score = float(raw)
    except (TypeError, ValueError):
        return 5
    if score != score:  # NaN
        return 5
    return min(10.0, max(0.0, score))


def _issue(item: Any) -> Optional[UXIssue]:
    if isinstance(item, str):
        return UXIssue(description=item) if item.strip() else None
    if not isinstance(item, dict):
        return None
    severity = _text(item.get("severity")).lower()
    category = _text(item.get("category")).lower()
    return UXIssue(
        severity=severity if severity in SEVERITIES else "info",
        category=category if category in CATEGORIES else "usability",
        description=_text(item.get("description")),
        element=_optional_text(item.get("element")),
        recommendation=_optional_text(item.get("recommendation")),
    )


def _issues(raw: Any) -> List[UXIssue]:
    items: Any = raw
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        try:
            items = json.loads(text)
        except ValueError:
            return [UXIssue(severity="info", category="usability", description=text)]
        if isinstance(items, dict):
            items = [items]
        if not isinstance(items, list):
            return [UXIssue(severity="info", category="usability", description=text)]
    if not isinstance(items, list):
        return []
    parsed = (_issue(item) for item in items)
    return [issue for issue in parsed if issue is not None]


def _positives(raw: Any) -> List[str]:
    if isinstance(raw, list):
        values = [_text(item).strip() for item in raw]
    else:
        values = [part.strip() for part in _text(raw).split(",")]
    return [value for value in values if value]


def parse_ux_report(payload: Dict[str, Any]) -> UXAnalysis:
    """Build a UXAnalysis from ``report_ux_issues`` arguments.

    ``issues`` may be a list or a JSON string; unparseable text becomes one
    informational issue carrying the raw text.
    """
    return UXAnalysis(
        score=_score(payload.get("score", 5)),
        issues=_issues(payload.get("issues")),
        positives=_positives(payload.get("positives")),
    )


def action_from_tool_call(name: str, args: Dict[str, Any]) -> Optional[BrowserAction]:
    """Map one tool call onto a BrowserAction; unknown tools give ``None``."""
    description = _text(args.get("thinking"))
    if name == "click":
        return ClickAction(selector=_text(args.get("selector")), description=description)
    if name == "fill":
        return FillAction(
            selector=_text(args.get("selector")),
            value=_text(args.get("value")),
            description=description,
        )
    if name == "select_option":
        return SelectAction(
            selector=_text(args.get("selector")),
            value=_text(args.get("value")),
            description=description,
        )
    if name == "press_key":
        return PressKeyAction(key=_text(args.get("key")), description=description)
    if name == "navigate":
        return NavigateAction(url=_text(args.get("url")), description=description)
    if name == "scroll":
        direction = _text(args.get("direction")).lower()
        return ScrollAction(direction="up" if direction == "up" else "down", description=description)
    if name == "hover":
        return HoverAction(selector=_text(args.get("selector")), description=description)
    if name == "assert_visible":
        return AssertVisibleAction(text=_text(args.get("text")), description=description)
    return None


def interpret_tool_calls(
    calls: Iterable[Tuple[str, Dict[str, Any]]],
    fallback_text: str = "",
) -> Tuple[str, List[BrowserAction], UXAnalysis]:
    """Fold ``(name, arguments)`` pairs into thinking, actions and UX analysis.

    The last non-empty ``thinking`` wins; without any, ``fallback_text`` (the
    message's plain text content) is used.
    """
    thinking = ""
    actions: List[BrowserAction] = []
    ux = UXAnalysis()
    for name, args in calls:
        if name == UX_TOOL_NAME:
            ux = parse_ux_report(args)
            continue
        action = action_from_tool_call(name, args)
        if action is None:
            continue
        actions.append(action)
        if action.description.strip():
            thinking = action.description
    return thinking or fallback_text.strip(), actions, ux
