"""Self-contained HTML (and JSON) reports for journey and suite results."""
from __future__ import annotations

import json
import re
from datetime import datetime
from html import escape
from pathlib import Path
from typing import List, Optional

from journeyqa.src.utils.models import JourneyResult, PageState, StepResult, SuiteResult


REPORT_CSS = """
body { font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; background: #f5f5f5; color: #333; margin: 0; }
header { background: #1a1a2e; color: #fff; padding: 1.5rem 2rem; }
header h1 { margin: 0 0 .4rem; font-size: 1.4rem; }
header .meta { opacity: .75; font-size: .85rem; }
.summary { display: flex; gap: .75rem; flex-wrap: wrap; margin-top: 1rem; }
.stat { background: rgba(255,255,255,.1); border-radius: 8px; padding: .6rem 1rem; min-width: 90px; text-align: center; }
.stat .label { display: block; font-size: .7rem; text-transform: uppercase; opacity: .7; }
.stat .value { display: block; font-size: 1.4rem; font-weight: bold; }
main { max-width: 1200px; margin: 1.5rem auto; padding: 0 1rem; }
details.step { background: #fff; border-radius: 8px; margin-bottom: .75rem; box-shadow: 0 1px 3px rgba(0,0,0,.1); }
details.step > summary { padding: .9rem 1.2rem; cursor: pointer; display: flex; gap: .75rem; align-items: center; }
.step-body { padding: 0 1.2rem 1.2rem; }
.badge { padding: .2rem .7rem; border-radius: 999px; font-size: .7rem; font-weight: bold; text-transform: uppercase; }
.passed { color: #2e7d32; } .badge.passed { background: #e8f5e9; }
.failed { color: #c62828; } .badge.failed { background: #ffebee; }
.warning { color: #e65100; } .badge.warning { background: #fff3e0; }
.duration { color: #999; font-size: .8rem; margin-left: auto; }
.screenshots { display: grid; grid-template-columns: 1fr 1fr; gap: 1rem; }
.screenshots img { width: 100%; border: 1px solid #ddd; border-radius: 4px; }
.thinking { white-space: pre-wrap; background: #f9f9f9; padding: .7rem; border-radius: 4px; font-size: .85rem; }
.error-box { background: #ffebee; border: 1px solid #ef9a9a; color: #c62828; padding: .7rem; border-radius: 4px; font-size: .85rem; }
.ux-issue { border-left: 3px solid #2196f3; background: #fafafa; padding: .5rem .75rem; margin-bottom: .5rem; font-size: .85rem; }
.ux-issue.critical { border-color: #f44336; } .ux-issue.warning { border-color: #ff9800; }
.recommendation { font-style: italic; color: #555; }
table { width: 100%; border-collapse: collapse; background: #fff; }
th, td { text-align: left; padding: .6rem .8rem; border-bottom: 1px solid #eee; font-size: .9rem; }
footer { text-align: center; color: #999; font-size: .8rem; padding: 2rem; }
"""


def _safe_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_-]+", "_", name).strip("_").lower() or "journey"


def _timestamp() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def _stat(label: str, value: object, css: str = "") -> str:
    return (
        f'<div class="stat {css}"><span class="label">{escape(label)}</span>'
        f'<span class="value">{escape(str(value))}</span></div>'
    )


def _screenshot(title: str, state: PageState) -> str:
    if state.screenshot_base64:
        image = f'<img src="data:image/jpeg;base64,{state.screenshot_base64}" alt="{escape(title)}" />'
    else:
        image = "<p>No screenshot</p>"
    return f"<div><h4>{escape(title)}</h4>{image}</div>"


def render_step(step: StepResult) -> str:
    status = step.status.value
    interpretation = step.interpretation
    ux = interpretation.ux_analysis
    parts: List[str] = []

    if step.page_state_before.screenshot_base64 or step.page_state_after.screenshot_base64:
        parts.append(
            '<div class="screenshots">'
            + _screenshot("Before", step.page_state_before)
            + _screenshot("After", step.page_state_after)
            + "</div>"
        )
    parts.append(
        f'<h4>AI Reasoning</h4><p class="thinking">{escape(interpretation.thinking)}</p>'
    )
    if interpretation.actions:
        items = "".join(
            f"<li><code>{escape(action.type)}</code> - {escape(action.description)}</li>"
            for action in interpretation.actions
        )
        parts.append(f"<h4>Actions</h4><ol>{items}</ol>")
    if step.error:
        parts.append(f'<div class="error-box">{escape(step.error)}</div>')
    if ux.issues or ux.positives:
        issues = "".join(
            f'<div class="ux-issue {escape(issue.severity)}">'
            f"<strong>{escape(issue.severity)}</strong> <small>{escape(issue.category)}</small>"
            f"<p>{escape(issue.description)}</p>"
            + (f'<p class="recommendation">{escape(issue.recommendation)}</p>' if issue.recommendation else "")
            + "</div>"
            for issue in ux.issues
        )
        positives = ""
        if ux.positives:
            positives = "<h5>Positive Observations</h5><ul>" + "".join(
                f"<li>{escape(item)}</li>" for item in ux.positives
            ) + "</ul>"
        parts.append(f"<h4>UX Analysis (score {ux.score:g}/10)</h4>{issues}{positives}")

    return (
        f'<details class="step {status}">'
        f'<summary><strong>{step.step_index + 1}</strong>'
        f"<span>{escape(step.action)}</span>"
        f'<span class="badge {status}">{status}</span>'
        f'<span class="duration">{step.duration_ms}ms</span></summary>'
        f'<div class="step-body">{"".join(parts)}</div></details>'
    )


def _page(title: str, header: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n<html lang=\"en\"><head><meta charset=\"utf-8\" />"
        f"<title>{escape(title)}</title><style>{REPORT_CSS}</style></head>"
        f"<body><header>{header}</header><main>{body}</main>"
        "<footer>Generated by journeyqa</footer></body></html>"
    )


def render_journey_report(result: JourneyResult) -> str:
    journey = result.journey
    summary = result.summary
    header = (
        f"<h1>{escape(journey.name)}</h1>"
        + (f'<p class="meta">{escape(journey.description)}</p>' if journey.description else "")
        + f'<p class="meta">{escape(journey.url)} | {escape(result.started_at)} | '
        f"{result.total_duration_ms / 1000:.1f}s</p>"
        + '<div class="summary">'
        + _stat("Status", result.status.value, result.status.value)
        + _stat("Steps", summary.total_steps)
        + _stat("Passed", summary.passed, "passed")
        + _stat("Failed", summary.failed, "failed")
        + _stat("Warnings", summary.warnings, "warning")
        + _stat("UX Issues", summary.ux_issues_found)
        + _stat("UX Score", f"{summary.overall_ux_score:g}/10")
        + "</div>"
    )
    body = "".join(render_step(step) for step in result.steps) or "<p>No steps were executed.</p>"
    return _page(f"Journey Report: {journey.name}", header, body)


def render_suite_report(result: SuiteResult) -> str:
    suite = result.suite
    summary = result.summary
    header = (
        f"<h1>Suite: {escape(suite.name)}</h1>"
        + (f'<p class="meta">{escape(suite.description)}</p>' if suite.description else "")
        + '<div class="summary">'
        + _stat("Status", result.status.value, result.status.value)
        + _stat("Journeys", summary.total_journeys)
        + _stat("Passed", summary.passed, "passed")
        + _stat("Failed", summary.failed, "failed")
        + _stat("Warnings", summary.warnings, "warning")
        + _stat("Steps", summary.total_steps)
        + _stat("UX Score", f"{summary.overall_ux_score:g}/10")
        + "</div>"
    )
    rows = "".join(
        f"<tr><td>{escape(item.journey.name)}</td>"
        f'<td class="{item.status.value}">{item.status.value}</td>'
        f"<td>{item.summary.passed}/{item.summary.total_steps}</td>"
        f"<td>{item.summary.overall_ux_score:g}</td>"
        f"<td>{item.total_duration_ms / 1000:.1f}s</td></tr>"
        for item in result.journey_results
    )
    table = (
        "<table><thead><tr><th>Journey</th><th>Status</th><th>Steps passed</th>"
        f"<th>UX score</th><th>Duration</th></tr></thead><tbody>{rows}</tbody></table>"
    )
    return _page(f"Suite Report: {suite.name}", header, table)


def generate_report(result: JourneyResult, output_dir: str | Path) -> Path:
    """Write the journey report and return its path."""
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{_safe_name(result.journey.name)}_{_timestamp()}.html"
    path.write_text(render_journey_report(result), encoding="utf-8")
    return path


def generate_suite_report(result: SuiteResult, output_dir: str | Path) -> Path:
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"suite_{_safe_name(result.suite.name)}_{_timestamp()}.html"
    path.write_text(render_suite_report(result), encoding="utf-8")
    return path


def write_json_result(
    result: JourneyResult | SuiteResult, output_dir: str | Path, stem: Optional[str] = None
) -> Path:
    """Dump a result as JSON without embedded screenshots."""
    if stem is None:
        stem = result.journey.name if isinstance(result, JourneyResult) else f"suite_{result.suite.name}"
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    payload = result.model_dump(mode="json")
    _strip_screenshots(payload)
    path = directory / f"{_safe_name(stem)}_{_timestamp()}.json"
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def _strip_screenshots(node) -> None:
    if isinstance(node, dict):
        if "screenshot_base64" in node:
            node["screenshot_base64"] = ""
        for value in node.values():
            _strip_screenshots(value)
    elif isinstance(node, list):
        for item in node:
            _strip_screenshots(item)
