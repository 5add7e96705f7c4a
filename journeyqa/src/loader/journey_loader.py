"""Load journey YAML files into JourneyDefinition objects."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from journeyqa.src.utils.models import JourneyDefinition, JourneyStep, Viewport
from journeyqa.src.utils.variables import resolve_variables, substitute_variables


class JourneyLoadError(ValueError):
    """Raised when a journey file is missing or malformed."""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def read_yaml_mapping(path: Path, kind: str, error_cls: type[ValueError]) -> Dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise error_cls(f"{kind.capitalize()} file not found: {path}") from exc
    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise error_cls(f"Invalid {kind} file: {path} - {exc}") from exc
    if not isinstance(parsed, dict):
        raise error_cls(f"Invalid {kind} file: {path} - must be a YAML object")
    return parsed


def coerce_variables(raw: Any) -> Dict[str, str]:
    if not isinstance(raw, dict):
        return {}
    return {str(key): "" if value is None else str(value) for key, value in raw.items()}


def _parse_step(index: int, raw: Any) -> Dict[str, Any]:
    if isinstance(raw, str):
        return {"action": raw}
    if isinstance(raw, dict) and "action" in raw:
        if not isinstance(raw["action"], str):
            raise JourneyLoadError(f'Step {index}: "action" must be a string')
        step: Dict[str, Any] = {"action": raw["action"]}
        if isinstance(raw.get("description"), str):
            step["description"] = raw["description"]
        if _is_number(raw.get("timeout")):
            step["timeout"] = int(raw["timeout"])
        if _is_number(raw.get("waitAfter")):
            step["wait_after"] = int(raw["waitAfter"])
        return step
    raise JourneyLoadError(f'Step {index}: must be a string or object with "action" field')


def parse_journey(
    data: Mapping[str, Any],
    base_url_override: Optional[str] = None,
    variables: Optional[Mapping[str, str]] = None,
) -> JourneyDefinition:
    """Validate raw journey data and apply URL override and variables."""
    name = data.get("name")
    if not name or not isinstance(name, str):
        raise JourneyLoadError('Journey must have a "name" field (string)')
    url = data.get("url")
    if not url or not isinstance(url, str):
        raise JourneyLoadError('Journey must have a "url" field (string)')
    raw_steps = data.get("steps")
    if not isinstance(raw_steps, list) or not raw_steps:
        raise JourneyLoadError('Journey must have a non-empty "steps" array')

    steps: List[Dict[str, Any]] = [_parse_step(i + 1, raw) for i, raw in enumerate(raw_steps)]
    declared = coerce_variables(data.get("variables"))
    resolved = resolve_variables(declared, variables)

    url = substitute_variables(base_url_override or url, resolved)
    for step in steps:
        step["action"] = substitute_variables(step["action"], resolved)
        if step.get("description"):
            step["description"] = substitute_variables(step["description"], resolved)

    viewport = None
    raw_viewport = data.get("viewport")
    if isinstance(raw_viewport, dict):
        width, height = raw_viewport.get("width"), raw_viewport.get("height")
        if _is_number(width) and _is_number(height):
            viewport = Viewport(width=int(width), height=int(height))

    description = data.get("description")
    return JourneyDefinition(
        name=name,
        description=description if isinstance(description, str) else None,
        url=url,
        viewport=viewport,
        variables=declared,
        steps=[JourneyStep(**step) for step in steps],
    )


def load_journey(
    path: str | Path,
    base_url_override: Optional[str] = None,
    variables: Optional[Mapping[str, str]] = None,
) -> JourneyDefinition:
    """Read ``path`` and return its immutable JourneyDefinition.

    ``variables`` override the journey's own ``variables`` block. Placeholders
    in the URL and in step actions and descriptions are substituted.
    """
    data = read_yaml_mapping(Path(path), "journey", JourneyLoadError)
    return parse_journey(data, base_url_override=base_url_override, variables=variables)
