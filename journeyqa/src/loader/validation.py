"""Field-level validation for journey and suite data submitted by the UI."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping


@dataclass(slots=True)
class FieldError:
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_journey_data(data: Mapping[str, Any]) -> List[FieldError]:
    errors: List[FieldError] = []
    if not _non_empty_str(data.get("name")):
        errors.append(FieldError("name", "Name is required."))
    if not _non_empty_str(data.get("url")):
        errors.append(FieldError("url", "URL is required."))

    steps = data.get("steps")
    if not isinstance(steps, list) or not steps:
        errors.append(FieldError("steps", "At least one step is required."))
    else:
        for index, step in enumerate(steps):
            action = step.get("action") if isinstance(step, dict) else step
            if not _non_empty_str(action):
                errors.append(
                    FieldError(f"steps[{index}].action", f"Step {index + 1} must have a non-empty action.")
                )
    return errors


def validate_suite_data(data: Mapping[str, Any]) -> List[FieldError]:
    errors: List[FieldError] = []
    if not _non_empty_str(data.get("name")):
        errors.append(FieldError("name", "Name is required."))

    journeys = data.get("journeys")
    if not isinstance(journeys, list) or not journeys:
        errors.append(FieldError("journeys", "At least one journey is required."))
    else:
        for index, ref in enumerate(journeys):
            path = ref.get("path") if isinstance(ref, dict) else ref
            if not _non_empty_str(path):
                errors.append(
                    FieldError(f"journeys[{index}].path", f"Journey {index + 1} must have a path selected.")
                )
    return errors
