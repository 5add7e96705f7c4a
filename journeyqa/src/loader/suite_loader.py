"""Load suite YAML files."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, List

from journeyqa.src.loader.journey_loader import coerce_variables, read_yaml_mapping
from journeyqa.src.utils.models import SuiteDefinition, SuiteJourneyRef


class SuiteLoadError(ValueError):
    """Raised when a suite file is missing or malformed."""


def _resolve_entry_path(index: int, suite_dir: Path, raw_path: str) -> str:
    resolved = os.path.abspath(suite_dir / raw_path)
    if not resolved.endswith(".yaml"):
        raise SuiteLoadError(f"Journey {index}: path must end with .yaml")
    return resolved


def _parse_entry(index: int, suite_dir: Path, entry: Any) -> SuiteJourneyRef:
    if isinstance(entry, str):
        return SuiteJourneyRef(path=_resolve_entry_path(index, suite_dir, entry))
    if isinstance(entry, dict) and "path" in entry:
        if not isinstance(entry["path"], str):
            raise SuiteLoadError(f'Journey {index}: "path" must be a string')
        return SuiteJourneyRef(
            path=_resolve_entry_path(index, suite_dir, entry["path"]),
            variables=coerce_variables(entry.get("variables")),
        )
    raise SuiteLoadError(f'Journey {index}: must be a string path or object with "path" field')


def load_suite(path: str | Path) -> SuiteDefinition:
    """Read a suite file; journey paths are resolved against its directory."""
    suite_path = Path(path)
    data = read_yaml_mapping(suite_path, "suite", SuiteLoadError)

    name = data.get("name")
    if not name or not isinstance(name, str):
        raise SuiteLoadError('Suite must have a "name" field (string)')
    entries = data.get("journeys")
    if not isinstance(entries, list) or not entries:
        raise SuiteLoadError('Suite must have a non-empty "journeys" array')

    suite_dir = Path(os.path.abspath(suite_path)).parent
    journeys: List[SuiteJourneyRef] = [
        _parse_entry(i + 1, suite_dir, entry) for i, entry in enumerate(entries)
    ]
    description = data.get("description")
    return SuiteDefinition(
        name=name,
        description=description if isinstance(description, str) else None,
        variables=coerce_variables(data.get("variables")),
        journeys=journeys,
        shared_session=data.get("sharedSession") is True,
    )
