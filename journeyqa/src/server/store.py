"""File-backed storage for journey/suite YAML and report listings."""
from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml


_REPORT_TIMESTAMP = re.compile(r"_(\d{8}_\d{6})$")


class StoreError(ValueError):
    """Raised for invalid filenames or unreadable files."""


def sanitize_filename(name: str) -> str:
    """Strip path separators and traversal, and force a ``.yaml`` suffix."""
    clean = re.sub(r"[/\\]", "", name or "").replace("..", "").strip()
    if not clean.endswith(".yaml"):
        clean += ".yaml"
    if clean == ".yaml":
        raise StoreError("Invalid filename")
    return clean


def _non_empty_mapping(value: Any) -> Optional[Dict[str, Any]]:
    if isinstance(value, dict) and value:
        return {str(key): item for key, item in value.items()}
    return None


def _positive_int(value: Any) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def build_journey_document(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Shape submitted form data into journey YAML, using string shorthand for bare steps."""
    document: Dict[str, Any] = {"name": data.get("name")}
    if data.get("description"):
        document["description"] = data["description"]
    document["url"] = data.get("url")

    viewport = data.get("viewport")
    if isinstance(viewport, dict):
        width, height = _positive_int(viewport.get("width")), _positive_int(viewport.get("height"))
        if width and height:
            document["viewport"] = {"width": width, "height": height}
    variables = _non_empty_mapping(data.get("variables"))
    if variables:
        document["variables"] = variables

    steps: List[Any] = []
    for raw in data.get("steps") or []:
        step = raw if isinstance(raw, dict) else {"action": raw}
        entry: Dict[str, Any] = {"action": str(step.get("action") or "")}
        if step.get("description"):
            entry["description"] = str(step["description"])
        if _positive_int(step.get("timeout")):
            entry["timeout"] = _positive_int(step["timeout"])
        if _positive_int(step.get("waitAfter")):
            entry["waitAfter"] = _positive_int(step["waitAfter"])
        steps.append(entry["action"] if len(entry) == 1 else entry)
    document["steps"] = steps
    return document


def build_suite_document(data: Mapping[str, Any], journeys_prefix: str = "../journeys") -> Dict[str, Any]:
    """Shape submitted suite data; journey paths point into the journeys directory."""
    document: Dict[str, Any] = {"name": data.get("name")}
    if data.get("description"):
        document["description"] = data["description"]
    if data.get("sharedSession") is True:
        document["sharedSession"] = True
    variables = _non_empty_mapping(data.get("variables"))
    if variables:
        document["variables"] = variables

    journeys: List[Any] = []
    for raw in data.get("journeys") or []:
        ref = raw if isinstance(raw, dict) else {"path": raw}
        filename = re.sub(r"^.*[\\/]", "", str(ref.get("path") or ""))
        path = f"{journeys_prefix}/{filename}"
        ref_vars = _non_empty_mapping(ref.get("variables"))
        journeys.append({"path": path, "variables": ref_vars} if ref_vars else path)
    document["journeys"] = journeys
    return document


class YamlStore:
    """A directory of YAML documents addressed by sanitised filename."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, filename: str) -> Path:
        return self.root / sanitize_filename(filename)

    def list_files(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(path.name for path in self.root.glob("*.yaml"))

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).is_file()

    def read(self, filename: str) -> Dict[str, Any]:
        path = self.path_for(filename)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise StoreError(f"Cannot read {path.name}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"{path.name} is not a YAML mapping")
        return data

    def write(self, filename: str, document: Mapping[str, Any]) -> str:
        path = self.path_for(filename)
        self.root.mkdir(parents=True, exist_ok=True)
        path.write_text(
            yaml.safe_dump(dict(document), sort_keys=False, allow_unicode=True, width=120),
            encoding="utf-8",
        )
        return path.name

    def delete(self, filename: str) -> None:
        self.path_for(filename).unlink()


def list_reports(reports_dir: str | Path) -> List[Dict[str, Any]]:
    """Describe the HTML reports in ``reports_dir``, newest first."""
    root = Path(reports_dir)
    if not root.is_dir():
        return []
    reports = []
    for path in root.glob("*.html"):
        stem = path.stem
        is_suite = stem.startswith("suite_")
        match = _REPORT_TIMESTAMP.search(stem)
        if match:
            timestamp = datetime.strptime(match.group(1), "%Y%m%d_%H%M%S").isoformat()
            stem = stem[: match.start()]
        else:
            timestamp = datetime.fromtimestamp(path.stat().st_mtime).isoformat()
        if is_suite:
            stem = stem[len("suite_"):]
        reports.append(
            {
                "filename": path.name,
                "name": stem.replace("_", " "),
                "type": "suite" if is_suite else "journey",
                "timestamp": timestamp,
                "size_kb": round(path.stat().st_size / 1024),
            }
        )
    return sorted(reports, key=lambda item: item["timestamp"], reverse=True)
