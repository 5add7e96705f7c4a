"""Configuration helpers for journeyqa runs."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml


CONFIG_FILENAME = ".journeytester.yaml"
DEFAULT_MODEL = "gpt-5-mini"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(slots=True)
class LLMConfig:
    """Settings for the action-interpretation model."""

    api_key: Optional[str] = field(default_factory=lambda: os.getenv("OPENAI_API_KEY"))
    base_url: Optional[str] = field(default_factory=lambda: os.getenv("OPENAI_BASE_URL"))
    model: str = field(default_factory=lambda: os.getenv("JOURNEYQA_MODEL", DEFAULT_MODEL))
    fallback_model: Optional[str] = field(default_factory=lambda: os.getenv("JOURNEYQA_FALLBACK_MODEL"))
    request_timeout: float = 60.0
    max_completion_tokens: int = field(
        default_factory=lambda: _env_int("JOURNEYQA_MAX_COMPLETION_TOKENS", 2048)
    )
    max_retries: int = 5
    base_delay_ms: int = 2000


@dataclass(slots=True)
class AppConfig:
    """Aggregated configuration, merged from defaults and the project YAML file."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    delay: float = 10
    timeout: int = 30000
    retries: int = 1
    output_dir: str = "./reports"
    headed: bool = False
    journeys_dir: str = "./journeys"
    suites_dir: str = "./suites"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}


def load_config(path: str | Path | None = None) -> AppConfig:
    """Build an AppConfig from defaults plus ``.journeytester.yaml``.

    Keys with the wrong type are ignored, as is a file that cannot be parsed.
    """
    config = AppConfig()
    config_path = Path(path) if path is not None else Path.cwd() / CONFIG_FILENAME
    if not config_path.is_file():
        return config

    data = _read_config_file(config_path)

    if isinstance(data.get("model"), str) and data["model"].strip():
        config.llm.model = data["model"].strip()
    if isinstance(data.get("fallbackModel"), str) and data["fallbackModel"].strip():
        config.llm.fallback_model = data["fallbackModel"].strip()
    if _is_number(data.get("delay")):
        config.delay = data["delay"]
    if _is_number(data.get("timeout")):
        config.timeout = int(data["timeout"])
    if _is_number(data.get("retries")):
        config.retries = int(data["retries"])
    if isinstance(data.get("outputDir"), str):
        config.output_dir = data["outputDir"]
    if isinstance(data.get("headed"), bool):
        config.headed = data["headed"]
    if isinstance(data.get("journeysDir"), str):
        config.journeys_dir = data["journeysDir"]
    if isinstance(data.get("suitesDir"), str):
        config.suites_dir = data["suitesDir"]
    return config


@dataclass(slots=True)
class RunOptions:
    """Per-run context handed to the executor, suite runner and AI client."""

    headed: bool = False
    model: str = DEFAULT_MODEL
    fallback_model: Optional[str] = None
    delay: float = 10
    output: str = "./reports"
    timeout: int = 30000
    verbose: bool = False
    base_url: Optional[str] = None
    retries: int = 1
    variables: Dict[str, str] = field(default_factory=dict)
    interactive: Optional[bool] = None
    log_callback: Optional[Callable[[str], None]] = None

    @classmethod
    def from_config(cls, config: AppConfig, **overrides: Any) -> "RunOptions":
        """Seed options from config; ``None`` overrides keep the config value."""
        options = cls(
            headed=config.headed,
            model=config.llm.model,
            fallback_model=config.llm.fallback_model,
            delay=config.delay,
            output=config.output_dir,
            timeout=config.timeout,
            retries=config.retries,
        )
        for key, value in overrides.items():
            if value is None:
                continue
            if not hasattr(options, key):
                raise TypeError(f"Unknown run option: {key}")
            setattr(options, key, value)
        return options
