"""Utility exports for journeyqa."""
from journeyqa.src.utils.config import AppConfig, LLMConfig, RunOptions, load_config
from journeyqa.src.utils.models import (
    JourneyDefinition,
    JourneyResult,
    JourneyStep,
    RunStatus,
    SuiteDefinition,
    SuiteResult,
)

__all__ = [
    "AppConfig",
    "LLMConfig",
    "RunOptions",
    "load_config",
    "JourneyDefinition",
    "JourneyResult",
    "JourneyStep",
    "RunStatus",
    "SuiteDefinition",
    "SuiteResult",
]
