"""Pydantic data structures shared across journeyqa components."""
from __future__ import annotations

import time
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_VIEWPORT_WIDTH = 1280
DEFAULT_VIEWPORT_HEIGHT = 720


class RunStatus(str, Enum):
    """Outcome of a step, journey or suite."""

    PASSED = "passed"
    FAILED = "failed"
    WARNING = "warning"


class Viewport(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = DEFAULT_VIEWPORT_WIDTH
    height: int = DEFAULT_VIEWPORT_HEIGHT

    def as_dict(self) -> Dict[str, int]:
        return {"width": self.width, "height": self.height}


class JourneyStep(BaseModel):
    """A single natural-language instruction inside a journey."""

    model_config = ConfigDict(frozen=True)

    action: str = Field(..., description="Natural-language instruction")
    description: Optional[str] = Field(default=None, description="Extra context for the AI")
    timeout: Optional[int] = Field(default=None, description="Per-step action timeout (ms)")
    wait_after: Optional[int] = Field(default=None, description="Settle time after the step (ms)")


class JourneyDefinition(BaseModel):
    """A named, ordered list of steps starting at a URL."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    url: str
    viewport: Optional[Viewport] = None
    variables: Dict[str, str] = Field(default_factory=dict)
    steps: List[JourneyStep] = Field(default_factory=list)


class ConsoleMessage(BaseModel):
    type: str
    text: str


class NetworkError(BaseModel):
    url: str
    status: int
    status_text: str = ""
    method: str = "GET"


class PageState(BaseModel):
    """Snapshot of what the browser showed at one moment."""

    url: str = ""
    title: str = ""
    aria_snapshot: str = ""
    screenshot_base64: str = Field(default="", description="JPEG, only for visual steps")
    console_messages: List[ConsoleMessage] = Field(default_factory=list)
    network_errors: List[NetworkError] = Field(default_factory=list)
    timestamp: float = Field(default_factory=time.time)

    @classmethod
    def empty(cls, url: str = "") -> "PageState":
        return cls(url=url)


# --- Browser actions -----------------------------------------------------------


class _ActionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str = ""


class ClickAction(_ActionBase):
    type: Literal["click"] = "click"
    selector: str = ""


class FillAction(_ActionBase):
    type: Literal["fill"] = "fill"
    selector: str = ""
    value: str = ""


class SelectAction(_ActionBase):
    type: Literal["select"] = "select"
    selector: str = ""
    value: str = ""


class PressKeyAction(_ActionBase):
    type: Literal["press_key"] = "press_key"
    key: str = ""


class NavigateAction(_ActionBase):
    type: Literal["navigate"] = "navigate"
    url: str = ""


class WaitAction(_ActionBase):
    type: Literal["wait"] = "wait"
    milliseconds: int = 1000


class ScrollAction(_ActionBase):
    type: Literal["scroll"] = "scroll"
    direction: Literal["up", "down"] = "down"
    amount: int = 500


class HoverAction(_ActionBase):
    type: Literal["hover"] = "hover"
    selector: str = ""


class AssertVisibleAction(_ActionBase):
    type: Literal["assert_visible"] = "assert_visible"
    text: str = ""


class AssertTextAction(_ActionBase):
    type: Literal["assert_text"] = "assert_text"
    text: str = ""


BrowserAction = Annotated[
    Union[
        ClickAction,
        FillAction,
        SelectAction,
        PressKeyAction,
        NavigateAction,
        WaitAction,
        ScrollAction,
        HoverAction,
        AssertVisibleAction,
        AssertTextAction,
    ],
    Field(discriminator="type"),
]


# --- AI interpretation ---------------------------------------------------------

Severity = Literal["critical", "warning", "info"]
IssueCategory = Literal["accessibility", "usability", "error", "performance", "visual"]


class UXIssue(BaseModel):
    severity: Severity = "info"
    category: IssueCategory = "usability"
    description: str = ""
    element: Optional[str] = None
    recommendation: Optional[str] = None


class UXAnalysis(BaseModel):
    score: float = Field(default=5, ge=0, le=10)
    issues: List[UXIssue] = Field(default_factory=list)
    positives: List[str] = Field(default_factory=list)

    @property
    def has_critical(self) -> bool:
        return any(issue.severity == "critical" for issue in self.issues)


class AIStepInterpretation(BaseModel):
    thinking: str = ""
    actions: List[BrowserAction] = Field(default_factory=list)
    ux_analysis: UXAnalysis = Field(default_factory=UXAnalysis)


# --- Results -------------------------------------------------------------------


class StepResult(BaseModel):
    step_index: int
    action: str
    status: RunStatus
    interpretation: AIStepInterpretation
    page_state_before: PageState
    page_state_after: PageState
    error: Optional[str] = None
    duration_ms: int = 0


class JourneySummary(BaseModel):
    total_steps: int = 0
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    ux_issues_found: int = 0
    overall_ux_score: float = 0


class JourneyResult(BaseModel):
    journey: JourneyDefinition
    started_at: str
    completed_at: str
    total_duration_ms: int
    status: RunStatus
    steps: List[StepResult] = Field(default_factory=list)
    summary: JourneySummary = Field(default_factory=JourneySummary)


class SuiteJourneyRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    variables: Dict[str, str] = Field(default_factory=dict)


class SuiteDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    variables: Dict[str, str] = Field(default_factory=dict)
    journeys: List[SuiteJourneyRef] = Field(default_factory=list)
    shared_session: bool = False


class SuiteSummary(BaseModel):
    total_journeys: int = 0
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    total_steps: int = 0
    overall_ux_score: float = 0


class SuiteResult(BaseModel):
    suite: SuiteDefinition
    started_at: str
    completed_at: str
    total_duration_ms: int
    status: RunStatus
    journey_results: List[JourneyResult] = Field(default_factory=list)
    summary: SuiteSummary = Field(default_factory=SuiteSummary)
