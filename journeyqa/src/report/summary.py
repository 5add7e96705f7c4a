"""Fold step and journey results into summaries."""
from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from journeyqa.src.utils.models import (
    JourneyDefinition,
    JourneyResult,
    JourneySummary,
    RunStatus,
    StepResult,
    SuiteDefinition,
    SuiteResult,
    SuiteSummary,
    UXAnalysis,
)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def elapsed_ms(start_time: float) -> int:
    return int((time.time() - start_time) * 1000)


def classify_step(error: Optional[str], ux_analysis: UXAnalysis) -> RunStatus:
    if error:
        return RunStatus.FAILED
    if ux_analysis.has_critical:
        return RunStatus.WARNING
    return RunStatus.PASSED


def worst_status(statuses: Iterable[RunStatus]) -> RunStatus:
    seen = set(statuses)
    if RunStatus.FAILED in seen:
        return RunStatus.FAILED
    if RunStatus.WARNING in seen:
        return RunStatus.WARNING
    return RunStatus.PASSED


def average_score(scores: Iterable[float]) -> float:
    """Mean of the non-zero scores, rounded half-up to one decimal."""
    rated = [score for score in scores if score > 0]
    if not rated:
        return 0
    return math.floor(sum(rated) / len(rated) * 10 + 0.5) / 10


def build_journey_result(
    journey: JourneyDefinition,
    steps: Sequence[StepResult],
    started_at: str,
    start_time: float,
) -> JourneyResult:
    statuses = [step.status for step in steps]
    summary = JourneySummary(
        total_steps=len(journey.steps),
        passed=statuses.count(RunStatus.PASSED),
        failed=statuses.count(RunStatus.FAILED),
        warnings=statuses.count(RunStatus.WARNING),
        ux_issues_found=sum(len(step.interpretation.ux_analysis.issues) for step in steps),
        overall_ux_score=average_score(step.interpretation.ux_analysis.score for step in steps),
    )
    return JourneyResult(
        journey=journey,
        started_at=started_at,
        completed_at=now_iso(),
        total_duration_ms=elapsed_ms(start_time),
        status=worst_status(statuses),
        steps=list(steps),
        summary=summary,
    )


def failed_journey_stub(name: str) -> JourneyResult:
    """Placeholder result for a journey that could not be loaded or run."""
    timestamp = now_iso()
    return JourneyResult(
        journey=JourneyDefinition(name=name, url="", steps=[]),
        started_at=timestamp,
        completed_at=timestamp,
        total_duration_ms=0,
        status=RunStatus.FAILED,
        steps=[],
        summary=JourneySummary(failed=1),
    )


def build_suite_result(
    suite: SuiteDefinition,
    journey_results: Sequence[JourneyResult],
    started_at: str,
    start_time: float,
) -> SuiteResult:
    statuses: List[RunStatus] = [result.status for result in journey_results]
    summary = SuiteSummary(
        total_journeys=len(suite.journeys),
        passed=statuses.count(RunStatus.PASSED),
        failed=statuses.count(RunStatus.FAILED),
        warnings=statuses.count(RunStatus.WARNING),
        total_steps=sum(result.summary.total_steps for result in journey_results),
        overall_ux_score=average_score(result.summary.overall_ux_score for result in journey_results),
    )
    return SuiteResult(
        suite=suite,
        started_at=started_at,
        completed_at=now_iso(),
        total_duration_ms=elapsed_ms(start_time),
        status=worst_status(statuses),
        journey_results=list(journey_results),
        summary=summary,
    )
