"""Journey step executor: interpret, act, capture and classify each step."""
from __future__ import annotations

import asyncio
import re
import sys
import time
from typing import Awaitable, Callable, List, Optional

from journeyqa.src.agent.llm_client import LLMActionClient, is_visual_step
from journeyqa.src.browser.actions import ActionError, apply_action
from journeyqa.src.browser.session import BrowserSession
from journeyqa.src.report.summary import build_journey_result, classify_step, now_iso
from journeyqa.src.utils.config import LLMConfig, RunOptions
from journeyqa.src.utils.console import RunLogger
from journeyqa.src.utils.models import (
    AIStepInterpretation,
    JourneyDefinition,
    JourneyResult,
    JourneyStep,
    PageState,
    RunStatus,
    StepResult,
    UXAnalysis,
    Viewport,
)
from journeyqa.src.utils.urls import validate_navigation_url


SETTLE_TIMEOUT_MS = 5000
DEFAULT_PAUSE_MESSAGE = "Paused. Press Enter to continue..."

_PAUSE_BARE = re.compile(r"^pause$", re.IGNORECASE)
_PAUSE_QUOTED = re.compile(r"""^pause\s+["'](.+)["']$""", re.IGNORECASE)
_PAUSE_TEXT = re.compile(r"^pause\s+(.+)$", re.IGNORECASE)

SessionFactory = Callable[[bool, Viewport, RunLogger], Awaitable[BrowserSession]]


def parse_pause_step(action: str) -> Optional[str]:
    """Return the pause message for a pause step, ``None`` for anything else."""
    text = action.strip()
    if _PAUSE_BARE.match(text):
        return DEFAULT_PAUSE_MESSAGE
    match = _PAUSE_QUOTED.match(text) or _PAUSE_TEXT.match(text)
    if match:
        return match.group(1)
    return None


async def _launch_session(headed: bool, viewport: Viewport, logger: RunLogger) -> BrowserSession:
    return await BrowserSession.launch(headed=headed, viewport=viewport, logger=logger)


class JourneyExecutor:
    """Runs one journey step by step against a browser session."""

    def __init__(
        self,
        options: RunOptions,
        interpreter: Optional[LLMActionClient] = None,
        logger: Optional[RunLogger] = None,
        session_factory: SessionFactory = _launch_session,
    ) -> None:
        self.options = options
        self.logger = logger or RunLogger(options.verbose, options.log_callback)
        self.interpreter = interpreter or LLMActionClient(
            LLMConfig(model=options.model, fallback_model=options.fallback_model),
            logger=self.logger,
        )
        self._session_factory = session_factory

    @property
    def interactive(self) -> bool:
        if self.options.interactive is not None:
            return self.options.interactive
        return sys.stdin.isatty()

    async def execute(
        self,
        journey: JourneyDefinition,
        shared_session: Optional[BrowserSession] = None,
    ) -> JourneyResult:
        started_at = now_iso()
        start_time = time.time()
        viewport = journey.viewport or Viewport()

        url = validate_navigation_url(journey.url)

        if shared_session is not None:
            session = shared_session
            await session.reset(viewport)
        else:
            session = await self._session_factory(self.options.headed, viewport, self.logger)

        try:
            self.logger.info(f"  Navigating to {url}")
            await session.navigate(url, self.options.timeout)
            results = await self._run_steps(journey, session)
        finally:
            if shared_session is None:
                await session.close()

        return build_journey_result(journey, results, started_at, start_time)

    async def _run_steps(self, journey: JourneyDefinition, session: BrowserSession) -> List[StepResult]:
        results: List[StepResult] = []
        total = len(journey.steps)
        for index, step in enumerate(journey.steps):
            self.logger.step(index + 1, total, step.action)

            pause_message = parse_pause_step(step.action)
            if pause_message is not None:
                result = await self._run_pause(index, step, pause_message, session)
            else:
                result = await self._run_step(index, step, session)
            results.append(result)

            if result.status == RunStatus.FAILED:
                self.logger.info("\n  Journey stopped due to step failure.")
                break

            if pause_message is None and self.options.delay > 0 and index < total - 1:
                self.logger.info(f"  Waiting {self.options.delay}s before next step...")
                await asyncio.sleep(self.options.delay)
        return results

    async def _run_pause(
        self, index: int, step: JourneyStep, message: str, session: BrowserSession
    ) -> StepResult:
        step_start = time.time()
        try:
            before = await session.capture_state()
            if self.interactive:
                await asyncio.to_thread(input, f"\n  PAUSE: {message}\n  Press Enter to continue...")
            else:
                self.logger.info(f"  PAUSE (auto-skipped, no TTY): {message}")
            after = await session.capture_state()
        except Exception as exc:
            error = str(exc) or exc.__class__.__name__
            self.logger.status(RunStatus.FAILED, error)
            return self._synthetic_failure(index, step, session, error, step_start)
        self.logger.status(RunStatus.PASSED, "Manual step completed")
        return StepResult(
            step_index=index,
            action=step.action,
            status=RunStatus.PASSED,
            interpretation=AIStepInterpretation(
                thinking="Manual pause step", actions=[], ux_analysis=UXAnalysis(score=0)
            ),
            page_state_before=before,
            page_state_after=after,
            duration_ms=0,
        )

    async def _run_step(self, index: int, step: JourneyStep, session: BrowserSession) -> StepResult:
        attempts = max(1, self.options.retries)
        visual = is_visual_step(step)
        result: StepResult

        for attempt in range(attempts):
            if attempt > 0:
                self.logger.info(f"  Retry {attempt}/{attempts - 1}...")
            step_start = time.time()

            try:
                before = await session.capture_state(include_screenshot=visual)
                self.logger.debug(f"Captured page state: {before.url}")
                self.logger.info("  Analyzing page and interpreting step...")
                interpretation = await self.interpreter.interpret_step(
                    step, before, model=self.options.model, fallback_model=self.options.fallback_model
                )
                self.logger.debug(f"Model returned {len(interpretation.actions)} action(s)")

                error = await self._apply_actions(step, interpretation, session)
                after = await session.capture_state(include_screenshot=visual)
            except Exception as exc:
                # AI or capture failure: the client has already retried.
                message = str(exc) or exc.__class__.__name__
                self.logger.status(RunStatus.FAILED, message)
                result = self._synthetic_failure(index, step, session, message, step_start)
                break

            ux = interpretation.ux_analysis
            result = StepResult(
                step_index=index,
                action=step.action,
                status=classify_step(error, ux),
                interpretation=interpretation,
                page_state_before=before,
                page_state_after=after,
                error=error,
                duration_ms=int((time.time() - step_start) * 1000),
            )

            if result.status == RunStatus.FAILED:
                self.logger.status(RunStatus.FAILED, error)
                continue

            self.logger.status(result.status, f"{result.duration_ms}ms")
            if ux.issues:
                self.logger.info(f"  UX issues: {len(ux.issues)} (score: {ux.score:g}/10)")
            break

        return result

    async def _apply_actions(
        self, step: JourneyStep, interpretation: AIStepInterpretation, session: BrowserSession
    ) -> Optional[str]:
        """Run the actions in order; return the first action error message."""
        timeout = step.timeout or self.options.timeout
        try:
            for action in interpretation.actions:
                self.logger.info(f"  -> {action.type}: {action.description}")
                await apply_action(session.page, action, timeout, self.logger)
        except ActionError as exc:
            await session.wait_for_idle(SETTLE_TIMEOUT_MS)
            return str(exc)

        await session.wait_for_idle(SETTLE_TIMEOUT_MS)
        if step.wait_after:
            await asyncio.sleep(step.wait_after / 1000)
        return None

    def _synthetic_failure(
        self,
        index: int,
        step: JourneyStep,
        session: BrowserSession,
        message: str,
        step_start: float,
    ) -> StepResult:
        empty = PageState.empty(getattr(session.page, "url", "") or "")
        return StepResult(
            step_index=index,
            action=step.action,
            status=RunStatus.FAILED,
            interpretation=AIStepInterpretation(
                thinking=f"Error during step execution: {message}",
                actions=[],
                ux_analysis=UXAnalysis(score=0),
            ),
            page_state_before=empty,
            page_state_after=empty.model_copy(),
            error=message,
            duration_ms=int((time.time() - step_start) * 1000),
        )


async def execute_journey(
    journey: JourneyDefinition,
    options: RunOptions,
    shared_session: Optional[BrowserSession] = None,
) -> JourneyResult:
    return await JourneyExecutor(options).execute(journey, shared_session)
