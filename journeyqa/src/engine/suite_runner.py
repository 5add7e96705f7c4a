"""Run the journeys of a suite in order, optionally sharing one browser."""
from __future__ import annotations

import time
from typing import List, Optional

from journeyqa.src.browser.session import BrowserSession
from journeyqa.src.engine.executor import JourneyExecutor
from journeyqa.src.loader.journey_loader import load_journey
from journeyqa.src.report.summary import build_suite_result, failed_journey_stub, now_iso
from journeyqa.src.utils.config import RunOptions
from journeyqa.src.utils.console import RunLogger
from journeyqa.src.utils.models import JourneyResult, SuiteDefinition, SuiteResult, Viewport
from journeyqa.src.utils.variables import resolve_variables


class SuiteRunner:
    """Composes journeys; a failing journey never stops the suite."""

    def __init__(
        self,
        options: RunOptions,
        executor: Optional[JourneyExecutor] = None,
        logger: Optional[RunLogger] = None,
    ) -> None:
        self.options = options
        self.logger = logger or RunLogger(options.verbose, options.log_callback)
        self.executor = executor or JourneyExecutor(options, logger=self.logger)

    async def _launch_shared(self) -> BrowserSession:
        return await BrowserSession.launch(
            headed=self.options.headed, viewport=Viewport(), logger=self.logger
        )

    async def execute(self, suite: SuiteDefinition) -> SuiteResult:
        started_at = now_iso()
        start_time = time.time()

        suite_vars = resolve_variables(suite.variables, self.options.variables)

        shared: Optional[BrowserSession] = None
        if suite.shared_session:
            shared = await self._launch_shared()

        results: List[JourneyResult] = []
        total = len(suite.journeys)
        try:
            for index, ref in enumerate(suite.journeys):
                self.logger.info(f"\n=== Journey {index + 1}/{total}: {ref.path} ===")
                merged = {**suite_vars, **ref.variables}
                try:
                    journey = load_journey(ref.path, self.options.base_url, merged)
                    self.logger.info(f"  Name: {journey.name} ({len(journey.steps)} steps)")
                    self.logger.info(f"  URL: {journey.url}")
                    result = await self.executor.execute(journey, shared)
                except Exception as exc:
                    self.logger.error(f"  Failed to load/run journey: {exc}")
                    results.append(failed_journey_stub(ref.path))
                    continue

                results.append(result)
                self.logger.info(
                    f"  Result: {result.status.value.upper()} "
                    f"({result.summary.passed}/{result.summary.total_steps} passed)"
                )
        finally:
            if shared is not None:
                await shared.close()

        return build_suite_result(suite, results, started_at, start_time)
