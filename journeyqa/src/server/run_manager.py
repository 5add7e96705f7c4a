"""Background run tracking for the HTTP API. One run at a time per process."""
from __future__ import annotations

import asyncio
import secrets
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Union

from journeyqa.src.engine.executor import JourneyExecutor
from journeyqa.src.engine.suite_runner import SuiteRunner
from journeyqa.src.loader.journey_loader import load_journey
from journeyqa.src.loader.suite_loader import load_suite
from journeyqa.src.report.html_report import generate_report, generate_suite_report
from journeyqa.src.utils.config import AppConfig, RunOptions
from journeyqa.src.utils.models import JourneyResult, SuiteResult


MAX_JOBS = 50
LOG_LIMIT = 1000

RunResult = Union[JourneyResult, SuiteResult]
Runner = Callable[[Path, RunOptions], Awaitable[RunResult]]


class JobStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True)
class RunJob:
    id: str
    type: str
    filename: str
    status: JobStatus = JobStatus.RUNNING
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    completed_at: Optional[str] = None
    error: Optional[str] = None
    report_url: Optional[str] = None
    summary: Optional[Dict[str, Any]] = None
    logs: Deque[str] = field(default_factory=lambda: deque(maxlen=LOG_LIMIT))
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "filename": self.filename,
            "status": self.status.value,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "error": self.error,
            "report_url": self.report_url,
            "summary": self.summary,
            "logs": list(self.logs),
        }


class RunInProgressError(RuntimeError):
    def __init__(self, active: RunJob) -> None:
        super().__init__(f"A run is already active: {active.id}")
        self.active = active


async def run_journey_file(path: Path, options: RunOptions) -> JourneyResult:
    journey = load_journey(path, options.base_url, options.variables)
    return await JourneyExecutor(options).execute(journey)


async def run_suite_file(path: Path, options: RunOptions) -> SuiteResult:
    suite = load_suite(path)
    return await SuiteRunner(options).execute(suite)


def _new_run_id() -> str:
    return f"run_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


class RunManager:
    """Starts journey/suite runs as asyncio tasks and keeps their job records."""

    def __init__(
        self,
        config: AppConfig,
        journey_runner: Runner = run_journey_file,
        suite_runner: Runner = run_suite_file,
        max_jobs: int = MAX_JOBS,
    ) -> None:
        self.config = config
        self.reports_dir = Path(config.output_dir).resolve()
        self._runners: Dict[str, Runner] = {"journey": journey_runner, "suite": suite_runner}
        self._jobs: Dict[str, RunJob] = {}
        self.max_jobs = max_jobs

    def get(self, run_id: str) -> Optional[RunJob]:
        return self._jobs.get(run_id)

    def active(self) -> Optional[RunJob]:
        for job in self._jobs.values():
            if job.status == JobStatus.RUNNING:
                return job
        return None

    def jobs(self) -> List[RunJob]:
        return list(self._jobs.values())

    def _prune(self) -> None:
        finished = sorted(
            (job for job in self._jobs.values() if job.status != JobStatus.RUNNING),
            key=lambda job: job.started_at,
        )
        while len(self._jobs) > self.max_jobs and finished:
            self._jobs.pop(finished.pop(0).id, None)

    def _options(self, job: RunJob) -> RunOptions:
        return RunOptions.from_config(
            self.config,
            output=str(self.reports_dir),
            interactive=False,
            log_callback=job.logs.append,
        )

    def start(self, kind: str, path: Path) -> RunJob:
        """Schedule a run on the current event loop and return its job."""
        if kind not in self._runners:
            raise ValueError(f"Unknown run type: {kind}")
        active = self.active()
        if active is not None:
            raise RunInProgressError(active)

        job = RunJob(id=_new_run_id(), type=kind, filename=path.name)
        self._jobs[job.id] = job
        self._prune()
        job.task = asyncio.get_running_loop().create_task(self._execute(job, path))
        return job

    async def _execute(self, job: RunJob, path: Path) -> None:
        try:
            result = await self._runners[job.type](path, self._options(job))
            if isinstance(result, SuiteResult):
                report = generate_suite_report(result, self.reports_dir)
            else:
                report = generate_report(result, self.reports_dir)
        except asyncio.CancelledError:
            job.status = JobStatus.FAILED
            job.error = "Run cancelled"
            raise
        except Exception as exc:
            job.status = JobStatus.FAILED
            job.error = str(exc) or exc.__class__.__name__
        else:
            job.status = JobStatus.COMPLETED
            job.report_url = f"/reports/{report.name}"
            job.summary = {"status": result.status.value, **result.summary.model_dump()}
        finally:
            job.completed_at = datetime.now(timezone.utc).isoformat()
