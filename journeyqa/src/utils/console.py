"""Console output for runs, with an optional callback for collecting logs."""
from __future__ import annotations

import sys
from typing import Callable, Optional

from journeyqa.src.utils.models import RunStatus


_STATUS_LABELS = {
    RunStatus.PASSED: "PASS",
    RunStatus.FAILED: "FAIL",
    RunStatus.WARNING: "WARN",
}


class RunLogger:
    """Prints progress lines and forwards each of them to ``log_callback``."""

    def __init__(
        self,
        verbose: bool = False,
        log_callback: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.verbose = verbose
        self._log_callback = log_callback

    def _emit(self, message: str, *, stream=None) -> None:
        print(message, file=stream or sys.stdout, flush=True)
        if self._log_callback:
            self._log_callback(message)

    def info(self, message: str) -> None:
        self._emit(message)

    def debug(self, message: str) -> None:
        if self.verbose:
            self._emit(f"  [debug] {message}")

    def error(self, message: str) -> None:
        self._emit(message, stream=sys.stderr)

    def step(self, index: int, total: int, text: str) -> None:
        self._emit(f"\n[{index}/{total}] {text}")

    def status(self, status: RunStatus, detail: str | None = None) -> None:
        label = _STATUS_LABELS.get(RunStatus(status), str(status).upper())
        line = f"  {label}"
        if detail:
            line += f": {detail}"
        self._emit(line)
