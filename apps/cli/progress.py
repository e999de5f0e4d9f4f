"""Single-line progress rendering on stderr."""

from __future__ import annotations

import sys
import time
from collections.abc import Callable
from typing import TextIO

from cdm.validation.models import ValidationProgress

BAR_WIDTH = 40

PHASE_LABELS = {
    "idle": "Starting",
    "pass1": "Pass 1: validating records",
    "pass2": "Pass 2: cross-record checks",
    "post_pass": "Checking summary totals",
    "structure_check": "Checking file structure",
    "complete": "Complete",
}


class ProgressPrinter:
    """Progress sink that redraws one carriage-return line.

    The ETA is extrapolated from the time spent in the current phase; the
    clock restarts whenever the phase changes.
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stream = stream if stream is not None else sys.stderr
        self._clock = clock
        self._phase: str | None = None
        self._phase_started = clock()
        self._last_width = 0

    def __call__(self, progress: ValidationProgress) -> None:
        if progress.phase != self._phase:
            self._phase = progress.phase
            self._phase_started = self._clock()

        line = self.format_line(progress)
        padding = " " * max(self._last_width - len(line), 0)
        self._stream.write(f"\r{line}{padding}")
        self._stream.flush()
        self._last_width = len(line)

    def format_line(self, progress: ValidationProgress) -> str:
        filled = 0
        if progress.total > 0:
            filled = min(int(progress.current / progress.total * BAR_WIDTH), BAR_WIDTH)
        bar = "[" + "#" * filled + "-" * (BAR_WIDTH - filled) + "]"
        label = PHASE_LABELS.get(progress.phase, progress.phase)
        line = (
            f"{bar} {progress.percent_complete:5.1f}% {label}: "
            f"{progress.current:,}/{progress.total:,}"
        )
        eta = self._eta_seconds(progress)
        if eta is not None:
            line += f" ETA: {_format_duration(eta)}"
        return line

    def complete(self) -> None:
        if self._last_width:
            self._stream.write("\n")
            self._stream.flush()
            self._last_width = 0

    def _eta_seconds(self, progress: ValidationProgress) -> float | None:
        if progress.current <= 0 or progress.total <= 0:
            return None
        fraction = progress.current / progress.total
        elapsed = self._clock() - self._phase_started
        remaining = elapsed / fraction - elapsed
        return remaining if remaining > 0 else None


def _format_duration(seconds: float) -> str:
    total = int(seconds)
    if total >= 3600:
        return f"{total // 3600}h {total % 3600 // 60:02d}m"
    if total >= 60:
        return f"{total // 60}m {total % 60:02d}s"
    return f"{total}s"
