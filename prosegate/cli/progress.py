"""Step-by-step progress display for long CLI commands."""

import time
from dataclasses import dataclass, field
from enum import Enum

import click


class StepStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


# (symbol, click color) per status
_STYLES: dict[StepStatus, tuple[str, str]] = {
    StepStatus.PENDING: ("○", "bright_black"),
    StepStatus.RUNNING: ("◐", "yellow"),
    StepStatus.COMPLETED: ("✓", "green"),
    StepStatus.FAILED: ("✗", "red"),
    StepStatus.SKIPPED: ("⊘", "bright_black"),
}


@dataclass
class StepInfo:
    """One step of a CLI command."""

    name: str
    description: str
    status: StepStatus = StepStatus.PENDING
    started: float | None = None
    finished: float | None = None
    details: list[str] = field(default_factory=list)

    @property
    def elapsed(self) -> float:
        if self.started is None:
            return 0.0
        return (self.finished or time.monotonic()) - self.started

    def begin(self) -> None:
        self.status = StepStatus.RUNNING
        self.started = time.monotonic()
        self.details = []

    def end(self, status: StepStatus) -> None:
        self.status = status
        self.finished = time.monotonic()


class ProgressTracker:
    """
    Prints numbered step lines as a command moves through its stages.

    Usage:
        tracker = ProgressTracker()
        tracker.add_step("deal", "Loading deal")
        tracker.add_step("pipeline", "Running pipeline")

        tracker.start_step("deal")
        tracker.add_detail("Borrower: Acme Holdings LLC")
        tracker.complete_step("deal")

    Colors are dropped automatically when stdout is not a terminal.
    """

    def __init__(self) -> None:
        self.steps: dict[str, StepInfo] = {}

    def add_step(self, step_id: str, description: str) -> None:
        self.steps[step_id] = StepInfo(name=step_id, description=description)

    def start_step(self, step_id: str) -> None:
        step = self.steps.get(step_id)
        if step is None:
            return
        step.begin()
        self._echo_step(step)

    def add_detail(self, detail: str, step_id: str | None = None) -> None:
        """Attach a detail to ``step_id``, or to whichever step is running."""
        step = self.steps.get(step_id) if step_id else self._running()
        if step is None:
            return
        step.details.append(detail)
        click.echo(f"    → {detail}")

    def complete_step(self, step_id: str, success: bool = True) -> None:
        step = self.steps.get(step_id)
        if step is None:
            return
        step.end(StepStatus.COMPLETED if success else StepStatus.FAILED)
        self._echo_step(step)

    def skip_step(self, step_id: str, reason: str | None = None) -> None:
        step = self.steps.get(step_id)
        if step is None:
            return
        step.end(StepStatus.SKIPPED)
        if reason:
            step.details.append(f"Skipped: {reason}")
        self._echo_step(step)

    def print_summary(self) -> None:
        statuses = [s.status for s in self.steps.values()]
        failed = statuses.count(StepStatus.FAILED)
        completed = statuses.count(StepStatus.COMPLETED)
        total_time = sum(s.elapsed for s in self.steps.values())

        if failed:
            headline = click.style(f"Completed with {failed} error(s)", fg="red")
        else:
            headline = click.style("Completed successfully", fg="green")
        footer = click.style(
            f"({completed}/{len(statuses)} steps, {total_time:.1f}s total)", dim=True
        )
        click.echo()
        click.echo(f"{headline} {footer}")

    def _running(self) -> StepInfo | None:
        return next(
            (s for s in self.steps.values() if s.status == StepStatus.RUNNING), None
        )

    def _echo_step(self, step: StepInfo) -> None:
        position = list(self.steps).index(step.name) + 1
        symbol, color = _STYLES[step.status]
        suffix = " ..." if step.status == StepStatus.RUNNING else f" ({step.elapsed:.1f}s)"
        click.echo(
            f"[{position}/{len(self.steps)}] {click.style(symbol, fg=color)} "
            f"{step.description}{click.style(suffix, dim=True)}"
        )


__all__ = ["ProgressTracker", "StepStatus", "StepInfo"]
