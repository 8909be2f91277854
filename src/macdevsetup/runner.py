# runner.py
from __future__ import annotations

import logging
import signal
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional

from .dag import find_cycle, stable_order
from .env import EnvironmentContext
from .model import RunReport, Step, StepResult, StepStatus
from .ui.console import Console, get_console

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

@dataclass
class StepFailure(Exception):
    """Raised by a step action to report a failure with an optional hint."""
    step: str
    reason: str
    hint: str | None = None

    def __str__(self) -> str:
        return f"[{self.step}] {self.reason}"


@dataclass
class CyclicDependencyError(ValueError):
    cycle: list[str]

    def __str__(self) -> str:
        return "Cyclic step dependency: " + " -> ".join(self.cycle)


@dataclass
class UnknownStepError(ValueError):
    step: str
    missing: str
    known: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"Step '{self.step}' depends on missing step '{self.missing}'. Known steps: {sorted(self.known)}"


@dataclass
class PreconditionError(Exception):
    """Environment problem found before any step runs."""
    message: str
    exit_code: int = 1
    hint: str | None = None

    def __str__(self) -> str:
        return self.message


SKIP_DISABLED = "disabled"
SKIP_DEPENDENCY = "dependency failed"
SKIP_CANCELLED = "cancelled"


# ----------------------------------------------------------------------
# Orchestrator
# ----------------------------------------------------------------------

class StepOrchestrator:
    """
    Registry of steps plus the loop that runs them.

    Steps run one at a time in a stable topological order. A failing step
    never aborts the run; steps that depend on it are skipped instead.
    """

    def __init__(self, console: Optional[Console] = None):
        self._steps: List[Step] = []
        self._cancel = threading.Event()
        self.console = console
        self.final_env: Optional[EnvironmentContext] = None

    @property
    def steps(self) -> List[Step]:
        return list(self._steps)

    def register(self, step: Step) -> Step:
        if any(s.id == step.id for s in self._steps):
            raise ValueError(f"Duplicate step id: {step.id}")
        candidate = self._steps + [step]
        cycle = find_cycle(candidate)
        if cycle:
            raise CyclicDependencyError(cycle=cycle)
        self._steps.append(step)
        return step

    def register_all(self, steps: Iterable[Step]) -> None:
        for step in steps:
            self.register(step)

    def _validate(self) -> None:
        known = [s.id for s in self._steps]
        for step in self._steps:
            for dep in step.depends_on:
                if dep not in known:
                    raise UnknownStepError(step=step.id, missing=dep, known=known)

    def plan(self) -> List[Step]:
        """Execution order. Raises before anything runs if the graph is invalid."""
        self._validate()
        return stable_order(self._steps)

    def cancel(self) -> None:
        """Stop at the next step boundary."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def run(self, env: Optional[EnvironmentContext] = None) -> RunReport:
        console = self.console or get_console()
        ordered = self.plan()
        env = env if env is not None else EnvironmentContext.from_os()
        report = RunReport()

        for step in ordered:
            if self._cancel.is_set():
                report.cancelled = True
                report.add(step.id, StepResult(StepStatus.SKIPPED, reason=SKIP_CANCELLED))
                console.print_step_skipped(step.id, SKIP_CANCELLED)
                continue

            if not step.enabled:
                result = StepResult(StepStatus.SKIPPED, reason=SKIP_DISABLED)
                report.add(step.id, result)
                console.print_step_skipped(step.id, SKIP_DISABLED)
                continue

            blocked = tuple(d for d in step.depends_on if not report.result_for(d).ok)
            if blocked:
                result = StepResult(StepStatus.SKIPPED, reason=SKIP_DEPENDENCY, blocked_by=blocked)
                report.add(step.id, result)
                console.print_step_skipped(step.id, f"{SKIP_DEPENDENCY}: {', '.join(blocked)}")
                continue

            console.print_step_start(step.id, step.description)
            logger.info("Running step %s", step.id)
            started = time.monotonic()
            try:
                new_env = step.action(env)
            except Exception as e:
                duration = time.monotonic() - started
                hint = getattr(e, "hint", None)
                reason = e.reason if isinstance(e, StepFailure) else str(e) or type(e).__name__
                logger.warning("Step %s failed: %s", step.id, reason, exc_info=True)
                report.add(step.id, StepResult(StepStatus.FAILED, reason=reason, duration=duration))
                console.print_failure(step.id, reason, hint=hint)
                if console.debug:
                    console.print_exception(e)
                continue

            if new_env is not None:
                env = new_env
            duration = time.monotonic() - started
            report.add(step.id, StepResult(StepStatus.SUCCEEDED, duration=duration))
            console.print_success(step.id)
            console.print_debug(f"{step.id} took {duration:.1f}s")

        self.final_env = env
        return report


@contextmanager
def interrupt_guard(orchestrator: StepOrchestrator) -> Iterator[None]:
    """
    Turn SIGINT into a cancel request for the duration of a run.

    The running step is not interrupted by the orchestrator; child processes
    still receive the signal from the terminal, so a step can be left half
    done. A second SIGINT restores the default behaviour and raises.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = signal.getsignal(signal.SIGINT)

    def _handler(signum, frame):
        if orchestrator.cancelled:
            signal.signal(signal.SIGINT, signal.default_int_handler)
            raise KeyboardInterrupt
        get_console().print_warning("Interrupt received; stopping after the current step")
        orchestrator.cancel()

    signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)
