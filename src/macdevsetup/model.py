# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from .env import EnvironmentContext

Action = Callable[["EnvironmentContext"], Optional["EnvironmentContext"]]


class StepStatus(str, Enum):
    NOT_RUN = "not-run"
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    status: StepStatus
    reason: Optional[str] = None
    blocked_by: Tuple[str, ...] = ()
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is StepStatus.SUCCEEDED

    def __str__(self) -> str:
        if self.reason:
            return f"{self.status.value} ({self.reason})"
        return self.status.value


@dataclass
class Step:
    """
    One unit of provisioning work.

    `depends_on` gates execution: every listed step must have succeeded.
    `after` only orders: listed steps run first when registered, whatever
    their outcome.
    """
    id: str
    action: Action
    enabled: bool = True
    depends_on: list[str] = field(default_factory=list)
    after: list[str] = field(default_factory=list)
    description: str = ""


@dataclass
class RunReport:
    """(step id, result) pairs in execution order, one per registered step."""
    entries: List[Tuple[str, StepResult]] = field(default_factory=list)
    cancelled: bool = False

    def add(self, step_id: str, result: StepResult) -> None:
        if any(sid == step_id for sid, _ in self.entries):
            raise ValueError(f"Result for step '{step_id}' already recorded")
        self.entries.append((step_id, result))

    def result_for(self, step_id: str) -> StepResult:
        for sid, result in self.entries:
            if sid == step_id:
                return result
        return StepResult(StepStatus.NOT_RUN)

    def statuses(self) -> Dict[str, StepStatus]:
        return {sid: r.status for sid, r in self.entries}

    def failed_steps(self) -> List[str]:
        return [sid for sid, r in self.entries if r.status is StepStatus.FAILED]

    def counts(self) -> Dict[str, int]:
        out = {"succeeded": 0, "skipped": 0, "failed": 0}
        for _sid, r in self.entries:
            if r.status is not StepStatus.NOT_RUN:
                out[r.status.value] += 1
        return out
