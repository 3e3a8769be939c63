"""Shared types for the lifecycle managers.

Defines the execution mode threaded through every manager and the
plan/report structures used by the cascading teardown operations.
"""

import sys
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, TextIO


class ExecutionMode(Enum):
    """Whether mutating operations reach aptly."""

    LIVE = auto()
    SIMULATE = auto()  # Print the operation instead of running it


class StepStatus(Enum):
    """Outcome of a single step in a teardown plan."""

    PENDING = auto()
    DONE = auto()
    SKIPPED = auto()
    FAILED = auto()


class StepKind(Enum):
    """What a teardown step removes."""

    PUBLICATION = auto()
    SNAPSHOT = auto()
    MULTIARCH = auto()


@dataclass
class DropStep:
    """One delete in an ordered teardown plan."""

    kind: StepKind
    name: str
    strict: bool = True  # Strict steps raise, best-effort steps may be skipped
    status: StepStatus = StepStatus.PENDING
    reason: Optional[str] = None

    def mark(self, status: StepStatus, reason: Optional[str] = None) -> None:
        """Record the outcome of this step."""
        self.status = status
        self.reason = reason


@dataclass
class DropReport:
    """Ordered teardown plan together with the outcome of each step."""

    target: str
    steps: List[DropStep] = field(default_factory=list)

    def add(self, kind: StepKind, name: str, strict: bool = True) -> DropStep:
        """Append a step to the plan."""
        step = DropStep(kind=kind, name=name, strict=strict)
        self.steps.append(step)
        return step

    def extend(self, other: "DropReport") -> None:
        """Append the steps of a nested report."""
        self.steps.extend(other.steps)

    def _with_status(self, status: StepStatus) -> List[str]:
        return [s.name for s in self.steps if s.status == status]

    @property
    def done(self) -> List[str]:
        """Names removed by this plan."""
        return self._with_status(StepStatus.DONE)

    @property
    def skipped(self) -> List[str]:
        """Names left in place by best-effort steps."""
        return self._with_status(StepStatus.SKIPPED)

    @property
    def failed(self) -> List[str]:
        """Names whose removal failed."""
        return self._with_status(StepStatus.FAILED)

    @property
    def is_complete(self) -> bool:
        """Check whether every step removed its entity."""
        return all(s.status == StepStatus.DONE for s in self.steps)


class ManagerBase:
    """Common plumbing for the managers: execution mode and dry-run echo."""

    def __init__(self, mode: ExecutionMode = ExecutionMode.LIVE, out: Optional[TextIO] = None):
        self.mode = mode
        self.out = out

    @property
    def simulating(self) -> bool:
        """Check whether mutating operations should only be printed."""
        return self.mode == ExecutionMode.SIMULATE

    def _echo(self, operation: str, *args: object) -> None:
        """Print an operation and its arguments in dry-run mode."""
        parts = [operation] + [str(a) for a in args if a is not None and a != ""]
        print(" ".join(parts), file=self.out or sys.stdout)
