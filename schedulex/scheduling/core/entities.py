"""
Value objects passed into and returned from the scheduling engine.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import FrozenSet, List, Optional, Tuple

from .constants import (
    ConflictKind, DEFAULT_BUFFER_MINUTES, DEFAULT_SLOT_GRANULARITY_MINUTES,
    Priority, Severity, TimeOfDayHint, WorkloadIntensity,
)
from .time_window import TimeWindow


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    duration_minutes: int
    priority: Priority = Priority.MEDIUM
    deadline: Optional[datetime] = None
    category: Optional[str] = None
    completed: bool = False
    description: Optional[str] = None
    time_of_day: Optional[TimeOfDayHint] = None
    requires_focus: bool = False


@dataclass(frozen=True)
class FocusBlock:
    """A recurring stretch of the day reserved for deep work. Days use 0 = Sunday."""
    start: time
    end: time
    days: FrozenSet[int] = frozenset()


@dataclass(frozen=True)
class Preferences:
    working_hours_start: time = time(9, 0)
    working_hours_end: time = time(17, 0)
    # Weekday indices, 0 = Sunday ... 6 = Saturday
    working_days: FrozenSet[int] = frozenset({1, 2, 3, 4, 5})
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES
    focus_blocks: Tuple[FocusBlock, ...] = ()
    timezone: Optional[str] = None
    slot_granularity_minutes: int = DEFAULT_SLOT_GRANULARITY_MINUTES


@dataclass(frozen=True)
class CandidateSlot:
    window: TimeWindow
    task: Task
    score: int = 0


@dataclass(frozen=True)
class Assignment:
    task_id: str
    window: TimeWindow
    confidence: float
    score: int
    reasoning: str = ""
    alternatives: Tuple[TimeWindow, ...] = ()
    considerations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Conflict:
    kind: ConflictKind
    description: str
    affected_task_ids: Tuple[str, ...]
    severity: Severity = Severity.HIGH


@dataclass(frozen=True)
class DayWorkload:
    date: date
    hours: float
    task_count: int
    intensity: WorkloadIntensity


@dataclass(frozen=True)
class OptimizationResult:
    assignments: List[Assignment] = field(default_factory=list)
    unassigned_tasks: List[Task] = field(default_factory=list)
    conflicts: List[Conflict] = field(default_factory=list)
    workload: List[DayWorkload] = field(default_factory=list)

    @property
    def total_tasks(self) -> int:
        return len(self.assignments) + len(self.unassigned_tasks)

    @property
    def scheduled_tasks(self) -> int:
        return len(self.assignments)

    def assignment_for(self, task_id: str) -> Optional[Assignment]:
        for assignment in self.assignments:
            if assignment.task_id == task_id:
                return assignment
        return None
