from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, Field

from .config import DEFAULT_BUFFER_MINUTES, SLOT_GRANULARITY_MINUTES
from .scheduling import (
    Assignment, Conflict, ConflictKind, DayWorkload, FocusBlock, OptimizationResult, Preferences, Priority,
    Severity, Task, TimeOfDayHint, TimeWindow, WorkloadIntensity,
)

# ----------------- Input Schemas ---------------------


class TaskSchema(BaseModel):
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

    class Config:
        from_attributes = True

    def to_entity(self) -> Task:
        return Task(**self.model_dump())


class TimeWindowSchema(BaseModel):
    start: datetime
    end: datetime

    class Config:
        from_attributes = True

    def to_entity(self) -> TimeWindow:
        return TimeWindow(self.start, self.end)


class FocusBlockSchema(BaseModel):
    start: time
    end: time
    days: List[int] = []

    class Config:
        from_attributes = True

    def to_entity(self) -> FocusBlock:
        return FocusBlock(start=self.start, end=self.end, days=frozenset(self.days))


class PreferencesSchema(BaseModel):
    working_hours_start: time = time(9, 0)
    working_hours_end: time = time(17, 0)
    working_days: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5], description="0 = Sunday ... 6 = Saturday")
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES
    focus_blocks: List[FocusBlockSchema] = []
    timezone: Optional[str] = None
    slot_granularity_minutes: int = SLOT_GRANULARITY_MINUTES

    def to_entity(self) -> Preferences:
        return Preferences(
            working_hours_start=self.working_hours_start,
            working_hours_end=self.working_hours_end,
            working_days=frozenset(self.working_days),
            buffer_minutes=self.buffer_minutes,
            focus_blocks=tuple(block.to_entity() for block in self.focus_blocks),
            timezone=self.timezone,
            slot_granularity_minutes=self.slot_granularity_minutes,
        )


class OptimizeRequest(BaseModel):
    tasks: List[TaskSchema]
    busy_intervals: List[TimeWindowSchema] = []
    preferences: PreferencesSchema = Field(default_factory=PreferencesSchema)
    range_start: datetime
    range_end: datetime


class StoredOptimizeRequest(BaseModel):
    range_start: datetime
    range_end: datetime
    busy_intervals: List[TimeWindowSchema] = []
    calendar_ids: List[str] = []


class ApplyScheduleRequest(BaseModel):
    calendar_id: str = "primary"


class OAuthTokenSchema(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None


class CalendarTokensSchema(BaseModel):
    """Already-issued OAuth tokens per calendar backend. The consent flow happens elsewhere."""
    google: Optional[OAuthTokenSchema] = None
    outlook: Optional[OAuthTokenSchema] = None

# ----------------- Output Schemas ---------------------


class AssignmentOut(BaseModel):
    task_id: str
    start: datetime
    end: datetime
    confidence: float
    score: int
    reasoning: str
    alternatives: List[TimeWindowSchema] = []
    considerations: List[str] = []

    @classmethod
    def from_entity(cls, assignment: Assignment) -> "AssignmentOut":
        return cls(
            task_id=assignment.task_id,
            start=assignment.window.start,
            end=assignment.window.end,
            confidence=assignment.confidence,
            score=assignment.score,
            reasoning=assignment.reasoning,
            alternatives=[TimeWindowSchema(start=w.start, end=w.end) for w in assignment.alternatives],
            considerations=list(assignment.considerations),
        )


class ConflictOut(BaseModel):
    kind: ConflictKind
    description: str
    affected_task_ids: List[str]
    severity: Severity

    @classmethod
    def from_entity(cls, conflict: Conflict) -> "ConflictOut":
        return cls(
            kind=conflict.kind,
            description=conflict.description,
            affected_task_ids=list(conflict.affected_task_ids),
            severity=conflict.severity,
        )


class DayWorkloadOut(BaseModel):
    date: date
    hours: float
    task_count: int
    intensity: WorkloadIntensity

    @classmethod
    def from_entity(cls, day: DayWorkload) -> "DayWorkloadOut":
        return cls(date=day.date, hours=day.hours, task_count=day.task_count, intensity=day.intensity)


class OptimizationResultOut(BaseModel):
    total_tasks: int
    scheduled_tasks: int
    assignments: List[AssignmentOut]
    unassigned_tasks: List[TaskSchema]
    conflicts: List[ConflictOut]
    workload: List[DayWorkloadOut]

    @classmethod
    def from_entity(cls, result: OptimizationResult) -> "OptimizationResultOut":
        return cls(
            total_tasks=result.total_tasks,
            scheduled_tasks=result.scheduled_tasks,
            assignments=[AssignmentOut.from_entity(a) for a in result.assignments],
            unassigned_tasks=[TaskSchema.model_validate(t) for t in result.unassigned_tasks],
            conflicts=[ConflictOut.from_entity(c) for c in result.conflicts],
            workload=[DayWorkloadOut.from_entity(d) for d in result.workload],
        )


class CalendarConnectionsOut(BaseModel):
    google: bool = False
    outlook: bool = False

    @classmethod
    def from_tokens(cls, tokens: Optional[CalendarTokensSchema]) -> "CalendarConnectionsOut":
        if tokens is None:
            return cls()
        return cls(google=tokens.google is not None, outlook=tokens.outlook is not None)


class EventRefOut(BaseModel):
    task_id: str
    calendar_id: str
    event_id: str
