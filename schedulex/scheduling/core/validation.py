"""
Input validation run before any scoring. This is the engine's only hard failure path.
"""

from datetime import datetime
from typing import Iterable, List

import pytz

from .constants import Priority
from .entities import Preferences, Task
from .exceptions import ValidationError
from .time_window import TimeWindow

VALID_WEEKDAYS = range(0, 7)


def validate_inputs(tasks: List[Task], busy_intervals: List[TimeWindow], preferences: Preferences,
                    range_start: datetime, range_end: datetime):
    if range_end <= range_start:
        raise ValidationError(f"Planning range end {range_end.isoformat()} must be after start {range_start.isoformat()}")

    _validate_tasks(tasks)
    _validate_windows(busy_intervals)
    _validate_preferences(preferences)

    has_deadline_day = any(task.deadline for task in tasks if not task.completed)
    if not preferences.working_days and not has_deadline_day:
        raise ValidationError("No working days configured and no task deadline to schedule against")

    moments = [range_start, range_end]
    moments.extend(task.deadline for task in tasks if task.deadline)
    for window in busy_intervals:
        moments.extend((window.start, window.end))
    _validate_awareness(moments, preferences)


def _validate_tasks(tasks: Iterable[Task]):
    seen = set()
    for task in tasks:
        if task.id in seen:
            raise ValidationError(f"Duplicate task id '{task.id}'")
        seen.add(task.id)
        if task.duration_minutes is None or task.duration_minutes <= 0:
            raise ValidationError(f"Task '{task.id}' duration must be positive, got {task.duration_minutes}")
        try:
            Priority(task.priority)
        except ValueError:
            raise ValidationError(f"Task '{task.id}' has unknown priority {task.priority!r}")


def _validate_windows(windows: Iterable[TimeWindow]):
    for window in windows:
        if not isinstance(window, TimeWindow):
            raise ValidationError(f"Busy interval must be a TimeWindow, got {type(window).__name__}")


def _validate_preferences(preferences: Preferences):
    if preferences.working_hours_start > preferences.working_hours_end:
        raise ValidationError(
            f"Working hours start {preferences.working_hours_start} is after end {preferences.working_hours_end}"
        )
    for day in preferences.working_days:
        if day not in VALID_WEEKDAYS:
            raise ValidationError(f"Working day {day} is outside 0-6")
    if preferences.buffer_minutes < 0:
        raise ValidationError(f"Buffer time cannot be negative, got {preferences.buffer_minutes}")
    if preferences.slot_granularity_minutes <= 0:
        raise ValidationError(f"Slot granularity must be positive, got {preferences.slot_granularity_minutes}")
    for block in preferences.focus_blocks:
        if block.start > block.end:
            raise ValidationError(f"Focus block start {block.start} is after end {block.end}")
        for day in block.days:
            if day not in VALID_WEEKDAYS:
                raise ValidationError(f"Focus block day {day} is outside 0-6")
    if preferences.timezone:
        try:
            pytz.timezone(preferences.timezone)
        except pytz.UnknownTimeZoneError:
            raise ValidationError(f"Unknown timezone '{preferences.timezone}'")


def _validate_awareness(moments: List[datetime], preferences: Preferences):
    aware = {moment.tzinfo is not None and moment.utcoffset() is not None for moment in moments}
    if len(aware) > 1:
        raise ValidationError("Cannot mix naive and timezone-aware datetimes")
    if preferences.timezone and aware == {False}:
        raise ValidationError(f"Timezone '{preferences.timezone}' requires timezone-aware datetimes")
