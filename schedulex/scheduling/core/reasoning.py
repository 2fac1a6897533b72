"""
Deterministic explanations attached to assignments when no narrative
generator is available or it fails.
"""

from datetime import timedelta, tzinfo
from typing import Optional, Tuple

from .constants import Priority
from .entities import Task
from .time_window import TimeWindow
from ..utils.time_utils import period_of_day, to_local


def fallback_reasoning(task: Task, window: TimeWindow, tz: Optional[tzinfo] = None) -> str:
    local_start = to_local(window.start, tz)
    return (
        f"This {period_of_day(local_start)} time slot on {local_start.strftime('%A')} aligns well with the "
        f"{Priority(task.priority).value} priority of \"{task.title}\". The {task.duration_minutes}-minute "
        f"duration provides adequate time for completion while maintaining optimal energy levels "
        f"for this type of task."
    )


def build_considerations(task: Task, window: TimeWindow) -> Tuple[str, ...]:
    considerations = []
    if task.requires_focus:
        considerations.append("This task requires high focus - ensure minimal distractions")
    if task.deadline and task.deadline - window.start < timedelta(days=2):
        considerations.append("Urgent: Deadline is approaching soon")
    return tuple(considerations)
