"""
Deadline proximity scoring. This is the dominant term for tasks with a deadline.
"""

from datetime import timedelta, tzinfo
from typing import Optional

from ..core.constants import ScoringWeights
from ..core.entities import Task
from ..core.time_window import TimeWindow
from ..utils.time_utils import minutes_of_day, to_local


def calculate_deadline_score(task: Task, slot: TimeWindow, weights: ScoringWeights,
                             tz: Optional[tzinfo] = None) -> int:
    """
    Deadline-day-first scoring:
    1. Slot starts at the deadline instant (within tolerance): exact bonus, always wins
    2. Slot on the deadline day: day bonus plus proximity to the deadline time of day
    3. Task would finish after the deadline: heavy penalty
    4. One or two days early: small bonus
    5. Further out: linear penalty per day early
    """
    if not task.deadline:
        return 0

    deadline = to_local(task.deadline, tz)
    slot_start = to_local(slot.start, tz)

    if abs((slot_start - deadline).total_seconds()) < weights.exact_deadline_tolerance_seconds:
        return weights.exact_deadline_match

    if slot_start.date() == deadline.date():
        minutes_apart = abs(minutes_of_day(deadline) - minutes_of_day(slot_start))
        proximity = max(0, weights.deadline_proximity_max - minutes_apart // weights.deadline_proximity_step_minutes)
        return weights.deadline_day + proximity

    task_end = slot.start + timedelta(minutes=task.duration_minutes)
    if task_end > task.deadline:
        return weights.past_deadline_penalty

    days_early = (deadline.date() - slot_start.date()).days
    if days_early == 1:
        return weights.day_before_deadline
    if days_early == 2:
        return weights.two_days_before_deadline
    return -weights.early_penalty_per_day * days_early
