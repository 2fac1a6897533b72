"""
Time-based scoring functions for slot evaluation.
"""

from datetime import datetime
from typing import Sequence

from ..core.constants import ScoringWeights, TimeOfDayHint
from ..core.entities import FocusBlock, Task
from ..core.time_window import TimeWindow
from ..utils.time_utils import minutes_of_day, weekday_index


def calculate_time_of_day_score(hint: TimeOfDayHint, slot_start: datetime, weights: ScoringWeights) -> int:
    """
    Score how well the slot's local hour matches the task's time-of-day hint.
    Meal hints carry a penalty when missed; period hints only ever add.
    """
    hour = slot_start.hour

    if hint == TimeOfDayHint.BREAKFAST:
        if 7 <= hour <= 9:
            return weights.breakfast_match
        if hour > 10:
            return weights.breakfast_late_penalty
        return 0
    if hint == TimeOfDayHint.LUNCH:
        return weights.lunch_match if 11 <= hour <= 14 else weights.lunch_miss_penalty
    if hint == TimeOfDayHint.DINNER:
        return weights.dinner_match if 17 <= hour <= 20 else weights.dinner_miss_penalty

    if hint == TimeOfDayHint.EARLY_MORNING and 6 <= hour < 8:
        return weights.early_morning_match
    if hint == TimeOfDayHint.MORNING and 8 <= hour < 12:
        return weights.morning_match
    if hint == TimeOfDayHint.LATE_MORNING and 10 <= hour < 12:
        return weights.late_morning_match
    if hint == TimeOfDayHint.AFTERNOON and 12 <= hour < 17:
        return weights.afternoon_match
    if hint == TimeOfDayHint.EVENING and 17 <= hour < 22:
        return weights.evening_match
    if hint == TimeOfDayHint.ANY:
        return weights.any_time
    return 0


def is_in_focus_block(moment: datetime, block: FocusBlock) -> bool:
    """Both block bounds are inclusive."""
    if weekday_index(moment.date()) not in block.days:
        return False
    at = minutes_of_day(moment)
    return block.start.hour * 60 + block.start.minute <= at <= block.end.hour * 60 + block.end.minute


def calculate_focus_block_score(task: Task, slot_start: datetime, focus_blocks: Sequence[FocusBlock],
                                weights: ScoringWeights) -> int:
    if not task.requires_focus:
        return 0
    if any(is_in_focus_block(slot_start, block) for block in focus_blocks):
        return weights.focus_block
    return 0


def calculate_duration_fit_score(task: Task, slot: TimeWindow, weights: ScoringWeights) -> int:
    """Reward slots the task fills snugly."""
    slot_minutes = slot.duration_minutes()
    if slot_minutes <= 0:
        return 0
    ratio = task.duration_minutes / slot_minutes
    if 0.8 < ratio <= 1:
        return weights.tight_fit
    if 0.5 < ratio <= 0.8:
        return weights.decent_fit
    return 0
