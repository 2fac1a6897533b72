"""
Main slot scoring aggregator that combines all domain-specific scoring functions.
"""

from datetime import tzinfo
from typing import Optional

from ..core.constants import DEFAULT_WEIGHTS, ScoringWeights, TimeOfDayHint
from ..core.entities import Preferences, Task
from ..core.time_window import TimeWindow
from ..utils.time_utils import to_local
from .deadline_scoring import calculate_deadline_score
from .hints import DEFAULT_CLASSIFIER
from .priority_scoring import calculate_priority_score
from .time_scoring import calculate_duration_fit_score, calculate_focus_block_score, calculate_time_of_day_score


def calculate_slot_score(task: Task, slot: TimeWindow, preferences: Preferences,
                         weights: ScoringWeights = DEFAULT_WEIGHTS,
                         hint: Optional[TimeOfDayHint] = None,
                         tz: Optional[tzinfo] = None) -> int:
    """
    Calculate the overall integer score for a task-slot combination.
    Starts at the base score and adds each component.
    """
    if hint is None:
        hint = DEFAULT_CLASSIFIER.classify(task)
    local_start = to_local(slot.start, tz)

    score = weights.base
    score += calculate_time_of_day_score(hint, local_start, weights)
    score += calculate_priority_score(task, weights)
    score += calculate_deadline_score(task, slot, weights, tz)
    score += calculate_duration_fit_score(task, slot, weights)
    score += calculate_focus_block_score(task, local_start, preferences.focus_blocks, weights)
    return score


def score_to_confidence(score: int) -> float:
    """Normalize a score into [0, 1]."""
    return max(0.0, min(score / 100, 1.0))
