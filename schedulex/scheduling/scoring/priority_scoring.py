"""
Priority-based scoring and the greedy processing order.
"""

from datetime import datetime
from typing import Iterable, List, Tuple

from ..core.constants import PRIORITY_WEIGHTS, Priority, ScoringWeights
from ..core.entities import Task


def calculate_priority_score(task: Task, weights: ScoringWeights) -> int:
    """Map priority to score: Low +5, Medium +10, High +20, Urgent +30 with default weights."""
    return weights.priority_bonus(task.priority)


def task_selection_key(task: Task) -> Tuple[int, int, float]:
    """
    Sort key for greedy task selection. Higher priority first, then earlier
    deadline; tasks without a deadline go after dated ones of the same level.
    """
    weight = PRIORITY_WEIGHTS[Priority(task.priority)]
    if task.deadline is None:
        return (-weight, 1, 0.0)
    return (-weight, 0, _timestamp(task.deadline))


def prioritize_tasks(tasks: Iterable[Task]) -> List[Task]:
    """Order tasks for greedy processing. sorted() is stable so input order breaks remaining ties."""
    return sorted(tasks, key=task_selection_key)


def _timestamp(moment: datetime) -> float:
    # naive datetimes are compared on their own wall-clock axis
    if moment.tzinfo is None:
        return (moment - datetime(1970, 1, 1)).total_seconds()
    return moment.timestamp()
