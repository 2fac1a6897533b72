"""
Workload balance: assigned hours per calendar day and an intensity label.
"""

from collections import OrderedDict
from datetime import date, datetime, tzinfo
from typing import Dict, List, Optional, Sequence

from ..core.constants import INTENSITY_THRESHOLDS, WorkloadIntensity
from ..core.entities import Assignment, DayWorkload, Task
from ..utils.time_utils import iter_days, last_local_day, local_date


def classify_workload_intensity(hours: float) -> WorkloadIntensity:
    for upper_bound, intensity in INTENSITY_THRESHOLDS:
        if hours <= upper_bound:
            return intensity
    return WorkloadIntensity.OVERLOADED


def calculate_workload_balance(assignments: Sequence[Assignment], tasks: Sequence[Task],
                               range_start: datetime, range_end: datetime,
                               tz: Optional[tzinfo] = None) -> List[DayWorkload]:
    """
    One entry per calendar day in the planning range, including days with
    nothing assigned (zero hours, light).
    """
    durations = {task.id: task.duration_minutes for task in tasks}
    daily: Dict[date, Dict[str, float]] = OrderedDict(
        (day, {"minutes": 0, "task_count": 0})
        for day in iter_days(local_date(range_start, tz), last_local_day(range_end, tz))
    )

    for assignment in assignments:
        day = local_date(assignment.window.start, tz)
        if day not in daily:
            continue
        minutes = durations.get(assignment.task_id, assignment.window.duration_minutes())
        daily[day]["minutes"] += minutes
        daily[day]["task_count"] += 1

    workload = []
    for day, totals in daily.items():
        hours = totals["minutes"] / 60
        workload.append(DayWorkload(
            date=day,
            hours=hours,
            task_count=int(totals["task_count"]),
            intensity=classify_workload_intensity(hours),
        ))
    return workload
