"""
Interval aggregation: merge busy calendar intervals and derive the free
windows inside working hours.
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Set

from ..core.entities import Preferences, Task
from ..core.time_window import TimeWindow
from ..utils.time_utils import combine_local, iter_days, last_local_day, local_date, resolve_timezone, weekday_index

logger = logging.getLogger(__name__)


def merge_busy_intervals(intervals: Iterable[TimeWindow]) -> List[TimeWindow]:
    """
    Sort busy intervals by start and coalesce any that overlap or touch.
    Intervals may come unsorted and from several calendars.
    """
    merged: List[TimeWindow] = []
    for interval in sorted(intervals):
        if merged and interval.touches_or_overlaps(merged[-1]):
            last = merged[-1]
            if interval.end > last.end:
                merged[-1] = TimeWindow(last.start, interval.end)
        else:
            merged.append(interval)
    return merged


def subtract_busy(window: TimeWindow, merged_busy: List[TimeWindow]) -> List[TimeWindow]:
    """Return the ordered parts of a window not covered by the (merged, sorted) busy intervals."""
    free: List[TimeWindow] = []
    cursor = window.start
    for busy in merged_busy:
        if busy.end <= cursor:
            continue
        if busy.start >= window.end:
            break
        if busy.start > cursor:
            free.append(TimeWindow(cursor, busy.start))
        cursor = max(cursor, busy.end)
        if cursor >= window.end:
            break
    if cursor < window.end:
        free.append(TimeWindow(cursor, window.end))
    return free


def get_deadline_days(tasks: Iterable[Task], tz=None) -> Set[date]:
    """Days holding the deadline of an incomplete task. These are schedulable even off working days."""
    return {local_date(task.deadline, tz) for task in tasks if task.deadline and not task.completed}


def working_window_for_day(day: date, preferences: Preferences, tz=None, fallback_tz=None) -> Optional[TimeWindow]:
    work_start = combine_local(day, preferences.working_hours_start, tz, fallback_tz)
    work_end = combine_local(day, preferences.working_hours_end, tz, fallback_tz)
    if work_end <= work_start:
        return None
    return TimeWindow(work_start, work_end)


def compute_free_windows(busy_intervals: Iterable[TimeWindow], range_start: datetime, range_end: datetime,
                         preferences: Preferences, tasks: Iterable[Task] = ()) -> List[TimeWindow]:
    """
    Build the ordered, non-overlapping free windows for the planning range.

    A day contributes its working-hour window when it is a working day or the
    deadline day of some task. The window is clipped to the planning range
    and the merged busy intervals are cut out of it.
    """
    tz = resolve_timezone(preferences.timezone)
    fallback_tz = range_start.tzinfo
    merged = merge_busy_intervals(busy_intervals)
    deadline_days = get_deadline_days(tasks, tz)

    free_windows: List[TimeWindow] = []
    for day in iter_days(local_date(range_start, tz), last_local_day(range_end, tz)):
        is_working_day = weekday_index(day) in preferences.working_days
        is_deadline_day = day in deadline_days
        if not (is_working_day or is_deadline_day):
            continue

        working = working_window_for_day(day, preferences, tz, fallback_tz)
        if working is None:
            continue
        start = max(working.start, range_start)
        end = min(working.end, range_end)
        if end <= start:
            continue

        day_windows = subtract_busy(TimeWindow(start, end), merged)
        logger.debug(f"{day.isoformat()}: working={is_working_day}, deadline={is_deadline_day}, "
                     f"{len(day_windows)} free windows")
        free_windows.extend(day_windows)

    logger.debug(f"Computed {len(free_windows)} free windows from {len(merged)} merged busy intervals")
    return free_windows
