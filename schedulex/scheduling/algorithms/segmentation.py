"""
Slot segmentation: break long free windows into candidate start points.
"""

from datetime import datetime, timedelta
from typing import Iterable, List

from ..core.constants import DEFAULT_SLOT_GRANULARITY_MINUTES
from ..core.time_window import TimeWindow


def segment_window(window: TimeWindow, duration_minutes: int, buffer_minutes: int = 0,
                   granularity_minutes: int = DEFAULT_SLOT_GRANULARITY_MINUTES,
                   anchors: Iterable[datetime] = ()) -> List[TimeWindow]:
    """
    Generate candidate slots at fixed intervals within a free window.

    A window shorter than duration + buffer is returned as its only candidate
    (it will fail the fit check later). Otherwise one candidate is emitted per
    step, each long enough for the task and capped at the window end, plus a
    final candidate flush with the window end when the steps miss it.

    Anchors are extra preferred start times (a task's deadline instant); each
    one that leaves room for the task inside the window adds a candidate.
    """
    required = timedelta(minutes=duration_minutes + buffer_minutes)
    step = timedelta(minutes=granularity_minutes)
    span = max(step, required)

    if window.duration() < required:
        return [window]

    starts = []
    current_start = window.start
    last_start = window.end - required
    while current_start <= last_start:
        starts.append(current_start)
        current_start += step

    if starts[-1] != last_start:
        starts.append(last_start)

    for anchor in anchors:
        if window.start <= anchor <= last_start and anchor not in starts:
            starts.append(anchor)

    return [TimeWindow(start, min(start + span, window.end)) for start in sorted(starts)]


def segment_windows(windows: Iterable[TimeWindow], duration_minutes: int, buffer_minutes: int = 0,
                    granularity_minutes: int = DEFAULT_SLOT_GRANULARITY_MINUTES,
                    anchors: Iterable[datetime] = ()) -> List[TimeWindow]:
    anchors = list(anchors)
    candidates = []
    for window in windows:
        candidates.extend(segment_window(window, duration_minutes, buffer_minutes, granularity_minutes, anchors))
    return candidates
