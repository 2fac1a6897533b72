"""
The pool of free windows consumed by the greedy assigner.
"""

from typing import Iterable, Iterator, Optional, Tuple

from .exceptions import SchedulingError
from .time_window import TimeWindow


class FreeWindowPool:
    """
    An immutable, chronologically ordered collection of free windows.

    Committing a task never mutates a pool: split() returns a new pool with the
    consumed window replaced by whatever remains before and after the
    assignment. Each greedy step therefore takes a pool and hands the next one on.
    """
    __slots__ = ("_windows",)

    def __init__(self, windows: Iterable[TimeWindow] = ()):
        self._windows: Tuple[TimeWindow, ...] = tuple(sorted(windows))

    @property
    def windows(self) -> Tuple[TimeWindow, ...]:
        return self._windows

    def __iter__(self) -> Iterator[TimeWindow]:
        return iter(self._windows)

    def __len__(self) -> int:
        return len(self._windows)

    def __eq__(self, other):
        if not isinstance(other, FreeWindowPool):
            return NotImplemented
        return self._windows == other._windows

    def __repr__(self):
        return f"FreeWindowPool({len(self._windows)} windows)"

    def find_containing(self, window: TimeWindow) -> Optional[TimeWindow]:
        """Find a free window that contains the given time range."""
        for free in self._windows:
            if free.contains(window):
                return free
        return None

    def split(self, source: TimeWindow, consumed: TimeWindow) -> "FreeWindowPool":
        """
        Remove source from the pool and reinsert its leading (source.start to
        consumed.start) and trailing (consumed.end to source.end) remainders,
        each only if non-empty.
        """
        if source not in self._windows:
            raise SchedulingError(f"{source} is not a free window in this pool")
        if not source.contains(consumed):
            raise SchedulingError(f"{consumed} does not lie inside free window {source}")

        remaining = [window for window in self._windows if window != source]
        if source.start < consumed.start:
            remaining.append(TimeWindow(source.start, consumed.start))
        if consumed.end < source.end:
            remaining.append(TimeWindow(consumed.end, source.end))
        return FreeWindowPool(remaining)

    def total_minutes(self) -> float:
        return sum(window.duration_minutes() for window in self._windows)
