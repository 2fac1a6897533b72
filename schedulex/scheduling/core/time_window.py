"""
Time window representation for the scheduling system.
"""

from datetime import datetime, timedelta
from .exceptions import ValidationError


class TimeWindow:
    """
    A half-open span of time [start, end).

    The same type is used for busy calendar intervals, free windows and the
    final window an assignment occupies. Windows are immutable values.
    """
    __slots__ = ("_start", "_end")

    def __init__(self, start: datetime, end: datetime):
        if end <= start:
            raise ValidationError(f"Window end {end.isoformat()} must be after start {start.isoformat()}")
        self._start = start
        self._end = end

    @property
    def start(self) -> datetime:
        return self._start

    @property
    def end(self) -> datetime:
        return self._end

    def duration(self) -> timedelta:
        return self.end - self.start

    def duration_minutes(self) -> float:
        return self.duration().total_seconds() / 60

    def overlaps(self, other: "TimeWindow") -> bool:
        return self.start < other.end and other.start < self.end

    def touches_or_overlaps(self, other: "TimeWindow") -> bool:
        return self.start <= other.end and other.start <= self.end

    def contains(self, other: "TimeWindow") -> bool:
        return self.start <= other.start and other.end <= self.end

    def __eq__(self, other):
        if not isinstance(other, TimeWindow):
            return NotImplemented
        return self.start == other.start and self.end == other.end

    def __hash__(self):
        return hash((self.start, self.end))

    def __lt__(self, other):
        return (self.start, self.end) < (other.start, other.end)

    def __repr__(self):
        return f"TimeWindow({self.start.strftime('%Y-%m-%d %H:%M')} - {self.end.strftime('%Y-%m-%d %H:%M')})"
