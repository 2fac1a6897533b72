"""
Enums and tunable constants shared across the scheduling engine.
"""

import enum
from dataclasses import dataclass


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TimeOfDayHint(str, enum.Enum):
    EARLY_MORNING = "early_morning"  # 6:00 AM - 8:00 AM
    MORNING = "morning"              # 8:00 AM - 12:00 PM
    LATE_MORNING = "late_morning"    # 10:00 AM - 12:00 PM
    AFTERNOON = "afternoon"          # 12:00 PM - 5:00 PM
    EVENING = "evening"              # 5:00 PM - 10:00 PM
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    ANY = "any"


class ConflictKind(str, enum.Enum):
    OVERLAP = "overlap"
    DEADLINE_CONFLICT = "deadline_conflict"


class Severity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WorkloadIntensity(str, enum.Enum):
    LIGHT = "light"
    MODERATE = "moderate"
    HEAVY = "heavy"
    OVERLOADED = "overloaded"


# Greedy processing order: higher weight goes first
PRIORITY_WEIGHTS = {
    Priority.URGENT: 4,
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}

DEFAULT_BUFFER_MINUTES = 15
DEFAULT_SLOT_GRANULARITY_MINUTES = 60
MAX_ALTERNATIVES = 3

# Upper bounds (hours, inclusive) for each workload intensity label
INTENSITY_THRESHOLDS = (
    (2.0, WorkloadIntensity.LIGHT),
    (4.0, WorkloadIntensity.MODERATE),
    (6.0, WorkloadIntensity.HEAVY),
)


@dataclass(frozen=True)
class ScoringWeights:
    """
    Every constant the slot scorer adds or subtracts. Override fields with
    dataclasses.replace() to tune the policy without touching control flow.
    """
    base: int = 50

    # Time-of-day alignment
    breakfast_match: int = 40
    breakfast_late_penalty: int = -30
    lunch_match: int = 30
    lunch_miss_penalty: int = -15
    dinner_match: int = 30
    dinner_miss_penalty: int = -15
    early_morning_match: int = 30
    morning_match: int = 25
    late_morning_match: int = 20
    afternoon_match: int = 20
    evening_match: int = 20
    any_time: int = 10

    # Priority
    priority_urgent: int = 30
    priority_high: int = 20
    priority_medium: int = 10
    priority_low: int = 5

    # Deadline proximity
    exact_deadline_match: int = 1000
    exact_deadline_tolerance_seconds: int = 60
    deadline_day: int = 500
    deadline_proximity_max: int = 100
    deadline_proximity_step_minutes: int = 10
    day_before_deadline: int = 50
    two_days_before_deadline: int = 20
    early_penalty_per_day: int = 20
    past_deadline_penalty: int = -1000

    # Duration fit
    tight_fit: int = 10
    decent_fit: int = 5

    # Focus blocks
    focus_block: int = 15

    def priority_bonus(self, priority: Priority) -> int:
        return {
            Priority.URGENT: self.priority_urgent,
            Priority.HIGH: self.priority_high,
            Priority.MEDIUM: self.priority_medium,
            Priority.LOW: self.priority_low,
        }[Priority(priority)]


DEFAULT_WEIGHTS = ScoringWeights()
