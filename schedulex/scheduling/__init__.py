"""
ScheduleX Allocation Engine

Assigns tasks to free time inside a planning horizon: interval aggregation,
slot segmentation, scoring, deadline-aware greedy assignment, conflict
detection and workload balance. Pure computation, no I/O.
"""

from .core.constants import (
    ConflictKind, Priority, ScoringWeights, Severity, TimeOfDayHint, WorkloadIntensity,
)
from .core.entities import (
    Assignment, CandidateSlot, Conflict, DayWorkload, FocusBlock, OptimizationResult, Preferences, Task,
)
from .core.exceptions import SchedulingError, ValidationError
from .core.free_pool import FreeWindowPool
from .core.scheduler import GreedyScheduler, generate
from .core.time_window import TimeWindow
from .scoring.hints import HintClassifier, KeywordHintClassifier

__version__ = "1.0.0"
