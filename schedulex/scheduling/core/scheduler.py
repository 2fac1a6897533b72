"""
Main scheduler class that orchestrates a single optimization run.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, NamedTuple, Optional, Tuple

from ..algorithms.aggregation import compute_free_windows
from ..algorithms.segmentation import segment_window
from ..analysis.conflicts import detect_conflicts
from ..analysis.workload import calculate_workload_balance
from ..constraints.slot_constraints import is_slot_allowed
from ..scoring.hints import DEFAULT_CLASSIFIER, HintClassifier
from ..scoring.priority_scoring import prioritize_tasks
from ..scoring.slot_scoring import calculate_slot_score, score_to_confidence
from ..utils.time_utils import resolve_timezone
from .constants import DEFAULT_WEIGHTS, MAX_ALTERNATIVES, ScoringWeights
from .entities import Assignment, CandidateSlot, OptimizationResult, Preferences, Task
from .free_pool import FreeWindowPool
from .reasoning import build_considerations, fallback_reasoning
from .time_window import TimeWindow
from .validation import validate_inputs

logger = logging.getLogger(__name__)


class RankedCandidate(NamedTuple):
    candidate: CandidateSlot
    source: TimeWindow


class Placement(NamedTuple):
    task: Task
    window: TimeWindow
    score: int
    alternatives: Tuple[TimeWindow, ...]


# ================================
# INITIALIZATION & SETUP
# ================================

class GreedyScheduler:
    """
    Deadline-aware greedy assigner.

    Tasks are taken in priority order; each one is placed in the best scoring
    candidate slot drawn from the current free-window pool, and the pool that
    remains is handed to the next task. The scheduler keeps no state between
    generate() calls.
    """
    def __init__(self, preferences: Preferences, weights: Optional[ScoringWeights] = None,
                 classifier: Optional[HintClassifier] = None, narrator=None):
        self.preferences = preferences
        self.weights = weights or DEFAULT_WEIGHTS
        self.classifier = classifier or DEFAULT_CLASSIFIER
        self.narrator = narrator

    @property
    def tz(self):
        return resolve_timezone(self.preferences.timezone)

    def generate(self, tasks: Iterable[Task], busy_intervals: Iterable[TimeWindow],
                 range_start: datetime, range_end: datetime) -> OptimizationResult:
        tasks = list(tasks)
        busy_intervals = list(busy_intervals)
        validate_inputs(tasks, busy_intervals, self.preferences, range_start, range_end)

        pending = [task for task in tasks if not task.completed]
        free_windows = compute_free_windows(busy_intervals, range_start, range_end, self.preferences, pending)
        pool = FreeWindowPool(free_windows)
        logger.info(f"🎯 Scheduling {len(pending)} tasks into {len(pool)} free windows "
                    f"({range_start.isoformat()} to {range_end.isoformat()})")

        placements, unassigned = self.assign_all(prioritize_tasks(pending), pool, range_start)

        assignments = [self._build_assignment(placement) for placement in placements]
        conflicts = detect_conflicts(assignments, pending)
        workload = calculate_workload_balance(assignments, pending, range_start, range_end, self.tz)

        logger.info(f"✅ Scheduled {len(assignments)}/{len(pending)} tasks, "
                    f"{len(unassigned)} unassigned, {len(conflicts)} conflicts")
        return OptimizationResult(
            assignments=assignments,
            unassigned_tasks=unassigned,
            conflicts=conflicts,
            workload=workload,
        )

# ================================
# CORE SCHEDULING LOGIC
# ================================

    def assign_all(self, ordered_tasks: List[Task], pool: FreeWindowPool,
                   range_start: Optional[datetime] = None) -> Tuple[List[Placement], List[Task]]:
        placements: List[Placement] = []
        unassigned: List[Task] = []
        for task in ordered_tasks:
            placement, pool = self.assign_task(task, pool, range_start)
            if placement is None:
                logger.info(f"❌ No suitable slot for '{task.title}' ({task.id})")
                unassigned.append(task)
            else:
                placements.append(placement)
        return placements, unassigned

    def assign_task(self, task: Task, pool: FreeWindowPool,
                    range_start: Optional[datetime] = None) -> Tuple[Optional[Placement], FreeWindowPool]:
        """
        Place one task. Returns the placement (or None) and the pool left for
        the next task; the pool passed in is never modified.
        """
        ranked = self.rank_candidates(task, pool, range_start)
        if not ranked:
            return None, pool

        best = ranked[0]
        window = self._size_to_task(task, best.candidate.window)
        alternatives = tuple(
            self._size_to_task(task, runner_up.candidate.window)
            for runner_up in ranked[1:MAX_ALTERNATIVES + 1]
        )
        logger.debug(f"Committing '{task.title}' to {window} with score {best.candidate.score}")
        return Placement(task, window, best.candidate.score, alternatives), pool.split(best.source, window)

# ================================
# SLOT FINDING & OPTIMIZATION
# ================================

    def rank_candidates(self, task: Task, pool: FreeWindowPool,
                        range_start: Optional[datetime] = None) -> List[RankedCandidate]:
        """
        Segment every free window, drop candidates that break a hard
        constraint, and return the rest best first (earliest start on ties).
        """
        hint = self.classifier.classify(task)
        buffer_minutes = self.preferences.buffer_minutes
        anchors = (task.deadline,) if task.deadline else ()
        ranked: List[RankedCandidate] = []
        for free_window in pool:
            for slot in segment_window(free_window, task.duration_minutes, buffer_minutes,
                                       self.preferences.slot_granularity_minutes, anchors):
                if not is_slot_allowed(task, slot, buffer_minutes, self.tz, range_start):
                    continue
                score = calculate_slot_score(task, slot, self.preferences, self.weights, hint, self.tz)
                ranked.append(RankedCandidate(CandidateSlot(slot, task, score), free_window))

        ranked.sort(key=lambda item: (-item.candidate.score, item.candidate.window.start))
        return ranked

    def _size_to_task(self, task: Task, slot: TimeWindow) -> TimeWindow:
        return TimeWindow(slot.start, slot.start + timedelta(minutes=task.duration_minutes))

# ================================
# REASONING
# ================================

    def _build_assignment(self, placement: Placement) -> Assignment:
        return Assignment(
            task_id=placement.task.id,
            window=placement.window,
            confidence=score_to_confidence(placement.score),
            score=placement.score,
            reasoning=self.explain(placement.task, placement.window, placement.score),
            alternatives=placement.alternatives,
            considerations=build_considerations(placement.task, placement.window),
        )

    def explain(self, task: Task, window: TimeWindow, score: int) -> str:
        """Ask the narrative generator, falling back to a templated explanation."""
        if self.narrator is not None:
            try:
                text = self.narrator.explain(task, window, score)
            except Exception as e:
                logger.warning(f"Narrative generator failed for '{task.title}', using fallback: {e}")
            else:
                if text and text.strip():
                    return text.strip()
                logger.warning(f"Narrative generator returned nothing for '{task.title}', using fallback")
        return fallback_reasoning(task, window, self.tz)

    def __repr__(self):
        return (f"GreedyScheduler(buffer={self.preferences.buffer_minutes}min, "
                f"granularity={self.preferences.slot_granularity_minutes}min)")


def generate(tasks: Iterable[Task], busy_intervals: Iterable[TimeWindow], preferences: Preferences,
             range_start: datetime, range_end: datetime, narrator=None,
             weights: Optional[ScoringWeights] = None,
             classifier: Optional[HintClassifier] = None) -> OptimizationResult:
    """Run one optimization from caller-supplied inputs to an OptimizationResult."""
    scheduler = GreedyScheduler(preferences, weights=weights, classifier=classifier, narrator=narrator)
    return scheduler.generate(tasks, busy_intervals, range_start, range_end)
