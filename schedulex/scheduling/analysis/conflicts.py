"""
Post-hoc conflict detection over committed assignments.
"""

import logging
from typing import Dict, List, Sequence

from ..core.constants import ConflictKind, Severity
from ..core.entities import Assignment, Conflict, Task

logger = logging.getLogger(__name__)


def detect_overlaps(assignments: Sequence[Assignment], tasks_by_id: Dict[str, Task]) -> List[Conflict]:
    """Check every pair of assignments for time overlap. O(n^2), task counts are small."""
    conflicts = []
    for i in range(len(assignments)):
        for j in range(i + 1, len(assignments)):
            first, second = assignments[i], assignments[j]
            if first.window.overlaps(second.window):
                conflicts.append(Conflict(
                    kind=ConflictKind.OVERLAP,
                    description=(f'Tasks "{_title(first.task_id, tasks_by_id)}" and '
                                 f'"{_title(second.task_id, tasks_by_id)}" have overlapping time slots'),
                    affected_task_ids=(first.task_id, second.task_id),
                    severity=Severity.HIGH,
                ))
    return conflicts


def detect_deadline_conflicts(assignments: Sequence[Assignment], tasks_by_id: Dict[str, Task]) -> List[Conflict]:
    conflicts = []
    for assignment in assignments:
        task = tasks_by_id.get(assignment.task_id)
        if task is None or task.deadline is None:
            continue
        if assignment.window.end > task.deadline:
            conflicts.append(Conflict(
                kind=ConflictKind.DEADLINE_CONFLICT,
                description=(f'Task "{task.title}" is scheduled to finish at '
                             f'{assignment.window.end.isoformat()}, after its deadline {task.deadline.isoformat()}'),
                affected_task_ids=(task.id,),
                severity=Severity.HIGH,
            ))
    return conflicts


def detect_conflicts(assignments: Sequence[Assignment], tasks: Sequence[Task]) -> List[Conflict]:
    """Overlaps first, then deadline overruns. Conflicts are reported, never dropped."""
    tasks_by_id = {task.id: task for task in tasks}
    conflicts = detect_overlaps(assignments, tasks_by_id) + detect_deadline_conflicts(assignments, tasks_by_id)
    if conflicts:
        logger.warning(f"Detected {len(conflicts)} scheduling conflicts")
    return conflicts


def _title(task_id: str, tasks_by_id: Dict[str, Task]) -> str:
    task = tasks_by_id.get(task_id)
    return task.title if task else task_id
