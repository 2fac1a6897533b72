from datetime import datetime

import pytest

from schedulex.scheduling import Assignment, ConflictKind, Severity, TimeWindow, WorkloadIntensity
from schedulex.scheduling.analysis.conflicts import detect_conflicts
from schedulex.scheduling.analysis.workload import calculate_workload_balance, classify_workload_intensity


def at(hour, minute=0, day=10):
    return datetime(2024, 6, day, hour, minute)


def assign(task_id, start, end):
    return Assignment(task_id=task_id, window=TimeWindow(start, end), confidence=1.0, score=100)


class TestConflicts:
    def test_overlap_reported_with_both_ids(self, make_task):
        tasks = [make_task("a", title="Alpha"), make_task("b", title="Beta")]
        conflicts = detect_conflicts([assign("a", at(9), at(10)), assign("b", at(9, 30), at(10, 30))], tasks)
        assert len(conflicts) == 1
        conflict = conflicts[0]
        assert conflict.kind == ConflictKind.OVERLAP
        assert conflict.affected_task_ids == ("a", "b")
        assert conflict.severity == Severity.HIGH
        assert '"Alpha"' in conflict.description and '"Beta"' in conflict.description

    def test_touching_windows_do_not_conflict(self, make_task):
        tasks = [make_task("a"), make_task("b")]
        assert detect_conflicts([assign("a", at(9), at(10)), assign("b", at(10), at(11))], tasks) == []

    def test_deadline_overrun(self, make_task):
        tasks = [make_task("a", duration=30, deadline=at(14))]
        conflicts = detect_conflicts([assign("a", at(14), at(14, 30))], tasks)
        assert [c.kind for c in conflicts] == [ConflictKind.DEADLINE_CONFLICT]
        assert conflicts[0].affected_task_ids == ("a",)

    def test_overlaps_listed_before_deadline_conflicts(self, make_task):
        tasks = [make_task("a", deadline=at(9, 30)), make_task("b")]
        conflicts = detect_conflicts([assign("a", at(9), at(10)), assign("b", at(9, 30), at(10, 30))], tasks)
        assert [c.kind for c in conflicts] == [ConflictKind.OVERLAP, ConflictKind.DEADLINE_CONFLICT]


class TestWorkload:
    @pytest.mark.parametrize("hours,intensity", [
        (0, WorkloadIntensity.LIGHT),
        (2, WorkloadIntensity.LIGHT),
        (2.5, WorkloadIntensity.MODERATE),
        (4, WorkloadIntensity.MODERATE),
        (6, WorkloadIntensity.HEAVY),
        (6.5, WorkloadIntensity.OVERLOADED),
    ])
    def test_classify(self, hours, intensity):
        assert classify_workload_intensity(hours) == intensity

    def test_days_without_assignments_are_included(self, make_task):
        tasks = [make_task("a", duration=90), make_task("b", duration=30)]
        assignments = [assign("a", at(9, day=10), at(10, 30, day=10)), assign("b", at(9, day=12), at(9, 30, day=12))]
        workload = calculate_workload_balance(assignments, tasks, at(0, day=10), at(23, day=12))

        assert [(d.date.day, d.hours, d.task_count) for d in workload] == [(10, 1.5, 1), (11, 0.0, 0), (12, 0.5, 1)]
        assert all(d.intensity == WorkloadIntensity.LIGHT for d in workload)

    def test_heavy_day(self, make_task):
        tasks = [make_task(str(i), duration=120) for i in range(3)]
        assignments = [assign(str(i), at(9 + 2 * i), at(11 + 2 * i)) for i in range(3)]
        workload = calculate_workload_balance(assignments, tasks, at(0), at(23))
        assert workload[0].hours == 6.0
        assert workload[0].intensity == WorkloadIntensity.HEAVY

    def test_range_ending_at_midnight_stops_the_day_before(self, make_task):
        workload = calculate_workload_balance([], [], at(0, day=10), at(0, day=12))
        assert [d.date.day for d in workload] == [10, 11]
