"""
Time-of-day hint classification.

The scorer never inspects task titles itself. A classifier turns a task into
a TimeOfDayHint and the scorer only looks at the hint.
"""

from typing import Sequence, Tuple

from ..core.constants import TimeOfDayHint
from ..core.entities import Task


class HintClassifier:
    """Interface for anything that can infer a time-of-day hint for a task."""

    def classify(self, task: Task) -> TimeOfDayHint:
        raise NotImplementedError


# Checked in order, first match wins
DEFAULT_KEYWORDS: Tuple[Tuple[str, TimeOfDayHint], ...] = (
    ("breakfast", TimeOfDayHint.BREAKFAST),
    ("brunch", TimeOfDayHint.LATE_MORNING),
    ("lunch", TimeOfDayHint.LUNCH),
    ("dinner", TimeOfDayHint.DINNER),
    ("supper", TimeOfDayHint.DINNER),
    ("morning", TimeOfDayHint.BREAKFAST),
    ("afternoon", TimeOfDayHint.AFTERNOON),
    ("evening", TimeOfDayHint.EVENING),
    ("tonight", TimeOfDayHint.EVENING),
)


class KeywordHintClassifier(HintClassifier):
    """
    Infer a hint from keywords in the title. An explicit task.time_of_day
    always wins over inference. Tasks matching nothing are treated as ANY.
    """

    def __init__(self, keywords: Sequence[Tuple[str, TimeOfDayHint]] = DEFAULT_KEYWORDS):
        self.keywords = tuple((keyword.lower(), hint) for keyword, hint in keywords)

    def classify(self, task: Task) -> TimeOfDayHint:
        if task.time_of_day:
            return TimeOfDayHint(task.time_of_day)
        title = (task.title or "").lower()
        for keyword, hint in self.keywords:
            if keyword in title:
                return hint
        return TimeOfDayHint.ANY


DEFAULT_CLASSIFIER = KeywordHintClassifier()
