import os

# Keep tests off the on-disk database and away from the OpenAI API
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = ""

from datetime import datetime

import pytest

from schedulex.scheduling import Preferences, Priority, Task

MONDAY = datetime(2024, 6, 10)


@pytest.fixture
def preferences():
    """Mon-Fri, 09:00-17:00, 15 minute buffer, hourly candidates."""
    return Preferences()


@pytest.fixture
def monday_range():
    return MONDAY, MONDAY.replace(hour=23, minute=59)


@pytest.fixture
def make_task():
    def _make_task(task_id, title=None, duration=60, priority=Priority.MEDIUM, deadline=None, **kwargs):
        return Task(
            id=task_id,
            title=title or f"Task {task_id}",
            duration_minutes=duration,
            priority=priority,
            deadline=deadline,
            **kwargs
        )
    return _make_task
