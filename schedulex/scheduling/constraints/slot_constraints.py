"""
Hard constraints a candidate slot must pass before it is scored.
"""

import logging
from datetime import datetime, timedelta, tzinfo
from typing import Optional

from ..core.entities import Task
from ..core.time_window import TimeWindow
from ..utils.time_utils import local_date

logger = logging.getLogger(__name__)


def fits_duration(task: Task, slot: TimeWindow, buffer_minutes: int) -> bool:
    return slot.duration() >= timedelta(minutes=task.duration_minutes + buffer_minutes)


def meets_deadline(task: Task, slot: TimeWindow, tz: Optional[tzinfo] = None,
                   range_start: Optional[datetime] = None) -> bool:
    """
    A deadline that passed before the planning range opens admits no slot.
    A slot on the deadline day is always legal, even if the task runs past the
    deadline instant: the deadline is a target time on its own day. Any other
    slot must let the task finish by the deadline.
    """
    if not task.deadline:
        return True
    if range_start is not None and task.deadline < range_start:
        return False
    if local_date(slot.start, tz) == local_date(task.deadline, tz):
        return True
    return slot.start + timedelta(minutes=task.duration_minutes) <= task.deadline


def is_slot_allowed(task: Task, slot: TimeWindow, buffer_minutes: int, tz: Optional[tzinfo] = None,
                    range_start: Optional[datetime] = None) -> bool:
    """
    Check if a slot is allowed for this task based on strict rules.
    """
    # Rule 1: the slot must hold the task plus its buffer
    if not fits_duration(task, slot, buffer_minutes):
        logger.debug(f"Slot {slot} rejected for '{task.title}': shorter than "
                     f"{task.duration_minutes}+{buffer_minutes} minutes")
        return False

    # Rule 2: deadline
    if not meets_deadline(task, slot, tz, range_start):
        logger.debug(f"Slot {slot} rejected for '{task.title}': finishes after deadline {task.deadline}")
        return False

    return True
