"""
Exceptions raised by the scheduling engine.
"""


class SchedulingError(Exception):
    """Base class for scheduling engine failures."""


class ValidationError(SchedulingError, ValueError):
    """Raised before any scoring when the caller's input is malformed."""
