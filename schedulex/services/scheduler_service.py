"""
Scheduler service: the I/O around one engine run.

Loads stored preferences and tasks, fetches busy intervals from a calendar
provider, runs the engine, caches the result and applies it back to the
calendar. Everything blocking happens here, before or after generate().
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from ..scheduling import TimeWindow, generate
from ..schemas import OptimizationResultOut, PreferencesSchema, TaskSchema, TimeWindowSchema
from ..store import KeyValueStore, load_preferences, load_result, load_tasks, save_result
from .calendar_provider import CalendarProvider, CalendarProviderError, EventRef
from .narrative import NarrativeGenerator

logger = logging.getLogger(__name__)


class SettingsNotFoundError(LookupError):
    """The store has nothing saved for the requested user key."""


class SchedulerService:
    """Service wiring the stateless engine to storage and external collaborators."""

    def __init__(self, store: KeyValueStore, calendar_provider: Optional[CalendarProvider] = None,
                 narrator: Optional[NarrativeGenerator] = None,
                 provider_factory: Optional[Callable[[str], Optional[CalendarProvider]]] = None):
        self.store = store
        self.calendar_provider = calendar_provider
        self.narrator = narrator
        # Builds a per-user provider (from stored tokens) when no fixed provider is given
        self.provider_factory = provider_factory

    def optimize(self, tasks: List[TaskSchema], busy_intervals: List[TimeWindowSchema],
                 preferences: PreferencesSchema, range_start: datetime, range_end: datetime) -> OptimizationResultOut:
        """Stateless optimization from request data. Raises ValidationError on bad input."""
        return self._run(
            tasks,
            [window.to_entity() for window in busy_intervals],
            preferences,
            range_start,
            range_end,
        )

    def optimize_stored(self, user_key: str, range_start: datetime, range_end: datetime,
                        busy_intervals: Optional[List[TimeWindowSchema]] = None,
                        calendar_ids: Optional[List[str]] = None) -> OptimizationResultOut:
        preferences = load_preferences(self.store, user_key)
        if preferences is None:
            raise SettingsNotFoundError(f"No preferences saved for '{user_key}'")
        tasks = load_tasks(self.store, user_key)

        busy = [window.to_entity() for window in busy_intervals or []]
        if calendar_ids:
            busy.extend(self.fetch_busy_intervals(calendar_ids, range_start, range_end, user_key))

        result = self._run(tasks, busy, preferences, range_start, range_end)
        save_result(self.store, user_key, result)
        return result

    def latest_result(self, user_key: str) -> OptimizationResultOut:
        result = load_result(self.store, user_key)
        if result is None:
            raise SettingsNotFoundError(f"No optimization result cached for '{user_key}'")
        return result

    def fetch_busy_intervals(self, calendar_ids: List[str], range_start: datetime,
                             range_end: datetime, user_key: Optional[str] = None) -> List[TimeWindow]:
        provider = self.calendar_provider_for(user_key)
        return provider.get_busy_intervals(calendar_ids, range_start, range_end)

    def apply_assignments(self, user_key: str, calendar_id: str,
                          result: Optional[OptimizationResultOut] = None) -> List[EventRef]:
        """Create one calendar event per assignment of the given (or latest cached) result."""
        provider = self.calendar_provider_for(user_key)
        if result is None:
            result = self.latest_result(user_key)

        titles = {task.id: task.title for task in load_tasks(self.store, user_key)}
        preferences = load_preferences(self.store, user_key)
        tz_name = preferences.timezone if preferences else None

        refs = []
        for assignment in result.assignments:
            ref = provider.create_event(
                calendar_id,
                TimeWindow(assignment.start, assignment.end),
                {
                    "task_id": assignment.task_id,
                    "title": titles.get(assignment.task_id, assignment.task_id),
                    "reasoning": assignment.reasoning,
                    "timezone": tz_name,
                },
            )
            refs.append(ref)
        logger.info(f"Applied {len(refs)} assignments to calendar {calendar_id} for {user_key}")
        return refs

    def calendar_provider_for(self, user_key: Optional[str]) -> CalendarProvider:
        if self.calendar_provider is not None:
            return self.calendar_provider
        provider = None
        if self.provider_factory is not None and user_key is not None:
            provider = self.provider_factory(user_key)
        if provider is None:
            raise CalendarProviderError(f"No calendar connected for '{user_key}'")
        return provider

    def _run(self, tasks: List[TaskSchema], busy: List[TimeWindow], preferences: PreferencesSchema,
             range_start: datetime, range_end: datetime) -> OptimizationResultOut:
        result = generate(
            [task.to_entity() for task in tasks],
            busy,
            preferences.to_entity(),
            range_start,
            range_end,
            narrator=self.narrator,
        )
        return OptimizationResultOut.from_entity(result)
