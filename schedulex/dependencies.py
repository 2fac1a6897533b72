"""
FastAPI dependencies for the settings store, calendar providers and scheduler service.
"""

from functools import partial
from typing import Callable, Optional

from fastapi import Depends

from .database import SessionLocal
from .services.calendar_provider import CalendarProvider, calendar_provider_for_user
from .services.narrative import get_default_narrator
from .services.scheduler_service import SchedulerService
from .store import KeyValueStore, SQLAlchemyKeyValueStore

CalendarProviderFactory = Callable[[str], Optional[CalendarProvider]]


def get_store() -> KeyValueStore:
    return SQLAlchemyKeyValueStore(SessionLocal)


def get_calendar_provider_factory(store: KeyValueStore = Depends(get_store)) -> CalendarProviderFactory:
    """Per-user provider built from the calendar tokens saved under that user key."""
    return partial(calendar_provider_for_user, store)


def get_scheduler_service(
    store: KeyValueStore = Depends(get_store),
    provider_factory: CalendarProviderFactory = Depends(get_calendar_provider_factory),
) -> SchedulerService:
    return SchedulerService(store=store, narrator=get_default_narrator(), provider_factory=provider_factory)
