import logging
from functools import partial
from typing import List, Optional

from dateutil.parser import isoparse

from .celery_app import celery_app
from .database import SessionLocal
from .scheduling import ValidationError
from .schemas import TimeWindowSchema
from .services.calendar_provider import CalendarProviderError, calendar_provider_for_user
from .services.narrative import get_default_narrator
from .services.scheduler_service import SchedulerService, SettingsNotFoundError
from .store import SQLAlchemyKeyValueStore

logger = logging.getLogger(__name__)


def build_service() -> SchedulerService:
    store = SQLAlchemyKeyValueStore(SessionLocal)
    return SchedulerService(
        store=store,
        narrator=get_default_narrator(),
        provider_factory=partial(calendar_provider_for_user, store),
    )


@celery_app.task(name="schedulex.celery_tasks.optimize_stored_schedule")
def optimize_stored_schedule(user_key: str, range_start: str, range_end: str,
                             busy_intervals: Optional[List[dict]] = None,
                             calendar_ids: Optional[List[str]] = None) -> Optional[dict]:
    """
    Run an optimization for stored tasks in the background. The result is
    cached in the store; a later run overwrites an earlier one.
    """
    logger.info(f"🎯 Starting background optimization for {user_key}")
    try:
        start = isoparse(range_start)
        end = isoparse(range_end)
    except ValueError as e:
        logger.error(f"❌ Bad planning range for {user_key}: {e}")
        return None

    service = build_service()
    try:
        result = service.optimize_stored(
            user_key,
            start,
            end,
            busy_intervals=[TimeWindowSchema.model_validate(item) for item in busy_intervals or []],
            calendar_ids=calendar_ids,
        )
    except SettingsNotFoundError as e:
        logger.warning(f"Skipping optimization for {user_key}: {e}")
        return None
    except ValidationError as e:
        logger.error(f"❌ Invalid stored input for {user_key}: {e}")
        return None
    except CalendarProviderError as e:
        logger.error(f"❌ Calendar fetch failed for {user_key}: {e}")
        return None

    logger.info(f"✅ Optimized schedule for {user_key}: {result.scheduled_tasks}/{result.total_tasks} tasks placed")
    return result.model_dump(mode="json")
