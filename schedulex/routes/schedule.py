"""
Schedule optimization endpoints
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_scheduler_service
from ..scheduling import ValidationError
from ..schemas import (
    ApplyScheduleRequest, EventRefOut, OptimizationResultOut, OptimizeRequest, StoredOptimizeRequest,
)
from ..services.calendar_provider import CalendarProviderError
from ..services.scheduler_service import SchedulerService, SettingsNotFoundError

router = APIRouter()


@router.post("/optimize", response_model=OptimizationResultOut)
def optimize_schedule(
    request: OptimizeRequest,
    service: SchedulerService = Depends(get_scheduler_service),
):
    """
    Optimize a schedule from the tasks, busy intervals and preferences in the body.
    Nothing is stored.
    """
    try:
        return service.optimize(
            request.tasks,
            request.busy_intervals,
            request.preferences,
            request.range_start,
            request.range_end,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/{user_key}/optimize", response_model=OptimizationResultOut)
def optimize_stored_schedule(
    user_key: str,
    request: StoredOptimizeRequest,
    service: SchedulerService = Depends(get_scheduler_service),
):
    """Optimize using the saved tasks and preferences for a user, and cache the result."""
    try:
        return service.optimize_stored(
            user_key,
            request.range_start,
            request.range_end,
            busy_intervals=request.busy_intervals,
            calendar_ids=request.calendar_ids,
        )
    except SettingsNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except CalendarProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/{user_key}/latest", response_model=OptimizationResultOut)
def get_latest_schedule(
    user_key: str,
    service: SchedulerService = Depends(get_scheduler_service),
):
    try:
        return service.latest_result(user_key)
    except SettingsNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{user_key}/apply", response_model=List[EventRefOut])
def apply_schedule(
    user_key: str,
    request: Optional[ApplyScheduleRequest] = None,
    service: SchedulerService = Depends(get_scheduler_service),
):
    """Create calendar events for the latest cached result."""
    calendar_id = request.calendar_id if request else "primary"
    try:
        result = service.latest_result(user_key)
        refs = service.apply_assignments(user_key, calendar_id, result)
    except SettingsNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CalendarProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [
        EventRefOut(task_id=assignment.task_id, calendar_id=ref.calendar_id, event_id=ref.event_id)
        for assignment, ref in zip(result.assignments, refs)
    ]
