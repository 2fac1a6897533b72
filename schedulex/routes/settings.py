"""
Preferences and task list storage per user key
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_store
from ..schemas import CalendarConnectionsOut, CalendarTokensSchema, PreferencesSchema, TaskSchema
from ..store import (
    KeyValueStore, delete_calendar_tokens, load_calendar_tokens, load_preferences, load_tasks, save_calendar_tokens,
    save_preferences, save_tasks,
)

router = APIRouter()


@router.get("/{user_key}/preferences", response_model=PreferencesSchema)
def get_preferences(user_key: str, store: KeyValueStore = Depends(get_store)):
    preferences = load_preferences(store, user_key)
    if preferences is None:
        raise HTTPException(status_code=404, detail=f"No preferences saved for '{user_key}'")
    return preferences


@router.put("/{user_key}/preferences", response_model=PreferencesSchema)
def put_preferences(user_key: str, preferences: PreferencesSchema, store: KeyValueStore = Depends(get_store)):
    save_preferences(store, user_key, preferences)
    return preferences


@router.get("/{user_key}/tasks", response_model=List[TaskSchema])
def get_tasks(user_key: str, store: KeyValueStore = Depends(get_store)):
    return load_tasks(store, user_key)


@router.put("/{user_key}/tasks", response_model=List[TaskSchema])
def put_tasks(user_key: str, tasks: List[TaskSchema], store: KeyValueStore = Depends(get_store)):
    ids = [task.id for task in tasks]
    if len(ids) != len(set(ids)):
        raise HTTPException(status_code=422, detail="Task ids must be unique")
    save_tasks(store, user_key, tasks)
    return tasks


@router.get("/{user_key}/calendar-tokens", response_model=CalendarConnectionsOut)
def get_calendar_connections(user_key: str, store: KeyValueStore = Depends(get_store)):
    """Which calendar backends are connected. Tokens themselves are never returned."""
    return CalendarConnectionsOut.from_tokens(load_calendar_tokens(store, user_key))


@router.put("/{user_key}/calendar-tokens", response_model=CalendarConnectionsOut)
def put_calendar_tokens(user_key: str, tokens: CalendarTokensSchema, store: KeyValueStore = Depends(get_store)):
    """Save already-issued OAuth tokens used for free/busy lookups and applying schedules."""
    save_calendar_tokens(store, user_key, tokens)
    return CalendarConnectionsOut.from_tokens(tokens)


@router.delete("/{user_key}/calendar-tokens", status_code=204)
def delete_calendar_connections(user_key: str, store: KeyValueStore = Depends(get_store)):
    delete_calendar_tokens(store, user_key)
