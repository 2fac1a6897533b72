"""
Key-value settings store owned by the caller of the scheduling engine.

The engine itself never touches storage. Services and routes receive a
KeyValueStore and use the helpers below to load preferences and tasks and to
cache optimization results per user key.
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from .models import Setting
from .schemas import CalendarTokensSchema, OptimizationResultOut, PreferencesSchema, TaskSchema

logger = logging.getLogger(__name__)


class KeyValueStore:
    """get/set/delete of JSON-serializable values by key."""

    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any):
        raise NotImplementedError

    def delete(self, key: str):
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self):
        self._data: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any):
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str):
        self._data.pop(key, None)


class SQLAlchemyKeyValueStore(KeyValueStore):
    """Persists each value as a JSON row in the settings table."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, key: str, default: Any = None) -> Any:
        db = self.session_factory()
        try:
            setting = db.query(Setting).filter(Setting.key == key).first()
            if setting is None:
                return default
            return setting.value
        finally:
            db.close()

    def set(self, key: str, value: Any):
        db = self.session_factory()
        try:
            setting = db.query(Setting).filter(Setting.key == key).first()
            if setting is None:
                db.add(Setting(key=key, value=value))
            else:
                setting.value = value
            db.commit()
        finally:
            db.close()

    def delete(self, key: str):
        db = self.session_factory()
        try:
            db.query(Setting).filter(Setting.key == key).delete()
            db.commit()
        finally:
            db.close()


# ----------------- Typed helpers ---------------------

def _key(user_key: str, name: str) -> str:
    return f"{user_key}:{name}"


def load_preferences(store: KeyValueStore, user_key: str) -> Optional[PreferencesSchema]:
    data = store.get(_key(user_key, "preferences"))
    if data is None:
        return None
    return PreferencesSchema.model_validate(data)


def save_preferences(store: KeyValueStore, user_key: str, preferences: PreferencesSchema):
    store.set(_key(user_key, "preferences"), preferences.model_dump(mode="json"))


def load_tasks(store: KeyValueStore, user_key: str) -> List[TaskSchema]:
    data = store.get(_key(user_key, "tasks"), [])
    return [TaskSchema.model_validate(item) for item in data]


def save_tasks(store: KeyValueStore, user_key: str, tasks: List[TaskSchema]):
    store.set(_key(user_key, "tasks"), [task.model_dump(mode="json") for task in tasks])


def load_result(store: KeyValueStore, user_key: str) -> Optional[OptimizationResultOut]:
    data = store.get(_key(user_key, "latest_result"))
    if data is None:
        return None
    return OptimizationResultOut.model_validate(data)


def save_result(store: KeyValueStore, user_key: str, result: OptimizationResultOut):
    # Last write wins: a newer run simply replaces the cached result
    store.set(_key(user_key, "latest_result"), result.model_dump(mode="json"))
    logger.info(f"Cached optimization result for {user_key}")


def load_calendar_tokens(store: KeyValueStore, user_key: str) -> Optional[CalendarTokensSchema]:
    data = store.get(_key(user_key, "calendar_tokens"))
    if data is None:
        return None
    return CalendarTokensSchema.model_validate(data)


def save_calendar_tokens(store: KeyValueStore, user_key: str, tokens: CalendarTokensSchema):
    store.set(_key(user_key, "calendar_tokens"), tokens.model_dump(mode="json"))


def delete_calendar_tokens(store: KeyValueStore, user_key: str):
    store.delete(_key(user_key, "calendar_tokens"))
