"""
Calendar provider adapters. The engine never calls these; the service layer
fetches busy intervals before a run and creates events after one.
"""

import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

import pytz
import requests
from dateutil.parser import isoparse
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..config import (
    CALENDAR_HTTP_TIMEOUT, GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_TOKEN_URI, MICROSOFT_GRAPH_URL,
)
from ..scheduling import TimeWindow
from ..store import KeyValueStore, load_calendar_tokens

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
]

KNOWN_BACKENDS = ("google", "outlook")


class EventRef(NamedTuple):
    calendar_id: str
    event_id: str
    html_link: Optional[str] = None


class CalendarProviderError(Exception):
    """A calendar backend call failed."""


class CalendarProvider:
    def get_busy_intervals(self, calendar_ids: List[str], start: datetime, end: datetime) -> List[TimeWindow]:
        raise NotImplementedError

    def create_event(self, calendar_id: str, window: TimeWindow, metadata: Dict[str, Any]) -> EventRef:
        raise NotImplementedError


def _rfc3339(moment: datetime) -> str:
    # naive datetimes are treated as UTC
    if moment.tzinfo is None:
        return moment.isoformat() + "Z"
    return moment.isoformat()


def _match_awareness(moment: datetime, naive: bool) -> datetime:
    """Bring a backend timestamp onto the caller's axis: naive UTC for naive requests."""
    if naive:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


# ================================
# GOOGLE CALENDAR
# ================================

class GoogleCalendarProvider(CalendarProvider):
    """Google Calendar v3 through googleapiclient, from already-issued OAuth credentials."""

    def __init__(self, credentials: Optional[Credentials] = None, service=None):
        if service is None:
            service = build("calendar", "v3", credentials=credentials, cache_discovery=False)
        self.service = service

    @classmethod
    def from_tokens(cls, access_token: str, refresh_token: Optional[str] = None) -> "GoogleCalendarProvider":
        creds = Credentials(
            token=access_token,
            refresh_token=refresh_token,
            token_uri=GOOGLE_TOKEN_URI,
            client_id=GOOGLE_CLIENT_ID,
            client_secret=GOOGLE_CLIENT_SECRET,
            scopes=SCOPES,
        )
        return cls(credentials=creds)

    def get_busy_intervals(self, calendar_ids: List[str], start: datetime, end: datetime) -> List[TimeWindow]:
        body = {
            "timeMin": _rfc3339(start),
            "timeMax": _rfc3339(end),
            "items": [{"id": calendar_id} for calendar_id in calendar_ids],
        }
        try:
            response = self.service.freebusy().query(body=body).execute()
        except HttpError as e:
            raise CalendarProviderError(f"Free/busy query failed for {calendar_ids}: {e}") from e

        naive = start.tzinfo is None
        intervals = []
        for calendar_id, calendar in response.get("calendars", {}).items():
            for error in calendar.get("errors", []):
                logger.warning(f"Calendar {calendar_id} reported {error.get('reason')}")
            for busy in calendar.get("busy", []):
                busy_start = _match_awareness(isoparse(busy["start"]), naive)
                busy_end = _match_awareness(isoparse(busy["end"]), naive)
                if busy_end > busy_start:
                    intervals.append(TimeWindow(busy_start, busy_end))

        logger.info(f"Fetched {len(intervals)} busy intervals from {len(calendar_ids)} Google calendars")
        return intervals

    def create_event(self, calendar_id: str, window: TimeWindow, metadata: Dict[str, Any]) -> EventRef:
        start = {"dateTime": _rfc3339(window.start)}
        end = {"dateTime": _rfc3339(window.end)}
        if metadata.get("timezone"):
            start["timeZone"] = end["timeZone"] = metadata["timezone"]
        body = {
            "summary": metadata.get("title", "Scheduled task"),
            "description": metadata.get("reasoning", ""),
            "start": start,
            "end": end,
            "extendedProperties": {"private": {"schedulexTaskId": str(metadata.get("task_id", ""))}},
        }
        try:
            event = self.service.events().insert(calendarId=calendar_id, body=body).execute()
        except HttpError as e:
            raise CalendarProviderError(f"Creating event in {calendar_id} failed: {e}") from e
        return EventRef(calendar_id=calendar_id, event_id=event["id"], html_link=event.get("htmlLink"))


# ================================
# OUTLOOK (MICROSOFT GRAPH)
# ================================

def _graph_moment(value: Dict[str, str]) -> datetime:
    """Parse a Graph dateTimeTimeZone object into an aware datetime."""
    moment = isoparse(value["dateTime"])
    if moment.tzinfo is not None:
        return moment
    zone = value.get("timeZone") or "UTC"
    if zone == "UTC":
        return moment.replace(tzinfo=timezone.utc)
    try:
        return pytz.timezone(zone).localize(moment)
    except pytz.UnknownTimeZoneError as e:
        raise CalendarProviderError(f"Graph returned unknown time zone '{zone}'") from e


def _graph_datetime(moment: datetime) -> Dict[str, str]:
    # naive datetimes are treated as UTC
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return {"dateTime": moment.isoformat(), "timeZone": "UTC"}


class OutlookCalendarProvider(CalendarProvider):
    """
    Outlook calendars through the Microsoft Graph REST API, from an
    already-issued access token. The calendar id "primary" maps to the
    user's default calendar.
    """

    def __init__(self, access_token: str, session: Optional[requests.Session] = None,
                 base_url: str = MICROSOFT_GRAPH_URL, timeout: int = CALENDAR_HTTP_TIMEOUT):
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": "Bearer " + access_token,
            "Content-Type": "application/json",
            # every dateTime in responses comes back in UTC
            "Prefer": 'outlook.timezone="UTC"',
        })
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _calendar_url(self, calendar_id: str) -> str:
        if calendar_id == "primary":
            return f"{self.base_url}/me/calendar"
        return f"{self.base_url}/me/calendars/{calendar_id}"

    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as e:
            raise CalendarProviderError(f"Graph {method} {url} failed: {e}") from e
        return response.json()

    def get_busy_intervals(self, calendar_ids: List[str], start: datetime, end: datetime) -> List[TimeWindow]:
        naive = start.tzinfo is None
        intervals = []
        for calendar_id in calendar_ids:
            url = f"{self._calendar_url(calendar_id)}/calendarView"
            params = {"startDateTime": _rfc3339(start), "endDateTime": _rfc3339(end), "$orderby": "start/dateTime"}
            while url:
                page = self._request("GET", url, params=params)
                for event in page.get("value", []):
                    if event.get("isCancelled") or event.get("showAs") == "free":
                        continue
                    busy_start = _match_awareness(_graph_moment(event["start"]), naive)
                    busy_end = _match_awareness(_graph_moment(event["end"]), naive)
                    if busy_end > busy_start:
                        intervals.append(TimeWindow(busy_start, busy_end))
                # nextLink already carries the query string
                url = page.get("@odata.nextLink")
                params = None

        logger.info(f"Fetched {len(intervals)} busy intervals from {len(calendar_ids)} Outlook calendars")
        return intervals

    def create_event(self, calendar_id: str, window: TimeWindow, metadata: Dict[str, Any]) -> EventRef:
        body = {
            "subject": metadata.get("title", "Scheduled task"),
            "body": {"contentType": "text", "content": metadata.get("reasoning", "")},
            "start": _graph_datetime(window.start),
            "end": _graph_datetime(window.end),
            "categories": ["ScheduleX"],
        }
        event = self._request("POST", f"{self._calendar_url(calendar_id)}/events", json=body)
        return EventRef(calendar_id=calendar_id, event_id=event["id"], html_link=event.get("webLink"))


# ================================
# MULTI-BACKEND ROUTING
# ================================

class CompositeCalendarProvider(CalendarProvider):
    """
    Routes calendar ids of the form "<backend>:<id>" (e.g. "outlook:primary")
    to the matching provider; bare ids go to the default backend. Busy time
    from every backend is concatenated and left to the aggregator to merge.
    """

    def __init__(self, providers: Dict[str, CalendarProvider], default: Optional[str] = None):
        if not providers:
            raise ValueError("At least one calendar provider is required")
        self.providers = dict(providers)
        self.default = default or next(iter(self.providers))

    def _route(self, calendar_id: str) -> Tuple[str, str]:
        backend, sep, inner = calendar_id.partition(":")
        if sep and backend in KNOWN_BACKENDS:
            if backend not in self.providers:
                raise CalendarProviderError(f"No {backend} calendar connected for '{calendar_id}'")
            return backend, inner
        return self.default, calendar_id

    def get_busy_intervals(self, calendar_ids: List[str], start: datetime, end: datetime) -> List[TimeWindow]:
        grouped: Dict[str, List[str]] = OrderedDict()
        for calendar_id in calendar_ids:
            backend, inner = self._route(calendar_id)
            grouped.setdefault(backend, []).append(inner)

        intervals = []
        for backend, ids in grouped.items():
            intervals.extend(self.providers[backend].get_busy_intervals(ids, start, end))
        return intervals

    def create_event(self, calendar_id: str, window: TimeWindow, metadata: Dict[str, Any]) -> EventRef:
        backend, inner = self._route(calendar_id)
        ref = self.providers[backend].create_event(inner, window, metadata)
        return ref._replace(calendar_id=calendar_id)


def calendar_provider_for_user(store: KeyValueStore, user_key: str) -> Optional[CalendarProvider]:
    """Build a provider from the tokens saved for a user, or None when no calendar is connected."""
    tokens = load_calendar_tokens(store, user_key)
    if tokens is None:
        return None

    providers: Dict[str, CalendarProvider] = OrderedDict()
    if tokens.google:
        providers["google"] = GoogleCalendarProvider.from_tokens(tokens.google.access_token, tokens.google.refresh_token)
    if tokens.outlook:
        providers["outlook"] = OutlookCalendarProvider(tokens.outlook.access_token)
    if not providers:
        return None
    return CompositeCalendarProvider(providers)
