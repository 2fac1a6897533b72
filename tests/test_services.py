from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import httplib2
import pytest
import requests
from googleapiclient.errors import HttpError

from schedulex.scheduling import Priority, Task, TimeWindow
from schedulex.schemas import CalendarTokensSchema, OAuthTokenSchema, PreferencesSchema, TaskSchema, TimeWindowSchema
from schedulex.services import calendar_provider
from schedulex.services.calendar_provider import (
    CalendarProvider, CalendarProviderError, CompositeCalendarProvider, EventRef, GoogleCalendarProvider,
    calendar_provider_for_user,
)
from schedulex.services.narrative import OpenAINarrativeGenerator, build_reasoning_prompt
from schedulex.services.scheduler_service import SchedulerService, SettingsNotFoundError
from schedulex.store import InMemoryKeyValueStore, load_result, save_calendar_tokens, save_preferences, save_tasks


def at(hour, minute=0, day=10):
    return datetime(2024, 6, day, hour, minute)


class FakeCalendarProvider(CalendarProvider):
    def __init__(self, busy=()):
        self.busy = list(busy)
        self.created = []

    def get_busy_intervals(self, calendar_ids, start, end):
        return self.busy

    def create_event(self, calendar_id, window, metadata):
        self.created.append((calendar_id, window, metadata))
        return EventRef(calendar_id, f"evt-{len(self.created)}")


@pytest.fixture
def store():
    store = InMemoryKeyValueStore()
    save_preferences(store, "alice", PreferencesSchema())
    save_tasks(store, "alice", [
        TaskSchema(id="a", title="Write report", duration_minutes=60),
        TaskSchema(id="b", title="Review code", duration_minutes=60, priority=Priority.HIGH),
    ])
    return store


class TestSchedulerService:
    def test_optimize_from_request_data(self):
        service = SchedulerService(InMemoryKeyValueStore())
        result = service.optimize(
            [TaskSchema(id="a", title="Write report", duration_minutes=60)],
            [TimeWindowSchema(start=at(9), end=at(10))],
            PreferencesSchema(),
            at(0),
            at(23, 59),
        )
        assert result.scheduled_tasks == 1
        assert result.assignments[0].start == at(10)

    def test_optimize_stored_caches_result(self, store):
        service = SchedulerService(store)
        result = service.optimize_stored("alice", at(0), at(23, 59))
        assert [a.task_id for a in result.assignments] == ["b", "a"]
        assert load_result(store, "alice") == result
        assert service.latest_result("alice") == result

    def test_optimize_stored_merges_calendar_busy_time(self, store):
        provider = FakeCalendarProvider([TimeWindow(at(9), at(12))])
        service = SchedulerService(store, calendar_provider=provider)
        result = service.optimize_stored("alice", at(0), at(23, 59), calendar_ids=["primary"])
        assert min(a.start for a in result.assignments) == at(12)

    def test_missing_preferences(self):
        service = SchedulerService(InMemoryKeyValueStore())
        with pytest.raises(SettingsNotFoundError):
            service.optimize_stored("nobody", at(0), at(23, 59))
        with pytest.raises(SettingsNotFoundError):
            service.latest_result("nobody")

    def test_calendar_ids_need_a_provider(self, store):
        with pytest.raises(CalendarProviderError):
            SchedulerService(store).optimize_stored("alice", at(0), at(23, 59), calendar_ids=["primary"])

    def test_provider_factory_builds_per_user_provider(self, store):
        provider = FakeCalendarProvider([TimeWindow(at(9), at(12))])
        requested = []

        def factory(user_key):
            requested.append(user_key)
            return provider if user_key == "alice" else None

        service = SchedulerService(store, provider_factory=factory)
        result = service.optimize_stored("alice", at(0), at(23, 59), calendar_ids=["primary"])
        assert min(a.start for a in result.assignments) == at(12)
        assert [ref.calendar_id for ref in service.apply_assignments("alice", "work")] == ["work", "work"]
        assert requested == ["alice", "alice"]

        save_preferences(store, "bob", PreferencesSchema())
        with pytest.raises(CalendarProviderError):
            service.optimize_stored("bob", at(0), at(23, 59), calendar_ids=["primary"])

    def test_apply_assignments_creates_one_event_each(self, store):
        provider = FakeCalendarProvider()
        service = SchedulerService(store, calendar_provider=provider)
        service.optimize_stored("alice", at(0), at(23, 59))

        refs = service.apply_assignments("alice", "work")
        assert [ref.event_id for ref in refs] == ["evt-1", "evt-2"]
        calendar_id, window, metadata = provider.created[0]
        assert calendar_id == "work"
        assert window == TimeWindow(at(9), at(10))
        assert metadata["title"] == "Review code"
        assert metadata["task_id"] == "b"


class TestNarrative:
    task = Task(id="a", title="Write report", duration_minutes=60, priority=Priority.HIGH,
                deadline=at(17, day=12), category="Work")
    window = TimeWindow(at(9), at(10))

    def test_prompt_mentions_task_details(self):
        prompt = build_reasoning_prompt(self.task, self.window, 95)
        assert '"Write report"' in prompt
        assert "Priority: high" in prompt
        assert "Category: Work" in prompt
        assert "June 12, 2024 17:00" in prompt
        assert "Monday, June 10, 2024 at 09:00 AM" in prompt

    def test_explain_uses_chat_completion(self):
        client = MagicMock()
        client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="  Mornings are quiet.  "))],
            usage=SimpleNamespace(prompt_tokens=120, completion_tokens=30),
        )
        narrator = OpenAINarrativeGenerator(model="gpt-test", max_tokens=50, client=client)

        assert narrator.explain(self.task, self.window, 95) == "Mornings are quiet."
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["max_tokens"] == 50
        assert kwargs["messages"][0]["role"] == "user"


class TestGoogleCalendarProvider:
    def test_busy_intervals_from_freebusy(self):
        service = MagicMock()
        service.freebusy.return_value.query.return_value.execute.return_value = {
            "calendars": {
                "primary": {"busy": [{"start": "2024-06-10T10:00:00Z", "end": "2024-06-10T11:00:00Z"}]},
                "work": {"busy": [{"start": "2024-06-10T14:00:00+02:00", "end": "2024-06-10T15:00:00+02:00"}]},
            }
        }
        provider = GoogleCalendarProvider(service=service)
        intervals = provider.get_busy_intervals(["primary", "work"], at(0), at(23, 59))

        assert sorted(intervals) == [TimeWindow(at(10), at(11)), TimeWindow(at(12), at(13))]
        body = service.freebusy.return_value.query.call_args.kwargs["body"]
        assert body["timeMin"] == "2024-06-10T00:00:00Z"
        assert body["items"] == [{"id": "primary"}, {"id": "work"}]

    def test_aware_request_keeps_aware_intervals(self):
        service = MagicMock()
        service.freebusy.return_value.query.return_value.execute.return_value = {
            "calendars": {"primary": {"busy": [{"start": "2024-06-10T10:00:00Z", "end": "2024-06-10T11:00:00Z"}]}}
        }
        start = datetime(2024, 6, 10, tzinfo=timezone.utc)
        intervals = GoogleCalendarProvider(service=service).get_busy_intervals(["primary"], start, start.replace(hour=23))
        assert intervals[0].start == datetime(2024, 6, 10, 10, tzinfo=timezone.utc)
        assert intervals[0].start.tzinfo is not None

    def test_create_event(self):
        service = MagicMock()
        service.events.return_value.insert.return_value.execute.return_value = {
            "id": "abc123", "htmlLink": "https://calendar.example/abc123",
        }
        provider = GoogleCalendarProvider(service=service)
        ref = provider.create_event("primary", TimeWindow(at(9), at(10)),
                                    {"task_id": "a", "title": "Write report", "reasoning": "Quiet morning"})

        assert ref == EventRef("primary", "abc123", "https://calendar.example/abc123")
        kwargs = service.events.return_value.insert.call_args.kwargs
        assert kwargs["calendarId"] == "primary"
        assert kwargs["body"]["summary"] == "Write report"
        assert kwargs["body"]["extendedProperties"]["private"]["schedulexTaskId"] == "a"

    def test_http_errors_are_wrapped(self):
        service = MagicMock()
        service.freebusy.return_value.query.return_value.execute.side_effect = HttpError(
            httplib2.Response({"status": "500"}), b"backend error"
        )
        with pytest.raises(CalendarProviderError):
            GoogleCalendarProvider(service=service).get_busy_intervals(["primary"], at(0), at(23))

    def test_from_tokens_builds_calendar_service(self, monkeypatch):
        calls = {}

        def fake_build(api, version, credentials=None, cache_discovery=True):
            calls.update(api=api, version=version, credentials=credentials)
            return MagicMock()

        monkeypatch.setattr(calendar_provider, "build", fake_build)
        GoogleCalendarProvider.from_tokens("access", refresh_token="refresh")

        assert (calls["api"], calls["version"]) == ("calendar", "v3")
        assert calls["credentials"].token == "access"
        assert calls["credentials"].refresh_token == "refresh"


def graph_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    return response


def graph_event(start, end, **fields):
    return {"start": {"dateTime": start, "timeZone": "UTC"}, "end": {"dateTime": end, "timeZone": "UTC"}, **fields}


class TestOutlookCalendarProvider:
    def test_busy_intervals_follow_next_link(self):
        session = MagicMock()
        session.headers = {}
        session.request.side_effect = [
            graph_response({
                "value": [
                    graph_event("2024-06-10T10:00:00.0000000", "2024-06-10T11:00:00.0000000", showAs="busy"),
                    graph_event("2024-06-10T11:00:00.0000000", "2024-06-10T12:00:00.0000000", showAs="free"),
                ],
                "@odata.nextLink": "https://graph.example/next-page",
            }),
            graph_response({"value": [
                graph_event("2024-06-10T14:00:00.0000000", "2024-06-10T15:00:00.0000000", showAs="tentative"),
                graph_event("2024-06-10T16:00:00.0000000", "2024-06-10T17:00:00.0000000", isCancelled=True),
            ]}),
        ]
        provider = calendar_provider.OutlookCalendarProvider("tok", session=session, base_url="https://graph.example")
        intervals = provider.get_busy_intervals(["primary"], at(0), at(23, 59))

        assert intervals == [TimeWindow(at(10), at(11)), TimeWindow(at(14), at(15))]
        assert session.headers["Authorization"] == "Bearer tok"
        first, second = session.request.call_args_list
        assert first.args == ("GET", "https://graph.example/me/calendar/calendarView")
        assert first.kwargs["params"]["startDateTime"] == "2024-06-10T00:00:00Z"
        assert second.args == ("GET", "https://graph.example/next-page")
        assert second.kwargs["params"] is None

    def test_zoned_event_times_are_converted(self):
        session = MagicMock()
        session.headers = {}
        session.request.return_value = graph_response({"value": [{
            "start": {"dateTime": "2024-06-10T10:00:00", "timeZone": "Europe/Berlin"},
            "end": {"dateTime": "2024-06-10T11:00:00", "timeZone": "Europe/Berlin"},
        }]})
        provider = calendar_provider.OutlookCalendarProvider("tok", session=session)
        start = datetime(2024, 6, 10, tzinfo=timezone.utc)
        intervals = provider.get_busy_intervals(["cal-1"], start, start.replace(hour=23))

        assert intervals[0].start == datetime(2024, 6, 10, 8, tzinfo=timezone.utc)
        assert session.request.call_args.args[1].endswith("/me/calendars/cal-1/calendarView")

    def test_create_event(self):
        session = MagicMock()
        session.headers = {}
        session.request.return_value = graph_response({"id": "AAMk1", "webLink": "https://outlook.example/AAMk1"})
        provider = calendar_provider.OutlookCalendarProvider("tok", session=session, base_url="https://graph.example")
        ref = provider.create_event("primary", TimeWindow(at(9), at(10)),
                                    {"task_id": "a", "title": "Write report", "reasoning": "Quiet morning"})

        assert ref == EventRef("primary", "AAMk1", "https://outlook.example/AAMk1")
        call = session.request.call_args
        assert call.args == ("POST", "https://graph.example/me/calendar/events")
        body = call.kwargs["json"]
        assert body["subject"] == "Write report"
        assert body["start"] == {"dateTime": "2024-06-10T09:00:00", "timeZone": "UTC"}
        assert body["body"]["content"] == "Quiet morning"

    def test_http_errors_are_wrapped(self):
        session = MagicMock()
        session.headers = {}
        session.request.return_value.raise_for_status.side_effect = requests.HTTPError("401 Unauthorized")
        provider = calendar_provider.OutlookCalendarProvider("expired", session=session)
        with pytest.raises(CalendarProviderError):
            provider.get_busy_intervals(["primary"], at(0), at(23))


class TestCompositeCalendarProvider:
    def test_busy_time_from_every_backend(self):
        google = FakeCalendarProvider([TimeWindow(at(9), at(10))])
        outlook = FakeCalendarProvider([TimeWindow(at(9, 30), at(11))])
        google.get_busy_intervals = MagicMock(wraps=google.get_busy_intervals)
        outlook.get_busy_intervals = MagicMock(wraps=outlook.get_busy_intervals)
        provider = CompositeCalendarProvider({"google": google, "outlook": outlook})

        intervals = provider.get_busy_intervals(["primary", "outlook:primary", "google:work"], at(0), at(23))

        assert intervals == [TimeWindow(at(9), at(10)), TimeWindow(at(9, 30), at(11))]
        assert google.get_busy_intervals.call_args.args[0] == ["primary", "work"]
        assert outlook.get_busy_intervals.call_args.args[0] == ["primary"]

    def test_combined_busy_time_is_avoided(self, store):
        google = FakeCalendarProvider([TimeWindow(at(9), at(10))])
        outlook = FakeCalendarProvider([TimeWindow(at(9, 30), at(12))])
        service = SchedulerService(store, calendar_provider=CompositeCalendarProvider({"google": google, "outlook": outlook}))
        result = service.optimize_stored("alice", at(0), at(23, 59), calendar_ids=["google:primary", "outlook:primary"])
        assert min(a.start for a in result.assignments) == at(12)

    def test_create_event_keeps_prefixed_calendar_id(self):
        outlook = FakeCalendarProvider()
        provider = CompositeCalendarProvider({"google": FakeCalendarProvider(), "outlook": outlook})
        ref = provider.create_event("outlook:primary", TimeWindow(at(9), at(10)), {"title": "Write report"})
        assert ref.calendar_id == "outlook:primary"
        assert outlook.created[0][0] == "primary"

    def test_unconnected_backend_raises(self):
        provider = CompositeCalendarProvider({"google": FakeCalendarProvider()})
        with pytest.raises(CalendarProviderError):
            provider.get_busy_intervals(["outlook:primary"], at(0), at(23))
        # an unknown prefix is part of the calendar id itself
        provider.create_event("team:standups", TimeWindow(at(9), at(10)), {})
        assert provider.providers["google"].created[0][0] == "team:standups"

    def test_needs_at_least_one_provider(self):
        with pytest.raises(ValueError):
            CompositeCalendarProvider({})


class TestCalendarProviderForUser:
    def test_no_tokens_means_no_provider(self):
        store = InMemoryKeyValueStore()
        assert calendar_provider_for_user(store, "alice") is None
        save_calendar_tokens(store, "alice", CalendarTokensSchema())
        assert calendar_provider_for_user(store, "alice") is None

    def test_connected_backends_are_combined(self, monkeypatch):
        monkeypatch.setattr(calendar_provider, "build", lambda *args, **kwargs: MagicMock())
        store = InMemoryKeyValueStore()
        save_calendar_tokens(store, "alice", CalendarTokensSchema(
            google=OAuthTokenSchema(access_token="g-tok", refresh_token="g-refresh"),
            outlook=OAuthTokenSchema(access_token="o-tok"),
        ))
        provider = calendar_provider_for_user(store, "alice")

        assert isinstance(provider, CompositeCalendarProvider)
        assert list(provider.providers) == ["google", "outlook"]
        assert provider.default == "google"
        assert provider.providers["outlook"].session.headers["Authorization"] == "Bearer o-tok"

    def test_outlook_alone_becomes_default(self):
        store = InMemoryKeyValueStore()
        save_calendar_tokens(store, "alice", CalendarTokensSchema(outlook=OAuthTokenSchema(access_token="o-tok")))
        assert calendar_provider_for_user(store, "alice").default == "outlook"
