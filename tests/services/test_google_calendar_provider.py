"""Tests for GoogleCalendarProvider."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, Mock

import pytest
from googleapiclient.errors import HttpError

from eventdesk.api_clients.google.auth import GoogleAuthManager
from eventdesk.api_clients.google.calendar import GoogleCalendarProvider
from eventdesk.exceptions import ProviderError
from eventdesk.types import AuthorizationState, CalendarRef, NewCalendarEvent

LOCAL_TZ = timezone(timedelta(hours=2))


def http_error(status: int, reason: str) -> HttpError:
    return HttpError(resp=Mock(status=status, reason=reason), content=b"")


def api_event(event_id, summary, start, end, **extra):
    event = {
        "id": event_id,
        "summary": summary,
        "start": {"dateTime": start},
        "end": {"dateTime": end},
    }
    event.update(extra)
    return event


class TestGoogleCalendarProvider:
    def setup_method(self):
        self.mock_auth_manager = Mock(spec=GoogleAuthManager)
        self.mock_calendar_service = MagicMock()
        self.mock_auth_manager.get_calendar_service.return_value = (
            self.mock_calendar_service
        )
        self.mock_calendar_service.calendarList().get().execute.return_value = {
            "id": "primary",
            "summary": "me@example.com",
            "backgroundColor": "#9fe1e7",
            "accessRole": "owner",
        }
        self.provider = GoogleCalendarProvider(
            auth_manager=self.mock_auth_manager,
            calendar_id="primary",
            max_workers=2,
        )

    def test_provider_name(self):
        assert self.provider.get_provider_name() == "google"

    def test_authorization_status_delegates(self):
        self.mock_auth_manager.authorization_status.return_value = (
            AuthorizationState.RESTRICTED
        )
        assert self.provider.authorization_status() == AuthorizationState.RESTRICTED

    @pytest.mark.asyncio
    async def test_request_access_delegates(self):
        self.mock_auth_manager.request_access.return_value = AuthorizationState.GRANTED

        assert await self.provider.request_access() == AuthorizationState.GRANTED
        self.mock_auth_manager.request_access.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_query_events_follows_pages(self):
        self.mock_calendar_service.events().list().execute.side_effect = [
            {
                "items": [
                    api_event(
                        "e1",
                        "Standup",
                        "2025-06-10T09:00:00+02:00",
                        "2025-06-10T09:15:00+02:00",
                    )
                ],
                "nextPageToken": "page2",
            },
            {
                "items": [
                    api_event(
                        "e2",
                        "Review",
                        "2025-06-10T12:00:00Z",
                        "2025-06-10T13:00:00Z",
                    )
                ]
            },
        ]
        start = datetime(2025, 6, 10, tzinfo=LOCAL_TZ)

        events = await self.provider.query_events(start, start + timedelta(days=1))

        assert [e.id for e in events] == ["e1", "e2"]
        assert all(e.color == "#9fe1e7" for e in events)
        assert all(e.calendar_id == "primary" for e in events)
        assert events[1].start == datetime(2025, 6, 10, 12, tzinfo=timezone.utc)

        list_calls = self.mock_calendar_service.events().list.call_args_list
        first_call, last_call = list_calls[-2], list_calls[-1]
        assert first_call.kwargs["timeMin"] == "2025-06-10T00:00:00+02:00"
        assert first_call.kwargs["timeMax"] == "2025-06-11T00:00:00+02:00"
        assert first_call.kwargs["singleEvents"] is True
        assert "pageToken" not in first_call.kwargs
        assert last_call.kwargs["pageToken"] == "page2"

    @pytest.mark.asyncio
    async def test_query_events_skips_cancelled(self):
        self.mock_calendar_service.events().list().execute.return_value = {
            "items": [
                api_event(
                    "gone",
                    "Cancelled",
                    "2025-06-10T09:00:00Z",
                    "2025-06-10T10:00:00Z",
                    status="cancelled",
                ),
                api_event(
                    "kept",
                    "Kept",
                    "2025-06-10T11:00:00Z",
                    "2025-06-10T12:00:00Z",
                    status="confirmed",
                ),
            ]
        }
        start = datetime(2025, 6, 10, tzinfo=timezone.utc)

        events = await self.provider.query_events(start, start + timedelta(days=1))

        assert [e.id for e in events] == ["kept"]

    @pytest.mark.asyncio
    async def test_query_events_http_error(self):
        self.mock_calendar_service.events().list().execute.side_effect = http_error(
            403, "Forbidden"
        )
        start = datetime(2025, 6, 10, tzinfo=timezone.utc)

        with pytest.raises(ProviderError) as exc_info:
            await self.provider.query_events(start, start + timedelta(days=1))

        assert exc_info.value.status == 403
        assert "Forbidden" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_default_write_calendar(self):
        calendar = await self.provider.default_write_calendar()

        assert calendar == CalendarRef(
            id="primary", title="me@example.com", color="#9fe1e7"
        )

    @pytest.mark.asyncio
    async def test_default_write_calendar_prefers_override_title(self):
        self.mock_calendar_service.calendarList().get().execute.return_value = {
            "id": "team",
            "summary": "team@group.calendar.google.com",
            "summaryOverride": "Team",
            "accessRole": "writer",
        }

        calendar = await self.provider.default_write_calendar()

        assert calendar.title == "Team"
        assert calendar.color is None

    @pytest.mark.asyncio
    async def test_default_write_calendar_read_only(self):
        self.mock_calendar_service.calendarList().get().execute.return_value = {
            "id": "holidays",
            "summary": "Holidays",
            "accessRole": "reader",
        }

        assert await self.provider.default_write_calendar() is None

    @pytest.mark.asyncio
    async def test_default_write_calendar_not_found(self):
        self.mock_calendar_service.calendarList().get().execute.side_effect = (
            http_error(404, "Not Found")
        )

        assert await self.provider.default_write_calendar() is None

    @pytest.mark.asyncio
    async def test_default_write_calendar_server_error(self):
        self.mock_calendar_service.calendarList().get().execute.side_effect = (
            http_error(500, "Backend Error")
        )

        with pytest.raises(ProviderError):
            await self.provider.default_write_calendar()

    @pytest.mark.asyncio
    async def test_save_inserts_event(self):
        self.mock_calendar_service.events().insert().execute.return_value = {
            "id": "created"
        }
        start = datetime(2025, 6, 12, 16, tzinfo=LOCAL_TZ)

        await self.provider.save(
            NewCalendarEvent(
                title="Haircut",
                start=start,
                end=start + timedelta(hours=1),
                calendar=CalendarRef(id="primary", title="Me"),
            )
        )

        self.mock_calendar_service.events().insert.assert_called_with(
            calendarId="primary",
            body={
                "summary": "Haircut",
                "start": {"dateTime": "2025-06-12T16:00:00+02:00"},
                "end": {"dateTime": "2025-06-12T17:00:00+02:00"},
            },
        )

    @pytest.mark.asyncio
    async def test_save_http_error(self):
        self.mock_calendar_service.events().insert().execute.side_effect = (
            http_error(400, "The specified time range is empty.")
        )
        start = datetime(2025, 6, 12, 16, tzinfo=LOCAL_TZ)

        with pytest.raises(ProviderError, match="time range is empty"):
            await self.provider.save(
                NewCalendarEvent(
                    title="Backwards",
                    start=start,
                    end=start - timedelta(hours=1),
                    calendar=CalendarRef(id="primary", title="Me"),
                )
            )

    def test_parse_all_day_event(self):
        event = self.provider.parse_event(
            {
                "id": "holiday",
                "summary": "Holiday",
                "start": {"date": "2025-06-10"},
                "end": {"date": "2025-06-11"},
            },
            color="#ff0000",
        )

        assert event.start == datetime(2025, 6, 10)
        assert event.end == datetime(2025, 6, 11)
        assert event.color == "#ff0000"

    def test_parse_event_without_summary(self):
        event = self.provider.parse_event(
            api_event("e1", "", "2025-06-10T09:00:00Z", "2025-06-10T10:00:00Z")
        )

        assert event.title == ""
        assert event.color is None
