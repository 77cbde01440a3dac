"""Google Calendar provider implementation."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, TypeVar

from googleapiclient.errors import HttpError  # type: ignore[import-untyped]

from eventdesk.api_clients.base import BaseCalendarProvider
from eventdesk.config import get_current_config
from eventdesk.exceptions import ProviderError
from eventdesk.types import (
    AuthorizationState,
    CalendarEventRef,
    CalendarRef,
    NewCalendarEvent,
)

from .auth import GoogleAuthManager

logger = logging.getLogger(__name__)

T = TypeVar("T")

_WRITABLE_ROLES = {"owner", "writer"}


def _http_error_message(error: HttpError) -> str:
    return getattr(error, "reason", None) or str(error)


def _parse_time(data: Dict[str, Any]) -> datetime:
    if "dateTime" in data:
        value = data["dateTime"]
        if value.endswith("Z"):
            value = value.replace("Z", "+00:00")
        return datetime.fromisoformat(value)
    # All-day event: local midnight of that date
    return datetime.fromisoformat(data["date"])


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class GoogleCalendarProvider(BaseCalendarProvider):
    """Calendar provider talking to the Google Calendar v3 API.

    The API client is blocking, so every call runs on a thread pool and the
    event loop only awaits the result.
    """

    def __init__(
        self,
        auth_manager: Optional[GoogleAuthManager] = None,
        calendar_id: Optional[str] = None,
        max_workers: Optional[int] = None,
    ):
        config = get_current_config()
        self.auth_manager = auth_manager or GoogleAuthManager()
        self.calendar_id = calendar_id or config.google_calendar_id
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or config.max_workers,
            thread_name_prefix="google-calendar-provider",
        )

    @property
    def _calendar(self) -> Any:
        """Get Calendar service instance."""
        return self.auth_manager.get_calendar_service()

    async def _run(self, func: Callable[[], T]) -> T:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(self._executor, func)

    def authorization_status(self) -> AuthorizationState:
        return self.auth_manager.authorization_status()

    async def request_access(self) -> AuthorizationState:
        return await self._run(self.auth_manager.request_access)

    async def query_events(
        self, start: datetime, end: datetime
    ) -> List[CalendarEventRef]:
        """List Google Calendar events overlapping ``[start, end)``."""
        params: Dict[str, Any] = {
            "calendarId": self.calendar_id,
            "timeMin": _ensure_aware(start).isoformat(),
            "timeMax": _ensure_aware(end).isoformat(),
            "singleEvents": True,
            "orderBy": "startTime",
        }

        def list_all() -> List[CalendarEventRef]:
            color = (
                self._calendar.calendarList()
                .get(calendarId=self.calendar_id)
                .execute()
                .get("backgroundColor")
            )
            events: List[CalendarEventRef] = []
            page_token: Optional[str] = None
            while True:
                if page_token:
                    params["pageToken"] = page_token
                result = self._calendar.events().list(**params).execute()
                for item in result.get("items", []):
                    if item.get("status") == "cancelled":
                        continue
                    events.append(self.parse_event(item, color))
                page_token = result.get("nextPageToken")
                if not page_token:
                    return events

        try:
            return await self._run(list_all)
        except HttpError as e:
            logger.error(f"Failed to list calendar events: {e}")
            raise ProviderError(_http_error_message(e), e.resp.status) from e

    async def default_write_calendar(self) -> Optional[CalendarRef]:
        """Get the configured calendar if the user can write to it."""
        try:
            entry = await self._run(
                lambda: self._calendar.calendarList()
                .get(calendarId=self.calendar_id)
                .execute()
            )
        except HttpError as e:
            if e.resp.status == 404:
                logger.warning(f"Calendar {self.calendar_id} not found")
                return None
            raise ProviderError(_http_error_message(e), e.resp.status) from e

        if entry.get("accessRole") not in _WRITABLE_ROLES:
            logger.warning(f"Calendar {self.calendar_id} is read-only")
            return None

        return CalendarRef(
            id=entry["id"],
            title=entry.get("summaryOverride") or entry.get("summary", ""),
            color=entry.get("backgroundColor"),
        )

    async def save(self, event: NewCalendarEvent) -> None:
        """Insert a single-occurrence event."""
        body = {
            "summary": event.title,
            "start": {"dateTime": _ensure_aware(event.start).isoformat()},
            "end": {"dateTime": _ensure_aware(event.end).isoformat()},
        }
        try:
            created = await self._run(
                lambda: self._calendar.events()
                .insert(calendarId=event.calendar.id, body=body)
                .execute()
            )
        except HttpError as e:
            logger.error(f"Failed to insert calendar event: {e}")
            raise ProviderError(_http_error_message(e), e.resp.status) from e
        logger.info("Created Google Calendar event %s", created.get("id"))

    def parse_event(
        self, event_data: Dict[str, Any], color: Optional[str] = None
    ) -> CalendarEventRef:
        """Parse Google Calendar event data to CalendarEventRef."""
        return CalendarEventRef(
            id=event_data["id"],
            title=event_data.get("summary", ""),
            start=_parse_time(event_data.get("start", {})),
            end=_parse_time(event_data.get("end", {})),
            color=color,
            calendar_id=self.calendar_id,
        )

    def get_provider_name(self) -> str:
        return "google"
