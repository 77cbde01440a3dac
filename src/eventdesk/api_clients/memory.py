"""In-process calendar provider that keeps events in memory."""

import logging
import uuid
from collections import Counter
from datetime import datetime
from typing import Iterable, List, Optional

from eventdesk.api_clients.base import BaseCalendarProvider
from eventdesk.exceptions import ProviderError
from eventdesk.types import (
    AuthorizationState,
    CalendarEventRef,
    CalendarRef,
    NewCalendarEvent,
)

logger = logging.getLogger(__name__)

DEFAULT_CALENDAR = CalendarRef(id="local", title="Calendar", color="#3380CC")


class InMemoryCalendarProvider(BaseCalendarProvider):
    """Calendar provider backed by a plain list.

    Every public call is counted in ``call_counts`` so callers can check
    which provider operations ran.

    Args:
        status: Authorization state reported before any prompt.
        prompt_decision: State the simulated prompt resolves to.
        calendar: Default calendar for new events, or None for none.
        events: Events already stored.
        save_error: When set, every ``save`` fails with this message.
        access_error: When set, ``request_access`` fails with this message.
    """

    def __init__(
        self,
        status: AuthorizationState = AuthorizationState.UNDETERMINED,
        prompt_decision: AuthorizationState = AuthorizationState.GRANTED,
        calendar: Optional[CalendarRef] = DEFAULT_CALENDAR,
        events: Optional[Iterable[CalendarEventRef]] = None,
        save_error: Optional[str] = None,
        access_error: Optional[str] = None,
    ):
        self.status = status
        self.prompt_decision = prompt_decision
        self.calendar = calendar
        self.events: List[CalendarEventRef] = list(events or [])
        self.save_error = save_error
        self.access_error = access_error
        self.call_counts: Counter[str] = Counter()

    def reset_counters(self) -> None:
        self.call_counts.clear()

    def authorization_status(self) -> AuthorizationState:
        self.call_counts["authorization_status"] += 1
        return self.status

    async def request_access(self) -> AuthorizationState:
        self.call_counts["request_access"] += 1
        if self.access_error:
            raise ProviderError(self.access_error)
        if self.status == AuthorizationState.UNDETERMINED:
            self.status = self.prompt_decision
            logger.info("Simulated access prompt answered: %s", self.status.value)
        return self.status

    async def query_events(
        self, start: datetime, end: datetime
    ) -> List[CalendarEventRef]:
        self.call_counts["query_events"] += 1
        return [
            event
            for event in self.events
            if event.start.timestamp() < end.timestamp()
            and event.end.timestamp() > start.timestamp()
        ]

    async def default_write_calendar(self) -> Optional[CalendarRef]:
        self.call_counts["default_write_calendar"] += 1
        if self.calendar is None or not self.calendar.writable:
            return None
        return self.calendar

    async def save(self, event: NewCalendarEvent) -> None:
        self.call_counts["save"] += 1
        if self.save_error:
            raise ProviderError(self.save_error)
        if event.end.timestamp() < event.start.timestamp():
            raise ProviderError("The start date must be before the end date.")

        stored = CalendarEventRef(
            id=uuid.uuid4().hex,
            title=event.title,
            start=event.start,
            end=event.end,
            color=event.calendar.color,
            calendar_id=event.calendar.id,
        )
        self.events.append(stored)
        logger.debug("Stored event %s in %s", stored.id, event.calendar.id)

    def get_provider_name(self) -> str:
        return "memory"
