"""Fetches events from the provider and buckets them by local calendar day."""

import logging
from collections import defaultdict
from datetime import tzinfo
from typing import Dict, Iterable, List, Optional

from eventdesk.api_clients.base import BaseCalendarProvider
from eventdesk.dates import (
    DateLike,
    add_elapsed,
    bucket_key,
    day_range,
    localize,
    month_range,
    resolve_timezone,
)
from eventdesk.exceptions import EmptyTitleError, NoDefaultCalendarError, SaveError
from eventdesk.gate import AuthorizationGate
from eventdesk.types import (
    DEFAULT_EVENT_DURATION,
    AuthorizationState,
    CalendarEventRef,
    DayBucketKey,
    DraftEvent,
    MonthSummary,
    NewCalendarEvent,
)

logger = logging.getLogger(__name__)


class EventAggregator:
    """Range queries against the provider, reshaped for day and month views.

    Nothing is cached: every fetch is a fresh query, so after
    ``create_event`` callers fetch again to see the new event. Fetches run
    only while access is GRANTED; otherwise they return empty results
    without touching the provider.
    """

    def __init__(
        self,
        provider: BaseCalendarProvider,
        gate: Optional[AuthorizationGate] = None,
        tz: Optional[tzinfo] = None,
    ):
        self.provider = provider
        self.gate = gate or AuthorizationGate(provider)
        self.tz = tz or resolve_timezone()

    def _granted(self) -> bool:
        return self.gate.check_status() == AuthorizationState.GRANTED

    def _sorted(self, events: Iterable[CalendarEventRef]) -> List[CalendarEventRef]:
        # Compare instants; wall-clock order breaks in the repeated DST hour.
        # sorted() is stable, so equal starts keep the provider's order.
        return sorted(
            events, key=lambda event: localize(event.start, self.tz).timestamp()
        )

    def group_by_day(
        self, events: Iterable[CalendarEventRef]
    ) -> Dict[DayBucketKey, List[CalendarEventRef]]:
        """Bucket events under the local day their start falls on.

        Events spanning several days only appear under their first day.
        """
        buckets: Dict[DayBucketKey, List[CalendarEventRef]] = defaultdict(list)
        for event in self._sorted(events):
            buckets[bucket_key(event.start, self.tz)].append(event)
        return dict(buckets)

    async def fetch_day(self, day: DateLike) -> List[CalendarEventRef]:
        """Events of one local day, ordered by start."""
        if not self._granted():
            logger.debug("Calendar access not granted, skipping day fetch")
            return []

        start, end = day_range(day, self.tz)
        events = await self.provider.query_events(start, end)
        logger.debug(f"Fetched {len(events)} events between {start} and {end}")
        return self._sorted(events)

    async def fetch_month_events(
        self, day: DateLike
    ) -> Dict[DayBucketKey, List[CalendarEventRef]]:
        """Events of the local month containing ``day``, bucketed by start day."""
        if not self._granted():
            logger.debug("Calendar access not granted, skipping month fetch")
            return {}

        start, end = month_range(day, self.tz)
        events = await self.provider.query_events(start, end)
        logger.debug(f"Fetched {len(events)} events between {start} and {end}")
        return self.group_by_day(events)

    async def fetch_month(self, day: DateLike) -> MonthSummary:
        """Number of events per day in the local month containing ``day``."""
        buckets = await self.fetch_month_events(day)
        return {key: len(events) for key, events in buckets.items()}

    async def create_event(self, draft: DraftEvent) -> None:
        """Save a draft as a one-hour, single-occurrence event.

        Raises:
            EmptyTitleError: If the draft has no title. The provider is not
                called.
            NoDefaultCalendarError: If the provider has no calendar to write to.
            SaveError: If the provider rejected the write.
        """
        if not draft.title:
            raise EmptyTitleError()

        try:
            calendar = await self.provider.default_write_calendar()
        except Exception as e:
            logger.error(f"Failed to resolve default calendar: {e}")
            raise SaveError(getattr(e, "message", None) or str(e), e) from e
        if calendar is None:
            logger.warning("No default calendar for new events")
            raise NoDefaultCalendarError()

        start = localize(draft.start, self.tz)
        event = NewCalendarEvent(
            title=draft.title,
            start=start,
            end=add_elapsed(start, DEFAULT_EVENT_DURATION),
            calendar=calendar,
        )
        try:
            await self.provider.save(event)
        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            logger.error(f"Failed to save event: {message}")
            raise SaveError(message, e) from e

        logger.info(f"Saved event '{draft.title}' at {start} to {calendar.title}")
