"""UI-owned state for the add-event screen and the flows that drive it."""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from eventdesk.aggregator import EventAggregator
from eventdesk.dates import bucket_key, localize, parse_bucket_key, start_of_day
from eventdesk.exceptions import (
    AccessSystemError,
    EmptyTitleError,
    NoDefaultCalendarError,
    ProviderError,
    SaveError,
)
from eventdesk.gate import AuthorizationGate
from eventdesk.types import (
    AuthorizationState,
    CalendarEventRef,
    DayBucketKey,
    DraftEvent,
    MonthSummary,
)

logger = logging.getLogger(__name__)


class Alert(BaseModel):
    """A message shown to the user after an action."""

    title: str
    message: str


class CalendarSession:
    """State of one visible calendar screen.

    The gate and aggregator hold nothing between calls; everything the
    screen shows lives here. Each refresh takes a new generation number and
    only publishes its results if the generation is still current when the
    provider answers, so results arriving after ``dismiss()`` or after a
    newer refresh are dropped.
    """

    def __init__(
        self,
        gate: AuthorizationGate,
        aggregator: EventAggregator,
        selected: Optional[datetime] = None,
    ):
        self.gate = gate
        self.aggregator = aggregator
        self.title = ""
        self.selected = localize(
            selected or datetime.now(aggregator.tz), aggregator.tz
        )
        self.access_status = AuthorizationState.UNDETERMINED
        self.day_events: List[CalendarEventRef] = []
        self.month_summary: MonthSummary = {}
        self.is_loading = False
        self.alert: Optional[Alert] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def _show_alert(self, title: str, message: str) -> None:
        logger.info(f"{title}: {message}")
        self.alert = Alert(title=title, message=message)

    async def appear(self) -> None:
        """Read the permission and load data if access is already granted."""
        try:
            self.access_status = self.gate.check_status()
        except AccessSystemError as e:
            self.access_status = AuthorizationState.UNKNOWN
            self._show_alert("Error", str(e))
            return
        if self.access_status == AuthorizationState.GRANTED:
            await self.refresh()

    def dismiss(self) -> None:
        """Drop the results of any fetch still in flight."""
        self._generation += 1
        self.is_loading = False

    async def select_date(self, when: datetime) -> None:
        self.selected = localize(when, self.aggregator.tz)
        await self.refresh()

    async def refresh(self) -> bool:
        """Reload the selected day and its month.

        Returns:
            True if the results were published, False if they were stale.
        """
        self._generation += 1
        generation = self._generation
        self.is_loading = True

        try:
            day_events, month_summary = await asyncio.gather(
                self.aggregator.fetch_day(self.selected),
                self.aggregator.fetch_month(self.selected),
            )
        except (AccessSystemError, ProviderError) as e:
            if generation == self._generation:
                self._show_alert("Error", str(e))
            return False
        finally:
            if generation == self._generation:
                self.is_loading = False

        if generation != self._generation:
            logger.debug(f"Discarding stale results of refresh {generation}")
            return False

        self.day_events = day_events
        self.month_summary = month_summary
        return True

    async def add_to_calendar(self) -> None:
        """Create an event from the current title and selected date.

        Prompts for access when the user has not decided yet. Every outcome
        ends in ``self.alert``.
        """
        try:
            status = self.gate.check_status()
        except AccessSystemError as e:
            self._show_alert("Error", str(e))
            return
        self.access_status = status

        if status == AuthorizationState.GRANTED:
            await self._save_draft()
        elif status in (AuthorizationState.DENIED, AuthorizationState.RESTRICTED):
            self._show_alert(
                "Calendar Access Denied",
                "Please go to Settings and enable calendar access for this app",
            )
        elif status == AuthorizationState.UNDETERMINED:
            await self._request_and_save()
        else:
            self._show_alert("Error", "Unknown authorization status")

    async def _request_and_save(self) -> None:
        try:
            self.access_status = await self.gate.request_access()
        except AccessSystemError as e:
            self._show_alert("Error", str(e))
            return

        if self.access_status == AuthorizationState.GRANTED:
            # Access was just granted, so load the screen even if the save fails
            if not await self._save_draft():
                await self.refresh()
        else:
            self._show_alert("Access Denied", "Calendar access was denied")

    async def _save_draft(self) -> bool:
        draft = DraftEvent(title=self.title, start=self.selected)
        try:
            await self.aggregator.create_event(draft)
        except EmptyTitleError:
            self._show_alert("Error", "Please enter an event title")
            return False
        except NoDefaultCalendarError:
            self._show_alert("Error", "Could not access default calendar")
            return False
        except SaveError as e:
            self._show_alert("Error", f"Failed to save event: {e.message}")
            return False

        self._show_alert("Success", "Event added to calendar")
        self.title = ""
        await self.refresh()
        return True

    def sorted_month_keys(self) -> List[DayBucketKey]:
        return sorted(self.month_summary)

    def is_selected_key(self, key: DayBucketKey) -> bool:
        return bucket_key(self.selected, self.aggregator.tz) == key

    async def select_bucket(self, key: DayBucketKey) -> None:
        """Jump to a day from the month strip.

        Today's bucket selects the current time; any other bucket selects
        that day's midnight.
        """
        now = datetime.now(self.aggregator.tz)
        if bucket_key(now, self.aggregator.tz) == key:
            await self.select_date(now)
        else:
            await self.select_date(
                start_of_day(parse_bucket_key(key), self.aggregator.tz)
            )
