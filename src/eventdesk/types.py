"""Provider-agnostic calendar types."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

# Every event created through the app lasts one hour.
DEFAULT_EVENT_DURATION = timedelta(hours=1)

DayBucketKey = str
MonthSummary = Dict[DayBucketKey, int]


class AuthorizationState(str, Enum):
    """Calendar permission as reported by the provider."""

    UNDETERMINED = "undetermined"
    GRANTED = "granted"
    DENIED = "denied"
    RESTRICTED = "restricted"
    UNKNOWN = "unknown"


class CalendarRef(BaseModel):
    """A calendar owned by the provider."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Provider-specific calendar ID")
    title: str = Field(description="Calendar display name")
    color: Optional[str] = Field(None, description="Calendar color tag (hex)")
    writable: bool = Field(True, description="Whether events can be saved to it")


class CalendarEventRef(BaseModel):
    """Read-only projection of a provider-owned event."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Provider-assigned event identifier")
    title: str = Field(description="Event title")
    start: datetime = Field(description="Event start instant")
    end: datetime = Field(description="Event end instant")
    color: Optional[str] = Field(
        None, description="Color tag of the owning calendar"
    )
    calendar_id: Optional[str] = Field(None, description="Owning calendar ID")


class DraftEvent(BaseModel):
    """User input that has not been saved yet."""

    title: str = Field("", description="Event title, may be empty")
    start: datetime = Field(description="Event start instant")

    @property
    def end(self) -> datetime:
        if self.start.tzinfo is None:
            return self.start + DEFAULT_EVENT_DURATION
        # Elapsed time, not wall-clock time, across DST changes
        end = self.start.astimezone(timezone.utc) + DEFAULT_EVENT_DURATION
        return end.astimezone(self.start.tzinfo)


class NewCalendarEvent(BaseModel):
    """A single-occurrence event handed to the provider for saving."""

    title: str
    start: datetime
    end: datetime
    calendar: CalendarRef
