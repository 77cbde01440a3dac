"""
eventdesk

Create calendar events and browse them by day and month through an
external calendar provider.
"""

from .aggregator import EventAggregator
from .exceptions import (
    AccessDeniedError,
    AccessError,
    AccessSystemError,
    CalendarError,
    EmptyTitleError,
    EventSaveError,
    NoDefaultCalendarError,
    ProviderError,
    SaveError,
)
from .gate import AuthorizationGate
from .session import Alert, CalendarSession
from .types import (
    AuthorizationState,
    CalendarEventRef,
    CalendarRef,
    DayBucketKey,
    DraftEvent,
    MonthSummary,
    NewCalendarEvent,
)

__version__ = "0.1.0"

__all__ = [
    "AuthorizationGate",
    "EventAggregator",
    "CalendarSession",
    "Alert",
    "AuthorizationState",
    "CalendarEventRef",
    "CalendarRef",
    "DayBucketKey",
    "DraftEvent",
    "MonthSummary",
    "NewCalendarEvent",
    "CalendarError",
    "AccessError",
    "AccessDeniedError",
    "AccessSystemError",
    "EventSaveError",
    "EmptyTitleError",
    "NoDefaultCalendarError",
    "SaveError",
    "ProviderError",
]
