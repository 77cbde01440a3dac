"""Google Calendar provider."""

from .auth import GoogleAuthManager
from .calendar import GoogleCalendarProvider

__all__ = ["GoogleAuthManager", "GoogleCalendarProvider"]
