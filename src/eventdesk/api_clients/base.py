"""Abstract base classes for calendar providers."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from eventdesk.types import (
    AuthorizationState,
    CalendarEventRef,
    CalendarRef,
    NewCalendarEvent,
)


class BaseAuthManager(ABC):
    """Abstract base class for calendar permission managers."""

    @abstractmethod
    def authorization_status(self) -> AuthorizationState:
        """Report the current permission without prompting."""

    @abstractmethod
    def request_access(self) -> AuthorizationState:
        """Prompt the user for access and block until they answer."""

    def is_authenticated(self) -> bool:
        """Check if calendar access has been granted."""
        return self.authorization_status() == AuthorizationState.GRANTED


class BaseCalendarProvider(ABC):
    """Abstract base class for the external calendar service.

    The provider owns event storage and permissions. Implementations raise
    ``ProviderError`` for failed calls.
    """

    @abstractmethod
    def authorization_status(self) -> AuthorizationState:
        """Get the current calendar permission."""

    @abstractmethod
    async def request_access(self) -> AuthorizationState:
        """Prompt for calendar access; returns GRANTED or DENIED."""

    @abstractmethod
    async def query_events(
        self, start: datetime, end: datetime
    ) -> List[CalendarEventRef]:
        """List events overlapping the half-open range ``[start, end)``."""

    @abstractmethod
    async def default_write_calendar(self) -> Optional[CalendarRef]:
        """Get the calendar new events are saved to, if any."""

    @abstractmethod
    async def save(self, event: NewCalendarEvent) -> None:
        """Save a single-occurrence event."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get provider name (e.g., 'google', 'memory')."""
