"""Exceptions for calendar access and event operations."""

from typing import Optional

from eventdesk.types import AuthorizationState


class CalendarError(Exception):
    """Base exception for calendar operations."""


class AccessError(CalendarError):
    """Exception raised when calendar access cannot be used."""


class AccessDeniedError(AccessError):
    """Exception raised when the user declined calendar access.

    Only a change in the system settings can recover from this; the provider
    will not prompt again.
    """

    def __init__(self, state: AuthorizationState = AuthorizationState.DENIED):
        self.state = state
        super().__init__(f"Calendar access is {state.value}")


class AccessSystemError(AccessError):
    """Exception raised when the provider's permission subsystem fails."""


class EventSaveError(CalendarError):
    """Exception raised when an event could not be created."""


class EmptyTitleError(EventSaveError):
    """Exception raised when a draft has no title."""

    def __init__(self) -> None:
        super().__init__("Event title must not be empty")


class NoDefaultCalendarError(EventSaveError):
    """Exception raised when the provider has no writable default calendar."""

    def __init__(self) -> None:
        super().__init__("No default calendar is available for new events")


class SaveError(EventSaveError):
    """Exception raised when the provider rejected the write."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class ProviderError(CalendarError):
    """Exception raised by provider implementations for failed calls."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(message)
