"""Calendar provider clients."""

from .base import BaseAuthManager, BaseCalendarProvider
from .memory import InMemoryCalendarProvider

__all__ = [
    "BaseAuthManager",
    "BaseCalendarProvider",
    "InMemoryCalendarProvider",
]
