"""Shared test fixtures and utilities for eventdesk tests.

This module contains common test fixtures, event factories and constants
that are used across multiple test files.
"""

import itertools
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest

from eventdesk.aggregator import EventAggregator
from eventdesk.api_clients.memory import InMemoryCalendarProvider
from eventdesk.gate import AuthorizationGate
from eventdesk.session import CalendarSession
from eventdesk.types import AuthorizationState, CalendarEventRef

# Fixed offset so day boundaries differ from UTC without needing tzdata.
LOCAL_TZ = timezone(timedelta(hours=2))

_ids = itertools.count(1)


def local(
    year: int, month: int, day: int, hour: int = 0, minute: int = 0
) -> datetime:
    """An aware datetime in the test zone."""
    return datetime(year, month, day, hour, minute, tzinfo=LOCAL_TZ)


def zone(name: str) -> ZoneInfo:
    """An IANA zone, skipping the test when the tz database is missing."""
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        pytest.skip(f"tz database has no {name}")


def make_event(
    start: datetime,
    title: Optional[str] = None,
    duration: timedelta = timedelta(hours=1),
    event_id: Optional[str] = None,
) -> CalendarEventRef:
    """Create a provider-owned event starting at ``start``."""
    number = next(_ids)
    return CalendarEventRef(
        id=event_id or f"event_{number}",
        title=title or f"Event {number}",
        start=start,
        end=start + duration,
        color="#3380CC",
        calendar_id="local",
    )


def make_provider(
    status: AuthorizationState = AuthorizationState.GRANTED,
    events: Iterable[CalendarEventRef] = (),
    **kwargs,
) -> InMemoryCalendarProvider:
    return InMemoryCalendarProvider(status=status, events=events, **kwargs)


def june_events() -> List[CalendarEventRef]:
    """Three events on 2025-06-10 (09:00, 14:00, 09:00) and one on 2025-06-11."""
    return [
        make_event(local(2025, 6, 10, 9, 0), title="Standup"),
        make_event(local(2025, 6, 10, 14, 0), title="Review"),
        make_event(local(2025, 6, 10, 9, 0), title="Coffee"),
        make_event(local(2025, 6, 11, 10, 30), title="Planning"),
    ]


@pytest.fixture
def provider() -> InMemoryCalendarProvider:
    """Provide a provider with access already granted and no events."""
    return make_provider()


@pytest.fixture
def gate(provider: InMemoryCalendarProvider) -> AuthorizationGate:
    return AuthorizationGate(provider)


@pytest.fixture
def aggregator(
    provider: InMemoryCalendarProvider, gate: AuthorizationGate
) -> EventAggregator:
    return EventAggregator(provider, gate, tz=LOCAL_TZ)


@pytest.fixture
def session(
    gate: AuthorizationGate, aggregator: EventAggregator
) -> CalendarSession:
    return CalendarSession(gate, aggregator, selected=local(2025, 6, 10, 9, 0))
