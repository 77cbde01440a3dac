"""Tests for the terminal front-end commands."""

from unittest.mock import Mock

import pytest
from conftest import LOCAL_TZ, june_events, local, make_provider

from eventdesk.aggregator import EventAggregator
from eventdesk.api_clients import InMemoryCalendarProvider
from eventdesk.app import (
    HELP_TEXT,
    create_provider,
    handle_command,
    run_interactive_cli,
)
from eventdesk.gate import AuthorizationGate
from eventdesk.session import CalendarSession
from eventdesk.types import AuthorizationState


class TestCreateProvider:
    def test_memory_provider_uses_prompt_decision(self):
        provider = create_provider("memory", AuthorizationState.DENIED)

        assert isinstance(provider, InMemoryCalendarProvider)
        assert provider.prompt_decision == AuthorizationState.DENIED


class TestHandleCommand:
    @pytest.mark.asyncio
    async def test_title_then_add(self, session, provider, capsys):
        await handle_command(session, "title Dentist")
        await handle_command(session, "add")

        output = capsys.readouterr().out
        assert "Title set to 'Dentist'" in output
        assert "[Success] Event added to calendar" in output
        assert [e.title for e in provider.events] == ["Dentist"]
        assert session.alert is None

    @pytest.mark.asyncio
    async def test_day_lists_events(self, session, provider, capsys):
        provider.events = june_events()

        await handle_command(session, "day")

        output = capsys.readouterr().out
        assert "Events on Jun 10, 2025" in output
        assert "09:00  Standup" in output
        assert "14:00  Review" in output

    @pytest.mark.asyncio
    async def test_day_without_events(self, session, capsys):
        await handle_command(session, "day")

        assert "No events found" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_month_marks_selected_day(self, session, provider, capsys):
        provider.events = june_events()

        await handle_command(session, "month")

        output = capsys.readouterr().out
        assert " *10 Tue: 3" in output
        assert "  11 Wed: 1" in output

    @pytest.mark.asyncio
    async def test_open_selects_day(self, session, provider, capsys):
        provider.events = june_events()

        await handle_command(session, "open 2025-06-11")

        assert "Selected 2025-06-11 00:00" in capsys.readouterr().out
        assert [e.title for e in session.day_events] == ["Planning"]

    @pytest.mark.asyncio
    async def test_status(self, session, capsys):
        await handle_command(session, "status")

        assert "Calendar access: granted" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_denied_add_shows_settings_hint(self, capsys):
        provider = make_provider(status=AuthorizationState.DENIED)
        gate = AuthorizationGate(provider)
        aggregator = EventAggregator(provider, gate, tz=LOCAL_TZ)
        session = CalendarSession(gate, aggregator, selected=local(2025, 6, 10))
        session.title = "Gym"

        await handle_command(session, "add")

        assert "[Calendar Access Denied]" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_unknown_command_prints_help(self, session, capsys):
        await handle_command(session, "frobnicate")

        assert HELP_TEXT in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_bad_date_raises_value_error(self, session):
        with pytest.raises(ValueError):
            await handle_command(session, "date not-a-date")


class TestInteractiveLoop:
    @pytest.mark.asyncio
    async def test_calendar_errors_do_not_end_the_loop(self, monkeypatch, capsys):
        provider = make_provider()
        gate = AuthorizationGate(provider)
        aggregator = EventAggregator(provider, gate, tz=LOCAL_TZ)
        session = CalendarSession(gate, aggregator, selected=local(2025, 6, 10))
        provider.authorization_status = Mock(side_effect=RuntimeError("offline"))
        lines = iter(["status", "title Gym", "exit"])
        monkeypatch.setattr("builtins.input", lambda _: next(lines))

        await run_interactive_cli(session)

        output = capsys.readouterr().out
        assert "Error: Could not read calendar permission: offline" in output
        assert "Title set to 'Gym'" in output
