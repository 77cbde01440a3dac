"""Terminal front-end for picking a date, adding events and browsing days."""

import argparse
import asyncio
import logging
from datetime import datetime
from typing import Optional

from eventdesk.aggregator import EventAggregator
from eventdesk.api_clients import BaseCalendarProvider, InMemoryCalendarProvider
from eventdesk.config import get_current_config
from eventdesk.dates import day_of_month_label, resolve_timezone, weekday_label
from eventdesk.exceptions import CalendarError
from eventdesk.gate import AuthorizationGate
from eventdesk.session import CalendarSession
from eventdesk.types import AuthorizationState

logging.basicConfig(level=getattr(logging, get_current_config().log_level))

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  title TEXT      set the event title
  date ISO        select a date/time (e.g. 2025-06-10T09:00)
  open YYYY-MM-DD select a day from the month summary
  add             add the event to the calendar
  day             list events on the selected day
  month           show event counts for the selected month
  status          show calendar access status
  exit            quit"""


def create_provider(
    name: str, prompt_decision: AuthorizationState
) -> BaseCalendarProvider:
    """Build the configured calendar provider."""
    if name == "google":
        from eventdesk.api_clients.google import GoogleCalendarProvider

        return GoogleCalendarProvider()
    return InMemoryCalendarProvider(prompt_decision=prompt_decision)


def print_alert(session: CalendarSession) -> None:
    if session.alert is not None:
        print(f"[{session.alert.title}] {session.alert.message}")
        session.alert = None


def print_day(session: CalendarSession) -> None:
    print(f"Events on {session.selected:%b %d, %Y}")
    if not session.day_events:
        print("  No events found")
        return
    for event in session.day_events:
        start = event.start.astimezone(session.aggregator.tz)
        print(f"  {start:%H:%M}  {event.title}")


def print_month(session: CalendarSession) -> None:
    if not session.month_summary:
        print("No events found this month")
        return
    print("Month at a Glance")
    for key in session.sorted_month_keys():
        marker = "*" if session.is_selected_key(key) else " "
        print(
            f" {marker}{day_of_month_label(key)} {weekday_label(key)}: "
            f"{session.month_summary[key]}"
        )


async def handle_command(session: CalendarSession, line: str) -> None:
    command, _, argument = line.partition(" ")
    command = command.lower()
    argument = argument.strip()

    if command == "title":
        session.title = argument
        print(f"Title set to '{session.title}'")
    elif command == "date":
        await session.select_date(datetime.fromisoformat(argument))
        print(f"Selected {session.selected:%Y-%m-%d %H:%M}")
    elif command == "open":
        await session.select_bucket(argument)
        print(f"Selected {session.selected:%Y-%m-%d %H:%M}")
    elif command == "add":
        await session.add_to_calendar()
    elif command == "day":
        await session.refresh()
        print_day(session)
    elif command == "month":
        await session.refresh()
        print_month(session)
    elif command == "status":
        print(f"Calendar access: {session.gate.check_status().value}")
    else:
        print(HELP_TEXT)
    print_alert(session)


async def run_interactive_cli(session: CalendarSession) -> None:
    """Run interactive loop driving one calendar session."""
    print("Calendar Events - Interactive Mode")
    print("=" * 50)
    print(HELP_TEXT)
    print("-" * 50)

    await session.appear()
    print_alert(session)

    while True:
        try:
            line = input("\n> ").strip()
            if line.lower() in ["exit", "quit", "q"]:
                break
            if not line:
                continue
            await handle_command(session, line)
        except KeyboardInterrupt:
            print("\n\nGoodbye!")
            break
        except ValueError as e:
            print(f"Invalid input: {e}")
        except CalendarError as e:
            print(f"Error: {e}")

    session.dismiss()


async def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point."""
    config = get_current_config()
    parser = argparse.ArgumentParser(
        description="Add events to your calendar and browse them by day",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  eventdesk                        # Run interactive mode
  eventdesk --provider google      # Use Google Calendar
  eventdesk --deny                 # Simulate declining the access prompt
        """,
    )
    parser.add_argument(
        "--provider",
        choices=["memory", "google"],
        default=config.provider,
        help="Calendar provider to use",
    )
    parser.add_argument(
        "--deny",
        action="store_true",
        help="Decline the access prompt (memory provider only)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    decision = AuthorizationState.DENIED if args.deny else AuthorizationState.GRANTED
    provider = create_provider(args.provider, decision)
    logger.info(f"Using {provider.get_provider_name()} calendar provider")

    gate = AuthorizationGate(provider)
    aggregator = EventAggregator(provider, gate, resolve_timezone(config.timezone))
    await run_interactive_cli(CalendarSession(gate, aggregator))


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
