# -*- coding: utf-8 -*-
from datetime import datetime

from fastmcp import FastMCP

from orchestrator.models import CalendarEvent
from productivity_server.models import SyncResult
from productivity_server.store import calendar_events, get_event, upsert_event

mcp = FastMCP("ProductivityServer")


def upsert_calendar_events(events: list[CalendarEvent]) -> SyncResult:
    """Pushes planned events to the calendar.

    Events are keyed by id, so re-planning the same tasks replaces their
    earlier placements instead of duplicating them.

    :param events: List of CalendarEvent objects to store.
    :return: A SyncResult with the count and ids of synced events.
    """
    for event in events:
        upsert_event(event)
    return SyncResult(synced=len(events), ids=[event.id for event in events])


def confirm_calendar_events(ids: list[str]) -> list[CalendarEvent]:
    """Marks tentative events as confirmed after the student approves them.

    :param ids: Ids of the events to confirm.
    :return: The confirmed events; unknown ids are skipped.
    """
    confirmed = []
    for event_id in ids:
        event = get_event(event_id)
        if event is None:
            continue
        event.status = "confirmed"
        confirmed.append(event)
    return confirmed


def get_calendar_events() -> list[CalendarEvent]:
    """Internal function to get calendar events sorted by start time.

    :return: A list of CalendarEvent objects.
    """
    return sorted(calendar_events.values(), key=lambda event: event.start)


def _format_datetime(iso_string: str) -> str:
    """Formats an ISO datetime string as 'Mon 1/15 2:30 PM'.

    If parsing fails, returns the original string.
    """
    try:
        dt = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
        return dt.strftime("%a %-m/%-d %-I:%M %p")
    except (ValueError, AttributeError):
        return iso_string


def format_calendar_events() -> str:
    """Internal function to format calendar events as a clean table.

    :return: Formatted table string of all calendar events.
    """
    events = get_calendar_events()
    if not events:
        return "📅 No calendar events found."

    lines = []
    lines.append("📅 CALENDAR EVENTS")
    lines.append("=" * 100)
    lines.append(f"{'#':<4} {'Title':<35} {'Start':<18} {'End':<18} {'Status':<12}")
    lines.append("-" * 100)

    for idx, event in enumerate(events, 1):
        title = event.title[:34] if len(event.title) > 34 else event.title
        lines.append(
            f"{idx:<4} {title:<35} {_format_datetime(event.start):<18} "
            f"{_format_datetime(event.end):<18} {event.status:<12}"
        )

    lines.append("=" * 100)
    tentative = sum(1 for event in events if event.status == "tentative")
    lines.append(f"Total: {len(events)} event(s), {tentative} awaiting approval")
    return "\n".join(lines)


@mcp.tool(name="upsert_calendar_events")
def upsert_calendar_events_tool(events: list[CalendarEvent]) -> SyncResult:
    """Pushes planned events to the calendar, keyed by event id."""
    return upsert_calendar_events(events)


@mcp.tool(name="confirm_calendar_events")
def confirm_calendar_events_tool(ids: list[str]) -> list[CalendarEvent]:
    """Marks tentative calendar events as confirmed."""
    return confirm_calendar_events(ids)


@mcp.tool()
def list_calendar_events() -> list[CalendarEvent]:
    """Lists all calendar events.

    :return: A list of calendar events sorted by start time.
    """
    return get_calendar_events()


@mcp.tool()
def show_calendar_events() -> str:
    """Displays all calendar events as a formatted table.

    :return: Formatted string of all calendar events, or a message if none exist.
    """
    return format_calendar_events()


if __name__ == "__main__":
    mcp.run()
