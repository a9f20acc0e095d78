# -*- coding: utf-8 -*-
from orchestrator.models import CalendarEvent


# In-memory calendar keyed by event id
# In a real application, this would be replaced with the calendar provider's API


calendar_events: dict[str, CalendarEvent] = {}


def upsert_event(event: CalendarEvent) -> None:
    """Adds an event to the calendar, replacing any event with the same id.

    :param event: The CalendarEvent to store.
    """
    calendar_events[event.id] = event


def get_event(event_id: str) -> CalendarEvent | None:
    """Looks up an event by id.

    :param event_id: Id of the event.
    """
    return calendar_events.get(event_id)


def clear_events() -> None:
    """Removes every stored event."""
    calendar_events.clear()
