# -*- coding: utf-8 -*-
import typing as t
from datetime import datetime

from fastmcp import FastMCP

from academic_planner.config import SchedulerSettings
from academic_planner.models import PlacedSlot, Task, parse_datetime
from academic_planner.scheduler import mean_confidence, schedule_heuristically
from academic_planner.slot_finder import find_next_slot
from orchestrator.models import CalendarEvent
from orchestrator.planner import events_to_intervals

mcp = FastMCP("AcademicPlanner")

settings = SchedulerSettings.from_env()


def suggest_next_slot(
        task: Task,
        existing_events: t.Sequence[CalendarEvent] = (),
        now: t.Optional[str] = None,
) -> dict[str, t.Any]:
    """Suggests the next free weekday slot for one task.

    :param task: The task to place.
    :param existing_events: Calendar events to avoid.
    :param now: Optional ISO reference time; defaults to the current time.
    :return: ``{"found": bool, "start": str | None, "end": str | None}``.
    """
    reference = settings.localize(parse_datetime(now)) if now else datetime.now(settings.tzinfo)
    occupied = events_to_intervals(existing_events, reference.tzinfo)
    found = find_next_slot(task, occupied, reference, settings.working_hours)
    if found is None:
        return {"found": False, "start": None, "end": None}
    start, end = found
    return {"found": True, "start": start.isoformat(), "end": end.isoformat()}


def format_schedule_summary(tasks: t.Sequence[Task], slots: t.Sequence[PlacedSlot]) -> str:
    """Formats placed slots as a table in processing order.

    :param tasks: The scheduled tasks.
    :param slots: Slots returned by the heuristic scheduler.
    :return: Formatted table string.
    """
    if not slots:
        return "🗓️ No tasks scheduled."

    by_id = {task.id: task for task in tasks}
    lines = []
    lines.append("🗓️ WEEKLY SCHEDULE")
    lines.append("=" * 110)
    lines.append(f"{'#':<4} {'Title':<36} {'Priority':<9} {'Start':<18} {'End':<18} {'Confidence':<11} {'Note':<10}")
    lines.append("-" * 110)

    for idx, slot in enumerate(slots, 1):
        task = by_id[slot.task_id]
        title = task.title[:35] if len(task.title) > 35 else task.title
        note = "FALLBACK" if slot.is_fallback else ""
        lines.append(
            f"{idx:<4} {title:<36} {task.priority.value:<9} "
            f"{slot.start.strftime('%a %-m/%-d %-I:%M %p'):<18} "
            f"{slot.end.strftime('%a %-m/%-d %-I:%M %p'):<18} "
            f"{slot.confidence:<11.2f} {note:<10}"
        )

    lines.append("=" * 110)
    fallbacks = sum(1 for slot in slots if slot.is_fallback)
    lines.append(
        f"Total: {len(slots)} task(s), {fallbacks} fallback placement(s), "
        f"mean confidence {mean_confidence(slots):.2f}"
    )
    return "\n".join(lines)


def show_schedule_summary(
        tasks: list[Task],
        week_start: str,
        existing_events: t.Sequence[CalendarEvent] = (),
) -> str:
    """Runs the heuristic scheduler for a week and formats the result."""
    start = settings.localize(parse_datetime(week_start))
    occupied = events_to_intervals(existing_events, start.tzinfo)
    slots = schedule_heuristically(tasks, start, occupied, settings.working_hours, settings.fallback_confidence)
    return format_schedule_summary(tasks, slots)


@mcp.tool(name="suggest_next_slot")
def suggest_next_slot_tool(
        task: Task,
        existing_events: t.Optional[list[CalendarEvent]] = None,
        now: t.Optional[str] = None,
) -> dict[str, t.Any]:
    """Suggests the next free weekday slot for one task within its deadline."""
    return suggest_next_slot(task, existing_events or (), now)


@mcp.tool(name="show_schedule_summary")
def show_schedule_summary_tool(
        tasks: list[Task],
        week_start: str,
        existing_events: t.Optional[list[CalendarEvent]] = None,
) -> str:
    """Displays the heuristic weekly schedule with confidence per task."""
    return show_schedule_summary(tasks, week_start, existing_events or ())


if __name__ == "__main__":
    mcp.run()
