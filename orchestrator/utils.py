"""Utility functions for the orchestrator CLI."""
import json
import typing as t
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console

from academic_planner.models import ScheduleInputError, Task, parse_datetime, to_zone, validate_tasks
from orchestrator.models import CalendarEvent
from orchestrator.planner import events_to_intervals
from services.shared.models import ScheduleRequest

console = Console()
err_console = Console(stderr=True)


def load_schedule_request(
        path: str,
        tz: t.Optional[t.Any] = None,
) -> tuple[list[Task], datetime, list[CalendarEvent]]:
    """Load and validate a schedule request from a JSON file.

    The file uses the same shape as the REST API:
    ``{"tasks": [...], "weekStart": "...", "existingEvents": [...]}``.

    Args:
        path: Path to the JSON request file
        tz: Optional tzinfo applied to naive timestamps

    Returns:
        Tuple of (tasks, week_start, existing_events)

    Raises:
        SystemExit: If the file cannot be read or the request is malformed
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        request = ScheduleRequest.model_validate(raw)
        week_start = to_zone(parse_datetime(request.week_start), tz) if request.week_start else datetime.now(tz)
        tasks = [task.to_task(week_start.tzinfo) for task in request.tasks]
        validate_tasks(tasks)
        existing_events = [event.to_engine() for event in request.existing_events]
        events_to_intervals(existing_events, week_start.tzinfo)
    except (OSError, json.JSONDecodeError, ValidationError, ScheduleInputError) as e:
        err_console.print(f"[red]Error:[/red] Invalid schedule request '{path}': {e}")
        raise SystemExit(1)

    return tasks, week_start, existing_events
