# -*- coding: utf-8 -*-
import asyncio
import json
import logging
import typing as t
from dataclasses import asdict, replace
from datetime import datetime

import click
from rich.json import JSON
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from academic_planner.config import SchedulerSettings
from academic_planner.models import Task
from orchestrator.models import CalendarEvent, PlanOutcome
from orchestrator.optimizer import build_optimizer
from orchestrator.planner import ScheduleOrchestrator
from orchestrator.utils import console, load_schedule_request
from productivity_server.server import format_calendar_events, upsert_calendar_events


def format_datetime_human(iso_datetime: str) -> str:
    """Convert ISO datetime to human-readable format (Mon MM/DD HH:MM)."""
    try:
        dt = datetime.fromisoformat(iso_datetime.replace('Z', '+00:00'))
        return dt.strftime("%a %m/%d %H:%M")
    except (ValueError, AttributeError):
        # Fallback for malformed dates
        return iso_datetime


def truncate_title(title: str, max_length: int = 45) -> str:
    """Truncate title to max_length characters, adding ellipsis if needed."""
    if len(title) <= max_length:
        return title
    return title[:max_length-3] + "..."


def create_schedule_table(events: list[CalendarEvent], tasks: list[Task]) -> Table:
    """Create a table of planned events alongside task priority and deadline."""
    by_id = {task.id: task for task in tasks}

    table = Table(title="📅 Weekly Plan", show_header=True, header_style="bold magenta")
    table.add_column("Title", style="white")
    table.add_column("Priority", style="cyan")
    table.add_column("Slot", style="yellow")
    table.add_column("Deadline", style="red")
    table.add_column("Status", style="dim")

    for event in events:
        task = by_id.get(event.id)
        deadline = task.deadline.isoformat() if task and task.deadline else ""
        table.add_row(
            truncate_title(event.title),
            task.priority.value if task else "?",
            f"{format_datetime_human(event.start)} → {format_datetime_human(event.end)}",
            format_datetime_human(deadline) if deadline else "—",
            event.status,
        )

    return table


async def async_main(
        request_path: str,
        use_optimizer: bool,
        sync: bool,
        model: t.Optional[str],
        verbose: bool,
) -> None:
    settings = SchedulerSettings.from_env()
    if model:
        settings = replace(settings, optimizer_model=model)

    tasks, week_start, existing_events = load_schedule_request(request_path, settings.tzinfo)
    optimizer = build_optimizer(settings) if use_optimizer else None

    console.print(
        Panel.fit(
            f"[bold blue]🗓️ Study Schedule Planner[/bold blue]\n"
            f"Planning [bold]{len(tasks)}[/bold] task(s) for the week of "
            f"[cyan]{week_start.date().isoformat()}[/cyan]\n"
            f"Optimizer: [cyan]{settings.optimizer_model if optimizer else 'disabled'}[/cyan]",
            border_style="blue",
        )
    )

    planner = ScheduleOrchestrator(settings, optimizer)
    with console.status("[bold green]Planning schedule..."):
        events, outcome = await planner.plan_schedule_with_outcome(tasks, week_start, existing_events)

    if verbose:
        console.print(Panel(
            JSON(json.dumps([asdict(event) for event in events], indent=2)),
            title="📄 Planned Events",
            border_style="blue",
        ))

    console.print(create_schedule_table(events, tasks))

    outcome_style = "green" if outcome is not PlanOutcome.HEURISTIC_RETURN else "yellow"
    stats_text = Text()
    stats_text.append("Events planned: ", style="white")
    stats_text.append(f"{len(events)}", style="bold green")
    stats_text.append("\n")
    stats_text.append("Outcome: ", style="white")
    stats_text.append(outcome.value, style=f"bold {outcome_style}")
    console.print(Panel(stats_text, title="📊 Statistics", border_style="green"))

    if sync:
        result = upsert_calendar_events(events)
        console.print(f"\n[bold green]✅ Synced {result.synced} event(s) to the calendar[/bold green]")
        if verbose:
            console.print(format_calendar_events())


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument(
    "request_json",
    type=click.Path(exists=True, dir_okay=False),
)
@click.option(
    "--no-optimizer",
    "no_optimizer",
    is_flag=True,
    help="Never escalate to the AI optimizer, even with low confidence.",
)
@click.option("--sync", is_flag=True, help="Push the planned events to the calendar.")
@click.option(
    "--model",
    default=None,
    help="OpenAI model used by the optimizer (default: SCHEDULER_OPTIMIZER_MODEL or gpt-4o).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
def main(request_json: str, no_optimizer: bool, sync: bool, model: t.Optional[str], verbose: bool) -> None:
    """Plan a week of study tasks into working-hour calendar slots.

    REQUEST_JSON: Path to a JSON file with tasks, weekStart and existingEvents.

    Examples:
        # Plan locally without the optimizer
        python -m orchestrator.run --no-optimizer requests/week.json

        # Plan and push events to the calendar
        python -m orchestrator.run --sync requests/week.json
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    asyncio.run(async_main(request_json, not no_optimizer, sync, model, verbose))


if __name__ == "__main__":
    main()
