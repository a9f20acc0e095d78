"""
MCP wrapper for the scheduler service.

This module exposes the weekly planner as MCP tools that make HTTP calls to
the scheduler REST service. It handles serialization between the engine's
dataclass models and the Pydantic request/response models.
"""
from __future__ import annotations

import os
import typing as t

import httpx
from fastmcp import FastMCP

# Engine dataclass models for the MCP interface
from academic_planner.models import Task
from orchestrator.models import CalendarEvent
# Pydantic models for HTTP serialization
from services.shared.models import (
    CalendarEvent as PydanticCalendarEvent,
    ScheduleRequest,
    ScheduleResponse,
    SuggestSlotRequest,
    SuggestSlotResponse,
    TaskIn,
)


mcp = FastMCP("SchedulerMCPWrapper")

# Service URL - configurable via environment variable
SCHEDULER_SERVICE_URL = os.getenv("SCHEDULER_SERVICE_URL", "http://localhost:8004")

# Planning may escalate to the optimizer, so allow more than its own timeout
PLAN_TIMEOUT = 60.0
SUGGEST_TIMEOUT = 10.0


def _task_to_pydantic(task: Task) -> TaskIn:
    return TaskIn(
        id=task.id,
        title=task.title,
        duration_minutes=task.duration_minutes,
        deadline=task.deadline.isoformat() if task.deadline else None,
        priority=task.priority,
    )


def _event_to_pydantic(event: CalendarEvent) -> PydanticCalendarEvent:
    return PydanticCalendarEvent(
        id=event.id,
        title=event.title,
        start=event.start,
        end=event.end,
        status=event.status,
    )


def _post(path: str, payload: dict[str, t.Any], timeout: float, client: t.Optional[httpx.Client]) -> t.Any:
    """POST to the scheduler service, mapping transport errors to RuntimeError."""
    try:
        if client is not None:
            response = client.post(f"{SCHEDULER_SERVICE_URL}{path}", json=payload, timeout=timeout)
        else:
            with httpx.Client(timeout=timeout) as owned:
                response = owned.post(f"{SCHEDULER_SERVICE_URL}{path}", json=payload)
        response.raise_for_status()
        return response.json()
    except httpx.TimeoutException as e:
        raise RuntimeError(f"Scheduler request {path} timed out after {timeout} seconds") from e
    except httpx.HTTPStatusError as e:
        raise RuntimeError(
            f"HTTP error from scheduler service: {e.response.status_code} {e.response.text}"
        ) from e
    except httpx.HTTPError as e:
        raise RuntimeError(f"Error calling scheduler service: {str(e)}") from e


def _plan_schedule(
        tasks: list[Task],
        week_start: str,
        existing_events: t.Sequence[CalendarEvent] = (),
        client: t.Optional[httpx.Client] = None,
) -> list[CalendarEvent]:
    """
    Plan a week of tasks through the scheduler service.

    Returns the tentative events in the engine's dataclass format.
    """
    request = ScheduleRequest(
        tasks=[_task_to_pydantic(task) for task in tasks],
        week_start=week_start,
        existing_events=[_event_to_pydantic(event) for event in existing_events],
    )
    data = _post("/schedule", request.model_dump(mode="json", by_alias=True), PLAN_TIMEOUT, client)
    result = ScheduleResponse.model_validate(data)
    return [event.to_engine() for event in result.events]


def _suggest_next_slot(
        task: Task,
        now: t.Optional[str] = None,
        existing_events: t.Sequence[CalendarEvent] = (),
        client: t.Optional[httpx.Client] = None,
) -> SuggestSlotResponse:
    """Ask the scheduler service for the next free slot for one task."""
    request = SuggestSlotRequest(
        task=_task_to_pydantic(task),
        now=now,
        existing_events=[_event_to_pydantic(event) for event in existing_events],
    )
    data = _post("/schedule/suggest", request.model_dump(mode="json", by_alias=True), SUGGEST_TIMEOUT, client)
    return SuggestSlotResponse.model_validate(data)


# MCP tool wrappers that call the raw functions
@mcp.tool()
def plan_schedule(
        tasks: list[Task],
        week_start: str,
        existing_events: t.Optional[list[CalendarEvent]] = None,
) -> list[CalendarEvent]:
    """Plans study tasks into tentative working-hour calendar events for one week."""
    return _plan_schedule(tasks, week_start, existing_events or ())


@mcp.tool()
def suggest_next_slot(
        task: Task,
        now: t.Optional[str] = None,
        existing_events: t.Optional[list[CalendarEvent]] = None,
) -> dict[str, t.Any]:
    """Suggests the next free weekday slot for one task."""
    return _suggest_next_slot(task, now, existing_events or ()).model_dump()
