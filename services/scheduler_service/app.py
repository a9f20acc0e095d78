"""
FastAPI service for study scheduling.

This service exposes the scheduling engine as REST API endpoints: planning a
week of tasks, suggesting the next free slot for a single task, and turning
extracted syllabus assignments into tasks. Planned events are pushed to the
calendar sink before they are returned.
"""
from __future__ import annotations

import logging
import typing as t
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException

from academic_planner.config import SchedulerSettings
from academic_planner.models import ScheduleInputError, parse_datetime, tasks_from_assignments, validate_tasks
from academic_planner.slot_finder import find_next_slot
from orchestrator.optimizer import build_optimizer
from orchestrator.planner import ScheduleOrchestrator, events_to_intervals
from productivity_server.server import upsert_calendar_events
from services.shared.models import (
    CalendarEvent as PydanticCalendarEvent,
    ExtractionResult,
    ScheduleRequest,
    ScheduleResponse,
    SuggestSlotRequest,
    SuggestSlotResponse,
    SyncResult as PydanticSyncResult,
    TaskIn,
)

logger = logging.getLogger(__name__)

settings = SchedulerSettings.from_env()

# Replaced on startup once the optimizer credential has been checked
schedule_orchestrator = ScheduleOrchestrator(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources on startup and cleanup on shutdown."""
    global schedule_orchestrator

    optimizer = build_optimizer(settings)
    if optimizer is None:
        logger.info("OPENAI_API_KEY not set; schedule optimizer disabled")
    schedule_orchestrator = ScheduleOrchestrator(settings, optimizer)

    yield


app = FastAPI(
    title="Study Scheduler Service",
    description="REST API for planning study tasks into working-hour calendar slots",
    version="1.0.0",
    lifespan=lifespan,
)


def get_orchestrator() -> ScheduleOrchestrator:
    return schedule_orchestrator


def _resolve_time(value: t.Optional[str]) -> datetime:
    """Parse a client timestamp, defaulting to now.

    Timestamps are expressed in ``SCHEDULER_TIMEZONE`` when it is set. Without
    it, offsets such as ``Z`` are converted to naive server-local time so that
    working hours always mean local hours.
    """
    if not value:
        return datetime.now(settings.tzinfo)
    return settings.localize(parse_datetime(value))


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "service": "scheduler-service"}


@app.post("/schedule", response_model=ScheduleResponse)
async def create_schedule(
        request: ScheduleRequest,
        planner: ScheduleOrchestrator = Depends(get_orchestrator),
) -> ScheduleResponse:
    """
    Plan a week of tasks and push the tentative events to the calendar.

    Malformed input is rejected with 400; optimizer problems never surface
    here because the orchestrator falls back to the heuristic schedule.
    A ``weekStart`` with an offset is read in the configured timezone, or in
    server-local time when none is configured.
    """
    try:
        week_start = _resolve_time(request.week_start)
        tasks = [task.to_task(week_start.tzinfo) for task in request.tasks]
        validate_tasks(tasks)
        existing = [event.to_engine() for event in request.existing_events]
        # Reject unparseable event timestamps before planning
        events_to_intervals(existing, week_start.tzinfo)
    except ScheduleInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        events = await planner.plan_schedule(tasks, week_start, existing)
        sync_result = upsert_calendar_events(events)
    except Exception as e:
        logger.exception("Scheduling failed")
        raise HTTPException(status_code=500, detail=f"Scheduling failed: {str(e)}")

    return ScheduleResponse(
        ok=True,
        events=[PydanticCalendarEvent(**asdict(event)) for event in events],
        sync_result=PydanticSyncResult(synced=sync_result.synced, ids=sync_result.ids),
    )


@app.post("/schedule/suggest", response_model=SuggestSlotResponse)
async def suggest_slot(request: SuggestSlotRequest) -> SuggestSlotResponse:
    """
    Suggest the next free weekday slot for a single task.
    """
    try:
        now = _resolve_time(request.now)
        task = request.task.to_task(now.tzinfo)
        validate_tasks([task])
        occupied = events_to_intervals(
            [event.to_engine() for event in request.existing_events], now.tzinfo
        )
    except ScheduleInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    found = find_next_slot(task, occupied, now, settings.working_hours)
    if found is None:
        return SuggestSlotResponse(found=False)
    start, end = found
    return SuggestSlotResponse(found=True, start=start.isoformat(), end=end.isoformat())


@app.post("/tasks/from-extraction", response_model=list[TaskIn])
async def tasks_from_extraction(request: ExtractionResult) -> list[TaskIn]:
    """
    Turn assignments returned by the document extraction service into tasks.

    Only titles and deadlines are taken from the extraction; every task gets
    the requested default duration and priority.
    """
    try:
        tasks = tasks_from_assignments(
            [assignment.model_dump() for assignment in request.assignments],
            default_duration_minutes=request.default_duration_minutes,
            default_priority=request.default_priority,
            tz=settings.tzinfo,
        )
    except ScheduleInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return [
        TaskIn(
            id=task.id,
            title=task.title,
            duration_minutes=task.duration_minutes,
            deadline=task.deadline.isoformat() if task.deadline else None,
            priority=task.priority,
        )
        for task in tasks
    ]


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8004)
