"""
Shared Pydantic models for REST API serialization.

This module contains Pydantic equivalents of the dataclass models used by the
scheduling engine, accepting the camelCase field names used by the web client.
"""
from __future__ import annotations

import typing as t
from pydantic import BaseModel, ConfigDict, Field

from academic_planner.models import Priority, Task, parse_deadline
from orchestrator.models import CalendarEvent as EngineCalendarEvent


class CamelModel(BaseModel):
    """Base model accepting both field names and camelCase aliases."""
    model_config = ConfigDict(populate_by_name=True)


class TaskIn(CamelModel):
    """A task as submitted by the client."""
    id: str
    title: str
    duration_minutes: int = Field(alias="durationMinutes")
    deadline: t.Optional[str] = None  # ISO date or datetime
    priority: Priority = Priority.MEDIUM

    def to_task(self, tz: t.Optional[t.Any] = None) -> Task:
        """Convert to the engine Task, parsing the deadline."""
        return Task(
            id=self.id,
            title=self.title,
            duration_minutes=self.duration_minutes,
            deadline=parse_deadline(self.deadline, tz),
            priority=self.priority,
        )


class CalendarEvent(CamelModel):
    """Externally-facing calendar event."""
    id: str
    title: str
    start: str
    end: str
    status: t.Literal["confirmed", "tentative"] = "tentative"

    def to_engine(self) -> EngineCalendarEvent:
        return EngineCalendarEvent(**self.model_dump())


class SyncResult(BaseModel):
    """Outcome of pushing events to the calendar."""
    synced: int
    ids: list[str] = Field(default_factory=list)


class ScheduleRequest(CamelModel):
    """Request model for planning a week."""
    tasks: list[TaskIn] = Field(default_factory=list)
    week_start: t.Optional[str] = Field(default=None, alias="weekStart")
    existing_events: list[CalendarEvent] = Field(default_factory=list, alias="existingEvents")


class ScheduleResponse(CamelModel):
    """Response model for a planned week."""
    ok: bool = True
    events: list[CalendarEvent]
    sync_result: SyncResult = Field(alias="syncResult")


class SuggestSlotRequest(CamelModel):
    """Request model for suggesting the next slot for one task."""
    task: TaskIn
    now: t.Optional[str] = None
    existing_events: list[CalendarEvent] = Field(default_factory=list, alias="existingEvents")


class SuggestSlotResponse(BaseModel):
    """Response model for a slot suggestion."""
    found: bool
    start: t.Optional[str] = None
    end: t.Optional[str] = None


class ExtractedAssignment(BaseModel):
    """An assignment returned by the document extraction service."""
    title: str = ""
    deadline: t.Optional[str] = None  # "YYYY-MM-DD" or ISO datetime
    description: t.Optional[str] = None


class ExtractionResult(CamelModel):
    """Output of the document extraction service."""
    assignments: list[ExtractedAssignment] = Field(default_factory=list)
    confidence: float = 0.0
    default_duration_minutes: int = Field(default=60, alias="defaultDurationMinutes", gt=0)
    default_priority: Priority = Field(default=Priority.MEDIUM, alias="defaultPriority")
