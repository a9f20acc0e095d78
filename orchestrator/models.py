"""
Data models for the schedule orchestrator.

This module contains the externally-facing calendar event shape, the tagged
result of extracting optimized slots from an optimizer response, and the
terminal states of one planning run.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import typing as t

EventStatus = t.Literal["confirmed", "tentative"]


@dataclass
class CalendarEvent:
    """A calendar event with ISO-8601 start and end."""
    id: str
    title: str
    start: str
    end: str
    status: EventStatus = "tentative"


@dataclass(frozen=True)
class OptimizedSlot:
    """One ``{taskId, start, end}`` triple returned by the optimizer."""
    task_id: str
    start: datetime
    end: datetime


@dataclass
class SlotExtraction:
    """Result of parsing an optimizer response.

    Exactly one of ``slots`` (success) or ``error`` (failure) is meaningful.
    """
    slots: list[OptimizedSlot] = field(default_factory=list)
    error: t.Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, slots: list[OptimizedSlot]) -> "SlotExtraction":
        return cls(slots=slots)

    @classmethod
    def failure(cls, error: str) -> "SlotExtraction":
        return cls(error=error)


class PlanOutcome(Enum):
    """Terminal state of a planning run."""
    DIRECT_RETURN = "DIRECT_RETURN"
    AI_SUCCESS = "AI_SUCCESS"
    HEURISTIC_RETURN = "HEURISTIC_RETURN"
