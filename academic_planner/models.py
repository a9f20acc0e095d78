# -*- coding: utf-8 -*-
"""
Data models for the scheduling engine.

Tasks come in from the caller (extracted from a syllabus or entered by hand),
occupied intervals describe time that cannot be used, and placed slots are
what the scheduler hands back for every task.
"""
from __future__ import annotations

import hashlib
import typing as t
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


class ScheduleInputError(ValueError):
    """Raised when scheduling input is malformed."""


class Priority(str, Enum):
    """Ordinal task priority."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def weight(self) -> int:
        return _PRIORITY_WEIGHTS[self]


_PRIORITY_WEIGHTS = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
}


@dataclass(frozen=True)
class WorkingHours:
    """Daily time-of-day window in which slots may be placed."""
    start_hour: int = 9
    end_hour: int = 17

    def __post_init__(self) -> None:
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(
                f"Invalid working hours {self.start_hour}-{self.end_hour}"
            )

    def opening(self, day: datetime) -> datetime:
        """Working-hour start on the calendar day of ``day``."""
        return start_of_day(day) + timedelta(hours=self.start_hour)

    def closing(self, day: datetime) -> datetime:
        """Working-hour end on the calendar day of ``day``."""
        return start_of_day(day) + timedelta(hours=self.end_hour)


@dataclass(frozen=True)
class Task:
    """A unit of work to schedule."""
    id: str
    title: str
    duration_minutes: int
    deadline: t.Optional[datetime] = None
    priority: Priority = Priority.MEDIUM


@dataclass(frozen=True)
class OccupiedInterval:
    """Half-open time range [start, end) that new placements must avoid."""
    start: datetime
    end: datetime

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return start < self.end and end > self.start

    def aligned(self, reference: datetime) -> "OccupiedInterval":
        """Same interval expressed with the awareness of ``reference``."""
        return OccupiedInterval(align_datetime(self.start, reference), align_datetime(self.end, reference))


@dataclass(frozen=True)
class PlacedSlot:
    """The scheduler's output for one task."""
    task_id: str
    start: datetime
    end: datetime
    confidence: float
    is_fallback: bool = False


def parse_datetime(value: str, tz: t.Optional[t.Any] = None) -> datetime:
    """Parse an ISO-8601 timestamp.

    A trailing ``Z`` is accepted. Naive results take ``tz`` when one is given so
    that they compare cleanly with aware week starts.

    :param value: ISO-8601 string.
    :param tz: Optional tzinfo applied to naive results.
    :return: The parsed datetime.
    :raises ScheduleInputError: If the value cannot be parsed.
    """
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError) as e:
        raise ScheduleInputError(f"Invalid timestamp: {value!r}") from e
    if parsed.tzinfo is None and tz is not None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def to_zone(value: datetime, tz: t.Optional[t.Any]) -> datetime:
    """Express ``value`` in ``tz``, or as naive local time when ``tz`` is None.

    Naive values are taken to already be in ``tz``.
    """
    if tz is None:
        return value if value.tzinfo is None else value.astimezone().replace(tzinfo=None)
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def align_datetime(value: datetime, reference: datetime) -> datetime:
    """Make ``value`` comparable with ``reference``.

    A naive reference pulls aware values into naive local time; an aware
    reference converts them to its zone.
    """
    return to_zone(value, reference.tzinfo)


def align_task(task: Task, reference: datetime) -> Task:
    if task.deadline is None:
        return task
    return replace(task, deadline=align_datetime(task.deadline, reference))


def parse_deadline(value: t.Optional[str], tz: t.Optional[t.Any] = None) -> t.Optional[datetime]:
    """Parse an optional deadline; date-only values resolve to 23:59 that day."""
    if not value:
        return None
    if len(value) == 10 and "T" not in value:
        value = f"{value}T23:59:00"
    return parse_datetime(value, tz)


def validate_tasks(tasks: t.Sequence[Task]) -> None:
    """Reject task lists the core must never see.

    :raises ScheduleInputError: On an empty list, a non-positive duration or
        duplicate task ids.
    """
    if not tasks:
        raise ScheduleInputError("Provide at least one task to schedule.")
    seen: set[str] = set()
    for task in tasks:
        if task.duration_minutes <= 0:
            raise ScheduleInputError(
                f"Task {task.id!r} has non-positive duration {task.duration_minutes}"
            )
        if task.id in seen:
            raise ScheduleInputError(f"Duplicate task id {task.id!r}")
        seen.add(task.id)


def tasks_from_assignments(
        assignments: t.Iterable[t.Mapping[str, t.Any]],
        default_duration_minutes: int = 60,
        default_priority: Priority = Priority.MEDIUM,
        tz: t.Optional[t.Any] = None,
) -> list[Task]:
    """Build tasks from extracted assignments.

    Only ``title`` and ``deadline`` are read from each assignment; duration and
    priority come from the defaults. Ids are derived from position and title so
    that re-running extraction on the same document yields the same ids.

    :param assignments: Dicts shaped ``{title, deadline?, description?}``.
    :param default_duration_minutes: Duration given to every task.
    :param default_priority: Priority given to every task.
    :param tz: Optional tzinfo for naive deadlines.
    :return: A list of Task objects, untitled assignments skipped.
    """
    tasks = []
    for idx, assignment in enumerate(assignments):
        title = (assignment.get("title") or "").strip()
        if not title:
            continue
        digest = hashlib.sha1(f"{idx}:{title}".encode("utf-8")).hexdigest()[:12]
        tasks.append(Task(
            id=f"assignment-{digest}",
            title=title,
            duration_minutes=default_duration_minutes,
            deadline=parse_deadline(assignment.get("deadline"), tz),
            priority=default_priority,
        ))
    return tasks
