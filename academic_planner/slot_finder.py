# -*- coding: utf-8 -*-
"""
Earliest-fit interval search inside working hours.

Two entry points share one walk: ``find_slot`` is used by the weekly scheduler
(hourly candidates, 7 days) and ``find_next_slot`` backs the single-task
"suggest next slot" feature (half-hour candidates, weekdays only, 14 days).
"""
from __future__ import annotations

import typing as t
from datetime import datetime, timedelta

from academic_planner.models import OccupiedInterval, Task, WorkingHours, align_datetime, start_of_day

Interval = t.Tuple[datetime, datetime]

WEEKLY_SEARCH_DAYS = 7
WEEKLY_GRANULARITY = timedelta(hours=1)

SUGGEST_SEARCH_DAYS = 14
SUGGEST_GRANULARITY = timedelta(minutes=30)
SUGGEST_DEFAULT_HORIZON = timedelta(days=7)
SUGGEST_MAX_HORIZON = timedelta(days=14)


def find_slot(
        task: Task,
        window_start: datetime,
        window_end: datetime,
        occupied: t.Sequence[OccupiedInterval],
        working_hours: WorkingHours = WorkingHours(),
) -> t.Optional[Interval]:
    """Find the earliest feasible interval for a task within the week.

    :param task: The task to place.
    :param window_start: Start of the scheduling window.
    :param window_end: End of the scheduling window, used as the deadline for
        tasks that have none.
    :param occupied: Intervals the new slot must not overlap.
    :param working_hours: Daily working-hour window.
    :return: ``(start, end)`` of the first accepted candidate, or None.
    """
    limit = task.deadline if task.deadline is not None else window_end
    return _walk(
        duration=timedelta(minutes=task.duration_minutes),
        cursor=window_start,
        limit=limit,
        occupied=occupied,
        working_hours=working_hours,
        granularity=WEEKLY_GRANULARITY,
        max_days=WEEKLY_SEARCH_DAYS,
        skip_weekends=False,
    )


def find_next_slot(
        task: Task,
        occupied: t.Sequence[OccupiedInterval],
        now: t.Optional[datetime] = None,
        working_hours: WorkingHours = WorkingHours(),
) -> t.Optional[Interval]:
    """Suggest the next free weekday slot for a single task.

    The horizon is the task deadline capped at 14 days from ``now``, or 7 days
    when the task has no deadline.

    :param task: The task to place.
    :param occupied: Intervals the new slot must not overlap.
    :param now: Reference time; defaults to the current local time.
    :param working_hours: Daily working-hour window.
    :return: ``(start, end)`` or None when nothing fits before the horizon.
    """
    if now is None:
        now = datetime.now()
    if task.deadline is not None:
        limit = min(align_datetime(task.deadline, now), now + SUGGEST_MAX_HORIZON)
    else:
        limit = now + SUGGEST_DEFAULT_HORIZON
    return _walk(
        duration=timedelta(minutes=task.duration_minutes),
        cursor=now,
        limit=limit,
        occupied=occupied,
        working_hours=working_hours,
        granularity=SUGGEST_GRANULARITY,
        max_days=SUGGEST_SEARCH_DAYS,
        skip_weekends=True,
    )


def _walk(
        duration: timedelta,
        cursor: datetime,
        limit: datetime,
        occupied: t.Sequence[OccupiedInterval],
        working_hours: WorkingHours,
        granularity: timedelta,
        max_days: int,
        skip_weekends: bool,
) -> t.Optional[Interval]:
    limit = align_datetime(limit, cursor)
    occupied = [interval.aligned(cursor) for interval in occupied]
    first_day = start_of_day(cursor)
    for offset in range(max_days):
        day = first_day + timedelta(days=offset)
        if skip_weekends and day.weekday() >= 5:
            continue

        opening = working_hours.opening(day)
        closing = working_hours.closing(day)
        candidate = opening if cursor <= opening else _round_up(cursor, granularity)

        while candidate < closing:
            end = candidate + duration
            # Candidate ends only grow from here on
            if end > limit:
                return None
            if end <= closing and not any(o.overlaps(candidate, end) for o in occupied):
                return candidate, end
            candidate += granularity
    return None


def _round_up(value: datetime, granularity: timedelta) -> datetime:
    """Round forward to the next granularity boundary counted from midnight."""
    elapsed = value - start_of_day(value)
    remainder = elapsed % granularity
    if not remainder:
        return value
    return value + (granularity - remainder)
