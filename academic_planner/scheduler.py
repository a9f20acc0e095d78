# -*- coding: utf-8 -*-
"""
Greedy weekly scheduler.

Tasks are ordered by urgency, then placed one at a time with the slot finder.
Every placement joins the occupied set so later tasks avoid it. A task that
cannot be placed still gets a low-confidence fallback slot; no task is ever
dropped.
"""
from __future__ import annotations

import logging
import typing as t
from datetime import datetime, timedelta

from academic_planner.config import FALLBACK_CONFIDENCE
from academic_planner.models import OccupiedInterval, PlacedSlot, Task, WorkingHours, align_task, start_of_day
from academic_planner.slot_finder import find_slot

logger = logging.getLogger(__name__)

SCHEDULING_WINDOW = timedelta(days=7)

BASE_CONFIDENCE = 0.7
DISTANT_DEADLINE_BONUS = 0.2
NEAR_DEADLINE_BONUS = 0.4
NEAR_DEADLINE = timedelta(days=3)
PRIORITY_BONUS = 0.2


def order_tasks(tasks: t.Iterable[Task]) -> list[Task]:
    """Sort tasks into processing order.

    Dated tasks come before undated ones, earlier deadlines first; ties on the
    deadline key are broken by priority, highest first. Sorting is stable.
    """
    def sort_key(task: Task) -> tuple[bool, float, int]:
        deadline_key = task.deadline.timestamp() if task.deadline is not None else 0.0
        return task.deadline is None, deadline_key, -task.priority.weight

    return sorted(tasks, key=sort_key)


def score_confidence(task: Task, slot_end: datetime, effective_deadline: datetime) -> float:
    """Heuristic placement score in [0, 1].

    Tighter placements near a deadline score higher, as does higher priority.
    """
    remaining = effective_deadline - slot_end
    urgency = DISTANT_DEADLINE_BONUS if remaining > NEAR_DEADLINE else NEAR_DEADLINE_BONUS
    priority = (task.priority.weight / 3) * PRIORITY_BONUS
    return min(1.0, BASE_CONFIDENCE + urgency + priority)


def fallback_slot(
        task: Task,
        window_start: datetime,
        working_hours: WorkingHours,
        confidence: float = FALLBACK_CONFIDENCE,
) -> PlacedSlot:
    """Placeholder at the working-hour end of the window's first day.

    The slot is not checked for conflicts or deadlines; its low confidence is
    the only marker that it needs re-planning.
    """
    start = working_hours.closing(start_of_day(window_start))
    return PlacedSlot(
        task_id=task.id,
        start=start,
        end=start + timedelta(minutes=task.duration_minutes),
        confidence=confidence,
        is_fallback=True,
    )


def schedule_heuristically(
        tasks: t.Sequence[Task],
        week_start: datetime,
        existing_events: t.Iterable[OccupiedInterval] = (),
        working_hours: WorkingHours = WorkingHours(),
        fallback_confidence: float = FALLBACK_CONFIDENCE,
) -> list[PlacedSlot]:
    """Place every task into the week starting at ``week_start``.

    Deadlines and existing intervals are first expressed with the same tz
    awareness as ``week_start``.

    Args:
        tasks: Validated tasks to place
        week_start: Start of the 7-day scheduling window
        existing_events: Intervals already taken on the calendar
        working_hours: Daily working-hour window
        fallback_confidence: Confidence given to fallback placements

    Returns:
        One PlacedSlot per task, in processing order
    """
    window_end = week_start + SCHEDULING_WINDOW
    occupied = [interval.aligned(week_start) for interval in existing_events]
    slots: list[PlacedSlot] = []

    for task in order_tasks(align_task(task, week_start) for task in tasks):
        found = find_slot(task, week_start, window_end, occupied, working_hours)
        if found is None:
            logger.warning(
                "No feasible slot for task %s (%d min); using fallback placement",
                task.id, task.duration_minutes,
            )
            slots.append(fallback_slot(task, week_start, working_hours, fallback_confidence))
            continue

        start, end = found
        effective_deadline = task.deadline if task.deadline is not None else window_end
        slots.append(PlacedSlot(
            task_id=task.id,
            start=start,
            end=end,
            confidence=score_confidence(task, end, effective_deadline),
        ))
        occupied.append(OccupiedInterval(start, end))

    if len(slots) != len(tasks):
        raise RuntimeError(
            f"Scheduler produced {len(slots)} slots for {len(tasks)} tasks"
        )
    return slots


def mean_confidence(slots: t.Sequence[PlacedSlot]) -> float:
    """Arithmetic mean confidence; 1.0 for an empty schedule."""
    if not slots:
        return 1.0
    return sum(slot.confidence for slot in slots) / len(slots)
