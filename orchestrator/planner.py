"""Schedule orchestration: heuristic first, AI escalation second.

Every run starts with the local heuristic scheduler. Only when its mean
confidence falls below the escalation threshold, and an optimizer handle was
provided, is the external optimizer asked for a better arrangement. Any
optimizer failure falls back to the heuristic result, and tasks the optimizer
leaves out keep their heuristic slots.
"""
from __future__ import annotations

import asyncio
import logging
import typing as t
from datetime import datetime

from academic_planner.config import SchedulerSettings
from academic_planner.models import OccupiedInterval, PlacedSlot, Task, parse_datetime
from academic_planner.scheduler import mean_confidence, schedule_heuristically
from orchestrator.models import CalendarEvent, OptimizedSlot, PlanOutcome
from orchestrator.optimizer import ScheduleOptimizer, build_optimizer_prompt, extract_optimized_slots

logger = logging.getLogger(__name__)

UNTITLED_TASK = "Untitled task"


def events_to_intervals(
        events: t.Iterable[CalendarEvent],
        tz: t.Optional[t.Any] = None,
) -> list[OccupiedInterval]:
    """Convert existing calendar events into occupied intervals."""
    return [
        OccupiedInterval(parse_datetime(event.start, tz), parse_datetime(event.end, tz))
        for event in events
    ]


def project_slots(
        slots: t.Iterable[t.Union[PlacedSlot, OptimizedSlot]],
        tasks: t.Sequence[Task],
) -> list[CalendarEvent]:
    """Project slots into tentative calendar events titled after their tasks."""
    titles = {task.id: task.title for task in tasks}
    return [
        CalendarEvent(
            id=slot.task_id,
            title=titles.get(slot.task_id, UNTITLED_TASK),
            start=slot.start.isoformat(),
            end=slot.end.isoformat(),
            status="tentative",
        )
        for slot in slots
    ]


class ScheduleOrchestrator:
    """Runs the heuristic scheduler and decides whether to escalate.

    Args:
        settings: Scheduler settings; defaults are used when omitted
        optimizer: Optional optimizer handle. None disables escalation.
    """

    def __init__(
            self,
            settings: t.Optional[SchedulerSettings] = None,
            optimizer: t.Optional[ScheduleOptimizer] = None,
    ) -> None:
        self.settings = settings or SchedulerSettings()
        self.optimizer = optimizer

    async def plan_schedule(
            self,
            tasks: t.Sequence[Task],
            week_start: datetime,
            existing_events: t.Sequence[CalendarEvent] = (),
    ) -> list[CalendarEvent]:
        """Plan the week and return tentative calendar events."""
        events, _ = await self.plan_schedule_with_outcome(tasks, week_start, existing_events)
        return events

    async def plan_schedule_with_outcome(
            self,
            tasks: t.Sequence[Task],
            week_start: datetime,
            existing_events: t.Sequence[CalendarEvent] = (),
    ) -> tuple[list[CalendarEvent], PlanOutcome]:
        """Plan the week and report which terminal state produced the result.

        Args:
            tasks: Validated tasks to schedule
            week_start: Start of the scheduling week
            existing_events: Calendar commitments to schedule around

        Returns:
            Tuple of (events, outcome). Never raises on optimizer failure.
        """
        occupied = events_to_intervals(existing_events, week_start.tzinfo)
        slots = schedule_heuristically(
            tasks,
            week_start,
            occupied,
            working_hours=self.settings.working_hours,
            fallback_confidence=self.settings.fallback_confidence,
        )
        heuristic_events = project_slots(slots, tasks)
        confidence = mean_confidence(slots)

        if confidence >= self.settings.escalation_threshold or self.optimizer is None:
            logger.info(
                "Returning heuristic schedule for %d task(s) (confidence %.2f)",
                len(tasks), confidence,
            )
            return heuristic_events, PlanOutcome.DIRECT_RETURN

        logger.info(
            "Heuristic confidence %.2f below %.2f; escalating to optimizer",
            confidence, self.settings.escalation_threshold,
        )
        prompt = build_optimizer_prompt(
            tasks, week_start, len(existing_events), confidence, self.settings.working_hours,
        )
        logger.debug("Optimizer prompt: %s", prompt)

        try:
            response = await asyncio.wait_for(
                self.optimizer.complete(prompt),
                timeout=self.settings.optimizer_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Optimizer timed out after %.1fs; using heuristic schedule",
                self.settings.optimizer_timeout,
            )
            return heuristic_events, PlanOutcome.HEURISTIC_RETURN
        except Exception as e:
            logger.warning("Optimizer failed (%s); using heuristic schedule", e)
            return heuristic_events, PlanOutcome.HEURISTIC_RETURN

        extraction = extract_optimized_slots(response, week_start.tzinfo)
        if not extraction.ok:
            logger.warning("Unusable optimizer response (%s); using heuristic schedule", extraction.error)
            return heuristic_events, PlanOutcome.HEURISTIC_RETURN

        logger.info("Optimizer returned %d slot(s)", len(extraction.slots))
        returned = {slot.task_id for slot in extraction.slots}
        missing = [slot for slot in slots if slot.task_id not in returned]
        if missing:
            logger.warning(
                "Optimizer omitted %d task(s) (%s); keeping their heuristic slots",
                len(missing), ", ".join(slot.task_id for slot in missing),
            )
        return project_slots([*extraction.slots, *missing], tasks), PlanOutcome.AI_SUCCESS
