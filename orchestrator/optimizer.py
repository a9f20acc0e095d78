"""External AI schedule optimizer.

The optimizer is a text-in/text-out collaborator: it receives a prompt that
describes the tasks and constraints and answers with free-form text that
should contain a JSON array of ``{taskId, start, end}`` triples. Turning that
text into slots is a separate step (``extract_optimized_slots``) with an
explicit success/failure result.
"""
from __future__ import annotations

import json
import logging
import re
import typing as t
from datetime import datetime

from openai import AsyncOpenAI, OpenAIError

from academic_planner.config import SchedulerSettings
from academic_planner.models import ScheduleInputError, Task, WorkingHours, parse_datetime
from orchestrator.models import OptimizedSlot, SlotExtraction
from prompts import load_prompt

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)
_JSON_ARRAY = re.compile(r"\[.*\]", re.DOTALL)


class OptimizerError(RuntimeError):
    """Raised when the optimizer cannot produce a response."""


class ScheduleOptimizer(t.Protocol):
    """Anything that turns a prompt into response text."""

    async def complete(self, prompt: str) -> str:
        ...


class OpenAIScheduleOptimizer:
    """Schedule optimizer backed by the OpenAI chat completions API."""

    def __init__(
            self,
            api_key: str,
            model: str,
            timeout: float,
            client: t.Optional[AsyncOpenAI] = None,
    ) -> None:
        self.model = model
        # Retries are off: a single failure falls back to the heuristic plan
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.system_prompt = load_prompt("schedule_optimizer_system_prompt")

    async def complete(self, prompt: str) -> str:
        """Send the prompt and return the raw response text.

        Raises:
            OptimizerError: On transport/API errors or an empty response
        """
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": prompt},
                ],
            )
        except OpenAIError as e:
            raise OptimizerError(f"Optimizer request failed: {e}") from e

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise OptimizerError("Empty response from optimizer")
        return content


def build_optimizer(settings: SchedulerSettings) -> t.Optional[OpenAIScheduleOptimizer]:
    """Return an optimizer handle when a credential is configured, else None."""
    if not settings.optimizer_enabled:
        return None
    return OpenAIScheduleOptimizer(
        api_key=settings.openai_api_key,
        model=settings.optimizer_model,
        timeout=settings.optimizer_timeout,
    )


def build_optimizer_prompt(
        tasks: t.Sequence[Task],
        week_start: datetime,
        existing_event_count: int,
        heuristic_confidence: float,
        working_hours: WorkingHours = WorkingHours(),
) -> str:
    """Describe the scheduling problem for the optimizer."""
    payload = {
        "weekStart": week_start.isoformat(),
        "workingHours": {
            "start": f"{working_hours.start_hour:02d}:00",
            "end": f"{working_hours.end_hour:02d}:00",
        },
        "existingEventCount": existing_event_count,
        "heuristicConfidence": round(heuristic_confidence, 3),
        "tasks": [
            {
                "taskId": task.id,
                "title": task.title,
                "durationMinutes": task.duration_minutes,
                "priority": task.priority.value,
                "deadline": task.deadline.isoformat() if task.deadline else None,
            }
            for task in tasks
        ],
    }
    return (
        "Improve this weekly study schedule. The current heuristic plan has low "
        "confidence.\n"
        f"{json.dumps(payload, indent=2)}\n"
        'Respond with a JSON array of {"taskId", "start", "end"} objects using '
        "ISO-8601 timestamps."
    )


def extract_optimized_slots(text: str, tz: t.Optional[t.Any] = None) -> SlotExtraction:
    """Pull the slot array out of a free-form optimizer response.

    The array may be wrapped in a fenced code block or surrounded by prose.

    Args:
        text: Raw optimizer response
        tz: Optional tzinfo applied to naive timestamps

    Returns:
        SlotExtraction holding either the parsed slots or an error message
    """
    fenced = _FENCED_JSON.search(text)
    candidate = fenced.group(1) if fenced else text
    array = _JSON_ARRAY.search(candidate)
    if array is None:
        return SlotExtraction.failure("No JSON array found in optimizer response")

    try:
        data = json.loads(array.group(0))
    except json.JSONDecodeError as e:
        return SlotExtraction.failure(f"Invalid JSON in optimizer response: {e}")

    if not isinstance(data, list) or not data:
        return SlotExtraction.failure("Optimizer response is not a non-empty array")

    slots = []
    for idx, item in enumerate(data):
        if not isinstance(item, dict):
            return SlotExtraction.failure(f"Entry {idx} is not an object")
        missing = [key for key in ("taskId", "start", "end") if key not in item]
        if missing:
            return SlotExtraction.failure(f"Entry {idx} missing fields: {', '.join(missing)}")
        try:
            start = parse_datetime(str(item["start"]), tz)
            end = parse_datetime(str(item["end"]), tz)
            if end <= start:
                return SlotExtraction.failure(f"Entry {idx} ends before it starts")
        except (ScheduleInputError, TypeError) as e:
            return SlotExtraction.failure(f"Entry {idx}: {e}")
        slots.append(OptimizedSlot(task_id=str(item["taskId"]), start=start, end=end))

    return SlotExtraction.success(slots)
