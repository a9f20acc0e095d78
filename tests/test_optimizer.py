"""Tests for the optimizer client and response extraction."""
import json
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from academic_planner.config import SchedulerSettings
from academic_planner.models import Priority, Task, WorkingHours
from orchestrator.optimizer import (
    OpenAIScheduleOptimizer,
    OptimizerError,
    build_optimizer,
    build_optimizer_prompt,
    extract_optimized_slots,
)

SLOTS = (
    '[{"taskId": "essay", "start": "2025-12-15T09:00:00", "end": "2025-12-15T11:00:00"},'
    ' {"taskId": "lab", "start": "2025-12-16T13:00:00", "end": "2025-12-16T14:00:00"}]'
)


def test_extracts_plain_array() -> None:
    extraction = extract_optimized_slots(SLOTS)

    assert extraction.ok
    assert [slot.task_id for slot in extraction.slots] == ["essay", "lab"]
    assert extraction.slots[0].start == datetime(2025, 12, 15, 9)
    assert extraction.slots[1].end == datetime(2025, 12, 16, 14)


def test_extracts_fenced_block() -> None:
    text = f"Sure! Here's the improved plan:\n\n```json\n{SLOTS}\n```\n\nGood luck with the essay."
    extraction = extract_optimized_slots(text)
    assert extraction.ok
    assert len(extraction.slots) == 2


def test_extracts_array_surrounded_by_prose() -> None:
    extraction = extract_optimized_slots(f"Proposed schedule: {SLOTS} Let me know.")
    assert extraction.ok
    assert len(extraction.slots) == 2


def test_utc_suffix_is_accepted() -> None:
    text = '[{"taskId": "essay", "start": "2025-12-15T09:00:00Z", "end": "2025-12-15T10:00:00Z"}]'
    (slot,) = extract_optimized_slots(text).slots
    assert slot.start == datetime(2025, 12, 15, 9, tzinfo=timezone.utc)


def test_naive_timestamps_take_given_timezone() -> None:
    text = '[{"taskId": "essay", "start": "2025-12-15T09:00:00", "end": "2025-12-15T10:00:00"}]'
    (slot,) = extract_optimized_slots(text, timezone.utc).slots
    assert slot.start.tzinfo is timezone.utc


@pytest.mark.parametrize("text, message", [
    ("I could not improve this schedule.", "No JSON array"),
    ("[{'taskId': 'essay'}]", "Invalid JSON"),
    ("[]", "non-empty array"),
    ('["essay"]', "not an object"),
    ('[{"taskId": "essay", "start": "2025-12-15T09:00:00"}]', "missing fields: end"),
    ('[{"taskId": "essay", "start": "tomorrow", "end": "2025-12-15T10:00:00"}]', "Invalid timestamp"),
    ('[{"taskId": "essay", "start": "2025-12-15T10:00:00", "end": "2025-12-15T09:00:00"}]', "ends before"),
])
def test_unusable_responses_are_failures(text: str, message: str) -> None:
    extraction = extract_optimized_slots(text)

    assert not extraction.ok
    assert extraction.slots == []
    assert message in extraction.error


def fake_client(content: str | None = None, error: Exception | None = None) -> SimpleNamespace:
    calls = []

    async def create(**kwargs):
        calls.append(kwargs)
        if error is not None:
            raise error
        message = SimpleNamespace(content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)), calls=calls)


@pytest.mark.asyncio
async def test_openai_optimizer_returns_message_content() -> None:
    client = fake_client(content=SLOTS)
    optimizer = OpenAIScheduleOptimizer("sk-test", "gpt-4o", 5.0, client=client)

    assert await optimizer.complete("plan my week") == SLOTS

    (call,) = client.calls
    assert call["model"] == "gpt-4o"
    assert call["messages"][0]["role"] == "system"
    assert "taskId" in call["messages"][0]["content"]
    assert call["messages"][1] == {"role": "user", "content": "plan my week"}


@pytest.mark.asyncio
async def test_openai_errors_become_optimizer_errors() -> None:
    optimizer = OpenAIScheduleOptimizer("sk-test", "gpt-4o", 5.0, client=fake_client(error=OpenAIError("boom")))

    with pytest.raises(OptimizerError, match="boom"):
        await optimizer.complete("plan my week")


@pytest.mark.asyncio
async def test_empty_content_is_an_error() -> None:
    optimizer = OpenAIScheduleOptimizer("sk-test", "gpt-4o", 5.0, client=fake_client(content=""))

    with pytest.raises(OptimizerError, match="Empty response"):
        await optimizer.complete("plan my week")


def test_build_optimizer_requires_api_key() -> None:
    assert build_optimizer(SchedulerSettings()) is None

    optimizer = build_optimizer(SchedulerSettings(openai_api_key="sk-test", optimizer_model="gpt-4o-mini"))
    assert isinstance(optimizer, OpenAIScheduleOptimizer)
    assert optimizer.model == "gpt-4o-mini"


def test_prompt_carries_working_hours() -> None:
    tasks = [Task("essay", "Essay draft", 90, None, Priority.HIGH)]

    prompt = build_optimizer_prompt(tasks, datetime(2025, 12, 15), 2, 0.5, WorkingHours(start_hour=7, end_hour=19))

    # Payload sits between the instruction line and the response format line
    payload = json.loads(prompt.split("\n", 1)[1].rsplit("\n", 1)[0])
    assert payload["workingHours"] == {"start": "07:00", "end": "19:00"}
    assert payload["tasks"][0]["taskId"] == "essay"
