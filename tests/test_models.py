"""Tests for engine models, parsing and validation helpers."""
from datetime import datetime, timedelta, timezone

import pytest

from academic_planner.config import SchedulerSettings
from academic_planner.models import (
    OccupiedInterval,
    Priority,
    ScheduleInputError,
    Task,
    WorkingHours,
    align_datetime,
    align_task,
    parse_datetime,
    parse_deadline,
    tasks_from_assignments,
    to_zone,
    validate_tasks,
)


def test_priority_weights() -> None:
    assert [p.weight for p in (Priority.LOW, Priority.MEDIUM, Priority.HIGH)] == [1, 2, 3]
    assert Priority("high") is Priority.HIGH


@pytest.mark.parametrize("start, end", [(17, 9), (9, 9), (-1, 5), (8, 25)])
def test_invalid_working_hours(start: int, end: int) -> None:
    with pytest.raises(ValueError):
        WorkingHours(start_hour=start, end_hour=end)


def test_working_hours_bounds_use_calendar_day() -> None:
    hours = WorkingHours(start_hour=8, end_hour=18)
    afternoon = datetime(2025, 12, 15, 15, 42)
    assert hours.opening(afternoon) == datetime(2025, 12, 15, 8)
    assert hours.closing(afternoon) == datetime(2025, 12, 15, 18)


def test_intervals_are_half_open() -> None:
    busy = OccupiedInterval(datetime(2025, 12, 15, 9), datetime(2025, 12, 15, 10))
    assert not busy.overlaps(datetime(2025, 12, 15, 10), datetime(2025, 12, 15, 11))
    assert not busy.overlaps(datetime(2025, 12, 15, 8), datetime(2025, 12, 15, 9))
    assert busy.overlaps(datetime(2025, 12, 15, 9, 59), datetime(2025, 12, 15, 11))


def test_parse_datetime_accepts_utc_suffix() -> None:
    assert parse_datetime("2025-12-15T09:00:00Z") == datetime(2025, 12, 15, 9, tzinfo=timezone.utc)


def test_parse_datetime_applies_timezone_to_naive_values() -> None:
    tz = timezone(timedelta(hours=-5))
    assert parse_datetime("2025-12-15T09:00:00", tz).tzinfo is tz
    assert parse_datetime("2025-12-15T09:00:00+01:00", tz).utcoffset() == timedelta(hours=1)


def test_parse_datetime_rejects_garbage() -> None:
    with pytest.raises(ScheduleInputError):
        parse_datetime("end of term")


def test_date_only_deadline_resolves_to_end_of_day() -> None:
    assert parse_deadline("2025-12-20") == datetime(2025, 12, 20, 23, 59)
    assert parse_deadline("2025-12-20T12:00:00") == datetime(2025, 12, 20, 12)
    assert parse_deadline(None) is None
    assert parse_deadline("") is None


def test_validate_tasks() -> None:
    ok = Task("a", "Reading", 30)
    validate_tasks([ok])

    with pytest.raises(ScheduleInputError, match="at least one task"):
        validate_tasks([])
    with pytest.raises(ScheduleInputError, match="non-positive"):
        validate_tasks([ok, Task("b", "Nothing", 0)])
    with pytest.raises(ScheduleInputError, match="Duplicate"):
        validate_tasks([ok, Task("a", "Reading again", 45)])


def test_tasks_from_assignments() -> None:
    assignments = [
        {"title": "Midterm paper", "deadline": "2025-12-19", "description": "Eight pages"},
        {"title": ""},
        {"title": "Problem set 5"},
    ]

    tasks = tasks_from_assignments(assignments, default_duration_minutes=120, default_priority=Priority.HIGH)

    assert [task.title for task in tasks] == ["Midterm paper", "Problem set 5"]
    assert tasks[0].deadline == datetime(2025, 12, 19, 23, 59)
    assert tasks[1].deadline is None
    assert {task.duration_minutes for task in tasks} == {120}
    assert {task.priority for task in tasks} == {Priority.HIGH}
    assert len({task.id for task in tasks}) == 2
    assert tasks_from_assignments(assignments)[0].id == tasks[0].id


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCHEDULER_WORK_START_HOUR", "8")
    monkeypatch.setenv("SCHEDULER_WORK_END_HOUR", "20")
    monkeypatch.setenv("SCHEDULER_OPTIMIZER_TIMEOUT", "12.5")
    monkeypatch.setenv("SCHEDULER_TIMEZONE", "America/New_York")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    settings = SchedulerSettings.from_env()

    assert settings.working_hours == WorkingHours(8, 20)
    assert settings.optimizer_timeout == 12.5
    assert not settings.optimizer_enabled
    assert settings.timezone == "America/New_York"


def test_settings_without_timezone_are_naive() -> None:
    assert SchedulerSettings().tzinfo is None


def test_to_zone_without_timezone_gives_naive_local_time() -> None:
    aware = datetime(2025, 12, 15, 14, tzinfo=timezone.utc)
    naive = datetime(2025, 12, 15, 14)

    assert to_zone(aware, None) == aware.astimezone().replace(tzinfo=None)
    assert to_zone(naive, None) is naive


def test_to_zone_with_timezone() -> None:
    tz = timezone(timedelta(hours=2))

    assert to_zone(datetime(2025, 12, 15, 9), tz) == datetime(2025, 12, 15, 9, tzinfo=tz)
    converted = to_zone(datetime(2025, 12, 15, 9, tzinfo=timezone.utc), tz)
    assert (converted.hour, converted.tzinfo) == (11, tz)


def test_alignment_follows_reference_awareness() -> None:
    naive_ref = datetime(2025, 12, 15)
    aware_ref = datetime(2025, 12, 15, tzinfo=timezone.utc)

    assert align_datetime(datetime(2025, 12, 16, 9, tzinfo=timezone.utc), naive_ref).tzinfo is None
    assert align_datetime(datetime(2025, 12, 16, 9), aware_ref) == datetime(2025, 12, 16, 9, tzinfo=timezone.utc)

    busy = OccupiedInterval(datetime(2025, 12, 15, 9), datetime(2025, 12, 15, 10)).aligned(aware_ref)
    assert busy.overlaps(aware_ref.replace(hour=9, minute=30), aware_ref.replace(hour=11))

    task = Task("a", "Reading", 30, datetime(2025, 12, 17, 12))
    assert align_task(task, aware_ref).deadline == datetime(2025, 12, 17, 12, tzinfo=timezone.utc)
    undated = Task("b", "Review", 30)
    assert align_task(undated, aware_ref) is undated
