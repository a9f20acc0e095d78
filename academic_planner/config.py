# -*- coding: utf-8 -*-
"""Scheduler settings, configurable via environment variables."""
from __future__ import annotations

import os
import typing as t
from dataclasses import dataclass, field
from datetime import datetime
from zoneinfo import ZoneInfo

from academic_planner.models import WorkingHours, to_zone


# Escalation to the external optimizer happens below this mean confidence
ESCALATION_THRESHOLD = 0.8
FALLBACK_CONFIDENCE = 0.3

# Timeout for the optimizer round trip (in seconds)
OPTIMIZER_TIMEOUT = 30.0
OPTIMIZER_MODEL = "gpt-4o"


@dataclass(frozen=True)
class SchedulerSettings:
    """Explicit configuration handed to the scheduler and orchestrator."""
    working_hours: WorkingHours = field(default_factory=WorkingHours)
    escalation_threshold: float = ESCALATION_THRESHOLD
    fallback_confidence: float = FALLBACK_CONFIDENCE
    optimizer_timeout: float = OPTIMIZER_TIMEOUT
    optimizer_model: str = OPTIMIZER_MODEL
    openai_api_key: t.Optional[str] = None
    timezone: t.Optional[str] = None

    @property
    def optimizer_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def tzinfo(self) -> t.Optional[ZoneInfo]:
        return ZoneInfo(self.timezone) if self.timezone else None

    def localize(self, value: datetime) -> datetime:
        """Express a client timestamp in the configured timezone, or local time."""
        return to_zone(value, self.tzinfo)

    @classmethod
    def from_env(cls) -> "SchedulerSettings":
        """Build settings from the process environment.

        Reads ``OPENAI_API_KEY``, ``SCHEDULER_WORK_START_HOUR``,
        ``SCHEDULER_WORK_END_HOUR``, ``SCHEDULER_OPTIMIZER_TIMEOUT``,
        ``SCHEDULER_OPTIMIZER_MODEL`` and ``SCHEDULER_TIMEZONE``.
        """
        working_hours = WorkingHours(
            start_hour=int(os.getenv("SCHEDULER_WORK_START_HOUR", "9")),
            end_hour=int(os.getenv("SCHEDULER_WORK_END_HOUR", "17")),
        )
        return cls(
            working_hours=working_hours,
            optimizer_timeout=float(os.getenv("SCHEDULER_OPTIMIZER_TIMEOUT", str(OPTIMIZER_TIMEOUT))),
            optimizer_model=os.getenv("SCHEDULER_OPTIMIZER_MODEL", OPTIMIZER_MODEL),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            timezone=os.getenv("SCHEDULER_TIMEZONE") or None,
        )
