"""
Data models for the calendar sink.

This module contains the dataclass returned when planned events are pushed to
the calendar.
"""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class SyncResult:
    """Outcome of pushing events to the calendar."""
    synced: int
    ids: list[str] = field(default_factory=list)
