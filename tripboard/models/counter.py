"""Data models for region_counters and the live snapshots derived from it."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, time


@dataclass
class Counter:
    """One bounded counter per (region, time slot, date)."""

    id: int
    region_id: int
    counter_time: time
    date: date
    counter_value: int
    max_counter_value: int
    state: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Snapshot:
    """Display-ready projection of a counter joined with its region name.

    Field names are the wire keys live clients render from.
    """

    id: int
    area: str
    counter_time: str  # HH:MM
    date: str  # YYYY/MM/DD
    counter_value: int
    max_counter_value: int
    state: bool


class AdjustOutcome(enum.Enum):
    """Result of a bounded increment/decrement."""

    APPLIED = "applied"
    UNCHANGED = "unchanged"  # clamp policy: limit reached, nothing written
    AT_MAXIMUM = "at_maximum"
    AT_MINIMUM = "at_minimum"
    MISSING = "missing"


@dataclass
class CounterAdjustment:
    counter_id: int
    outcome: AdjustOutcome
    previous_value: int | None = None
    value: int | None = None
    bound: int | None = None

    @property
    def applied(self) -> bool:
        return self.outcome is AdjustOutcome.APPLIED
