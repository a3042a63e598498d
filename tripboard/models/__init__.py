"""Data models for the tripboard tables."""

from .audit_record import AuditRecord
from .counter import AdjustOutcome, Counter, CounterAdjustment, Snapshot
from .region import Region
from .time_period import TimePeriod

__all__ = [
    "AdjustOutcome",
    "AuditRecord",
    "Counter",
    "CounterAdjustment",
    "Region",
    "Snapshot",
    "TimePeriod",
]
