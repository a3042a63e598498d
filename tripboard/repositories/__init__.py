"""Repository layer: plain SQL over the asyncpg pool."""

from .audit_record import AuditRecordRepository
from .counter import CounterRepository
from .region import RegionRepository
from .time_period import TimePeriodRepository

__all__ = [
    "AuditRecordRepository",
    "CounterRepository",
    "RegionRepository",
    "TimePeriodRepository",
]
