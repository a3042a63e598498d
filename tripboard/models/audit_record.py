"""Data model for the operate_records table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass
class AuditRecord:
    """Append-only description of a counter change."""

    id: int
    record_date: date
    time_period: str
    content: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
