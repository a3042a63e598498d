"""Data model for the regions table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Region:
    """A named area with its own set of counters."""

    id: int
    area: str
    max_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
