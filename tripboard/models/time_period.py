"""Data model for the time_periods table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time


@dataclass
class TimePeriod:
    """A recurring daily slot, e.g. 08:00-08:30."""

    id: int
    start_time: time
    end_time: time
