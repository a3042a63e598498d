"""Repository for the time_periods table."""

from __future__ import annotations

import asyncpg

from tripboard.models.time_period import TimePeriod


class TimePeriodRepository:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def list_all(self) -> list[TimePeriod]:
        """Return all time periods ordered by start time."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT id, start_time, end_time FROM time_periods ORDER BY start_time, id"
            )
            return [TimePeriod(**dict(row)) for row in rows]
