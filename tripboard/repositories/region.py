"""Repository for the regions table."""

from __future__ import annotations

import asyncpg

from tripboard.models.region import Region

_COLUMNS = "id, area, max_count, created_at, updated_at"


class RegionRepository:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def get(self, region_id: int) -> Region | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(f"SELECT {_COLUMNS} FROM regions WHERE id = $1", region_id)
            if not row:
                return None
            return Region(**dict(row))

    async def list_all(self) -> list[Region]:
        """Return all regions ordered by id."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(f"SELECT {_COLUMNS} FROM regions ORDER BY id")
            return [Region(**dict(row)) for row in rows]
