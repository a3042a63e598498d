"""Repository for the region_counters table."""

from __future__ import annotations

import logging
from datetime import date

import asyncpg

from tripboard.models.counter import AdjustOutcome, Counter, CounterAdjustment, Snapshot

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, region_id, counter_time, date, counter_value, max_counter_value, state, "
    "created_at, updated_at"
)

_SNAPSHOT_QUERY = """
    SELECT rc.id,
           r.area,
           to_char(rc.counter_time, 'HH24:MI') AS counter_time,
           to_char(rc.date, 'YYYY/MM/DD') AS date,
           rc.counter_value,
           rc.max_counter_value,
           rc.state
    FROM region_counters rc
    JOIN regions r ON rc.region_id = r.id
    WHERE rc.date = $1 AND ($2::boolean IS FALSE OR rc.state = TRUE)
    ORDER BY rc.counter_time, r.id
"""


class CounterRepository:
    """Pure SQL operations for region_counters."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def get_counter(self, counter_id: int) -> Counter | None:
        """Full counter row, or None when the id does not exist."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_COLUMNS} FROM region_counters WHERE id = $1", counter_id
            )
            if not row:
                return None
            return Counter(**dict(row))

    async def list_snapshots(self, day: date, *, enabled_only: bool = True) -> list[Snapshot]:
        """Counters for one date joined with region names, ordered by time slot."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(_SNAPSHOT_QUERY, day, enabled_only)
            return [Snapshot(**dict(row)) for row in rows]

    async def adjust_value(
        self,
        counter_id: int,
        delta: int,
        *,
        min_value: int = 0,
        clamp: bool = False,
    ) -> CounterAdjustment:
        """Move a counter by ``delta`` without leaving ``[min_value, bound]``.

        The bound check and the write happen in one conditional UPDATE, so
        concurrent callers on the same row are serialized by the row lock.
        Only when nothing matched is the row read back to tell a missing id
        from a limit hit.
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                UPDATE region_counters
                SET counter_value = counter_value + $2, updated_at = NOW()
                WHERE id = $1
                  AND counter_value + $2 >= $3
                  AND counter_value + $2 <= max_counter_value
                RETURNING counter_value, max_counter_value
                """,
                counter_id,
                delta,
                min_value,
            )
            if row:
                return CounterAdjustment(
                    counter_id=counter_id,
                    outcome=AdjustOutcome.APPLIED,
                    previous_value=row["counter_value"] - delta,
                    value=row["counter_value"],
                    bound=row["max_counter_value"],
                )

            current = await conn.fetchrow(
                "SELECT counter_value, max_counter_value FROM region_counters WHERE id = $1",
                counter_id,
            )

        if not current:
            return CounterAdjustment(counter_id=counter_id, outcome=AdjustOutcome.MISSING)

        if clamp:
            outcome = AdjustOutcome.UNCHANGED
        elif delta > 0:
            outcome = AdjustOutcome.AT_MAXIMUM
        else:
            outcome = AdjustOutcome.AT_MINIMUM
        value = current["counter_value"]
        return CounterAdjustment(
            counter_id=counter_id,
            outcome=outcome,
            previous_value=value,
            value=value,
            bound=current["max_counter_value"],
        )

    async def adjust_bound(self, counter_id: int, delta: int) -> Counter | None:
        """Administrative bound edit.

        Raising the bound raises the remaining value by the same amount;
        lowering it caps the value at the new bound. Returns None when the id
        is unknown or the bound would drop below zero.
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE region_counters
                SET max_counter_value = max_counter_value + $2,
                    counter_value = CASE
                        WHEN $2 > 0 THEN counter_value + $2
                        ELSE LEAST(counter_value, max_counter_value + $2)
                    END,
                    updated_at = NOW()
                WHERE id = $1 AND max_counter_value + $2 >= 0
                RETURNING {_COLUMNS}
                """,
                counter_id,
                delta,
            )
            if not row:
                return None
            return Counter(**dict(row))

    async def set_state(self, day: date, enabled: bool, *, region_id: int | None = None) -> int:
        """Enable or disable every counter of a date (optionally one region)."""
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE region_counters
                SET state = $2, updated_at = NOW()
                WHERE date = $1 AND ($3::integer IS NULL OR region_id = $3) AND state <> $2
                """,
                day,
                enabled,
                region_id,
            )
            # result is like "UPDATE N"
            return int(result.split()[-1])

    async def provision(self, days: list[date]) -> int:
        """Create missing counters for every region x time period x date.

        New counters start full: value and bound both equal the region's
        ``max_count``. Existing rows are left alone.
        """
        if not days:
            return 0
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                """
                INSERT INTO region_counters
                    (region_id, counter_time, date, counter_value, max_counter_value)
                SELECT r.id, tp.start_time, d.day, r.max_count, r.max_count
                FROM regions r
                CROSS JOIN time_periods tp
                CROSS JOIN unnest($1::date[]) AS d(day)
                ON CONFLICT (region_id, counter_time, date) DO NOTHING
                """,
                days,
            )
            # result is like "INSERT 0 N"
            return int(result.split()[-1])

    async def prune(self, before: date) -> int:
        """Delete counters dated strictly before ``before``."""
        async with self.pool.acquire() as conn:
            result = await conn.execute("DELETE FROM region_counters WHERE date < $1", before)
            return int(result.split()[-1])
