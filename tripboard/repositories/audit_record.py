"""Repository for the operate_records table."""

from __future__ import annotations

import logging
from datetime import date

import asyncpg

from tripboard.models.audit_record import AuditRecord

logger = logging.getLogger(__name__)

_COLUMNS = "id, record_date, time_period, content, created_at, updated_at"


class AuditRecordRepository:
    """Append-only audit log of counter changes."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def add(self, record_date: date, time_period: str, content: str) -> int:
        """Append a record and return its id."""
        async with self.pool.acquire() as conn:
            return await conn.fetchval(
                """
                INSERT INTO operate_records (record_date, time_period, content)
                VALUES ($1, $2, $3)
                RETURNING id
                """,
                record_date,
                time_period,
                content,
            )

    async def search(
        self,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        time_period: str | None = None,
    ) -> list[AuditRecord]:
        """Records filtered by an inclusive date range and/or time slot, newest first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_COLUMNS} FROM operate_records
                WHERE ($1::date IS NULL OR record_date >= $1)
                  AND ($2::date IS NULL OR record_date <= $2)
                  AND ($3::text IS NULL OR time_period = $3)
                ORDER BY created_at DESC, id DESC
                """,
                start_date,
                end_date,
                time_period,
            )
            return [AuditRecord(**dict(row)) for row in rows]

    async def delete(self, record_id: int) -> bool:
        """Delete a record. Returns True if a row was removed."""
        async with self.pool.acquire() as conn:
            result = await conn.execute("DELETE FROM operate_records WHERE id = $1", record_id)
            deleted = result == "DELETE 1"
            if not deleted:
                logger.debug(f"No audit record with id {record_id}")
            return deleted
