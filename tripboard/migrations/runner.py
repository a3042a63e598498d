"""Schema migrations for the counter tables.

Each file in ``versions/`` named ``NNN_description.sql`` is one migration,
applied once in filename order and recorded in ``schema_migrations``.
Several server processes may start together, so a run holds a Postgres
advisory lock for its whole duration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import asyncpg

logger = logging.getLogger(__name__)

VERSIONS_DIR = Path(__file__).resolve().parent / "versions"

TRACKING_TABLE = "schema_migrations"

# Arbitrary key shared by every tripboard process
_ADVISORY_LOCK_KEY = 0x7472_6970


@dataclass(frozen=True)
class Migration:
    version: str
    path: Path

    @property
    def sql(self) -> str:
        return self.path.read_text(encoding="utf-8")


def discover(directory: Path | None = None) -> list[Migration]:
    """Migration files in ``directory`` sorted by version."""
    directory = directory or VERSIONS_DIR
    return [Migration(version=p.stem, path=p) for p in sorted(directory.glob("*.sql"))]


class MigrationRunner:
    """Applies pending migrations over an asyncpg pool."""

    def __init__(self, pool: asyncpg.Pool, directory: Path | None = None) -> None:
        self.pool = pool
        self.directory = directory or VERSIONS_DIR

    async def _ensure_table(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {TRACKING_TABLE} (
                version    TEXT PRIMARY KEY,
                name       TEXT NOT NULL,
                applied_at TIMESTAMPTZ DEFAULT NOW()
            )
            """
        )

    async def _applied(self, conn: asyncpg.Connection) -> set[str]:
        rows = await conn.fetch(f"SELECT version FROM {TRACKING_TABLE}")  # noqa: S608
        return {row["version"] for row in rows}

    async def pending(self) -> list[Migration]:
        """Migrations on disk that the database has not recorded yet."""
        async with self.pool.acquire() as conn:
            await self._ensure_table(conn)
            applied = await self._applied(conn)
        return [m for m in discover(self.directory) if m.version not in applied]

    async def run_pending(self) -> list[str]:
        """Apply every pending migration, each in its own transaction.

        Returns the versions applied by this call. A failing migration rolls
        back and propagates; versions before it stay applied.
        """
        migrations = discover(self.directory)
        if not migrations:
            logger.info(f"No migration files found in {self.directory}")
            return []

        newly_applied: list[str] = []
        async with self.pool.acquire() as conn:
            await conn.execute("SELECT pg_advisory_lock($1)", _ADVISORY_LOCK_KEY)
            try:
                await self._ensure_table(conn)
                applied = await self._applied(conn)
                for migration in migrations:
                    if migration.version in applied:
                        continue
                    await self._apply(conn, migration)
                    newly_applied.append(migration.version)
            finally:
                await conn.execute("SELECT pg_advisory_unlock($1)", _ADVISORY_LOCK_KEY)

        if newly_applied:
            logger.info(f"Applied {len(newly_applied)} migration(s): {', '.join(newly_applied)}")
        else:
            logger.info("Database schema is up to date")
        return newly_applied

    async def _apply(self, conn: asyncpg.Connection, migration: Migration) -> None:
        logger.info(f"Applying migration {migration.version}")
        async with conn.transaction():
            await conn.execute(migration.sql)
            await conn.execute(
                f"INSERT INTO {TRACKING_TABLE} (version, name) VALUES ($1, $2)",
                migration.version,
                migration.path.name,
            )
