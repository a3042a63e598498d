# tests/test_migrations.py
from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from tripboard.migrations import VERSIONS_DIR, MigrationRunner, discover

from .conftest import FakePool


@asynccontextmanager
async def _transaction():
    yield


@pytest.fixture
def versions(tmp_path: Path) -> Path:
    (tmp_path / "001_second.sql").write_text("ALTER TABLE regions ADD COLUMN note TEXT;")
    (tmp_path / "000_first.sql").write_text("CREATE TABLE regions (id SERIAL);")
    return tmp_path


def test_bundled_schema_is_discovered() -> None:
    versions = [m.version for m in discover()]
    assert versions[0] == "000_initial_schema"
    assert "region_counters" in discover(VERSIONS_DIR)[0].sql


def test_discover_orders_by_version(versions: Path) -> None:
    assert [m.version for m in discover(versions)] == ["000_first", "001_second"]


@pytest.mark.asyncio
async def test_run_pending_applies_only_new_versions(fake_pool: FakePool, versions: Path) -> None:
    fake_pool.conn.transaction = MagicMock(side_effect=lambda: _transaction())
    fake_pool.conn.fetch.return_value = [{"version": "000_first"}]

    applied = await MigrationRunner(fake_pool, versions).run_pending()

    assert applied == ["001_second"]
    statements = [call.args[0] for call in fake_pool.conn.execute.await_args_list]
    assert statements[0].startswith("SELECT pg_advisory_lock")
    assert "ALTER TABLE regions ADD COLUMN note TEXT;" in statements
    assert "CREATE TABLE regions (id SERIAL);" not in statements
    assert statements[-1].startswith("SELECT pg_advisory_unlock")


@pytest.mark.asyncio
async def test_failed_migration_releases_lock(fake_pool: FakePool, versions: Path) -> None:
    fake_pool.conn.transaction = MagicMock(side_effect=lambda: _transaction())
    fake_pool.conn.fetch.return_value = []

    async def execute(query, *args):
        if query.startswith("ALTER"):
            raise RuntimeError("syntax error")
        return "OK"

    fake_pool.conn.execute.side_effect = execute

    with pytest.raises(RuntimeError):
        await MigrationRunner(fake_pool, versions).run_pending()

    last = fake_pool.conn.execute.await_args_list[-1].args[0]
    assert last.startswith("SELECT pg_advisory_unlock")
    assert fake_pool.released == 1


@pytest.mark.asyncio
async def test_pending(fake_pool: FakePool, versions: Path) -> None:
    fake_pool.conn.fetch.return_value = [{"version": "000_first"}]

    pending = await MigrationRunner(fake_pool, versions).pending()

    assert [m.version for m in pending] == ["001_second"]
