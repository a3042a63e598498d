# tests/test_provisioning.py
import asyncio
from datetime import date, time, timedelta
from unittest.mock import AsyncMock

import pytest

from tripboard.live import ServiceAvailabilityGate, SnapshotCache
from tripboard.models import Region, TimePeriod
from tripboard.services import ProvisioningService, provisioning_loop

from .conftest import TODAY, TOMORROW, ZONE, FakeCounterStore


def _service(cache: SnapshotCache, gate: ServiceAvailabilityGate, *, regions=None, periods=None):
    counters = AsyncMock()
    counters.provision.return_value = 6
    counters.prune.return_value = 2
    region_repo = AsyncMock()
    region_repo.list_all.return_value = (
        [Region(id=1, area="North", max_count=3)] if regions is None else regions
    )
    period_repo = AsyncMock()
    period_repo.list_all.return_value = (
        [TimePeriod(id=1, start_time=time(8, 0), end_time=time(8, 30))]
        if periods is None
        else periods
    )
    service = ProvisioningService(
        counters=counters,
        regions=region_repo,
        time_periods=period_repo,
        cache=cache,
        gate=gate,
        days_ahead=3,
        retention_days=7,
    )
    return service, counters


@pytest.mark.asyncio
async def test_run_provisions_window_and_prunes(
    cache: SnapshotCache, gate: ServiceAvailabilityGate
) -> None:
    service, counters = _service(cache, gate)

    report = await service.run(TODAY)

    counters.provision.assert_awaited_once_with(
        [TODAY, TODAY + timedelta(days=1), TODAY + timedelta(days=2)]
    )
    counters.prune.assert_awaited_once_with(date(2024, 8, 25))
    assert (report.created, report.pruned, report.warmed) == (6, 2, None)
    assert cache.dates == []


@pytest.mark.asyncio
async def test_run_skips_insert_without_regions(
    cache: SnapshotCache, gate: ServiceAvailabilityGate
) -> None:
    service, counters = _service(cache, gate, regions=[])

    report = await service.run(TODAY)

    counters.provision.assert_not_awaited()
    assert report.created == 0


@pytest.mark.asyncio
async def test_run_rolls_cache_when_enabled(store: FakeCounterStore, cache: SnapshotCache) -> None:
    serving = [TODAY]
    gate = ServiceAvailabilityGate(cache, lambda: list(serving))
    await gate.enable()
    service, _ = _service(cache, gate)

    serving[:] = [TOMORROW]
    report = await service.run(TOMORROW)

    assert report.warmed == [TOMORROW]
    assert cache.dates == [TOMORROW]
    assert [s.id for s in cache.get(TOMORROW)] == [8]


@pytest.mark.asyncio
async def test_loop_survives_failed_run(
    cache: SnapshotCache, gate: ServiceAvailabilityGate, monkeypatch: pytest.MonkeyPatch
) -> None:
    service, _ = _service(cache, gate)
    service.run = AsyncMock(side_effect=[RuntimeError("db down"), None])
    naps = []

    async def fake_sleep(delay: float) -> None:
        naps.append(delay)
        if len(naps) == 2:
            raise asyncio.CancelledError

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)

    with pytest.raises(asyncio.CancelledError):
        await provisioning_loop(service, ZONE, time(0, 5))

    assert service.run.await_count == 2
    assert all(0 < delay <= 24 * 3600 for delay in naps)
