"""Daily counter provisioning, retention pruning and cache roll-over."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, time, timedelta
from zoneinfo import ZoneInfo

from tripboard.core.clock import date_window, local_today, seconds_until
from tripboard.live.gate import ServiceAvailabilityGate
from tripboard.live.snapshot_cache import SnapshotCache
from tripboard.repositories.counter import CounterRepository
from tripboard.repositories.region import RegionRepository
from tripboard.repositories.time_period import TimePeriodRepository

logger = logging.getLogger(__name__)


@dataclass
class ProvisioningReport:
    day: date
    created: int = 0
    pruned: int = 0
    warmed: list[date] | None = None


class ProvisioningService:
    """Keeps a rolling window of counters in the store.

    Each run pre-creates counters for ``today .. today + days_ahead - 1``,
    deletes counters older than ``retention_days`` and, while the live
    service is enabled, moves the snapshot cache onto the new window.
    """

    def __init__(
        self,
        *,
        counters: CounterRepository,
        regions: RegionRepository,
        time_periods: TimePeriodRepository,
        cache: SnapshotCache,
        gate: ServiceAvailabilityGate,
        days_ahead: int = 10,
        retention_days: int = 7,
    ) -> None:
        self.counters = counters
        self.regions = regions
        self.time_periods = time_periods
        self.cache = cache
        self.gate = gate
        self.days_ahead = days_ahead
        self.retention_days = retention_days

    async def run(self, today: date) -> ProvisioningReport:
        report = ProvisioningReport(day=today)

        regions = await self.regions.list_all()
        periods = await self.time_periods.list_all()
        days = date_window(today, self.days_ahead)
        logger.info(
            f"Provisioning {len(regions)} region(s) x {len(periods)} time period(s) "
            f"for {len(days)} date(s) from {today}"
        )
        if regions and periods and days:
            report.created = await self.counters.provision(days)

        cutoff = today - timedelta(days=self.retention_days)
        report.pruned = await self.counters.prune(cutoff)
        logger.info(
            f"Provisioning done: {report.created} counter(s) created, "
            f"{report.pruned} older than {cutoff} pruned"
        )

        if self.gate.is_enabled:
            serving = self.gate.serving_dates()
            self.cache.retain(serving)
            await self.cache.warm(serving)
            report.warmed = serving

        return report


async def provisioning_loop(
    service: ProvisioningService,
    zone: ZoneInfo,
    at: time,
) -> None:
    """Run ``service`` once now, then every day at local time ``at``."""
    while True:
        try:
            await service.run(local_today(zone))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Provisioning run failed: {type(e).__name__}: {e}")

        delay = seconds_until(at, zone)
        logger.debug(f"Next provisioning run in {int(delay)}s")
        await asyncio.sleep(delay)
