"""Maintenance switch for the live dashboard."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from tripboard.live.snapshot_cache import SnapshotCache

logger = logging.getLogger(__name__)


class ServiceAvailabilityGate:
    """Enabled: clients are served from a warm cache. Disabled: maintenance.

    Both transitions are administrator-triggered. Enabling warms the cache
    for the configured window; disabling drops it.
    """

    def __init__(
        self,
        cache: SnapshotCache,
        serving_dates: Callable[[], list[date]],
        *,
        enabled: bool = False,
    ) -> None:
        self._cache = cache
        self._serving_dates = serving_dates
        self._enabled = enabled

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def serving_dates(self) -> list[date]:
        return self._serving_dates()

    async def enable(self) -> None:
        """Open the gate and rebuild the cache from the store.

        The flag is set before warming; a warm failure propagates and leaves
        the affected dates unserved until the next enable or refresh.
        """
        self._enabled = True
        days = self._serving_dates()
        logger.info(f"Live service enabled, warming {len(days)} date(s)")
        await self._cache.warm(days)

    def disable(self) -> None:
        self._enabled = False
        self._cache.clear()
        logger.info("Live service disabled for maintenance")

    async def set_enabled(self, enabled: bool) -> None:
        if enabled:
            await self.enable()
        else:
            self.disable()
