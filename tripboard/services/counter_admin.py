"""Back-office counter edits, allowed only during maintenance."""

from __future__ import annotations

import logging
from datetime import date

from tripboard.live.errors import InvalidMessageError, NotFoundError, ServiceUnavailableError
from tripboard.live.gate import ServiceAvailabilityGate
from tripboard.models.counter import Counter, Snapshot
from tripboard.repositories.counter import CounterRepository

logger = logging.getLogger(__name__)

_BOUND_DELTAS = {"increment": 1, "decrement": -1}


class CounterAdminService:
    """Bound and state edits on stored counters.

    While the live service is enabled the snapshot cache is authoritative
    for clients, so edits are refused until the gate is closed; re-enabling
    rebuilds the cache from the edited rows.
    """

    def __init__(self, counters: CounterRepository, gate: ServiceAvailabilityGate) -> None:
        self.counters = counters
        self.gate = gate

    def _require_maintenance(self) -> None:
        if self.gate.is_enabled:
            raise ServiceUnavailableError("Live service is running, disable it before editing")

    async def list_for_date(self, day: date) -> list[Snapshot]:
        return await self.counters.list_snapshots(day, enabled_only=False)

    async def adjust_bound(self, counter_id: int, operation: str) -> Counter:
        self._require_maintenance()
        delta = _BOUND_DELTAS.get(operation)
        if delta is None:
            raise InvalidMessageError("Invalid operation type")

        existing = await self.counters.get_counter(counter_id)
        if existing is None:
            raise NotFoundError(f"Counter {counter_id} does not exist")
        if delta < 0 and existing.max_counter_value <= 0:
            raise InvalidMessageError("Maximum value cannot go below 0")

        updated = await self.counters.adjust_bound(counter_id, delta)
        if updated is None:
            raise NotFoundError(f"Counter {counter_id} does not exist")
        logger.info(
            f"Counter {counter_id} bound {existing.max_counter_value} -> "
            f"{updated.max_counter_value} (value {updated.counter_value})"
        )
        return updated

    async def set_state(self, day: date, enabled: bool, region_id: int | None = None) -> int:
        self._require_maintenance()
        changed = await self.counters.set_state(day, enabled, region_id=region_id)
        scope = f"region {region_id}" if region_id is not None else "all regions"
        logger.info(
            f"{'Enabled' if enabled else 'Disabled'} {changed} counter(s) on {day} for {scope}"
        )
        return changed
