"""Live counter protocol: identity, snapshot replies and bounded updates.

Per connection the flow is::

    admitted (anonymous) --nameSubmission--> identified --action--> ...

Every inbound frame is handled to completion on the connection's own task.
Frames from different connections interleave only at store awaits, which is
why the bounded update is a single conditional UPDATE in the store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Protocol
from zoneinfo import ZoneInfo

from starlette.websockets import WebSocket

from tripboard.core.clock import format_timestamp, local_today, parse_client_timestamp
from tripboard.live.connections import ConnectionRegistry
from tripboard.live.errors import (
    BoundExceededError,
    InvalidMessageError,
    LiveError,
    NotFoundError,
    NotServedError,
    ServiceUnavailableError,
    StoreFailureError,
    UnauthenticatedError,
)
from tripboard.live.gate import ServiceAvailabilityGate
from tripboard.live.messages import (
    CounterAction,
    CounterUpdateMessage,
    DateSelection,
    ErrorMessage,
    NameSubmission,
    RegionDataMessage,
    parse_inbound,
)
from tripboard.live.snapshot_cache import SnapshotCache
from tripboard.models.counter import AdjustOutcome, Counter, CounterAdjustment, Snapshot

logger = logging.getLogger(__name__)

MAINTENANCE_CLOSE_CODE = 1011
MAINTENANCE_CLOSE_REASON = "Service is under maintenance"


class CounterStore(Protocol):
    async def get_counter(self, counter_id: int) -> Counter | None: ...

    async def adjust_value(
        self, counter_id: int, delta: int, *, min_value: int = 0, clamp: bool = False
    ) -> CounterAdjustment: ...


class AuditLog(Protocol):
    async def add(self, record_date: date, time_period: str, content: str) -> int: ...


@dataclass(frozen=True)
class CounterPolicy:
    """Limits applied to live increments/decrements.

    ``clamp=False`` rejects an update at a limit with 403; ``clamp=True``
    accepts it as a no-op and still broadcasts the unchanged value.
    """

    min_value: int = 0
    clamp: bool = False


class LiveCounterService:
    """Turns client frames into store mutations and fan-out notifications."""

    def __init__(
        self,
        *,
        counters: CounterStore,
        audit_log: AuditLog,
        cache: SnapshotCache,
        registry: ConnectionRegistry,
        gate: ServiceAvailabilityGate,
        zone: ZoneInfo,
        policy: CounterPolicy | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.counters = counters
        self.audit_log = audit_log
        self.cache = cache
        self.registry = registry
        self.gate = gate
        self.zone = zone
        self.policy = policy or CounterPolicy()
        self._now = now or (lambda: datetime.now(timezone.utc))

    # ==================== Connection lifecycle ====================

    async def admit(self, websocket: WebSocket) -> bool:
        """Register an accepted connection, or close it when in maintenance."""
        if not self.gate.is_enabled:
            logger.info("Refused client connection, service under maintenance")
            await websocket.close(code=MAINTENANCE_CLOSE_CODE, reason=MAINTENANCE_CLOSE_REASON)
            return False
        self.registry.admit(websocket)
        return True

    def release(self, websocket: WebSocket) -> None:
        self.registry.forget(websocket)

    def today(self) -> date:
        return local_today(self.zone, self._now())

    # ==================== Frame dispatch ====================

    async def handle(self, websocket: WebSocket, raw: str | bytes) -> None:
        """Handle one inbound frame. Failures become a unicast error frame."""
        try:
            message = parse_inbound(raw)
            if isinstance(message, NameSubmission):
                await self._on_name_submission(websocket, message)
            elif isinstance(message, DateSelection):
                await self._on_date_selection(websocket, message)
            elif isinstance(message, CounterAction):
                await self._on_action(websocket, message)
            else:
                raise InvalidMessageError(f"Unsupported message type {type(message).__name__}")
        except LiveError as e:
            await self._reply_error(websocket, e)
        except Exception as e:
            logger.exception(f"Unexpected error handling client message: {type(e).__name__}: {e}")
            await self._reply_error(websocket, StoreFailureError())

    async def _reply_error(self, websocket: WebSocket, error: LiveError) -> None:
        await self.registry.send(websocket, ErrorMessage.from_error(error).model_dump())

    # ==================== Identity / date selection ====================

    def _region_data(self, day: date) -> list[Snapshot]:
        snapshots = self.cache.get(day)
        if snapshots is None:
            raise NotFoundError(f"No counter data available for {day.isoformat()}")
        return snapshots

    def _viewing_date(self, websocket: WebSocket) -> date:
        session = self.registry.session(websocket)
        if session is not None and session.selected_date is not None:
            return session.selected_date
        return self.today()

    async def _on_name_submission(self, websocket: WebSocket, message: NameSubmission) -> None:
        self.registry.identify(websocket, message.name)
        snapshots = self._region_data(self._viewing_date(websocket))
        await self.registry.send(websocket, RegionDataMessage.build(snapshots).model_dump())

    async def _on_date_selection(self, websocket: WebSocket, message: DateSelection) -> None:
        session = self.registry.session(websocket)
        if session is None or not session.identified:
            raise UnauthenticatedError()
        session.selected_date = message.date
        snapshots = self._region_data(message.date)
        await self.registry.send(websocket, RegionDataMessage.build(snapshots).model_dump())

    # ==================== Counter updates ====================

    async def _on_action(self, websocket: WebSocket, message: CounterAction) -> None:
        actor = self.registry.display_name(websocket)
        if not actor:
            raise UnauthenticatedError()
        if not self.gate.is_enabled:
            raise ServiceUnavailableError()

        counter = await self.counters.get_counter(message.id)
        if counter is None:
            raise NotFoundError(f"Counter {message.id} does not exist")

        day = counter.date
        if day not in self.cache:
            raise NotServedError(f"Counters for {day.isoformat()} are not currently served")

        snapshot = self.cache.find(day, counter.id)
        if snapshot is None:
            raise NotFoundError(f"Counter {message.id} is not listed for {day.isoformat()}")

        adjustment = await self.counters.adjust_value(
            counter.id,
            message.delta,
            min_value=self.policy.min_value,
            clamp=self.policy.clamp,
        )
        self._check_adjustment(adjustment, message)

        if adjustment.applied:
            logger.info(
                f"{actor} {message.action}ed {snapshot.area} {snapshot.counter_time} "
                f"{day.isoformat()}: {adjustment.previous_value} -> {adjustment.value}"
            )
            await self._append_audit(actor, day, snapshot, adjustment)

        # The gate may have closed while the store was busy; the write stands
        # but nothing is served or broadcast during maintenance.
        self._require_live(counter.id)
        snapshots = await self.cache.refresh(day)
        self._require_live(counter.id)
        refreshed = next((s for s in snapshots if s.id == counter.id), snapshot)

        moment = parse_client_timestamp(message.timestamp, self.zone) or self._now()
        update = CounterUpdateMessage.build(
            snapshot=refreshed,
            value=adjustment.value if adjustment.value is not None else refreshed.counter_value,
            changed_by=actor,
            timestamp=format_timestamp(moment, self.zone),
            day=day,
            snapshots=snapshots,
        )
        delivered = await self.registry.broadcast(update.model_dump())
        logger.debug(f"counterUpdate for counter {counter.id} delivered to {delivered} client(s)")

    def _require_live(self, counter_id: int) -> None:
        if not self.gate.is_enabled:
            logger.info(f"Gate closed during update of counter {counter_id}, broadcast skipped")
            raise ServiceUnavailableError()

    def _check_adjustment(self, adjustment: CounterAdjustment, message: CounterAction) -> None:
        if adjustment.outcome is AdjustOutcome.MISSING:
            raise NotFoundError(f"Counter {message.id} does not exist")
        if adjustment.outcome is AdjustOutcome.AT_MAXIMUM:
            logger.info(f"Counter {message.id} already at its maximum ({adjustment.bound})")
            raise BoundExceededError("Update rejected, counter is already at its maximum")
        if adjustment.outcome is AdjustOutcome.AT_MINIMUM:
            logger.info(f"Counter {message.id} already at its minimum ({self.policy.min_value})")
            raise BoundExceededError("Update rejected, counter is already at its minimum")

    async def _append_audit(
        self,
        actor: str,
        day: date,
        snapshot: Snapshot,
        adjustment: CounterAdjustment,
    ) -> None:
        content = (
            f"{actor} changed {snapshot.area} {day:%Y/%m/%d} {snapshot.counter_time} "
            f"from {adjustment.previous_value} to {adjustment.value}"
        )
        try:
            await self.audit_log.add(day, snapshot.counter_time, content)
        except Exception as e:
            # The counter write already happened; clients still get the update.
            logger.exception(f"Failed to append audit record for counter {snapshot.id}: {e}")
