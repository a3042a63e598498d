"""Live counter synchronization: snapshot cache, connections, gate and protocol."""

from .connections import ConnectionRegistry, ConnectionSession
from .gate import ServiceAvailabilityGate
from .service import MAINTENANCE_CLOSE_CODE, CounterPolicy, LiveCounterService
from .snapshot_cache import SnapshotCache

__all__ = [
    "MAINTENANCE_CLOSE_CODE",
    "ConnectionRegistry",
    "ConnectionSession",
    "CounterPolicy",
    "LiveCounterService",
    "ServiceAvailabilityGate",
    "SnapshotCache",
]
