"""In-process snapshot cache: one ordered counter list per served date.

Only dates that were warmed are served. A missing key means "not warmed",
which callers must report as such rather than treat as an empty day.

When a reload fails the previous list for that date is kept
(last-known-good) and the error propagates so the caller can report it
and retry. The store stays authoritative; the cache can be dropped and
rebuilt at any time.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from typing import Protocol

from tripboard.models.counter import Snapshot

logger = logging.getLogger(__name__)


class SnapshotSource(Protocol):
    async def list_snapshots(self, day: date, *, enabled_only: bool = True) -> list[Snapshot]: ...


class SnapshotCache:
    """Date -> snapshot list, loaded from the counter store on demand."""

    def __init__(self, source: SnapshotSource, *, enabled_only: bool = True) -> None:
        self._source = source
        self._enabled_only = enabled_only
        self._entries: dict[date, list[Snapshot]] = {}

    async def _query(self, day: date) -> list[Snapshot]:
        try:
            return await self._source.list_snapshots(day, enabled_only=self._enabled_only)
        except Exception as e:
            logger.exception(f"Failed to load snapshots for {day}: {type(e).__name__}: {e}")
            raise

    async def warm(self, days: Iterable[date]) -> None:
        """Load every date in ``days``. Stops at the first failure."""
        loaded = []
        for day in sorted(set(days)):
            snapshots = await self._query(day)
            self._entries[day] = snapshots
            loaded.append(f"{day}({len(snapshots)})")
        logger.info(f"Snapshot cache warmed: {', '.join(loaded) or 'nothing'}")

    async def refresh(self, day: date) -> list[Snapshot]:
        """Reload one date and return the new list.

        Only replaces an entry that is still cached when the query returns;
        a date dropped meanwhile (clear, retain) stays dropped.
        """
        snapshots = await self._query(day)
        if day not in self._entries:
            logger.debug(f"Snapshot cache no longer serves {day}, refresh not stored")
            return snapshots
        self._entries[day] = snapshots
        logger.debug(f"Snapshot cache refreshed for {day} ({len(snapshots)} counters)")
        return snapshots

    def get(self, day: date) -> list[Snapshot] | None:
        """Cached list for ``day``, or None when the date is not warmed."""
        return self._entries.get(day)

    def find(self, day: date, counter_id: int) -> Snapshot | None:
        for snapshot in self._entries.get(day, ()):
            if snapshot.id == counter_id:
                return snapshot
        return None

    def retain(self, days: Iterable[date]) -> None:
        """Drop every date not in ``days``."""
        keep = set(days)
        for day in [d for d in self._entries if d not in keep]:
            del self._entries[day]

    def clear(self) -> None:
        self._entries.clear()
        logger.info("Snapshot cache cleared")

    def __contains__(self, day: object) -> bool:
        return day in self._entries

    @property
    def dates(self) -> list[date]:
        return sorted(self._entries)
