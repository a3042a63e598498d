"""Calendar helpers bound to an explicit IANA zone.

"Today" for the dashboard is the operator's local date, never the host's.
Every helper takes the zone as a parameter so tests can pin it.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

TIMESTAMP_FORMAT = "%Y/%m/%d - %H:%M:%S"


def local_now(zone: ZoneInfo, now: datetime | None = None) -> datetime:
    """Current moment expressed in *zone*."""
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(zone)


def local_today(zone: ZoneInfo, now: datetime | None = None) -> date:
    """Calendar date in *zone*."""
    return local_now(zone, now).date()


def date_window(start: date, days: int) -> list[date]:
    """``days`` consecutive dates beginning at ``start``."""
    return [start + timedelta(days=offset) for offset in range(max(days, 0))]


def parse_client_timestamp(value: object, zone: ZoneInfo) -> datetime | None:
    """Best-effort parse of the timestamp a browser attached to an action.

    Accepts epoch milliseconds, ISO-8601 strings and the ``YYYY/MM/DD HH:MM:SS``
    shape produced by ``Intl.DateTimeFormat('zh-TW')``. Naive values are read
    as local time in *zone*. Returns ``None`` when nothing sensible comes out.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc).astimezone(zone)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip().replace(" - ", " ").replace("/", "-")
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=zone)
    return parsed.astimezone(zone)


def format_timestamp(moment: datetime, zone: ZoneInfo) -> str:
    """``YYYY/MM/DD - HH:MM:SS`` in *zone*."""
    return local_now(zone, moment).strftime(TIMESTAMP_FORMAT)


def seconds_until(at: time, zone: ZoneInfo, now: datetime | None = None) -> float:
    """Seconds from *now* until the next local occurrence of *at*."""
    current = local_now(zone, now)
    target = datetime.combine(current.date(), at, tzinfo=zone)
    if target <= current:
        target = datetime.combine(current.date() + timedelta(days=1), at, tzinfo=zone)
    return (target - current).total_seconds()
