"""
Clock boundary.

All timestamps are timezone-aware UTC. The quota day boundary is UTC
midnight: `day_key` returns the UTC calendar date as YYYY-MM-DD.
"""

from datetime import datetime, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...

    def day_key(self, ts: Optional[datetime] = None) -> str:
        ...


def normalize_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def day_key(ts: datetime) -> str:
    return normalize_now(ts).date().isoformat()


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def day_key(self, ts: Optional[datetime] = None) -> str:
        return day_key(ts if ts is not None else self.now())
