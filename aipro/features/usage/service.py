"""
aipro/features/usage/service.py

Quota tracker.

Handles:
- Per-user, per-day request counters (fixed UTC calendar-day window)
- Usage statistics for the admin panel
- Pruning of old counters
"""

import logging
from typing import List

from aipro.core.store import USAGE_LOGS, RecordStore
from aipro.models.usage_log import UsageLog

logger = logging.getLogger(__name__)


class QuotaTracker:
    """
    Maps (user_id, day key) to a request counter.

    The quota resets exactly at the day boundary regardless of when the user
    last asked; this is a calendar-day window, not a rolling 24h window.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def current_count(self, user_id: str, as_of_day: str) -> int:
        """Counter for that user on that day, 0 if no record exists."""
        for row in self.store.get(USAGE_LOGS, []):
            if row["user_id"] == user_id and row["date"] == as_of_day:
                return int(row["count"])
        return 0

    def increment(self, user_id: str, as_of_day: str) -> int:
        """
        Consume one request.

        Creates the counter at 1 when absent, else adds 1. Every call counts;
        the read-modify-write holds the usage lock so no increment is lost.

        Returns:
            The new counter value
        """
        with self.store.locked(USAGE_LOGS):
            rows = self.store.get(USAGE_LOGS, [])
            for row in rows:
                if row["user_id"] == user_id and row["date"] == as_of_day:
                    row["count"] = int(row["count"]) + 1
                    value = row["count"]
                    break
            else:
                rows.append(UsageLog(user_id=user_id, date=as_of_day, count=1).model_dump(mode="json"))
                value = 1
            self.store.put(USAGE_LOGS, rows)
        return value

    def usage_for(self, user_id: str) -> List[UsageLog]:
        return [UsageLog.model_validate(row) for row in self.store.get(USAGE_LOGS, []) if row["user_id"] == user_id]

    def all_usage(self) -> List[UsageLog]:
        return [UsageLog.model_validate(row) for row in self.store.get(USAGE_LOGS, [])]

    def total_for_day(self, as_of_day: str) -> int:
        return sum(log.count for log in self.all_usage() if log.date == as_of_day)

    def total_requests(self) -> int:
        return sum(log.count for log in self.all_usage())

    def prune(self, before_day: str, *, dry_run: bool = False) -> int:
        """Drop counters whose day key sorts before `before_day`.

        Day keys are ISO dates, so lexical order is chronological order.
        """
        with self.store.locked(USAGE_LOGS):
            rows = self.store.get(USAGE_LOGS, [])
            kept = [row for row in rows if row["date"] >= before_day]
            removed = len(rows) - len(kept)
            if removed and not dry_run:
                self.store.put(USAGE_LOGS, kept)
        logger.info("[usage] pruned", extra={"before_day": before_day, "candidates": removed, "dry_run": dry_run})
        return removed
