"""Retention job for daily usage counters."""
from datetime import timedelta
from typing import Optional
import argparse
import logging

from aipro.core.clock import Clock, SystemClock
from aipro.core.config import settings
from aipro.core.logging import configure_logging
from aipro.core.store import RecordStore
from aipro.features.usage.service import QuotaTracker

logger = logging.getLogger("aipro.workers.prune_usage")


def prune_usage_logs(
    store: RecordStore,
    *,
    retention_days: Optional[int] = None,
    dry_run: bool = False,
    clock: Optional[Clock] = None,
) -> dict:
    """Drop counters older than `retention_days` before today (UTC).

    Today's counter is never a candidate, so quota enforcement is unaffected.
    """
    days = retention_days if retention_days is not None else int(settings.USAGE_RETENTION_DAYS)
    if days < 1:
        raise ValueError("retention_days must be at least 1")
    clock = clock or SystemClock()
    cutoff = clock.day_key(clock.now() - timedelta(days=days))

    removed = QuotaTracker(store).prune(cutoff, dry_run=dry_run)
    result = {
        "retention_days": days,
        "cutoff_day": cutoff,
        "dry_run": dry_run,
        "candidates": removed,
        "deleted": 0 if dry_run else removed,
    }
    logger.info("[cleanup] usage retention", extra=result)
    return result


def main(argv=None) -> dict:
    parser = argparse.ArgumentParser(description="Prune old daily usage counters")
    parser.add_argument("--retention-days", type=int, default=None)
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--database-url", default=settings.DATABASE_URL)
    args = parser.parse_args(argv)

    configure_logging(settings.ENV)
    store = RecordStore.open(args.database_url)
    try:
        return prune_usage_logs(store, retention_days=args.retention_days, dry_run=args.dry_run)
    finally:
        store.close()


if __name__ == "__main__":
    print(main())
