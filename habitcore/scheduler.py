"""Daily recompute sweep.

Snapshots are only recomputed on mutation, so a streak that lapses at
midnight would keep showing yesterday's value. This loop refreshes every
active habit once a day at RECOMPUTE_SWEEP_HOUR (local time).
"""

import asyncio
import logging
from datetime import datetime, timedelta

from habitcore import clock
from habitcore.config import RECOMPUTE_SWEEP_HOUR
from habitcore.progress import recompute_all

log = logging.getLogger(__name__)


def seconds_until_sweep(now: datetime, hour: int = RECOMPUTE_SWEEP_HOUR) -> float:
    """Seconds from `now` until the next occurrence of `hour`:00 local time."""
    now = clock.to_local(now)
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if now >= target:
        target += timedelta(days=1)
    return (target - now).total_seconds()


async def recompute_sweep_loop(hour: int = RECOMPUTE_SWEEP_HOUR) -> None:
    """Run recompute_all() every day at `hour`. Returns at once if hour is -1."""
    if hour < 0:
        log.info("Recompute sweep disabled")
        return

    while True:
        wait_seconds = seconds_until_sweep(clock.now(), hour)
        log.info("Next recompute sweep in %.0f minutes", wait_seconds / 60)
        await asyncio.sleep(wait_seconds)

        log.info("Running recompute sweep...")
        try:
            # sqlite I/O stays off the event loop
            count = await asyncio.to_thread(recompute_all)
            log.info("Recompute sweep done: %d habits", count)
        except Exception as e:
            log.error("Recompute sweep failed: %s", e, exc_info=True)
