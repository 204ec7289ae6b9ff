"""habitcore — background service entry point.

The engine itself is a library; this process only keeps stored progress
snapshots fresh across day boundaries:
1. Database initialization
2. Catch-up recompute of every active habit
3. Daily recompute sweep
"""

import asyncio
import logging

from habitcore.config import RECOMPUTE_SWEEP_HOUR, TIMEZONE_OFFSET_HOURS
from habitcore.db import init_db
from habitcore.progress import recompute_all
from habitcore.scheduler import recompute_sweep_loop

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s — %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("habitcore")


async def main():
    """Boot sequence."""
    log.info("habitcore starting (UTC%+d, sweep hour %d)", TIMEZONE_OFFSET_HOURS, RECOMPUTE_SWEEP_HOUR)

    init_db()
    log.info("Database ready")

    count = recompute_all()
    log.info("Startup recompute: %d habits", count)

    try:
        await recompute_sweep_loop()
    except (KeyboardInterrupt, SystemExit):
        log.info("Shutting down...")


if __name__ == "__main__":
    asyncio.run(main())
