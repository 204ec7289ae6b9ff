"""Tests for the daily recompute sweep timing."""

import asyncio
from datetime import datetime

from habitcore.clock import TZ
from habitcore.scheduler import recompute_sweep_loop, seconds_until_sweep


class TestSecondsUntilSweep:
    def test_later_today(self):
        now = datetime(2026, 3, 15, 1, 30, tzinfo=TZ)
        assert seconds_until_sweep(now, hour=3) == 90 * 60

    def test_already_passed_rolls_to_tomorrow(self):
        now = datetime(2026, 3, 15, 0, 0, 1, tzinfo=TZ)
        assert seconds_until_sweep(now, hour=0) == 24 * 3600 - 1

    def test_exactly_on_the_hour(self):
        now = datetime(2026, 3, 15, 0, 0, tzinfo=TZ)
        assert seconds_until_sweep(now, hour=0) == 24 * 3600


class TestLoop:
    def test_disabled_returns_immediately(self):
        assert asyncio.run(recompute_sweep_loop(hour=-1)) is None
