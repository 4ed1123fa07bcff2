"""DeterministicClock and SystemClock (split_kernel/domain/clock.py)."""

from datetime import datetime, timedelta, timezone

from split_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:

    def test_default_time(self):
        assert DeterministicClock().now() == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    def test_stable_until_advanced(self):
        clock = DeterministicClock()
        assert clock.now() == clock.now()

    def test_advance_and_tick(self):
        start = datetime(2024, 6, 1, tzinfo=timezone.utc)
        clock = DeterministicClock(start)
        clock.advance(30)
        assert clock.now() == start + timedelta(seconds=30)
        assert clock.tick() == start + timedelta(seconds=31)

    def test_set_time_resets_offset(self):
        clock = DeterministicClock()
        clock.advance(100)
        target = datetime(2025, 1, 1, tzinfo=timezone.utc)
        clock.set_time(target)
        assert clock.now() == target


def test_system_clock_is_utc():
    assert SystemClock().now().tzinfo == timezone.utc
