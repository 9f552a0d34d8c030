"""Tests for the manual and asyncio schedulers."""

import asyncio

import pytest

from agent_network.core.scheduler import AsyncioScheduler, ManualScheduler


class TestManualScheduler:
    """Test deterministic time stepping."""

    def test_call_every_fires_per_interval(self):
        scheduler = ManualScheduler()
        fired = []
        scheduler.call_every(50, lambda: fired.append(scheduler.now_ms()))

        scheduler.advance(200)

        assert fired == [50, 100, 150, 200]
        assert scheduler.now_ms() == 200

    def test_partial_advance(self):
        scheduler = ManualScheduler()
        fired = []
        scheduler.call_every(50, lambda: fired.append(1))
        scheduler.advance(49)
        assert fired == []
        scheduler.advance(1)
        assert fired == [1]

    def test_call_later_fires_once(self):
        scheduler = ManualScheduler()
        fired = []
        handle = scheduler.call_later(100, lambda: fired.append(scheduler.now_ms()))
        scheduler.advance(1000)
        assert fired == [100]
        assert handle.fire_count == 1
        assert scheduler.active_timers() == 0

    def test_interleaved_timers_in_time_order(self):
        scheduler = ManualScheduler()
        order = []
        scheduler.call_every(30, lambda: order.append(("a", scheduler.now_ms())))
        scheduler.call_every(50, lambda: order.append(("b", scheduler.now_ms())))
        scheduler.advance(100)
        assert order == [
            ("a", 30), ("b", 50), ("a", 60), ("a", 90), ("b", 100),
        ]

    def test_cancel_is_idempotent(self):
        scheduler = ManualScheduler()
        fired = []
        handle = scheduler.call_every(10, lambda: fired.append(1))
        scheduler.advance(25)
        handle.cancel()
        handle.cancel()
        scheduler.advance(100)
        assert fired == [1, 1]
        assert handle.cancelled
        assert scheduler.active_timers() == 0
        assert scheduler.pending() == 0

    def test_cancel_from_inside_callback(self):
        """A timer cancelled by another callback due at the same instant never fires."""
        scheduler = ManualScheduler()
        fired = []
        victim = None

        def killer():
            fired.append("killer")
            victim.cancel()

        scheduler.call_every(100, killer)
        victim = scheduler.call_every(100, lambda: fired.append("victim"))
        scheduler.advance(500)
        assert fired == ["killer"] * 5

    def test_cancel_all(self):
        scheduler = ManualScheduler()
        fired = []
        scheduler.call_every(10, lambda: fired.append(1))
        scheduler.call_later(10, lambda: fired.append(2))
        assert scheduler.active_timers() == 2
        scheduler.cancel_all()
        assert scheduler.active_timers() == 0
        scheduler.advance(100)
        assert fired == []

    def test_advance_returns_fire_count(self):
        scheduler = ManualScheduler()
        scheduler.call_every(25, lambda: None)
        assert scheduler.advance(100) == 4

    @pytest.mark.parametrize("interval", [0, -5])
    def test_invalid_interval(self, interval):
        with pytest.raises(ValueError):
            ManualScheduler().call_every(interval, lambda: None)

    def test_negative_delay_and_backwards_clock(self):
        scheduler = ManualScheduler()
        with pytest.raises(ValueError):
            scheduler.call_later(-1, lambda: None)
        with pytest.raises(ValueError):
            scheduler.advance(-1)


class TestAsyncioScheduler:
    """Test real timers on the running loop."""

    @pytest.mark.asyncio
    async def test_call_every_and_cancel(self):
        scheduler = AsyncioScheduler()
        fired = []
        handle = scheduler.call_every(5, lambda: fired.append(1))

        await asyncio.sleep(0.06)
        handle.cancel()
        count = len(fired)
        await asyncio.sleep(0.03)

        assert count >= 2
        assert len(fired) == count
        assert scheduler.active_timers() == 0

    @pytest.mark.asyncio
    async def test_call_later(self):
        scheduler = AsyncioScheduler()
        fired = asyncio.Event()
        scheduler.call_later(5, fired.set)
        await asyncio.wait_for(fired.wait(), timeout=1.0)
        assert scheduler.active_timers() == 0

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_repeating(self):
        scheduler = AsyncioScheduler()
        calls = []

        def boom():
            calls.append(1)
            raise RuntimeError("tick failed")

        scheduler.call_every(5, boom)
        await asyncio.sleep(0.05)
        scheduler.cancel_all()
        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_now_ms_tracks_loop_time(self):
        scheduler = AsyncioScheduler()
        start = scheduler.now_ms()
        await asyncio.sleep(0.02)
        assert scheduler.now_ms() - start >= 15
