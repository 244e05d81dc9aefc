# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tests for DebounceGate and the schedulers."""

import asyncio

import pytest

from genro_pathstore import (
    DEFAULT_DELAY,
    DebounceGate,
    LoopScheduler,
    SchedulerError,
    VirtualClock,
)


class TestVirtualClock:
    """Tests for VirtualClock."""

    def test_nothing_fires_before_due(self):
        """Test timers wait for their due time."""
        clock = VirtualClock()
        fired = []
        clock.call_later(10, lambda: fired.append('a'))
        clock.advance(9)
        assert fired == []
        clock.advance(1)
        assert fired == ['a']
        assert clock.now == 10

    def test_same_due_time_is_fifo(self):
        """Test timers due together fire in scheduling order."""
        clock = VirtualClock()
        fired = []
        for name in 'abc':
            clock.call_later(5, lambda name=name: fired.append(name))
        clock.advance(5)
        assert fired == ['a', 'b', 'c']

    def test_orders_by_due_time(self):
        """Test earlier due times fire first."""
        clock = VirtualClock()
        fired = []
        clock.call_later(30, lambda: fired.append('late'))
        clock.call_later(10, lambda: fired.append('early'))
        clock.advance(100)
        assert fired == ['early', 'late']

    def test_callback_sees_its_due_time(self):
        """Test now equals the due time while a callback runs."""
        clock = VirtualClock()
        seen = []
        clock.call_later(7, lambda: seen.append(clock.now))
        clock.advance(50)
        assert seen == [7]
        assert clock.now == 50

    def test_nested_scheduling_within_window(self):
        """Test timers scheduled by callbacks fire in the same advance."""
        clock = VirtualClock()
        fired = []
        clock.call_later(5, lambda: clock.call_later(5, lambda: fired.append('inner')))
        clock.advance(10)
        assert fired == ['inner']

    def test_run_all(self):
        """Test run_all drains every timer."""
        clock = VirtualClock()
        fired = []
        clock.call_later(100, lambda: fired.append(1))
        clock.call_later(5, lambda: clock.call_later(500, lambda: fired.append(2)))
        clock.run_all()
        assert fired == [1, 2]
        assert clock.pending == 0
        assert clock.now == 505

    def test_callback_error_propagates(self):
        """Test callback exceptions reach the caller of advance."""
        clock = VirtualClock()

        def boom():
            raise RuntimeError('boom')

        clock.call_later(1, boom)
        with pytest.raises(RuntimeError, match='boom'):
            clock.advance(5)


class TestDebounceGate:
    """Tests for DebounceGate."""

    def test_default_delay(self):
        """Test falsy delays fall back to the default."""
        clock = VirtualClock()
        assert DebounceGate(scheduler=clock).delay == DEFAULT_DELAY == 20
        assert DebounceGate(0, scheduler=clock).delay == 20
        assert DebounceGate(50, scheduler=clock).delay == 50

    def test_single_arm_fires_after_delay(self):
        """Test one arm fires once after the delay."""
        clock = VirtualClock()
        gate = DebounceGate(20, scheduler=clock)
        calls = []
        gate.arm(lambda: calls.append('x'))
        assert gate.pending == 1
        clock.advance(19)
        assert calls == []
        clock.advance(1)
        assert calls == ['x']
        assert gate.pending == 0

    def test_burst_runs_last_action_once(self):
        """Test k arms within the delay run only the last action."""
        clock = VirtualClock()
        gate = DebounceGate(20, scheduler=clock)
        calls = []
        for i in range(5):
            gate.arm(lambda i=i: calls.append(i))
            clock.advance(3)
        assert calls == []
        clock.run_all()
        assert calls == [4]

    def test_burst_settles_relative_to_last_arm(self):
        """Test settlement happens one delay after the last arm."""
        clock = VirtualClock()
        gate = DebounceGate(20, scheduler=clock)
        calls = []
        gate.arm(lambda: calls.append('first'))
        clock.advance(15)
        gate.arm(lambda: calls.append('second'))
        clock.advance(10)
        assert calls == []
        assert gate.pending == 1
        clock.advance(10)
        assert calls == ['second']

    def test_spaced_arms_each_fire(self):
        """Test arms further apart than the delay all run."""
        clock = VirtualClock()
        gate = DebounceGate(20, scheduler=clock)
        calls = []
        gate.arm(lambda: calls.append(1))
        clock.advance(25)
        gate.arm(lambda: calls.append(2))
        clock.advance(25)
        assert calls == [1, 2]

    def test_gates_are_independent(self):
        """Test one gate's burst does not hold back another gate."""
        clock = VirtualClock()
        gate_a = DebounceGate(20, scheduler=clock)
        gate_b = DebounceGate(20, scheduler=clock)
        calls = []
        gate_b.arm(lambda: calls.append('b'))
        for _ in range(10):
            gate_a.arm(lambda: calls.append('a'))
            clock.advance(5)
        assert calls == ['b']
        clock.run_all()
        assert calls == ['b', 'a']


class TestLoopScheduler:
    """Tests for LoopScheduler."""

    def test_no_running_loop_raises(self):
        """Test scheduling without a loop raises SchedulerError."""
        gate = DebounceGate(20)
        with pytest.raises(SchedulerError, match="No running event loop"):
            gate.arm(lambda: None)
        assert gate.pending == 0

    def test_check_outside_loop(self):
        """Test check reports a missing loop without scheduling anything."""
        gate = DebounceGate(20)
        with pytest.raises(SchedulerError):
            gate.check()
        DebounceGate(20, scheduler=VirtualClock()).check()

    def test_debounce_on_asyncio(self):
        """Test a burst on the running loop runs the last action once."""
        calls = []

        async def main():
            gate = DebounceGate(50, scheduler=LoopScheduler())
            for i in range(3):
                gate.arm(lambda i=i: calls.append(i))
                await asyncio.sleep(0.001)
            await asyncio.sleep(0.2)

        asyncio.run(main())
        assert calls == [2]

    def test_explicit_loop(self):
        """Test an explicit loop is used when given."""
        loop = asyncio.new_event_loop()
        try:
            calls = []
            scheduler = LoopScheduler(loop)
            scheduler.call_later(1, lambda: calls.append('done'))
            loop.run_until_complete(asyncio.sleep(0.05))
            assert calls == ['done']
        finally:
            loop.close()
