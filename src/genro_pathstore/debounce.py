# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Debounced execution over a pluggable timer.

A DebounceGate coalesces a burst of ``arm`` calls into a single run of the
last supplied action, once ``delay`` milliseconds have passed without a newer
call still pending.

Timers come from a scheduler, any object with a
``call_later(delay_ms, callback)`` method:

    - LoopScheduler: an asyncio event loop (the running one by default)
    - VirtualClock: virtual time advanced explicitly, for deterministic
      tests and for hosts that drive their own tick

Example:
    >>> clock = VirtualClock()
    >>> gate = DebounceGate(20, scheduler=clock)
    >>> gate.arm(lambda: print('first'))
    >>> gate.arm(lambda: print('second'))
    >>> clock.advance(20)
    second
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Any, Callable, Protocol

from .exceptions import SchedulerError

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 20


class Scheduler(Protocol):
    """Anything able to run a callback after a delay in milliseconds."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> Any: ...


class LoopScheduler:
    """Schedule callbacks on an asyncio event loop.

    Args:
        loop: Loop to schedule on. If None, the loop running at the time of
            each ``call_later`` is used.
    """

    __slots__ = ('_loop',)

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError as exc:
            raise SchedulerError(
                "No running event loop; pass a loop or use VirtualClock"
            ) from exc

    def check(self) -> None:
        """Raise SchedulerError if ``call_later`` would fail right now."""
        self._resolve_loop()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        return self._resolve_loop().call_later(delay / 1000.0, callback)


class VirtualClock:
    """A manually advanced clock.

    Nothing fires until ``advance`` or ``run_all`` is called. Timers due at
    the same instant fire in the order they were scheduled.

    Example:
        >>> clock = VirtualClock()
        >>> clock.call_later(10, lambda: print('tick'))
        >>> clock.advance(5)
        >>> clock.advance(5)
        tick
        >>> clock.now
        10
    """

    __slots__ = ('_now', '_queue', '_seq')

    def __init__(self, start: float = 0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, Callable[[], Any]]] = []
        self._seq = itertools.count()

    def __repr__(self) -> str:
        return f"VirtualClock(now={self._now}, pending={len(self._queue)})"

    @property
    def now(self) -> float:
        """Current virtual time in milliseconds."""
        return self._now

    @property
    def pending(self) -> int:
        """Number of timers not yet fired."""
        return len(self._queue)

    def check(self) -> None:
        """Virtual timers can always be scheduled."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> None:
        heapq.heappush(self._queue, (self._now + delay, next(self._seq), callback))

    def advance(self, delay: float) -> None:
        """Move time forward by ``delay`` ms, firing every timer that falls due.

        Timers scheduled by a firing callback run in the same call when they
        fall due before the new time. Exceptions raised by a callback
        propagate; time stays at that callback's due time.
        """
        target = self._now + delay
        while self._queue and self._queue[0][0] <= target:
            due, _, callback = heapq.heappop(self._queue)
            self._now = due
            callback()
        self._now = target

    def run_all(self) -> None:
        """Fire timers until none are left."""
        while self._queue:
            self.advance(self._queue[0][0] - self._now)


class DebounceGate:
    """Run only the last of a burst of actions.

    Each ``arm`` bumps an in-flight counter and starts a timer. When a timer
    expires it decrements the counter; the action is run only if the counter
    is then zero. Since all timers share the same delay, only the last armed
    timer ends the burst, and actions passed by earlier calls are dropped.

    There is no cancel: every timer fires, but all except the last are no-ops.

    Args:
        delay: Quiet period in milliseconds. Falsy values mean
            ``DEFAULT_DELAY`` (20).
        scheduler: Timer source. Defaults to a LoopScheduler on the running
            asyncio loop.
    """

    __slots__ = ('delay', 'scheduler', '_pending')

    def __init__(self, delay: float | None = None, scheduler: Scheduler | None = None) -> None:
        self.delay = delay or DEFAULT_DELAY
        self.scheduler = scheduler if scheduler is not None else LoopScheduler()
        self._pending = 0

    def __repr__(self) -> str:
        return f"DebounceGate(delay={self.delay}, pending={self._pending})"

    @property
    def pending(self) -> int:
        """Number of armed timers that have not expired yet."""
        return self._pending

    def check(self) -> None:
        """Raise SchedulerError if ``arm`` would fail to schedule right now.

        Schedulers without a ``check`` method are assumed to be always ready.
        """
        check = getattr(self.scheduler, 'check', None)
        if check is not None:
            check()

    def arm(self, action: Callable[[], Any]) -> None:
        """Schedule ``action``, superseding any action still pending."""
        self.scheduler.call_later(self.delay, lambda: self._expire(action))
        self._pending += 1

    def _expire(self, action: Callable[[], Any]) -> None:
        self._pending -= 1
        if self._pending == 0:
            logger.debug("Debounce settled after %s ms", self.delay)
            action()
