"""Time source for sessions that measure elapsed time themselves.

A host that already knows its frame time passes it to
``Session.slice()`` directly.  Otherwise the session asks a clock for
instants and converts their difference to milliseconds.
"""

from __future__ import annotations

import time
from typing import Protocol


def elapsed_ms(start_ns: int, end_ns: int) -> float:
    """Milliseconds between two nanosecond instants."""
    return (end_ns - start_ns) / 1_000_000.0


class Clock(Protocol):
    """Anything that can produce instants and measure between them."""

    def now(self) -> int: ...

    def elapsed_ms(self, start: int, end: int) -> float: ...


class PerfCounterClock:
    """Clock backed by ``time.perf_counter_ns``."""

    def now(self) -> int:
        return time.perf_counter_ns()

    def elapsed_ms(self, start: int, end: int) -> float:
        return elapsed_ms(start, end)


def busy_wait(ms: float, clock: Clock | None = None) -> None:
    """Spin until *ms* milliseconds have passed.

    More precise than ``time.sleep`` for the few-millisecond costs the
    demo simulates, at the price of burning a CPU core.
    """
    clock = clock or PerfCounterClock()
    start = clock.now()
    while clock.elapsed_ms(start, clock.now()) < ms:
        pass
