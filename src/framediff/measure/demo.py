"""Synthetic host loop for trying out a session.

Simulates a render loop whose regions have fixed costs.  In synthetic
mode no time actually passes: each iteration's elapsed time is a base
cost plus the cost of every zone that ran, optionally with seeded
jitter.  In real-time mode each enabled zone busy-waits for its cost
and the session measures elapsed time with its own clock.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Mapping, Sequence

from framediff.measure.config import MeasureConfig
from framediff.measure.session import Phase, Session
from framediff.measure.stats import ZoneResult
from framediff.measure.timing import busy_wait

log = logging.getLogger("framediff")


@dataclass(frozen=True)
class DemoZone:
    """A simulated region with a fixed cost."""

    name: str
    cost_ms: float


DEFAULT_ZONES: tuple[DemoZone, ...] = (
    DemoZone("draw background", 5.0),
    DemoZone("draw shadows", 3.0),
    DemoZone("draw bunnies", 7.0),
)


def zones_from_mapping(costs: Mapping[str, float]) -> list[DemoZone]:
    return [DemoZone(name, cost) for name, cost in costs.items()]


def required_iterations(config: MeasureConfig, zone_count: int) -> int:
    """Iterations after ``begin()`` needed to complete one pass.

    One extra slice is consumed by the STARTING phase.
    """
    return config.slices_per_pass(zone_count) + 1


def run_demo(
    session: Session,
    zones: Sequence[DemoZone] = DEFAULT_ZONES,
    *,
    iterations: int | None = None,
    start_at: int = 3,
    base_cost_ms: float = 1.0,
    jitter_ms: float = 0.0,
    seed: int | None = None,
    real_time: bool = False,
) -> list[ZoneResult]:
    """Drive *session* with a simulated loop.

    Args:
        session: The session to feed.
        zones: Simulated regions, registered in this order.
        iterations: Loop iterations to run.  Defaults to just enough to
            finish one pass after ``begin()``.
        start_at: Iteration at which ``begin()`` is requested.
        base_cost_ms: Cost of each iteration outside any zone.
        jitter_ms: Upper bound of uniform noise added per iteration
            in synthetic mode.
        seed: Random seed for the jitter.
        real_time: Busy-wait zone costs and let the session clock
            measure the iterations.

    Returns:
        The session's results (empty if the pass did not complete).
    """
    if iterations is None:
        iterations = start_at + required_iterations(session.config, len(zones))
    rng = random.Random(seed)

    log.debug(
        "Running demo loop: %d iterations, %d zones, begin at %d",
        iterations,
        len(zones),
        start_at,
    )
    for i in range(iterations):
        if i == start_at:
            session.begin()

        elapsed = base_cost_ms
        for zone in zones:
            if session.zone(zone.name):
                if real_time:
                    busy_wait(zone.cost_ms, session.clock)
                else:
                    elapsed += zone.cost_ms

        if real_time:
            busy_wait(base_cost_ms, session.clock)
            session.slice()
        else:
            if jitter_ms > 0:
                elapsed += rng.uniform(0.0, jitter_ms)
            session.slice(elapsed)

    if session.phase is not Phase.READY:
        log.warning(
            "Demo loop ended while still %s; increase the iteration count",
            session.phase.value,
        )
    return session.results
