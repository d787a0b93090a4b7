"""Measurement state machine driven by the host loop.

A Session is owned by the host and fed two kinds of calls:

- ``zone(name)`` around every togglable region, any number of times
  per iteration.  The region runs iff it returns True.
- ``slice(elapsed_ms)`` exactly once per iteration, after all regions.

Lifecycle::

    READY --begin()--> STARTING --slice()--> MEASURING --(all zones done)--> READY

While MEASURING, each zone configuration (baseline first, then every
zone suppressed in turn) gets ``warmup_count`` discarded slices
followed by ``sample_count`` recorded ones.  When the last zone has
its samples the session evaluates synchronously, inside that slice
call, and returns to READY.

Nothing here blocks, sleeps or spawns threads, and the per-iteration
calls never raise.  A session is not thread-safe.
"""

from __future__ import annotations

import contextlib
import dataclasses
import enum
import logging
from typing import Any, Iterator

import click

from framediff.measure.config import (
    DoneCallback,
    MeasureConfig,
    OutputMode,
    TimeMode,
    check_config,
)
from framediff.measure.display import format_report
from framediff.measure.stats import ZoneResult, summarize_zones
from framediff.measure.timing import Clock, PerfCounterClock
from framediff.measure.zones import ZoneRegistry

log = logging.getLogger("framediff")


class Phase(enum.Enum):
    READY = "ready"
    STARTING = "starting"
    MEASURING = "measuring"


class Session:
    """One differential measurement session.

    Args:
        config: Measurement configuration.  Validated up front; a
            ValueError is raised for invalid values.
        clock: Time source used when ``slice()`` is called without an
            elapsed time.  Defaults to ``time.perf_counter_ns``.
    """

    def __init__(
        self,
        config: MeasureConfig | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        config = config or MeasureConfig()
        check_config(config)
        # Later edits to the caller's object must go through configure().
        self._config = dataclasses.replace(config)
        self._clock: Clock = clock or PerfCounterClock()
        self._registry = ZoneRegistry()
        self._phase = Phase.READY
        self._last_instant: int | None = None
        self._results: list[ZoneResult] = []
        self._report = ""

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def config(self) -> MeasureConfig:
        """A copy of the active configuration."""
        return dataclasses.replace(self._config)

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def registry(self) -> ZoneRegistry:
        return self._registry

    @property
    def zone_names(self) -> list[str]:
        """Registered user zones in registration order."""
        return self._registry.names

    @property
    def target_zone(self) -> str | None:
        """Name of the zone being suppressed, or None.

        None outside MEASURING and while the baseline is measured.
        """
        if self._phase is not Phase.MEASURING or self._registry.target_index == 0:
            return None
        target = self._registry.target
        return target.name if target is not None else None

    @property
    def results(self) -> list[ZoneResult]:
        """Results of the last evaluation, baseline first."""
        return list(self._results)

    @property
    def report(self) -> str:
        """Rendered report of the last evaluation."""
        return self._report

    @property
    def results_ready(self) -> bool:
        return self._phase is Phase.READY and bool(self._results)

    # ------------------------------------------------------------------
    # Configuration surface
    # ------------------------------------------------------------------

    def configure(self, **changes: Any) -> None:
        """Update configuration fields by name.

        The new configuration is validated as a whole before it
        replaces the current one.

        Raises:
            ValueError: Unknown field or invalid value.
        """
        known = {f.name for f in dataclasses.fields(MeasureConfig)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValueError(f"Unknown configuration field(s): {', '.join(unknown)}")
        new_config = dataclasses.replace(self._config, **changes)
        check_config(new_config)
        if self._phase is not Phase.READY:
            log.debug("Configuration changed during %s phase", self._phase.value)
        self._config = new_config

    def set_sample_count(self, sample_count: int) -> None:
        self.configure(sample_count=sample_count)

    def set_warmup_count(self, warmup_count: int) -> None:
        self.configure(warmup_count=warmup_count)

    def set_output_mode(self, output_mode: OutputMode) -> None:
        self.configure(output_mode=output_mode)

    def set_time_mode(self, time_mode: TimeMode) -> None:
        self.configure(time_mode=time_mode)

    def set_done_callback(self, callback: DoneCallback | None) -> None:
        self.configure(on_done=callback)

    # ------------------------------------------------------------------
    # Host loop protocol
    # ------------------------------------------------------------------

    def zone(self, name: str) -> bool:
        """Declare a togglable region.  Run it iff this returns True."""
        return self._registry.register_or_query(
            name,
            suppress=self._phase is Phase.MEASURING,
            defer_new=self._phase is not Phase.READY,
        )

    def begin(self) -> bool:
        """Request a measurement.  Ignored unless the session is READY.

        Returns:
            True if the request was accepted.
        """
        if self._phase is not Phase.READY:
            return False
        self._phase = Phase.STARTING
        log.debug("Measurement requested, starting on next slice")
        return True

    def slice(self, elapsed_ms: float | None = None) -> None:
        """Mark the end of one loop iteration.

        Args:
            elapsed_ms: Duration of the iteration.  If None, the
                session measures it with its clock.
        """
        if elapsed_ms is None:
            elapsed_ms = self._clock_elapsed()

        if self._phase is Phase.READY:
            return

        if self._phase is Phase.STARTING:
            # This slice predates the measurement; its time is dropped.
            self._registry.reset_pass(self._config.warmup_count)
            self._phase = Phase.MEASURING
            log.info(
                "Measuring %d zone(s): %d samples, %d warmup slices each",
                len(self._registry.zones) - 1,
                self._config.sample_count,
                self._config.warmup_count,
            )
            return

        registry = self._registry
        if registry.consume_warmup():
            return

        registry.record(elapsed_ms)
        if registry.sample_target_reached(self._config.sample_count):
            registry.advance_target()
            registry.arm_warmup(self._config.warmup_count)
            if registry.all_targets_done():
                self._evaluate()
            else:
                log.debug("Now suppressing zone %r", self.target_zone)

    def _clock_elapsed(self) -> float:
        if self._phase is Phase.STARTING:
            self._last_instant = self._clock.now()
            return 0.0
        if self._phase is Phase.MEASURING:
            now = self._clock.now()
            start = self._last_instant if self._last_instant is not None else now
            self._last_instant = now
            return self._clock.elapsed_ms(start, now)
        return 0.0

    @contextlib.contextmanager
    def frame(self) -> Iterator[Session]:
        """Time the body with the session clock and slice on exit.

        Usage::

            while running:
                with session.frame():
                    if session.zone("physics"):
                        step_physics()
                    if session.zone("draw"):
                        draw()

        If the body raises, the exception propagates and no slice is
        taken, so a partial frame never becomes a sample.
        """
        start = self._clock.now()
        yield self
        self.slice(self._clock.elapsed_ms(start, self._clock.now()))

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _evaluate(self) -> None:
        self._results = summarize_zones(self._registry.zones)
        self._report = format_report(self._results, self._config.time_mode)
        log.info("Measurement complete: %d configuration(s) evaluated", len(self._results))

        # READY before any host code runs, so a callback that raises or
        # calls begin() finds a consistent session.
        self._phase = Phase.READY

        if self._config.output_mode is OutputMode.CONSOLE:
            click.echo(self._report, nl=False)
        if self._config.on_done is not None:
            self._config.on_done(self.results)

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    def clear_results(self) -> None:
        """Drop stored results and report.  Safe to call repeatedly."""
        self._results = []
        self._report = ""

    def reset(self) -> None:
        """Forget every zone and result and return to READY.

        Configuration is kept.
        """
        self._registry.clear()
        self._phase = Phase.READY
        self._last_instant = None
        self.clear_results()
        log.debug("Session reset")
