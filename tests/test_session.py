"""Tests for framediff.measure.session: the measurement state machine."""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

from framediff.measure.config import MeasureConfig, OutputMode, TimeMode
from framediff.measure.session import Phase, Session
from framediff.measure.stats import ZoneResult


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeClock:
    """Clock that advances by a fixed step on every ``now()`` call."""

    def __init__(self, step_ms: float = 2.0) -> None:
        self.t = 0
        self.step_ns = int(step_ms * 1_000_000)

    def now(self) -> int:
        self.t += self.step_ns
        return self.t

    def elapsed_ms(self, start: int, end: int) -> float:
        return (end - start) / 1_000_000.0


def _silent_config(**kwargs: object) -> MeasureConfig:
    kwargs.setdefault("output_mode", OutputMode.SILENT)
    return MeasureConfig(**kwargs)  # type: ignore[arg-type]


def run_loop(
    session: Session,
    costs: dict[str, float],
    iterations: int,
    *,
    start_at: int = 0,
    base_ms: float = 1.0,
) -> None:
    """Feed *session* like a host loop with fixed per-zone costs."""
    for i in range(iterations):
        if i == start_at:
            session.begin()
        elapsed = base_ms
        for name, cost in costs.items():
            if session.zone(name):
                elapsed += cost
        session.slice(elapsed)


# ---------------------------------------------------------------------------
# Phase transitions
# ---------------------------------------------------------------------------


class TestPhases(unittest.TestCase):
    def test_initial_phase(self) -> None:
        session = Session(_silent_config())
        self.assertIs(session.phase, Phase.READY)
        self.assertEqual(session.zone_names, [])
        self.assertFalse(session.results_ready)

    def test_slice_while_ready_is_noop(self) -> None:
        session = Session(_silent_config())
        session.zone("a")
        session.slice(5.0)
        session.slice()
        self.assertIs(session.phase, Phase.READY)
        self.assertEqual(session.registry.zones[0].samples, [])

    def test_begin_then_slice_starts_measuring(self) -> None:
        session = Session(_silent_config(sample_count=3, warmup_count=0))
        session.zone("a")
        self.assertTrue(session.begin())
        self.assertIs(session.phase, Phase.STARTING)
        session.slice(123.0)
        self.assertIs(session.phase, Phase.MEASURING)
        # The starting slice is discarded.
        self.assertEqual(session.registry.zones[0].samples, [])

    def test_begin_ignored_unless_ready(self) -> None:
        session = Session(_silent_config(sample_count=3, warmup_count=0))
        session.begin()
        self.assertFalse(session.begin())
        self.assertIs(session.phase, Phase.STARTING)
        session.slice(1.0)
        session.slice(1.0)
        self.assertFalse(session.begin())
        self.assertIs(session.phase, Phase.MEASURING)
        self.assertEqual(session.registry.recorded_count, 1)

    def test_warmup_slices_discarded(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=3))
        session.begin()
        session.slice(0.0)
        for value in (100.0, 100.0, 100.0, 1.0):
            session.slice(value)
        self.assertEqual(session.registry.zones[0].samples, [1.0])

    def test_returns_to_ready_after_pass(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=1))
        run_loop(session, {"a": 1.0}, iterations=1 + 2 * 3)
        self.assertIs(session.phase, Phase.READY)
        self.assertTrue(session.results_ready)

    def test_pass_incomplete_one_slice_short(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=1))
        run_loop(session, {"a": 1.0}, iterations=2 * 3)
        self.assertIs(session.phase, Phase.MEASURING)
        self.assertFalse(session.results_ready)

    def test_target_zone(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=0))
        session.zone("a")
        self.assertIsNone(session.target_zone)
        session.begin()
        session.slice(1.0)
        self.assertIsNone(session.target_zone)  # baseline
        session.slice(1.0)
        session.slice(1.0)
        self.assertEqual(session.target_zone, "a")

    def test_no_zones_measures_baseline_only(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=0))
        session.begin()
        for value in (0.0, 4.0, 6.0):
            session.slice(value)
        self.assertEqual(len(session.results), 1)
        self.assertAlmostEqual(session.results[0].mean, 5.0)


# ---------------------------------------------------------------------------
# Zone toggling
# ---------------------------------------------------------------------------


class TestZoneToggling(unittest.TestCase):
    def test_all_zones_run_outside_measurement(self) -> None:
        session = Session(_silent_config())
        self.assertTrue(session.zone("a"))
        session.begin()
        self.assertTrue(session.zone("a"))

    def test_consistent_within_iteration(self) -> None:
        session = Session(_silent_config(sample_count=3, warmup_count=1))
        names = ["a", "b", "c"]
        session.begin()
        for _ in range(1 + 4 * 4):
            for name in names:
                first = session.zone(name)
                second = session.zone(name)
                self.assertEqual(first, second)
            session.slice(1.0)

    def test_each_zone_suppressed_in_turn(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=0))
        for name in ("a", "b"):
            session.zone(name)
        session.begin()
        session.slice(0.0)

        seen: list[tuple[bool, bool]] = []
        for _ in range(6):
            seen.append((session.zone("a"), session.zone("b")))
            session.slice(1.0)
        self.assertEqual(
            seen,
            [(True, True)] * 2 + [(False, True)] * 2 + [(True, False)] * 2,
        )

    def test_zone_seen_mid_pass_joins_next_pass(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=0))
        session.zone("a")
        session.begin()
        session.slice(0.0)
        self.assertTrue(session.zone("late"))
        for _ in range(4):
            session.zone("a")
            session.zone("late")
            session.slice(1.0)
        self.assertEqual([r.name for r in session.results], ["", "a"])
        self.assertEqual(session.zone_names, ["a"])

        run_loop(session, {"a": 1.0, "late": 2.0}, iterations=1 + 3 * 2)
        self.assertEqual([r.name for r in session.results], ["", "a", "late"])
        self.assertAlmostEqual(session.results[2].mean, session.results[0].mean - 2.0)

    def test_zone_seen_while_starting_joins_this_pass(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=0))
        session.begin()
        session.zone("a")
        self.assertEqual(session.zone_names, [])
        session.slice(0.0)
        self.assertEqual(session.zone_names, ["a"])


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------


class TestEndToEnd(unittest.TestCase):
    def test_three_zones(self) -> None:
        costs = {"draw background": 5.0, "draw shadows": 3.0, "draw bunnies": 7.0}
        session = Session(_silent_config(sample_count=10, warmup_count=3))
        run_loop(session, costs, iterations=(1 + 3) * (10 + 3) + 10, start_at=3)

        results = session.results
        self.assertEqual(len(results), 4)
        self.assertEqual(
            [r.name for r in results],
            ["", "draw background", "draw shadows", "draw bunnies"],
        )
        for result in results:
            self.assertEqual(result.n, 10)
        baseline = results[0]
        self.assertAlmostEqual(baseline.mean, 16.0)
        for result, cost in zip(results[1:], costs.values()):
            self.assertLess(result.mean, baseline.mean)
            self.assertAlmostEqual(baseline.mean - result.mean, cost)

    def test_report_stored(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=0))
        run_loop(session, {"a": 5.0}, iterations=5)
        self.assertTrue(session.report.startswith(" "))
        self.assertIn("median[ms]", session.report)
        self.assertIn("all:", session.report)
        self.assertIn("w/o a:", session.report)

    def test_fps_report(self) -> None:
        session = Session(
            _silent_config(sample_count=2, warmup_count=0, time_mode=TimeMode.FPS)
        )
        run_loop(session, {"a": 1.0}, iterations=5, base_ms=1.0)
        self.assertIn("median[fps]", session.report)
        # 2 ms baseline = 500 fps; 1 ms without "a" = 1000 fps.
        self.assertIn("1000 (+100%)", session.report)

    def test_second_pass_overwrites_results(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=0))
        run_loop(session, {"a": 5.0}, iterations=5, base_ms=1.0)
        first = session.results
        run_loop(session, {"a": 5.0}, iterations=5, base_ms=11.0)
        self.assertEqual(len(session.results), 2)
        self.assertAlmostEqual(session.results[0].mean, first[0].mean + 10.0)

    def test_clock_driven_slices(self) -> None:
        session = Session(_silent_config(sample_count=3, warmup_count=0), clock=FakeClock(2.0))
        session.begin()
        for _ in range(4):
            session.slice()
        self.assertTrue(session.results_ready)
        self.assertEqual(session.results[0].sorted_samples, (2.0, 2.0, 2.0))

    def test_frame_context_manager(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=0), clock=FakeClock(4.0))
        session.begin()
        for _ in range(3):
            with session.frame() as s:
                self.assertIs(s, session)
        self.assertEqual(session.results[0].sorted_samples, (4.0, 4.0))

    def test_frame_body_exception_skips_slice(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=0), clock=FakeClock(4.0))
        session.begin()
        with session.frame():
            pass
        with self.assertRaises(RuntimeError):
            with session.frame():
                raise RuntimeError("frame failed")
        self.assertIs(session.phase, Phase.MEASURING)
        self.assertEqual(session.registry.recorded_count, 0)
        for _ in range(2):
            with session.frame():
                pass
        self.assertEqual(session.results[0].sorted_samples, (4.0, 4.0))


# ---------------------------------------------------------------------------
# Evaluation outputs
# ---------------------------------------------------------------------------


class TestEvaluationOutputs(unittest.TestCase):
    def test_console_mode_echoes_report(self) -> None:
        session = Session(MeasureConfig(sample_count=2, warmup_count=0))
        with patch("framediff.measure.session.click.echo") as mock_echo:
            run_loop(session, {"a": 1.0}, iterations=5)
        mock_echo.assert_called_once_with(session.report, nl=False)

    def test_silent_mode_no_output(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=0))
        with patch("framediff.measure.session.click.echo") as mock_echo:
            run_loop(session, {"a": 1.0}, iterations=5)
        mock_echo.assert_not_called()
        self.assertNotEqual(session.report, "")

    def test_callback_receives_results(self) -> None:
        callback = MagicMock()
        session = Session(_silent_config(sample_count=2, warmup_count=0, on_done=callback))
        run_loop(session, {"a": 1.0}, iterations=5)
        callback.assert_called_once()
        (received,) = callback.call_args.args
        self.assertEqual(received, session.results)
        self.assertTrue(all(isinstance(r, ZoneResult) for r in received))

    def test_callback_sees_ready_session(self) -> None:
        phases: list[Phase] = []
        session = Session(_silent_config(sample_count=2, warmup_count=0))
        session.set_done_callback(lambda results: phases.append(session.phase))
        run_loop(session, {}, iterations=3)
        self.assertEqual(phases, [Phase.READY])


# ---------------------------------------------------------------------------
# Control surface
# ---------------------------------------------------------------------------


class TestControl(unittest.TestCase):
    def test_reset(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=0))
        run_loop(session, {"a": 1.0}, iterations=5)
        session.zone("b")
        session.begin()
        session.reset()
        self.assertEqual(session.registry.zones, [])
        self.assertEqual(session.zone_names, [])
        self.assertIs(session.phase, Phase.READY)
        self.assertEqual(session.results, [])
        self.assertEqual(session.report, "")
        self.assertEqual(session.config.sample_count, 2)

    def test_reset_fresh_session(self) -> None:
        session = Session(_silent_config())
        session.zone("one")
        session.reset()
        self.assertEqual(session.registry.zones, [])
        self.assertIs(session.phase, Phase.READY)

    def test_clear_results_idempotent(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=0))
        session.clear_results()
        run_loop(session, {"a": 1.0}, iterations=5)
        self.assertTrue(session.results_ready)
        session.clear_results()
        session.clear_results()
        self.assertFalse(session.results_ready)
        self.assertEqual(session.report, "")
        self.assertEqual(session.zone_names, ["a"])

    def test_results_is_a_copy(self) -> None:
        session = Session(_silent_config(sample_count=2, warmup_count=0))
        run_loop(session, {"a": 1.0}, iterations=5)
        session.results.clear()
        self.assertEqual(len(session.results), 2)


# ---------------------------------------------------------------------------
# Configuration surface
# ---------------------------------------------------------------------------


class TestConfiguration(unittest.TestCase):
    def test_invalid_initial_config(self) -> None:
        with self.assertRaises(ValueError):
            Session(MeasureConfig(sample_count=1))
        with self.assertRaises(ValueError):
            Session(MeasureConfig(warmup_count=-1))

    def test_setters(self) -> None:
        session = Session()
        session.set_sample_count(20)
        session.set_warmup_count(0)
        session.set_output_mode(OutputMode.SILENT)
        session.set_time_mode(TimeMode.FPS)
        self.assertEqual(session.config.sample_count, 20)
        self.assertEqual(session.config.warmup_count, 0)
        self.assertIs(session.config.output_mode, OutputMode.SILENT)
        self.assertIs(session.config.time_mode, TimeMode.FPS)

    def test_invalid_setter_keeps_config(self) -> None:
        session = Session()
        with self.assertRaises(ValueError):
            session.set_sample_count(0)
        self.assertEqual(session.config.sample_count, 100)

    def test_unknown_field(self) -> None:
        with self.assertRaises(ValueError):
            Session().configure(samples=10)

    def test_non_callable_callback(self) -> None:
        with self.assertRaises(ValueError):
            Session().set_done_callback("not callable")  # type: ignore[arg-type]

    def test_caller_config_edits_do_not_leak(self) -> None:
        config = _silent_config(sample_count=5, warmup_count=0)
        session = Session(config)
        config.sample_count = 1
        self.assertEqual(session.config.sample_count, 5)

        session.begin()
        session.slice(0.0)
        session.slice(3.0)
        self.assertIs(session.phase, Phase.MEASURING)
        self.assertFalse(session.results_ready)

    def test_config_property_is_a_copy(self) -> None:
        session = Session(_silent_config(sample_count=5))
        session.config.sample_count = 1
        self.assertEqual(session.config.sample_count, 5)

    def test_config_survives_reset(self) -> None:
        session = Session()
        session.set_warmup_count(4)
        session.reset()
        self.assertEqual(session.config.warmup_count, 4)


if __name__ == "__main__":
    unittest.main()
