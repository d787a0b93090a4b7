"""Command-line interface for framediff.

Subcommands:
    framediff demo    Measure a simulated render loop and print the report
"""

from __future__ import annotations

import json
from pathlib import Path

import click

from framediff import __version__
from framediff.logging import setup_logging


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """framediff: measure what each part of a loop costs by switching it off."""


# ---------------------------------------------------------------------------
# demo
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, path_type=Path),
    help="YAML profile with measurement settings and zones.",
)
@click.option("--samples", type=int, default=None, help="Recorded slices per zone (default: 100).")
@click.option("--warmup", type=int, default=None, help="Discarded slices per zone (default: 10).")
@click.option(
    "--fps/--ms",
    "fps",
    default=None,
    help="Report frames per second instead of milliseconds.",
)
@click.option(
    "--zone",
    "zone_specs",
    type=str,
    multiple=True,
    help="Simulated zone 'name=cost_ms' (repeatable).",
)
@click.option(
    "--iterations",
    type=int,
    default=None,
    help="Loop iterations (default: just enough for one pass).",
)
@click.option("--jitter", type=float, default=0.0, show_default=True, help="Max noise per slice in ms.")
@click.option("--seed", type=int, default=None, help="Random seed for the jitter.")
@click.option(
    "--real-time",
    is_flag=True,
    default=False,
    help="Busy-wait zone costs and measure with the wall clock.",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print results as JSON.")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option("--log-file", type=click.Path(path_type=Path), default=None, help="Debug log file.")
def demo(  # noqa: PLR0913
    profile_path: Path | None,
    samples: int | None,
    warmup: int | None,
    fps: bool | None,
    zone_specs: tuple[str, ...],
    iterations: int | None,
    jitter: float,
    seed: int | None,
    real_time: bool,
    as_json: bool,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Measure a simulated render loop.

    Each zone adds its cost to every frame in which it runs.  The
    report shows frame times with all zones enabled and with each
    zone switched off.

    \b
    Examples:
        framediff demo
        framediff demo --zone "physics=2.5" --zone "draw=6" --fps
        framediff demo --profile loop.yaml --samples 50 --jitter 0.5
    """
    from framediff.measure.config import (
        OutputMode,
        config_from_profile,
        load_profile,
        parse_zone_cost,
        zones_from_profile,
    )
    from framediff.measure.demo import DEFAULT_ZONES, run_demo, zones_from_mapping
    from framediff.measure.session import Session

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    try:
        profile_data = load_profile(profile_path) if profile_path else {}
        cli_overrides: dict[str, object] = {
            "sample_count": samples,
            "warmup_count": warmup,
            "time_mode": None if fps is None else ("fps" if fps else "ms"),
        }
        config = config_from_profile(profile_data, cli_overrides=cli_overrides)
        # The CLI prints the report itself.
        config.output_mode = OutputMode.SILENT

        zone_costs = zones_from_profile(profile_data)
        for spec in zone_specs:
            name, cost = parse_zone_cost(spec)
            zone_costs[name] = cost
        zones = zones_from_mapping(zone_costs) if zone_costs else list(DEFAULT_ZONES)

        session = Session(config)
    except (ValueError, FileNotFoundError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    results = run_demo(
        session,
        zones,
        iterations=iterations,
        jitter_ms=jitter,
        seed=seed,
        real_time=real_time,
    )

    if not results:
        click.echo("Error: the loop ended before the measurement finished.", err=True)
        raise SystemExit(1)

    if as_json:
        payload = {
            "config": {
                "sample_count": config.sample_count,
                "warmup_count": config.warmup_count,
                "time_mode": config.time_mode.value,
            },
            "results": [r.to_dict() for r in results],
        }
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(session.report, nl=False)
