"""Measurement configuration and YAML profile loading.

Handles:
- The configuration record shared by every pass of a session.
- Validating configuration values before they reach the session.
- Loading measurement profiles from YAML files.
- Parsing inline synthetic zone definitions from CLI arguments.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from framediff.measure.stats import ZoneResult

log = logging.getLogger("framediff")

DoneCallback = Callable[[list["ZoneResult"]], None]


class OutputMode(enum.Enum):
    """Where the rendered report goes at evaluation."""

    SILENT = "silent"  # evaluate only, no output side effect
    CONSOLE = "console"  # echo the report to stdout


class TimeMode(enum.Enum):
    """Unit used for median/mean/worst in the report."""

    MS = "ms"
    FPS = "fps"


# ---------------------------------------------------------------------------
# MeasureConfig
# ---------------------------------------------------------------------------


@dataclass
class MeasureConfig:
    """Configuration for a measurement session.

    Persists across passes and across ``Session.reset()``.
    """

    sample_count: int = 100  # Recorded slices per zone configuration
    warmup_count: int = 10  # Discarded slices before each zone's recording
    output_mode: OutputMode = OutputMode.CONSOLE
    time_mode: TimeMode = TimeMode.MS
    on_done: DoneCallback | None = None

    def slices_per_pass(self, zone_count: int) -> int:
        """Slices consumed by one full pass over *zone_count* user zones."""
        return (zone_count + 1) * (self.sample_count + self.warmup_count)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str


def validate_config(config: MeasureConfig) -> list[ValidationError]:
    """Validate a measurement configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    # Bessel correction divides by n - 1.
    if not isinstance(config.sample_count, int) or config.sample_count < 2:
        errors.append(
            ValidationError(
                field="sample_count",
                message=(
                    f"Need at least 2 samples per zone for a standard "
                    f"deviation (got {config.sample_count})."
                ),
            )
        )

    if not isinstance(config.warmup_count, int) or config.warmup_count < 0:
        errors.append(
            ValidationError(
                field="warmup_count",
                message=f"Warmup count cannot be negative (got {config.warmup_count}).",
            )
        )

    if not isinstance(config.output_mode, OutputMode):
        errors.append(
            ValidationError(
                field="output_mode",
                message=f"Unknown output mode: {config.output_mode!r}.",
            )
        )

    if not isinstance(config.time_mode, TimeMode):
        errors.append(
            ValidationError(
                field="time_mode",
                message=f"Unknown time mode: {config.time_mode!r}.",
            )
        )

    if config.on_done is not None and not callable(config.on_done):
        errors.append(
            ValidationError(
                field="on_done",
                message="Completion callback must be callable.",
            )
        )

    return errors


def check_config(config: MeasureConfig) -> None:
    """Raise ValueError if *config* has validation errors."""
    errors = validate_config(config)
    if errors:
        log.debug("Rejected configuration: %s", errors)
        raise ValueError("; ".join(e.message for e in errors))


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a measurement profile from a YAML file.

    Profile format::

        sample_count: 100
        warmup_count: 10
        output_mode: console   # or "silent"
        time_mode: ms          # or "fps"

        zones:                 # only used by ``framediff demo``
          draw background: 5.0
          draw shadows: 3.0

    Returns:
        The parsed YAML as a dict.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text())

    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


def _parse_enum(enum_cls: type[enum.Enum], value: Any, field_name: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError as exc:
        valid = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"Invalid {field_name} '{value}'. Valid values: {valid}") from exc


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> MeasureConfig:
    """Build a MeasureConfig from a parsed YAML profile.

    CLI overrides take precedence over profile values.  Overrides set
    to None are ignored.

    Args:
        profile_data: Parsed YAML profile dict.
        cli_overrides: Dict of CLI option values.  Keys match
            MeasureConfig field names.

    Returns:
        MeasureConfig with settings populated (not yet validated).
    """
    merged = dict(profile_data)
    for key, value in (cli_overrides or {}).items():
        if value is not None:
            merged[key] = value

    defaults = MeasureConfig()
    return MeasureConfig(
        sample_count=merged.get("sample_count", defaults.sample_count),
        warmup_count=merged.get("warmup_count", defaults.warmup_count),
        output_mode=_parse_enum(
            OutputMode, merged.get("output_mode", defaults.output_mode), "output_mode"
        ),
        time_mode=_parse_enum(TimeMode, merged.get("time_mode", defaults.time_mode), "time_mode"),
    )


def zones_from_profile(profile_data: dict[str, Any]) -> dict[str, float]:
    """Read the synthetic ``zones`` mapping (name -> cost in ms)."""
    zones_data = profile_data.get("zones") or {}
    if not isinstance(zones_data, dict):
        raise ValueError("Profile 'zones' must be a mapping of zone_name -> cost_ms")

    zones: dict[str, float] = {}
    for name, cost in zones_data.items():
        try:
            zones[str(name)] = float(cost)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Zone '{name}' cost must be a number, got {cost!r}") from exc
    return zones


# ---------------------------------------------------------------------------
# Inline zone parsing
# ---------------------------------------------------------------------------


def parse_zone_cost(spec: str) -> tuple[str, float]:
    """Parse an inline zone definition from CLI.

    Format: ``"name=cost_ms"``.  The name may contain spaces and the
    last ``=`` separates it from the cost.

    Examples::

        "draw shadows=3"
        "physics=0.75"
    """
    if "=" not in spec:
        raise ValueError(f"Invalid zone spec: '{spec}'. Expected format: 'name=cost_ms'")

    name, cost_str = spec.rsplit("=", 1)
    name = name.strip()
    if not name:
        raise ValueError("Zone name cannot be empty.")

    try:
        cost = float(cost_str.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid cost for zone '{name}': '{cost_str.strip()}'") from exc
    if cost < 0:
        raise ValueError(f"Cost for zone '{name}' cannot be negative (got {cost}).")

    return name, cost
