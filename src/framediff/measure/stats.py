"""Summary statistics for zone frame-time samples.

Computes median, mean, worst and Bessel-corrected standard deviation
over the per-slice samples of one zone configuration.  Pure Python,
no external dependencies.

Degenerate inputs never raise: an empty sample has median, mean and
worst of 0.0, and fewer than two samples give a standard deviation of
0.0.  A real measurement always records at least two samples per zone
because the configuration rejects smaller sample counts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Sequence

if TYPE_CHECKING:
    from framediff.measure.zones import Zone


# ---------------------------------------------------------------------------
# Descriptive statistics
# ---------------------------------------------------------------------------


def median(sorted_values: Sequence[float]) -> float:
    """Return the median of an already sorted sample.

    For an even count this is the mean of the two middle elements.
    An empty sample has a median of 0.0.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    mid = n // 2
    if n % 2 == 0:
        return 0.5 * (sorted_values[mid - 1] + sorted_values[mid])
    return sorted_values[mid]


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sample."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def std_dev(values: Sequence[float], sample_mean: float | None = None) -> float:
    """Bessel-corrected sample standard deviation.

    Args:
        values: The sample.
        sample_mean: Precomputed mean of *values*, if available.

    Returns:
        ``sqrt(sum((x - mean)^2) / (n - 1))``, or 0.0 if n < 2.
    """
    n = len(values)
    if n < 2:
        return 0.0
    if sample_mean is None:
        sample_mean = mean(values)
    squares = sum((v - sample_mean) ** 2 for v in values)
    return math.sqrt(squares / (n - 1))


def relative_std_dev_pct(std: float, sample_mean: float) -> float:
    """Standard deviation as a percentage of the mean.

    A zero mean (all-zero samples) yields ``inf``, or ``nan`` when the
    standard deviation is zero as well.
    """
    if sample_mean == 0:
        return float("nan") if std == 0 else float("inf")
    return 100.0 * std / sample_mean


# ---------------------------------------------------------------------------
# Per-zone result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ZoneResult:
    """Evaluated timings of one zone configuration.

    Index 0 of a result list is the baseline with every zone enabled;
    every later entry was measured with the named zone suppressed.
    All times are in milliseconds.
    """

    name: str
    sorted_samples: tuple[float, ...]
    median: float
    mean: float
    worst: float
    std_dev: float

    @property
    def n(self) -> int:
        return len(self.sorted_samples)

    @property
    def relative_std_dev_pct(self) -> float:
        """Standard deviation as a percentage of the mean."""
        return relative_std_dev_pct(self.std_dev, self.mean)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict with rounded values."""
        return {
            "name": self.name,
            "n": self.n,
            "median": round(self.median, 6),
            "mean": round(self.mean, 6),
            "worst": round(self.worst, 6),
            "std_dev": round(self.std_dev, 6),
            "samples": [round(s, 6) for s in self.sorted_samples],
        }


def summarize(name: str, samples: Iterable[float]) -> ZoneResult:
    """Sort *samples* and compute every summary statistic for them."""
    sorted_v = sorted(samples)
    sample_mean = mean(sorted_v)
    return ZoneResult(
        name=name,
        sorted_samples=tuple(sorted_v),
        median=median(sorted_v),
        mean=sample_mean,
        worst=sorted_v[-1] if sorted_v else 0.0,
        std_dev=std_dev(sorted_v, sample_mean),
    )


def summarize_zones(zones: Iterable[Zone]) -> list[ZoneResult]:
    """Summarize every zone, preserving registration order."""
    return [summarize(zone.name, zone.samples) for zone in zones]
