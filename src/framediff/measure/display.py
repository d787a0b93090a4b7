"""Terminal report formatting for zone measurements.

Renders a list of ZoneResult into an aligned table: one row for the
baseline ("all" zones enabled) and one row per suppressed zone, with
each value followed by its signed change relative to the baseline.

Numbers are printed with a fixed count of significant digits rather
than a fixed count of decimals, so 0.0123 ms and 1234 ms both keep a
readable amount of precision.
"""

from __future__ import annotations

import math
from typing import Sequence

from framediff.formatting import format_table
from framediff.measure.config import TimeMode
from framediff.measure.stats import ZoneResult

VALUE_DIGITS = 3
DELTA_DIGITS = 2
STATISTICS = ("median", "mean", "worst")
BASELINE_LABEL = "all"
SUPPRESSED_PREFIX = "w/o "


# ---------------------------------------------------------------------------
# Numeric formatting
# ---------------------------------------------------------------------------


def _round_half_away(x: float) -> int:
    """Round a non-negative number to the nearest integer, halves up."""
    return math.floor(x + 0.5)


def _digits_before_point(num: float) -> int:
    """Count integer digits; 0 for magnitudes below 1."""
    magnitude = abs(num)
    if magnitude < 1:
        return 0
    return len(str(int(magnitude)))


def format_number(value: float, significant_digits: int, with_sign: bool = False) -> str:
    """Format *value* with *significant_digits* meaningful digits.

    If rounding to the nearest integer already uses up the digit
    budget, the rounded integer is printed (``99.5`` with 2 digits
    gives ``"100"``).  Otherwise the integer part is printed as is,
    followed by the remaining digits of the budget as a rounded
    fraction.

    Args:
        value: The number to format.
        significant_digits: Digit budget.
        with_sign: Prefix ``+`` for non-negative values.  Negative
            values always carry ``-``.

    Examples::

        format_number(99.5, 2, with_sign=True)  -> "+100"
        format_number(99.1, 3, with_sign=True)  -> "+99.1"
        format_number(99.0, 4)                   -> "99.00"
        format_number(0.111, 3)                  -> "0.111"
    """
    if math.isnan(value):
        return "nan"

    sign = ""
    if value < 0:
        sign = "-"
    elif with_sign:
        sign = "+"
    magnitude = abs(value)
    if math.isinf(magnitude):
        return f"{sign}inf"

    whole_rounded = _round_half_away(magnitude)
    if _digits_before_point(whole_rounded) >= significant_digits:
        return f"{sign}{whole_rounded}"

    integral = int(magnitude)
    fraction_digits = significant_digits - _digits_before_point(magnitude)
    scale = 10**fraction_digits
    fraction = _round_half_away((magnitude - integral) * scale)
    if fraction >= scale:
        # 1.996 at two fraction digits rounds up into the integer part.
        integral += 1
        fraction -= scale
        if _digits_before_point(integral) > _digits_before_point(magnitude):
            # 9.996 -> 10.0: the extra integer digit comes out of the fraction.
            fraction_digits -= 1
    return f"{sign}{integral}.{fraction:0{fraction_digits}d}"


def percent_change(value: float, baseline: float) -> float:
    """Signed change of *value* relative to *baseline*, in percent."""
    diff = value - baseline
    if baseline == 0:
        if diff == 0:
            return float("nan")
        return math.copysign(float("inf"), diff)
    return 100.0 * diff / baseline


def statistic_value(result: ZoneResult, statistic: str, time_mode: TimeMode) -> float:
    """Look up median/mean/worst, converted to the report's unit.

    In FPS mode the value is ``1000 / ms``.  "worst" stays the
    worst-latency sample, so it becomes the lowest FPS value.
    """
    ms_value: float = getattr(result, statistic)
    if time_mode is TimeMode.FPS:
        if ms_value == 0:
            return float("inf")
        return 1000.0 / ms_value
    return ms_value


# ---------------------------------------------------------------------------
# Report table
# ---------------------------------------------------------------------------


def _unit_label(time_mode: TimeMode) -> str:
    return "[fps]" if time_mode is TimeMode.FPS else "[ms]"


def _format_cell(
    result: ZoneResult,
    baseline: ZoneResult,
    statistic: str,
    time_mode: TimeMode,
    is_baseline: bool,
) -> str:
    value = statistic_value(result, statistic, time_mode)
    text = format_number(value, VALUE_DIGITS)
    if is_baseline:
        return text
    change = percent_change(value, statistic_value(baseline, statistic, time_mode))
    return f"{text} ({format_number(change, DELTA_DIGITS, with_sign=True)}%)"


def row_label(index: int, result: ZoneResult) -> str:
    """Row label: ``all:`` for the baseline, ``w/o <name>:`` otherwise."""
    if index == 0:
        return f"{BASELINE_LABEL}:"
    return f"{SUPPRESSED_PREFIX}{result.name}:"


def format_report(results: Sequence[ZoneResult], time_mode: TimeMode = TimeMode.MS) -> str:
    """Format zone results as an aligned report table.

    Args:
        results: Results in registration order; index 0 is the
            baseline with every zone enabled.
        time_mode: Unit for the median/mean/worst columns.

    Returns:
        The table, every line terminated by a newline.  Empty results
        give an empty string.
    """
    if not results:
        return ""

    unit = _unit_label(time_mode)
    headers = [""] + [f"{stat}{unit}" for stat in STATISTICS] + ["std dev[%]"]

    baseline = results[0]
    rows: list[list[str]] = []
    for i, result in enumerate(results):
        row = [row_label(i, result)]
        for stat in STATISTICS:
            row.append(_format_cell(result, baseline, stat, time_mode, is_baseline=i == 0))
        row.append(format_number(result.relative_std_dev_pct, VALUE_DIGITS))
        rows.append(row)

    return format_table(headers, rows, indent=0, sep=" ") + "\n"
