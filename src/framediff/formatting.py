"""Shared text formatting helpers for framediff.

Provides the aligned text table used by the measurement report and the
CLI.
"""

from __future__ import annotations


def format_table(
    headers: list[str],
    rows: list[list[str]],
    *,
    alignments: list[str] | None = None,
    indent: int = 2,
    sep: str = "  ",
) -> str:
    """Format a list of rows as an aligned text table.

    Auto-calculates column widths from content, headers included.
    Right-aligns columns marked ``'r'`` in *alignments*.  Trailing
    whitespace is stripped from every line.

    Args:
        headers: Column header strings.
        rows: List of rows, each a list of cell strings.
        alignments: Per-column alignment: ``'l'``, ``'r'``, or ``'c'``.
        indent: Number of leading spaces per line.
        sep: Separator placed between columns.

    Returns:
        The formatted table as a string, lines joined by newlines.
    """
    if not headers:
        return ""

    ncols = len(headers)
    alignments = list(alignments) if alignments is not None else []
    while len(alignments) < ncols:
        alignments.append("l")

    proc_rows: list[list[str]] = []
    for row in rows:
        padded = list(row) + [""] * (ncols - len(row))
        proc_rows.append(padded[:ncols])

    # Compute widths.
    widths = [len(h) for h in headers]
    for row in proc_rows:
        for ci, cell in enumerate(row):
            widths[ci] = max(widths[ci], len(cell))

    prefix = " " * indent

    def _format_cell(text: str, width: int, align: str) -> str:
        if align == "r":
            return text.rjust(width)
        if align == "c":
            return text.center(width)
        return text.ljust(width)

    lines: list[str] = []
    for row in [list(headers)] + proc_rows:
        line = sep.join(_format_cell(row[i], widths[i], alignments[i]) for i in range(ncols))
        lines.append((prefix + line).rstrip())

    return "\n".join(lines)
