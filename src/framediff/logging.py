"""Logging setup for framediff.

Sessions report phase changes and zone registration at DEBUG and a
finished measurement at INFO, all on the ``framediff`` logger.  The
library never installs handlers itself; the CLI calls
``setup_logging()`` once per invocation.  Log lines go to stderr because
stdout carries the report table or the JSON results.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "framediff"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"


def _console_level(verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Route framediff's log records to stderr and an optional file.

    Args:
        verbose: Echo per-slice bookkeeping (zone registration, which
            zone is suppressed) to stderr.
        quiet: Keep stderr to warnings, such as a demo loop that ends
            mid-pass.  *verbose* wins when both are set.
        log_file: Also write every record, DEBUG included, to this path.

    Returns:
        The ``framediff`` logger.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # Handlers from an earlier invocation in the same process are replaced.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_console_level(verbose, quiet))
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        debug_file = logging.FileHandler(log_file, encoding="utf-8")
        debug_file.setLevel(logging.DEBUG)
        debug_file.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(debug_file)

    return logger
