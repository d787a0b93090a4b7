"""framediff: differential frame-time profiler for tight loops.

Wrap each togglable region of a loop in ``Session.zone()`` and call
``Session.slice()`` once per iteration.  After ``Session.begin()`` the
session measures the loop with every zone enabled, then with each zone
suppressed in turn, and reports how much frame time each zone costs.
"""

from framediff.measure.config import MeasureConfig, OutputMode, TimeMode
from framediff.measure.session import Phase, Session
from framediff.measure.stats import ZoneResult

__version__ = "0.1.0"

__all__ = [
    "MeasureConfig",
    "OutputMode",
    "Phase",
    "Session",
    "TimeMode",
    "ZoneResult",
    "__version__",
]
