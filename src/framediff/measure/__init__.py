"""Differential measurement subsystem for framediff.

Provides the zone registry, the measurement state machine driven by
the host loop, and the statistics and report formatting applied when
a measurement pass completes.
"""
