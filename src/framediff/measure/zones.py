"""Zone registry and per-zone sample collection.

The registry owns the ordered list of zones for one session.  Index 0
is the null zone: the baseline configuration with every zone enabled.
User zones follow in first-registration order.  During a pass the
registry tracks which zone is currently suppressed (the target), how
many slices have been recorded for it, and how many warmup slices
remain before recording resumes.

Zones first seen while a measurement is in progress are held in
``pending`` and join the zone list at the next ``reset_pass()``, so a
pass always measures the same set of zones from start to finish.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

log = logging.getLogger("framediff")

NULL_ZONE_NAME = ""


@dataclass
class Zone:
    """One named, independently suppressible code region."""

    name: str
    samples: list[float] = field(default_factory=list)


class ZoneRegistry:
    """Ordered zones plus the sampling cursor of the current pass."""

    def __init__(self) -> None:
        self.zones: list[Zone] = []
        self.pending: list[str] = []
        self.target_index = 0
        self.recorded_count = 0
        self.warmup_remaining = 0
        self._index: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self.zones)

    @property
    def names(self) -> list[str]:
        """User zone names in registration order (null zone excluded)."""
        return [z.name for z in self.zones[1:]]

    @property
    def target(self) -> Zone | None:
        """The zone currently being sampled, or None once all are done."""
        if self.target_index < len(self.zones):
            return self.zones[self.target_index]
        return None

    # -- registration -------------------------------------------------------

    def _add(self, name: str) -> None:
        self._index[name] = len(self.zones)
        self.zones.append(Zone(name=name))

    def _ensure_null_zone(self) -> None:
        if not self.zones:
            self._add(NULL_ZONE_NAME)

    def register_or_query(
        self,
        name: str,
        *,
        suppress: bool = False,
        defer_new: bool = False,
    ) -> bool:
        """Register *name* on first sight and report whether it should run.

        Args:
            name: Zone name.  The empty name resolves to the null zone.
            suppress: True while a pass is actively suppressing zones.
            defer_new: True while a measurement is in progress; unknown
                names are queued for the next pass instead of joining
                the current one.

        Returns:
            False only for the zone currently being suppressed.
        """
        self._ensure_null_zone()

        index = self._index.get(name)
        if index is None:
            if defer_new:
                if name not in self.pending:
                    log.debug("Zone %r seen mid-measurement, joins next pass", name)
                    self.pending.append(name)
                return True
            self._add(name)
            log.debug("Registered zone %r", name)
            return True

        if not suppress or self.target_index == 0:
            return True
        return index != self.target_index

    # -- sampling -----------------------------------------------------------

    def record(self, elapsed_ms: float) -> None:
        """Append a slice time to the target zone."""
        self.zones[self.target_index].samples.append(elapsed_ms)
        self.recorded_count += 1

    def sample_target_reached(self, sample_count: int) -> bool:
        return self.recorded_count >= sample_count

    def advance_target(self) -> None:
        """Move on to the next zone.  The caller re-arms the warmup."""
        self.target_index += 1
        self.recorded_count = 0

    def all_targets_done(self) -> bool:
        return self.target_index >= len(self.zones)

    def arm_warmup(self, warmup_count: int) -> None:
        self.warmup_remaining = warmup_count

    def consume_warmup(self) -> bool:
        """Use up one warmup slice.  Returns False when none remain."""
        if self.warmup_remaining > 0:
            self.warmup_remaining -= 1
            return True
        return False

    # -- lifecycle ----------------------------------------------------------

    def reset_pass(self, warmup_count: int) -> None:
        """Prepare a fresh pass.

        Merges pending zones, clears every zone's samples and rewinds
        the cursor.  Zone identities are kept.
        """
        self._ensure_null_zone()
        for name in self.pending:
            if name not in self._index:
                self._add(name)
        self.pending.clear()

        for zone in self.zones:
            zone.samples.clear()
        self.target_index = 0
        self.recorded_count = 0
        self.arm_warmup(warmup_count)

    def clear(self) -> None:
        """Forget every zone and reset all counters."""
        self.zones.clear()
        self.pending.clear()
        self._index.clear()
        self.target_index = 0
        self.recorded_count = 0
        self.warmup_remaining = 0
