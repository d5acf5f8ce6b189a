"""Rebuild progress simulation.

Advances the rebuild of arrays that are mid-rebuild by a bounded random
amount per refresh and recomputes their ETA. This is the data source when no
live telemetry feed is wired in.

The array-level ``rebuild_progress`` is the single source of truth. Per-disk
progress for concurrent rebuilds is derived from it by a fixed lag and is
never simulated independently, so it cannot regress between refreshes.
"""

from __future__ import annotations

import random
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from ..data.models import ArrayStatus, ArrayType, DiskArray, DiskStatus
from ..data.normalization import format_eta, round_half_up

MAX_STEP_PERCENT = 3.0
DISK_PROGRESS_LAG = 15  # Percent points between successive rebuilding disks
COMPLETE_ETA = "0m"


class ProgressSimulator:
    """Advances rebuild progress once per refresh tick.

    Args:
        rng: Random source; pass a seeded ``random.Random`` for reproducible runs
        max_step: Upper bound (exclusive) of the per-tick increment in percent points
    """

    def __init__(self, rng: Optional[random.Random] = None, max_step: float = MAX_STEP_PERCENT):
        self.rng = rng or random.Random()
        self.max_step = max_step

    def _draw_step(self) -> float:
        step = self.rng.uniform(0, self.max_step)
        # uniform() may return the upper bound; keep the draw in [0, max_step)
        if step >= self.max_step:
            step = self.max_step - 1e-9
        return max(0.0, step)

    def tick(self, array: DiskArray) -> DiskArray:
        """Return the array advanced by one tick.

        Arrays that are not rebuilding, and JBOD arrays, are returned unchanged.
        The input array is never modified.
        """
        if array.status != ArrayStatus.REBUILDING or array.type == ArrayType.JBOD:
            return array
        if array.rebuild_progress >= 100:
            return complete_rebuild(array)

        new_progress = min(array.rebuild_progress + self._draw_step(), 100.0)
        rounded = max(array.rebuild_progress, min(100, round_half_up(new_progress)))
        if rounded >= 100:
            return complete_rebuild(array)

        remaining_hours = max(0.0, (100 - rounded) * array.hours_per_percent)
        return replace(
            array,
            rebuild_progress=rounded,
            estimated_time_remaining=format_eta(remaining_hours),
            status=ArrayStatus.REBUILDING,
        )

    def tick_all(self, arrays: Iterable[DiskArray]) -> List[DiskArray]:
        return [self.tick(a) for a in arrays]


def complete_rebuild(array: DiskArray) -> DiskArray:
    """Finish an array's rebuild.

    Rebuilding disks become healthy. The array becomes healthy, or degraded
    if a disk is still failed.
    """
    disks = tuple(
        replace(d, status=DiskStatus.HEALTHY) if d.status == DiskStatus.REBUILDING else d
        for d in array.disks
    )
    has_failed = any(d.status == DiskStatus.FAILED for d in disks)
    return replace(
        array,
        disks=disks,
        rebuild_progress=100,
        estimated_time_remaining=COMPLETE_ETA,
        status=ArrayStatus.DEGRADED if has_failed else ArrayStatus.HEALTHY,
    )


def disk_rebuild_progress(array: DiskArray, lag: int = DISK_PROGRESS_LAG) -> Dict[str, int]:
    """Display progress for each rebuilding disk, in bay order.

    The n-th rebuilding disk (0-based) shows ``max(0, progress - n * lag)``.
    This is a display heuristic, not per-disk tracking: it only moves when the
    array-level progress moves.
    """
    rebuilding = [d for d in array.disks if d.status == DiskStatus.REBUILDING]
    return {
        disk.id: max(0, array.rebuild_progress - index * lag)
        for index, disk in enumerate(rebuilding)
    }
