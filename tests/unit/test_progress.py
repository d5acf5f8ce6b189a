"""Tests for rebuild progress simulation."""

import random

import pytest

from rebuild_monitor.data.models import ArrayStatus, ArrayType, DiskStatus
from rebuild_monitor.simulation.progress import (
    COMPLETE_ETA,
    ProgressSimulator,
    complete_rebuild,
    disk_rebuild_progress,
)

H, R, F = DiskStatus.HEALTHY, DiskStatus.REBUILDING, DiskStatus.FAILED


def eta_minutes(eta):
    """Minutes in an "Xh Ym" or "Ym" display string."""
    return sum(int(part[:-1]) * (60 if part.endswith("h") else 1) for part in eta.split())


class FixedStep(ProgressSimulator):
    """Simulator that always advances by the same amount."""

    def __init__(self, step):
        super().__init__()
        self.step = step

    def _draw_step(self):
        return self.step


class TestTick:
    def test_advances_within_bounds(self, rebuilding_raid5):
        simulator = ProgressSimulator(rng=random.Random(1))
        array = rebuilding_raid5
        for _ in range(20):
            nxt = simulator.tick(array)
            assert array.rebuild_progress <= nxt.rebuild_progress <= array.rebuild_progress + 3
            array = nxt

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_runs_to_completion_without_regressing(self, rebuilding_raid5, seed):
        simulator = ProgressSimulator(rng=random.Random(seed))
        array = rebuilding_raid5
        for _ in range(1000):
            nxt = simulator.tick(array)
            assert nxt.rebuild_progress >= array.rebuild_progress
            array = nxt
            if array.status != ArrayStatus.REBUILDING:
                break

        assert array.status != ArrayStatus.REBUILDING
        assert array.rebuild_progress == 100

    def test_eta_recomputed(self, rebuilding_raid5):
        # 40% + 2.5 = 42.5 rounds to 43; remaining 57 points at 0.1 h each
        nxt = FixedStep(2.5).tick(rebuilding_raid5)

        assert nxt.rebuild_progress == 43
        assert nxt.estimated_time_remaining == "5h 42m"
        assert nxt.status == ArrayStatus.REBUILDING

    def test_does_not_mutate_input(self, rebuilding_raid5):
        before = rebuilding_raid5.to_dict()
        FixedStep(2.0).tick(rebuilding_raid5)
        assert rebuilding_raid5.to_dict() == before

    def test_non_rebuilding_unchanged(self, make_array):
        simulator = FixedStep(2.0)
        healthy = make_array(ArrayType.RAID5, [H, H, H])
        degraded = make_array(ArrayType.RAID5, [H, F, H], status=ArrayStatus.DEGRADED)

        assert simulator.tick(healthy) is healthy
        assert simulator.tick(degraded) is degraded

    def test_jbod_unchanged(self, make_array):
        array = make_array(ArrayType.JBOD, [H, R], status=ArrayStatus.REBUILDING, progress=10)
        assert FixedStep(2.0).tick(array) is array

    def test_completion(self, make_array):
        array = make_array(ArrayType.RAID1, [H, R], progress=98, hours_per_percent=0.1)
        done = FixedStep(2.9).tick(array)

        assert done.rebuild_progress == 100
        assert done.status == ArrayStatus.HEALTHY
        assert done.estimated_time_remaining == COMPLETE_ETA
        assert done.rebuilding_count == 0

    def test_completion_decided_on_rounded_progress(self, make_array):
        # 99 + 0.6 rounds to 100, so the array must not stay rebuilding at 100%
        array = make_array(ArrayType.RAID1, [H, R], progress=99, hours_per_percent=0.1)
        done = FixedStep(0.6).tick(array)

        assert done.rebuild_progress == 100
        assert done.status != ArrayStatus.REBUILDING

    def test_stuck_at_100_is_finalized(self, demo_fleet):
        raid6 = demo_fleet.get("raid6-large")
        done = FixedStep(0.0).tick(raid6)

        assert done.status == ArrayStatus.DEGRADED
        assert done.rebuilding_count == 0
        assert done.failed_count == 1

    def test_zero_step_keeps_progress(self, rebuilding_raid5):
        nxt = FixedStep(0.0).tick(rebuilding_raid5)
        assert nxt.rebuild_progress == rebuilding_raid5.rebuild_progress

    def test_eta_is_monotonic(self, rebuilding_raid5):
        simulator = ProgressSimulator(rng=random.Random(3))
        array = rebuilding_raid5
        last = None
        while array.status == ArrayStatus.REBUILDING:
            array = simulator.tick(array)
            minutes = eta_minutes(array.estimated_time_remaining)
            if last is not None:
                assert minutes <= last
            last = minutes
        assert array.rebuild_progress == 100

    def test_draw_step_stays_below_max(self):
        class MaxRandom(random.Random):
            def uniform(self, a, b):
                return b

        simulator = ProgressSimulator(rng=MaxRandom())
        assert 0 <= simulator._draw_step() < simulator.max_step

    def test_tick_all(self, demo_fleet):
        arrays = FixedStep(1.0).tick_all(demo_fleet.arrays)

        assert [a.id for a in arrays] == demo_fleet.ids()
        assert arrays[0].rebuild_progress == 68
        assert arrays[2].rebuild_progress == 24
        assert arrays[3] is demo_fleet.get("jbod-001")


class TestCompleteRebuild:
    def test_failed_disk_leaves_array_degraded(self, make_array):
        array = make_array(ArrayType.RAID6, [H, R, F, R], progress=90)
        done = complete_rebuild(array)

        assert done.status == ArrayStatus.DEGRADED
        assert [d.status for d in done.disks] == [H, H, F, H]

    def test_all_rebuilt_is_healthy(self, make_array):
        done = complete_rebuild(make_array(ArrayType.RAID10, [H, R, R, H], progress=99))
        assert done.status == ArrayStatus.HEALTHY
        assert done.healthy_count == 4


class TestDiskRebuildProgress:
    def test_lagged_progress(self, make_array):
        array = make_array(ArrayType.RAID6, [H, R, H, R, R], progress=40)
        progress = disk_rebuild_progress(array)

        assert progress == {"arr-1-d1": 40, "arr-1-d3": 25, "arr-1-d4": 10}

    def test_floors_at_zero(self, make_array):
        array = make_array(ArrayType.RAID10, [R, R, R], progress=20)
        assert disk_rebuild_progress(array) == {"arr-1-d0": 20, "arr-1-d1": 5, "arr-1-d2": 0}

    def test_never_regresses(self, demo_fleet):
        simulator = ProgressSimulator(rng=random.Random(11))
        array = demo_fleet.get("raid10-003")
        previous = disk_rebuild_progress(array)
        while array.status == ArrayStatus.REBUILDING:
            array = simulator.tick(array)
            current = disk_rebuild_progress(array)
            for disk_id, value in current.items():
                assert value >= previous[disk_id]
            previous = current

    @pytest.mark.parametrize("statuses", [[H, H], [F, H]])
    def test_no_rebuilding_disks(self, make_array, statuses):
        assert disk_rebuild_progress(make_array(ArrayType.RAID1, statuses)) == {}
