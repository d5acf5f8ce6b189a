"""Tests for array risk classification."""

import pytest

from rebuild_monitor.data.models import ArrayType, DiskStatus, RiskLevel
from rebuild_monitor.insights.risk import RISK_ORDER, classify, highest_risk

H, R, F = DiskStatus.HEALTHY, DiskStatus.REBUILDING, DiskStatus.FAILED


def statuses(healthy=0, rebuilding=0, failed=0):
    return [H] * healthy + [R] * rebuilding + [F] * failed


class TestClassify:
    @pytest.mark.parametrize("rebuilding, failed, expected", [
        (0, 0, RiskLevel.LOW),
        (1, 0, RiskLevel.HIGH),
        (0, 1, RiskLevel.HIGH),
    ])
    def test_raid1(self, make_array, rebuilding, failed, expected):
        array = make_array(ArrayType.RAID1, statuses(2 - rebuilding - failed, rebuilding, failed))
        assert classify(array) == expected

    @pytest.mark.parametrize("rebuilding, failed, expected", [
        (0, 0, RiskLevel.LOW),
        (1, 0, RiskLevel.MEDIUM),
        (2, 0, RiskLevel.HIGH),
        (0, 1, RiskLevel.HIGH),
        (1, 1, RiskLevel.CRITICAL),
        (0, 2, RiskLevel.CRITICAL),
    ])
    def test_raid5(self, make_array, rebuilding, failed, expected):
        array = make_array(ArrayType.RAID5, statuses(4, rebuilding, failed))
        assert classify(array) == expected

    @pytest.mark.parametrize("rebuilding, failed, expected", [
        (0, 0, RiskLevel.LOW),
        (1, 0, RiskLevel.MEDIUM),
        (2, 0, RiskLevel.MEDIUM),
        (0, 1, RiskLevel.MEDIUM),
        (2, 1, RiskLevel.MEDIUM),
        (3, 0, RiskLevel.HIGH),
        (0, 2, RiskLevel.HIGH),
        (1, 2, RiskLevel.CRITICAL),
        (0, 3, RiskLevel.CRITICAL),
    ])
    def test_raid6(self, make_array, rebuilding, failed, expected):
        array = make_array(ArrayType.RAID6, statuses(6, rebuilding, failed))
        assert classify(array) == expected

    @pytest.mark.parametrize("rebuilding, failed, expected", [
        (0, 0, RiskLevel.LOW),
        (1, 0, RiskLevel.MEDIUM),
        (2, 0, RiskLevel.MEDIUM),
        (0, 1, RiskLevel.MEDIUM),
        (3, 0, RiskLevel.HIGH),
        (0, 2, RiskLevel.HIGH),
    ])
    def test_raid10(self, make_array, rebuilding, failed, expected):
        array = make_array(ArrayType.RAID10, statuses(4, rebuilding, failed))
        assert classify(array) == expected

    def test_jbod_any_failure_is_high(self, make_array):
        assert classify(make_array(ArrayType.JBOD, statuses(24))) == RiskLevel.LOW
        assert classify(make_array(ArrayType.JBOD, statuses(22, failed=2))) == RiskLevel.HIGH
        assert classify(make_array(ArrayType.JBOD, statuses(23, failed=1))) == RiskLevel.HIGH

    def test_raid5_failed_during_rebuild(self, make_array):
        array = make_array(ArrayType.RAID5, [H, F, R])
        assert classify(array) == RiskLevel.CRITICAL

    def test_unknown_type_is_low(self, make_array):
        array = make_array(ArrayType.UNKNOWN, statuses(1, 1, 2))
        assert classify(array) == RiskLevel.LOW

    def test_empty_array_is_low(self, make_array):
        for array_type in ArrayType:
            assert classify(make_array(array_type, [])) == RiskLevel.LOW

    def test_does_not_mutate(self, make_array):
        array = make_array(ArrayType.RAID5, [H, F, R])
        before = array.to_dict()
        classify(array)
        classify(array)
        assert array.to_dict() == before


class TestMonotonicity:
    """Turning a healthy disk into a rebuilding or failed one never lowers risk."""

    @pytest.mark.parametrize("array_type", [
        ArrayType.RAID1, ArrayType.RAID5, ArrayType.RAID6, ArrayType.RAID10, ArrayType.JBOD,
    ])
    @pytest.mark.parametrize("worse", [R, F])
    def test_degrading_a_disk_never_lowers_risk(self, make_array, array_type, worse):
        size = 6
        for rebuilding in range(size):
            for failed in range(size - rebuilding):
                healthy = size - rebuilding - failed
                if healthy == 0:
                    continue
                before = make_array(array_type, statuses(healthy, rebuilding, failed))
                after_counts = (
                    statuses(healthy - 1, rebuilding + 1, failed)
                    if worse == R
                    else statuses(healthy - 1, rebuilding, failed + 1)
                )
                after = make_array(array_type, after_counts)
                assert RISK_ORDER[classify(after)] >= RISK_ORDER[classify(before)]


class TestHighestRisk:
    def test_demo_fleet(self, demo_fleet):
        assert highest_risk(demo_fleet) == RiskLevel.HIGH

    def test_empty(self):
        assert highest_risk([]) == RiskLevel.LOW
