"""Risk classification for disk arrays.

Maps an array's redundancy scheme and the statuses of its disks onto a
coarse risk level. Each array type has its own rule; the checks inside a rule
are ordered most severe first, so the first match wins.

Unrecognized types and empty arrays classify as LOW: unknown topology must
never produce a false critical signal.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable

from ..data.models import ArrayType, DiskArray, RiskLevel


RISK_ORDER: Dict[RiskLevel, int] = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}


def _jbod_risk(rebuilding: int, failed: int) -> RiskLevel:
    # No redundancy: any failure is a loss event regardless of disk count
    return RiskLevel.HIGH if failed > 0 else RiskLevel.LOW


def _raid1_risk(rebuilding: int, failed: int) -> RiskLevel:
    if rebuilding > 0 or failed > 0:
        return RiskLevel.HIGH
    return RiskLevel.LOW


def _raid5_risk(rebuilding: int, failed: int) -> RiskLevel:
    if failed > 1 or (failed == 1 and rebuilding > 0):
        return RiskLevel.CRITICAL
    if rebuilding > 1 or failed == 1:
        return RiskLevel.HIGH
    if rebuilding > 0:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _raid6_risk(rebuilding: int, failed: int) -> RiskLevel:
    if failed > 2 or (failed == 2 and rebuilding > 0):
        return RiskLevel.CRITICAL
    if rebuilding > 2 or failed == 2:
        return RiskLevel.HIGH
    if rebuilding > 0 or failed > 0:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _raid10_risk(rebuilding: int, failed: int) -> RiskLevel:
    # Mirror-pair membership is not tracked, so two failures in the same pair
    # and two failures in different pairs score the same.
    if rebuilding > 2 or failed > 1:
        return RiskLevel.HIGH
    if rebuilding > 0 or failed > 0:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


RISK_RULES: Dict[ArrayType, Callable[[int, int], RiskLevel]] = {
    ArrayType.JBOD: _jbod_risk,
    ArrayType.RAID1: _raid1_risk,
    ArrayType.RAID5: _raid5_risk,
    ArrayType.RAID6: _raid6_risk,
    ArrayType.RAID10: _raid10_risk,
}


def classify(array: DiskArray) -> RiskLevel:
    """Classify an array's risk level.

    Pure and total: never raises and never mutates the array.

    Returns:
        RiskLevel for the array; LOW for empty arrays and unknown types
    """
    if not array.disks:
        return RiskLevel.LOW
    rule = RISK_RULES.get(array.type)
    if rule is None:
        return RiskLevel.LOW
    return rule(array.rebuilding_count, array.failed_count)


def highest_risk(arrays: Iterable[DiskArray]) -> RiskLevel:
    """Return the worst risk level across arrays (LOW when empty)."""
    return max((classify(a) for a in arrays), key=RISK_ORDER.__getitem__, default=RiskLevel.LOW)
