"""Hazard warnings for disk arrays.

The risk classifier says how bad an array's situation is; the advisor says
why and what the operator should do about it. The two are always surfaced
together through ``assess``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..data.models import ArrayType, DiskArray, DiskStatus, RiskLevel, WarningSeverity
from .risk import classify


@dataclass(frozen=True)
class HazardWarning:
    """An operator-actionable alert for one array."""

    severity: WarningSeverity
    message: str
    recommended_action: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "recommended_action": self.recommended_action,
        }


@dataclass(frozen=True)
class ArrayAssessment:
    """Risk level and hazard warning for an array, evaluated together."""

    array_id: str
    risk: RiskLevel
    warning: Optional[HazardWarning] = None
    failed_disk_ids: Tuple[str, ...] = ()

    @property
    def needs_attention(self) -> bool:
        """True when there is a warning or the risk is above LOW."""
        return self.warning is not None or self.risk != RiskLevel.LOW

    def to_dict(self) -> Dict[str, Any]:
        return {
            "array_id": self.array_id,
            "risk": self.risk.value,
            "warning": self.warning.to_dict() if self.warning else None,
            "failed_disk_ids": list(self.failed_disk_ids),
            "needs_attention": self.needs_attention,
        }


def advise(array: DiskArray) -> Optional[HazardWarning]:
    """Produce at most one hazard warning for an array.

    Rules are evaluated in order and the first match wins. Never raises;
    empty arrays and unknown types produce no warning.
    """
    if not array.disks or array.type == ArrayType.UNKNOWN:
        return None

    rebuilding = array.rebuilding_count
    failed = array.failed_count

    if array.type == ArrayType.JBOD:
        if failed > 0:
            return HazardWarning(
                severity=WarningSeverity.ERROR,
                message=f"{failed} disk(s) failed. No redundancy — data loss occurred.",
                recommended_action="Immediate replacement required.",
            )
        return None

    if rebuilding > 1:
        return HazardWarning(
            severity=WarningSeverity.WARNING,
            message=f"{rebuilding} disks rebuilding simultaneously. Performance impact expected.",
            recommended_action="Monitor closely and avoid additional load.",
        )

    if array.type == ArrayType.RAID5 and failed > 0 and rebuilding > 0:
        return HazardWarning(
            severity=WarningSeverity.ERROR,
            message="RAID 5 with failed disk during rebuild — critical risk of data loss!",
            recommended_action="Stop all non-essential operations immediately.",
        )

    return None


def assess(array: DiskArray) -> ArrayAssessment:
    """Classify and advise an array in one pass."""
    return ArrayAssessment(
        array_id=array.id,
        risk=classify(array),
        warning=advise(array),
        failed_disk_ids=tuple(d.id for d in array.disks_with_status(DiskStatus.FAILED)),
    )
