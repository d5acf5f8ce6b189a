"""Fleet-wide aggregation and filtering.

All functions here are pure over a snapshot: they never mutate it and give
identical results when called twice on the same snapshot.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..data.models import (
    ArrayStatus,
    Disk,
    DiskArray,
    DiskStatus,
    FleetSnapshot,
    RiskLevel,
    ServerType,
)
from .hazards import assess
from .risk import highest_risk

ALL = "all"


def _unset(value: Optional[str]) -> bool:
    return value is None or value == "" or str(value).lower() == ALL


@dataclass(frozen=True)
class FleetFilters:
    """Array-level filters, combined with AND.

    Each filter is optional; None or "all" means no restriction.
    ``vendor`` matches an array when at least one of its disks has that vendor.
    """

    server_type: Optional[str] = None
    datacenter: Optional[str] = None
    vendor: Optional[str] = None

    def __post_init__(self):
        if not _unset(self.server_type):
            try:
                object.__setattr__(self, "server_type", ServerType(str(self.server_type).upper()).value)
            except ValueError:
                raise ValueError(f"Unknown server type: {self.server_type!r}")

    @classmethod
    def from_query(cls, params: Dict[str, Any]) -> "FleetFilters":
        """Build filters from query-string style params (lists take the first value)."""

        def first(key: str) -> Optional[str]:
            value = params.get(key)
            if isinstance(value, (list, tuple)):
                value = value[0] if value else None
            return value

        return cls(
            server_type=first("server_type") or first("serverType"),
            datacenter=first("datacenter") or first("location"),
            vendor=first("vendor"),
        )

    def matches(self, array: DiskArray) -> bool:
        if not _unset(self.server_type) and array.server.server_type.value != self.server_type:
            return False
        if not _unset(self.datacenter) and array.location.datacenter != self.datacenter:
            return False
        if not _unset(self.vendor) and not any(d.vendor == self.vendor for d in array.disks):
            return False
        return True

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "server_type": None if _unset(self.server_type) else self.server_type,
            "datacenter": None if _unset(self.datacenter) else self.datacenter,
            "vendor": None if _unset(self.vendor) else self.vendor,
        }


@dataclass(frozen=True)
class FleetSummary:
    """Summary statistics for the matched part of the fleet."""

    total_arrays: int
    fleet_total: int  # Arrays in the snapshot before filtering
    status_counts: Dict[str, int]
    risk_counts: Dict[str, int]
    disk_counts: Dict[str, int]
    warning_count: int
    highest_risk: str  # Worst risk level among matched arrays
    filters: Dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def attention_count(self) -> int:
        """Arrays that are degraded or failed."""
        return self.status_counts.get(ArrayStatus.DEGRADED.value, 0) + self.status_counts.get(
            ArrayStatus.FAILED.value, 0
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_arrays": self.total_arrays,
            "fleet_total": self.fleet_total,
            "status_counts": dict(self.status_counts),
            "attention_count": self.attention_count,
            "risk_counts": dict(self.risk_counts),
            "disk_counts": dict(self.disk_counts),
            "warning_count": self.warning_count,
            "highest_risk": self.highest_risk,
            "filters": dict(self.filters),
        }


def filter_arrays(arrays: Iterable[DiskArray], filters: Optional[FleetFilters] = None) -> List[DiskArray]:
    """Return arrays matching all filters, preserving order."""
    filters = filters or FleetFilters()
    return [a for a in arrays if filters.matches(a)]


def filter_disks(
    array: DiskArray, status: Optional[str] = None, vendor: Optional[str] = None
) -> List[Disk]:
    """Return an array's disks filtered by status and/or vendor, in bay order.

    Raises:
        ValueError: If status is not a known disk status
    """
    wanted = None if _unset(status) else DiskStatus(str(status).lower())
    return [
        d
        for d in array.disks
        if (wanted is None or d.status == wanted) and (_unset(vendor) or d.vendor == vendor)
    ]


def summarize(snapshot: FleetSnapshot, filters: Optional[FleetFilters] = None) -> FleetSummary:
    """Summarize the arrays of a snapshot that match the filters."""
    filters = filters or FleetFilters()
    matched = filter_arrays(snapshot.arrays, filters)

    statuses = Counter(a.status.value for a in matched)
    disks = Counter(d.status.value for a in matched for d in a.disks)
    assessments = [assess(a) for a in matched]
    risks = Counter(x.risk.value for x in assessments)

    return FleetSummary(
        total_arrays=len(matched),
        fleet_total=len(snapshot.arrays),
        status_counts={s.value: statuses.get(s.value, 0) for s in ArrayStatus},
        risk_counts={r.value: risks.get(r.value, 0) for r in RiskLevel},
        disk_counts={s.value: disks.get(s.value, 0) for s in DiskStatus},
        warning_count=sum(1 for x in assessments if x.warning is not None),
        highest_risk=highest_risk(matched).value,
        filters=filters.to_dict(),
    )


def filter_options(snapshot: FleetSnapshot) -> Dict[str, List[str]]:
    """Distinct filter values present in the snapshot, in first-seen order."""
    datacenters = dict.fromkeys(a.location.datacenter for a in snapshot.arrays)
    vendors = dict.fromkeys(d.vendor for a in snapshot.arrays for d in a.disks)
    server_types = dict.fromkeys(a.server.server_type.value for a in snapshot.arrays)
    return {
        "server_types": list(server_types),
        "datacenters": list(datacenters),
        "vendors": list(vendors),
    }
