"""Data models for disk array fleet monitoring.

This module defines the core data structures for representing arrays and
their member disks, following these semantic principles:

1. IMMUTABLE SNAPSHOTS
   - Every entity is a frozen dataclass; disks are held in tuples
   - Refreshes publish new objects instead of mutating ones readers hold

2. EXPLICIT UNITS
   - Sizes: bytes (integers)
   - Rebuild progress: integer percent (0-100)
   - Rebuild rate: hours per percent point (float)
   - Temperatures: degrees Celsius (integers)

3. NORMALIZED STATUS VALUES
   - Disk: healthy, rebuilding, failed
   - Array: healthy, rebuilding, degraded, failed
   - Array type: RAID1, RAID5, RAID6, RAID10, JBOD (UNKNOWN for anything else)
   - Risk: low, medium, high, critical
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .normalization import (
    format_bytes,
    normalize_array_status,
    normalize_array_type,
    normalize_disk_status,
    parse_size_to_bytes,
    parse_speed_to_bytes_per_second,
    round_half_up,
)


DEFAULT_HOURS_PER_PERCENT = 0.1


class InvalidArrayError(ValueError):
    """Raised when a feed record cannot be turned into a valid array."""


def _number(value: Any, field_name: str, owner: str) -> float:
    """Convert a numeric feed field, raising InvalidArrayError on junk."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = math.nan
    if not math.isfinite(number):
        raise InvalidArrayError(f"{owner}: invalid {field_name} {value!r}")
    return number


# =============================================================================
# Status Enumerations
# =============================================================================


class DiskStatus(str, Enum):
    """Status of a single member disk."""

    HEALTHY = "healthy"
    REBUILDING = "rebuilding"  # Being reconstructed from redundancy
    FAILED = "failed"


class ArrayStatus(str, Enum):
    """Aggregate status of an array."""

    HEALTHY = "healthy"
    REBUILDING = "rebuilding"
    DEGRADED = "degraded"  # Running with reduced or lost redundancy
    FAILED = "failed"


class ArrayType(str, Enum):
    """Redundancy scheme of an array."""

    RAID1 = "RAID1"  # Mirrored pair
    RAID5 = "RAID5"  # Single parity
    RAID6 = "RAID6"  # Dual parity
    RAID10 = "RAID10"  # Striped mirrors
    JBOD = "JBOD"  # No redundancy
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> "ArrayType":
        """Map feed spellings ("RAID 5", "raid-5", "5") onto the enum."""
        try:
            return cls(normalize_array_type(value))
        except ValueError:
            return cls.UNKNOWN


class ServerType(str, Enum):
    """Role of the server hosting an array."""

    NCP = "NCP"
    SEG = "SEG"


class RiskLevel(str, Enum):
    """Coarse data-loss exposure of an array."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class WarningSeverity(str, Enum):
    """Severity of a hazard warning."""

    WARNING = "warning"
    ERROR = "error"


# =============================================================================
# Placement
# =============================================================================


@dataclass(frozen=True)
class DiskLocation:
    """Physical slot of a disk inside its chassis."""

    bay: int
    slot: str

    def to_dict(self) -> Dict[str, Any]:
        return {"bay": self.bay, "slot": self.slot}


@dataclass(frozen=True)
class Location:
    """Physical placement of an array."""

    datacenter: str
    rack: str
    chassis: str

    def to_dict(self) -> Dict[str, str]:
        return {"datacenter": self.datacenter, "rack": self.rack, "chassis": self.chassis}


@dataclass(frozen=True)
class ServerInfo:
    """Server hosting an array."""

    server_type: ServerType
    server_model: str
    server_vendor: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "server_type": self.server_type.value,
            "server_model": self.server_model,
            "server_vendor": self.server_vendor,
        }


# =============================================================================
# Disk and Array
# =============================================================================


@dataclass(frozen=True)
class Disk:
    """A member disk. Owned exclusively by its parent array.

    Units:
    - size_bytes: bytes (integer)
    - temperature_c: degrees Celsius (integer)
    """

    id: str
    status: DiskStatus
    size_bytes: int  # Unit: bytes
    vendor: str
    model: str
    location: DiskLocation
    classification: str = ""  # Free-form tier label
    temperature_c: Optional[int] = None  # Unit: degrees Celsius
    serial_number: Optional[str] = None

    @property
    def size_display(self) -> str:
        return format_bytes(self.size_bytes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Disk":
        """Create a disk from a feed record (camelCase or snake_case keys)."""
        disk_id = data.get("id")
        if not disk_id:
            raise InvalidArrayError("Disk record is missing 'id'")
        status_value = normalize_disk_status(data.get("status"))
        if status_value is None:
            raise InvalidArrayError(f"Disk {disk_id}: unknown status {data.get('status')!r}")
        status = DiskStatus(status_value)

        size = data.get("size_bytes", data.get("sizeBytes", data.get("size")))
        size_bytes = parse_size_to_bytes(size)
        if size_bytes is None:
            raise InvalidArrayError(f"Disk {disk_id}: unparseable size {size!r}")

        loc = data.get("location") or {}
        temperature = data.get("temperature_c", data.get("temperatureC", data.get("temperature")))

        return cls(
            id=str(disk_id),
            status=status,
            size_bytes=size_bytes,
            vendor=str(data.get("vendor", "")),
            model=str(data.get("model", "")),
            location=DiskLocation(
                bay=int(_number(loc.get("bay", 0), "bay", f"Disk {disk_id}")),
                slot=str(loc.get("slot", "")),
            ),
            classification=str(data.get("classification", "")),
            temperature_c=(
                int(_number(temperature, "temperature", f"Disk {disk_id}")) if temperature is not None else None
            ),
            serial_number=data.get("serial_number", data.get("serialNumber")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "size_bytes": self.size_bytes,
            "size": self.size_display,
            "temperature_c": self.temperature_c,
            "serial_number": self.serial_number,
            "vendor": self.vendor,
            "model": self.model,
            "location": self.location.to_dict(),
            "classification": self.classification,
        }


@dataclass(frozen=True)
class CapacityInfo:
    """Raw capacity split by disk state. Units: bytes."""

    total_bytes: int
    available_bytes: int  # Held by non-failed disks
    lost_bytes: int  # Held by failed disks


@dataclass(frozen=True)
class DiskArray:
    """A logical group of disks presenting a single volume.

    Units:
    - rebuild_progress: integer percent (0-100)
    - hours_per_percent: hours needed per percent point of rebuild, derived
      at construction from the nominal speed and the largest member disk
    """

    id: str
    name: str
    type: ArrayType
    status: ArrayStatus
    location: Location
    server: ServerInfo
    disks: Tuple[Disk, ...]  # Bay order
    rebuild_progress: int = 0  # Unit: percent (0-100)
    estimated_time_remaining: str = "N/A"  # e.g. "2h 15m", "0m", "N/A"
    speed: str = "N/A"  # e.g. "85 MB/s"
    hours_per_percent: Optional[float] = None  # Unit: hours per percent

    def __post_init__(self):
        """Coerce disks to a tuple and derive the rebuild rate."""
        if not isinstance(self.disks, tuple):
            object.__setattr__(self, "disks", tuple(self.disks))
        object.__setattr__(self, "rebuild_progress", max(0, min(100, int(self.rebuild_progress))))
        if self.hours_per_percent is None:
            object.__setattr__(self, "hours_per_percent", self._derive_rate())

    def _derive_rate(self) -> float:
        speed = parse_speed_to_bytes_per_second(self.speed)
        if not speed or not self.disks:
            return DEFAULT_HOURS_PER_PERCENT
        largest = max(d.size_bytes for d in self.disks)
        if largest <= 0:
            return DEFAULT_HOURS_PER_PERCENT
        return largest / speed / 3600 / 100

    # --- Disk counts ---

    def count(self, status: DiskStatus) -> int:
        return sum(1 for d in self.disks if d.status == status)

    @property
    def rebuilding_count(self) -> int:
        return self.count(DiskStatus.REBUILDING)

    @property
    def failed_count(self) -> int:
        return self.count(DiskStatus.FAILED)

    @property
    def healthy_count(self) -> int:
        return self.count(DiskStatus.HEALTHY)

    def disks_with_status(self, status: DiskStatus) -> List[Disk]:
        return [d for d in self.disks if d.status == status]

    @property
    def capacity(self) -> CapacityInfo:
        total = sum(d.size_bytes for d in self.disks)
        lost = sum(d.size_bytes for d in self.disks if d.status == DiskStatus.FAILED)
        return CapacityInfo(total_bytes=total, available_bytes=total - lost, lost_bytes=lost)

    # --- Serialization ---

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiskArray":
        """Create an array from a feed record.

        Accepts both the dashboard's camelCase keys (``rebuildProgress``,
        ``serverType``) and snake_case keys. Server fields may be flat or
        nested under ``server``.

        Raises:
            InvalidArrayError: If required fields are missing or invalid.
        """
        array_id = data.get("id")
        if not array_id:
            raise InvalidArrayError("Array record is missing 'id'")

        status_value = normalize_array_status(data.get("status"))
        if status_value is None:
            raise InvalidArrayError(f"Array {array_id}: unknown status {data.get('status')!r}")
        status = ArrayStatus(status_value)

        disks = tuple(Disk.from_dict(d) for d in data.get("disks") or [])
        seen = set()
        for disk in disks:
            if disk.id in seen:
                raise InvalidArrayError(f"Array {array_id}: duplicate disk id {disk.id!r}")
            seen.add(disk.id)

        loc = data.get("location") or {}
        server_data = data.get("server") or data
        raw_server_type = server_data.get("server_type", server_data.get("serverType", ""))
        try:
            server_type = ServerType(str(raw_server_type).strip().upper())
        except ValueError:
            raise InvalidArrayError(f"Array {array_id}: unknown server type {raw_server_type!r}")

        progress = data.get("rebuild_progress", data.get("rebuildProgress", 0))
        eta = data.get("estimated_time_remaining", data.get("estimatedTimeRemaining", "N/A"))
        rate = data.get("hours_per_percent")

        return cls(
            id=str(array_id),
            name=str(data.get("name", array_id)),
            type=ArrayType.parse(data.get("type")),
            status=status,
            location=Location(
                datacenter=str(loc.get("datacenter", "")),
                rack=str(loc.get("rack", "")),
                chassis=str(loc.get("chassis", "")),
            ),
            server=ServerInfo(
                server_type=server_type,
                server_model=str(server_data.get("server_model", server_data.get("serverModel", ""))),
                server_vendor=str(server_data.get("server_vendor", server_data.get("serverVendor", ""))),
            ),
            disks=disks,
            rebuild_progress=round_half_up(_number(progress or 0, "rebuild progress", f"Array {array_id}")),
            estimated_time_remaining=str(eta),
            speed=str(data.get("speed", "N/A")),
            hours_per_percent=(
                _number(rate, "hours_per_percent", f"Array {array_id}") if rate is not None else None
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        capacity = self.capacity
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "status": self.status.value,
            "rebuild_progress": self.rebuild_progress,
            "estimated_time_remaining": self.estimated_time_remaining,
            "speed": self.speed,
            "hours_per_percent": self.hours_per_percent,
            "location": self.location.to_dict(),
            "server": self.server.to_dict(),
            "disk_counts": {
                "healthy": self.healthy_count,
                "rebuilding": self.rebuilding_count,
                "failed": self.failed_count,
            },
            "capacity": {
                "total_bytes": capacity.total_bytes,
                "available_bytes": capacity.available_bytes,
                "lost_bytes": capacity.lost_bytes,
            },
            "disks": [d.to_dict() for d in self.disks],
        }


# =============================================================================
# Snapshot
# =============================================================================


@dataclass(frozen=True)
class FleetSnapshot:
    """Immutable point-in-time view of every array in the fleet."""

    arrays: Tuple[DiskArray, ...] = ()
    version: int = 0
    generated_at: Optional[str] = None  # ISO timestamp
    _index: Dict[str, DiskArray] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        if not isinstance(self.arrays, tuple):
            object.__setattr__(self, "arrays", tuple(self.arrays))
        index: Dict[str, DiskArray] = {}
        for array in self.arrays:
            if array.id in index:
                raise InvalidArrayError(f"Duplicate array id {array.id!r} in snapshot")
            index[array.id] = array
        object.__setattr__(self, "_index", index)

    def __iter__(self) -> Iterator[DiskArray]:
        return iter(self.arrays)

    def __len__(self) -> int:
        return len(self.arrays)

    def get(self, array_id: str) -> Optional[DiskArray]:
        return self._index.get(array_id)

    def ids(self) -> List[str]:
        return [a.id for a in self.arrays]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FleetSnapshot":
        return cls(
            arrays=tuple(DiskArray.from_dict(a) for a in data.get("arrays", [])),
            version=int(data.get("version", 0)),
            generated_at=data.get("generated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "generated_at": self.generated_at,
            "arrays": [a.to_dict() for a in self.arrays],
        }
